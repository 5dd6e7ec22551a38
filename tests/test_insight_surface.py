"""
Tests for the insight surface: tab handling, lazy charts and teardown.
"""
import httpx
import pytest

from viz.config import ANSWER_TAB, CHARTS_TAB, SQL_TAB
from viz.exceptions import EmptyPromptError, InvalidTabError
from viz.mounter import MounterState
from viz.services.insight_surface import create_insight_surface

AUTH_PATH = "/auth/v1/user"
INFERENCE_PATH = "/functions/v1/inference"
CHART_PATH = "/functions/v1/generate-chart"
SERIES_CHART = {"chartData": {"labels": ["A", "B"], "values": [1, 2]}}


class NullLoader:
    def __init__(self):
        self.loaded = []

    async def load(self, url):
        self.loaded.append(url)

    def forget(self, url):
        pass


@pytest.fixture
def surface(user, store, upstream, retry_options, auth_ok):
    upstream.route(AUTH_PATH, auth_ok)
    upstream.route(INFERENCE_PATH, httpx.Response(200, json={
        "answer": "Two regions", "sql": "SELECT region, total FROM sales", "data": [["A", 1], ["B", 2]],
    }))
    upstream.route("/rest/v1/chat_sessions", httpx.Response(201, json=[]))
    return create_insight_surface(user, store, NullLoader(), transport=upstream.transport, retry_options=retry_options)


class TestAsk:
    @pytest.mark.asyncio
    async def test_switches_to_answer_tab(self, surface, upstream):
        upstream.route(CHART_PATH, httpx.Response(200, json=SERIES_CHART))
        surface.active_tab = SQL_TAB

        result = await surface.ask("sales by region?")

        assert result.answer_text == "Two regions"
        assert surface.active_tab == ANSWER_TAB
        assert surface.mounter.state == MounterState.EMPTY

    @pytest.mark.asyncio
    async def test_new_question_removes_previous_chart(self, surface, upstream):
        upstream.route(CHART_PATH, httpx.Response(200, json=SERIES_CHART))
        await surface.ask("sales by region?")
        await surface.activate_tab(CHARTS_TAB)
        assert surface.mounter.scoped_roots()

        await surface.ask("and last year?")

        assert surface.mounter.scoped_roots() == []

    @pytest.mark.asyncio
    async def test_rejected_question_keeps_current_chart(self, surface, upstream):
        upstream.route(CHART_PATH, httpx.Response(200, json=SERIES_CHART))
        await surface.ask("sales by region?")
        await surface.activate_tab(CHARTS_TAB)

        with pytest.raises(EmptyPromptError):
            await surface.ask("  ")

        assert surface.mounter.state == MounterState.MOUNTED
        assert surface.active_tab == CHARTS_TAB


class TestActivateTab:
    @pytest.mark.asyncio
    async def test_charts_tab_mounts_chart(self, surface, upstream):
        upstream.route(CHART_PATH, httpx.Response(200, json=SERIES_CHART))
        await surface.ask("sales by region?")

        await surface.activate_tab(CHARTS_TAB)

        assert surface.mounter.state == MounterState.MOUNTED
        assert 'id="myChart"' in surface.render_page()

        await surface.activate_tab(SQL_TAB)
        assert surface.mounter.state == MounterState.EMPTY
        assert 'id="myChart"' not in surface.render_page()

    @pytest.mark.asyncio
    async def test_chart_generated_lazily(self, surface, upstream):
        upstream.route(CHART_PATH, httpx.Response(200, json={}), httpx.Response(200, json=SERIES_CHART))
        result = await surface.ask("sales by region?")
        assert result.chart is None

        await surface.activate_tab(CHARTS_TAB)

        assert surface.orchestrator.result.chart is not None
        assert surface.mounter.state == MounterState.MOUNTED
        assert len(upstream.calls_to(CHART_PATH)) == 2

    @pytest.mark.asyncio
    async def test_unknown_tab(self, surface):
        with pytest.raises(InvalidTabError):
            await surface.activate_tab("pivot")


class TestCloseAndState:
    @pytest.mark.asyncio
    async def test_close_clears_everything(self, surface, upstream):
        upstream.route(CHART_PATH, httpx.Response(200, json=SERIES_CHART))
        await surface.ask("sales by region?")
        await surface.activate_tab(CHARTS_TAB)

        surface.close()

        assert surface.orchestrator.result is None
        assert surface.mounter.state == MounterState.EMPTY
        assert surface.mounter.scoped_roots() == []

    @pytest.mark.asyncio
    async def test_state_drains_notices(self, surface, upstream):
        upstream.route(CHART_PATH, httpx.Response(429, json={"error": "limit"}))
        await surface.ask("sales by region?")

        state = surface.state()
        assert state.show_limit_dialog is True
        assert [n.title for n in state.notices] == ["Rendered local chart"]
        assert state.result.chart is not None

        again = surface.state()
        assert again.notices == []
        assert again.show_limit_dialog is False
