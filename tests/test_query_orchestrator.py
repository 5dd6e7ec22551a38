"""
Tests for the query orchestrator.

Upstream: Supabase auth + edge functions and the schema service, all
served by an httpx.MockTransport.
"""
import asyncio
import json

import httpx
import pytest

from viz.auth.exceptions import NoActiveSessionError
from viz.auth.supabase_client import SupabaseAuthClient
from viz.exceptions import (
    DailyLimitReachedError,
    EmptyPromptError,
    NoDataSourceError,
    QueryFailedError,
    QueryInFlightError,
    RemoteRateLimitError,
)
from viz.models.chart import ChartKind
from viz.services.chat_history_service import ChatHistoryService
from viz.services.functions_client import SupabaseFunctionsClient
from viz.services.health_service import ApiStatus
from viz.services.query_orchestrator import QueryOrchestrator
from viz.services.rate_limiter import DailyMessageLimiter
from viz.services.schema_service import SchemaService

AUTH_PATH = "/auth/v1/user"
INFERENCE_PATH = "/functions/v1/inference"
CHART_PATH = "/functions/v1/generate-chart"
HEALTH_PATH = "/functions/v1/health-check"
HISTORY_PATH = "/rest/v1/chat_sessions"
SCHEMA_URL = "https://schema.example.com/fetch-schema"


def inference_response(answer="Revenue grew 4%", sql="SELECT month, total FROM revenue", data=None):
    inner = json.dumps({"answer": answer, "sql": sql, "data": data})
    return httpx.Response(200, json={"data": inner})


class GatedSessions:
    """Session provider that blocks until released."""

    def __init__(self, user):
        self.user = user
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def get_session(self, access_token):
        self.entered.set()
        await self.release.wait()
        return self.user


@pytest.fixture
def functions(user, upstream):
    return SupabaseFunctionsClient(access_token=user.access_token, transport=upstream.transport)


@pytest.fixture
def limiter(store, user):
    return DailyMessageLimiter(store, user.user_id)


@pytest.fixture
def orchestrator(user, upstream, functions, limiter, notifier, retry_options, auth_ok):
    upstream.route(AUTH_PATH, auth_ok)
    return QueryOrchestrator(
        user=user,
        functions=functions,
        session_provider=SupabaseAuthClient(transport=upstream.transport),
        limiter=limiter,
        notifier=notifier,
        schema_service=SchemaService(url=SCHEMA_URL, transport=upstream.transport),
        retry_options=retry_options,
    )


class TestPreconditions:
    @pytest.mark.asyncio
    async def test_empty_prompt_makes_no_calls(self, orchestrator, upstream, limiter):
        for prompt in ("", "   ", None):
            with pytest.raises(EmptyPromptError):
                await orchestrator.submit_query(prompt)

        assert upstream.calls == []
        assert limiter.current().count == 0

    @pytest.mark.asyncio
    async def test_daily_limit_blocks_before_network(self, orchestrator, upstream, limiter):
        for _ in range(5):
            limiter.increment()

        with pytest.raises(DailyLimitReachedError) as exc_info:
            await orchestrator.submit_query("top products?")

        assert exc_info.value.toast.action.label == "Contact Sales"
        assert upstream.calls == []
        assert limiter.current().count == 5

    @pytest.mark.asyncio
    async def test_sixth_submission_is_rejected(self, orchestrator, upstream, limiter):
        upstream.route(INFERENCE_PATH, inference_response(sql=""))
        for i in range(5):
            await orchestrator.submit_query(f"question {i}?")

        with pytest.raises(DailyLimitReachedError):
            await orchestrator.submit_query("one more?")

        assert limiter.current().count == 5
        assert len(upstream.calls_to(INFERENCE_PATH)) == 5

    @pytest.mark.asyncio
    async def test_no_data_source(self, orchestrator, upstream):
        upstream.route("/fetch-schema", httpx.Response(200, json={"tables": []}))

        assert await orchestrator.refresh_data_access() is False
        with pytest.raises(NoDataSourceError) as exc_info:
            await orchestrator.submit_query("top products?")

        assert exc_info.value.toast.action.href == "/data-control"
        assert upstream.calls_to(INFERENCE_PATH) == []

    @pytest.mark.asyncio
    async def test_data_access_with_tables(self, orchestrator, upstream):
        upstream.route("/fetch-schema", httpx.Response(200, json={"tables": [{"name": "orders"}]}))
        assert await orchestrator.refresh_data_access() is True
        assert upstream.json_body(upstream.calls_to("/fetch-schema")[0]) == {"email": "analyst@example.com"}

    @pytest.mark.asyncio
    async def test_schema_failure_counts_as_no_access(self, orchestrator, upstream):
        upstream.route("/fetch-schema", httpx.ConnectError("down"))
        assert await orchestrator.refresh_data_access() is False


class TestSubmitQuery:
    @pytest.mark.asyncio
    async def test_answer_sql_and_chart(self, orchestrator, upstream, limiter):
        upstream.route(INFERENCE_PATH, inference_response(data=[["Jan", 10], ["Feb", 12]]))
        upstream.route(CHART_PATH, httpx.Response(200, json={"chart_code": "<script>draw()</script>"}))

        result = await orchestrator.submit_query("  How did revenue develop?  ")

        assert result.answer_text == "Revenue grew 4%"
        assert result.sql_text == "SELECT month, total FROM revenue"
        assert result.raw_data == [["Jan", 10], ["Feb", 12]]
        assert result.chart.kind == ChartKind.HTML_FRAGMENT
        assert result.user_query == "How did revenue develop?"
        assert orchestrator.result is result
        assert orchestrator.is_loading is False
        assert limiter.current().count == 1

        request = upstream.calls_to(INFERENCE_PATH)[0]
        assert upstream.json_body(request) == {
            "prompt": "How did revenue develop?",
            "email": "analyst@example.com",
        }
        assert request.headers["Authorization"] == "Bearer token-abc"
        assert request.headers["apikey"] == "anon-key"

    @pytest.mark.asyncio
    async def test_missing_answer_gets_placeholder(self, orchestrator, upstream):
        upstream.route(INFERENCE_PATH, inference_response(answer=None, sql=""))

        result = await orchestrator.submit_query("anything?")

        assert result.answer_text == "No answer provided."
        assert result.chart is None
        assert upstream.calls_to(CHART_PATH) == []

    @pytest.mark.asyncio
    async def test_chart_rate_limit_does_not_fail_query(self, orchestrator, upstream, notifier, limiter):
        upstream.route(INFERENCE_PATH, inference_response())
        upstream.route(CHART_PATH, httpx.Response(429, json={"error": "limit"}))

        result = await orchestrator.submit_query("revenue?")

        assert result is not None
        assert result.answer_text == "Revenue grew 4%"
        assert result.chart is None
        assert notifier.limit_dialog_triggers == 1
        assert limiter.current().count == 1

    @pytest.mark.asyncio
    async def test_transient_inference_failure_is_retried(self, orchestrator, upstream):
        upstream.route(INFERENCE_PATH, httpx.Response(503, text="busy"), inference_response(sql=""))

        result = await orchestrator.submit_query("revenue?")

        assert result.answer_text == "Revenue grew 4%"
        assert len(upstream.calls_to(INFERENCE_PATH)) == 2

    @pytest.mark.asyncio
    async def test_persistent_failure_raises_mapped_toast(self, orchestrator, upstream, limiter):
        upstream.route(INFERENCE_PATH, httpx.Response(504, text="gateway timeout"))

        with pytest.raises(QueryFailedError) as exc_info:
            await orchestrator.submit_query("revenue?")

        assert exc_info.value.toast.title == "Request timed out"
        assert "gateway timeout" not in exc_info.value.toast.description
        assert len(upstream.calls_to(INFERENCE_PATH)) == 2
        assert limiter.current().count == 0
        assert orchestrator.is_loading is False

    @pytest.mark.asyncio
    async def test_remote_rate_limit(self, orchestrator, upstream, limiter):
        upstream.route(INFERENCE_PATH, httpx.Response(429, json={"error": "Too many requests"}))

        with pytest.raises(RemoteRateLimitError) as exc_info:
            await orchestrator.submit_query("revenue?")

        assert exc_info.value.status_code == 429
        assert exc_info.value.details["show_limit_dialog"] is True
        assert len(upstream.calls_to(INFERENCE_PATH)) == 1
        assert limiter.current().count == 0

    @pytest.mark.asyncio
    async def test_no_active_session(self, orchestrator, upstream, limiter):
        upstream.route(AUTH_PATH, httpx.Response(401, json={"msg": "invalid JWT"}))

        with pytest.raises(NoActiveSessionError):
            await orchestrator.submit_query("revenue?")

        assert len(upstream.calls_to(AUTH_PATH)) == 1
        assert upstream.calls_to(INFERENCE_PATH) == []
        assert limiter.current().count == 0

    @pytest.mark.asyncio
    async def test_history_is_recorded(self, orchestrator, upstream, user):
        orchestrator.history = ChatHistoryService(user, transport=upstream.transport)
        upstream.route(INFERENCE_PATH, inference_response(sql=""))
        upstream.route(HISTORY_PATH, httpx.Response(201, json=[{"id": "s1", "prompt": "revenue?"}]))

        await orchestrator.submit_query("revenue?")

        row = upstream.json_body(upstream.calls_to(HISTORY_PATH)[0])
        assert row["user_id"] == "user-1"
        assert row["prompt"] == "revenue?"
        assert row["chart_code"] is None

    @pytest.mark.asyncio
    async def test_history_failure_is_ignored(self, orchestrator, upstream, user):
        orchestrator.history = ChatHistoryService(user, transport=upstream.transport)
        upstream.route(INFERENCE_PATH, inference_response(sql=""))
        upstream.route(HISTORY_PATH, httpx.Response(500, text="db down"))

        result = await orchestrator.submit_query("revenue?")
        assert result is not None

    @pytest.mark.asyncio
    async def test_unexpected_history_row_is_ignored(self, orchestrator, upstream, user, limiter):
        orchestrator.history = ChatHistoryService(user, transport=upstream.transport)
        upstream.route(INFERENCE_PATH, inference_response(sql=""))
        upstream.route(HISTORY_PATH, httpx.Response(201, json=[{"id": 17, "prompt": "q", "metadata": None}]))

        result = await orchestrator.submit_query("revenue?")

        assert result.answer_text == "Revenue grew 4%"
        assert limiter.current().count == 1
        assert len(upstream.calls_to(HISTORY_PATH)) == 1


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_second_submission_is_rejected(self, orchestrator, upstream, user):
        sessions = GatedSessions(user)
        orchestrator.session_provider = sessions
        upstream.route(INFERENCE_PATH, inference_response(sql=""))

        first = asyncio.ensure_future(orchestrator.submit_query("first?"))
        await sessions.entered.wait()

        with pytest.raises(QueryInFlightError):
            await orchestrator.submit_query("second?")
        # In-flight is checked before the prompt itself
        with pytest.raises(QueryInFlightError):
            await orchestrator.submit_query("")

        sessions.release.set()
        result = await first

        assert result.user_query == "first?"
        assert len(upstream.calls_to(INFERENCE_PATH)) == 1

    @pytest.mark.asyncio
    async def test_reset_discards_in_flight_result(self, orchestrator, upstream, user, limiter):
        sessions = GatedSessions(user)
        orchestrator.session_provider = sessions
        upstream.route(INFERENCE_PATH, inference_response(sql=""))

        pending = asyncio.ensure_future(orchestrator.submit_query("revenue?"))
        await sessions.entered.wait()
        orchestrator.reset()
        sessions.release.set()

        assert await pending is None
        assert orchestrator.result is None
        assert orchestrator.is_loading is False
        # The answer was produced, so it still counts
        assert limiter.current().count == 1


class TestLazyChart:
    @pytest.mark.asyncio
    async def test_ensure_chart_generates_once(self, orchestrator, upstream):
        upstream.route(INFERENCE_PATH, inference_response(data=[["A", 1]]))
        upstream.route(CHART_PATH, httpx.Response(200, json={}))
        result = await orchestrator.submit_query("revenue?")
        assert result.chart is None

        upstream.route(CHART_PATH, httpx.Response(200, json={"labels": ["A"], "values": [1]}))
        chart = await orchestrator.ensure_chart()

        assert chart.kind == ChartKind.STRUCTURED_SERIES
        assert orchestrator.result.chart == chart
        await orchestrator.ensure_chart()
        assert len(upstream.calls_to(CHART_PATH)) == 2


class TestApiConnection:
    @pytest.mark.asyncio
    async def test_online(self, orchestrator, upstream):
        upstream.route(HEALTH_PATH, httpx.Response(200, json={"status": "ok"}))
        assert await orchestrator.check_api_connection() == ApiStatus.ONLINE

    @pytest.mark.asyncio
    async def test_direct_fallback(self, orchestrator, upstream):
        def respond(request):
            if "Authorization" in request.headers:
                return httpx.Response(401, json={"error": "bad token"})
            return httpx.Response(200, json={"status": "ok"})

        upstream.route(HEALTH_PATH, respond)
        assert await orchestrator.check_api_connection() == ApiStatus.ONLINE

    @pytest.mark.asyncio
    async def test_offline(self, orchestrator, upstream, notifier):
        upstream.route(HEALTH_PATH, httpx.ConnectError("refused"))

        assert await orchestrator.check_api_connection() == ApiStatus.OFFLINE
        assert [n.title for n in notifier.notices] == ["Connection Error"]
