"""
Insight surface.

Per-user state of the insight screen: the active tab, the orchestrator
answering questions and the mounter keeping the chart document in sync
with what the charts tab should show.
"""
import logging
from typing import Optional
import httpx

from viz.auth.supabase_client import SupabaseAuthClient
from viz.config import ANSWER_TAB, CHARTS_TAB, TABS
from viz.exceptions import InvalidTabError
from viz.models.query import InsightStateResponse, QueryResult
from viz.models.session import UserSession
from viz.mounter import ChartDocument, ScriptLoader, VisualizationMounter
from viz.services.chart_service import ChartService
from viz.services.chat_history_service import ChatHistoryService
from viz.services.functions_client import SupabaseFunctionsClient
from viz.services.notifications import NotificationCenter
from viz.services.query_orchestrator import QueryOrchestrator
from viz.services.rate_limiter import DailyMessageLimiter
from viz.services.schema_service import SchemaService
from viz.utils.local_store import LocalStore

logger = logging.getLogger(__name__)


class InsightSurface:
    def __init__(
        self,
        orchestrator: QueryOrchestrator,
        mounter: VisualizationMounter,
        notifier: NotificationCenter,
    ):
        self.orchestrator = orchestrator
        self.mounter = mounter
        self.notifier = notifier
        self.active_tab = ANSWER_TAB

    async def ask(self, prompt_text: Optional[str]) -> Optional[QueryResult]:
        """
        Submit a question from the chat input.

        The previous chart is torn down and the answer tab is shown before
        the query starts.
        """
        self.orchestrator.check_preconditions(prompt_text)
        self.mounter.teardown()
        self.active_tab = ANSWER_TAB
        return await self.orchestrator.submit_query(prompt_text)

    async def activate_tab(self, tab: str) -> None:
        if tab not in TABS:
            raise InvalidTabError(tab)
        self.active_tab = tab

        result = self.orchestrator.result
        if tab == CHARTS_TAB and result is not None and result.sql_text and result.chart is None:
            await self.orchestrator.ensure_chart()

        result = self.orchestrator.result
        await self.mounter.sync(self.active_tab, result.chart if result else None)

    def close(self) -> None:
        """Leave the screen: drop in-flight results and remove the chart."""
        self.orchestrator.reset()
        self.mounter.teardown()
        self.active_tab = ANSWER_TAB

    def state(self) -> InsightStateResponse:
        notices, show_dialog = self.notifier.drain()
        return InsightStateResponse(
            active_tab=self.active_tab,
            is_loading=self.orchestrator.is_loading,
            result=self.orchestrator.result,
            mounter_state=self.mounter.state.value,
            notices=notices,
            show_limit_dialog=show_dialog,
        )

    def render_page(self) -> str:
        return self.mounter.document.render()


def create_insight_surface(
    user: UserSession,
    store: LocalStore,
    loader: ScriptLoader,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    schema_transport: Optional[httpx.AsyncBaseTransport] = None,
    retry_options: Optional[dict] = None,
) -> InsightSurface:
    """Wire a surface for one user. Transports are injectable for tests."""
    notifier = NotificationCenter()
    functions = SupabaseFunctionsClient(access_token=user.access_token, transport=transport)
    orchestrator = QueryOrchestrator(
        user=user,
        functions=functions,
        session_provider=SupabaseAuthClient(transport=transport),
        limiter=DailyMessageLimiter(store, user.user_id),
        notifier=notifier,
        chart_service=ChartService(functions, notifier, retry_options),
        schema_service=SchemaService(transport=schema_transport or transport),
        history=ChatHistoryService(user, transport=transport),
        retry_options=retry_options,
    )
    mounter = VisualizationMounter(ChartDocument(), loader)
    return InsightSurface(orchestrator, mounter, notifier)
