"""
Query orchestrator.

Turns one typed question into an answer, the generated SQL and an
optional chart:

    session -> inference -> normalize -> chart (non-fatal) -> count message

Every upstream call goes through fetch_with_retry. Transient failures are
retried, authentication failures and HTTP 429 are not, malformed payloads
degrade to empty values and chart failures never fail the query.
"""
import logging
from typing import Any, Dict, Optional, Protocol

from viz.auth.exceptions import AuthenticationError
from viz.config import INFERENCE_FUNCTION
from viz.exceptions import (
    DailyLimitReachedError,
    EmptyPromptError,
    NoDataSourceError,
    QueryFailedError,
    QueryInFlightError,
    RemoteRateLimitError,
)
from viz.models.chart import ChartPayload
from viz.models.query import QueryResult
from viz.models.session import UserSession
from viz.services.chart_service import ChartService
from viz.services.chat_history_service import ChatHistoryService
from viz.services.error_messages import is_rate_limit_toast, map_error_to_toast
from viz.services.functions_client import (
    SupabaseFunctionsClient,
    is_transient_error,
    response_status,
)
from viz.services.health_service import ApiStatus, check_api_connection
from viz.services.notifications import NotificationCenter
from viz.services.rate_limiter import DailyMessageLimiter
from viz.services.schema_service import SchemaService
from viz.utils.generation import GenerationCounter
from viz.utils.payload import normalize_inference_payload
from viz.utils.retry import fetch_with_retry

logger = logging.getLogger(__name__)

NO_ANSWER = "No answer provided."


class SessionProvider(Protocol):
    async def get_session(self, access_token: Optional[str]) -> UserSession: ...


class QueryOrchestrator:
    """
    One orchestrator per dashboard surface.

    At most one query is in flight at a time; a second submission is
    rejected, not queued. Results of work started before reset() are
    dropped when they arrive.
    """

    def __init__(
        self,
        user: UserSession,
        functions: SupabaseFunctionsClient,
        session_provider: SessionProvider,
        limiter: DailyMessageLimiter,
        notifier: NotificationCenter,
        chart_service: Optional[ChartService] = None,
        schema_service: Optional[SchemaService] = None,
        history: Optional[ChatHistoryService] = None,
        retry_options: Optional[Dict[str, Any]] = None,
    ):
        self.user = user
        self.functions = functions
        self.session_provider = session_provider
        self.limiter = limiter
        self.notifier = notifier
        self.retry_options = retry_options or {}
        self.chart_service = chart_service or ChartService(functions, notifier, self.retry_options)
        self.schema_service = schema_service
        self.history = history

        self.is_loading = False
        self.is_chart_loading = False
        self.has_tables: Optional[bool] = None
        self.result: Optional[QueryResult] = None
        self._generation = GenerationCounter()

    # =========================================================================
    # Queries
    # =========================================================================

    def check_preconditions(self, prompt_text: Optional[str]) -> str:
        """
        Validate a submission without touching the network.

        Returns:
            The trimmed prompt

        Raises:
            QueryInFlightError, EmptyPromptError, DailyLimitReachedError,
            NoDataSourceError
        """
        if self.is_loading:
            raise QueryInFlightError()

        prompt = (prompt_text or "").strip()
        if not prompt:
            raise EmptyPromptError()

        counter = self.limiter.current()
        if counter.exhausted:
            raise DailyLimitReachedError(counter.count, counter.max)

        if self.has_tables is False:
            raise NoDataSourceError()

        return prompt

    async def submit_query(self, prompt_text: Optional[str]) -> Optional[QueryResult]:
        """
        Answer one question.

        Returns:
            The QueryResult, or None when the surface was reset while the
            query was running

        Raises:
            The precondition errors of check_preconditions, NoActiveSessionError,
            RemoteRateLimitError or QueryFailedError
        """
        prompt = self.check_preconditions(prompt_text)

        token = self._generation.begin()
        self.is_loading = True
        self.result = None
        try:
            return await self._run_query(prompt, token)
        finally:
            self.is_loading = False

    async def _run_query(self, prompt: str, token: int) -> Optional[QueryResult]:
        session = await self._resolve_session()

        response = await fetch_with_retry(
            lambda: self.functions.invoke(
                INFERENCE_FUNCTION,
                {"prompt": prompt, "email": session.email or ""},
            ),
            retry_on=is_transient_error,
            **self.retry_options,
        )
        if not response.ok:
            self._raise_inference_failure(response.error)

        normalized = normalize_inference_payload(response.data)
        result = QueryResult(
            answer_text=normalized["answer"] or NO_ANSWER,
            sql_text=normalized["sql"],
            raw_data=normalized["data"],
            user_query=prompt,
        )

        if self._generation.is_current(token):
            result.chart = await self.generate_chart(
                result.sql_text, result.raw_data, result.answer_text, prompt
            )

        # The answer was obtained, so the message counts even if it is stale
        self.limiter.increment()

        if not self._generation.is_current(token):
            logger.info(f"Discarding stale query result for {self.user.user_id}")
            return None

        self.result = result
        await self._record_history(result)
        return result

    async def _resolve_session(self) -> UserSession:
        response = await fetch_with_retry(
            lambda: self.session_provider.get_session(self.user.access_token),
            retry_on=is_transient_error,
            **self.retry_options,
        )
        if response.ok:
            return response.data
        if isinstance(response.error, AuthenticationError):
            raise response.error
        logger.error(f"Session lookup failed: {response.error}")
        raise QueryFailedError(map_error_to_toast(response.error))

    def _raise_inference_failure(self, error: BaseException) -> None:
        status_code = response_status(error)
        toast = map_error_to_toast(error)
        if status_code == 429 or is_rate_limit_toast(toast):
            raise RemoteRateLimitError(toast)
        if isinstance(error, AuthenticationError):
            raise error
        logger.error(f"Error processing query: {error}")
        raise QueryFailedError(toast, details={"status": status_code})

    async def _record_history(self, result: QueryResult) -> None:
        if self.history is None:
            return
        chart_code = None
        if result.chart is not None and result.chart.script_or_html:
            chart_code = result.chart.script_or_html
        try:
            await self.history.record(
                prompt=result.user_query,
                answer=result.answer_text,
                sql_query=result.sql_text,
                data=result.raw_data,
                chart_code=chart_code,
            )
        except Exception as e:
            # Never fails the query
            logger.warning(f"Chat history not recorded for {self.user.user_id}: {e}", exc_info=True)

    # =========================================================================
    # Charts
    # =========================================================================

    async def generate_chart(
        self,
        sql_text: str,
        raw_data: Any,
        answer_text: str,
        prompt_text: str,
    ) -> Optional[ChartPayload]:
        """Generate a chart; failures are reported as notices, never raised."""
        self.is_chart_loading = True
        try:
            return await self.chart_service.generate_chart(sql_text, raw_data, answer_text, prompt_text)
        finally:
            self.is_chart_loading = False

    async def ensure_chart(self) -> Optional[ChartPayload]:
        """Generate the chart for the current result on demand, once."""
        result = self.result
        if result is None or result.chart is not None or not result.sql_text:
            return result.chart if result else None
        if self.is_loading or self.is_chart_loading:
            return None

        token = self._generation.begin()
        chart = await self.generate_chart(
            result.sql_text, result.raw_data, result.answer_text, result.user_query
        )
        if not self._generation.is_current(token) or self.result is not result:
            return None
        result.chart = chart
        return chart

    # =========================================================================
    # Surface lifecycle
    # =========================================================================

    async def refresh_data_access(self) -> bool:
        if self.schema_service is None:
            return True
        self.has_tables = await self.schema_service.has_tables(self.user.email)
        return self.has_tables

    def reset(self) -> None:
        """Forget the current result and drop any in-flight results."""
        self._generation.invalidate()
        self.result = None

    async def check_api_connection(self) -> ApiStatus:
        return await check_api_connection(self.functions, self.notifier, self.retry_options)
