"""
Chart generation service.

Asks the generate-chart function for a chart describing a query result
and turns whatever it returns into a ChartPayload. Chart failures never
fail the query: they degrade to a locally built bar chart when the rows
allow it, otherwise to a secondary notice.
"""
import logging
from typing import Any, Dict, List, Optional

from viz.config import CHART_FUNCTION
from viz.models.chart import ChartDataset, ChartPayload
from viz.models.notifications import ToastPayload
from viz.services.error_messages import REQUEST_FAILED_TITLE, map_error_to_toast
from viz.services.functions_client import (
    SupabaseFunctionsClient,
    is_transient_error,
    response_status,
)
from viz.services.notifications import NotificationCenter
from viz.utils.payload import (
    build_data_struct,
    coerce_number,
    decode_json,
    rows_to_series,
    sanitize_chart_code,
)
from viz.utils.retry import fetch_with_retry

logger = logging.getLogger(__name__)

LOCAL_CHART_COLOR = "rgba(99, 102, 241, 0.5)"
LOCAL_CHART_BORDER = "rgba(99, 102, 241, 1)"
SQL_TAB_TIP = " Tip: open the SQL tab to validate the query, or try a narrower time range."


def _dataset_from(raw: Dict[str, Any]) -> ChartDataset:
    values = raw.get("data")
    if values is None:
        values = raw.get("values") or []
    dataset = ChartDataset(
        label=str(raw.get("label") or "Data"),
        data=[coerce_number(v) for v in values] if isinstance(values, list) else [],
    )
    for source, target in (
        ("backgroundColor", "background_color"),
        ("borderColor", "border_color"),
        ("borderWidth", "border_width"),
    ):
        if raw.get(source) is not None:
            setattr(dataset, target, raw[source])
    return dataset


def chart_payload_from(data: Any) -> Optional[ChartPayload]:
    """
    Build a ChartPayload from a chart description.

    Strings (with or without a <script> wrapper) and {"html": ...} objects
    become sanitized fragments; objects with labels plus values or
    datasets become structured series. Anything else yields None.
    """
    if not data:
        return None

    if isinstance(data, str):
        code = sanitize_chart_code(data)
        return ChartPayload.fragment(code) if code else None

    if not isinstance(data, dict):
        return None

    if isinstance(data.get("html"), str):
        code = sanitize_chart_code(data["html"])
        return ChartPayload.fragment(code) if code else None

    labels = data.get("labels")
    if not isinstance(labels, list) or not labels:
        return None

    raw_datasets = data.get("datasets")
    if isinstance(raw_datasets, list) and raw_datasets:
        datasets = [_dataset_from(d) for d in raw_datasets if isinstance(d, dict)]
    else:
        datasets = [_dataset_from({
            "label": data.get("datasetLabel") or "Data",
            "values": data.get("values") or [],
        })]
    if not datasets:
        return None
    return ChartPayload.series([str(label) for label in labels], datasets)


def interpret_chart_response(response: Any) -> Optional[ChartPayload]:
    """Pick the chart description out of a generate-chart response."""
    if isinstance(response, str):
        decoded = decode_json(response, max_depth=1)
        if isinstance(decoded, str) and decoded == response:
            return chart_payload_from(response)
        response = decoded

    if isinstance(response, dict):
        if isinstance(response.get("chart_code"), str):
            return chart_payload_from(response["chart_code"])
        if response.get("html"):
            return chart_payload_from(response["html"])
        return chart_payload_from(response.get("chartData") or response)

    if isinstance(response, str):
        return chart_payload_from(response)
    return None


def local_bar_chart(labels: List[str], values: List[float]) -> ChartPayload:
    return ChartPayload.series(
        labels,
        [ChartDataset(
            label="Values",
            data=values,
            background_color=LOCAL_CHART_COLOR,
            border_color=LOCAL_CHART_BORDER,
            border_width=1,
        )],
    )


def build_chart_request(
    sql_text: str,
    raw_data: Any,
    answer_text: str,
    prompt_text: str,
) -> Dict[str, Any]:
    return {
        "sql": sql_text or "",
        "inference": answer_text or "",
        "data": raw_data if raw_data is not None else {},
        "data_struct": build_data_struct(raw_data),
        "user_query": prompt_text or "",
        # Older deployments of the chart service read this spelling
        "User_query": prompt_text or "",
    }


class ChartService:
    def __init__(
        self,
        functions: SupabaseFunctionsClient,
        notifier: NotificationCenter,
        retry_options: Optional[Dict[str, Any]] = None,
    ):
        self.functions = functions
        self.notifier = notifier
        self.retry_options = retry_options or {}

    async def generate_chart(
        self,
        sql_text: str,
        raw_data: Any,
        answer_text: str,
        prompt_text: str,
    ) -> Optional[ChartPayload]:
        """
        Generate a chart for a query result.

        Returns:
            The chart, a local fallback chart, or None. Never raises for
            upstream failures.
        """
        if not sql_text or not answer_text:
            return None

        body = build_chart_request(sql_text, raw_data, answer_text, prompt_text)
        result = await fetch_with_retry(
            lambda: self.functions.invoke(CHART_FUNCTION, body),
            retry_on=is_transient_error,
            **self.retry_options,
        )
        if result.ok:
            payload = interpret_chart_response(result.data)
            if payload is None:
                logger.info("Chart service returned nothing renderable")
            return payload

        return self._handle_failure(result.error, raw_data)

    def _handle_failure(self, error: BaseException, raw_data: Any) -> Optional[ChartPayload]:
        logger.error(f"Error generating chart: {error}")

        if response_status(error) == 429:
            self.notifier.open_limit_dialog()

        labels, values = rows_to_series(raw_data)
        if labels:
            self.notifier.toast(ToastPayload(
                title="Rendered local chart",
                description="Used returned data to render chart while the server request failed.",
            ))
            return local_bar_chart(labels, values)

        toast = map_error_to_toast(error)
        if toast.title == REQUEST_FAILED_TITLE:
            toast = toast.model_copy(update={"description": toast.description + SQL_TAB_TIP})
        self.notifier.toast(toast)
        return None
