"""
Turns a ChartPayload into the script placed next to the chart canvas.

Structured series are serialized into a fixed Chart.js configuration;
no text from the chart service is interpreted as code on that path.
Opaque fragments from the service are passed through only when
ALLOW_OPAQUE_CHART_SCRIPTS is enabled.
"""
import json
from typing import Any, Dict

from viz.config import ALLOW_OPAQUE_CHART_SCRIPTS
from viz.models.chart import ChartKind, ChartPayload
from viz.utils.payload import extract_script_body


class UntrustedChartError(Exception):
    """An opaque chart script was refused."""


def build_chart_config(payload: ChartPayload) -> Dict[str, Any]:
    """Chart.js bar chart configuration for a structured payload."""
    return {
        "type": "bar",
        "data": {
            "labels": list(payload.labels or []),
            "datasets": [
                {
                    "label": dataset.label,
                    "data": list(dataset.data),
                    "backgroundColor": dataset.background_color,
                    "borderColor": dataset.border_color,
                    "borderWidth": dataset.border_width,
                }
                for dataset in payload.datasets or []
            ],
        },
        "options": {
            "responsive": True,
            "maintainAspectRatio": False,
            "scales": {"y": {"beginAtZero": True}},
        },
    }


def _script_json(value: Any) -> str:
    # "</" would close the surrounding <script> element
    return json.dumps(value).replace("</", "<\\/")


class ChartRenderer:
    def __init__(self, allow_opaque_scripts: bool = ALLOW_OPAQUE_CHART_SCRIPTS):
        self.allow_opaque_scripts = allow_opaque_scripts

    def render(self, payload: ChartPayload, canvas_id: str) -> str:
        if payload.kind == ChartKind.STRUCTURED_SERIES:
            return (
                f"new Chart(document.getElementById({_script_json(canvas_id)}), "
                f"{_script_json(build_chart_config(payload))});"
            )
        if not self.allow_opaque_scripts:
            raise UntrustedChartError("Opaque chart scripts are disabled")
        return extract_script_body(payload.script_or_html or "")
