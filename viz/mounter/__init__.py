"""
Chart mounting into server-rendered documents.
"""
from viz.mounter.document import ChartDocument
from viz.mounter.loader import HttpScriptLoader, ScriptLoader, ScriptLoadError
from viz.mounter.mounter import MounterState, VisualizationMounter
from viz.mounter.registry import ChartInstance, ChartRegistry, InMemoryChartRegistry
from viz.mounter.renderer import ChartRenderer, UntrustedChartError, build_chart_config

__all__ = [
    "ChartDocument",
    "HttpScriptLoader",
    "ScriptLoader",
    "ScriptLoadError",
    "MounterState",
    "VisualizationMounter",
    "ChartInstance",
    "ChartRegistry",
    "InMemoryChartRegistry",
    "ChartRenderer",
    "UntrustedChartError",
    "build_chart_config",
]
