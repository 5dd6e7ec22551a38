"""
Chart payload models.
"""
from enum import Enum
from typing import List, Optional, Union
from pydantic import BaseModel, Field, model_validator


class ChartKind(str, Enum):
    HTML_FRAGMENT = "html-fragment"
    STRUCTURED_SERIES = "structured-series"


class ChartDataset(BaseModel):
    label: str = "Data"
    data: List[float] = Field(default_factory=list)
    background_color: Union[str, List[str]] = "rgba(54, 162, 235, 0.5)"
    border_color: Optional[Union[str, List[str]]] = "rgba(54, 162, 235, 1)"
    border_width: int = 1


class ChartPayload(BaseModel):
    """
    In-memory description of a chart to render.

    Either an opaque script/HTML fragment returned by the chart service, or
    structured label/series data interpreted by the trusted renderer. Exactly
    one of the two representations is populated.
    """
    kind: ChartKind
    script_or_html: Optional[str] = None
    labels: Optional[List[str]] = None
    datasets: Optional[List[ChartDataset]] = None

    @model_validator(mode="after")
    def _one_representation(self) -> "ChartPayload":
        has_script = bool(self.script_or_html)
        has_series = self.labels is not None and self.datasets is not None
        if has_script == has_series:
            raise ValueError("ChartPayload needs either script_or_html or labels+datasets, not both")
        if self.kind == ChartKind.HTML_FRAGMENT and not has_script:
            raise ValueError("html-fragment chart requires script_or_html")
        if self.kind == ChartKind.STRUCTURED_SERIES and not has_series:
            raise ValueError("structured-series chart requires labels and datasets")
        return self

    @classmethod
    def fragment(cls, script_or_html: str) -> "ChartPayload":
        return cls(kind=ChartKind.HTML_FRAGMENT, script_or_html=script_or_html)

    @classmethod
    def series(cls, labels: List[str], datasets: List[ChartDataset]) -> "ChartPayload":
        return cls(kind=ChartKind.STRUCTURED_SERIES, labels=labels, datasets=datasets)
