"""
Dynamic visualization mounter.

Mounts one chart into a ChartDocument and guarantees that nothing is left
behind when it is replaced, when the charts tab is left, or when the
surface goes away.

States: EMPTY -> MOUNTING -> MOUNTED -> TEARING_DOWN -> EMPTY
"""
import logging
from enum import Enum
from typing import List, Optional

from bs4 import Tag

from viz.config import (
    CHARTS_TAB,
    CHART_CANVAS_ID,
    CHART_CONTAINER_ID,
    CHART_HELPER_CLASSES,
    CHART_LIBRARY_URLS,
)
from viz.models.chart import ChartPayload
from viz.mounter.document import ChartDocument
from viz.mounter.loader import ScriptLoader, ScriptLoadError
from viz.mounter.registry import ChartInstance, ChartRegistry, InMemoryChartRegistry
from viz.mounter.renderer import ChartRenderer, UntrustedChartError
from viz.utils.generation import GenerationCounter

logger = logging.getLogger(__name__)

ROOT_MARKER = "data-viz-chart-root"
CHART_MARKER = "data-viz-chart"
INJECTED_MARKER = "data-viz-injected"

COLLAPSE_STYLE = "height:0;min-height:0;max-height:0;margin:0;padding:0;overflow:hidden"
COLLAPSE_PROPERTIES = {"height", "min-height", "max-height", "margin", "padding", "overflow"}


class MounterState(str, Enum):
    EMPTY = "empty"
    MOUNTING = "mounting"
    MOUNTED = "mounted"
    TEARING_DOWN = "tearing_down"


def _strip_collapse(style: str) -> str:
    kept = []
    for declaration in style.split(";"):
        name, _, value = declaration.partition(":")
        name, value = name.strip().lower(), value.strip().lower()
        if not name:
            continue
        if name in COLLAPSE_PROPERTIES and value in ("0", "0px", "hidden"):
            continue
        kept.append(declaration.strip())
    return ";".join(kept)


class VisualizationMounter:
    def __init__(
        self,
        document: ChartDocument,
        loader: ScriptLoader,
        registry: Optional[ChartRegistry] = None,
        renderer: Optional[ChartRenderer] = None,
        library_urls: Optional[List[str]] = None,
        container_id: str = CHART_CONTAINER_ID,
        canvas_id: str = CHART_CANVAS_ID,
        helper_classes: Optional[List[str]] = None,
    ):
        self.document = document
        self.loader = loader
        self.registry = registry or InMemoryChartRegistry()
        self.renderer = renderer or ChartRenderer()
        self.library_urls = list(CHART_LIBRARY_URLS if library_urls is None else library_urls)
        self.container_id = container_id
        self.canvas_id = canvas_id
        self.helper_classes = list(CHART_HELPER_CLASSES if helper_classes is None else helper_classes)
        self.state = MounterState.EMPTY
        self.payload: Optional[ChartPayload] = None
        self._generation = GenerationCounter()

    async def sync(self, active_tab: str, payload: Optional[ChartPayload]) -> MounterState:
        """Mount when the charts tab shows a chart, tear down otherwise."""
        if active_tab == CHARTS_TAB and payload is not None:
            if self.state == MounterState.MOUNTED and self.payload == payload:
                return self.state
            await self.mount(payload)
        else:
            self.teardown()
        return self.state

    async def mount(self, payload: ChartPayload) -> None:
        """
        Mount a chart, replacing any previous one.

        A library that fails to load abandons the attempt: the error is
        logged and the scoped root stays empty, the host page is unaffected.
        """
        if self.state != MounterState.EMPTY:
            self.teardown()

        token = self._generation.begin()
        self.state = MounterState.MOUNTING
        self.payload = payload

        container = self.document.ensure_container(self.container_id)
        self._unblock(container)
        container.clear()

        root = self.document.new_tag("div", {ROOT_MARKER: "true", CHART_MARKER: "root"})
        container.append(root)
        # No explicit height; the container decides the size
        root.append(self.document.new_tag("canvas", {"id": self.canvas_id, CHART_MARKER: "canvas"}))

        try:
            await self._inject_libraries(token)
            if not self._generation.is_current(token):
                logger.info("Chart mount superseded while loading libraries")
                return
            body = self.renderer.render(payload, self.canvas_id)
        except (ScriptLoadError, UntrustedChartError) as e:
            logger.error(f"Chart mount abandoned: {e}")
            if not self._generation.is_current(token):
                return
            root.clear()
            self.state = MounterState.MOUNTED
            return

        script = self.document.new_tag("script", {CHART_MARKER: "script"})
        script.string = body
        root.append(script)
        self.registry.register(ChartInstance(canvas_id=self.canvas_id, kind=payload.kind.value))
        self.state = MounterState.MOUNTED
        logger.info(f"Mounted {payload.kind.value} chart into #{self.container_id}")

    async def _inject_libraries(self, token: int) -> None:
        for url in self.library_urls:
            if not self._generation.is_current(token):
                return
            if self.document.has_script(url):
                continue
            tag = self.document.new_tag("script", {"src": url, INJECTED_MARKER: "library"})
            self.document.head.append(tag)
            try:
                await self.loader.load(url)
            except ScriptLoadError:
                tag.extract()
                raise

    def teardown(self) -> None:
        """
        Remove every trace of the chart. Safe to call at any time, including
        when nothing was ever mounted.
        """
        self._generation.invalidate()
        self.state = MounterState.TEARING_DOWN
        soup = self.document.soup

        for instance in list(self.registry.list_active_instances()):
            try:
                self.registry.destroy(instance)
            except Exception as e:
                logger.warning(f"Chart instance on #{instance.canvas_id} failed to destroy: {e}")

        for element in soup.find_all(id=self.canvas_id):
            element.extract()
        for element in soup.find_all(attrs={CHART_MARKER: True}):
            element.extract()
        for class_name in self.helper_classes:
            for element in soup.find_all(class_=class_name):
                element.extract()
        for style in soup.find_all("style"):
            text = style.get_text()
            if self.container_id in text or self.canvas_id in text:
                style.extract()

        container = self.document.get_element_by_id(self.container_id)
        if container is not None:
            container.clear()
            container["style"] = COLLAPSE_STYLE

        for script in soup.find_all("script", attrs={INJECTED_MARKER: True}):
            script.extract()
            # The next mount fetches the library again
            self.loader.forget(script.get("src", ""))

        self.payload = None
        self.state = MounterState.EMPTY

    def _unblock(self, container: Tag) -> None:
        style = container.get("style")
        if not style:
            return
        remaining = _strip_collapse(style)
        if remaining:
            container["style"] = remaining
        else:
            del container["style"]

    def scoped_roots(self) -> List[Tag]:
        return self.document.soup.find_all(attrs={ROOT_MARKER: True})
