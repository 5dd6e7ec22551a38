"""
Registry of live chart instances.

The mounter owns its registry instead of reaching into a global chart
library object, so teardown only ever touches charts it created.
"""
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol

logger = logging.getLogger(__name__)


@dataclass
class ChartInstance:
    canvas_id: str
    kind: str
    on_destroy: Optional[Callable[[], None]] = None
    destroyed: bool = False

    def destroy(self) -> None:
        if self.destroyed:
            return
        if self.on_destroy is not None:
            self.on_destroy()
        self.destroyed = True


class ChartRegistry(Protocol):
    def register(self, instance: ChartInstance) -> None: ...

    def list_active_instances(self) -> List[ChartInstance]: ...

    def destroy(self, instance: ChartInstance) -> None: ...


class InMemoryChartRegistry:
    def __init__(self):
        self._instances: List[ChartInstance] = []

    def register(self, instance: ChartInstance) -> None:
        self._instances.append(instance)

    def list_active_instances(self) -> List[ChartInstance]:
        return [i for i in self._instances if not i.destroyed]

    def destroy(self, instance: ChartInstance) -> None:
        instance.destroy()
        if instance in self._instances:
            self._instances.remove(instance)
        logger.debug(f"Destroyed chart instance on #{instance.canvas_id}")
