"""
Per-surface notification sink.

Collects the toasts and the rate-limit dialog trigger raised while a
request is handled, so the router can return them with the response.
"""
import logging
from typing import List, Tuple

from viz.models.notifications import ToastPayload

logger = logging.getLogger(__name__)


class NotificationCenter:
    def __init__(self):
        self._notices: List[ToastPayload] = []
        self._limit_dialog = False
        self.limit_dialog_triggers = 0

    @property
    def notices(self) -> List[ToastPayload]:
        return list(self._notices)

    @property
    def limit_dialog_open(self) -> bool:
        return self._limit_dialog

    def toast(self, payload: ToastPayload) -> None:
        logger.info(f"Toast: {payload.title} - {payload.description}")
        self._notices.append(payload)

    def open_limit_dialog(self) -> None:
        self._limit_dialog = True
        self.limit_dialog_triggers += 1

    def drain(self) -> Tuple[List[ToastPayload], bool]:
        """Return pending notices and the dialog flag, then reset both."""
        notices, dialog = self._notices, self._limit_dialog
        self._notices = []
        self._limit_dialog = False
        return notices, dialog
