"""
Recording client.

``TestClient`` stands in for the editor: it receives every notification the
server pushes and files it in one of four channels.  Notifications may arrive
on the transport's thread while the test thread reads, so each channel is
guarded by its own lock.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Generic, TypeVar

from lsprotocol import types as lsp

from codetester.protocol import WorksheetRunOutput

logger = logging.getLogger(__name__)

T = TypeVar('T')


class Log(Generic[T]):
    """Append-only, thread-safe record of received values."""

    def __init__(self) -> None:
        self._items: list[T] = []
        self._lock = threading.Lock()

    def append(self, item: T) -> None:
        with self._lock:
            self._items.append(item)

    def get(self) -> tuple[T, ...]:
        """Return a snapshot of everything recorded so far, oldest first."""
        with self._lock:
            return tuple(self._items)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class TestClient:
    # Not a pytest test class despite the name.
    __test__ = False

    def __init__(self) -> None:
        self.log: Log[lsp.LogMessageParams | lsp.ShowMessageParams | lsp.ShowMessageRequestParams] = Log()
        self.diagnostics: Log[lsp.PublishDiagnosticsParams] = Log()
        self.telemetry: Log[Any] = Log()
        self.worksheet_output: Log[WorksheetRunOutput] = Log()

    # ------------------------------------------------------------------
    # Listener interface (called by the service)
    # ------------------------------------------------------------------

    def log_message(self, params: lsp.LogMessageParams) -> None:
        logger.debug('log_message: %s', params)
        self.log.append(params)

    def show_message(self, params: lsp.ShowMessageParams) -> None:
        logger.debug('show_message: %s', params)
        self.log.append(params)

    def show_message_request(self, params: lsp.ShowMessageRequestParams) -> lsp.MessageActionItem | None:
        """Record the request; the user never picks an action."""
        logger.debug('show_message_request: %s', params)
        self.log.append(params)
        return None

    def telemetry_event(self, payload: Any) -> None:
        self.telemetry.append(payload)

    def publish_diagnostics(self, params: lsp.PublishDiagnosticsParams) -> None:
        logger.debug('publish_diagnostics: %s → %d diagnostics', params.uri, len(params.diagnostics))
        self.diagnostics.append(params)

    def publish_output(self, output: WorksheetRunOutput) -> None:
        logger.debug('publish_output: %s:%d %r', output.uri, output.line, output.content)
        self.worksheet_output.append(output)

    # ------------------------------------------------------------------
    # Queries (called by the test)
    # ------------------------------------------------------------------

    def messages(self) -> list[str]:
        return [params.message for params in self.log.get()]

    def diagnostics_for(self, uri: str) -> list[list[lsp.Diagnostic]]:
        """Diagnostics published for *uri*, one list per publication, in order."""
        return [list(p.diagnostics) for p in self.diagnostics.get() if p.uri == uri]

    def output_for(self, uri: str) -> list[str]:
        """Worksheet output lines for *uri* in emission order, stripped."""
        return [o.content.strip() for o in self.worksheet_output.get() if o.uri == uri]
