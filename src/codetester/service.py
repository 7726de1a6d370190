"""
pygls-backed service handle.

Talks to a real language server process over stdio.  The pygls client lives
on a private asyncio event loop running in a daemon thread, so the test
thread can block on plain ``concurrent.futures.Future`` objects while server
notifications are delivered to the :class:`~codetester.client.TestClient` as
they arrive.
"""
from __future__ import annotations

import asyncio
import logging
import os
import threading
import uuid
from concurrent.futures import Future
from typing import Any

from lsprotocol import types as lsp
from pygls.lsp.client import LanguageClient

from codetester import __version__
from codetester.client import TestClient
from codetester.protocol import (
    WORKSHEET_PUBLISH_OUTPUT, WORKSHEET_RUN, WorksheetRunParams, WorksheetRunResult,
    worksheet_output_from_json, worksheet_result_from_json,
)

logger = logging.getLogger(__name__)


def _forward(handler):
    # pygls wants a plain function taking only the params (no ``ls`` argument)
    def feature(params):
        return handler(params)
    return feature


class PyglsLanguageService:
    """A :class:`~codetester.protocol.LanguageService` over a server subprocess."""

    def __init__(self, client: TestClient | None = None, timeout: float = 30.0):
        self.client = client or TestClient()
        self._timeout = timeout
        self._lc = LanguageClient('codetester', __version__)
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        # URI -> message id of the in-flight worksheet/run, touched on the loop thread only
        self._pending_runs: dict[str, str] = {}
        self._register_features()

    def _register_features(self) -> None:
        handlers = {
            lsp.WINDOW_LOG_MESSAGE: self._on_log_message,
            lsp.WINDOW_SHOW_MESSAGE: self._on_show_message,
            lsp.WINDOW_SHOW_MESSAGE_REQUEST: self._on_show_message_request,
            lsp.TELEMETRY_EVENT: self._on_telemetry,
            lsp.TEXT_DOCUMENT_PUBLISH_DIAGNOSTICS: self._on_publish_diagnostics,
            WORKSHEET_PUBLISH_OUTPUT: self._on_publish_output,
        }
        for method, handler in handlers.items():
            self._lc.feature(method)(_forward(handler))

    # ------------------------------------------------------------------
    # Notification handlers (run on the loop thread)
    # ------------------------------------------------------------------

    def _on_log_message(self, params: lsp.LogMessageParams) -> None:
        self.client.log_message(params)

    def _on_show_message(self, params: lsp.ShowMessageParams) -> None:
        self.client.show_message(params)

    def _on_show_message_request(self, params: lsp.ShowMessageRequestParams):
        return self.client.show_message_request(params)

    def _on_telemetry(self, params: Any) -> None:
        self.client.telemetry_event(params)

    def _on_publish_diagnostics(self, params: lsp.PublishDiagnosticsParams) -> None:
        self.client.publish_diagnostics(params)

    def _on_publish_output(self, params: Any) -> None:
        self.client.publish_output(worksheet_output_from_json(params))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(
        self,
        command: str,
        *args: str,
        root_uri: str | None = None,
        initialization_options: Any = None,
    ) -> lsp.InitializeResult:
        """Launch ``command args...`` and run the initialize handshake."""
        if self.running:
            raise RuntimeError('language server already started')
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._loop.run_forever, name='codetester-lsp', daemon=True,
        )
        self._thread.start()

        async def handshake() -> lsp.InitializeResult:
            await self._lc.start_io(command, *args)
            result = await self._lc.initialize_async(
                lsp.InitializeParams(
                    capabilities=lsp.ClientCapabilities(),
                    process_id=os.getpid(),
                    root_uri=root_uri,
                    initialization_options=initialization_options,
                )
            )
            self._lc.initialized(lsp.InitializedParams())
            return result

        logger.debug('start: %s %s', command, ' '.join(args))
        return self._submit(handshake()).result(timeout=self._timeout)

    def shutdown(self) -> None:
        if not self.running:
            return

        async def stop() -> None:
            await self._lc.shutdown_async(None)
            self._lc.exit(None)
            await self._lc.stop()

        logger.debug('shutdown: stopping language server')
        try:
            self._submit(stop()).result(timeout=self._timeout)
        finally:
            self._loop.call_soon_threadsafe(self._loop.stop)
            self._thread.join(timeout=self._timeout)
            self._loop.close()
            self._thread = None
            self._loop = None

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def _submit(self, coro) -> Future:
        if self._loop is None:
            coro.close()
            raise RuntimeError('language server not started')
        return asyncio.run_coroutine_threadsafe(coro, self._loop)

    def _request(self, method: str, params: Any) -> Future:
        async def call():
            return await getattr(self._lc, method)(params)
        return self._submit(call())

    def _notify(self, method: str, params: Any) -> None:
        if self._loop is None:
            raise RuntimeError('language server not started')
        self._loop.call_soon_threadsafe(getattr(self._lc, method), params)

    def open(self, uri: str, language_id: str, text: str) -> None:
        self._notify('text_document_did_open', lsp.DidOpenTextDocumentParams(
            text_document=lsp.TextDocumentItem(uri=uri, language_id=language_id, version=0, text=text),
        ))

    def hover(self, params: lsp.HoverParams) -> Future:
        return self._request('text_document_hover_async', params)

    def definition(self, params: lsp.DefinitionParams) -> Future:
        return self._request('text_document_definition_async', params)

    def document_highlight(self, params: lsp.DocumentHighlightParams) -> Future:
        return self._request('text_document_document_highlight_async', params)

    def references(self, params: lsp.ReferenceParams) -> Future:
        return self._request('text_document_references_async', params)

    def completion(self, params: lsp.CompletionParams) -> Future:
        return self._request('text_document_completion_async', params)

    def rename(self, params: lsp.RenameParams) -> Future:
        return self._request('text_document_rename_async', params)

    def document_symbol(self, params: lsp.DocumentSymbolParams) -> Future:
        return self._request('text_document_document_symbol_async', params)

    def workspace_symbol(self, params: lsp.WorkspaceSymbolParams) -> Future:
        return self._request('workspace_symbol_async', params)

    def worksheet_run(self, params: WorksheetRunParams) -> Future[WorksheetRunResult]:
        msg_id = str(uuid.uuid4())

        async def call() -> WorksheetRunResult:
            self._pending_runs[params.uri] = msg_id
            try:
                result = await self._lc.protocol.send_request_async(
                    WORKSHEET_RUN, params.to_json(), msg_id=msg_id,
                )
            finally:
                if self._pending_runs.get(params.uri) == msg_id:
                    del self._pending_runs[params.uri]
            return worksheet_result_from_json(result)

        return self._submit(call())

    def worksheet_cancel(self, params: WorksheetRunParams) -> None:
        def cancel() -> None:
            msg_id = self._pending_runs.get(params.uri)
            if msg_id is None:
                logger.debug('worksheet_cancel: no run in flight for %s', params.uri)
                return
            self._lc.protocol.notify(lsp.CANCEL_REQUEST, lsp.CancelParams(id=msg_id))

        if self._loop is None:
            raise RuntimeError('language server not started')
        self._loop.call_soon_threadsafe(cancel)
