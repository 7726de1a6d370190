"""
The boundary between the harness and the language service under test.

Standard requests use the ``lsprotocol`` types.  Worksheet evaluation is not
part of LSP; it uses two extension messages:

``worksheet/run`` (request)
    params ``{"textDocument": {"uri", "version"}}``, result ``{"success": bool}``.
    Cancelled with ``$/cancelRequest`` like any other request.

``worksheet/publishOutput`` (notification, server to client)
    params ``{"textDocument": {"uri", "version"}, "line": int, "content": str}``.
"""
from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Protocol, Sequence

from lsprotocol import types as lsp

WORKSHEET_RUN = 'worksheet/run'
WORKSHEET_PUBLISH_OUTPUT = 'worksheet/publishOutput'


@dataclass(frozen=True)
class WorksheetRunParams:
    uri: str
    version: int = 0

    def to_json(self) -> dict:
        return {'textDocument': {'uri': self.uri, 'version': self.version}}


@dataclass(frozen=True)
class WorksheetRunResult:
    success: bool


@dataclass(frozen=True)
class WorksheetRunOutput:
    uri: str
    line: int
    content: str


def _get(obj: Any, key: str, default: Any = None) -> Any:
    """Read *key* from a decoded message that may be a dict or an object."""
    if isinstance(obj, dict):
        return obj.get(key, default)
    return getattr(obj, key, default)


def worksheet_output_from_json(params: Any) -> WorksheetRunOutput:
    """Decode ``worksheet/publishOutput`` params."""
    doc = _get(params, 'textDocument') or _get(params, 'text_document')
    return WorksheetRunOutput(
        uri=_get(doc, 'uri', ''),
        line=int(_get(params, 'line', 0) or 0),
        content=_get(params, 'content', '') or '',
    )


def worksheet_result_from_json(result: Any) -> WorksheetRunResult:
    """Decode a ``worksheet/run`` result."""
    return WorksheetRunResult(success=bool(_get(result, 'success', False)))


class LanguageService(Protocol):
    """What the harness needs from the service under test.

    Request methods return a :class:`concurrent.futures.Future`; the harness
    blocks on it with a bounded wait.
    """

    def open(self, uri: str, language_id: str, text: str) -> None: ...

    def hover(self, params: lsp.HoverParams) -> Future[lsp.Hover | None]: ...

    def definition(self, params: lsp.DefinitionParams) -> Future[
        lsp.Location | Sequence[lsp.Location] | Sequence[lsp.LocationLink] | None
    ]: ...

    def document_highlight(
        self, params: lsp.DocumentHighlightParams
    ) -> Future[Sequence[lsp.DocumentHighlight] | None]: ...

    def references(self, params: lsp.ReferenceParams) -> Future[Sequence[lsp.Location] | None]: ...

    def completion(
        self, params: lsp.CompletionParams
    ) -> Future[lsp.CompletionList | Sequence[lsp.CompletionItem] | None]: ...

    def rename(self, params: lsp.RenameParams) -> Future[lsp.WorkspaceEdit | None]: ...

    def document_symbol(
        self, params: lsp.DocumentSymbolParams
    ) -> Future[Sequence[lsp.SymbolInformation] | Sequence[lsp.DocumentSymbol] | None]: ...

    def workspace_symbol(
        self, params: lsp.WorkspaceSymbolParams
    ) -> Future[Sequence[lsp.SymbolInformation] | Sequence[lsp.WorkspaceSymbol] | None]: ...

    def worksheet_run(self, params: WorksheetRunParams) -> Future[WorksheetRunResult]: ...

    def worksheet_cancel(self, params: WorksheetRunParams) -> None: ...

    def shutdown(self) -> None: ...
