"""Document and workspace symbol queries."""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass

from lsprotocol import types as lsp

from codetester.actions.base import ActionEnv, Span, assert_same_list, assert_same_set, wait_for
from codetester.fixture import CodeMarker, SymInfo
from codetester.positions import PositionContext

# (name, kind, span, container)
Symbol = tuple[str, lsp.SymbolKind, Span, str | None]


@dataclass(frozen=True)
class CodeDocumentSymbol:
    marker: CodeMarker            # any marker in the fixture to query
    expected: tuple[SymInfo, ...]
    ordered: bool = True


@dataclass(frozen=True)
class CodeSymbol:
    query: str
    expected: tuple[SymInfo, ...]


def resolve_symbol(info: SymInfo, positions: PositionContext) -> Symbol:
    return (info.name, info.kind, Span.of_location(positions.location(info.range)), info.container)


def _flatten(uri: str, symbols, container: str | None, out: list[Symbol]) -> None:
    for sym in symbols:
        out.append((sym.name, sym.kind, Span.of(uri, sym.range), container))
        _flatten(uri, sym.children or [], sym.name, out)


def document_symbols(uri: str, result) -> list[Symbol]:
    """Normalise either result shape; nested symbols are listed depth-first."""
    out: list[Symbol] = []
    for sym in result or []:
        if isinstance(sym, lsp.DocumentSymbol):
            _flatten(uri, [sym], None, out)
        else:
            out.append((sym.name, sym.kind, Span.of_location(sym.location), sym.container_name))
    return out


def workspace_symbols(result) -> list[Symbol]:
    out: list[Symbol] = []
    for sym in result or []:
        loc = sym.location
        if isinstance(loc, lsp.Location):
            span = Span.of_location(loc)
        else:
            # LocationUriOnly: the server defers the range to workspaceSymbol/resolve
            span = Span(loc.uri, 0, 0, 0, 0)
        out.append((sym.name, sym.kind, span, sym.container_name))
    return out


def run_document_symbol(action: CodeDocumentSymbol, env: ActionEnv) -> None:
    doc = env.positions.text_document(action.marker)
    result = wait_for(
        env.service.document_symbol(lsp.DocumentSymbolParams(text_document=doc)),
        env.config.request_timeout, 'textDocument/documentSymbol',
    )
    actual = document_symbols(doc.uri, result)
    expected = [resolve_symbol(info, env.positions) for info in action.expected]
    if action.ordered:
        assert_same_list('documentSymbol', expected, actual)
    elif Counter(expected) != Counter(actual):
        assert_same_list('documentSymbol (any order)', sorted(expected, key=repr), sorted(actual, key=repr))


def run_symbol(action: CodeSymbol, env: ActionEnv) -> None:
    result = wait_for(
        env.service.workspace_symbol(lsp.WorkspaceSymbolParams(query=action.query)),
        env.config.request_timeout, 'workspace/symbol',
    )
    expected = {resolve_symbol(info, env.positions) for info in action.expected}
    assert_same_set('workspace/symbol', expected, workspace_symbols(result))


def _show_info(info: SymInfo, positions: PositionContext) -> str:
    return f'SymInfo({info.name!r}, {info.kind.name}, {positions.describe_range(info.range)}, {info.container!r})'


def show_document_symbol(action: CodeDocumentSymbol, positions: PositionContext) -> str:
    infos = ', '.join(_show_info(i, positions) for i in action.expected)
    return f'CodeDocumentSymbol({positions.describe(action.marker)}, [{infos}])'


def show_symbol(action: CodeSymbol, positions: PositionContext) -> str:
    infos = ', '.join(_show_info(i, positions) for i in action.expected)
    return f'CodeSymbol({action.query!r}, [{infos}])'
