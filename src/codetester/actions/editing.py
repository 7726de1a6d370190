"""Completion and rename."""
from __future__ import annotations

from dataclasses import dataclass

from lsprotocol import types as lsp

from codetester.actions.base import ActionEnv, Span, assert_same_set, wait_for
from codetester.fixture import CodeMarker, CodeRange
from codetester.positions import PositionContext

Completion = tuple[str, lsp.CompletionItemKind | None, str | None]   # (label, kind, detail)


@dataclass(frozen=True)
class CodeCompletion:
    marker: CodeMarker
    expected: frozenset[Completion]


@dataclass(frozen=True)
class CodeRename:
    marker: CodeMarker
    new_name: str
    expected: frozenset[CodeRange]


def completion_items(result) -> list[lsp.CompletionItem]:
    if result is None:
        return []
    if isinstance(result, lsp.CompletionList):
        return list(result.items)
    return list(result)


def run_completion(action: CodeCompletion, env: ActionEnv) -> None:
    params = lsp.CompletionParams(
        text_document=env.positions.text_document(action.marker),
        position=env.positions.position(action.marker),
    )
    result = wait_for(
        env.service.completion(params), env.config.request_timeout, 'textDocument/completion',
    )
    actual = {(item.label, item.kind, item.detail) for item in completion_items(result)}
    assert_same_set('completion', action.expected, actual)


def rename_edits(edit: lsp.WorkspaceEdit | None) -> list[tuple[Span, str]]:
    """Flatten a workspace edit into ``(span, new_text)`` pairs.

    File create/rename/delete operations carry no text edits and are skipped.
    """
    if edit is None:
        return []
    edits: list[tuple[Span, str]] = []
    for uri, text_edits in (edit.changes or {}).items():
        edits.extend((Span.of(uri, e.range), e.new_text) for e in text_edits)
    for change in edit.document_changes or []:
        if isinstance(change, lsp.TextDocumentEdit):
            uri = change.text_document.uri
            edits.extend((Span.of(uri, e.range), e.new_text) for e in change.edits)
    return edits


def run_rename(action: CodeRename, env: ActionEnv) -> None:
    # The edits are checked, never applied: later actions still see the original text.
    params = lsp.RenameParams(
        text_document=env.positions.text_document(action.marker),
        position=env.positions.position(action.marker),
        new_name=action.new_name,
    )
    result = wait_for(env.service.rename(params), env.config.request_timeout, 'textDocument/rename')
    edits = rename_edits(result)
    wrong = [(str(span), text) for span, text in edits if text != action.new_name]
    if wrong:
        raise AssertionError(f'rename: edits should insert {action.new_name!r}, got {wrong}')
    expected = {Span.of_location(env.positions.location(r)) for r in action.expected}
    assert_same_set('rename', expected, {span for span, _ in edits})


def show_completion(action: CodeCompletion, positions: PositionContext) -> str:
    items = ', '.join(
        f'({label!r}, {kind.name if kind is not None else None}, {detail!r})'
        for label, kind, detail in sorted(action.expected, key=repr)
    )
    return f'CodeCompletion({positions.describe(action.marker)}, {{{items}}})'


def show_rename(action: CodeRename, positions: PositionContext) -> str:
    ranges = ', '.join(sorted(positions.describe_range(r) for r in action.expected))
    return f'CodeRename({positions.describe(action.marker)}, {action.new_name!r}, {{{ranges}}})'
