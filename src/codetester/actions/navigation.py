"""
Hover, go-to-definition, document highlight and find-references.

All four are issued at the start position of a marker range; the range must
lie within a single fixture.
"""
from __future__ import annotations

from dataclasses import dataclass

from lsprotocol import types as lsp

from codetester.actions.base import ActionEnv, Span, assert_same_list, assert_same_set, wait_for
from codetester.fixture import CodeRange
from codetester.positions import PositionContext


@dataclass(frozen=True)
class CodeHover:
    range: CodeRange
    expected: str | None        # None means "no hover"


@dataclass(frozen=True)
class CodeDefinition:
    range: CodeRange
    expected: tuple[CodeRange, ...]


@dataclass(frozen=True)
class CodeDocumentHighlight:
    range: CodeRange
    expected: tuple[tuple[CodeRange, lsp.DocumentHighlightKind], ...]


@dataclass(frozen=True)
class CodeReferences:
    range: CodeRange
    expected: tuple[CodeRange, ...]
    with_decl: bool = False


def _position_params(rng: CodeRange, positions: PositionContext) -> tuple[lsp.TextDocumentIdentifier, lsp.Position]:
    positions.lsp_range(rng)  # both ends must resolve, in one file
    return positions.text_document(rng.start), positions.position(rng.start)


def _marked_text(content) -> str:
    if isinstance(content, str):
        return content
    # MarkupContent and the {language, value} form of MarkedString
    return content.value


def hover_text(hover: lsp.Hover | None) -> str | None:
    """Render hover contents to plain text; an empty hover counts as none."""
    if hover is None or hover.contents is None:
        return None
    contents = hover.contents
    if isinstance(contents, list):
        text = '\n'.join(_marked_text(c) for c in contents)
    else:
        text = _marked_text(contents)
    return text or None


def run_hover(action: CodeHover, env: ActionEnv) -> None:
    doc, pos = _position_params(action.range, env.positions)
    result = wait_for(
        env.service.hover(lsp.HoverParams(text_document=doc, position=pos)),
        env.config.request_timeout, 'textDocument/hover',
    )
    actual = hover_text(result)
    if actual != action.expected:
        if action.expected is None:
            raise AssertionError(f'hover: expected no hover but got {actual!r}')
        raise AssertionError(f'hover: expected {action.expected!r} but got {actual!r}')


def definition_spans(result) -> list[Span]:
    if result is None:
        return []
    if isinstance(result, lsp.Location):
        return [Span.of_location(result)]
    spans = []
    for item in result:
        if isinstance(item, lsp.LocationLink):
            spans.append(Span.of(item.target_uri, item.target_selection_range))
        else:
            spans.append(Span.of_location(item))
    return spans


def run_definition(action: CodeDefinition, env: ActionEnv) -> None:
    doc, pos = _position_params(action.range, env.positions)
    result = wait_for(
        env.service.definition(lsp.DefinitionParams(text_document=doc, position=pos)),
        env.config.request_timeout, 'textDocument/definition',
    )
    expected = [Span.of_location(env.positions.location(r)) for r in action.expected]
    assert_same_list('definition', expected, definition_spans(result))


def run_highlight(action: CodeDocumentHighlight, env: ActionEnv) -> None:
    doc, pos = _position_params(action.range, env.positions)
    result = wait_for(
        env.service.document_highlight(lsp.DocumentHighlightParams(text_document=doc, position=pos)),
        env.config.request_timeout, 'textDocument/documentHighlight',
    )
    actual = {
        (Span.of(doc.uri, h.range), h.kind or lsp.DocumentHighlightKind.Text)
        for h in result or []
    }
    expected = {
        (Span.of_location(env.positions.location(r)), kind)
        for r, kind in action.expected
    }
    assert_same_set('highlight', expected, actual)


def run_references(action: CodeReferences, env: ActionEnv) -> None:
    doc, pos = _position_params(action.range, env.positions)
    params = lsp.ReferenceParams(
        text_document=doc,
        position=pos,
        context=lsp.ReferenceContext(include_declaration=action.with_decl),
    )
    result = wait_for(
        env.service.references(params), env.config.request_timeout, 'textDocument/references',
    )
    expected = {Span.of_location(env.positions.location(r)) for r in action.expected}
    assert_same_set('references', expected, {Span.of_location(loc) for loc in result or []})


def show_hover(action: CodeHover, positions: PositionContext) -> str:
    return f'CodeHover({positions.describe_range(action.range)}, {action.expected!r})'


def show_definition(action: CodeDefinition, positions: PositionContext) -> str:
    targets = ', '.join(positions.describe_range(r) for r in action.expected)
    return f'CodeDefinition({positions.describe_range(action.range)}, [{targets}])'


def show_highlight(action: CodeDocumentHighlight, positions: PositionContext) -> str:
    targets = ', '.join(f'({positions.describe_range(r)}, {kind.name})' for r, kind in action.expected)
    return f'CodeDocumentHighlight({positions.describe_range(action.range)}, [{targets}])'


def show_references(action: CodeReferences, positions: PositionContext) -> str:
    targets = ', '.join(positions.describe_range(r) for r in action.expected)
    return (f'CodeReferences({positions.describe_range(action.range)}, [{targets}], '
            f'with_decl={action.with_decl})')
