"""actions/__init__.py — the closed set of actions and their dispatch."""
from __future__ import annotations

from typing import assert_never

from codetester.positions import PositionContext

from .base import ActionEnv, Span
from .editing import CodeCompletion, CodeRename, run_completion, run_rename, show_completion, show_rename
from .navigation import (
    CodeDefinition, CodeDocumentHighlight, CodeHover, CodeReferences,
    run_definition, run_highlight, run_hover, run_references,
    show_definition, show_highlight, show_hover, show_references,
)
from .symbols import CodeDocumentSymbol, CodeSymbol, run_document_symbol, run_symbol, show_document_symbol, show_symbol
from .worksheet import WorksheetCancel, WorksheetEvaluate, run_cancel, run_evaluate, show_cancel, show_evaluate

Action = (
    CodeHover | CodeDefinition | CodeDocumentHighlight | CodeReferences
    | CodeCompletion | CodeRename | CodeDocumentSymbol | CodeSymbol
    | WorksheetEvaluate | WorksheetCancel
)


def execute(action: Action, env: ActionEnv) -> None:
    """Run *action* against the service; raises ``AssertionError`` on mismatch."""
    match action:
        case CodeHover():
            run_hover(action, env)
        case CodeDefinition():
            run_definition(action, env)
        case CodeDocumentHighlight():
            run_highlight(action, env)
        case CodeReferences():
            run_references(action, env)
        case CodeCompletion():
            run_completion(action, env)
        case CodeRename():
            run_rename(action, env)
        case CodeDocumentSymbol():
            run_document_symbol(action, env)
        case CodeSymbol():
            run_symbol(action, env)
        case WorksheetEvaluate():
            run_evaluate(action, env)
        case WorksheetCancel():
            run_cancel(action, env)
        case _:
            assert_never(action)


def show(action: Action, positions: PositionContext) -> str:
    """Describe *action* for a failure report."""
    match action:
        case CodeHover():
            return show_hover(action, positions)
        case CodeDefinition():
            return show_definition(action, positions)
        case CodeDocumentHighlight():
            return show_highlight(action, positions)
        case CodeReferences():
            return show_references(action, positions)
        case CodeCompletion():
            return show_completion(action, positions)
        case CodeRename():
            return show_rename(action, positions)
        case CodeDocumentSymbol():
            return show_document_symbol(action, positions)
        case CodeSymbol():
            return show_symbol(action, positions)
        case WorksheetEvaluate():
            return show_evaluate(action, positions)
        case WorksheetCancel():
            return show_cancel(action, positions)
        case _:
            assert_never(action)


__all__ = [
    'Action', 'ActionEnv', 'Span', 'execute', 'show',
    'CodeHover', 'CodeDefinition', 'CodeDocumentHighlight', 'CodeReferences',
    'CodeCompletion', 'CodeRename', 'CodeDocumentSymbol', 'CodeSymbol',
    'WorksheetEvaluate', 'WorksheetCancel',
]
