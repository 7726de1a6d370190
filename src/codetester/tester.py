"""
Session orchestrator.

``CodeTester`` simulates an editor session over a handful of fixtures::

    x1, x2, y1, y2 = (CodeMarker(n) for n in ('x1', 'x2', 'y1', 'y2'))
    with CodeTester([code('val <<x1>>x<<x2>> = 1; <<y1>>x<<y2>> + 1')], service) as t:
        t.definition(y1.to(y2), [x1.to(x2)])

Every checking method runs one action and returns the tester so calls can be
chained.  When an action fails, the resulting ``AssertionError`` carries all
fixture sources and a description of the failing action.
"""
from __future__ import annotations

import logging
from typing import Iterable, Sequence

from lsprotocol import types as lsp
from pygls.uris import from_fs_path

from codetester.actions import (
    Action, ActionEnv, CodeCompletion, CodeDefinition, CodeDocumentHighlight, CodeDocumentSymbol,
    CodeHover, CodeReferences, CodeRename, CodeSymbol, WorksheetCancel, WorksheetEvaluate,
    execute, show,
)
from codetester.actions.editing import Completion
from codetester.client import TestClient
from codetester.config import HarnessConfig, load_config
from codetester.fixture import CodeMarker, CodeRange, Fixture, FixtureKind, SymInfo
from codetester.positions import PositionContext, VirtualFile, build_position_context
from codetester.protocol import LanguageService

logger = logging.getLogger(__name__)


def virtual_name(index: int, fixture: Fixture, config: HarnessConfig) -> str:
    if fixture.kind is FixtureKind.WORKSHEET:
        return f'Worksheet{index}{config.worksheet_suffix}'
    return f'Source{index}{config.source_suffix}'


class CodeTester:
    """Drives *service* over *sources*, checking each response.

    Fixtures are opened before their markers are checked for duplicates, so
    when construction raises the documents are already open and shutting
    *service* down is left to the caller.
    """

    def __init__(
        self,
        sources: Sequence[Fixture],
        service: LanguageService,
        client: TestClient | None = None,
        config: HarnessConfig | None = None,
    ):
        self._config = config or load_config()
        self._service = service
        self._client = client or TestClient()
        self._closed = False
        self._sources = tuple(sources)

        self._files: tuple[VirtualFile, ...] = tuple(
            self._open(i, fixture) for i, fixture in enumerate(self._sources)
        )
        self._positions = build_position_context(self._files)

    def _open(self, index: int, fixture: Fixture) -> VirtualFile:
        name = virtual_name(index, fixture, self._config)
        uri = from_fs_path(str(self._config.root_dir / name))
        logger.debug('open: %s (%d markers)', uri, len(fixture.markers))
        self._service.open(uri, self._config.language_id, fixture.text)
        return VirtualFile(name=name, uri=uri, fixture=fixture)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def files(self) -> tuple[VirtualFile, ...]:
        return self._files

    @property
    def positions(self) -> PositionContext:
        return self._positions

    @property
    def client(self) -> TestClient:
        return self._client

    @property
    def service(self) -> LanguageService:
        return self._service

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def hover(self, range: CodeRange, expected: str | None) -> CodeTester:
        """Hover over *range*; *expected* is the hover text, or None for no hover."""
        return self.run(CodeHover(range, expected))

    def definition(self, range: CodeRange, expected: Iterable[CodeRange]) -> CodeTester:
        """Jump to definition from *range*; *expected* are the targets, in order."""
        return self.run(CodeDefinition(range, tuple(expected)))

    def highlight(self, range: CodeRange, *expected: tuple[CodeRange, lsp.DocumentHighlightKind]) -> CodeTester:
        """Highlight the symbol at *range*; *expected* are ``(range, kind)`` pairs."""
        return self.run(CodeDocumentHighlight(range, tuple(expected)))

    def references(self, range: CodeRange, expected: Iterable[CodeRange], with_decl: bool = False) -> CodeTester:
        """Find references to the symbol at *range*.

        With *with_decl* set the declaration itself is expected among the results.
        """
        return self.run(CodeReferences(range, tuple(expected), with_decl))

    def completion(self, marker: CodeMarker, expected: Iterable[Completion]) -> CodeTester:
        """Complete at *marker*; *expected* is a set of ``(label, kind, detail)``."""
        return self.run(CodeCompletion(marker, frozenset(expected)))

    def rename(self, marker: CodeMarker, new_name: str, expected: Iterable[CodeRange]) -> CodeTester:
        """Rename the symbol at *marker*; *expected* are the ranges the edit touches.

        The edit is not applied: fixtures and positions keep their original text.
        """
        return self.run(CodeRename(marker, new_name, frozenset(expected)))

    def document_symbol(self, marker: CodeMarker, *expected: SymInfo, ordered: bool = True) -> CodeTester:
        """List the symbols of the fixture containing *marker*."""
        return self.run(CodeDocumentSymbol(marker, expected, ordered))

    def symbol(self, query: str, *expected: SymInfo) -> CodeTester:
        """Search the workspace for symbols matching *query*."""
        return self.run(CodeSymbol(query, expected))

    def evaluate(self, marker: CodeMarker, *expected: str) -> CodeTester:
        """Evaluate the worksheet containing *marker*; output must equal *expected*."""
        return self.run(WorksheetEvaluate(marker, expected, strict=True))

    def evaluate_non_strict(self, marker: CodeMarker, *expected: str) -> CodeTester:
        """Evaluate the worksheet containing *marker*; each output line must start with the matching prefix."""
        return self.run(WorksheetEvaluate(marker, expected, strict=False))

    def cancel_evaluation(self, marker: CodeMarker, after_ms: int) -> CodeTester:
        """Start evaluating the worksheet containing *marker* and cancel it after *after_ms*."""
        return self.run(WorksheetCancel(marker, after_ms))

    def run(self, action: Action) -> CodeTester:
        env = ActionEnv(self._service, self._client, self._positions, self._config)
        try:
            execute(action, env)
        except AssertionError as ex:
            sources = '\n'.join(f'// {f.name}\n{f.fixture.raw}' for f in self._files)
            msg = (
                f'\n\n{sources}\n\n'
                f'while executing action: {show(action, self._positions)}\n\n'
                f'{ex}'
            )
            raise AssertionError(msg).with_traceback(ex.__traceback__) from ex
        return self

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        logger.debug('close: shutting down service')
        self._service.shutdown()

    def __enter__(self) -> CodeTester:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
