"""
Marker registry.

Every fixture of a session is opened under a virtual file name; the markers
of all fixtures are then resolved into a single :class:`PositionContext`
which the actions use to turn markers and ranges into protocol positions.
Marker names are global to a session: the same name appearing twice, in one
fixture or in two, is a malformed test and fails construction.
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping

from lsprotocol import types as lsp

from codetester.fixture import CodeMarker, CodeRange, Fixture, FixtureKind

logger = logging.getLogger(__name__)


class DuplicateMarkerError(AssertionError):
    """Raised when a marker name is used more than once in a session."""


@dataclass(frozen=True)
class VirtualFile:
    name: str            # e.g. 'Source0.scala'
    uri: str
    fixture: Fixture

    @property
    def kind(self) -> FixtureKind:
        return self.fixture.kind


@dataclass(frozen=True)
class MarkerPosition:
    file: VirtualFile
    line: int            # 0-based
    character: int       # 0-based

    def __str__(self) -> str:
        return f'{self.file.name}:{self.line + 1}:{self.character + 1}'


class PositionContext:
    """Read-only mapping from marker to resolved position."""

    def __init__(self, positions: Mapping[CodeMarker, MarkerPosition]):
        self._positions = MappingProxyType(dict(positions))

    def __contains__(self, marker: CodeMarker) -> bool:
        return marker in self._positions

    def __len__(self) -> int:
        return len(self._positions)

    def __iter__(self):
        return iter(self._positions)

    def __getitem__(self, marker: CodeMarker) -> MarkerPosition:
        try:
            return self._positions[marker]
        except KeyError:
            raise AssertionError(f'Unknown marker {marker.name!r}: it does not appear in any fixture') from None

    def position(self, marker: CodeMarker) -> lsp.Position:
        pos = self[marker]
        return lsp.Position(line=pos.line, character=pos.character)

    def file(self, marker: CodeMarker) -> VirtualFile:
        return self[marker].file

    def text_document(self, marker: CodeMarker) -> lsp.TextDocumentIdentifier:
        return lsp.TextDocumentIdentifier(uri=self[marker].file.uri)

    def lsp_range(self, rng: CodeRange) -> lsp.Range:
        start, end = self[rng.start], self[rng.end]
        if start.file != end.file:
            raise AssertionError(
                f'Range {rng} spans two files: {start.file.name} and {end.file.name}'
            )
        return lsp.Range(
            start=lsp.Position(line=start.line, character=start.character),
            end=lsp.Position(line=end.line, character=end.character),
        )

    def location(self, rng: CodeRange) -> lsp.Location:
        return lsp.Location(uri=self[rng.start].file.uri, range=self.lsp_range(rng))

    def describe(self, marker: CodeMarker) -> str:
        if marker not in self._positions:
            return f'{marker.name}@?'
        return f'{marker.name}@{self._positions[marker]}'

    def describe_range(self, rng: CodeRange) -> str:
        return f'{self.describe(rng.start)} to {self.describe(rng.end)}'


def build_position_context(files: Iterable[VirtualFile]) -> PositionContext:
    """Resolve the markers of every file, checking names are unique.

    Raises :class:`DuplicateMarkerError` listing every occurrence of every
    duplicated name.
    """
    triples = [
        (marker, MarkerPosition(file=f, line=line, character=char))
        for f in files
        for marker, line, char in f.fixture.markers
    ]
    positions = dict(triples)
    if len(triples) != len(positions):
        counts = Counter(marker for marker, _ in triples)
        dups = [
            f'{marker.name!r} at {pos}'
            for marker, pos in triples
            if counts[marker] > 1
        ]
        raise DuplicateMarkerError(
            'Each marker can only appear once in the code; duplicated: ' + ', '.join(dups)
        )
    logger.debug('build_position_context: resolved %d markers', len(positions))
    return PositionContext(positions)
