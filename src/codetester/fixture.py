"""
Fixture text and the markers embedded in it.

A fixture is a small virtual source file written inline in a test.  Positions
the test wants to talk about are tagged with ``<<name>>`` markers::

    val <<x1>>x<<x2>> = 1; <<y1>>x<<y2>> + 1

Markers are stripped from the text before it is sent to the server; each one
remembers the 0-based (line, character) at which it stood in the stripped
text.  Markers are matched by name, so the same ``CodeMarker('x1')`` object
(or an equal one) can be used in the test body to refer to that position.
"""
from __future__ import annotations

import enum
import re
from dataclasses import dataclass

from lsprotocol import types as lsp

_MARKER_RE = re.compile(r'<<([A-Za-z_][A-Za-z0-9_.\-]*)>>')


@dataclass(frozen=True)
class CodeMarker:
    name: str

    def to(self, end: CodeMarker) -> CodeRange:
        """Return the range running from this marker to *end*."""
        return CodeRange(self, end)

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class CodeRange:
    start: CodeMarker
    end: CodeMarker

    def __str__(self) -> str:
        return f'{self.start}..{self.end}'


class FixtureKind(enum.Enum):
    SOURCE = 'source'
    WORKSHEET = 'worksheet'


@dataclass(frozen=True)
class Fixture:
    raw: str                                         # annotated text, as written
    text: str                                        # text with markers removed
    markers: tuple[tuple[CodeMarker, int, int], ...]  # (marker, line, character)
    kind: FixtureKind = FixtureKind.SOURCE


@dataclass(frozen=True)
class SymInfo:
    """An expected symbol: name, kind, the range it spans and its container."""
    name: str
    kind: lsp.SymbolKind
    range: CodeRange
    container: str | None = None


def parse_markers(raw: str) -> tuple[str, tuple[tuple[CodeMarker, int, int], ...]]:
    """Strip ``<<name>>`` markers from *raw*.

    Returns the stripped text and the markers in source order, each with the
    0-based line and character it points at in the stripped text.
    """
    out: list[str] = []
    markers: list[tuple[CodeMarker, int, int]] = []
    for line_no, line in enumerate(raw.split('\n')):
        pieces: list[str] = []
        col = 0
        last = 0
        for m in _MARKER_RE.finditer(line):
            chunk = line[last:m.start()]
            pieces.append(chunk)
            col += len(chunk)
            markers.append((CodeMarker(m.group(1)), line_no, col))
            last = m.end()
        pieces.append(line[last:])
        out.append(''.join(pieces))
    return '\n'.join(out), tuple(markers)


def code(raw: str) -> Fixture:
    """Build a plain source fixture from annotated text."""
    text, markers = parse_markers(raw)
    return Fixture(raw=raw, text=text, markers=markers, kind=FixtureKind.SOURCE)


def worksheet(raw: str) -> Fixture:
    """Build a worksheet fixture (a source that can be evaluated)."""
    text, markers = parse_markers(raw)
    return Fixture(raw=raw, text=text, markers=markers, kind=FixtureKind.WORKSHEET)
