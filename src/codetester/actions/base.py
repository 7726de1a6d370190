"""Shared pieces for the action modules: the execution environment and comparison helpers."""
from __future__ import annotations

import logging
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Iterable, TypeVar

from lsprotocol import types as lsp

from codetester.client import TestClient
from codetester.config import HarnessConfig
from codetester.positions import PositionContext
from codetester.protocol import LanguageService

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass(frozen=True)
class ActionEnv:
    service: LanguageService
    client: TestClient
    positions: PositionContext
    config: HarnessConfig


@dataclass(frozen=True, order=True)
class Span:
    """Hashable stand-in for an ``lsp.Location`` (lsprotocol types are not hashable)."""
    uri: str
    start_line: int
    start_character: int
    end_line: int
    end_character: int

    @classmethod
    def of(cls, uri: str, rng: lsp.Range) -> Span:
        return cls(uri, rng.start.line, rng.start.character, rng.end.line, rng.end.character)

    @classmethod
    def of_location(cls, loc: lsp.Location) -> Span:
        return cls.of(loc.uri, loc.range)

    def __str__(self) -> str:
        name = self.uri.rsplit('/', 1)[-1]
        return (f'{name}:{self.start_line + 1}:{self.start_character + 1}'
                f'-{self.end_line + 1}:{self.end_character + 1}')


def wait_for(future: Future[T], timeout: float, what: str) -> T:
    """Block on *future*; a timeout is a test failure, not a hang."""
    try:
        return future.result(timeout=timeout)
    except TimeoutError:
        future.cancel()
        raise AssertionError(f'{what} did not complete within {timeout:g}s') from None


def _fmt(items: Iterable[Any]) -> str:
    return '[' + ', '.join(_show_item(i) for i in items) + ']'


def _show_item(item: Any) -> str:
    if isinstance(item, tuple):
        return '(' + ', '.join(_show_item(i) for i in item) + ')'
    if isinstance(item, Span):
        return str(item)
    if isinstance(item, (lsp.CompletionItemKind, lsp.SymbolKind, lsp.DocumentHighlightKind)):
        return item.name
    return repr(item)


def assert_same_set(what: str, expected: Iterable[Any], actual: Iterable[Any]) -> None:
    expected, actual = set(expected), set(actual)
    if expected == actual:
        return
    missing = sorted(expected - actual, key=repr)
    unexpected = sorted(actual - expected, key=repr)
    raise AssertionError(
        f'{what}: expected {_fmt(sorted(expected, key=repr))} but got {_fmt(sorted(actual, key=repr))}'
        f'\n  missing: {_fmt(missing)}\n  unexpected: {_fmt(unexpected)}'
    )


def assert_same_list(what: str, expected: list[Any], actual: list[Any]) -> None:
    if expected != actual:
        raise AssertionError(f'{what}: expected {_fmt(expected)} but got {_fmt(actual)}')
