"""
Worksheet evaluation and cancellation.

Both actions read worksheet output from the recording client.  The output
channel is cleared once an action is done with it so the next evaluation
starts from an empty window.
"""
from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import time
from dataclasses import dataclass

from lsprotocol import types as lsp

from codetester.actions.base import ActionEnv, assert_same_list
from codetester.fixture import CodeMarker, FixtureKind
from codetester.positions import PositionContext
from codetester.protocol import WorksheetRunParams

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorksheetEvaluate:
    marker: CodeMarker
    expected: tuple[str, ...]
    strict: bool = True


@dataclass(frozen=True)
class WorksheetCancel:
    marker: CodeMarker
    after_ms: int


def _run_params(marker: CodeMarker, positions: PositionContext) -> WorksheetRunParams:
    file = positions.file(marker)
    if file.kind is not FixtureKind.WORKSHEET:
        raise AssertionError(f'{file.name} is not a worksheet (marker {marker.name!r})')
    return WorksheetRunParams(uri=file.uri)


def check_output(expected: tuple[str, ...], actual: list[str], strict: bool) -> None:
    if strict:
        assert_same_list('worksheet output', list(expected), actual)
        return
    if len(expected) != len(actual):
        raise AssertionError(
            f'worksheet output: expected {len(expected)} lines but got {len(actual)}: {actual!r}'
        )
    for prefix, line in zip(expected, actual):
        if not line.startswith(prefix):
            raise AssertionError(f'worksheet output: {line!r} does not start with {prefix!r}')


def _abandon(future: concurrent.futures.Future, params: WorksheetRunParams, env: ActionEnv) -> None:
    # Stop a run that overran its budget so it cannot publish into a later window.
    logger.debug('run_evaluate: cancelling overrunning run of %s', params.uri)
    env.service.worksheet_cancel(params)
    try:
        concurrent.futures.wait([future], timeout=env.config.cancel_timeout)
        future.cancel()
    finally:
        env.client.worksheet_output.clear()


def run_evaluate(action: WorksheetEvaluate, env: ActionEnv) -> None:
    params = _run_params(action.marker, env.positions)
    env.client.worksheet_output.clear()
    future = env.service.worksheet_run(params)
    timeout = env.config.worksheet_timeout
    done, _ = concurrent.futures.wait([future], timeout=timeout)
    if not done:
        _abandon(future, params, env)
        raise AssertionError(f'worksheet/run did not complete within {timeout:g}s')
    result = future.result()
    if not result.success:
        raise AssertionError(f'worksheet/run: evaluation of {params.uri} did not succeed')
    actual = env.client.output_for(params.uri)
    env.client.worksheet_output.clear()
    check_output(action.expected, actual, action.strict)


def _is_cancellation(exc: BaseException) -> bool:
    if isinstance(exc, (concurrent.futures.CancelledError, asyncio.CancelledError)):
        return True
    return getattr(exc, 'code', None) == lsp.LSPErrorCodes.RequestCancelled


def terminal_state(future: concurrent.futures.Future) -> str:
    """Return ``'cancelled'`` or ``'completed'`` for a finished run.

    Any failure other than a cancellation is re-raised.
    """
    if future.cancelled():
        return 'cancelled'
    exc = future.exception()
    if exc is None:
        return 'completed'
    if _is_cancellation(exc):
        return 'cancelled'
    raise exc


def run_cancel(action: WorksheetCancel, env: ActionEnv) -> None:
    params = _run_params(action.marker, env.positions)
    future = env.service.worksheet_run(params)
    time.sleep(action.after_ms / 1000)
    logger.debug('run_cancel: cancelling %s after %dms', params.uri, action.after_ms)
    env.service.worksheet_cancel(params)

    timeout = env.config.cancel_timeout
    done, _ = concurrent.futures.wait([future], timeout=timeout)
    if not done:
        raise AssertionError(
            f'worksheet/run: {params.uri} did not stop within {timeout:g}s of being cancelled'
        )
    state = terminal_state(future)
    logger.debug('run_cancel: %s %s', params.uri, state)
    env.client.worksheet_output.clear()


def show_evaluate(action: WorksheetEvaluate, positions: PositionContext) -> str:
    name = 'WorksheetEvaluate' if action.strict else 'WorksheetEvaluate(non-strict)'
    return f'{name}({positions.describe(action.marker)}, {list(action.expected)!r})'


def show_cancel(action: WorksheetCancel, positions: PositionContext) -> str:
    return f'WorksheetCancel({positions.describe(action.marker)}, after_ms={action.after_ms})'
