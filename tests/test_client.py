"""Tests for codetester.client — the recording client."""
from __future__ import annotations

import threading

from lsprotocol import types as lsp

from codetester.client import Log, TestClient
from codetester.protocol import WorksheetRunOutput


class TestLog:
    def test_append_and_get_in_order(self):
        log: Log[int] = Log()
        for i in range(5):
            log.append(i)
        assert log.get() == (0, 1, 2, 3, 4)
        assert len(log) == 5

    def test_snapshot_is_not_affected_by_later_appends(self):
        log: Log[str] = Log()
        log.append('a')
        snap = log.get()
        log.append('b')
        assert snap == ('a',)

    def test_clear(self):
        log: Log[str] = Log()
        log.append('a')
        log.clear()
        assert log.get() == ()
        log.append('b')
        assert log.get() == ('b',)

    def test_concurrent_appends_keep_per_producer_order(self):
        log: Log[tuple[int, int]] = Log()

        def produce(producer: int) -> None:
            for i in range(500):
                log.append((producer, i))

        threads = [threading.Thread(target=produce, args=(p,)) for p in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        items = log.get()
        assert len(items) == 2000
        for p in range(4):
            assert [i for producer, i in items if producer == p] == list(range(500))


class TestTestClient:
    def test_messages_share_the_log_channel(self):
        client = TestClient()
        client.log_message(lsp.LogMessageParams(type=lsp.MessageType.Log, message='one'))
        client.show_message(lsp.ShowMessageParams(type=lsp.MessageType.Info, message='two'))
        reply = client.show_message_request(
            lsp.ShowMessageRequestParams(type=lsp.MessageType.Warning, message='three'),
        )
        assert reply is None
        assert client.messages() == ['one', 'two', 'three']

    def test_channels_are_independent(self):
        client = TestClient()
        client.telemetry_event({'k': 1})
        client.publish_diagnostics(lsp.PublishDiagnosticsParams(uri='file:///a', diagnostics=[]))
        client.telemetry.clear()
        assert client.telemetry.get() == ()
        assert len(client.diagnostics) == 1
        assert client.log.get() == ()

    def test_diagnostics_for(self):
        client = TestClient()
        diag = lsp.Diagnostic(
            range=lsp.Range(start=lsp.Position(line=0, character=0), end=lsp.Position(line=0, character=1)),
            message='boom',
        )
        client.publish_diagnostics(lsp.PublishDiagnosticsParams(uri='file:///a', diagnostics=[diag]))
        client.publish_diagnostics(lsp.PublishDiagnosticsParams(uri='file:///b', diagnostics=[]))
        client.publish_diagnostics(lsp.PublishDiagnosticsParams(uri='file:///a', diagnostics=[]))
        assert client.diagnostics_for('file:///a') == [[diag], []]
        assert client.diagnostics_for('file:///b') == [[]]

    def test_output_for_filters_and_strips(self):
        client = TestClient()
        client.publish_output(WorksheetRunOutput(uri='file:///w.sc', line=0, content='x: Int = 1\n'))
        client.publish_output(WorksheetRunOutput(uri='file:///v.sc', line=0, content='other'))
        client.publish_output(WorksheetRunOutput(uri='file:///w.sc', line=1, content='  hello '))
        assert client.output_for('file:///w.sc') == ['x: Int = 1', 'hello']
