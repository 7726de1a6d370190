"""End-to-end tests for codetester.service against a pygls server subprocess."""
from __future__ import annotations

import sys
import time
from dataclasses import replace
from pathlib import Path

import pytest

from codetester.fixture import CodeMarker, code, worksheet
from codetester.service import PyglsLanguageService
from codetester.tester import CodeTester

SERVER = Path(__file__).with_name('live_server.py')

x1, x2, y1, y2, w = (CodeMarker(n) for n in ('x1', 'x2', 'y1', 'y2', 'w'))

SLOW_SHEET = """\
<<w>>print start
sleep 5000
print never
"""


@pytest.fixture
def live(client, config):
    svc = PyglsLanguageService(client, timeout=10.0)
    svc.start(sys.executable, str(SERVER), root_uri=config.root_dir.as_uri())
    yield svc
    svc.shutdown()


class TestLifecycle:
    def test_start_and_shutdown(self, live):
        assert live.running
        live.shutdown()
        assert not live.running

    def test_close_shuts_the_server_down(self, live, client, config):
        with CodeTester([code('val a = 1')], live, client, config):
            assert live.running
        assert not live.running


class TestRequests:
    def test_hover(self, live, client, config):
        CodeTester([code('val <<x1>>x<<x2>> = 1\n<<y1>>x<<y2>> + 1')], live, client, config) \
            .hover(x1.to(x2), 'val x') \
            .hover(y1.to(y2), 'val x')

    def test_hover_mismatch_is_reported(self, live, client, config):
        t = CodeTester([code('val <<x1>>x<<x2>> = 1')], live, client, config)
        with pytest.raises(AssertionError, match="hover: expected 'val y' but got 'val x'"):
            t.hover(x1.to(x2), 'val y')

    def test_open_notifications_reach_the_client(self, live, client, config):
        t = CodeTester([code('val <<x1>>x<<x2>> = ???')], live, client, config)
        # The hover response follows the didOpen notifications on the same stream.
        t.hover(x1.to(x2), 'val x')
        uri = t.files[0].uri
        assert f'opened {uri}' in client.messages()
        [diagnostics] = client.diagnostics_for(uri)
        assert [d.message for d in diagnostics] == ['unimplemented']


class TestWorksheet:
    def test_evaluate(self, live, client, config):
        CodeTester([worksheet('<<w>>print hello\nprint world')], live, client, config) \
            .evaluate(w, 'hello', 'world')

    def test_failed_run(self, live, client, config):
        t = CodeTester([worksheet('<<w>>print a\nfail')], live, client, config)
        with pytest.raises(AssertionError, match='did not succeed'):
            t.evaluate(w, 'a')

    def test_cancel_stops_the_run(self, live, client, config):
        t = CodeTester([worksheet(SLOW_SHEET)], live, client, config)
        start = time.monotonic()
        t.cancel_evaluation(w, 100)
        assert time.monotonic() - start < 0.1 + config.cancel_timeout
        assert client.output_for(t.files[0].uri) == []

    def test_overrunning_evaluation_is_cancelled(self, live, client, config):
        t = CodeTester([worksheet(SLOW_SHEET)], live, client, replace(config, worksheet_timeout=0.2))
        with pytest.raises(AssertionError, match='did not complete within 0.2s'):
            t.evaluate(w, 'start', 'never')
        time.sleep(0.3)
        assert client.output_for(t.files[0].uri) == []
