"""Tests for worksheet evaluation and cancellation through CodeTester."""
from __future__ import annotations

import time
from dataclasses import replace

import pytest

from codetester.fixture import CodeMarker, code, worksheet
from codetester.tester import CodeTester

from toy_service import ToyLanguageService

w = CodeMarker('w')

SHEET = """\
<<w>>val a = 1
val b = a + 2
print hello world
"""

SLOW_SHEET = """\
<<w>>print start
sleep 5000
print never
"""


class TestEvaluate:
    def test_strict(self, service, client, config):
        CodeTester([worksheet(SHEET)], service, client, config) \
            .evaluate(w, 'a: Int = 1', 'b: Int = 3', 'hello world')

    def test_strict_mismatch(self, service, client, config):
        t = CodeTester([worksheet(SHEET)], service, client, config)
        with pytest.raises(AssertionError, match='worksheet output: expected'):
            t.evaluate(w, 'a: Int = 1', 'b: Int = 4', 'hello world')

    def test_strict_requires_same_length(self, service, client, config):
        t = CodeTester([worksheet(SHEET)], service, client, config)
        with pytest.raises(AssertionError):
            t.evaluate(w, 'a: Int = 1', 'b: Int = 3')

    def test_non_strict_prefixes(self, service, client, config):
        CodeTester([worksheet(SHEET)], service, client, config) \
            .evaluate_non_strict(w, 'a:', 'b: Int', 'hello')

    def test_non_strict_bad_prefix(self, service, client, config):
        t = CodeTester([worksheet(SHEET)], service, client, config)
        with pytest.raises(AssertionError, match="'b: Int = 3' does not start with 'c:'"):
            t.evaluate_non_strict(w, 'a:', 'c:', 'hello')

    def test_non_strict_counts_lines(self, service, client, config):
        t = CodeTester([worksheet(SHEET)], service, client, config)
        with pytest.raises(AssertionError, match='expected 2 lines but got 3'):
            t.evaluate_non_strict(w, 'a:', 'b:')

    def test_repeated_evaluation_starts_fresh(self, service, client, config):
        CodeTester([worksheet(SHEET)], service, client, config) \
            .evaluate(w, 'a: Int = 1', 'b: Int = 3', 'hello world') \
            .evaluate(w, 'a: Int = 1', 'b: Int = 3', 'hello world')
        assert client.worksheet_output.get() == ()

    def test_only_output_of_the_evaluated_worksheet_counts(self, service, client, config):
        v = CodeMarker('v')
        CodeTester([worksheet(SHEET), worksheet('<<v>>print other')], service, client, config) \
            .evaluate(v, 'other') \
            .evaluate(w, 'a: Int = 1', 'b: Int = 3', 'hello world')

    def test_failed_run(self, service, client, config):
        t = CodeTester([worksheet('<<w>>print a\nfail')], service, client, config)
        with pytest.raises(AssertionError, match='did not succeed'):
            t.evaluate(w, 'a')

    def test_not_a_worksheet(self, service, client, config):
        t = CodeTester([code('<<w>>val a = 1')], service, client, config)
        with pytest.raises(AssertionError, match='Source0.scala is not a worksheet'):
            t.evaluate(w)

    def test_evaluation_timeout_is_a_failure(self, service, client, config):
        cfg = replace(config, worksheet_timeout=0.1)
        t = CodeTester([worksheet(SLOW_SHEET)], service, client, cfg)
        with pytest.raises(AssertionError, match='worksheet/run did not complete within 0.1s'):
            t.evaluate(w, 'start', 'never')

    def test_overrunning_evaluation_is_cancelled(self, service, client, config):
        cfg = replace(config, worksheet_timeout=0.1)
        t = CodeTester([worksheet('<<w>>print start\nsleep 300\nprint late')], service, client, cfg)
        with pytest.raises(AssertionError, match='did not complete within 0.1s'):
            t.evaluate(w, 'start', 'late')
        assert service.requests == ['worksheet_run', 'worksheet_cancel']
        time.sleep(0.5)
        assert client.output_for(t.files[0].uri) == []

    def test_report_names_the_worksheet(self, service, client, config):
        t = CodeTester([worksheet(SHEET)], service, client, config)
        with pytest.raises(AssertionError) as exc_info:
            t.evaluate(w, 'nope')
        assert "while executing action: WorksheetEvaluate(w@Worksheet0.sc:1:1, ['nope'])" in str(exc_info.value)


class TestCancel:
    def test_cancel_in_flight(self, service, client, config):
        start = time.monotonic()
        CodeTester([worksheet(SLOW_SHEET)], service, client, config) \
            .cancel_evaluation(w, 100)
        assert time.monotonic() - start < 5.0
        assert service.requests == ['worksheet_run', 'worksheet_cancel']
        assert client.worksheet_output.get() == ()

    def test_cancel_after_completion_is_fine(self, service, client, config):
        CodeTester([worksheet(SHEET)], service, client, config) \
            .cancel_evaluation(w, 200)

    def test_evaluate_after_cancel(self, service, client, config):
        v = CodeMarker('v')
        CodeTester([worksheet(SLOW_SHEET), worksheet('<<v>>print ok')], service, client, config) \
            .cancel_evaluation(w, 50) \
            .evaluate(v, 'ok')

    def test_server_ignoring_cancel_fails_instead_of_hanging(self, client, config):
        stubborn = ToyLanguageService(client, honour_cancel=False)
        cfg = replace(config, cancel_timeout=0.2)
        t = CodeTester([worksheet('<<w>>sleep 1000')], stubborn, client, cfg)
        try:
            with pytest.raises(AssertionError, match='did not stop within 0.2s of being cancelled'):
                t.cancel_evaluation(w, 10)
        finally:
            t.close()

    def test_show(self, service, client, config):
        t = CodeTester([code('<<w>>val a = 1')], service, client, config)
        with pytest.raises(AssertionError) as exc_info:
            t.cancel_evaluation(w, 25)
        assert 'WorksheetCancel(w@Source0.scala:1:1, after_ms=25)' in str(exc_info.value)
