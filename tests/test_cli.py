"""Tests for codetester.cli — the ``markers`` command."""
from __future__ import annotations

import sys

import pytest

from codetester.cli import _build_parser, codetester


def _run(monkeypatch, *argv: str) -> int:
    monkeypatch.setattr(sys, 'argv', ['codetester', *argv])
    with pytest.raises(SystemExit) as exc_info:
        codetester()
    return exc_info.value.code


class TestParser:
    def test_markers_takes_files(self):
        args = _build_parser().parse_args(['markers', 'a.scala', 'b.sc'])
        assert args.command == 'markers'
        assert args.files == ['a.scala', 'b.sc']

    def test_bad_log_level(self):
        with pytest.raises(SystemExit):
            _build_parser().parse_args(['--log-level', 'LOUD'])


class TestMarkersCommand:
    def test_lists_markers(self, tmp_path, monkeypatch, capsys):
        a = tmp_path / 'A.scala'
        a.write_text('val <<x1>>x<<x2>> = 1\n')
        b = tmp_path / 'B.sc'
        b.write_text('<<w>>print 1\n')
        assert _run(monkeypatch, '--root', str(tmp_path), 'markers', str(a), str(b)) == 0
        out = capsys.readouterr().out.splitlines()
        assert out == ['x1\tA.scala:1:5', 'x2\tA.scala:1:6', 'w\tB.sc:1:1']

    def test_duplicates_fail(self, tmp_path, monkeypatch, capsys):
        a = tmp_path / 'A.scala'
        a.write_text('<<m>>a\n')
        b = tmp_path / 'B.scala'
        b.write_text('\n<<m>>b\n')
        assert _run(monkeypatch, '--root', str(tmp_path), 'markers', str(a), str(b)) == 1
        err = capsys.readouterr().err
        assert "'m' at A.scala:1:1" in err
        assert "'m' at B.scala:2:1" in err

    def test_missing_file(self, tmp_path, monkeypatch, capsys):
        missing = tmp_path / 'Nope.scala'
        assert _run(monkeypatch, '--root', str(tmp_path), 'markers', str(missing)) == 1
        err = capsys.readouterr().err
        assert f'cannot read {missing}' in err

    def test_version(self, monkeypatch, capsys):
        assert _run(monkeypatch, '--version') == 0
        assert capsys.readouterr().out.startswith('codetester ')

    def test_no_command(self, tmp_path, monkeypatch):
        assert _run(monkeypatch, '--root', str(tmp_path)) == 2
