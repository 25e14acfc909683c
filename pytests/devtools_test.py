#!/usr/bin/env python3
"""Tests for debug output and notes (questlib.devtools)"""

from questtestfuncs import *
from questlib import devtools
import pytest


def test_debugprint_needs_envvar(monkeypatch, capsys):
    monkeypatch.delenv('QUESTTALLY_DEBUG', raising=False)
    questlib_debugprint('tally', 'quiet')
    assert capsys.readouterr().err == ''
    monkeypatch.setenv('QUESTTALLY_DEBUG', '1')
    questlib_debugprint('tally', 'loud')
    captured = capsys.readouterr()
    assert captured.out == ''
    assert '[tally] loud' in captured.err


def test_forced_posts_are_noted():
    tally_of([('Alice', "[x] Bob"), ('Bob', "[x] Alice")])
    assert any('Force-processing' in note for note in devtools.DEBUGARRAY)


def test_exceptions_carry_debug_notes():
    questlib_reset_debug_notes()
    questlib_debug_note('before the error')
    with pytest.raises(QuestConfigError) as excinfo:
        QuestConfig(partition_mode='sideways')
    assert excinfo.value.debugarray == ['before the error']
    questlib_reset_debug_notes()
    assert devtools.DEBUGARRAY == []
