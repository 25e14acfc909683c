#!/usr/bin/env python3
"""Tests for plurality results (questlib.plurality_tally)"""

from questtestfuncs import *
import pytest


def test_warehouse_plurality():
    posts = read_posts_file(get_testdata_path('testdata/mock-threads/warehouse.postdump'))
    tally = tally_posts(posts)
    result = plurality_result_from_storage(tally.storage, tally.counter.task_list)
    assert result['method'] == 'plurality'
    entries = result['tasks']['']
    assert [e['score'] for e in entries] == [3, 1]
    # Plans carry votes but aren't counted as voters
    assert [str(v) for v in entries[0]['voters']] == ['Kinematics', 'Xryuran',
                                                      'Verdant']
    assert entries[1]['vote'].first.content == 'Go to the market'
    assert result['winners'][''] == [entries[0]['vote']]
    assert result['notices'] == []


@pytest.mark.parametrize(
    'postlist, winners',
    [
        # TEST 001:
        pytest.param([('Alice', "[x] Red"), ('Bob', "[x] Blue")],
                     ['Blue', 'Red'], id='plurality_001'),
        # TEST 002:
        pytest.param([('Alice', "[x] Red"), ('Bob', "[x] Blue"), ('Carol', "[x] red")],
                     ['Red'], id='plurality_002'),
    ]
)
def test_plurality_winners(postlist, winners):
    tally = tally_of(postlist)
    result = plurality_result_from_storage(tally.storage)
    assert [w.first.content for w in result['winners']['']] == winners
    shorts = [n['short'] for n in result['notices']]
    if len(winners) > 1:
        assert shorts == ['Tie for the most votes in (no task)']
    else:
        assert shorts == []


def test_plurality_per_task():
    tally = tally_of([('Alice', "[x][Travel] Go north"),
                      ('Bob', "[x][Fight] Attack"),
                      ('Carol', "[x][travel] Go North")])
    result = plurality_result_from_storage(tally.storage, tally.counter.task_list)
    assert list(result['tasks']) == ['Travel', 'Fight']
    assert result['tasks']['Travel'][0]['score'] == 2


def test_ranked_votes_are_not_plurality():
    tally = tally_of([('Alice', "[1] Fight")])
    result = plurality_result_from_storage(tally.storage)
    assert result['tasks'] == {}
    assert [n['short'] for n in result['notices']] == ['No plain votes found']
