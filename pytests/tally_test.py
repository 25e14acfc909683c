#!/usr/bin/env python3
"""Tests for running whole tallies (questlib.tally)"""

from questtestfuncs import *
import concurrent.futures
import pytest

IDEMPOTENCE_POSTS = [
    ('Alice', "[x] Go to warehouse\n[x] fine\n-[x] today"),
    ('Bob', "[x] Go to market\n[x] quickly\n-[x] now"),
]


def _vote_summary(storage):
    return sorted((str(block), len(block)) for block in storage.get_all_votes())


def test_retally_is_idempotent():
    """Tallying the same posts twice doesn't duplicate anything"""
    posts = make_posts(IDEMPOTENCE_POSTS)
    tally = Tally(QuestConfig(partition_mode=PARTITION_NONE))
    tally.tally_posts(posts)
    first = _vote_summary(tally.storage)
    assert [length for _, length in first] == [3, 3]
    tally.tally_posts(posts)
    assert _vote_summary(tally.storage) == first
    assert len(tally.storage) == 2


PARTITION_POST = [('Alice', "[x] A\n-[x] a1\n-[x] a2\n[x] B\n-[x] b1")]


def test_partition_counts():
    counts = {}
    for mode in (PARTITION_NONE, PARTITION_BY_BLOCK, PARTITION_BY_LINE):
        counts[mode] = len(tally_of(PARTITION_POST, partition_mode=mode).storage)
    assert counts[PARTITION_BY_LINE] >= counts[PARTITION_BY_BLOCK] >= counts[PARTITION_NONE]
    assert counts == {PARTITION_NONE: 1, PARTITION_BY_BLOCK: 2, PARTITION_BY_LINE: 5}


@pytest.mark.parametrize(
    'symbols_significant, blockcount',
    [
        # TEST 001:
        pytest.param(False, 1, id='tally_001'),
        # TEST 002:
        pytest.param(True, 2, id='tally_002'),
    ]
)
def test_fuzzy_equivalence(symbols_significant, blockcount):
    tally = tally_of([('Alice', "[x] Basic test"), ('Bob', "[x] Basic 'test'")],
                     whitespace_and_punctuation_is_significant=symbols_significant)
    assert len(tally.storage) == blockcount


@pytest.mark.parametrize(
    'case_significant, blockcount',
    [
        # TEST 003:
        pytest.param(False, 1, id='tally_003'),
        # TEST 004:
        pytest.param(True, 2, id='tally_004'),
    ]
)
def test_case_equivalence(case_significant, blockcount):
    tally = tally_of([('Alice', "[x] Go North"), ('Bob', "[x] go north")],
                     case_is_significant=case_significant)
    assert len(tally.storage) == blockcount


def test_comparer_change_rebuilds_storage():
    tally = tally_of([('Alice', "[x] Basic test"), ('Bob', "[x] Basic 'test'")],
                     whitespace_and_punctuation_is_significant=True)
    assert len(tally.storage) == 2
    assert tally.set_comparer_flags(whitespace_and_punctuation_is_significant=False)
    assert len(tally.storage) == 1
    assert voter_names(tally.storage, block_of('[x] Basic test')) == ['Alice', 'Bob']
    assert not tally.set_comparer_flags(whitespace_and_punctuation_is_significant=False)


def test_later_vote_replaces_earlier():
    tally = tally_of([('Xavier', "[x] V1"), ('Yolanda', "[x] V1"),
                      ('Xavier', "[x] V2")])
    assert voter_names(tally.storage, block_of('[x] V1')) == ['Yolanda']
    assert voter_names(tally.storage, block_of('[x] V2')) == ['Xavier']


def test_future_reference_gets_final_vote():
    tally = tally_of([('Alice', "[x] Bob"), ('Bob', "[x] Option one"),
                      ('Bob', "[x] Option two")])
    assert block_of('[x] Option one') not in tally.storage
    assert voter_names(tally.storage, block_of('[x] Option two')) == ['Bob', 'Alice']
    assert tally.notices == []


def test_pinned_reference_gets_earlier_vote():
    tally = tally_of([('Alice', "[x] Option one"), ('Bob', "[x] ^Alice"),
                      ('Alice', "[x] Option two")])
    assert voter_names(tally.storage, block_of('[x] Option one')) == ['Bob']
    assert voter_names(tally.storage, block_of('[x] Option two')) == ['Alice']


def test_unpinned_reference_gets_latest_vote():
    tally = tally_of([('Alice', "[x] Option one"), ('Bob', "[x] Alice"),
                      ('Alice', "[x] Option two")])
    assert block_of('[x] Option one') not in tally.storage
    assert voter_names(tally.storage, block_of('[x] Option two')) == ['Alice', 'Bob']


def test_forced_pinned_proxy_votes():
    tally = tally_of([('Alice', "[x] Option one"), ('Bob', "[x] Alice"),
                      ('Alice', "[x] Option two")], force_pinned_proxy_votes=True)
    assert voter_names(tally.storage, block_of('[x] Option one')) == ['Bob']


def test_proxy_votes_disabled():
    tally = tally_of([('Alice', "[x] Option one"), ('Bob', "[x] Alice")],
                     disable_proxy_votes=True)
    assert voter_names(tally.storage, block_of('[x] Alice')) == ['Bob']


def test_reference_keeps_citing_marker():
    tally = tally_of([('Alice', "[x] Fight"), ('Bob', "[1] Alice")])
    supporters = tally.storage.get_supporters_for(block_of('[x] Fight'))
    assert supporters[Origin('Bob')].marker_type == MARKER_RANK
    assert supporters[Origin('Alice')].marker_type == MARKER_VOTE


CYCLE_POSTS = [('Alice', "[x] Bob"), ('Bob', "[x] Alice")]


def test_cycle_forced():
    tally = Tally(QuestConfig(force_unresolved_references=True))
    tally.tally_posts(make_posts(CYCLE_POSTS))
    assert [n['short'] for n in tally.notices] == ['Forced unresolved vote references']
    # Alice's reference stays as text, and Bob follows Alice
    assert voter_names(tally.storage, block_of('[x] Bob')) == ['Alice', 'Bob']
    assert all(p.processed for p in tally.counter.posts)


def test_cycle_not_forced():
    tally = Tally(QuestConfig(force_unresolved_references=False))
    result = tally.tally_posts(make_posts(CYCLE_POSTS))
    assert [n['short'] for n in result['notices']] == ['Unresolved vote references']
    assert len(tally.storage) == 0
    assert not any(p.processed for p in tally.counter.posts)


def test_reference_to_nonvoter_is_text():
    tally = tally_of([('Alice', "[x] Zed")])
    assert voter_names(tally.storage, block_of('[x] Zed')) == ['Alice']


def test_plan_substitution():
    tally = tally_of([('Kinematics', "[x] Plan: Warehouse\n-[x] Go to the warehouse\n"
                                     "-[x] Look for supplies"),
                      ('Xryuran', "[x] Plan Warehouse"),
                      ('Verdant', "[x] Kinematics")])
    plan = block_of('[x] Plan: Warehouse', '-[x] Go to the warehouse',
                    '-[x] Look for supplies')
    assert voter_names(tally.storage, plan) == ['◈Warehouse', 'Kinematics',
                                                'Xryuran', 'Verdant']
    assert len(tally.storage) == 1
    assert tally.counter.get_total_voter_count() == 3


def test_plan_by_line():
    tally = tally_of([('Kinematics', "[x] Plan: Warehouse\n-[x] Go to the warehouse\n"
                                     "-[x] Look for supplies"),
                      ('Xryuran', "[x] Plan Warehouse")],
                     partition_mode=PARTITION_BY_LINE)
    assert len(tally.storage) == 2
    assert voter_names(tally.storage, block_of('[x] Look for supplies')) == [
        '◈Warehouse', 'Kinematics', 'Xryuran']


def test_proposed_plan_is_not_authors_vote():
    tally = tally_of([('Alice', "[x] Base Plan: Alpha\n-[x] Step one\n-[x] Step two"),
                      ('Bob', "[x] Plan Alpha")])
    plan = block_of('[x] Plan: Alpha', '-[x] Step one', '-[x] Step two')
    assert voter_names(tally.storage, plan) == ['◈Alpha', 'Bob']
    assert tally.storage.get_votes_by(Origin('Alice')) == []


def test_plan_labels_required():
    posts = [('Kinematics', "[x] Plan: Warehouse\n-[x] Go to the warehouse"),
             ('Xryuran', "[x] Warehouse")]
    tally = tally_of(posts)
    assert len(tally.storage) == 1
    tally = tally_of(posts, force_plan_references_to_be_labeled=True)
    assert voter_names(tally.storage, block_of('[x] Warehouse')) == ['Xryuran']


def test_plan_named_after_another_voter_is_ignored():
    tally = tally_of([('Alice', "[x] Go north"),
                      ('Bob', "[x] Plan: Alice\n-[x] Go south")])
    assert not tally.counter.has_plan('Alice')


def test_username_filter():
    tally = tally_of([('Alice', "[x] Go north"), ('Bob', "[x] Go south")],
                     use_custom_username_filters=True, custom_username_filter='bob')
    assert len(tally.storage) == 1
    assert tally.counter.get_total_voter_count() == 1


def test_post_filter():
    tally = tally_of([('Alice', "[x] Go north"), ('Bob', "[x] Go south"),
                      ('Carol', "[x] Stay")],
                     use_custom_post_filters=True, custom_post_filter='2-3')
    assert [str(b.first.content) for b in tally.storage] == ['Go north']


def test_user_defined_tasks():
    tally = tally_of([('Alice', "[x][Travel] Go north")],
                     user_defined_tasks=['Explore'], tasks_ordering=TASKS_ALPHABETICAL)
    assert tally.counter.task_list == ['Explore', 'Travel']


def test_result_dict():
    tally = Tally()
    result = tally.tally_posts(make_posts([('Alice', "[x][Travel] Go north"),
                                           ('Bob', "Just chatting")]))
    assert result['post_count'] == 1
    assert result['voter_count'] == 1
    assert result['tasks'] == ['Travel']
    assert result['storage'] is tally.storage


def test_manual_merge_survives_retally():
    posts = make_posts([('Alice', "[x] Go north"), ('Bob', "[x] Head north")])
    tally = Tally()
    tally.tally_posts(posts)
    assert tally.counter.merge(block_of('[x] Head north'), block_of('[x] Go north'))
    tally.tally_posts(posts)
    assert len(tally.storage) == 1
    assert voter_names(tally.storage, block_of('[x] Go north')) == ['Alice', 'Bob']
    # The repeated merge can still be undone
    assert tally.counter.undo()
    assert len(tally.storage) == 2


def test_cancelled_tally():
    token = CancellationToken()
    token.cancel()
    tally = Tally()
    with pytest.raises(TallyCancelled):
        tally.tally_posts(make_posts(IDEMPOTENCE_POSTS), token=token)
    assert tally.counter.tally_was_cancelled
    assert not tally.counter.is_tallying


def test_tally_in_background():
    tally = Tally()
    future = tally.tally_in_background(make_posts(IDEMPOTENCE_POSTS))
    result = future.result(timeout=30)
    assert result['post_count'] == 2
    assert not tally.counter.tally_was_cancelled


def test_tally_in_given_executor():
    tally = Tally()
    with concurrent.futures.ThreadPoolExecutor(max_workers=1) as executor:
        future = tally.tally_in_background(make_posts(IDEMPOTENCE_POSTS), executor)
        assert future.result(timeout=30)['voter_count'] == 2


def test_warehouse_thread():
    posts = read_posts_file(get_testdata_path('testdata/mock-threads/warehouse.postdump'))
    tally = tally_posts(posts)
    assert tally.counter.get_total_voter_count() == 4
    assert len(tally.counter.posts) == 4
    assert len(tally.storage) == 2
