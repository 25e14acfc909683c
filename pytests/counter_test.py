#!/usr/bin/env python3
"""Tests for VoteCounter: references, plans, tasks and manual merges"""

from questtestfuncs import *
import pytest

VOTE_NORTH = block_of('[x] Go north')
VOTE_SOUTH = block_of('[x] Go south')


def _plan_origin(author, number, name, thread_uri=THREAD_URI):
    return make_post(author, number, '', thread_uri).origin.get_plan_origin(name)


def _plan(*textlines):
    return block_of(*textlines)


def test_first_plan_definition_wins():
    counter = VoteCounter()
    first = _plan('[x] Plan: Warehouse', '-[x] Go')
    second = _plan('[x] Plan: Warehouse', '-[x] Stay')
    assert counter.add_reference_plan(_plan_origin('Alice', 1, 'Warehouse'), first)
    assert not counter.add_reference_plan(_plan_origin('Bob', 2, 'warehouse'), second)
    plan_origin = counter.get_plan_origin_by_name('WAREHOUSE')
    assert counter.get_reference_plan(plan_origin) == first
    assert counter.has_plan('Warehouse')
    assert not counter.has_voter('Warehouse')


@pytest.mark.parametrize(
    'author, number, thread_uri, plantext, expected',
    [
        # TEST 001:
        # Same author, later post, new content
        pytest.param('Alice', 5, THREAD_URI, ['[x] Plan: Warehouse', '-[x] Stay'],
                     True, id='counter_001'),
        # TEST 002:
        # Someone else can't update the plan
        pytest.param('Bob', 5, THREAD_URI, ['[x] Plan: Warehouse', '-[x] Stay'],
                     False, id='counter_002'),
        # TEST 003:
        # An earlier post can't update it
        pytest.param('Alice', 0, THREAD_URI, ['[x] Plan: Warehouse', '-[x] Stay'],
                     False, id='counter_003'),
        # TEST 004:
        # The same content isn't an update
        pytest.param('Alice', 5, THREAD_URI, ['[x] Plan: Warehouse', '-[x] Go'],
                     False, id='counter_004'),
        # TEST 005:
        # A single line isn't an update
        pytest.param('Alice', 5, THREAD_URI, ['[x] Plan: Warehouse'],
                     False, id='counter_005'),
    ]
)
def test_plan_updates(author, number, thread_uri, plantext, expected):
    counter = VoteCounter(QuestConfig(allow_users_to_update_plans=True))
    original_author = make_post('Alice', 1, '').origin
    counter.add_reference_plan(_plan_origin('Alice', 1, 'Warehouse'),
                               _plan('[x] Plan: Warehouse', '-[x] Go'),
                               author=original_author)
    updater = make_post(author, number, '', thread_uri).origin
    update = _plan(*plantext)
    assert counter.add_reference_plan(_plan_origin(author, number, 'Warehouse', thread_uri),
                                      update, author=updater) == expected
    plan_origin = counter.get_plan_origin_by_name('Warehouse')
    assert (counter.get_reference_plan(plan_origin) is update) == expected


def test_plan_updates_need_permission():
    counter = VoteCounter()
    counter.add_reference_plan(_plan_origin('Alice', 1, 'Warehouse'),
                               _plan('[x] Plan: Warehouse', '-[x] Go'))
    assert not counter.add_reference_plan(_plan_origin('Alice', 5, 'Warehouse'),
                                          _plan('[x] Plan: Warehouse', '-[x] Stay'))


def test_reference_voters():
    counter = VoteCounter()
    alice = make_post('Alice', 1, '[x] Go').origin
    assert counter.add_reference_voter(alice)
    assert not counter.add_reference_voter(make_post('alice', 9, '[x] Go').origin)
    assert counter.get_voter_origin_by_name('ALICE') is alice
    assert counter.get_voter_origin_by_name('') is None
    assert counter.get_plan_origin_by_name('Alice') is None
    assert counter.get_total_voter_count() == 1


def test_last_post_by_author():
    counter = VoteCounter()
    posts = make_posts([('Alice', '[x] One'), ('Bob', '[x] Alice'),
                        ('Alice', '[x] Two')])
    counter.add_posts(posts)
    for post in posts:
        counter.add_reference_voter(post.origin)
    alice = counter.get_voter_origin_by_name('Alice')
    assert counter.get_last_post_by_author(alice) is posts[2]
    # Pinned to before Bob's post
    assert counter.get_last_post_by_author(alice, posts[1].origin.post_id) is posts[0]
    assert counter.get_last_post_by_author(Origin('Nobody')) is None


def test_has_newer_vote():
    counter = VoteCounter()
    posts = make_posts([('Alice', '[x] One'), ('Alice', '[x] Two')])
    counter.add_posts(posts)
    counter.add_reference_voter(posts[0].origin)
    assert not counter.has_newer_vote(posts[0])
    posts[1].processed = True
    assert counter.has_newer_vote(posts[0])
    assert not counter.has_newer_vote(posts[1])


def test_future_references():
    counter = VoteCounter()
    post = make_post('Alice', 1, '[x] Bob')
    assert counter.add_future_reference(post)
    assert not counter.add_future_reference(post)


def test_task_list():
    counter = VoteCounter()
    alice = Origin('Alice')
    counter.add_votes([block_of('[x][Travel] Go north'), block_of('[x][fight] Attack'),
                       block_of('[x][travel] Go south'), block_of('[x] Rest')], alice)
    assert counter.task_list == ['Travel', 'fight']
    assert counter.add_user_defined_task('Explore')
    assert not counter.add_user_defined_task('explore')
    assert not counter.add_user_defined_task('  ')
    assert counter.task_list == ['Travel', 'fight', 'Explore']
    counter.reset_tasks_order(TASKS_ALPHABETICAL)
    assert counter.task_list == ['Explore', 'fight', 'Travel']
    counter.reset_tasks_order(TASKS_AS_TALLIED)
    assert counter.task_list == ['Travel', 'fight', 'Explore']
    with pytest.raises(VoteOperationError):
        counter.reset_tasks_order('shuffled')


def test_merge_records():
    records = MergeRecords()
    records.add_merge_record(VOTE_NORTH, [VOTE_SOUTH], UNDO_MERGE, PARTITION_NONE)
    records.add_merge_record(VOTE_NORTH, [VOTE_SOUTH], UNDO_SPLIT, PARTITION_NONE)
    assert len(records.get_merge_record_list(PARTITION_NONE)) == 2
    assert records.get_merge_record_list(PARTITION_BY_LINE) == []
    assert records.remove_last_merge_record(PARTITION_NONE, UNDO_MERGE)
    remaining = records.get_merge_record_list(PARTITION_NONE)
    assert [r.action_type for r in remaining] == [UNDO_SPLIT]
    assert remaining[0].to_vote == VOTE_SOUTH
    assert not records.remove_last_merge_record(PARTITION_NONE, UNDO_MERGE)


def _counter_with_votes():
    counter = VoteCounter()
    counter.add_votes([VOTE_NORTH], Origin('Alice'))
    counter.add_votes([VOTE_SOUTH], Origin('Bob'))
    counter.storage.clear_undo()
    return counter


def test_counter_merge_records_only_success():
    counter = _counter_with_votes()
    assert not counter.merge(block_of('[x] Fly'), VOTE_SOUTH)
    assert counter.user_merges.get_merge_record_list(PARTITION_NONE) == []
    assert counter.merge(VOTE_NORTH, VOTE_SOUTH)
    assert len(counter.user_merges.get_merge_record_list(PARTITION_NONE)) == 1


def test_counter_undo_removes_merge_record():
    counter = _counter_with_votes()
    counter.merge(VOTE_NORTH, VOTE_SOUTH)
    assert counter.has_undo_actions
    assert counter.undo()
    assert counter.user_merges.get_merge_record_list(PARTITION_NONE) == []
    assert counter.get_voters_for(VOTE_NORTH) == [Origin('Alice')]
    assert not counter.undo()


def test_run_merge_actions():
    counter = _counter_with_votes()
    counter.merge(VOTE_NORTH, VOTE_SOUTH)
    counter.replace_task(VOTE_SOUTH, 'Travel')
    counter.storage.reset()
    counter.add_votes([VOTE_NORTH], Origin('Alice'))
    counter.add_votes([VOTE_SOUTH], Origin('Bob'))
    assert counter.run_merge_actions() == 2
    moved = VOTE_SOUTH.with_task('Travel')
    assert [str(o) for o in counter.get_voters_for(moved)] == ['Bob', 'Alice']
    assert 'Travel' in counter.task_list


def test_merge_records_are_per_partition_mode():
    counter = _counter_with_votes()
    counter.merge(VOTE_NORTH, VOTE_SOUTH)
    counter.config = QuestConfig(partition_mode='by_line')
    assert counter.user_merges.get_merge_record_list(PARTITION_BY_LINE) == []
    assert counter.run_merge_actions() == 0


def test_reset_keeps_user_merges():
    counter = _counter_with_votes()
    counter.merge(VOTE_NORTH, VOTE_SOUTH)
    counter.reset()
    assert len(counter.storage) == 0
    assert len(counter.user_merges.get_merge_record_list(PARTITION_NONE)) == 1
    counter.reset_user_defined_tasks()
    assert counter.user_merges.get_merge_record_list(PARTITION_NONE) == []
