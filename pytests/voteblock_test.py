#!/usr/bin/env python3
"""Tests for vote blocks and plan detection in questlib.voteblock"""

from questtestfuncs import *
import pytest


@pytest.mark.parametrize(
    'text, status, name',
    [
        # TEST 001:
        pytest.param('[x] Plan: Warehouse', LINE_PLAN, 'Warehouse',
                     id='voteblock_001'),
        # TEST 002:
        # No colon needed
        pytest.param('[x] Plan Warehouse', LINE_PLAN, 'Warehouse',
                     id='voteblock_002'),
        # TEST 003:
        pytest.param('[x] Base Plan: Alpha', LINE_PROPOSED_PLAN, 'Alpha',
                     id='voteblock_003'),
        # TEST 004:
        pytest.param('[x] Proposed plan Beta', LINE_PROPOSED_PLAN, 'Beta',
                     id='voteblock_004'),
        # TEST 005:
        # Possessive plan label
        pytest.param("[x] Kinematics's Plan", LINE_PLAN, 'Kinematics',
                     id='voteblock_005'),
        # TEST 006:
        # Trailing punctuation isn't part of the name
        pytest.param('[x] Plan: Warehouse.', LINE_PLAN, 'Warehouse',
                     id='voteblock_006'),
        # TEST 007:
        pytest.param('[x] Go to the warehouse', LINE_NOT_PLAN, '',
                     id='voteblock_007'),
        # TEST 008:
        # "Plan" has to start the line
        pytest.param('[x] Make a plan for tomorrow', LINE_NOT_PLAN, '',
                     id='voteblock_008'),
    ]
)
def test_check_if_plan(text, status, name):
    assert check_if_plan(parse_voteline(text)) == (status, name)


def test_block_equality_ignores_markers_and_case():
    block1 = block_of('[x] Go north', '-[x] quickly')
    block2 = block_of('[1] go North', '-[2] Quickly')
    assert block1 == block2
    assert hash(block1) == hash(block2)
    assert block1 == [parse_voteline('[x] Go north'), parse_voteline('-[x] quickly')]


def test_block_equality_checks_every_line():
    assert block_of('[x] Go north', '-[x] quickly') != block_of('[x] Go north', '-[x] slowly')
    assert block_of('[x] Go north', '-[x] quickly') != block_of('[x] Go north')
    assert block_of('[x][A] Go north') != block_of('[x][B] Go north')


def test_block_needs_lines():
    with pytest.raises(VoteOperationError):
        VoteLineBlock([])


def test_block_marker_override():
    block = block_of('[x] Go north', '-[x] quickly')
    ranked = block.with_marker('1', MARKER_RANK, 1)
    assert ranked.marker_type == MARKER_RANK
    assert ranked == block
    assert str(ranked) == '[1] Go north\n-[x] quickly'
    assert block.without_marker().marker_type == MARKER_NONE
    assert ranked.to_output_string() == '[X] Go north\n-[X] quickly'


def test_block_task_override():
    block = block_of('[x][Travel] Go north', '-[x] quickly')
    assert block.task == 'Travel'
    moved = block.with_task('Explore')
    assert moved.task == 'Explore'
    assert moved != block
    assert str(moved) == '[x][Explore] Go north\n-[x] quickly'


def test_get_blocks():
    lines = find_votelines("[x] A\n-[x] a1\n-[x] a2\n[x] B\n[x] C\n-[x] c1")
    blocks = get_blocks(lines)
    assert [len(b) for b in blocks] == [3, 1, 2]
    assert [b.first.content for b in blocks] == ['A', 'B', 'C']


@pytest.mark.parametrize(
    'text, expected',
    [
        # TEST 009:
        pytest.param("[x] A\n-[x] a1\n--[x] a2", True, id='voteblock_009'),
        # TEST 010:
        pytest.param("[x] A", False, id='voteblock_010'),
        # TEST 011:
        pytest.param("[x] A\n-[x] a1\n[x] B", False, id='voteblock_011'),
    ]
)
def test_is_content_block(text, expected):
    assert is_content_block(find_votelines(text)) == expected


@pytest.mark.parametrize(
    'detector, text, expected',
    [
        # TEST 012:
        pytest.param(is_block_an_explicit_plan,
                     "[x] Plan: Warehouse\n-[x] Go\n-[x] Look",
                     (True, False, 'Warehouse'), id='voteblock_012'),
        # TEST 013:
        # An explicit plan needs nested lines
        pytest.param(is_block_an_explicit_plan,
                     "[x] Plan: Warehouse\n[x] Go",
                     (False, False, 'Warehouse'), id='voteblock_013'),
        # TEST 014:
        pytest.param(is_block_a_proposed_plan,
                     "[x] Base Plan: Alpha\n-[x] Step one",
                     (True, False, 'Alpha'), id='voteblock_014'),
        # TEST 015:
        pytest.param(is_block_a_proposed_plan,
                     "[x] Plan: Warehouse\n-[x] Go",
                     (False, False, 'Warehouse'), id='voteblock_015'),
        # TEST 016:
        # Plan label followed by more top level lines
        pytest.param(is_block_an_implicit_plan,
                     "[x] Plan Foo\n[x] Go\n[x] Look",
                     (True, True, 'Foo'), id='voteblock_016'),
        # TEST 017:
        pytest.param(is_block_an_implicit_plan,
                     "[x] Plan Foo\n-[x] Go",
                     (False, False, ''), id='voteblock_017'),
        # TEST 018:
        pytest.param(is_block_a_single_line_plan,
                     "[x] Plan Foo",
                     (True, False, 'Foo'), id='voteblock_018'),
    ]
)
def test_plan_detectors(detector, text, expected):
    assert detector(find_votelines(text)) == expected
