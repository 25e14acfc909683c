#!/usr/bin/env python3
"""Tests for reading posts from post dump, JSON and YAML files"""

from questtestfuncs import *
import pytest


@pytest.mark.parametrize(
    'filename, fromfmt',
    [
        # TEST 001:
        pytest.param('testdata/mock-threads/warehouse.postdump', None,
                     id='postdump_001'),
        # TEST 002:
        pytest.param('testdata/mock-threads/warehouse.json', None,
                     id='postdump_002'),
        # TEST 003:
        pytest.param('testdata/mock-threads/warehouse.yaml', None,
                     id='postdump_003'),
        # TEST 004:
        # Explicit format
        pytest.param('testdata/mock-threads/warehouse.yaml', 'yaml',
                     id='postdump_004'),
    ]
)
def test_read_posts_file(filename, fromfmt):
    posts = read_posts_file(get_testdata_path(filename), fromfmt)
    assert [p.origin.author for p in posts] == ['Kinematics', 'Xryuran',
                                               'Mannan', 'Verdant', 'GM']
    assert [p.origin.post_number for p in posts] == [1, 2, 3, 4, 5]
    assert posts[0].origin.post_id == 1001
    assert len(posts[0].vote_lines) == 3
    assert len(posts[1].vote_lines) == 1
    # The GM's tally post has no votes
    assert not posts[4].has_vote


def test_postdump_permalink():
    posts = read_posts_file(get_testdata_path('testdata/mock-threads/warehouse.postdump'))
    assert posts[0].origin.permalink == 'https://forums.example.com/posts/1001/'
    assert posts[1].origin.permalink is None


def test_json_thread_uri():
    posts = read_posts_file(get_testdata_path('testdata/mock-threads/warehouse.json'))
    assert posts[0].origin.source == 'forums.example.com'


def test_bad_header():
    with pytest.raises(PostDumpFormatException) as excinfo:
        read_posts_file(get_testdata_path('testdata/mock-threads/bad-header.postdump'))
    assert excinfo.value.lineno == 4
    assert 'Malformed post header' in excinfo.value.message


def test_text_before_first_header():
    with pytest.raises(PostDumpFormatException):
        read_postdump_text("[x] Orphan vote\n### author: A | id: 1 | number: 1\n[x] Go")


def test_postdump_text():
    text = ("### author: Alice | id: 5 | number: 1\n"
            "[x] Go north\n"
            "\n"
            "### author: Bob | id: 6 | number: 2\n"
            "[x] Go south\n")
    posts = read_postdump_text(text)
    assert len(posts) == 2
    assert posts[0].text == "[x] Go north"
    assert posts[1].origin.author == 'Bob'


@pytest.mark.parametrize(
    'text, fromfmt',
    [
        # TEST 005:
        pytest.param('{"posts": 5}', 'json', id='postdump_005'),
        # TEST 006:
        pytest.param('[{"id": 1, "text": "[x] A"}]', 'json', id='postdump_006'),
        # TEST 007:
        pytest.param('[{"author": "A", "number": "two"}]', 'json', id='postdump_007'),
        # TEST 008:
        pytest.param('[1, 2]', 'json', id='postdump_008'),
        # TEST 009:
        pytest.param('{not json', 'json', id='postdump_009'),
        # TEST 010:
        pytest.param('- author: [unclosed', 'yaml', id='postdump_010'),
        # TEST 011:
        pytest.param('anything', 'xml', id='postdump_011'),
    ]
)
def test_bad_records(text, fromfmt):
    with pytest.raises(PostDumpFormatException):
        read_posts_text(text, fromfmt)


def test_postdump_exception_is_quest_exception():
    assert issubclass(PostDumpFormatException, QuestTallyException)


def test_guess_format():
    assert guess_format('thread.json') == 'json'
    assert guess_format('thread.YML') == 'yaml'
    assert guess_format('thread.txt') == 'postdump'
