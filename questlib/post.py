#!/usr/bin/env python3
'''questlib/post.py - Forum posts and the vote lines found in them'''

# Copyright (C) 2025 Rob Lanphier
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

from questlib.core import MARKER_VOTE, VOTE_MARKER_VALUE
from questlib.origin import Origin
from questlib.voteline import VoteLine, find_votelines, strip_bbcode
from questlib.voteregex import TALLY_POST_REGEX, NOMINATION_LINE_REGEX
import re

_TALLY_POST_RE = re.compile(TALLY_POST_REGEX, re.MULTILINE)
_NOMINATION_RE = re.compile(NOMINATION_LINE_REGEX, re.VERBOSE)


def is_tally_post(text):
    '''A post with "#####" starting a line is a posted tally, not a vote'''
    return bool(_TALLY_POST_RE.search(strip_bbcode(text)))


def get_nomination_votelines(text):
    '''Vote lines for a post made only of forum member mentions.

    Any line that isn't a mention means it's not a nomination post.
    '''
    retval = []
    for textline in text.splitlines():
        if not textline.strip():
            continue
        m = _NOMINATION_RE.match(textline.strip())
        if not m:
            return []
        retval.append(VoteLine('', 'X', '', m.group('username'),
                               MARKER_VOTE, VOTE_MARKER_VALUE))
    return retval


def get_post_votelines(text):
    if is_tally_post(text):
        return []
    retval = find_votelines(text)
    if not retval:
        retval = get_nomination_votelines(text)
    return retval


class Post:
    '''One forum post, plus the per-tally working state of its vote.'''

    def __init__(self, origin, text):
        if origin is None:
            raise ValueError("A post needs an origin")
        self.origin = origin
        self.text = text or ''
        self.vote_lines = get_post_votelines(self.text)
        # Working vote entries are (VoteLine, None) or (None, VoteLineBlock)
        self.working_vote = []
        self.working_vote_complete = False
        self.processed = False
        self.force_process = False

    @classmethod
    def from_dict(cls, postdict, thread_uri=None):
        origin = Origin(postdict['author'],
                        post_id=postdict.get('id'),
                        post_number=postdict.get('number', 0),
                        thread_uri=postdict.get('thread', thread_uri),
                        permalink=postdict.get('permalink'))
        return cls(origin, postdict.get('text', ''))

    @property
    def has_vote(self):
        return len(self.vote_lines) > 0

    def reset_working_state(self):
        self.working_vote = []
        self.working_vote_complete = False
        self.processed = False
        self.force_process = False

    def __lt__(self, other):
        return self.origin.post_id < other.origin.post_id

    def __repr__(self):
        first = self.vote_lines[0].content if self.has_vote else "<empty>"
        return f"Post({self.origin.author} ({self.origin.post_number}) : {first})"
