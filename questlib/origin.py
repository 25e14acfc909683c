#!/usr/bin/env python3
'''questlib/origin.py - Post ids and the origins (authors/plans) of votes'''

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

from questlib.agnostic import agnostic_compare, insensitive_key
from questlib.core import IDENTITY_USER, IDENTITY_PLAN, PLAN_NAME_MARKER
from functools import total_ordering
import re
import urllib.parse

_POSTID_DIGITS = re.compile(r'^\d{1,3}(?:,\d{3})+$|^\d+$')


@total_ordering
class PostId:
    '''Forum post id.

    Decimal digits, optionally with thousands separators.  Anything
    else (negative, hex, text) has a value of 0, but the original text
    is kept so that non-numeric ids still order consistently.
    '''

    def __init__(self, text=None):
        if isinstance(text, PostId):
            self.text = text.text
            self.value = text.value
            return
        if isinstance(text, int) and not isinstance(text, bool):
            self.text = str(text)
            self.value = text if text > 0 else 0
            return
        self.text = '' if text is None else str(text).strip()
        self.value = 0
        if _POSTID_DIGITS.match(self.text):
            value = int(self.text.replace(',', ''))
            if value > 0:
                self.value = value

    @classmethod
    def zero(cls):
        return cls(0)

    def __bool__(self):
        return self.value > 0

    def _cmpkey(self, other):
        if self.value == 0 and other.value == 0:
            return (self.text, other.text)
        return (self.value, other.value)

    def __eq__(self, other):
        if not isinstance(other, PostId):
            if isinstance(other, int):
                return self.value == other
            return NotImplemented
        mine, theirs = self._cmpkey(other)
        return mine == theirs

    def __lt__(self, other):
        if not isinstance(other, PostId):
            if isinstance(other, int):
                return self.value < other
            return NotImplemented
        mine, theirs = self._cmpkey(other)
        return mine < theirs

    def __hash__(self):
        if self.value == 0:
            return hash(self.text)
        return hash(self.value)

    def __str__(self):
        return self.text

    def __repr__(self):
        return f"PostId({self.text!r})"


class Origin:
    '''Where a vote comes from: a user's post, or a named plan.

    Identity is the fuzzy author name, the identity type and the source
    domain.  Post id and number are informational, so that a later post
    by the same author is "the same voter".
    '''

    def __init__(self, author, author_type=IDENTITY_USER, post_id=None,
                 post_number=0, thread_uri=None, permalink=None):
        if author_type not in (IDENTITY_USER, IDENTITY_PLAN):
            raise ValueError(f"Unknown identity type: {author_type}")
        self.author = (author or '').strip()
        self.author_type = author_type
        self.post_id = PostId(post_id)
        self.post_number = int(post_number or 0)
        self.thread_uri = thread_uri
        self.permalink = permalink
        if thread_uri:
            self.source = urllib.parse.urlparse(thread_uri).netloc.lower() or thread_uri
        else:
            self.source = None

    @classmethod
    def from_name(cls, name, author_type=IDENTITY_USER):
        '''Bare lookup origin that matches on name and type only'''
        return cls(name, author_type)

    def get_plan_origin(self, plan_name):
        '''A plan-typed origin that shares this origin's post and source'''
        return Origin(plan_name, IDENTITY_PLAN, post_id=self.post_id,
                      post_number=self.post_number,
                      thread_uri=self.thread_uri, permalink=self.permalink)

    @property
    def is_plan(self):
        return self.author_type == IDENTITY_PLAN

    def compare(self, other):
        if self is other:
            return 0
        if self.author_type != other.author_type:
            return -1 if self.author_type == IDENTITY_PLAN else 1
        # Name-only origins match any source
        if self.source and other.source and self.source != other.source:
            return -1 if self.source < other.source else 1
        return agnostic_compare(self.author, other.author)

    def __eq__(self, other):
        if not isinstance(other, Origin):
            return NotImplemented
        return self.compare(other) == 0

    def __lt__(self, other):
        if not isinstance(other, Origin):
            return NotImplemented
        return self.compare(other) < 0

    def __hash__(self):
        return hash(insensitive_key(self.author))

    def __str__(self):
        if self.author_type == IDENTITY_PLAN:
            return f"{PLAN_NAME_MARKER}{self.author}"
        return self.author

    def __repr__(self):
        return (f"Origin({self.author!r}, {self.author_type!r}, "
                f"post_id={self.post_id.text!r}, post_number={self.post_number})")
