#!/usr/bin/env python3
'''questlib/voteblock.py - Blocks of vote lines, and plan detection'''

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

from questlib.agnostic import agnostic_key
from questlib.core import *
from questlib.voteline import VoteLine
from questlib.voteregex import BASE_PLAN_REGEX, ANY_PLAN_REGEX, ALT_PLAN_REGEX
import re

_BASE_PLAN_RE = re.compile(BASE_PLAN_REGEX, re.VERBOSE | re.IGNORECASE)
_ANY_PLAN_RE = re.compile(ANY_PLAN_REGEX, re.VERBOSE | re.IGNORECASE)
_ALT_PLAN_RE = re.compile(ALT_PLAN_REGEX, re.VERBOSE | re.IGNORECASE)

# Results of check_if_plan
LINE_NOT_PLAN = 'none'
LINE_PLAN = 'plan'
LINE_PROPOSED_PLAN = 'proposed'


class VoteLineBlock:
    '''An ordered, non-empty group of vote lines treated as one vote.

    The task and marker of the block come from its first line, but may
    be overridden for the block as a whole (eg: a plan substituted into
    someone's vote keeps that voter's marker).  Markers never take part
    in comparisons.  The category is set by VoteStorage.get_all_votes().
    '''

    def __init__(self, lines, task=None, marker=None, marker_type=None,
                 marker_value=None):
        if isinstance(lines, VoteLine):
            lines = [lines]
        flat = []
        for item in lines:
            if isinstance(item, VoteLineBlock):
                flat.extend(item.lines)
            else:
                flat.append(item)
        if not flat:
            raise VoteOperationError(value=lines,
                                     message="A vote block needs at least one line")
        self.lines = tuple(flat)
        first = self.lines[0]
        self.task = first.task if task is None else task
        self.marker = first.marker if marker is None else marker
        self.marker_type = first.marker_type if marker_type is None else marker_type
        self.marker_value = first.marker_value if marker_value is None else marker_value
        self.category = MARKER_NONE

    def copy(self):
        retval = VoteLineBlock(self.lines, self.task, self.marker,
                               self.marker_type, self.marker_value)
        retval.category = self.category
        return retval

    def with_task(self, task):
        return VoteLineBlock(self.lines, task, self.marker,
                             self.marker_type, self.marker_value)

    def with_marker(self, marker, marker_type, marker_value):
        return VoteLineBlock(self.lines, self.task, marker,
                             marker_type, marker_value)

    def without_marker(self):
        return self.with_marker('', MARKER_NONE, 0)

    def __len__(self):
        return len(self.lines)

    def __iter__(self):
        return iter(self.lines)

    def __getitem__(self, index):
        return self.lines[index]

    @property
    def first(self):
        return self.lines[0]

    # Rendering
    def __str__(self):
        first = self.lines[0].to_override_string(display_marker=self.marker,
                                                  display_task=self.task)
        return "\n".join([first] + [str(ln) for ln in self.lines[1:]])

    def __repr__(self):
        return f"VoteLineBlock({str(self)!r})"

    def to_comparable_string(self):
        first = self.lines[0].to_override_string(display_marker='',
                                                  display_task=self.task)
        return "\n".join([first] + [ln.to_comparable_string()
                                    for ln in self.lines[1:]])

    def to_output_string(self, main_marker="X", sub_marker="X"):
        first = self.lines[0].to_override_string(display_marker=main_marker,
                                                  display_task=self.task)
        rest = [ln.to_override_string(display_marker=sub_marker)
                for ln in self.lines[1:]]
        return "\n".join([first] + rest)

    def sort_content(self):
        '''Plain-text key used to break ties deterministically'''
        return (self.lines[0].clean_content.casefold(), str(self))

    # Comparison: task, first line content, then each later line's
    # task and content, then line count.
    def _cmptuple(self):
        rest = tuple((agnostic_key(ln.task), agnostic_key(ln.clean_content))
                     for ln in self.lines[1:])
        return (agnostic_key(self.task),
                agnostic_key(self.lines[0].clean_content),
                rest,
                len(self.lines))

    def __eq__(self, other):
        if isinstance(other, (list, tuple)):
            if not other:
                return False
            other = VoteLineBlock(other)
        if not isinstance(other, VoteLineBlock):
            return NotImplemented
        if self is other:
            return True
        return self._cmptuple() == other._cmptuple()

    def __lt__(self, other):
        if not isinstance(other, VoteLineBlock):
            return NotImplemented
        return self._cmptuple() < other._cmptuple()

    def __hash__(self):
        return hash(self._cmptuple())


def get_blocks(lines):
    '''Split a sequence of lines into blocks, starting one at each depth-0 line'''
    retval = []
    current = []
    for line in lines:
        if line.depth == 0 and current:
            retval.append(VoteLineBlock(current))
            current = []
        current.append(line)
    if current:
        retval.append(VoteLineBlock(current))
    return retval


def is_content_block(lines):
    '''First line at depth 0, with one or more lines all nested under it'''
    lines = list(lines)
    if len(lines) < 2:
        return False
    if lines[0].depth != 0:
        return False
    return all(ln.depth > 0 for ln in lines[1:])


def _clean_plan_name(name):
    return re.sub(r'[\s.:;,!?]+$', '', name.strip())


def check_if_plan(line):
    '''Returns (LINE_* status, plan name) for a single vote line'''
    text = line.clean_content
    if m := _BASE_PLAN_RE.search(text):
        return (LINE_PROPOSED_PLAN, _clean_plan_name(m.group('planname')))
    if m := _ANY_PLAN_RE.match(text):
        return (LINE_PLAN, _clean_plan_name(m.group('planname')))
    if m := _ALT_PLAN_RE.match(text):
        return (LINE_PLAN, _clean_plan_name(m.group('planname')))
    return (LINE_NOT_PLAN, '')


# Plan detection functions.  Each returns (is_plan, is_implicit, plan_name).

def is_block_an_explicit_plan(lines):
    lines = list(lines)
    status, name = check_if_plan(lines[0])
    if status in (LINE_PLAN, LINE_PROPOSED_PLAN):
        return (is_content_block(lines), False, name)
    return (False, False, name)


def is_block_a_proposed_plan(lines):
    lines = list(lines)
    status, name = check_if_plan(lines[0])
    if status == LINE_PROPOSED_PLAN:
        return (is_content_block(lines), False, name)
    return (False, False, name)


def is_block_an_implicit_plan(lines):
    '''A plan label line followed by more top-level lines: the whole vote is the plan'''
    lines = list(lines)
    if len(lines) > 1:
        status, name = check_if_plan(lines[0])
        if status == LINE_PLAN and lines[1].depth == 0:
            return (True, True, name)
    return (False, False, '')


def is_block_a_single_line_plan(lines):
    lines = list(lines)
    status, name = check_if_plan(lines[0])
    if status == LINE_PLAN and len(lines) == 1:
        return (True, False, name)
    return (False, False, name)
