#!/usr/bin/env python3
'''questlib/voteline.py - Parsing individual vote lines out of post text'''

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

from questlib.agnostic import agnostic_key, fold_quotes
from questlib.core import *
from questlib.voteregex import *
import argparse
import re
import sys

_VOTELINE_RE = re.compile(VOTELINE_REGEX, re.VERBOSE)
_MARKER_RE = re.compile(MARKER_REGEX, re.VERBOSE)
_BBCODE_RE = re.compile(BBCODE_TAG_REGEX)
_EXTENDED_RE = re.compile(EXTENDED_TEXT_REGEX, re.VERBOSE)

PREFIX_CHARS = '-–—'


def strip_bbcode(text):
    '''Remove 『tag』 style BBCode from text'''
    if not text:
        return ''
    return _BBCODE_RE.sub('', text)


def get_marker_type(marker):
    '''Returns (marker_type, marker_value) for a marker string.

    Unrecognized markers are (MARKER_NONE, 0).
    '''
    if not marker:
        return (MARKER_NONE, 0)
    m = _MARKER_RE.match(marker)
    if not m:
        return (MARKER_NONE, 0)
    if m.group('vote'):
        return (MARKER_VOTE, VOTE_MARKER_VALUE)
    if m.group('value'):
        value = int(m.group('value'))
        if m.group('percent') and not m.group('rank'):
            return (MARKER_SCORE, min(value, 100))
        # A bare number is a rank
        return (MARKER_RANK, max(1, min(value, 99)))
    if m.group('plusscore'):
        # 1-9 scale stored as a percentage
        return (MARKER_SCORE, int(int(m.group('plusscore')) * 100 / 9 + 0.5))
    if m.group('approval'):
        if m.group('approval') == '+':
            return (MARKER_APPROVAL, APPROVE_MARKER_VALUE)
        return (MARKER_APPROVAL, DISAPPROVE_MARKER_VALUE)
    if m.group('continuation'):
        return (MARKER_CONTINUATION, 0)
    return (MARKER_NONE, 0)


class VoteLine:
    '''One line of a vote: prefix, marker, optional task, and content.'''

    def __init__(self, prefix, marker, task, content,
                 marker_type=MARKER_VOTE, marker_value=VOTE_MARKER_VALUE):
        self.prefix = prefix or ''
        self.marker = marker or ''
        self.task = (task or '').strip()
        self.content = (content or '').strip()
        self.marker_type = marker_type
        self.marker_value = marker_value
        self.depth = len(self.prefix)
        self.clean_content = strip_bbcode(self.content).strip()

    # Derived lines
    def with_prefix_depth(self, depth):
        depth = max(0, depth)
        return VoteLine('-' * depth, self.marker, self.task, self.content,
                        self.marker_type, self.marker_value)

    def get_promoted_line(self, levels=1):
        '''Line with its depth reduced by levels'''
        return self.with_prefix_depth(self.depth - levels)

    def with_marker(self, marker, marker_type, marker_value):
        return VoteLine(self.prefix, marker, self.task, self.content,
                        marker_type, marker_value)

    def with_task(self, task):
        return VoteLine(self.prefix, self.marker, task, self.content,
                        self.marker_type, self.marker_value)

    def with_content(self, content):
        return VoteLine(self.prefix, self.marker, self.task, content,
                        self.marker_type, self.marker_value)

    def with_trimmed_content(self):
        '''Drop an extended description following "Label: " or "Label - "'''
        m = _EXTENDED_RE.match(self.content)
        if m and len(strip_bbcode(m.group('extended'))) > len(strip_bbcode(m.group('label'))):
            return self.with_content(m.group('label').strip())
        return self

    # Rendering
    def to_override_string(self, display_marker=None, display_task=None):
        marker = self.marker if display_marker is None else display_marker
        task = self.task if display_task is None else display_task
        taskstr = f"[{task}]" if task else ""
        return f"{self.prefix}[{marker}]{taskstr} {self.content}"

    def to_comparable_string(self):
        return self.to_override_string(display_marker='')

    def __str__(self):
        return self.to_override_string()

    def __repr__(self):
        return f"VoteLine({str(self)!r})"

    # Comparison
    def _cmptuple(self):
        return (agnostic_key(self.clean_content), agnostic_key(self.task),
                self.depth)

    def __eq__(self, other):
        if not isinstance(other, VoteLine):
            return NotImplemented
        return self._cmptuple() == other._cmptuple()

    def __lt__(self, other):
        if not isinstance(other, VoteLine):
            return NotImplemented
        return self._cmptuple() < other._cmptuple()

    def __hash__(self):
        return hash(self._cmptuple())


def parse_voteline(line):
    '''Parse one line of text into a VoteLine.

    Raises VoteLineParseError if the line isn't a vote line.
    '''
    if not line or not line.strip():
        raise VoteLineParseError(value=line, message="Empty line")
    line = line.replace('\r', '').replace('\n', '')
    m = _VOTELINE_RE.match(line)
    if not m:
        raise VoteLineParseError(value=line,
                                 message=f"Not a vote line: {line!r}")

    prefix = ''.join(c for c in strip_bbcode(m.group('prefix'))
                     if c in PREFIX_CHARS)
    if m.group('shortmark'):
        marker = m.group('shortmark')
    else:
        marker = re.sub(r'\s+', '', strip_bbcode(m.group('marker')))
    marker_type, marker_value = get_marker_type(marker)
    if marker_type == MARKER_NONE:
        raise VoteLineParseError(value=line,
                                 message=f"Unrecognized vote marker: [{marker}]")

    task = strip_bbcode(m.group('task') or '').strip()
    content = fold_quotes(m.group('content'))
    return VoteLine(prefix, marker, task, content, marker_type, marker_value)


def find_votelines(text):
    '''All the vote lines in a block of post text.

    Lines that don't parse are prose, not votes, and are skipped.  The
    first vote line found is always depth 0.
    '''
    retval = []
    for textline in (text or '').splitlines():
        try:
            voteline = parse_voteline(textline)
        except VoteLineParseError:
            continue
        if not retval and voteline.depth > 0:
            voteline = voteline.with_prefix_depth(0)
        retval.append(voteline)
    return retval


def main():
    """Parse vote lines from a file (or stdin) and print them"""
    parser = argparse.ArgumentParser(
        description='Parse vote lines from text')
    parser.add_argument('input_file', nargs='?', default='-',
                        help='Text file containing vote lines')
    args = parser.parse_args()
    if args.input_file == '-':
        text = sys.stdin.read()
    else:
        with open(args.input_file, 'r', encoding='utf-8') as f:
            text = f.read()
    for vl in find_votelines(text):
        print(f"{vl.depth} {vl.marker_type:12} {vl.marker_value:3} {vl}")


if __name__ == "__main__":
    main()
