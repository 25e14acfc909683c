#!/usr/bin/env python3
'''questlib/filter.py - User-defined filters for tasks, usernames and threadmarks'''

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

from questlib.devtools import questlib_test_log
import re
import unicodedata

OMAKE_FILTER = r'\bomake\b'

_EMPTY_RE = re.compile(r'^$')
# From the start of the line, require a negative lookahead for a
# value that is followed by that value.
_ALWAYS_FALSE_RE = re.compile(r'^(?!x)x')
_JS_REGEX_RE = re.compile(r'^/(?P<regex>.+)/(?P<options>[ugi]{0,3})$')
_ESCAPE_CHARS_RE = re.compile(r'([.?(){}^$\[\]+|\\])')


def remove_unsafe_characters(text):
    '''Drop control and formatting characters (zero-width joiners etc)'''
    return ''.join(c for c in text if unicodedata.category(c) not in ('Cc', 'Cf'))


class Filter:
    '''Match text against a user-supplied filter string.

    A filter string is either a comma-separated list of terms (with *
    as a glob), or a /regex/ in javascript notation.  A leading ! inverts
    the filter.  Matching is always case-insensitive.
    '''

    def __init__(self, filter_string=None, inject_string=None, regex=None):
        self.is_inverted = False
        if regex is not None:
            if isinstance(regex, str):
                regex = re.compile(regex, re.IGNORECASE)
            self._regex = regex
        elif filter_string is None and inject_string is None:
            self._regex = _ALWAYS_FALSE_RE
        else:
            self._regex = self._create_regex(filter_string or '', inject_string)

    @classmethod
    def empty(cls):
        return cls(regex=_EMPTY_RE)

    @classmethod
    def default_threadmark_filter(cls):
        return cls('', OMAKE_FILTER)

    def _create_regex(self, filter_string, inject_string):
        userstr = remove_unsafe_characters(filter_string).strip()
        if userstr.startswith('!'):
            self.is_inverted = True
            userstr = userstr[1:].strip()
        if m := _JS_REGEX_RE.match(userstr):
            return self._create_defined_regex(m.group('regex'), inject_string)
        return self._create_simple_regex(userstr, inject_string)

    def _create_defined_regex(self, regexstr, inject_string):
        if inject_string:
            regexstr = f"{regexstr}|{inject_string}"
        try:
            return re.compile(regexstr, re.IGNORECASE)
        except re.error as e:
            questlib_test_log(f"Failed to create regex using string: [{regexstr}] {e}")
            self.is_inverted = False
            return _ALWAYS_FALSE_RE

    def _create_simple_regex(self, simplestr, inject_string):
        if not simplestr and not inject_string:
            return _EMPTY_RE
        parts = []
        for split in simplestr.split(','):
            term = split.strip()
            if not term:
                continue
            term = _ESCAPE_CHARS_RE.sub(r'\\\1', term)
            term = term.replace('*', '.*')
            prebound = r'\b' if re.match(r'^\w', term) else ''
            postbound = r'\b' if re.search(r'\w$', term) else ''
            parts.append(f"{prebound}{term}{postbound}")
        if inject_string:
            parts.append(inject_string)
        regexstr = '|'.join(parts)
        try:
            return re.compile(regexstr, re.IGNORECASE)
        except re.error as e:
            questlib_test_log(f"Failed to create regex using string: [{regexstr}] {e}")
            self.is_inverted = False
            return _ALWAYS_FALSE_RE

    def match(self, text):
        '''True if text matches the filter (or doesn't, if inverted)'''
        return bool(self._regex.search(text or '')) ^ self.is_inverted

    @property
    def is_empty(self):
        return self._regex is _EMPTY_RE

    @property
    def is_always_false(self):
        return self._regex is _ALWAYS_FALSE_RE

    @property
    def pattern(self):
        return self._regex.pattern

    def __repr__(self):
        inv = "!" if self.is_inverted else ""
        return f"Filter({inv}{self._regex.pattern!r})"
