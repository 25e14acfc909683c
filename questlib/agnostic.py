#!/usr/bin/env python3
'''questlib/agnostic.py - Fuzzy ("agnostic") text comparison for votes and names'''

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
from functools import lru_cache
import unicodedata

APOSTROPHES = '‘’'
QUOTATIONS = '“〃”'
_QUOTE_FOLDING = str.maketrans({**{c: "'" for c in APOSTROPHES},
                                **{c: '"' for c in QUOTATIONS}})

# The comparer currently registered for every vote/name comparison.
# Anything hashed with it (VoteStorage) must be rebuilt when it changes.
_AGNOSTIC_SETTINGS = {
    'case_sensitive': False,
    'symbols_sensitive': False,
}


def fold_quotes(text):
    '''Convert fancy apostrophes and quotation marks to ASCII'''
    return text.translate(_QUOTE_FOLDING)


@lru_cache(maxsize=65536)
def _normalize(text, case_sensitive, symbols_sensitive):
    text = fold_quotes(text)
    # Drop diacritics; compare width/compatibility forms as equal
    text = unicodedata.normalize('NFKD', text)
    text = ''.join(c for c in text if unicodedata.category(c) != 'Mn')
    if not case_sensitive:
        text = text.casefold()
    if not symbols_sensitive:
        text = ''.join(c for c in text
                       if unicodedata.category(c)[0] not in 'PSZC')
    return text


def register_agnostic_comparer(case_sensitive=False, symbols_sensitive=False):
    '''Set the global comparer flags.

    Returns True if the flags changed, in which case any hash-keyed
    structure built with the old flags is stale.
    '''
    new_settings = {'case_sensitive': bool(case_sensitive),
                    'symbols_sensitive': bool(symbols_sensitive)}
    if new_settings == _AGNOSTIC_SETTINGS:
        return False
    questlib_test_log(f"agnostic comparer: {_AGNOSTIC_SETTINGS} -> {new_settings}")
    _AGNOSTIC_SETTINGS.update(new_settings)
    return True


def agnostic_settings():
    return dict(_AGNOSTIC_SETTINGS)


def agnostic_key(text, case_sensitive=None, symbols_sensitive=None):
    '''Normalized form of text under the current (or given) comparer flags'''
    if text is None:
        text = ''
    if case_sensitive is None:
        case_sensitive = _AGNOSTIC_SETTINGS['case_sensitive']
    if symbols_sensitive is None:
        symbols_sensitive = _AGNOSTIC_SETTINGS['symbols_sensitive']
    return _normalize(text, case_sensitive, symbols_sensitive)


def agnostic_equal(a, b):
    return agnostic_key(a) == agnostic_key(b)


def agnostic_compare(a, b):
    '''Returns -1, 0 or 1, the way a sort comparison function would'''
    akey = agnostic_key(a)
    bkey = agnostic_key(b)
    if akey == bkey:
        return 0
    return -1 if akey < bkey else 1


def agnostic_hash(text):
    return hash(agnostic_key(text))


def insensitive_key(text):
    '''Case-insensitive, symbol-insensitive key regardless of settings'''
    return agnostic_key(text, case_sensitive=False, symbols_sensitive=False)
