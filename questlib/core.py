#!/usr/bin/env python3
'''questlib/core.py - Core constants, exceptions and cancellation for questlib'''

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

from questlib import devtools
import re
import threading

# Marker types of vote lines (and vote categories)
MARKER_NONE = 'none'
MARKER_VOTE = 'vote'
MARKER_RANK = 'rank'
MARKER_SCORE = 'score'
MARKER_APPROVAL = 'approval'
MARKER_CONTINUATION = 'continuation'
MARKER_PLAN = 'plan'
MARKER_TYPES = (MARKER_NONE, MARKER_VOTE, MARKER_RANK, MARKER_SCORE,
                MARKER_APPROVAL, MARKER_CONTINUATION, MARKER_PLAN)

# Marker values for the markers that don't carry a number
VOTE_MARKER_VALUE = 100
APPROVE_MARKER_VALUE = 80
DISAPPROVE_MARKER_VALUE = 20

# Display marker for plan blocks
PLAN_NAME_MARKER = '◈'

# Partition modes
PARTITION_NONE = 'none'
PARTITION_BY_LINE = 'by_line'
PARTITION_BY_LINE_TASK = 'by_line_task'
PARTITION_BY_BLOCK = 'by_block'
PARTITION_BY_BLOCK_ALL = 'by_block_all'
PARTITION_MODES = (PARTITION_NONE, PARTITION_BY_LINE, PARTITION_BY_LINE_TASK,
                   PARTITION_BY_BLOCK, PARTITION_BY_BLOCK_ALL)

# Identity types of an Origin
IDENTITY_USER = 'user'
IDENTITY_PLAN = 'plan'

# Ranked vote counting methods
RANK_METHOD_RIRV = 'rirv'
RANK_METHOD_IRV = 'irv'
RANK_METHOD_BORDA = 'borda'
RANK_METHOD_BALDWIN = 'baldwin'
RANK_METHODS = (RANK_METHOD_RIRV, RANK_METHOD_IRV, RANK_METHOD_BORDA,
                RANK_METHOD_BALDWIN)

TASKS_AS_TALLIED = 'as_tallied'
TASKS_ALPHABETICAL = 'alphabetical'
TASKS_ORDERINGS = (TASKS_AS_TALLIED, TASKS_ALPHABETICAL)

# A block gets the category of a marker type that at least this
# portion of its supporters used
CATEGORY_THRESHOLD = 0.83


class QuestTallyException(Exception):
    def __init__(self, value=None, message="QuestTallyException glares at you"):
        self.value = value
        self.message = message
        self.debugarray = list(devtools.DEBUGARRAY)
        super().__init__(self.message)


class VoteLineParseError(QuestTallyException):
    '''A line of post text doesn't match the vote line grammar'''


class VoteReferenceError(QuestTallyException):
    '''A plan or user citation that can't be resolved'''


class VoteOperationError(QuestTallyException):
    '''Structural misuse of the vote model'''


class QuestConfigError(QuestTallyException):
    '''Invalid quest configuration'''


class TallyCancelled(QuestTallyException):
    '''Raised at a post/pass boundary once a tally has been cancelled'''


class CancellationToken:
    """Cooperative cancellation signal shared between a tally and its caller"""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def is_cancelled(self):
        return self._event.is_set()

    def raise_if_cancelled(self, where=None):
        if self._event.is_set():
            msg = "Tally cancelled"
            if where:
                msg += f" ({where})"
            raise TallyCancelled(value=where, message=msg)


def normalize_partition_mode(mode):
    '''Accept "ByLine", "by-line", "by_line" etc; return a PARTITION_* value'''
    if mode is None:
        return PARTITION_NONE
    modestr = re.sub(r'(?<=[a-z])(?=[A-Z])', '_', str(mode).strip())
    modestr = re.sub(r'[\s\-]+', '_', modestr).lower()
    if modestr not in PARTITION_MODES:
        msg = f"Unknown partition mode: {mode}"
        raise VoteOperationError(value=mode, message=msg)
    return modestr


def make_notice(notice_type, short, long=None):
    '''Build a notice dict for a tally result'''
    notice = {'notice_type': notice_type, 'short': short}
    if long:
        notice['long'] = long
    return notice
