#!/usr/bin/env python3
'''questlib/util.py - misc helpers shared by the vote counters'''

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
from questlib.core import MARKER_RANK
import math

RANK_SLOT_LABELS = ['Winner', 'First Runner Up', 'Second Runner Up',
                    'Third Runner Up', 'Honorable Mention']
MAX_RANK_SLOTS = 9
MAX_RANK = 9
WILSON_Z = 1.96


def rank_slot_label(index):
    '''Label for the 0-based result slot; slots past the named ones are numbered'''
    if index < len(RANK_SLOT_LABELS):
        return RANK_SLOT_LABELS[index]
    return f"Rank {index + 1}"


def lower_wilson_score(ratings, z=WILSON_Z):
    '''Lower bound of the Wilson score interval for ratings in [0, 1].

    Treats the sum of ratings as the count of positive votes out of
    len(ratings).  Returns 0.0 for no ratings.
    '''
    n = len(ratings)
    if n == 0:
        return 0.0
    phat = sum(ratings) / n
    z2 = z * z
    center = phat + z2 / (2 * n)
    spread = z * math.sqrt((phat * (1 - phat) + z2 / (4 * n)) / n)
    return (center - spread) / (1 + z2 / n)


def rank_rating(rank):
    '''Rank 1 rates 1.0, each rank below that 1/8 less; ranks past 9 count as 9'''
    rank = min(max(rank, 1), MAX_RANK)
    return 1 - (rank - 1) * 0.125


def borda_points(rank):
    rank = min(max(rank, 1), MAX_RANK)
    return 10 - rank


def content_sort_key(block):
    return block.sort_content()


def user_supporters(supporters):
    '''Only real users count toward results; plans just carry votes'''
    return {origin: block for origin, block in supporters.items()
            if not origin.is_plan}


def non_rank_supporters(supporters):
    '''Supporters who didn't use a rank marker; rank numbers aren't scores'''
    return {origin: block for origin, block in supporters.items()
            if block.marker_type != MARKER_RANK}


def group_votes_by_task(storage, category=None):
    '''{task: [(key block, {user origin: supporter block}), ...]}

    Tasks are grouped with the fuzzy comparer; the first spelling seen
    is the one used.  Blocks with no user supporters are left out, and
    when category is given, so are blocks of other categories.
    '''
    groups = {}
    names = {}
    for block in storage.get_all_votes():
        if category is not None and block.category != category:
            continue
        supporters = user_supporters(storage.get_supporters_for(block) or {})
        if not supporters:
            continue
        taskkey = agnostic_key(block.task)
        name = names.setdefault(taskkey, block.task)
        groups.setdefault(name, []).append((block, supporters))
    return groups


def order_tasks(groups, task_list=None):
    '''Task names in task_list order, then any others as first seen'''
    retval = []
    folded = {t.casefold(): t for t in groups}
    for task in task_list or []:
        if (name := folded.get(task.casefold())) is not None and name not in retval:
            retval.append(name)
    for task in groups:
        if task not in retval:
            retval.append(task)
    return retval
