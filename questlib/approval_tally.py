#!/usr/bin/env python3
'''questlib/approval_tally.py - Functions for tallying approval votes'''

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

from questlib.core import *
from questlib.util import *
import argparse

# Marker values above this approve; the rest disapprove
APPROVAL_CUTOFF = 50


def approval_task(entries):
    counted = []
    for block, supporters in entries:
        supporters = non_rank_supporters(supporters)
        if not supporters:
            continue
        approve = sum(1 for b in supporters.values()
                      if b.marker_value > APPROVAL_CUTOFF)
        disapprove = len(supporters) - approve
        counted.append((block, list(supporters), approve, disapprove))
    counted.sort(key=lambda c: (-(c[2] - c[3]), content_sort_key(c[0])))
    retval = []
    for slot, (block, voters, approve, disapprove) in enumerate(counted):
        retval.append({
            'rank': slot + 1,
            'label': rank_slot_label(slot),
            'vote': block,
            'score': approve - disapprove,
            'approve': approve,
            'disapprove': disapprove,
            'voters': voters,
        })
    return retval


def approval_result_from_storage(storage, task_list=None):
    """Approval results (net of + and - markers) for every task."""
    groups = group_votes_by_task(storage, MARKER_APPROVAL)
    tasks = {task: approval_task(groups[task])
             for task in order_tasks(groups, task_list)}
    notices = []
    if not tasks:
        notices.append(make_notice('note', 'No approval votes found'))
    return {'method': 'approval', 'tasks': tasks, 'notices': notices}


def main():
    """Print approval results for a post dump file"""
    from questlib.postdump_fmt import read_posts_file
    from questlib.tally import tally_posts
    from questlib.textoutput import texttable_approval_result
    parser = argparse.ArgumentParser(description='Approval vote results')
    parser.add_argument('input_file', help='Post dump file')
    args = parser.parse_args()
    tally = tally_posts(read_posts_file(args.input_file))
    print(texttable_approval_result(approval_result_from_storage(tally.storage)))


if __name__ == "__main__":
    main()
