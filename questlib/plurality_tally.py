#!/usr/bin/env python3
'''questlib/plurality_tally.py - Plain vote counting: most supporters wins'''

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


def plurality_result_from_storage(storage, task_list=None):
    """Count the supporters of each plain vote, per task."""
    groups = group_votes_by_task(storage, MARKER_VOTE)
    tasks = {}
    winners = {}
    for task in order_tasks(groups, task_list):
        ordered = sorted(groups[task],
                         key=lambda e: (-len(e[1]), content_sort_key(e[0])))
        tasks[task] = [{
            'rank': slot + 1,
            'label': rank_slot_label(slot),
            'vote': block,
            'score': len(supporters),
            'voters': list(supporters),
        } for slot, (block, supporters) in enumerate(ordered)]
        topqty = tasks[task][0]['score']
        winners[task] = [e['vote'] for e in tasks[task] if e['score'] == topqty]

    notices = []
    if not tasks:
        notices.append(make_notice('note', 'No plain votes found'))
    for task, taskwinners in winners.items():
        if len(taskwinners) > 1:
            tasklabel = f"[{task}]" if task else "(no task)"
            notices.append(make_notice(
                'note', f"Tie for the most votes in {tasklabel}",
                f"{len(taskwinners)} votes have {tasks[task][0]['score']} supporters each."))
    return {'method': 'plurality', 'tasks': tasks, 'winners': winners,
            'notices': notices}


def main():
    """Print plurality results for a post dump file"""
    from questlib.postdump_fmt import read_posts_file
    from questlib.tally import tally_posts
    from questlib.textoutput import texttable_plurality_result
    parser = argparse.ArgumentParser(description='Plurality vote results')
    parser.add_argument('input_file', help='Post dump file')
    args = parser.parse_args()
    tally = tally_posts(read_posts_file(args.input_file))
    print(texttable_plurality_result(plurality_result_from_storage(tally.storage)))


if __name__ == "__main__":
    main()
