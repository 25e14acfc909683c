#!/usr/bin/env python3
'''questlib/score_tally.py - Score vote counting'''

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


def score_task(entries):
    '''Score entries for one task, best first.

    Each supporter's value is a percentage (+N scores have already been
    scaled from 1-9).  Supporters who ranked the option instead are
    left out.  Ties on the average go to the option whose support is
    more consistent, by lower Wilson bound.
    '''
    scored = []
    for block, supporters in entries:
        supporters = non_rank_supporters(supporters)
        if not supporters:
            continue
        values = [b.marker_value for b in supporters.values()]
        average = sum(values) / len(values)
        lower_margin = 100 * lower_wilson_score([v / 100 for v in values])
        scored.append((block, list(supporters), average, lower_margin))
    scored.sort(key=lambda s: (-s[2], -s[3], content_sort_key(s[0])))
    retval = []
    for slot, (block, voters, average, lower_margin) in enumerate(scored):
        retval.append({
            'rank': slot + 1,
            'label': rank_slot_label(slot),
            'vote': block,
            # Halves round up
            'score': int(average + 0.5),
            'average': average,
            'lower_margin': lower_margin,
            'voters': voters,
        })
    return retval


def score_result_from_storage(storage, task_list=None):
    groups = group_votes_by_task(storage, MARKER_SCORE)
    tasks = {task: score_task(groups[task])
             for task in order_tasks(groups, task_list)}
    notices = []
    if not tasks:
        notices.append(make_notice('note', 'No score votes found'))
    return {'method': 'score', 'tasks': tasks, 'notices': notices}


def main():
    """Print score results for a post dump file"""
    from questlib.postdump_fmt import read_posts_file
    from questlib.tally import tally_posts
    from questlib.textoutput import texttable_score_result
    parser = argparse.ArgumentParser(description='Score vote results')
    parser.add_argument('input_file', help='Post dump file')
    args = parser.parse_args()
    tally = tally_posts(read_posts_file(args.input_file))
    print(texttable_score_result(score_result_from_storage(tally.storage)))


if __name__ == "__main__":
    main()
