#!/usr/bin/env python3
'''questlib/textoutput.py - Text (and JSON-ready) renderings of tally results'''

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

from questlib.approval_tally import approval_result_from_storage
from questlib.core import *
from questlib.irv_tally import rank_result_from_storage
from questlib.origin import Origin
from questlib.plurality_tally import plurality_result_from_storage
from questlib.score_tally import score_result_from_storage
from questlib.util import group_votes_by_task, order_tasks
from questlib.voteblock import VoteLineBlock
import re
import textwrap
from texttable import Texttable

DEFAULT_WIDTH = 100
OUTPUT_METHODS = ('plurality', 'ranked', 'score', 'approval')


def vote_text(block):
    '''The lines of a vote block without their markers'''
    lines = []
    for i, ln in enumerate(block.lines):
        task = block.task if i == 0 else ln.task
        taskstr = f"[{task}] " if task else ""
        lines.append(f"{ln.prefix}{taskstr}{ln.content}")
    return "\n".join(lines)


def task_title(task):
    return f"[{task}]" if task else "(no task)"


def _draw(table):
    tabletext = table.draw()
    tabletextarray = tabletext.splitlines()

    # make sure the header/body separator is "====" rather than "----"
    for i, ln in enumerate(tabletextarray[1:], start=1):
        if ln.startswith('+') and re.fullmatch(r'[+=\-]+', ln):
            tabletextarray[i] = re.sub("-", "=", ln)
            break

    return "\n".join(tabletextarray) + "\n"


def _new_table(header, width):
    table = Texttable(max_width=width)
    table.set_cols_dtype(['t'] * len(header))
    table.header(header)
    return table


def format_notices_for_text_output(notices, width=DEFAULT_WIDTH):
    retval = ""
    for notice in notices or []:
        retval += f"[{notice['notice_type'].upper()}] {notice['short']}\n"
        if notice.get('long'):
            retval += textwrap.fill(notice['long'], width=width,
                                    initial_indent='    ',
                                    subsequent_indent='    ')
            retval += "\n"
    return retval


def voters_text(voters):
    return ", ".join(str(v) for v in voters)


def texttable_votes_by_task(storage, width=DEFAULT_WIDTH, task_list=None):
    '''The whole consensus store, one table per task'''
    groups = group_votes_by_task(storage)
    retval = ""
    for task in order_tasks(groups, task_list):
        table = _new_table(['Category', 'Vote', 'Support', 'Voters'], width)
        for block, supporters in groups[task]:
            table.add_row([block.category, vote_text(block), str(len(supporters)),
                           voters_text(supporters)])
        retval += f"{task_title(task)}\n"
        retval += _draw(table)
        retval += "\n"
    return retval


def _texttable_result(result, title, header, rowfunc, width):
    retval = f"== {title} ==\n"
    for task, entries in result['tasks'].items():
        table = _new_table(header, width)
        for entry in entries:
            table.add_row(rowfunc(entry))
        retval += f"{task_title(task)}\n"
        retval += _draw(table)
        retval += "\n"
    retval += format_notices_for_text_output(result.get('notices'), width)
    return retval


def texttable_rank_result(result, width=DEFAULT_WIDTH):
    def row(e):
        return [e['label'], vote_text(e['vote']), str(e['score']),
                voters_text(e['voters'])]
    title = f"Ranked results ({result['method']})"
    return _texttable_result(result, title, ['Place', 'Vote', 'Score', 'Voters'],
                             row, width)


def texttable_score_result(result, width=DEFAULT_WIDTH):
    def row(e):
        return [str(e['rank']), vote_text(e['vote']), f"{e['average']:.1f}",
                f"{e['lower_margin']:.1f}", voters_text(e['voters'])]
    return _texttable_result(result, "Score results",
                             ['Rank', 'Vote', 'Average', 'Lower margin', 'Voters'],
                             row, width)


def texttable_approval_result(result, width=DEFAULT_WIDTH):
    def row(e):
        return [str(e['rank']), vote_text(e['vote']), str(e['score']),
                str(e['approve']), str(e['disapprove']), voters_text(e['voters'])]
    return _texttable_result(result, "Approval results",
                             ['Rank', 'Vote', 'Net', '+', '-', 'Voters'],
                             row, width)


def texttable_plurality_result(result, width=DEFAULT_WIDTH):
    def row(e):
        return [str(e['rank']), vote_text(e['vote']), str(e['score']),
                voters_text(e['voters'])]
    return _texttable_result(result, "Plurality results",
                             ['Rank', 'Vote', 'Votes', 'Voters'], row, width)


def results_for_methods(counter, methods=None):
    '''{method: counter result} for each requested output method'''
    if not methods or 'all' in methods:
        methods = OUTPUT_METHODS
    storage = counter.storage
    tasks = counter.task_list
    results = {}
    for method in methods:
        if method == 'plurality':
            results[method] = plurality_result_from_storage(storage, tasks)
        elif method == 'ranked':
            results[method] = rank_result_from_storage(
                storage, counter.config.rank_counter, tasks)
        elif method == 'score':
            results[method] = score_result_from_storage(storage, tasks)
        elif method == 'approval':
            results[method] = approval_result_from_storage(storage, tasks)
        else:
            raise QuestConfigError(value=method,
                                   message=f"Unknown output method: {method}")
    return results


_TEXTTABLE_FUNCS = {
    'plurality': texttable_plurality_result,
    'ranked': texttable_rank_result,
    'score': texttable_score_result,
    'approval': texttable_approval_result,
}


def tally_output_text(counter, methods=None, width=DEFAULT_WIDTH, notices=None):
    '''Full text report: summary, votes by task, then each method's results'''
    retval = ""
    retval += f"Posts tallied: {len(counter.posts)}\n"
    retval += f"Voters: {counter.get_total_voter_count()}\n"
    retval += f"Partition mode: {counter.config.partition_mode}\n\n"
    retval += texttable_votes_by_task(counter.storage, width, counter.task_list)
    for method, result in results_for_methods(counter, methods).items():
        if not result['tasks']:
            continue
        retval += _TEXTTABLE_FUNCS[method](result, width)
        retval += "\n"
    retval += format_notices_for_text_output(notices, width)
    return retval


def _jsonable(obj):
    if isinstance(obj, VoteLineBlock):
        return vote_text(obj)
    if isinstance(obj, Origin):
        return str(obj)
    if isinstance(obj, dict):
        return {str(k): _jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set)):
        return [_jsonable(v) for v in obj]
    return obj


def jsonable_votes(counter):
    retval = []
    for block, supporters in counter.storage.items():
        retval.append({
            'task': block.task,
            'category': block.category,
            'vote': vote_text(block),
            'voters': [str(o) for o in supporters],
        })
    return retval


def jsonable_tally_result(counter, methods=None, notices=None):
    '''Tally results with blocks and origins turned into strings'''
    counter.storage.get_all_votes()
    return {
        'post_count': len(counter.posts),
        'voter_count': counter.get_total_voter_count(),
        'tasks': counter.task_list,
        'votes': jsonable_votes(counter),
        'results': _jsonable(results_for_methods(counter, methods)),
        'notices': list(notices or []),
    }
