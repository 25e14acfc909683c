#!/usr/bin/env python3
'''questlib/irv_tally.py - Ranked vote counting: instant runoff, rated instant runoff, Borda, Baldwin'''

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
from questlib.devtools import questlib_test_log, questlib_debugprint, questlib_elapsed
from questlib.util import *
import argparse
import time


def _rank_ballots(entries):
    '''Options and ballots for one task.

    Returns (options, ballots) where options is a list of
    (key block, [voters]) and each ballot is {option index: rank}.
    Supporters who didn't use a rank marker are left out.
    '''
    options = []
    ballots = {}
    for i, (block, supporters) in enumerate(entries):
        voters = []
        for origin, supporter_block in supporters.items():
            if supporter_block.marker_type != MARKER_RANK:
                continue
            ballots.setdefault(origin, {})[i] = supporter_block.marker_value
            voters.append(origin)
        options.append((block, voters))
    return options, list(ballots.values())


def _borda_scores(options, ballots):
    scores = [0] * len(options)
    for ballot in ballots:
        for i, rank in ballot.items():
            scores[i] += borda_points(rank)
    return scores


def _entry(slot, block, voters, score, **extra):
    retval = {
        'rank': slot + 1,
        'label': rank_slot_label(slot),
        'vote': block,
        'score': score,
        'voters': list(voters),
    }
    retval.update(extra)
    return retval


def borda_rank_task(entries):
    options, ballots = _rank_ballots(entries)
    scores = _borda_scores(options, ballots)
    order = sorted(range(len(options)),
                   key=lambda i: (-scores[i], content_sort_key(options[i][0])))
    return [_entry(slot, options[i][0], options[i][1], scores[i])
            for slot, i in enumerate(order[:MAX_RANK_SLOTS])]


def _irv_pick(remaining, ballots, borda, contents):
    '''Instant runoff among remaining options; returns (winner, first_prefs, rounds)'''
    remaining = set(remaining)
    rounds = 0
    while True:
        rounds += 1
        counts = {i: 0 for i in remaining}
        active = 0
        for ballot in ballots:
            ranked = [(rank, contents[i], i) for i, rank in ballot.items()
                      if i in remaining]
            if not ranked:
                continue
            active += 1
            counts[min(ranked)[2]] += 1
        if len(remaining) == 1:
            winner = next(iter(remaining))
            return winner, counts[winner], rounds
        if active == 0:
            winner = min(remaining, key=lambda i: (-borda[i], contents[i]))
            return winner, 0, rounds
        best = max(counts.values())
        leaders = [i for i in remaining if counts[i] == best]
        if best * 2 > active and len(leaders) == 1:
            return leaders[0], best, rounds
        fewest = min(counts.values())
        losers = [i for i in remaining if counts[i] == fewest]
        # Lowest Borda score goes first; after that, last in content order
        loser = max(losers, key=lambda i: (-borda[i], contents[i]))
        remaining.discard(loser)


def irv_rank_task(entries):
    options, ballots = _rank_ballots(entries)
    borda = _borda_scores(options, ballots)
    contents = [content_sort_key(block) for block, _ in options]
    remaining = list(range(len(options)))
    retval = []
    for slot in range(min(MAX_RANK_SLOTS, len(options))):
        winner, first_prefs, rounds = _irv_pick(remaining, ballots, borda, contents)
        retval.append(_entry(slot, options[winner][0], options[winner][1],
                             first_prefs, borda=borda[winner], rounds=rounds))
        remaining.remove(winner)
    return retval


def _remaining_borda(remaining, ballots):
    '''Borda scores with each ballot's ranks closed up over the remaining options'''
    scores = {i: 0 for i in remaining}
    for ballot in ballots:
        ranks = {i: rank for i, rank in ballot.items() if i in remaining}
        for i, rank in ranks.items():
            place = 1 + sum(1 for r in ranks.values() if r < rank)
            scores[i] += borda_points(place)
    return scores


def _baldwin_pick(remaining, ballots, contents):
    remaining = set(remaining)
    rounds = 0
    while True:
        rounds += 1
        scores = _remaining_borda(remaining, ballots)
        if len(remaining) == 1:
            winner = next(iter(remaining))
            return winner, scores[winner], rounds
        loser = max(remaining, key=lambda i: (-scores[i], contents[i]))
        remaining.discard(loser)


def baldwin_rank_task(entries):
    '''Each slot: drop the lowest Borda score, recount, repeat until one is left'''
    options, ballots = _rank_ballots(entries)
    contents = [content_sort_key(block) for block, _ in options]
    remaining = list(range(len(options)))
    retval = []
    for slot in range(min(MAX_RANK_SLOTS, len(options))):
        winner, score, rounds = _baldwin_pick(remaining, ballots, contents)
        retval.append(_entry(slot, options[winner][0], options[winner][1],
                             score, rounds=rounds))
        remaining.remove(winner)
    return retval


def _preference_counts(ballots, opt1, opt2):
    '''How many voters prefer opt1 over opt2, and vice versa.  Unranked loses.'''
    count1 = count2 = 0
    for ballot in ballots:
        rank1 = ballot.get(opt1)
        rank2 = ballot.get(opt2)
        if rank1 is None and rank2 is None:
            continue
        if rank1 is None:
            count2 += 1
        elif rank2 is None:
            count1 += 1
        elif rank1 < rank2:
            count1 += 1
        elif rank2 < rank1:
            count2 += 1
    return count1, count2


def rirv_rank_task(entries):
    '''Rated instant runoff.

    Each slot goes to whichever of the two options with the best lower
    Wilson score is preferred by more voters; ties go to the better
    rated option.
    '''
    options, ballots = _rank_ballots(entries)
    contents = [content_sort_key(block) for block, _ in options]
    wilson = []
    for i in range(len(options)):
        ratings = [rank_rating(ballot[i]) for ballot in ballots if i in ballot]
        wilson.append(lower_wilson_score(ratings))
    remaining = list(range(len(options)))
    retval = []
    for slot in range(min(MAX_RANK_SLOTS, len(options))):
        rated = sorted(remaining, key=lambda i: (-wilson[i], contents[i]))
        winner = rated[0]
        counts = (0, 0)
        if len(rated) > 1:
            counts = _preference_counts(ballots, rated[0], rated[1])
            if counts[1] > counts[0]:
                winner = rated[1]
        retval.append(_entry(slot, options[winner][0], options[winner][1],
                             round(wilson[winner], 5),
                             wilson=wilson[winner], runoff=counts))
        remaining.remove(winner)
    return retval


RANK_TASK_FUNCTIONS = {
    RANK_METHOD_RIRV: rirv_rank_task,
    RANK_METHOD_IRV: irv_rank_task,
    RANK_METHOD_BORDA: borda_rank_task,
    RANK_METHOD_BALDWIN: baldwin_rank_task,
}


def rank_result_from_storage(storage, method=RANK_METHOD_RIRV, task_list=None):
    '''Ranked results for every task that has rank votes'''
    t0 = time.perf_counter()
    if method not in RANK_TASK_FUNCTIONS:
        raise QuestConfigError(value=method,
                               message=f"Unknown rank counter: {method}")
    rank_task = RANK_TASK_FUNCTIONS[method]
    groups = group_votes_by_task(storage, MARKER_RANK)
    notices = []
    tasks = {}
    for task in order_tasks(groups, task_list):
        tasks[task] = rank_task(groups[task])
    if not tasks:
        notices.append(make_notice('note', 'No ranked votes found'))
    questlib_debugprint("irv_tally", f"rank_result_from_storage({method}): "
                        f"{questlib_elapsed(t0)} for {len(tasks)} tasks")
    questlib_test_log(f"{method}: {len(tasks)} tasks")
    return {'method': method, 'tasks': tasks, 'notices': notices}


def main():
    """Print ranked results for a post dump file"""
    from questlib.postdump_fmt import read_posts_file
    from questlib.tally import tally_posts
    from questlib.textoutput import texttable_rank_result
    parser = argparse.ArgumentParser(description='Ranked vote results')
    parser.add_argument('input_file', help='Post dump file')
    parser.add_argument('--rank-method', choices=RANK_METHODS,
                        default=RANK_METHOD_RIRV)
    args = parser.parse_args()
    tally = tally_posts(read_posts_file(args.input_file))
    result = rank_result_from_storage(tally.storage, args.rank_method,
                                      tally.counter.task_list)
    print(texttable_rank_result(result))


if __name__ == "__main__":
    main()
