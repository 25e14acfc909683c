#!/usr/bin/env python3
'''questlib/counter.py - Per-tally state: posts, plans, voters, votes and tasks'''

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

from questlib.config import QuestConfig
from questlib.core import *
from questlib.devtools import questlib_test_log
from questlib.origin import Origin
from questlib.storage import (VoteStorage, UNDO_MERGE, UNDO_SPLIT,
                              UNDO_REPLACE_TASK)


class MergeRecord:
    '''A manual merge/split/retask, kept so a re-tally can repeat it'''

    def __init__(self, action_type, from_vote, to_votes):
        self.action_type = action_type
        self.from_vote = from_vote
        self.to_votes = list(to_votes)

    @property
    def to_vote(self):
        return self.to_votes[0] if self.to_votes else self.from_vote

    def __repr__(self):
        return f"MergeRecord({self.action_type!r}, {self.from_vote!r}, {self.to_votes!r})"


class MergeRecords:
    '''Manual merges, recorded separately for each partition mode'''

    def __init__(self):
        self._lookup = {}

    def get_merge_record_list(self, partition_mode):
        return self._lookup.setdefault(partition_mode, [])

    def add_merge_record(self, from_vote, to_votes, action_type, partition_mode):
        record = MergeRecord(action_type, from_vote, to_votes)
        self.get_merge_record_list(partition_mode).append(record)
        return record

    def remove_last_merge_record(self, partition_mode, action_type):
        merges = self.get_merge_record_list(partition_mode)
        for i in range(len(merges) - 1, -1, -1):
            if merges[i].action_type == action_type:
                del merges[i]
                return True
        return False

    def reset(self):
        self._lookup = {}


def _contains_task(tasklist, task):
    folded = task.casefold()
    return any(t.casefold() == folded for t in tasklist)


class VoteCounter:
    '''Everything one tally run accumulates.

    Holds the posts being tallied, the origins of everyone (and every
    plan) that can be referenced, the plan bodies, the VoteStorage with
    the resulting votes, and the task list.  Manual merges survive
    reset() so that re-tallying repeats them.
    '''

    def __init__(self, config=None):
        self.config = config if config is not None else QuestConfig()
        self.storage = VoteStorage()
        self.posts = []
        self.future_references = set()
        self.user_merges = MergeRecords()
        self.is_tallying = False
        self.tally_was_cancelled = False
        # Origin -> Origin, so a name-only lookup gives back the full origin
        self._reference_origins = {}
        self._reference_plans = {}
        self._plan_authors = {}
        self._vote_defined_tasks = []
        self._user_defined_tasks = []
        self._task_list = []

    def reset(self):
        self.storage.reset()
        self.future_references = set()
        self._reference_origins = {}
        self._reference_plans = {}
        self._plan_authors = {}
        self._vote_defined_tasks = []
        self._task_list = []

    def reset_user_defined_tasks(self):
        self._user_defined_tasks = []
        self.reset_user_merges()

    def reset_user_merges(self):
        self.user_merges.reset()

    # Posts
    def add_posts(self, posts):
        self.posts = list(posts or [])
        questlib_test_log(f"Adding {len(self.posts)} posts to the VoteCounter.")

    def clear_posts(self):
        self.posts = []

    # Plan and voter references
    def add_reference_plan(self, plan_origin, plan, author=None):
        '''Register a plan body.  The first definition of a name wins.

        A later definition replaces the current one only when updating
        plans is allowed, it comes from the same source and author in a
        later post, and it has more than one line of different content.
        '''
        current = self._reference_origins.get(plan_origin)
        if current is None:
            self._reference_origins[plan_origin] = plan_origin
            self._reference_plans[plan_origin] = plan
            self._plan_authors[plan_origin] = author
            return True
        if not self.config.allow_users_to_update_plans:
            return False
        current_plan = self._reference_plans.get(current)
        current_author = self._plan_authors.get(current)
        if (plan_origin.source and plan_origin.source == current.source
                and (author is None or current_author is None or author == current_author)
                and plan_origin.post_id > current.post_id
                and len(plan) > 1
                and current_plan is not None
                and plan != current_plan):
            del self._reference_origins[current]
            del self._reference_plans[current]
            self._plan_authors.pop(current, None)
            self._reference_origins[plan_origin] = plan_origin
            self._reference_plans[plan_origin] = plan
            self._plan_authors[plan_origin] = author
            questlib_test_log(f"Plan {plan_origin} updated in post {plan_origin.post_id}")
            return True
        return False

    def add_reference_voter(self, voter):
        if voter in self._reference_origins:
            return False
        self._reference_origins[voter] = voter
        return True

    def add_future_reference(self, post):
        if post in self.future_references:
            return False
        self.future_references.add(post)
        return True

    def get_plan_origin_by_name(self, plan_name):
        if not plan_name:
            return None
        return self._reference_origins.get(Origin.from_name(plan_name, IDENTITY_PLAN))

    def get_voter_origin_by_name(self, voter_name):
        if not voter_name:
            return None
        return self._reference_origins.get(Origin.from_name(voter_name, IDENTITY_USER))

    def has_plan(self, plan_name):
        return self.get_plan_origin_by_name(plan_name) is not None

    def has_voter(self, voter_name):
        return self.get_voter_origin_by_name(voter_name) is not None

    def get_reference_plan(self, plan_origin):
        return self._reference_plans.get(plan_origin)

    def get_reference_plans(self):
        return dict(self._reference_plans)

    def get_last_post_by_author(self, author, max_post_id=None):
        '''Latest post by author, optionally only those before max_post_id'''
        if author not in self._reference_origins:
            return None
        candidates = [p for p in self.posts
                      if p.origin == author
                      and (not max_post_id or p.origin.post_id < max_post_id)]
        if not candidates:
            return None
        return max(candidates, key=lambda p: p.origin.post_id)

    def has_newer_vote(self, post):
        '''True if a later post by the same author has already been processed'''
        if not self.has_voter(post.origin.author):
            return False
        return any(p.processed and p.origin == post.origin
                   and p.origin.post_id > post.origin.post_id
                   for p in self.posts)

    def get_total_voter_count(self):
        return sum(1 for o in self._reference_origins if not o.is_plan)

    # Vote queries
    def get_votes_by(self, voter):
        return self.storage.get_votes_by(voter)

    def get_all_votes(self):
        return self.storage.get_all_votes()

    def get_all_voters(self):
        return self.storage.get_all_voters()

    def get_voters_for(self, vote):
        return self.storage.get_voters_for(vote)

    # Adding and changing votes
    def add_votes(self, vote_partitions, voter):
        vote_partitions = list(vote_partitions or [])
        if not vote_partitions:
            return False
        self.storage.add_votes(vote_partitions, voter)
        for partition in vote_partitions:
            self._add_potential_vote_task(partition.task)
        return True

    def merge(self, from_vote, to_vote):
        merged = self.storage.merge(from_vote, to_vote)
        if merged:
            self.user_merges.add_merge_record(from_vote, [to_vote], UNDO_MERGE,
                                              self.config.partition_mode)
        return merged

    def split(self, from_vote, to_votes):
        split = self.storage.split(from_vote, to_votes)
        if split:
            self.user_merges.add_merge_record(from_vote, to_votes, UNDO_SPLIT,
                                              self.config.partition_mode)
        return split

    def join(self, voters, target_voter):
        return self.storage.join(voters, target_voter)

    def delete(self, vote):
        return self.storage.delete(vote)

    def replace_task(self, vote, task):
        original = self.storage.get_key(vote)
        replaced = self.storage.replace_task(vote, task)
        if replaced:
            self.user_merges.add_merge_record(original, [original.with_task(task)],
                                              UNDO_REPLACE_TASK,
                                              self.config.partition_mode)
            self._add_potential_vote_task(task)
        return replaced

    @property
    def has_undo_actions(self):
        return self.storage.has_undo_actions

    def undo(self):
        if not self.storage.has_undo_actions:
            return False
        action_type = self.storage.undo_stack[-1].action_type
        self.user_merges.remove_last_merge_record(self.config.partition_mode,
                                                  action_type)
        return self.storage.undo()

    def run_merge_actions(self):
        '''Repeat the manual merges recorded for the current partition mode'''
        count = 0
        for record in self.user_merges.get_merge_record_list(self.config.partition_mode):
            if record.action_type == UNDO_SPLIT and record.to_votes:
                done = self.storage.split(record.from_vote, record.to_votes)
            elif record.action_type == UNDO_REPLACE_TASK:
                done = self.storage.replace_task(record.from_vote, record.to_vote.task)
            else:
                done = self.storage.merge(record.from_vote, record.to_vote)
            count += 1 if done else 0
        return count

    # Tasks
    def _add_potential_vote_task(self, task):
        if not task:
            return
        if _contains_task(self._user_defined_tasks, task):
            return
        if not _contains_task(self._vote_defined_tasks, task):
            self._vote_defined_tasks.append(task)
            self._task_list.append(task)

    def add_user_defined_task(self, task):
        task = (task or '').strip()
        if not task or _contains_task(self._user_defined_tasks, task):
            return False
        self._user_defined_tasks.append(task)
        if not _contains_task(self._task_list, task):
            self._task_list.append(task)
        return True

    def add_user_defined_tasks_to_task_list(self):
        for task in self._user_defined_tasks:
            if not _contains_task(self._task_list, task):
                self._task_list.append(task)

    def reset_tasks_order(self, ordering):
        if ordering == TASKS_ALPHABETICAL:
            self._task_list.sort(key=str.casefold)
        elif ordering == TASKS_AS_TALLIED:
            self._task_list = []
            for task in self._vote_defined_tasks + self._user_defined_tasks:
                if not _contains_task(self._task_list, task):
                    self._task_list.append(task)
        else:
            raise VoteOperationError(value=ordering,
                                     message=f"Unknown tasks ordering: {ordering}")

    @property
    def task_list(self):
        return list(self._task_list)
