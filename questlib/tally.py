#!/usr/bin/env python3
'''questlib/tally.py - Running a tally over a thread's posts'''

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

from questlib.agnostic import register_agnostic_comparer
from questlib.config import QuestConfig
from questlib.constructor import VoteConstructor
from questlib.core import *
from questlib.counter import VoteCounter
from questlib.devtools import *
from questlib.voteblock import (is_block_a_proposed_plan,
                                is_block_an_explicit_plan,
                                is_block_an_implicit_plan,
                                is_block_a_single_line_plan)
import concurrent.futures
import time

# (as_blocks, plan detector), in the order plans are looked for
PLAN_PASSES = [
    (True, is_block_a_proposed_plan),
    (True, is_block_an_explicit_plan),
    (False, is_block_an_implicit_plan),
    (False, is_block_a_single_line_plan),
]


def _debugprint(msg):
    questlib_debugprint('tally', msg)


class Tally:
    '''Tallies posts into a VoteCounter according to a QuestConfig.

    One Tally owns one VoteCounter (and its VoteStorage).  Each call to
    tally_posts() starts over from scratch, apart from the recorded
    manual merges, which are repeated at the end.
    '''

    def __init__(self, config=None, counter=None):
        self.config = config if config is not None else QuestConfig()
        self.counter = counter if counter is not None else VoteCounter(self.config)
        self.counter.config = self.config
        self.constructor = VoteConstructor(self.counter)
        self.token = CancellationToken()
        self.notices = []
        self.apply_comparer()

    @property
    def storage(self):
        return self.counter.storage

    def apply_comparer(self):
        '''Register this tally's comparer flags; rebuild storage if they changed'''
        changed = register_agnostic_comparer(
            case_sensitive=self.config.case_is_significant,
            symbols_sensitive=self.config.whitespace_and_punctuation_is_significant)
        if changed:
            self.counter.storage.rebuild_index()
        return changed

    def set_config(self, config):
        self.config = config
        self.counter.config = config
        return self.apply_comparer()

    def set_comparer_flags(self, case_is_significant=None,
                           whitespace_and_punctuation_is_significant=None):
        return self.set_config(self.config.with_overrides(
            case_is_significant=case_is_significant,
            whitespace_and_punctuation_is_significant=whitespace_and_punctuation_is_significant))

    def cancel(self):
        self.token.cancel()

    def _notice(self, notice_type, short, long=None):
        self.notices.append(make_notice(notice_type, short, long))

    def filter_posts(self, posts):
        '''Posts worth tallying: with vote lines, and not filtered out'''
        config = self.config
        retval = []
        for post in posts:
            if not post.has_vote:
                continue
            if (config.use_custom_username_filters
                    and config.username_filter.match(post.origin.author)):
                questlib_test_log(f"Skipping post by filtered user {post.origin.author}")
                continue
            if (config.use_custom_post_filters
                    and post.origin.post_number in config.post_filter):
                questlib_test_log(f"Skipping filtered post #{post.origin.post_number}")
                continue
            retval.append(post)
        return retval

    def tally_posts(self, posts, token=None):
        '''Tally posts from scratch.  Returns a dict with the storage and notices.

        Raises TallyCancelled (after setting counter.tally_was_cancelled)
        if the token is cancelled at a post or pass boundary.
        '''
        t0 = time.perf_counter()
        if token is not None:
            self.token = token
        self.notices = []
        questlib_reset_debug_notes()
        self.apply_comparer()
        counter = self.counter
        counter.tally_was_cancelled = False
        counter.is_tallying = True
        try:
            counter.reset()
            counter.add_posts(self.filter_posts(posts))
            if counter.posts:
                self.preprocess_posts()
                _debugprint(f"preprocess done: {questlib_elapsed(t0)}")
                self.process_posts()
                _debugprint(f"process done: {questlib_elapsed(t0)}")
            for task in self.config.user_defined_tasks:
                counter.add_user_defined_task(task)
            counter.add_user_defined_tasks_to_task_list()
            counter.reset_tasks_order(self.config.tasks_ordering)
            counter.storage.clear_undo()
            replayed = counter.run_merge_actions()
            if replayed:
                questlib_debug_note(f"Replayed {replayed} manual merges")
        except TallyCancelled:
            counter.tally_was_cancelled = True
            raise
        finally:
            counter.is_tallying = False
        if self.notices:
            questlib_test_logblob(self.notices, 'NOTICES')
        _debugprint(f"tally_posts: {questlib_elapsed(t0)} "
                    f"for {len(counter.posts)} posts")
        return {
            'storage': counter.storage,
            'post_count': len(counter.posts),
            'voter_count': counter.get_total_voter_count(),
            'tasks': counter.task_list,
            'notices': self.notices,
        }

    def preprocess_posts(self):
        counter = self.counter
        for post in counter.posts:
            post.reset_working_state()
            counter.add_reference_voter(post.origin)

        for as_blocks, is_plan_fn in PLAN_PASSES:
            self.token.raise_if_cancelled('preprocessing plans')
            for post in counter.posts:
                plans = self.constructor.preprocess_post_get_plans(
                    post, self.config, as_blocks, is_plan_fn)
                for name, block in plans.items():
                    self._add_plan(post, name, block)

    def _add_plan(self, post, name, block):
        plan_name, plan = self.constructor.normalize_plan(name, block)
        plan_origin = post.origin.get_plan_origin(plan_name)
        if not self.counter.add_reference_plan(plan_origin, plan, author=post.origin):
            return False
        partitions = self.constructor.partition_plan(plan, self.config.partition_mode)
        self.counter.add_votes(partitions, plan_origin)
        questlib_test_log(f"Plan {plan_name} from {post.origin.author}: "
                          f"{len(partitions)} partitions")
        return True

    def process_posts(self):
        '''Process posts until every one is done (or stuck, if not forcing)'''
        counter = self.counter
        unprocessed = list(counter.posts)
        passes = 0
        while unprocessed:
            self.token.raise_if_cancelled('processing posts')
            passes += 1
            processed_any = False
            for post in unprocessed:
                self.token.raise_if_cancelled(f"post {post.origin.post_id}")
                results = self.constructor.process_post_get_votes(post, self.config)
                if post.processed:
                    processed_any = True
                if results is not None:
                    counter.add_votes(results, post.origin)
            if processed_any:
                unprocessed = [p for p in unprocessed if not p.processed]
                continue
            # No progress: what's left is waiting on references that
            # can't resolve (cycles, or users who never voted)
            names = ", ".join(f"{p.origin.author} ({p.origin.post_id})"
                              for p in unprocessed)
            if not self.config.force_unresolved_references:
                questlib_test_log(f"Unresolved references left pending: {names}")
                self._notice('warning', 'Unresolved vote references',
                             f"These posts could not be resolved and were not counted: {names}")
                break
            questlib_debug_note(f"Force-processing unresolved posts: {names}")
            self._notice('warning', 'Forced unresolved vote references',
                         f"These posts were counted with unresolved references left as text: {names}")
            for post in unprocessed:
                post.force_process = True
        _debugprint(f"process_posts: {passes} passes")
        return passes

    def tally_in_background(self, posts, executor=None):
        '''Run tally_posts in an executor and return the Future.

        Call cancel() (or cancel self.token) to stop it early; the
        Future then raises TallyCancelled.
        '''
        self.token = CancellationToken()
        if executor is None:
            executor = concurrent.futures.ThreadPoolExecutor(max_workers=1)
            future = executor.submit(self.tally_posts, posts, self.token)
            executor.shutdown(wait=False)
            return future
        return executor.submit(self.tally_posts, posts, self.token)


def tally_posts(posts, config=None, token=None):
    '''One-shot tally; returns the Tally so that results can be read from it'''
    tally = Tally(config)
    tally.tally_posts(posts, token=token)
    return tally
