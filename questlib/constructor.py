#!/usr/bin/env python3
'''questlib/constructor.py - Turning one post into the vote blocks it counts as'''

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

from questlib.agnostic import agnostic_equal
from questlib.core import *
from questlib.devtools import questlib_test_log
from questlib.origin import PostId
from questlib.voteblock import *
from questlib.voteregex import REFERENCE_REGEX
import re

_REFERENCE_RE = re.compile(REFERENCE_REGEX, re.VERBOSE | re.IGNORECASE)

# Longer lines can't be user names, and are too long for plan names
MAX_REFERENCE_LENGTH = 100


def does_task_filter_pass(block, config):
    '''True unless a custom task filter is active and block's task fails it'''
    if not config.use_custom_task_filters:
        return True
    if not block.task:
        return False
    return config.task_filter.match(block.task)


def _min_child_depth(lines):
    return min(ln.depth for ln in lines)


def _resolve_continuations(lines):
    '''Give each continuation line the marker of its nearest shallower parent'''
    retval = []
    parents = []
    for line in lines:
        while parents and parents[-1].depth >= line.depth:
            parents.pop()
        if line.marker_type == MARKER_CONTINUATION and parents:
            parent = parents[-1]
            line = line.with_marker(parent.marker, parent.marker_type,
                                    parent.marker_value)
        parents.append(line)
        retval.append(line)
    return retval


def _inherit_top_task(lines):
    '''Untasked lines take the task of the depth-0 line they fall under'''
    retval = []
    top_task = ''
    for line in lines:
        if line.depth == 0:
            top_task = line.task
        elif not line.task and top_task:
            line = line.with_task(top_task)
        retval.append(line)
    return retval


def _cascade_line_task(line, state):
    '''Task cascading for by_line_task.

    state is [current (depth, task), stack of (depth, task)], updated in place.
    '''
    current, stack = state
    if not line.task and not current[1]:
        return VoteLineBlock(line)
    if line.depth < current[0]:
        while current[0] > line.depth and stack:
            current = stack.pop()
    if line.depth == current[0]:
        current = (current[0], line.task)
        state[0] = current
        return VoteLineBlock(line)
    state[0] = current
    if line.depth > current[0]:
        if not line.task:
            return VoteLineBlock(line.with_task(current[1]))
        stack.append(current)
        state[0] = (line.depth, line.task)
    return VoteLineBlock(line)


def partition(block, partition_mode, as_plan=False):
    '''Split a block (a plan, or a vote with no references) into partitions.

    Doesn't cascade tasks.  Plans drop their "Plan: name" line unless
    the mode keeps blocks whole.
    '''
    if partition_mode == PARTITION_NONE or len(block) == 1:
        return [block]

    lines = list(block.lines)
    if is_content_block(lines):
        children = lines[1:]
        min_depth = _min_child_depth(children)
        if partition_mode in (PARTITION_BY_LINE, PARTITION_BY_LINE_TASK):
            return [VoteLineBlock(ln.get_promoted_line(min_depth))
                    for ln in children]
        if partition_mode == PARTITION_BY_BLOCK:
            return [block]
        if partition_mode == PARTITION_BY_BLOCK_ALL:
            return get_blocks([ln.get_promoted_line(min_depth) for ln in children])
    else:
        skipped = lines[1:] if as_plan else lines
        if partition_mode in (PARTITION_BY_LINE, PARTITION_BY_LINE_TASK):
            return [VoteLineBlock(ln) for ln in skipped]
        if partition_mode == PARTITION_BY_BLOCK:
            # Implicit plans stay whole under normal by_block
            if as_plan and not is_block_an_implicit_plan(lines)[1]:
                return get_blocks(skipped)
            return [block]
        if partition_mode == PARTITION_BY_BLOCK_ALL:
            return get_blocks(skipped)
    raise VoteOperationError(value=partition_mode,
                             message=f"Unknown partition mode: {partition_mode}")


class VoteConstructor:
    '''Builds the vote blocks for posts, resolving plan and user references
    against what the VoteCounter knows so far.'''

    def __init__(self, counter):
        self.counter = counter

    # Plans
    def preprocess_post_get_plans(self, post, config, as_blocks, is_plan_fn):
        '''{plan name: block} for the plans is_plan_fn finds in post'''
        plans = {}
        if not post.vote_lines:
            return plans
        if as_blocks:
            blocks = get_blocks(post.vote_lines)
        else:
            blocks = [VoteLineBlock(post.vote_lines)]
        for block in blocks:
            is_plan, is_implicit, plan_name = is_plan_fn(block.lines)
            if (is_plan and plan_name
                    and not (is_implicit and config.forbid_vote_label_plan_names)
                    and self._is_valid_plan_name(plan_name, post.origin.author)
                    and does_task_filter_pass(block, config)):
                plans[plan_name] = block
        return plans

    def normalize_plan(self, plan_name, block):
        '''Canonical form of a plan: "Plan: name" header without a marker'''
        first = block.first
        plan_type, name = check_if_plan(first)
        if plan_type == LINE_NOT_PLAN:
            return (plan_name, block)
        if plan_type == LINE_PROPOSED_PLAN:
            first = first.with_content(f"Plan: {name}")
        first = first.with_marker('', MARKER_NONE, 0)
        normal = VoteLineBlock([first] + list(block.lines[1:]))
        return (name, normal.with_marker(PLAN_NAME_MARKER, MARKER_PLAN, 0))

    def partition_plan(self, block, partition_mode):
        return partition(block, partition_mode, as_plan=True)

    def partition_children(self, block):
        return partition(block, PARTITION_BY_BLOCK_ALL)

    def _is_valid_plan_name(self, plan_name, post_author):
        # A plan may only share a voter's name if that voter wrote it
        if self.counter.has_voter(plan_name):
            return agnostic_equal(plan_name, post_author)
        return True

    # Votes
    def process_post_get_votes(self, post, config):
        '''The filtered partitions of post's vote, or None.

        None with post.processed still False means the post is waiting
        on a reference to a post that hasn't been processed yet.
        '''
        if post.processed:
            return None
        if not post.working_vote_complete:
            self.configure_working_vote(post, config)
        if not post.working_vote_complete:
            return None
        # A later vote by the same author already counted; this one's
        # a superseded future reference
        if self.counter.has_newer_vote(post):
            post.processed = True
            return None
        results = self.partition_post(post, config.partition_mode)
        post.processed = True
        return [b for b in results if does_task_filter_pass(b, config)]

    def _is_own_proposed_plan(self, block, post):
        is_proposed, _, name = is_block_a_proposed_plan(block.lines)
        if not is_proposed:
            return False
        plan_origin = self.counter.get_plan_origin_by_name(name)
        if plan_origin is None:
            return False
        return plan_origin.post_id == post.origin.post_id

    def get_reference(self, voteline, config):
        '''Returns (is_reference, is_plan, is_pinned_user, referenced Origin)'''
        noref = (False, False, False, None)
        if len(voteline.clean_content) > MAX_REFERENCE_LENGTH:
            return noref
        m = _REFERENCE_RE.match(voteline.clean_content)
        if not m:
            return noref
        label = (m.group('label') or '').lower()
        refname = m.group('reference').strip()
        counter = self.counter

        if label in ('^', '↑'):
            user = counter.get_voter_origin_by_name(refname)
            if user is not None and not config.disable_proxy_votes:
                return (True, False, True, user)
        elif label.startswith('base') or label.startswith('proposed'):
            plan = counter.get_plan_origin_by_name(refname)
            if plan is not None:
                return (True, True, False, plan)
        elif label == 'plan':
            plan = counter.get_plan_origin_by_name(refname)
            if plan is not None:
                return (True, True, False, plan)
            user = counter.get_voter_origin_by_name(refname)
            if user is not None and not config.disable_proxy_votes:
                return (True, False, config.force_pinned_proxy_votes, user)
        else:
            user = counter.get_voter_origin_by_name(refname)
            if user is not None and not config.disable_proxy_votes:
                return (True, False, config.force_pinned_proxy_votes, user)
            plan = counter.get_plan_origin_by_name(refname)
            if plan is not None and not config.force_plan_references_to_be_labeled:
                return (True, True, False, plan)
        return noref

    def configure_working_vote(self, post, config):
        '''Expand references in post's vote lines into post.working_vote.

        Leaves working_vote_complete False (and working_vote untouched)
        if a referenced user's post hasn't been processed yet, unless the
        post is being force-processed.
        '''
        if post.working_vote_complete:
            return
        working = []

        def add_directly(line):
            if config.trim_extended_text:
                line = line.with_trimmed_content()
            working.append((line, None))

        def add_blocks(blocks, citing_line):
            for block in blocks:
                working.append((None, block.with_marker(citing_line.marker,
                                                        citing_line.marker_type,
                                                        citing_line.marker_value)))

        # Proposed plans are dropped from the post that proposed them
        valid_lines = []
        for block in get_blocks(post.vote_lines):
            if not self._is_own_proposed_plan(block, post):
                valid_lines.extend(block.lines)

        i = 0
        while i < len(valid_lines):
            line = valid_lines[i]
            is_ref, is_plan, is_pinned, ref_origin = self.get_reference(line, config)
            if not is_ref:
                add_directly(line)
            elif is_plan:
                ref_plan = self.counter.get_reference_plan(ref_origin)
                if ref_plan is None:
                    add_directly(line)
                    i += 1
                    continue
                partial = valid_lines[i:i + len(ref_plan)]
                if ref_plan == partial:
                    # The whole plan is repeated in the vote
                    i += len(ref_plan) - 1
                elif i + 1 < len(valid_lines) and valid_lines[i + 1].depth > 0:
                    # A partial copy of the plan is just vote text
                    add_directly(line)
                    i += 1
                    continue
                add_blocks(self.counter.get_votes_by(ref_origin), line)
            else:
                limit = post.origin.post_id if is_pinned else PostId.zero()
                ref_post = self.counter.get_last_post_by_author(ref_origin, limit)
                if ref_post is None:
                    working.append((line, None))
                elif not ref_post.processed and not post.force_process:
                    questlib_test_log(f"{post.origin.author} ({post.origin.post_id}) "
                                      f"waiting on {ref_origin.author}")
                    self.counter.add_future_reference(post)
                    return
                else:
                    votes = self.counter.get_votes_by(ref_origin)
                    if votes:
                        add_blocks(votes, line)
                    else:
                        # Referenced user has no vote of their own
                        working.append((line, None))
            i += 1

        post.working_vote = working
        post.working_vote_complete = True

    # Partitioning whole posts
    def partition_post(self, post, partition_mode):
        if partition_mode == PARTITION_NONE:
            return self._partition_post_by_none(post)
        if partition_mode == PARTITION_BY_LINE:
            return self._partition_post_by_line(post)
        if partition_mode == PARTITION_BY_LINE_TASK:
            return self._partition_post_by_line_task(post)
        if partition_mode in (PARTITION_BY_BLOCK, PARTITION_BY_BLOCK_ALL):
            return self._partition_post_by_block(post)
        raise VoteOperationError(value=partition_mode,
                                 message=f"Unknown partition mode: {partition_mode}")

    def _partition_post_by_none(self, post):
        working = []
        first_block = None
        for line, block in post.working_vote:
            if line is not None:
                working.append(line)
            else:
                if not working:
                    first_block = block
                working.extend(block.lines)
        if not working:
            return []
        if first_block is not None:
            # The vote is led by a substituted block; keep the citing marker
            return [VoteLineBlock(working, marker=first_block.marker,
                                  marker_type=first_block.marker_type,
                                  marker_value=first_block.marker_value)]
        return [VoteLineBlock(working)]

    def _substituted_lines(self, block):
        return [ln.with_marker(block.marker, block.marker_type, block.marker_value)
                for ln in block.lines]

    def _partition_post_by_line(self, post):
        retval = []
        run = []

        def flush():
            for ln in _inherit_top_task(_resolve_continuations(run)):
                retval.append(VoteLineBlock(ln))
            run.clear()

        for line, block in post.working_vote:
            if line is not None:
                run.append(line)
            else:
                flush()
                for ln in _inherit_top_task(self._substituted_lines(block)):
                    retval.append(VoteLineBlock(ln))
        flush()
        return retval

    def _partition_post_by_line_task(self, post):
        retval = []
        state = [(0, ''), []]
        run = []

        def flush():
            for ln in _resolve_continuations(run):
                retval.append(_cascade_line_task(ln, state))
            run.clear()

        for line, block in post.working_vote:
            if line is not None:
                run.append(line)
            else:
                flush()
                # An embedded block restarts the cascade
                state[0] = (0, '')
                state[1].clear()
                for ln in self._substituted_lines(block):
                    retval.append(_cascade_line_task(ln, state))
        flush()
        return retval

    def _partition_post_by_block(self, post):
        retval = []
        current = []
        for line, block in post.working_vote:
            if line is not None:
                if line.depth == 0 and current:
                    retval.append(VoteLineBlock(current))
                    current = []
                current.append(line)
            else:
                if current:
                    retval.append(VoteLineBlock(current))
                    current = []
                retval.append(block)
        if current:
            retval.append(VoteLineBlock(current))
        return retval
