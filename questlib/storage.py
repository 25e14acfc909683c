#!/usr/bin/env python3
'''questlib/storage.py - Consensus store of votes and their supporters, with undo'''

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
from questlib.devtools import questlib_test_log

UNDO_ADD = 'add'
UNDO_MERGE = 'merge'
UNDO_SPLIT = 'split'
UNDO_JOIN = 'join'
UNDO_DELETE = 'delete'
UNDO_REPLACE_TASK = 'replace_task'
UNDO_ACTION_TYPES = (UNDO_ADD, UNDO_MERGE, UNDO_SPLIT, UNDO_JOIN,
                     UNDO_DELETE, UNDO_REPLACE_TASK)


class UndoAction:
    '''One entry on the undo stack: a tag plus what's needed to invert it'''

    def __init__(self, action_type, **payload):
        if action_type not in UNDO_ACTION_TYPES:
            raise VoteOperationError(value=action_type,
                                     message=f"Unknown undo action: {action_type}")
        self.action_type = action_type
        self.payload = payload

    def __repr__(self):
        return f"UndoAction({self.action_type!r})"


class VoteStorage:
    '''Mapping of vote block -> {supporter Origin: supporter's own block}.

    Lookups are fuzzy: a block that is "agnostically" equal to a stored
    block finds the stored one.  The supporter's block keeps whatever
    marker that supporter used (rank, score, ...), while the stored key
    has no marker.  Each origin's key blocks are also indexed so that a
    voter's current vote can be found without scanning.
    '''

    def __init__(self, source=None):
        self._votes = {}
        self._keys = {}
        self._voter_index = {}
        self.undo_stack = []
        if source is not None:
            for key, supporters in source.items():
                self._insert_key(key, supporters)

    # Low level primitives; everything else goes through these
    def _find_key(self, block):
        return self._keys.get(block)

    def _insert_key(self, key, supporters, position=None):
        supporters = dict(supporters)
        if position is None or position >= len(self._votes):
            self._votes[key] = supporters
        else:
            items = list(self._votes.items())
            items.insert(position, (key, supporters))
            self._votes = dict(items)
        self._keys[key] = key
        for origin in supporters:
            self._voter_index.setdefault(origin, []).append(key)

    def _drop_key(self, key):
        supporters = self._votes.pop(key)
        del self._keys[key]
        for origin in supporters:
            self._unindex(origin, key)
        return supporters

    def _unindex(self, origin, key):
        keys = self._voter_index.get(origin)
        if keys is None:
            return
        for i, k in enumerate(keys):
            if k == key:
                del keys[i]
                break
        if not keys:
            del self._voter_index[origin]

    def _attach(self, block, origin, supporter_block=None):
        '''Add origin as a supporter of block, creating the key if needed'''
        key = self._find_key(block)
        if key is None:
            key = block.without_marker()
            self._insert_key(key, {})
        if supporter_block is None:
            supporter_block = block
        supporters = self._votes[key]
        if origin not in supporters:
            self._voter_index.setdefault(origin, []).append(key)
        supporters[origin] = supporter_block
        return key

    def _detach(self, key, origin):
        supporters = self._votes.get(key)
        if supporters is None or origin not in supporters:
            return False
        del supporters[origin]
        self._unindex(origin, key)
        return True

    def _position(self, key):
        for i, k in enumerate(self._votes):
            if k == key:
                return i
        return None

    def _voter_entries(self, origin):
        return [(key, self._votes[key][origin])
                for key in self._voter_index.get(origin, [])]

    def _remove_voter_from_votes(self, origin):
        removed = False
        for key in list(self._voter_index.get(origin, [])):
            removed = self._detach(key, origin) or removed
        return removed

    def _remove_unsupported_votes(self):
        unsupported = [key for key, supporters in self._votes.items()
                       if not supporters]
        for key in unsupported:
            self._drop_key(key)
        return len(unsupported) > 0

    def _restore_voter(self, origin, entries):
        self._remove_voter_from_votes(origin)
        self._remove_unsupported_votes()
        for key, supporter_block in entries:
            self._attach(key, origin, supporter_block)

    # Queries
    def __len__(self):
        return len(self._votes)

    def __contains__(self, block):
        return block in self._keys

    def __iter__(self):
        return iter(list(self._votes))

    def items(self):
        '''(key block, {origin: supporter block}) pairs, in insertion order'''
        return [(key, dict(supporters)) for key, supporters in self._votes.items()]

    def get_key(self, block):
        return self._find_key(block)

    def get_supporters_for(self, block):
        key = self._find_key(block)
        if key is None:
            return None
        return dict(self._votes[key])

    def get_voters_for(self, block):
        key = self._find_key(block)
        if key is None:
            return []
        return list(self._votes[key])

    def get_votes_by(self, origin):
        return [supporter_block for _, supporter_block in self._voter_entries(origin)]

    def get_all_voters(self):
        return list(self._voter_index)

    def does_voter_support_vote(self, origin, block):
        key = self._find_key(block)
        return key is not None and origin in self._votes[key]

    def get_all_votes(self):
        '''All key blocks, each with its category set from its supporters'''
        retval = []
        for key, supporters in self._votes.items():
            key.category = _get_category_of(supporters)
            retval.append(key)
        return retval

    # Undo
    @property
    def has_undo_actions(self):
        return len(self.undo_stack) > 0

    def clear_undo(self):
        self.undo_stack = []

    def undo(self):
        '''Revert the most recent mutation.  False if there's nothing to undo.'''
        if not self.undo_stack:
            return False
        action = self.undo_stack.pop()
        p = action.payload
        questlib_test_log(f"undo {action.action_type}")
        if action.action_type in (UNDO_ADD, UNDO_JOIN):
            for origin, entries in p['previous']:
                self._restore_voter(origin, entries)
        elif action.action_type in (UNDO_MERGE, UNDO_SPLIT):
            for to_key, added in p['targets']:
                for origin in added:
                    self._detach(to_key, origin)
            self._insert_key(p['from_key'], p['from_supporters'], p['position'])
        elif action.action_type == UNDO_DELETE:
            self._insert_key(p['key'], p['supporters'], p['position'])
        elif action.action_type == UNDO_REPLACE_TASK:
            if p['created']:
                if p['new_key'] in self._keys:
                    self._drop_key(self._keys[p['new_key']])
            else:
                for origin in p['added']:
                    self._detach(p['new_key'], origin)
            self._insert_key(p['old_key'], p['old_supporters'], p['position'])
        return True

    # Mutations
    def add_votes(self, blocks, origin):
        '''Make blocks the current vote of origin, replacing any earlier vote'''
        blocks = list(blocks)
        if not blocks:
            return False
        previous = self._voter_entries(origin)
        self._remove_voter_from_votes(origin)
        for block in blocks:
            self._attach(block, origin)
        self._remove_unsupported_votes()
        self.undo_stack.append(UndoAction(UNDO_ADD, previous=[(origin, previous)]))
        return True

    def _merge_supporters(self, from_supporters, to_key):
        added = []
        to_supporters = self._votes[to_key]
        for origin, oldvote in from_supporters.items():
            if origin not in to_supporters:
                newvote = to_key.with_marker(oldvote.marker, oldvote.marker_type,
                                             oldvote.marker_value)
                self._attach(to_key, origin, newvote)
                added.append(origin)
        return added

    def merge(self, from_block, to_block):
        '''Move all support from from_block onto to_block, removing from_block'''
        if from_block == to_block:
            return False
        from_key = self._find_key(from_block)
        to_key = self._find_key(to_block)
        if from_key is None or to_key is None:
            return False
        position = self._position(from_key)
        from_supporters = dict(self._votes[from_key])
        added = self._merge_supporters(from_supporters, to_key)
        self._drop_key(from_key)
        self.undo_stack.append(UndoAction(UNDO_MERGE, from_key=from_key,
                                          from_supporters=from_supporters,
                                          position=position,
                                          targets=[(to_key, added)]))
        questlib_test_log(f"merged {from_key!r} into {to_key!r}: {len(added)} supporters moved")
        return True

    def split(self, from_block, to_blocks):
        '''Give from_block's supporters to every one of to_blocks, removing from_block'''
        from_key = self._find_key(from_block)
        if from_key is None or not to_blocks:
            return False
        to_keys = []
        for to_block in to_blocks:
            to_key = self._find_key(to_block)
            if to_key is None or to_key == from_key:
                return False
            to_keys.append(to_key)
        position = self._position(from_key)
        from_supporters = dict(self._votes[from_key])
        targets = [(to_key, self._merge_supporters(from_supporters, to_key))
                   for to_key in to_keys]
        self._drop_key(from_key)
        self.undo_stack.append(UndoAction(UNDO_SPLIT, from_key=from_key,
                                          from_supporters=from_supporters,
                                          position=position, targets=targets))
        return True

    def join(self, voters, target_voter):
        '''Replace each voter's support with whatever target_voter supports.

        Votes that both already support keep the joining voter's marker.
        Voters with no current vote are skipped.
        '''
        target_entries = self._voter_entries(target_voter)
        if not target_entries:
            return False
        previous = []
        for voter in voters:
            if voter == target_voter:
                continue
            entries = self._voter_entries(voter)
            if not entries:
                continue
            previous.append((voter, entries))
            for key, _ in entries:
                if target_voter not in self._votes[key]:
                    self._detach(key, voter)
            for key, target_block in target_entries:
                if voter not in self._votes[key]:
                    self._attach(key, voter, target_block)
        if not previous:
            return False
        self._remove_unsupported_votes()
        self.undo_stack.append(UndoAction(UNDO_JOIN, previous=previous))
        return True

    def delete(self, block):
        key = self._find_key(block)
        if key is None:
            return False
        position = self._position(key)
        supporters = self._drop_key(key)
        self.undo_stack.append(UndoAction(UNDO_DELETE, key=key,
                                          supporters=supporters,
                                          position=position))
        return True

    def replace_task(self, block, task):
        '''Re-key block under a new task, merging with an existing block if one matches'''
        task = (task or '').strip()
        key = self._find_key(block)
        if key is None or key.task.casefold() == task.casefold():
            return False
        position = self._position(key)
        old_supporters = self._drop_key(key)
        new_block = key.with_task(task)
        new_key = self._find_key(new_block)
        created = new_key is None
        if created:
            new_key = new_block
            self._insert_key(new_key, {})
        added = []
        for origin, supporter_block in old_supporters.items():
            if origin not in self._votes[new_key]:
                self._attach(new_key, origin, supporter_block.with_task(task))
                added.append(origin)
        self.undo_stack.append(UndoAction(UNDO_REPLACE_TASK, old_key=key,
                                          old_supporters=old_supporters,
                                          position=position, new_key=new_key,
                                          created=created, added=added))
        return True

    def rebuild_index(self):
        '''Rehash every key, eg: after the fuzzy comparer flags changed.

        Keys that now compare equal are merged; the first one wins.
        '''
        old_votes = self._votes
        self._votes = {}
        self._keys = {}
        self._voter_index = {}
        for key, supporters in old_votes.items():
            existing = self._find_key(key)
            if existing is None:
                self._insert_key(key, supporters)
            else:
                for origin, supporter_block in supporters.items():
                    if origin not in self._votes[existing]:
                        self._attach(existing, origin, supporter_block)
        # Undo payloads hold keys hashed the old way
        self.clear_undo()

    def reset(self):
        self._votes = {}
        self._keys = {}
        self._voter_index = {}
        self.clear_undo()


def _get_category_of(supporters):
    total = len(supporters)
    if total == 0:
        return MARKER_NONE
    counts = {}
    for supporter_block in supporters.values():
        counts[supporter_block.marker_type] = counts.get(supporter_block.marker_type, 0) + 1
    for marker_type, count in counts.items():
        if count / total >= CATEGORY_THRESHOLD:
            return marker_type
    return MARKER_VOTE
