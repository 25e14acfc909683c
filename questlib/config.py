#!/usr/bin/env python3
'''questlib/config.py - Per-quest tally options, loadable from YAML'''

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
from questlib.filter import Filter
from questlib.voteregex import POST_FILTER_RANGE_REGEX
import argparse
import json
import re
import yaml

QUEST_DEFAULTS = {
    'partition_mode': PARTITION_NONE,
    'case_is_significant': False,
    'whitespace_and_punctuation_is_significant': False,
    'allow_users_to_update_plans': False,
    'forbid_vote_label_plan_names': False,
    'disable_proxy_votes': False,
    'force_pinned_proxy_votes': False,
    'force_plan_references_to_be_labeled': False,
    'trim_extended_text': False,
    'use_custom_task_filters': False,
    'custom_task_filter': '',
    'use_custom_username_filters': False,
    'custom_username_filter': '',
    'use_custom_post_filters': False,
    'custom_post_filter': '',
    'rank_counter': RANK_METHOD_RIRV,
    'user_defined_tasks': [],
    'tasks_ordering': TASKS_AS_TALLIED,
    'force_unresolved_references': True,
}

_BOOL_KEYS = [k for k, v in QUEST_DEFAULTS.items() if isinstance(v, bool)]
_STR_KEYS = ['custom_task_filter', 'custom_username_filter',
             'custom_post_filter']

_POST_FILTER_RANGE_RE = re.compile(POST_FILTER_RANGE_REGEX)


def parse_post_filter(filterstr):
    '''"3, 10-12" -> set of post numbers {3, 10, 11, 12}'''
    retval = set()
    for part in (filterstr or '').split(','):
        if not part.strip():
            continue
        m = _POST_FILTER_RANGE_RE.match(part)
        if not m:
            msg = f"Invalid post filter entry: {part.strip()!r}"
            raise QuestConfigError(value=filterstr, message=msg)
        start = int(m.group('start'))
        end = int(m.group('end')) if m.group('end') else start
        if end < start:
            start, end = end, start
        retval.update(range(start, end + 1))
    return retval


class QuestConfig:
    '''Options for tallying one quest thread.'''

    def __init__(self, **kwargs):
        settings = dict(QUEST_DEFAULTS)
        settings['user_defined_tasks'] = []
        for key, value in kwargs.items():
            if key not in QUEST_DEFAULTS:
                raise QuestConfigError(value=key,
                                       message=f"Unknown quest option: {key}")
            settings[key] = value
        self._validate(settings)
        for key, value in settings.items():
            setattr(self, key, value)
        self.task_filter = Filter(self.custom_task_filter)
        self.username_filter = Filter(self.custom_username_filter)
        self.post_filter = parse_post_filter(self.custom_post_filter)

    @staticmethod
    def _validate(settings):
        try:
            settings['partition_mode'] = normalize_partition_mode(
                settings['partition_mode'])
        except VoteOperationError as e:
            raise QuestConfigError(value=e.value, message=e.message) from e
        for key in _BOOL_KEYS:
            if not isinstance(settings[key], bool):
                msg = f"Quest option {key} must be true or false, not {settings[key]!r}"
                raise QuestConfigError(value=settings[key], message=msg)
        for key in _STR_KEYS:
            if settings[key] is None:
                settings[key] = ''
            elif not isinstance(settings[key], (str, int)):
                msg = f"Quest option {key} must be a string"
                raise QuestConfigError(value=settings[key], message=msg)
            settings[key] = str(settings[key])
        rank_counter = str(settings['rank_counter']).lower()
        if rank_counter not in RANK_METHODS:
            msg = f"Unknown rank counter: {settings['rank_counter']}"
            raise QuestConfigError(value=settings['rank_counter'], message=msg)
        settings['rank_counter'] = rank_counter
        if settings['tasks_ordering'] not in TASKS_ORDERINGS:
            msg = f"Unknown tasks ordering: {settings['tasks_ordering']}"
            raise QuestConfigError(value=settings['tasks_ordering'], message=msg)
        tasks = settings['user_defined_tasks']
        if tasks is None:
            tasks = []
        if isinstance(tasks, str):
            tasks = [t.strip() for t in tasks.split(',') if t.strip()]
        if not isinstance(tasks, (list, tuple)):
            msg = "Quest option user_defined_tasks must be a list"
            raise QuestConfigError(value=tasks, message=msg)
        settings['user_defined_tasks'] = [str(t) for t in tasks]

    @classmethod
    def from_dict(cls, configdict):
        if configdict is None:
            configdict = {}
        if not isinstance(configdict, dict):
            raise QuestConfigError(value=configdict,
                                   message="Quest config must be a mapping")
        if 'quest' in configdict and isinstance(configdict['quest'], dict):
            configdict = configdict['quest']
        return cls(**configdict)

    def to_dict(self):
        return {key: getattr(self, key) for key in QUEST_DEFAULTS}

    def with_overrides(self, **kwargs):
        '''New config with the non-None kwargs replacing current values'''
        settings = self.to_dict()
        settings.update({k: v for k, v in kwargs.items() if v is not None})
        return QuestConfig(**settings)

    def __repr__(self):
        return f"QuestConfig({self.to_dict()!r})"


def load_quest_config(filename):
    '''Read a QuestConfig from a YAML file'''
    try:
        with open(filename, 'r', encoding='utf-8') as f:
            configdict = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise QuestConfigError(value=filename,
                               message=f"Invalid YAML in {filename}: {e}") from e
    except OSError as e:
        raise QuestConfigError(value=filename,
                               message=f"Cannot read {filename}: {e}") from e
    return QuestConfig.from_dict(configdict)


def main():
    """Load a quest config file and print the resulting settings"""
    parser = argparse.ArgumentParser(
        description='Validate a quest config YAML file')
    parser.add_argument('config_file', help='Quest config YAML file')
    args = parser.parse_args()
    config = load_quest_config(args.config_file)
    print(json.dumps(config.to_dict(), indent=4, ensure_ascii=False))


if __name__ == "__main__":
    main()
