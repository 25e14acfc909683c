#!/usr/bin/env python3
''' questtally.py - tally the votes posted in a quest forum thread '''

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

import os
import sys

try:
    from questlib import *
except ModuleNotFoundError as e:
    print(f"ModuleNotFoundError: {e.name}\n")
    print("Please install questtally's dependencies, e.g. 'pip install -e .'")
    sys.exit(1)

import argparse
import json


INPUT_FORMATS = [
    {'postdump': 'Plain text post dump ("### author: ... | id: ... | number: ..." headers)'},
    {'json': 'JSON list of posts (author, id, number, text)'},
    {'yaml': 'YAML list of posts (author, id, number, text)'},
]

OUTPUT_FORMATS = [
    {'text': 'Text tables: votes by task, then results per counting method'},
    {'json': 'JSON with the tallied votes and the results per counting method'},
    {'votes': 'Text tables of the tallied votes only'},
]

MODIFIERS = [
    {'all': 'Show results for every counting method (default)'},
    {'approval': 'Show approval results for +/- votes'},
    {'plurality': 'Show plurality results for plain votes'},
    {'ranked': 'Show ranked results (see --rank-method)'},
    {'score': 'Show score results for +N votes'},
]


def gen_epilog():
    ''' Generate format list for --help '''
    def help_text(caption='XX', bullet='* ',
                  dictlist=None):
        retval = f"{caption}:\n"
        for fmtdicts in dictlist:
            for fkey, fdesc in fmtdicts.items():
                retval += f"{bullet} {fkey}: {fdesc}\n"
        return retval
    retval = ''
    retval += help_text(caption="Input formats", bullet="--fromfmt",
                        dictlist=INPUT_FORMATS)
    retval += "\n"
    retval += help_text(caption="Output formats", bullet="--to",
                        dictlist=OUTPUT_FORMATS)
    retval += "\n"
    retval += help_text(caption="Modifiers",
                        bullet="--modifier", dictlist=MODIFIERS)
    return retval


def get_keys_from_dict_list(dictlist):
    retval = [key for d in dictlist for key in d]
    return retval


def build_config(args):
    '''QuestConfig from --config, with command line options layered on top'''
    if args.config:
        config = load_quest_config(args.config)
    else:
        config = QuestConfig()
    return config.with_overrides(
        partition_mode=args.partition,
        rank_counter=args.rank_method,
        case_is_significant=True if args.case_sensitive else None,
        whitespace_and_punctuation_is_significant=True if args.symbols_sensitive else None)


def main():
    """Tally the votes in a quest thread's posts"""
    validinfmts = get_keys_from_dict_list(INPUT_FORMATS)
    validoutfmts = get_keys_from_dict_list(OUTPUT_FORMATS)
    validmods = get_keys_from_dict_list(MODIFIERS)
    parser = argparse.ArgumentParser(
        description='Tally the votes posted in a quest forum thread',
        epilog=gen_epilog(),
        formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument('input_file', nargs='?',
                        help='Input file with posts to tally')
    parser.add_argument('-c', '--config',
                        help='Quest config YAML file')
    parser.add_argument('-d', '--debug',
                        help='Print timing and debug output to stderr',
                        action="store_true")
    parser.add_argument('-f', '--fromfmt', choices=validinfmts,
                        help='Input format (default: from file extension)')
    parser.add_argument('-t', '--to', choices=validoutfmts,
                        default="text", help='Output format')
    parser.add_argument('-m', '--modifier', action='append',
                        choices=validmods,
                        help='Counting methods to show (repeatable)')
    parser.add_argument('-p', '--partition', choices=PARTITION_MODES,
                        help='How votes are split into countable blocks')
    parser.add_argument('--rank-method', choices=RANK_METHODS,
                        help='Counting method for ranked votes')
    parser.add_argument('--case-sensitive', action="store_true",
                        help='Treat votes differing only in case as different')
    parser.add_argument('--symbols-sensitive', action="store_true",
                        help='Treat votes differing only in whitespace or punctuation as different')
    parser.add_argument('-w', '--width', type=int, default=DEFAULT_WIDTH,
                        help='width of output (for text tables)')

    args = parser.parse_args()
    questlib_test_log(f"cmd: {' '.join(sys.argv)}")

    if args.input_file is None:
        parser.error("Missing input file.  Please specify an input file")
    elif not os.path.exists(args.input_file):
        parser.error(f"The file '{args.input_file}' doesn't exist.")

    if args.debug:
        os.environ['QUESTTALLY_DEBUG'] = '1'

    try:
        config = build_config(args)
        posts = read_posts_file(args.input_file, fromfmt=args.fromfmt)
    except PostDumpFormatException as e:
        print(f"ERROR: {e.message}", file=sys.stderr)
        sys.exit(2)
    except QuestConfigError as e:
        print(f"ERROR: {e.message}", file=sys.stderr)
        sys.exit(2)

    tally = Tally(config)
    tally.tally_posts(posts)
    counter = tally.counter
    modifiers = args.modifier

    try:
        if args.to == 'votes':
            outstr = texttable_votes_by_task(counter.storage, width=args.width,
                                             task_list=counter.task_list)
        elif args.to == 'json':
            outstr = json.dumps(jsonable_tally_result(counter, modifiers,
                                                      notices=tally.notices),
                                indent=4, ensure_ascii=False)
        else:
            outstr = tally_output_text(counter, modifiers, width=args.width,
                                       notices=tally.notices)
    except QuestConfigError as e:
        print(f"ERROR: {e.message}", file=sys.stderr)
        sys.exit(2)

    print(outstr)
    LogfileSingleton.close_file()


if __name__ == "__main__":
    main()
