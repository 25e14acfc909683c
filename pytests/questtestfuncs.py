# Functions for use in questtally tests.  The parameter pattern that
# the CLI tests follow:
#
# options -> the commandline options that should be passed prior to the filename
# filename -> the filename of the file to pass into questtally.py
# test_type -> the type of test to perform
# test_data -> generic data structure passed to the test
#
# Library-level tests mostly build Post objects with make_post() and
# tally them directly.

import json
import os
import pytest
import re
import subprocess
import sys
from questlib import *

THREAD_URI = 'https://forums.example.com/threads/test-quest.1/'


def get_questtally_scriptloc():
    '''Infer questtally.py location from the location of questtestfuncs.py'''
    pytest_directory = os.path.dirname(__file__)
    questtally_directory = os.path.dirname(pytest_directory)
    return os.path.join(questtally_directory, "questtally.py")


def get_testdata_path(relpath):
    pytest_directory = os.path.dirname(__file__)
    return os.path.join(os.path.dirname(pytest_directory), relpath)


def get_questtally_cli_output(cmd_args):
    """Run questtally.py, returning its stdout, stderr and return code."""
    command = [sys.executable, get_questtally_scriptloc(), *cmd_args]
    questlib_test_log(f"{' '.join(command)}")
    completed_process = subprocess.run(command,
                                       stdout=subprocess.PIPE,
                                       stderr=subprocess.PIPE,
                                       text=True,
                                       check=False)
    return {
        "stdout": completed_process.stdout,
        "stderr": completed_process.stderr,
        "returncode": completed_process.returncode
    }


def get_questtally_output_as_array(cmd_args):
    return get_questtally_cli_output(cmd_args)["stdout"].splitlines()


def check_regex_in_textarray(needle, haystack):
    retval = False
    for stackline in haystack:
        retval = re.search(needle, stackline) or retval
    return retval


def check_regex_in_output(cmd_args, inputfile, pattern):
    output_lines = get_questtally_output_as_array(cmd_args + [inputfile])
    print(output_lines)
    return check_regex_in_textarray(pattern, output_lines)


def get_value_from_obj(obj, keylist):
    '''Pluck value from data struct by keylist path'''
    for k in keylist:
        obj = obj[k]
    return obj


def run_json_output_test(cmd_args, inputfile, testtype, keylist, value):
    '''Run questtally.py with "-t json" and check one value in the output'''
    result = get_questtally_cli_output(cmd_args + [get_testdata_path(inputfile)])
    assert result["returncode"] == 0, result["stderr"]
    outputdict = json.loads(result["stdout"])
    if testtype == 'is_equal':
        assert get_value_from_obj(outputdict, keylist) == value
    elif testtype == 'contains':
        assert value in get_value_from_obj(outputdict, keylist)
    elif testtype == 'length':
        assert len(get_value_from_obj(outputdict, keylist)) == value
    else:
        raise ValueError(f"Unknown test type: {testtype}")


def make_post(author, number, text, thread_uri=THREAD_URI):
    '''Post with id 1000+number, so ids and numbers order the same way'''
    origin = Origin(author, post_id=1000 + number, post_number=number,
                    thread_uri=thread_uri)
    return Post(origin, text)


def make_posts(postlist):
    '''Posts from [(author, text), ...], numbered from 1'''
    return [make_post(author, i, text)
            for i, (author, text) in enumerate(postlist, start=1)]


def block_of(*textlines):
    '''VoteLineBlock from vote line strings'''
    return VoteLineBlock([parse_voteline(t) for t in textlines])


def voter_names(storage, block):
    return [str(o) for o in storage.get_voters_for(block)]


def tally_of(postlist, **configargs):
    '''Tally [(author, text), ...] with a QuestConfig built from configargs'''
    return tally_posts(make_posts(postlist), QuestConfig(**configargs))
