import atexit
import pytest
from questlib import LogfileSingleton, register_agnostic_comparer
from questtestfuncs import *


@pytest.fixture(autouse=True)
def default_comparer():
    '''The comparer is process-wide; every test starts from the defaults'''
    register_agnostic_comparer(case_sensitive=False, symbols_sensitive=False)
    yield
    register_agnostic_comparer(case_sensitive=False, symbols_sensitive=False)


def postmortem(session=None, terminalreporter=None, exitstatus=None, config=None):
    '''postmortem is based on a hack documented on StackOverflow
    https://stackoverflow.com/a/38806934/362951'''
    logobj = LogfileSingleton()
    for msg in logobj.devtoolmsgs:
        print(msg)


def pytest_terminal_summary(terminalreporter, exitstatus, config):
    atexit.register(postmortem, terminalreporter=terminalreporter,
                    exitstatus=exitstatus, config=config)
