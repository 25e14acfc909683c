#!/usr/bin/env python3
''' questlib/devtools.py - Logging and debug output for questtally '''
#
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

from pprint import pformat
import argparse
import datetime
import inspect
import os
import sys
import time

# "DEBUGARRAY" collects notes about the tally in progress (forced posts,
# replayed merges).  Exceptions take a copy of it when they're raised.
DEBUGARRAY = []

DEBUG_ENVVAR = 'QUESTTALLY_DEBUG'
LOG_ENVVAR = 'QUESTLIB_LOG'


def _open_logfile(filename):
    '''Validate the QUESTLIB_LOG path and open it for appending'''
    if not os.path.isabs(filename):
        raise ValueError(f"{LOG_ENVVAR} needs to be an absolute path: {filename}")
    logdir = os.path.dirname(filename)
    if not os.path.exists(logdir):
        raise FileNotFoundError(f"Dir in {LOG_ENVVAR} path doesn't exist: {logdir}")
    return open(filename, "a", encoding="utf-8")


class LogfileSingleton:
    """Either append msgs to QUESTLIB_LOG or quietly munch"""
    _instance = None
    _filename = None
    _filehandle = None
    devtoolmsgs = []

    def __new__(cls, force_log=False):
        if cls._instance is not None:
            return cls._instance
        filename = os.getenv(LOG_ENVVAR)
        if not filename:
            if force_log:
                raise ValueError(f"{LOG_ENVVAR} isn't set, and {force_log=}")
            cls.devtoolmsgs.append(
                f"{LOG_ENVVAR} not set, so no extra logging will be done.")
        else:
            try:
                cls._filehandle = _open_logfile(filename)
            except (ValueError, FileNotFoundError) as e:
                cls.devtoolmsgs.append(str(e))
                raise
            cls._filename = filename
            cls.devtoolmsgs.append(f"{LOG_ENVVAR} set to {filename}.  "
                                   "Amending additional debugging output there.")
        cls._instance = super().__new__(cls)
        return cls._instance

    def _write(self, text):
        self._filehandle.write(text)
        self._filehandle.flush()

    def log(self, msg, newline=True, showframeinfo=True, maxfuncnamelen=10,
            maxfilenamelen=10):
        """Log a message to the file if filehandle is set; otherwise, do nothing."""
        if not self._filehandle:
            return
        prefix = ""
        if showframeinfo:
            frameinfo = inspect.getframeinfo(inspect.currentframe().f_back.f_back)
            function = frameinfo.function
            filename = os.path.basename(frameinfo.filename)
            if maxfuncnamelen and len(function) > maxfuncnamelen:
                function = function[0:maxfuncnamelen] + ".."
            if maxfilenamelen and len(filename) > maxfilenamelen:
                filename = filename[0:maxfilenamelen] + ".."
            prefix = f"{function} ({filename}:{frameinfo.lineno}): "
        self._write(f"{prefix}{msg}" + ("\n" if newline else ""))

    def logblob(self, blob, blobmark="BLOB"):
        """Log a pformatted blob.  Set blobmark to None for no start/end markers"""
        if not self._filehandle:
            return
        text = pformat(blob) + "\n"
        if blobmark:
            text = f"--{blobmark}START--\n{text}--{blobmark}END--\n"
        self._write(text)

    @classmethod
    def close_file(cls):
        """Closes the file handle if open."""
        if cls._filehandle:
            cls._filehandle.close()
            cls._filehandle = None


def questlib_test_log(msg=None, newline=True, showframeinfo=True,
                      maxfuncnamelen=10, maxfilenamelen=10):
    """Logs msg to file in QUESTLIB_LOG environment variable if defined."""
    logobj = LogfileSingleton()
    logobj.log(msg, newline, showframeinfo, maxfuncnamelen, maxfilenamelen)


def questlib_test_logblob(blob, blobmark=None):
    """Logs pformatted blob to file in QUESTLIB_LOG environment variable if defined."""
    logobj = LogfileSingleton()
    logobj.logblob(blob, blobmark)


def questlib_debug_enabled():
    return bool(os.environ.get(DEBUG_ENVVAR))


def questlib_debugprint(component, msg):
    '''Timestamped debug line on stderr, when QUESTTALLY_DEBUG is set'''
    if not questlib_debug_enabled():
        return
    ts = datetime.datetime.now(datetime.timezone.utc).strftime('%H:%M:%S.%f')[:-3]
    print(f"{ts} [{component}] {msg}", file=sys.stderr)


def questlib_elapsed(t0):
    return f"{time.perf_counter() - t0:.4f}s"


def questlib_debug_note(msg):
    '''Remember msg in DEBUGARRAY and the log file'''
    DEBUGARRAY.append(msg)
    LogfileSingleton().log(msg, showframeinfo=False)


def questlib_reset_debug_notes():
    DEBUGARRAY.clear()


def main():
    """Write a message to QUESTLIB_LOG, to check that logging works"""
    parser = argparse.ArgumentParser(
        description='Check questtally debug logging')
    parser.add_argument('message', nargs='?', default="questtally log check",
                        help=f'Message to write to {LOG_ENVVAR}')
    args = parser.parse_args()

    devobj = LogfileSingleton(force_log=True)
    devobj.log(args.message)
    for msg in devobj.devtoolmsgs:
        print(msg)


if __name__ == "__main__":
    main()
