#!/usr/bin/env python3
'''questlib/__init__.py - tallying votes posted in quest forum threads'''

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

# Core functions and debugging tools
from questlib.voteregex import *
from questlib.devtools import *
from questlib.core import *
from questlib.agnostic import *

# The vote model
from questlib.origin import *
from questlib.voteline import *
from questlib.voteblock import *
from questlib.post import *
from questlib.filter import *
from questlib.config import *

# Tallying
from questlib.storage import *
from questlib.counter import *
from questlib.constructor import *
from questlib.tally import *

# Modules for counting with various methods
from questlib.util import *
from questlib.plurality_tally import *
from questlib.irv_tally import *
from questlib.score_tally import *
from questlib.approval_tally import *

# Input and output formats
from questlib.postdump_fmt import *
from questlib.textoutput import *
