#!/usr/bin/env python3
'''questlib/voteregex.py - Regular expressions for parsing quest votes'''

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

# Forum adapters hand us BBCode with 『』 instead of [] so that it
# can't be confused with vote markers and tasks.
BBCODE_TAG_REGEX = r'『[^』]*』'

VOTELINE_REGEX = r'''
    ^\s*                           # leading whitespace
    (?P<prefix>(?:[-–—\s]|『[^』]*』)*?)  # dash prefix; depth = dash count
    (?:
    \[                             # open marker bracket
    (?P<marker>(?:[^\]『]|『[^』]*』)*)  # marker (x, #1, 70%, +, -, *, ...)
    \]                             # close marker bracket
    |
    (?P<shortmark>[☒☑])            # checkbox shortcut, no brackets
    )
    [ \t]*                         # whitespace
    (?:\[                          # optional task, in brackets
    (?P<task>[^\]]*)               # <task>
    \])?
    [ \t]*                         # whitespace
    (?P<content>\S.*?)             # everything else is <content>
    \s*$                           # trailing whitespace
    '''

MARKER_REGEX = r'''
    ^(?:
    (?P<vote>[xX✓✔✗✘Х☒☑])            # plain vote
    |
    (?P<rank>\#)?                   # optional rank indicator
    (?P<value>[0-9]{1,3})           # <value> of rank or score
    (?P<percent>%)?                 # trailing % makes it a score
    |
    \+(?P<plusscore>[0-9])          # +N is a score on the 1-9 scale
    |
    (?P<approval>[-+])              # approve/disapprove
    |
    (?P<continuation>\*)            # continuation of the parent line
    )$
    '''

# Plan labels that mark a block as an abstract (base/proposed) plan
BASE_PLAN_REGEX = r'''
    (?:base|proposed)               # base or proposed
    \s*plan
    (?:[:\s]+)                      # colon and/or whitespace
    (?P<planname>.+)                # <planname>
    '''

ANY_PLAN_REGEX = r'''
    ^plan                           # "Plan" at the start of the line
    [:\s]+                          # colon and/or whitespace
    ◈?                              # optional plan glyph
    (?P<planname>.+?)               # <planname>
    \.?$                            # optional period at the end
    '''

ALT_PLAN_REGEX = r'''
    ^(?P<planname>.+?)              # <planname>
    's\s+plan$                      # "'s Plan"
    '''

REFERENCE_REGEX = r'''
    ^(?P<label>
    (?:\^|↑)(?=\s*\w)               # pinned user reference
    |
    (?:(?:(?:base|proposed)\s*)?plan\b)(?=\s*:?\s*\S)  # plan label
    )?
    \s*:?\s*
    (?P<reference>.+)               # <reference> name
    '''

# A post with ##### at the start of a line is a posted tally
TALLY_POST_REGEX = r'^#####'

NOMINATION_LINE_REGEX = r'''
    ^『url="[^"]+?/members/\d+/"』  # forum member link
    @?                              # optional @
    (?P<username>[^『]+)             # <username>
    『/url』\s*$
    '''

EXTENDED_TEXT_REGEX = r'''
    ^(?P<label>
    (?:『[^』]*』)*                  # leading BBCode
    [^:『]{1,80}?                    # short label
    (?:『/[^』]*』)*                 # closing BBCode
    )
    \s*(?::|\s-)\s+                 # ": " or " - " separator
    (?P<extended>.+)$               # <extended> description
    '''

POSTDUMP_HEADER_REGEX = r'''
    ^\#\#\#\s+                      # ### starts a post header
    author:\s*(?P<author>[^|]+?)\s* # <author>
    \|\s*id:\s*(?P<postid>[^|\s]*)\s*  # <postid>
    \|\s*number:\s*(?P<number>\d+)\s*  # <number>
    (?:\|\s*permalink:\s*(?P<permalink>\S+)\s*)?  # optional <permalink>
    $'''

POST_FILTER_RANGE_REGEX = r'^\s*(?P<start>\d+)\s*(?:-\s*(?P<end>\d+))?\s*$'
