#!/usr/bin/env python3
'''questlib/postdump_fmt.py - Reading thread posts from post dump, JSON and YAML files'''

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

from questlib.core import QuestTallyException
from questlib.post import Post
from questlib.voteregex import POSTDUMP_HEADER_REGEX
import argparse
import json
import pathlib
import re
import yaml

POSTDUMP_FORMATS = ('postdump', 'json', 'yaml')

_HEADER_RE = re.compile(POSTDUMP_HEADER_REGEX, re.VERBOSE)
_HEADER_START_RE = re.compile(r'^###\s+author:', re.IGNORECASE)


class PostDumpFormatException(QuestTallyException):
    """Raised when a post dump (or JSON/YAML post list) is malformed."""

    def __init__(self, value=None, message="Bad post dump", lineno=None):
        if lineno is not None:
            message = f"Line {lineno}: {message}"
        self.lineno = lineno
        super().__init__(value=value, message=message)


def guess_format(filename):
    suffix = pathlib.Path(filename).suffix.lower()
    if suffix == '.json':
        return 'json'
    if suffix in ('.yaml', '.yml'):
        return 'yaml'
    return 'postdump'


def read_postdump_text(text, thread_uri=None):
    '''Posts from post dump text.

    Each post starts with a header line:
      ### author: NAME | id: POSTID | number: N [| permalink: URL]
    and the post's text is everything up to the next header.
    '''
    posts = []
    current = None
    body = []

    def finish():
        if current is not None:
            postdict = dict(current)
            postdict['text'] = "\n".join(body).strip('\n')
            posts.append(Post.from_dict(postdict, thread_uri=thread_uri))

    for lineno, line in enumerate(text.splitlines(), start=1):
        if _HEADER_START_RE.match(line):
            m = _HEADER_RE.match(line.rstrip())
            if not m:
                raise PostDumpFormatException(value=line, lineno=lineno,
                                              message=f"Malformed post header: {line!r}")
            finish()
            current = {'author': m.group('author'),
                       'id': m.group('postid'),
                       'number': int(m.group('number')),
                       'permalink': m.group('permalink')}
            body = []
        elif current is None:
            if line.strip():
                raise PostDumpFormatException(value=line, lineno=lineno,
                                              message="Text before the first post header")
        else:
            body.append(line)
    finish()
    return posts


def posts_from_records(records, thread_uri=None):
    '''Posts from a list of mappings, or a {posts: [...], thread: uri} mapping'''
    if isinstance(records, dict):
        thread_uri = records.get('thread', thread_uri)
        records = records.get('posts')
    if not isinstance(records, list):
        raise PostDumpFormatException(value=records,
                                      message="Expected a list of posts")
    posts = []
    for i, record in enumerate(records):
        if not isinstance(record, dict):
            raise PostDumpFormatException(value=record,
                                          message=f"Post {i} is not a mapping")
        if not record.get('author'):
            raise PostDumpFormatException(value=record,
                                          message=f"Post {i} has no author")
        try:
            number = int(record.get('number') or 0)
        except (TypeError, ValueError) as e:
            raise PostDumpFormatException(
                value=record,
                message=f"Post {i} has a bad number: {record.get('number')!r}") from e
        postdict = dict(record)
        postdict['author'] = str(record['author'])
        postdict['number'] = number
        postdict['text'] = str(record.get('text') or '')
        if postdict.get('id') is not None:
            postdict['id'] = str(postdict['id'])
        posts.append(Post.from_dict(postdict, thread_uri=thread_uri))
    return posts


def read_posts_json(text, thread_uri=None):
    try:
        records = json.loads(text)
    except json.JSONDecodeError as e:
        raise PostDumpFormatException(value=text[:80],
                                      message=f"Invalid JSON: {e}") from e
    return posts_from_records(records, thread_uri)


def read_posts_yaml(text, thread_uri=None):
    try:
        records = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise PostDumpFormatException(value=text[:80],
                                      message=f"Invalid YAML: {e}") from e
    return posts_from_records(records, thread_uri)


def read_posts_text(text, fromfmt='postdump', thread_uri=None):
    if fromfmt == 'json':
        return read_posts_json(text, thread_uri)
    if fromfmt == 'yaml':
        return read_posts_yaml(text, thread_uri)
    if fromfmt == 'postdump':
        return read_postdump_text(text, thread_uri)
    raise PostDumpFormatException(value=fromfmt,
                                  message=f"Unknown post format: {fromfmt}")


def read_posts_file(filename, fromfmt=None, thread_uri=None):
    if fromfmt is None:
        fromfmt = guess_format(filename)
    with open(filename, 'r', encoding='utf-8') as f:
        text = f.read()
    return read_posts_text(text, fromfmt, thread_uri)


def main():
    """List the posts found in a post dump file"""
    parser = argparse.ArgumentParser(description='Read a post dump file')
    parser.add_argument('input_file', help='Post dump, JSON or YAML file')
    parser.add_argument('-f', '--fromfmt', choices=POSTDUMP_FORMATS,
                        help='Input format (default: from file extension)')
    args = parser.parse_args()
    for post in read_posts_file(args.input_file, args.fromfmt):
        print(f"{post.origin.post_number:4} {post.origin.post_id.text:>10} "
              f"{post.origin.author}: {len(post.vote_lines)} vote lines")


if __name__ == "__main__":
    main()
