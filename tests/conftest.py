#!/usr/bin/env python
# vim: set et sw=4 sts=4 fileencoding=utf-8:
#
# A library for reading Microsoft's OLE Compound Document format
# Copyright (c) 2014 Dave Hughes <dave@waveform.org.uk>
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in
# all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

import datetime as dt

import pytest

from builder import Storage, build_image


def filetime(value):
    return int((value - dt.datetime(1601, 1, 1)).total_seconds()) * 10000000


SAMPLE_CREATED = dt.datetime(2014, 3, 1, 12, 30)
SAMPLE_MODIFIED = dt.datetime(2014, 3, 2, 9, 15)

SAMPLE_STREAMS = {
    'WordDocument': bytes(range(256)) * 20,
    '\x01CompObj': b'Data' * 25,
    'Empty': b'',
    '1Table': b'Table' * 140,
    'ObjectPool/_1234/\x01Ole': b'Ole' * 7,
    'ObjectPool/_1234/Contents': bytes(range(200)) * 30,
    }

SAMPLE_PATHS = [
    'Empty',
    '1Table',
    '\x01CompObj',
    'ObjectPool',
    'ObjectPool/_1234',
    'ObjectPool/_1234/\x01Ole',
    'ObjectPool/_1234/Contents',
    'WordDocument',
    ]


def sample_tree():
    return Storage([
        ('WordDocument', SAMPLE_STREAMS['WordDocument']),
        ('\x01CompObj', SAMPLE_STREAMS['\x01CompObj']),
        ('Empty', SAMPLE_STREAMS['Empty']),
        ('ObjectPool', Storage([
            ('_1234', Storage([
                ('\x01Ole', SAMPLE_STREAMS['ObjectPool/_1234/\x01Ole']),
                ('Contents', SAMPLE_STREAMS['ObjectPool/_1234/Contents']),
                ])),
            ], created=filetime(SAMPLE_CREATED),
            modified=filetime(SAMPLE_MODIFIED))),
        ('1Table', SAMPLE_STREAMS['1Table']),
        ])


@pytest.fixture()
def sample():
    return build_image(sample_tree())


@pytest.fixture()
def sample_v4():
    return build_image(sample_tree(), version=4)


@pytest.fixture(params=(3, 4))
def sample_any(request):
    return build_image(sample_tree(), version=request.param)


@pytest.fixture()
def sample_streams():
    return dict(SAMPLE_STREAMS)


@pytest.fixture()
def sample_paths():
    return list(SAMPLE_PATHS)


@pytest.fixture()
def sample_times():
    return SAMPLE_CREATED, SAMPLE_MODIFIED
