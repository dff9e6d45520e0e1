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

"""
Identification of the application which produced a compound document, from
the class identifier of its root storage. Only directory metadata is
consulted; stream content is never read.
"""

import uuid


FILE_TYPE_GENERIC = 'generic'
FILE_TYPE_WORD97 = 'word97'
FILE_TYPE_WORD6 = 'word6'
FILE_TYPE_EXCEL97 = 'excel97'
FILE_TYPE_EXCEL5 = 'excel5'
FILE_TYPE_POWERPOINT97 = 'powerpoint97'

ROOT_CLSIDS = {
    uuid.UUID('00020906-0000-0000-C000-000000000046'): FILE_TYPE_WORD97,
    uuid.UUID('00020900-0000-0000-C000-000000000046'): FILE_TYPE_WORD6,
    uuid.UUID('00020820-0000-0000-C000-000000000046'): FILE_TYPE_EXCEL97,
    uuid.UUID('00020810-0000-0000-C000-000000000046'): FILE_TYPE_EXCEL5,
    uuid.UUID('64818D10-4F9B-11CF-86EA-00AA00B929E8'): FILE_TYPE_POWERPOINT97,
    }


def file_type(root):
    """
    Return a string naming the kind of document whose root storage is the
    :class:`~cfbfile.CompoundFileEntity` *root*; one of ``'word97'``,
    ``'word6'``, ``'excel97'``, ``'excel5'``, ``'powerpoint97'``, or
    ``'generic'`` if the root's class identifier isn't recognized.
    """
    # CLSIDs are stored with their first three fields little-endian
    clsid = uuid.UUID(bytes_le=root.uuid)
    return ROOT_CLSIDS.get(clsid, FILE_TYPE_GENERIC)
