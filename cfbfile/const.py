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

import struct as st


# Magic identifier at the start of the file
COMPOUND_MAGIC = b'\xD0\xCF\x11\xE0\xA1\xB1\x1A\xE1'

FREE_SECTOR       = 0xFFFFFFFF # denotes an unallocated (free) sector
END_OF_CHAIN      = 0xFFFFFFFE # denotes the end of a stream chain
NORMAL_FAT_SECTOR = 0xFFFFFFFD # denotes a sector used for the regular FAT
MASTER_FAT_SECTOR = 0xFFFFFFFC # denotes a sector used for the master FAT
MAX_NORMAL_SECTOR = 0xFFFFFFFA # the maximum sector in a file

SECTOR_NAMES = {
    FREE_SECTOR:       'FREE_SECTOR',
    END_OF_CHAIN:      'END_OF_CHAIN',
    NORMAL_FAT_SECTOR: 'NORMAL_FAT_SECTOR',
    MASTER_FAT_SECTOR: 'MASTER_FAT_SECTOR',
    }

MAX_REG_SID    = 0xFFFFFFFA # maximum directory entry ID
NO_STREAM      = 0xFFFFFFFF # unallocated directory entry

DIR_INVALID    = 0 # unknown/empty(?) storage type
DIR_STORAGE    = 1 # element is a storage (dir) object
DIR_STREAM     = 2 # element is a stream (file) object
DIR_LOCKBYTES  = 3 # element is an ILockBytes object
DIR_PROPERTY   = 4 # element is an IPropertyStorage object
DIR_ROOT       = 5 # element is the root storage object

DIR_KINDS = {
    DIR_INVALID: 'unused',
    DIR_STORAGE: 'storage',
    DIR_STREAM:  'stream',
    DIR_ROOT:    'root',
    }

FILENAME_ENCODING = 'latin-1'

# Names are 32 UTF-16 code units including the NULL terminator
MAX_NAME_LENGTH = 31

# The header always occupies 512 bytes, though in files with larger sectors
# the rest of the first sector is padding
HEADER_SIZE = 512
HEADER_MASTER_ENTRIES = 109
MINI_SECTOR_SHIFT = 6
SECTOR_SHIFTS = {3: 9, 4: 12}
MINI_SIZE_LIMIT = 4096


COMPOUND_HEADER = st.Struct(''.join((
    '<',    # little-endian format
    '8s',   # magic string
    '16s',  # file UUID (unused)
    'H',    # file header minor version
    'H',    # file header major version
    'H',    # byte order mark
    'H',    # sector size (actual size is 2**sector_size)
    'H',    # mini sector size (actual size is 2**short_sector_size)
    '6s',   # unused
    'L',    # directory chain sector count
    'L',    # normal-FAT sector count
    'L',    # ID of first sector of the directory chain
    'L',    # transaction signature (unused)
    'L',    # minimum size of a normal stream
    'L',    # ID of first sector of the mini-FAT
    'L',    # mini-FAT sector count
    'L',    # ID of first sector of the master-FAT
    'L',    # master-FAT sector count
    )))

MASTER_HEADER = st.Struct('<%dL' % HEADER_MASTER_ENTRIES)

DIR_HEADER = st.Struct(''.join((
    '<',    # little-endian format
    '64s',  # NULL-terminated filename in UTF-16 little-endian encoding
    'H',    # length of filename (why?!)
    'B',    # dir-entry type
    'B',    # red (0) or black (1) entry
    'L',    # ID of left-sibling node
    'L',    # ID of right-sibling node
    'L',    # ID of children's root node
    '16s',  # dir-entry UUID (unused)
    'L',    # user flags (unused)
    'Q',    # creation timestamp
    'Q',    # modification timestamp
    'L',    # start sector of stream
    'L',    # low 32-bits of stream size
    'L',    # high 32-bits of stream size
    )))
