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
Decoding of the fixed 512-byte header found at the start of every compound
document.
"""

import logging
import warnings
from collections import namedtuple

from .errors import (
    CompoundFileHeaderError,
    CompoundFileInvalidMagicError,
    CompoundFileInvalidBomError,
    CompoundFileVersionError,
    CompoundFileHeaderWarning,
    CompoundFileSectorSizeWarning,
    )
from .const import (
    COMPOUND_MAGIC,
    COMPOUND_HEADER,
    MASTER_HEADER,
    HEADER_SIZE,
    MINI_SECTOR_SHIFT,
    MINI_SIZE_LIMIT,
    SECTOR_SHIFTS,
    )


logger = logging.getLogger(__name__)


class CompoundFileHeader(namedtuple('CompoundFileHeader', (
    'uuid',
    'minor_version',
    'major_version',
    'sector_size',
    'mini_sector_size',
    'dir_sector_count',
    'normal_sector_count',
    'dir_first_sector',
    'mini_size_limit',
    'mini_first_sector',
    'mini_sector_count',
    'master_first_sector',
    'master_sector_count',
    'master_fat',
    ))):
    """
    The decoded header of a compound document.

    .. attribute:: sector_size

        The size of a normal sector in bytes (512 or 4096).

    .. attribute:: mini_sector_size

        The size of a mini-sector in bytes (always 64).

    .. attribute:: mini_size_limit

        Streams smaller than this many bytes are stored in the mini-stream.

    .. attribute:: master_fat

        A tuple of the 109 DIFAT entries stored in the header itself.
    """

    @property
    def header_size(self):
        """
        The number of bytes preceding sector 0 of the file.
        """
        return max(self.sector_size, HEADER_SIZE)


def parse_header(data):
    """
    Decode *data* (which must contain at least the first 512 bytes of the
    file) into a :class:`CompoundFileHeader`.

    Raises :exc:`CompoundFileInvalidMagicError` if the signature is wrong,
    :exc:`CompoundFileVersionError` for anything other than a version 3 or 4
    document, and :exc:`CompoundFileHeaderError` for other structural
    problems. Oddities which don't prevent reading are reported as warnings.
    """
    if len(data) < HEADER_SIZE:
        raise CompoundFileHeaderError(
                'header is truncated (%d bytes)' % len(data))
    (
        magic,
        uuid,
        minor_version,
        major_version,
        bom,
        sector_shift,
        mini_sector_shift,
        unused,
        dir_sector_count,
        normal_sector_count,
        dir_first_sector,
        txn_signature,
        mini_size_limit,
        mini_first_sector,
        mini_sector_count,
        master_first_sector,
        master_sector_count,
    ) = COMPOUND_HEADER.unpack_from(data)
    master_fat = MASTER_HEADER.unpack_from(data, COMPOUND_HEADER.size)

    # Check the header for basic correctness
    if magic != COMPOUND_MAGIC:
        raise CompoundFileInvalidMagicError(
                'file does not appear to be an OLE compound document')
    if bom != 0xFFFE:
        raise CompoundFileInvalidBomError(
                'file uses an unsupported byte ordering (big endian)')
    if major_version not in SECTOR_SHIFTS:
        raise CompoundFileVersionError(
                'unsupported DLL version (%d)' % major_version)
    if sector_shift not in SECTOR_SHIFTS.values():
        raise CompoundFileHeaderError(
                'invalid sector size (2**%d bytes)' % sector_shift)
    if mini_sector_shift != MINI_SECTOR_SHIFT:
        raise CompoundFileHeaderError(
                'invalid mini sector size (2**%d bytes)' % mini_sector_shift)

    # More correctness checks, but mostly warnings at this stage
    if sector_shift != SECTOR_SHIFTS[major_version]:
        warnings.warn(
                'unexpected sector size in v%d file (%d)' % (
                    major_version, 1 << sector_shift),
                CompoundFileSectorSizeWarning)
    if major_version == 3 and dir_sector_count != 0:
        warnings.warn(
                'directory chain sector count is non-zero '
                '(%d)' % dir_sector_count, CompoundFileHeaderWarning)
    if uuid != (b'\0' * 16):
        warnings.warn(
                'CLSID of compound file is non-zero (%r)' % uuid,
                CompoundFileHeaderWarning)
    if txn_signature != 0:
        warnings.warn(
                'transaction signature is non-zero '
                '(%d)' % txn_signature, CompoundFileHeaderWarning)
    if unused != (b'\0' * 6):
        warnings.warn(
                'unused header bytes are non-zero '
                '(%r)' % unused, CompoundFileHeaderWarning)
    if mini_size_limit != MINI_SIZE_LIMIT:
        warnings.warn(
                'unexpected mini stream cutoff size '
                '(%d)' % mini_size_limit, CompoundFileHeaderWarning)

    header = CompoundFileHeader(
        uuid=uuid,
        minor_version=minor_version,
        major_version=major_version,
        sector_size=1 << sector_shift,
        mini_sector_size=1 << mini_sector_shift,
        dir_sector_count=dir_sector_count,
        normal_sector_count=normal_sector_count,
        dir_first_sector=dir_first_sector,
        mini_size_limit=mini_size_limit,
        mini_first_sector=mini_first_sector,
        mini_sector_count=mini_sector_count,
        master_first_sector=master_first_sector,
        master_sector_count=master_sector_count,
        master_fat=master_fat,
        )
    logger.debug('v%d.%d header, %d byte sectors, %d FAT sectors, '
                 '%d DIFAT sectors, %d mini-FAT sectors',
                 major_version, minor_version, header.sector_size,
                 normal_sector_count, master_sector_count, mini_sector_count)
    return header
