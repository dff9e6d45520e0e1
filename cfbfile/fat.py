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
Resolution of the allocation tables of a compound document.

The loaders in this module never touch the file directly. Each is a generator
which yields the number of a sector it needs and is sent that sector's content
in return; the eventual table is the generator's return value. This lets the
same code run against blocking and suspending sector sources (see
:func:`cfbfile.reader.drive` and :func:`cfbfile.reader.drive_async`).

Every walk is bounded by the number of sectors available, so corrupted or
malicious files cannot cause unbounded work.
"""

import struct as st
import logging
import warnings
from array import array

from .errors import (
    CompoundFileSectorRangeError,
    CompoundFileMasterFatError,
    CompoundFileMasterLoopError,
    CompoundFileNormalFatError,
    CompoundFileNormalLoopError,
    CompoundFileMiniFatError,
    CompoundFileMiniLoopError,
    CompoundFileTruncatedError,
    CompoundFileMasterFatWarning,
    CompoundFileMasterSectorWarning,
    CompoundFileNormalSectorWarning,
    CompoundFileMiniFatWarning,
    CompoundFileStreamSizeWarning,
    )
from .const import (
    FREE_SECTOR,
    END_OF_CHAIN,
    NORMAL_FAT_SECTOR,
    MASTER_FAT_SECTOR,
    MAX_NORMAL_SECTOR,
    SECTOR_NAMES,
    )


logger = logging.getLogger(__name__)


def sector_format(sector_size):
    """
    Return a :class:`struct.Struct` which unpacks a sector of *sector_size*
    bytes into sector numbers.
    """
    return st.Struct('<%dL' % (sector_size // 4))


def _sector_name(sector):
    return SECTOR_NAMES.get(sector, '%#x' % sector)


def walk_chain(fat, start, limit, count=None, mini=False):
    """
    Follow the chain beginning at *start* through *fat*, returning an
    :class:`array.array` of the sectors visited in order.

    The walk stops at END_OF_CHAIN, or once *count* sectors have been
    collected if *count* is given. Sectors must be less than *limit*. If
    *mini* is ``True`` the chain is a mini-FAT chain and errors are reported
    as such. Raises a loop error if a sector is visited twice, which bounds
    the walk to *limit* steps.
    """
    if mini:
        fat_error = CompoundFileMiniFatError
        loop_error = CompoundFileMiniLoopError
        range_error = CompoundFileMiniFatError
    else:
        fat_error = CompoundFileNormalFatError
        loop_error = CompoundFileNormalLoopError
        range_error = CompoundFileSectorRangeError
    chain = array('L')
    visited = set()
    sector = start
    while sector != END_OF_CHAIN:
        if count is not None and len(chain) == count:
            warnings.warn(
                    'chain starting at %d continues beyond %d sectors' % (
                        start, count), CompoundFileStreamSizeWarning)
            break
        if sector > MAX_NORMAL_SECTOR:
            raise fat_error(
                    'chain starting at %d broken by %s' % (
                        start, _sector_name(sector)))
        if sector >= limit:
            raise range_error(
                    'chain starting at %d references sector %d beyond the '
                    'end of the file (%d)' % (start, sector, limit))
        if sector >= len(fat):
            raise fat_error(
                    'chain starting at %d references sector %d which is '
                    'not covered by the FAT' % (start, sector))
        if sector in visited:
            raise loop_error(
                    'cyclic chain found starting at %d (sector %d)' % (
                        start, sector))
        visited.add(sector)
        chain.append(sector)
        sector = fat[sector]
    return chain


def load_master_fat(header, sector_count):
    """
    Generator which reads the master-FAT (DIFAT), returning a tuple of the
    list of normal-FAT sectors (in order) and the list of DIFAT sectors.

    The first 109 entries live in the header; if the header declares more
    FAT sectors than that, the DIFAT chain is followed from the header's
    DIFAT start sector. Each DIFAT sector holds further FAT sector numbers
    with the number of the next DIFAT sector in its final slot.
    """
    unpack = sector_format(header.sector_size).unpack
    master_fat = array('L')
    master_sectors = array('L')
    remaining = header.normal_sector_count

    # Special case: the first 109 entries are stored at the end of the file
    # header and the next sector of the master-FAT is stored in the header
    for value in header.master_fat:
        if remaining == 0 or value in (FREE_SECTOR, END_OF_CHAIN):
            break
        master_fat.append(value)
        remaining -= 1

    sector = header.master_first_sector
    if remaining and sector == FREE_SECTOR:
        warnings.warn(
                'DIFAT extension pointer is FREE_SECTOR, assuming no '
                'extension', CompoundFileMasterFatWarning)
        sector = END_OF_CHAIN
    visited = set()
    while remaining and sector != END_OF_CHAIN:
        if sector > MAX_NORMAL_SECTOR:
            warnings.warn(
                    'DIFAT chain terminated by %s' % _sector_name(sector),
                    CompoundFileMasterFatWarning)
            break
        if sector in visited or len(visited) >= sector_count:
            raise CompoundFileMasterLoopError(
                    'DIFAT loop encountered (sector %d)' % sector)
        if sector >= sector_count:
            raise CompoundFileSectorRangeError(
                    'DIFAT sector beyond file end (%d)' % sector)
        visited.add(sector)
        master_sectors.append(sector)
        data = yield sector
        values = unpack(data)
        for value in values[:-1]:
            if remaining == 0:
                break
            if value > MAX_NORMAL_SECTOR:
                continue
            master_fat.append(value)
            remaining -= 1
        sector = values[-1]

    if remaining > 0:
        warnings.warn(
                'DIFAT end encountered early (expected %d more '
                'sectors)' % remaining, CompoundFileMasterFatWarning)
    if len(master_sectors) != header.master_sector_count:
        warnings.warn(
                'DIFAT sector count does not match header '
                '(%d != %d)' % (len(master_sectors), header.master_sector_count),
                CompoundFileMasterFatWarning)
    if not master_fat:
        raise CompoundFileMasterFatError('DIFAT lists no FAT sectors')
    seen = set()
    for sector in master_fat:
        if sector >= sector_count:
            raise CompoundFileSectorRangeError(
                    'FAT sector beyond file end (%d)' % sector)
        if sector in seen:
            raise CompoundFileMasterFatError(
                    'FAT sector %d listed twice in DIFAT' % sector)
        seen.add(sector)
    logger.debug('DIFAT lists %d FAT sectors across %d DIFAT sectors',
                 len(master_fat), len(master_sectors))
    return master_fat, master_sectors


def load_normal_fat(header, master_fat, master_sectors):
    """
    Generator which reads the normal-FAT sectors listed in *master_fat*, in
    order, and returns the concatenation of their entries.
    """
    unpack = sector_format(header.sector_size).unpack
    normal_fat = array('L')
    for sector in master_fat:
        data = yield sector
        normal_fat.extend(unpack(data))

    # The following simply verifies that all normal-FAT and master-FAT
    # sectors are marked appropriately in the normal-FAT
    for master_sector in master_sectors:
        if (
                master_sector < len(normal_fat) and
                normal_fat[master_sector] != MASTER_FAT_SECTOR):
            warnings.warn(
                    'DIFAT sector %d marked incorrectly in FAT '
                    '(%d != %d)' % (
                        master_sector,
                        normal_fat[master_sector],
                        MASTER_FAT_SECTOR,
                        ), CompoundFileMasterSectorWarning)
            normal_fat[master_sector] = MASTER_FAT_SECTOR
    for normal_sector in master_fat:
        if (
                normal_sector < len(normal_fat) and
                normal_fat[normal_sector] != NORMAL_FAT_SECTOR):
            warnings.warn(
                    'FAT sector %d marked incorrectly in FAT '
                    '(%d != %d)' % (
                        normal_sector,
                        normal_fat[normal_sector],
                        NORMAL_FAT_SECTOR,
                        ), CompoundFileNormalSectorWarning)
            normal_fat[normal_sector] = NORMAL_FAT_SECTOR
    logger.debug('FAT has %d entries', len(normal_fat))
    return normal_fat


def load_fat(header, sector_count):
    """
    Generator combining :func:`load_master_fat` and :func:`load_normal_fat`;
    returns the normal-FAT.
    """
    master_fat, master_sectors = yield from load_master_fat(
            header, sector_count)
    return (yield from load_normal_fat(header, master_fat, master_sectors))


def mini_stream_chain(header, normal_fat, sector_count, root):
    """
    Return the normal sectors making up the mini-stream, the content of which
    is described by the *root* entity. The mini-stream is an ordinary chain in
    the normal-FAT, never the mini-FAT.
    """
    if root.size == 0:
        return array('L')
    count = (root.size + header.sector_size - 1) // header.sector_size
    chain = walk_chain(normal_fat, root._start_sector, sector_count, count)
    if len(chain) < count:
        raise CompoundFileTruncatedError(
                'mini stream chain ends after %d sectors (expected %d)' % (
                    len(chain), count))
    logger.debug('mini stream occupies %d sectors', len(chain))
    return chain


def load_mini_fat(header, normal_fat, sector_count):
    """
    Generator which reads the mini-FAT through the normal-FAT and returns its
    entries.
    """
    mini_fat = array('L')
    start = header.mini_first_sector
    if start == FREE_SECTOR:
        warnings.warn(
                'mini FAT first sector set to FREE_SECTOR',
                CompoundFileMiniFatWarning)
        start = END_OF_CHAIN
    if start == END_OF_CHAIN:
        if header.mini_sector_count:
            warnings.warn(
                    'mini FAT sector count is non-zero (%d) but the mini '
                    'FAT is empty' % header.mini_sector_count,
                    CompoundFileMiniFatWarning)
        return mini_fat
    chain = walk_chain(
            normal_fat, start, sector_count, header.mini_sector_count or None)
    if len(chain) != header.mini_sector_count:
        warnings.warn(
                'mini FAT chain length does not match header '
                '(%d != %d)' % (len(chain), header.mini_sector_count),
                CompoundFileMiniFatWarning)
    unpack = sector_format(header.sector_size).unpack
    for sector in chain:
        data = yield sector
        mini_fat.extend(unpack(data))
    logger.debug('mini FAT has %d entries', len(mini_fat))
    return mini_fat
