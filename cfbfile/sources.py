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
Sector sources provide the only access the reader has to the raw bytes of a
compound document. Everything above this layer refers to the file purely by
sector number.

Two flavours exist. :class:`SectorSource` performs blocking reads and
:class:`AsyncSectorSource` provides the same operations as coroutines. The
parsing algorithms are identical for both; see :mod:`cfbfile.reader`.
"""

import io
import os
import mmap
import shutil
import asyncio
import logging
import tempfile
import warnings
import threading

from .errors import (
    CompoundFileSectorRangeError,
    CompoundFileTruncatedWarning,
    )
from .const import HEADER_SIZE


logger = logging.getLogger(__name__)


class _SectorGeometry(object):
    # Sector arithmetic shared by the blocking and suspending sources. The
    # sector size is unknown until the header has been decoded, at which
    # point the reader assigns it
    def __init__(self):
        super(_SectorGeometry, self).__init__()
        self._file_size = 0
        self._sector_size = HEADER_SIZE
        self._truncation_warned = False

    @property
    def sector_size(self):
        """
        The size of each sector in bytes. This is 512 until the reader has
        decoded the header and set the real value.
        """
        return self._sector_size

    @sector_size.setter
    def sector_size(self, value):
        self._sector_size = value

    @property
    def header_size(self):
        """
        The number of bytes preceding sector 0.
        """
        return max(self._sector_size, HEADER_SIZE)

    @property
    def file_size(self):
        return self._file_size

    def sector_count(self):
        """
        Return the number of sectors in the file. A trailing partial sector
        counts as a sector.
        """
        remaining = self._file_size - self.header_size
        if remaining <= 0:
            return 0
        return (remaining + self._sector_size - 1) // self._sector_size

    def _sector_offset(self, sector):
        if not 0 <= sector < self.sector_count():
            raise CompoundFileSectorRangeError(
                    'read from invalid sector (%d)' % sector)
        return self.header_size + (sector * self._sector_size)

    def _pad_sector(self, data):
        if len(data) < self._sector_size:
            if not self._truncation_warned:
                self._truncation_warned = True
                warnings.warn(
                        'file ends part way through a sector (%d bytes '
                        'missing)' % (self._sector_size - len(data)),
                        CompoundFileTruncatedWarning)
            data += b'\0' * (self._sector_size - len(data))
        return data


class SectorSource(_SectorGeometry):
    """
    Abstract base class for blocking sector sources.

    Descendents must set :attr:`_file_size` and implement :meth:`_read` which
    returns up to *size* bytes from *offset* (fewer only at the end of the
    file).
    """

    def _read(self, offset, size):
        raise NotImplementedError

    def read_header_region(self):
        """
        Return the first 512 bytes of the file (fewer if the file is shorter).
        """
        return self._read(0, HEADER_SIZE)

    def read_sector(self, sector):
        """
        Return the content of the specified *sector* as a :class:`bytes`
        string of exactly :attr:`sector_size` bytes. Raises
        :exc:`CompoundFileSectorRangeError` if *sector* lies beyond the end of
        the file.
        """
        return self._pad_sector(
                self._read(self._sector_offset(sector), self._sector_size))

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()


class FileSectorSource(SectorSource):
    """
    Provides sectors from a file, a file-like object, or a bytes-like object.

    If *filename_or_obj* is a string (or path-like object) it is opened as a
    file. A :class:`bytes`, :class:`bytearray` or :class:`memoryview` is used
    directly. Otherwise the object is expected to be a file-like object; if it
    has a valid file descriptor it is memory-mapped, else its content is copied
    to a spooled temporary file which is then mapped.

    Because reads are performed against a memory map, a single source can be
    read by several threads simultaneously.
    """

    def __init__(self, filename_or_obj):
        super(FileSectorSource, self).__init__()
        self._mmap = None
        if isinstance(filename_or_obj, (bytes, bytearray, memoryview)):
            self._opened = False
            self._file = None
            self._map = memoryview(filename_or_obj).cast('B')
        else:
            if isinstance(filename_or_obj, (str, os.PathLike)):
                self._opened = True
                self._file = io.open(filename_or_obj, 'rb')
            else:
                try:
                    filename_or_obj.fileno()
                except (IOError, AttributeError):
                    # It's a file-like object without a valid file descriptor;
                    # copy its content to a spooled temp file and use that for
                    # mmap
                    try:
                        filename_or_obj.seek(0)
                    except (IOError, AttributeError):
                        raise IOError(
                                'filename_or_obj must support seek() or '
                                'fileno()')
                    self._opened = True
                    self._file = tempfile.SpooledTemporaryFile()
                    shutil.copyfileobj(filename_or_obj, self._file)
                    self._file.flush()
                else:
                    # It's a file-like object with a valid file descriptor;
                    # just reference the object and mmap it
                    self._opened = False
                    self._file = filename_or_obj
            if os.fstat(self._file.fileno()).st_size:
                self._mmap = mmap.mmap(
                        self._file.fileno(), 0, access=mmap.ACCESS_READ)
                self._map = self._mmap
            else:
                # mmap refuses to map empty files
                self._map = b''
        self._file_size = len(self._map)
        logger.debug('opened sector source of %d bytes', self._file_size)

    def _read(self, offset, size):
        if self._map is None:
            raise ValueError('I/O operation on closed sector source')
        return bytes(self._map[offset:offset + size])

    def close(self):
        try:
            if self._mmap is not None:
                self._mmap.close()
            if self._opened:
                self._file.close()
        finally:
            self._mmap = None
            self._map = None
            self._file = None


class AsyncSectorSource(_SectorGeometry):
    """
    Abstract base class for suspending sector sources.

    This offers the same operations as :class:`SectorSource` but
    :meth:`read_header_region` and :meth:`read_sector` are coroutines.
    Descendents must set :attr:`_file_size` before the reader uses them and
    implement the coroutine :meth:`_read`. For example, to serve sectors from
    some remote store supporting ranged reads::

        class RemoteSectorSource(AsyncSectorSource):
            def __init__(self, client, key, size):
                super().__init__()
                self._client = client
                self._key = key
                self._file_size = size

            async def _read(self, offset, size):
                return await self._client.get_range(self._key, offset, size)
    """

    async def _read(self, offset, size):
        raise NotImplementedError

    async def read_header_region(self):
        """
        Return the first 512 bytes of the file (fewer if the file is shorter).
        """
        return await self._read(0, HEADER_SIZE)

    async def read_sector(self, sector):
        """
        Return the content of the specified *sector*, as
        :meth:`SectorSource.read_sector` does.
        """
        offset = self._sector_offset(sector)
        return self._pad_sector(await self._read(offset, self._sector_size))

    def close(self):
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_value, traceback):
        self.close()


class AsyncFileSectorSource(AsyncSectorSource):
    """
    Provides sectors from a file or file-like object without blocking the
    event loop; reads are performed by *executor* (the loop's default executor
    if not specified).

    If *filename_or_obj* is a string (or path-like object) it is opened as a
    file; otherwise it must be a seekable file-like object.
    """

    def __init__(self, filename_or_obj, executor=None):
        super(AsyncFileSectorSource, self).__init__()
        if isinstance(filename_or_obj, (str, os.PathLike)):
            self._opened = True
            self._file = io.open(filename_or_obj, 'rb')
        else:
            self._opened = False
            self._file = filename_or_obj
        self._executor = executor
        self._lock = threading.Lock()
        self._file_size = self._file.seek(0, io.SEEK_END)

    def _read_blocking(self, offset, size):
        with self._lock:
            if self._file is None:
                raise ValueError('I/O operation on closed sector source')
            self._file.seek(offset)
            return self._file.read(size)

    async def _read(self, offset, size):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
                self._executor, self._read_blocking, offset, size)

    def close(self):
        try:
            if self._opened:
                self._file.close()
        finally:
            self._file = None
