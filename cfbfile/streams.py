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

import io
import logging

from .errors import CompoundFileTruncatedError
from .fat import walk_chain


logger = logging.getLogger(__name__)


def resolve_blocks(header, sector_count, normal_fat, mini_fat, mini_chain,
                   root, entity):
    """
    Resolve the chain of the stream *entity* into a list of ``(sector,
    offset)`` tuples, one per block of the stream, and store it on the entity
    along with the block size. Called for every stream while the compound
    document is opened, so corrupt chains abort the open; a chain which is
    merely shorter than the stream's size is only reported when the stream
    is opened (see :func:`load_blocks`).

    Streams at least as large as the header's cutoff are stored in normal
    sectors; smaller streams are stored in mini-sectors which are carved out
    of the mini-stream's sectors, so each mini-sector is translated into the
    normal sector containing it and its offset within that sector.
    """
    size = entity.size
    if size >= header.mini_size_limit:
        block_size = header.sector_size
    else:
        block_size = header.mini_sector_size
    count = (size + block_size - 1) // block_size
    if count == 0:
        blocks = []
    elif block_size == header.sector_size:
        chain = walk_chain(normal_fat, entity._start_sector, sector_count, count)
        blocks = [(sector, 0) for sector in chain]
    else:
        mini_count = (root.size + block_size - 1) // block_size
        per_sector = header.sector_size // block_size
        chain = walk_chain(
                mini_fat, entity._start_sector, mini_count, count, mini=True)
        blocks = [
            (
                mini_chain[mini_sector // per_sector],
                (mini_sector % per_sector) * block_size,
            )
            for mini_sector in chain
            ]
    logger.debug('stream %s occupies %d blocks of %d bytes',
                 entity.path, len(blocks), block_size)
    entity._blocks = blocks
    entity._block_size = block_size


def load_blocks(entity):
    """
    Return the blocks and block size of the stream *entity*, as resolved by
    :func:`resolve_blocks`. Raises :exc:`CompoundFileTruncatedError` if the
    stream's chain doesn't cover its size.
    """
    count = (entity.size + entity._block_size - 1) // entity._block_size
    if len(entity._blocks) < count:
        raise CompoundFileTruncatedError(
                'stream %s ends after %d bytes (expected %d)' % (
                    entity.path, len(entity._blocks) * entity._block_size,
                    entity.size))
    return entity._blocks, entity._block_size


class _StreamMap(object):
    # Position and block arithmetic shared by the blocking and suspending
    # streams; neither performs I/O here
    def __init__(self, parent, entity):
        super(_StreamMap, self).__init__()
        self._source = parent._source
        self._blocks, self._block_size = load_blocks(entity)
        self._length = entity.size
        self._position = 0
        self.entity = entity

    def _plan(self, offset, size):
        # Yield (sector, start, end) for each piece of the range requested
        if size is None or size < 0:
            end = self._length
        else:
            end = min(self._length, offset + size)
        while offset < end:
            index, within = divmod(offset, self._block_size)
            sector, base = self._blocks[index]
            n = min(self._block_size - within, end - offset)
            yield sector, base + within, base + within + n
            offset += n

    def _seek_pos(self, offset, whence):
        if whence == io.SEEK_CUR:
            offset = self._position + offset
        elif whence == io.SEEK_END:
            offset = self._length + offset
        elif whence != io.SEEK_SET:
            raise ValueError('invalid whence (%r)' % whence)
        if offset < 0:
            raise ValueError(
                    'New position is before the start of the stream')
        return offset


class CompoundFileStream(io.RawIOBase):
    """
    A read-only file-like object representing the content of a stream within
    an OLE Compound Document.

    Instances of :class:`CompoundFileStream` are not constructed directly, but
    are returned by the :meth:`CompoundFileReader.open` method. They support
    all common methods associated with read-only streams (:meth:`read`,
    :meth:`seek`, :meth:`tell`, and so forth), plus :meth:`read_at` which
    reads from a given offset without moving the stream position.

    The chain of sectors making up the stream is resolved when the stream is
    opened, so seeking anywhere within the stream is cheap. Each stream has
    its own position, so multiple threads may read separate streams (or
    separate instances of the same stream) simultaneously.
    """

    def __init__(self, parent, entity):
        super(CompoundFileStream, self).__init__()
        self._map = _StreamMap(parent, entity)

    @property
    def name(self):
        return self._map.entity.path

    @property
    def size(self):
        """
        The length of the stream in bytes.
        """
        return self._map._length

    def _check_open(self):
        if self.closed:
            raise ValueError('I/O operation on closed stream')

    def readable(self):
        """
        Returns ``True``, indicating that the stream supports :meth:`read`.
        """
        return True

    def writable(self):
        """
        Returns ``False``, indicating that the stream doesn't support
        :meth:`write` or :meth:`truncate`.
        """
        return False

    def seekable(self):
        """
        Returns ``True``, indicating that the stream supports :meth:`seek`.
        """
        return True

    def tell(self):
        """
        Return the current stream position.
        """
        self._check_open()
        return self._map._position

    def seek(self, offset, whence=io.SEEK_SET):
        """
        Change the stream position to the given byte *offset*. *offset* is
        interpreted relative to the position indicated by *whence*. Values for
        *whence* are:

        * ``SEEK_SET`` or ``0`` - start of the stream (the default); *offset*
          should be zero or positive

        * ``SEEK_CUR`` or ``1`` - current stream position; *offset* may be
          negative

        * ``SEEK_END`` or ``2`` - end of the stream; *offset* is usually
          negative

        Return the new absolute position.
        """
        self._check_open()
        self._map._position = self._map._seek_pos(offset, whence)
        return self._map._position

    def read_at(self, offset, n=-1):
        """
        Return up to *n* bytes of the stream starting at *offset*, without
        altering the stream position. If *n* is unspecified or -1, everything
        from *offset* to the end of the stream is returned.
        """
        self._check_open()
        if offset < 0:
            raise ValueError('offset must be zero or positive')
        source = self._map._source
        return b''.join(
            source.read_sector(sector)[start:end]
            for sector, start, end in self._map._plan(offset, n)
            )

    def read(self, n=-1):
        """
        Read up to *n* bytes from the stream and return them. As a convenience,
        if *n* is unspecified or -1, :meth:`readall` is called. Fewer than *n*
        bytes may be returned if there are fewer than *n* bytes from the
        current stream position to the end of the stream.

        If 0 bytes are returned, and *n* was not 0, this indicates end of the
        stream.
        """
        if n is None or n < 0:
            return self.readall()
        result = self.read_at(self._map._position, n)
        self._map._position += len(result)
        return result

    def read1(self, n=-1):
        """
        Read up to *n* bytes from the stream. This is equivalent to
        :meth:`read` as the stream has no buffer of its own.
        """
        return self.read(n)

    def readall(self):
        """
        Read and return everything from the current position to the end of
        the stream.
        """
        result = self.read_at(self._map._position)
        self._map._position += len(result)
        return result

    def readinto(self, b):
        """
        Read bytes into the pre-allocated writable bytes-like object *b* and
        return the number of bytes read.
        """
        with memoryview(b) as view, view.cast('B') as target:
            data = self.read(len(target))
            target[:len(data)] = data
        return len(data)


class AsyncCompoundFileStream(object):
    """
    The suspending equivalent of :class:`CompoundFileStream`, returned by
    :meth:`AsyncCompoundFileReader.open`. :meth:`read` and :meth:`read_at`
    are coroutines; :meth:`seek` and :meth:`tell` are ordinary methods as
    they perform no I/O. Supports ``async with``.
    """

    def __init__(self, parent, entity):
        super(AsyncCompoundFileStream, self).__init__()
        self._map = _StreamMap(parent, entity)
        self.closed = False

    @property
    def name(self):
        return self._map.entity.path

    @property
    def size(self):
        """
        The length of the stream in bytes.
        """
        return self._map._length

    def _check_open(self):
        if self.closed:
            raise ValueError('I/O operation on closed stream')

    def tell(self):
        self._check_open()
        return self._map._position

    def seek(self, offset, whence=io.SEEK_SET):
        self._check_open()
        self._map._position = self._map._seek_pos(offset, whence)
        return self._map._position

    async def read_at(self, offset, n=-1):
        """
        Return up to *n* bytes from *offset* without altering the stream
        position.
        """
        self._check_open()
        if offset < 0:
            raise ValueError('offset must be zero or positive')
        source = self._map._source
        result = []
        for sector, start, end in self._map._plan(offset, n):
            data = await source.read_sector(sector)
            result.append(data[start:end])
        return b''.join(result)

    async def read(self, n=-1):
        """
        Read up to *n* bytes (everything remaining if *n* is -1) from the
        current position.
        """
        result = await self.read_at(self._map._position, n)
        self._map._position += len(result)
        return result

    def close(self):
        self.closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_value, traceback):
        self.close()
