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

import logging
from collections import namedtuple

from .errors import (
    CompoundFileNameError,
    CompoundFileNotFoundError,
    CompoundFileNotStreamError,
    )
from .const import (
    MAX_NAME_LENGTH,
    FILENAME_ENCODING,
    )
from .header import parse_header
from .fat import (
    walk_chain,
    load_fat,
    load_mini_fat,
    mini_stream_chain,
    )
from .entities import CompoundFileEntity, load_entities
from .streams import (
    CompoundFileStream,
    AsyncCompoundFileStream,
    resolve_blocks,
    )
from .sources import (
    SectorSource,
    FileSectorSource,
    AsyncSectorSource,
    AsyncFileSectorSource,
    )
from .ftype import file_type


logger = logging.getLogger(__name__)


# In the interests of trying to keep naming vaguely consistent and sensible
# here's a translation list with the names we'll be using first and the names
# other documents use after:
#
#   normal-FAT = FAT = SAT
#   master-FAT = DIFAT = DIF = MSAT
#   mini-FAT = miniFAT = SSAT
#
# A compound document is a 512 byte header followed by equally sized sectors
# numbered from zero. The header lists the first 109 sectors of the
# normal-FAT; any further normal-FAT sectors are listed by the master-FAT
# sectors, which form their own little chain starting from the header. The
# normal-FAT is a linked list: each entry holds the number of the sector
# following that sector in its chain.
#
# The directory is an ordinary chain in the normal-FAT. Its first entry is the
# root storage, whose stream is the mini-stream: a chain of normal sectors
# carved up into 64 byte mini-sectors, linked together by the mini-FAT (which
# is itself another ordinary chain in the normal-FAT). Streams smaller than the
# header's cutoff live in the mini-stream, everything else in normal sectors.
#
# All of the parsing below is written as generators which yield the number of
# the sector they need next and are sent its content. The blocking and
# suspending readers differ only in how they answer those requests.


def parse(header, sector_count, strict=True):
    """
    Generator which resolves the structures of a compound document described
    by *header*, which has *sector_count* sectors. Yields sector numbers and
    expects to be sent their content in return (see :func:`drive`). Returns a
    tuple of the normal-FAT, the mini-FAT, the chain of the mini-stream, and
    the list of directory entries (the root first, with its tree built).
    """
    normal_fat = yield from load_fat(header, sector_count)

    # When reading the directory we don't attempt to accurately reconstruct
    # the red-black tree; some implementations don't write a correct one and
    # it doesn't matter for users of the library. In older compound files we
    # have no idea how many entries are actually in the directory, so the
    # chain's length bounds it
    data = bytearray()
    for sector in walk_chain(normal_fat, header.dir_first_sector, sector_count):
        data += yield sector
    entries = load_entities(header, bytes(data), strict)
    root = entries[0]
    logger.debug('directory holds %d entries', len(entries))

    mini_chain = mini_stream_chain(header, normal_fat, sector_count, root)
    mini_fat = yield from load_mini_fat(header, normal_fat, sector_count)
    root._build_tree(entries, strict)

    # Every stream's chain is walked now so that a loop or stray sector
    # anywhere in the file fails the open; a chain that merely ends early is
    # reported when that stream is opened
    for entity in root.walk():
        if entity.isfile:
            resolve_blocks(
                header, sector_count, normal_fat, mini_fat, mini_chain,
                root, entity)
    return normal_fat, mini_fat, mini_chain, entries


def drive(gen, source):
    """
    Run the parsing generator *gen* to completion against the blocking
    :class:`~cfbfile.SectorSource` *source* and return its result.
    """
    try:
        sector = next(gen)
        while True:
            sector = gen.send(source.read_sector(sector))
    except StopIteration as e:
        return e.value


async def drive_async(gen, source):
    """
    Run the parsing generator *gen* to completion against the suspending
    :class:`~cfbfile.AsyncSectorSource` *source* and return its result.
    """
    try:
        sector = next(gen)
        while True:
            sector = gen.send(await source.read_sector(sector))
    except StopIteration as e:
        return e.value


class CompoundFileMetadata(namedtuple('CompoundFileMetadata', (
        'kind',
        'size',
        'created',
        'modified',
        'uuid',
        ))):
    """
    Describes an entity without opening it, as returned by
    :meth:`CompoundFileReader.metadata`. :attr:`kind` is ``'root'``,
    ``'storage'`` or ``'stream'``; the timestamps are ``None`` where the file
    doesn't record them.
    """
    __slots__ = ()


class _CompoundFileBase(object):
    # Everything the blocking and suspending readers share; none of it
    # touches the sector source
    def __init__(self, source, header, state, strict, opened):
        super(_CompoundFileBase, self).__init__()
        self._source = source
        self._opened = opened
        self.header = header
        self.strict = strict
        self._sector_count = source.sector_count()
        (
            self._normal_fat,
            self._mini_fat,
            self._mini_chain,
            self._entries,
        ) = state
        self.root = self._entries[0]

    @property
    def file_type(self):
        """
        The kind of document, as identified from the root storage's class
        identifier by :func:`cfbfile.ftype.file_type`.
        """
        return file_type(self.root)

    def list_streams(self, streams=True, storages=True):
        """
        Return a list of the paths of every entity in the compound document
        (excluding the root), with ``/`` separating the names of storages
        from their content. The list is ordered depth-first, each storage
        being followed by its content in directory order.

        If *streams* is ``False``, streams are excluded; if *storages* is
        ``False``, storages are excluded.
        """
        return [
            entity.path
            for entity in self.root.walk()
            if (streams and entity.isfile) or (storages and entity.isdir)
            ]

    def list_storages(self):
        """
        Return a list of the paths of every storage in the compound document
        (excluding the root).
        """
        return self.list_streams(streams=False)

    def lookup(self, path):
        """
        Return the :class:`CompoundFileEntity` at *path*, a string of names
        separated by ``/`` (names are compared case-insensitively). An empty
        path refers to the root.

        Raises :exc:`CompoundFileNotFoundError` if no such entity exists, or
        :exc:`CompoundFileNameError` if a name in *path* is longer than a
        compound document permits.
        """
        if isinstance(path, CompoundFileEntity):
            return path
        if isinstance(path, bytes):
            path = path.decode(FILENAME_ENCODING)
        names = [name for name in path.split('/') if name]
        for name in names:
            if len(name) > MAX_NAME_LENGTH:
                raise CompoundFileNameError(
                        'name %r is longer than %d characters' % (
                            name, MAX_NAME_LENGTH))
        entity = self.root
        for name in names:
            try:
                entity = entity[name]
            except KeyError:
                raise CompoundFileNotFoundError(
                        'unable to locate %s in compound file' % path)
        return entity

    def exists(self, path):
        """
        Return ``True`` if an entity exists at *path*.
        """
        try:
            self.lookup(path)
        except (CompoundFileNotFoundError, CompoundFileNameError):
            return False
        return True

    def metadata(self, path):
        """
        Return a :class:`CompoundFileMetadata` tuple describing the entity at
        *path*. Raises :exc:`CompoundFileNotFoundError` if there is no such
        entity.
        """
        entity = self.lookup(path)
        return CompoundFileMetadata(
            entity.kind, entity.size, entity.created, entity.modified,
            entity.uuid)

    def _lookup_stream(self, filename_or_entity):
        if self._source is None:
            raise ValueError('I/O operation on closed compound file')
        entity = self.lookup(filename_or_entity)
        if not entity.isfile:
            raise CompoundFileNotStreamError(
                    '%s is not a stream' % (entity.path or entity.name))
        return entity

    def __len__(self):
        return len(self.root)

    def __iter__(self):
        return iter(self.root)

    def __getitem__(self, key):
        return self.root[key]

    def __contains__(self, key):
        return key in self.root

    def __repr__(self):
        return '<%s streams=%d>' % (
            self.__class__.__name__, len(self.list_streams(storages=False)))


class CompoundFileReader(_CompoundFileBase):
    """
    Provides an interface for reading `OLE Compound Document`_ files.

    The :class:`CompoundFileReader` class provides a relatively simple
    interface for interpreting the content of Microsoft's `OLE Compound
    Document`_ files. These files can be thought of as a file-system in a file
    (or a loop-mounted FAT file-system for Unix folk).

    The class can be constructed with a filename, a file-like object, a
    bytes-like object holding the whole file, or a :class:`SectorSource`.
    File-like objects must support ``read`` and ``seek``; for optimal usage
    they should also provide a valid file descriptor in response to a call to
    ``fileno``, but this is not mandatory.

    If *strict* is ``True`` (the default), directory entries which refer to
    missing or already visited entries cause :exc:`CompoundFileDirEntryError`.
    Otherwise such references are reported with
    :exc:`CompoundFileDirIndexWarning` and the affected part of the tree is
    omitted. Errors in the header or the allocation tables are always fatal.

    The :attr:`root` attribute represents the root storage entity in the
    compound document. An :meth:`open` method is provided which (given a
    :class:`CompoundFileEntity` instance representing a stream, or its path),
    returns a file-like object representing the content of the stream.

    Finally, the context manager protocol is also supported, permitting usage
    of the class like so::

        with CompoundFileReader('foo.doc') as doc:
            # Iterate over items in the root directory of the compound document
            for entry in doc.root:
                # If any entry is a file, attempt to read the data from it
                if entry.isfile:
                    with doc.open(entry) as f:
                        f.read()

    .. attribute:: root

        The root attribute represents the root storage entity in the compound
        document. As a :class:`CompoundFileEntity` instance, it (and child
        storages) can be enumerated, accessed by index, or by name (like a
        dict) to obtain :class:`CompoundFileEntity` instances representing the
        content of the compound document.

    .. attribute:: header

        The :class:`CompoundFileHeader` decoded from the file.

    .. attribute:: strict

        Whether the directory was parsed strictly.
    """

    def __init__(self, filename_or_obj, strict=True):
        if isinstance(filename_or_obj, SectorSource):
            source = filename_or_obj
            opened = False
        else:
            source = FileSectorSource(filename_or_obj)
            opened = True
        try:
            header = parse_header(source.read_header_region())
            source.sector_size = header.sector_size
            state = drive(
                parse(header, source.sector_count(), strict), source)
        except Exception:
            if opened:
                source.close()
            raise
        super(CompoundFileReader, self).__init__(
            source, header, state, strict, opened)

    def open_stream(self, filename_or_entity):
        """
        Return a file-like object with the content of the specified entity.

        Given a :class:`CompoundFileEntity` instance which represents a stream,
        or a string representing the path to one (using ``/`` separators), this
        method returns an instance of :class:`CompoundFileStream` which can be
        used to read the content of the stream.

        Raises :exc:`CompoundFileNotStreamError` if the entity is a storage,
        and :exc:`CompoundFileTruncatedError` if the stream's chain is shorter
        than its size; other streams remain readable in the latter case.
        """
        return CompoundFileStream(self, self._lookup_stream(filename_or_entity))

    open = open_stream

    def close(self):
        if self._opened and self._source is not None:
            self._source.close()
        self._source = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()


class AsyncCompoundFileReader(_CompoundFileBase):
    """
    The suspending equivalent of :class:`CompoundFileReader`. Instances are
    not constructed directly, but by awaiting :meth:`open`::

        async with await AsyncCompoundFileReader.open('foo.doc') as doc:
            async with doc.open_stream('WordDocument') as f:
                data = await f.read()

    Everything which doesn't need to read the file (:attr:`root`,
    :meth:`list_streams`, :meth:`lookup`, :meth:`metadata` and so on) behaves
    exactly as it does for :class:`CompoundFileReader`.
    """

    @classmethod
    async def open(cls, filename_or_source, strict=True):
        """
        Read the compound document from *filename_or_source*, which is either
        an :class:`AsyncSectorSource`, or a filename or seekable file-like
        object to be read via :class:`AsyncFileSectorSource`, and return the
        reader.
        """
        if isinstance(filename_or_source, AsyncSectorSource):
            source = filename_or_source
            opened = False
        else:
            source = AsyncFileSectorSource(filename_or_source)
            opened = True
        try:
            header = parse_header(await source.read_header_region())
            source.sector_size = header.sector_size
            state = await drive_async(
                parse(header, source.sector_count(), strict), source)
        except Exception:
            if opened:
                source.close()
            raise
        return cls(source, header, state, strict, opened)

    def open_stream(self, filename_or_entity):
        """
        Return an :class:`AsyncCompoundFileStream` for the specified stream,
        which may be given as a :class:`CompoundFileEntity` or a path.
        """
        return AsyncCompoundFileStream(
            self, self._lookup_stream(filename_or_entity))

    def close(self):
        if self._opened and self._source is not None:
            self._source.close()
        self._source = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_value, traceback):
        self.close()
