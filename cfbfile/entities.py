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

import warnings
import datetime as dt
from pprint import pformat

from .errors import (
    CompoundFileDirEntryError,
    CompoundFileNameError,
    CompoundFileDirEntryWarning,
    CompoundFileDirNameWarning,
    CompoundFileDirTypeWarning,
    CompoundFileDirIndexWarning,
    CompoundFileDirTimeWarning,
    CompoundFileDirSectorWarning,
    CompoundFileDirSizeWarning,
    )
from .const import (
    MAX_REG_SID,
    NO_STREAM,
    DIR_INVALID,
    DIR_STORAGE,
    DIR_STREAM,
    DIR_LOCKBYTES,
    DIR_PROPERTY,
    DIR_ROOT,
    DIR_KINDS,
    DIR_HEADER,
    FILENAME_ENCODING,
    )


FILETIME_EPOCH = dt.datetime(1601, 1, 1)


class CompoundFileEntity(object):
    """
    Represents an entity in an OLE Compound Document.

    An entity in an OLE Compound Document can be a "stream" (analogous to a
    file in a file-system) which has a :attr:`size` and can be opened by a call
    to the parent object's :meth:`~CompoundFileReader.open` method.
    Alternatively, it can be a "storage" (analogous to a directory in a
    file-system), which has no size but has :attr:`created` and
    :attr:`modified` time-stamps, and can contain other streams and storages.

    If the entity is a storage, it will act as an iterable read-only sequence,
    indexable by ordinal or by name, and compatible with the ``in`` operator
    and built-in :func:`len` function. Children are ordered as the directory's
    sibling tree orders them.

    .. attribute:: created

        For storage entities (where :attr:`isdir` is ``True``), this returns
        the creation date of the storage. Returns ``None`` for stream entities.

    .. attribute:: isdir

        Returns True if this is a storage entity which can contain other
        entities.

    .. attribute:: isfile

        Returns True if this is a stream entity which can be opened.

    .. attribute:: modified

        For storage entities (where :attr:`isdir` is True), this returns the
        last modification date of the storage. Returns ``None`` for stream
        entities.

    .. attribute:: name

        Returns the name of entity. This can be up to 31 characters long and
        may contain any character representable in UTF-16 except the NULL
        character. Names are considered case-insensitive for comparison
        purposes.

    .. attribute:: path

        The full path of the entity from the root storage, with ``/``
        separating the names of ancestors. The root's path is empty.

    .. attribute:: size

        For stream entities (where :attr:`isfile` is ``True``), this returns
        the number of bytes occupied by the stream. Returns 0 for storage
        entities.

    .. attribute:: uuid

        The 16-byte class identifier of a storage entity (all zeros for
        streams, and for storages without a class).
    """

    def __init__(self, header, data, index, strict=True):
        super(CompoundFileEntity, self).__init__()
        self._index = index
        self._children = []
        self.parent = None
        self.path = ''
        (
            name,
            name_len,
            self._entry_type,
            self._entry_color,
            self._left_index,
            self._right_index,
            self._child_index,
            self.uuid,
            user_flags,
            created,
            modified,
            self._start_sector,
            size_low,
            size_high,
        ) = DIR_HEADER.unpack(data)
        if name_len > len(name):
            if strict:
                raise CompoundFileNameError(
                        'name length (%d) exceeds %d bytes in dir entry '
                        '%d' % (name_len, len(name), index))
            self._check(False, 'invalid name length (%d)' % name_len,
                    CompoundFileDirNameWarning)
            name_len = len(name)
        self.name = name.decode('utf-16le', 'replace')
        try:
            self.name = self.name[:self.name.index('\0')]
        except ValueError:
            self._check(False, 'missing NULL terminator in name',
                    CompoundFileDirNameWarning)
            self.name = self.name[:name_len // 2]
        if index == 0:
            if self._entry_type != DIR_ROOT:
                raise CompoundFileDirEntryError(
                        'first dir entry is not the root storage '
                        '(type %d)' % self._entry_type)
        elif self._entry_type == DIR_ROOT:
            raise CompoundFileDirEntryError(
                    'duplicate root storage at dir entry %d' % index)
        elif self._entry_type in (DIR_LOCKBYTES, DIR_PROPERTY):
            self._check(False, 'unsupported %s type (%d)' % (
                    'ILockBytes' if self._entry_type == DIR_LOCKBYTES
                    else 'IPropertyStorage', self._entry_type),
                    CompoundFileDirTypeWarning)
            self._entry_type = DIR_INVALID
        elif not self._entry_type in (DIR_STREAM, DIR_STORAGE, DIR_INVALID):
            self._check(False, 'invalid type (%d)' % self._entry_type,
                    CompoundFileDirTypeWarning)
            self._entry_type = DIR_INVALID
        if self._entry_type == DIR_INVALID:
            self._check(self.name == '', 'non-empty name',
                    CompoundFileDirNameWarning)
            self._check(name_len == 0, 'invalid name length (%d)' % name_len,
                    CompoundFileDirNameWarning)
            self._check(user_flags == 0, 'non-zero user flags')
        else:
            # Name length is in bytes, including NULL terminator ... for a
            # unicode encoded name ... *headdesk*
            self._check(
                    (len(self.name) + 1) * 2 == name_len,
                    'invalid name length (%d)' % name_len,
                    CompoundFileDirNameWarning)
        if self._entry_type in (DIR_INVALID, DIR_ROOT):
            self._check(self._left_index == NO_STREAM, 'invalid left sibling')
            self._check(self._right_index == NO_STREAM, 'invalid right sibling')
            self._left_index = NO_STREAM
            self._right_index = NO_STREAM
        if self._entry_type in (DIR_INVALID, DIR_STREAM):
            self._check(self._child_index == NO_STREAM, 'invalid child index')
            self._check(self.uuid == b'\0' * 16, 'non-zero UUID')
            self._check(created == 0, 'non-zero creation timestamp',
                    CompoundFileDirTimeWarning)
            self._check(modified == 0, 'non-zero modification timestamp',
                    CompoundFileDirTimeWarning)
            self._child_index = NO_STREAM
            self.uuid = b'\0' * 16
            created = 0
            modified = 0
        if self._entry_type in (DIR_INVALID, DIR_STORAGE):
            self._check(self._start_sector == 0,
                    'non-zero start sector (%d)' % self._start_sector,
                    CompoundFileDirSectorWarning)
            self._check(size_low == 0,
                    'non-zero size low-bits (%d)' % size_low,
                    CompoundFileDirSizeWarning)
            self._check(size_high == 0,
                    'non-zero size high-bits (%d)' % size_high,
                    CompoundFileDirSizeWarning)
            self._start_sector = 0
            size_low = 0
            size_high = 0
        if header.major_version == 3:
            self._check(size_high == 0, 'invalid size in v3 file',
                    CompoundFileDirSizeWarning)
            self._check(size_low < 1<<31, 'size too large for v3 file',
                    CompoundFileDirSizeWarning)
            size_high = 0
        self.size = (size_high << 32) | size_low
        self.created = self._timestamp(created)
        self.modified = self._timestamp(modified)

    @property
    def isfile(self):
        return self._entry_type == DIR_STREAM

    @property
    def isdir(self):
        return self._entry_type in (DIR_STORAGE, DIR_ROOT)

    @property
    def kind(self):
        """
        One of ``'root'``, ``'storage'``, ``'stream'``, or ``'unused'``.
        """
        return DIR_KINDS[self._entry_type]

    def _check(self, valid, message, category=CompoundFileDirEntryWarning):
        if not valid:
            warnings.warn(
                    '%s in dir entry %d' % (message, self._index), category)

    def _timestamp(self, value):
        if value == 0:
            return None
        try:
            return FILETIME_EPOCH + dt.timedelta(microseconds=value // 10)
        except OverflowError:
            self._check(False, 'invalid timestamp (%d)' % value,
                    CompoundFileDirTimeWarning)
            return None

    def _resolve(self, entries, reached, strict, index, label):
        # Return the entry at *index* (which this entry refers to as its
        # *label*) or None if there isn't one. Indexes must refer to a used
        # entry which isn't already in the tree; in strict mode anything else
        # is fatal, otherwise the reference is dropped
        if index == NO_STREAM:
            return None
        if index > MAX_REG_SID:
            problem = 'reserved %s index (%d)' % (label, index)
        elif index >= len(entries):
            problem = 'invalid %s index (%d)' % (label, index)
        elif entries[index]._entry_type == DIR_INVALID:
            problem = '%s index (%d) refers to an unused entry' % (label, index)
        elif index in reached:
            problem = '%s index (%d) refers to an entry already in the ' \
                    'tree' % (label, index)
        else:
            reached.add(index)
            return entries[index]
        message = '%s in dir entry %d' % (problem, self._index)
        if strict:
            raise CompoundFileDirEntryError(message)
        warnings.warn(message, CompoundFileDirIndexWarning)
        return None

    def _walk_siblings(self, entries, reached, strict):
        # In-order traversal of the tree of siblings rooted at our child
        # index, using an explicit stack as malicious files can make the tree
        # arbitrarily deep
        stack = []
        node = self._resolve(
                entries, reached, strict, self._child_index, 'child')
        while stack or node is not None:
            while node is not None:
                stack.append(node)
                node = node._resolve(
                        entries, reached, strict, node._left_index,
                        'left sibling')
            node = stack.pop()
            yield node
            node = node._resolve(
                    entries, reached, strict, node._right_index,
                    'right sibling')

    def _check_links(self, entries):
        # Strict mode demands that every used entry's links are sound, not
        # only those of entries reachable from the root
        for index in (self._left_index, self._right_index, self._child_index):
            if index == NO_STREAM:
                continue
            if index > MAX_REG_SID or index >= len(entries):
                problem = 'invalid index (%d)' % index
            elif entries[index]._entry_type == DIR_INVALID:
                problem = 'index (%d) refers to an unused entry' % index
            else:
                continue
            raise CompoundFileDirEntryError(
                    '%s in dir entry %d' % (problem, self._index))

    def _build_tree(self, entries, strict=True):
        # Every entry can be reached at most once, so this terminates after
        # visiting len(entries) entries at most
        reached = {self._index}
        pending = [self]
        while pending:
            storage = pending.pop()
            for child in storage._walk_siblings(entries, reached, strict):
                child.parent = storage
                child.path = (
                        '%s/%s' % (storage.path, child.name)
                        if storage.path else child.name)
                storage._children.append(child)
                if child.isdir:
                    pending.append(child)
        if strict:
            for entry in entries:
                if entry._entry_type != DIR_INVALID:
                    entry._check_links(entries)

    def walk(self):
        """
        Yield every entity beneath this one, depth-first, each storage
        immediately followed by its content.
        """
        pending = [iter(self._children)]
        while pending:
            try:
                entity = next(pending[-1])
            except StopIteration:
                pending.pop()
            else:
                yield entity
                if entity.isdir:
                    pending.append(iter(entity._children))

    def __len__(self):
        return len(self._children)

    def __iter__(self):
        return iter(self._children)

    def __contains__(self, name_or_obj):
        if isinstance(name_or_obj, bytes):
            name_or_obj = name_or_obj.decode(FILENAME_ENCODING)
        if isinstance(name_or_obj, str):
            try:
                self.__getitem__(name_or_obj)
                return True
            except KeyError:
                return False
        else:
            return name_or_obj in self._children

    def __getitem__(self, index_or_name):
        if isinstance(index_or_name, bytes):
            index_or_name = index_or_name.decode(FILENAME_ENCODING)
        if isinstance(index_or_name, str):
            name = index_or_name.upper()
            for item in self._children:
                if item.name.upper() == name:
                    return item
            raise KeyError(index_or_name)
        else:
            return self._children[index_or_name]

    def __repr__(self):
        return (
            "<CompoundFileEntity name='%s'>" % self.name
            if self.isfile else
            pformat([
                "<CompoundFileEntity dir='%s'>" % c.name
                if c.isdir else
                repr(c)
                for c in self._children
                ])
            if self.isdir else
            "<CompoundFileEntity ???>"
            )


def load_entities(header, data, strict=True):
    """
    Slice the directory stream *data* into records and decode each into a
    :class:`CompoundFileEntity`; the position of each record is its index.
    Raises :exc:`CompoundFileDirEntryError` if there is no root storage.
    """
    count = len(data) // DIR_HEADER.size
    if count == 0:
        raise CompoundFileDirEntryError('directory stream is empty')
    return [
        CompoundFileEntity(
            header, data[index * DIR_HEADER.size:(index + 1) * DIR_HEADER.size],
            index, strict)
        for index in range(count)
        ]
