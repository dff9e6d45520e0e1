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
A library for reading Microsoft's `OLE Compound Document`_ format (also known
as the Compound File Binary Format, or "OLE2"), which underlies older Office
documents and many embedded object payloads. Files are parsed without
trusting their internal pointers: cyclic chains, out-of-range sectors and
malformed directories are detected in bounded time.

Most of the work in this package was derived from the specification for `OLE
Compound Document`_ files published by OpenOffice, and the specification for
the `Advanced Authoring Format`_ (AAF) published by Microsoft.

.. _OLE Compound Document: http://www.openoffice.org/sc/compdocfileformat.pdf
.. _Advanced Authoring Format: http://www.amwa.tv/downloads/specifications/aafcontainerspec-v1.0.1.pdf


CompoundFileReader
==================

.. autoclass:: CompoundFileReader
    :members:


AsyncCompoundFileReader
=======================

.. autoclass:: AsyncCompoundFileReader
    :members:


CompoundFileStream
==================

.. autoclass:: CompoundFileStream
    :members:


AsyncCompoundFileStream
=======================

.. autoclass:: AsyncCompoundFileStream
    :members:


CompoundFileEntity
==================

.. autoclass:: CompoundFileEntity
    :members:


CompoundFileMetadata
====================

.. autoclass:: CompoundFileMetadata


Sector sources
==============

.. autoclass:: SectorSource
    :members:

.. autoclass:: FileSectorSource

.. autoclass:: AsyncSectorSource
    :members:

.. autoclass:: AsyncFileSectorSource


Exceptions
==========

.. autoexception:: CompoundFileError

.. autoexception:: CompoundFileHeaderError

.. autoexception:: CompoundFileInvalidMagicError

.. autoexception:: CompoundFileInvalidBomError

.. autoexception:: CompoundFileVersionError

.. autoexception:: CompoundFileSectorRangeError

.. autoexception:: CompoundFileMasterFatError

.. autoexception:: CompoundFileNormalFatError

.. autoexception:: CompoundFileMiniFatError

.. autoexception:: CompoundFileDirEntryError

.. autoexception:: CompoundFileNameError

.. autoexception:: CompoundFileNotFoundError

.. autoexception:: CompoundFileNotStreamError

.. autoexception:: CompoundFileTruncatedError

.. autoexception:: CompoundFileWarning

"""

from .errors import (
    CompoundFileError,
    CompoundFileHeaderError,
    CompoundFileInvalidMagicError,
    CompoundFileInvalidBomError,
    CompoundFileVersionError,
    CompoundFileSectorRangeError,
    CompoundFileMasterFatError,
    CompoundFileMasterLoopError,
    CompoundFileNormalFatError,
    CompoundFileNormalLoopError,
    CompoundFileMiniFatError,
    CompoundFileMiniLoopError,
    CompoundFileDirEntryError,
    CompoundFileNameError,
    CompoundFileNotFoundError,
    CompoundFileNotStreamError,
    CompoundFileTruncatedError,
    CompoundFileWarning,
    CompoundFileHeaderWarning,
    CompoundFileSectorSizeWarning,
    CompoundFileTruncatedWarning,
    CompoundFileMasterFatWarning,
    CompoundFileNormalFatWarning,
    CompoundFileMasterSectorWarning,
    CompoundFileNormalSectorWarning,
    CompoundFileMiniFatWarning,
    CompoundFileDirEntryWarning,
    CompoundFileDirNameWarning,
    CompoundFileDirTypeWarning,
    CompoundFileDirIndexWarning,
    CompoundFileDirTimeWarning,
    CompoundFileDirSectorWarning,
    CompoundFileDirSizeWarning,
    CompoundFileStreamSizeWarning,
    )
from .header import CompoundFileHeader
from .entities import CompoundFileEntity
from .sources import (
    SectorSource,
    FileSectorSource,
    AsyncSectorSource,
    AsyncFileSectorSource,
    )
from .streams import CompoundFileStream, AsyncCompoundFileStream
from .reader import (
    CompoundFileMetadata,
    CompoundFileReader,
    AsyncCompoundFileReader,
    )


__all__ = [
    'CompoundFileError',
    'CompoundFileWarning',
    'CompoundFileHeader',
    'CompoundFileEntity',
    'CompoundFileMetadata',
    'CompoundFileReader',
    'AsyncCompoundFileReader',
    'CompoundFileStream',
    'AsyncCompoundFileStream',
    'SectorSource',
    'FileSectorSource',
    'AsyncSectorSource',
    'AsyncFileSectorSource',
    'open',
    'open_async',
    ]


def open(filename_or_obj, strict=True):
    """
    Shortcut for constructing a :class:`CompoundFileReader`.
    """
    return CompoundFileReader(filename_or_obj, strict=strict)


async def open_async(filename_or_source, strict=True):
    """
    Shortcut for awaiting :meth:`AsyncCompoundFileReader.open`.
    """
    return await AsyncCompoundFileReader.open(filename_or_source, strict=strict)
