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
Exceptions and warnings raised while reading compound documents.

Fatal problems raise a subclass of :exc:`CompoundFileError`. Problems which
the reader can work around are reported through the :mod:`warnings` module
with a subclass of :exc:`CompoundFileWarning`; use the usual warning filters
to silence them, or to promote them to exceptions.
"""


class CompoundFileError(IOError):
    """
    Base class for exceptions arising from reading compound documents.
    """


class CompoundFileHeaderError(CompoundFileError):
    """
    Error raised when the compound document header is malformed.
    """


class CompoundFileInvalidMagicError(CompoundFileHeaderError):
    """
    Error raised when a compound document is opened but doesn't contain the
    magic number that compound documents must begin with.
    """


class CompoundFileInvalidBomError(CompoundFileHeaderError):
    """
    Error raised when a compound document is anything other than
    little-endian.
    """


class CompoundFileVersionError(CompoundFileHeaderError):
    """
    Error raised when a compound document has an unsupported major version.
    """


class CompoundFileSectorRangeError(CompoundFileError):
    """
    Error raised when a sector beyond the end of the file is referenced.
    """


class CompoundFileMasterFatError(CompoundFileError):
    """
    Base class for errors in the master-FAT (DIFAT).
    """


class CompoundFileMasterLoopError(CompoundFileMasterFatError):
    """
    Error raised when a loop is detected in the DIFAT.
    """


class CompoundFileNormalFatError(CompoundFileError):
    """
    Base class for errors in the normal-FAT and the chains it describes.
    """


class CompoundFileNormalLoopError(CompoundFileNormalFatError):
    """
    Error raised when a cycle is detected in a normal-FAT chain.
    """


class CompoundFileMiniFatError(CompoundFileError):
    """
    Base class for errors in the mini-FAT and the chains it describes.
    """


class CompoundFileMiniLoopError(CompoundFileMiniFatError):
    """
    Error raised when a cycle is detected in a mini-FAT chain.
    """


class CompoundFileDirEntryError(CompoundFileError):
    """
    Error raised when the directory is unusable: the root entry is missing or
    duplicated, or (in strict mode) an entry references an invalid sibling or
    child.
    """


class CompoundFileNameError(CompoundFileDirEntryError):
    """
    Error raised when an entry name exceeds the 31 characters permitted.
    """


class CompoundFileNotFoundError(CompoundFileError):
    """
    Error raised when a named entity cannot be found in the compound document.
    """


class CompoundFileNotStreamError(CompoundFileError, TypeError):
    """
    Error raised when an attempt is made to open an entity which is not a
    stream.
    """


class CompoundFileTruncatedError(CompoundFileError):
    """
    Error raised when a stream's chain ends before its declared length has
    been covered.
    """


class CompoundFileWarning(Warning):
    """
    Base class for warnings arising from reading compound documents.
    """


class CompoundFileHeaderWarning(CompoundFileWarning):
    """
    Warning about values in the compound document header.
    """


class CompoundFileSectorSizeWarning(CompoundFileHeaderWarning):
    """
    Warning about sector sizes which don't match the header's version.
    """


class CompoundFileTruncatedWarning(CompoundFileWarning):
    """
    Warning raised when the file does not end on a sector boundary.
    """


class CompoundFileMasterFatWarning(CompoundFileWarning):
    """
    Warning about problems in the DIFAT.
    """


class CompoundFileNormalFatWarning(CompoundFileWarning):
    """
    Warning about problems in the normal-FAT.
    """


class CompoundFileMasterSectorWarning(CompoundFileNormalFatWarning):
    """
    Warning about mis-marked DIFAT sectors.
    """


class CompoundFileNormalSectorWarning(CompoundFileNormalFatWarning):
    """
    Warning about mis-marked normal-FAT sectors.
    """


class CompoundFileMiniFatWarning(CompoundFileWarning):
    """
    Warning about problems in the mini-FAT.
    """


class CompoundFileDirEntryWarning(CompoundFileWarning):
    """
    Base class for warnings about directory entries.
    """


class CompoundFileDirNameWarning(CompoundFileDirEntryWarning):
    """
    Warning about invalid directory entry names.
    """


class CompoundFileDirTypeWarning(CompoundFileDirEntryWarning):
    """
    Warning about invalid directory entry types.
    """


class CompoundFileDirIndexWarning(CompoundFileDirEntryWarning):
    """
    Warning raised in lenient mode when an invalid sibling or child index is
    ignored (the subtree it refers to is treated as empty).
    """


class CompoundFileDirTimeWarning(CompoundFileDirEntryWarning):
    """
    Warning about directory entry time-stamps.
    """


class CompoundFileDirSectorWarning(CompoundFileDirEntryWarning):
    """
    Warning about directory entry start sectors.
    """


class CompoundFileDirSizeWarning(CompoundFileDirEntryWarning):
    """
    Warning about directory entry sizes.
    """


class CompoundFileStreamSizeWarning(CompoundFileWarning):
    """
    Warning raised when a stream's chain is longer than its declared size
    requires.
    """
