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
import asyncio
import struct
import warnings

import pytest

import cfbfile
from cfbfile.const import END_OF_CHAIN


def setup_function(fn):
    warnings.simplefilter('error', cfbfile.CompoundFileWarning)


class MemorySectorSource(cfbfile.AsyncSectorSource):
    # Serves sectors from memory, yielding to the event loop on every read
    # and recording which offsets were requested
    def __init__(self, data):
        super().__init__()
        self._data = data
        self._file_size = len(data)
        self.reads = []

    async def _read(self, offset, size):
        await asyncio.sleep(0)
        self.reads.append(offset)
        return self._data[offset:offset + size]


async def scan(doc):
    result = {}
    for path in doc.list_streams(storages=False):
        async with doc.open_stream(path) as f:
            result[path] = await f.read()
    return result


def scan_sync(data, strict=True):
    with cfbfile.open(data, strict=strict) as doc:
        result = {}
        for path in doc.list_streams(storages=False):
            with doc.open(path) as f:
                result[path] = f.read()
        return doc.list_streams(), result


def test_async_open(sample, sample_streams, sample_paths):
    async def main():
        source = MemorySectorSource(sample.data)
        async with await cfbfile.AsyncCompoundFileReader.open(source) as doc:
            assert doc.header.major_version == 3
            assert doc.list_streams() == sample_paths
            assert await scan(doc) == sample_streams
            assert source.reads
    asyncio.run(main())

def test_async_matches_sync(sample_any):
    async def main():
        async with await cfbfile.open_async(
                MemorySectorSource(sample_any.data)) as doc:
            return doc.list_streams(), await scan(doc)
    assert asyncio.run(main()) == scan_sync(sample_any.data)

def test_async_file_source(tmp_path, sample, sample_streams):
    path = tmp_path / 'sample.doc'
    path.write_bytes(sample.data)

    async def main():
        async with await cfbfile.open_async(str(path)) as doc:
            return await scan(doc)
    assert asyncio.run(main()) == sample_streams

def test_async_file_object(sample, sample_streams):
    async def main():
        async with await cfbfile.open_async(io.BytesIO(sample.data)) as doc:
            return await scan(doc)
    assert asyncio.run(main()) == sample_streams

def test_async_stream_positions(sample, sample_streams):
    expected = sample_streams['ObjectPool/_1234/Contents']

    async def main():
        async with await cfbfile.open_async(
                MemorySectorSource(sample.data)) as doc:
            async with doc.open_stream('ObjectPool/_1234/Contents') as f:
                assert f.size == len(expected)
                assert await f.read(100) == expected[:100]
                assert f.tell() == 100
                f.seek(-10, io.SEEK_END)
                assert await f.read() == expected[-10:]
                assert await f.read_at(1000, 24) == expected[1000:1024]
                assert f.tell() == len(expected)
            assert f.closed
            with pytest.raises(ValueError):
                await f.read()
    asyncio.run(main())

def test_async_lenient_matches_sync(sample):
    data = sample.with_dir(sample.index['WordDocument'], left=5000).data

    async def main():
        async with await cfbfile.open_async(
                MemorySectorSource(data), strict=False) as doc:
            return doc.list_streams(), await scan(doc)
    with pytest.warns(cfbfile.CompoundFileDirIndexWarning):
        result = asyncio.run(main())
    with pytest.warns(cfbfile.CompoundFileDirIndexWarning):
        assert result == scan_sync(data, strict=False)

def test_async_errors(sample):
    sector = sample.dir_sectors[0]

    async def open_doc(data, strict=True):
        return await cfbfile.open_async(MemorySectorSource(data), strict)
    with pytest.raises(cfbfile.CompoundFileInvalidMagicError):
        asyncio.run(open_doc(sample.with_header(magic=b'\0' * 8).data))
    with pytest.raises(cfbfile.CompoundFileNormalLoopError):
        asyncio.run(open_doc(sample.with_fat(sector, sector).data))
    with pytest.raises(cfbfile.CompoundFileDirEntryError):
        asyncio.run(open_doc(
            sample.with_dir(sample.index['WordDocument'], left=5000).data))
    chain = sample.chains['WordDocument']
    with pytest.raises(cfbfile.CompoundFileNormalLoopError):
        asyncio.run(open_doc(sample.with_fat(chain[1], chain[1]).data))
    chain = sample.mini_chains['1Table']
    with pytest.raises(cfbfile.CompoundFileMiniLoopError):
        asyncio.run(open_doc(sample.with_bytes(
            sample.offset(sample.mini_fat_sectors[0]) + chain[1] * 4,
            struct.pack('<L', chain[1])).data))

def test_async_truncated_stream(sample, sample_streams):
    chain = sample.chains['WordDocument']
    data = sample.with_fat(chain[0], END_OF_CHAIN).data

    async def main():
        async with await cfbfile.open_async(MemorySectorSource(data)) as doc:
            with pytest.raises(cfbfile.CompoundFileTruncatedError):
                doc.open_stream('WordDocument')
            async with doc.open_stream('1Table') as f:
                return await f.read()
    assert asyncio.run(main()) == sample_streams['1Table']

def test_async_concurrent_streams(sample, sample_streams):
    async def main():
        async with await cfbfile.open_async(
                MemorySectorSource(sample.data)) as doc:
            paths = doc.list_streams(storages=False)
            streams = [doc.open_stream(path) for path in paths]
            results = await asyncio.gather(*(f.read() for f in streams))
            return dict(zip(paths, results))
    assert asyncio.run(main()) == sample_streams
