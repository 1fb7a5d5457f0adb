#!/usr/bin/env python3
"""
Multi-file zstd archive.

Many record files go through ONE zstd compressor so the compressor can
match across files. Each file is framed before compression:

  [4 bytes] name_len     (u32, little-endian)
  [bytes]   name         (UTF-8, name_len bytes)
  [4 bytes] content_len  (u32, little-endian)
  [bytes]   content      (content_len bytes)

The name is the record's logical name (log_0000), not its on-disk file
name (log_0000.json), so archives made by the benchmark are not
byte-identical to ones that frame file names.

Frames are written back-to-back with no separator, padding or checksum.
The whole frame sequence is a single zstd stream; frame boundaries only
exist after decompression. The stream must be finished (zstd end-of-frame
written) to be a valid archive.

Decoding stops cleanly only when the decompressed stream ends exactly on a
frame boundary. Anything else is a FramingError.
"""

import io
import logging
import os
import struct
import sys
from typing import BinaryIO, Iterable, Iterator, List, Optional

import pyzstd
import zstandard as zstd

from bench_errors import CodecError, FramingError
from corpus_gen import NamedBlob

logger = logging.getLogger(__name__)

# ============================================================================
# Constants
# ============================================================================

ZSTD_LEVEL = 3

LEN = struct.Struct('<I')
MAX_FIELD_LEN = 0xFFFFFFFF

COPY_BUFSIZE = 64 * 1024


def _check_len(what: str, n: int, frame_index: int):
    if n > MAX_FIELD_LEN:
        raise FramingError(f"{what} length {n:,} does not fit in u32", frame_index)


# ============================================================================
# Encoder
# ============================================================================

class ArchiveWriter:
    """
    Streaming archive encoder.

    Usage:
        with open("all_logs.zst", "wb") as f:
            with ArchiveWriter(f) as archive:
                for blob in blobs:
                    archive.add(blob.name, blob.data)

    The context manager only finishes the stream on a clean exit; an
    archive abandoned by an exception has no zstd trailer and will not
    decode.
    """

    def __init__(self, output: BinaryIO, level: int = ZSTD_LEVEL):
        self.output = output
        self.compressor = zstd.ZstdCompressor(level=level)
        self.zstd_stream = self.compressor.stream_writer(output, closefd=False)

        # Stats
        self.frames = 0
        self.raw_bytes = 0
        self.finished = False

    def _check_open(self):
        if self.finished:
            raise ValueError("archive already finished")

    def _write_header(self, name: str, content_len: int) -> None:
        name_bytes = name.encode('utf-8')
        _check_len("name", len(name_bytes), self.frames)
        _check_len("content", content_len, self.frames)

        self.zstd_stream.write(LEN.pack(len(name_bytes)))
        self.zstd_stream.write(name_bytes)
        self.zstd_stream.write(LEN.pack(content_len))
        self.raw_bytes += 2 * LEN.size + len(name_bytes)

    def add(self, name: str, data: bytes) -> None:
        """Append one frame holding `data` under `name`."""
        self._check_open()
        self._write_header(name, len(data))
        self.zstd_stream.write(data)
        self.raw_bytes += len(data)
        self.frames += 1

    def add_file(self, name: str, path) -> None:
        """Append one frame, streaming the content from a file on disk."""
        self._check_open()
        with open(path, 'rb') as f:
            size = os.fstat(f.fileno()).st_size
            self._write_header(name, size)

            copied = 0
            while True:
                chunk = f.read(COPY_BUFSIZE)
                if not chunk:
                    break
                self.zstd_stream.write(chunk)
                copied += len(chunk)

        if copied != size:
            raise FramingError(f"{path} changed size while archiving "
                               f"({size:,} -> {copied:,} bytes)", self.frames)
        self.raw_bytes += copied
        self.frames += 1

    def finish(self) -> None:
        """Write the zstd end-of-frame. The caller's sink stays open."""
        self._check_open()
        self.zstd_stream.close()
        self.finished = True
        logger.debug("archive finished: %d frames, %d raw bytes", self.frames, self.raw_bytes)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None and not self.finished:
            self.finish()
        return False


def encode_archive(blobs: Iterable[NamedBlob], level: int = ZSTD_LEVEL) -> bytes:
    """Encode blobs into an in-memory archive."""
    output = io.BytesIO()
    with ArchiveWriter(output, level) as archive:
        for blob in blobs:
            archive.add(blob.name, blob.data)
    return output.getvalue()


def write_archive_file(path, blobs: Iterable[NamedBlob], level: int = ZSTD_LEVEL) -> int:
    """Write blobs to an archive file, return its size on disk."""
    with open(path, 'wb') as f:
        with ArchiveWriter(f, level) as archive:
            for blob in blobs:
                archive.add(blob.name, blob.data)
    return os.path.getsize(path)


# ============================================================================
# Decoder
# ============================================================================

class ArchiveReader:
    """
    Streaming archive decoder.

    Usage:
        with open("all_logs.zst", "rb") as f:
            for blob in ArchiveReader(f):
                process(blob.name, blob.data)
    """

    def __init__(self, source: BinaryIO):
        self.zstd_stream = pyzstd.ZstdFile(source, 'rb')
        self.frame_index = 0

    def _read(self, n: int) -> bytes:
        """Read up to n decompressed bytes; fewer only at end of stream."""
        chunks = []
        remaining = n
        while remaining > 0:
            try:
                chunk = self.zstd_stream.read(remaining)
            except EOFError as e:
                raise CodecError(f"zstd stream not finished: {e}") from e
            except pyzstd.ZstdError as e:
                raise CodecError(f"zstd: {e}") from e
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)
        return b''.join(chunks)

    def _read_len(self, what: str) -> int:
        raw = self._read(LEN.size)
        if len(raw) < LEN.size:
            raise FramingError(f"truncated {what} length ({len(raw)} of {LEN.size} bytes)",
                               self.frame_index)
        return LEN.unpack(raw)[0]

    def _read_field(self, what: str, n: int) -> bytes:
        data = self._read(n)
        if len(data) < n:
            raise FramingError(f"{what} length {n:,} but only {len(data):,} bytes remain",
                               self.frame_index)
        return data

    def read_frame(self) -> Optional[NamedBlob]:
        """Read the next frame, or None at a clean end of stream."""
        head = self._read(LEN.size)
        if not head:
            return None
        if len(head) < LEN.size:
            raise FramingError(f"truncated name length ({len(head)} of {LEN.size} bytes)",
                               self.frame_index)
        name_len = LEN.unpack(head)[0]

        name_bytes = self._read_field("name", name_len)
        try:
            name = name_bytes.decode('utf-8')
        except UnicodeDecodeError as e:
            raise FramingError(f"name is not UTF-8: {e}", self.frame_index) from e

        content_len = self._read_len("content")
        content = self._read_field("content", content_len)

        self.frame_index += 1
        return NamedBlob(name, content)

    def __iter__(self) -> Iterator[NamedBlob]:
        while True:
            blob = self.read_frame()
            if blob is None:
                return
            yield blob

    def close(self):
        self.zstd_stream.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


def decode_archive(data: bytes) -> List[NamedBlob]:
    with ArchiveReader(io.BytesIO(data)) as reader:
        return list(reader)


def read_archive_file(path) -> List[NamedBlob]:
    with open(path, 'rb') as f:
        with ArchiveReader(f) as reader:
            return list(reader)


def main():
    if len(sys.argv) < 3:
        print("Usage: archive_codec.py <command> <args>")
        print("Commands:")
        print("  pack <archive> <file>...  - Archive files")
        print("  list <archive>            - List archived files")
        sys.exit(1)

    cmd = sys.argv[1]

    if cmd == 'pack':
        with open(sys.argv[2], 'wb') as f:
            with ArchiveWriter(f) as archive:
                for path in sys.argv[3:]:
                    archive.add_file(os.path.basename(path), path)
        print(f"Packed {archive.frames:,} files ({archive.raw_bytes:,} raw bytes) "
              f"into {os.path.getsize(sys.argv[2]):,} bytes")
    elif cmd == 'list':
        for blob in read_archive_file(sys.argv[2]):
            print(f"{blob.name:<32} {len(blob.data):>12,}")
    else:
        print(f"Unknown command: {cmd}")
        sys.exit(1)


if __name__ == '__main__':
    main()
