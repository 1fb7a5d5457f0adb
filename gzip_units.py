#!/usr/bin/env python3
"""
Per-file gzip compression: every record file is its own gzip member.

  <name>.json            original record
  <name>.json.gz         gzip -6 of the record
  <name>_decompressed.json  gunzip of the .gz, for the decompression timing
"""
import gzip
import logging
import shutil
import sys
import zlib
from pathlib import Path
from typing import Callable, Iterable, Optional

from bench_errors import CodecError

logger = logging.getLogger(__name__)

# zlib's default, same as flate2's Compression::default()
GZIP_LEVEL = 6

GZ_SUFFIX = ".json.gz"
DECOMPRESSED_SUFFIX = "_decompressed.json"

COPY_BUFSIZE = 64 * 1024


def gzip_compress(data: bytes, level: int = GZIP_LEVEL) -> bytes:
    # mtime=0 keeps the output byte-for-byte reproducible
    return gzip.compress(data, compresslevel=level, mtime=0)


def gzip_decompress(data: bytes, name: Optional[str] = None) -> bytes:
    """Decompress one gzip unit; bad or truncated input raises CodecError."""
    if not data:
        raise CodecError("empty gzip input", name)
    try:
        return gzip.decompress(data)
    except (gzip.BadGzipFile, EOFError, zlib.error) as e:
        raise CodecError(f"gzip: {e}", name) from e


def gz_path(out_dir, name: str) -> Path:
    return Path(out_dir) / f"{name}{GZ_SUFFIX}"


def decompressed_path(out_dir, name: str) -> Path:
    return Path(out_dir) / f"{name}{DECOMPRESSED_SUFFIX}"


def compress_file(src: Path, dst: Path, level: int = GZIP_LEVEL) -> int:
    """Stream src through gzip into dst, return the compressed size."""
    with open(src, 'rb') as fin, open(dst, 'wb') as fout:
        with gzip.GzipFile(filename='', mode='wb', compresslevel=level,
                           fileobj=fout, mtime=0) as gz:
            shutil.copyfileobj(fin, gz, COPY_BUFSIZE)
    return dst.stat().st_size


def decompress_file(src: Path, dst: Path) -> int:
    """Gunzip src into dst, return the decompressed size."""
    try:
        with gzip.open(src, 'rb') as gz, open(dst, 'wb') as fout:
            shutil.copyfileobj(gz, fout, COPY_BUFSIZE)
    except (gzip.BadGzipFile, EOFError, zlib.error) as e:
        raise CodecError(f"gzip: {e}", src.name) from e
    return dst.stat().st_size


def compress_files(out_dir, names: Iterable[str], level: int = GZIP_LEVEL,
                   on_file: Optional[Callable[[str], None]] = None) -> int:
    """gzip every <name>.json in out_dir, return total compressed bytes."""
    total = 0
    for name in names:
        src = Path(out_dir) / f"{name}.json"
        total += compress_file(src, gz_path(out_dir, name), level)
        if on_file is not None:
            on_file(name)
    return total


def decompress_files(out_dir, names: Iterable[str],
                     on_file: Optional[Callable[[str], None]] = None) -> int:
    """Gunzip every <name>.json.gz in out_dir, return total decompressed bytes."""
    total = 0
    for name in names:
        total += decompress_file(gz_path(out_dir, name), decompressed_path(out_dir, name))
        if on_file is not None:
            on_file(name)
    return total


def main():
    if len(sys.argv) < 2:
        print("Usage: gzip_units.py <file>")
        sys.exit(1)

    path = Path(sys.argv[1])
    data = path.read_bytes()
    compressed = gzip_compress(data)
    ok = gzip_decompress(compressed) == data
    print(f"Original:   {len(data):,} bytes")
    print(f"gzip -{GZIP_LEVEL}:    {len(compressed):,} bytes ({len(compressed)*100/max(len(data), 1):.2f}%)")
    print(f"Lossless:   {'✓' if ok else '✗'}")


if __name__ == '__main__':
    main()
