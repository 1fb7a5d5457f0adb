#!/usr/bin/env python3
"""
Generate a corpus of mock JSON log files, one record per file.

Usage: corpus_gen.py <out_dir> <count> [seed]
"""
import logging
import os
import random
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional

from log_schema import Record, generate_record, serialize_record

logger = logging.getLogger(__name__)

JSON_SUFFIX = ".json"


@dataclass(frozen=True)
class NamedBlob:
    """One serialized record and its logical file name."""
    name: str
    data: bytes


def log_name(index: int) -> str:
    return f"log_{index:04d}"


def generate_corpus(count: int, rng: random.Random,
                    serializer: Callable[[Record], bytes] = serialize_record) -> Iterator[NamedBlob]:
    """Yield `count` freshly generated records in index order."""
    for i in range(count):
        yield NamedBlob(log_name(i), serializer(generate_record(rng)))


def blob_path(out_dir, name: str) -> Path:
    return Path(out_dir) / f"{name}{JSON_SUFFIX}"


def write_corpus(out_dir, blobs: Iterable[NamedBlob],
                 on_write: Optional[Callable[[NamedBlob], None]] = None) -> List[Path]:
    """Write each blob to <out_dir>/<name>.json, return the paths in order."""
    os.makedirs(out_dir, exist_ok=True)
    paths = []
    for blob in blobs:
        path = blob_path(out_dir, blob.name)
        with open(path, 'wb') as f:
            f.write(blob.data)
        paths.append(path)
        if on_write is not None:
            on_write(blob)
    logger.debug("wrote %d record files to %s", len(paths), out_dir)
    return paths


def read_corpus(out_dir, names: Iterable[str]) -> Iterator[NamedBlob]:
    for name in names:
        with open(blob_path(out_dir, name), 'rb') as f:
            yield NamedBlob(name, f.read())


def main():
    if len(sys.argv) < 3:
        print("Usage: corpus_gen.py <out_dir> <count> [seed]")
        sys.exit(1)

    out_dir = sys.argv[1]
    count = int(sys.argv[2])
    rng = random.Random(int(sys.argv[3])) if len(sys.argv) > 3 else random.Random()

    paths = write_corpus(out_dir, generate_corpus(count, rng))
    total = sum(p.stat().st_size for p in paths)
    print(f"Wrote {len(paths):,} files ({total:,} bytes) to {out_dir}")


if __name__ == '__main__':
    main()
