#!/usr/bin/env python3
"""
Compare per-file gzip against one multi-file zstd archive.

Steps (each timed on its own):
  1. generate NUM_FILES mock JSON log files
  2. gzip every file separately
  3. gunzip every .gz back to disk
  4. frame all original files into one zstd stream (all_logs.zst)

Then report sizes, times, ratios and which strategy came out smaller.
"""
import logging
import os
import random
import sys
import time
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from archive_codec import ZSTD_LEVEL, ArchiveWriter, read_archive_file
from bench_errors import PhaseError
from corpus_gen import blob_path, generate_corpus, write_corpus
from gzip_units import compress_files, decompress_files

logger = logging.getLogger(__name__)

OUTPUT_DIR = "mock_logs"
NUM_FILES = 10_000
ARCHIVE_NAME = "all_logs.zst"

STRATEGY_GZIP = "gzip"
STRATEGY_ZSTD = "zstd"

UNITS = ["B", "KB", "MB", "GB"]


# ============================================================================
# Metrics
# ============================================================================

@dataclass
class PhaseResult:
    name: str
    elapsed: float = 0.0  # seconds
    byte_size: int = 0
    count: int = 0


@dataclass
class BenchmarkMetrics:
    generation: PhaseResult
    gzip_compress: PhaseResult
    gzip_decompress: PhaseResult
    archive: PhaseResult

    @property
    def original_size(self) -> int:
        return self.generation.byte_size

    @property
    def gzip_size(self) -> int:
        return self.gzip_compress.byte_size

    @property
    def zstd_size(self) -> int:
        return self.archive.byte_size


@dataclass
class Winner:
    strategy: str
    savings: int
    savings_pct: float


def compression_ratio(compressed: int, original: int) -> float:
    """compressed / original as a percentage."""
    if original == 0:
        return 0.0
    return compressed / original * 100


def decide_winner(zstd_size: int, gzip_size: int) -> Winner:
    """
    The archive wins only when strictly smaller; a tie goes to per-file gzip.
    The percentage is relative to the loser's size.
    """
    if zstd_size < gzip_size:
        savings = gzip_size - zstd_size
        return Winner(STRATEGY_ZSTD, savings, savings / gzip_size * 100)
    savings = zstd_size - gzip_size
    pct = savings / zstd_size * 100 if zstd_size else 0.0
    return Winner(STRATEGY_GZIP, savings, pct)


def format_bytes(n: int) -> str:
    size = float(n)
    unit = 0
    while size >= 1024.0 and unit < len(UNITS) - 1:
        size /= 1024.0
        unit += 1
    return f"{size:.2f} {UNITS[unit]}"


def format_duration(seconds: float) -> str:
    if seconds >= 1:
        return f"{seconds:.2f}s"
    if seconds >= 1e-3:
        return f"{seconds * 1e3:.2f}ms"
    return f"{seconds * 1e6:.2f}µs"


def get_directory_size(path) -> int:
    """Total size of every file below path (or of path itself)."""
    path = Path(path)
    if not path.is_dir():
        return path.stat().st_size
    total = 0
    for root, dirs, files in os.walk(path):
        for f in files:
            total += os.path.getsize(os.path.join(root, f))
    return total


# ============================================================================
# Phases
# ============================================================================

def _progress(label: str, total: int, enabled: bool) -> Callable[..., None]:
    done = 0

    def tick(*_):
        nonlocal done
        done += 1
        if enabled and (done == total or done % 100 == 0):
            print(f"\r  {label}: {done:>7,}/{total:,}", end='', flush=True)
            if done == total:
                print()

    return tick


@contextmanager
def timed_phase(result: PhaseResult):
    """Time the enclosed block into result.elapsed, wrapping failures."""
    logger.debug("phase %s: start", result.name)
    start = time.perf_counter()
    try:
        yield result
    except PhaseError:
        raise
    except (OSError, ValueError) as e:
        raise PhaseError(result.name, getattr(e, 'name', None) or getattr(e, 'filename', None),
                         str(e)) from e
    result.elapsed = time.perf_counter() - start
    logger.debug("phase %s: %.3fs, %d bytes", result.name, result.elapsed, result.byte_size)


def run_benchmark(out_dir=OUTPUT_DIR, num_files: int = NUM_FILES,
                  seed: Optional[int] = None, progress: bool = True) -> BenchmarkMetrics:
    rng = random.Random(seed)

    generation = PhaseResult("generate json")
    gz_comp = PhaseResult("gzip compress")
    gz_decomp = PhaseResult("gzip decompress")
    archive = PhaseResult("zstd archive")

    # Step 1
    if progress:
        print("\nStep 1: Generating JSON files")
    names: List[str] = []
    with timed_phase(generation):
        os.makedirs(out_dir, exist_ok=True)
        tick = _progress("generated", num_files, progress)

        def on_write(blob):
            names.append(blob.name)
            generation.byte_size += len(blob.data)
            tick()

        write_corpus(out_dir, generate_corpus(num_files, rng), on_write=on_write)
        generation.count = len(names)

    # Step 2
    if progress:
        print("\nStep 2: Compressing individual files with gzip")
    with timed_phase(gz_comp):
        gz_comp.byte_size = compress_files(out_dir, names,
                                           on_file=_progress("compressed", num_files, progress))
        gz_comp.count = len(names)

    # Step 3
    if progress:
        print("\nStep 3: Decompressing gzip files")
    with timed_phase(gz_decomp):
        gz_decomp.byte_size = decompress_files(out_dir, names,
                                               on_file=_progress("decompressed", num_files, progress))
        gz_decomp.count = len(names)

    # Step 4
    if progress:
        print("\nStep 4: Compressing all files into one zstd archive")
    archive_path = Path(out_dir) / ARCHIVE_NAME
    with timed_phase(archive):
        tick = _progress("archived", num_files, progress)
        with open(archive_path, 'wb') as f:
            with ArchiveWriter(f, ZSTD_LEVEL) as writer:
                for name in names:
                    writer.add_file(name, blob_path(out_dir, name))
                    tick()
        archive.count = writer.frames
        archive.byte_size = os.path.getsize(archive_path)

    return BenchmarkMetrics(generation, gz_comp, gz_decomp, archive)


# ============================================================================
# Report
# ============================================================================

def print_report(m: BenchmarkMetrics):
    print("\n" + "=" * 50)
    print("COMPRESSION COMPARISON RESULTS")
    print("=" * 50)
    print("Original JSON files:")
    print(f"  Files: {m.generation.count:,}")
    print(f"  Size: {format_bytes(m.original_size)}")
    print(f"  Generation time: {format_duration(m.generation.elapsed)}")
    print()
    print("Individual gzip compression:")
    print(f"  Size: {format_bytes(m.gzip_size)}")
    print(f"  Compression time: {format_duration(m.gzip_compress.elapsed)}")
    print(f"  Decompression time: {format_duration(m.gzip_decompress.elapsed)}")
    print(f"  Compression ratio: {compression_ratio(m.gzip_size, m.original_size):.2f}%")
    print()
    print("Multi-file zstd compression:")
    print(f"  Size: {format_bytes(m.zstd_size)}")
    print(f"  Compression time: {format_duration(m.archive.elapsed)}")
    print(f"  Compression ratio: {compression_ratio(m.zstd_size, m.original_size):.2f}%")
    print()

    w = decide_winner(m.zstd_size, m.gzip_size)
    label = "Zstd" if w.strategy == STRATEGY_ZSTD else "Gzip"
    print("WINNER:")
    print(f"  {label} wins by {format_bytes(w.savings)} ({w.savings_pct:.2f}% smaller)")
    print("-" * 50)


# ============================================================================
# Verification
# ============================================================================

def verify_archive(out_dir=OUTPUT_DIR) -> bool:
    """Check every frame of the archive against its .json file."""
    blobs = read_archive_file(Path(out_dir) / ARCHIVE_NAME)
    mismatches = 0
    for blob in blobs:
        path = blob_path(out_dir, blob.name)
        with open(path, 'rb') as f:
            if f.read() != blob.data:
                print(f"  ✗ {blob.name}: content differs from {path}")
                mismatches += 1

    print(f"Archive frames: {len(blobs):,}")
    print(f"Directory size: {format_bytes(get_directory_size(out_dir))}")
    if mismatches:
        print(f"✗ {mismatches} of {len(blobs):,} files differ")
        return False
    print(f"✓ All {len(blobs):,} files verified!")
    return True


def main():
    logging.basicConfig(
        level=logging.DEBUG if os.environ.get("BENCH_DEBUG") else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    cmd = sys.argv[1] if len(sys.argv) > 1 else 'run'

    try:
        if cmd == 'run':
            print("Starting compression comparison")
            print(f"Generating {NUM_FILES:,} fake JSON files in {OUTPUT_DIR}/ ...")
            metrics = run_benchmark()
            print_report(metrics)
            print("\n✓ Compression comparison complete!")
        elif cmd == 'verify':
            out_dir = sys.argv[2] if len(sys.argv) > 2 else OUTPUT_DIR
            sys.exit(0 if verify_archive(out_dir) else 1)
        elif cmd == 'list':
            path = sys.argv[2] if len(sys.argv) > 2 else os.path.join(OUTPUT_DIR, ARCHIVE_NAME)
            for blob in read_archive_file(path):
                print(f"{blob.name:<24} {len(blob.data):>10,}")
        else:
            print("Usage: compare_benchmark.py [run|verify [dir]|list [archive]]")
            sys.exit(1)
    except (PhaseError, OSError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
