"""Tests for the multi-file zstd archive framing."""

import io
import os

import pytest
import zstandard as zstd

import archive_codec
from archive_codec import (
    LEN,
    MAX_FIELD_LEN,
    ArchiveReader,
    ArchiveWriter,
    decode_archive,
    encode_archive,
    read_archive_file,
    write_archive_file,
)
from bench_errors import CodecError, FramingError
from corpus_gen import NamedBlob


def raw_stream(payload: bytes) -> bytes:
    """zstd-compress an already framed payload, bypassing the writer."""
    return zstd.ZstdCompressor(level=3).compress(payload)


def frame(name: bytes, content: bytes) -> bytes:
    return LEN.pack(len(name)) + name + LEN.pack(len(content)) + content


@pytest.mark.parametrize("data", [b"", b"\x00", b"abc" * 1000, os.urandom(2048)])
def test_single_blob_roundtrip(data):
    blobs = [NamedBlob("a", data)]
    assert decode_archive(encode_archive(blobs)) == blobs


def test_three_records_in_order():
    blobs = [NamedBlob("r0", b"x"), NamedBlob("r1", b""), NamedBlob("r2", b"hello")]
    decoded = decode_archive(encode_archive(blobs))
    assert [(b.name, b.data) for b in decoded] == [("r0", b"x"), ("r1", b""), ("r2", b"hello")]


def test_empty_corpus():
    data = encode_archive([])
    assert len(data) > 0
    assert decode_archive(data) == []


def test_many_records_keep_order():
    blobs = [NamedBlob(f"log_{i:04d}", os.urandom(i % 7) * 3) for i in range(300)]
    assert decode_archive(encode_archive(blobs)) == blobs


def test_unicode_and_empty_names():
    blobs = [NamedBlob("", b"anon"), NamedBlob("журнал.json", b"{}")]
    assert decode_archive(encode_archive(blobs)) == blobs


def test_decompressed_stream_is_plain_frames():
    blobs = [NamedBlob("r0", b"x"), NamedBlob("r1", b"")]
    payload = zstd.ZstdDecompressor().decompressobj().decompress(encode_archive(blobs))
    assert payload == frame(b"r0", b"x") + frame(b"r1", b"")


def test_reader_accepts_hand_framed_stream():
    payload = frame(b"one", b"1") + frame(b"two", b"22")
    assert decode_archive(raw_stream(payload)) == [NamedBlob("one", b"1"), NamedBlob("two", b"22")]


def test_content_length_past_end_is_framing_error():
    payload = frame(b"ok", b"fine") + LEN.pack(1) + b"a" + LEN.pack(10) + b"abc"
    with pytest.raises(FramingError) as exc_info:
        decode_archive(raw_stream(payload))
    assert exc_info.value.frame_index == 1


def test_name_length_past_end_is_framing_error():
    with pytest.raises(FramingError):
        decode_archive(raw_stream(LEN.pack(50) + b"short"))


def test_partial_length_prefix_is_framing_error():
    with pytest.raises(FramingError):
        decode_archive(raw_stream(frame(b"a", b"b") + b"\x01\x00"))


def test_missing_content_length_is_framing_error():
    with pytest.raises(FramingError):
        decode_archive(raw_stream(LEN.pack(1) + b"a"))


def test_reader_never_returns_partial_frames():
    payload = frame(b"a", b"complete") + frame(b"b", b"cut off here")
    reader = ArchiveReader(io.BytesIO(raw_stream(payload[:-4])))
    assert reader.read_frame() == NamedBlob("a", b"complete")
    with pytest.raises(FramingError):
        reader.read_frame()


def test_truncated_zstd_stream_is_rejected():
    blobs = [NamedBlob(f"log_{i:04d}", os.urandom(512)) for i in range(20)]
    data = encode_archive(blobs)
    with pytest.raises(CodecError):
        decode_archive(data[:len(data) // 2])


def test_garbage_is_codec_error():
    with pytest.raises(CodecError):
        decode_archive(b"this is not a zstd stream at all")


def test_length_ceiling():
    archive_codec._check_len("content", MAX_FIELD_LEN, 0)
    with pytest.raises(FramingError):
        archive_codec._check_len("content", MAX_FIELD_LEN + 1, 0)


def test_writer_rejects_oversize_frame_before_writing(monkeypatch):
    out = io.BytesIO()
    writer = ArchiveWriter(out)
    writer.add("ok", b"1234")
    frames, raw_bytes = writer.frames, writer.raw_bytes

    monkeypatch.setattr(archive_codec, "MAX_FIELD_LEN", 4)
    with pytest.raises(FramingError):
        writer.add("a", b"12345")
    with pytest.raises(FramingError):
        writer.add("too-long-name", b"")
    assert (writer.frames, writer.raw_bytes) == (frames, raw_bytes)

    writer.finish()
    assert decode_archive(out.getvalue()) == [NamedBlob("ok", b"1234")]


def test_add_file_size_change_is_framing_error(tmp_path, monkeypatch):
    src = tmp_path / "log_0000.json"
    src.write_bytes(b"x" * 100)
    real_fstat = os.fstat

    class Stat:
        def __init__(self, st):
            self.st_size = st.st_size + 5

    monkeypatch.setattr(archive_codec.os, "fstat", lambda fd: Stat(real_fstat(fd)))
    writer = ArchiveWriter(io.BytesIO())
    with pytest.raises(FramingError):
        writer.add_file("log_0000", src)
    assert writer.frames == 0


def test_write_after_finish_raises():
    writer = ArchiveWriter(io.BytesIO())
    writer.add("a", b"1")
    writer.finish()
    with pytest.raises(ValueError):
        writer.add("b", b"2")


def test_writer_keeps_sink_open_and_counts():
    out = io.BytesIO()
    with ArchiveWriter(out) as writer:
        writer.add("a", b"12345")
        writer.add("bb", b"")
    assert not out.closed
    assert writer.frames == 2
    assert writer.raw_bytes == (8 + 1 + 5) + (8 + 2)
    assert decode_archive(out.getvalue()) == [NamedBlob("a", b"12345"), NamedBlob("bb", b"")]


def test_exception_leaves_archive_unfinished():
    out = io.BytesIO()
    with pytest.raises(RuntimeError):
        with ArchiveWriter(out) as writer:
            writer.add("a", b"1")
            raise RuntimeError("boom")
    assert not writer.finished


def test_unfinished_stream_is_codec_error():
    out = io.BytesIO()
    writer = ArchiveWriter(out)
    writer.add("a", b"x" * 100)
    writer.zstd_stream.flush(zstd.FLUSH_BLOCK)
    assert out.getvalue()
    with pytest.raises(CodecError):
        decode_archive(out.getvalue())


def test_add_file_and_archive_files(tmp_path):
    src = tmp_path / "log_0000.json"
    src.write_bytes(b'{"level": "INFO"}' * 100)
    empty = tmp_path / "log_0001.json"
    empty.write_bytes(b"")

    path = tmp_path / "all_logs.zst"
    with open(path, 'wb') as f:
        with ArchiveWriter(f) as writer:
            writer.add_file("log_0000", src)
            writer.add_file("log_0001", empty)

    assert read_archive_file(path) == [
        NamedBlob("log_0000", src.read_bytes()),
        NamedBlob("log_0001", b""),
    ]


def test_write_archive_file_returns_size(tmp_path):
    path = tmp_path / "a.zst"
    size = write_archive_file(path, [NamedBlob("x", b"y" * 100)])
    assert size == path.stat().st_size
    assert read_archive_file(path) == [NamedBlob("x", b"y" * 100)]
