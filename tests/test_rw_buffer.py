import time
from pathlib import Path

from remotefs.rw_buffer import ReadBuffer, WriteBuffer

DATA = b"hello remote world"


def test_read_hit_returns_slice():
    buf = ReadBuffer(64, 10.0)
    buf.fill("/f.txt", 10, DATA)
    assert buf.read("/f.txt", 10, 5) == DATA[:5]
    assert buf.read("/f.txt", 12, 100) == DATA[2:]


def test_capacity_is_kept():
    assert ReadBuffer(8, 1.0).capacity == 8


def test_read_miss_on_other_path():
    buf = ReadBuffer(64, 10.0)
    buf.fill("/f.txt", 0, DATA)
    assert buf.read("/g.txt", 0, 4) == b""


def test_read_miss_outside_region():
    buf = ReadBuffer(64, 10.0)
    buf.fill("/f.txt", 10, DATA)
    assert buf.read("/f.txt", 9, 4) == b""
    assert buf.read("/f.txt", 10 + len(DATA), 4) == b""


def test_empty_buffer_never_hits():
    buf = ReadBuffer(64, 10.0)
    assert buf.read("", 0, 4) == b""


def test_fill_is_truncated_to_capacity():
    buf = ReadBuffer(4, 10.0)
    buf.fill("/f.txt", 0, DATA)
    assert buf.read("/f.txt", 0, 100) == DATA[:4]


def test_read_expires_after_ttl():
    buf = ReadBuffer(64, 0.01)
    buf.fill("/f.txt", 0, DATA)
    time.sleep(0.05)
    assert buf.read("/f.txt", 0, 4) == b""


def test_write_new_region():
    buf = WriteBuffer(32)
    assert buf.write("/w.bin", 5, DATA) == len(DATA)
    assert buf.content() == (Path("/w.bin"), 5, DATA)


def test_append_continues_region():
    buf = WriteBuffer(64)
    buf.write("/w.bin", 0, b"abc")
    assert buf.is_appending("/w.bin", 3)
    assert not buf.is_appending("/w.bin", 2)
    assert not buf.is_appending("/other.bin", 3)
    buf.write("/w.bin", 3, b"def")
    assert buf.content() == (Path("/w.bin"), 0, b"abcdef")


def test_append_accepts_only_remaining_space():
    buf = WriteBuffer(8)
    buf.write("/w.bin", 0, DATA[:6])
    accepted = buf.write("/w.bin", 6, DATA[6:])
    assert accepted == 2
    assert buf.is_full()
    assert buf.content()[2] == DATA[:8]


def test_non_appending_write_replaces_region():
    buf = WriteBuffer(16)
    buf.write("/w.bin", 0, b"first")
    buf.write("/w.bin", 100, b"second")
    assert buf.content() == (Path("/w.bin"), 100, b"second")


def test_clean_resets_state():
    buf = WriteBuffer(4)
    buf.write("/w.bin", 0, DATA)
    assert buf.is_full()
    buf.clean()
    assert not buf.is_full()
    assert buf.content() == (None, 0, b"")
    assert not buf.is_appending("/w.bin", 0)