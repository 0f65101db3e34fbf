#!/usr/bin/env python3
"""
Content generator tests

Covers exact-length streaming, end-of-stream behavior, the periodic body
pattern, object naming and determinism under a fixed seed.
"""

import random
import threading

import pytest

from uploadperf.content import (
    ALPHABET,
    PARENT_DIRS,
    ContentGenerator,
    ObjectFactory,
    alphabet_permutation,
)


def drain(gen, chunk_size=7):
    """Read a generator to exhaustion, returning all bytes"""
    parts = []
    while True:
        chunk = gen.read(chunk_size)
        if not chunk:
            return b"".join(parts)
        parts.append(chunk)


@pytest.mark.parametrize("length", [0, 1, 35, 36, 37, 100, 8192, 100_003])
def test_yields_exactly_length_bytes(length):
    gen = ContentGenerator(length, random.Random(1))
    data = drain(gen, chunk_size=4096)

    assert len(data) == length
    assert gen.bytes_produced == length
    assert gen.size() == length


def test_zero_length_is_immediately_exhausted():
    gen = ContentGenerator(0, random.Random(1))

    assert gen.read(10) == b""
    assert gen.readinto(bytearray(10)) == 0
    assert gen.bytes_produced == 0


def test_last_bytes_then_empty_read():
    """The call supplying the last bytes returns them; the next returns b''"""
    gen = ContentGenerator(10, random.Random(1))

    assert len(gen.read(8)) == 8
    assert len(gen.read(8)) == 2
    assert gen.read(8) == b""
    assert gen.read(8) == b""
    assert gen.bytes_produced == 10


def test_read_all_reads_remaining():
    gen = ContentGenerator(50, random.Random(1))
    gen.read(20)

    assert len(gen.read()) == 30
    assert gen.read() == b""


def test_readinto_fills_buffer_and_stops_at_length():
    gen = ContentGenerator(40, random.Random(3))
    buf = bytearray(32)

    assert gen.readinto(buf) == 32
    assert bytes(buf) == gen.pattern[:32]

    assert gen.readinto(buf) == 8
    assert bytes(buf[:8]) == (gen.pattern * 2)[32:40]
    assert gen.readinto(buf) == 0


def test_body_is_periodic_pattern():
    gen = ContentGenerator(36 * 5 + 11, random.Random(7))
    data = drain(gen, chunk_size=13)

    period = len(gen.pattern)
    assert period == len(ALPHABET) == 36
    for i in range(period, len(data)):
        assert data[i] == data[i - period]
    assert data[:period] == gen.pattern


def test_pattern_is_alphabet_permutation():
    gen = ContentGenerator(1, random.Random(5))

    assert sorted(gen.pattern.decode()) == sorted(ALPHABET)


def test_chunk_size_does_not_change_content():
    a = drain(ContentGenerator(1000, random.Random(9)), chunk_size=1)
    b = drain(ContentGenerator(1000, random.Random(9)), chunk_size=999)

    assert a == b


def test_name_layout():
    for seed in range(50):
        gen = ContentGenerator(1, random.Random(seed))
        *dirs, leaf = gen.name.split("/")

        assert " ".join(dirs) in PARENT_DIRS
        assert 1 <= len(leaf) <= len(ALPHABET)
        # the leaf is a prefix of the body pattern
        assert gen.pattern.decode().startswith(leaf)


def test_same_seed_same_name_and_bytes():
    a = ContentGenerator(500, random.Random(42))
    b = ContentGenerator(500, random.Random(42))

    assert a.name == b.name
    assert drain(a) == drain(b)


def test_different_seeds_differ():
    a = ContentGenerator(100, random.Random(1))
    b = ContentGenerator(100, random.Random(2))

    assert (a.name, a.pattern) != (b.name, b.pattern)


def test_defaults_to_process_wide_random():
    random.seed(11)
    a = ContentGenerator(64)
    random.seed(11)
    b = ContentGenerator(64)

    assert a.name == b.name
    assert a.pattern == b.pattern


def test_negative_length_rejected():
    with pytest.raises(ValueError):
        ContentGenerator(-1)


def test_stream_flags():
    gen = ContentGenerator(1, random.Random(1))

    assert gen.readable()
    assert not gen.seekable()


def test_alphabet_permutation_uses_given_source():
    assert alphabet_permutation(random.Random(4)) == alphabet_permutation(random.Random(4))


def test_object_factory_sequence_is_seeded():
    first = ObjectFactory(10, seed=42)
    second = ObjectFactory(10, seed=42)

    names_a = [first().name for _ in range(5)]
    names_b = [second().name for _ in range(5)]

    assert names_a == names_b
    assert all(first().size() == 10 for _ in range(3))


def test_object_factory_is_thread_safe():
    factory = ObjectFactory(36, seed=1)
    made = []
    lock = threading.Lock()

    def build():
        for _ in range(200):
            gen = factory()
            with lock:
                made.append(gen)

    threads = [threading.Thread(target=build) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(made) == 800
    for gen in made:
        assert sorted(gen.pattern.decode()) == sorted(ALPHABET)
