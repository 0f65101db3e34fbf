"""
Synthetic object content.

ContentGenerator produces an object body of an exact length without ever
holding the whole object in memory. The body is a 36 byte pattern (a
shuffled copy of the alphanumeric alphabet) repeated cyclically, and the
object name is a directory built from one of a fixed set of phrases plus a
random-length prefix of the same shuffled alphabet, e.g.
``Outlook/good/Q7D0XK``.

Everything is drawn from a seeded random source, so a given seed and call
sequence always produces the same names and bytes. By default that source is
the process-wide ``random`` module, seeded once per run.
"""

import random
import string
import threading
from typing import Optional

ALPHABET = string.ascii_uppercase + string.digits

# Spaces are replaced by path separators in object names.
PARENT_DIRS = [
    "It is certain",
    "It is decidedly so",
    "Without a doubt",
    "Yes definitely",
    "You may rely on it",
    "As I see it yes",
    "Most likely",
    "Outlook good",
    "Yes",
    "Signs point to yes",
    "Reply hazy try again",
    "Ask again later",
    "Better not tell you now",
    "Cannot predict now",
    "Concentrate and ask again",
    "Don't count on it",
    "My reply is no",
    "My sources say no",
    "Outlook not so good",
    "Very doubtful",
]


def alphabet_permutation(rng=random) -> str:
    """Return a freshly shuffled copy of ALPHABET"""
    symbols = list(ALPHABET)
    rng.shuffle(symbols)
    return "".join(symbols)


class ContentGenerator:
    """
    One-shot, read-only byte stream of ``length`` bytes.

    The generator behaves like a non-seekable binary file: ``read`` and
    ``readinto`` hand out bytes until ``length`` is reached, and the first
    call after that returns an empty result. It is built fresh for every
    upload attempt and never rewound.
    """

    def __init__(self, length: int, rng=None):
        if length < 0:
            raise ValueError(f"object length must not be negative: {length}")
        rng = rng if rng is not None else random

        directory = "/".join(rng.choice(PARENT_DIRS).split())
        permutation = alphabet_permutation(rng)
        prefix_len = 1 + rng.randrange(len(permutation))

        self.name = f"{directory}/{permutation[:prefix_len]}"
        self.length = length
        self.pattern = permutation.encode("ascii")
        self.cursor = 0
        self.bytes_produced = 0

    def __repr__(self) -> str:
        return (
            f"ContentGenerator(name={self.name!r}, length={self.length}, "
            f"bytes_produced={self.bytes_produced})"
        )

    def size(self) -> int:
        """Declared content length"""
        return self.length

    @property
    def remaining(self) -> int:
        return self.length - self.bytes_produced

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    def _take(self, count: int) -> bytes:
        count = min(count, self.remaining)
        if count <= 0:
            return b""
        period = len(self.pattern)
        rotated = self.pattern[self.cursor:] + self.pattern[: self.cursor]
        chunk = (rotated * (count // period + 1))[:count]
        self.cursor = (self.cursor + count) % period
        self.bytes_produced += count
        return chunk

    def read(self, size: Optional[int] = -1) -> bytes:
        """
        Read up to ``size`` bytes. A negative or missing size reads
        everything that is left. Returns b"" once the stream is exhausted.
        """
        if size is None or size < 0:
            size = self.remaining
        return self._take(size)

    def readinto(self, buffer) -> int:
        """Fill ``buffer`` with up to len(buffer) bytes, returning the count"""
        view = memoryview(buffer).cast("B")
        chunk = self._take(len(view))
        view[: len(chunk)] = chunk
        return len(chunk)

    def close(self) -> None:
        pass


class ObjectFactory:
    """
    Builds generators of one fixed size from a single seeded source.

    Workers run on separate threads but draw from the same random sequence,
    so each construction holds a lock to keep every draw intact.
    """

    def __init__(self, object_size: int, seed: Optional[int] = None, rng=None):
        self.object_size = object_size
        self.rng = rng if rng is not None else random.Random(seed)
        self._lock = threading.Lock()

    def __call__(self) -> ContentGenerator:
        with self._lock:
            return ContentGenerator(self.object_size, self.rng)
