"""
Console and file output.

The Reporter prints lines on its own thread so a slow terminal never stalls
the coordinator's aggregation loop. Lines are buffered in a bounded queue
and printed strictly in the order they were submitted.

write_csv persists the final result once the test is over.
"""

import csv
import logging
import queue
import threading
from typing import Callable, Optional

import click

from uploadperf.exceptions import WriteError
from uploadperf.results import TestResult

logger = logging.getLogger(__name__)

CSV_HEADER = ["startTimeUnixNano", "DurationNano"]

# buffer up to 100 lines
DEFAULT_QUEUE_SIZE = 100

_CLOSE = object()


class Reporter:
    """Prints submitted lines asynchronously, in submission order"""

    def __init__(self, echo: Callable[[str], None] = click.echo, maxsize: int = DEFAULT_QUEUE_SIZE):
        self.echo = echo
        self._lines: "queue.Queue" = queue.Queue(maxsize=maxsize)
        self._done = threading.Event()
        self._error: Optional[BaseException] = None
        self._thread = threading.Thread(target=self._print_loop, name="reporter", daemon=True)

    def __enter__(self) -> "Reporter":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def start(self) -> None:
        self._thread.start()

    def submit(self, line: str) -> None:
        """Queue a line for printing; blocks only while the queue is full"""
        self._lines.put(line)

    def close(self, timeout: Optional[float] = None) -> None:
        """Stop accepting lines, wait until everything queued is printed"""
        self._lines.put(_CLOSE)
        self._done.wait(timeout)
        if self._error is not None:
            raise self._error

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def _print_loop(self) -> None:
        try:
            while True:
                line = self._lines.get()
                if line is _CLOSE:
                    break
                if self._error is not None:
                    # keep draining so submitters never block on a dead sink
                    continue
                try:
                    self.echo(line)
                except Exception as e:
                    logger.error("Console output failed: %s", e)
                    self._error = e
        finally:
            self._done.set()


def write_csv(result: TestResult, path: str) -> int:
    """
    Write the result log as CSV, one row per successful upload:

        startTimeUnixNano,DurationNano
        1700000000123456789,52311000

    Returns the number of data rows written. Raises WriteError on any
    filesystem error.
    """
    try:
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f, lineterminator="\n")
            writer.writerow(CSV_HEADER)
            writer.writerows(result.uploads)
    except OSError as e:
        raise WriteError(f"cannot write {path}: {e}") from e

    logger.debug("Wrote %d rows to %s", len(result.uploads), path)
    return len(result.uploads)
