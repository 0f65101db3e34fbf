"""
Test coordinator.

Starts the configured number of workers, each with its own upload session,
and aggregates everything they report:

1. Record each success and count completions per second.

2. On the first error, print an abort notice and signal all workers to
   quit. Workers finish their in-flight upload and retire.

3. Every second, report how many uploads completed in the last full second.

4. Wait for all workers to retire and return the collected result.

The result log and the per-second counts are touched only by the
coordinator loop.
"""

import logging
import queue
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional

import click

from uploadperf.config import HarnessConfig
from uploadperf.content import ObjectFactory
from uploadperf.messages import Done, Failure, Success, WorkerMessage
from uploadperf.reporter import Reporter
from uploadperf.results import TestResult, round_to_second
from uploadperf.s3_client import s3_session_factory
from uploadperf.worker import Worker

logger = logging.getLogger(__name__)

TICK_INTERVAL = 1.0


def progress_line(elapsed_seconds: int, count: int) -> str:
    return f"{elapsed_seconds}s: {count}"


def abort_line(error: BaseException) -> str:
    return f'An upload attempt errored with "{error}" - aborting test!'


class Coordinator:
    """Owns the lifecycle of one test run and its aggregated result"""

    def __init__(
        self,
        config: HarnessConfig,
        open_session: Callable[[], object],
        echo: Callable[[str], None] = click.echo,
        tick_interval: float = TICK_INTERVAL,
    ):
        self.config = config
        self.open_session = open_session
        self.echo = echo
        self.tick_interval = tick_interval
        # replaced at the start of every run
        self.cancel: Future = Future()

    def run(self) -> TestResult:
        """Run the test to completion; the first failure, if any, is in result.error"""
        config = self.config
        self.cancel = Future()
        inbox: "queue.Queue[WorkerMessage]" = queue.Queue()
        new_object = ObjectFactory(config.object_size, seed=config.seed)
        result = TestResult()

        logger.info(
            "Starting %d workers uploading %d byte objects to %s/%s",
            config.concurrency, config.object_size, config.endpoint_url, config.bucket,
        )

        reporter = Reporter(echo=self.echo)
        reporter.start()
        try:
            with ThreadPoolExecutor(
                max_workers=config.concurrency, thread_name_prefix="worker"
            ) as pool:
                workers = [
                    Worker(i, self.open_session, new_object, config.policy, inbox, self.cancel)
                    for i in range(config.concurrency)
                ]
                for worker in workers:
                    pool.submit(worker.run)

                try:
                    self._collect(inbox, result, reporter)
                except BaseException:
                    # interrupted: let workers retire after their in-flight upload
                    if not self.cancel.done():
                        self.cancel.set_result(None)
                    raise
        finally:
            try:
                reporter.close()
            except Exception as e:
                # progress output is lost, the collected result is not
                logger.warning("Progress output failed: %s", e)

        return result

    def _collect(self, inbox: "queue.Queue[WorkerMessage]", result: TestResult,
                 reporter: Reporter) -> None:
        outstanding = self.config.concurrency
        start_second = round_to_second(time.time_ns())
        next_tick = time.monotonic() + self.tick_interval

        while outstanding > 0:
            try:
                msg: Optional[WorkerMessage] = inbox.get(
                    timeout=max(0.0, next_tick - time.monotonic())
                )
            except queue.Empty:
                msg = None

            if msg is not None and self._handle(msg, result, reporter):
                outstanding -= 1
                logger.debug("Worker %d retired, %d outstanding", msg.worker_id, outstanding)

            now = time.monotonic()
            if now >= next_tick:
                # only strictly past seconds are reported; they can no longer change
                label = round_to_second(time.time_ns()) - 1
                reporter.submit(progress_line(label - start_second, result.count_at(label)))
                while next_tick <= now:
                    next_tick += self.tick_interval

    def _handle(self, msg: WorkerMessage, result: TestResult, reporter: Reporter) -> bool:
        """Apply one worker message; returns True if the worker retired"""
        if isinstance(msg, Success):
            result.record(msg)
            return False

        if isinstance(msg, Failure):
            if result.error is None:
                result.error = msg.error
                reporter.submit(abort_line(msg.error))
                self.cancel.set_result(msg.error)
                logger.info("Worker %d failed, cancelling remaining workers", msg.worker_id)
            return True

        if isinstance(msg, Done):
            return True

        raise TypeError(f"unexpected worker message: {msg!r}")


def run_test(config: HarnessConfig, open_session: Optional[Callable[[], object]] = None,
             echo: Callable[[str], None] = click.echo) -> TestResult:
    """Run one test against the S3 endpoint described by ``config``"""
    if open_session is None:
        open_session = s3_session_factory(config)
    return Coordinator(config, open_session, echo=echo).run()
