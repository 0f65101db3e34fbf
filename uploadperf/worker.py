"""
Upload worker.

A worker uploads generated objects one after another over its own session
until its termination policy is met, an upload fails, or the coordinator
broadcasts cancellation. Every upload runs as a separate attempt on the
worker's own single-thread executor so the worker can wait on the attempt
and the cancellation signal at the same time.

Worker algorithm:

1. Open a session; if that fails report Failure and stop.

2. Generate an object of the configured size and upload it.

3. Report each success, then stop with Done(COMPLETED) once the policy
   allows it.

4. Stop on:
   a. An upload error (Failure, never retried), or
   b. Cancellation seen between attempts (Done(CANCELLED)).

An attempt that has started always finishes, and its outcome is reported
before the worker retires.
"""

import logging
import queue
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Callable, Tuple

from uploadperf.config import TerminationPolicy
from uploadperf.content import ContentGenerator
from uploadperf.exceptions import HarnessError, SessionError, UploadError
from uploadperf.messages import Done, DoneReason, Failure, Success, WorkerMessage

logger = logging.getLogger(__name__)


def timed_upload(session, obj: ContentGenerator) -> Tuple[int, int]:
    """Upload ``obj``; returns (start_time_ns, duration_ns)"""
    start_time_ns = time.time_ns()
    started = time.perf_counter_ns()
    session.upload(obj.name, obj, obj.size())
    return start_time_ns, time.perf_counter_ns() - started


class Worker:
    """One independent client performing a sequential series of uploads"""

    def __init__(
        self,
        worker_id: int,
        open_session: Callable[[], object],
        new_object: Callable[[], ContentGenerator],
        policy: TerminationPolicy,
        outbox: "queue.Queue[WorkerMessage]",
        cancel: Future,
    ):
        self.worker_id = worker_id
        self.open_session = open_session
        self.new_object = new_object
        self.policy = policy
        self.outbox = outbox
        self.cancel = cancel
        self.upload_count = 0

    def _send(self, msg: WorkerMessage) -> None:
        self.outbox.put(msg)

    def run(self) -> None:
        """Run until retired. Always sends exactly one terminal message."""
        try:
            self._run()
        except Exception as e:
            # a crashed worker must still retire
            logger.exception("Worker %d crashed", self.worker_id)
            self._send(Failure(self.worker_id, e))

    def _run(self) -> None:
        try:
            session = self.open_session()
        except SessionError as e:
            self._send(Failure(self.worker_id, e))
            return
        except Exception as e:
            err = SessionError(f"cannot open session: {e}")
            err.__cause__ = e
            self._send(Failure(self.worker_id, err))
            return

        with ThreadPoolExecutor(
            max_workers=1, thread_name_prefix=f"upload-{self.worker_id}"
        ) as attempts:
            started = time.monotonic()
            while True:
                if self.cancel.done():
                    logger.debug("Worker %d: cancelled after %d uploads",
                                 self.worker_id, self.upload_count)
                    self._send(Done(self.worker_id, DoneReason.CANCELLED))
                    return

                obj = self.new_object()
                attempt = attempts.submit(timed_upload, session, obj)
                finished, _ = wait([attempt, self.cancel], return_when=FIRST_COMPLETED)
                if attempt not in finished:
                    logger.debug("Worker %d: cancellation seen, waiting for %s",
                                 self.worker_id, obj.name)
                    wait([attempt])

                err = attempt.exception()
                if err is not None:
                    if not isinstance(err, HarnessError):
                        wrapped = UploadError(obj.name, err)
                        wrapped.__cause__ = err
                        err = wrapped
                    self._send(Failure(self.worker_id, err))
                    return

                start_time_ns, duration_ns = attempt.result()
                self._send(Success(self.worker_id, start_time_ns, duration_ns))
                self.upload_count += 1

                if self.policy.satisfied(time.monotonic() - started, self.upload_count):
                    logger.debug("Worker %d: completed %d uploads",
                                 self.worker_id, self.upload_count)
                    self._send(Done(self.worker_id, DoneReason.COMPLETED))
                    return
