"""
Messages sent from workers to the coordinator.

A worker reports each successful upload with Success, and retires with
exactly one terminal message: Failure (always terminal, never followed by
Done) or Done with the reason it stopped.
"""

import enum
from dataclasses import dataclass
from typing import Union


class DoneReason(enum.Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Success:
    worker_id: int
    start_time_ns: int
    duration_ns: int

    @property
    def end_time_ns(self) -> int:
        return self.start_time_ns + self.duration_ns


@dataclass(frozen=True)
class Failure:
    worker_id: int
    error: BaseException


@dataclass(frozen=True)
class Done:
    worker_id: int
    reason: DoneReason


WorkerMessage = Union[Success, Failure, Done]
