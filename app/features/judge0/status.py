"""Judge0 status taxonomy.

Every status_id interpretation in the code base goes through ``status_kind``.
"""

from __future__ import annotations

import enum
from typing import Dict, Optional

IN_QUEUE = 1
PROCESSING = 2
ACCEPTED = 3
WRONG_ANSWER = 4
TIME_LIMIT_EXCEEDED = 5
COMPILATION_ERROR = 6

# Judge0 CE status descriptions (GET /statuses)
STATUS_DESCRIPTIONS: Dict[int, str] = {
    1: "In Queue",
    2: "Processing",
    3: "Accepted",
    4: "Wrong Answer",
    5: "Time Limit Exceeded",
    6: "Compilation Error",
    7: "Runtime Error (SIGSEGV)",
    8: "Runtime Error (SIGXFSZ)",
    9: "Runtime Error (SIGFPE)",
    10: "Runtime Error (SIGABRT)",
    11: "Runtime Error (NZEC)",
    12: "Runtime Error (Other)",
    13: "Internal Error",
    14: "Exec Format Error",
}


class StatusKind(str, enum.Enum):
    queued = "queued"
    processing = "processing"
    accepted = "accepted"
    wrong_answer = "wrong_answer"
    time_limit_exceeded = "time_limit_exceeded"
    compile_error = "compile_error"
    runtime_error = "runtime_error"

    @property
    def is_terminal(self) -> bool:
        return self not in (StatusKind.queued, StatusKind.processing)


def status_kind(status_id: Optional[int]) -> StatusKind:
    if status_id is None or status_id == IN_QUEUE:
        return StatusKind.queued
    if status_id == PROCESSING:
        return StatusKind.processing
    if status_id == ACCEPTED:
        return StatusKind.accepted
    if status_id == WRONG_ANSWER:
        return StatusKind.wrong_answer
    if status_id == TIME_LIMIT_EXCEEDED:
        return StatusKind.time_limit_exceeded
    if status_id == COMPILATION_ERROR:
        return StatusKind.compile_error
    # 7-12 are signals / NZEC; 13, 14 and anything newer fold into the same bucket
    return StatusKind.runtime_error


def is_terminal(status_id: Optional[int]) -> bool:
    return status_kind(status_id).is_terminal


def describe(status_id: Optional[int]) -> str:
    if status_id is None:
        return "unknown"
    return STATUS_DESCRIPTIONS.get(status_id, "unknown")


__all__ = [
    "StatusKind",
    "status_kind",
    "is_terminal",
    "describe",
    "STATUS_DESCRIPTIONS",
    "ACCEPTED",
    "WRONG_ANSWER",
    "TIME_LIMIT_EXCEEDED",
    "COMPILATION_ERROR",
]
