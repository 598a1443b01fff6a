from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from .status import StatusKind, describe, status_kind


class ExecutionRequest(BaseModel):
    """One (source, stdin, expected output) triple queued on the backend."""

    model_config = ConfigDict(frozen=True)

    source_code: str
    language_id: int
    stdin: Optional[str] = None
    expected_output: Optional[str] = None


class ExecutionResult(BaseModel):
    """Terminal result of one token as reported by the backend."""

    model_config = ConfigDict(frozen=True)

    token: str
    status_id: int
    status_description: str = "unknown"
    stdout: Optional[str] = None
    stderr: Optional[str] = None
    compile_output: Optional[str] = None
    message: Optional[str] = None
    time: float = 0.0
    memory: int = 0
    expected_output: Optional[str] = None

    @field_validator("time", mode="before")
    @classmethod
    def _coerce_time(cls, value: Any) -> float:
        # Judge0 reports time as a decimal string ("0.012") or null
        if value in (None, ""):
            return 0.0
        try:
            return float(value)
        except (TypeError, ValueError):
            return 0.0

    @field_validator("memory", mode="before")
    @classmethod
    def _coerce_memory(cls, value: Any) -> int:
        if value in (None, ""):
            return 0
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return 0

    @property
    def kind(self) -> StatusKind:
        return status_kind(self.status_id)

    @property
    def accepted(self) -> bool:
        return self.kind is StatusKind.accepted

    @classmethod
    def from_backend(cls, payload: Dict[str, Any]) -> "ExecutionResult":
        """Build from a Judge0 submission payload (``status`` object or flat ``status_id``)."""
        status = payload.get("status") if isinstance(payload.get("status"), dict) else {}
        status_id = payload.get("status_id")
        if status_id is None:
            status_id = status.get("id")
        description = status.get("description") or describe(status_id)
        return cls(
            token=payload.get("token") or "",
            status_id=int(status_id) if status_id is not None else 0,
            status_description=description,
            stdout=payload.get("stdout"),
            stderr=payload.get("stderr"),
            compile_output=payload.get("compile_output"),
            message=payload.get("message"),
            time=payload.get("time"),
            memory=payload.get("memory"),
            expected_output=payload.get("expected_output"),
        )


class LanguageInfo(BaseModel):
    id: int
    name: str
    aliases: List[str] = []


class Judge0Status(BaseModel):
    id: int
    description: str
