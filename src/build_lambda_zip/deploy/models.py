"""Models for function code updates."""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict


NIL_PLACEHOLDER = "<nil>"


class UpdateState(str, Enum):
    """LastUpdateStatus values reported by Lambda."""

    IN_PROGRESS = "InProgress"
    SUCCESSFUL = "Successful"
    FAILED = "Failed"


class UpdateStatus(BaseModel):
    """A single observation of a function's last update."""

    model_config = ConfigDict(frozen=True)

    state: str
    reason: Optional[str] = None
    code_sha256: Optional[str] = None

    @classmethod
    def from_update_response(cls, response: Mapping[str, Any]) -> "UpdateStatus":
        return cls(
            state=response.get("LastUpdateStatus") or "",
            reason=response.get("LastUpdateStatusReason") or response.get("StateReason"),
            code_sha256=response.get("CodeSha256"),
        )

    @classmethod
    def from_function_response(cls, response: Mapping[str, Any]) -> "UpdateStatus":
        configuration = response.get("Configuration") or {}
        return cls(
            state=configuration.get("LastUpdateStatus") or "",
            reason=configuration.get("LastUpdateStatusReason"),
            code_sha256=configuration.get("CodeSha256"),
        )

    @property
    def is_in_progress(self) -> bool:
        return self.state == UpdateState.IN_PROGRESS.value

    @property
    def is_terminal(self) -> bool:
        return not self.is_in_progress

    @property
    def is_successful(self) -> bool:
        return self.state == UpdateState.SUCCESSFUL.value

    @property
    def is_failure(self) -> bool:
        """Terminal with a reported state other than Successful."""
        return bool(self.state) and self.is_terminal and not self.is_successful

    def describe(self) -> str:
        reason = self.reason if self.reason is not None else NIL_PLACEHOLDER
        return f"state[{self.state}] reason[{reason}]"


class DeploymentTarget(BaseModel):
    model_config = ConfigDict(frozen=True)

    function_name: str
    zip_file: bytes
