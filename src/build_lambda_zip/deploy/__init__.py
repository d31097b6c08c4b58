"""Function code updates."""

from .client import FunctionDeployer, log_status
from .models import UpdateState, UpdateStatus

__all__ = ["FunctionDeployer", "UpdateState", "UpdateStatus", "log_status"]
