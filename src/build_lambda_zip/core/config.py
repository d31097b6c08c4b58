"""Configuration management for build-lambda-zip."""

from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven settings shared by every invocation."""

    model_config = SettingsConfigDict(
        env_prefix="BUILD_LAMBDA_ZIP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Observability
    log_level: str = Field("INFO", description="Log level name")
    log_format: str = Field("console", pattern="^(console|json)$", description="Log renderer")

    # AWS
    aws_region: Optional[str] = Field(
        None,
        description="Region for the Lambda client; the default chain resolves it when unset",
    )

    # Update polling
    poll_interval_seconds: float = Field(0.25, gt=0, description="Delay between status checks")
    max_poll_attempts: Optional[int] = Field(
        None,
        ge=1,
        description="Maximum status fetches before giving up (unbounded when unset)",
    )
    poll_timeout_seconds: Optional[float] = Field(
        None,
        gt=0,
        description="Maximum time spent polling (unbounded when unset)",
    )
    fail_on_update_failure: bool = Field(
        False,
        description="Raise when the update settles in a failure state",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and check the log level name."""
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level


class OutputMode(str, Enum):
    """Where the built archive goes."""

    WRITE_FILE = "write_file"
    UPDATE_FUNCTION = "update_function"


class BuildOptions(BaseModel):
    """Per-invocation options, constructed once at the command-line boundary."""

    model_config = ConfigDict(frozen=True)

    input_path: Path
    # Kept as given; each string is also the entry name inside the archive
    auxiliary_paths: Tuple[str, ...] = ()
    output_path: Optional[Path] = None
    function_name: Optional[str] = None

    @field_validator("function_name")
    @classmethod
    def blank_function_name_is_unset(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    @property
    def mode(self) -> OutputMode:
        if self.function_name:
            return OutputMode.UPDATE_FUNCTION
        return OutputMode.WRITE_FILE

    @property
    def resolved_output_path(self) -> Path:
        """Output path, defaulting to the input's base name with a zip suffix."""
        if self.output_path is not None:
            return self.output_path
        return Path(f"{self.input_path.name}.zip")
