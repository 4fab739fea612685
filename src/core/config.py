"""Runtime configuration model for snapdiff.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os

from core.constants import (
    DEFAULT_JSON_BATCH_SIZE,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_DELAY_SECONDS,
)
from core.errors import SnapdiffConfigError


@dataclass(frozen=True)
class SnapdiffConfig:
    """Validated runtime configuration.

    Attributes:
        max_retries: Retries allowed after the first attempt to open or
            read one diff page.
        retry_delay_seconds: Pause between retry attempts.
        json_batch_size: Maximum number of JSON objects per batch file.
    """

    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay_seconds: float = DEFAULT_RETRY_DELAY_SECONDS
    json_batch_size: int = DEFAULT_JSON_BATCH_SIZE

    @classmethod
    def from_env(cls) -> "SnapdiffConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            SnapdiffConfigError: If environment values are invalid.
        """
        max_retries = _parse_int(
            "SNAPDIFF_MAX_RETRIES",
            os.getenv("SNAPDIFF_MAX_RETRIES", str(DEFAULT_MAX_RETRIES)),
            minimum=0,
        )
        retry_delay_seconds = _parse_delay(
            os.getenv("SNAPDIFF_RETRY_DELAY_SECONDS", str(DEFAULT_RETRY_DELAY_SECONDS))
        )
        json_batch_size = _parse_int(
            "SNAPDIFF_JSON_BATCH_SIZE",
            os.getenv("SNAPDIFF_JSON_BATCH_SIZE", str(DEFAULT_JSON_BATCH_SIZE)),
            minimum=1,
        )
        return cls(
            max_retries=max_retries,
            retry_delay_seconds=retry_delay_seconds,
            json_batch_size=json_batch_size,
        )


def _parse_int(env_name: str, raw_value: str, minimum: int) -> int:
    """Parse a bounded integer environment value.

    Args:
        env_name: Environment variable name for error context.
        raw_value: Raw string from environment.
        minimum: Smallest accepted value.

    Returns:
        Parsed integer.

    Raises:
        SnapdiffConfigError: If value is not an integer or is too small.
    """
    try:
        value = int(raw_value)
    except ValueError as error:
        raise SnapdiffConfigError(
            f"Invalid {env_name} value: expected integer, got '{raw_value}'. "
            f"Set {env_name} to a numeric value."
        ) from error
    if value < minimum:
        raise SnapdiffConfigError(
            f"Invalid {env_name} value {value}: expected value >= {minimum}."
        )
    return value


def _parse_delay(raw_value: str) -> float:
    """Parse the retry delay environment value."""
    try:
        value = float(raw_value)
    except ValueError as error:
        raise SnapdiffConfigError(
            "Invalid SNAPDIFF_RETRY_DELAY_SECONDS value: "
            f"expected number, got '{raw_value}'. "
            "Set SNAPDIFF_RETRY_DELAY_SECONDS to seconds, e.g. 0.5."
        ) from error
    if value < 0:
        raise SnapdiffConfigError(
            f"Invalid SNAPDIFF_RETRY_DELAY_SECONDS value {value}: expected value >= 0."
        )
    return value
