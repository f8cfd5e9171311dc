"""Environment-driven settings.

Values are read from the process environment, after loading a ``.env`` file
if one is present. Core functions never read settings themselves; callers
pass the relevant values in.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from disc_overlay.memory.engine import RAM_BASE
from disc_overlay.tree.applier import DEFAULT_MAIN_EXECUTABLE

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


class OverlaySettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    main_executable: str = DEFAULT_MAIN_EXECUTABLE
    ram_base: int = Field(default=RAM_BASE, ge=0)
    strict_hooks: bool = False  # raise when a hook pattern has no return after it
    log_level: str = "WARNING"


def _parse_bool(raw: str | None, default: bool) -> bool:
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUE_VALUES


def _parse_int(raw: str | None, default: int) -> int:
    if raw is None or not raw.strip():
        return default
    return int(raw.strip(), 0)


def load_settings(env_file: str | None = None) -> OverlaySettings:
    """Load settings from ``DISC_OVERLAY_*`` environment variables.

    Args:
        env_file: Optional ``.env`` path; defaults to python-dotenv's search.

    Raises:
        ValueError: If a numeric variable is not an integer literal.
    """
    load_dotenv(env_file)
    return OverlaySettings(
        main_executable=os.getenv("DISC_OVERLAY_MAIN_EXECUTABLE") or DEFAULT_MAIN_EXECUTABLE,
        ram_base=_parse_int(os.getenv("DISC_OVERLAY_RAM_BASE"), RAM_BASE),
        strict_hooks=_parse_bool(os.getenv("DISC_OVERLAY_STRICT_HOOKS"), False),
        log_level=(os.getenv("DISC_OVERLAY_LOG_LEVEL") or "WARNING").upper(),
    )
