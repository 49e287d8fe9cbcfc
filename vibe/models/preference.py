"""Preference-related data models."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

LTR = "ltr"
RTL = "rtl"


@dataclass(frozen=True)
class NamedPath:
    """A named filesystem entry (display name + path)."""
    name: str
    path: str


@dataclass
class Preference:
    """Durable user-configurable settings projection."""
    model_path: Optional[str] = None
    model_options: Dict[str, Any] = field(default_factory=lambda: {"lang": "en"})
    display_language: str = "en-US"
    text_area_direction: str = LTR
    log_to_file: bool = False


@dataclass(frozen=True)
class DerivedSettings:
    """Fields recomputed from a preference after every mutation.

    ``lang`` is None when the display language has no engine language code;
    callers keep the previous ``model_options['lang']`` in that case.
    """
    lang: Optional[str]
    text_area_direction: str
