"""Utility helpers for TFShift."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional

logger = logging.getLogger("tfshift.utils")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid integer for %s=%s. Falling back to %s.", name, raw, default)
        return default


def bool_from_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    logger.warning("Invalid boolean for %s=%s. Falling back to %s.", name, raw, default)
    return default


def path_from_env(name: str) -> Optional[Path]:
    value = os.getenv(name, "").strip()
    if not value:
        return None
    return Path(value).expanduser()


def capitalize_first(text: str) -> str:
    if not text:
        return text
    return text[0].upper() + text[1:]


def join_paragraphs(messages: Iterable[str], paragraph_length: int = 240) -> str:
    """Join sentences with spaces, starting a new paragraph once one grows past the limit."""
    output: List[str] = []
    current = ""
    for message in messages:
        message = message.strip()
        if not message:
            continue
        if current and len(current) > paragraph_length:
            output.append(current)
            current = ""
        current = f"{current} {message}" if current else message
    if current:
        output.append(current)
    return "\n\n".join(output)


__all__ = [
    "bool_from_env",
    "capitalize_first",
    "int_from_env",
    "join_paragraphs",
    "path_from_env",
]
