"""Shared narrative lines used when shifting and describing characters."""

from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import Dict, Mapping, Optional, Sequence, Tuple

import yaml

from .bodyparts import Bodypart

logger = logging.getLogger("tfshift.messages")

DEFAULT_MESSAGES_PATH = Path(__file__).resolve().parent / "data" / "messages.yml"

SINGLE_REMOVAL_PARTS: Tuple[Bodypart, ...] = (
    Bodypart.HAIR,
    Bodypart.FACE,
    Bodypart.EAR,
    Bodypart.EYE,
    Bodypart.TEETH,
    Bodypart.LEG,
    Bodypart.ARM,
    Bodypart.TAIL,
    Bodypart.WING,
    Bodypart.PENIS,
    Bodypart.VAGINA,
    Bodypart.HEAD,
    Bodypart.BODY,
)

UNIFORM_REMOVAL_PARTS: Dict[Bodypart, str] = {
    Bodypart.LEG: "legs",
    Bodypart.ARM: "arms",
    Bodypart.WING: "wings",
    Bodypart.EAR: "ears",
    Bodypart.EYE: "eyes",
}

REQUIRED_KEYS: Tuple[str, ...] = (
    "descriptions.sex_species",
    "descriptions.single.pattern",
    "descriptions.uniform.pattern",
    "messages.adding.single.pattern",
    "messages.adding.uniform.pattern",
    "messages.removal.single.pattern",
    "messages.removal.uniform.pattern",
    "messages.shifting.single.colour",
    "messages.shifting.single.pattern",
    "messages.shifting.single.pattern_colour",
    "messages.shifting.uniform.colour",
    "messages.shifting.uniform.pattern",
    "messages.shifting.uniform.pattern_colour",
) + tuple(f"messages.removal.single.{part.value}" for part in SINGLE_REMOVAL_PARTS) + tuple(
    f"messages.removal.uniform.{name}" for name in UNIFORM_REMOVAL_PARTS.values()
)


class MessagePackError(ValueError):
    """Raised when a message pack is missing lines or malformed."""


class TransformationText:
    """A message pack: named lists of template lines, one picked at random per use."""

    def __init__(self, lines: Mapping[str, Sequence[str]], rng: Optional[random.Random] = None) -> None:
        missing = [key for key in REQUIRED_KEYS if not lines.get(key)]
        if missing:
            raise MessagePackError(f"Message pack is missing lines for: {', '.join(missing)}")
        self._lines: Dict[str, Tuple[str, ...]] = {key: tuple(value) for key, value in lines.items()}
        self.rng = rng or random.Random()

    @classmethod
    def from_mapping(cls, data: Mapping[str, object], rng: Optional[random.Random] = None) -> "TransformationText":
        lines: Dict[str, Tuple[str, ...]] = {}
        _flatten(data, "", lines)
        return cls(lines, rng=rng)

    @classmethod
    def load(cls, path: Optional[Path] = None, rng: Optional[random.Random] = None) -> "TransformationText":
        path = path or DEFAULT_MESSAGES_PATH
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise MessagePackError(f"{path}: invalid YAML ({exc})") from exc
        if not isinstance(data, Mapping):
            raise MessagePackError(f"{path}: expected a mapping at the top level.")
        pack = cls.from_mapping(data, rng=rng)
        logger.info("Loaded message pack %s (%d line groups)", path, len(pack._lines))
        return pack

    def lines(self, key: str) -> Tuple[str, ...]:
        try:
            return self._lines[key]
        except KeyError:
            raise KeyError(f"No message lines for {key!r}.") from None

    def pick(self, key: str) -> str:
        return self.rng.choice(self.lines(key))

    def single_removal(self, bodypart: Bodypart) -> str:
        if bodypart not in SINGLE_REMOVAL_PARTS:
            raise ValueError(f"No removal lines for {bodypart.value}.")
        return self.pick(f"messages.removal.single.{bodypart.value}")

    def uniform_removal(self, bodypart: Bodypart) -> str:
        name = UNIFORM_REMOVAL_PARTS.get(bodypart)
        if name is None:
            raise ValueError(f"No uniform removal lines for {bodypart.value}.")
        return self.pick(f"messages.removal.uniform.{name}")


def _flatten(node: object, prefix: str, output: Dict[str, Tuple[str, ...]]) -> None:
    if isinstance(node, Mapping):
        for key, value in node.items():
            _flatten(value, f"{prefix}.{key}" if prefix else str(key), output)
        return
    if isinstance(node, str):
        output[prefix] = (node,)
        return
    if isinstance(node, (list, tuple)) and all(isinstance(item, str) for item in node):
        output[prefix] = tuple(node)
        return
    raise MessagePackError(f"Message lines for {prefix!r} must be a string or a list of strings.")


__all__ = [
    "DEFAULT_MESSAGES_PATH",
    "MessagePackError",
    "REQUIRED_KEYS",
    "TransformationText",
    "UNIFORM_REMOVAL_PARTS",
]
