"""Colour and pattern vocabulary used by appearance components."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional


def _enum_key(raw: str) -> str:
    return raw.replace("_", "").replace(" ", "").replace("-", "").lower()


def _humanize(name: str) -> str:
    return name.replace("_", " ").lower()


class Shade(enum.Enum):
    BLACK = "black"
    WHITE = "white"
    GREY = "grey"
    RED = "red"
    CRIMSON = "crimson"
    ORANGE = "orange"
    AMBER = "amber"
    YELLOW = "yellow"
    GOLD = "gold"
    GREEN = "green"
    TEAL = "teal"
    CYAN = "cyan"
    SKY_BLUE = "sky blue"
    BLUE = "blue"
    NAVY = "navy"
    PURPLE = "purple"
    VIOLET = "violet"
    MAGENTA = "magenta"
    PINK = "pink"
    BROWN = "brown"
    TAN = "tan"
    CREAM = "cream"
    SILVER = "silver"
    BRONZE = "bronze"

    @classmethod
    def from_name(cls, raw: str) -> Optional["Shade"]:
        key = _enum_key(raw)
        for member in cls:
            if _enum_key(member.name) == key:
                return member
        return None

    def __str__(self) -> str:
        return _humanize(self.name)


class ShadeModifier(enum.Enum):
    FLUORESCENT = "fluorescent"
    BRIGHT = "bright"
    LIGHT = "light"
    PALE = "pale"
    PASTEL = "pastel"
    DARK = "dark"
    DEEP = "deep"
    DULL = "dull"
    METALLIC = "metallic"
    IRIDESCENT = "iridescent"

    @classmethod
    def from_name(cls, raw: str) -> Optional["ShadeModifier"]:
        key = _enum_key(raw)
        for member in cls:
            if _enum_key(member.name) == key:
                return member
        return None

    def __str__(self) -> str:
        return _humanize(self.name)


class Pattern(enum.Enum):
    STRIPED = "striped"
    SPOTTED = "spotted"
    SWIRLY = "swirly"
    FRECKLED = "freckled"
    MOTTLED = "mottled"
    BANDED = "banded"
    DAPPLED = "dappled"
    SCALED = "scaled"
    TIGER_STRIPED = "tiger striped"
    ZEBRA_STRIPED = "zebra striped"
    LEOPARD_SPOTTED = "leopard spotted"
    CHECKERED = "checkered"

    @classmethod
    def from_name(cls, raw: Optional[str]) -> Optional["Pattern"]:
        if raw is None:
            return None
        key = _enum_key(raw)
        for member in cls:
            if _enum_key(member.name) == key:
                return member
        return None

    def __str__(self) -> str:
        return _humanize(self.name)


@dataclass(frozen=True)
class Colour:
    """A shade with an optional modifier, e.g. ``fluorescent white``."""

    shade: Shade
    modifier: Optional[ShadeModifier] = None

    @classmethod
    def parse(cls, text: Optional[str]) -> Optional["Colour"]:
        """Parse free text into a colour. Returns None when nothing matches."""
        if text is None:
            return None
        parts = text.split()
        if not parts:
            return None

        modifier: Optional[ShadeModifier] = None
        if len(parts) > 1:
            modifier = ShadeModifier.from_name(parts[0])
            if modifier is not None:
                parts = parts[1:]

        shade = Shade.from_name("".join(parts))
        if shade is None:
            return None
        return cls(shade=shade, modifier=modifier)

    def is_same_colour_as(self, other: Optional["Colour"]) -> bool:
        return other is not None and self == other

    def __str__(self) -> str:
        if self.modifier is None:
            return str(self.shade)
        return f"{self.modifier} {self.shade}"


__all__ = [
    "Colour",
    "Pattern",
    "Shade",
    "ShadeModifier",
]
