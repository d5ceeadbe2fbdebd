"""Bodypart and chirality tags shared by the appearance model and the shifters."""

from __future__ import annotations

import enum
from typing import Dict, List, Optional, Tuple


class Chirality(enum.Enum):
    LEFT = "left"
    RIGHT = "right"
    CENTER = "center"

    def opposite(self) -> "Chirality":
        if self is Chirality.LEFT:
            return Chirality.RIGHT
        if self is Chirality.RIGHT:
            return Chirality.LEFT
        return Chirality.CENTER

    @classmethod
    def from_name(cls, raw: Optional[str]) -> Optional["Chirality"]:
        if raw is None:
            return None
        key = raw.strip().lower()
        for member in cls:
            if member.value == key:
                return member
        return None


class Bodypart(enum.Enum):
    HAIR = "hair"
    FACE = "face"
    EAR = "ear"
    EYE = "eye"
    TEETH = "teeth"
    ARM = "arm"
    LEG = "leg"
    TAIL = "tail"
    WING = "wing"
    BODY = "body"
    PENIS = "penis"
    VAGINA = "vagina"
    HEAD = "head"
    EARS = "ears"
    EYES = "eyes"
    ARMS = "arms"
    LEGS = "legs"
    WINGS = "wings"
    FULL = "full"

    @classmethod
    def from_name(cls, raw: Optional[str]) -> Optional["Bodypart"]:
        if raw is None:
            return None
        key = raw.strip().lower().replace(" ", "").replace("_", "")
        for member in cls:
            if member.value == key:
                return member
        return None

    @property
    def is_chiral(self) -> bool:
        return self in _CHIRAL_PARTS

    @property
    def is_composite(self) -> bool:
        return self in _COMPOSITES

    @property
    def is_gender_neutral(self) -> bool:
        return self not in (Bodypart.PENIS, Bodypart.VAGINA)

    @property
    def description_priority(self) -> int:
        return _DESCRIPTION_PRIORITY.get(self, 0)

    @property
    def plural(self) -> str:
        return _PLURALS.get(self, self.value + "s")

    def get_composing_parts(self) -> List["Bodypart"]:
        """Expand a composite recursively into its assignable parts, in table order."""
        if not self.is_composite:
            raise ValueError(f"{self.value} is not a composite bodypart.")
        parts: List[Bodypart] = []
        for member in _COMPOSITES[self]:
            if member.is_composite:
                for nested in member.get_composing_parts():
                    if nested not in parts:
                        parts.append(nested)
            elif member not in parts:
                parts.append(member)
        return parts

    def is_composing_part(self) -> bool:
        return any(self in composite.get_composing_parts() for composite in _COMPOSITES)

    def chiralities(self) -> Tuple[Chirality, ...]:
        """Sides on which a component for this part may exist."""
        if self.is_chiral:
            return (Chirality.LEFT, Chirality.RIGHT)
        return (Chirality.CENTER,)


_CHIRAL_PARTS = frozenset(
    {Bodypart.EAR, Bodypart.EYE, Bodypart.ARM, Bodypart.LEG, Bodypart.WING}
)

_COMPOSITES: Dict[Bodypart, Tuple[Bodypart, ...]] = {
    Bodypart.HEAD: (Bodypart.HAIR, Bodypart.FACE, Bodypart.EAR, Bodypart.EYE, Bodypart.TEETH),
    Bodypart.EARS: (Bodypart.EAR,),
    Bodypart.EYES: (Bodypart.EYE,),
    Bodypart.ARMS: (Bodypart.ARM,),
    Bodypart.LEGS: (Bodypart.LEG,),
    Bodypart.WINGS: (Bodypart.WING,),
    Bodypart.FULL: (
        Bodypart.HEAD,
        Bodypart.BODY,
        Bodypart.ARMS,
        Bodypart.LEGS,
        Bodypart.TAIL,
        Bodypart.WINGS,
    ),
}

# Higher values are described first.
_DESCRIPTION_PRIORITY: Dict[Bodypart, int] = {
    Bodypart.BODY: 12,
    Bodypart.FACE: 11,
    Bodypart.HAIR: 10,
    Bodypart.EYE: 9,
    Bodypart.EAR: 8,
    Bodypart.TEETH: 7,
    Bodypart.ARM: 6,
    Bodypart.LEG: 5,
    Bodypart.WING: 4,
    Bodypart.TAIL: 3,
    Bodypart.PENIS: 2,
    Bodypart.VAGINA: 1,
}

_PLURALS: Dict[Bodypart, str] = {
    Bodypart.HAIR: "hair",
    Bodypart.TEETH: "teeth",
    Bodypart.BODY: "bodies",
    Bodypart.EARS: "ears",
    Bodypart.EYES: "eyes",
    Bodypart.ARMS: "arms",
    Bodypart.LEGS: "legs",
    Bodypart.WINGS: "wings",
    Bodypart.PENIS: "penises",
}


def require_valid_chirality(bodypart: Bodypart, chirality: Chirality) -> None:
    """Raise ValueError when the side does not fit the part."""
    if bodypart.is_composite:
        if chirality is not Chirality.CENTER:
            raise ValueError(f"Composite bodypart {bodypart.value} cannot have a side.")
        return
    if bodypart.is_chiral and chirality is Chirality.CENTER:
        raise ValueError(f"Chiral bodypart {bodypart.value} requires a left or right side.")
    if not bodypart.is_chiral and chirality is not Chirality.CENTER:
        raise ValueError(f"Bodypart {bodypart.value} has no sides.")


__all__ = [
    "Bodypart",
    "Chirality",
    "require_valid_chirality",
]
