"""Dataclasses and shared type definitions for TFShift."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Mapping, Optional, Tuple

from .bodyparts import Bodypart, Chirality, require_valid_chirality
from .colours import Colour, Pattern


ComponentKey = Tuple[Bodypart, Chirality]
StateKey = Tuple[int, int]

TEMPLATE_SPECIES = "template"


class ComponentNotFoundError(LookupError):
    """Raised when an appearance has no component in the requested slot."""


@dataclass(frozen=True)
class Species:
    name: str
    description: str = ""
    author: str = ""
    parent: Optional["Species"] = None

    @property
    def depth(self) -> int:
        depth = 0
        parent = self.parent
        while parent is not None:
            depth += 1
            parent = parent.parent
        return depth

    def is_same_species_as(self, other: Optional["Species"]) -> bool:
        return other is not None and self.name == other.name


@dataclass(frozen=True)
class Transformation:
    part: Bodypart
    species: Species
    description: str
    default_base_colour: Colour
    shift_message: str
    grow_message: str
    single_description: str
    default_pattern: Optional[Pattern] = None
    default_pattern_colour: Optional[Colour] = None
    is_nsfw: bool = False
    uniform_shift_message: Optional[str] = None
    uniform_grow_message: Optional[str] = None
    uniform_description: Optional[str] = None
    scripts: Mapping[str, str] = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True)
class Character:
    name: str
    nickname: Optional[str] = None
    pronoun_family: str = "Neutral"

    @property
    def display_name(self) -> str:
        if self.nickname and self.nickname.strip():
            return self.nickname.strip()
        return self.name


@dataclass
class AppearanceComponent:
    transformation: Transformation
    chirality: Chirality
    base_colour: Colour
    pattern: Optional[Pattern] = None
    pattern_colour: Optional[Colour] = None
    size: int = 1

    def __post_init__(self) -> None:
        require_valid_chirality(self.transformation.part, self.chirality)

    @classmethod
    def create_from(
        cls, transformation: Transformation, chirality: Chirality = Chirality.CENTER
    ) -> "AppearanceComponent":
        return cls(
            transformation=transformation,
            chirality=chirality,
            base_colour=transformation.default_base_colour,
            pattern=transformation.default_pattern,
            pattern_colour=transformation.default_pattern_colour,
        )

    @property
    def bodypart(self) -> Bodypart:
        return self.transformation.part

    @property
    def species(self) -> Species:
        return self.transformation.species

    @property
    def key(self) -> ComponentKey:
        return (self.bodypart, self.chirality)

    def copy(self) -> "AppearanceComponent":
        return replace(self)

    def reset_to_defaults(self) -> None:
        self.base_colour = self.transformation.default_base_colour
        self.pattern = self.transformation.default_pattern
        self.pattern_colour = self.transformation.default_pattern_colour

    def is_uniform_with(self, other: Optional["AppearanceComponent"]) -> bool:
        """Exact match of species, base colour, pattern and pattern colour."""
        if other is None:
            return False
        return (
            self.species.name == other.species.name
            and self.base_colour == other.base_colour
            and self.pattern == other.pattern
            and self.pattern_colour == other.pattern_colour
        )


@dataclass
class Appearance:
    character: Character
    height: float = 1.8
    weight: float = 80.0
    gender_scale: float = 0.0
    muscularity: float = 0.5
    _components: Dict[ComponentKey, AppearanceComponent] = field(default_factory=dict, repr=False)

    @classmethod
    def create_default(
        cls,
        character: Character,
        template: Mapping[Bodypart, Transformation],
    ) -> "Appearance":
        """Build a baseline appearance from the template species' transformations."""
        appearance = cls(character=character)
        for composite in (Bodypart.HEAD, Bodypart.BODY, Bodypart.ARMS, Bodypart.LEGS):
            parts = composite.get_composing_parts() if composite.is_composite else [composite]
            for part in parts:
                transformation = template.get(part)
                if transformation is None:
                    continue
                for chirality in part.chiralities():
                    appearance.add_component(AppearanceComponent.create_from(transformation, chirality))
        return appearance

    @property
    def components(self) -> Tuple[AppearanceComponent, ...]:
        return tuple(self._components.values())

    def has_component(self, bodypart: Bodypart, chirality: Chirality = Chirality.CENTER) -> bool:
        self._check_slot(bodypart, chirality)
        return (bodypart, chirality) in self._components

    def try_get_appearance_component(
        self, bodypart: Bodypart, chirality: Chirality = Chirality.CENTER
    ) -> Optional[AppearanceComponent]:
        self._check_slot(bodypart, chirality)
        return self._components.get((bodypart, chirality))

    def get_appearance_component(
        self, bodypart: Bodypart, chirality: Chirality = Chirality.CENTER
    ) -> AppearanceComponent:
        component = self.try_get_appearance_component(bodypart, chirality)
        if component is None:
            raise ComponentNotFoundError(
                f"{self.character.name} has no {chirality.value} {bodypart.value}."
            )
        return component

    def add_component(self, component: AppearanceComponent) -> None:
        if component.key in self._components:
            bodypart, chirality = component.key
            raise ValueError(f"Slot {chirality.value} {bodypart.value} is already occupied.")
        self._components[component.key] = component

    def remove_component(
        self, bodypart: Bodypart, chirality: Chirality = Chirality.CENTER
    ) -> Optional[AppearanceComponent]:
        self._check_slot(bodypart, chirality)
        return self._components.pop((bodypart, chirality), None)

    def copy(self) -> "Appearance":
        duplicate = Appearance(
            character=self.character,
            height=self.height,
            weight=self.weight,
            gender_scale=self.gender_scale,
            muscularity=self.muscularity,
        )
        for component in self._components.values():
            duplicate.add_component(component.copy())
        return duplicate

    @staticmethod
    def _check_slot(bodypart: Bodypart, chirality: Chirality) -> None:
        if bodypart.is_composite:
            raise ValueError(f"Composite bodypart {bodypart.value} has no component of its own.")
        require_valid_chirality(bodypart, chirality)


@dataclass
class AppearanceConfiguration:
    character: Character
    default_appearance: Appearance
    current_appearance: Appearance

    @classmethod
    def create(
        cls,
        character: Character,
        template: Mapping[Bodypart, Transformation],
    ) -> "AppearanceConfiguration":
        default = Appearance.create_default(character, template)
        return cls(character=character, default_appearance=default, current_appearance=default.copy())

    def set_character(self, character: Character) -> None:
        self.character = character
        self.default_appearance.character = character
        self.current_appearance.character = character

    def reset_current(self) -> None:
        self.current_appearance = self.default_appearance.copy()

    def set_current_as_default(self) -> None:
        self.default_appearance = self.current_appearance.copy()


__all__ = [
    "Appearance",
    "AppearanceComponent",
    "AppearanceConfiguration",
    "Character",
    "ComponentKey",
    "ComponentNotFoundError",
    "Species",
    "StateKey",
    "TEMPLATE_SPECIES",
    "Transformation",
]
