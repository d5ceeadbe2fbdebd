"""Shared builders for TFShift tests."""

from __future__ import annotations

import random
from typing import Dict, Mapping, Optional

from tfshift.bodyparts import Bodypart
from tfshift.colours import Colour, Pattern
from tfshift.description import TransformationDescriptionBuilder
from tfshift.messages import REQUIRED_KEYS, TransformationText
from tfshift.models import Appearance, AppearanceConfiguration, Character, Species, Transformation
from tfshift.sandbox import ScriptSandbox


def make_species(name: str, parent: Optional[Species] = None) -> Species:
    return Species(name=name, description=f"The {name}.", author="tests", parent=parent)


def make_transformation(
    part: Bodypart,
    species: Species,
    colour: str = "grey",
    pattern: Optional[Pattern] = None,
    pattern_colour: Optional[str] = None,
    scripts: Optional[Mapping[str, str]] = None,
    is_nsfw: bool = False,
    single_description: Optional[str] = None,
) -> Transformation:
    uniform: Dict[str, str] = {}
    if part.is_chiral:
        uniform = {
            "uniform_shift_message": "[uniform shift] {@target} {@species} {@part|plural}",
            "uniform_grow_message": "[uniform grow] {@target} {@species} {@part|plural}",
            "uniform_description": "[uniform description] {@species} {@part|plural}.",
        }
    return Transformation(
        part=part,
        species=species,
        description=f"A {species.name} {part.value}.",
        default_base_colour=Colour.parse(colour),
        shift_message="[shift] {@target} {@species} {@part|sided}",
        grow_message="[grow] {@target} {@species} {@part|sided}",
        single_description=single_description or "[description] {@species} {@part|sided}.",
        default_pattern=pattern,
        default_pattern_colour=Colour.parse(pattern_colour) if pattern_colour else None,
        is_nsfw=is_nsfw,
        scripts=dict(scripts or {}),
        **uniform,
    )


def make_text(seed: int = 0) -> TransformationText:
    """A message pack with one line per key, tagged with the key it came from."""
    lines = {key: (f"[{key}] {{@target}} {{@part|sided}}",) for key in REQUIRED_KEYS}
    return TransformationText(lines, rng=random.Random(seed))


def make_builder(sandbox: Optional[ScriptSandbox] = None) -> TransformationDescriptionBuilder:
    return TransformationDescriptionBuilder(make_text(), sandbox=sandbox)


class ContentSet:
    """Template, shark and wolf transformations covering every assignable part."""

    def __init__(self) -> None:
        self.template = make_species("template")
        self.shark = make_species("shark")
        self.wolf = make_species("wolf")
        self.transformations: Dict[tuple, Transformation] = {}
        for part in (
            Bodypart.HAIR,
            Bodypart.FACE,
            Bodypart.EAR,
            Bodypart.EYE,
            Bodypart.TEETH,
            Bodypart.ARM,
            Bodypart.LEG,
            Bodypart.BODY,
        ):
            self._add(make_transformation(part, self.template, colour="cream"))
        for part in (Bodypart.FACE, Bodypart.TEETH, Bodypart.ARM, Bodypart.LEG, Bodypart.TAIL, Bodypart.BODY):
            self._add(make_transformation(part, self.shark, colour="grey"))
        for part in (Bodypart.EAR, Bodypart.EYE, Bodypart.TAIL):
            self._add(make_transformation(part, self.wolf, colour="brown"))

    def _add(self, transformation: Transformation) -> None:
        self.transformations[(transformation.part, transformation.species.name)] = transformation

    def lookup(self, part: Bodypart, species: Species) -> Optional[Transformation]:
        return self.transformations.get((part, species.name))

    def template_parts(self) -> Dict[Bodypart, Transformation]:
        return {part: tf for (part, name), tf in self.transformations.items() if name == "template"}

    def appearance(self, name: str = "Amby", pronouns: str = "Feminine") -> Appearance:
        return Appearance.create_default(Character(name=name, pronoun_family=pronouns), self.template_parts())

    def configuration(self, name: str = "Amby") -> AppearanceConfiguration:
        return self.configuration_for(Character(name=name))

    def configuration_for(self, character: Character) -> AppearanceConfiguration:
        return AppearanceConfiguration.create(character, self.template_parts())
