"""Entry point used by the bot layer to shift and describe characters."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from .bodyparts import Bodypart, Chirality
from .colours import Colour, Pattern
from .content import TransformationCatalogue, load_catalogue
from .description import TransformationDescriptionBuilder
from .messages import TransformationText
from .models import AppearanceConfiguration, Character, Species, Transformation
from .pronouns import PronounService
from .sandbox import SandboxResult, SandboxSettings, ScriptSandbox
from .shifting import (
    AppearanceShifter,
    BodypartRemoval,
    ColourShift,
    PatternColourShift,
    PatternRemoval,
    PatternShift,
    ShiftBodypartAction,
    ShiftBodypartResult,
    ShiftOperation,
    SpeciesShift,
    TransformationLookup,
)

logger = logging.getLogger("tfshift.service")


@dataclass(frozen=True)
class ServiceResult:
    """Outcome of a service call. ``shift`` is set whenever the shifter ran."""

    success: bool
    message: str
    shift: Optional[ShiftBodypartResult] = None

    @classmethod
    def failure(cls, message: str) -> "ServiceResult":
        return cls(False, message)

    @classmethod
    def from_shift(cls, result: ShiftBodypartResult) -> "ServiceResult":
        return cls(True, result.message, result)

    @property
    def action(self) -> ShiftBodypartAction:
        return self.shift.action if self.shift is not None else ShiftBodypartAction.NOTHING


class TransformationService:
    def __init__(
        self,
        catalogue: TransformationCatalogue,
        text: TransformationText,
        sandbox: Optional[ScriptSandbox] = None,
        pronouns: Optional[PronounService] = None,
    ) -> None:
        self.catalogue = catalogue
        self.sandbox = sandbox
        self.pronouns = pronouns or PronounService()
        self.builder = TransformationDescriptionBuilder(text, pronouns=self.pronouns, sandbox=sandbox)

    @classmethod
    def from_paths(
        cls,
        content_dir: Path,
        messages_file: Optional[Path] = None,
        sandbox_settings: Optional[SandboxSettings] = None,
        rng: Optional[random.Random] = None,
    ) -> "TransformationService":
        catalogue = load_catalogue(content_dir)
        text = TransformationText.load(messages_file, rng=rng)
        return cls(catalogue, text, sandbox=ScriptSandbox(sandbox_settings))

    def create_configuration(self, character: Character) -> AppearanceConfiguration:
        return AppearanceConfiguration.create(character, self.catalogue.template())

    def list_species(self) -> List[Species]:
        return self.catalogue.species

    def list_transformations(self, bodypart: Bodypart) -> List[Transformation]:
        return self.catalogue.transformations_for_part(bodypart)

    def shift_species(
        self,
        configuration: AppearanceConfiguration,
        bodypart: Bodypart,
        species_name: str,
        chirality: Chirality = Chirality.CENTER,
        allow_nsfw: bool = True,
    ) -> ServiceResult:
        species = self.catalogue.get_species(species_name)
        if species is None:
            return ServiceResult.failure(f"There is no species called {species_name}.")

        if not bodypart.is_composite:
            transformation = self.catalogue.get_transformation(bodypart, species)
            if transformation is None:
                return ServiceResult.failure(f"There is no {species.name} {bodypart.value} transformation.")
            if transformation.is_nsfw and not allow_nsfw:
                return ServiceResult.failure("That transformation can only be used in NSFW channels.")

        def lookup(part: Bodypart, target: Species) -> Optional[Transformation]:
            found = self.catalogue.get_transformation(part, target)
            if found is not None and found.is_nsfw and not allow_nsfw:
                return None
            return found

        return self._shift(configuration, SpeciesShift(species), bodypart, chirality, lookup)

    def shift_colour(
        self,
        configuration: AppearanceConfiguration,
        bodypart: Bodypart,
        colour_text: str,
        chirality: Chirality = Chirality.CENTER,
    ) -> ServiceResult:
        colour = Colour.parse(colour_text)
        if colour is None:
            return ServiceResult.failure(f"I don't know the colour {colour_text!r}.")
        return self._shift(configuration, ColourShift(colour), bodypart, chirality)

    def shift_pattern(
        self,
        configuration: AppearanceConfiguration,
        bodypart: Bodypart,
        pattern_text: str,
        colour_text: str,
        chirality: Chirality = Chirality.CENTER,
    ) -> ServiceResult:
        pattern = Pattern.from_name(pattern_text)
        if pattern is None:
            return ServiceResult.failure(f"I don't know the pattern {pattern_text!r}.")
        colour = Colour.parse(colour_text)
        if colour is None:
            return ServiceResult.failure(f"I don't know the colour {colour_text!r}.")
        return self._shift(configuration, PatternShift(pattern, colour), bodypart, chirality)

    def shift_pattern_colour(
        self,
        configuration: AppearanceConfiguration,
        bodypart: Bodypart,
        colour_text: str,
        chirality: Chirality = Chirality.CENTER,
    ) -> ServiceResult:
        colour = Colour.parse(colour_text)
        if colour is None:
            return ServiceResult.failure(f"I don't know the colour {colour_text!r}.")
        return self._shift(configuration, PatternColourShift(colour), bodypart, chirality)

    def remove_bodypart(
        self,
        configuration: AppearanceConfiguration,
        bodypart: Bodypart,
        chirality: Chirality = Chirality.CENTER,
    ) -> ServiceResult:
        return self._shift(configuration, BodypartRemoval(), bodypart, chirality)

    def remove_pattern(
        self,
        configuration: AppearanceConfiguration,
        bodypart: Bodypart,
        chirality: Chirality = Chirality.CENTER,
    ) -> ServiceResult:
        return self._shift(configuration, PatternRemoval(), bodypart, chirality)

    def describe(self, configuration: AppearanceConfiguration) -> str:
        return self.builder.build_visual_description(configuration.current_appearance)

    async def describe_async(self, configuration: AppearanceConfiguration) -> str:
        return await asyncio.to_thread(self.describe, configuration)

    async def run_in_worker(self, call: Callable[..., ServiceResult], *args, **kwargs) -> ServiceResult:
        """Run a shifting call off the event loop.

        Rendering may execute content scripts, which can take up to the full
        sandbox instruction budget.
        """
        return await asyncio.to_thread(call, *args, **kwargs)

    def reset_form(self, configuration: AppearanceConfiguration) -> None:
        configuration.reset_current()
        logger.info("Reset %s to their default form", configuration.character.name)

    def save_default(self, configuration: AppearanceConfiguration) -> None:
        configuration.set_current_as_default()
        logger.info("Saved %s's current form as the default", configuration.character.name)

    def run_snippet(self, snippet: str) -> SandboxResult:
        if self.sandbox is None:
            raise RuntimeError("Scripting is not configured for this service.")
        return self.sandbox.execute_snippet(snippet)

    async def run_snippet_async(self, snippet: str) -> SandboxResult:
        if self.sandbox is None:
            raise RuntimeError("Scripting is not configured for this service.")
        return await self.sandbox.execute_snippet_async(snippet)

    def _shift(
        self,
        configuration: AppearanceConfiguration,
        operation: ShiftOperation,
        bodypart: Bodypart,
        chirality: Chirality,
        lookup: Optional[TransformationLookup] = None,
    ) -> ServiceResult:
        if bodypart.is_chiral and chirality is Chirality.CENTER:
            return ServiceResult.failure("Please specify left or right when shifting one-sided bodyparts.")
        if not bodypart.is_chiral and chirality is not Chirality.CENTER:
            return ServiceResult.failure(f"The {bodypart.value} doesn't have a left or right side.")

        shifter = AppearanceShifter(
            configuration.current_appearance,
            self.builder,
            transformations=lookup or self.catalogue.get_transformation,
        )
        result = shifter.shift(operation, bodypart, chirality)
        logger.info(
            "%s: %s on %s -> %s",
            configuration.character.name,
            type(operation).__name__,
            bodypart.value,
            result.action.value,
        )
        return ServiceResult.from_shift(result)


__all__ = [
    "ServiceResult",
    "TransformationService",
]
