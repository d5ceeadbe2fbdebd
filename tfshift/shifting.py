"""Apply shift operations to an appearance and narrate what changed.

Every operation works on one non-composite slot at a time. Composite parts
such as ``head`` or ``legs`` fan out to their composing parts; chiral parts
are handled left then right, and a matching pair is narrated with a single
uniform message.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple, Union

from .bodyparts import Bodypart, Chirality, require_valid_chirality
from .colours import Colour, Pattern
from .description import TransformationDescriptionBuilder
from .models import TEMPLATE_SPECIES, Appearance, AppearanceComponent, Species, Transformation
from .utils import join_paragraphs

logger = logging.getLogger("tfshift.shifting")

TransformationLookup = Callable[[Bodypart, Species], Optional[Transformation]]


class ShiftBodypartAction(enum.Enum):
    NOTHING = "nothing"
    ADD = "add"
    GROW = "grow"
    SHIFT = "shift"
    REMOVE = "remove"


@dataclass(frozen=True)
class ShiftBodypartResult:
    message: str
    action: ShiftBodypartAction

    @property
    def changed(self) -> bool:
        return self.action is not ShiftBodypartAction.NOTHING


@dataclass(frozen=True)
class SpeciesShift:
    species: Species


@dataclass(frozen=True)
class ColourShift:
    colour: Colour


@dataclass(frozen=True)
class PatternShift:
    pattern: Pattern
    colour: Colour


@dataclass(frozen=True)
class PatternColourShift:
    colour: Colour


@dataclass(frozen=True)
class BodypartRemoval:
    pass


@dataclass(frozen=True)
class PatternRemoval:
    pass


ShiftOperation = Union[SpeciesShift, ColourShift, PatternShift, PatternColourShift, BodypartRemoval, PatternRemoval]

# (result, component the message was built from)
_PartOutcome = Tuple[ShiftBodypartResult, Optional[AppearanceComponent]]


def _nothing(message: str) -> _PartOutcome:
    return ShiftBodypartResult(message, ShiftBodypartAction.NOTHING), None


def _slot_label(bodypart: Bodypart, chirality: Chirality) -> str:
    if bodypart.is_chiral:
        return f"{chirality.value} {bodypart.value}"
    return bodypart.value


class AppearanceShifter:
    def __init__(
        self,
        appearance: Appearance,
        builder: TransformationDescriptionBuilder,
        transformations: Optional[TransformationLookup] = None,
    ) -> None:
        self.appearance = appearance
        self.builder = builder
        self.transformations = transformations

    @property
    def _name(self) -> str:
        return self.appearance.character.display_name

    def shift(
        self,
        operation: ShiftOperation,
        bodypart: Bodypart,
        chirality: Chirality = Chirality.CENTER,
    ) -> ShiftBodypartResult:
        require_valid_chirality(bodypart, chirality)
        if bodypart.is_composite:
            return self._shift_composite(operation, bodypart)
        result, _ = apply_operation(self, operation, bodypart, chirality)
        logger.debug(
            "%s on %s's %s: %s",
            type(operation).__name__,
            self._name,
            _slot_label(bodypart, chirality),
            result.action.value,
        )
        return result

    def _shift_composite(self, operation: ShiftOperation, bodypart: Bodypart) -> ShiftBodypartResult:
        messages: List[str] = []
        actions: List[ShiftBodypartAction] = []

        for part in bodypart.get_composing_parts():
            if not part.is_chiral:
                result, _ = apply_operation(self, operation, part, Chirality.CENTER)
                if result.changed:
                    messages.append(result.message)
                    actions.append(result.action)
                continue

            left_before = self.appearance.try_get_appearance_component(part, Chirality.LEFT)
            right_before = self.appearance.try_get_appearance_component(part, Chirality.RIGHT)
            uniform_before = left_before is not None and left_before.is_uniform_with(right_before)

            left, left_component = apply_operation(self, operation, part, Chirality.LEFT)
            right, right_component = apply_operation(self, operation, part, Chirality.RIGHT)

            if left.changed and left.action is right.action and left_component is not None:
                if left.action is ShiftBodypartAction.REMOVE:
                    uniform = uniform_before
                else:
                    uniform = left_component.is_uniform_with(right_component)
                if uniform:
                    messages.append(self._uniform_message(operation, left.action, left_component))
                    actions.append(left.action)
                    continue

            for side in (left, right):
                if side.changed:
                    messages.append(side.message)
                    actions.append(side.action)

        if not messages:
            return ShiftBodypartResult(self._composite_no_change(operation, bodypart), ShiftBodypartAction.NOTHING)

        action = actions[0] if all(item is actions[0] for item in actions) else ShiftBodypartAction.SHIFT
        return ShiftBodypartResult(join_paragraphs(messages), action)

    def _uniform_message(
        self,
        operation: ShiftOperation,
        action: ShiftBodypartAction,
        component: AppearanceComponent,
    ) -> str:
        appearance = self.appearance
        if isinstance(operation, SpeciesShift):
            if action is ShiftBodypartAction.GROW:
                return self.builder.build_uniform_grow_message(appearance, component)
            return self.builder.build_uniform_shift_message(appearance, component)
        if isinstance(operation, ColourShift):
            return self.builder.build_uniform_colour_shift_message(appearance, component)
        if isinstance(operation, PatternShift):
            if action is ShiftBodypartAction.ADD:
                return self.builder.build_uniform_pattern_add_message(appearance, component)
            return self.builder.build_uniform_pattern_shift_message(appearance, component)
        if isinstance(operation, PatternColourShift):
            return self.builder.build_uniform_pattern_colour_shift_message(appearance, component)
        if isinstance(operation, BodypartRemoval):
            return self.builder.build_uniform_remove_message(appearance, component)
        if isinstance(operation, PatternRemoval):
            return self.builder.build_uniform_pattern_remove_message(appearance, component)
        raise TypeError(f"Unsupported shift operation {operation!r}.")

    def _composite_no_change(self, operation: ShiftOperation, bodypart: Bodypart) -> str:
        if isinstance(operation, SpeciesShift):
            if bodypart is Bodypart.FULL:
                return f"{self._name} is already a {operation.species.name}."
            return f"{self._name}'s {bodypart.value} is already a {operation.species.name}'s."
        return f"Nothing happens to {self._name}'s {bodypart.value}."

    # Single-slot steps. Each returns the result and the component its message describes.

    def shift_species(self, species: Species, bodypart: Bodypart, chirality: Chirality) -> _PartOutcome:
        label = _slot_label(bodypart, chirality)
        transformation = self._find_transformation(bodypart, species)
        if transformation is None:
            return _nothing(f"There is no {species.name} {bodypart.value} to shift {self._name}'s {label} into.")

        component = self.appearance.try_get_appearance_component(bodypart, chirality)
        if component is None:
            component = AppearanceComponent.create_from(transformation, chirality)
            self.appearance.add_component(component)
            message = self.builder.build_grow_message(self.appearance, component)
            return ShiftBodypartResult(message, ShiftBodypartAction.GROW), component

        if component.species.is_same_species_as(species):
            return _nothing(f"{self._name}'s {label} is already a {species.name}'s.")

        was_template = component.species.name == TEMPLATE_SPECIES
        component.transformation = transformation
        if was_template:
            component.reset_to_defaults()
        message = self.builder.build_shift_message(self.appearance, component)
        return ShiftBodypartResult(message, ShiftBodypartAction.SHIFT), component

    def shift_colour(self, colour: Colour, bodypart: Bodypart, chirality: Chirality) -> _PartOutcome:
        label = _slot_label(bodypart, chirality)
        component = self.appearance.try_get_appearance_component(bodypart, chirality)
        if component is None:
            return _nothing(f"{self._name} doesn't have a {label}.")
        if component.base_colour == colour:
            return _nothing(f"{self._name}'s {label} is already {colour}.")

        component.base_colour = colour
        message = self.builder.build_colour_shift_message(self.appearance, component)
        return ShiftBodypartResult(message, ShiftBodypartAction.SHIFT), component

    def shift_pattern(
        self, pattern: Pattern, colour: Colour, bodypart: Bodypart, chirality: Chirality
    ) -> _PartOutcome:
        label = _slot_label(bodypart, chirality)
        component = self.appearance.try_get_appearance_component(bodypart, chirality)
        if component is None:
            return _nothing(f"{self._name} doesn't have a {label}.")
        if component.pattern == pattern:
            return _nothing(f"{self._name}'s {label} already has a {pattern} pattern.")

        had_pattern = component.pattern is not None
        component.pattern = pattern
        component.pattern_colour = colour
        if not had_pattern:
            message = self.builder.build_pattern_add_message(self.appearance, component)
            return ShiftBodypartResult(message, ShiftBodypartAction.ADD), component
        message = self.builder.build_pattern_shift_message(self.appearance, component)
        return ShiftBodypartResult(message, ShiftBodypartAction.SHIFT), component

    def shift_pattern_colour(self, colour: Colour, bodypart: Bodypart, chirality: Chirality) -> _PartOutcome:
        label = _slot_label(bodypart, chirality)
        component = self.appearance.try_get_appearance_component(bodypart, chirality)
        if component is None:
            return _nothing(f"{self._name} doesn't have a {label}.")
        if component.pattern is None:
            return _nothing(f"{self._name}'s {label} doesn't have a pattern.")
        if component.pattern_colour == colour:
            return _nothing(f"The pattern on {self._name}'s {label} is already {colour}.")

        component.pattern_colour = colour
        message = self.builder.build_pattern_colour_shift_message(self.appearance, component)
        return ShiftBodypartResult(message, ShiftBodypartAction.SHIFT), component

    def remove_bodypart(self, bodypart: Bodypart, chirality: Chirality) -> _PartOutcome:
        component = self.appearance.remove_component(bodypart, chirality)
        if component is None:
            return _nothing(f"{self._name} doesn't have a {_slot_label(bodypart, chirality)}.")
        message = self.builder.build_remove_message(self.appearance, component)
        return ShiftBodypartResult(message, ShiftBodypartAction.REMOVE), component

    def remove_pattern(self, bodypart: Bodypart, chirality: Chirality) -> _PartOutcome:
        label = _slot_label(bodypart, chirality)
        component = self.appearance.try_get_appearance_component(bodypart, chirality)
        if component is None:
            return _nothing(f"{self._name} doesn't have a {label}.")
        if component.pattern is None:
            return _nothing(f"{self._name}'s {label} doesn't have a pattern.")

        # Build the message first so the pattern tokens still resolve.
        message = self.builder.build_pattern_remove_message(self.appearance, component)
        component.pattern = None
        component.pattern_colour = None
        return ShiftBodypartResult(message, ShiftBodypartAction.REMOVE), component

    def _find_transformation(self, bodypart: Bodypart, species: Species) -> Optional[Transformation]:
        if self.transformations is None:
            raise ValueError("Species shifts need a transformation lookup.")
        return self.transformations(bodypart, species)


def apply_operation(
    shifter: AppearanceShifter,
    operation: ShiftOperation,
    bodypart: Bodypart,
    chirality: Chirality,
) -> _PartOutcome:
    """Run one operation against one non-composite slot."""
    if isinstance(operation, SpeciesShift):
        return shifter.shift_species(operation.species, bodypart, chirality)
    if isinstance(operation, ColourShift):
        return shifter.shift_colour(operation.colour, bodypart, chirality)
    if isinstance(operation, PatternShift):
        return shifter.shift_pattern(operation.pattern, operation.colour, bodypart, chirality)
    if isinstance(operation, PatternColourShift):
        return shifter.shift_pattern_colour(operation.colour, bodypart, chirality)
    if isinstance(operation, BodypartRemoval):
        return shifter.remove_bodypart(bodypart, chirality)
    if isinstance(operation, PatternRemoval):
        return shifter.remove_pattern(bodypart, chirality)
    raise TypeError(f"Unsupported shift operation {operation!r}.")


__all__ = [
    "AppearanceShifter",
    "BodypartRemoval",
    "ColourShift",
    "PatternColourShift",
    "PatternRemoval",
    "PatternShift",
    "ShiftBodypartAction",
    "ShiftBodypartResult",
    "ShiftOperation",
    "SpeciesShift",
    "TransformationLookup",
    "apply_operation",
]
