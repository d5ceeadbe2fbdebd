"""Render transformation messages and character descriptions from templates."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Set

from .bodyparts import Bodypart
from .messages import TransformationText
from .models import Appearance, AppearanceComponent, ComponentKey
from .pronouns import PronounService
from .sandbox import ScriptSandbox
from .tokenizer import TransformationTextTokenizer, UnknownToken
from .tokens import TokenContext

logger = logging.getLogger("tfshift.description")

SENTENCE_SPACING = re.compile(r"(?<=\w)\.(?=\w)")

COMPONENTS_PER_PARAGRAPH = 3


@dataclass
class RenderResult:
    text: str
    unknown_tokens: List[UnknownToken] = field(default_factory=list)


class TransformationDescriptionBuilder:
    def __init__(
        self,
        text: TransformationText,
        tokenizer: Optional[TransformationTextTokenizer] = None,
        pronouns: Optional[PronounService] = None,
        sandbox: Optional[ScriptSandbox] = None,
    ) -> None:
        self.text = text
        self.tokenizer = tokenizer or TransformationTextTokenizer()
        self.pronouns = pronouns or PronounService()
        self.sandbox = sandbox

    def render(
        self,
        template: str,
        appearance: Appearance,
        component: Optional[AppearanceComponent] = None,
    ) -> RenderResult:
        """Substitute every known token; unknown tokens are left as written and reported."""
        tokenized = self.tokenizer.tokenize(template)
        if tokenized.unknown_tokens:
            logger.warning(
                "Unknown tokens in template: %s",
                ", ".join(token.name for token in tokenized.unknown_tokens),
            )
        if not tokenized.tokens:
            return RenderResult(template, tokenized.unknown_tokens)

        context = TokenContext(
            appearance=appearance,
            component=component,
            pronouns=self.pronouns,
            sandbox=self.sandbox,
        )
        pieces: List[str] = []
        cursor = 0
        for token in sorted(tokenized.tokens, key=lambda item: item.start):
            pieces.append(template[cursor:token.start])
            pieces.append(token.resolve(context))
            cursor = token.end
        pieces.append(template[cursor:])
        return RenderResult("".join(pieces), tokenized.unknown_tokens)

    def replace_tokens_with_content(
        self,
        template: str,
        appearance: Appearance,
        component: Optional[AppearanceComponent] = None,
    ) -> str:
        return self.render(template, appearance, component).text

    def build_shift_message(self, appearance: Appearance, component: AppearanceComponent) -> str:
        return self.replace_tokens_with_content(component.transformation.shift_message, appearance, component)

    def build_uniform_shift_message(self, appearance: Appearance, component: AppearanceComponent) -> str:
        template = component.transformation.uniform_shift_message
        if template is None:
            raise ValueError(f"{_describe(component)} has no uniform shift message.")
        return self.replace_tokens_with_content(template, appearance, component)

    def build_grow_message(self, appearance: Appearance, component: AppearanceComponent) -> str:
        return self.replace_tokens_with_content(component.transformation.grow_message, appearance, component)

    def build_uniform_grow_message(self, appearance: Appearance, component: AppearanceComponent) -> str:
        template = component.transformation.uniform_grow_message
        if template is None:
            raise ValueError(f"{_describe(component)} has no uniform grow message.")
        return self.replace_tokens_with_content(template, appearance, component)

    def build_remove_message(self, appearance: Appearance, component: AppearanceComponent) -> str:
        template = self.text.single_removal(component.bodypart)
        return self.replace_tokens_with_content(template, appearance, component)

    def build_uniform_remove_message(self, appearance: Appearance, component: AppearanceComponent) -> str:
        template = self.text.uniform_removal(component.bodypart)
        return self.replace_tokens_with_content(template, appearance, component)

    def build_colour_shift_message(self, appearance: Appearance, component: AppearanceComponent) -> str:
        return self._from_pack("messages.shifting.single.colour", appearance, component)

    def build_uniform_colour_shift_message(self, appearance: Appearance, component: AppearanceComponent) -> str:
        return self._from_pack("messages.shifting.uniform.colour", appearance, component)

    def build_pattern_shift_message(self, appearance: Appearance, component: AppearanceComponent) -> str:
        return self._from_pack("messages.shifting.single.pattern", appearance, component)

    def build_uniform_pattern_shift_message(self, appearance: Appearance, component: AppearanceComponent) -> str:
        return self._from_pack("messages.shifting.uniform.pattern", appearance, component)

    def build_pattern_colour_shift_message(self, appearance: Appearance, component: AppearanceComponent) -> str:
        return self._from_pack("messages.shifting.single.pattern_colour", appearance, component)

    def build_uniform_pattern_colour_shift_message(
        self, appearance: Appearance, component: AppearanceComponent
    ) -> str:
        return self._from_pack("messages.shifting.uniform.pattern_colour", appearance, component)

    def build_pattern_add_message(self, appearance: Appearance, component: AppearanceComponent) -> str:
        return self._from_pack("messages.adding.single.pattern", appearance, component)

    def build_uniform_pattern_add_message(self, appearance: Appearance, component: AppearanceComponent) -> str:
        return self._from_pack("messages.adding.uniform.pattern", appearance, component)

    def build_pattern_remove_message(self, appearance: Appearance, component: AppearanceComponent) -> str:
        return self._from_pack("messages.removal.single.pattern", appearance, component)

    def build_uniform_pattern_remove_message(self, appearance: Appearance, component: AppearanceComponent) -> str:
        return self._from_pack("messages.removal.uniform.pattern", appearance, component)

    def build_visual_description(self, appearance: Appearance) -> str:
        """Describe the whole appearance, highest-priority parts first.

        Matching left/right parts are described once with the uniform text.
        """
        body = appearance.try_get_appearance_component(Bodypart.BODY)
        intro = self.replace_tokens_with_content(self.text.pick("descriptions.sex_species"), appearance, body)
        paragraphs: List[str] = [intro.strip()]

        ordered = sorted(appearance.components, key=lambda item: item.bodypart.description_priority, reverse=True)
        skip_species: Set[ComponentKey] = set()
        skip_pattern: Set[ComponentKey] = set()
        current: List[str] = []

        for index, component in enumerate(ordered, start=1):
            parts: List[str] = []
            transformation = component.transformation
            if component.bodypart.is_chiral:
                opposite = appearance.try_get_appearance_component(
                    component.bodypart, component.chirality.opposite()
                )
                if component.key not in skip_species:
                    same_species = opposite is not None and opposite.species.name == component.species.name
                    if same_species and transformation.uniform_description:
                        parts.append(transformation.uniform_description)
                        skip_species.add(opposite.key)
                    else:
                        parts.append(transformation.single_description)
                if component.pattern is not None and component.key not in skip_pattern:
                    if _same_pattern(component, opposite):
                        parts.append(self.text.pick("descriptions.uniform.pattern"))
                        skip_pattern.add(opposite.key)
                    else:
                        parts.append(self.text.pick("descriptions.single.pattern"))
            else:
                parts.append(transformation.single_description)
                if component.pattern is not None:
                    parts.append(self.text.pick("descriptions.single.pattern"))

            rendered = self.replace_tokens_with_content("".join(parts), appearance, component).strip()
            if rendered:
                current.append(rendered)
            if index % COMPONENTS_PER_PARAGRAPH == 0 and current:
                paragraphs.append(" ".join(current))
                current = []

        if current:
            paragraphs.append(" ".join(current))

        description = "\n\n".join(paragraph for paragraph in paragraphs if paragraph).strip()
        return SENTENCE_SPACING.sub(". ", description)

    def _from_pack(self, key: str, appearance: Appearance, component: AppearanceComponent) -> str:
        return self.replace_tokens_with_content(self.text.pick(key), appearance, component)


def _same_pattern(component: AppearanceComponent, other: Optional[AppearanceComponent]) -> bool:
    if other is None:
        return False
    return component.pattern == other.pattern and component.pattern_colour == other.pattern_colour


def _describe(component: AppearanceComponent) -> str:
    return f"The {component.species.name} {component.bodypart.value} transformation"


__all__ = [
    "RenderResult",
    "SENTENCE_SPACING",
    "TransformationDescriptionBuilder",
]
