"""Replaceable text tokens used in transformation messages.

A token appears in text as ``{@name}`` or ``{@name|data}``. Each token class
registers under one or more names and resolves itself against a
:class:`TokenContext` when a message is rendered.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Tuple, Type

from .bodyparts import Bodypart
from .models import Appearance, AppearanceComponent
from .pronouns import PronounForm, PronounService
from .sandbox import ScriptSandbox
from .utils import capitalize_first

logger = logging.getLogger("tfshift.tokens")


@dataclass
class TokenContext:
    appearance: Appearance
    component: Optional[AppearanceComponent] = None
    pronouns: PronounService = field(default_factory=PronounService)
    sandbox: Optional[ScriptSandbox] = None


class ReplaceableTextToken:
    identifiers: Tuple[str, ...] = ()

    def __init__(self, start: int, length: int, data: Optional[str] = None) -> None:
        self.start = start
        self.length = length
        self.data = data

    @classmethod
    def parse(cls, start: int, length: int, data: Optional[str]) -> "ReplaceableTextToken":
        return cls(start, length, data)

    @property
    def end(self) -> int:
        return self.start + self.length

    def resolve(self, context: TokenContext) -> str:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(start={self.start}, length={self.length}, data={self.data!r})"


class TokenRegistry:
    def __init__(self) -> None:
        self._tokens: Dict[str, Type[ReplaceableTextToken]] = {}

    def register(self, token_type: Type[ReplaceableTextToken]) -> Type[ReplaceableTextToken]:
        if not token_type.identifiers:
            raise ValueError(f"{token_type.__name__} declares no identifiers.")
        for identifier in token_type.identifiers:
            key = identifier.lower()
            if key in self._tokens:
                raise ValueError(
                    f"Token identifier {identifier!r} is already registered to {self._tokens[key].__name__}."
                )
        for identifier in token_type.identifiers:
            self._tokens[identifier.lower()] = token_type
        return token_type

    def get(self, name: str) -> Optional[Type[ReplaceableTextToken]]:
        return self._tokens.get(name.strip().lower())

    def create(
        self, name: str, start: int, length: int, data: Optional[str]
    ) -> Optional[ReplaceableTextToken]:
        token_type = self.get(name)
        if token_type is None:
            return None
        return token_type.parse(start, length, data)

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(sorted(self._tokens))


class TargetToken(ReplaceableTextToken):
    identifiers = ("target",)

    def resolve(self, context: TokenContext) -> str:
        return context.appearance.character.display_name


class ColourToken(ReplaceableTextToken):
    identifiers = ("colour",)

    def __init__(self, start: int, length: int, data: Optional[str] = None) -> None:
        super().__init__(start, length, data)
        self.use_pattern = (data or "").strip().lower() == "pattern"

    def resolve(self, context: TokenContext) -> str:
        component = context.component
        if component is None:
            return ""
        colour = component.pattern_colour if self.use_pattern else component.base_colour
        return str(colour) if colour is not None else ""


class PatternToken(ReplaceableTextToken):
    identifiers = ("pattern",)

    def resolve(self, context: TokenContext) -> str:
        component = context.component
        if component is None or component.pattern is None:
            return ""
        return str(component.pattern)


class SpeciesToken(ReplaceableTextToken):
    identifiers = ("species",)

    def resolve(self, context: TokenContext) -> str:
        if context.component is None:
            return ""
        return context.component.species.name


class PartToken(ReplaceableTextToken):
    identifiers = ("part",)

    def resolve(self, context: TokenContext) -> str:
        if context.component is None:
            return ""
        component = context.component
        bodypart = component.bodypart
        form = (self.data or "").strip().lower()
        if form == "plural":
            return bodypart.plural
        if form == "sided" and bodypart.is_chiral:
            return f"{component.chirality.value} {bodypart.value}"
        return bodypart.value


class SexToken(ReplaceableTextToken):
    identifiers = ("sex",)

    def resolve(self, context: TokenContext) -> str:
        genitals = {
            component.bodypart
            for component in context.appearance.components
            if not component.bodypart.is_gender_neutral
        }
        has_penis = Bodypart.PENIS in genitals
        has_vagina = Bodypart.VAGINA in genitals
        if has_penis and has_vagina:
            return "hermaphrodite"
        if has_penis:
            return "male"
        if has_vagina:
            return "female"
        return "sexless"


class SideToken(ReplaceableTextToken):
    identifiers = ("side",)

    def resolve(self, context: TokenContext) -> str:
        component = context.component
        if component is None or not component.bodypart.is_chiral:
            return ""
        return component.chirality.value


class FluentPronounToken(ReplaceableTextToken):
    """``{@f|they have}`` renders the character's pronoun in the named form."""

    identifiers = ("fluent", "f")

    def __init__(self, start: int, length: int, data: Optional[str] = None) -> None:
        super().__init__(start, length, data)
        raw = (data or "").strip()
        self.form = PronounForm.from_text(raw) if raw else None
        self.capitalize = raw[:1].isupper()

    def resolve(self, context: TokenContext) -> str:
        if self.form is None:
            logger.warning("Unknown pronoun form %r in fluent token.", self.data)
            return self.data or ""
        provider = context.pronouns.get(context.appearance.character.pronoun_family)
        text = provider.get(self.form)
        return capitalize_first(text) if self.capitalize else text


class ScriptToken(ReplaceableTextToken):
    """Runs one of the transformation's named Lua scripts and inserts its result."""

    identifiers = ("script", "sc")

    def resolve(self, context: TokenContext) -> str:
        name = (self.data or "").strip()
        if context.sandbox is None:
            return "[scripting is disabled]"
        component = context.component
        if component is None:
            return f"[no component for script {name}]"
        source = component.transformation.scripts.get(name)
        if source is None:
            return f"[unknown script {name}]"

        result = context.sandbox.execute_script(source, script_variables(context))
        if result.error is not None:
            logger.warning("Script %s for %s failed: %s", name, component.species.name, result.error.message)
            return f"[{result.error.message}]"
        return result.value or ""


def script_variables(context: TokenContext) -> Mapping[str, object]:
    component = context.component
    variables: Dict[str, object] = {
        "character": context.appearance.character.display_name,
        "height": context.appearance.height,
        "weight": context.appearance.weight,
        "muscularity": context.appearance.muscularity,
        "gender_scale": context.appearance.gender_scale,
    }
    if component is not None:
        variables.update(
            {
                "species": component.species.name,
                "part": component.bodypart.value,
                "side": component.chirality.value,
                "colour": str(component.base_colour),
                "pattern": str(component.pattern) if component.pattern is not None else None,
                "pattern_colour": str(component.pattern_colour) if component.pattern_colour is not None else None,
                "size": component.size,
            }
        )
    return variables


DEFAULT_TOKENS: Tuple[Type[ReplaceableTextToken], ...] = (
    TargetToken,
    ColourToken,
    PatternToken,
    SpeciesToken,
    PartToken,
    SexToken,
    SideToken,
    FluentPronounToken,
    ScriptToken,
)


def default_registry(extra: Tuple[Type[ReplaceableTextToken], ...] = ()) -> TokenRegistry:
    registry = TokenRegistry()
    for token_type in DEFAULT_TOKENS + tuple(extra):
        registry.register(token_type)
    return registry


__all__ = [
    "ColourToken",
    "DEFAULT_TOKENS",
    "FluentPronounToken",
    "PartToken",
    "PatternToken",
    "ReplaceableTextToken",
    "ScriptToken",
    "SexToken",
    "SideToken",
    "SpeciesToken",
    "TargetToken",
    "TokenContext",
    "TokenRegistry",
    "default_registry",
    "script_variables",
]
