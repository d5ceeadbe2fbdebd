"""Pronoun providers used by the fluent pronoun token."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

logger = logging.getLogger("tfshift.pronouns")


class PronounForm(enum.Enum):
    SUBJECT = "they"
    SUBJECT_ARE = "they are"
    OBJECT = "them"
    POSSESSIVE_ADJECTIVE = "their"
    SUBJECT_HAVE = "they have"
    POSSESSIVE = "theirs"
    REFLEXIVE = "themselves"

    @classmethod
    def from_text(cls, raw: str) -> Optional["PronounForm"]:
        key = " ".join(raw.split()).lower()
        for member in cls:
            if member.value == key:
                return member
        return None


@dataclass(frozen=True)
class PronounProvider:
    family: str
    they: str
    they_are: str
    them: str
    their: str
    they_have: str
    theirs: str
    themselves: str

    def get(self, form: PronounForm) -> str:
        if form is PronounForm.SUBJECT:
            return self.they
        if form is PronounForm.SUBJECT_ARE:
            return self.they_are
        if form is PronounForm.OBJECT:
            return self.them
        if form is PronounForm.POSSESSIVE_ADJECTIVE:
            return self.their
        if form is PronounForm.SUBJECT_HAVE:
            return self.they_have
        if form is PronounForm.POSSESSIVE:
            return self.theirs
        return self.themselves


FEMININE = PronounProvider("Feminine", "she", "she is", "her", "her", "she has", "hers", "herself")
MASCULINE = PronounProvider("Masculine", "he", "he is", "him", "his", "he has", "his", "himself")
NEUTRAL = PronounProvider("Neutral", "they", "they are", "them", "their", "they have", "theirs", "themselves")


class PronounService:
    """Look up pronoun providers by family name, falling back to neutral."""

    def __init__(self, providers: Iterable[PronounProvider] = (FEMININE, MASCULINE, NEUTRAL)) -> None:
        self._providers: Dict[str, PronounProvider] = {}
        for provider in providers:
            self._providers[provider.family.lower()] = provider

    @property
    def families(self) -> Tuple[str, ...]:
        return tuple(provider.family for provider in self._providers.values())

    def get(self, family: Optional[str]) -> PronounProvider:
        if family:
            provider = self._providers.get(family.strip().lower())
            if provider is not None:
                return provider
        logger.warning("Unknown pronoun family %r; using neutral pronouns.", family)
        return NEUTRAL


__all__ = [
    "FEMININE",
    "MASCULINE",
    "NEUTRAL",
    "PronounForm",
    "PronounProvider",
    "PronounService",
]
