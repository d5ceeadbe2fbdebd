"""Find ``{@name|data}`` tokens in transformation text."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

from .tokens import ReplaceableTextToken, TokenRegistry, default_registry

logger = logging.getLogger("tfshift.tokenizer")

TOKEN_PATTERN = re.compile(r"\{@([^{}]*)\}")


@dataclass(frozen=True)
class UnknownToken:
    name: str
    start: int
    length: int
    data: Optional[str] = None


@dataclass
class TokenizedText:
    tokens: List[ReplaceableTextToken] = field(default_factory=list)
    unknown_tokens: List[UnknownToken] = field(default_factory=list)


def split_token_body(body: str):
    """Split ``name|data`` on the last pipe. Data is None when there is no pipe."""
    if "|" not in body:
        return body.strip(), None
    name, data = body.rsplit("|", 1)
    return name.strip(), data


class TransformationTextTokenizer:
    def __init__(self, registry: Optional[TokenRegistry] = None) -> None:
        self.registry = registry or default_registry()

    def tokenize(self, text: str) -> TokenizedText:
        result = TokenizedText()
        for match in TOKEN_PATTERN.finditer(text):
            start, end = match.span()
            name, data = split_token_body(match.group(1))
            token = self.registry.create(name, start, end - start, data)
            if token is None:
                logger.debug("Unknown token %r at %s", name, start)
                result.unknown_tokens.append(UnknownToken(name, start, end - start, data))
                continue
            result.tokens.append(token)
        return result

    def get_tokens(self, text: str) -> List[ReplaceableTextToken]:
        return self.tokenize(text).tokens


__all__ = [
    "TOKEN_PATTERN",
    "TokenizedText",
    "TransformationTextTokenizer",
    "UnknownToken",
    "split_token_body",
]
