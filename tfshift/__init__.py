"""TFShift package providing the appearance model, shifters, templating and the Lua sandbox."""

from . import bodyparts, colours, content, description, models, sandbox, service, shifting, state, utils  # noqa: F401

__all__ = [
    "bodyparts",
    "colours",
    "content",
    "description",
    "models",
    "sandbox",
    "service",
    "shifting",
    "state",
    "utils",
]
