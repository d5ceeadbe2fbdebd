"""In-memory appearance state for characters, keyed by guild and user."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Dict, Optional

from .models import AppearanceConfiguration, Character, StateKey

logger = logging.getLogger("tfshift.state")

appearance_configurations: Dict[StateKey, AppearanceConfiguration] = {}
shift_locks: Dict[StateKey, asyncio.Lock] = {}


def state_key(guild_id: int, user_id: int) -> StateKey:
    return (guild_id, user_id)


def find_configuration(guild_id: int, user_id: int) -> Optional[AppearanceConfiguration]:
    return appearance_configurations.get(state_key(guild_id, user_id))


def get_or_create_configuration(
    guild_id: int,
    user_id: int,
    character: Character,
    factory: Callable[[Character], AppearanceConfiguration],
) -> AppearanceConfiguration:
    key = state_key(guild_id, user_id)
    configuration = appearance_configurations.get(key)
    if configuration is None:
        configuration = factory(character)
        appearance_configurations[key] = configuration
        logger.info("Created appearance for %s in guild %s", character.name, guild_id)
    return configuration


def forget_configuration(guild_id: int, user_id: int) -> bool:
    key = state_key(guild_id, user_id)
    shift_locks.pop(key, None)
    return appearance_configurations.pop(key, None) is not None


def shift_lock(guild_id: int, user_id: int) -> asyncio.Lock:
    key = state_key(guild_id, user_id)
    lock = shift_locks.get(key)
    if lock is None:
        lock = asyncio.Lock()
        shift_locks[key] = lock
    return lock


def clear_state() -> None:
    appearance_configurations.clear()
    shift_locks.clear()


__all__ = [
    "appearance_configurations",
    "clear_state",
    "find_configuration",
    "forget_configuration",
    "get_or_create_configuration",
    "shift_lock",
    "state_key",
]
