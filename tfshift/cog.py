"""Discord commands for shifting and describing a member's character."""

from __future__ import annotations

import dataclasses
import logging
from typing import List, Optional, Sequence, Tuple

import discord
from discord.ext import commands

from . import state
from .bodyparts import Bodypart, Chirality
from .colours import Pattern, Shade, ShadeModifier
from .models import AppearanceConfiguration, Character
from .sandbox import SandboxResult
from .service import ServiceResult, TransformationService

logger = logging.getLogger("tfshift.cog")

MESSAGE_LIMIT = 2000


def parse_slot(raw: str) -> Optional[Tuple[Bodypart, Chirality]]:
    """Parse ``arm``, ``left-arm`` or ``left arm`` into a bodypart and side."""
    words = raw.replace("-", " ").replace(":", " ").split()
    if not words:
        return None
    chirality = Chirality.CENTER
    side = Chirality.from_name(words[0])
    if side is not None and side is not Chirality.CENTER and len(words) > 1:
        chirality = side
        words = words[1:]
    bodypart = Bodypart.from_name("".join(words))
    if bodypart is None:
        return None
    return bodypart, chirality


def strip_code_fence(text: str) -> str:
    stripped = text.strip()
    if stripped.startswith("```") and stripped.endswith("```") and len(stripped) >= 6:
        stripped = stripped[3:-3]
        if stripped.startswith("lua\n"):
            stripped = stripped[4:]
    elif stripped.startswith("`") and stripped.endswith("`") and len(stripped) >= 2:
        stripped = stripped[1:-1]
    return stripped.strip()


def chunk_message(text: str, limit: int = MESSAGE_LIMIT) -> List[str]:
    """Split text on paragraph boundaries so every chunk fits in one Discord message."""
    chunks: List[str] = []
    current = ""
    for paragraph in text.split("\n\n"):
        while len(paragraph) > limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(paragraph[:limit])
            paragraph = paragraph[limit:]
        candidate = f"{current}\n\n{paragraph}" if current else paragraph
        if len(candidate) > limit:
            chunks.append(current)
            current = paragraph
        else:
            current = candidate
    if current:
        chunks.append(current)
    return chunks or [""]


def format_sandbox_result(result: SandboxResult) -> str:
    if result.error is not None:
        return f"Script failed ({result.error.kind.value}): {result.error.message}"
    value = result.value or ""
    return value if value.strip() else "(no output)"


def humanize_list(items: Sequence[str]) -> str:
    return ", ".join(items) if items else "none"


def character_for(member: discord.abc.User) -> Character:
    return Character(name=getattr(member, "display_name", None) or member.name)


class ShiftingCog(commands.Cog):
    """Shift, describe and reset characters built from the loaded species."""

    def __init__(self, bot: commands.Bot, *, service: TransformationService):
        self.bot = bot
        self.service = service

    def _configuration(self, ctx: commands.Context, member: Optional[discord.abc.User] = None) -> AppearanceConfiguration:
        target = member or ctx.author
        guild_id = ctx.guild.id if ctx.guild else 0
        return state.get_or_create_configuration(
            guild_id,
            target.id,
            character_for(target),
            self.service.create_configuration,
        )

    async def _reply_long(self, ctx: commands.Context, text: str) -> None:
        for chunk in chunk_message(text):
            await ctx.reply(chunk, mention_author=False)

    async def _run_shift(self, ctx: commands.Context, slot_text: str, action) -> None:
        slot = parse_slot(slot_text)
        if slot is None:
            await ctx.reply(f"I don't know a bodypart called {slot_text!r}.", mention_author=False)
            return
        bodypart, chirality = slot
        guild_id = ctx.guild.id if ctx.guild else 0
        async with state.shift_lock(guild_id, ctx.author.id):
            configuration = self._configuration(ctx)
            result: ServiceResult = await self.service.run_in_worker(action, configuration, bodypart, chirality)
        await self._reply_long(ctx, result.message)

    @commands.group(name="tf", invoke_without_command=True)
    async def tf_group(self, ctx: commands.Context):
        await ctx.reply(
            "Usage: `tf species <part> <species>`, `tf colour <part> <colour>`, "
            "`tf pattern <part> <pattern> <colour>`, `tf pattern-colour <part> <colour>`, "
            "`tf remove <part>`, `tf remove-pattern <part>`, `tf describe`, `tf reset`, `tf save-default`.",
            mention_author=False,
        )

    @tf_group.command(name="species")
    async def species_command(self, ctx: commands.Context, part: str, *, species: str):
        allow_nsfw = bool(getattr(ctx.channel, "is_nsfw", lambda: False)())
        await self._run_shift(
            ctx,
            part,
            lambda configuration, bodypart, chirality: self.service.shift_species(
                configuration, bodypart, species, chirality, allow_nsfw=allow_nsfw
            ),
        )

    @tf_group.command(name="colour", aliases=["color"])
    async def colour_command(self, ctx: commands.Context, part: str, *, colour: str):
        await self._run_shift(
            ctx,
            part,
            lambda configuration, bodypart, chirality: self.service.shift_colour(
                configuration, bodypart, colour, chirality
            ),
        )

    @tf_group.command(name="pattern")
    async def pattern_command(self, ctx: commands.Context, part: str, pattern: str, *, colour: str):
        await self._run_shift(
            ctx,
            part,
            lambda configuration, bodypart, chirality: self.service.shift_pattern(
                configuration, bodypart, pattern, colour, chirality
            ),
        )

    @tf_group.command(name="pattern-colour", aliases=["pattern-color"])
    async def pattern_colour_command(self, ctx: commands.Context, part: str, *, colour: str):
        await self._run_shift(
            ctx,
            part,
            lambda configuration, bodypart, chirality: self.service.shift_pattern_colour(
                configuration, bodypart, colour, chirality
            ),
        )

    @tf_group.command(name="remove")
    async def remove_command(self, ctx: commands.Context, *, part: str):
        await self._run_shift(ctx, part, self.service.remove_bodypart)

    @tf_group.command(name="remove-pattern")
    async def remove_pattern_command(self, ctx: commands.Context, *, part: str):
        await self._run_shift(ctx, part, self.service.remove_pattern)

    @tf_group.command(name="describe")
    async def describe_command(self, ctx: commands.Context, member: Optional[discord.Member] = None):
        target = member or ctx.author
        guild_id = ctx.guild.id if ctx.guild else 0
        async with state.shift_lock(guild_id, target.id):
            configuration = self._configuration(ctx, member)
            description = await self.service.describe_async(configuration)
        await self._reply_long(ctx, description)

    @tf_group.command(name="reset")
    async def reset_command(self, ctx: commands.Context):
        configuration = self._configuration(ctx)
        self.service.reset_form(configuration)
        await ctx.reply("Your form has been reset to its default.", mention_author=False)

    @tf_group.command(name="save-default")
    async def save_default_command(self, ctx: commands.Context):
        configuration = self._configuration(ctx)
        self.service.save_default(configuration)
        await ctx.reply("Your current form is now your default.", mention_author=False)

    @tf_group.command(name="pronouns")
    async def pronouns_command(self, ctx: commands.Context, family: str):
        known = {name.lower(): name for name in self.service.pronouns.families}
        chosen = known.get(family.strip().lower())
        if chosen is None:
            await ctx.reply(
                f"Unknown pronoun family. Choose one of: {humanize_list(sorted(known.values()))}.",
                mention_author=False,
            )
            return
        configuration = self._configuration(ctx)
        configuration.set_character(dataclasses.replace(configuration.character, pronoun_family=chosen))
        await ctx.reply(f"Your character now uses {chosen.lower()} pronouns.", mention_author=False)

    @tf_group.command(name="list-species")
    async def list_species_command(self, ctx: commands.Context):
        names = [species.name for species in self.service.list_species()]
        await self._reply_long(ctx, f"Available species: {humanize_list(names)}")

    @tf_group.command(name="list-bodyparts")
    async def list_bodyparts_command(self, ctx: commands.Context):
        names = [part.value for part in Bodypart]
        await ctx.reply(f"Bodyparts: {humanize_list(names)}", mention_author=False)

    @tf_group.command(name="list-colours", aliases=["list-colors"])
    async def list_colours_command(self, ctx: commands.Context):
        await ctx.reply(
            f"Colours: {humanize_list([str(shade) for shade in Shade])}\n"
            f"Modifiers: {humanize_list([str(modifier) for modifier in ShadeModifier])}",
            mention_author=False,
        )

    @tf_group.command(name="list-patterns")
    async def list_patterns_command(self, ctx: commands.Context):
        await ctx.reply(f"Patterns: {humanize_list([str(pattern) for pattern in Pattern])}", mention_author=False)

    @tf_group.command(name="list-transformations")
    async def list_transformations_command(self, ctx: commands.Context, *, part: str):
        bodypart = Bodypart.from_name(part)
        if bodypart is None:
            await ctx.reply(f"I don't know a bodypart called {part!r}.", mention_author=False)
            return
        names = [tf.species.name for tf in self.service.list_transformations(bodypart)]
        await ctx.reply(f"Transformations for {bodypart.value}: {humanize_list(names)}", mention_author=False)

    @tf_group.command(name="lua")
    async def lua_command(self, ctx: commands.Context, *, snippet: str):
        if self.service.sandbox is None:
            await ctx.reply("Scripting is disabled on this bot.", mention_author=False)
            return
        result = await self.service.run_snippet_async(strip_code_fence(snippet))
        await self._reply_long(ctx, format_sandbox_result(result))


async def add_shifting_cog(bot: commands.Bot, *, service: TransformationService) -> ShiftingCog:
    cog = ShiftingCog(bot, service=service)
    await bot.add_cog(cog)
    logger.info(
        "Shifting commands enabled with %d species loaded",
        len(service.list_species()),
    )
    return cog


__all__ = [
    "ShiftingCog",
    "add_shifting_cog",
    "character_for",
    "chunk_message",
    "format_sandbox_result",
    "humanize_list",
    "parse_slot",
    "strip_code_fence",
]
