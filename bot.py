import logging
import os
from pathlib import Path
from typing import Optional

import discord
from discord.ext import commands
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent

logging.basicConfig(
    level=os.getenv("TFSHIFT_LOG_LEVEL", "INFO"),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("tfshift")

from tfshift.cog import ShiftingCog, add_shifting_cog  # noqa: E402
from tfshift.sandbox import SandboxSettings  # noqa: E402
from tfshift.service import TransformationService  # noqa: E402
from tfshift.utils import path_from_env  # noqa: E402


def _resolve_content_dir() -> Path:
    content_dir = path_from_env("TFSHIFT_CONTENT_DIR") or Path("content")
    if not content_dir.is_absolute():
        content_dir = (BASE_DIR / content_dir).resolve()
    return content_dir


DISCORD_TOKEN = os.getenv("DISCORD_TOKEN")
if not DISCORD_TOKEN:
    raise RuntimeError("Missing DISCORD_TOKEN. Set it in your environment or .env file.")

CONTENT_DIR = _resolve_content_dir()
MESSAGES_FILE = path_from_env("TFSHIFT_MESSAGES_FILE")

intents = discord.Intents.default()
intents.message_content = True
intents.members = True


class TFShiftBot(commands.Bot):
    async def setup_hook(self) -> None:
        await setup_bot_extensions()


bot = TFShiftBot(command_prefix=os.getenv("TFSHIFT_PREFIX", "!"), intents=intents)
SHIFTING_COG: Optional[ShiftingCog] = None


async def setup_bot_extensions() -> None:
    global SHIFTING_COG
    service = TransformationService.from_paths(
        CONTENT_DIR,
        messages_file=MESSAGES_FILE,
        sandbox_settings=SandboxSettings.from_env(),
    )
    SHIFTING_COG = await add_shifting_cog(bot, service=service)


@bot.event
async def on_ready():
    logger.info("Logged in as %s (id=%s)", bot.user, bot.user.id if bot.user else "unknown")


def main():
    bot.run(DISCORD_TOKEN)


if __name__ == "__main__":
    main()
