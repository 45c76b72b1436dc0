import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.types import BotCommand, BotCommandScopeDefault

from quizbot import config
from quizbot.handlers import setup_routers
from quizbot.services.generator import build_generator
from quizbot.services.registry import SessionRegistry


async def on_startup(bot: Bot) -> None:
    await bot.set_my_commands(
        [
            BotCommand(command="start", description="🧠 Start a new quiz"),
            BotCommand(command="help", description="How the quiz works"),
        ],
        scope=BotCommandScopeDefault(),
    )
    logging.info("Command menu updated")


async def main() -> None:
    logging.basicConfig(level=config.log_level)

    if not config.bot_token:
        raise RuntimeError(f"Bot token is not set for ENV={config.ENV}")

    bot = Bot(token=config.bot_token)
    dp = Dispatcher(registry=SessionRegistry(build_generator(), config.max_sessions))
    dp.startup.register(on_startup)
    dp.include_router(setup_routers())

    logging.info(f"Starting quiz bot (ENV={config.ENV}, source={config.quiz_source})")
    await dp.start_polling(bot)


if __name__ == "__main__":
    asyncio.run(main())
