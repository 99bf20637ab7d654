"""Telegram transport: application setup, command routing, and polling.

Built on python-telegram-bot. ``run_polling`` installs SIGINT/SIGTERM
handlers and shuts the application down cleanly when one arrives.
"""

from __future__ import annotations

import logging
import signal
from pathlib import Path

from telegram import BotCommand, Message, Update
from telegram.ext import Application, CommandHandler, ContextTypes

from .generator import LatexGenerator
from .handler import ReportHandler, usage_text
from .models import BotConfig
from .tools.workspace import ensure_scratch_dir

logger = logging.getLogger(__name__)


class TelegramReplier:
    """Adapts a ``telegram.Message`` to the handler's ``ChatReplier``."""

    def __init__(self, message: Message) -> None:
        self._message = message

    async def reply_text(self, text: str) -> None:
        await self._message.reply_text(text)

    async def reply_document(self, path: Path, filename: str) -> None:
        await self._message.reply_document(document=Path(path), filename=filename)


def build_application(config: BotConfig, handler: ReportHandler) -> Application:
    """Create the Telegram application and register command handlers."""
    application = (
        Application.builder()
        .token(config.telegram_token)
        .concurrent_updates(config.concurrent_updates)
        .build()
    )

    async def report_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        message = update.effective_message
        if message is None:
            return
        user = update.effective_user
        logger.info("/%s from user %s", config.command, user.id if user else "?")
        await handler.handle(message.text or "", TelegramReplier(message))

    async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        if update.effective_message is not None:
            await update.effective_message.reply_text(usage_text(config.command))

    application.add_handler(CommandHandler(config.command, report_command))
    application.add_handler(CommandHandler(["start", "help"], help_command))

    async def post_init(app: Application) -> None:
        await app.bot.set_my_commands([
            BotCommand(config.command, "Generate a LaTeX report: title, newline, description"),
            BotCommand("help", "Show usage"),
        ])
        bot_info = await app.bot.get_me()
        logger.info("Bot started as @%s", bot_info.username)

    application.post_init = post_init
    return application


def run_bot(config: BotConfig) -> None:
    """Start long polling and block until SIGINT/SIGTERM."""
    scratch = ensure_scratch_dir(config.scratch_dir)
    generator = LatexGenerator(config.llm, config.retry)
    handler = ReportHandler(config, generator, scratch_dir=scratch)
    application = build_application(config, handler)

    logger.info("Scratch directory: %s", scratch.resolve())
    application.run_polling(
        allowed_updates=Update.ALL_TYPES,
        drop_pending_updates=config.drop_pending_updates,
        stop_signals=(signal.SIGINT, signal.SIGTERM),
    )
    logger.info("Bot stopped")
