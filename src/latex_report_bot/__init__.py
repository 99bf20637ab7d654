"""Telegram bot that turns a title and description into a LaTeX report and PDF."""

__version__ = "0.1.0"
