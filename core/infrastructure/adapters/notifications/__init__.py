"""Notification channel adapters (email, Telegram).

Import concrete senders from their modules; the aiohttp and aiosmtplib
backed ones are only needed when the channel is enabled.
"""

__all__ = []
