"""
Discord Webhook通知を行うユーティリティ。

統合処理の結果(成功/失敗/件数)をDiscordへ送信する用途で使用する。
通知失敗は処理全体の失敗とはみなさず、警告ログのみ出力する。
"""

from __future__ import annotations

import logging
from typing import Optional

import requests
from requests import RequestException

logger = logging.getLogger(__name__)

MESSAGE_LIMIT = 1900


def send_discord_message(webhook_url: Optional[str], message: str, timeout: float = 15) -> bool:
    """
    Discord Webhookへメッセージを送信する。

    webhook_urlが空の場合は何もせず終了する。
    本文は Discord の文字数制限に収まるよう切り詰める。

    Args:
        webhook_url: Discord Webhook URL。
        message: 送信する本文。
        timeout: requests.post に渡すタイムアウト秒。

    Returns:
        送信に成功した場合 True。
    """
    if not webhook_url:
        return False

    payload = {"content": message[:MESSAGE_LIMIT]}

    try:
        response = requests.post(webhook_url, json=payload, timeout=timeout)
        response.raise_for_status()
    except RequestException as exc:
        logger.warning("Failed to send Discord notification: %s", exc)
        return False
    return True
