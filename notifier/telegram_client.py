"""Telegram Bot API client for delivering digests."""
import logging
import time
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

RSVP_CALLBACK_DATA = "rsvp:attend"


class TelegramError(Exception):
    """Raised when the Bot API answers with ok=false."""


def rsvp_keyboard(count: int) -> Dict[str, Any]:
    """Inline keyboard with the attendance button and its current count."""
    return {
        'inline_keyboard': [
            [{'text': f"✋ Asistiré ({count})", 'callback_data': RSVP_CALLBACK_DATA}]
        ]
    }


class TelegramClient:
    """Client for posting agenda messages to a Telegram channel."""

    BASE_URL = "https://api.telegram.org"

    def __init__(self, bot_token: str, chat_id: str, timeout: int = 30):
        """
        Initialize the Telegram client.

        Args:
            bot_token: Bot API token
            chat_id: Channel or chat receiving the digests
            timeout: HTTP request timeout in seconds (default: 30)
        """
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.timeout = timeout

    def send_message(self, text: str, reply_markup: Optional[Dict[str, Any]] = None) -> int:
        """
        Send a Markdown message to the configured chat.

        Args:
            text: Message body
            reply_markup: Optional inline keyboard

        Returns:
            ID of the sent message
        """
        payload = {
            'chat_id': self.chat_id,
            'text': text,
            'parse_mode': 'Markdown'
        }
        if reply_markup:
            payload['reply_markup'] = reply_markup

        result = self._call('sendMessage', payload)
        message_id = result['message_id']
        logger.info(f"Sent message {message_id} to chat {self.chat_id}")
        return message_id

    def edit_reply_markup(self, message_id: int, reply_markup: Dict[str, Any]) -> None:
        self._call('editMessageReplyMarkup', {
            'chat_id': self.chat_id,
            'message_id': message_id,
            'reply_markup': reply_markup
        })

    def _call(self, method: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        POST a Bot API method with retry logic.

        Args:
            method: Bot API method name
            payload: JSON body

        Returns:
            The "result" member of the API response

        Raises:
            requests.RequestException: If all retry attempts fail
            TelegramError: If the API rejects the call
        """
        url = f"{self.BASE_URL}/bot{self.bot_token}/{method}"

        max_retries = 3
        base_delay = 1  # seconds

        for attempt in range(max_retries):
            try:
                response = requests.post(url, json=payload, timeout=self.timeout)
                # 4xx answers carry an error description, 5xx are retried
                if response.status_code >= 500:
                    response.raise_for_status()
                data = response.json()
                break

            except requests.RequestException as e:
                if attempt < max_retries - 1:
                    delay = base_delay * (2 ** attempt)
                    logger.warning(
                        f"{method} failed (attempt {attempt + 1}/{max_retries}): {e}. "
                        f"Retrying in {delay} seconds..."
                    )
                    time.sleep(delay)
                else:
                    logger.error(
                        f"All {max_retries} retry attempts failed for {method}. Last error: {e}"
                    )
                    raise

        if not data.get('ok'):
            description = data.get('description', 'unknown error')
            logger.error(f"Telegram rejected {method}: {description}")
            raise TelegramError(f"{method} failed: {description}")

        return data.get('result', {})
