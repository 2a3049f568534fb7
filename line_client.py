"""Async client for the parts of the LINE Messaging API the relay uses.

- ``reply_text`` -- send one plain-text reply with a single-use reply token
- ``get_message_content`` -- download the bytes of an image message
- ``get_profile_language`` -- read the language a user set in LINE

Non-2xx answers raise ``LineApiError``; transport errors from httpx
propagate unchanged. Nothing here retries.
"""

from __future__ import annotations

import httpx

from config import logger
from constants import API_TIMEOUTS, IMAGE_LIMITS, LINE_CONSTANTS
from errors import LineApiError
from utils import drain_stream, truncate_text


class LineClient:
    def __init__(
        self,
        channel_access_token: str,
        http_client: httpx.AsyncClient | None = None,
        api_base_url: str = LINE_CONSTANTS.API_BASE_URL,
        data_api_base_url: str = LINE_CONSTANTS.DATA_API_BASE_URL,
    ) -> None:
        self._token = channel_access_token
        self._client = http_client or httpx.AsyncClient(timeout=API_TIMEOUTS.LINE_DEFAULT)
        self._api_base_url = api_base_url.rstrip("/")
        self._data_api_base_url = data_api_base_url.rstrip("/")

    @property
    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._token}"}

    async def reply_text(self, reply_token: str, text: str) -> None:
        """
        Send one plain-text message in reply to an event.

        Args:
            reply_token: Single-use token from the inbound event
            text: Message text; cut to LINE's length limit if longer

        Raises:
            LineApiError: If LINE rejects the reply (e.g. expired or reused token)
        """
        payload = {
            "replyToken": reply_token,
            "messages": [
                {
                    "type": "text",
                    "text": truncate_text(text, LINE_CONSTANTS.MAX_TEXT_LENGTH),
                }
            ],
        }
        response = await self._client.post(
            f"{self._api_base_url}/v2/bot/message/reply",
            json=payload,
            headers=self._auth_headers,
        )
        if response.status_code != 200:
            raise LineApiError(response.status_code, response.text, operation="reply")
        logger.debug(f"Reply sent ({len(payload['messages'][0]['text'])} chars)")

    async def get_message_content(
        self, message_id: str, content_url: str | None = None
    ) -> bytes:
        """
        Download the complete content of a message.

        The response is streamed and every chunk is collected in order.

        Args:
            message_id: ID of the image message
            content_url: External content URL, for images not hosted by LINE

        Returns:
            The raw content bytes

        Raises:
            LineApiError: If the content endpoint answers with an error status
            ContentTooLargeError: If the content exceeds the image size limit
        """
        if content_url:
            url = content_url
            headers: dict[str, str] = {}
        else:
            url = f"{self._data_api_base_url}/v2/bot/message/{message_id}/content"
            headers = self._auth_headers

        max_bytes = IMAGE_LIMITS.MAX_IMAGE_SIZE_MB * 1024 * 1024
        async with self._client.stream(
            "GET", url, headers=headers, timeout=API_TIMEOUTS.LINE_CONTENT_DOWNLOAD
        ) as response:
            if response.status_code != 200:
                body = (await response.aread()).decode("utf-8", errors="replace")
                raise LineApiError(response.status_code, body, operation="content")
            content = await drain_stream(response.aiter_bytes(), max_bytes=max_bytes)

        logger.debug(f"Downloaded content for message {message_id}: {len(content)} bytes")
        return content

    async def get_profile_language(self, user_id: str) -> str | None:
        """
        Return the language from a user's LINE profile.

        The ``language`` field is absent when the user has not consented to
        share it.

        Raises:
            LineApiError: If the profile can't be read (e.g. the user blocked the bot)
        """
        response = await self._client.get(
            f"{self._api_base_url}/v2/bot/profile/{user_id}",
            headers=self._auth_headers,
        )
        if response.status_code != 200:
            raise LineApiError(response.status_code, response.text, operation="profile")
        language = response.json().get("language")
        return language if isinstance(language, str) else None

    async def aclose(self) -> None:
        await self._client.aclose()
