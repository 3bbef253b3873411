"""
File: community_pulse/sources/neynar.py
Farcaster social graph fetcher backed by the Neynar REST API.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from community_pulse.config import HTTP_HEADERS, HTTP_TIMEOUT_SECONDS, NEYNAR_API_BASE
from community_pulse.models import CastRecord, JsonDict, ReplyRecord, UserProfile
from community_pulse.sources.common import clean_text, optional_int, parse_utc_datetime

logger = logging.getLogger(__name__)


class NeynarError(Exception):
    """Non-success response from the social graph API."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def normalize_cast(cast: JsonDict) -> CastRecord:
    author = cast.get("author") or {}
    parent_author = cast.get("parent_author") or {}
    replies = cast.get("replies") or {}
    return CastRecord(
        hash=str(cast["hash"]),
        fid=int(author.get("fid", 0)),
        timestamp=parse_utc_datetime(cast.get("timestamp")),
        text=clean_text(cast.get("text")),
        parent_hash=cast.get("parent_hash") or None,
        parent_fid=optional_int(parent_author.get("fid")),
        reply_count=int(replies.get("count", 0) or 0),
    )


def normalize_reply(reply: JsonDict, parent_hash: str) -> ReplyRecord:
    author = reply.get("author") or {}
    return ReplyRecord(
        hash=str(reply["hash"]),
        parent_hash=parent_hash,
        author_fid=int(author.get("fid", 0)),
        timestamp=parse_utc_datetime(reply.get("timestamp")),
        text=clean_text(reply.get("text")),
    )


class NeynarFetcher:
    """Fetches a user's casts, the direct replies to them, and profiles."""

    def __init__(
        self,
        api_key: str,
        base_url: str = NEYNAR_API_BASE,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            api_key: Neynar API key
            base_url: API root (no trailing slash)
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        headers = {**HTTP_HEADERS, "api_key": self.api_key}
        return httpx.AsyncClient(headers=headers, timeout=self.timeout, transport=self._transport)

    async def _get_json(self, endpoint: str, params: Dict[str, Any]) -> JsonDict:
        url = f"{self.base_url}{endpoint}"
        async with self._client() as client:
            r = await client.get(url, params=params)

        if r.status_code >= 400:
            raise NeynarError(
                f"Neynar API error: {r.status_code} {r.text[:200]}",
                status_code=r.status_code,
            )
        return r.json()

    async def fetch_user_casts(
        self,
        fid: int,
        limit: int = 50,
        cursor: Optional[str] = None,
        include_replies: bool = True,
    ) -> Tuple[List[CastRecord], Optional[str]]:
        """
        Fetch one page of a user's casts, newest first.

        Args:
            fid: Farcaster user id
            limit: Page size
            cursor: Pagination cursor from the previous page
            include_replies: Include the user's own replies to others

        Returns:
            Tuple of (casts, next cursor or None)

        Raises:
            NeynarError: On a non-success response
        """
        params: Dict[str, Any] = {
            "fid": str(fid),
            "limit": str(limit),
            "include_replies": str(include_replies).lower(),
        }
        if cursor:
            params["cursor"] = cursor

        data = await self._get_json("/farcaster/feed/user/casts", params)

        casts: List[CastRecord] = []
        for raw in data.get("casts", []):
            try:
                casts.append(normalize_cast(raw))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed cast for fid %s: %s", fid, e)

        next_cursor = (data.get("next") or {}).get("cursor")
        return casts, next_cursor

    async def fetch_cast_replies(self, cast_hash: str, limit: int = 50) -> List[ReplyRecord]:
        """
        Fetch direct replies to a cast.

        Returns:
            List of replies; empty when the conversation cannot be fetched
        """
        params = {
            "identifier": cast_hash,
            "type": "hash",
            "reply_depth": "1",
            "limit": str(limit),
        }
        try:
            data = await self._get_json("/farcaster/cast/conversation", params)
        except (NeynarError, httpx.HTTPError) as e:
            logger.warning("Error fetching replies for %s: %s", cast_hash, e)
            return []

        conversation_cast = (data.get("conversation") or {}).get("cast") or {}
        replies: List[ReplyRecord] = []
        for raw in conversation_cast.get("direct_replies") or []:
            try:
                replies.append(normalize_reply(raw, cast_hash))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed reply to %s: %s", cast_hash, e)
        return replies

    async def fetch_user_profile(self, fid: int) -> Optional[UserProfile]:
        try:
            data = await self._get_json("/farcaster/user/bulk", {"fids": str(fid)})
        except (NeynarError, httpx.HTTPError) as e:
            logger.warning("Error fetching profile for fid %s: %s", fid, e)
            return None

        users = data.get("users") or []
        if not users:
            return None

        user = users[0]
        return UserProfile(
            fid=int(user.get("fid", fid)),
            username=user.get("username", ""),
            display_name=user.get("display_name", ""),
            pfp_url=user.get("pfp_url", ""),
        )
