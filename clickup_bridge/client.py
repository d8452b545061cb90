"""Async client for the ClickUp REST API (v2)."""

import asyncio
import logging
from typing import Callable, Optional

import httpx

from . import config
from .credentials import Credential, current_credential
from .errors import ResultTooLargeError, UpstreamError

logger = logging.getLogger(__name__)

TOO_LARGE_SUGGESTIONS = [
    "Pass a folder_filter so lists are searched inside one folder instead of the whole space",
    "Pass a more specific list_filter or space_name",
    "Use list_folders(space_id='...') to pick a folder ID and query it directly",
]


class ClickUpClient:
    """
    Thin async wrapper over the ClickUp API.

    One instance serves one request; use it as an async context manager.
    Every non-2xx reply raises UpstreamError with the upstream status and body.
    """

    def __init__(
        self,
        credential_provider: Callable[[], Optional[Credential]] = current_credential,
        base_url: str = "",
        timeout: float = 0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self._credential_provider = credential_provider
        self._base_url = (base_url or config.CLICKUP_API_URL).rstrip("/")
        self._timeout = timeout or config.HTTP_TIMEOUT
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        kwargs = {"base_url": self._base_url, "timeout": self._timeout}
        if self._transport is not None:
            kwargs["transport"] = self._transport
        self._client = httpx.AsyncClient(**kwargs)
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self._client.aclose()
        self._client = None

    def _headers(self) -> dict:
        credential = self._credential_provider()
        if not credential:
            raise UpstreamError(
                401,
                {"err": "Not authenticated"},
                "No ClickUp credential available",
                "Set CLICKUP_API_TOKEN or complete the OAuth flow"
            )
        return {
            "Authorization": credential.authorization_header,
            "Content-Type": "application/json"
        }

    async def _request(self, method: str, path: str, **kwargs):
        if self._client is None:
            raise RuntimeError("ClickUpClient must be used as an async context manager")

        try:
            response = await self._client.request(method, path, headers=self._headers(), **kwargs)
        except httpx.TimeoutException:
            logger.error(f"❌ ClickUp {method} {path} timed out")
            raise UpstreamError(
                504,
                {"err": "timeout"},
                "Request timed out",
                "The ClickUp API is not responding. Check CLICKUP_API_URL and network connection"
            )
        except httpx.HTTPError as e:
            logger.error(f"❌ ClickUp {method} {path} failed: {e}")
            raise UpstreamError(502, {"err": str(e)}, f"Could not reach the ClickUp API: {e}")

        try:
            body = response.json()
        except ValueError:
            body = {"raw": response.text}

        if response.status_code == 413:
            logger.error(f"❌ ClickUp {method} {path}: result set too large")
            raise ResultTooLargeError(body, TOO_LARGE_SUGGESTIONS)
        if response.status_code not in [200, 201]:
            logger.error(f"❌ ClickUp {method} {path}: HTTP {response.status_code} - {response.text}")
            raise UpstreamError(response.status_code, body)

        return body

    async def get_teams(self) -> list[dict]:
        data = await self._request("GET", "/team")
        return data.get("teams", [])

    async def get_spaces(self, team_id: str) -> list[dict]:
        data = await self._request("GET", f"/team/{team_id}/space", params={"archived": "false"})
        return data.get("spaces", [])

    async def get_folders(self, space_id: str) -> list[dict]:
        data = await self._request("GET", f"/space/{space_id}/folder", params={"archived": "false"})
        return data.get("folders", [])

    async def get_lists(self, folder_id: str) -> list[dict]:
        data = await self._request("GET", f"/folder/{folder_id}/list", params={"archived": "false"})
        return data.get("lists", [])

    async def get_folderless_lists(self, space_id: str) -> list[dict]:
        data = await self._request("GET", f"/space/{space_id}/list", params={"archived": "false"})
        return data.get("lists", [])

    async def get_space_lists(self, space_id: str) -> list[dict]:
        """Every list in a space: folderless lists plus the lists of each folder.
        Folder listings are fetched concurrently and concatenated unordered."""
        folders = await self.get_folders(space_id)
        results = await asyncio.gather(
            self.get_folderless_lists(space_id),
            *(self.get_lists(folder["id"]) for folder in folders),
            return_exceptions=True
        )
        # Every fetch has completed here; surface the first failure
        for chunk in results:
            if isinstance(chunk, BaseException):
                raise chunk
        lists = []
        for chunk in results:
            lists.extend(chunk)
        return lists

    async def get_team_members(self, team_id: str) -> list[dict]:
        """Users of a team, flattened to {id, username, email}."""
        for team in await self.get_teams():
            if str(team.get("id")) == str(team_id):
                members = []
                for member in team.get("members", []):
                    user = member.get("user") or {}
                    members.append({
                        "id": user.get("id"),
                        "username": user.get("username") or "",
                        "email": user.get("email") or "",
                    })
                return members
        raise UpstreamError(
            404,
            {"err": f"Team {team_id} not found"},
            f"Team '{team_id}' is not visible to the current credential",
            "Use list_teams() to see available teams"
        )

    async def create_task(self, list_id: str, payload: dict) -> dict:
        return await self._request("POST", f"/list/{list_id}/task", json=payload)
