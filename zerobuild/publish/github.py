"""Thin async client for the GitHub REST and git data APIs."""

import base64
import logging
import time
from typing import Any

import httpx

from zerobuild.errors import GitHubAPIError

logger = logging.getLogger(__name__)


class GitHubClient:
    """One authenticated httpx session against the GitHub API.

    Use as an async context manager; every method raises GitHubAPIError on a
    non-2xx response except where a 404 is a normal answer.
    """

    def __init__(
        self,
        token: str,
        base_url: str = "https://api.github.com",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": f"token {token}",
                "Accept": "application/vnd.github.v3+json",
            },
        )

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, json: dict[str, Any] | None = None) -> httpx.Response:
        start = time.time()
        response = await self._client.request(method, path, json=json)
        logger.debug(
            f"GitHub {method} {path}",
            extra={
                "method": method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": round((time.time() - start) * 1000, 2),
            },
        )
        return response

    @staticmethod
    def _raise_for_status(response: httpx.Response, path: str) -> None:
        if response.is_success:
            return
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict):
            message = str(payload.get("message", ""))
            # 422s put the useful part in errors[].message
            details = [
                str(item["message"])
                for item in payload.get("errors") or []
                if isinstance(item, dict) and item.get("message")
            ]
            if details:
                message = f"{message} ({'; '.join(details)})"
        else:
            message = response.text[:300]
        raise GitHubAPIError(response.status_code, message or response.reason_phrase, path)

    async def _json(self, method: str, path: str, json: dict[str, Any] | None = None) -> dict[str, Any]:
        response = await self._request(method, path, json)
        self._raise_for_status(response, path)
        return response.json()

    async def get_repo(self, owner: str, name: str) -> dict[str, Any] | None:
        """Repository metadata, or None when it does not exist."""
        path = f"/repos/{owner}/{name}"
        response = await self._request("GET", path)
        if response.status_code == 404:
            return None
        self._raise_for_status(response, path)
        return response.json()

    async def create_repo(
        self,
        name: str,
        description: str = "",
        private: bool = False,
        auto_init: bool = True,
    ) -> dict[str, Any]:
        return await self._json("POST", "/user/repos", {
            "name": name,
            "description": description,
            "auto_init": auto_init,
            "private": private,
        })

    async def get_branch_head(self, owner: str, name: str, branch: str) -> str | None:
        """Head commit SHA of a branch, or None while the ref is not readable yet."""
        path = f"/repos/{owner}/{name}/git/ref/heads/{branch}"
        response = await self._request("GET", path)
        if response.status_code == 404:
            return None
        self._raise_for_status(response, path)
        return response.json()["object"]["sha"]

    async def get_commit_tree(self, owner: str, name: str, commit_sha: str) -> str:
        data = await self._json("GET", f"/repos/{owner}/{name}/git/commits/{commit_sha}")
        return data["tree"]["sha"]

    async def create_blob(self, owner: str, name: str, content: str) -> str:
        encoded = base64.b64encode(content.encode("utf-8")).decode("ascii")
        data = await self._json("POST", f"/repos/{owner}/{name}/git/blobs", {
            "content": encoded,
            "encoding": "base64",
        })
        return data["sha"]

    async def create_tree(
        self,
        owner: str,
        name: str,
        base_tree: str,
        blobs: list[tuple[str, str]],
    ) -> str:
        """Create a tree from (path, blob_sha) pairs on top of base_tree."""
        data = await self._json("POST", f"/repos/{owner}/{name}/git/trees", {
            "base_tree": base_tree,
            "tree": [
                {"path": path, "mode": "100644", "type": "blob", "sha": sha}
                for path, sha in blobs
            ],
        })
        return data["sha"]

    async def create_commit(
        self,
        owner: str,
        name: str,
        message: str,
        tree_sha: str,
        parents: list[str],
    ) -> str:
        data = await self._json("POST", f"/repos/{owner}/{name}/git/commits", {
            "message": message,
            "tree": tree_sha,
            "parents": parents,
        })
        return data["sha"]

    async def update_ref(self, owner: str, name: str, branch: str, commit_sha: str) -> None:
        await self._json("PATCH", f"/repos/{owner}/{name}/git/refs/heads/{branch}", {
            "sha": commit_sha,
            "force": False,
        })
