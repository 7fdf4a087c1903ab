from __future__ import annotations

import logging

import httpx

from jotter_api.domain.entities import TaskNote
from jotter_api.domain.exceptions import TaskServiceError

logger = logging.getLogger("jotter.tasks")


def _join_base(base_url: str, path: str) -> str:
    return base_url.rstrip("/") + "/" + path.lstrip("/")


def odata_filter_eq(field: str, value: str) -> str:
    # OData string literals escape a quote by doubling it.
    escaped = value.replace("'", "''")
    return f"{field} eq '{escaped}'"


class TodoTaskService:
    """
    Client for a Microsoft-To-Do-style task API.

    Tasks live in one list, found by display name and cached after the
    first lookup. Without a token the service is disabled and deletes are
    no-ops.
    """

    def __init__(
        self,
        base_url: str,
        token: str | None,
        list_name: str,
        *,
        timeout_s: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url
        self.token = token
        self.list_name = list_name
        self.timeout_s = timeout_s
        self._transport = transport
        self._list_id: str | None = None

    def enabled(self) -> bool:
        return bool(self.token)

    def _client(self) -> httpx.AsyncClient:
        headers = {"Authorization": f"Bearer {self.token}", "Accept": "application/json"}
        return httpx.AsyncClient(timeout=self.timeout_s, headers=headers, transport=self._transport)

    async def _request(self, client: httpx.AsyncClient, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            resp = await client.request(method, _join_base(self.base_url, path), **kwargs)
        except httpx.HTTPError as e:
            raise TaskServiceError("task_request_failed") from e
        if resp.status_code >= 400:
            raise TaskServiceError(f"task_http_{resp.status_code}")
        return resp

    async def _resolve_list_id(self, client: httpx.AsyncClient) -> str:
        if self._list_id:
            return self._list_id
        resp = await self._request(
            client,
            "GET",
            "/me/todo/lists",
            params={"$filter": odata_filter_eq("displayName", self.list_name)},
        )
        try:
            lists = resp.json()["value"]
        except (ValueError, KeyError, TypeError) as e:
            raise TaskServiceError("task_bad_response") from e
        if not isinstance(lists, list):
            raise TaskServiceError("task_bad_response")
        if not lists:
            raise TaskServiceError("task_list_not_found")
        if not isinstance(lists[0], dict):
            raise TaskServiceError("task_bad_response")
        list_id = lists[0].get("id")
        if not isinstance(list_id, str) or not list_id:
            raise TaskServiceError("task_bad_response")
        self._list_id = list_id
        return list_id

    async def delete_task(self, task: TaskNote) -> None:
        if not self.enabled():
            return
        if not task.external_task_id:
            logger.debug("task_delete_skipped", extra={"reason": "no_external_id"})
            return
        async with self._client() as client:
            list_id = await self._resolve_list_id(client)
            await self._request(client, "DELETE", f"/me/todo/lists/{list_id}/tasks/{task.external_task_id}")
        logger.info("task_deleted", extra={"task_id": task.external_task_id})
