"""Minimal synchronous client for Upsource's JSON-RPC API.

Every call is ``POST <base_url>/~rpc/<method>`` with a JSON body; Upsource
answers ``{"result": ...}`` on success and ``{"error": {...}}`` otherwise.
"""

from __future__ import annotations

import logging

import httpx

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 60.0


class UpsourceError(RuntimeError):
    pass


class UpsourceClient:
    def __init__(
        self,
        base_url: str,
        username: str,
        password: str,
        timeout: float = _DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ):
        self._http = httpx.Client(
            base_url=base_url.rstrip("/"),
            auth=(username, password),
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> UpsourceClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def call(self, method: str, payload: dict) -> dict:
        """Invoke one RPC method and return its ``result`` object."""
        logger.debug("Upsource RPC %s", method)
        try:
            resp = self._http.post(f"/~rpc/{method}", json=payload)
        except httpx.HTTPError as exc:
            raise UpsourceError(f"{method} request failed: {exc}") from exc

        if resp.status_code >= 400:
            raise UpsourceError(f"{method} failed: {resp.status_code}: {resp.text[:500]}")

        if not resp.content:
            return {}
        try:
            body = resp.json()
        except ValueError as exc:
            raise UpsourceError(f"{method} returned invalid JSON: {exc}") from exc
        if not isinstance(body, dict):
            raise UpsourceError(f"{method} returned {type(body).__name__}, expected a JSON object")
        if "error" in body:
            error = body["error"] or {}
            message = error.get("message", error) if isinstance(error, dict) else error
            raise UpsourceError(f"{method} failed: {message}")
        return body.get("result") or {}

    # ------------------------------------------------------------------ #
    # RPC methods used by the reviewer                                     #
    # ------------------------------------------------------------------ #

    def get_reviews(self, query: str, limit: int = 10000) -> list[dict]:
        return self.call("getReviews", {"limit": limit, "query": query}).get("reviews", [])

    def get_project_vcs_links(self, project_id: str) -> list[dict]:
        return self.call("getProjectVcsLinks", {"projectId": project_id}).get("repo", [])

    def get_project_info(self, project_id: str) -> dict:
        return self.call("getProjectInfo", {"projectId": project_id})

    def get_review_file_changes(self, review_id: dict) -> list[dict]:
        result = self.call(
            "getReviewSummaryChanges",
            {"reviewId": review_id, "revisions": {"selectAll": True}},
        )
        return (result.get("diff") or {}).get("diff", [])

    def get_file_content(self, file: dict) -> str:
        result = self.call(
            "getFileContent",
            {"projectId": file["projectId"], "revisionId": file["revisionId"], "fileName": file["fileName"]},
        )
        return (result.get("fileContent") or {}).get("text", "")

    def create_discussion(self, request: dict) -> dict:
        return self.call("createDiscussion", request)

    def add_review_label(self, project_id: str, review_id: dict, label: str) -> dict:
        return self.call(
            "addReviewLabel",
            {"projectId": project_id, "reviewId": review_id, "label": {"name": label}},
        )
