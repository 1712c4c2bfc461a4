"""REST client for a Miniflux-compatible feed reader."""

from __future__ import annotations

from typing import Any

import requests
from pydantic import ValidationError

from core.config import DiscoveryConfig
from core.errors import CategoryResolutionError, FeedReaderError
from core.models import Category
from core.pipeline import FeedReader


class RSSReaderClient(FeedReader):
    """
    Feed-reader API client authenticated with an X-Auth-Token header.

    Endpoints used:
      GET    /v1/categories
      GET    /v1/categories/{id}/feeds
      DELETE /v1/feeds/{id}
      POST   /v1/feeds
    """

    def __init__(
        self,
        endpoint: str,
        api_key: str,
        session: requests.Session | None = None,
        timeout_seconds: int = DiscoveryConfig.READER_TIMEOUT_SECONDS,
    ) -> None:
        self.endpoint = endpoint.rstrip("/")
        self.api_key = api_key
        self.session = session or requests.Session()
        self.timeout_seconds = timeout_seconds

    def _request(
        self,
        method: str,
        path: str,
        expected: tuple[int, ...],
        payload: dict[str, Any] | None = None,
    ) -> requests.Response:
        url = f"{self.endpoint}{path}"
        try:
            response = self.session.request(
                method,
                url,
                headers={
                    "X-Auth-Token": self.api_key,
                    "Content-Type": "application/json",
                    "User-Agent": DiscoveryConfig.USER_AGENT,
                },
                json=payload,
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as exc:
            raise FeedReaderError(f"{method} {path} failed: {exc}") from exc

        if response.status_code not in expected:
            raise FeedReaderError(
                f"{method} {path} returned status code {response.status_code}: {_error_detail(response)}",
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _json(response: requests.Response, path: str) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise FeedReaderError(f"invalid JSON from {path}: {exc}") from exc

    def list_categories(self) -> list[Category]:
        """Return every category of the authenticated user."""
        path = "/v1/categories"
        data = self._json(self._request("GET", path, expected=(200,)), path)
        if not isinstance(data, list):
            raise FeedReaderError(f"unexpected response shape from {path}")
        try:
            return [Category.model_validate(item) for item in data]
        except ValidationError as exc:
            raise FeedReaderError(f"unexpected category payload: {exc}") from exc

    def resolve_category(self, name: str) -> int:
        """
        Map a category title to its ID.

        Exact title matches win over case-insensitive ones.
        """
        try:
            categories = self.list_categories()
        except FeedReaderError as exc:
            raise CategoryResolutionError(
                f"error listing categories: {exc}", status_code=exc.status_code
            ) from exc

        wanted = name.strip()
        for category in categories:
            if category.title == wanted:
                return category.id
        folded = wanted.casefold()
        for category in categories:
            if category.title.casefold() == folded:
                return category.id
        raise CategoryResolutionError(f"category {name!r} not found")

    def list_category_feeds(self, category_id: int) -> list[int]:
        """Return the IDs of every feed in a category."""
        path = f"/v1/categories/{category_id}/feeds"
        data = self._json(self._request("GET", path, expected=(200,)), path)
        if not isinstance(data, list):
            raise FeedReaderError(f"unexpected response shape from {path}")
        feed_ids: list[int] = []
        for item in data:
            if isinstance(item, dict) and isinstance(item.get("id"), int):
                feed_ids.append(item["id"])
        return feed_ids

    def delete_feed(self, feed_id: int) -> None:
        """Unsubscribe one feed."""
        self._request("DELETE", f"/v1/feeds/{feed_id}", expected=(200, 204))

    def subscribe(self, category_id: int, feed_url: str) -> int | None:
        """Subscribe `feed_url` into a category; return the new feed ID if given."""
        path = "/v1/feeds"
        response = self._request(
            "POST",
            path,
            expected=(200, 201),
            payload={"feed_url": feed_url, "category_id": category_id},
        )
        try:
            data = response.json()
        except ValueError:
            return None
        if isinstance(data, dict) and isinstance(data.get("feed_id"), int):
            return data["feed_id"]
        return None


def _error_detail(response: requests.Response) -> str:
    """Best-effort error message from a reader error body."""
    try:
        data = response.json()
    except ValueError:
        return (response.text or "").strip()[:200]
    if isinstance(data, dict) and data.get("error_message"):
        return str(data["error_message"])
    return str(data)[:200]
