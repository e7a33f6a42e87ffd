"""Paginated access to the PagerDuty REST API.

The listing commands only ever read from PagerDuty, so the client exposes
GET-based helpers: a paginated ``fetch`` that materializes a whole
collection, name ``search``, the current identity, and the priority
palette used for colored output.
"""

import sys
from typing import Any, Dict, List, Optional, Tuple

import click
import requests

from .config import get_page_size
from .utils import get_base_url, make_api_request


def encode_params(params: Optional[Dict[str, Any]]) -> List[Tuple[str, Any]]:
    """Encode query parameters the way the PagerDuty API expects them.

    List values are sent as repeated ``name[]=value`` pairs; None values are
    dropped.

    Args:
        params: Parameter mapping

    Returns:
        Ordered list of (name, value) pairs for requests
    """
    pairs: List[Tuple[str, Any]] = []
    for key, value in (params or {}).items():
        if value is None:
            continue
        if isinstance(value, (list, tuple, set)):
            for item in value:
                pairs.append((f"{key}[]", item))
        elif isinstance(value, bool):
            pairs.append((key, "true" if value else "false"))
        else:
            pairs.append((key, value))
    return pairs


def _collection_key(endpoint: str) -> str:
    """Return the response key that holds the records for an endpoint."""
    return endpoint.rstrip("/").split("/")[-1]


class PagerDutyClient:
    """Read-only PagerDuty REST API client."""

    def __init__(self, base_url: Optional[str] = None, page_size: Optional[int] = None) -> None:
        """Initialize the client.

        Args:
            base_url: API base URL; defaults to the configured URL
            page_size: Records per request; defaults to the configured size
        """
        self.base_url = (base_url or get_base_url()).rstrip("/")
        self.page_size = page_size or get_page_size()

    def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """GET a single endpoint and return its JSON body."""
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        resp = make_api_request(url, params=encode_params(params))
        data = resp.json()
        return data if isinstance(data, dict) else {}

    def fetch(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Fetch every record of a collection, following pagination.

        Both offset pagination (``offset``/``more``) and cursor pagination
        (``cursor``/``next_cursor``) are supported.

        Args:
            endpoint: Path relative to the API base, e.g. ``incidents``
            params: Filter parameters
            limit: Maximum number of records to return (None for all)

        Returns:
            Records in the order the API returned them
        """
        key = _collection_key(endpoint)
        records: List[Dict[str, Any]] = []
        offset = 0
        cursor: Optional[str] = None

        while True:
            page_size = self.page_size
            if limit is not None:
                remaining = limit - len(records)
                if remaining <= 0:
                    break
                page_size = min(page_size, remaining)

            page_params: Dict[str, Any] = dict(params or {})
            page_params["limit"] = page_size
            if cursor:
                page_params["cursor"] = cursor
            else:
                page_params["offset"] = offset

            data = self.get(endpoint, page_params)
            items = data.get(key, [])
            if not isinstance(items, list):
                items = []
            records.extend(items)

            if not items:
                break
            if data.get("next_cursor"):
                cursor = data["next_cursor"]
                continue
            if not data.get("more"):
                break
            offset += len(items)

        return records[:limit] if limit is not None else records

    def fetch_with_progress(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        activity: str = "Fetching",
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Fetch a collection, reporting progress on stderr when it is a terminal."""
        show_progress = sys.stderr.isatty()
        if show_progress:
            click.echo(f"{activity}...", err=True, nl=False)
        try:
            records = self.fetch(endpoint, params, limit)
        except Exception:
            if show_progress:
                click.echo(click.style(" failed", fg="red", bold=True), err=True)
            raise
        if show_progress:
            click.echo(f" got {len(records)}", err=True)
        return records

    def search(self, collection: str, query: str) -> List[Dict[str, Any]]:
        """Search a collection (users, teams, services, ...) by name or email."""
        return self.fetch(collection, {"query": query})

    def identity(self) -> Dict[str, Any]:
        """Return the current authenticated user as ``{"user": {...}}``."""
        return self.get("users/me")

    def priorities_by_id(self) -> Dict[str, Dict[str, Any]]:
        """Return the account's priorities keyed by ID.

        Accounts without priorities enabled answer the request with an
        error; they have an empty palette.
        """
        try:
            priorities = self.fetch("priorities")
        except requests.HTTPError:
            return {}
        return {p["id"]: p for p in priorities if p.get("id")}
