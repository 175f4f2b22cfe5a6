#!/usr/bin/env python3
"""Azure AI Search REST client for the index list/delete/create calls used by the deployment."""
import json
import logging
from urllib.parse import quote

import requests

from .config import SEARCH_API_VERSION
from .errors import APIError, TransportError, parse_error_body

logger = logging.getLogger(__name__)


def service_endpoint(service_name: str) -> str:
    return f"https://{service_name}.search.windows.net"


class SearchServiceClient:
    """Thin wrapper over requests for the /indexes resource. Raises TransportError / APIError."""

    def __init__(
        self,
        service_name: str,
        api_key: str,
        api_version: str = SEARCH_API_VERSION,
        session: requests.Session | None = None,
        timeout: float | None = None,
    ):
        self.endpoint = service_endpoint(service_name)
        self.api_version = api_version
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {"api-key": api_key}

    def _url(self, index_name: str | None = None) -> str:
        if index_name is None:
            return f"{self.endpoint}/indexes"
        return f"{self.endpoint}/indexes/{quote(index_name, safe='')}"

    def _request(self, method: str, url: str, expected: int, params: dict | None = None, **kwargs) -> requests.Response:
        query = {"api-version": self.api_version}
        if params:
            query.update(params)
        headers = {**self.headers, **kwargs.pop("headers", {})}
        logger.debug("%s %s", method, url)
        try:
            r = self.session.request(
                method,
                url,
                params=query,
                headers=headers,
                timeout=self.timeout,
                **kwargs,
            )
        except requests.RequestException as e:
            logger.warning("Search request failed: %s %s error=%s", method, url, e)
            raise TransportError(f"{method} {url} failed: {e}") from e
        logger.info("Search response: %s %s status=%s", method, url, r.status_code)
        if r.status_code != expected:
            code, message = parse_error_body(r.text)
            raise APIError(r.status_code, message, code)
        return r

    def list_indexes(self) -> list[str]:
        """GET /indexes; return index names in service order."""
        r = self._request("GET", self._url(), 200, params={"$select": "name"})
        try:
            data = r.json()
        except (ValueError, json.JSONDecodeError) as e:
            raise APIError(r.status_code, f"invalid JSON in index list: {e}") from e
        items = data.get("value") if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise APIError(r.status_code, "index list response has no 'value' array")
        names = [item.get("name") if isinstance(item, dict) else None for item in items]
        return [name for name in names if isinstance(name, str) and name]

    def delete_index(self, index_name: str) -> None:
        """DELETE /indexes/<name>; 204 is success."""
        self._request("DELETE", self._url(index_name), 204)

    def create_index(self, body: str) -> None:
        """POST /indexes with the raw JSON definition; 201 is success."""
        self._request(
            "POST",
            self._url(),
            201,
            data=body.encode("utf-8"),
            headers={"Content-Type": "application/json"},
        )

    def close(self) -> None:
        self.session.close()
