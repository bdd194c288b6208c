"""Minimal SPARQL protocol client used by :class:`~titlecache.store.SparqlEndpointStore`.

Queries go out as GET first. An endpoint that answers with an HTML page
or ``405 Method Not Allowed`` is switched to form-encoded POST for the
lifetime of the client. Transient failures are retried only when the
caller asks for more than one attempt.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Optional

import requests

logger = logging.getLogger(__name__)

__all__ = ["EndpointError", "SparqlHelper"]

RESULTS_ACCEPT = "application/sparql-results+json, application/sparql-results+xml;q=0.9"


class EndpointError(Exception):
    """The endpoint failed, was unreachable or sent something unreadable."""


class SparqlHelper:
    """Send SELECT and ASK queries to one endpoint, decoding JSON results."""

    TRANSIENT_STATUS = frozenset({429, 500, 502, 503, 504})
    USER_AGENT = "titlecache/0.1 (SPARQL client)"

    def __init__(
        self,
        endpoint_url: str,
        *,
        use_post: bool = False,
        max_retries: int = 1,
        backoff: float = 1.0,
        timeout: float = 60.0,
        auth: Optional[tuple[str, str]] = None,
    ) -> None:
        self.endpoint_url = endpoint_url.rstrip("/")
        self.max_retries = max(1, max_retries)
        self.backoff = backoff
        self.timeout = timeout
        self._post = use_post
        self._session = requests.Session()
        if auth is not None:
            self._session.auth = auth

    def select(self, query: str) -> dict[str, Any]:
        """Return the decoded ``application/sparql-results+json`` document."""
        return self._execute(query)

    def ask(self, query: str) -> bool:
        return bool(self._execute(query).get("boolean", False))

    def _execute(self, query: str) -> dict[str, Any]:
        # Switching to POST is not an attempt.
        attempt = 1
        while True:
            try:
                body = self._send(query)
            except requests.exceptions.HTTPError as exc:
                status = exc.response.status_code if exc.response is not None else 0
                if status == 405 and self._switch_to_post():
                    continue
                if status not in self.TRANSIENT_STATUS:
                    raise EndpointError(f"HTTP {status}: {exc}") from exc
                self._wait_or_fail(attempt, exc)
                attempt += 1
                continue
            except requests.exceptions.RequestException as exc:
                self._wait_or_fail(attempt, exc)
                attempt += 1
                continue

            if body.lstrip()[:15].lower().startswith(("<!doctype", "<html")):
                if self._switch_to_post():
                    continue
                raise EndpointError(f"{self.endpoint_url} answered with an HTML page to a POST query")
            try:
                return json.loads(body)
            except ValueError as exc:
                self._wait_or_fail(attempt, exc)
                attempt += 1

    def _send(self, query: str) -> str:
        headers = {"Accept": RESULTS_ACCEPT, "User-Agent": self.USER_AGENT}
        if self._post:
            response = self._session.post(
                self.endpoint_url,
                data={"query": query},
                headers={**headers, "Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.timeout,
            )
        else:
            response = self._session.get(
                self.endpoint_url,
                params={"query": query},
                headers=headers,
                timeout=self.timeout,
            )
        response.raise_for_status()
        return response.text

    def _switch_to_post(self) -> bool:
        if self._post:
            return False
        logger.debug("Endpoint %s rejected GET, using POST from now on", self.endpoint_url)
        self._post = True
        return True

    def _wait_or_fail(self, attempt: int, error: Exception) -> None:
        if attempt >= self.max_retries:
            raise EndpointError(f"Query failed after {attempt} attempt(s): {error}") from error
        delay = self.backoff * 2 ** (attempt - 1)
        logger.warning(
            "Attempt %d/%d on %s failed (%s), next try in %.1fs",
            attempt, self.max_retries, self.endpoint_url, error, delay,
        )
        time.sleep(delay)
