"""Discovery of official Babelfish drivers."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from .config import RegistryConfig, StaticDriver
from .errors import RegistryError
from .logging import get_logger
from .models import Driver

_PAGE_SIZE = 100
_MAX_PAGES = 10
_DRIVER_SUFFIX = "-driver"


@dataclass
class RegistryRequest:
    """A single HTTP GET issued against the registry."""

    url: str
    headers: Dict[str, str]
    timeout: Optional[float]


class DriverRegistryClient:
    """Lists official drivers, in a stable order, from the GitHub search API.

    The lookup is all-or-nothing: any transport or payload problem raises
    ``RegistryError`` instead of returning a partial list.
    """

    def __init__(
        self,
        config: RegistryConfig | None = None,
        *,
        fetcher: Callable[[RegistryRequest], bytes] | None = None,
    ) -> None:
        self.config = config or RegistryConfig()
        self._fetcher = fetcher or self._http_fetcher
        self.logger = get_logger("registry")

    def list_drivers(self) -> List[Driver]:
        self.logger.info("discovering all available drivers")
        items = self._fetch_all()
        drivers: Dict[str, Driver] = {}
        for item in items:
            driver = self._driver_from_item(item)
            if driver is None:
                continue
            drivers.setdefault(driver.local_path, driver)
        ordered = sorted(drivers.values(), key=lambda d: (d.language.lower(), d.local_path))
        if not ordered:
            raise RegistryError(
                f"No repositories tagged '{self.config.topic}' found in '{self.config.organization}'"
            )
        self.logger.info(
            "%d drivers found: %s", len(ordered), ", ".join(d.language for d in ordered)
        )
        return ordered

    # ------------------------------------------------------------------
    # Internals

    def _fetch_all(self) -> List[dict]:
        items: List[dict] = []
        received = 0
        total: Optional[int] = None
        for page in range(1, _MAX_PAGES + 1):
            payload = self._fetch_page(page)
            page_items = payload.get("items")
            if not isinstance(page_items, list):
                raise RegistryError("Registry response is missing the 'items' list")
            if payload.get("incomplete_results") is True:
                raise RegistryError("Registry search timed out and returned incomplete results")
            received += len(page_items)
            items.extend(item for item in page_items if isinstance(item, dict))
            if isinstance(payload.get("total_count"), int):
                total = payload["total_count"]
            if len(page_items) < _PAGE_SIZE:
                break
            if total is not None and received >= total:
                break
        if total is not None and received < total:
            raise RegistryError(
                f"Registry listed {total} repositories but only {received} could be retrieved"
            )
        return items

    def _fetch_page(self, page: int) -> dict:
        query = f"topic:{self.config.topic} org:{self.config.organization}"
        params = urlencode({"q": query, "per_page": _PAGE_SIZE, "page": page, "sort": "name"})
        headers = {"Accept": "application/vnd.github+json", "User-Agent": "uastcov"}
        if self.config.token:
            headers["Authorization"] = f"Bearer {self.config.token}"
        request = RegistryRequest(
            url=f"{self.config.url.rstrip('/')}/search/repositories?{params}",
            headers=headers,
            timeout=self.config.timeout,
        )
        raw = self._fetcher(request)
        try:
            payload = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise RegistryError("Registry returned invalid JSON") from exc
        if not isinstance(payload, dict):
            raise RegistryError("Registry returned an unexpected payload")
        return payload

    def _driver_from_item(self, item: dict) -> Optional[Driver]:
        name = item.get("name")
        url = item.get("html_url")
        if not isinstance(name, str) or not isinstance(url, str):
            return None
        if item.get("archived") is True:
            self.logger.debug("skipping archived repository %s", name)
            return None
        if not name.endswith(_DRIVER_SUFFIX):
            self.logger.debug("skipping %s: not named <language>%s", name, _DRIVER_SUFFIX)
            return None
        language = name[: -len(_DRIVER_SUFFIX)]
        return Driver(language=language, repository_url=url)

    @staticmethod
    def _http_fetcher(request: RegistryRequest) -> bytes:
        http_request = Request(request.url, headers=request.headers, method="GET")
        try:
            with urlopen(http_request, timeout=request.timeout) as response:  # type: ignore[arg-type]
                return response.read()
        except HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="ignore") if hasattr(exc, "read") else ""
            message = detail.strip() or exc.reason
            raise RegistryError(f"Registry lookup failed with status {exc.code}: {message}") from exc
        except URLError as exc:
            raise RegistryError(f"Registry lookup failed: {exc.reason}") from exc
        except OSError as exc:
            raise RegistryError(f"Registry lookup failed: {exc}") from exc


class StaticRegistry:
    """Registry backed by the ``drivers:`` list of the configuration file."""

    def __init__(self, entries: Sequence[StaticDriver]) -> None:
        self._entries = list(entries)
        self.logger = get_logger("registry")

    def list_drivers(self) -> List[Driver]:
        if not self._entries:
            raise RegistryError("No drivers configured")
        drivers: List[Driver] = []
        seen: set[str] = set()
        for entry in self._entries:
            try:
                driver = Driver(language=entry.language, repository_url=entry.url)
            except ValueError as exc:
                raise RegistryError(str(exc)) from exc
            if driver.local_path in seen:
                raise RegistryError(f"Two drivers share the checkout directory {driver.local_path}")
            seen.add(driver.local_path)
            drivers.append(driver)
        self.logger.info("%d drivers configured", len(drivers))
        return drivers


__all__ = ["DriverRegistryClient", "RegistryRequest", "StaticRegistry"]
