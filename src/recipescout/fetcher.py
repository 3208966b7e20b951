"""HTTP page fetcher for known recipe sites.

All network I/O for recipe pages goes through a single PageFetcher instance.
The PageFetcher receives an httpx.AsyncClient via constructor injection;
the lifespan owns the client lifecycle. Redirects are followed by hand so
that every hop can be checked against the known sites.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import urljoin

import httpx
import structlog

from recipescout.errors import ErrorCode, RecipeScoutError
from recipescout.sites import SiteKind, match_site

if TYPE_CHECKING:
    from recipescout.config import FetcherSettings

log = structlog.get_logger()


def build_http_client(settings: FetcherSettings) -> httpx.AsyncClient:
    """Create the shared httpx client. Called once at startup."""
    return httpx.AsyncClient(
        follow_redirects=False,
        timeout=httpx.Timeout(settings.timeout_seconds),
        headers=settings.headers,
        limits=httpx.Limits(
            max_connections=10,
            max_keepalive_connections=5,
        ),
    )


def is_url_allowed(url: str) -> bool:
    """Only http(s) URLs hosted on a known recipe site may be fetched."""
    if not url.startswith(("http://", "https://")):
        return False
    return match_site(url) is not SiteKind.UNKNOWN


class PageFetcher:
    """Single-attempt HTTP GET with site-checked redirect handling."""

    def __init__(self, client: httpx.AsyncClient, max_redirects: int = 3) -> None:
        self._client = client
        self._max_redirects = max_redirects

    async def fetch(self, url: str) -> str:
        """Fetch a page and return its decoded body.

        Raises RecipeScoutError(UPSTREAM_FAILURE) on timeouts, network errors,
        non-2xx responses and redirects that leave the known sites. No retry.
        """
        current_url = url

        try:
            for hop in range(self._max_redirects + 1):
                if not is_url_allowed(current_url):
                    log.warning("fetch_blocked", url=current_url, reason="not_a_known_site")
                    raise RecipeScoutError(
                        code=ErrorCode.UPSTREAM_FAILURE,
                        message=f"URL is not on a known recipe site: {current_url}",
                        recoverable=False,
                    )

                response = await self._client.get(current_url)

                if response.is_redirect and "location" in response.headers:
                    if hop == self._max_redirects:
                        raise RecipeScoutError(
                            code=ErrorCode.UPSTREAM_FAILURE,
                            message=f"Too many redirects fetching {url}",
                            recoverable=False,
                        )
                    current_url = urljoin(current_url, response.headers["location"])
                    continue

                if not response.is_success:
                    raise RecipeScoutError(
                        code=ErrorCode.UPSTREAM_FAILURE,
                        message=f"HTTP {response.status_code} fetching {url}",
                        recoverable=response.status_code >= 500,
                    )

                log.info(
                    "fetch_complete",
                    url=url,
                    status_code=response.status_code,
                    content_length=len(response.text),
                )
                return response.text

        except RecipeScoutError:
            raise
        except httpx.HTTPError as exc:
            raise RecipeScoutError(
                code=ErrorCode.UPSTREAM_FAILURE,
                message=f"Network error fetching {url}: {exc}",
                recoverable=True,
            ) from exc
        except (httpx.InvalidURL, ValueError) as exc:
            # httpx and urljoin reject malformed request URLs and Location headers
            raise RecipeScoutError(
                code=ErrorCode.UPSTREAM_FAILURE,
                message=f"Invalid URL fetching {url}: {exc}",
                recoverable=False,
            ) from exc

        # Unreachable but satisfies the type checker
        raise RecipeScoutError(
            code=ErrorCode.UPSTREAM_FAILURE,
            message="Redirect loop",
            recoverable=False,
        )
