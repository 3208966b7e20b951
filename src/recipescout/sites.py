"""Known recipe sites and their extraction rules.

Pure business logic. Maps a URL to a site, and a parsed page of that site
to a normalised Recipe. No network or cache access.

Each site publishes recipes with its own markup, so every site carries its
own CSS selector set. Sites are declared in a fixed order, which is also
the order of search result stubs.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING
from urllib.parse import quote, urlparse

from bs4 import BeautifulSoup

from recipescout.models.recipe import Recipe

if TYPE_CHECKING:
    from bs4 import Tag


class SiteKind(StrEnum):
    XIACHUFANG = "xiachufang"
    MEISHIJ = "meishij"
    DOUGUO = "douguo"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class SiteRules:
    """Search-stub templates and CSS selectors for one known site."""

    domain: str  # Base domain the URL hostname must belong to
    source: str  # Human-readable label shown on search results
    title_template: str  # "{query}" is substituted
    search_url_template: str  # "{query}" is substituted, percent-encoded

    # Selectors
    title: str
    ingredients: str
    steps: str
    image: str  # First match's ``src`` attribute is used

    def stub_title(self, query: str) -> str:
        return self.title_template.format(query=query)

    def search_url(self, query: str) -> str:
        # Same escaping as JavaScript's encodeURIComponent
        return self.search_url_template.format(query=quote(query, safe="!~*'()"))


SITES: dict[SiteKind, SiteRules] = {
    SiteKind.XIACHUFANG: SiteRules(
        domain="xiachufang.com",
        source="Xiachufang",
        title_template="How to Make {query}",
        search_url_template="https://www.xiachufang.com/search/?keyword={query}",
        title=".page-title",
        ingredients=".ingredient",
        steps=".steps li",
        image=".cover img",
    ),
    SiteKind.MEISHIJ: SiteRules(
        domain="meishij.net",
        source="Meishij",
        title_template="Homemade {query} Recipe",
        search_url_template="https://www.meishij.net/search.php?q={query}",
        title=".recipe-title",
        ingredients=".ingredients li",
        steps=".steps li",
        image=".recipe-img img",
    ),
    SiteKind.DOUGUO: SiteRules(
        domain="douguo.com",
        source="Douguo",
        title_template="Detailed {query} Recipe",
        search_url_template="https://www.douguo.com/search/{query}",
        title=".recipe-title",
        ingredients=".ingredient-item",
        steps=".step-item",
        image=".recipe-img img",
    ),
}


def match_site(url: str) -> SiteKind:
    """Resolve a URL to the known site whose domain hosts it.

    Only the hostname is considered, so an identifier that appears in the
    path or query string does not count as a match. The hostname must equal
    a site domain or be a subdomain of it, so ``xiachufang.com.example.org``
    does not match. A URL that cannot be parsed resolves to UNKNOWN.
    """
    try:
        hostname = (urlparse(url).hostname or "").rstrip(".").lower()
    except ValueError:
        return SiteKind.UNKNOWN
    if not hostname:
        return SiteKind.UNKNOWN

    for kind, rules in SITES.items():
        if hostname == rules.domain or hostname.endswith("." + rules.domain):
            return kind
    return SiteKind.UNKNOWN


def parse_document(raw: str) -> BeautifulSoup:
    """Parse raw HTML into a document supporting CSS selector queries."""
    return BeautifulSoup(raw, "html.parser")


def extract(url: str, document: BeautifulSoup) -> Recipe | None:
    """Apply the matching site's selectors to a parsed page.

    Returns ``None`` when the URL belongs to no known site. A matched site
    always yields a Recipe, with empty fields where the markup has no
    matching elements.
    """
    kind = match_site(url)
    if kind is SiteKind.UNKNOWN:
        return None

    rules = SITES[kind]
    return Recipe(
        title="".join(el.get_text() for el in document.select(rules.title)).strip(),
        ingredients=tuple(_texts(document, rules.ingredients)),
        steps=tuple(_texts(document, rules.steps)),
        image=_first_attr(document, rules.image, "src"),
    )


def _texts(document: BeautifulSoup, selector: str) -> list[str]:
    return [el.get_text().strip() for el in document.select(selector)]


def _first_attr(document: BeautifulSoup, selector: str, attr: str) -> str | None:
    element: Tag | None = document.select_one(selector)
    if element is None:
        return None
    value = element.get(attr)
    if isinstance(value, list):
        value = " ".join(value)
    return value or None
