"""
Marketplace page scraping (Open-Graph title and images).

Used endpoints: a plain GET on the product URL the admin pastes.
"""

from __future__ import annotations

from urllib.parse import urlsplit

import httpx
from bs4 import BeautifulSoup

USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
DEFAULT_TITLE = "Produto ML"
MAX_IMAGES = 5

_IMAGE_SUFFIXES = (".jpg", ".jpeg", ".png", ".webp")


# Scrape failures are explicit and separable from store errors.
class ScrapeError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


async def fetch_html(url: str, *, timeout_s: float = 15.0, transport: httpx.AsyncBaseTransport | None = None) -> str:
    url = (url or "").strip()
    if not url.startswith(("http://", "https://")):
        raise ScrapeError("URL must start with http:// or https://.")
    try:
        async with httpx.AsyncClient(
            timeout=timeout_s,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
            transport=transport,
        ) as client:
            resp = await client.get(url)
    except httpx.HTTPError as exc:
        raise ScrapeError(f"Request to {url} failed: {exc}") from exc

    if resp.status_code >= 400:
        raise ScrapeError(f"Page returned {resp.status_code}.", status_code=resp.status_code)
    return resp.text


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html.parser")


def _og_values(soup: BeautifulSoup, prop: str) -> list[str]:
    # Sites use both property="og:x" and name="og:x".
    key = f"og:{prop}"
    values: list[str] = []
    for tag in soup.find_all("meta"):
        if key not in (tag.get("property"), tag.get("name")):
            continue
        content = (tag.get("content") or "").strip()
        if content:
            values.append(content)
    return values


def og_property(html: str, prop: str) -> str | None:
    values = _og_values(_soup(html), prop)
    return values[0] if values else None


def product_title(html: str) -> str:
    """
    og:title up to the first " - " (marketplace titles carry a site suffix).
    """
    title = og_property(html, "title")
    if not title:
        return DEFAULT_TITLE
    return title.split(" - ", 1)[0].strip() or DEFAULT_TITLE


def _is_product_image(url: str) -> bool:
    if not url.startswith(("http://", "https://")) or "placeholder" in url:
        return False
    return urlsplit(url).path.lower().endswith(_IMAGE_SUFFIXES)


def product_images(html: str, *, limit: int = MAX_IMAGES) -> list[str]:
    """
    Distinct absolute image URLs: og:image first, then <img> tags in page
    order. Placeholders are skipped.
    """
    soup = _soup(html)
    candidates = _og_values(soup, "image") + [img["src"].strip() for img in soup.find_all("img", src=True)]
    found: list[str] = []
    for url in candidates:
        if url in found or not _is_product_image(url):
            continue
        found.append(url)
        if len(found) >= limit:
            break
    return found
