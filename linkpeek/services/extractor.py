from typing import List, Optional, Union
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup
from bs4.exceptions import ParserRejectedMarkup

from linkpeek.models.metadata import Metadata
from linkpeek.services.errors import ExtractionError

_OG_SITE_NAME = 'meta[property="og:site_name"]'
_OG_TITLE = 'meta[property="og:title"]'
_OG_DESCRIPTION = 'meta[property="og:description"]'
_OG_IMAGE = 'meta[property="og:image"]'
_META_DESCRIPTION = 'meta[name="description"]'


def _normalize_url(base_url: str, href: str) -> str:
    """Return an absolute URL, resolving *href* against *base_url*."""
    return urljoin(base_url, href)


def host_label(url: str) -> str:
    """Return ``host[:port]`` for *url*, without any userinfo."""
    parsed = urlparse(url)
    host = parsed.hostname or ""
    if ":" in host:
        host = f"[{host}]"
    try:
        port = parsed.port
    except ValueError:
        port = None
    return f"{host}:{port}" if port is not None else host


def find_first_attribute(soup: BeautifulSoup, selector: str, attribute: str) -> Optional[str]:
    """Return *attribute* of the first element matching *selector*, trimmed.

    Returns ``None`` when nothing matches or the first match lacks the
    attribute; later matches are not consulted.
    """
    node = soup.select_one(selector)
    if node is None:
        return None
    value = node.get(attribute)
    if value is None:
        return None
    return str(value).strip()


def _extract_page_name(soup: BeautifulSoup, base_url: str) -> str:
    site_name = find_first_attribute(soup, _OG_SITE_NAME, "content")
    if site_name:
        return site_name
    return host_label(base_url)


def _extract_title(soup: BeautifulSoup) -> str:
    og_title = find_first_attribute(soup, _OG_TITLE, "content")
    if og_title:
        return og_title
    title_tag = soup.find("title")
    if title_tag:
        return title_tag.get_text().strip()
    return ""


def _extract_description(soup: BeautifulSoup) -> str:
    og_desc = find_first_attribute(soup, _OG_DESCRIPTION, "content")
    if og_desc:
        return og_desc
    return find_first_attribute(soup, _META_DESCRIPTION, "content") or ""


def _extract_images(soup: BeautifulSoup, base_url: str) -> List[str]:
    images: List[str] = [
        str(meta["content"]).strip()
        for meta in soup.select(_OG_IMAGE)
        if meta.has_attr("content")
    ]
    if images:
        return images
    # No preview images declared: fall back to every <img> on the page.
    for img in soup.find_all("img"):
        if not img.has_attr("src"):
            continue
        try:
            images.append(_normalize_url(base_url, str(img["src"]).strip()))
        except ValueError:
            # Unparseable reference (e.g. a broken IPv6 literal); skip it.
            continue
    return images


def extract(html: Union[str, bytes], base_url: str) -> Metadata:
    """Build a :class:`Metadata` record from *html* fetched at *base_url*.

    Each field is taken from its Open Graph tag when present and falls back to
    the plain HTML equivalent. Missing data yields empty fields.

    Raises:
        ExtractionError: if the parser rejects the markup outright.
    """
    try:
        soup = BeautifulSoup(html, "lxml")
    except ParserRejectedMarkup as exc:
        raise ExtractionError("failed to parse html") from exc

    return Metadata(
        url=base_url,
        page_name=_extract_page_name(soup, base_url),
        title=_extract_title(soup),
        description=_extract_description(soup),
        images=_extract_images(soup, base_url),
    )
