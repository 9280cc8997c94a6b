"""Recognise URLs that belong to a specially-handled provider (YouTube)."""

from dataclasses import dataclass
from urllib.parse import parse_qs, urlparse

_FULL_DOMAIN = "youtube.com"
_SHORT_DOMAIN = "youtu.be"
_VIDEO_ID_PARAM = "v"


@dataclass(frozen=True)
class ProviderMatch:
    is_special: bool
    provider_id: str = ""


def is_youtube_host(hostname: str) -> bool:
    return _FULL_DOMAIN in hostname or _SHORT_DOMAIN in hostname


def extract_video_id(url: str) -> str:
    """Return the video ID carried by a YouTube *url*, or ``""``.

    ``youtu.be`` links carry the ID as the path; ``youtube.com`` links carry
    it in the ``v`` query parameter.
    """
    parsed = urlparse(url)
    if _SHORT_DOMAIN in parsed.netloc:
        return parsed.path.removeprefix("/")
    values = parse_qs(parsed.query).get(_VIDEO_ID_PARAM)
    return values[0] if values else ""


def classify(url: str) -> ProviderMatch:
    hostname = urlparse(url).hostname or ""
    if not is_youtube_host(hostname):
        return ProviderMatch(is_special=False)
    return ProviderMatch(is_special=True, provider_id=extract_video_id(url))
