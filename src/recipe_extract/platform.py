"""URL classification: video platform or plain web page."""

import re
from urllib.parse import urlparse

from recipe_extract.core.types import Platform

_YOUTUBE_WATCH = re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/)([^&\n?#]+)")
_YOUTUBE_SHORTS = re.compile(r"youtube\.com/shorts/([^&\n?#]+)")
_TIKTOK_VIDEO = re.compile(r"tiktok\.com/@[^/]+/video/(\d+)")
_TIKTOK_HANDLE = re.compile(r"tiktok\.com/@([^/?#]+)")
_INSTAGRAM_POST = re.compile(r"instagram\.com/(?:p|reel)/([^/?]+)")
_INSTAGRAM_HANDLE = re.compile(r"instagram\.com/([^/?#]+)")
_INSTAGRAM_RESERVED = frozenset({"p", "reel", "reels", "tv", "stories", "explore"})


def classify(url: str) -> Platform:
    """Map a URL to its platform; anything unrecognised is ``Platform.WEB``."""
    try:
        hostname = (urlparse(url.strip()).hostname or "").lower()
    except ValueError:
        return Platform.WEB
    if "youtube.com" in hostname or "youtu.be" in hostname:
        return Platform.YOUTUBE
    if "tiktok.com" in hostname:
        return Platform.TIKTOK
    if "instagram.com" in hostname:
        return Platform.INSTAGRAM
    return Platform.WEB


def is_video_url(url: str) -> bool:
    return classify(url).is_video


def extract_video_id(url: str, platform: Platform | None = None) -> str | None:
    """Return the platform's video identifier embedded in ``url``, if any."""
    platform = platform or classify(url)
    if platform is Platform.YOUTUBE:
        match = _YOUTUBE_WATCH.search(url) or _YOUTUBE_SHORTS.search(url)
    elif platform is Platform.TIKTOK:
        match = _TIKTOK_VIDEO.search(url)
    elif platform is Platform.INSTAGRAM:
        match = _INSTAGRAM_POST.search(url)
    else:
        return None
    return match.group(1) if match else None


def extract_handle(url: str, platform: Platform | None = None) -> str | None:
    """Return the creator handle (without ``@``) visible in a TikTok or Instagram URL."""
    platform = platform or classify(url)
    if platform is Platform.TIKTOK:
        match = _TIKTOK_HANDLE.search(url)
        return match.group(1) if match else None
    if platform is Platform.INSTAGRAM:
        match = _INSTAGRAM_HANDLE.search(url)
        if match and match.group(1).lower() not in _INSTAGRAM_RESERVED:
            return match.group(1)
    return None
