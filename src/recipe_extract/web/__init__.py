"""Recipe extraction from ordinary web pages."""

from .draft import DraftStep, RecipeDraft
from .fetch import FetchedPage, HttpPageFetcher, PageFetcher
from .heuristics import parse_html_content
from .pipeline import LAYERS, Layer, WebExtractionPipeline
from .readability import extract_readable
from .render import HeadlessRenderer, resolve_chrome_binary
from .structured import extract_json_ld, extract_microdata

__all__ = [  # noqa: RUF022
    "WebExtractionPipeline",
    "Layer",
    "LAYERS",
    "PageFetcher",
    "HttpPageFetcher",
    "FetchedPage",
    "HeadlessRenderer",
    "resolve_chrome_binary",
    "RecipeDraft",
    "DraftStep",
    "extract_json_ld",
    "extract_microdata",
    "extract_readable",
    "parse_html_content",
]
