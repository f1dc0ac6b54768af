"""Video extraction through the video-understanding service."""

from .description import Chapter, DescriptionExtraction, parse_description
from .orchestrator import VideoExtractionOrchestrator, poll_budget, poll_delay
from .service import MemoriesVideoService, MockVideoService, VideoService
from .thumbnails import ThumbnailFetcher

__all__ = [
    "Chapter",
    "DescriptionExtraction",
    "MemoriesVideoService",
    "MockVideoService",
    "ThumbnailFetcher",
    "VideoExtractionOrchestrator",
    "VideoService",
    "parse_description",
    "poll_budget",
    "poll_delay",
]
