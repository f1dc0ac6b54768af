"""Video metadata sources."""

from .youtube import MetadataProvider, VideoMetadata, YouTubeMetadataClient

__all__ = ["MetadataProvider", "VideoMetadata", "YouTubeMetadataClient"]
