"""Recipe extraction from cooking videos and recipe web pages."""

import importlib.metadata
import logging

from recipe_extract.config import FrozenConfig, resolve_config
from recipe_extract.core.types import (
    Author,
    Confidence,
    ExtractionLayer,
    Failure,
    Ingredient,
    Platform,
    PreflightResult,
    RecipeCard,
    Result,
    Step,
    Success,
    VideoExtraction,
    WebExtractionResult,
)
from recipe_extract.exceptions import (
    AdmissionRejected,
    ConfigurationError,
    ExtractionFailed,
    FatalApiError,
    InvalidResponseStructure,
    NetworkError,
    ProcessingTimeout,
    RecipeExtractError,
    RenderUnavailable,
    ServiceUnavailable,
    TransientApiError,
    UploadPermissionDenied,
    ValidationError,
)
from recipe_extract.frontdoor import admit, extract_video, extract_web, ingest
from recipe_extract.normalize import ResultNormalizer
from recipe_extract.preflight import PreflightGate
from recipe_extract.resilience import CircuitBreaker
from recipe_extract.telemetry import TelemetryContext, TelemetryReporter
from recipe_extract.video import VideoExtractionOrchestrator
from recipe_extract.web import WebExtractionPipeline

# Version handling
try:
    __version__ = importlib.metadata.version("recipe-extract")
except importlib.metadata.PackageNotFoundError:
    __version__ = "development"

# Set up a null handler for the library's root logger.
# This prevents 'No handler found' errors if the consuming app has no logging configured.
logging.getLogger(__name__).addHandler(logging.NullHandler())

# Public API
__all__ = [  # noqa: RUF022
    # Entrypoints
    "admit",
    "extract_video",
    "extract_web",
    "ingest",
    # Components
    "PreflightGate",
    "CircuitBreaker",
    "VideoExtractionOrchestrator",
    "WebExtractionPipeline",
    "ResultNormalizer",
    # Configuration
    "resolve_config",
    "FrozenConfig",
    # Telemetry (extension points)
    "TelemetryContext",
    "TelemetryReporter",
    # Core Types & Data Models
    "Platform",
    "PreflightResult",
    "VideoExtraction",
    "WebExtractionResult",
    "ExtractionLayer",
    "RecipeCard",
    "Ingredient",
    "Step",
    "Author",
    "Confidence",
    "Result",
    "Success",
    "Failure",
    # Exceptions
    "RecipeExtractError",
    "ConfigurationError",
    "ValidationError",
    "AdmissionRejected",
    "ServiceUnavailable",
    "UploadPermissionDenied",
    "ProcessingTimeout",
    "TransientApiError",
    "InvalidResponseStructure",
    "FatalApiError",
    "NetworkError",
    "ExtractionFailed",
    "RenderUnavailable",
]
