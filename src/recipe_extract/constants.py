"""
Project-wide constants for recipe extraction
"""  # noqa: D200, D212, D415

# ==============================================================================
# Preflight Gate
# ==============================================================================

# Universal duration limits (seconds)
MIN_VIDEO_DURATION = 10
MAX_VIDEO_DURATION = 1200  # 20 minutes
MODERATE_DURATION = 300  # 5 minutes
WARNING_DURATION = 600  # 10 minutes

# YouTube category ids
FOOD_CATEGORY_IDS = frozenset({"26", "27"})  # Howto & Style, Education
NEGATIVE_CATEGORY_IDS = frozenset({"17", "20"})  # Sports, Gaming

PATTERN_SCORE_CAP = 10.0
CONTEXTUAL_PATTERN_WEIGHT = 1.5
CONTEXTUAL_ANTI_SIGNAL_WEIGHT = -2
REJECTED_SCORE = -100.0

# Second-stage classifier
TINY_CLASSIFIER_DESCRIPTION_CHARS = 800
TINY_CLASSIFIER_MIN_TERMS = 3
TINY_CLASSIFIER_PASS_CONFIDENCE = 0.7
TINY_CLASSIFIER_RECIPE_CONFIDENCE = 0.8
TINY_CLASSIFIER_OTHER_CONFIDENCE = 0.2

# Estimated processing seconds per cost tier
COST_TIER_SECONDS = {"low": 60, "moderate": 90, "high": 120, "very_high": 180}
LOW_CONFIDENCE_EXTRA_SECONDS = 30
LOW_CONFIDENCE_SCORE = 2.0

# ==============================================================================
# Circuit Breaker
# ==============================================================================

BREAKER_THRESHOLD = 5
BREAKER_COOLDOWN = 300.0  # seconds

# ==============================================================================
# Video Service
# ==============================================================================

VIDEO_SERVICE_BASE_URL = "https://api.memories.ai/serve/api/v1"
UPLOAD_QUALITY = 720
PERMISSION_DENIED_CODE = "9009"
INVALID_KEY_CODE = "0401"
TRANSIENT_CODES = frozenset({"0001", "0002", "0003"})
TRANSIENT_MESSAGE_MARKERS = (
    "network",
    "abnormal",
    "timeout",
    "no videos found",
    "processing",
    "temporarily unavailable",
    "service unavailable",
)
NO_VIDEOS_FOUND_MARKER = "no videos found"
SUCCESS_BANNER_MARKERS = (
    "video message q&a confirms",
    "confirms the incoming video number",
)
PARSED_STATUS = "PARSE"

# Poll cadence (seconds) by attempt number
POLL_FAST_ATTEMPTS = 6
POLL_MEDIUM_ATTEMPTS = 12
POLL_FAST_DELAY = 5.0
POLL_MEDIUM_DELAY = 10.0
POLL_SLOW_DELAY = 15.0
POLL_JITTER = 1.0
PARSE_STATUS_DELAY = 5.0
POLL_MAX_CONSECUTIVE_ERRORS = 3
POLL_ERROR_BASE_DELAY = 10.0
POLL_ERROR_STEP_DELAY = 5.0

# Poll budget (seconds)
POLL_CAP = 240
POLL_MIN = 120
POLL_BUDGET_FACTOR = 1.2
DEFAULT_ESTIMATED_DURATION = 180

# Settling delay before querying (seconds)
LONG_VIDEO_THRESHOLD = 600
SETTLE_DELAY_LONG_VIDEO = 10.0
SETTLE_DELAY_DEFAULT = 20.0

# Chat retry policy
CHAT_MAX_RETRIES = 3
TRANSIENT_BACKOFF = 5.0
NO_VIDEOS_BACKOFF = 10.0
INVALID_STRUCTURE_BACKOFF = 4.0
CHAT_JITTER = 2.0

# Network timeouts (seconds)
UPSTREAM_TIMEOUT = 120.0
QUERY_TIMEOUT = 45.0
METADATA_TIMEOUT = 10.0
THUMBNAIL_TIMEOUT = 15.0
FETCH_TIMEOUT = 20.0

# ==============================================================================
# Web Extraction
# ==============================================================================

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36"
)
CRAWLER_USER_AGENT = (
    "facebookexternalhit/1.1 (+http://www.facebook.com/externalhit_uatext.php)"
)

ADEQUATE_INGREDIENTS = 3
ADEQUATE_STEPS = 2

JSON_LD_CONFIDENCE = 0.95
MICRODATA_CONFIDENCE = 0.9
STRUCTURED_TIMES_CONFIDENCE = 0.9
MICRODATA_TIMES_CONFIDENCE = 0.8
READABILITY_CONFIDENCE_FLOOR = 0.6
HEURISTIC_CONFIDENCE_CAP = 0.7
HEURISTIC_CONFIDENCE_PER_ITEM = 0.1
READABILITY_MIN_REDUCTION = 0.25

SHORT_STEP_CHARS = 50
MAX_TIPS = 5

RENDER_ATTEMPTS = 3
RENDER_RETRY_DELAY = 2.0
RENDER_SETTLE_DELAY = 3.0
RENDER_PAGE_TIMEOUT = 60
CHROME_CANDIDATE_PATHS = (
    "/usr/bin/chromium-browser",
    "/usr/bin/chromium",
    "/usr/bin/google-chrome",
    "/usr/bin/google-chrome-stable",
    "/opt/google/chrome/chrome",
)
SERVERLESS_ENV_MARKERS = ("AWS_REGION", "VERCEL", "GOOGLE_CLOUD_PROJECT")

# ==============================================================================
# Normalization
# ==============================================================================

VIDEO_SOURCE_CONFIDENCE = 0.8
DESCRIPTION_SOURCE_PRIOR = 0.9
TRANSCRIPT_SOURCE_PRIOR = 0.7
FRACTION_TOLERANCE = 0.02
