"""Policy constants for the speech coaching engine.

This module contains the fixed thresholds and magic numbers used
throughout scoring and learning analytics.
"""

# ============================================================================
# Score Scales
# ============================================================================

CONTENT_SCORE_MIN = 0
CONTENT_SCORE_MAX = 5  # Internal per-field scale
PUBLIC_SCORE_MAX = 10  # overallScore / avgScore scale
INTERNAL_TO_PUBLIC_FACTOR = PUBLIC_SCORE_MAX / CONTENT_SCORE_MAX

# Tag classification (internal 0-5 scale)
WEAK_TAG_THRESHOLD = 3.0  # avg < 3.0 -> weak
STRONG_TAG_THRESHOLD = 4.0  # avg >= 4.0 -> strong

# Individual content field below this is reported as a mistake pattern
LOW_FIELD_SCORE_THRESHOLD = 3

# ============================================================================
# Delivery Metrics
# ============================================================================

LONG_PAUSE_THRESHOLD_MS = 600
ESCALATION_START_MS = 1500  # Gaps beyond this count extra pauses
ESCALATION_STEP_MS = 500  # One extra pause per step past ESCALATION_START_MS

BASELINE_WPM = 120  # Text-only pause estimator: slower speech implies pauses
SLOW_SPEECH_WPM_STEP = 15

MIN_ESTIMATED_DURATION_SECONDS = 30
ESTIMATED_WORDS_PER_SECOND = 2

# ============================================================================
# Content Analysis Policy
# ============================================================================

MIN_WORDS_FOR_CONTENT_ANALYSIS = 5

SHORT_TRANSCRIPT_FALLBACK_SCORE = 1
ANALYZER_FAILURE_FALLBACK_SCORE = 2

DEFAULT_ANALYZER_TIMEOUT_SECONDS = 30.0
DEFAULT_ANALYZER_MAX_RETRIES = 2
DEFAULT_ANALYZER_RETRY_DELAY_SECONDS = 1.0

DEFAULT_ROLE = "Senior Software Engineer"
DEFAULT_PRIORITIES = (
    "clarity",
    "impact statements",
    "technical accuracy",
    "resilience",
    "performance",
)

# ============================================================================
# Learning Analytics
# ============================================================================

MAX_EXAMPLES_PER_PATTERN = 3
MAX_COMMON_MISTAKES = 10
MAX_MISUSED_TERMS = 10
MAX_RECOMMENDED_FOCUS = 5
MAX_TOP_FOCUS_AREAS = 5
MAX_TOP_FORGOTTEN_POINTS = 5
MAX_WORDING_EXAMPLE_CHARS = 100

# Share of summaries a tag must be flagged in (strictly more than)
AGGREGATED_TAG_SHARE = 0.5

DEFAULT_BACKFILL_BATCH_SIZE = 5

# ============================================================================
# File Paths / Environment
# ============================================================================

CONFIG_PATH_ENV_VAR = "SPEECHCOACH_CONFIG"
