"""Centralized constants for aplus-studio."""


# Gemini model ids per call type
class Models:
    RESEARCH = "gemini-2.5-flash"
    PLANNING = "gemini-2.5-flash"
    IMAGE_PRIMARY = "gemini-3-pro-image-preview"
    IMAGE_FALLBACK = "gemini-2.5-flash-image"


class Defaults:
    PACING_SECONDS = 1.5
    HISTORY_LIMIT = 20
    # Roughly a browser's per-origin localStorage allowance
    STORAGE_QUOTA_BYTES = 5_000_000
    IMAGE_SIZE = "1K"
    ASPECT_RATIO = "1:1"
    PLAN_SIZE = 7


# Persistence keys
class StorageKeys:
    GUIDELINES = "aplus.guidelines"
    HISTORY = "aplus.history"
