from __future__ import annotations

import os
from dataclasses import dataclass


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


@dataclass(frozen=True)
class InferenceSettings:
    """Thresholds and window sizes shared by the classifiers and the ranker."""

    confidence_threshold: float = 95.0
    medium_confidence: float = 70.0
    max_learning_patterns: int = 50
    type_learning_window: int = 50
    review_limit: int = 3
    use_default_patterns: bool = True


def load_settings() -> InferenceSettings:
    return InferenceSettings(
        confidence_threshold=float(os.getenv("DF_CONFIDENCE_THRESHOLD", "95")),
        medium_confidence=float(os.getenv("DF_MEDIUM_CONFIDENCE", "70")),
        max_learning_patterns=int(os.getenv("DF_MAX_LEARNING_PATTERNS", "50")),
        type_learning_window=int(os.getenv("DF_TYPE_LEARNING_WINDOW", "50")),
        review_limit=int(os.getenv("DF_REVIEW_LIMIT", "3")),
        use_default_patterns=_env_bool("DF_USE_DEFAULT_PATTERNS", "true"),
    )
