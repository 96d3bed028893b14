"""
Central Staging Promoter

Promotes open Maven Central (OSSRH staging API) repositories after a release
upload, without ever failing the calling pipeline.
"""

from .promoter import (
    PromotionError,
    PromotionOutcome,
    PromotionReport,
    PromotionStatus,
    RepositoryPromotionError,
    RepositorySearchError,
    StagingPromoter,
    build_bearer_token,
    extract_repository_keys,
)

__version__ = "1.0.0"
__all__ = [
    "PromotionError",
    "PromotionOutcome",
    "PromotionReport",
    "PromotionStatus",
    "RepositoryPromotionError",
    "RepositorySearchError",
    "StagingPromoter",
    "build_bearer_token",
    "extract_repository_keys",
]
