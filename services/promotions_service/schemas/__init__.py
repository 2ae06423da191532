"""Promotions Service schemas package."""

from services.promotions_service.schemas.promotion import (  # noqa: F401
    AnalyticsPoint,
    MetricStat,
    PromotionAnalyticsResponse,
    PromotionCreate,
    PromotionExtend,
    PromotionLinkResponse,
    PromotionResponse,
    PromotionStats,
    TrackingLinkResolution,
    TrackingRequest,
    TrackingResult,
)

__all__ = [
    "PromotionCreate",
    "PromotionExtend",
    "PromotionLinkResponse",
    "PromotionResponse",
    "PromotionAnalyticsResponse",
    "PromotionStats",
    "MetricStat",
    "AnalyticsPoint",
    "TrackingRequest",
    "TrackingResult",
    "TrackingLinkResolution",
]
