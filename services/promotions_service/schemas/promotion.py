"""Promotion and tracking schemas."""

import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from services.promotions_service.models.enums import PromotionStatus


class PromotionCreate(BaseModel):
    property_id: uuid.UUID
    expires_at: Optional[datetime] = None


class PromotionExtend(BaseModel):
    expires_at: datetime


class PromotionResponse(BaseModel):
    id: uuid.UUID
    creator_id: str
    property_id: uuid.UUID
    unique_code: str
    status: PromotionStatus
    expires_at: Optional[datetime] = None
    paused_at: Optional[datetime] = None
    expired_at: Optional[datetime] = None
    stopped_at: Optional[datetime] = None
    impressions: int
    clicks: int
    leads: int
    inspections: int
    conversions: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PromotionLinkResponse(BaseModel):
    message: str
    link: str
    tracking_link: PromotionResponse


class TrackingRequest(BaseModel):
    property_id: uuid.UUID
    creator_code: str = Field(..., min_length=1)
    action: Optional[str] = None


class TrackingResult(BaseModel):
    success: bool = True
    tracked: bool
    reason: Optional[str] = None


class TrackingLinkResolution(BaseModel):
    unique_code: str
    property_id: uuid.UUID
    active: bool


class MetricStat(BaseModel):
    value: int
    previous: Optional[int] = None
    change: Optional[int] = Field(None, description="Percent change on the previous window")


class PromotionStats(BaseModel):
    impressions: MetricStat
    clicks: MetricStat
    leads: MetricStat
    inspections: MetricStat
    conversions: MetricStat


class AnalyticsPoint(BaseModel):
    start: datetime
    leads: int
    inspections: int


class PromotionAnalyticsResponse(BaseModel):
    promotion_id: uuid.UUID
    period: Literal["daily", "weekly", "monthly"]
    stats: PromotionStats
    chart_data: list[AnalyticsPoint]
