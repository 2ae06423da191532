"""Dashboard summary schemas. Money fields are kobo."""

from pydantic import BaseModel


class UserStats(BaseModel):
    total: int
    developers: int
    creators: int
    buyers: int


class PropertyStats(BaseModel):
    total: int
    verified: int
    pending_verification: int
    rejected: int
    sold: int


class FinancialStats(BaseModel):
    escrow_held: int
    pending_payouts: int
    completed_payouts: int


class ActivityStats(BaseModel):
    leads_today: int
    inspections_today: int
    sales_this_month: int


class AdminDashboardStats(BaseModel):
    users: UserStats
    properties: PropertyStats
    financial: FinancialStats
    activity: ActivityStats


class DeveloperCounts(BaseModel):
    properties_count: int
    leads_count: int
    inspections_count: int
