from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class SubscriptionInfo(BaseModel):
    status: str
    current_period_end: Optional[datetime] = None
    cancel_at_period_end: bool = False

    class Config:
        from_attributes = True


class TrialInfo(BaseModel):
    trial_end_time: datetime
    is_trial_used: bool

    class Config:
        from_attributes = True


class SubscriptionAccess(BaseModel):
    hasActiveSubscription: bool
    hasValidTrial: bool
    canGenerateContent: bool
    subscription: Optional[SubscriptionInfo] = None
    trial: Optional[TrialInfo] = None


class CheckoutSessionResponse(BaseModel):
    checkout_url: str
