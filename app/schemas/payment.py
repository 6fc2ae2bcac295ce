from pydantic import BaseModel, Field
from typing import Optional

from app.core.referral_config import PlanType
from app.schemas.commission import DistributionResult

class PaymentCompleteRequest(BaseModel):
    plan_type: PlanType
    payment_intent_id: Optional[str] = Field(default=None, max_length=255)

class PlanActivationRequest(BaseModel):
    plan_type: PlanType

class PlanActivationResponse(BaseModel):
    user_id: int
    plan_type: str
    commissions_processed: bool
    result: Optional[DistributionResult] = None
    error: Optional[str] = None

class MissingCommissionsRequest(BaseModel):
    user_id: Optional[int] = None

class MissingCommissionOutcome(BaseModel):
    user_id: int
    plan_type: str
    result: Optional[DistributionResult] = None
    error: Optional[str] = None
