from fastapi import APIRouter, HTTPException, Query

from app import schemas
from app.core.referral_config import DEFAULT_RATE_TABLE, PlanType

router = APIRouter()

@router.get("/preview", response_model=schemas.EarningsPreview)
async def preview_potential_earnings(plan_type: PlanType = Query(...)):
    """
    What a full referral chain earns on one purchase of the given plan.
    Uses the same rate table as the actual distribution.
    """
    if not DEFAULT_RATE_TABLE.is_known_plan(plan_type):
        raise HTTPException(status_code=404, detail="Plan not found")
    return DEFAULT_RATE_TABLE.potential_earnings(plan_type)
