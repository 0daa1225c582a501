"""
Pricing Routes — Public electricity price calculator.
"""
from fastapi import APIRouter, HTTPException

from solar_portal.schemas.schemas import PriceQuoteRequest, PriceQuoteResponse
from solar_portal.services.pricing_service import PricingService

router = APIRouter(prefix="/api/pricing", tags=["Pricing"])


@router.post("/quote", response_model=PriceQuoteResponse)
def quote_price(payload: PriceQuoteRequest):
    try:
        return PricingService.quote(payload.consumption_kwh, payload.customer_type)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
