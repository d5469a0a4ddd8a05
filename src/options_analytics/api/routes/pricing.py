"""Direct Black-Scholes pricing endpoint."""

from __future__ import annotations

import asyncio
import logging
import time

from fastapi import APIRouter, Depends

from ...core.pricing_engine import PricingEngine
from ..config import Settings, get_settings
from ..dependencies import get_pricing_engine
from ..mappers import greeks_response, to_pricing_inputs
from ..schemas.request import BlackScholesRequest
from ..schemas.response import BlackScholesResponse

LOGGER = logging.getLogger(__name__)
router = APIRouter(prefix="/pricing", tags=["pricing"])


@router.post("/black-scholes", response_model=BlackScholesResponse)
async def black_scholes(
    request: BlackScholesRequest,
    engine: PricingEngine = Depends(get_pricing_engine),
    settings: Settings = Depends(get_settings),
) -> BlackScholesResponse:
    inputs = to_pricing_inputs(
        request,
        risk_free_rate=settings.risk_free_rate,
        dividend_yield=settings.dividend_yield,
    )

    start = time.perf_counter()
    price, greeks = await asyncio.to_thread(engine.price_and_greeks, inputs, request.precision)
    duration_ms = (time.perf_counter() - start) * 1000.0
    LOGGER.debug("Priced %s strike %.4f in %.3f ms", inputs.option_type.value, inputs.strike_price, duration_ms)

    return BlackScholesResponse(
        theoretical_price=price,
        greeks=greeks_response(greeks),
        computation_time_ms=duration_ms,
    )
