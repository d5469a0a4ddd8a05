"""Analytics tool endpoints invoked by the agent."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Dict, Type

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from ..dependencies import get_analytics_service
from ..mappers import (
    greeks_report_response,
    historical_volatility_response,
    implied_volatility_response,
    max_pain_response,
    strategy_response,
    to_option_legs,
    to_option_type,
)
from ..schemas.request import (
    AnalyzeStrategyRequest,
    CalculateGreeksRequest,
    CalculateHistoricalVolatilityRequest,
    CalculateMaxPainRequest,
    GetImpliedVolatilityRequest,
)
from ..schemas.response import (
    CalculateGreeksResponse,
    HistoricalVolatilityResponse,
    ImpliedVolatilityResponse,
    MaxPainResponse,
    StrategyAnalysisResponse,
    ToolDefinitionResponse,
    ToolListResponse,
)
from ..services import AnalyticsService

LOGGER = logging.getLogger(__name__)
router = APIRouter(prefix="/tools", tags=["tools"])

TOOL_INPUTS: Dict[str, Type[BaseModel]] = {
    "calculate_greeks": CalculateGreeksRequest,
    "calculate_max_pain": CalculateMaxPainRequest,
    "calculate_historical_volatility": CalculateHistoricalVolatilityRequest,
    "analyze_strategy": AnalyzeStrategyRequest,
    "get_implied_volatility": GetImpliedVolatilityRequest,
}


def _describe(model: Type[BaseModel]) -> str:
    return " ".join((inspect.getdoc(model) or "").split())


@router.get("", response_model=ToolListResponse)
async def list_tools() -> ToolListResponse:
    return ToolListResponse(
        tools=[
            ToolDefinitionResponse(
                name=name,
                description=_describe(model),
                input_schema=model.model_json_schema(),
            )
            for name, model in TOOL_INPUTS.items()
        ]
    )


@router.post("/calculate_greeks", response_model=CalculateGreeksResponse)
async def calculate_greeks(
    payload: CalculateGreeksRequest,
    request: Request,
    service: AnalyticsService = Depends(get_analytics_service),
) -> CalculateGreeksResponse:
    request.state.tool = "calculate_greeks"
    report = await asyncio.to_thread(
        service.calculate_greeks,
        payload.symbol,
        payload.strike,
        payload.expiration_date,
        to_option_type(payload.option_type),
        payload.underlying_price,
        payload.risk_free_rate,
        payload.dividend_yield,
    )
    return greeks_report_response(report)


@router.post("/calculate_max_pain", response_model=MaxPainResponse)
async def calculate_max_pain(
    payload: CalculateMaxPainRequest,
    request: Request,
    service: AnalyticsService = Depends(get_analytics_service),
) -> MaxPainResponse:
    request.state.tool = "calculate_max_pain"
    report = await asyncio.to_thread(service.calculate_max_pain, payload.symbol, payload.expiration_date)
    return max_pain_response(report)


@router.post("/calculate_historical_volatility", response_model=HistoricalVolatilityResponse)
async def calculate_historical_volatility(
    payload: CalculateHistoricalVolatilityRequest,
    request: Request,
    service: AnalyticsService = Depends(get_analytics_service),
) -> HistoricalVolatilityResponse:
    request.state.tool = "calculate_historical_volatility"
    report = await asyncio.to_thread(
        service.calculate_historical_volatility, payload.symbol, tuple(payload.periods)
    )
    return historical_volatility_response(report)


@router.post("/analyze_strategy", response_model=StrategyAnalysisResponse)
async def analyze_strategy(
    payload: AnalyzeStrategyRequest,
    request: Request,
    service: AnalyticsService = Depends(get_analytics_service),
) -> StrategyAnalysisResponse:
    request.state.tool = "analyze_strategy"
    analysis = await asyncio.to_thread(
        service.analyze_strategy,
        payload.symbol,
        payload.strategy_type.value,
        to_option_legs(payload.legs),
        payload.expiration_date,
    )
    if analysis.warnings:
        LOGGER.info("Strategy for %s completed with %d leg warnings", payload.symbol, len(analysis.warnings))
    return strategy_response(payload.symbol, analysis)


@router.post("/get_implied_volatility", response_model=ImpliedVolatilityResponse)
async def get_implied_volatility(
    payload: GetImpliedVolatilityRequest,
    request: Request,
    service: AnalyticsService = Depends(get_analytics_service),
) -> ImpliedVolatilityResponse:
    request.state.tool = "get_implied_volatility"
    report = await asyncio.to_thread(service.get_implied_volatility, payload.symbol)
    return implied_volatility_response(report)
