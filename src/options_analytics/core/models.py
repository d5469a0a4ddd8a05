"""Domain models for the options analytics engine."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime
from enum import Enum
from typing import Optional, Tuple

CONTRACT_MULTIPLIER = 100


class OptionType(str, Enum):
    """Supported option contract types."""

    CALL = "call"
    PUT = "put"


class LegAction(str, Enum):
    """Side of a strategy leg."""

    BUY = "buy"
    SELL = "sell"


class LegErrorPolicy(str, Enum):
    """How a strategy reacts when a single leg cannot be priced."""

    LENIENT = "lenient"
    STRICT = "strict"


class BreakEvenMethod(str, Enum):
    """Algorithm used to locate strategy break-even prices."""

    GRID = "grid"
    EXACT = "exact"


class PremiumSource(str, Enum):
    """Where a leg premium came from."""

    EXPLICIT = "explicit"
    MARKET = "market"
    MODEL = "model"
    UNRESOLVED = "unresolved"


@dataclass(frozen=True, slots=True)
class OptionContract:
    """Immutable snapshot of a listed option contract."""

    strike: float
    expiration: date
    option_type: OptionType
    bid: float = 0.0
    ask: float = 0.0
    last_price: float = 0.0
    open_interest: int = 0
    implied_volatility: float = 0.0
    in_the_money: bool = False
    volume: int = 0
    contract_symbol: Optional[str] = None

    def __post_init__(self) -> None:  # pragma: no cover - dataclass validation
        if self.strike <= 0:
            raise ValueError("strike must be strictly positive")
        if min(self.bid, self.ask, self.last_price) < 0:
            raise ValueError("bid, ask and last_price must be non-negative")
        if self.open_interest < 0:
            raise ValueError("open_interest must be non-negative")
        if self.implied_volatility < 0:
            raise ValueError("implied_volatility must be non-negative")

    @property
    def mid(self) -> float:
        return (self.bid + self.ask) / 2.0


@dataclass(frozen=True, slots=True)
class OptionsChain:
    """Calls and puts for one underlying at one expiration."""

    symbol: str
    expiration_date: date
    calls: Tuple[OptionContract, ...]
    puts: Tuple[OptionContract, ...]
    underlying_price: float
    timestamp: Optional[datetime] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "calls", tuple(self.calls))
        object.__setattr__(self, "puts", tuple(self.puts))
        if self.timestamp is None:
            object.__setattr__(self, "timestamp", datetime.now(UTC))

    @property
    def is_empty(self) -> bool:
        return not self.calls and not self.puts

    def contracts(self, option_type: OptionType) -> Tuple[OptionContract, ...]:
        return self.calls if option_type is OptionType.CALL else self.puts

    def find(self, option_type: OptionType, strike: float) -> Optional[OptionContract]:
        """Return the contract listed at exactly ``strike``, if any."""

        for contract in self.contracts(option_type):
            if math.isclose(contract.strike, strike, rel_tol=0.0, abs_tol=1e-9):
                return contract
        return None


@dataclass(frozen=True, slots=True)
class Greeks:
    """First and second order sensitivities of an option position."""

    delta: float = 0.0
    gamma: float = 0.0
    theta: float = 0.0
    vega: float = 0.0
    rho: float = 0.0

    @classmethod
    def zero(cls) -> "Greeks":
        return cls()

    def __add__(self, other: "Greeks") -> "Greeks":
        if not isinstance(other, Greeks):
            return NotImplemented
        return Greeks(
            delta=self.delta + other.delta,
            gamma=self.gamma + other.gamma,
            theta=self.theta + other.theta,
            vega=self.vega + other.vega,
            rho=self.rho + other.rho,
        )

    def scaled(self, factor: float) -> "Greeks":
        return Greeks(
            delta=self.delta * factor,
            gamma=self.gamma * factor,
            theta=self.theta * factor,
            vega=self.vega * factor,
            rho=self.rho * factor,
        )

    def rounded(self, digits: int = 4) -> "Greeks":
        return Greeks(
            delta=round(self.delta, digits),
            gamma=round(self.gamma, digits),
            theta=round(self.theta, digits),
            vega=round(self.vega, digits),
            rho=round(self.rho, digits),
        )

    def as_dict(self) -> dict[str, float]:
        return {
            "delta": self.delta,
            "gamma": self.gamma,
            "theta": self.theta,
            "vega": self.vega,
            "rho": self.rho,
        }


@dataclass(frozen=True, slots=True)
class PricingInputs:
    """Market conditions and contract terms required to price an option."""

    spot_price: float
    strike_price: float
    time_to_expiry: float
    volatility: float
    option_type: OptionType
    risk_free_rate: float = 0.045
    dividend_yield: float = 0.0

    @property
    def adjusted_spot(self) -> float:
        return self.spot_price * math.exp(-self.dividend_yield * self.time_to_expiry)


@dataclass(frozen=True, slots=True)
class OptionLeg:
    """One option position within a multi-leg strategy."""

    strike: float
    option_type: OptionType
    action: LegAction
    quantity: int = 1
    premium: Optional[float] = None

    @property
    def sign(self) -> int:
        return 1 if self.action is LegAction.BUY else -1

    def with_premium(self, premium: float) -> "OptionLeg":
        return replace(self, premium=premium)


@dataclass(frozen=True, slots=True)
class VolatilityPeriod:
    """Realised volatility over one lookback window."""

    days: int
    volatility: float
    annualized: float


@dataclass(frozen=True, slots=True)
class VolatilityResult:
    """Historical volatility for each requested window."""

    periods: Tuple[VolatilityPeriod, ...]
    current_price: float


@dataclass(frozen=True, slots=True)
class TermStructurePoint:
    """At-the-money implied volatility for one expiration."""

    expiration_date: date
    days_to_expiration: int
    implied_volatility: float


@dataclass(frozen=True, slots=True)
class ImpliedVolatilitySummary:
    """Implied versus historical volatility snapshot, in percent."""

    current_iv: float
    historical_volatility: float
    iv_vs_hv: float
    atm_strike: float
    atm_call_iv: Optional[float] = None
    atm_put_iv: Optional[float] = None
    term_structure: Tuple[TermStructurePoint, ...] = ()


@dataclass(frozen=True, slots=True)
class MaxPainPoint:
    """Aggregate option holder payoff if the underlying settles at ``price``."""

    price: float
    call_pain: float
    put_pain: float
    total_pain: float


@dataclass(frozen=True, slots=True)
class MaxPainResult:
    """Outcome of a max-pain evaluation over one chain."""

    max_pain_price: float
    total_open_interest: int
    put_call_ratio: float
    price_points: Tuple[MaxPainPoint, ...]
    call_open_interest: int = 0
    put_open_interest: int = 0


@dataclass(frozen=True, slots=True)
class PnLPoint:
    """Strategy profit and loss at expiration for one underlying price."""

    price: float
    profit_loss: float
    profit_loss_percent: float


@dataclass(frozen=True, slots=True)
class LegAnalysis:
    """Resolved state of a strategy leg."""

    leg: OptionLeg
    premium_source: PremiumSource
    volatility: Optional[float] = None
    greeks: Greeks = field(default_factory=Greeks)
    position_greeks: Greeks = field(default_factory=Greeks)
    error: Optional[str] = None


@dataclass(frozen=True, slots=True)
class StrategyAnalysis:
    """Aggregate analysis of a list of legs at a single expiration."""

    strategy_type: str
    expiration_date: date
    underlying_price: float
    legs: Tuple[LegAnalysis, ...]
    net_premium: float
    net_debit: float
    max_profit: float
    max_loss: float
    break_even_points: Tuple[float, ...]
    greeks: Greeks
    profit_loss_chart: Tuple[PnLPoint, ...]
    warnings: Tuple[str, ...] = ()


__all__ = [
    "BreakEvenMethod",
    "CONTRACT_MULTIPLIER",
    "Greeks",
    "ImpliedVolatilitySummary",
    "LegAction",
    "LegAnalysis",
    "LegErrorPolicy",
    "MaxPainPoint",
    "MaxPainResult",
    "OptionContract",
    "OptionLeg",
    "OptionType",
    "OptionsChain",
    "PnLPoint",
    "PremiumSource",
    "PricingInputs",
    "StrategyAnalysis",
    "TermStructurePoint",
    "VolatilityPeriod",
    "VolatilityResult",
]
