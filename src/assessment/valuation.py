from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence

from assessment.config import DEFAULT_CONFIG, AssessmentConfig
from assessment.findings import Finding
from assessment.market import MarketValues
from assessment.numeric import number_to_usd, round_half_up

INSUFFICIENT_COMPS = "Insufficient market comps to estimate trade-in value."


@dataclass(frozen=True)
class ValuationSummary:
    recon_cost: float
    trade_in: float | None
    market_value_range: str
    trade_in_value: str
    trade_in_description: str


def reconditioning_cost(findings: Sequence[Finding], weights: Mapping[str, int]) -> float:
    return float(sum(weights.get(f.issue_key, 0) * f.severity for f in findings))


def format_market_range(market: MarketValues) -> str:
    if market.p25 is None or market.p75 is None:
        return "N/A"
    return f"{number_to_usd(market.p25)} - {number_to_usd(market.p75)}"


def synthesize_valuation(
    market: MarketValues,
    findings: Sequence[Finding],
    mileage: int,
    config: AssessmentConfig = DEFAULT_CONFIG,
) -> ValuationSummary:
    # mileage is unused here; the market values already reflect it.
    recon = reconditioning_cost(findings, config.recon_weights)
    if market.p50 is None:
        trade_in = None
        description = INSUFFICIENT_COMPS
    else:
        trade_in = max(0.0, market.p50 * config.dealer_margin_multiplier - recon)
        margin_pct = round_half_up((1 - config.dealer_margin_multiplier) * 100)
        description = (
            f"Estimated trade-in assumes ~{margin_pct}% dealer margin from mid-market "
            f"({number_to_usd(market.p50)}) and ~${round_half_up(recon):,} reconditioning "
            "based on visible issues."
        )
    return ValuationSummary(
        recon_cost=recon,
        trade_in=trade_in,
        market_value_range=format_market_range(market),
        trade_in_value=number_to_usd(trade_in),
        trade_in_description=description,
    )
