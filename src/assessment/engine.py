from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Sequence

from assessment.confidence import blend_confidence
from assessment.config import DEFAULT_CONFIG, AssessmentConfig
from assessment.data_models import (
    AssessmentInput,
    AssessmentReport,
    ConditionIssue,
    VehicleDetails,
)
from assessment.findings import Finding, VisionInterpreter, flatten_findings
from assessment.market import compute_market_values
from assessment.scoring import score_condition
from assessment.valuation import synthesize_valuation

logger = logging.getLogger(__name__)


def resolve_vehicle_details(payload: AssessmentInput, today: Callable[[], date] = date.today) -> VehicleDetails:
    """Decoded VIN data wins over the caller's VIN string.

    Unknown make/model become "Unknown"; an unknown year falls back to the
    current calendar year.
    """
    identity = payload.vehicle_identity
    make = (identity.make if identity else "").strip() or "Unknown"
    model = (identity.model if identity else "").strip() or "Unknown"
    year = identity.year if identity and identity.year else today().year
    vin = (identity.vin if identity else "").strip() or (payload.vin or "").strip() or "Unknown"
    return VehicleDetails(make=make, model=model, year=year, mileage=str(payload.mileage), vin=vin)


def project_condition_issues(findings: Sequence[Finding]) -> tuple[ConditionIssue, ...]:
    # Severity and confidence are intentionally not carried into the report.
    return tuple(
        ConditionIssue(issue_key=f.issue_key, title=f.title, description=f.description, icon=f.icon)
        for f in findings
    )


class AssessmentEngine:
    def __init__(
        self,
        vision: VisionInterpreter,
        config: AssessmentConfig = DEFAULT_CONFIG,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.vision = vision
        self.config = config
        self.today = today

    async def assess(self, payload: AssessmentInput) -> AssessmentReport:
        details = resolve_vehicle_details(payload, self.today)

        # The only suspension point; failures propagate to the caller.
        observation = await self.vision.interpret(
            mileage=payload.mileage,
            description=payload.description,
            photos=payload.photos,
        )
        findings = flatten_findings(observation)

        score = score_condition(findings, self.config)
        market = compute_market_values(payload.market_comparables, payload.mileage, self.config)
        valuation = synthesize_valuation(market, findings, payload.mileage, self.config)
        confidence = blend_confidence(findings, observation.coverage, self.config)
        logger.debug(
            "Assessed %s: %d findings, score=%d, market=%s, trade_in=%s, confidence=%d",
            details.vin,
            len(findings),
            score.visual_score,
            valuation.market_value_range,
            valuation.trade_in_value,
            confidence.ai_confidence,
        )

        return AssessmentReport(
            vehicle_details=details,
            visual_score=score.visual_score,
            max_score=self.config.max_score,
            score_description=score.description,
            condition_issues=project_condition_issues(findings),
            market_value_range=valuation.market_value_range,
            trade_in_value=valuation.trade_in_value,
            trade_in_description=valuation.trade_in_description,
            ai_confidence=confidence.ai_confidence,
            ai_confidence_description=confidence.description,
        )


async def assess_vehicle(
    payload: AssessmentInput,
    vision: VisionInterpreter,
    config: AssessmentConfig | None = None,
) -> AssessmentReport:
    return await AssessmentEngine(vision, config or DEFAULT_CONFIG).assess(payload)
