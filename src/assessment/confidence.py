from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from assessment.config import DEFAULT_CONFIG, AssessmentConfig
from assessment.findings import Coverage, Finding
from assessment.numeric import clamp, round_half_up


@dataclass(frozen=True)
class ConfidenceSummary:
    ai_confidence: int
    description: str


def average_finding_confidence(findings: Sequence[Finding], default: float = 0.4) -> float:
    if not findings:
        return default
    return sum(f.confidence for f in findings) / len(findings)


def coverage_factor(coverage: Coverage, config: AssessmentConfig = DEFAULT_CONFIG) -> float:
    angle_credit = min(1.0, len(coverage.angles) / config.angle_cap)
    return coverage.photo_quality_score * config.quality_weight + angle_credit * config.angle_weight


def describe_confidence(value: int, coverage: Coverage, config: AssessmentConfig = DEFAULT_CONFIG) -> str:
    if value >= config.high_confidence_threshold:
        bucket = "High"
    elif value >= config.medium_confidence_threshold:
        bucket = "Medium"
    else:
        bucket = "Low"
    angles = f" ({', '.join(coverage.angles)})" if coverage.angles else ""
    return f"{bucket} confidence based on {coverage.photo_count} photos and coverage{angles}."


def blend_confidence(
    findings: Sequence[Finding],
    coverage: Coverage,
    config: AssessmentConfig = DEFAULT_CONFIG,
) -> ConfidenceSummary:
    blended = (
        average_finding_confidence(findings, config.default_finding_confidence) * config.finding_blend_weight
        + coverage_factor(coverage, config) * config.coverage_blend_weight
    )
    value = int(clamp(round_half_up(blended * 100), 0, 100))
    return ConfidenceSummary(ai_confidence=value, description=describe_confidence(value, coverage, config))
