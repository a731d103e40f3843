from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence

from assessment.config import DEFAULT_CONFIG, AssessmentConfig
from assessment.findings import Finding
from assessment.numeric import clamp


@dataclass(frozen=True)
class ConditionScore:
    visual_score: int
    total_deduction: int
    description: str


def total_deduction(findings: Sequence[Finding], weights: Mapping[str, int]) -> int:
    return sum(weights.get(f.issue_key, 0) * f.severity for f in findings)


def describe_score(score: int, config: AssessmentConfig = DEFAULT_CONFIG) -> str:
    for threshold, description in config.score_bands:
        if score >= threshold:
            return description
    return config.rough_description


def score_condition(findings: Sequence[Finding], config: AssessmentConfig = DEFAULT_CONFIG) -> ConditionScore:
    deduction = total_deduction(findings, config.deduction_weights)
    score = int(clamp(config.max_score - deduction, 0, config.max_score))
    return ConditionScore(visual_score=score, total_deduction=deduction, description=describe_score(score, config))
