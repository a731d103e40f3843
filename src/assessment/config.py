from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping


def _frozen(table: dict[str, int]) -> Mapping[str, int]:
    return MappingProxyType(dict(table))


@dataclass(frozen=True)
class AssessmentConfig:
    max_score: int = 100
    dealer_margin_multiplier: float = 0.9
    iqr_fence: float = 1.5
    min_comparables: int = 3
    default_finding_confidence: float = 0.4
    quality_weight: float = 0.6
    angle_weight: float = 0.4
    angle_cap: int = 6
    finding_blend_weight: float = 0.5
    coverage_blend_weight: float = 0.5
    high_confidence_threshold: int = 85
    medium_confidence_threshold: int = 65
    # Points per severity level.
    deduction_weights: Mapping[str, int] = field(
        default_factory=lambda: _frozen(
            {
                "dents": 10,
                "exterior_scratches": 4,
                "paint_fade": 5,
                "rust": 8,
                "glass_chips": 6,
                "wheel_curb_rash": 3,
                "tire_wear": 5,
                "interior_wear": 6,
                "odor": 10,
                "dashboard_warning": 12,
                "mods": 4,
                "lights_damage": 5,
                "undercarriage_leak": 12,
                "missing_parts": 7,
            }
        )
    )
    # USD per severity level. Keys missing here cost nothing to recondition.
    recon_weights: Mapping[str, int] = field(
        default_factory=lambda: _frozen(
            {
                "dents": 300,
                "exterior_scratches": 120,
                "paint_fade": 180,
                "rust": 350,
                "glass_chips": 220,
                "wheel_curb_rash": 80,
                "tire_wear": 150,
                "interior_wear": 180,
                "odor": 250,
                "dashboard_warning": 400,
                "mods": 120,
                "lights_damage": 160,
                "undercarriage_leak": 450,
                "missing_parts": 200,
            }
        )
    )
    score_bands: tuple[tuple[int, str], ...] = (
        (90, "Excellent visual condition with minimal wear."),
        (80, "Clean vehicle with light, typical wear."),
        (70, "Average condition; several cosmetic items noted."),
        (60, "Below-average condition; visible defects and wear."),
    )
    rough_description: str = "Rough condition with notable visible issues."


DEFAULT_CONFIG = AssessmentConfig()
