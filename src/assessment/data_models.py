from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Any, Literal, Union


IssueKey = Literal[
    "exterior_scratches",
    "dents",
    "paint_fade",
    "rust",
    "glass_chips",
    "wheel_curb_rash",
    "tire_wear",
    "interior_wear",
    "odor",
    "dashboard_warning",
    "mods",
    "lights_damage",
    "undercarriage_leak",
    "missing_parts",
]

_MEDIA_TYPES = {
    "png": "image/png",
    "webp": "image/webp",
    "gif": "image/gif",
}


def media_type_for_path(path: str) -> str:
    suffix = PurePath(path).suffix.lstrip(".").lower()
    return _MEDIA_TYPES.get(suffix, "image/jpeg")


@dataclass(frozen=True)
class Listing:
    price: float | None
    miles: float | None


@dataclass(frozen=True)
class UrlPhoto:
    url: str

    def __post_init__(self) -> None:
        if not self.url.startswith(("http://", "https://")):
            raise ValueError(f"photo url must be http(s): {self.url!r}")


@dataclass(frozen=True)
class InlinePhoto:
    data: bytes | str
    media_type: str = "image/jpeg"

    def __post_init__(self) -> None:
        if not self.data:
            raise ValueError("inline photo payload is empty")
        if not self.media_type.startswith("image/"):
            raise ValueError(f"unsupported media type: {self.media_type!r}")


Photo = Union[UrlPhoto, InlinePhoto]


@dataclass(frozen=True)
class VehicleIdentity:
    make: str = ""
    model: str = ""
    year: int | None = None
    vin: str = ""


@dataclass(frozen=True)
class AssessmentInput:
    mileage: int
    description: str = ""
    photos: tuple[Photo, ...] = ()
    vin: str | None = None
    market_comparables: tuple[Listing, ...] | None = None
    vehicle_identity: VehicleIdentity | None = None

    def __post_init__(self) -> None:
        if self.mileage < 0:
            raise ValueError("mileage must be >= 0")


@dataclass(frozen=True)
class VehicleDetails:
    make: str
    model: str
    year: int
    mileage: str
    vin: str


@dataclass(frozen=True)
class ConditionIssue:
    issue_key: IssueKey
    title: str
    description: str
    icon: str


@dataclass(frozen=True)
class AssessmentReport:
    vehicle_details: VehicleDetails
    visual_score: int
    max_score: int
    score_description: str
    condition_issues: tuple[ConditionIssue, ...] = field(default_factory=tuple)
    market_value_range: str = "N/A"
    trade_in_value: str = "N/A"
    trade_in_description: str = ""
    ai_confidence: int = 0
    ai_confidence_description: str = ""

    def to_record(self) -> dict[str, Any]:
        details = self.vehicle_details
        return {
            "vehicleDetails": {
                "make": details.make,
                "model": details.model,
                "year": details.year,
                "mileage": details.mileage,
                "vin": details.vin,
            },
            "visualScore": self.visual_score,
            "maxScore": self.max_score,
            "scoreDescription": self.score_description,
            "conditionIssues": [
                {
                    "issueKey": issue.issue_key,
                    "title": issue.title,
                    "description": issue.description,
                    "icon": issue.icon,
                }
                for issue in self.condition_issues
            ],
            "marketValueRange": self.market_value_range,
            "tradeInValue": self.trade_in_value,
            "tradeInDescription": self.trade_in_description,
            "aiConfidence": self.ai_confidence,
            "aiConfidenceDescription": self.ai_confidence_description,
        }
