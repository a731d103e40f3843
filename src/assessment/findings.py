from __future__ import annotations

import json
import logging
import re
from typing import Any, Literal, Mapping, Protocol, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from assessment.data_models import IssueKey, Photo

logger = logging.getLogger(__name__)

Angle = Literal["front", "rear", "left", "right", "interior", "dash", "odometer", "engine_bay"]
Cleanliness = Literal["rough", "average", "clean", "excellent"]

CATEGORY_ORDER: tuple[str, ...] = (
    "exterior",
    "interior",
    "tires_wheels",
    "glass_lights",
    "mechanical",
    "other",
)


class VisionOutputError(ValueError):
    """The vision model returned something that is not a usable observation."""


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Finding(_Frozen):
    issue_key: IssueKey = Field(alias="issueKey")
    title: str = Field(min_length=2)
    description: str = Field(min_length=2)
    icon: str = Field(min_length=2)
    severity: int = Field(ge=1, le=5)
    confidence: float = Field(ge=0, le=1)


class Coverage(_Frozen):
    angles: tuple[Angle, ...] = ()
    photo_count: int = Field(alias="photoCount", ge=0)
    photo_quality_score: float = Field(alias="photoQualityScore", ge=0, le=1)

    @field_validator("angles")
    @classmethod
    def _distinct_angles(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(dict.fromkeys(value))


class Observations(_Frozen):
    exterior: tuple[Finding, ...] = ()
    interior: tuple[Finding, ...] = ()
    tires_wheels: tuple[Finding, ...] = ()
    glass_lights: tuple[Finding, ...] = ()
    mechanical: tuple[Finding, ...] = ()
    other: tuple[Finding, ...] = ()


class VisualObservation(_Frozen):
    observations: Observations = Field(default_factory=Observations)
    cleanliness: Cleanliness
    overall_comment: str = Field(alias="overallComment", min_length=2)
    coverage: Coverage


class VisionInterpreter(Protocol):
    async def interpret(
        self, *, mileage: int, description: str, photos: Sequence[Photo]
    ) -> VisualObservation: ...


def strip_fences(text: str) -> str:
    text = text.strip()
    text = re.sub(r"^```(?:json)?\s*", "", text)
    text = re.sub(r"\s*```$", "", text)
    return text.strip()


def _usable_findings(category: str, items: Any) -> list[Finding]:
    if items is None:
        return []
    if not isinstance(items, list):
        raise VisionOutputError(f"category {category!r} is not a list")
    kept: list[Finding] = []
    for idx, item in enumerate(items):
        try:
            kept.append(Finding.model_validate(item))
        except ValidationError as exc:
            logger.warning(
                "Dropping malformed finding %s[%d]: %s",
                category,
                idx,
                exc.errors(include_url=False),
            )
    return kept


def parse_visual_observation(payload: Mapping[str, Any] | str) -> VisualObservation:
    """Validate raw vision-model output.

    Malformed findings are dropped one by one, but a reply whose findings
    were all malformed raises :class:`VisionOutputError`, as does anything
    wrong with the envelope (coverage, cleanliness, comment, category shape).
    """
    if isinstance(payload, str):
        try:
            payload = json.loads(strip_fences(payload))
        except json.JSONDecodeError as exc:
            raise VisionOutputError(f"vision output is not JSON: {exc}") from exc
    if not isinstance(payload, Mapping):
        raise VisionOutputError("vision output is not a JSON object")

    raw_observations = payload.get("observations", {})
    if raw_observations is None:
        raw_observations = {}
    if not isinstance(raw_observations, Mapping):
        raise VisionOutputError("observations is not an object")
    observations = {
        category: _usable_findings(category, raw_observations.get(category, []))
        for category in CATEGORY_ORDER
    }
    supplied = sum(len(raw_observations.get(category) or []) for category in CATEGORY_ORDER)
    if supplied and not any(observations.values()):
        raise VisionOutputError(f"all {supplied} findings in the vision output were malformed")

    try:
        return VisualObservation.model_validate({**payload, "observations": observations})
    except ValidationError as exc:
        raise VisionOutputError(str(exc)) from exc


def flatten_findings(observation: VisualObservation) -> tuple[Finding, ...]:
    grouped = observation.observations
    return tuple(finding for category in CATEGORY_ORDER for finding in getattr(grouped, category))
