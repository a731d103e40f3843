from __future__ import annotations

import base64
import logging
from typing import Any, Sequence

import anthropic

from assessment.data_models import InlinePhoto, Photo, UrlPhoto
from assessment.findings import VisionOutputError, VisualObservation, parse_visual_observation
from service.settings import ServiceSettings

logger = logging.getLogger(__name__)

INSPECTOR_PROMPT = """You are an automotive visual inspector.
Analyze the following photos and notes. Extract visible condition issues ONLY if they are clearly supported by the images or explicitly stated in the description.

For every issue give:
- issueKey: one of exterior_scratches, dents, paint_fade, rust, glass_chips, wheel_curb_rash, tire_wear, interior_wear, odor, dashboard_warning, mods, lights_damage, undercarriage_leak, missing_parts
- title: short title
- description: concise description
- icon: a concise lucide-react icon name, e.g. "Car", "Armchair", "Wrench"
- severity: integer 1-5 (1=minor, 5=severe)
- confidence: number 0-1

Also estimate cleanliness (rough/average/clean/excellent), an overall comment, and coverage:
the angles observed (front, rear, left, right, interior, dash, odometer, engine_bay), the photo count,
and a photoQualityScore between 0 and 1.

Assumptions you MUST avoid:
- Do not infer mechanical problems that are not visually indicated.
- If unsure, omit the issue or set very low confidence.

Return ONLY a JSON object with this exact structure:

{
  "observations": {
    "exterior": [], "interior": [], "tires_wheels": [],
    "glass_lights": [], "mechanical": [], "other": []
  },
  "cleanliness": "clean",
  "overallComment": "...",
  "coverage": {"angles": ["front"], "photoCount": 1, "photoQualityScore": 0.8}
}

Each observations array holds issue objects with the fields listed above.
Return raw JSON only, no markdown fences."""


def photo_block(photo: Photo) -> dict[str, Any]:
    if isinstance(photo, UrlPhoto):
        return {"type": "image", "source": {"type": "url", "url": photo.url}}
    if isinstance(photo, InlinePhoto):
        data = photo.data
        if isinstance(data, bytes):
            data = base64.b64encode(data).decode("ascii")
        return {
            "type": "image",
            "source": {"type": "base64", "media_type": photo.media_type, "data": data},
        }
    raise TypeError(f"unsupported photo payload: {type(photo).__name__}")


def build_content(mileage: int, description: str, photos: Sequence[Photo]) -> list[dict[str, Any]]:
    content: list[dict[str, Any]] = [
        {"type": "text", "text": INSPECTOR_PROMPT},
        {"type": "text", "text": f"Mileage: {mileage}"},
        {"type": "text", "text": f"User description: {description or ''}"},
    ]
    content.extend(photo_block(p) for p in photos)
    return content


class ClaudeVisionInterpreter:
    """Vision interpretation on the async Anthropic SDK.

    SDK errors and timeouts propagate unchanged, as does
    :class:`VisionOutputError` for unparseable replies.
    """

    def __init__(self, client: Any, model: str, max_tokens: int = 2_000) -> None:
        self.client = client
        self.model = model
        self.max_tokens = max_tokens

    @classmethod
    def from_settings(cls, settings: ServiceSettings) -> "ClaudeVisionInterpreter":
        client = anthropic.AsyncAnthropic(
            api_key=settings.anthropic_api_key or None,
            timeout=settings.vision_timeout_seconds,
        )
        return cls(client=client, model=settings.vision_model, max_tokens=settings.vision_max_tokens)

    async def interpret(
        self, *, mileage: int, description: str, photos: Sequence[Photo]
    ) -> VisualObservation:
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            messages=[{"role": "user", "content": build_content(mileage, description, photos)}],
        )
        raw = "".join(
            getattr(block, "text", "") for block in response.content if getattr(block, "type", "") == "text"
        )
        if not raw.strip():
            raise VisionOutputError("vision model returned no text")
        logger.debug("Vision reply: %d chars for %d photos", len(raw), len(photos))
        return parse_visual_observation(raw)
