from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from assessment.data_models import (
    AssessmentInput,
    AssessmentReport,
    InlinePhoto,
    Listing,
    Photo,
    UrlPhoto,
    VehicleIdentity,
    media_type_for_path,
)
from assessment.engine import AssessmentEngine
from service.logging_config import bind_submission, configure_logging, get_submission_id
from service.market_data import MarketCheckClient
from service.settings import ServiceSettings
from service.vin import VinDecoder
from service.vision import ClaudeVisionInterpreter

logger = logging.getLogger(__name__)


class AssessmentInputError(RuntimeError):
    pass


class AssessmentSink(Protocol):
    async def save(self, report: AssessmentReport, submission_id: str) -> None: ...


@dataclass(frozen=True)
class Submission:
    submission_id: str
    vin: str
    mileage: int
    description: str = ""
    photo_refs: tuple[str, ...] = ()


def load_photo(ref: str) -> Photo:
    if ref.startswith(("http://", "https://")):
        return UrlPhoto(url=ref)
    return InlinePhoto(data=Path(ref).read_bytes(), media_type=media_type_for_path(ref))


def load_photos(refs: tuple[str, ...]) -> list[Photo]:
    photos: list[Photo] = []
    for ref in refs:
        try:
            photos.append(load_photo(ref))
        except (OSError, ValueError) as exc:
            logger.warning("Skipping photo %s: %s", ref, exc)
    return photos


class AssessmentRunner:
    """Gathers inputs for one submission, runs the engine and hands off the report."""

    def __init__(
        self,
        engine: AssessmentEngine,
        vin_decoder: VinDecoder,
        market_client: MarketCheckClient,
        sink: AssessmentSink,
    ) -> None:
        self.engine = engine
        self.vin_decoder = vin_decoder
        self.market_client = market_client
        self.sink = sink

    @classmethod
    def from_settings(cls, settings: ServiceSettings, sink: AssessmentSink) -> "AssessmentRunner":
        configure_logging(level=settings.log_level, fmt=settings.log_format)
        engine = AssessmentEngine(ClaudeVisionInterpreter.from_settings(settings))
        return cls(
            engine=engine,
            vin_decoder=VinDecoder.from_settings(settings),
            market_client=MarketCheckClient.from_settings(settings),
            sink=sink,
        )

    async def _comparables(self, identity: VehicleIdentity | None) -> tuple[Listing, ...]:
        if identity is None:
            return ()
        listings = await self.market_client.fetch_listings(
            year=identity.year, make=identity.make, model=identity.model
        )
        return tuple(listings)

    async def run(self, submission: Submission) -> AssessmentReport:
        with bind_submission(submission.submission_id or get_submission_id()) as sid:
            logger.info("Starting assessment for submission %s", sid)
            try:
                photos = load_photos(submission.photo_refs)
                if not photos:
                    raise AssessmentInputError("No photos could be loaded for submission")

                identity = await self.vin_decoder.decode(submission.vin)
                comparables = await self._comparables(identity)

                payload = AssessmentInput(
                    mileage=submission.mileage,
                    description=submission.description,
                    photos=tuple(photos),
                    vin=submission.vin,
                    market_comparables=comparables,
                    vehicle_identity=identity,
                )
                logger.info("Running assessment with %d photos, %d comparables", len(photos), len(comparables))
                report = await self.engine.assess(payload)
                await self.sink.save(report, sid)
            except Exception:
                logger.exception("Assessment failed for submission %s", sid)
                raise

            logger.info("Assessment completed for submission %s", sid)
            return report
