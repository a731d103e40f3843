import logging
from datetime import date

import pytest

from assessment.data_models import InlinePhoto, Listing, UrlPhoto, VehicleIdentity, media_type_for_path
from assessment.engine import AssessmentEngine
from assessment.findings import parse_visual_observation
from service.logging_config import JSONFormatter, configure_logging
from service.market_data import MarketCheckClient
from service.runner import AssessmentInputError, AssessmentRunner, Submission, load_photos
from service.settings import ServiceSettings
from service.vin import VinDecoder
from service.vision import ClaudeVisionInterpreter


_OBSERVATION = {
    "observations": {
        "interior": [
            {
                "issueKey": "odor",
                "title": "Smoke odor",
                "description": "Owner notes smoke smell",
                "icon": "Wind",
                "severity": 1,
                "confidence": 0.6,
            }
        ]
    },
    "cleanliness": "average",
    "overallComment": "Interior needs detailing",
    "coverage": {"angles": ["interior", "dash"], "photoCount": 2, "photoQualityScore": 0.5},
}


class FakeVision:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.photos = None

    async def interpret(self, *, mileage, description, photos):
        self.photos = photos
        if self.error is not None:
            raise self.error
        return parse_visual_observation(_OBSERVATION)


class FakeVinDecoder:
    def __init__(self, identity: VehicleIdentity | None) -> None:
        self.identity = identity

    async def decode(self, vin):
        return self.identity


class FakeMarket:
    def __init__(self, listings) -> None:
        self.listings = listings
        self.calls: list[dict] = []

    async def fetch_listings(self, **kwargs):
        self.calls.append(kwargs)
        return self.listings


class RecordingSink:
    def __init__(self) -> None:
        self.saved: list[tuple] = []

    async def save(self, report, submission_id):
        self.saved.append((report, submission_id))


def _listings():
    return [Listing(price=p, miles=40000) for p in (14000, 14500, 15000, 15500)]


def _runner(vision, identity, market, sink) -> AssessmentRunner:
    engine = AssessmentEngine(vision, today=lambda: date(2026, 10, 19))
    return AssessmentRunner(engine, FakeVinDecoder(identity), market, sink)


def test_media_type_for_path():
    assert media_type_for_path("uploads/a.PNG") == "image/png"
    assert media_type_for_path("a.webp") == "image/webp"
    assert media_type_for_path("a.gif") == "image/gif"
    assert media_type_for_path("a.heic") == "image/jpeg"
    assert media_type_for_path("no-extension") == "image/jpeg"


def test_load_photos_skips_unreadable(tmp_path, caplog):
    good = tmp_path / "front.png"
    good.write_bytes(b"\x89PNG-data")
    empty = tmp_path / "empty.jpg"
    empty.write_bytes(b"")
    with caplog.at_level(logging.WARNING, logger="service.runner"):
        photos = load_photos((str(good), str(tmp_path / "missing.jpg"), str(empty), "https://cdn.example.com/r.jpg"))
    assert photos == [InlinePhoto(b"\x89PNG-data", "image/png"), UrlPhoto("https://cdn.example.com/r.jpg")]
    assert len(caplog.records) == 2


@pytest.mark.asyncio
async def test_runner_assesses_and_saves(tmp_path):
    photo = tmp_path / "dash.jpg"
    photo.write_bytes(b"\xff\xd8jpeg")
    vision = FakeVision()
    market = FakeMarket(_listings())
    sink = RecordingSink()
    identity = VehicleIdentity(make="MAZDA", model="CX-5", year=2018, vin="JM3KFBCM1J0000001")

    report = await _runner(vision, identity, market, sink).run(
        Submission("sub-1", "JM3KFBCM1J0000001", 40000, "Smells of smoke", (str(photo),))
    )

    assert market.calls == [{"year": 2018, "make": "MAZDA", "model": "CX-5"}]
    assert vision.photos == (InlinePhoto(b"\xff\xd8jpeg", "image/jpeg"),)
    assert sink.saved == [(report, "sub-1")]
    assert report.vehicle_details.make == "MAZDA"
    assert report.visual_score == 90
    assert report.market_value_range == "$14,375 - $15,125"


@pytest.mark.asyncio
async def test_runner_without_identity_skips_market():
    market = FakeMarket(_listings())
    sink = RecordingSink()
    report = await _runner(FakeVision(), None, market, sink).run(
        Submission("sub-2", "BADVIN", 1000, "", ("https://cdn.example.com/a.jpg",))
    )
    assert market.calls == []
    assert report.vehicle_details.make == "Unknown"
    assert report.vehicle_details.year == 2026
    assert report.vehicle_details.vin == "BADVIN"
    assert report.trade_in_value == "N/A"


@pytest.mark.asyncio
async def test_runner_requires_photos(caplog):
    sink = RecordingSink()
    with caplog.at_level(logging.ERROR, logger="service.runner"):
        with pytest.raises(AssessmentInputError):
            await _runner(FakeVision(), None, FakeMarket([]), sink).run(
                Submission("sub-3", "VIN", 1000, "", ("/nonexistent/photo.jpg",))
            )
    assert sink.saved == []
    assert any("sub-3" in r.getMessage() and r.exc_info for r in caplog.records)


@pytest.mark.asyncio
async def test_runner_propagates_vision_failure(caplog):
    sink = RecordingSink()
    runner = _runner(FakeVision(error=RuntimeError("vision down")), None, FakeMarket([]), sink)
    with caplog.at_level(logging.ERROR, logger="service.runner"):
        with pytest.raises(RuntimeError, match="vision down"):
            await runner.run(Submission("sub-4", "VIN", 1000, "", ("https://cdn.example.com/a.jpg",)))
    assert sink.saved == []
    assert any("sub-4" in r.getMessage() for r in caplog.records)


@pytest.mark.asyncio
async def test_runner_generates_submission_id_when_blank():
    sink = RecordingSink()
    await _runner(FakeVision(), None, FakeMarket([]), sink).run(
        Submission("", "VIN", 1000, "", ("https://cdn.example.com/a.jpg",))
    )
    saved_id = sink.saved[0][1]
    assert len(saved_id) == 12
    int(saved_id, 16)


def test_runner_from_settings_wires_collaborators(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
    monkeypatch.setenv("VISION_MODEL", "vision-from-env")
    monkeypatch.setenv("NHTSA_BASE_URL", "https://vpic.example.com/api/vehicles/")
    monkeypatch.setenv("VIN_DECODE_TIMEOUT_SECONDS", "3.5")
    monkeypatch.setenv("MARKETCHECK_API_KEY", "mc-key")
    monkeypatch.setenv("MARKETCHECK_BASE_URL", "https://mc.example.com/")
    monkeypatch.setenv("MARKET_TIMEOUT_SECONDS", "7")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    monkeypatch.setenv("LOG_FORMAT", "text")
    sink = RecordingSink()

    runner = AssessmentRunner.from_settings(ServiceSettings(), sink)

    assert runner.sink is sink
    assert isinstance(runner.engine.vision, ClaudeVisionInterpreter)
    assert runner.engine.vision.model == "vision-from-env"
    assert isinstance(runner.vin_decoder, VinDecoder)
    assert runner.vin_decoder.base_url == "https://vpic.example.com/api/vehicles"
    assert runner.vin_decoder.timeout == 3.5
    assert isinstance(runner.market_client, MarketCheckClient)
    assert runner.market_client.api_key == "mc-key"
    assert runner.market_client.base_url == "https://mc.example.com"
    assert runner.market_client.timeout == 7.0
    root = logging.getLogger()
    assert root.level == logging.WARNING
    assert not isinstance(root.handlers[0].formatter, JSONFormatter)
    configure_logging()
