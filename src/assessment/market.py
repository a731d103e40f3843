from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np
import pandas as pd

from assessment.config import DEFAULT_CONFIG, AssessmentConfig
from assessment.data_models import Listing
from assessment.numeric import percentile, simple_regression

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MarketValues:
    p25: float | None = None
    p50: float | None = None
    p75: float | None = None
    sample_size: int = 0

    @property
    def is_known(self) -> bool:
        return self.p25 is not None and self.p50 is not None and self.p75 is not None


def valid_listing_frame(listings: Sequence[Listing]) -> pd.DataFrame:
    """Listings with a finite price and finite miles, as a float frame."""
    frame = pd.DataFrame(
        [{"price": listing.price, "miles": listing.miles} for listing in listings],
        columns=["price", "miles"],
    )
    frame = frame.apply(pd.to_numeric, errors="coerce").astype(float)
    finite = np.isfinite(frame["price"].to_numpy()) & np.isfinite(frame["miles"].to_numpy())
    return frame[finite].reset_index(drop=True)


def mileage_adjusted_prices(frame: pd.DataFrame, subject_miles: float) -> np.ndarray:
    """Re-price every listing as if it had ``subject_miles`` on the odometer, sorted ascending."""
    slope, _ = simple_regression(frame["miles"].to_numpy(), frame["price"].to_numpy())
    adjusted = frame["price"] + slope * (subject_miles - frame["miles"])
    return np.sort(adjusted.to_numpy())


def clip_outliers(sorted_prices: np.ndarray, fence: float = 1.5) -> np.ndarray:
    q1 = percentile(sorted_prices, 0.25)
    q3 = percentile(sorted_prices, 0.75)
    iqr = q3 - q1
    lo = q1 - fence * iqr
    hi = q3 + fence * iqr
    return sorted_prices[(sorted_prices >= lo) & (sorted_prices <= hi)]


def compute_market_values(
    listings: Sequence[Listing] | None,
    subject_miles: float,
    config: AssessmentConfig = DEFAULT_CONFIG,
) -> MarketValues:
    if not listings:
        return MarketValues()

    frame = valid_listing_frame(listings)
    if len(frame) < config.min_comparables:
        logger.debug("Only %d usable comparables out of %d", len(frame), len(listings))
        return MarketValues()

    adjusted = mileage_adjusted_prices(frame, subject_miles)
    clipped = clip_outliers(adjusted, fence=config.iqr_fence)
    if clipped.size == 0:
        return MarketValues()

    return MarketValues(
        p25=percentile(clipped, 0.25),
        p50=percentile(clipped, 0.5),
        p75=percentile(clipped, 0.75),
        sample_size=int(clipped.size),
    )
