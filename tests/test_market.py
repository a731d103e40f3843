import pytest

from assessment.data_models import Listing
from assessment.market import MarketValues, compute_market_values, valid_listing_frame
from assessment.valuation import format_market_range


def _linear_listings():
    miles = [10000, 20000, 30000, 40000, 50000]
    prices = [20000, 19000, 18000, 17000, 16000]
    return [Listing(price=p, miles=m) for p, m in zip(prices, miles)]


def test_unknown_when_no_listings():
    assert compute_market_values(None, 30000) == MarketValues()
    assert compute_market_values([], 30000).is_known is False


def test_unknown_when_prices_missing():
    listings = [Listing(price=None, miles=m) for m in (10000, 20000, 30000, 40000)]
    result = compute_market_values(listings, 30000)
    assert result.p25 is None and result.p50 is None and result.p75 is None


def test_unknown_below_three_valid_rows_regardless_of_junk():
    listings = [
        Listing(price=15000, miles=20000),
        Listing(price=16000, miles=10000),
        Listing(price=None, miles=5000),
        Listing(price=float("nan"), miles=1000),
        Listing(price=14000, miles=None),
        Listing(price=float("inf"), miles=3000),
    ]
    assert compute_market_values(listings, 15000).is_known is False


def test_valid_listing_frame_filters_non_finite():
    frame = valid_listing_frame(
        [Listing(price=1.0, miles=2.0), Listing(price=None, miles=2.0), Listing(price=3.0, miles=float("inf"))]
    )
    assert len(frame) == 1
    assert frame["price"].tolist() == [1.0]


def test_mileage_adjustment_collapses_perfect_line():
    result = compute_market_values(_linear_listings(), 30000)
    assert result.is_known
    assert result.p25 == pytest.approx(18000)
    assert result.p50 == pytest.approx(18000)
    assert result.p75 == pytest.approx(18000)
    assert format_market_range(result) == "$18,000 - $18,000"


def test_line_recovered_at_other_subject_mileage():
    result = compute_market_values(_linear_listings(), 0)
    assert result.p50 == pytest.approx(21000)


def test_invalid_rows_do_not_change_estimate():
    clean = compute_market_values(_linear_listings(), 30000)
    noisy = compute_market_values(
        _linear_listings() + [Listing(price=None, miles=12000), Listing(price=99999, miles=float("nan"))],
        30000,
    )
    assert noisy.p50 == pytest.approx(clean.p50)
    assert noisy.p25 == pytest.approx(clean.p25)


def test_iqr_fence_drops_extreme_listing():
    prices = [15000, 15200, 15400, 15600, 15800, 158000]
    listings = [Listing(price=p, miles=40000) for p in prices]
    result = compute_market_values(listings, 40000)
    assert result.sample_size == 5
    assert result.p25 == pytest.approx(15200)
    assert result.p50 == pytest.approx(15400)
    assert result.p75 == pytest.approx(15600)
