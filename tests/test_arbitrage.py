"""Tests for cross-book arbitrage detection and stake splitting."""

import pytest

from betterbets.ingestion.base import InvalidEventsError
from betterbets.odds.arbitrage import ArbLeg, find_arbitrage, scan_arbitrage, split_stakes
from factories import book, event, h2h_event, market, outcome


class TestFindArbitrage:
    def test_plus_150_both_sides(self):
        """+150 / +150: implied 0.4 + 0.4 = 0.8, ROI 25%, $50 / $50 split."""
        evt = h2h_event({"book_a": 150}, {"book_b": 150})

        record = find_arbitrage(evt, stake_total=100)

        assert record is not None
        assert record.roi == pytest.approx(25.0)
        assert [(leg.name, leg.odds, leg.book) for leg in record.legs] == [
            ("Home", 150, "book_a"),
            ("Away", 150, "book_b"),
        ]
        assert [s.stake for s in record.stakes] == pytest.approx([50.0, 50.0])
        assert [s.share_percent for s in record.stakes] == pytest.approx([50.0, 50.0])

    def test_standard_vig_is_not_arbitrage(self):
        evt = h2h_event({"book_a": -110}, {"book_b": -110})
        assert find_arbitrage(evt) is None

    def test_break_even_is_not_arbitrage(self):
        """+100 / +100 sums to exactly 1.0: ROI 0 is not emitted."""
        evt = h2h_event({"book_a": 100}, {"book_b": 100})
        assert find_arbitrage(evt) is None

    def test_single_outcome_skipped(self):
        evt = h2h_event({"book_a": 500, "book_b": 450}, {})
        assert find_arbitrage(evt) is None

    def test_uses_best_price_across_books(self):
        evt = h2h_event(
            {"book_a": 120, "book_b": 135, "book_c": 110},
            {"book_a": -125, "book_b": -140, "book_c": -105},
        )
        record = find_arbitrage(evt)

        assert record is not None
        legs = {leg.name: leg for leg in record.legs}
        assert (legs["Home"].odds, legs["Home"].book) == (135, "book_b")
        assert (legs["Away"].odds, legs["Away"].book) == (-105, "book_c")
        expected = (1 / (1 / 2.35 + 1 / (1 + 100 / 105)) - 1) * 100
        assert record.roi == pytest.approx(expected)

    def test_ignores_non_h2h_markets(self):
        evt = event(
            book("a", market("totals", outcome("Over", 150, 220.5))),
            book("b", market("totals", outcome("Under", 150, 220.5))),
        )
        assert find_arbitrage(evt) is None

    def test_three_way_market(self):
        evt = event(
            book("a", market("h2h", outcome("Home", 300), outcome("Draw", 200), outcome("Away", 150))),
            book("b", market("h2h", outcome("Home", 250), outcome("Draw", 260), outcome("Away", 190))),
        )
        record = find_arbitrage(evt, stake_total=100)

        assert record is not None
        assert len(record.legs) == 3
        assert sum(s.stake for s in record.stakes) == pytest.approx(100.0)

    def test_no_stakes_unless_requested(self):
        evt = h2h_event({"book_a": 150}, {"book_b": 150})
        assert find_arbitrage(evt).stakes == ()


class TestSplitStakes:
    def test_equal_payout_per_leg(self):
        legs = [ArbLeg("Home", 200, "a"), ArbLeg("Away", 110, "b")]
        stakes = split_stakes(legs, 250)

        assert sum(s.stake for s in stakes) == pytest.approx(250)
        assert sum(s.share_percent for s in stakes) == pytest.approx(100)
        payouts = [stakes[0].stake * 3.0, stakes[1].stake * 2.1]
        assert payouts[0] == pytest.approx(payouts[1])


class TestScanArbitrage:
    def test_sorted_by_roi(self):
        small = h2h_event({"a": 105}, {"b": 105}, event_id="small")
        large = h2h_event({"a": 150}, {"b": 150}, event_id="large")
        none = h2h_event({"a": -110}, {"b": -110}, event_id="none")

        results = scan_arbitrage([small, none, large])

        assert [r.event_id for r in results] == ["large", "small"]
        assert results[0].roi > results[1].roi

    def test_to_dict(self):
        evt = h2h_event({"book_a": 150}, {"book_b": 150})
        payload = scan_arbitrage([evt], stake_total=100)[0].to_dict()

        assert payload["match"] == "Home vs Away"
        assert payload["time"] == "2026-10-19T23:05:00Z"
        assert payload["legs"][0] == {"name": "Home", "odd": 150, "book": "book_a"}
        assert payload["stakes"][1]["sharePercent"] == pytest.approx(50.0)

    def test_idempotent(self):
        events = [h2h_event({"a": 150}, {"b": 150}), h2h_event({"a": 120}, {"b": 110}, event_id="e2")]
        assert scan_arbitrage(events, stake_total=100) == scan_arbitrage(events, stake_total=100)

    def test_invalid_input_raises(self):
        with pytest.raises(InvalidEventsError):
            scan_arbitrage({"not": "a list"})
