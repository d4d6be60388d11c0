"""Tests for +EV edge scanning.

Covers:
1. Edge math against the devigged fair line
2. Clamp-boundary exclusion
3. Anomalous-edge exclusion
4. Minimum edge threshold
5. Market bucket and book filters
6. Deterministic ids, labels and ordering
7. Malformed input tolerance and structural failure
"""

import pytest

from betterbets.ingestion.base import Event, InvalidEventsError, parse_events
from betterbets.odds.arbitrage import scan_arbitrage
from betterbets.odds.conversion import american_to_decimal, implied_probability
from betterbets.odds.edge import (
    clamp_min_edge,
    edge_record_id,
    format_time_label,
    passes_edge_filter,
    scan_edges,
)
from betterbets.odds.markets import classify_market
from factories import book, event, h2h_event, market, outcome, raw_event


def _mixed_market_event():
    """Two books quoting h2h, totals and a player prop, each with both sides."""
    return event(
        book(
            "book_a",
            market("h2h", outcome("Home", 110), outcome("Away", -130)),
            market("totals", outcome("Over", -105, 220.5), outcome("Under", -115, 220.5)),
            market("player_points", outcome("Over", -110, 25.5), outcome("Under", -120, 25.5)),
        ),
        book(
            "book_b",
            market("h2h", outcome("Home", 100), outcome("Away", -120)),
            market("totals", outcome("Over", -110, 220.5), outcome("Under", -110, 220.5)),
            market("player_points", outcome("Over", -115, 25.5), outcome("Under", -105, 25.5)),
        ),
    )


class TestMarketClassifier:
    def test_main_markets(self):
        for key in ("h2h", "spreads", "totals"):
            assert classify_market(key) == "main"

    def test_everything_else_is_props(self):
        for key in ("player_points", "h2h_lay", "alternate_spreads", "", "btts"):
            assert classify_market(key) == "props"


class TestEdgeMath:
    def test_edges_against_fair_line(self):
        """Each book's edge is quoted decimal over fair decimal, minus one."""
        evt = h2h_event(
            {"book_a": 110, "book_b": 100},
            {"book_a": -130, "book_b": -120},
        )
        home = implied_probability(110)
        away = implied_probability(-120)
        fair_home = home / (home + away)
        fair_away = away / (home + away)

        results = scan_edges([evt], min_edge=-10)
        by_id = {r.id: r for r in results}

        assert len(results) == 4
        assert by_id["evt1-book_a-h2h-Home"].ev_percent == pytest.approx(
            (american_to_decimal(110) * fair_home - 1) * 100
        )
        assert by_id["evt1-book_a-h2h-Away"].ev_percent == pytest.approx(
            (american_to_decimal(-130) * fair_away - 1) * 100
        )
        assert by_id["evt1-book_b-h2h-Home"].ev_percent == pytest.approx(
            (american_to_decimal(100) * fair_home - 1) * 100
        )
        record = by_id["evt1-book_a-h2h-Home"]
        assert record.fair_prob == pytest.approx(fair_home)
        assert record.fair_dec == pytest.approx(1 / fair_home)
        assert record.fair_am == 115
        assert record.user_dec == pytest.approx(2.1)

    def test_sorted_by_edge_descending(self):
        evt = h2h_event(
            {"book_a": 110, "book_b": 100},
            {"book_a": -130, "book_b": -120},
        )
        results = scan_edges([evt], min_edge=-10)
        edges = [r.ev_percent for r in results]
        assert edges == sorted(edges, reverse=True)
        assert results[-1].id == "evt1-book_b-h2h-Home"

    def test_positive_edge_when_books_disagree(self):
        """Best prices from different books sum under 1, so both legs show +EV."""
        evt = h2h_event(
            {"book_a": 150, "book_b": 130},
            {"book_a": -140, "book_b": -120},
        )
        results = scan_edges([evt])

        assert {r.id for r in results} == {"evt1-book_a-h2h-Home", "evt1-book_b-h2h-Away"}
        for r in results:
            assert r.ev_percent == pytest.approx(5.769, abs=1e-3)

    def test_default_min_edge_drops_negative_edges(self):
        evt = h2h_event({"book_a": -110}, {"book_a": -110})
        assert scan_edges([evt]) == []


class TestSafeguards:
    def test_single_outcome_market_excluded(self):
        """A one-sided group devigs to 1.0, clamps, and is not reported."""
        evt = event(book("a", market("player_points", outcome("Over", 150, 25.5))))
        assert scan_edges([evt], min_edge=-10) == []

    def test_lopsided_market_excluded(self):
        evt = h2h_event({"a": 5000}, {"a": -10000})
        assert scan_edges([evt], min_edge=-10) == []

    def test_clamped_sibling_does_not_hide_other_outcomes(self):
        """Only the clamped outcome is dropped."""
        evt = event(
            book(
                "a",
                market("h2h", outcome("Home", -110), outcome("Away", -110)),
                market("player_points", outcome("Over", 150, 25.5)),
            )
        )
        results = scan_edges([evt], min_edge=-10)
        assert {r.market_key for r in results} == {"h2h"}
        assert len(results) == 2

    def test_anomalous_edges_excluded(self):
        """Edges beyond ±80% are treated as bad data."""
        evt = h2h_event(
            {"book_a": 400, "book_b": 1000},
            {"book_a": 300, "book_b": -500},
        )
        results = scan_edges([evt], min_edge=-10)

        assert [r.id for r in results] == ["evt1-book_a-h2h-Home"]
        assert results[0].ev_percent == pytest.approx(33.333, abs=1e-3)

    def test_edge_filter_boundaries(self):
        assert not passes_edge_filter(4.9, 5)
        assert passes_edge_filter(5.0, 5)
        assert passes_edge_filter(80.0, 0)
        assert not passes_edge_filter(80.01, 0)
        assert not passes_edge_filter(-80.01, -100)

    def test_min_edge_clamped(self):
        assert clamp_min_edge(-50) == -10
        assert clamp_min_edge(500) == 100
        assert clamp_min_edge(3.5) == 3.5

    def test_min_edge_threshold_applied(self):
        evt = h2h_event(
            {"book_a": 150, "book_b": 130},
            {"book_a": -140, "book_b": -120},
        )
        assert len(scan_edges([evt], min_edge=5.7)) == 2
        assert scan_edges([evt], min_edge=5.8) == []


class TestFilters:
    def test_main_bucket_excludes_props(self):
        results = scan_edges([_mixed_market_event()], market_type="main", min_edge=-10)
        assert results
        assert {r.market_key for r in results} <= {"h2h", "spreads", "totals"}
        assert {r.bucket for r in results} == {"main"}

    def test_props_bucket_excludes_main(self):
        results = scan_edges([_mixed_market_event()], market_type="props", min_edge=-10)
        assert results
        assert {r.market_key for r in results} == {"player_points"}

    def test_all_bucket(self):
        results = scan_edges([_mixed_market_event()], market_type="all", min_edge=-10)
        assert {r.market_key for r in results} == {"h2h", "totals", "player_points"}

    def test_book_filter(self):
        results = scan_edges([_mixed_market_event()], book="book_b", min_edge=-10)
        assert results
        assert {r.book_key for r in results} == {"book_b"}

    def test_book_filter_still_devigs_across_all_books(self):
        """Restricting output to one book does not narrow the fair line."""
        full = {r.id: r for r in scan_edges([_mixed_market_event()], min_edge=-10)}
        only_b = scan_edges([_mixed_market_event()], book="book_b", min_edge=-10)
        for r in only_b:
            assert r.fair_prob == full[r.id].fair_prob


class TestRecordShape:
    def test_ids_labels_and_point(self):
        results = scan_edges([_mixed_market_event()], market_type="props", min_edge=-10)
        record = next(r for r in results if r.id == "evt1-book_a-player_points-Over-25.5")

        assert record.match == "Home vs Away"
        assert record.time == "Oct 19, 11:05 PM"
        assert record.league == "NBA"
        assert record.book_name == "Book A"
        assert record.market_label == "player points"
        assert record.point == 25.5
        assert record.odds == -110

    def test_to_dict_camel_case(self):
        evt = h2h_event({"book_a": 150, "book_b": 130}, {"book_a": -140, "book_b": -120})
        payload = scan_edges([evt])[0].to_dict()
        for key in ("bookKey", "bookName", "marketKey", "outcomeName", "evPercent", "fairAm", "userDec"):
            assert key in payload

    def test_id_falls_back_to_commence_time(self):
        evt = event(event_id=None)
        assert (
            edge_record_id(evt, "a", "h2h", "Home", None)
            == "2026-10-19T23:05:00Z-a-h2h-Home"
        )

    def test_id_formats_whole_points(self):
        evt = event()
        assert edge_record_id(evt, "a", "spreads", "Home", -7.0) == "evt1-a-spreads-Home--7"

    def test_id_never_uses_exponent_notation(self):
        evt = event()
        assert edge_record_id(evt, "a", "totals", "Over", 1234567.5) == "evt1-a-totals-Over-1234567.5"
        assert edge_record_id(evt, "a", "totals", "Over", 12345678.0) == "evt1-a-totals-Over-12345678"

    def test_league_falls_back_to_requested_sport(self):
        evt = h2h_event(
            {"book_a": 150, "book_b": 130},
            {"book_a": -140, "book_b": -120},
            sport_title=None,
        )
        results = scan_edges([evt], league="basketball_nba")
        assert {r.league for r in results} == {"basketball_nba"}

    def test_time_label(self):
        assert format_time_label("2026-03-07T01:30:00Z") == "Mar 7, 1:30 AM"
        assert format_time_label("2026-10-19T19:05:00-04:00") == "Oct 19, 11:05 PM"
        assert format_time_label("2026-10-19T23:05:00") == "Oct 19, 11:05 PM"
        assert format_time_label("not a date") == ""
        assert format_time_label(None) == ""


class TestInputHandling:
    def test_idempotent(self):
        """Scanning the same batch twice yields identical output."""
        events = [_mixed_market_event(), h2h_event({"x": 150, "y": 130}, {"x": -140, "y": -120})]
        first = scan_edges(events, min_edge=-10)
        second = scan_edges(events, min_edge=-10)
        assert first == second
        assert [r.to_dict() for r in first] == [r.to_dict() for r in second]

    def test_malformed_outcomes_skipped(self):
        payload = [
            raw_event(
                book(
                    "a",
                    market(
                        "h2h",
                        outcome("Home", "abc"),
                        outcome("Away", 0),
                        outcome("Draw", None),
                    ),
                    {"key": "totals"},
                    "not a market",
                ),
                {"key": "b", "markets": "nope"},
            ),
            {"id": "evt2", "bookmakers": None},
        ]
        assert scan_edges(parse_events(payload), min_edge=-10) == []

    def test_empty_batch(self):
        assert scan_edges([]) == []

    def test_event_without_identity_rejected(self):
        anonymous = Event(
            id=None,
            sport_key="basketball_nba",
            sport_title="NBA",
            commence_time=None,
            home_team="Home",
            away_team="Away",
        )
        with pytest.raises(InvalidEventsError, match="neither id nor commence_time"):
            scan_edges([h2h_event({"a": 150}, {"b": 150}), anonymous])
        with pytest.raises(InvalidEventsError):
            scan_arbitrage([anonymous])

    @pytest.mark.parametrize("bad", [None, "events", {"id": "evt1"}, [{"id": "evt1"}]])
    def test_structurally_invalid_input_raises(self, bad):
        with pytest.raises(InvalidEventsError):
            scan_edges(bad)
