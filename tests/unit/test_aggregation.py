"""Unit tests for dashboard metrics aggregation."""

from datetime import UTC, datetime

from app.services.aggregation import (
    ALL_ELECTIONS,
    aggregate,
    candidates_for,
    format_percentage,
    resolve_election_filter,
)
from app.services.models import Candidate


class TestAggregate:
    """Test metrics over the latest submission of each station."""

    def test_totals_over_latest_submissions(self, results, candidates):
        metrics = aggregate(results, ALL_ELECTIONS, candidates)

        assert metrics.total_registered == 19500
        assert metrics.total_turnout == 13650
        assert metrics.turnout_percentage == "70.00"
        assert metrics.total_submissions == 2
        assert metrics.total_invalid_ballots == 160
        assert metrics.total_blank_ballots == 40
        assert metrics.total_valid_votes == 13450
        assert {r.id for r in metrics.filtered_results_for_table} == {"r2", "r3"}

    def test_candidate_totals_sorted_by_votes(self, results, candidates):
        metrics = aggregate(results, "e1", candidates)

        assert [(c.name, c.votes) for c in metrics.candidate_totals] == [
            ("Bakary Sow", 6900),
            ("Awa Diop", 6100),
            ("Coumba Fall", 450),
        ]
        assert metrics.candidate_totals[0].party == "Parti B"

    def test_ties_keep_candidate_order(self, make_result):
        candidates = [
            Candidate(id="a", election_id="e1", name="A"),
            Candidate(id="b", election_id="e1", name="B"),
            Candidate(id="c", election_id="e1", name="C"),
        ]
        results = [
            make_result(turnout=70, registered_voters=100, votes={"A": 10, "B": 30, "C": 30})
        ]

        metrics = aggregate(results, "e1", candidates)

        assert [(c.name, c.votes) for c in metrics.candidate_totals] == [
            ("B", 30),
            ("C", 30),
            ("A", 10),
        ]

    def test_zero_vote_candidate_is_listed(self, make_result, candidates):
        results = [make_result(turnout=100, votes={"Awa Diop": 100})]

        metrics = aggregate(results, "e1", candidates)

        totals = {c.name: c.votes for c in metrics.candidate_totals}
        assert totals == {"Awa Diop": 100, "Bakary Sow": 0, "Coumba Fall": 0}

    def test_candidates_of_other_elections_excluded(self, results, candidates):
        metrics = aggregate(results, "e1", candidates)

        assert "Daouda Ndiaye" not in [c.name for c in metrics.candidate_totals]

    def test_all_elections_lists_every_candidate(self, results, candidates):
        metrics = aggregate(results, ALL_ELECTIONS, candidates)

        assert len(metrics.candidate_totals) == 4

    def test_filter_by_election(self, make_result, candidates):
        results = [
            make_result(id="a", election_id="e1", registered_voters=100, turnout=50),
            make_result(id="b", election_id="e2", registered_voters=300, turnout=90),
        ]

        metrics = aggregate(results, "e2", candidates)

        assert metrics.total_registered == 300
        assert metrics.turnout_percentage == "30.00"

    def test_station_shared_across_elections_counted_once_for_all(self, make_result):
        """The dashboard key is the station name alone."""
        results = [
            make_result(
                id="a",
                election_id="e1",
                registered_voters=100,
                turnout=50,
                timestamp=datetime(2025, 10, 12, 18, 0, tzinfo=UTC),
            ),
            make_result(
                id="b",
                election_id="e2",
                registered_voters=300,
                turnout=100,
                timestamp=datetime(2025, 11, 16, 18, 0, tzinfo=UTC),
            ),
        ]

        metrics = aggregate(results, ALL_ELECTIONS, [])

        assert metrics.total_submissions == 1
        assert metrics.total_registered == 300

    def test_valid_votes_clamped_at_zero(self, make_result):
        results = [make_result(turnout=10, invalid_ballots=8, blank_ballots=5)]

        metrics = aggregate(results, ALL_ELECTIONS, [])

        assert metrics.total_valid_votes == 0

    def test_empty_input(self, candidates):
        metrics = aggregate([], ALL_ELECTIONS, [])

        assert metrics.total_registered == 0
        assert metrics.turnout_percentage == "0.00"
        assert metrics.total_submissions == 0
        assert metrics.candidate_totals == []
        assert metrics.filtered_results_for_table == []

    def test_zero_registered(self, make_result):
        results = [make_result(registered_voters=0, turnout=0)]

        assert aggregate(results, ALL_ELECTIONS, []).turnout_percentage == "0.00"


class TestHelpers:
    """Test filter resolution and formatting helpers."""

    def test_format_percentage(self):
        assert format_percentage(13650, 19500) == "70.00"
        assert format_percentage(1, 3) == "33.33"
        assert format_percentage(5, 0) == "0.00"

    def test_resolve_single_election(self, elections):
        assert resolve_election_filter(elections[:1], ALL_ELECTIONS) == "e1"
        assert resolve_election_filter(elections[:1], None) == "e1"

    def test_resolve_several_elections(self, elections):
        assert resolve_election_filter(elections, ALL_ELECTIONS) == ALL_ELECTIONS
        assert resolve_election_filter(elections, "e2") == "e2"

    def test_resolve_unknown_election(self, elections):
        assert resolve_election_filter(elections, "missing") == ALL_ELECTIONS
        assert resolve_election_filter([], "e1") == ALL_ELECTIONS

    def test_candidates_for(self, candidates):
        assert [c.id for c in candidates_for(candidates, "e2")] == ["c4"]
        assert len(candidates_for(candidates, ALL_ELECTIONS)) == 4
