"""Tests for the destination arrivals index."""

import json

from builders import ARRIVALS_DIR, crs, make_board, make_service, rt

from onward_journeys.adapters.darwin_api import DarwinBoardParser
from onward_journeys.application.arrivals_index import ArrivalsIndex


def _brighton_index() -> ArrivalsIndex:
    data = json.loads((ARRIVALS_DIR / "BTN.json").read_text(encoding="utf-8"))
    return ArrivalsIndex.from_board(crs("BTN"), DarwinBoardParser().parse_board(data))


class TestArrivalsIndex:
    """Tests for ArrivalsIndex.from_board."""

    def test_recorded_board_is_grouped_by_boarding_station(self) -> None:
        """Given Brighton's arrivals, when indexed, then earlier calls of running trains feed it."""
        index = _brighton_index()

        assert index.destination == crs("BTN")
        assert index.feeder_count == 11
        assert index.feeder_station_count == 6
        assert index.is_feeder(crs("GLD"))
        assert not index.is_feeder(crs("BTN"))

    def test_feeders_are_ordered_by_departure(self) -> None:
        feeders = _brighton_index().feeders_at(crs("RDG"))

        assert [feeder.service.service_id for feeder in feeders] == ["btn_arr_4", "btn_arr_3"]
        assert [feeder.departure for feeder in feeders] == [rt("14:54"), rt("15:00")]
        assert [feeder.arrival for feeder in feeders] == [rt("16:34"), rt("16:40")]

    def test_feeder_leg_runs_to_the_destination(self) -> None:
        feeder = _brighton_index().feeders_at(crs("GTW"))[0]

        leg = feeder.leg

        assert leg.origin == crs("GTW")
        assert leg.destination == crs("BTN")
        assert leg.arrival_time == rt("15:12")

    def test_cancelled_calls_are_not_feeders(self) -> None:
        """Given a train not stopping at one call, when indexed, then that call is left out."""
        service = make_service(
            "svc",
            [("RDG", "14:00"), ("GLD", "14:30"), ("GTW", "15:00"), ("BTN", "15:30")],
            board_index=3,
            cancelled=["GLD"],
        )

        index = ArrivalsIndex.from_board(crs("BTN"), make_board("BTN", [service]))

        assert index.is_feeder(crs("RDG"))
        assert not index.is_feeder(crs("GLD"))
        assert index.feeder_count == 2

    def test_unknown_station_has_no_feeders(self) -> None:
        assert _brighton_index().feeders_at(crs("EUS")) == []
