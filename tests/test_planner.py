"""Tests for the onward journey planner."""

from datetime import timedelta

import pytest
from builders import (
    ARRIVALS_DIR,
    FIXTURES_DIR,
    FakeBoardCache,
    crs,
    make_board,
    make_service,
    rt,
)

from onward_journeys.adapters.cache import BoardCache
from onward_journeys.adapters.mock_api import MockBoardProvider
from onward_journeys.application import JourneyPlanner, JourneyPlanningService
from onward_journeys.domain.errors import InvalidAnchor, NoRouteFound
from onward_journeys.domain.models import (
    CoverageReason,
    Leg,
    PlanRequest,
    SearchConfig,
    ServiceCandidate,
    Walk,
    WalkableGraphBuilder,
)


def _fixture_service(**kwargs) -> tuple[JourneyPlanningService, MockBoardProvider]:
    provider = MockBoardProvider(FIXTURES_DIR)
    return JourneyPlanningService(BoardCache(provider), **kwargs), provider


class TestRecordedBoards:
    """End-to-end planning over the recorded Paddington, Reading, Didcot and Oxford boards."""

    @pytest.mark.asyncio
    async def test_direct_journey_on_current_train(self) -> None:
        """Given a passenger on the Bristol train, when planning to Bristol with no changes, then they stay on."""
        service, _ = _fixture_service()
        request = PlanRequest(
            service_id="pad_service_1",
            board_station=crs("PAD"),
            position=0,
            destination=crs("BRI"),
            search_config=SearchConfig(max_changes=0),
        )

        result = await service.plan(request)

        assert not result.is_partial
        assert len(result.journeys) == 1
        journey = result.journeys[0]
        assert journey.is_direct
        assert journey.arrival_time == rt("15:45")
        assert journey.legs[0].identity == "1B10"

    @pytest.mark.asyncio
    async def test_direct_journey_ranks_first_in_full_search(self) -> None:
        """Given default bounds, when some change stations have no data, then the direct train still ranks first."""
        service, _ = _fixture_service()
        request = PlanRequest("pad_service_1", crs("PAD"), 0, crs("BRI"))

        result = await service.plan(request)

        assert result.journeys[0].is_direct
        assert result.journeys[0].arrival_time == rt("15:45")
        alternative = result.journeys[1]
        assert alternative.change_count == 1
        assert alternative.arrival_time == rt("16:24")
        assert alternative.legs[1].service.service_id == "rdg_service_7"

    @pytest.mark.asyncio
    async def test_missing_boards_are_reported_as_coverage_notes(self) -> None:
        service, _ = _fixture_service()
        request = PlanRequest("pad_service_1", crs("PAD"), 0, crs("BRI"))

        result = await service.plan(request)

        assert result.is_partial
        assert {note.reason for note in result.coverage_notes} == {
            CoverageReason.PROVIDER_UNAVAILABLE
        }
        assert {crs("GLD"), crs("GTW"), crs("SWI")} <= set(result.unavailable_stations)

    @pytest.mark.asyncio
    async def test_one_change_at_reading(self) -> None:
        """Given the Oxford train, when heading to Brighton, then the only option changes at Reading."""
        service, provider = _fixture_service()
        request = PlanRequest(
            service_id="pad_service_2",
            board_station=crs("PAD"),
            position=0,
            destination=crs("BTN"),
            search_config=SearchConfig(max_changes=1),
        )

        result = await service.plan(request)

        assert not result.is_partial
        assert len(result.journeys) == 1
        journey = result.journeys[0]
        first, second = journey.legs
        assert first.service.service_id == "pad_service_2"
        assert first.destination == crs("RDG")
        assert first.arrival_time == rt("14:52")
        assert second.service.service_id == "rdg_service_3"
        assert second.departure_time == rt("15:00")
        assert journey.arrival_time == rt("16:40")
        assert journey.min_interchange_margin == timedelta(minutes=8)
        assert set(provider.fetch_calls) == {crs("PAD"), crs("RDG"), crs("DID"), crs("OXF")}
        assert result.boards_requested == 3

    @pytest.mark.asyncio
    async def test_brighton_arrivals_replace_the_reading_board(self) -> None:
        """Given Brighton's arrivals board, when heading there, then the change at Reading comes from it."""
        provider = MockBoardProvider(FIXTURES_DIR, arrivals_dir=ARRIVALS_DIR)
        service = JourneyPlanningService(BoardCache(provider))
        request = PlanRequest(
            "pad_service_2",
            crs("PAD"),
            0,
            crs("BTN"),
            search_config=SearchConfig(max_changes=1),
        )

        result = await service.plan(request)

        assert not result.is_partial
        assert len(result.journeys) == 1
        journey = result.journeys[0]
        assert journey.legs[1].service.service_id == "btn_arr_3"
        assert journey.legs[1].departure_time == rt("15:00")
        assert journey.arrival_time == rt("16:40")
        assert journey.min_interchange_margin == timedelta(minutes=8)
        assert provider.arrival_calls == [crs("BTN")]
        assert crs("RDG") not in provider.fetch_calls
        assert result.boards_requested == 2

    @pytest.mark.asyncio
    async def test_zero_state_budget_returns_empty_partial_result(self) -> None:
        service, _ = _fixture_service()
        request = PlanRequest(
            "pad_service_2",
            crs("PAD"),
            0,
            crs("BTN"),
            search_config=SearchConfig(max_states_expanded=0),
        )

        result = await service.plan(request)

        assert result.journeys == ()
        assert result.is_partial
        assert result.states_expanded == 0
        assert result.coverage_notes[0].reason is CoverageReason.STATE_BUDGET_EXHAUSTED

    @pytest.mark.asyncio
    async def test_expired_service_id(self) -> None:
        service, _ = _fixture_service()

        with pytest.raises(InvalidAnchor):
            await service.plan(PlanRequest("gone_service", crs("PAD"), 0, crs("BTN")))

    @pytest.mark.asyncio
    async def test_position_off_the_service(self) -> None:
        service, _ = _fixture_service()

        with pytest.raises(InvalidAnchor):
            await service.plan(PlanRequest("pad_service_2", crs("PAD"), 9, crs("BTN")))

    @pytest.mark.asyncio
    async def test_already_at_destination(self) -> None:
        service, _ = _fixture_service()

        with pytest.raises(InvalidAnchor):
            await service.plan(PlanRequest("pad_service_2", crs("PAD"), 0, crs("PAD")))

    @pytest.mark.asyncio
    async def test_service_found_on_fallback_board(self) -> None:
        """Given an id read from Reading's board, when asked for at Paddington, then the fallback finds it."""
        service, _ = _fixture_service(fallback_stations=(crs("OXF"), crs("RDG")))
        request = PlanRequest(
            "rdg_service_7",
            crs("PAD"),
            0,
            crs("BRI"),
            search_config=SearchConfig(max_changes=0),
        )

        result = await service.plan(request)

        assert result.journeys[0].arrival_time == rt("16:24")


def _anchor(
    service_id: str, stops: list[tuple[str, str]], headcode: str = "1A00"
) -> ServiceCandidate:
    return ServiceCandidate(make_service(service_id, stops, headcode=headcode), 0)


class TestJourneyPlanner:
    """Tests for JourneyPlanner against hand-built boards."""

    @pytest.mark.asyncio
    async def test_walk_between_stations(self) -> None:
        """Given a walk from Euston to King's Cross, when the onward train leaves from King's Cross, then the journey walks."""
        onward = make_service("north", [("KGX", "14:40"), ("YRK", "16:30")], headcode="1N00")
        cache = FakeBoardCache([make_board("KGX", [onward])])
        walkable = WalkableGraphBuilder().add(crs("EUS"), crs("KGX"), 5).build()
        planner = JourneyPlanner(cache, walkable)

        result = await planner.plan(
            _anchor("anchor", [("MKC", "14:00"), ("EUS", "14:30")]), crs("YRK"), SearchConfig()
        )

        journey = result.journeys[0]
        assert [type(segment) for segment in journey.segments] == [Leg, Walk, Leg]
        assert journey.change_count == 1
        assert journey.total_walk_duration == timedelta(minutes=5)
        assert journey.min_interchange_margin == timedelta(minutes=5)

    @pytest.mark.asyncio
    async def test_walk_needs_no_connection_margin(self) -> None:
        """Given a train leaving one minute after the walk ends, when planning, then it is still caught."""
        onward = make_service("north", [("KGX", "14:36"), ("YRK", "16:30")], headcode="1N00")
        cache = FakeBoardCache([make_board("KGX", [onward])])
        walkable = WalkableGraphBuilder().add(crs("EUS"), crs("KGX"), 5).build()

        result = await JourneyPlanner(cache, walkable).plan(
            _anchor("anchor", [("MKC", "14:00"), ("EUS", "14:30")]), crs("YRK"), SearchConfig()
        )

        assert result.journeys[0].arrival_time == rt("16:30")

    @pytest.mark.asyncio
    async def test_walks_are_directed_and_not_chained(self) -> None:
        """Given KGX -> STP after EUS -> KGX, when planning, then St Pancras is never reached on foot."""
        cache = FakeBoardCache()
        walkable = (
            WalkableGraphBuilder()
            .add(crs("EUS"), crs("KGX"), 5)
            .add(crs("KGX"), crs("STP"), 3)
            .add(crs("VIC"), crs("EUS"), 10)
            .build()
        )

        with pytest.raises(NoRouteFound):
            await JourneyPlanner(cache, walkable).plan(
                _anchor("anchor", [("MKC", "14:00"), ("EUS", "14:30")]),
                crs("YRK"),
                SearchConfig(max_changes=1),
            )

        assert set(cache.requests) == {crs("EUS"), crs("KGX")}

    @pytest.mark.asyncio
    async def test_long_walks_are_skipped(self) -> None:
        cache = FakeBoardCache()
        walkable = WalkableGraphBuilder().add(crs("EUS"), crs("KGX"), 20).build()

        with pytest.raises(NoRouteFound):
            await JourneyPlanner(cache, walkable).plan(
                _anchor("anchor", [("MKC", "14:00"), ("EUS", "14:30")]),
                crs("YRK"),
                SearchConfig(max_changes=1),
            )

        assert cache.requests == [crs("EUS")]

    @pytest.mark.asyncio
    async def test_tight_connection_is_rejected(self) -> None:
        """Given a 3 minute change, when the margin is 5 minutes, then no route is found."""
        onward = make_service("tight", [("RDG", "14:33"), ("OXF", "15:00")], headcode="2B00")
        cache = FakeBoardCache([make_board("RDG", [onward])])

        with pytest.raises(NoRouteFound):
            await JourneyPlanner(cache).plan(
                _anchor("anchor", [("PAD", "14:00"), ("RDG", "14:30")]),
                crs("OXF"),
                SearchConfig(max_changes=1),
            )

    @pytest.mark.asyncio
    async def test_does_not_change_onto_the_same_train(self) -> None:
        """Given the current train listed on the change station's board, when planning, then staying aboard is not a change."""
        same_train = make_service("rdg_copy", [("RDG", "14:30"), ("DID", "14:45")], headcode="1A00")
        cache = FakeBoardCache([make_board("RDG", [same_train])])

        result = await JourneyPlanner(cache).plan(
            _anchor("anchor", [("PAD", "14:00"), ("RDG", "14:30"), ("DID", "14:45")]),
            crs("DID"),
            SearchConfig(max_changes=1, min_connection_margin=timedelta(0)),
        )

        assert len(result.journeys) == 1
        assert result.journeys[0].is_direct

    @pytest.mark.asyncio
    async def test_reused_headcode_on_another_operator_is_a_different_train(self) -> None:
        """Given a terminating GW 1A00 and an XC 1A00 leaving later, when planning, then the XC train is a valid change."""
        cross_country = make_service(
            "xc", [("RDG", "14:45"), ("BTN", "16:40")], headcode="1A00", operator_code="XC"
        )
        cache = FakeBoardCache([make_board("RDG", [cross_country])])

        result = await JourneyPlanner(cache).plan(
            _anchor("anchor", [("PAD", "14:00"), ("RDG", "14:30")]),
            crs("BTN"),
            SearchConfig(max_changes=1),
        )

        assert len(result.journeys) == 1
        journey = result.journeys[0]
        assert journey.change_count == 1
        assert journey.arrival_time == rt("16:40")

    @pytest.mark.asyncio
    async def test_finishes_from_arrivals_board_without_fetching_change_board(self) -> None:
        """Given Brighton's arrivals list a train calling at Reading, when planning, then Reading's board is not needed."""
        arriving = make_service(
            "xc",
            [("BHM", "13:00"), ("RDG", "14:45"), ("BTN", "16:40")],
            board_index=2,
            headcode="1O27",
            operator_code="XC",
        )
        cache = FakeBoardCache(arrivals=[make_board("BTN", [arriving])])

        result = await JourneyPlanner(cache).plan(
            _anchor("anchor", [("PAD", "14:00"), ("RDG", "14:30")]),
            crs("BTN"),
            SearchConfig(max_changes=1),
        )

        assert len(result.journeys) == 1
        journey = result.journeys[0]
        assert journey.change_count == 1
        assert journey.legs[1].origin == crs("RDG")
        assert journey.arrival_time == rt("16:40")
        assert cache.arrival_requests == [crs("BTN")]
        assert cache.requests == []
        assert result.boards_requested == 0

    @pytest.mark.asyncio
    async def test_feeder_leaving_too_soon_falls_back_to_departure_board(self) -> None:
        arriving = make_service(
            "xc", [("RDG", "14:32"), ("BTN", "16:20")], board_index=1, headcode="1O27"
        )
        onward = make_service("later", [("RDG", "14:50"), ("BTN", "16:50")], headcode="1O29")
        cache = FakeBoardCache(
            [make_board("RDG", [onward])], arrivals=[make_board("BTN", [arriving])]
        )

        result = await JourneyPlanner(cache).plan(
            _anchor("anchor", [("PAD", "14:00"), ("RDG", "14:30")]),
            crs("BTN"),
            SearchConfig(max_changes=1),
        )

        assert [journey.arrival_time for journey in result.journeys] == [rt("16:50")]
        assert cache.requests == [crs("RDG")]

    @pytest.mark.asyncio
    async def test_arrivals_board_does_not_reboard_the_current_train(self) -> None:
        """Given the current train on the destination's arrivals, when planning, then only the direct journey is found."""
        stops = [("PAD", "14:00"), ("RDG", "14:30"), ("DID", "14:45")]
        arriving = make_service("did_copy", stops, board_index=2, headcode="1A00")
        cache = FakeBoardCache(arrivals=[make_board("DID", [arriving])])

        result = await JourneyPlanner(cache).plan(
            _anchor("anchor", stops),
            crs("DID"),
            SearchConfig(max_changes=1, min_connection_margin=timedelta(0)),
        )

        assert [journey.is_direct for journey in result.journeys] == [True]
        assert cache.requests == [crs("RDG")]

    @pytest.mark.asyncio
    async def test_arrivals_index_can_be_switched_off(self) -> None:
        stops = [("RDG", "14:45"), ("BTN", "16:40")]
        departing = make_service("xc_rdg", stops, headcode="1O27")
        arriving = make_service("xc_btn", stops, board_index=1, headcode="1O27")
        cache = FakeBoardCache(
            [make_board("RDG", [departing])], arrivals=[make_board("BTN", [arriving])]
        )

        result = await JourneyPlanner(cache).plan(
            _anchor("anchor", [("PAD", "14:00"), ("RDG", "14:30")]),
            crs("BTN"),
            SearchConfig(max_changes=1, use_arrivals_index=False),
        )

        assert len(result.journeys) == 1
        assert cache.arrival_requests == []
        assert cache.requests == [crs("RDG")]

    @pytest.mark.asyncio
    async def test_dominated_journeys_are_pruned_on_request(self) -> None:
        """Given a direct train and a later route with a change, when pruning, then only the direct train is kept."""
        slower = make_service("slower", [("RDG", "14:40"), ("OXF", "15:20")], headcode="2B00")
        cache = FakeBoardCache([make_board("RDG", [slower])])
        anchor = _anchor("anchor", [("PAD", "14:00"), ("RDG", "14:30"), ("OXF", "15:00")])

        kept = await JourneyPlanner(cache).plan(anchor, crs("OXF"), SearchConfig(max_changes=1))
        pruned = await JourneyPlanner(cache).plan(
            anchor, crs("OXF"), SearchConfig(max_changes=1, prune_dominated=True)
        )

        assert len(kept.journeys) == 2
        assert [journey.is_direct for journey in pruned.journeys] == [True]

    @pytest.mark.asyncio
    async def test_cancelled_calls_are_not_used(self) -> None:
        cancelled = make_service(
            "off", [("RDG", "14:40"), ("OXF", "15:00")], headcode="2B00", cancelled=["RDG", "OXF"]
        )
        cache = FakeBoardCache([make_board("RDG", [cancelled])])

        with pytest.raises(NoRouteFound):
            await JourneyPlanner(cache).plan(
                _anchor("anchor", [("PAD", "14:00"), ("RDG", "14:30")]),
                crs("OXF"),
                SearchConfig(max_changes=1),
            )

    @pytest.mark.asyncio
    async def test_stations_are_not_revisited(self) -> None:
        """Given the only onward train goes back through the origin, when planning, then it is not used to alight there."""
        back = make_service(
            "back", [("RDG", "14:40"), ("PAD", "15:10"), ("SRA", "15:30")], headcode="2B00"
        )
        cache = FakeBoardCache([make_board("RDG", [back])])

        result = await JourneyPlanner(cache).plan(
            _anchor("anchor", [("PAD", "14:00"), ("RDG", "14:30")]),
            crs("SRA"),
            SearchConfig(max_changes=1),
        )

        journey = result.journeys[0]
        assert journey.arrival_time == rt("15:30")
        assert journey.legs[1].alight_call.station == crs("SRA")

    @pytest.mark.asyncio
    async def test_max_changes_limits_depth(self) -> None:
        first = make_service("first", [("RDG", "14:40"), ("DID", "15:00")], headcode="2B00")
        second = make_service("second", [("DID", "15:10"), ("OXF", "15:30")], headcode="2C00")
        boards = [make_board("RDG", [first]), make_board("DID", [second])]
        anchor = _anchor("anchor", [("PAD", "14:00"), ("RDG", "14:30")])

        with pytest.raises(NoRouteFound):
            await JourneyPlanner(FakeBoardCache(boards)).plan(
                anchor, crs("OXF"), SearchConfig(max_changes=1)
            )

        result = await JourneyPlanner(FakeBoardCache(boards)).plan(
            anchor, crs("OXF"), SearchConfig(max_changes=2)
        )
        assert result.journeys[0].change_count == 2

    @pytest.mark.asyncio
    async def test_journeys_are_ranked_by_arrival(self) -> None:
        slow = make_service("slow", [("RDG", "14:40"), ("OXF", "15:30")], headcode="2B00")
        fast = make_service("fast", [("RDG", "14:50"), ("OXF", "15:10")], headcode="2C00")
        cache = FakeBoardCache([make_board("RDG", [slow, fast])])

        result = await JourneyPlanner(cache).plan(
            _anchor("anchor", [("PAD", "14:00"), ("RDG", "14:30")]),
            crs("OXF"),
            SearchConfig(max_changes=1),
        )

        assert [journey.legs[1].service.service_id for journey in result.journeys] == [
            "fast",
            "slow",
        ]

    @pytest.mark.asyncio
    async def test_failing_board_becomes_coverage_note(self) -> None:
        cache = FakeBoardCache(failing=["RDG"])

        result = await JourneyPlanner(cache).plan(
            _anchor("anchor", [("PAD", "14:00"), ("RDG", "14:30")]),
            crs("OXF"),
            SearchConfig(max_changes=1),
        )

        assert result.journeys == ()
        assert result.is_partial
        assert result.unavailable_stations == [crs("RDG")]

    @pytest.mark.asyncio
    async def test_deadline_returns_journeys_found_so_far(self) -> None:
        """Given a board that never arrives, when the deadline passes, then the direct journey is returned as partial."""
        cache = FakeBoardCache(slow=["RDG"])

        result = await JourneyPlanner(cache).plan(
            _anchor("anchor", [("PAD", "14:00"), ("RDG", "14:30"), ("OXF", "15:00")]),
            crs("OXF"),
            SearchConfig(),
            deadline_seconds=0.05,
        )

        assert len(result.journeys) == 1
        assert result.is_partial
        assert result.coverage_notes[0].reason is CoverageReason.DEADLINE_EXPIRED
        assert "RDG" in result.coverage_notes[0].detail

    @pytest.mark.asyncio
    async def test_state_budget_keeps_completed_journeys(self) -> None:
        """Given a budget of two states, when it runs out expanding Reading, then the direct journey survives."""
        onward = make_service(
            "onward", [("RDG", "14:40"), ("DID", "14:50"), ("SWI", "15:10")], headcode="2B00"
        )
        cache = FakeBoardCache([make_board("RDG", [onward])])

        result = await JourneyPlanner(cache).plan(
            _anchor("anchor", [("PAD", "14:00"), ("RDG", "14:30"), ("OXF", "15:00")]),
            crs("OXF"),
            SearchConfig(max_states_expanded=2),
        )

        assert len(result.journeys) == 1
        assert result.states_expanded == 2
        assert result.is_partial
        assert result.coverage_notes[-1].reason is CoverageReason.STATE_BUDGET_EXHAUSTED

    @pytest.mark.asyncio
    async def test_no_route_found(self) -> None:
        cache = FakeBoardCache()

        with pytest.raises(NoRouteFound) as exc_info:
            await JourneyPlanner(cache).plan(
                _anchor("anchor", [("PAD", "14:00"), ("RDG", "14:30")]),
                crs("BTN"),
                SearchConfig(max_changes=1),
            )

        assert exc_info.value.destination == crs("BTN")

    @pytest.mark.asyncio
    async def test_invalid_position(self) -> None:
        anchor = ServiceCandidate(make_service("anchor", [("PAD", "14:00"), ("RDG", "14:30")]), 5)

        with pytest.raises(InvalidAnchor):
            await JourneyPlanner(FakeBoardCache()).plan(anchor, crs("RDG"), SearchConfig())
