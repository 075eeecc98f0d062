"""Breadth-first onward journey search over live departure boards.

The search runs in levels by number of changes. Every state at one level is expanded
before any state at the next, and all boards a level needs are requested together so
each level costs at most one round of network requests.

When the destination's arrivals board is available, a state at a station that board
lists as a calling point finishes on those trains directly, and that station's
departure board is not fetched for it.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from onward_journeys.application.arrivals_index import ArrivalsIndex
from onward_journeys.application.rank import rank_journeys, remove_dominated
from onward_journeys.domain.errors import (
    DomainError,
    InvalidAnchor,
    NoRouteFound,
    ProviderUnavailable,
)
from onward_journeys.domain.models.journey import Journey, Leg, Segment, Walk
from onward_journeys.domain.models.plan_result import CoverageNote, CoverageReason, PlanResult
from onward_journeys.domain.models.walkable_graph import WalkableGraph

if TYPE_CHECKING:
    from onward_journeys.domain.contracts.board_cache import BoardCacheProtocol
    from onward_journeys.domain.models.board import Board
    from onward_journeys.domain.models.call import CallIndex
    from onward_journeys.domain.models.crs import Crs
    from onward_journeys.domain.models.rail_time import RailTime
    from onward_journeys.domain.models.search_config import SearchConfig
    from onward_journeys.domain.models.service import Service, ServiceCandidate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchState:
    """A point the passenger can reach: where, when, and how they got there."""

    journey: Journey
    ready_at: RailTime  # Earliest departure of an onward train
    changes: int

    @property
    def station(self) -> Crs:
        return self.journey.destination

    @property
    def arrival(self) -> RailTime:
        return self.journey.arrival_time

    @property
    def last_segment(self) -> Segment:
        return self.journey.segments[-1]

    @property
    def last_leg(self) -> Leg | None:
        """The train leg the passenger is on or just left, or None after a walk."""
        last = self.last_segment
        return last if isinstance(last, Leg) else None

    def stays_aboard(self, service: Service, board_index: CallIndex | None = None) -> bool:
        last_leg = self.last_leg
        return last_leg is not None and last_leg.continues_as(service, board_index)


@dataclass
class _SearchRun:
    """Mutable bookkeeping for one planning request."""

    anchor_departure: RailTime
    destination: Crs
    config: SearchConfig
    completed: list[Journey] = field(default_factory=list)
    coverage_notes: list[CoverageNote] = field(default_factory=list)
    states_expanded: int = 0
    boards_requested: int = 0
    budget_exhausted: bool = False
    deadline_expired: bool = False

    def admit(self, state: SearchState) -> bool:
        """Count a new state against the budget, or reject it.

        Completed journeys are collected here and never expanded further.
        """
        if self.budget_exhausted:
            return False
        if state.arrival - self.anchor_departure > self.config.max_total_duration:
            return False
        if self.states_expanded >= self.config.max_states_expanded:
            self.budget_exhausted = True
            return False

        self.states_expanded += 1
        if state.station == self.destination:
            self.completed.append(state.journey)
            return False
        return True


class JourneyPlanner:
    """Finds onward journeys from a train the passenger is already on."""

    def __init__(
        self, board_cache: BoardCacheProtocol, walkable: WalkableGraph | None = None
    ) -> None:
        """Initialize the planner.

        Args:
            board_cache: Shared board cache; the only source of live data.
            walkable: Directed walking links between nearby stations.
        """
        self._board_cache = board_cache
        self._walkable = walkable if walkable is not None else WalkableGraph()

    async def plan(
        self,
        anchor: ServiceCandidate,
        destination: Crs,
        config: SearchConfig,
        deadline_seconds: float | None = None,
    ) -> PlanResult:
        """Search for journeys from the anchor to the destination.

        Args:
            anchor: The passenger's current service and the call they boarded at.
            destination: Station to reach.
            config: Search bounds.
            deadline_seconds: Wall-clock budget; when it runs out the journeys found so
                far are returned as a partial result.

        Returns:
            Ranked journeys, flagged partial if coverage was incomplete.

        Raises:
            InvalidAnchor: If the boarding position is unusable.
            NoRouteFound: If the search covered everything it was allowed to and found
                no journey.
        """
        anchor_departure = self._validate_anchor(anchor, destination)
        loop = asyncio.get_running_loop()
        deadline_at = None if deadline_seconds is None else loop.time() + deadline_seconds

        run = _SearchRun(anchor_departure=anchor_departure, destination=destination, config=config)
        logger.info(
            f"Planning from {anchor.board_call.station} on {anchor.service.train_identity} "
            f"to {destination}"
        )

        frontier = self._initial_states(anchor, run)
        arrivals = (
            await self._fetch_arrivals_index(destination, run, deadline_at) if frontier else None
        )
        level = 0
        while frontier and not run.budget_exhausted:
            frontier = self._with_walks(frontier, run)
            logger.debug(f"Level {level}: {len(frontier)} states to expand")
            if level >= config.max_changes or not frontier:
                break

            if arrivals is not None:
                frontier = self._finish_via_arrivals(frontier, arrivals, run)
                if not frontier or run.budget_exhausted:
                    break
            boards = await self._fetch_level_boards(frontier, run, deadline_at)
            if run.deadline_expired and not boards:
                break
            frontier = self._expand_level(frontier, boards, level + 1, run)
            level += 1
            if run.deadline_expired:
                break

        return self._finish(run)

    def _validate_anchor(self, anchor: ServiceCandidate, destination: Crs) -> RailTime:
        if not anchor.is_valid:
            raise InvalidAnchor(
                f"position {anchor.board_index} is not on service {anchor.service.service_id} "
                f"({len(anchor.service.calls)} calls)"
            )
        departure = anchor.departure_time
        if departure is None:
            raise InvalidAnchor(f"no time known for {anchor.board_call.station} on the service")
        if anchor.board_call.station == destination:
            raise InvalidAnchor(f"already at {destination}")
        return departure

    def _initial_states(self, anchor: ServiceCandidate, run: _SearchRun) -> list[SearchState]:
        """Ride the current train on to each of its later calls."""
        states = []
        for state in self._ride(
            anchor.service, anchor.board_index, prefix=(), changes=0, run=run
        ):
            if run.admit(state):
                states.append(state)
            if run.budget_exhausted:
                break
        return states

    def _ride(
        self,
        service: Service,
        board_index: int,
        prefix: tuple[Segment, ...],
        changes: int,
        run: _SearchRun,
    ) -> list[SearchState]:
        """States for alighting at each later call, up to the first destination call."""
        visited = Journey(prefix).visited_stations if prefix else frozenset()
        visited |= {service.calls[board_index].station}

        states = []
        for call in service.calls_after(board_index):
            if call.is_cancelled or call.station in visited:
                continue
            try:
                leg = Leg(service, board_index, call.index)
                journey = Journey.build((*prefix, leg), run.config.min_connection_margin)
            except DomainError as e:
                logger.debug(f"Cannot alight at {call.station}: {e}")
                continue
            states.append(
                SearchState(
                    journey=journey,
                    ready_at=leg.arrival_time + run.config.min_connection_margin,
                    changes=changes,
                )
            )
            if call.station == run.destination:
                break
        return states

    def _with_walks(self, frontier: list[SearchState], run: _SearchRun) -> list[SearchState]:
        """Add walking states; a walk is taken straight off a train, never after another walk."""
        expanded = list(frontier)
        for state in frontier:
            if state.last_leg is None:
                continue
            visited = state.journey.visited_stations
            for neighbor, duration in self._walkable.neighbors(state.station):
                if duration > run.config.max_walk_duration or neighbor in visited:
                    continue
                walk = Walk(state.station, neighbor, duration, state.arrival)
                walked = SearchState(
                    journey=Journey((*state.journey.segments, walk)),
                    ready_at=walk.arrival_time,
                    changes=state.changes,
                )
                if run.admit(walked):
                    expanded.append(walked)
                if run.budget_exhausted:
                    return expanded
        return expanded

    async def _fetch_arrivals_index(
        self, destination: Crs, run: _SearchRun, deadline_at: float | None
    ) -> ArrivalsIndex | None:
        """The destination's arrivals index, or None to search departure boards only."""
        if not run.config.use_arrivals_index or run.config.max_changes == 0:
            return None

        loop = asyncio.get_running_loop()
        timeout = None if deadline_at is None else max(0.0, deadline_at - loop.time())
        try:
            board = await asyncio.wait_for(
                self._board_cache.get_or_fetch_arrivals(destination, run.config.board_query),
                timeout,
            )
        except ProviderUnavailable as e:
            logger.info(f"No arrivals board for {destination}, using departures only: {e.reason}")
            return None
        except asyncio.TimeoutError:
            logger.info(f"Arrivals board for {destination} not ready before the deadline")
            return None

        index = ArrivalsIndex.from_board(destination, board)
        logger.debug(
            f"Arrivals index for {index.destination}: {index.feeder_count} feeders at "
            f"{index.feeder_station_count} stations"
        )
        return index

    def _finish_via_arrivals(
        self, frontier: list[SearchState], arrivals: ArrivalsIndex, run: _SearchRun
    ) -> list[SearchState]:
        """Complete states at feeder stations; return the states that still need a board."""
        remaining = []
        for state in frontier:
            if run.budget_exhausted:
                break
            finished = arrivals.is_feeder(state.station) and self._ride_feeders(
                state, arrivals, run
            )
            if not finished:
                remaining.append(state)
        return remaining

    def _ride_feeders(self, state: SearchState, arrivals: ArrivalsIndex, run: _SearchRun) -> bool:
        """Board each usable feeder at the state's station; True if any reached the destination."""
        completed_before = len(run.completed)
        latest = state.arrival + run.config.time_horizon
        for feeder in arrivals.feeders_at(state.station):
            if not state.ready_at <= feeder.departure <= latest:
                continue
            if state.stays_aboard(feeder.service, feeder.board_index):
                continue
            try:
                leg = feeder.leg
                journey = Journey.build(
                    (*state.journey.segments, leg), run.config.min_connection_margin
                )
            except DomainError as e:
                logger.debug(f"Cannot take feeder at {state.station}: {e}")
                continue
            run.admit(
                SearchState(
                    journey=journey,
                    ready_at=leg.arrival_time + run.config.min_connection_margin,
                    changes=state.changes + 1,
                )
            )
            if run.budget_exhausted:
                break
        return len(run.completed) > completed_before

    async def _fetch_level_boards(
        self, frontier: list[SearchState], run: _SearchRun, deadline_at: float | None
    ) -> dict[Crs, Board]:
        """Request every board this level needs at once and wait for all (or the deadline)."""
        stations = list(dict.fromkeys(state.station for state in frontier))
        run.boards_requested += len(stations)
        query = run.config.board_query

        tasks = {
            asyncio.ensure_future(self._board_cache.get_or_fetch(station, query)): station
            for station in stations
        }
        loop = asyncio.get_running_loop()
        timeout = None if deadline_at is None else max(0.0, deadline_at - loop.time())
        done, pending = await asyncio.wait(tasks, timeout=timeout)

        if pending:
            # Only this request's wait is cancelled; the shared fetch carries on
            for task in pending:
                task.cancel()
            outstanding = ", ".join(sorted(str(tasks[task]) for task in pending))
            run.deadline_expired = True
            run.coverage_notes.append(
                CoverageNote(
                    CoverageReason.DEADLINE_EXPIRED,
                    f"deadline passed waiting for boards at {outstanding}",
                )
            )
            logger.warning(f"Planning deadline passed with {len(pending)} boards outstanding")

        boards: dict[Crs, Board] = {}
        for task in done:
            station = tasks[task]
            error = task.exception()
            if error is None:
                boards[station] = task.result()
            elif isinstance(error, ProviderUnavailable):
                run.coverage_notes.append(
                    CoverageNote(CoverageReason.PROVIDER_UNAVAILABLE, error.reason, station)
                )
                logger.warning(f"No board for {station}, dropping that branch: {error.reason}")
            else:
                raise error
        return boards

    def _expand_level(
        self,
        frontier: list[SearchState],
        boards: dict[Crs, Board],
        changes: int,
        run: _SearchRun,
    ) -> list[SearchState]:
        next_frontier: list[SearchState] = []
        for state in frontier:
            board = boards.get(state.station)
            if board is None:
                continue
            latest = state.arrival + run.config.time_horizon
            for service in board.departures_between(state.ready_at, latest):
                if service.board_call.is_cancelled or state.stays_aboard(service):
                    continue
                for new_state in self._ride(
                    service,
                    service.board_station_index,
                    prefix=state.journey.segments,
                    changes=changes,
                    run=run,
                ):
                    if run.admit(new_state):
                        next_frontier.append(new_state)
                    if run.budget_exhausted:
                        return next_frontier
        return next_frontier

    def _finish(self, run: _SearchRun) -> PlanResult:
        if run.budget_exhausted:
            run.coverage_notes.append(
                CoverageNote(
                    CoverageReason.STATE_BUDGET_EXHAUSTED,
                    f"stopped after {run.states_expanded} states",
                )
            )

        completed = run.completed
        if run.config.prune_dominated:
            completed = remove_dominated(completed)
        journeys = rank_journeys(completed, run.config.max_results)
        is_partial = bool(run.coverage_notes)
        logger.info(
            f"Search to {run.destination} finished: {len(journeys)} journeys, "
            f"{run.states_expanded} states, {run.boards_requested} boards"
            f"{' (partial)' if is_partial else ''}"
        )

        if not journeys and not is_partial:
            raise NoRouteFound(run.destination, run.states_expanded)

        return PlanResult(
            journeys=tuple(journeys),
            coverage_notes=tuple(run.coverage_notes),
            states_expanded=run.states_expanded,
            boards_requested=run.boards_requested,
            is_partial=is_partial,
        )
