"""Fixture-backed board provider for development and tests."""

from onward_journeys.adapters.mock_api.mock_board_provider import MockBoardProvider

__all__ = ["MockBoardProvider"]
