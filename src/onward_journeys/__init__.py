"""Onward journey planning for passengers already aboard a train."""

__version__ = "0.1.0"
