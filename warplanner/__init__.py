"""Clan war planner: skill profiles, attendance risk, lineups and target plans."""

__version__ = "0.3.0"
