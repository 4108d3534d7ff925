"""Running quiz score totals and ranked leaderboards."""

__version__ = "1.0.0"
