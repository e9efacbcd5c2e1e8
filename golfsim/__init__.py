"""6-Card Golf engine, pluggable strategies and a strategy-vs-strategy simulator."""

__version__ = "0.1.0"
