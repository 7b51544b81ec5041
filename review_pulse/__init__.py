"""Review Pulse: random review sentiment demo with business actions."""

__version__ = "1.0.0"
