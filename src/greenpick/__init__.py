"""GreenPick: recommends small, low-impact machine-learning models for a described task."""

__version__ = "0.1.0"
