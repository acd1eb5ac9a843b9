"""Local-first coffee personalization: taste learning, recommendations and diary insights."""

__version__ = "0.1.0"
