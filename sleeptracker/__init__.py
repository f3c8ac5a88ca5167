"""Sleep-session tracking: a SQLite night store and a serialized session controller."""

__version__ = "0.1.0"
