"""scorecraft: compose scored document searches for a search backend."""

__version__ = "0.1.0"
