"""botbridge: webhook adapters between a bot runtime and chat platforms."""

__version__ = "0.1.0"
