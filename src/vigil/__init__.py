"""vigil: alert-condition lifecycle management for log streams."""

__version__ = "0.1.0"
