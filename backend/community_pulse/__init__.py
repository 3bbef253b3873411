"""Community Pulse: emotion scoring for short social posts and community health metrics."""

__version__ = "0.1.0"
