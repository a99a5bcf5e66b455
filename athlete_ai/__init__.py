"""Pose-driven athletic assessment core."""

__version__ = "0.1.0"
