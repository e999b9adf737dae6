"""Presentation sinks receiving controller output."""

from .base import PresentationSink
from .logging_sink import LoggingSink

__all__ = ["LoggingSink", "PresentationSink"]
