"""Observability utilities for the interview command center."""
from .logger import log_event
from .tracing import span

__all__ = ["log_event", "span"]
