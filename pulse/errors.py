"""
Exception taxonomy for the aggregation engine.

Only ``ValidationError`` ever escapes ``AggregationOrchestrator.run``; the
others are raised by collaborators and absorbed into per-source status,
provenance flags or result warnings.
"""
from __future__ import annotations


class PulseError(Exception):
    """Base class for all application errors."""


class ValidationError(PulseError, ValueError):
    """A SearchRequest is malformed (empty term or no sources)."""


class SourceTransportError(PulseError):
    """A source client could not obtain a decodable 2xx response."""

    def __init__(self, source: str, detail: str):
        super().__init__(f"{source}: {detail}")
        self.source = source
        self.detail = detail


class PersistenceError(PulseError):
    """Saving or reading a batch through a PersistenceGateway failed."""


class WatchStoreError(PulseError):
    """The keyword watch-list storage could not be read or written."""
