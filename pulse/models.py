"""
File: pulse/models.py
Internal data structures used during collection/aggregation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from pulse.schemas import EngagementRecord, SourceName, SourceStatus


JsonDict = Dict[str, Any]
# Whatever a vendor returned after JSON decoding; shape is vendor-owned
RawPayload = Union[JsonDict, List[Any], None]


@dataclass(frozen=True)
class LocaleHints:
    """Request-side hints forwarded to every source client."""

    language: Optional[str] = None
    region: Optional[str] = None
    period: Optional[str] = None


@dataclass
class SourceOutcome:
    """Result of one source's slot in a fan-out, before merging."""

    source: SourceName
    status: SourceStatus
    records: List[EngagementRecord] = field(default_factory=list)
    error: Optional[str] = None


__all__ = ["JsonDict", "RawPayload", "LocaleHints", "SourceOutcome"]
