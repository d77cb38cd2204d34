# pulse/schemas.py
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Sentiment = Literal["positive", "neutral", "negative"]
Severity = Literal["low", "medium", "high", "critical"]
Provenance = Literal["real", "fallback"]
SourceStatus = Literal["ok", "empty", "error"]
SortOrder = Literal["recent", "popular"]

SEVERITY_LEVELS: tuple[str, ...] = ("critical", "high", "medium", "low")


class SourceName(str, Enum):
    TIKTOK = "tiktok"
    INSTAGRAM = "instagram"
    TWITTER = "twitter"
    FACEBOOK = "facebook"
    YOUTUBE = "youtube"
    WEB = "web"


class EngagementCounts(BaseModel):
    model_config = ConfigDict(frozen=True)

    likes: int = Field(default=0, ge=0)
    comments: int = Field(default=0, ge=0)
    shares: int = Field(default=0, ge=0)
    views: int = Field(default=0, ge=0)

    @property
    def engagement(self) -> int:
        return self.likes + self.comments + self.shares


class DerivedSignals(BaseModel):
    model_config = ConfigDict(frozen=True)

    sentiment: Sentiment
    severity: Severity
    influence_score: int = Field(default=1, ge=1, le=10)


class EngagementRecord(BaseModel):
    """Canonical, source-agnostic mention. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    id: str
    source_name: SourceName
    search_term: str
    author: str = "unknown"
    content: str = ""
    url: Optional[str] = None
    timestamp: datetime
    timestamp_approximate: bool = False   # True when the source gave no usable date
    counts: EngagementCounts = Field(default_factory=EngagementCounts)
    derived: DerivedSignals
    tags: List[str] = Field(default_factory=list)
    region: Optional[str] = None
    provenance: Provenance


class SearchRequest(BaseModel):
    # Emptiness is checked by the orchestrator so it can raise ValidationError
    term: str
    sources: List[SourceName] = Field(default_factory=list)
    region: Optional[str] = None
    severity_filter: Optional[Severity] = None
    language: Optional[str] = None
    period: Optional[str] = None
    sort: Optional[SortOrder] = None


class RollupMetrics(BaseModel):
    total_mentions: int = 0
    positive_pct: float = 0.0
    negative_pct: float = 0.0
    neutral_pct: float = 0.0
    total_reach: int = 0
    total_engagement: int = 0
    fallback_mentions: int = 0
    per_source_counts: Dict[str, int] = Field(default_factory=dict)
    per_severity_counts: Dict[str, int] = Field(default_factory=dict)


class AggregationResult(BaseModel):
    request_id: str
    term: str
    records: List[EngagementRecord]
    metrics: RollupMetrics
    per_source_status: Dict[SourceName, SourceStatus]
    persisted_id: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)


class SearchBatch(BaseModel):
    """What gets handed to a PersistenceGateway."""

    term: str
    sources: List[SourceName]
    records: List[EngagementRecord]
    metrics: RollupMetrics


class PersistedBatch(SearchBatch):
    id: str
    created_at: datetime


class Permissions(BaseModel):
    can_search: bool = False
    can_export_data: bool = False
    can_manage_keywords: bool = False

    @classmethod
    def from_capabilities(cls, capabilities: List[str]) -> "Permissions":
        names = {c.strip() for c in capabilities if c and c.strip()}
        return cls(**{field: field in names for field in cls.model_fields})


class KeywordWatch(BaseModel):
    id: str
    keyword: str
    sources: List[SourceName]
    is_active: bool = True
    created_at: datetime


class KeywordWatchCreate(BaseModel):
    keyword: str = Field(..., min_length=1)
    sources: List[SourceName] = Field(..., min_length=1)
