"""
Multi-source aggregation: fan a search out to every requested source,
absorb per-source failures, merge, and roll up.
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Dict, List, Mapping, Optional, Tuple

import httpx

from pulse.config import Settings, get_settings
from pulse.core.fallback import FallbackGenerator
from pulse.core.metrics import compute_rollup, filter_by_severity, sort_records
from pulse.core.normalizer import ResultNormalizer
from pulse.core.sentiment import get_estimator
from pulse.errors import ValidationError
from pulse.models import LocaleHints, SourceOutcome
from pulse.schemas import (
    AggregationResult,
    EngagementRecord,
    SearchBatch,
    SearchRequest,
    SourceName,
)
from pulse.services.persistence import PersistenceGateway
from pulse.sources.base import SourceClient
from pulse.sources.registry import build_default_clients
from pulse.utils import now_utc

logger = logging.getLogger(__name__)


def validate_request(request: SearchRequest) -> Tuple[str, List[SourceName]]:
    """
    Check a request before anything is attempted.

    Returns:
        The trimmed term and the requested sources, duplicates removed in
        declaration order

    Raises:
        ValidationError: empty term after trimming, or no sources
    """
    term = (request.term or "").strip()
    if not term:
        raise ValidationError("Search term must not be empty")
    if not request.sources:
        raise ValidationError("At least one source must be selected")
    return term, list(dict.fromkeys(request.sources))


class AggregationOrchestrator:
    """
    Runs one logical search across several sources.

    Callers are expected to have checked ``Permissions.can_search`` before
    calling ``run``; the orchestrator itself does no authorization.

    Each source runs in its own task with its own timeout. A source that
    raises, times out, or has no configured client is marked ``error``;
    one whose payload normalizes to nothing is marked ``empty``. Both get
    fallback records. Cancelling the task awaiting ``run`` cancels every
    in-flight source call.
    """

    def __init__(
        self,
        clients: Optional[Mapping[SourceName, SourceClient]] = None,
        normalizer: Optional[ResultNormalizer] = None,
        fallback: Optional[FallbackGenerator] = None,
        gateway: Optional[PersistenceGateway] = None,
        settings: Optional[Settings] = None,
        timeout: Optional[float] = None,
        fallback_count: Optional[int] = None,
    ):
        self.settings = settings or get_settings()
        estimator = get_estimator(self.settings.SENTIMENT_ESTIMATOR)
        self.clients: Dict[SourceName, SourceClient] = dict(
            clients if clients is not None else build_default_clients(self.settings)
        )
        self.normalizer = normalizer or ResultNormalizer(estimator)
        self.fallback = fallback or FallbackGenerator(
            seed=self.settings.FALLBACK_SEED, estimator=estimator
        )
        self.gateway = gateway
        self.timeout = timeout if timeout is not None else self.settings.SOURCE_TIMEOUT_SECONDS
        self.fallback_count = (
            fallback_count if fallback_count is not None else self.settings.FALLBACK_COUNT
        )

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        gateway: Optional[PersistenceGateway] = None,
    ) -> "AggregationOrchestrator":
        settings = settings or get_settings()
        return cls(
            clients=build_default_clients(settings, client=http_client),
            gateway=gateway,
            settings=settings,
        )

    async def run(self, request: SearchRequest, persist: bool = True) -> AggregationResult:
        """
        Aggregate one search.

        Args:
            request: What to search and where
            persist: Hand the batch to the gateway, if one is configured

        Returns:
            AggregationResult with records in source declaration order

        Raises:
            ValidationError: the request is malformed; nothing is attempted
        """
        term, sources = validate_request(request)
        locale = LocaleHints(
            language=request.language or self.settings.DEFAULT_LANGUAGE,
            region=request.region or self.settings.DEFAULT_REGION,
            period=request.period or self.settings.DEFAULT_PERIOD,
        )
        logger.info("Aggregating '%s' across %s", term, ", ".join(s.value for s in sources))

        outcomes = await asyncio.gather(
            *(self._collect(source, term, locale) for source in sources)
        )

        records: List[EngagementRecord] = []
        warnings: List[str] = []
        # Merge in declaration order; fallback is generated here rather than
        # inside the tasks so a seeded generator does not depend on timing
        for outcome in outcomes:
            if outcome.status == "ok":
                records.extend(outcome.records)
                continue
            substitutes = self.fallback.generate(
                term, outcome.source, locale.region, self.fallback_count,
                severity=request.severity_filter,
            )
            records.extend(substitutes)
            reason = "failed" if outcome.status == "error" else "returned no results"
            warnings.append(
                f"{outcome.source.value} {reason}; showing {len(substitutes)} fallback records"
            )

        records = filter_by_severity(records, request.severity_filter)
        records = sort_records(records, request.sort)
        metrics = compute_rollup(records)

        result = AggregationResult(
            request_id=uuid.uuid4().hex,
            term=term,
            records=records,
            metrics=metrics,
            per_source_status={outcome.source: outcome.status for outcome in outcomes},
            warnings=warnings,
        )

        if persist and self.gateway is not None:
            await self._persist(result, sources)

        logger.info(
            "Aggregated %d records for '%s' (%d fallback)",
            metrics.total_mentions, term, metrics.fallback_mentions,
        )
        return result

    async def _collect(self, source: SourceName, term: str, locale: LocaleHints) -> SourceOutcome:
        client = self.clients.get(source)
        if client is None:
            logger.warning("No client configured for source %s", source.value)
            return SourceOutcome(source, "error", error="no client configured")

        try:
            raw = await asyncio.wait_for(client.fetch(term, locale), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("Source %s timed out after %.1fs", source.value, self.timeout)
            return SourceOutcome(source, "error", error=f"timed out after {self.timeout}s")
        except Exception as e:
            logger.warning("Source %s failed: %s", source.value, e)
            return SourceOutcome(source, "error", error=str(e))

        try:
            records = self.normalizer.normalize(raw, source, term, retrieved_at=now_utc())
        except Exception as e:
            logger.exception("Normalization failed for %s", source.value)
            return SourceOutcome(source, "error", error=f"normalization failed: {e}")

        if not records:
            logger.info("Source %s returned no usable items", source.value)
            return SourceOutcome(source, "empty")
        return SourceOutcome(source, "ok", records)

    async def _persist(self, result: AggregationResult, sources: List[SourceName]) -> None:
        batch = SearchBatch(
            term=result.term,
            sources=sources,
            records=result.records,
            metrics=result.metrics,
        )
        try:
            result.persisted_id = await self.gateway.save(batch)
        except Exception as e:
            logger.warning("Could not persist results for '%s': %s", result.term, e)
            result.warnings.append(f"Results were not saved: {e}")
