"""Merge per-source product records into one product.

Attributes present in several sources resolve by source precedence:
vendor documents > website > search snippets > screenshot OCR. Between
two sources of the same rank the longer value wins. Merging is a pure
function of the records, so concurrently fetched sources always merge
to the same result whatever order they arrived in.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List, Sequence, Tuple

from productqc.config import MAX_IMAGES, MAX_WORKERS
from productqc.logging_config import get_logger
from productqc.models import MergedProduct, ProductRecord, SourceResult, SourceTag, SpecValue

__all__ = [
    "SOURCE_PRECEDENCE",
    "CONFIDENCE_BY_RANK",
    "precedence_rank",
    "aggregate",
    "aggregate_results",
    "gather_sources",
]

logger = get_logger("aggregator")

# Lower rank wins
SOURCE_PRECEDENCE: Dict[SourceTag, int] = {
    SourceTag.VENDOR_PDF: 0,
    SourceTag.VENDOR_EXCEL: 0,
    SourceTag.WEBSITE: 1,
    SourceTag.SEARCH_SNIPPET: 2,
    SourceTag.SCREENSHOT: 3,
}

CONFIDENCE_BY_RANK = {0: "High", 1: "High", 2: "Medium", 3: "Low"}

SourceFetcher = Tuple[SourceTag, Callable[[], SourceResult]]


def precedence_rank(source: SourceTag) -> int:
    return SOURCE_PRECEDENCE[source]


def _prefer(current: str, candidate: str, current_rank: int, candidate_rank: int) -> bool:
    """Whether ``candidate`` replaces ``current`` for one field."""
    if not candidate:
        return False
    if not current:
        return True
    return candidate_rank == current_rank and len(candidate) > len(current)


def aggregate(records: Sequence[ProductRecord]) -> MergedProduct:
    """Combine records into a MergedProduct.

    Records are visited in precedence order (input order within a rank).
    A key is kept from the first source that supplies it; a later source of
    the same rank replaces it only with a longer value.
    """
    ordered = sorted(records, key=lambda r: precedence_rank(r.source))
    merged = MergedProduct(records=list(ordered))
    scalar_ranks: Dict[str, int] = {}
    raw_texts: List[str] = []

    for record in ordered:
        rank = precedence_rank(record.source)
        if record.source not in merged.sources:
            merged.sources.append(record.source)

        for field_name in ("title", "price", "description", "url"):
            current = getattr(merged, field_name)
            candidate = getattr(record, field_name)
            if _prefer(current, candidate, scalar_ranks.get(field_name, rank), rank):
                setattr(merged, field_name, candidate)
                scalar_ranks[field_name] = rank
                merged.field_sources[field_name] = record.source

        for key, value in record.specifications.items():
            existing = merged.specifications.get(key)
            if existing is None:
                merged.specifications[key] = SpecValue(value, record.source, CONFIDENCE_BY_RANK[rank])
            elif _prefer(existing.value, value, precedence_rank(existing.source), rank):
                logger.debug(
                    f"{key}: {record.source.value} value {value!r} replaces "
                    f"{existing.source.value} value {existing.value!r} (same rank, longer)"
                )
                merged.specifications[key] = SpecValue(value, record.source, CONFIDENCE_BY_RANK[rank])
            elif existing.value != value:
                logger.debug(f"{key}: kept {existing.source.value} over {record.source.value}")

        for image in record.images:
            if image not in merged.images and len(merged.images) < MAX_IMAGES:
                merged.images.append(image)
        if record.raw_text:
            raw_texts.append(record.raw_text)

    merged.raw_text = "\n\n".join(raw_texts)
    logger.debug(
        f"Merged {len(ordered)} records from {[s.value for s in merged.sources]} "
        f"into {len(merged.specifications)} specifications"
    )
    return merged


def aggregate_results(results: Sequence[SourceResult]) -> MergedProduct:
    """Merge every usable result; fallback and failed sources become warnings."""
    records = [r.record for r in results if r.record is not None]
    merged = aggregate(records)
    for result in results:
        if result.status != SourceResult.OK and result.error:
            merged.warnings.append(f"{result.source.value}: {result.error}")
    return merged


def gather_sources(fetchers: Sequence[SourceFetcher], max_workers: int = MAX_WORKERS) -> List[SourceResult]:
    """Run source fetchers concurrently.

    Args:
        fetchers: (source tag, zero-argument callable) pairs
        max_workers: Thread pool size

    Returns:
        One SourceResult per fetcher, in submission order. A fetcher that
        raises becomes a ``failed`` result; its siblings keep running.
    """
    if not fetchers:
        return []

    results: List[SourceResult] = []
    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(fetchers)))) as executor:
        futures = [(source, executor.submit(fetch)) for source, fetch in fetchers]
        for source, future in futures:
            try:
                results.append(future.result())
            except Exception as e:
                logger.error(f"{source.value} fetch raised: {e}")
                results.append(SourceResult.failed(source, str(e)))
    return results
