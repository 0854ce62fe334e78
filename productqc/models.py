"""Data models for product records, merged products and QC findings."""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

__all__ = [
    "SourceTag",
    "Severity",
    "ProductRecord",
    "SourceResult",
    "ParsedFile",
    "SpecValue",
    "MergedProduct",
    "Conflict",
    "CompletenessScore",
    "ValidationResult",
    "EvaluationResult",
    "round_half_up",
]


class SourceTag(str, Enum):
    """Where a product record came from."""

    WEBSITE = "Website"
    VENDOR_PDF = "VendorPDF"
    VENDOR_EXCEL = "VendorExcel"
    SCREENSHOT = "Screenshot"
    SEARCH_SNIPPET = "SearchSnippet"

    @property
    def is_vendor_document(self) -> bool:
        return self in (SourceTag.VENDOR_PDF, SourceTag.VENDOR_EXCEL)


class Severity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class ProductRecord:
    """Product data extracted from a single source.

    Specification keys are always canonical attribute names. Use
    ``ProductRecord.build`` when starting from raw scraped keys; it runs them
    through the text normalizer and drops the ones it rejects.
    """

    source: SourceTag
    title: str = ""
    price: str = ""
    description: str = ""
    url: str = ""
    specifications: Mapping[str, str] = field(default_factory=dict)
    images: Tuple[str, ...] = ()
    raw_text: str = ""
    meta_tags: Mapping[str, str] = field(default_factory=dict)
    scraping_error: Optional[str] = None
    is_limited_data: bool = False
    fetched_at: str = field(default_factory=lambda: datetime.now().isoformat())

    def __post_init__(self) -> None:
        object.__setattr__(self, "specifications", MappingProxyType(dict(self.specifications)))
        object.__setattr__(self, "meta_tags", MappingProxyType(dict(self.meta_tags)))
        object.__setattr__(self, "images", tuple(self.images))

    @classmethod
    def build(
        cls,
        source: SourceTag,
        raw_specifications: Optional[Mapping[str, Any]] = None,
        **fields: Any,
    ) -> "ProductRecord":
        """Create a record, normalizing raw specification keys."""
        from productqc.normalizer import normalize_specifications

        specs = normalize_specifications(raw_specifications or {})
        return cls(source=source, specifications=specs, **fields)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "source": self.source.value,
            "url": self.url,
            "title": self.title,
            "price": self.price,
            "description": self.description,
            "specifications": dict(self.specifications),
            "images": list(self.images),
            "metaTags": dict(self.meta_tags),
            "rawText": self.raw_text,
            "scrapedAt": self.fetched_at,
        }
        if self.scraping_error:
            data["scrapingError"] = self.scraping_error
            data["isLimitedData"] = self.is_limited_data
        return data


@dataclass(frozen=True)
class ParsedFile:
    """A vendor-supplied document after parsing."""

    filename: str
    mime_type: str
    size: int
    kind: str  # "pdf" or "excel"
    data: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filename": self.filename,
            "type": self.mime_type,
            "size": self.size,
            "kind": self.kind,
            "data": self.data,
        }


@dataclass(frozen=True)
class SourceResult:
    """Outcome of one source fetch.

    ``ok``: the record is complete. ``fallback``: the fetch failed but a
    best-effort record is still provided. ``failed``: nothing usable; the
    source is skipped.
    """

    source: SourceTag
    status: str
    record: Optional[ProductRecord] = None
    error: Optional[str] = None
    document: Optional[ParsedFile] = None

    OK = "ok"
    FALLBACK = "fallback"
    FAILED = "failed"

    @classmethod
    def success(cls, record: ProductRecord, document: Optional[ParsedFile] = None) -> "SourceResult":
        return cls(source=record.source, status=cls.OK, record=record, document=document)

    @classmethod
    def fallback(cls, record: ProductRecord, error: str) -> "SourceResult":
        return cls(source=record.source, status=cls.FALLBACK, record=record, error=error)

    @classmethod
    def failed(cls, source: SourceTag, error: str) -> "SourceResult":
        return cls(source=source, status=cls.FAILED, error=error)

    @property
    def ok(self) -> bool:
        return self.status == self.OK

    @property
    def usable(self) -> bool:
        return self.record is not None


@dataclass
class SpecValue:
    value: str
    source: SourceTag
    confidence: str

    def to_dict(self) -> Dict[str, str]:
        return {"value": self.value, "source": self.source.value, "confidence": self.confidence}


@dataclass
class MergedProduct:
    """All sources for one logical product combined by source precedence."""

    title: str = ""
    price: str = ""
    description: str = ""
    url: str = ""
    images: List[str] = field(default_factory=list)
    raw_text: str = ""
    specifications: Dict[str, SpecValue] = field(default_factory=dict)
    sources: List[SourceTag] = field(default_factory=list)
    # Source that supplied each scalar field (title, price, description, url)
    field_sources: Dict[str, SourceTag] = field(default_factory=dict)
    records: List[ProductRecord] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    error: Optional[str] = None

    def spec_values(self) -> Dict[str, str]:
        """Flat canonical key -> value view of the merged specifications."""
        return {k: v.value for k, v in self.specifications.items()}

    def record_for(self, source: SourceTag) -> Optional[ProductRecord]:
        for record in self.records:
            if record.source == source:
                return record
        return None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "title": self.title,
            "price": self.price,
            "description": self.description,
            "url": self.url,
            "images": list(self.images),
            "rawText": self.raw_text,
            "specifications": {k: v.to_dict() for k, v in self.specifications.items()},
            "sources": [s.value for s in self.sources],
        }
        if self.warnings:
            data["warnings"] = list(self.warnings)
        if self.error:
            data["error"] = self.error
            data["isFallback"] = True
        return data


@dataclass
class Conflict:
    type: str
    severity: Severity
    description: str
    sources: List[str]
    recommendation: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "severity": self.severity.value,
            "description": self.description,
            "sources": list(self.sources),
            "recommendation": self.recommendation,
        }


@dataclass
class CompletenessScore:
    per_source: Dict[str, int] = field(default_factory=dict)
    per_category_bucket: Dict[str, int] = field(default_factory=dict)
    overall: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "perSource": dict(self.per_source),
            "perCategoryBucket": dict(self.per_category_bucket),
            "overall": self.overall,
        }


@dataclass
class ValidationResult:
    """Category attribute completeness for one product."""

    category: str
    missing_critical: List[str]
    missing_recommended: List[str]
    critical_found: int
    critical_total: int
    recommended_found: int
    recommended_total: int
    completeness_percent: int

    @property
    def critical_percent(self) -> int:
        return _percent(self.critical_found, self.critical_total)

    @property
    def recommended_percent(self) -> int:
        return _percent(self.recommended_found, self.recommended_total)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "score": self.completeness_percent,
            "critical": {
                "found": self.critical_found,
                "total": self.critical_total,
                "percentage": self.critical_percent,
            },
            "recommended": {
                "found": self.recommended_found,
                "total": self.recommended_total,
                "percentage": self.recommended_percent,
            },
            "missing": {
                "critical": list(self.missing_critical),
                "recommended": list(self.missing_recommended),
            },
        }


@dataclass
class EvaluationResult:
    conflicts: List[Conflict]
    missing_attributes: Dict[str, List[str]]
    completeness: CompletenessScore
    recommendations: List[str]
    overall_risk: str
    brand_validation: Dict[str, Any] = field(default_factory=dict)

    def conflicts_by_severity(self, severity: Severity) -> List[Conflict]:
        return [c for c in self.conflicts if c.severity == severity]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "conflicts": [c.to_dict() for c in self.conflicts],
            "missingAttributes": {k: list(v) for k, v in self.missing_attributes.items()},
            "completenessScore": self.completeness.to_dict(),
            "recommendations": list(self.recommendations),
            "overallRisk": self.overall_risk,
            "brandValidation": dict(self.brand_validation),
        }


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves up."""
    return int(math.floor(value + 0.5))


def _percent(found: int, total: int) -> int:
    if total <= 0:
        return 100
    return round_half_up(found * 100 / total)


def source_names(sources: Sequence[SourceTag]) -> List[str]:
    return [s.value for s in sources]
