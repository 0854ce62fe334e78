"""Product data quality-control engine."""

__version__ = "0.1.0"

# Re-export main components for convenient imports
from productqc.aggregator import SOURCE_PRECEDENCE, aggregate, aggregate_results, gather_sources
from productqc.classifier import classify
from productqc.evaluator import evaluate
from productqc.models import (
    Conflict,
    MergedProduct,
    ProductRecord,
    Severity,
    SourceResult,
    SourceTag,
)
from productqc.normalizer import normalize
from productqc.patterns import extract
from productqc.pipeline import AnalysisRequest, UploadedFile, run_qc_analysis
from productqc.schema import validate
from productqc.taxonomy import load_taxonomy

__all__ = [
    # Version
    "__version__",
    # Models
    "SourceTag",
    "Severity",
    "ProductRecord",
    "SourceResult",
    "MergedProduct",
    "Conflict",
    # Core functions
    "normalize",
    "extract",
    "load_taxonomy",
    "classify",
    "validate",
    "SOURCE_PRECEDENCE",
    "aggregate",
    "aggregate_results",
    "gather_sources",
    "evaluate",
    # Workflow
    "AnalysisRequest",
    "UploadedFile",
    "run_qc_analysis",
]
