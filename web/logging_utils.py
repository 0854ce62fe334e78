"""Interaction logging for the QC web app.

Every API request that reaches the pipeline is written to a daily JSONL file
as a ``qc_request`` / ``qc_response`` pair sharing one request id, so a
single analysis can be traced from upload to risk verdict. Rejected uploads
and image failures are logged under the same id.
"""

import json
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from flask import g, has_request_context

__all__ = [
    "log_interaction",
    "get_request_id",
    "summarize_uploads",
    "summarize_qc_result",
    "LOG_DIR",
    "LOG_FILE",
]

LOG_DIR = Path(__file__).parent / "logs"
LOG_DIR.mkdir(exist_ok=True)
LOG_FILE = LOG_DIR / f"qc_interactions_{datetime.now().strftime('%Y%m%d')}.jsonl"


def get_request_id() -> Optional[str]:
    """Id of the current Flask request, created on first use; None outside a request."""
    if not has_request_context():
        return None
    if "request_id" not in g:
        g.request_id = uuid.uuid4().hex[:12]
    return g.request_id


def summarize_uploads(uploads: Iterable[Any]) -> List[Dict[str, Any]]:
    """Filename, MIME type and size of each upload; never the content."""
    return [{"filename": u.filename, "type": u.mime_type, "size": len(u.content)} for u in uploads]


def summarize_qc_result(result: Mapping[str, Any]) -> Dict[str, Any]:
    """The parts of a pipeline response worth keeping in the interaction log."""
    analysis = result.get("analysis") or {}
    completeness = analysis.get("completenessScore") or {}
    return {
        "success": result.get("success"),
        "overall_risk": analysis.get("overallRisk"),
        "category": (analysis.get("category") or {}).get("key"),
        "completeness": completeness.get("overall"),
        "conflicts": len(analysis.get("conflicts") or []),
        "sources": (analysis.get("productPage") or {}).get("sources"),
        "warning": result.get("warning"),
        "fallback": bool((analysis.get("productPage") or {}).get("isFallback")),
    }


def log_interaction(event_type: str, data: Dict[str, Any]) -> None:
    """Append one event to the daily JSONL file.

    Args:
        event_type: Type of event (qc_request, qc_response, upload_rejected,
            image_processing_error)
        data: Event-specific fields, usually including ``vendor``

    Inside a request the entry carries the request id.
    """
    log_entry: Dict[str, Any] = {"timestamp": datetime.now().isoformat(), "event_type": event_type}
    request_id = get_request_id()
    if request_id:
        log_entry["request_id"] = request_id
    log_entry.update(data)
    with open(LOG_FILE, "a", encoding="utf-8") as f:
        f.write(json.dumps(log_entry, ensure_ascii=False, default=str) + "\n")
