# storage.py
# Local JSON cache of the vendors each request's quote emails went to.
# One entry per request ID. The live backend is the source of truth; the
# cache is only read when the backend can't answer.

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

log = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent.parent.parent
DATA_DIR = Path(os.getenv("PROCUREFLOW_DATA_DIR", BASE_DIR / "data"))
CACHE_FILE = "vendors_quotes_sent_to.json"


def _cache_path() -> Path:
    return Path(DATA_DIR) / CACHE_FILE


def read_json() -> Dict[str, Any]:
    p = _cache_path()
    if not p.exists():
        return {}
    try:
        data = json.loads(p.read_text())
    except (OSError, ValueError) as e:
        log.warning("Unreadable sent-quotes cache %s: %s", p, e)
        return {}
    return data if isinstance(data, dict) else {}


def write_json(obj: Dict[str, Any]) -> None:
    p = _cache_path()
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(obj, indent=2, default=str))


def read_sent_to(request_id: str) -> List[str]:
    vendors = read_json().get(request_id) or []
    return [str(v) for v in vendors if v] if isinstance(vendors, list) else []


def write_sent_to(request_id: str, vendors: List[str]) -> None:
    data = read_json()
    data[request_id] = list(vendors)
    try:
        write_json(data)
    except OSError as e:
        log.warning("Could not update sent-quotes cache for %s: %s", request_id, e)


def resolve_sent_to(request_id: str, live: Optional[List[str]]) -> List[str]:
    """
    Vendors a quote was sent to for ``request_id``.

    ``live`` is the backend's answer, or None when the call failed. A
    non-empty live answer wins and refreshes the cache; otherwise the cache
    is used (quote emails can go out before the sheet has rows for them).
    """
    if live:
        write_sent_to(request_id, live)
        return list(live)
    cached = read_sent_to(request_id)
    if cached:
        log.info("Using cached sent-quotes list for %s", request_id)
    return cached
