# sheets.py
# Thin client for the spreadsheet script endpoint. Every call is a single
# request: no retries, no caching.

import json
import logging
from typing import Any, Dict, Optional

import requests

from .errors import (
    LOG_PREVIEW_CHARS,
    UpstreamError,
    UpstreamProtocolError,
    preview,
)

log = logging.getLogger(__name__)


class ScriptClient:
    def __init__(self, session: requests.Session, timeout: Optional[float] = None):
        self.session = session
        self.timeout = timeout

    def get(self, url: str, params: Optional[Dict[str, Any]] = None,
            require_success: bool = True, failure: str = "Google Script returned an error") -> Any:
        log.info("GET %s params=%s", url, params or {})
        response = self.session.get(url, params=params or None, timeout=self.timeout)
        return self._read(response, require_success, failure)

    def post(self, url: str, payload: Dict[str, Any],
             require_success: bool = False, failure: str = "Google Script returned an error") -> Any:
        log.info("POST %s action=%s", url, payload.get("action", "-"))
        response = self.session.post(url, json=payload, timeout=self.timeout)
        return self._read(response, require_success, failure)

    def _read(self, response, require_success: bool, failure: str) -> Any:
        result = parse_json(response)
        if not response.ok:
            log.error("Upstream HTTP %s: %s", response.status_code,
                      preview(json.dumps(result, default=str), LOG_PREVIEW_CHARS))
            raise UpstreamError(_error_message(result, failure), response.status_code)
        if isinstance(result, dict):
            if result.get("success") is False or (require_success and not result.get("success")):
                log.error("Upstream reported failure: %s",
                          preview(json.dumps(result, default=str), LOG_PREVIEW_CHARS))
                raise UpstreamError(_error_message(result, failure), response.status_code)
        elif require_success:
            raise UpstreamProtocolError(
                f"Invalid response from Google Script: {preview(json.dumps(result, default=str))}"
            )
        return result


def parse_json(response) -> Any:
    content_type = response.headers.get("content-type", "") or ""
    text = response.text
    if "application/json" in content_type:
        try:
            return response.json()
        except ValueError:
            pass
    else:
        # text/plain bodies may still hold JSON
        try:
            return json.loads(text)
        except ValueError:
            pass
    log.error("Non-JSON response from Google Script: %s", preview(text, LOG_PREVIEW_CHARS))
    raise UpstreamProtocolError(f"Invalid response from Google Script: {preview(text)}")


def _error_message(result: Any, failure: str) -> str:
    if isinstance(result, dict) and result.get("error"):
        return str(result["error"])
    return failure
