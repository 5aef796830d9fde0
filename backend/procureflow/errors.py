# errors.py
# Error taxonomy for the proxy routes. Every error knows the HTTP status it maps to.


class ProxyError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ConfigurationError(ProxyError):
    """A required endpoint URL is not configured."""
    status_code = 500


class MissingFieldsError(ProxyError):
    status_code = 400


class UpstreamProtocolError(ProxyError):
    """The script endpoint answered with something that is not the expected JSON."""
    status_code = 500


class UpstreamError(ProxyError):
    """The script endpoint reported a failure (HTTP error or success: false)."""

    def __init__(self, message: str, status_code: int = 500):
        # a 2xx carrying success: false is still a failure for the caller
        if status_code is None or 200 <= status_code < 400:
            status_code = 500
        super().__init__(message, status_code)


PREVIEW_CHARS = 200
LOG_PREVIEW_CHARS = 500


def preview(text: str, limit: int = PREVIEW_CHARS) -> str:
    return (text or "")[:limit]
