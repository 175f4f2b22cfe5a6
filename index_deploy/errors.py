"""Error types raised while deploying search indexes."""
import json


class DeployError(Exception):
    """Base class for all deployment errors."""


class ConfigurationError(DeployError):
    """Missing or invalid parameters. Raised before any call is made."""


class CredentialResolutionError(DeployError):
    """The admin key could not be fetched for the search service."""


class TransportError(DeployError):
    """Network-level failure talking to the search service."""


class APIError(DeployError):
    """The search service answered with an unexpected status code."""

    def __init__(self, status_code: int, message: str | None = None, code: str | None = None):
        self.status_code = status_code
        self.message = message
        self.code = code
        super().__init__(self.detail())

    def detail(self) -> str:
        parts = [f"HTTP {self.status_code}"]
        if self.code:
            parts.append(self.code)
        if self.message:
            parts.append(self.message)
        return ": ".join(parts)


def parse_error_body(text: str | None) -> tuple[str | None, str | None]:
    """Return (code, message) from an Azure error body like {"error": {"code", "message"}}.
    Falls back to the raw text (truncated) when the shape is not there. Never raises."""
    if not text or not text.strip():
        return None, None
    try:
        data = json.loads(text)
    except ValueError:
        return None, text.strip()[:500]
    err = data.get("error") if isinstance(data, dict) else None
    if isinstance(err, dict):
        code = err.get("code") if isinstance(err.get("code"), str) else None
        message = err.get("message") if isinstance(err.get("message"), str) else None
        if code or message:
            return code, message
    return None, text.strip()[:500]
