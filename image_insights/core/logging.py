"""
Purpose:
- One place to set up logging for both entry points (relay + Streamlit UI).
- Masks Cloudflare bearer tokens and KEY/TOKEN style assignments before anything is written.

Levels:
- DEBUG: outbound model calls, preview regeneration
- INFO: startup, completed requests
- WARNING: client-side relay failures, undecodable uploads
- ERROR: relay failures (logged with traceback)
"""

from __future__ import annotations
import logging
import re
from typing import List

REDACT_PATTERNS: List[str] = [
    # Bearer tokens in headers
    r"\bBearer\s+([A-Za-z0-9._\-+=]{20,})\b",
    # ENV-style assignments: CLOUDFLARE_API_TOKEN=secret or API_KEY: secret
    r"\b[A-Z0-9_]+(?:KEY|TOKEN|SECRET|PASSWORD)\s*[=:]\s*([^\s\"']{8,})",
]

# Third-party loggers that are too noisy at INFO level
NOISY_LOGGERS = ["httpx", "httpcore", "uvicorn.access", "PIL"]


class SecretRedactor:
    """Replace secrets in text with a partially masked form (first/last 4 chars)."""

    def __init__(self, patterns: List[str] | None = None):
        self.patterns = [re.compile(p, re.IGNORECASE) for p in (patterns or REDACT_PATTERNS)]

    def redact(self, text: str) -> str:
        if not text:
            return text
        for pattern in self.patterns:
            text = pattern.sub(self._mask, text)
        return text

    def _mask(self, match: re.Match) -> str:
        full = match.group(0)
        token = match.group(1)
        if len(token) < 12:
            return full.replace(token, "***")
        return full.replace(token, f"{token[:4]}...{token[-4:]}")


class RedactingFilter(logging.Filter):
    """Handler filter that rewrites the rendered message with secrets masked."""

    def __init__(self, redactor: SecretRedactor | None = None):
        super().__init__()
        self.redactor = redactor or SecretRedactor()

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = self.redactor.redact(record.getMessage())
        record.args = None
        return True


def configure_logging(level: str = "INFO") -> None:
    """
    Install a single stream handler on the root logger.
    Safe to call more than once (Streamlit reruns the script on every interaction).
    """
    level = (level or "INFO").upper()
    if level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
        level = "INFO"

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    handler.addFilter(RedactingFilter())

    logging.basicConfig(level=getattr(logging, level), handlers=[handler], force=True)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
