"""
Purpose:
- Post one image + parameters to the relay and hand back the `insights` text.
- Any non-2xx, unparsable body, or missing/empty `insights` field is a RelayError.

Notes:
- No client-side timeout: a request runs until the relay (or its host) gives up.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Optional, Union

import httpx

from ..core.options import DescriptionLength, Language

GENERATE_PATH = "/api/generate_insights"

class RelayError(RuntimeError):
    """The relay round trip failed; the cause is kept for logs, not for users."""

@dataclass
class UploadedImage:
    data: bytes
    mime_type: str
    filename: Optional[str] = None

@dataclass
class InsightParameters:
    language: Language = Language.ENGLISH
    length: DescriptionLength = DescriptionLength.SHORT

    def form_fields(self) -> Dict[str, str]:
        return {"language": self.language.value, "length": self.length.value}

@dataclass
class QuestionParameters:
    question: str = ""

    def form_fields(self) -> Dict[str, str]:
        return {"question": self.question}

RequestParameters = Union[InsightParameters, QuestionParameters]

class RelayClient:
    def __init__(self, base_url: str, transport: httpx.BaseTransport | None = None):
        self.base_url = base_url.rstrip("/")
        self._transport = transport   # tests inject httpx.MockTransport here

    def generate(self, image: UploadedImage, params: RequestParameters) -> str:
        files = {"image": (image.filename or "image", image.data, image.mime_type)}
        try:
            with httpx.Client(base_url=self.base_url, transport=self._transport, timeout=None) as client:
                resp = client.post(GENERATE_PATH, data=params.form_fields(), files=files)
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise RelayError(f"Failed to generate insights: {e!r}") from e

        insights = data.get("insights") if isinstance(data, dict) else None
        if not isinstance(insights, str) or not insights:
            raise RelayError("Unexpected response format")
        return insights
