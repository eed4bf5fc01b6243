"""
Hosted vision-language model client (Cloudflare Workers AI):
- Routed through an AI Gateway when a gateway id is configured (enables the cache directive).
- Falls back to the direct Workers AI REST endpoint otherwise (no cache headers).
- One httpx.AsyncClient per call; nothing is pooled or shared between requests.
- Returns the model's text field unchanged.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from ..core.settings import settings

logger = logging.getLogger(__name__)

_CLIENT_SINGLETON = None  # cached instance

class ModelInvocationError(RuntimeError):
    """The external model call failed or returned something we can't use."""

@dataclass
class CacheDirective:
    skip_cache: bool = False
    ttl_seconds: int = 3600

    def headers(self) -> Dict[str, str]:
        return {
            "cf-aig-skip-cache": "true" if self.skip_cache else "false",
            "cf-aig-cache-ttl": str(int(self.ttl_seconds)),
        }

@dataclass
class WorkersAIConfig:
    account_id: str
    api_token: str
    model: str
    gateway_id: Optional[str] = None
    gateway_base_url: str = "https://gateway.ai.cloudflare.com/v1"
    workers_ai_base_url: str = "https://api.cloudflare.com/client/v4"
    timeout: Optional[float] = None   # None = unbounded

class WorkersAIClient:
    def __init__(self, cfg: WorkersAIConfig, transport: httpx.AsyncBaseTransport | None = None):
        self.cfg = cfg
        self._transport = transport   # tests inject httpx.MockTransport here

    @property
    def url(self) -> str:
        cfg = self.cfg
        if cfg.gateway_id:
            base = cfg.gateway_base_url.rstrip("/")
            return f"{base}/{cfg.account_id}/{cfg.gateway_id}/workers-ai/{cfg.model}"
        base = cfg.workers_ai_base_url.rstrip("/")
        return f"{base}/accounts/{cfg.account_id}/ai/run/{cfg.model}"

    def _headers(self, cache: CacheDirective | None) -> Dict[str, str]:
        headers = {"Authorization": f"Bearer {self.cfg.api_token}"}
        # cache directives are a gateway feature; the direct endpoint ignores them
        if cache is not None and self.cfg.gateway_id:
            headers.update(cache.headers())
        return headers

    async def run(
        self,
        messages: List[Dict[str, str]],
        image: bytes,
        *,
        temperature: float,
        max_tokens: int,
        cache: CacheDirective | None = None,
    ) -> str:
        """
        Send one prompt + image and return the model's `response` text.
        Raises ModelInvocationError on transport errors, non-2xx, or an unexpected envelope.
        """
        payload: Dict[str, Any] = {
            "messages": messages,
            "image": list(image),     # Workers AI takes the raw bytes as an int array
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        logger.debug(
            "Calling %s (image=%d bytes, max_tokens=%d, gateway=%s)",
            self.cfg.model, len(image), max_tokens, bool(self.cfg.gateway_id),
        )

        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.cfg.timeout) as client:
                resp = await client.post(self.url, json=payload, headers=self._headers(cache))
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as e:
            raise ModelInvocationError(
                f"model call failed with HTTP {e.response.status_code}: {e.response.text[:300]}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise ModelInvocationError(f"model call failed: {e!r}") from e

        return _extract_response(data)

def _extract_response(data: Any) -> str:
    if not isinstance(data, dict):
        raise ModelInvocationError("unexpected model response envelope")
    if data.get("success") is False:
        raise ModelInvocationError(f"model reported failure: {data.get('errors')!r}")
    result = data.get("result")
    text = result.get("response") if isinstance(result, dict) else None
    if not isinstance(text, str):
        raise ModelInvocationError("model response is missing result.response")
    return text

def get_model_client() -> WorkersAIClient:
    """
    Return a cached client built from settings.
    Raises ModelInvocationError when credentials are missing, so the relay reports it like any other failure.
    """
    global _CLIENT_SINGLETON
    if _CLIENT_SINGLETON is not None:
        return _CLIENT_SINGLETON

    if not settings.cloudflare_account_id or not settings.cloudflare_api_token:
        raise ModelInvocationError("CLOUDFLARE_ACCOUNT_ID and CLOUDFLARE_API_TOKEN must be set")

    cfg = WorkersAIConfig(
        account_id=settings.cloudflare_account_id,
        api_token=settings.cloudflare_api_token,
        model=settings.vlm_model_name,
        gateway_id=settings.cloudflare_gateway_id,
        gateway_base_url=settings.gateway_base_url,
        workers_ai_base_url=settings.workers_ai_base_url,
        timeout=settings.vlm_timeout_seconds,
    )
    _CLIENT_SINGLETON = WorkersAIClient(cfg)
    return _CLIENT_SINGLETON
