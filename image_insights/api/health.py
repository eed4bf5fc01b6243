# Common language: Environment/ops probe that surfaces library versions and model config.
# Use this before/after upgrades to confirm no silent drift.

from fastapi import APIRouter
from ..core.settings import settings
import sys, importlib

router = APIRouter(tags=["health"])

def _ver(modname: str) -> str:
    try:
        m = importlib.import_module(modname)
        return getattr(m, "__version__", "unknown")
    except Exception:
        return "not-installed"

@router.get("/healthz")
def healthz():
    # Only report whether credentials are present, never their values.
    return {
        "status": "ok",
        "python": sys.version.split()[0],
        "versions": {
            "fastapi": _ver("fastapi"),
            "uvicorn": _ver("uvicorn"),
            "pydantic_settings": _ver("pydantic_settings"),
            "httpx": _ver("httpx"),
            "PIL": _ver("PIL"),
            "multipart": _ver("multipart"),
        },
        "model": {
            "name": settings.vlm_model_name,
            "temperature": settings.vlm_temperature,
            "insights_max_tokens": settings.insights_max_tokens,
            "question_max_tokens": settings.question_max_tokens,
            "via_gateway": bool(settings.cloudflare_gateway_id),
            "cache_ttl_seconds": settings.cache_ttl_seconds,
        },
        "env_keys_present": {
            "CLOUDFLARE_ACCOUNT_ID": bool(settings.cloudflare_account_id),
            "CLOUDFLARE_API_TOKEN": bool(settings.cloudflare_api_token),
            "CLOUDFLARE_GATEWAY_ID": bool(settings.cloudflare_gateway_id),
        },
    }
