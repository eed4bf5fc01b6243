"""
Purpose:
- Sanity-check critical library versions after upgrades.
- Import the exact modules we use and print versions so we can spot drift immediately.
"""

import sys
import fastapi
import uvicorn
import httpx
import PIL
import streamlit
from pydantic_settings import BaseSettings

from image_insights.core.settings import settings

print("python", sys.version)
print("fastapi", fastapi.__version__)
print("uvicorn", uvicorn.__version__)
print("httpx", httpx.__version__)
print("pillow", PIL.__version__)
print("streamlit", streamlit.__version__)
print("pydantic-settings", BaseSettings.__module__.split(".")[0])  # presence check
print("model", settings.vlm_model_name)
print("gateway", "configured" if settings.cloudflare_gateway_id else "not configured (direct endpoint)")
print("OK")
