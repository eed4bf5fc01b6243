"""
Purpose:
- Centralized configuration using pydantic-settings.
- Reads from environment variables and optional .env file.
- Shared by the relay (FastAPI) and the Streamlit front end.
"""

# --- Purpose: robust settings with env-file support and safe handling of extra keys.
from typing import List, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Pydantic v2 config (env file + ignore unexpected env vars)
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",          # <-- prevents crashes if extra env vars exist
    )

    # API host/port
    host: str = Field(default="0.0.0.0", description="Bind address for FastAPI/Uvicorn")
    port: int = Field(default=8000, description="Port for FastAPI/Uvicorn")

    # CORS
    cors_allow_origins: List[str] = Field(
        default=["http://localhost:8501", "http://localhost:3000"],
        description="Allowed origins for browser apps"
    )

    log_level: str = Field(default="INFO", description="Root log level")

    # ---- Workers AI credentials ----
    # These can come from env (.env or shell): CLOUDFLARE_ACCOUNT_ID, CLOUDFLARE_API_TOKEN, CLOUDFLARE_GATEWAY_ID
    cloudflare_account_id: Optional[str] = None
    cloudflare_api_token: Optional[str] = None
    cloudflare_gateway_id: Optional[str] = None

    gateway_base_url: str = Field(default="https://gateway.ai.cloudflare.com/v1")
    workers_ai_base_url: str = Field(default="https://api.cloudflare.com/client/v4")

    # ---- Model knobs ----
    vlm_model_name: str = Field(default="@cf/meta/llama-3.2-11b-vision-instruct", description="Hosted VLM")
    vlm_temperature: float = Field(default=0.0)
    insights_max_tokens: int = Field(default=512)     # language/length variant
    question_max_tokens: int = Field(default=1024)    # free-text question variant
    vlm_timeout_seconds: Optional[float] = Field(default=None, description="None = wait as long as the gateway does")

    # ---- Gateway cache directive ----
    cache_skip: bool = Field(default=False)
    cache_ttl_seconds: int = Field(default=3600)

    # ---- Front end ----
    relay_url: str = Field(default="http://localhost:8000", description="Base URL the UI posts to")
    preview_container_width: int = Field(default=720)
    preview_aspect: float = Field(default=3.0)        # container width / height
    # returned markup is model output; only trust it when explicitly asked to
    render_unsafe_markup: bool = Field(default=False)

settings = Settings()
