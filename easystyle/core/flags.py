"""
Central feature flags. One file controls every optional dependency.

Set via environment variables (prefix FF_) or .env file.
When a flag is OFF, the system skips the feature. Nothing crashes.
"""

from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FeatureFlags(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Realtime ─────────────────────────────────────────────────────
    use_redis: bool = Field(default=False, alias="FF_USE_REDIS")
    # ON  → Pipeline progress published over Redis pub/sub. Needs REDIS_URL.
    # OFF → Progress events silently skipped.

    # ── Styling pipeline ─────────────────────────────────────────────
    enable_cropping: bool = Field(default=True, alias="FF_ENABLE_CROPPING")
    # ON  → Each product gets an AI-cropped thumbnail from the styled image.
    # OFF → Products keep their catalog image only. Saves one image call per product.


@lru_cache
def get_flags() -> FeatureFlags:
    return FeatureFlags()
