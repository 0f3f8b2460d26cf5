"""Process configuration from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    hhts_env: str = "development"
    hhts_log_level: str = "info"

    # Batch defaults
    hhts_output_dir: str = ""
    hhts_workers: int = 1

    # HTTP surface
    hhts_host: str = "127.0.0.1"
    hhts_port: int = 8000
    # reject uploads above this many pixels
    hhts_max_pixels: int = 4096 * 4096

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
