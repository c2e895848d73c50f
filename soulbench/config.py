"""
Configuration settings for SoulBench.

Uses Pydantic Settings to load environment variables for logging, benchmark
defaults, result persistence, and database client timeouts. Backend DSNs are
not configured here: they live in the scenario file next to the queries they
serve.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Benchmark defaults
    benchmark_iterations: int = Field(50, alias="BENCHMARK_ITERATIONS", ge=1)
    benchmark_warmup_iterations: int = Field(5, alias="BENCHMARK_WARMUP_ITERATIONS", ge=0)
    benchmark_p_value_method: Literal["bucketed", "exact"] = Field(
        "bucketed", alias="BENCHMARK_P_VALUE_METHOD"
    )
    results_dir: str = Field("results", alias="RESULTS_DIR")

    # Load test defaults
    load_concurrency: int = Field(10, alias="LOAD_CONCURRENCY", ge=1)
    load_duration_s: float = Field(30.0, alias="LOAD_DURATION_S", gt=0)
    load_pause_ms: int = Field(10, alias="LOAD_PAUSE_MS", ge=0)

    # Database clients
    db_statement_timeout_ms: int = Field(5000, alias="DB_STATEMENT_TIMEOUT_MS", ge=0)
    db_connect_timeout_s: int = Field(10, alias="DB_CONNECT_TIMEOUT_S", ge=1)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
