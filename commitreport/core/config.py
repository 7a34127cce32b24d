"""Process configuration — environment variables → frozen Settings."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

_TRUTHY = {"1", "true", "yes", "on"}


def _env_float(env: Mapping[str, str], key: str, default: float) -> float:
    return float(env.get(key, default))


def _env_int(env: Mapping[str, str], key: str, default: int) -> int:
    return int(env.get(key, default))


def _env_bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(key)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


@dataclass(frozen=True)
class Settings:
    """Runtime settings. Build with :meth:`from_env`."""

    github_token: str | None = None
    github_api_url: str = "https://api.github.com"
    repositories_json: str | None = None
    repository_urls: str | None = None
    repository_names: str | None = None
    llm_model: str = "deepseek/deepseek-chat"
    llm_api_key: str | None = None
    database_url: str = "postgresql+asyncpg://localhost/commitreport"
    job_backend: str = "postgres"
    cache_ttl: float = 3600.0
    cache_maxsize: int = 100
    run_worker: bool = True
    worker_poll_interval: float = 2.0
    job_lease_seconds: float = 600.0
    cors_origins: str = "http://localhost:3000"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ
        return cls(
            github_token=env.get("GITHUB_TOKEN") or None,
            github_api_url=env.get("GITHUB_API_URL", cls.github_api_url),
            repositories_json=env.get("GITHUB_REPOSITORIES") or None,
            repository_urls=env.get("GITHUB_REPOSITORY_URLS") or None,
            repository_names=env.get("GITHUB_REPOSITORY_NAMES") or None,
            llm_model=env.get("COMMITREPORT_LLM_MODEL", cls.llm_model),
            llm_api_key=env.get("DEEPSEEK_API_KEY") or None,
            database_url=env.get("COMMITREPORT_DATABASE_URL", cls.database_url),
            job_backend=env.get("COMMITREPORT_JOB_BACKEND", cls.job_backend).lower(),
            cache_ttl=_env_float(env, "COMMITREPORT_CACHE_TTL", cls.cache_ttl),
            cache_maxsize=_env_int(env, "COMMITREPORT_CACHE_MAXSIZE", cls.cache_maxsize),
            run_worker=_env_bool(env, "COMMITREPORT_RUN_WORKER", cls.run_worker),
            worker_poll_interval=_env_float(
                env, "COMMITREPORT_WORKER_POLL_INTERVAL", cls.worker_poll_interval
            ),
            job_lease_seconds=_env_float(
                env, "COMMITREPORT_JOB_LEASE_SECONDS", cls.job_lease_seconds
            ),
            cors_origins=env.get("COMMITREPORT_CORS_ORIGINS", cls.cors_origins),
        )
