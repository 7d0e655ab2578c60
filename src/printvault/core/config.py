from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class AppPaths:
    project_root: Path
    data_dir: Path
    db_path: Path


@dataclass(frozen=True)
class Settings:
    env: str = "development"
    admin_password: str = "admin123"
    jwt_secret: str = "default_jwt_secret"
    token_ttl_days: int = 7
    cors_origin: str = "http://localhost:3000"
    default_page_limit: int = 12
    max_page_limit: int = 100

    @property
    def is_development(self) -> bool:
        return self.env == "development"


DEFAULT_DATA_DIRNAME = ".printvault"


def load_paths(project_root: Path | None = None) -> AppPaths:
    root = (project_root or Path.cwd()).expanduser().resolve()

    home_raw = os.getenv("PRINTVAULT_HOME")
    if home_raw:
        data_dir = Path(home_raw).expanduser().resolve()
    else:
        data_dir = root / DEFAULT_DATA_DIRNAME

    return AppPaths(
        project_root=root,
        data_dir=data_dir,
        db_path=data_dir / "printvault.db",
    )


def _read_positive_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def load_settings() -> Settings:
    env = (os.getenv("PRINTVAULT_ENV") or "development").strip().lower()
    if env not in {"development", "production"}:
        env = "development"

    max_limit = _read_positive_int_env("PRINTVAULT_MAX_PAGE_LIMIT", 100)
    default_limit = min(_read_positive_int_env("PRINTVAULT_DEFAULT_PAGE_LIMIT", 12), max_limit)

    return Settings(
        env=env,
        admin_password=os.getenv("PRINTVAULT_ADMIN_PASSWORD") or "admin123",
        jwt_secret=os.getenv("PRINTVAULT_JWT_SECRET") or "default_jwt_secret",
        token_ttl_days=_read_positive_int_env("PRINTVAULT_TOKEN_TTL_DAYS", 7),
        cors_origin=os.getenv("PRINTVAULT_CORS_ORIGIN") or "http://localhost:3000",
        default_page_limit=default_limit,
        max_page_limit=max_limit,
    )
