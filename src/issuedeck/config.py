from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, cast

import yaml
from dotenv import load_dotenv

from .categories import DEFAULT_CATEGORIES, Category, CategoryTable
from .github_rest import DEFAULT_API_URL, DEFAULT_PAGE_SIZE, DEFAULT_TIMEOUT

CONFIG_DEFAULT = "issuedeck.config.yaml"
TOKEN_ENV_VARS = ("GITHUB_TOKEN", "GH_TOKEN")


class ConfigError(RuntimeError):
    pass


@dataclass
class DeckConfig:
    source_file: Path | None = None
    github_repo: str | None = None
    github_token: str | None = None
    github_api_url: str = DEFAULT_API_URL
    github_per_page: int = DEFAULT_PAGE_SIZE
    github_timeout: float = DEFAULT_TIMEOUT
    categories: CategoryTable = field(default_factory=lambda: DEFAULT_CATEGORIES)
    plan_file: Path | None = None
    # Logging configuration
    logging_json_enabled: bool = False
    logging_level: str = "INFO"
    # Relay configuration
    relay_host: str = "127.0.0.1"
    relay_port: int = 8000

    def require_repo(self) -> str:
        if not self.github_repo or "/" not in self.github_repo:
            raise ConfigError(
                "GitHub repository not configured; set github.repo (owner/name) "
                "or GITHUB_OWNER and GITHUB_REPO"
            )
        return self.github_repo


def _resolve_env_var(value: Any) -> Any:
    """Resolve environment variable if value starts with $."""
    if isinstance(value, str) and value.startswith('$'):
        return os.getenv(value[1:], value)  # Fallback to original if not found
    return value


def _load_env_file() -> None:
    for location in (".env", ".env.local"):
        env_path = Path(location)
        if env_path.exists():
            load_dotenv(env_path)
            break


def _token_from_env() -> str | None:
    for name in TOKEN_ENV_VARS:
        token = os.getenv(name)
        if token and token.strip():
            return token.strip()
    return None


def _repo_from_env() -> str | None:
    owner = os.getenv('GITHUB_OWNER')
    repo = os.getenv('GITHUB_REPO')
    if owner and repo:
        return f'{owner}/{repo}'
    return None


def _load_categories(raw: Any) -> CategoryTable:
    if raw is None:
        return DEFAULT_CATEGORIES
    if not isinstance(raw, list):
        raise ConfigError('categories must be a list')
    entries: list[Category] = []
    for entry in raw:
        if not isinstance(entry, dict) or not entry.get('id') or not entry.get('label_name'):
            raise ConfigError(f'category entry needs id and label_name: {entry!r}')
        entries.append(
            Category(
                id=str(entry['id']),
                label=str(entry.get('label') or entry['id']),
                label_name=str(entry['label_name']),
                color=entry.get('color'),
            )
        )
    try:
        return CategoryTable(entries)
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc


def load_config(path: str | Path | None = None, *, load_env: bool = True) -> DeckConfig:
    """Read YAML config plus environment.

    With no explicit path, a missing ``issuedeck.config.yaml`` just means
    defaults; an explicit path that does not exist is an error.
    """
    if load_env:
        _load_env_file()
    p = Path(path) if path is not None else Path(CONFIG_DEFAULT)
    raw: dict[str, Any] = {}
    if p.exists():
        loaded = yaml.safe_load(p.read_text(encoding='utf-8'))
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError(f'Configuration must be a mapping: {p}')
        raw = cast(dict[str, Any], loaded)
    elif path is not None:
        raise ConfigError(f'Configuration file not found: {p}')

    gh = cast(dict[str, Any], raw.get('github', {}) or {})
    plan = cast(dict[str, Any], raw.get('plan', {}) or {})
    logging_config = cast(dict[str, Any], raw.get('logging', {}) or {})
    relay = cast(dict[str, Any], raw.get('relay', {}) or {})

    plan_file = plan.get('file')
    return DeckConfig(
        source_file=p if p.exists() else None,
        github_repo=_resolve_env_var(gh.get('repo')) or _repo_from_env(),
        github_token=_resolve_env_var(gh.get('token')) or _token_from_env(),
        github_api_url=gh.get('api_url', DEFAULT_API_URL),
        github_per_page=int(gh.get('per_page', DEFAULT_PAGE_SIZE)),
        github_timeout=float(gh.get('timeout', DEFAULT_TIMEOUT)),
        categories=_load_categories(raw.get('categories')),
        plan_file=(p.parent / plan_file) if plan_file else None,
        logging_json_enabled=bool(logging_config.get('json_enabled', False)),
        logging_level=logging_config.get('level', 'INFO'),
        relay_host=relay.get('host', '127.0.0.1'),
        relay_port=int(relay.get('port', 8000)),
    )


__all__ = ['CONFIG_DEFAULT', 'ConfigError', 'DeckConfig', 'load_config']
