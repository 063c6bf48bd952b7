from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, cast

import yaml

CONFIG_DEFAULT = "issue_board.config.yaml"
DEFAULT_STORE_URL = "https://firestore.googleapis.com/v1"
DEFAULT_AUTH_URL = "https://identitytoolkit.googleapis.com/v1"
DEFAULT_TOKEN_URL = "https://securetoken.googleapis.com/v1/token"
STORE_BACKENDS = ("firestore", "local")


class ConfigError(RuntimeError):
    pass


@dataclass
class BoardConfig:
    version: int
    source_file: Path | None
    # Store configuration
    store_backend: str
    project_id: str | None
    database: str
    collection: str
    store_base_url: str
    api_key: str | None
    request_timeout: float
    local_file: Path
    # Identity service configuration
    auth_base_url: str
    auth_token_url: str
    session_file: Path
    load_dotenv: bool
    dotenv_path: str | None
    # UI behaviour
    debounce_ms: int
    status_error_clear_seconds: float
    similar_limit: int
    # Logging configuration
    logging_json_enabled: bool
    logging_level: str

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0


def _resolve_env_var(value: Any) -> Any:
    """Resolve environment variable if value starts with $."""
    if isinstance(value, str) and value.startswith('$'):
        return os.getenv(value[1:]) or None
    return value


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name, {}) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"Config section '{name}' must be a mapping")
    return cast(dict[str, Any], value)


def load_config(path: str | Path = CONFIG_DEFAULT, *, missing_ok: bool = False) -> BoardConfig:
    p = Path(path)
    if p.exists():
        try:
            loaded = yaml.safe_load(p.read_text()) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f'Invalid YAML in {p}: {exc}') from exc
        if not isinstance(loaded, dict):
            raise ConfigError(f'Configuration root must be a mapping: {p}')
        raw = cast(dict[str, Any], loaded)
        source: Path | None = p
    elif missing_ok:
        raw = {}
        source = None
    else:
        raise ConfigError(f'Configuration file not found: {p}')

    base_dir = p.parent if source else Path.cwd()
    store = _section(raw, 'store')
    auth = _section(raw, 'auth')
    behavior = _section(raw, 'behavior')
    logging_config = _section(raw, 'logging')

    backend = str(store.get('backend', 'firestore')).lower()
    if os.environ.get('ISSUEBOARD_MOCK') == '1':
        backend = 'local'
    if backend not in STORE_BACKENDS:
        raise ConfigError(f'Unknown store backend: {backend!r} (expected one of {STORE_BACKENDS})')

    try:
        return BoardConfig(
            version=int(raw.get('version', 1)),
            source_file=source,
            store_backend=backend,
            project_id=_resolve_env_var(store.get('project_id', '$ISSUEBOARD_PROJECT_ID')),
            database=store.get('database', '(default)'),
            collection=store.get('collection', 'issues'),
            store_base_url=store.get('base_url', DEFAULT_STORE_URL),
            api_key=_resolve_env_var(store.get('api_key', '$ISSUEBOARD_API_KEY')),
            request_timeout=float(store.get('timeout', 10)),
            local_file=base_dir / store.get('local_file', '.issueboard_issues.json'),
            auth_base_url=auth.get('base_url', DEFAULT_AUTH_URL),
            auth_token_url=auth.get("token_url", DEFAULT_TOKEN_URL),
            session_file=base_dir / auth.get('session_file', '.issueboard_session.json'),
            load_dotenv=bool(auth.get('load_dotenv', True)),
            dotenv_path=auth.get('dotenv_path'),
            debounce_ms=int(behavior.get('debounce_ms', 500)),
            status_error_clear_seconds=float(behavior.get('status_error_clear_seconds', 5)),
            similar_limit=int(behavior.get('similar_limit', 5)),
            logging_json_enabled=bool(logging_config.get('json_enabled', False)),
            logging_level=str(logging_config.get('level', 'INFO')),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f'Invalid configuration value in {p}: {exc}') from exc
