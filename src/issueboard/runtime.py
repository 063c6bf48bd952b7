"""Runtime wiring for the issueboard CLI."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any, Protocol

from .auth import IdentityClient, SessionStore
from .config import BoardConfig, ConfigError, load_config
from .firestore_rest import FirestoreIssueStore
from .logging import configure_logging, get_logger
from .service import IssueService
from .store import IssueStore, LocalIssueStore


class _HandlerCallable(Protocol):
    def __call__(self) -> Any: ...


def prepare_config(
    args: Any, *, loader: Callable[..., BoardConfig] = load_config
) -> BoardConfig:
    """Load BoardConfig for the given argparse namespace and configure logging."""
    if not hasattr(args, "config"):
        raise AttributeError("Command namespace is missing 'config' attribute")
    cfg = loader(args.config, missing_ok=True)
    level = "WARNING" if getattr(args, "quiet", False) else cfg.logging_level
    configure_logging(json_logging=cfg.logging_json_enabled, level=level)
    return cfg


def build_store(cfg: BoardConfig) -> IssueStore:
    if cfg.store_backend == "local":
        return LocalIssueStore(cfg.local_file)
    if not cfg.project_id:
        raise ConfigError(
            "store.project_id is not set (configure it or export ISSUEBOARD_PROJECT_ID)"
        )
    return FirestoreIssueStore(
        project_id=cfg.project_id,
        collection=cfg.collection,
        database=cfg.database,
        base_url=cfg.store_base_url,
        api_key=cfg.api_key,
        timeout=cfg.request_timeout,
    )


def build_service(cfg: BoardConfig, store: IssueStore | None = None) -> IssueService:
    return IssueService(store or build_store(cfg), similar_limit=cfg.similar_limit)


def build_identity(cfg: BoardConfig) -> IdentityClient:
    return IdentityClient(
        api_key=cfg.api_key,
        base_url=cfg.auth_base_url,
        token_url=cfg.auth_token_url,
        timeout=cfg.request_timeout,
    )


def build_session(cfg: BoardConfig) -> SessionStore:
    return SessionStore(cfg.session_file)


def execute_command(handler: _HandlerCallable, command: str) -> int:
    """Run a command handler, logging its duration and exit code."""
    logger = get_logger()
    start = time.monotonic()
    exit_code = 1
    try:
        result = handler()
        exit_code = int(result) if result is not None else 0
        return exit_code
    finally:
        logger.log_performance(
            f"command_{command}", (time.monotonic() - start) * 1000, exit_code=exit_code
        )


__all__ = [
    "build_identity",
    "build_service",
    "build_session",
    "build_store",
    "execute_command",
    "prepare_config",
]
