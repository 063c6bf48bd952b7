"""issueboard CLI.

Subcommands:
  signup   -> create an account with the identity service and log in
  login    -> sign in (flags, ISSUEBOARD_EMAIL/ISSUEBOARD_PASSWORD or .env)
  logout   -> forget the saved session
  whoami   -> show the logged-in user
  create   -> create an issue (warns about similar existing issues first)
  list     -> list issues, newest first, optionally filtered
  status   -> move an issue to another status (Open -> Done is refused)
  similar  -> run the duplicate heuristic without creating anything

Set ISSUEBOARD_MOCK=1 to use the local JSON store instead of the hosted one.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Any

from .auth import load_credentials_env, local_user
from .config import CONFIG_DEFAULT, BoardConfig, ConfigError
from .errors import IssueBoardError, display_message
from .models import CurrentUser, Issue, IssueDraft, Priority, Status
from .runtime import (
    build_identity,
    build_service,
    build_session,
    execute_command,
    prepare_config,
)
from .ux import Colors, badge, colorize, print_error, print_header, print_success, print_warning

_MAX_HELP_WIDTH = 100
STATUS_CHOICES = [s.value for s in Status]
PRIORITY_CHOICES = [p.value for p in Priority]


class _HelpFormatter(argparse.HelpFormatter):
    def __init__(self, prog: str) -> None:
        super().__init__(prog, max_help_position=30, width=_MAX_HELP_WIDTH)


class _FormatterArgumentParser(argparse.ArgumentParser):
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("formatter_class", _HelpFormatter)
        super().__init__(*args, **kwargs)


def _status_arg(value: str) -> Status:
    try:
        return Status.parse(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _priority_arg(value: str) -> Priority:
    try:
        return Priority.parse(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _build_parser() -> argparse.ArgumentParser:
    """Construct top-level CLI parser with subcommands."""
    p = _FormatterArgumentParser(prog="issueboard", description="Small hosted issue tracker")
    p.add_argument("--config", default=CONFIG_DEFAULT, help="Path to issue_board.config.yaml")
    p.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress informational logging (env: ISSUEBOARD_QUIET=1)",
    )
    sub = p.add_subparsers(
        dest="cmd",
        required=True,
        parser_class=_FormatterArgumentParser,
        metavar="<command>",
    )

    for name, help_text in (("signup", "Create an account"), ("login", "Sign in")):
        ps = sub.add_parser(name, help=help_text)
        ps.add_argument("--email")
        ps.add_argument("--password")

    sub.add_parser("logout", help="Forget the saved session")
    sub.add_parser("whoami", help="Show the logged-in user")

    pc = sub.add_parser("create", help="Create an issue")
    pc.add_argument("--title", required=True)
    pc.add_argument("--description", required=True)
    pc.add_argument("--priority", type=_priority_arg, default=Priority.MEDIUM, metavar="{Low,Medium,High}")
    pc.add_argument("--status", type=_status_arg, default=Status.OPEN, metavar="{Open,In Progress,Done}")
    pc.add_argument("--assignee", default="", help="Email or name (empty means unassigned)")
    pc.add_argument("--json", action="store_true", help="Print the new id as JSON")

    pl = sub.add_parser("list", help="List issues, newest first")
    pl.add_argument("--status", type=_status_arg, metavar="{Open,In Progress,Done}")
    pl.add_argument("--priority", type=_priority_arg, metavar="{Low,Medium,High}")
    pl.add_argument("--json", action="store_true")

    pst = sub.add_parser("status", help="Change the status of an issue")
    pst.add_argument("issue_id")
    pst.add_argument("new_status", type=_status_arg, metavar="{Open,In Progress,Done}")

    psi = sub.add_parser("similar", help="Show existing issues similar to a draft")
    psi.add_argument("--title", default="")
    psi.add_argument("--description", default="")
    psi.add_argument("--json", action="store_true")

    return p


def _quiet(args: argparse.Namespace) -> bool:
    return bool(args.quiet or os.environ.get("ISSUEBOARD_QUIET") == "1")


def _print_issue(issue: Issue) -> None:
    title = colorize(issue.title, Colors.BOLD)
    print(f"{issue.id}  {title}  {badge(issue.priority)} {badge(issue.status)}")
    print(f"    {issue.description}")
    meta = (
        f"assigned: {issue.assignee_label} | created by: {issue.created_by}"
        f" | {issue.created_time.isoformat(timespec='seconds')}"
    )
    print(colorize(f"    {meta}", Colors.DIM))


def _print_similar(similar: list[Issue]) -> None:
    print_warning("Similar issues found:")
    for issue in similar:
        print(f"  - {issue.title} - {issue.status.value} | {issue.priority.value}")
    print("  Please review these before creating a duplicate issue.")


def _resolve_credentials(cfg: BoardConfig, args: argparse.Namespace) -> tuple[str, str | None]:
    env_email, env_password = load_credentials_env(cfg.dotenv_path, use_dotenv=cfg.load_dotenv)
    email = args.email or env_email
    password = args.password or env_password
    if not email:
        raise ConfigError("An email is required (--email or ISSUEBOARD_EMAIL)")
    return email, password


def _cmd_login(cfg: BoardConfig, args: argparse.Namespace, *, signup: bool = False) -> int:
    email, password = _resolve_credentials(cfg, args)
    if cfg.store_backend == "local":
        user = local_user(email)
    else:
        if not password:
            raise ConfigError("A password is required (--password or ISSUEBOARD_PASSWORD)")
        identity = build_identity(cfg)
        user = identity.sign_up(email, password) if signup else identity.sign_in(email, password)
    build_session(cfg).save(user)
    print_success(f"Logged in as {user.identity}")
    return 0


def _cmd_logout(cfg: BoardConfig) -> int:
    if build_session(cfg).clear():
        print_success("Logged out")
    else:
        print("Not logged in")
    return 0


def _cmd_whoami(cfg: BoardConfig) -> int:
    user = build_session(cfg).load()
    if user is None:
        print("Not logged in")
        return 1
    print(user.identity)
    return 0


def _require_user(cfg: BoardConfig) -> CurrentUser:
    refresh = build_identity(cfg).refresh if cfg.store_backend == "firestore" else None
    return build_session(cfg).require(refresh)


def _cmd_create(cfg: BoardConfig, args: argparse.Namespace) -> int:
    user = _require_user(cfg)
    service = build_service(cfg)
    draft = IssueDraft(
        title=args.title,
        description=args.description,
        priority=args.priority,
        status=args.status,
        assigned_to=args.assignee,
    )
    draft.validate()
    similar = service.check_similar(draft.title, draft.description, user)
    if similar and not args.json:
        _print_similar(similar)
    issue_id = service.create_issue(draft, user)
    if args.json:
        print(json.dumps({"id": issue_id, "similar": [i.id for i in similar]}))
    else:
        print_success(f"Created issue {issue_id}")
    return 0


def _cmd_list(cfg: BoardConfig, args: argparse.Namespace) -> int:
    user = _require_user(cfg)
    issues = build_service(cfg).list_issues(user, args.status, args.priority)
    if args.json:
        print(json.dumps([i.to_dict() for i in issues], indent=2))
        return 0
    if not _quiet(args):
        print_header(f"Issues ({len(issues)} total)")
    if not issues:
        print("No issues found.")
    for issue in issues:
        _print_issue(issue)
    return 0


def _cmd_status(cfg: BoardConfig, args: argparse.Namespace) -> int:
    user = _require_user(cfg)
    service = build_service(cfg)
    issue = next((i for i in service.list_issues(user) if i.id == args.issue_id), None)
    if issue is None:
        print_error(f"No issue with id {args.issue_id}")
        return 1
    service.change_status(issue.id, issue.status, args.new_status, user)
    print_success(f"{issue.id}: {issue.status.value} -> {args.new_status.value}")
    return 0


def _cmd_similar(cfg: BoardConfig, args: argparse.Namespace) -> int:
    user = _require_user(cfg)
    similar = build_service(cfg).check_similar(args.title, args.description, user)
    if args.json:
        print(json.dumps([i.to_dict() for i in similar], indent=2))
    elif similar:
        _print_similar(similar)
    else:
        print("No similar issues found.")
    return 0


def _build_handlers(args: argparse.Namespace, cfg: BoardConfig) -> dict[str, Any]:
    return {
        "signup": lambda: _cmd_login(cfg, args, signup=True),
        "login": lambda: _cmd_login(cfg, args),
        "logout": lambda: _cmd_logout(cfg),
        "whoami": lambda: _cmd_whoami(cfg),
        "create": lambda: _cmd_create(cfg, args),
        "list": lambda: _cmd_list(cfg, args),
        "status": lambda: _cmd_status(cfg, args),
        "similar": lambda: _cmd_similar(cfg, args),
    }


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.quiet and os.environ.get("ISSUEBOARD_QUIET") == "1":
        args.quiet = True
    try:
        cfg = prepare_config(args)
    except ConfigError as exc:
        print_error(str(exc))
        return 1
    handler = _build_handlers(args, cfg).get(args.cmd)
    if handler is None:  # pragma: no cover - argparse enforces valid choices
        parser.print_help()
        return 1
    try:
        return execute_command(handler, args.cmd)
    except (IssueBoardError, ConfigError) as exc:
        print_error(display_message(exc, f"{args.cmd} failed"))
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
