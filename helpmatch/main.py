"""Command-line entry point for the campus help matcher."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import json
import sys
import time
from pathlib import Path
from typing import Any, List, Optional, Tuple

from helpmatch.config.environment import EnvironmentConfig
from helpmatch.config.exceptions import ConfigurationError
from helpmatch.config.loader import load_config
from helpmatch.config.models import AppConfig
from helpmatch.connections.service import ConnectionService
from helpmatch.logging import get_logger
from helpmatch.logging.config import configure_logging
from helpmatch.logging.context import log_context
from helpmatch.matching.exceptions import MatchingError
from helpmatch.matching.service import MatchingService
from helpmatch.persistence.database import close_database, init_database
from helpmatch.persistence.exceptions import PersistenceError
from helpmatch.persistence.seed import apply_seed, load_seed_file
from helpmatch.persistence.store import SqlMatchStore
from helpmatch.tags.suggestion import build_tag_suggester

logger = get_logger(__name__, component="cli")

EXIT_OK = 0
EXIT_CORE_ERROR = 1
EXIT_CONFIG_ERROR = 2


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str], database_url_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and apply command-line overrides.

    Log level priority: CLI > LOG_LEVEL environment variable > config file.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level

    if database_url_override:
        env_config.database_url = database_url_override

    return app_config, env_config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="helpmatch",
        description="Campus help matcher - rank helpers for help requests and track match lifecycles",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml if present)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="Database URL (overrides DATABASE_URL)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    seed = subparsers.add_parser("seed", help="Load users and requests from a YAML seed file")
    seed.add_argument("path", type=Path)

    generate = subparsers.add_parser("generate", help="Generate or refresh the shortlist for a request")
    generate.add_argument("request_id")
    generate.add_argument("--top-n", type=int, default=None, help="Shortlist size (clamped to 1-20)")

    request = subparsers.add_parser("request", help="Ask a suggested helper for help")
    request.add_argument("match_id")

    respond = subparsers.add_parser("respond", help="Accept or decline a requested match")
    respond.add_argument("match_id")
    decision = respond.add_mutually_exclusive_group(required=True)
    decision.add_argument("--accept", action="store_const", dest="action", const="accept")
    decision.add_argument("--decline", action="store_const", dest="action", const="decline")
    respond.add_argument("--message", default=None, help="Message shared with the requester on accept")
    respond.add_argument("--next-step", default=None, help="Suggested next step shared on accept")

    inbox = subparsers.add_parser("inbox", help="List a helper's requested, accepted and declined matches")
    inbox.add_argument("helper_id")

    show = subparsers.add_parser("show", help="Show a match with its messages, or all matches of a request")
    target = show.add_mutually_exclusive_group(required=True)
    target.add_argument("--match", dest="match_id")
    target.add_argument("--request", dest="request_id")

    message = subparsers.add_parser("message", help="Post a message on an accepted match")
    message.add_argument("match_id")
    message.add_argument("--sender", required=True, dest="sender_id")
    message.add_argument("--role", required=True, choices=["requester", "helper"])
    message.add_argument("--text", required=True)

    suggest = subparsers.add_parser("suggest-tags", help="Suggest tags for free text")
    suggest.add_argument("text")
    suggest.add_argument("--max-tags", type=int, default=None)

    return parser


def run_command(args: argparse.Namespace, app_config: AppConfig, env_config: EnvironmentConfig) -> Any:
    """Execute one subcommand and return its JSON-serializable result.

    Raises:
        MatchingError: Not found, conflict or validation failures
        PersistenceError: Database or seed file failures
    """
    if args.command == "suggest-tags":
        suggester = build_tag_suggester(app_config.tag_suggestion, env_config)
        max_tags = args.max_tags or app_config.tag_suggestion.max_tags
        result = suggester.suggest_tags(args.text, max_tags)
        return {"tags": result.tags, "source": result.source}

    init_database(env_config.database_url)
    store = SqlMatchStore()
    matching = MatchingService(store, app_config.matching)

    if args.command == "seed":
        seeded = apply_seed(store, load_seed_file(args.path))
        return {"users": len(seeded.users), "requests": len(seeded.requests)}

    if args.command == "generate":
        matches = matching.generate_matches({"requestId": args.request_id, "topN": args.top_n})
        return [m.to_public() for m in matches]

    if args.command == "request":
        return matching.request_match(args.match_id).to_public()

    if args.command == "respond":
        payload = {"action": args.action}
        if args.message is not None or args.next_step is not None:
            payload["connectionPayload"] = {"message": args.message, "nextStep": args.next_step}
        return matching.respond_to_match(args.match_id, payload).to_public()

    if args.command == "inbox":
        return [m.to_public() for m in matching.inbox(args.helper_id)]

    if args.command == "show":
        if args.request_id:
            return [m.to_public() for m in matching.matches_for_request(args.request_id)]
        match = matching.get_match(args.match_id)
        messages = ConnectionService(store).list_messages(match.id)
        return {"match": match.to_public(), "messages": [m.to_public() for m in messages]}

    if args.command == "message":
        connections = ConnectionService(store)
        posted = connections.post_message(
            args.match_id,
            {"senderId": args.sender_id, "senderRole": args.role, "text": args.text},
        )
        return posted.to_public()

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        0 on success, 1 on a matching or persistence error, 2 on a configuration error
    """
    start_time = time.time()
    args = build_parser().parse_args(argv)

    try:
        app_config, env_config = load_runtime_config(args.config, args.log_level, args.database_url)
        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=env_config.environment,
        )
    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    with log_context(command=args.command):
        try:
            result = run_command(args, app_config, env_config)
        except MatchingError as e:
            logger.warning(
                f"Command failed: {e}",
                extra={"event": "cli.command.failed", "error_kind": e.kind},
            )
            print(json.dumps({"error": e.kind, "message": str(e)}), file=sys.stderr)
            return EXIT_CORE_ERROR
        except PersistenceError as e:
            logger.error(
                f"Persistence error: {e}",
                extra={"event": "cli.command.failed", "error_type": type(e).__name__},
            )
            print(json.dumps({"error": "persistence", "message": str(e)}), file=sys.stderr)
            return EXIT_CORE_ERROR
        finally:
            close_database()

        print(json.dumps(result, indent=2, ensure_ascii=False))
        logger.info(
            "Command completed",
            extra={
                "event": "cli.command.completed",
                "duration_seconds": round(time.time() - start_time, 3),
            },
        )
        return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
