"""CLI entrypoints for promptsmith."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from promptsmith.configuration import load_settings
from promptsmith.constants import RENDER_MODES, SUPPORTED_PROVIDERS
from promptsmith.exceptions import AdapterError, ValidationError
from promptsmith.logging import NotificationLog, configure_logging
from promptsmith.prompting.classifier import (
    RULESET_VERSION,
    classify,
    detect_task_type,
)
from promptsmith.prompting.types import PromptRecord
from promptsmith.registry import build_registry
from promptsmith.validation import (
    decode_enhancement_request,
    decode_prompt_record,
    decode_render_request,
    parse_assignments,
)

LOGGER = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="promptsmith",
        description="Render, enhance, and classify prompt definitions.",
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to a YAML config with a `promptsmith:` section.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Override the configured log level (e.g., DEBUG).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render", help="Render a prompt for a provider.")
    render.add_argument("prompt_file", type=str, help="YAML/JSON prompt.")
    render.add_argument(
        "--provider", required=True, choices=SUPPORTED_PROVIDERS
    )
    render.add_argument("--mode", default="original", choices=RENDER_MODES)
    render.add_argument(
        "--var",
        action="append",
        dest="variables",
        default=[],
        help="Variable assignment key=value (repeatable).",
    )
    render.add_argument("--temperature", type=float)
    render.add_argument("--model", type=str)
    render.add_argument("--target-model", type=str)
    render.add_argument(
        "--connection",
        type=str,
        help="Executor connection id; requires --user for live execution.",
    )
    render.add_argument("--user", type=str, help="Requesting user id.")
    render.add_argument(
        "--events-log",
        type=str,
        help="Append render notifications to this JSONL file.",
    )

    enhance = sub.add_parser("enhance", help="Build the structured form.")
    enhance.add_argument("prompt_file", type=str, help="YAML/JSON prompt.")
    enhance.add_argument("--target-provider", choices=SUPPORTED_PROVIDERS)
    enhance.add_argument("--target-model", type=str)
    enhance.add_argument("--preserve-style", action="store_true")

    classify_cmd = sub.add_parser(
        "classify", help="Report prompt kind and task type."
    )
    classify_cmd.add_argument("prompt_file", type=str, help="YAML/JSON prompt.")
    return parser


def load_prompt_file(path: Path) -> PromptRecord:
    if not path.exists():
        raise FileNotFoundError(f"Prompt file '{path}' not found.")
    text = path.read_text(encoding="utf-8")
    if path.suffix == ".json":
        data = json.loads(text)
    else:
        data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValidationError(f"Prompt file '{path}' must hold a mapping")
    data.setdefault("id", path.stem)
    return decode_prompt_record(data)


def _render(args: argparse.Namespace, settings) -> Dict[str, Any]:
    record = load_prompt_file(Path(args.prompt_file))
    request = decode_render_request(
        {
            "provider": args.provider,
            "mode": args.mode,
            "variables": parse_assignments(args.variables),
            "temperature": args.temperature,
            "model": args.model,
            "target_model": args.target_model,
            "connection_id": args.connection,
        },
        prompt_id=record.prompt_id,
    )
    registry = build_registry(settings)
    events_log: Optional[NotificationLog] = None
    if args.events_log:
        events_log = NotificationLog(Path(args.events_log)).attach(
            registry.channel
        )
    try:
        payload = asyncio.run(
            registry.orchestrator.render(record, request, user_id=args.user)
        )
    finally:
        if events_log is not None:
            events_log.close()
    return payload.to_dict()


def _enhance(args: argparse.Namespace, settings) -> Dict[str, Any]:
    record = load_prompt_file(Path(args.prompt_file))
    request = decode_enhancement_request(
        {
            "target_provider": args.target_provider,
            "target_model": args.target_model,
            "preserve_style": args.preserve_style,
        },
        prompt_id=record.prompt_id,
    )
    registry = build_registry(settings)
    return registry.enhancement.enhance(record, request).to_dict()


def _classify(args: argparse.Namespace, settings) -> Dict[str, Any]:
    record = load_prompt_file(Path(args.prompt_file))
    return {
        "prompt_id": record.prompt_id,
        "kind": classify(record.definition),
        "task_type": detect_task_type(record.definition),
        "ruleset_version": RULESET_VERSION,
    }


_COMMANDS = {
    "render": _render,
    "enhance": _enhance,
    "classify": _classify,
}


def main(argv: Optional[list[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=logging.INFO, format="%(levelname)s %(name)s: %(message)s"
        )

    try:
        settings = load_settings(Path(args.config) if args.config else None)
        configure_logging(
            (args.log_level or settings.logging.level).upper(),
            settings.logging.file,
        )
        result = _COMMANDS[args.command](args, settings)
    except (ValidationError, AdapterError) as exc:
        LOGGER.error("%s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except FileNotFoundError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
