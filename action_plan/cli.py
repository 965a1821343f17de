"""CLI entry point for the CRM assistant.

Usage:
    crm-assistant "Generate a picture of a cat and email it to Warren"
    crm-assistant --platform litellm --model-id GCP/claude-4-sonnet "Invoice Warren $500"
    crm-assistant --history history.json --show-plan "Now send it to him"
    crm-assistant --json "Create a customer named Ada Lovelace"
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

_PLATFORMS = ["gateway", "litellm"]

_LOG_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"
_LOG_DATE_FORMAT = "%H:%M:%S"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="crm-assistant",
        description="Compile an instruction into a CRM action plan and execute it.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
environment variables:
  CRM_BASE_URL          Base URL of the CRM module endpoints (required)
  CRM_SERVICE_KEY       Service-level bearer token (required)
  BOT_SECRET            Shared secret sent as x-bot-secret (required)
  CRM_FUNCTIONS_PATH    Endpoint path prefix (optional, defaults to /functions/v1)
  STEP_TIMEOUT          Per-step timeout in seconds (optional, default: none)
  STRICT_REFERENCES     Fail steps whose inject references don't resolve (optional)

  AI_GATEWAY_API_KEY    AI gateway API key (required for --platform gateway)
  AI_GATEWAY_URL        AI gateway base URL (optional)

  LITELLM_API_KEY       LiteLLM API key (required for --platform litellm)
  LITELLM_BASE_URL      LiteLLM base URL (required for --platform litellm)

examples:
  crm-assistant "Generate a picture of a cat and email it to Warren"
  crm-assistant --history history.json --show-plan "Now send it to him"
  crm-assistant --verbose --json "Create a $500 invoice for Warren Thompson"
""",
    )
    parser.add_argument("instruction", help="The instruction to carry out.")
    parser.add_argument(
        "--platform",
        choices=_PLATFORMS,
        default="gateway",
        help="LLM platform used as plan compiler (default: gateway).",
    )
    parser.add_argument(
        "--model-id",
        default=None,
        metavar="MODEL_ID",
        help="Model ID string for the selected platform (default: the backend's own).",
    )
    parser.add_argument(
        "--history",
        type=Path,
        metavar="FILE",
        help='JSON file with prior turns: [{"role": "user", "text": "..."}, ...].',
    )
    parser.add_argument(
        "--show-plan",
        action="store_true",
        help="Print the compiled plan before the results.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        dest="output_json",
        help="Output the response body as JSON.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Show INFO-level progress logs on stderr (default: WARNING+ only).",
    )
    return parser


def _setup_logging(verbose: bool) -> None:
    """Configure root logger to stderr; level depends on --verbose."""
    level = logging.INFO if verbose else logging.WARNING
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_LOG_DATE_FORMAT))
    logging.root.handlers.clear()
    logging.root.addHandler(handler)
    logging.root.setLevel(level)


def _build_llm(platform: str, model_id: str | None):
    """Instantiate the LLM backend for the given platform."""
    from llm_backends import GatewayLLM, LiteLLMLLM

    backends = {"gateway": GatewayLLM, "litellm": LiteLLMLLM}
    if platform not in backends:
        print(f"error: unknown platform {platform!r}", file=sys.stderr)
        sys.exit(1)
    try:
        cls = backends[platform]
        return cls(model_id=model_id) if model_id else cls()
    except KeyError as exc:
        print(f"error: missing environment variable {exc}", file=sys.stderr)
        sys.exit(1)


def _build_settings():
    from action_plan.config import Settings

    try:
        return Settings.from_env()
    except KeyError as exc:
        print(f"error: missing environment variable {exc}", file=sys.stderr)
        sys.exit(1)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        sys.exit(1)


def _load_history(path: Path | None) -> list[dict]:
    if path is None:
        return []
    try:
        history = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as exc:
        print(f"error: cannot read history file {path}: {exc}", file=sys.stderr)
        sys.exit(1)
    if not isinstance(history, list):
        print(f"error: history file {path} must hold a JSON list", file=sys.stderr)
        sys.exit(1)
    return history


def _print_section(title: str) -> None:
    print(f"\n{'─' * 60}")
    print(f"  {title}")
    print(f"{'─' * 60}")


async def _run(args: argparse.Namespace) -> int:
    from action_plan.runner import AssistantRunner

    llm = _build_llm(args.platform, args.model_id)
    runner = AssistantRunner(llm=llm, settings=_build_settings())
    response = await runner.run(args.instruction, _load_history(args.history))

    if args.output_json:
        print(json.dumps(response.body, indent=2))
        return 0 if response.ok else 1

    if args.show_plan and response.plan is not None and response.plan.is_executable:
        _print_section("Plan")
        print(f"  {response.plan.summary}")
        for step in response.plan.steps:
            dep = f"#{step.depends_on}" if step.depends_on is not None else "none"
            print(f"  [{step.index}] {step.module or '?'}: {step.description}")
            print(f"       {step.method} {step.endpoint} | depends_on={dep}")

    body = response.body
    if body.get("type") == "executed":
        _print_section("Execution")
        for r in body["steps"]:
            status = "OK " if r["success"] else "ERR"
            print(f"  [{status}] Step {r['step']} ({r['module'] or '?'}): {r['description']}")
            if not r["success"]:
                print(f"        Error: {r['error']}")
    else:
        _print_section(body.get("type", "message").capitalize())
        print(body.get("message", ""))
    print()
    return 0 if response.ok else 1


def main() -> None:
    from dotenv import load_dotenv
    load_dotenv()
    args = _build_parser().parse_args()
    _setup_logging(args.verbose)
    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
