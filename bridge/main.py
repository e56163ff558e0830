"""Run a single bridge invocation for a run result read from a file or stdin."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

from opentelemetry import trace
from pydantic import ValidationError

from bridge.adapters.bridge import Bridge
from bridge.core.config import Settings, get_settings
from bridge.core.telemetry import (
    configure_adapter_logging,
    setup_adapter_telemetry,
    shutdown_adapter_telemetry,
)
from bridge.schemas.runs import BridgeType, RunResult, RunStatus

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


async def run_bridge(bridge: Bridge, run_result: RunResult, settings: Settings | None = None) -> RunResult:
    settings = settings or get_settings()
    configure_adapter_logging()
    telemetry_runtime = setup_adapter_telemetry(settings)
    try:
        with tracer.start_as_current_span("bridge.cli_invocation"):
            updated = await bridge.perform(run_result, settings)
        logger.info(
            "bridge invocation finished job_run_id=%s status=%s",
            updated.job_run_id,
            updated.status.value or "unstarted",
        )
        return updated
    finally:
        shutdown_adapter_telemetry(telemetry_runtime)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Forward a run result to an external adapter.")
    parser.add_argument("--name", default="external-adapter", help="Bridge name used in logs and spans")
    parser.add_argument("--url", required=True, help="External adapter URL")
    parser.add_argument("--token", default="", help="Outgoing bearer token for the adapter")
    parser.add_argument("--params", help="Static JSON object merged into the run data before dispatch")
    parser.add_argument(
        "input",
        nargs="?",
        default="-",
        help="Path to a run result JSON document, or - for stdin",
    )
    return parser


def _load_params(parser: argparse.ArgumentParser, raw: str | None) -> dict[str, Any] | None:
    if raw is None:
        return None
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError as exc:
        parser.error(f"--params is not valid JSON: {exc}")
    if not isinstance(decoded, dict):
        parser.error("--params must be a JSON object")
    return decoded


def _load_run_result(parser: argparse.ArgumentParser, source: str) -> RunResult:
    if source == "-":
        raw = sys.stdin.read()
    else:
        try:
            with open(source, encoding="utf-8") as handle:
                raw = handle.read()
        except OSError as exc:
            parser.error(f"cannot read run result {source}: {exc}")
    try:
        return RunResult.model_validate_json(raw)
    except ValidationError as exc:
        parser.error(f"invalid run result: {exc}")


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    bridge = Bridge(
        bridge_type=BridgeType(name=args.name, url=args.url, outgoing_token=args.token),
        params=_load_params(parser, args.params),
    )
    run_result = _load_run_result(parser, args.input)

    updated = asyncio.run(run_bridge(bridge, run_result))
    print(updated.model_dump_json(by_alias=True))
    return 1 if updated.status is RunStatus.ERRORED else 0


if __name__ == "__main__":
    sys.exit(main())
