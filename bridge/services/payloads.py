from __future__ import annotations

from typing import Any

from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from bridge.core.errors import MergeIncompatibilityError, ParseError, SerializationError
from bridge.schemas.runs import BridgeOutgoing, BridgeRunResult, RunResult
from bridge.services.json_merge import merge_data


def build_outgoing_payload(result: RunResult, response_url: str) -> bytes:
    outgoing = BridgeOutgoing.model_construct(
        id=result.job_run_id,
        data=result.data,
        response_url=response_url or None,
    )
    try:
        return outgoing.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")
    except PydanticSerializationError as exc:
        raise SerializationError(f"marshaling request body: {exc}") from exc


def parse_incoming_payload(body: bytes | str) -> BridgeRunResult:
    try:
        return BridgeRunResult.model_validate_json(body)
    except ValidationError as exc:
        raise ParseError(_format_validation_error(exc)) from exc


def merge_result(base: RunResult, incoming: BridgeRunResult) -> RunResult:
    if incoming.job_run_id and incoming.job_run_id != base.job_run_id:
        raise MergeIncompatibilityError(
            f"cannot merge result for run {incoming.job_run_id!r} into run {base.job_run_id!r}"
        )

    update: dict[str, Any] = {"data": merge_data(base.data, incoming.data)}
    status = incoming.resolved_status()
    if status is not None:
        update["status"] = status
    if incoming.error:
        update["error_message"] = incoming.error
    return base.model_copy(update=update)


def _format_validation_error(exc: ValidationError) -> str:
    details = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        message = error.get("msg", "invalid value")
        details.append(f"{location}: {message}" if location else message)
    return "; ".join(details)
