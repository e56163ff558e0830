from __future__ import annotations

import json

import pytest

from bridge.core.errors import MergeIncompatibilityError, ParseError, SerializationError
from bridge.schemas.runs import BridgeRunResult, RunResult, RunStatus
from bridge.services.payloads import build_outgoing_payload, merge_result, parse_incoming_payload


def test_outgoing_payload_projects_only_wire_fields() -> None:
    result = RunResult(
        job_run_id="run-1",
        data={"value": 5},
        status=RunStatus.IN_PROGRESS,
        error_message=None,
    )

    payload = json.loads(build_outgoing_payload(result, "https://node.example/v2/runs/run-1"))

    assert payload == {
        "id": "run-1",
        "data": {"value": 5},
        "responseURL": "https://node.example/v2/runs/run-1",
    }


def test_outgoing_payload_omits_empty_response_url() -> None:
    payload = json.loads(build_outgoing_payload(RunResult(job_run_id="run-1", data={"value": 5}), ""))
    assert payload == {"id": "run-1", "data": {"value": 5}}


def test_outgoing_payload_raises_serialization_error_for_unencodable_data() -> None:
    result = RunResult.model_construct(job_run_id="run-1", data={"blob": object()}, status=RunStatus.UNSTARTED)

    with pytest.raises(SerializationError, match="marshaling request body"):
        build_outgoing_payload(result, "")


def test_parse_incoming_payload_reads_partial_result() -> None:
    incoming = parse_incoming_payload(b'{"data": {"result": 42}, "status": "completed", "extra": 1}')

    assert incoming.data == {"result": 42}
    assert incoming.status is RunStatus.COMPLETED
    assert incoming.error is None


@pytest.mark.parametrize(
    "body",
    [
        b"not json",
        b"[1, 2]",
        b'{"data": [1, 2]}',
        b'{"data": {}, "status": "finished-ish"}',
        b'{"data": {}, "error": 5}',
    ],
)
def test_parse_incoming_payload_rejects_schema_violations(body: bytes) -> None:
    with pytest.raises(ParseError):
        parse_incoming_payload(body)


def test_merge_result_merges_data_and_keeps_status_when_not_declared() -> None:
    base = RunResult(job_run_id="run-1", data={"value": 5}, status=RunStatus.IN_PROGRESS)

    merged = merge_result(base, BridgeRunResult(data={"result": 42}))

    assert merged.data == {"value": 5, "result": 42}
    assert merged.status is RunStatus.IN_PROGRESS
    assert base.data == {"value": 5}


def test_merge_result_applies_declared_status() -> None:
    base = RunResult(job_run_id="run-1", data={})

    merged = merge_result(base, BridgeRunResult(data={}, status=RunStatus.PENDING_CONFIRMATIONS))

    assert merged.status is RunStatus.PENDING_CONFIRMATIONS


def test_merge_result_marks_pending_flag_as_pending_bridge() -> None:
    merged = merge_result(RunResult(job_run_id="run-1"), BridgeRunResult(pending=True))
    assert merged.status is RunStatus.PENDING_BRIDGE


def test_merge_result_treats_reported_error_as_terminal() -> None:
    base = RunResult(job_run_id="run-1", data={"value": 5})

    merged = merge_result(
        base,
        BridgeRunResult(data={"partial": True}, status=RunStatus.COMPLETED, error="upstream quota exceeded"),
    )

    assert merged.status is RunStatus.ERRORED
    assert merged.error_message == "upstream quota exceeded"
    assert merged.data == {"value": 5, "partial": True}


def test_merge_result_ignores_empty_status_and_error() -> None:
    base = RunResult(job_run_id="run-1", status=RunStatus.IN_PROGRESS)

    merged = merge_result(base, parse_incoming_payload(b'{"data": {}, "status": "", "error": ""}'))

    assert merged.status is RunStatus.IN_PROGRESS
    assert merged.error_message is None


def test_merge_result_rejects_mismatched_run_id() -> None:
    base = RunResult(job_run_id="run-1")

    with pytest.raises(MergeIncompatibilityError, match="run-2"):
        merge_result(base, BridgeRunResult(job_run_id="run-2", data={}))


def test_merge_result_accepts_matching_run_id() -> None:
    merged = merge_result(RunResult(job_run_id="run-1"), parse_incoming_payload(b'{"id": "run-1", "data": {"a": 1}}'))
    assert merged.data == {"a": 1}
