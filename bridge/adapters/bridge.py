from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from typing import Any

from opentelemetry import trace

from bridge.core.config import Settings, get_settings
from bridge.core.errors import BridgeError, MergeIncompatibilityError, ParseError
from bridge.core.telemetry import annotate_bridge_span
from bridge.core.urls import build_response_url
from bridge.schemas.runs import BridgeType, RunResult, RunStatus
from bridge.services.json_merge import merge_data
from bridge.services.payloads import build_outgoing_payload, merge_result, parse_incoming_payload
from bridge.services.transport import BridgeClient

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

ERROR_PREFIX = "ExternalBridge"


class BridgeAction(str, Enum):
    SKIP = "skip"
    RESUME = "resume"
    DISPATCH = "dispatch"


STATUS_ACTIONS: dict[RunStatus, BridgeAction] = {
    RunStatus.UNSTARTED: BridgeAction.DISPATCH,
    RunStatus.IN_PROGRESS: BridgeAction.DISPATCH,
    RunStatus.PENDING_BRIDGE: BridgeAction.RESUME,
    RunStatus.PENDING_CONFIRMATIONS: BridgeAction.DISPATCH,
    RunStatus.PENDING_CONNECTION: BridgeAction.DISPATCH,
    RunStatus.PENDING_SLEEP: BridgeAction.DISPATCH,
    RunStatus.COMPLETED: BridgeAction.SKIP,
    RunStatus.ERRORED: BridgeAction.SKIP,
}


def next_action(status: RunStatus | str) -> BridgeAction:
    action = STATUS_ACTIONS.get(RunStatus(status))
    if action is None:
        raise ValueError(f"no bridge action defined for run status {status!r}")
    return action


@dataclass(slots=True)
class Bridge:
    """Connects the task pipeline to an external adapter.

    ``perform`` posts the run's data to the adapter and folds the reply back
    into the run. A run that is pending on this bridge is only flipped back
    to in progress; the callback that resumed it already carried the data.
    Failures never raise: they come back as an errored RunResult.
    """

    bridge_type: BridgeType
    params: dict[str, Any] | None = None
    client: BridgeClient | None = None

    async def perform(self, result: RunResult, settings: Settings | None = None) -> RunResult:
        settings = settings or get_settings()
        action = next_action(result.status)
        with tracer.start_as_current_span("bridge.perform") as span:
            annotate_bridge_span(
                span,
                bridge_name=self.bridge_type.name,
                job_run_id=result.job_run_id,
                action=action.value,
                response_url=settings.response_url,
            )

            if action is BridgeAction.SKIP:
                return result
            if action is BridgeAction.RESUME:
                return resume_bridge(result)

            updated = await self._handle_new_run(result, settings)
            span.set_attribute("job_run.status", updated.status.value)
            return updated

    async def _handle_new_run(self, result: RunResult, settings: Settings) -> RunResult:
        if self.params is not None:
            try:
                result = result.model_copy(update={"data": merge_data(result.data, self.params)})
            except MergeIncompatibilityError as exc:
                return self._run_result_error(result, "handling data param", exc)

        response_url = build_response_url(settings.response_url, result.job_run_id)
        try:
            body = await self._post_to_external_adapter(result, response_url, settings)
        except BridgeError as exc:
            return self._run_result_error(result, "post to external adapter", exc)

        return self._response_to_run_result(body, result)

    async def _post_to_external_adapter(self, result: RunResult, response_url: str, settings: Settings) -> bytes:
        payload = build_outgoing_payload(result, response_url)
        client = self.client or BridgeClient(timeout_seconds=settings.request_timeout_seconds)
        logger.info(
            "posting run to external adapter bridge=%s job_run_id=%s async=%s",
            self.bridge_type.name,
            result.job_run_id,
            bool(response_url),
        )
        return await client.post_json(self.bridge_type.url, payload, token=self.bridge_type.outgoing_token)

    def _response_to_run_result(self, body: bytes, result: RunResult) -> RunResult:
        try:
            incoming = parse_incoming_payload(body)
        except ParseError as exc:
            return self._run_result_error(result, "unmarshaling JSON", exc)

        try:
            return merge_result(result, incoming)
        except MergeIncompatibilityError as exc:
            return self._run_result_error(result, "Unable to merge received payload", exc)

    def _run_result_error(self, result: RunResult, context: str, exc: Exception) -> RunResult:
        message = f"{ERROR_PREFIX} {context}: {exc}"
        logger.warning(
            "bridge run errored bridge=%s job_run_id=%s error=%s",
            self.bridge_type.name,
            result.job_run_id,
            message,
        )
        return result.with_error(message)


def resume_bridge(result: RunResult) -> RunResult:
    return result.model_copy(update={"status": RunStatus.IN_PROGRESS})
