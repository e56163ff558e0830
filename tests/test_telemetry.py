from bridge.core.config import Settings
from bridge.core.telemetry import (
    annotate_bridge_span,
    build_exporter,
    parse_headers,
    setup_adapter_telemetry,
    shutdown_adapter_telemetry,
)


def test_parse_headers_skips_malformed_items() -> None:
    assert parse_headers("api-key=abc, x-team = bridge ,broken,=empty") == {"api-key": "abc", "x-team": "bridge"}
    assert parse_headers(None) == {}


def test_setup_telemetry_is_noop_when_disabled() -> None:
    runtime = setup_adapter_telemetry(Settings(otel_enabled=False))

    assert runtime.enabled is False
    assert runtime.provider is None
    shutdown_adapter_telemetry(runtime)


def test_build_exporter_without_endpoint_stays_local(monkeypatch) -> None:
    monkeypatch.delenv("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT", raising=False)
    monkeypatch.delenv("OTEL_EXPORTER_OTLP_ENDPOINT", raising=False)

    assert build_exporter(Settings(otel_exporter_otlp_endpoint=None)) is None


def test_settings_read_bridge_prefixed_environment(monkeypatch) -> None:
    monkeypatch.setenv("BRIDGE_RESPONSE_URL", "https://node.example")
    monkeypatch.setenv("BRIDGE_REQUEST_TIMEOUT_SECONDS", "2.5")

    settings = Settings()

    assert settings.response_url == "https://node.example"
    assert settings.request_timeout_seconds == 2.5


class RecordingSpan:
    def __init__(self) -> None:
        self.attributes: dict[str, object] = {}

    def set_attribute(self, key: str, value: object) -> None:
        self.attributes[key] = value


def test_annotate_bridge_span_marks_callback_mode() -> None:
    async_span = RecordingSpan()
    sync_span = RecordingSpan()

    annotate_bridge_span(
        async_span,
        bridge_name="randomnumber",
        job_run_id="run-1",
        action="dispatch",
        response_url="https://node.example",
    )
    annotate_bridge_span(sync_span, bridge_name="randomnumber", job_run_id="run-2", action="skip", response_url="")

    assert async_span.attributes == {
        "bridge.name": "randomnumber",
        "bridge.action": "dispatch",
        "bridge.mode": "async",
        "job_run.id": "run-1",
    }
    assert sync_span.attributes["bridge.mode"] == "sync"
    assert sync_span.attributes["job_run.id"] == "run-2"
