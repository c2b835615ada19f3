"""OpenTelemetry adapter for chat pipeline metrics."""

from dataclasses import dataclass
from typing import Any

from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import MetricReader, PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource

from support_agent.application.ports.telemetry_port import TelemetryPort
from support_agent.config.logging import get_logger

logger = get_logger(__name__)


@dataclass
class OtelConfig:
    """Configuration for OpenTelemetry."""

    service_name: str = "support-agent"
    otlp_endpoint: str | None = None  # e.g., "http://localhost:4317"
    environment: str = "production"


class OpenTelemetryAdapter(TelemetryPort):
    """OpenTelemetry metrics adapter.

    Metrics:
    - Counters: incr() for events (intents, fallbacks)
    - Histograms: observe() for distributions (fragments per reply, chunks per index)

    Instruments are created lazily on first use and cached by name. A failing
    instrument is logged and never interrupts the request being measured.
    """

    def __init__(self, cfg: OtelConfig, readers: list[MetricReader] | None = None) -> None:
        self._cfg = cfg
        self._counters: dict[str, Any] = {}
        self._histograms: dict[str, Any] = {}
        self._provider = MeterProvider(
            resource=Resource.create(
                {
                    "service.name": cfg.service_name,
                    "deployment.environment": cfg.environment,
                }
            ),
            metric_readers=list(readers or []) + self._exporting_readers(),
        )
        self._meter = self._provider.get_meter(__name__)

    def _exporting_readers(self) -> list[MetricReader]:
        if not self._cfg.otlp_endpoint:
            return []
        from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter

        return [PeriodicExportingMetricReader(OTLPMetricExporter(endpoint=self._cfg.otlp_endpoint))]

    def incr(self, name: str, tags: dict[str, Any] | None = None) -> None:
        try:
            if name not in self._counters:
                self._counters[name] = self._meter.create_counter(
                    name=name, description=f"Counter for {name}"
                )
            self._counters[name].add(1, attributes=tags or {})
        except Exception:  # noqa: BLE001
            logger.debug(f"Dropping counter sample for {name}", exc_info=True)

    def observe(self, name: str, value: float, tags: dict[str, Any] | None = None) -> None:
        try:
            if name not in self._histograms:
                self._histograms[name] = self._meter.create_histogram(
                    name=name, description=f"Histogram for {name}"
                )
            self._histograms[name].record(value, attributes=tags or {})
        except Exception:  # noqa: BLE001
            logger.debug(f"Dropping histogram sample for {name}", exc_info=True)

    def shutdown(self) -> None:
        self._provider.shutdown()
