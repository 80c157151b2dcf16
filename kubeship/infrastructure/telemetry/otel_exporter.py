"""
OpenTelemetry Exporter for kubeship

Architectural Intent:
- Exports orchestration telemetry to OTLP-compatible backends
- One span per deploy/rollback/health-check run, gauges for run outcomes
- Implements TelemetryPort; with no endpoint configured every call is a no-op
  apart from the local buffer

Security:
- Endpoint defaults to empty string (must be explicitly configured)
- Non-localhost http:// endpoints rejected unless insecure=True
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Any
from urllib.parse import urlparse
import logging
from datetime import datetime, UTC

logger = logging.getLogger(__name__)

_LOCALHOSTS = ("localhost", "127.0.0.1", "::1")


@dataclass
class OTELConfig:
    endpoint: str = ""
    service_name: str = "kubeship"
    environment: str = "ci"
    enable_traces: bool = True
    enable_metrics: bool = True
    insecure: bool = False

    def __post_init__(self) -> None:
        if self.endpoint:
            parsed = urlparse(self.endpoint)
            is_localhost = parsed.hostname in _LOCALHOSTS
            if parsed.scheme == "http" and not is_localhost and not self.insecure:
                raise ValueError(
                    f"Non-localhost HTTP endpoint '{self.endpoint}' requires "
                    "insecure=True or use https://. "
                    "Set insecure=True to explicitly allow plaintext export."
                )


class OTELExporter:
    """
    OpenTelemetry exporter for kubeship runs.

    Metrics recorded by the use cases:
    - kubeship.rollout.duration_seconds
    - kubeship.health_check.success
    - kubeship.rollback.completed
    """

    def __init__(self, config: OTELConfig):
        self.config = config
        self._initialized = False
        self._metrics_buffer: list[dict[str, Any]] = []
        self._meter: Any = None
        self._gauges: dict[str, Any] = {}
        self._tracer_provider: Any = None
        self._meter_provider: Any = None

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def buffered_metrics(self) -> list[dict[str, Any]]:
        return list(self._metrics_buffer)

    async def initialize(self) -> None:
        """Initialize OpenTelemetry SDK and exporters."""
        if not self.config.endpoint:
            logger.info("OTEL endpoint not configured, telemetry disabled")
            return

        try:
            from opentelemetry import metrics, trace
            from opentelemetry.sdk.trace import TracerProvider
            from opentelemetry.sdk.trace.export import BatchSpanProcessor
            from opentelemetry.sdk.resources import Resource, SERVICE_NAME
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
                OTLPSpanExporter,
            )
            from opentelemetry.sdk.metrics import MeterProvider
            from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
            from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import (
                OTLPMetricExporter,
            )

            resource = Resource(
                attributes={
                    SERVICE_NAME: self.config.service_name,
                    "environment": self.config.environment,
                }
            )

            if self.config.enable_traces:
                self._tracer_provider = TracerProvider(resource=resource)
                self._tracer_provider.add_span_processor(
                    BatchSpanProcessor(
                        OTLPSpanExporter(
                            endpoint=self.config.endpoint, insecure=self.config.insecure
                        )
                    )
                )
                trace.set_tracer_provider(self._tracer_provider)

            if self.config.enable_metrics:
                metric_reader = PeriodicExportingMetricReader(
                    OTLPMetricExporter(
                        endpoint=self.config.endpoint, insecure=self.config.insecure
                    )
                )
                self._meter_provider = MeterProvider(
                    resource=resource, metric_readers=[metric_reader]
                )
                metrics.set_meter_provider(self._meter_provider)
                self._meter = metrics.get_meter(__name__)

            self._initialized = True

        except ImportError:
            logger.warning("OpenTelemetry SDK not installed, telemetry disabled")
            self._initialized = False
        except Exception as e:
            logger.error("Failed to initialize OTEL: %s", e)
            self._initialized = False

    def _get_gauge(self, name: str, unit: str = "") -> Any:
        """Get or create a gauge for a metric name."""
        if name not in self._gauges and self._meter:
            self._gauges[name] = self._meter.create_gauge(name, unit=unit)
        return self._gauges.get(name)

    def record_metric(
        self,
        name: str,
        value: float,
        unit: str = "",
        attributes: Optional[dict[str, str]] = None,
    ) -> None:
        """Record a metric value."""
        self._metrics_buffer.append(
            {
                "name": name,
                "value": value,
                "unit": unit,
                "attributes": attributes or {},
                "timestamp": datetime.now(UTC).isoformat(),
            }
        )

        if self._initialized:
            gauge = self._get_gauge(name, unit)
            if gauge:
                gauge.set(value, attributes=attributes or {})

    def start_span(
        self,
        name: str,
        attributes: Optional[dict[str, str]] = None,
        parent: Optional[Any] = None,
    ) -> Optional[Any]:
        """Start a tracing span, nested under `parent` when given."""
        if not self._initialized:
            return None

        try:
            from opentelemetry import trace

            tracer = trace.get_tracer(__name__)
            context = trace.set_span_in_context(parent) if parent is not None else None
            return tracer.start_span(name, context=context, attributes=attributes or {})
        except Exception as e:
            logger.debug("Could not start span %s: %s", name, e)
            return None

    def end_span(self, span: Any) -> None:
        """End a tracing span."""
        if span is None:
            return
        try:
            span.end()
        except Exception as e:
            logger.debug("Could not end span: %s", e)

    async def shutdown(self) -> None:
        """Flush and stop the SDK providers. The CLI runs once, so this is the export point."""
        flushed = len(self._metrics_buffer)
        self._metrics_buffer.clear()
        if not self._initialized:
            return

        if self._meter_provider is not None:
            self._meter_provider.shutdown()
        if self._tracer_provider is not None:
            self._tracer_provider.shutdown()
        self._initialized = False
        if flushed:
            logger.debug("Flushed %d buffered metrics", flushed)


async def create_exporter(
    endpoint: Optional[str] = None,
    insecure: bool = False,
    service_name: str = "kubeship",
) -> OTELExporter:
    """Factory function to create OTEL exporter."""
    config = OTELConfig(
        endpoint=endpoint or "",
        service_name=service_name,
        insecure=insecure,
    )
    exporter = OTELExporter(config)
    await exporter.initialize()
    return exporter
