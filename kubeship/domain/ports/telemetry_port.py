"""
Telemetry Port

Architectural Intent:
- Lets use cases report phase spans and run metrics without knowing the backend
- Implemented by OTELExporter; a disabled exporter accepts every call and does nothing
"""

from typing import Any, Optional, Protocol, runtime_checkable


@runtime_checkable
class TelemetryPort(Protocol):
    def record_metric(
        self,
        name: str,
        value: float,
        unit: str = "",
        attributes: Optional[dict[str, str]] = None,
    ) -> None:
        ...

    def start_span(
        self,
        name: str,
        attributes: Optional[dict[str, str]] = None,
        parent: Optional[Any] = None,
    ) -> Optional[Any]:
        """Start a span, as a child of `parent` when one is given."""
        ...

    def end_span(self, span: Any) -> None:
        ...
