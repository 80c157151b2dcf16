"""
Orchestration DTOs

Architectural Intent:
- Data Transfer Objects at the boundary between use cases and presentation
- OrchestrationResult is produced exactly once per run
- to_outputs() flattens a result into the key/value map consumed by CI output writers
"""

from __future__ import annotations
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ResultStatus(Enum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class OrchestrationResult:
    status: ResultStatus
    operation: str = "deploy"
    reason: str = ""
    message: str = ""
    app_url: str = ""
    service_endpoint: str = ""
    health_check_result: str = ""
    http_code: str = ""
    deployment_info: dict[str, Any] = field(default_factory=dict)
    previous_revision: Optional[int] = None
    previous_image: str = ""
    rollback_revision: Optional[int] = None
    rollback_image: str = ""
    ready_replicas: Optional[int] = None
    desired_replicas: Optional[int] = None
    diagnostics: dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status == ResultStatus.SUCCESS

    @classmethod
    def failure(
        cls, operation: str, reason: str, message: str, **fields: Any
    ) -> "OrchestrationResult":
        return cls(
            ResultStatus.FAILURE, operation=operation, reason=reason, message=message, **fields
        )

    def to_outputs(self) -> dict[str, str]:
        outputs: dict[str, str] = {"status": self.status.value}

        if self.operation == "deploy":
            outputs["app-url"] = self.app_url
            outputs["service-ip"] = self.service_endpoint
            outputs["health-check-result"] = self.health_check_result
            outputs["info"] = (
                json.dumps(self.deployment_info, indent=2) if self.deployment_info else "{}"
            )
        elif self.operation == "rollback":
            outputs["previous-revision"] = _text(self.previous_revision)
            outputs["previous-image"] = self.previous_image
            outputs["rollback-revision"] = _text(self.rollback_revision)
            outputs["rollback-image"] = self.rollback_image
            outputs["ready-replicas"] = _text(self.ready_replicas)
            outputs["desired-replicas"] = _text(self.desired_replicas)
        else:
            outputs["health-check-result"] = self.health_check_result
            outputs["http-code"] = self.http_code
            outputs["ready-replicas"] = _text(self.ready_replicas)
            outputs["desired-replicas"] = _text(self.desired_replicas)

        if not self.succeeded:
            outputs["error"] = self.message or self.reason
        return outputs


def _text(value: Optional[int]) -> str:
    return "" if value is None else str(value)
