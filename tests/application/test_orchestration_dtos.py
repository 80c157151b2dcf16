"""Tests for OrchestrationResult output flattening."""

import json

from kubeship.application.dtos.orchestration_dtos import OrchestrationResult, ResultStatus


class TestOrchestrationResult:
    def test_deploy_outputs(self):
        result = OrchestrationResult(
            ResultStatus.SUCCESS,
            app_url="http://203.0.113.5",
            service_endpoint="203.0.113.5",
            health_check_result="healthy",
            deployment_info={"kind": "Deployment"},
        )
        outputs = result.to_outputs()
        assert outputs["status"] == "success"
        assert outputs["app-url"] == "http://203.0.113.5"
        assert outputs["service-ip"] == "203.0.113.5"
        assert json.loads(outputs["info"]) == {"kind": "Deployment"}
        assert "error" not in outputs

    def test_empty_info_is_empty_object(self):
        assert OrchestrationResult(ResultStatus.SUCCESS).to_outputs()["info"] == "{}"

    def test_rollback_outputs(self):
        result = OrchestrationResult(
            ResultStatus.SUCCESS,
            operation="rollback",
            previous_revision=3,
            previous_image="web:v2",
            rollback_revision=2,
            rollback_image="web:v1",
            ready_replicas=2,
            desired_replicas=2,
        )
        assert result.to_outputs() == {
            "status": "success",
            "previous-revision": "3",
            "previous-image": "web:v2",
            "rollback-revision": "2",
            "rollback-image": "web:v1",
            "ready-replicas": "2",
            "desired-replicas": "2",
        }

    def test_health_check_failure_outputs(self):
        result = OrchestrationResult.failure(
            "health-check",
            "health_check_timed_out",
            "timed out",
            health_check_result="timeout",
            http_code="503",
        )
        outputs = result.to_outputs()
        assert outputs["status"] == "failure"
        assert outputs["http-code"] == "503"
        assert outputs["ready-replicas"] == ""
        assert outputs["error"] == "timed out"

    def test_error_falls_back_to_reason(self):
        result = OrchestrationResult.failure("deploy", "rollout_timed_out", "")
        assert result.to_outputs()["error"] == "rollout_timed_out"
