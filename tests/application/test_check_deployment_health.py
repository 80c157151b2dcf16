"""Tests for CheckDeploymentHealth use case."""

from unittest.mock import MagicMock

import pytest

from conftest import FakeHttp
from kubeship.application.orchestration.health_checker import HealthChecker
from kubeship.application.use_cases.check_deployment_health import CheckDeploymentHealth
from kubeship.domain.value_objects.cluster_state import PodSnapshot


def _use_case(cluster, clock, http=None, telemetry=None):
    checker = HealthChecker(http or FakeHttp(), cluster, clock=clock, sleep=clock.sleep)
    return CheckDeploymentHealth(cluster, checker, telemetry=telemetry)


class TestCheckDeploymentHealth:
    @pytest.mark.asyncio
    async def test_deployment_not_found(self, cluster, clock):
        cluster.deployment_present = False

        result = await _use_case(cluster, clock).execute("web", "prod")

        assert not result.succeeded
        assert result.reason == "not_found"
        assert result.health_check_result == "deployment_not_found"

    @pytest.mark.asyncio
    async def test_no_pods(self, cluster, clock):
        cluster.pods = []

        result = await _use_case(cluster, clock).execute("web", "prod")

        assert not result.succeeded
        assert result.health_check_result == "no_pods_found"
        assert result.ready_replicas == 1

    @pytest.mark.asyncio
    async def test_pods_running_without_url(self, cluster, clock):
        result = await _use_case(cluster, clock).execute("web", "prod")

        assert result.succeeded
        assert result.health_check_result == "pods_running"
        assert result.to_outputs()["ready-replicas"] == "1"

    @pytest.mark.asyncio
    async def test_pending_pod_reports_events(self, cluster, clock):
        cluster.pods = [PodSnapshot("web-1", "Running"), PodSnapshot("web-2", "Pending")]
        cluster.events["web-2"] = ["Warning  FailedScheduling  0/3 nodes are available"]

        result = await _use_case(cluster, clock).execute("web", "prod")

        assert result.succeeded
        assert result.health_check_result == "pods_not_ready"
        assert result.diagnostics["events"] == {
            "web-2": ["Warning  FailedScheduling  0/3 nodes are available"]
        }

    @pytest.mark.asyncio
    async def test_healthy_url(self, cluster, clock):
        http = FakeHttp({"https://web.example.com/healthz": [200]})

        result = await _use_case(cluster, clock, http).execute(
            "web", "prod", app_url="https://web.example.com", path="/healthz"
        )

        assert result.succeeded
        assert result.health_check_result == "healthy"
        assert result.http_code == "200"

    @pytest.mark.asyncio
    async def test_unreachable_url_fails(self, cluster, clock):
        result = await _use_case(cluster, clock).execute(
            "web", "prod", app_url="https://web.example.com", timeout=15
        )

        assert not result.succeeded
        assert result.reason == "health_check_timed_out"
        assert result.health_check_result == "timeout"
        assert result.http_code == "000"
        assert result.to_outputs()["error"].startswith("Health check timed out after 15s")

    @pytest.mark.asyncio
    async def test_timeout_reports_pods_events_and_logs(self, cluster, clock):
        cluster.pods = [PodSnapshot("web-1", "Running"), PodSnapshot("web-2", "Pending")]
        cluster.events = {"web-2": ["Warning  FailedScheduling"]}
        cluster.logs = {"web-1": "GET /healthz 503"}

        result = await _use_case(cluster, clock).execute(
            "web", "prod", app_url="https://web.example.com", timeout=15
        )

        assert result.reason == "health_check_timed_out"
        assert result.diagnostics["pods"] == {"web-1": "Running", "web-2": "Pending"}
        assert result.diagnostics["events"]["web-2"] == ["Warning  FailedScheduling"]
        assert result.diagnostics["logs"]["web-1"] == "GET /healthz 503"

    @pytest.mark.asyncio
    async def test_records_success_metric_and_phase_spans(self, cluster, clock):
        http = FakeHttp({"https://web.example.com": [200]})
        telemetry = MagicMock()

        await _use_case(cluster, clock, http, telemetry=telemetry).execute(
            "web", "prod", app_url="https://web.example.com"
        )

        name, value = telemetry.record_metric.call_args.args
        assert (name, value) == ("kubeship.health_check.success", 1.0)
        assert telemetry.record_metric.call_args.kwargs["attributes"] == {
            "deployment": "web",
            "namespace": "prod",
        }
        spans = [c.args[0] for c in telemetry.start_span.call_args_list]
        assert spans == [
            "kubeship.health_check",
            "kubeship.health_check.deployment",
            "kubeship.health_check.pods",
            "kubeship.health_check.http",
        ]
        assert telemetry.end_span.call_count == 4

    @pytest.mark.asyncio
    async def test_timeout_records_failure_metric(self, cluster, clock):
        telemetry = MagicMock()

        await _use_case(cluster, clock, telemetry=telemetry).execute(
            "web", "prod", app_url="https://web.example.com", timeout=15
        )

        name, value = telemetry.record_metric.call_args.args
        assert (name, value) == ("kubeship.health_check.success", 0.0)

    @pytest.mark.asyncio
    async def test_unreadable_deployment_is_a_cluster_failure(self, cluster, clock):
        cluster.fail_on.add("get_deployment")

        result = await _use_case(cluster, clock).execute("web", "prod")

        assert not result.succeeded
        assert result.reason == "cluster_operation_failed"
        assert result.health_check_result == ""
