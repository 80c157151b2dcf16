"""End-to-end rollback and health-check flows wired through the composition root."""

import pytest

from conftest import FakeCloud, FakeCluster, FakeClock, FakeHttp
from kubeship.composition_root import create_container
from kubeship.domain.value_objects.cluster_state import PodSnapshot
from kubeship.presentation.cli.outputs import format_outputs


class TestRollbackFlow:
    @pytest.mark.asyncio
    async def test_rollback_to_previous_image(self):
        clock = FakeClock()
        cluster = FakeCluster(clock, revisions=["web:v0", "web:v1", "web:v2"], replicas=2)
        container = create_container(cluster=cluster, cloud=FakeCloud(), http=FakeHttp())

        result = await container.rollback.execute("web", "prod")

        assert result.to_outputs() == {
            "status": "success",
            "previous-revision": "3",
            "previous-image": "web:v2",
            "rollback-revision": "2",
            "rollback-image": "web:v1",
            "ready-replicas": "2",
            "desired-replicas": "2",
        }
        assert cluster.calls.count("rollout_undo") == 1

    @pytest.mark.asyncio
    async def test_second_rollback_returns_to_newer_image(self):
        clock = FakeClock()
        cluster = FakeCluster(clock, revisions=["web:v0", "web:v1", "web:v2"])
        container = create_container(cluster=cluster, cloud=FakeCloud(), http=FakeHttp())

        await container.rollback.execute("web", "prod")
        result = await container.rollback.execute("web", "prod")

        assert result.previous_image == "web:v1"
        assert result.rollback_image == "web:v2"

    @pytest.mark.asyncio
    async def test_rollback_without_history(self):
        clock = FakeClock()
        cluster = FakeCluster(clock, revisions=["web:v0"])
        container = create_container(cluster=cluster, cloud=FakeCloud(), http=FakeHttp())

        result = await container.rollback.execute("web", "prod")

        outputs = result.to_outputs()
        assert outputs["status"] == "failure"
        assert "No previous revision" in outputs["error"]
        assert "rollout_undo" not in cluster.calls


class TestHealthCheckFlow:
    @pytest.mark.asyncio
    async def test_pods_only_verdict(self):
        clock = FakeClock()
        cluster = FakeCluster(clock, revisions=["web:v0"], replicas=2)
        cluster.pods = [PodSnapshot("web-1", "Running"), PodSnapshot("web-2", "CrashLoopBackOff")]
        cluster.events["web-2"] = ["Warning  BackOff  Back-off restarting failed container"]
        container = create_container(cluster=cluster, cloud=FakeCloud(), http=FakeHttp())

        result = await container.health_check.execute("web", "prod")

        text = format_outputs(result.to_outputs())
        assert "status=success" in text
        assert "health-check-result=pods_not_ready" in text
        assert "ready-replicas=2" in text
