"""Tests for cluster-state snapshots and revision history parsing."""

from kubeship.domain.value_objects.cluster_state import (
    DeploymentRef,
    DeploymentSnapshot,
    IngressSnapshot,
    NodeSnapshot,
    PodSnapshot,
    RevisionHistory,
    RouteSnapshot,
    ServiceSnapshot,
)


HISTORY_OUTPUT = """deployment.apps/web
REVISION  CHANGE-CAUSE
1         <none>
2         <none>
3         kubectl set image deployment/web web=web:v2
"""


class TestRevisionHistory:
    def test_parse_counts_numbered_rows(self):
        history = RevisionHistory.parse(HISTORY_OUTPUT)
        assert history.count == 3
        assert history.current.number == 3
        assert history.previous.number == 2
        assert "set image" in history.current.change_cause

    def test_single_revision_cannot_roll_back(self):
        history = RevisionHistory.parse("REVISION  CHANGE-CAUSE\n1  <none>\n")
        assert history.count == 1
        assert not history.can_roll_back

    def test_two_revisions_can_roll_back(self):
        history = RevisionHistory.parse("REVISION  CHANGE-CAUSE\n1  <none>\n2  <none>\n")
        assert history.can_roll_back

    def test_empty_output(self):
        history = RevisionHistory.parse("")
        assert history.count == 0
        assert history.current is None
        assert history.previous is None


class TestDeploymentSnapshot:
    def test_from_resource(self):
        doc = {
            "metadata": {
                "name": "web",
                "namespace": "prod",
                "annotations": {"deployment.kubernetes.io/revision": "4"},
            },
            "spec": {
                "replicas": 3,
                "template": {"spec": {"containers": [{"name": "web", "image": "web:v4"}]}},
            },
            "status": {"readyReplicas": 2},
        }
        snapshot = DeploymentSnapshot.from_resource(doc)
        assert snapshot.revision == 4
        assert snapshot.image == "web:v4"
        assert snapshot.ready_replicas == 2
        assert snapshot.desired_replicas == 3
        assert not snapshot.fully_ready

    def test_missing_status_reads_as_zero(self):
        snapshot = DeploymentSnapshot.from_resource({"metadata": {"name": "web"}, "spec": {}})
        assert snapshot.ready_replicas == 0
        assert snapshot.revision is None
        assert snapshot.image == ""


class TestServiceSnapshot:
    def test_load_balancer_prefers_ip(self):
        doc = {
            "metadata": {"name": "web"},
            "spec": {"clusterIP": "172.21.0.10", "ports": [{"port": 80}]},
            "status": {"loadBalancer": {"ingress": [{"ip": "203.0.113.5", "hostname": "lb.example.com"}]}},
        }
        assert ServiceSnapshot.from_resource(doc).load_balancer_address == "203.0.113.5"

    def test_load_balancer_hostname(self):
        doc = {"status": {"loadBalancer": {"ingress": [{"hostname": "abc.elb.amazonaws.com"}]}}}
        assert ServiceSnapshot.from_resource(doc).load_balancer_address == "abc.elb.amazonaws.com"

    def test_unassigned_load_balancer(self):
        service = ServiceSnapshot.from_resource({"status": {"loadBalancer": {}}})
        assert service.load_balancer_address == ""

    def test_node_port(self):
        doc = {"spec": {"ports": [{"port": 80, "nodePort": 30080}]}}
        assert ServiceSnapshot.from_resource(doc).node_port == 30080


class TestOtherSnapshots:
    def test_node_addresses(self):
        node = NodeSnapshot.from_resource(
            {
                "metadata": {"name": "n1", "labels": {"zone": "a"}},
                "status": {
                    "addresses": [
                        {"type": "InternalIP", "address": "10.0.0.4"},
                        {"type": "Hostname", "address": "n1.local"},
                    ]
                },
            }
        )
        assert node.addresses_of("InternalIP") == ["10.0.0.4"]
        assert node.addresses_of("ExternalIP") == []
        assert node.labels == {"zone": "a"}

    def test_pod_running(self):
        assert PodSnapshot.from_resource({"metadata": {"name": "p"}, "status": {"phase": "Running"}}).running
        assert not PodSnapshot("p", "Pending").running

    def test_ingress_url_with_tls(self):
        ingress = IngressSnapshot.from_resource(
            {"spec": {"rules": [{"host": "web.example.com"}], "tls": [{"hosts": ["web.example.com"]}]}}
        )
        assert ingress.url == "https://web.example.com"

    def test_ingress_url_without_tls(self):
        ingress = IngressSnapshot.from_resource({"spec": {"rules": [{"host": "web.example.com"}]}})
        assert ingress.url == "http://web.example.com"

    def test_route_url(self):
        route = RouteSnapshot.from_resource({"spec": {"host": "web-prod.apps.example.com"}})
        assert route.url == "http://web-prod.apps.example.com"

    def test_deployment_ref_str(self):
        assert str(DeploymentRef("web", "prod")) == "prod/web"
