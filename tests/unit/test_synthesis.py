"""
Unit tests for desired-state synthesis.

Builders are pure functions of the ArgoCD resource and the cluster
capabilities, so these tests need no stores.
"""

import pytest

from argocd_operator.capabilities import CapabilityContext
from argocd_operator.constants import (
    ANNOTATION_OWNER_NAME,
    ANNOTATION_OWNER_NAMESPACE,
    KIND_DEPLOYMENT,
    KIND_DEPLOYMENT_CONFIG,
    LABEL_COMPONENT,
    LABEL_INSTANCE,
    LABEL_MANAGED_BY,
    LABEL_NAME,
    LABEL_PART_OF,
)
from argocd_operator.resources import (
    build_applicationset_deployment,
    build_dex_deployment,
    build_keycloak_workload,
    build_notifications_deployment,
    build_redis_role,
    build_redis_role_binding,
    build_redis_service_account,
    build_server_ingress,
    build_server_route,
)
from argocd_operator.resources.metadata import image_reference
from argocd_operator.services.drift import normalize
from tests.fixtures.argocd_resources import COMPLETE_ARGOCD

BUILT_IN_BUILDERS = [
    build_redis_service_account,
    build_redis_role,
    build_redis_role_binding,
    build_dex_deployment,
    build_notifications_deployment,
    build_applicationset_deployment,
    build_server_ingress,
]


def metadata_of(desired):
    body = normalize(desired.body)
    return body["metadata"]


class TestLabelsAndAnnotations:
    """Every managed object carries the label and ownership conventions."""

    @pytest.mark.parametrize("builder", BUILT_IN_BUILDERS)
    def test_common_labels(self, builder, make_argocd, capabilities):
        """Test the five app.kubernetes.io labels are set consistently."""
        cr = make_argocd(base=COMPLETE_ARGOCD)

        desired = builder(cr, capabilities)
        labels = metadata_of(desired)["labels"]

        assert labels[LABEL_NAME] == desired.name
        assert labels[LABEL_PART_OF] == "argocd"
        assert labels[LABEL_INSTANCE] == "example-argocd"
        assert labels[LABEL_MANAGED_BY] == "argocd-operator"
        assert LABEL_COMPONENT in labels

    @pytest.mark.parametrize("builder", BUILT_IN_BUILDERS)
    def test_owner_annotations(self, builder, make_argocd, capabilities):
        """Test the owning resource is recorded in annotations."""
        cr = make_argocd(base=COMPLETE_ARGOCD)

        annotations = metadata_of(builder(cr, capabilities))["annotations"]

        assert annotations[ANNOTATION_OWNER_NAME] == "example-argocd"
        assert annotations[ANNOTATION_OWNER_NAMESPACE] == "argocd"

    def test_names_follow_instance_component_convention(self, make_argocd, capabilities):
        """Test child objects are named <instance>-<component>."""
        cr = make_argocd(base=COMPLETE_ARGOCD)

        assert build_redis_service_account(cr, capabilities).name == "example-argocd-redis"
        assert build_server_ingress(cr, capabilities).name == "example-argocd-server"
        assert (
            build_notifications_deployment(cr, capabilities).name
            == "example-argocd-notifications-controller"
        )

    def test_owner_reference_points_at_resource(self, make_argocd, capabilities):
        """Test children are owned by the ArgoCD resource for garbage collection."""
        cr = make_argocd()

        refs = metadata_of(build_redis_service_account(cr, capabilities))[
            "owner_references"
        ]

        assert refs == [
            {
                "api_version": "argoproj.io/v1beta1",
                "kind": "ArgoCD",
                "name": "example-argocd",
                "uid": cr.uid,
                "controller": True,
                "block_owner_deletion": True,
            }
        ]

    def test_no_owner_reference_without_uid(self, make_argocd, capabilities):
        """Test an unsaved resource yields no owner reference."""
        cr = make_argocd(uid=None)

        metadata = metadata_of(build_redis_service_account(cr, capabilities))

        assert "owner_references" not in metadata

    def test_route_metadata_uses_custom_object_form(self, make_argocd):
        """Test routes carry the same labels in camelCase metadata."""
        cr = make_argocd(spec={"server": {"route": {"enabled": True}}})

        route = build_server_route(cr, CapabilityContext(route_api=True))
        metadata = route.body["metadata"]

        assert metadata["labels"][LABEL_NAME] == "example-argocd-server"
        assert metadata["ownerReferences"][0]["uid"] == cr.uid
        assert metadata["annotations"][ANNOTATION_OWNER_NAME] == "example-argocd"

    def test_synthesis_is_deterministic(self, make_argocd, capabilities):
        """Test building twice from the same input gives equal objects."""
        cr = make_argocd(base=COMPLETE_ARGOCD)

        for builder in BUILT_IN_BUILDERS:
            assert normalize(builder(cr, capabilities).body) == normalize(
                builder(cr, capabilities).body
            )


class TestRedisHAMode:
    """HA mode changes only which role the binding points at."""

    def test_binding_differs_only_in_role_ref(self, make_argocd, capabilities):
        """Test toggling HA leaves binding name, subjects and labels alone."""
        plain = build_redis_role_binding(make_argocd(), capabilities)
        ha = build_redis_role_binding(
            make_argocd(spec={"ha": {"enabled": True}}), capabilities
        )

        plain_body = normalize(plain.body)
        ha_body = normalize(ha.body)

        assert plain_body.pop("role_ref")["name"] == "example-argocd-redis"
        assert ha_body.pop("role_ref")["name"] == "example-argocd-redis-ha"
        assert plain_body == ha_body

    def test_ha_role_can_read_endpoints(self, make_argocd, capabilities):
        """Test the HA role grants endpoint reads for sentinel discovery."""
        role = build_redis_role(make_argocd(spec={"ha": {"enabled": True}}), capabilities)

        assert role.name == "example-argocd-redis-ha"
        rules = normalize(role.body)["rules"]
        assert {"api_groups": [""], "resources": ["endpoints"], "verbs": ["get"]} in rules

    def test_scc_rule_only_on_openshift(self, make_argocd, capabilities):
        """Test the restricted SCC rule depends on the route capability."""
        cr = make_argocd()

        plain = normalize(build_redis_role(cr, capabilities).body)
        openshift = normalize(build_redis_role(cr, CapabilityContext(route_api=True)).body)

        assert plain.get("rules", []) == []
        assert openshift["rules"][0]["resources"] == ["securitycontextconstraints"]


class TestWorkloads:
    """Deployments and the Keycloak workload."""

    def test_keycloak_is_deployment_on_kubernetes(self, make_argocd, capabilities):
        """Test Keycloak renders as a Deployment without the template API."""
        cr = make_argocd(spec={"sso": {"provider": "keycloak"}})

        workload = build_keycloak_workload(cr, capabilities)

        assert workload.kind == KIND_DEPLOYMENT
        assert workload.name == "example-argocd-keycloak"

    def test_keycloak_is_deployment_config_on_openshift(
        self, make_argocd, openshift_capabilities
    ):
        """Test Keycloak renders as a DeploymentConfig with the template API."""
        cr = make_argocd(base=COMPLETE_ARGOCD)

        workload = build_keycloak_workload(cr, openshift_capabilities)

        assert workload.kind == KIND_DEPLOYMENT_CONFIG
        spec = workload.body["spec"]
        assert spec["replicas"] == 1
        assert spec["selector"] == {LABEL_NAME: "example-argocd-keycloak"}
        container = spec["template"]["spec"]["containers"][0]
        assert container["resources"]["limits"] == {"cpu": "500m", "memory": "1Gi"}

    def test_component_image_overrides_instance_version(self, make_argocd, capabilities):
        """Test a component image and version win over instance-wide settings."""
        cr = make_argocd(
            spec={
                "version": "v2.10.4",
                "notifications": {
                    "enabled": True,
                    "image": "registry.example.com/argocd",
                    "version": "v2.11.0",
                },
            }
        )

        body = normalize(build_notifications_deployment(cr, capabilities).body)
        image = body["spec"]["template"]["spec"]["containers"][0]["image"]

        assert image == "registry.example.com/argocd:v2.11.0"

    def test_selector_matches_pod_labels(self, make_argocd, capabilities):
        """Test the immutable selector is a subset of the pod template labels."""
        body = normalize(build_dex_deployment(make_argocd(), capabilities).body)

        selector = body["spec"]["selector"]["match_labels"]
        pod_labels = body["spec"]["template"]["metadata"]["labels"]

        assert selector.items() <= pod_labels.items()

    def test_image_reference_accepts_digest(self):
        """Test sha256 versions are joined with @."""
        assert image_reference("quay.io/argoproj/argocd", "sha256:abc") == (
            "quay.io/argoproj/argocd@sha256:abc"
        )
        assert image_reference("quay.io/argoproj/argocd", "v2.10.4") == (
            "quay.io/argoproj/argocd:v2.10.4"
        )


class TestExposure:
    """Server ingress and route."""

    def test_ingress_routes_host_to_server_service(self, make_argocd, capabilities):
        """Test the ingress rule targets the server service over HTTPS."""
        cr = make_argocd(base=COMPLETE_ARGOCD)

        body = normalize(build_server_ingress(cr, capabilities).body)
        rule = body["spec"]["rules"][0]
        backend = rule["http"]["paths"][0]["backend"]["service"]

        assert rule["host"] == "argocd.example.com"
        assert backend == {"name": "example-argocd-server", "port": {"number": 443}}
        assert body["spec"]["ingress_class_name"] == "nginx"
        assert body["spec"]["tls"] == [
            {"hosts": ["argocd.example.com"], "secret_name": "argocd-tls"}
        ]

    def test_insecure_server_uses_http(self, make_argocd, capabilities):
        """Test insecure mode points the ingress at port 80."""
        cr = make_argocd(spec={"server": {"insecure": True, "ingress": {"enabled": True}}})

        body = normalize(build_server_ingress(cr, capabilities).body)

        port = body["spec"]["rules"][0]["http"]["paths"][0]["backend"]["service"]["port"]
        assert port == {"number": 80}

    def test_route_defaults(self, make_argocd):
        """Test the route passes TLS through to the server by default."""
        cr = make_argocd(spec={"server": {"route": {"enabled": True}}})

        spec = build_server_route(cr, CapabilityContext(route_api=True)).body["spec"]

        assert spec["to"] == {"kind": "Service", "name": "example-argocd-server", "weight": 100}
        assert spec["tls"]["termination"] == "passthrough"
        assert "host" not in spec
