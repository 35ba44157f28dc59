"""
Tests for the data models and step aggregation
"""

from policy_bootstrap.libs.bootstrappolicy.cluster_roles import rule
from policy_bootstrap.libs.core.constants import KubernetesConstants
from policy_bootstrap.libs.core.data_models import (
    ClusterPolicyDocument, ItemStatus, Namespace, RoleBinding, RoleRef, StepResult, Subject
)


class TestPolicyRuleCoverage:
    """Rule subsumption used by the union merge"""

    def test_identical_rule_covers(self):
        assert rule(["get"], [""], ["pods"]).covers(rule(["get"], [""], ["pods"]))

    def test_superset_of_verbs_covers(self):
        assert rule(["get", "list", "watch"], [""], ["pods"]).covers(rule(["list"], [""], ["pods"]))

    def test_missing_verb_does_not_cover(self):
        assert not rule(["get"], [""], ["pods"]).covers(rule(["delete"], [""], ["pods"]))

    def test_wildcards_cover_everything(self):
        assert rule(["*"], ["*"], ["*"]).covers(rule(["delete"], ["apps"], ["deployments"]))

    def test_resource_name_restriction(self):
        restricted = rule(["get"], [""], ["configmaps"], resource_names=["cluster-info"])
        assert not restricted.covers(rule(["get"], [""], ["configmaps"]))
        assert rule(["get"], [""], ["configmaps"]).covers(restricted)

    def test_non_resource_urls(self):
        discovery = rule(["get"], urls=["/version", "/api"])
        assert discovery.covers(rule(["get"], urls=["/api"]))
        assert not discovery.covers(rule(["get"], urls=["/healthz"]))

    def test_wire_shape_uses_camel_case(self):
        data = rule(["get"], [""], ["configmaps"], resource_names=["x"]).to_dict()
        assert data == {'verbs': ["get"], 'apiGroups': [""], 'resources': ["configmaps"], 'resourceNames': ["x"]}


class TestSubjects:
    """Subject identity and wire shape"""

    def test_subjects_compare_by_identity(self):
        assert Subject.group("system:authenticated") == Subject.group("system:authenticated")
        assert len({Subject.user("alice"), Subject.user("alice"), Subject.group("alice")}) == 2

    def test_service_account_has_namespace_not_api_group(self):
        data = Subject.service_account("team-a", "builder").to_dict()
        assert data == {'kind': "ServiceAccount", 'name': "builder", 'namespace': "team-a"}

    def test_user_has_rbac_api_group(self):
        assert Subject.user("alice").to_dict()['apiGroup'] == KubernetesConstants.RBAC_API_GROUP


class TestRoleBinding:
    """Role binding helpers"""

    def _binding(self, *subjects):
        return RoleBinding(name="view", role_ref=RoleRef(kind="ClusterRole", name="view"),
                           subjects=list(subjects), namespace="team-a")

    def test_missing_subjects_preserves_order_and_drops_duplicates(self):
        binding = self._binding(Subject.user("alice"))
        desired = [Subject.user("bob"), Subject.user("alice"), Subject.user("bob"), Subject.group("devs")]
        assert binding.missing_subjects(desired) == [Subject.user("bob"), Subject.group("devs")]

    def test_kind_follows_scope(self):
        assert self._binding().kind == "RoleBinding"
        assert RoleBinding(name="x", role_ref=RoleRef(kind="ClusterRole", name="x")).kind == "ClusterRoleBinding"

    def test_from_dict_resolves_role_reference_namespace(self):
        binding = RoleBinding.from_dict({
            'metadata': {'name': "reader", 'namespace': "kube-system", 'resourceVersion': "7"},
            'roleRef': {'apiGroup': KubernetesConstants.RBAC_API_GROUP, 'kind': "Role", 'name': "reader"},
            'subjects': [{'kind': "ServiceAccount", 'name': "default", 'namespace': "kube-system"}],
        })
        assert binding.role_ref.namespace == "kube-system"
        assert binding.resource_version == "7"
        assert binding.subjects == [Subject.service_account("kube-system", "default")]


class TestNamespaceAndPolicyDocument:
    """Round trips of metadata the bootstrap depends on"""

    def test_namespace_annotations_survive(self):
        namespace = Namespace.from_dict({'metadata': {'name': "default",
                                                      'annotations': {"a": "b"},
                                                      'resourceVersion': "3"}})
        assert namespace.annotations == {"a": "b"}
        assert namespace.to_dict()['metadata']['resourceVersion'] == "3"

    def test_namespace_fields_outside_the_model_survive_an_update(self):
        namespace = Namespace.from_dict({
            'metadata': {'name': "default", 'resourceVersion': "3", 'finalizers': ["example.com/hold"],
                         'ownerReferences': [{'kind': "Project", 'name': "default"}]},
            'spec': {'finalizers': ["kubernetes"]},
        })
        namespace.annotations[KubernetesConstants.SA_ROLES_INITIALIZED_ANNOTATION] = "true"

        body = namespace.to_dict()

        assert body['spec'] == {'finalizers': ["kubernetes"]}
        assert body['metadata']['finalizers'] == ["example.com/hold"]
        assert body['metadata']['ownerReferences'] == [{'kind': "Project", 'name': "default"}]
        assert body['metadata']['annotations'] == {KubernetesConstants.SA_ROLES_INITIALIZED_ANNOTATION: "true"}

    def test_role_binding_keeps_unknown_fields(self):
        binding = RoleBinding.from_dict({
            'metadata': {'name': "x", 'namespace': "ns", 'uid': "1234"},
            'roleRef': {'kind': "ClusterRole", 'name': "view"},
            'subjects': [],
        })
        binding.subjects.append(Subject.user("alice"))

        body = binding.to_dict()

        assert body['metadata']['uid'] == "1234"
        assert body['subjects'] == [Subject.user("alice").to_dict()]

    def test_models_built_in_code_have_no_extra_fields(self):
        assert set(Namespace(name="x").to_dict()) == {'apiVersion', 'kind', 'metadata'}

    def test_cluster_policy_document_lists_roles(self):
        document = ClusterPolicyDocument(role_names=["admin", "edit"])
        assert document.to_dict()['roles'] == [{'name': "admin"}, {'name': "edit"}]
        assert ClusterPolicyDocument.from_dict(document.to_dict()).role_names == ["admin", "edit"]


class TestStepResult:
    """Aggregation of per-item outcomes"""

    def test_failed_and_changed(self):
        result = StepResult(step="things")
        result.record("a", ItemStatus.CREATED)
        result.record("b", ItemStatus.UNCHANGED)
        result.record("c", ItemStatus.FAILED, "boom")

        assert [o.name for o in result.changed] == ["a"]
        assert [o.name for o in result.failed] == ["c"]
        assert not result.ok
        assert result.summary() == "things: 1 created, 1 unchanged, 1 failed"

    def test_empty_summary(self):
        assert StepResult(step="things").summary() == "things: nothing to do"
