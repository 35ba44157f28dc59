"""
Tests for ServiceAccountRoleInitializer
"""

import logging

import pytest

from fakes import FakeNamespaceStore, FakeRoleBindingStore, no_sleep
from policy_bootstrap.libs.bootstrappolicy.service_accounts import service_account_group
from policy_bootstrap.libs.core.constants import PolicyConstants
from policy_bootstrap.libs.core.data_models import ItemStatus, Namespace, RoleBinding, RoleRef, Subject
from policy_bootstrap.libs.core.exceptions import BootstrapError, ConflictError, StoreError
from policy_bootstrap.libs.core.retry import RetryPolicy
from policy_bootstrap.libs.reconcile import ServiceAccountRoleInitializer, is_initialized, unique_binding_name
from test_constants import PolicyTestConstants

NAMESPACE = PolicyTestConstants.DEFAULT_NAMESPACE
MARKER = PolicyTestConstants.MARKER


@pytest.fixture
def namespaces():
    store = FakeNamespaceStore()
    store.add(NAMESPACE)
    return store


@pytest.fixture
def bindings():
    return FakeRoleBindingStore()


def _initializer(namespaces, bindings, steps=5):
    return ServiceAccountRoleInitializer(namespaces, bindings,
                                         retry_policy=RetryPolicy(steps=steps, duration=0.0, jitter=0.0),
                                         sleep=no_sleep)


class TestInitialize:
    """Granting the default service account roles"""

    def test_grants_three_bindings_and_sets_marker(self, namespaces, bindings):
        result = _initializer(namespaces, bindings).initialize(namespaces.get(NAMESPACE))

        assert result.ok
        created = {binding.role_ref.name: binding for binding in bindings.list(NAMESPACE)}
        assert sorted(created) == sorted(PolicyTestConstants.SA_GRANT_ROLES)
        assert created[PolicyConstants.IMAGE_PULLER_ROLE_NAME].subjects == [
            Subject.group(service_account_group(NAMESPACE))]
        assert created[PolicyConstants.IMAGE_BUILDER_ROLE_NAME].subjects == [
            Subject.service_account(NAMESPACE, PolicyConstants.BUILDER_SERVICE_ACCOUNT)]
        assert created[PolicyConstants.DEPLOYER_ROLE_NAME].subjects == [
            Subject.service_account(NAMESPACE, PolicyConstants.DEPLOYER_SERVICE_ACCOUNT)]
        assert is_initialized(namespaces.get(NAMESPACE))

    def test_initialized_namespace_is_left_alone(self, namespaces, bindings):
        initializer = _initializer(namespaces, bindings)
        initializer.initialize(namespaces.get(NAMESPACE))
        bindings.calls.clear()

        result = initializer.initialize(namespaces.get(NAMESPACE))

        assert result.outcomes == []
        assert bindings.calls == []

    def test_adds_subjects_to_existing_binding(self, namespaces, bindings):
        bindings.add(RoleBinding(
            name="pullers", namespace=NAMESPACE,
            role_ref=RoleRef(kind="ClusterRole", name=PolicyConstants.IMAGE_PULLER_ROLE_NAME),
            subjects=[Subject.user(PolicyTestConstants.EXTRA_USER)],
        ))

        _initializer(namespaces, bindings).initialize(namespaces.get(NAMESPACE))

        pullers = bindings.get("pullers", NAMESPACE)
        assert pullers.subjects == [Subject.user(PolicyTestConstants.EXTRA_USER),
                                    Subject.group(service_account_group(NAMESPACE))]
        names = [b.name for b in bindings.list(NAMESPACE) if b.role_ref.name == PolicyConstants.IMAGE_PULLER_ROLE_NAME]
        assert names == ["pullers"]

    def test_name_taken_by_other_role_gets_suffix(self, namespaces, bindings):
        bindings.add(RoleBinding(
            name=PolicyConstants.DEPLOYER_ROLE_NAME, namespace=NAMESPACE,
            role_ref=RoleRef(kind="ClusterRole", name="view"),
        ))

        _initializer(namespaces, bindings).initialize(namespaces.get(NAMESPACE))

        deployer = bindings.get(f"{PolicyConstants.DEPLOYER_ROLE_NAME}-0", NAMESPACE)
        assert deployer.role_ref.name == PolicyConstants.DEPLOYER_ROLE_NAME
        assert bindings.get(PolicyConstants.DEPLOYER_ROLE_NAME, NAMESPACE).role_ref.name == "view"

    def test_concurrent_writer_subjects_are_kept(self, namespaces, bindings):
        bindings.add(RoleBinding(
            name="pullers", namespace=NAMESPACE,
            role_ref=RoleRef(kind="ClusterRole", name=PolicyConstants.IMAGE_PULLER_ROLE_NAME),
            subjects=[Subject.user(PolicyTestConstants.EXTRA_USER)],
        ))
        other = Subject.user("bob")
        bindings.interleave('update', "pullers", lambda binding: binding.subjects.append(other))

        result = _initializer(namespaces, bindings).initialize(namespaces.get(NAMESPACE))

        assert result.ok
        assert set(bindings.get("pullers", NAMESPACE).subjects) == {
            Subject.user(PolicyTestConstants.EXTRA_USER), other, Subject.group(service_account_group(NAMESPACE))}
        assert is_initialized(namespaces.get(NAMESPACE))

    def test_marker_keeps_namespace_fields(self, bindings):
        namespaces = FakeNamespaceStore()
        namespaces.put(NAMESPACE, Namespace.from_dict({
            'metadata': {'name': NAMESPACE, 'finalizers': ["example.com/hold"]},
            'spec': {'finalizers': ["kubernetes"]},
        }))

        _initializer(namespaces, bindings).initialize(namespaces.get(NAMESPACE))

        body = namespaces.get(NAMESPACE).to_dict()
        assert body['metadata']['annotations'][MARKER] == "true"
        assert body['metadata']['finalizers'] == ["example.com/hold"]
        assert body['spec'] == {'finalizers': ["kubernetes"]}

    def test_conflicting_grant_is_retried(self, namespaces, bindings):
        bindings.inject('create', PolicyConstants.IMAGE_BUILDER_ROLE_NAME, ConflictError("stale"))

        result = _initializer(namespaces, bindings).initialize(namespaces.get(NAMESPACE))

        assert result.ok
        assert bindings.calls.count(('create', PolicyConstants.IMAGE_BUILDER_ROLE_NAME)) == 2

    def test_failed_grant_leaves_marker_unset(self, namespaces, bindings):
        bindings.inject('create', PolicyConstants.DEPLOYER_ROLE_NAME, StoreError("forbidden", status=403))

        result = _initializer(namespaces, bindings).initialize(namespaces.get(NAMESPACE))

        assert [o.name for o in result.failed] == [PolicyConstants.DEPLOYER_ROLE_BINDING_NAME]
        assert not is_initialized(namespaces.get(NAMESPACE))
        # The other grants were still applied
        assert len(bindings.list(NAMESPACE)) == 2

        # The injected failure is used up, so the next startup finishes the job
        retried = _initializer(namespaces, bindings).initialize(namespaces.get(NAMESPACE))

        assert not retried.failed
        statuses = {o.name: o.status for o in retried.outcomes}
        assert statuses[PolicyConstants.IMAGE_PULLER_ROLE_BINDING_NAME] == ItemStatus.UNCHANGED
        assert statuses[PolicyConstants.IMAGE_BUILDER_ROLE_BINDING_NAME] == ItemStatus.UNCHANGED
        assert statuses[PolicyConstants.DEPLOYER_ROLE_BINDING_NAME] == ItemStatus.CREATED
        assert is_initialized(namespaces.get(NAMESPACE))

    def test_exhausted_conflicts_leave_marker_unset(self, namespaces, bindings):
        bindings.inject('create', PolicyConstants.IMAGE_PULLER_ROLE_NAME, *[ConflictError("stale")] * 2)

        result = _initializer(namespaces, bindings, steps=2).initialize(namespaces.get(NAMESPACE))

        assert not result.ok
        assert not is_initialized(namespaces.get(NAMESPACE))

    def test_marker_conflict_is_tolerated(self, namespaces, bindings):
        namespaces.inject('update', NAMESPACE, ConflictError("namespace changed"))

        result = _initializer(namespaces, bindings).initialize(namespaces.get(NAMESPACE))

        marker = result.outcomes[-1]
        assert marker.name == MARKER
        assert marker.status == ItemStatus.SKIPPED
        assert result.ok
        assert namespaces.calls.count(('update', NAMESPACE)) == 1

    def test_marker_write_error_is_logged_and_skipped(self, namespaces, bindings, caplog):
        namespaces.inject('update', NAMESPACE, StoreError("forbidden", status=403))

        with caplog.at_level(logging.ERROR):
            result = _initializer(namespaces, bindings).initialize(namespaces.get(NAMESPACE))

        assert result.outcomes[-1].status == ItemStatus.SKIPPED
        assert "forbidden" in result.outcomes[-1].message
        assert result.ok
        assert any(r.levelno == logging.ERROR and "forbidden" in r.getMessage() for r in caplog.records)
        assert namespaces.calls.count(('update', NAMESPACE)) == 1


class TestUniqueBindingName:
    """Name selection for new grants"""

    def test_free_role_name_is_used(self):
        assert unique_binding_name("system:deployer", set()) == "system:deployer"

    def test_suffixes_are_tried_in_order(self):
        taken = {"system:deployer", "system:deployer-0", "system:deployer-1"}
        assert unique_binding_name("system:deployer", taken) == "system:deployer-2"

    def test_gives_up_after_max_suffix(self):
        taken = {"r"} | {f"r-{i}" for i in range(3)}
        with pytest.raises(BootstrapError):
            unique_binding_name("r", taken, max_suffix=3)
