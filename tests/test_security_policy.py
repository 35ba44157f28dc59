"""
Tests for SecurityPolicyInitializer
"""

import logging

from fakes import FakeSecurityPolicyStore
from policy_bootstrap.libs.bootstrappolicy.service_accounts import service_account_username
from policy_bootstrap.libs.core.constants import PolicyConstants
from policy_bootstrap.libs.core.data_models import ItemStatus, SecurityPolicy
from policy_bootstrap.libs.core.exceptions import StoreError
from policy_bootstrap.libs.reconcile import SecurityPolicyInitializer
from test_constants import PolicyTestConstants

INFRA = PolicyTestConstants.INFRA_NAMESPACE


class TestSecurityPolicyInitializer:
    """Creating default security context constraints"""

    def test_creates_all_defaults(self):
        store = FakeSecurityPolicyStore()

        result = SecurityPolicyInitializer(store).initialize(INFRA)

        assert [o.name for o in result.outcomes] == PolicyTestConstants.DEFAULT_SCC_NAMES
        assert all(o.status == ItemStatus.CREATED for o in result.outcomes)

    def test_subjects_come_from_namespace(self):
        store = FakeSecurityPolicyStore()

        SecurityPolicyInitializer(store).initialize("custom-infra")

        privileged = store.objects[PolicyConstants.SCC_PRIVILEGED]
        assert service_account_username("custom-infra", PolicyConstants.BUILD_CONTROLLER_SERVICE_ACCOUNT) \
            in privileged.users
        assert PolicyConstants.AUTHENTICATED_GROUP in store.objects[PolicyConstants.SCC_RESTRICTED].groups

    def test_existing_privileged_is_skipped_without_error(self, caplog):
        store = FakeSecurityPolicyStore()
        store.put(PolicyConstants.SCC_PRIVILEGED, SecurityPolicy(name=PolicyConstants.SCC_PRIVILEGED, users=["me"]))

        with caplog.at_level(logging.INFO):
            result = SecurityPolicyInitializer(store).initialize(INFRA)

        assert result.outcomes[0].status == ItemStatus.SKIPPED
        assert not [r for r in caplog.records if r.levelno >= logging.ERROR]
        assert store.objects[PolicyConstants.SCC_PRIVILEGED].users == ["me"]
        assert len(result.with_status(ItemStatus.CREATED)) == len(PolicyTestConstants.DEFAULT_SCC_NAMES) - 1

    def test_other_errors_are_logged_and_skipped(self, caplog):
        store = FakeSecurityPolicyStore()
        store.inject('create', PolicyConstants.SCC_NONROOT, StoreError("forbidden", status=403))

        with caplog.at_level(logging.INFO):
            result = SecurityPolicyInitializer(store).initialize(INFRA)

        assert [o.name for o in result.failed] == [PolicyConstants.SCC_NONROOT]
        assert any(r.levelno == logging.ERROR and PolicyConstants.SCC_NONROOT in r.getMessage()
                   for r in caplog.records)
        assert PolicyConstants.SCC_HOSTNETWORK in store.objects
