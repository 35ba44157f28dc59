"""
Security Policy Initializer

Creates the default security context constraints. Existing constraints are
left untouched, whatever their content; the first writer wins.
"""

import logging

from ..bootstrappolicy import bootstrap_scc_access, bootstrap_security_context_constraints
from ..core.data_models import ItemStatus, StepResult
from ..core.exceptions import AlreadyExistsError, BootstrapError
from ..core.protocols import SecurityPolicyStore

logger = logging.getLogger(__name__)


class SecurityPolicyInitializer:
    """Creates default security context constraints that do not exist yet"""

    def __init__(self, security_policy_store: SecurityPolicyStore):
        self.store = security_policy_store

    def initialize(self, namespace_for_subjects: str) -> StepResult:
        """
        Create the default security context constraints

        Args:
            namespace_for_subjects: Namespace of the controller service accounts
                granted access to some constraints

        Returns:
            StepResult: One outcome per constraint
        """
        result = StepResult(step="security context constraints")
        groups, users = bootstrap_scc_access(namespace_for_subjects)

        for policy in bootstrap_security_context_constraints(groups, users):
            try:
                self.store.create(policy)
            except AlreadyExistsError:
                result.record(policy.name, ItemStatus.SKIPPED, "already exists")
                continue
            except BootstrapError as e:
                logger.error(f"Unable to create default security context constraint {policy.name}: {e}")
                result.record(policy.name, ItemStatus.FAILED, str(e))
                continue

            logger.info(f"Created default security context constraint {policy.name}")
            result.record(policy.name, ItemStatus.CREATED)

        return result
