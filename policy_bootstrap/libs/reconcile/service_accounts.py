"""
Service Account Role Initializer

Grants the built-in service accounts of a namespace their default roles, once.
Completion is recorded as an annotation on the namespace; the annotation is
only written after every grant succeeded, so a partially initialized
namespace is retried in full on the next startup.
"""

import logging
import time
from typing import Callable, Set

from ..bootstrappolicy import bootstrap_service_account_project_role_bindings
from ..core.constants import BootstrapConstants, KubernetesConstants
from ..core.data_models import ItemStatus, Namespace, RoleBinding, StepResult
from ..core.exceptions import AlreadyExistsError, BootstrapError, ConflictError
from ..core.protocols import NamespaceStore, RoleBindingStore
from ..core.retry import RetryPolicy, optimistic_update, retry_on_conflict

logger = logging.getLogger(__name__)

INITIALIZED = "true"


def is_initialized(namespace: Namespace) -> bool:
    """Check the completion annotation of a namespace."""
    return namespace.annotations.get(KubernetesConstants.SA_ROLES_INITIALIZED_ANNOTATION) == INITIALIZED


def unique_binding_name(role_name: str, taken: Set[str],
                        max_suffix: int = BootstrapConstants.MAX_BINDING_NAME_SUFFIX) -> str:
    """
    Pick a binding name for a role that does not collide with existing bindings.

    Args:
        role_name: Name of the granted role, tried first
        taken: Names of bindings already in the namespace
        max_suffix: Number of numbered alternatives to try

    Returns:
        str: role_name, or role_name-0, role_name-1, ...

    Raises:
        BootstrapError: If every candidate is taken
    """
    if role_name not in taken:
        return role_name
    for suffix in range(max_suffix):
        candidate = f"{role_name}-{suffix}"
        if candidate not in taken:
            return candidate
    raise BootstrapError(f"No free role binding name for {role_name} after {max_suffix} attempts")


class ServiceAccountRoleInitializer:
    """Adds the default service account grants to a namespace"""

    def __init__(self, namespace_store: NamespaceStore, binding_store: RoleBindingStore,
                 retry_policy: RetryPolicy = None, sleep: Callable[[float], None] = time.sleep):
        """
        Initialize the service account role initializer

        Args:
            namespace_store: Namespace store, used for the completion annotation
            binding_store: Role binding store
            retry_policy: Conflict retry bounds for each grant
            sleep: Sleep function used between retries
        """
        self.namespaces = namespace_store
        self.bindings = binding_store
        self.retry_policy = retry_policy or RetryPolicy()
        self.sleep = sleep

    def initialize(self, namespace: Namespace) -> StepResult:
        """
        Grant default service account roles in a namespace

        Args:
            namespace: Namespace as last read from the store

        Returns:
            StepResult: One outcome per grant, plus the completion annotation write
        """
        result = StepResult(step=f"service account roles in {namespace.name}")
        if is_initialized(namespace):
            logger.debug(f"Service account roles already initialized in {namespace.name}")
            return result

        for grant in bootstrap_service_account_project_role_bindings(namespace.name):
            try:
                status = retry_on_conflict(self.retry_policy, lambda: self._grant(grant), sleep=self.sleep)
                result.record(grant.name, status)
            except BootstrapError as e:
                logger.error(f"Could not add service accounts to the {grant.role_ref.name} role "
                             f"in {namespace.name}: {e}")
                result.record(grant.name, ItemStatus.FAILED, str(e))

        if result.failed:
            logger.warning(f"Service account roles in {namespace.name} incomplete, "
                           f"{len(result.failed)} grant(s) will be retried on the next startup")
            return result

        self._mark_initialized(namespace.name, result)
        return result

    def _grant(self, grant: RoleBinding) -> ItemStatus:
        existing = self.bindings.list(grant.namespace)
        matching = [binding for binding in existing
                    if binding.role_ref.kind == grant.role_ref.kind
                    and binding.role_ref.name == grant.role_ref.name]

        if matching:
            target = matching[0]
            missing = target.missing_subjects(grant.subjects)
            if not missing:
                return ItemStatus.UNCHANGED
            updated = target.copy()
            updated.subjects = updated.subjects + missing
            self.bindings.update(updated)
            logger.debug(f"Added {len(missing)} subject(s) to role binding {grant.namespace}/{target.name}")
            return ItemStatus.UPDATED

        binding = grant.copy()
        binding.name = unique_binding_name(grant.role_ref.name, {b.name for b in existing})
        try:
            self.bindings.create(binding)
        except AlreadyExistsError as e:
            # Someone else took the name between list and create; start over
            raise ConflictError(str(e), status=e.status, reason=e.reason)
        logger.debug(f"Created role binding {grant.namespace}/{binding.name}")
        return ItemStatus.CREATED

    def _mark_initialized(self, name: str, result: StepResult) -> None:
        marker = KubernetesConstants.SA_ROLES_INITIALIZED_ANNOTATION

        def mark(current: Namespace):
            if is_initialized(current):
                return None
            marked = current.copy()
            marked.annotations[marker] = INITIALIZED
            return marked

        try:
            written = optimistic_update(lambda: self.namespaces.get(name), mark, self.namespaces.update,
                                        RetryPolicy.no_retry(), self.sleep)
            result.record(marker, ItemStatus.UPDATED if written else ItemStatus.UNCHANGED)
        except ConflictError:
            # Another writer changed the namespace; grants are done, the marker follows next startup
            result.record(marker, ItemStatus.SKIPPED, "namespace modified concurrently")
        except BootstrapError as e:
            logger.error(f"Could not mark service account roles initialized in {name}: {e}")
            result.record(marker, ItemStatus.SKIPPED, str(e))

