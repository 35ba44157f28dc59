"""
Role Set Reconciler

Converges named cluster roles and cluster role bindings toward their
bootstrap definitions. The default merge is a union: missing rules, subjects,
labels and annotations are added and nothing an administrator added is ever
removed. Objects are only written when the merge actually changes them.
"""

import copy
import logging
import time
from typing import Callable, Dict, Iterable, List, Optional, TextIO, Tuple

import yaml

from ..bootstrappolicy import (
    bootstrap_cluster_role_bindings,
    bootstrap_cluster_roles,
    controller_role_bindings,
    controller_roles
)
from ..core.constants import KubernetesConstants
from ..core.data_models import ItemStatus, Role, RoleBinding, StepResult
from ..core.exceptions import AlreadyExistsError, BootstrapError, NotFoundError
from ..core.protocols import RoleBindingStore, RoleStore
from ..core.retry import RetryPolicy, optimistic_update

logger = logging.getLogger(__name__)

NOT_A_BOOTSTRAP_ROLE = "not a bootstrap role"


def _merge_missing(current: Dict[str, str], desired: Dict[str, str]) -> Dict[str, str]:
    """Add desired keys that are absent; existing values win."""
    merged = dict(current)
    for key, value in desired.items():
        merged.setdefault(key, value)
    return merged


def merge_role(current: Role, desired: Role, union: bool = True) -> Optional[Role]:
    """
    Compute the reconciled version of a stored role.

    Args:
        current: Role as stored
        desired: Bootstrap definition of the role
        union: Keep rules of current that desired does not have

    Returns:
        The role to write, or None if current already matches
    """
    merged = current.copy()
    if union:
        missing = [rule for rule in desired.rules
                   if not any(existing.covers(rule) for existing in current.rules)]
        merged.rules = merged.rules + copy.deepcopy(missing)
    else:
        merged.rules = copy.deepcopy(desired.rules)
    merged.labels = _merge_missing(current.labels, desired.labels)
    merged.annotations = _merge_missing(current.annotations, desired.annotations)

    if merged.to_dict() == current.to_dict():
        return None
    return merged


def merge_role_binding(current: RoleBinding, desired: RoleBinding, union: bool = True) -> Optional[RoleBinding]:
    """
    Compute the reconciled version of a stored role binding.

    Args:
        current: Binding as stored
        desired: Bootstrap definition of the binding
        union: Keep subjects of current that desired does not have

    Returns:
        The binding to write, or None if current already matches

    Raises:
        BootstrapError: If the stored binding grants a different role; role
            references cannot be changed in place
    """
    if (current.role_ref.kind, current.role_ref.name) != (desired.role_ref.kind, desired.role_ref.name):
        raise BootstrapError(f"{current.name} is bound to {current.role_ref.kind} {current.role_ref.name}, "
                             f"expected {desired.role_ref.kind} {desired.role_ref.name}")

    merged = current.copy()
    if union:
        merged.subjects = merged.subjects + current.missing_subjects(desired.subjects)
    else:
        merged.subjects = list(desired.subjects)
    merged.labels = _merge_missing(current.labels, desired.labels)
    merged.annotations = _merge_missing(current.annotations, desired.annotations)

    if merged.to_dict() == current.to_dict():
        return None
    return merged


class RoleSetReconciler:
    """
    Reconciles cluster roles and cluster role bindings by name.

    Features:
    - Create on NotFound, union merge otherwise
    - Replace mode for the non-additive command line path
    - Dry run (confirmed=False) that reports without writing
    - YAML of every object that would be written sent to an optional text sink
    """

    def __init__(self, role_store: RoleStore, binding_store: RoleBindingStore,
                 desired_roles: List[Role] = None, desired_bindings: List[RoleBinding] = None,
                 infrastructure_namespace: str = KubernetesConstants.INFRASTRUCTURE_NAMESPACE,
                 retry_policy: RetryPolicy = None, out: Optional[TextIO] = None,
                 sleep: Callable[[float], None] = time.sleep):
        """
        Initialize the reconciler

        Args:
            role_store: Cluster role store
            binding_store: Cluster role binding store
            desired_roles: Role definitions (defaults to bootstrap and controller roles)
            desired_bindings: Binding definitions (defaults to bootstrap and controller bindings)
            infrastructure_namespace: Namespace of the controller service accounts
            retry_policy: Conflict retry bounds for updates
            out: Text sink for YAML of changed objects; None discards it
            sleep: Sleep function used between retries
        """
        self.role_store = role_store
        self.binding_store = binding_store
        if desired_roles is None:
            desired_roles = bootstrap_cluster_roles() + controller_roles()
        if desired_bindings is None:
            desired_bindings = (bootstrap_cluster_role_bindings()
                                + controller_role_bindings(infrastructure_namespace))
        self.desired_roles: Dict[str, Role] = {role.name: role for role in desired_roles}
        self.desired_bindings = list(desired_bindings)
        self.retry_policy = retry_policy or RetryPolicy()
        self.out = out
        self.sleep = sleep

    def reconcile_cluster_roles(self, names: Iterable[str] = None, union: bool = True,
                                confirmed: bool = True) -> StepResult:
        """
        Reconcile cluster roles

        Args:
            names: Role names to reconcile (defaults to every known role)
            union: Add missing rules only (False replaces the rules)
            confirmed: Write changes (False only reports them)

        Returns:
            StepResult: One outcome per requested name
        """
        result = StepResult(step="cluster roles")
        for name in self._names(names, self.desired_roles):
            desired = self.desired_roles.get(name)
            if desired is None:
                logger.error(f"Cannot reconcile cluster role {name}: {NOT_A_BOOTSTRAP_ROLE}")
                result.record(name, ItemStatus.FAILED, NOT_A_BOOTSTRAP_ROLE)
                continue

            try:
                status, message = self._reconcile(self.role_store, desired, merge_role, union, confirmed)
                result.record(name, status, message)
            except BootstrapError as e:
                logger.error(f"Could not reconcile cluster role {name}: {e}")
                result.record(name, ItemStatus.FAILED, str(e))

        logger.debug(result.summary())
        return result

    def reconcile_cluster_role_bindings(self, role_names: Iterable[str] = None, union: bool = True,
                                        confirmed: bool = True) -> StepResult:
        """
        Reconcile the cluster role bindings that reference the given roles

        Args:
            role_names: Names of the roles whose bindings to reconcile (defaults to all)
            union: Add missing subjects only (False replaces the subjects)
            confirmed: Write changes (False only reports them)

        Returns:
            StepResult: One outcome per binding, or a failed outcome per unknown role name
        """
        by_role: Dict[str, List[RoleBinding]] = {}
        for binding in self.desired_bindings:
            by_role.setdefault(binding.role_ref.name, []).append(binding)

        result = StepResult(step="cluster role bindings")
        for role_name in self._names(role_names, by_role):
            if role_name not in by_role:
                logger.error(f"Cannot reconcile bindings for {role_name}: {NOT_A_BOOTSTRAP_ROLE}")
                result.record(role_name, ItemStatus.FAILED, NOT_A_BOOTSTRAP_ROLE)
                continue

            for desired in by_role[role_name]:
                try:
                    status, message = self._reconcile(self.binding_store, desired, merge_role_binding,
                                                      union, confirmed)
                    result.record(desired.name, status, message)
                except BootstrapError as e:
                    logger.error(f"Could not reconcile cluster role binding {desired.name}: {e}")
                    result.record(desired.name, ItemStatus.FAILED, str(e))

        logger.debug(result.summary())
        return result

    def _names(self, names: Optional[Iterable[str]], known: Dict[str, object]) -> List[str]:
        if names is None:
            return list(known)
        # Preserve order, drop duplicates
        return list(dict.fromkeys(names))

    def _reconcile(self, store, desired, merge, union: bool, confirmed: bool) -> Tuple[ItemStatus, Optional[str]]:
        try:
            current = store.get(desired.name)
        except NotFoundError:
            self._emit(desired)
            if not confirmed:
                return ItemStatus.SKIPPED, "would create"
            try:
                store.create(desired.copy())
                logger.info(f"Created {desired.kind} {desired.name}")
                return ItemStatus.CREATED, None
            except AlreadyExistsError:
                logger.debug(f"{desired.kind} {desired.name} was created concurrently, merging")
                current = store.get(desired.name)

        reconciled = merge(current, desired, union)
        if reconciled is None:
            return ItemStatus.UNCHANGED, None

        self._emit(reconciled)
        if not confirmed:
            return ItemStatus.SKIPPED, "would update"

        # The merge is recomputed against whatever is stored at write time
        written = optimistic_update(
            lambda: store.get(desired.name),
            lambda stored: merge(stored, desired, union),
            store.update,
            self.retry_policy,
            self.sleep,
        )
        if written is None:
            return ItemStatus.UNCHANGED, None
        logger.info(f"Updated {desired.kind} {desired.name}")
        return ItemStatus.UPDATED, None

    def _emit(self, obj) -> None:
        if self.out is None:
            return
        self.out.write("---\n")
        yaml.safe_dump(obj.to_dict(), self.out, default_flow_style=False, sort_keys=False)
