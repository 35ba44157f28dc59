"""
Cluster Policy Bootstrapper

Seeds the cluster-wide authorization policy the first time the control plane
starts. The presence of the cluster policy singleton is the only signal used
to decide whether seeding has happened; when its existence cannot be
determined nothing is overwritten.

Whatever the outcome of seeding, the discovery role and its binding are
reconciled on every startup so that clients can always discover the API.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..bootstrappolicy import namespace_role_bindings, namespace_roles
from ..conversion import LegacyPolicyConverter
from ..core.constants import PolicyConstants
from ..core.data_models import ItemStatus, StepResult
from ..core.exceptions import AlreadyExistsError, BootstrapError, NotFoundError
from ..core.protocols import ClusterPolicyStore, RoleBindingStore, RoleStore
from ..policy_file import PolicyFileLoader
from .roles import RoleSetReconciler

logger = logging.getLogger(__name__)


@dataclass
class ClusterPolicyResult:
    """Outcome of one ClusterPolicyBootstrapper run"""
    seeded: bool = False
    policy_load_error: Optional[str] = None
    legacy: StepResult = field(default_factory=lambda: StepResult(step="legacy namespaced policy"))
    roles: StepResult = field(default_factory=lambda: StepResult(step="cluster roles"))
    role_bindings: StepResult = field(default_factory=lambda: StepResult(step="cluster role bindings"))

    @property
    def ok(self) -> bool:
        return (self.policy_load_error is None and self.legacy.ok
                and self.roles.ok and self.role_bindings.ok)


class ClusterPolicyBootstrapper:
    """
    First-boot seeding of the cluster policy.

    Features:
    - Seeding gated on the absence of the cluster policy singleton
    - Best-effort creation of converted legacy namespaced roles and bindings
    - Unconditional reconcile of the discovery role and binding
    """

    def __init__(self, cluster_policy_store: ClusterPolicyStore, role_store: RoleStore,
                 binding_store: RoleBindingStore, reconciler: RoleSetReconciler, policy_file: str,
                 loader: PolicyFileLoader = None, converter: LegacyPolicyConverter = None):
        """
        Initialize the bootstrapper

        Args:
            cluster_policy_store: Store holding the cluster policy singleton
            role_store: Store used for legacy namespaced roles
            binding_store: Store used for legacy namespaced role bindings
            reconciler: Reconciler used for the discovery role and binding
            policy_file: Bootstrap policy file applied when seeding
            loader: Policy file loader (built from the stores when omitted)
            converter: Legacy policy converter
        """
        self.cluster_policy_store = cluster_policy_store
        self.role_store = role_store
        self.binding_store = binding_store
        self.reconciler = reconciler
        self.policy_file = policy_file
        self.loader = loader or PolicyFileLoader(role_store, binding_store, cluster_policy_store,
                                                 reconciler.retry_policy)
        self.converter = converter or LegacyPolicyConverter()

    def run(self) -> ClusterPolicyResult:
        """
        Seed the cluster policy if absent, then reconcile discovery

        Returns:
            ClusterPolicyResult: Seeding, legacy and discovery outcomes
        """
        result = ClusterPolicyResult()

        try:
            self.cluster_policy_store.get()
            logger.debug("Cluster policy already exists, not seeding bootstrap policy")
        except NotFoundError:
            self._seed(result)
        except BootstrapError as e:
            logger.error(f"Unable to determine whether the cluster policy exists, not seeding: {e}")

        discovery = PolicyConstants.DISCOVERY_ROLE_NAME
        result.roles = self.reconciler.reconcile_cluster_roles([discovery])
        result.role_bindings = self.reconciler.reconcile_cluster_role_bindings([discovery])

        return result

    def _seed(self, result: ClusterPolicyResult) -> None:
        logger.info(f"No cluster policy found, seeding bootstrap policy from {self.policy_file}")
        try:
            self.loader.overwrite(self.policy_file)
            result.seeded = True
        except BootstrapError as e:
            logger.error(f"Error creating bootstrap policy from {self.policy_file}: {e}")
            result.policy_load_error = str(e)

        self._create_legacy(result.legacy)

    def _create_legacy(self, legacy: StepResult) -> None:
        for namespace, manifests in namespace_roles().items():
            for manifest in manifests:
                label = f"role {namespace}/{manifest.get('metadata', {}).get('name', '?')}"
                try:
                    role = self.converter.convert_role(manifest)
                    self.role_store.create(role)
                    legacy.record(label, ItemStatus.CREATED)
                except AlreadyExistsError:
                    legacy.record(label, ItemStatus.SKIPPED, "already exists")
                except BootstrapError as e:
                    logger.error(f"Unable to create legacy {label}: {e}")
                    legacy.record(label, ItemStatus.FAILED, str(e))

        for namespace, manifests in namespace_role_bindings().items():
            for manifest in manifests:
                label = f"rolebinding {namespace}/{manifest.get('metadata', {}).get('name', '?')}"
                try:
                    binding = self.converter.convert_role_binding(manifest)
                    self.binding_store.create(binding)
                    legacy.record(label, ItemStatus.CREATED)
                except AlreadyExistsError:
                    legacy.record(label, ItemStatus.SKIPPED, "already exists")
                except BootstrapError as e:
                    logger.error(f"Unable to create legacy {label}: {e}")
                    legacy.record(label, ItemStatus.FAILED, str(e))

        if legacy.failed:
            logger.warning(f"{len(legacy.failed)} legacy namespaced policy object(s) were not created")
