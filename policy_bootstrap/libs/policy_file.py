"""
Policy File Module.

Reads and writes bootstrap policy files: YAML or JSON documents of kind List
whose items are ClusterRoles, ClusterRoleBindings, Roles and RoleBindings.

Loading overwrites whatever is stored under the same names and records the
seeded role names in the cluster policy singleton, which is written last so
a partially applied file is seeded again on the next startup.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml

from .bootstrappolicy import (
    bootstrap_cluster_role_bindings,
    bootstrap_cluster_roles,
    controller_role_bindings,
    controller_roles
)
from .core.constants import FileConstants, KubernetesConstants
from .core.data_models import ClusterPolicyDocument, ItemStatus, Role, RoleBinding, StepResult
from .core.exceptions import AlreadyExistsError, BootstrapError, PolicyLoadError
from .core.protocols import ClusterPolicyStore, RoleBindingStore, RoleStore
from .core.retry import RetryPolicy, retry_on_conflict

logger = logging.getLogger(__name__)

PolicyObject = Union[Role, RoleBinding]


def build_bootstrap_policy(infrastructure_namespace: str = KubernetesConstants.INFRASTRUCTURE_NAMESPACE
                           ) -> Dict[str, Any]:
    """
    Build the bootstrap policy as a List manifest.

    Args:
        infrastructure_namespace: Namespace of the controller service accounts

    Returns:
        Dict: List manifest with cluster roles first, then cluster role bindings
    """
    roles = bootstrap_cluster_roles() + controller_roles()
    bindings = bootstrap_cluster_role_bindings() + controller_role_bindings(infrastructure_namespace)
    return {
        'apiVersion': 'v1',
        'kind': KubernetesConstants.ResourceKind.LIST.value,
        'items': [role.to_dict() for role in roles] + [binding.to_dict() for binding in bindings],
    }


def write_bootstrap_policy_file(path: str,
                                infrastructure_namespace: str = KubernetesConstants.INFRASTRUCTURE_NAMESPACE) -> str:
    """
    Write the bootstrap policy file.

    Args:
        path: Destination; a .json suffix writes JSON, anything else YAML
        infrastructure_namespace: Namespace of the controller service accounts

    Returns:
        str: The path written

    Raises:
        PolicyLoadError: If the file cannot be written
    """
    policy = build_bootstrap_policy(infrastructure_namespace)
    target = Path(path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, 'w', encoding='utf-8') as f:
            if target.suffix == FileConstants.FileExtension.JSON:
                json.dump(policy, f, indent=2)
                f.write("\n")
            else:
                yaml.safe_dump(policy, f, default_flow_style=False, sort_keys=False)
    except OSError as e:
        raise PolicyLoadError(f"Failed to write bootstrap policy file {path}: {e}")

    logger.info(f"Bootstrap policy written to {path} ({len(policy['items'])} objects)")
    return str(target)


def parse_policy_file(path: str) -> List[PolicyObject]:
    """
    Parse a bootstrap policy file into models.

    Args:
        path: YAML or JSON policy file

    Returns:
        List of Role and RoleBinding models in file order

    Raises:
        PolicyLoadError: If the file is missing, unparsable or contains unsupported kinds
    """
    policy_path = Path(path)
    if not policy_path.is_file():
        raise PolicyLoadError(f"Bootstrap policy file not found: {path}")

    try:
        with open(policy_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise PolicyLoadError(f"Invalid bootstrap policy file {path}: {e}")
    except OSError as e:
        raise PolicyLoadError(f"Failed to read bootstrap policy file {path}: {e}")

    if not isinstance(data, dict) or data.get('kind') != KubernetesConstants.ResourceKind.LIST:
        raise PolicyLoadError(f"Bootstrap policy file {path} must contain a List")

    items = data.get('items') or []
    if not isinstance(items, list):
        raise PolicyLoadError(f"Items of bootstrap policy file {path} must be a list")

    objects: List[PolicyObject] = []
    kinds = KubernetesConstants.ResourceKind
    for index, item in enumerate(items):
        kind = item.get('kind') if isinstance(item, dict) else None
        if kind not in kinds.get_policy_kinds():
            raise PolicyLoadError(f"Item {index} in {path} has unsupported kind {kind!r}")

        try:
            if kind in (kinds.CLUSTER_ROLE, kinds.ROLE):
                obj: PolicyObject = Role.from_dict(item)
            else:
                obj = RoleBinding.from_dict(item)
        except (AttributeError, TypeError, ValueError) as e:
            raise PolicyLoadError(f"Item {index} ({kind}) in {path} is malformed: {e}")

        if not obj.name:
            raise PolicyLoadError(f"Item {index} ({kind}) in {path} has no name")
        # The kind decides scope, whatever metadata says
        if kind in (kinds.CLUSTER_ROLE, kinds.CLUSTER_ROLE_BINDING):
            obj.namespace = None
        elif not obj.namespace:
            raise PolicyLoadError(f"{kind} {obj.name} in {path} has no namespace")
        objects.append(obj)

    return objects


class PolicyFileLoader:
    """Applies a bootstrap policy file with overwrite semantics"""

    def __init__(self, role_store: RoleStore, binding_store: RoleBindingStore,
                 cluster_policy_store: ClusterPolicyStore, retry_policy: RetryPolicy = None):
        """
        Initialize the loader

        Args:
            role_store: Store for cluster and namespaced roles
            binding_store: Store for cluster and namespaced role bindings
            cluster_policy_store: Store for the cluster policy singleton
            retry_policy: Conflict retry bounds for overwrites
        """
        self.role_store = role_store
        self.binding_store = binding_store
        self.cluster_policy_store = cluster_policy_store
        self.retry_policy = retry_policy or RetryPolicy()

    def overwrite(self, path: str) -> StepResult:
        """
        Create or overwrite every object in the policy file, then record the cluster policy.

        Args:
            path: Bootstrap policy file

        Returns:
            StepResult: One outcome per object in the file

        Raises:
            PolicyLoadError: If the file cannot be parsed or any object could not be written;
                the cluster policy is not recorded in that case
        """
        objects = parse_policy_file(path)
        result = StepResult(step="bootstrap policy")

        for obj in objects:
            label = _describe(obj)
            try:
                status = retry_on_conflict(self.retry_policy, lambda: self._put(obj))
                result.record(label, status)
            except BootstrapError as e:
                logger.error(f"Failed to write {label} from {path}: {e}")
                result.record(label, ItemStatus.FAILED, str(e))

        if result.failed:
            raise PolicyLoadError(f"{len(result.failed)} of {len(objects)} objects from {path} "
                                  f"could not be written")

        document = ClusterPolicyDocument(
            role_names=[obj.name for obj in objects if isinstance(obj, Role) and obj.namespace is None],
            last_modified=datetime.now(timezone.utc).isoformat(),
        )
        try:
            self.cluster_policy_store.create(document)
        except AlreadyExistsError:
            logger.info("Cluster policy was recorded concurrently by another writer")
        except BootstrapError as e:
            raise PolicyLoadError(f"Failed to record cluster policy: {e}")

        logger.info(f"Loaded bootstrap policy from {path}: {result.summary()}")
        return result

    def _put(self, obj: PolicyObject) -> ItemStatus:
        store: Union[RoleStore, RoleBindingStore] = self.role_store if isinstance(obj, Role) else self.binding_store
        try:
            store.create(obj)
            return ItemStatus.CREATED
        except AlreadyExistsError:
            pass

        current = store.get(obj.name, obj.namespace)
        replacement = obj.copy()
        replacement.resource_version = current.resource_version
        store.update(replacement)
        return ItemStatus.UPDATED


def _describe(obj: PolicyObject) -> str:
    if obj.namespace:
        return f"{obj.kind.lower()} {obj.namespace}/{obj.name}"
    return f"{obj.kind.lower()} {obj.name}"
