"""
Data Models Module.

This module defines typed data structures using Python dataclasses for the
objects the bootstrap reads and writes: namespaces, roles, role bindings,
security context constraints and the cluster policy singleton. Each model
converts to and from the dictionary shape the cluster API uses (camelCase
keys), so stores can pass plain dictionaries to the Kubernetes client.

It also defines the aggregation results returned by every reconciliation
step, so callers and tests can inspect partial failures instead of logs.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from .constants import KubernetesConstants, PolicyConstants


def _metadata(name: str, namespace: Optional[str] = None, labels: Optional[Dict[str, str]] = None,
              annotations: Optional[Dict[str, str]] = None,
              resource_version: Optional[str] = None) -> Dict[str, Any]:
    """Build an object metadata dictionary, omitting empty fields."""
    metadata: Dict[str, Any] = {'name': name}
    if namespace:
        metadata['namespace'] = namespace
    if labels:
        metadata['labels'] = dict(labels)
    if annotations:
        metadata['annotations'] = dict(annotations)
    if resource_version:
        metadata['resourceVersion'] = resource_version
    return metadata


def _overlay(raw: Dict[str, Any], body: Dict[str, Any]) -> Dict[str, Any]:
    """Lay the modelled fields over the object as last read, keeping every other field."""
    if not raw:
        return body
    merged = copy.deepcopy(raw)
    metadata = dict(merged.get('metadata') or {})
    for key in ('name', 'namespace', 'labels', 'annotations', 'resourceVersion'):
        metadata.pop(key, None)
    metadata.update(body.pop('metadata'))
    merged.update(body)
    merged['metadata'] = metadata
    return merged


def _covers_field(owner: List[str], requested: List[str]) -> bool:
    if '*' in owner:
        return True
    return set(requested).issubset(owner)


@dataclass
class Namespace:
    """A named partition of cluster resources."""
    name: str
    annotations: Dict[str, str] = field(default_factory=dict)
    labels: Dict[str, str] = field(default_factory=dict)
    resource_version: Optional[str] = None
    # Object as last read from the cluster
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    def copy(self) -> 'Namespace':
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return _overlay(self.raw, {
            'apiVersion': 'v1',
            'kind': 'Namespace',
            'metadata': _metadata(self.name, labels=self.labels, annotations=self.annotations,
                                  resource_version=self.resource_version),
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Namespace':
        metadata = data.get('metadata') or {}
        return cls(
            name=metadata.get('name', ''),
            annotations=dict(metadata.get('annotations') or {}),
            labels=dict(metadata.get('labels') or {}),
            resource_version=metadata.get('resourceVersion'),
            raw=copy.deepcopy(data),
        )


@dataclass(frozen=True)
class Subject:
    """
    An identity eligible to hold a grant.

    Subjects are compared by (kind, name, namespace) so they can be collected
    in sets for union merges.
    """
    kind: str
    name: str
    namespace: Optional[str] = None

    @classmethod
    def user(cls, name: str) -> 'Subject':
        return cls(KubernetesConstants.SubjectKind.USER.value, name)

    @classmethod
    def group(cls, name: str) -> 'Subject':
        return cls(KubernetesConstants.SubjectKind.GROUP.value, name)

    @classmethod
    def service_account(cls, namespace: str, name: str) -> 'Subject':
        return cls(KubernetesConstants.SubjectKind.SERVICE_ACCOUNT.value, name, namespace)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'kind': self.kind, 'name': self.name}
        if self.kind == KubernetesConstants.SubjectKind.SERVICE_ACCOUNT:
            data['namespace'] = self.namespace
        else:
            data['apiGroup'] = KubernetesConstants.RBAC_API_GROUP
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Subject':
        return cls(kind=data.get('kind', ''), name=data.get('name', ''),
                   namespace=data.get('namespace') or None)


@dataclass
class PolicyRule:
    """
    A single permission rule of a role.

    This corresponds to a rule in a Kubernetes Role or ClusterRole.
    """
    verbs: List[str] = field(default_factory=list)
    api_groups: List[str] = field(default_factory=list)
    resources: List[str] = field(default_factory=list)
    resource_names: List[str] = field(default_factory=list)
    non_resource_urls: List[str] = field(default_factory=list)

    def covers(self, other: 'PolicyRule') -> bool:
        """
        Check whether this rule grants everything the other rule grants.

        Args:
            other: Rule to test

        Returns:
            bool: True if every field of other is contained in this rule
        """
        if not _covers_field(self.verbs, other.verbs):
            return False
        if other.non_resource_urls and not _covers_field(self.non_resource_urls, other.non_resource_urls):
            return False
        if other.resources or other.api_groups:
            if not _covers_field(self.api_groups, other.api_groups):
                return False
            if not _covers_field(self.resources, other.resources):
                return False
        # An empty resourceNames list means "all names"
        if self.resource_names and not set(other.resource_names or ['*']).issubset(self.resource_names):
            return False
        return True

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'verbs': list(self.verbs)}
        if self.api_groups or self.resources:
            data['apiGroups'] = list(self.api_groups)
            data['resources'] = list(self.resources)
        if self.resource_names:
            data['resourceNames'] = list(self.resource_names)
        if self.non_resource_urls:
            data['nonResourceURLs'] = list(self.non_resource_urls)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PolicyRule':
        return cls(
            verbs=list(data.get('verbs') or []),
            api_groups=list(data.get('apiGroups') or []),
            resources=list(data.get('resources') or []),
            resource_names=list(data.get('resourceNames') or []),
            non_resource_urls=list(data.get('nonResourceURLs') or []),
        )


@dataclass
class RoleRef:
    """Reference from a binding to the role it grants."""
    kind: str
    name: str
    namespace: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {'apiGroup': KubernetesConstants.RBAC_API_GROUP, 'kind': self.kind, 'name': self.name}


@dataclass
class Role:
    """A named permission set. Cluster-scoped when namespace is None."""
    name: str
    rules: List[PolicyRule] = field(default_factory=list)
    namespace: Optional[str] = None
    labels: Dict[str, str] = field(default_factory=dict)
    annotations: Dict[str, str] = field(default_factory=dict)
    resource_version: Optional[str] = None
    # Object as last read from the cluster
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def kind(self) -> str:
        if self.namespace is None:
            return KubernetesConstants.ResourceKind.CLUSTER_ROLE.value
        return KubernetesConstants.ResourceKind.ROLE.value

    def copy(self) -> 'Role':
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return _overlay(self.raw, {
            'apiVersion': KubernetesConstants.RBAC_API_VERSION,
            'kind': self.kind,
            'metadata': _metadata(self.name, self.namespace, self.labels, self.annotations,
                                  self.resource_version),
            'rules': [rule.to_dict() for rule in self.rules],
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Role':
        metadata = data.get('metadata') or {}
        return cls(
            name=metadata.get('name', ''),
            namespace=metadata.get('namespace') or None,
            rules=[PolicyRule.from_dict(rule) for rule in data.get('rules') or []],
            labels=dict(metadata.get('labels') or {}),
            annotations=dict(metadata.get('annotations') or {}),
            resource_version=metadata.get('resourceVersion'),
            raw=copy.deepcopy(data),
        )


@dataclass
class RoleBinding:
    """A grant of a role to a set of subjects. Cluster-scoped when namespace is None."""
    name: str
    role_ref: RoleRef
    subjects: List[Subject] = field(default_factory=list)
    namespace: Optional[str] = None
    labels: Dict[str, str] = field(default_factory=dict)
    annotations: Dict[str, str] = field(default_factory=dict)
    resource_version: Optional[str] = None
    # Object as last read from the cluster
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def kind(self) -> str:
        if self.namespace is None:
            return KubernetesConstants.ResourceKind.CLUSTER_ROLE_BINDING.value
        return KubernetesConstants.ResourceKind.ROLE_BINDING.value

    def copy(self) -> 'RoleBinding':
        return copy.deepcopy(self)

    def missing_subjects(self, desired: Iterable[Subject]) -> List[Subject]:
        """Return desired subjects not yet present, in desired order."""
        present = set(self.subjects)
        missing = []
        for subject in desired:
            if subject not in present and subject not in missing:
                missing.append(subject)
        return missing

    def to_dict(self) -> Dict[str, Any]:
        return _overlay(self.raw, {
            'apiVersion': KubernetesConstants.RBAC_API_VERSION,
            'kind': self.kind,
            'metadata': _metadata(self.name, self.namespace, self.labels, self.annotations,
                                  self.resource_version),
            'roleRef': self.role_ref.to_dict(),
            'subjects': [subject.to_dict() for subject in self.subjects],
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RoleBinding':
        metadata = data.get('metadata') or {}
        namespace = metadata.get('namespace') or None
        role_ref = data.get('roleRef') or {}
        ref_kind = role_ref.get('kind', KubernetesConstants.RoleRefKind.CLUSTER_ROLE.value)
        ref_namespace = namespace if ref_kind == KubernetesConstants.RoleRefKind.ROLE and namespace else ""
        return cls(
            name=metadata.get('name', ''),
            namespace=namespace,
            role_ref=RoleRef(kind=ref_kind, name=role_ref.get('name', ''), namespace=ref_namespace),
            subjects=[Subject.from_dict(subject) for subject in data.get('subjects') or []],
            labels=dict(metadata.get('labels') or {}),
            annotations=dict(metadata.get('annotations') or {}),
            resource_version=metadata.get('resourceVersion'),
            raw=copy.deepcopy(data),
        )


@dataclass
class SecurityPolicy:
    """
    A security context constraint.

    Controls which workload security capabilities the listed users and groups
    may request. Identity is the name; creation never merges.
    """
    name: str
    priority: Optional[int] = None
    allow_privileged_container: bool = False
    allow_host_dir_volume_plugin: bool = False
    allow_host_network: bool = False
    allow_host_ports: bool = False
    allow_host_pid: bool = False
    allow_host_ipc: bool = False
    read_only_root_filesystem: bool = False
    run_as_user: str = "MustRunAsRange"
    se_linux_context: str = "MustRunAs"
    fs_group: str = "MustRunAs"
    supplemental_groups: str = "RunAsAny"
    volumes: List[str] = field(default_factory=list)
    required_drop_capabilities: List[str] = field(default_factory=list)
    allowed_capabilities: List[str] = field(default_factory=list)
    default_add_capabilities: List[str] = field(default_factory=list)
    users: List[str] = field(default_factory=list)
    groups: List[str] = field(default_factory=list)
    annotations: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'apiVersion': KubernetesConstants.SECURITY_API_VERSION,
            'kind': 'SecurityContextConstraints',
            'metadata': _metadata(self.name, annotations=self.annotations),
            'priority': self.priority,
            'allowPrivilegedContainer': self.allow_privileged_container,
            'allowHostDirVolumePlugin': self.allow_host_dir_volume_plugin,
            'allowHostNetwork': self.allow_host_network,
            'allowHostPorts': self.allow_host_ports,
            'allowHostPID': self.allow_host_pid,
            'allowHostIPC': self.allow_host_ipc,
            'readOnlyRootFilesystem': self.read_only_root_filesystem,
            'runAsUser': {'type': self.run_as_user},
            'seLinuxContext': {'type': self.se_linux_context},
            'fsGroup': {'type': self.fs_group},
            'supplementalGroups': {'type': self.supplemental_groups},
            'volumes': list(self.volumes),
            'requiredDropCapabilities': list(self.required_drop_capabilities),
            'allowedCapabilities': list(self.allowed_capabilities),
            'defaultAddCapabilities': list(self.default_add_capabilities),
            'users': list(self.users),
            'groups': list(self.groups),
        }


@dataclass
class ClusterPolicyDocument:
    """The cluster-wide policy singleton whose presence marks a bootstrapped cluster."""
    name: str = PolicyConstants.CLUSTER_POLICY_NAME
    role_names: List[str] = field(default_factory=list)
    last_modified: Optional[str] = None
    resource_version: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'apiVersion': KubernetesConstants.AUTHORIZATION_API_VERSION,
            'kind': 'ClusterPolicy',
            'metadata': _metadata(self.name, resource_version=self.resource_version),
            'lastModified': self.last_modified,
            'roles': [{'name': name} for name in self.role_names],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ClusterPolicyDocument':
        metadata = data.get('metadata') or {}
        return cls(
            name=metadata.get('name', PolicyConstants.CLUSTER_POLICY_NAME),
            role_names=[entry.get('name', '') for entry in data.get('roles') or []],
            last_modified=data.get('lastModified'),
            resource_version=metadata.get('resourceVersion'),
        )


class ItemStatus(Enum):
    """Outcome of one unit of reconciliation work."""
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class ItemOutcome:
    """Result of reconciling a single object."""
    name: str
    status: ItemStatus
    message: Optional[str] = None


@dataclass
class StepResult:
    """
    Aggregated per-item outcomes of one reconciliation step.

    Best-effort loops record every item here instead of stopping at the
    first failure, so callers can see exactly which items need another run.
    """
    step: str
    outcomes: List[ItemOutcome] = field(default_factory=list)

    def record(self, name: str, status: ItemStatus, message: Optional[str] = None) -> ItemOutcome:
        outcome = ItemOutcome(name=name, status=status, message=message)
        self.outcomes.append(outcome)
        return outcome

    def extend(self, other: 'StepResult') -> None:
        self.outcomes.extend(other.outcomes)

    def with_status(self, *statuses: ItemStatus) -> List[ItemOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status in statuses]

    @property
    def failed(self) -> List[ItemOutcome]:
        return self.with_status(ItemStatus.FAILED)

    @property
    def changed(self) -> List[ItemOutcome]:
        return self.with_status(ItemStatus.CREATED, ItemStatus.UPDATED)

    @property
    def ok(self) -> bool:
        return not self.failed

    def summary(self) -> str:
        counts = {status: len(self.with_status(status)) for status in ItemStatus}
        parts = [f"{count} {status.value}" for status, count in counts.items() if count]
        return f"{self.step}: " + (", ".join(parts) if parts else "nothing to do")
