"""
Legacy Namespaced Policy

Namespaced roles and role bindings published by upstream Kubernetes in the
rbac.authorization.k8s.io schema. They are converted and created once, when
the cluster policy is first seeded.
"""

from typing import Any, Dict, List

from ..core.constants import KubernetesConstants

Manifest = Dict[str, Any]

BOOTSTRAP_SIGNER = "system:controller:bootstrap-signer"
TOKEN_CLEANER = "system:controller:token-cleaner"
AUTHENTICATION_READER = "extension-apiserver-authentication-reader"


def _role(namespace: str, name: str, rules: List[Manifest]) -> Manifest:
    return {
        'apiVersion': KubernetesConstants.RBAC_API_VERSION,
        'kind': 'Role',
        'metadata': {
            'name': name,
            'namespace': namespace,
            'labels': {KubernetesConstants.BOOTSTRAPPING_LABEL: KubernetesConstants.BOOTSTRAPPING_LABEL_VALUE},
        },
        'rules': rules,
    }


def _binding(namespace: str, role_name: str, service_account: str,
             service_account_namespace: str = KubernetesConstants.KUBE_SYSTEM_NAMESPACE) -> Manifest:
    return {
        'apiVersion': KubernetesConstants.RBAC_API_VERSION,
        'kind': 'RoleBinding',
        'metadata': {
            'name': role_name,
            'namespace': namespace,
            'labels': {KubernetesConstants.BOOTSTRAPPING_LABEL: KubernetesConstants.BOOTSTRAPPING_LABEL_VALUE},
        },
        'roleRef': {'apiGroup': KubernetesConstants.RBAC_API_GROUP, 'kind': 'Role', 'name': role_name},
        'subjects': [{'kind': 'ServiceAccount', 'name': service_account, 'namespace': service_account_namespace}],
    }


def namespace_roles() -> Dict[str, List[Manifest]]:
    """
    Legacy roles keyed by the namespace they belong in.

    Returns:
        Mapping of namespace to rbac-schema Role manifests
    """
    kube_system = KubernetesConstants.KUBE_SYSTEM_NAMESPACE
    kube_public = KubernetesConstants.KUBE_PUBLIC_NAMESPACE
    events = {'apiGroups': [""], 'resources': ["events"], 'verbs': ["create", "patch", "update"]}
    return {
        kube_system: [
            _role(kube_system, AUTHENTICATION_READER, [
                {'apiGroups': [""], 'resources': ["configmaps"], 'verbs': ["get"],
                 'resourceNames': ["extension-apiserver-authentication"]},
            ]),
            _role(kube_system, BOOTSTRAP_SIGNER, [
                {'apiGroups': [""], 'resources': ["secrets"], 'verbs': ["get", "list", "watch"]},
            ]),
            _role(kube_system, TOKEN_CLEANER, [
                {'apiGroups': [""], 'resources': ["secrets"], 'verbs': ["delete", "get", "list", "watch"]},
                events,
            ]),
        ],
        kube_public: [
            _role(kube_public, BOOTSTRAP_SIGNER, [
                {'apiGroups': [""], 'resources': ["configmaps"], 'verbs': ["get", "list", "watch"]},
                {'apiGroups': [""], 'resources': ["configmaps"], 'verbs': ["update"],
                 'resourceNames': ["cluster-info"]},
                events,
            ]),
        ],
    }


def namespace_role_bindings() -> Dict[str, List[Manifest]]:
    """
    Legacy role bindings keyed by the namespace they belong in.

    Returns:
        Mapping of namespace to rbac-schema RoleBinding manifests
    """
    kube_system = KubernetesConstants.KUBE_SYSTEM_NAMESPACE
    kube_public = KubernetesConstants.KUBE_PUBLIC_NAMESPACE
    return {
        kube_system: [
            _binding(kube_system, BOOTSTRAP_SIGNER, "bootstrap-signer"),
            _binding(kube_system, TOKEN_CLEANER, "token-cleaner"),
        ],
        kube_public: [
            _binding(kube_public, BOOTSTRAP_SIGNER, "bootstrap-signer"),
        ],
    }
