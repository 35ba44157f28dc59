"""
Store Libraries

Kubernetes-backed implementations of the bootstrap store protocols.
"""

from .kubernetes_store import (
    KubernetesClusterPolicyStore,
    KubernetesNamespaceStore,
    KubernetesRoleBindingStore,
    KubernetesRoleStore,
    KubernetesSecurityPolicyStore,
    translate_api_exception
)

__all__ = [
    'KubernetesNamespaceStore',
    'KubernetesRoleStore',
    'KubernetesRoleBindingStore',
    'KubernetesSecurityPolicyStore',
    'KubernetesClusterPolicyStore',
    'translate_api_exception'
]
