"""
Reconciliation Steps

Idempotent startup steps that converge cluster authorization state.
"""

from .cluster_policy import ClusterPolicyBootstrapper, ClusterPolicyResult
from .namespace import NamespaceEnsurer
from .roles import RoleSetReconciler, merge_role, merge_role_binding
from .security_policy import SecurityPolicyInitializer
from .service_accounts import ServiceAccountRoleInitializer, is_initialized, unique_binding_name

__all__ = [
    'NamespaceEnsurer',
    'RoleSetReconciler',
    'merge_role',
    'merge_role_binding',
    'ServiceAccountRoleInitializer',
    'is_initialized',
    'unique_binding_name',
    'SecurityPolicyInitializer',
    'ClusterPolicyBootstrapper',
    'ClusterPolicyResult'
]
