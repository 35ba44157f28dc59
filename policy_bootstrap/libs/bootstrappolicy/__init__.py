"""
Bootstrap Policy

Static tables describing the authorization baseline of a new cluster.
"""

from .cluster_roles import (
    bootstrap_cluster_role_bindings,
    bootstrap_cluster_roles,
    controller_role_bindings,
    controller_roles
)
from .legacy import namespace_role_bindings, namespace_roles
from .security_constraints import bootstrap_scc_access, bootstrap_security_context_constraints
from .service_accounts import bootstrap_service_account_project_role_bindings

__all__ = [
    'bootstrap_cluster_roles',
    'bootstrap_cluster_role_bindings',
    'controller_roles',
    'controller_role_bindings',
    'namespace_roles',
    'namespace_role_bindings',
    'bootstrap_scc_access',
    'bootstrap_security_context_constraints',
    'bootstrap_service_account_project_role_bindings'
]
