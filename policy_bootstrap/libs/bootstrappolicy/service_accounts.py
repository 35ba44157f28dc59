"""
Bootstrap Service Account Grants

Role bindings every project receives for its built-in service accounts.
"""

from typing import List

from ..core.constants import KubernetesConstants, PolicyConstants
from ..core.data_models import RoleBinding, RoleRef, Subject


def service_account_group(namespace: str) -> str:
    """Group containing every service account in the namespace."""
    return f"{PolicyConstants.SERVICE_ACCOUNT_GROUP_PREFIX}{namespace}"


def service_account_username(namespace: str, name: str) -> str:
    """User name a service account authenticates as."""
    return f"{PolicyConstants.SERVICE_ACCOUNT_USERNAME_PREFIX}{namespace}:{name}"


def bootstrap_service_account_project_role_bindings(namespace: str) -> List[RoleBinding]:
    """
    Grants added to a namespace for its default service accounts.

    Args:
        namespace: Namespace the bindings are created in

    Returns:
        Role bindings for image pulling, image building and deploying
    """
    cluster_role = KubernetesConstants.RoleRefKind.CLUSTER_ROLE.value
    return [
        RoleBinding(
            name=PolicyConstants.IMAGE_PULLER_ROLE_BINDING_NAME,
            namespace=namespace,
            role_ref=RoleRef(kind=cluster_role, name=PolicyConstants.IMAGE_PULLER_ROLE_NAME),
            subjects=[Subject.group(service_account_group(namespace))],
        ),
        RoleBinding(
            name=PolicyConstants.IMAGE_BUILDER_ROLE_BINDING_NAME,
            namespace=namespace,
            role_ref=RoleRef(kind=cluster_role, name=PolicyConstants.IMAGE_BUILDER_ROLE_NAME),
            subjects=[Subject.service_account(namespace, PolicyConstants.BUILDER_SERVICE_ACCOUNT)],
        ),
        RoleBinding(
            name=PolicyConstants.DEPLOYER_ROLE_BINDING_NAME,
            namespace=namespace,
            role_ref=RoleRef(kind=cluster_role, name=PolicyConstants.DEPLOYER_ROLE_NAME),
            subjects=[Subject.service_account(namespace, PolicyConstants.DEPLOYER_SERVICE_ACCOUNT)],
        ),
    ]
