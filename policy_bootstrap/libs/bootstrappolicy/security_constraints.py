"""
Bootstrap Security Context Constraints

Default security context constraints and the users and groups allowed to use
them. Access is keyed by constraint name so constraints without an entry are
available only to subjects granted later by an administrator.
"""

from typing import Dict, List, Tuple

from ..core.constants import KubernetesConstants, PolicyConstants
from ..core.data_models import SecurityPolicy
from .service_accounts import service_account_username

RESTRICTED_VOLUMES = ["configMap", "downwardAPI", "emptyDir", "persistentVolumeClaim", "projected", "secret"]
HOST_VOLUMES = ["configMap", "downwardAPI", "emptyDir", "hostPath", "persistentVolumeClaim", "projected", "secret"]
DROP_ALL_SETID = ["KILL", "MKNOD", "SETUID", "SETGID"]

SYSTEM_ADMIN_USER = "system:admin"


def bootstrap_scc_access(infrastructure_namespace: str) -> Tuple[Dict[str, List[str]], Dict[str, List[str]]]:
    """
    Users and groups permitted to use each default constraint.

    Args:
        infrastructure_namespace: Namespace of the controller service accounts

    Returns:
        Tuple of (groups by constraint name, users by constraint name)
    """
    groups = {
        PolicyConstants.SCC_PRIVILEGED: [
            PolicyConstants.CLUSTER_ADMIN_GROUP,
            PolicyConstants.NODES_GROUP,
            PolicyConstants.MASTERS_GROUP,
        ],
        PolicyConstants.SCC_RESTRICTED: [PolicyConstants.AUTHENTICATED_GROUP],
    }
    users = {
        PolicyConstants.SCC_PRIVILEGED: [
            SYSTEM_ADMIN_USER,
            service_account_username(infrastructure_namespace, PolicyConstants.BUILD_CONTROLLER_SERVICE_ACCOUNT),
        ],
        PolicyConstants.SCC_HOSTMOUNT_ANYUID: [
            service_account_username(infrastructure_namespace,
                                     PolicyConstants.PV_RECYCLER_CONTROLLER_SERVICE_ACCOUNT),
        ],
    }
    return groups, users


def _describe(text: str) -> Dict[str, str]:
    return {KubernetesConstants.DESCRIPTION_ANNOTATION: text}


def bootstrap_security_context_constraints(groups: Dict[str, List[str]],
                                           users: Dict[str, List[str]]) -> List[SecurityPolicy]:
    """
    Default security context constraints.

    Args:
        groups: Groups per constraint name, from bootstrap_scc_access
        users: Users per constraint name, from bootstrap_scc_access

    Returns:
        The constraints in creation order
    """
    constraints = [
        SecurityPolicy(
            name=PolicyConstants.SCC_PRIVILEGED,
            allow_privileged_container=True,
            allow_host_dir_volume_plugin=True,
            allow_host_network=True,
            allow_host_ports=True,
            allow_host_pid=True,
            allow_host_ipc=True,
            allowed_capabilities=["*"],
            volumes=["*"],
            run_as_user="RunAsAny",
            se_linux_context="RunAsAny",
            fs_group="RunAsAny",
            supplemental_groups="RunAsAny",
            annotations=_describe("privileged allows access to all privileged and host features and the "
                                  "ability to run as any user, any group, any fsGroup, and with any "
                                  "SELinux context. WARNING: this is the most relaxed SCC and should be "
                                  "used only for cluster administration."),
        ),
        SecurityPolicy(
            name=PolicyConstants.SCC_NONROOT,
            volumes=list(RESTRICTED_VOLUMES),
            run_as_user="MustRunAsNonRoot",
            fs_group="RunAsAny",
            required_drop_capabilities=list(DROP_ALL_SETID),
            annotations=_describe("nonroot provides all features of the restricted SCC but allows users "
                                  "to run with any non-root UID."),
        ),
        SecurityPolicy(
            name=PolicyConstants.SCC_HOSTMOUNT_ANYUID,
            allow_host_dir_volume_plugin=True,
            volumes=HOST_VOLUMES + ["nfs"],
            run_as_user="RunAsAny",
            fs_group="RunAsAny",
            required_drop_capabilities=["MKNOD"],
            annotations=_describe("hostmount-anyuid provides all the features of the restricted SCC but "
                                  "allows host mounts and any UID by a pod."),
        ),
        SecurityPolicy(
            name=PolicyConstants.SCC_HOSTACCESS,
            allow_host_dir_volume_plugin=True,
            allow_host_network=True,
            allow_host_ports=True,
            allow_host_pid=True,
            allow_host_ipc=True,
            volumes=list(HOST_VOLUMES),
            required_drop_capabilities=list(DROP_ALL_SETID),
            annotations=_describe("hostaccess allows access to all host namespaces but still requires "
                                  "pods to be run with a UID and SELinux context that are allocated to "
                                  "the namespace."),
        ),
        SecurityPolicy(
            name=PolicyConstants.SCC_RESTRICTED,
            volumes=list(RESTRICTED_VOLUMES),
            required_drop_capabilities=list(DROP_ALL_SETID),
            annotations=_describe("restricted denies access to all host features and requires pods to be "
                                  "run with a UID, and SELinux context that are allocated to the namespace."),
        ),
        SecurityPolicy(
            name=PolicyConstants.SCC_ANYUID,
            priority=10,
            volumes=list(RESTRICTED_VOLUMES),
            run_as_user="RunAsAny",
            fs_group="RunAsAny",
            required_drop_capabilities=["MKNOD"],
            annotations=_describe("anyuid provides all features of the restricted SCC but allows users to "
                                  "run with any UID and any GID."),
        ),
        SecurityPolicy(
            name=PolicyConstants.SCC_HOSTNETWORK,
            allow_host_network=True,
            allow_host_ports=True,
            volumes=list(RESTRICTED_VOLUMES),
            supplemental_groups="MustRunAs",
            required_drop_capabilities=list(DROP_ALL_SETID),
            annotations=_describe("hostnetwork allows using host networking and host ports but still "
                                  "requires pods to be run with a UID and SELinux context that are "
                                  "allocated to the namespace."),
        ),
    ]

    for constraint in constraints:
        constraint.groups = list(groups.get(constraint.name, []))
        constraint.users = list(users.get(constraint.name, []))
    return constraints
