"""
Bootstrap Cluster Roles

Declarative definitions of the cluster roles and cluster role bindings every
cluster starts with, plus the per-controller roles used by infrastructure
controllers running in the infrastructure namespace.
"""

from typing import Dict, List

from ..core.constants import KubernetesConstants, PolicyConstants
from ..core.data_models import PolicyRule, Role, RoleBinding, RoleRef, Subject

READ = ["get", "list", "watch"]
READ_WRITE = ["get", "list", "watch", "create", "update", "patch", "delete", "deletecollection"]

BOOTSTRAP_LABELS = {KubernetesConstants.BOOTSTRAPPING_LABEL: KubernetesConstants.BOOTSTRAPPING_LABEL_VALUE}


def rule(verbs: List[str], api_groups: List[str] = None, resources: List[str] = None,
         resource_names: List[str] = None, urls: List[str] = None) -> PolicyRule:
    """Shorthand constructor used by the policy tables."""
    return PolicyRule(verbs=list(verbs), api_groups=list(api_groups or []), resources=list(resources or []),
                      resource_names=list(resource_names or []), non_resource_urls=list(urls or []))


def _cluster_role(name: str, rules: List[PolicyRule], description: str) -> Role:
    return Role(name=name, rules=rules, labels=dict(BOOTSTRAP_LABELS),
                annotations={KubernetesConstants.DESCRIPTION_ANNOTATION: description})


def _cluster_binding(name: str, role_name: str, subjects: List[Subject]) -> RoleBinding:
    return RoleBinding(name=name,
                       role_ref=RoleRef(kind=KubernetesConstants.RoleRefKind.CLUSTER_ROLE.value, name=role_name),
                       subjects=subjects, labels=dict(BOOTSTRAP_LABELS))


def discovery_rule() -> PolicyRule:
    return rule(["get"], urls=[
        "/version", "/version/*",
        "/api", "/api/*",
        "/apis", "/apis/*",
        "/oapi", "/oapi/*",
        "/osapi", "/osapi/",
        "/.well-known", "/.well-known/*",
        "/",
    ])


def bootstrap_cluster_roles() -> List[Role]:
    """
    Cluster roles seeded on first boot.

    Returns:
        List of cluster roles, in the order they are written to the policy file
    """
    project_resources = ["pods", "services", "endpoints", "persistentvolumeclaims", "configmaps",
                         "secrets", "serviceaccounts", "replicationcontrollers"]
    openshift_resources = ["builds", "buildconfigs", "deploymentconfigs", "imagestreams", "routes",
                           "templates"]
    return [
        _cluster_role(PolicyConstants.CLUSTER_ADMIN_ROLE_NAME, [
            rule(["*"], ["*"], ["*"]),
            rule(["*"], urls=["*"]),
        ], "A superuser that can perform any action in the cluster."),
        _cluster_role(PolicyConstants.ADMIN_ROLE_NAME, [
            rule(READ_WRITE, [""], project_resources),
            rule(READ_WRITE, ["", "apps.openshift.io", "build.openshift.io", "image.openshift.io",
                              "route.openshift.io", "template.openshift.io"], openshift_resources),
            rule(READ_WRITE, ["rbac.authorization.k8s.io"], ["roles", "rolebindings"]),
            rule(READ, [""], ["namespaces", "events"]),
        ], "A user that has edit rights within the project and can change the project's membership."),
        _cluster_role(PolicyConstants.EDIT_ROLE_NAME, [
            rule(READ_WRITE, [""], project_resources),
            rule(READ_WRITE, ["", "apps.openshift.io", "build.openshift.io", "image.openshift.io",
                              "route.openshift.io", "template.openshift.io"], openshift_resources),
            rule(READ, [""], ["namespaces", "events"]),
        ], "A user that can create and edit most objects in a project, but can not update the project's membership."),
        _cluster_role(PolicyConstants.VIEW_ROLE_NAME, [
            rule(READ, [""], ["pods", "services", "endpoints", "persistentvolumeclaims", "configmaps",
                              "serviceaccounts", "replicationcontrollers", "namespaces", "events"]),
            rule(READ, ["", "apps.openshift.io", "build.openshift.io", "image.openshift.io",
                        "route.openshift.io", "template.openshift.io"], openshift_resources),
        ], "A user who can view but not edit any resources within the project."),
        _cluster_role(PolicyConstants.BASIC_USER_ROLE_NAME, [
            rule(["get"], ["", "user.openshift.io"], ["users"], resource_names=["~"]),
            rule(["list"], ["", "project.openshift.io"], ["projectrequests"]),
            rule(["list", "watch"], ["", "project.openshift.io"], ["projects"]),
            rule(["create"], ["", "authorization.openshift.io"], ["selfsubjectrulesreviews"]),
        ], "A user that can get basic information about projects."),
        _cluster_role(PolicyConstants.DISCOVERY_ROLE_NAME, [
            discovery_rule(),
        ], "A user that can discover the API endpoints of the cluster."),
        _cluster_role(PolicyConstants.IMAGE_PULLER_ROLE_NAME, [
            rule(["get"], ["", "image.openshift.io"], ["imagestreams/layers"]),
        ], "Grants the right to pull images from within a project."),
        _cluster_role(PolicyConstants.IMAGE_BUILDER_ROLE_NAME, [
            rule(["get", "update"], ["", "image.openshift.io"], ["imagestreams/layers"]),
            rule(["create"], ["", "image.openshift.io"], ["imagestreams"]),
            rule(["update"], ["", "build.openshift.io"], ["builds/details"]),
            rule(["get"], ["", "build.openshift.io"], ["builds"]),
        ], "Grants the right to build, push and pull images from within a project."),
        _cluster_role(PolicyConstants.DEPLOYER_ROLE_NAME, [
            rule(["get", "list", "watch", "update", "delete"], [""], ["replicationcontrollers"]),
            rule(["get", "update"], [""], ["replicationcontrollers/scale"]),
            rule(["get", "list", "watch", "create"], [""], ["pods"]),
            rule(["get"], [""], ["pods/log"]),
            rule(["create", "list"], [""], ["events"]),
            rule(["update"], ["", "image.openshift.io"], ["imagestreamtags"]),
        ], "Grants the right to deploy within a project."),
    ]


def bootstrap_cluster_role_bindings() -> List[RoleBinding]:
    """
    Cluster role bindings seeded on first boot.

    Returns:
        List of cluster role bindings
    """
    return [
        _cluster_binding("cluster-admins", PolicyConstants.CLUSTER_ADMIN_ROLE_NAME, [
            Subject.group(PolicyConstants.CLUSTER_ADMIN_GROUP),
            Subject.group(PolicyConstants.MASTERS_GROUP),
        ]),
        _cluster_binding("basic-users", PolicyConstants.BASIC_USER_ROLE_NAME, [
            Subject.group(PolicyConstants.AUTHENTICATED_GROUP),
        ]),
        _cluster_binding(PolicyConstants.DISCOVERY_ROLE_NAME, PolicyConstants.DISCOVERY_ROLE_NAME, [
            Subject.group(PolicyConstants.AUTHENTICATED_GROUP),
            Subject.group(PolicyConstants.UNAUTHENTICATED_GROUP),
        ]),
    ]


# Controller service account name -> rules it needs
_CONTROLLER_RULES: Dict[str, List[PolicyRule]] = {
    PolicyConstants.BUILD_CONTROLLER_SERVICE_ACCOUNT: [
        rule(["get", "list", "watch", "update", "patch", "delete"], ["", "build.openshift.io"], ["builds"]),
        rule(["get"], ["", "build.openshift.io"], ["buildconfigs"]),
        rule(["create"], ["", "build.openshift.io"], ["builds/optimizeddocker", "builds/docker",
                                                     "builds/custom", "builds/source"]),
        rule(["get"], ["", "image.openshift.io"], ["imagestreams"]),
        rule(["get", "list", "create", "delete"], [""], ["pods"]),
        rule(["get"], [""], ["namespaces"]),
        rule(["create", "patch", "update"], [""], ["events"]),
    ],
    PolicyConstants.DEPLOYER_CONTROLLER_SERVICE_ACCOUNT: [
        rule(["create", "get", "list", "watch", "patch", "delete"], [""], ["pods"]),
        rule(["delete"], [""], ["replicationcontrollers"]),
        rule(["get", "list", "watch", "update"], [""], ["replicationcontrollers"]),
        rule(["create", "patch", "update"], [""], ["events"]),
    ],
    PolicyConstants.DEPLOYMENT_CONFIG_CONTROLLER_SERVICE_ACCOUNT: [
        rule(["create", "get", "list", "watch", "update", "patch", "delete"], [""],
             ["replicationcontrollers"]),
        rule(["update"], ["", "apps.openshift.io"], ["deploymentconfigs/status"]),
        rule(["get", "list", "watch"], ["", "apps.openshift.io"], ["deploymentconfigs"]),
        rule(["create", "patch", "update"], [""], ["events"]),
    ],
    PolicyConstants.PV_RECYCLER_CONTROLLER_SERVICE_ACCOUNT: [
        rule(["get", "update", "create", "delete", "list", "watch"], [""], ["persistentvolumes"]),
        rule(["update"], [""], ["persistentvolumes/status"]),
        rule(["get", "update", "list", "watch"], [""], ["persistentvolumeclaims"]),
        rule(["get", "create", "delete", "list", "watch"], [""], ["pods"]),
        rule(["create", "patch", "update"], [""], ["events"]),
    ],
    PolicyConstants.SERVICE_SERVING_CERT_CONTROLLER_SERVICE_ACCOUNT: [
        rule(["list", "watch", "update"], [""], ["services"]),
        rule(["get", "list", "watch", "create", "update"], [""], ["secrets"]),
    ],
}


def controller_role_name(service_account: str) -> str:
    return f"{PolicyConstants.CONTROLLER_ROLE_PREFIX}{service_account}"


def controller_roles() -> List[Role]:
    """
    Cluster roles for the infrastructure controllers.

    Returns:
        One cluster role per controller service account
    """
    return [
        _cluster_role(controller_role_name(service_account), rules,
                      f"Permissions used by the {service_account} controller.")
        for service_account, rules in _CONTROLLER_RULES.items()
    ]


def controller_role_bindings(infrastructure_namespace: str = KubernetesConstants.INFRASTRUCTURE_NAMESPACE
                             ) -> List[RoleBinding]:
    """
    Cluster role bindings granting each controller role to its service account.

    Args:
        infrastructure_namespace: Namespace the controller service accounts live in

    Returns:
        One cluster role binding per controller role
    """
    return [
        _cluster_binding(controller_role_name(service_account), controller_role_name(service_account),
                         [Subject.service_account(infrastructure_namespace, service_account)])
        for service_account in _CONTROLLER_RULES
    ]
