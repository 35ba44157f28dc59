"""
Main Application

Wires the stores, configuration and reconciliation steps together and runs
the bootstrap sequence or one of the individual commands.
"""

import logging
import sys
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .bootstrappolicy import controller_role_bindings, controller_roles
from .cli_interface import create_argument_parser
from .core import BootstrapConfig, ConfigManager, OpenShiftAuth, setup_logging, disable_ssl_warnings
from .core.constants import ErrorMessages
from .core.data_models import ItemStatus, Namespace, StepResult
from .core.exceptions import AuthenticationError, BootstrapError, ConfigurationError
from .core.protocols import (
    AuthProvider, ClusterPolicyStore, NamespaceStore, RoleBindingStore, RoleStore, SecurityPolicyStore
)
from .policy_file import write_bootstrap_policy_file
from .reconcile import (
    ClusterPolicyBootstrapper,
    ClusterPolicyResult,
    NamespaceEnsurer,
    RoleSetReconciler,
    SecurityPolicyInitializer,
    ServiceAccountRoleInitializer
)
from .stores import (
    KubernetesClusterPolicyStore,
    KubernetesNamespaceStore,
    KubernetesRoleBindingStore,
    KubernetesRoleStore,
    KubernetesSecurityPolicyStore
)

logger = logging.getLogger(__name__)


@dataclass
class BootstrapContext:
    """Stores and settings every bootstrap step works against"""
    namespaces: NamespaceStore
    roles: RoleStore
    role_bindings: RoleBindingStore
    security_policies: SecurityPolicyStore
    cluster_policy: ClusterPolicyStore
    config: BootstrapConfig = field(default_factory=BootstrapConfig)
    sleep: Callable[[float], None] = time.sleep


@dataclass
class BootstrapSummary:
    """Results of every step of one bootstrap run"""
    steps: List[StepResult] = field(default_factory=list)
    cluster_policy: Optional[ClusterPolicyResult] = None

    @property
    def failed(self):
        return [outcome for step in self.steps for outcome in step.failed]

    @property
    def ok(self) -> bool:
        return not self.failed and (self.cluster_policy is None or self.cluster_policy.policy_load_error is None)

    def lines(self) -> List[str]:
        lines = [step.summary() for step in self.steps]
        if self.cluster_policy is not None:
            if self.cluster_policy.seeded:
                lines.append("cluster policy: seeded")
            elif self.cluster_policy.policy_load_error:
                lines.append(f"cluster policy: not seeded ({self.cluster_policy.policy_load_error})")
        return lines


class BootstrapOrchestrator:
    """Runs the startup bootstrap sequence"""

    def __init__(self, context: BootstrapContext, out=None):
        """
        Initialize the orchestrator

        Args:
            context: Stores and settings
            out: Text sink for YAML of changed cluster roles and bindings (discarded by default)
        """
        self.context = context
        settings = context.config

        self.ensurer = NamespaceEnsurer(context.namespaces, sleep=context.sleep)
        self.reconciler = RoleSetReconciler(
            context.roles, context.role_bindings,
            infrastructure_namespace=settings.infrastructure_namespace,
            retry_policy=settings.retry, out=out, sleep=context.sleep,
        )
        self.service_accounts = ServiceAccountRoleInitializer(
            context.namespaces, context.role_bindings, retry_policy=settings.retry, sleep=context.sleep,
        )
        self.security_policies = SecurityPolicyInitializer(context.security_policies)
        self.cluster_policy = ClusterPolicyBootstrapper(
            context.cluster_policy, context.roles, context.role_bindings, self.reconciler,
            settings.bootstrap_policy_file,
        )

    def run(self) -> BootstrapSummary:
        """
        Run every bootstrap step in order

        Individual failures are logged and recorded; they never stop later
        steps. Whatever is left undone is retried on the next startup.

        Returns:
            BootstrapSummary: Per-step results
        """
        settings = self.context.config
        summary = BootstrapSummary()
        namespaces = StepResult(step="namespaces")
        summary.steps.append(namespaces)

        self._bootstrap_infrastructure_namespace(namespaces, summary)
        self._bootstrap_shared_resources_namespace(namespaces, summary)
        self._bootstrap_default_namespace(namespaces, summary)

        summary.steps.append(self.security_policies.initialize(settings.infrastructure_namespace))

        cluster_policy = self.cluster_policy.run()
        summary.cluster_policy = cluster_policy
        summary.steps.extend([cluster_policy.legacy, cluster_policy.roles, cluster_policy.role_bindings])

        for line in summary.lines():
            logger.info(line)
        if not summary.ok:
            logger.warning(f"Bootstrap incomplete: {len(summary.failed)} item(s) failed and will be "
                           f"retried on the next startup")
        return summary

    def _bootstrap_infrastructure_namespace(self, namespaces: StepResult, summary: BootstrapSummary) -> None:
        name = self.context.config.infrastructure_namespace
        namespace = self.ensurer.ensure(name)
        if not self._record(namespaces, name, namespace):
            return

        controllers = StepResult(step="controller roles")
        for role in controller_roles():
            controllers.extend(self.reconciler.reconcile_cluster_roles([role.name]))
        for role_name in dict.fromkeys(binding.role_ref.name for binding in controller_role_bindings(name)):
            controllers.extend(self.reconciler.reconcile_cluster_role_bindings([role_name]))
        summary.steps.append(controllers)

        summary.steps.append(self.service_accounts.initialize(namespace))

    def _bootstrap_shared_resources_namespace(self, namespaces: StepResult, summary: BootstrapSummary) -> None:
        name = self.context.config.shared_resources_namespace
        namespace, created = self.ensurer.get_or_create(name)
        self._record(namespaces, name, namespace, created)
        # Existing shared namespaces were initialized by whoever created them
        if namespace is not None and created:
            summary.steps.append(self.service_accounts.initialize(namespace))

    def _bootstrap_default_namespace(self, namespaces: StepResult, summary: BootstrapSummary) -> None:
        settings = self.context.config
        namespace = self.ensurer.wait_for(settings.default_namespace, settings.namespace_wait_attempts,
                                          settings.namespace_wait_interval)
        if self._record(namespaces, settings.default_namespace, namespace):
            summary.steps.append(self.service_accounts.initialize(namespace))

    def _record(self, namespaces: StepResult, name: str, namespace: Optional[Namespace],
                created: bool = False) -> bool:
        if namespace is None:
            namespaces.record(name, ItemStatus.FAILED, "namespace unavailable")
            return False
        namespaces.record(name, ItemStatus.CREATED if created else ItemStatus.UNCHANGED)
        return True


def create_kubernetes_context(settings: BootstrapConfig, auth_provider: AuthProvider = None) -> BootstrapContext:
    """
    Build a BootstrapContext backed by the cluster API

    Args:
        settings: Bootstrap settings, including connection details
        auth_provider: Authentication provider (defaults to OpenShiftAuth)

    Returns:
        BootstrapContext: Context with Kubernetes-backed stores

    Raises:
        AuthenticationError: If no cluster connection could be configured
    """
    auth = auth_provider or OpenShiftAuth(skip_tls=settings.skip_tls)
    if not auth.configure_auth(settings.openshift_url, settings.openshift_token):
        raise AuthenticationError(ErrorMessages.AuthError.NOT_CONFIGURED.value)
    auth.test_connection()

    core_api, rbac_api, custom_api = auth.get_kubernetes_clients()
    return BootstrapContext(
        namespaces=KubernetesNamespaceStore(core_api),
        roles=KubernetesRoleStore(rbac_api),
        role_bindings=KubernetesRoleBindingStore(rbac_api),
        security_policies=KubernetesSecurityPolicyStore(custom_api),
        cluster_policy=KubernetesClusterPolicyStore(custom_api),
        config=settings,
    )


def load_settings(args) -> BootstrapConfig:
    """Merge the configuration file, environment and command-line flags."""
    config_manager = ConfigManager()
    if getattr(args, 'config', None):
        config_manager.load_config(args.config)
    return config_manager.build_bootstrap_config(
        openshift_url=getattr(args, 'openshift_url', None),
        openshift_token=getattr(args, 'openshift_token', None),
        skip_tls=getattr(args, 'skip_tls', None),
        debug=getattr(args, 'debug', None),
    )


def handle_run_command(args, settings: BootstrapConfig) -> int:
    context = create_kubernetes_context(settings)
    summary = BootstrapOrchestrator(context).run()
    for line in summary.lines():
        print(line)
    # Failed items are retried on the next startup
    return 0


def _handle_reconcile(args, settings: BootstrapConfig, bindings: bool) -> int:
    context = create_kubernetes_context(settings)
    # Without --confirm the would-be objects are the command's output
    out = None if args.confirm else sys.stdout
    reconciler = RoleSetReconciler(context.roles, context.role_bindings,
                                   infrastructure_namespace=settings.infrastructure_namespace,
                                   retry_policy=settings.retry, out=out)
    names = args.names or None
    if bindings:
        result = reconciler.reconcile_cluster_role_bindings(names, union=args.union, confirmed=args.confirm)
    else:
        result = reconciler.reconcile_cluster_roles(names, union=args.union, confirmed=args.confirm)

    print(result.summary(), file=sys.stderr)
    return 0 if result.ok else 1


def handle_reconcile_cluster_roles_command(args, settings: BootstrapConfig) -> int:
    return _handle_reconcile(args, settings, bindings=False)


def handle_reconcile_cluster_role_bindings_command(args, settings: BootstrapConfig) -> int:
    return _handle_reconcile(args, settings, bindings=True)


def handle_create_bootstrap_policy_file_command(args, settings: BootstrapConfig) -> int:
    path = write_bootstrap_policy_file(args.filename, settings.infrastructure_namespace)
    print(f"Bootstrap policy written to: {path}")
    return 0


def handle_generate_config_command(args, settings: BootstrapConfig) -> int:
    path = ConfigManager().generate_config_template(args.output)
    print(f"Configuration template generated: {path}")
    return 0


# Command dispatcher mapping
COMMAND_HANDLERS = {
    'run': handle_run_command,
    'reconcile-cluster-roles': handle_reconcile_cluster_roles_command,
    'reconcile-cluster-role-bindings': handle_reconcile_cluster_role_bindings_command,
    'create-bootstrap-policy-file': handle_create_bootstrap_policy_file_command,
    'generate-config': handle_generate_config_command,
}


def main(argv: List[str] = None) -> int:
    """Main entry point"""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        settings = load_settings(args)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    setup_logging(settings.debug)
    if settings.skip_tls:
        disable_ssl_warnings()

    try:
        return COMMAND_HANDLERS[args.command](args, settings)
    except (AuthenticationError, ConfigurationError) as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except BootstrapError as e:
        logger.error(f"Command {args.command} failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.")
        return 1


if __name__ == "__main__":
    sys.exit(main())
