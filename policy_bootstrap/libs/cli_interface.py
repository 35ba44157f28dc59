"""
CLI Interface Module.

Argument parsing for the policy bootstrap tool. Common flags live on parent
parsers so every subcommand accepts them in the same place.
"""

import argparse

from .core.constants import BootstrapConstants


def _add_reconcile_arguments(parser: argparse.ArgumentParser, names_help: str) -> None:
    parser.add_argument('names', nargs='*', metavar='NAME', help=names_help)
    parser.add_argument('--confirm', action='store_true',
                        help='Write the changes; without it the changes are only printed as YAML')
    merge = parser.add_mutually_exclusive_group()
    merge.add_argument('--additive-only', dest='union', action='store_true', default=True,
                       help='Only add missing permissions and subjects (default)')
    merge.add_argument('--replace', dest='union', action='store_false',
                       help='Replace permissions and subjects with exactly the bootstrap ones')


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the argument parser with one subcommand per operation"""

    # Arguments shared by all commands
    common_parser = argparse.ArgumentParser(add_help=False)
    common_parser.add_argument('--debug', action='store_true', default=None, help='Enable debug logging')
    common_parser.add_argument('--config', help='Configuration file path')

    # Arguments shared by commands that talk to the cluster
    auth_parser = argparse.ArgumentParser(add_help=False)
    auth_parser.add_argument('--skip-tls', action='store_true', default=None,
                             help='Skip TLS verification for insecure requests')
    auth_parser.add_argument('--openshift-url', help='OpenShift cluster URL (or set OPENSHIFT_URL)')
    auth_parser.add_argument('--openshift-token', help='OpenShift authentication token (or set OPENSHIFT_TOKEN)')

    parser = argparse.ArgumentParser(
        prog='policy-bootstrap',
        description='Policy Bootstrap - Converge cluster authorization state to its bootstrap baseline',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  policy-bootstrap run --config policy-bootstrap-config.yaml
  policy-bootstrap reconcile-cluster-roles admin edit view
  policy-bootstrap reconcile-cluster-role-bindings system:discovery --confirm
  policy-bootstrap create-bootstrap-policy-file --filename policy.yaml
  policy-bootstrap generate-config --output ./config

Use --help with specific commands for detailed help.
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    subparsers.add_parser(
        'run',
        parents=[common_parser, auth_parser],
        help='Run the full bootstrap sequence',
        description='Ensure namespaces, default grants, security context constraints and cluster policy'
    )

    roles_parser = subparsers.add_parser(
        'reconcile-cluster-roles',
        parents=[common_parser, auth_parser],
        help='Reconcile cluster roles with their bootstrap definitions',
        description='Reconcile cluster roles with their bootstrap definitions'
    )
    _add_reconcile_arguments(roles_parser, 'Cluster roles to reconcile (default: all bootstrap roles)')

    bindings_parser = subparsers.add_parser(
        'reconcile-cluster-role-bindings',
        parents=[common_parser, auth_parser],
        help='Reconcile cluster role bindings with their bootstrap definitions',
        description='Reconcile the cluster role bindings that grant the named roles'
    )
    _add_reconcile_arguments(bindings_parser, 'Roles whose bindings to reconcile (default: all bootstrap roles)')

    policy_parser = subparsers.add_parser(
        'create-bootstrap-policy-file',
        parents=[common_parser],
        help='Write the bootstrap policy file',
        description='Write the bootstrap cluster roles and bindings as a List the seeding step accepts'
    )
    policy_parser.add_argument('--filename', default=BootstrapConstants.DEFAULT_POLICY_FILE,
                               help='Destination file; a .json suffix writes JSON (default: %(default)s)')

    config_parser = subparsers.add_parser(
        'generate-config',
        parents=[common_parser],
        help='Generate a configuration template',
        description='Write a commented configuration template'
    )
    config_parser.add_argument('--output', help='Output directory for the template')

    return parser
