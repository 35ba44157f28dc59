"""Shared pytest fixtures."""

import pytest

from fakes import FakeCluster
from policy_bootstrap.libs.core.config import BootstrapConfig
from policy_bootstrap.libs.core.retry import RetryPolicy
from policy_bootstrap.libs.policy_file import write_bootstrap_policy_file


@pytest.fixture
def cluster():
    return FakeCluster()


@pytest.fixture
def policy_file(tmp_path):
    return write_bootstrap_policy_file(str(tmp_path / "policy.yaml"))


@pytest.fixture
def settings(policy_file):
    return BootstrapConfig(
        bootstrap_policy_file=policy_file,
        namespace_wait_attempts=3,
        namespace_wait_interval=0.0,
        retry=RetryPolicy(steps=3, duration=0.0, factor=1.0, jitter=0.0),
    )
