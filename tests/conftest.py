"""
Shared fixtures for the web stack provisioner tests.

Nothing here talks to a real Docker engine: the docker SDK client, compose
subprocesses and engine checks are replaced with fakes.
"""

import os
from typing import List

import pytest

from webstack.models.config import StackConfig
from webstack.models.summary import StepOutcome
from webstack.utils import logging as webstack_logging

_ENV_PREFIXES = ("WEBSTACK_",)
_ENV_NAMES = ("SSH_PASSWORD", "SUDO_USER", "USER")


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Drop any ambient overrides so every test starts from defaults."""
    for name in list(os.environ):
        if name.startswith(_ENV_PREFIXES) or name in _ENV_NAMES:
            monkeypatch.delenv(name, raising=False)
    yield
    webstack_logging.detach_log_file()


@pytest.fixture
def config(tmp_path) -> StackConfig:
    return StackConfig.from_env(environ={"USER": "alice"}, cwd=str(tmp_path))


class FakeStackManager:
    """Stands in for StackManager; records what the pipeline asked for."""

    def __init__(self, compose_command: List[str], config: StackConfig, *, running=True, post_start_ok=True):
        self.compose_command = compose_command
        self.config = config
        self.running = running
        self.post_start_ok = post_start_ok
        self.calls = []
        self.queried_names = []
        self.closed = False

    def build(self):
        self.calls.append("build")

    def up(self):
        self.calls.append("up")

    def post_start(self, user, password):
        self.calls.append(("post_start", user, password))
        return [
            StepOutcome(name="enable_password_auth", ok=self.post_start_ok, exit_code=0 if self.post_start_ok else 1),
            StepOutcome(name="restart_sshd", ok=True),
            StepOutcome(name="set_password", ok=True),
            StepOutcome(name="fix_home_ownership", ok=True),
        ]

    def is_running(self, name=None):
        self.queried_names.append(name)
        return self.running

    def close(self):
        self.closed = True


@pytest.fixture
def fake_manager_factory():
    """Returns (factory, created) where created collects the managers built."""
    created = []

    def factory(compose_command, config, **kwargs):
        manager = FakeStackManager(compose_command, config, **kwargs)
        created.append(manager)
        return manager

    return factory, created
