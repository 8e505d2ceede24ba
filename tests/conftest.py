"""Shared test fixtures: sample configuration files and toy registries."""

from __future__ import annotations

from decimal import Decimal

import pytest

from proxyconf.document import ConfigDocument
from proxyconf.migrations.registry import MigrationRegistry
from proxyconf.migrations.step import MigrationStep


LEGACY_CONFIG = """\
# Proxy configuration, hand-edited
config-version: '2.6'

# What port should the proxy be bound to?
bind: 0.0.0.0:25577
motd: <#09add3>A Velocity Server
show-max-players: 500

advanced:
  # How large a packet has to be before we compress it.
  compression-threshold: 256
  login-ratelimit: 3000
"""


CURRENT_CONFIG = """\
config-version: '2.7'
bind: 0.0.0.0:25577
# Customised by the operator
disable-forge: true
advanced:
  server-brand: My Proxy
"""


@pytest.fixture
def legacy_text():
    return LEGACY_CONFIG


@pytest.fixture
def current_text():
    return CURRENT_CONFIG


@pytest.fixture
def config_file(tmp_path):
    """Write text to a config file in a temp dir; returns the path."""
    def _factory(text: str, name: str = "velocity.yml"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path
    return _factory


def make_step(version: str, key: str, value=True, calls: list | None = None, **kwargs):
    """A step that sets one key and records when it ran."""
    def _apply(doc: ConfigDocument) -> None:
        if calls is not None:
            calls.append(version)
        doc.set(key, value)

    return MigrationStep(target_version=Decimal(version), apply=_apply, **kwargs)


@pytest.fixture
def calls():
    return []


@pytest.fixture
def toy_registry(calls):
    return MigrationRegistry([
        make_step("1.0", "one", calls=calls),
        make_step("2.0", "two", calls=calls),
        make_step("3.0", "three", calls=calls),
    ])
