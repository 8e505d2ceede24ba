"""Tests for the 2.7 custom feature migration."""

from decimal import Decimal

import pytest

from proxyconf.document import ConfigDocument
from proxyconf.migrations.m_027_custom_features import OPTIONS, STEP
from proxyconf.migrations.registry import default_registry
from proxyconf.migrations.runner import MigrationRunner, migrate_file


EXPECTED_DEFAULTS = {
    "advanced.allow-illegal-characters-in-chat": False,
    "disable-forge": False,
    "enable-dynamic-fallbacks": False,
    "enforce-chat-signing": False,
    "log-offline-connections": True,
    "log-player-connections": True,
    "log-player-disconnections": True,
    "translate-header-footer": True,
    "minimum-version": "1.7.2",
    "log-minimum-version": False,
    "advanced.server-brand": "{0} ({1})",
    "advanced.outdated-version-ping": "{protocol-min}-{protocol-max} ({proxy-brand})",
    "advanced.fallback-version-ping": "{proxy-brand} {protocol-min}-{protocol-max}",
}


def test_step_targets_2_7():
    assert STEP.target_version == Decimal("2.7")
    assert {o.path: o.default for o in OPTIONS} == EXPECTED_DEFAULTS


def test_every_option_is_documented():
    for option in OPTIONS:
        assert option.comment.strip(), option.path


def test_unversioned_document_gets_all_options():
    doc = ConfigDocument()

    applied = MigrationRunner(default_registry()).run(doc)

    assert applied[-1] == Decimal("2.7")
    assert doc.get("config-version") == "2.7"
    assert doc.get("disable-forge") is False
    assert doc.get("minimum-version") == "1.7.2"
    for path, default in EXPECTED_DEFAULTS.items():
        assert doc.get(path) == default, path
        assert doc.get_comment(path), path


def test_comments_survive_save_and_reload(tmp_path):
    path = tmp_path / "velocity.yml"
    migrate_file(path)

    doc = ConfigDocument.load(path)

    assert [o.path for o in OPTIONS if not doc.get_comment(o.path)] == []
    for option in OPTIONS:
        assert doc.get_comment(option.path) == option.comment, option.path


def test_step_is_idempotent_across_reload():
    doc = ConfigDocument()
    STEP.run(doc)
    once = doc.dumps()

    again = ConfigDocument.loads(once)
    STEP.run(again)

    assert again.dumps() == once
    assert once.count("# If true, disables handling of inbound Forge handshakes.") == 1


def test_legacy_file_is_idempotent_across_reload(config_file, legacy_text):
    path = config_file(legacy_text)
    migrate_file(path)
    migrated = path.read_text(encoding="utf-8")

    doc = ConfigDocument.load(path)
    STEP.run(doc)

    assert doc.dumps() == migrated


def test_existing_option_comment_is_replaced():
    doc = ConfigDocument.loads(
        "config-version: '2.6'\n"
        "# Old note about forge\n"
        "disable-forge: true\n"
    )

    MigrationRunner(default_registry()).run(doc)

    text = doc.dumps()
    assert "# Old note about forge" not in text
    assert text.count("# If true, disables handling of inbound Forge handshakes.") == 1


def test_empty_advanced_section_is_migrated():
    doc = ConfigDocument.loads(
        "config-version: '2.6'\nadvanced:\n  # compression-threshold: 256\n"
    )

    applied = MigrationRunner(default_registry()).run(doc)

    assert applied == [Decimal("2.7")]
    assert doc.get("advanced.allow-illegal-characters-in-chat") is False
    assert doc.get("advanced.server-brand") == "{0} ({1})"
    assert "# compression-threshold: 256" in doc.dumps()


@pytest.mark.parametrize("version", ["1.0", "2.0", "2.6"])
def test_older_documents_are_migrated(version):
    doc = ConfigDocument()
    doc.set_version(version)
    assert STEP.is_applicable(doc)


def test_current_document_keeps_customizations(current_text):
    doc = ConfigDocument.loads(current_text)

    assert MigrationRunner(default_registry()).run(doc) == []
    assert doc.get("disable-forge") is True
    assert doc.get("advanced.server-brand") == "My Proxy"
    assert doc.dumps() == current_text


def test_legacy_file_keeps_user_settings_and_comments(config_file, legacy_text):
    path = config_file(legacy_text)

    result = migrate_file(path)

    assert result.saved
    assert result.from_version == Decimal("2.6")
    assert result.to_version == Decimal("2.7")
    text = path.read_text(encoding="utf-8")
    assert "# Proxy configuration, hand-edited" in text
    assert "# What port should the proxy be bound to?" in text
    assert "# How large a packet has to be before we compress it." in text
    assert "# If true, disables handling of inbound Forge handshakes." in text

    doc = ConfigDocument.load(path)
    assert doc.get("bind") == "0.0.0.0:25577"
    assert doc.get("advanced.compression-threshold") == 256
    assert doc.get("advanced.server-brand") == "{0} ({1})"
    assert doc.get_version() == Decimal("2.7")


def test_migrated_file_is_stable(config_file, legacy_text):
    path = config_file(legacy_text)
    migrate_file(path)
    first = path.read_text(encoding="utf-8")

    result = migrate_file(path)

    assert result.applied == []
    assert path.read_text(encoding="utf-8") == first
