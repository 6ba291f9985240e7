"""Tests for platform directive sets."""

from pathlib import Path

from sshd_hardening.document import ConfigDocument
from sshd_hardening.profiles import client_directives, directives_for, server_directives
from sshd_hardening.reconciler import ConfigReconciler
from sshd_hardening.types import ConfigKind, Platform

from conftest import SAMPLE_SSHD_CONFIG


def keys(directives):
    return [d.key for d in directives]


def test_server_common_settings(test_config):
    directives = server_directives(Platform.LINUX, test_config)
    by_key = {d.key: d for d in directives if d.key != "HostKey"}

    assert by_key["PermitRootLogin"].rendered_value == "no"
    assert by_key["PasswordAuthentication"].rendered_value == "no"
    assert by_key["PubkeyAuthentication"].rendered_value == "yes"
    assert by_key["StrictModes"].rendered_value == "yes"
    assert by_key["MACs"].rendered_value == ",".join(test_config.algorithms.macs)
    assert "LoginGraceTime" not in by_key
    assert "ClientAliveInterval" not in by_key


def test_server_host_keys(test_config):
    host_keys = [d for d in server_directives(Platform.LINUX, test_config) if d.key == "HostKey"]

    assert [d.disabled for d in host_keys] == [True, False, False]
    assert host_keys[0].render() == (
        "#HostKey /etc/ssh/ssh_host_ecdsa_key # Disabled - NIST curves potentially compromised"
    )
    assert host_keys[1].render() == "HostKey /etc/ssh/ssh_host_ed25519_key"


def test_host_key_dir_from_config(test_config):
    test_config.ssh.host_key_dir = Path("/usr/local/etc/ssh")
    host_keys = [d for d in server_directives(Platform.MACOS, test_config) if d.key == "HostKey"]
    assert host_keys[2].render() == "HostKey /usr/local/etc/ssh/ssh_host_rsa_key"


def test_rhel8_settings(test_config):
    directives = server_directives(Platform.RHEL8, test_config)
    rendered = [d.render() for d in directives]
    assert "LoginGraceTime 60" in rendered
    assert "MaxAuthTries 4" in rendered
    assert "ClientAliveInterval 300" not in rendered


def test_al2023_settings(test_config):
    rendered = [d.render() for d in server_directives(Platform.AL2023, test_config)]
    assert "ClientAliveInterval 300" in rendered
    assert "ClientAliveCountMax 3" in rendered
    assert "MaxAuthTries 4" not in rendered


def test_client_directives(test_config):
    assert keys(client_directives(Platform.LINUX, test_config)) == [
        "KexAlgorithms",
        "Ciphers",
        "MACs",
        "HostKeyAlgorithms",
    ]
    assert "UseKeychain" in keys(client_directives(Platform.MACOS, test_config))
    assert "UseKeychain" not in keys(server_directives(Platform.MACOS, test_config))


def test_directives_for_dispatches_on_kind(test_config):
    assert directives_for(ConfigKind.CLIENT, Platform.LINUX, test_config) == client_directives(
        Platform.LINUX, test_config
    )


def test_every_profile_reconciles_cleanly(test_config):
    """No profile carries two directives for one line."""
    for platform in Platform:
        for kind in ConfigKind:
            document = ConfigDocument.from_text(SAMPLE_SSHD_CONFIG)
            ConfigReconciler().reconcile(document, directives_for(kind, platform, test_config))
