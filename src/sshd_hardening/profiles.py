"""Directive sets for each platform and configuration file."""

from typing import List, Tuple

from sshd_hardening.config import HardeningConfig
from sshd_hardening.types import ConfigKind, Directive, Platform

ECDSA_DISABLED_COMMENT = "Disabled - NIST curves potentially compromised"


def _yes_no(flag: bool) -> str:
    return "yes" if flag else "no"


def algorithm_directives(config: HardeningConfig) -> List[Directive]:
    """Algorithm lists shared by sshd_config and ssh_config."""
    alg = config.algorithms
    return [
        Directive("KexAlgorithms", tuple(alg.kex_algorithms)),
        Directive("Ciphers", tuple(alg.ciphers)),
        Directive("MACs", tuple(alg.macs)),
        Directive("HostKeyAlgorithms", tuple(alg.host_key_algorithms)),
    ]


def host_key_directives(config: HardeningConfig) -> List[Directive]:
    key_dir = config.ssh.host_key_dir
    ecdsa = str(key_dir / "ssh_host_ecdsa_key")
    ed25519 = str(key_dir / "ssh_host_ed25519_key")
    rsa = str(key_dir / "ssh_host_rsa_key")
    return [
        Directive.disable("HostKey", ecdsa, ECDSA_DISABLED_COMMENT),
        Directive("HostKey", ed25519, match=ed25519),
        Directive("HostKey", rsa, match=rsa),
    ]


def server_directives(platform: Platform, config: HardeningConfig) -> Tuple[Directive, ...]:
    """Build the sshd_config directive set for ``platform``."""
    ssh = config.ssh
    directives = host_key_directives(config) + algorithm_directives(config)
    directives += [
        Directive("PermitRootLogin", _yes_no(ssh.permit_root_login)),
        Directive("PasswordAuthentication", _yes_no(ssh.password_authentication)),
        Directive("PubkeyAuthentication", _yes_no(ssh.pubkey_authentication)),
        Directive(
            "ChallengeResponseAuthentication",
            _yes_no(ssh.challenge_response_authentication),
        ),
        Directive("X11Forwarding", _yes_no(ssh.x11_forwarding)),
        Directive("StrictModes", _yes_no(ssh.strict_modes)),
    ]

    if platform == Platform.RHEL8:
        directives += [
            Directive("LoginGraceTime", str(ssh.login_grace_time)),
            Directive("MaxAuthTries", str(ssh.max_auth_tries)),
        ]
    elif platform == Platform.AL2023:
        directives += [
            Directive("ClientAliveInterval", str(ssh.client_alive_interval)),
            Directive("ClientAliveCountMax", str(ssh.client_alive_count_max)),
        ]

    return tuple(directives)


def client_directives(platform: Platform, config: HardeningConfig) -> Tuple[Directive, ...]:
    """Build the ssh_config directive set for ``platform``."""
    directives = algorithm_directives(config)
    # UseKeychain is an Apple ssh client option; sshd rejects it
    if platform == Platform.MACOS:
        directives.append(Directive("UseKeychain", _yes_no(config.ssh.use_keychain)))
    return tuple(directives)


def directives_for(
    kind: ConfigKind, platform: Platform, config: HardeningConfig
) -> Tuple[Directive, ...]:
    if kind == ConfigKind.SERVER:
        return server_directives(platform, config)
    return client_directives(platform, config)
