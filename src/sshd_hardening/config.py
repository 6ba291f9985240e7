"""Configuration management for sshd-hardening."""

from pathlib import Path
from typing import Annotated, List, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Comma-separated in the environment rather than JSON
StrList = Annotated[List[str], NoDecode]


def _split_list(v: object) -> List[str]:
    """Parse a list from a comma-separated string or a sequence."""
    if isinstance(v, str):
        return [item.strip() for item in v.split(",") if item.strip()]
    if isinstance(v, (list, tuple)):
        return [str(item).strip() for item in v if str(item).strip()]
    return []


class AlgorithmConfig(BaseSettings):
    """Algorithm lists written into the SSH configuration files."""

    # NIST P-curves left out on purpose
    host_key_algorithms: StrList = Field(
        default_factory=lambda: [
            "ssh-ed25519",
            "rsa-sha2-512",
            "rsa-sha2-256",
            "sk-ssh-ed25519@openssh.com",
            "sntrup761x25519-sha512@openssh.com",
            "mlkem768x25519-sha256@openssh.com",
        ]
    )
    kex_algorithms: StrList = Field(
        default_factory=lambda: [
            "sntrup761x25519-sha512@openssh.com",
            "mlkem768x25519-sha256@openssh.com",
            "curve25519-sha256",
            "curve25519-sha256@libssh.org",
            "diffie-hellman-group-exchange-sha256",
            "diffie-hellman-group16-sha512",
            "diffie-hellman-group18-sha512",
        ]
    )
    ciphers: StrList = Field(
        default_factory=lambda: [
            "chacha20-poly1305@openssh.com",
            "aes256-gcm@openssh.com",
            "aes128-gcm@openssh.com",
            "aes256-ctr",
            "aes192-ctr",
            "aes128-ctr",
        ]
    )
    macs: StrList = Field(
        default_factory=lambda: [
            "hmac-sha2-512-etm@openssh.com",
            "hmac-sha2-256-etm@openssh.com",
            "umac-128-etm@openssh.com",
        ]
    )

    model_config = SettingsConfigDict(
        env_prefix="ALG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @field_validator(
        "host_key_algorithms", "kex_algorithms", "ciphers", "macs", mode="before"
    )
    @classmethod
    def parse_algorithms(cls, v: object) -> List[str]:
        """Parse algorithms from comma-separated string or list."""
        return _split_list(v)


class SSHConfig(BaseSettings):
    """Hardening flags and limits."""

    permit_root_login: bool = Field(default=False)
    password_authentication: bool = Field(default=False)
    pubkey_authentication: bool = Field(default=True)
    challenge_response_authentication: bool = Field(default=False)
    x11_forwarding: bool = Field(default=False)
    strict_modes: bool = Field(default=True)
    login_grace_time: int = Field(default=60, ge=0)
    max_auth_tries: int = Field(default=4, ge=1, le=10)
    client_alive_interval: int = Field(default=300, ge=0)
    client_alive_count_max: int = Field(default=3, ge=0)
    use_keychain: bool = Field(default=True, description="macOS client only")
    host_key_dir: Path = Field(
        default=Path("/etc/ssh"), description="Host key directory as sshd sees it"
    )

    model_config = SettingsConfigDict(
        env_prefix="SSH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


class ValidationConfig(BaseSettings):
    """External validator settings."""

    enabled: bool = Field(default=True)
    timeout: float = Field(default=30.0, gt=0)
    sshd_binaries: StrList = Field(
        default_factory=lambda: ["sshd", "/usr/sbin/sshd", "/usr/local/sbin/sshd"]
    )
    ssh_binary: str = Field(default="ssh")

    model_config = SettingsConfigDict(
        env_prefix="VALIDATE_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    @field_validator("sshd_binaries", mode="before")
    @classmethod
    def parse_binaries(cls, v: object) -> List[str]:
        return _split_list(v)


class BackupConfig(BaseSettings):
    """Backup configuration."""

    naming: Literal["date", "timestamp"] = Field(default="date")

    model_config = SettingsConfigDict(
        env_prefix="BACKUP_",
        env_file=".env",
        env_file_encoding="utf-8",
    )


class ApplyConfig(BaseSettings):
    """Execution settings for a run across targets."""

    max_workers: int = Field(default=4, ge=1, le=64)
    retry_delay: float = Field(default=1.0, ge=0)

    model_config = SettingsConfigDict(
        env_prefix="APPLY_",
        env_file=".env",
        env_file_encoding="utf-8",
    )


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    level: str = Field(default="INFO")
    file: Optional[Path] = Field(default=None)
    json_format: bool = Field(default=False, alias="LOG_JSON")

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
    )


class HardeningConfig(BaseSettings):
    """Main configuration container."""

    algorithms: AlgorithmConfig = Field(default_factory=AlgorithmConfig)
    ssh: SSHConfig = Field(default_factory=SSHConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    backup: BackupConfig = Field(default_factory=BackupConfig)
    apply: ApplyConfig = Field(default_factory=ApplyConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def from_env(cls) -> "HardeningConfig":
        """Create configuration from environment variables."""
        return cls(
            algorithms=AlgorithmConfig(),
            ssh=SSHConfig(),
            validation=ValidationConfig(),
            backup=BackupConfig(),
            apply=ApplyConfig(),
            logging=LoggingConfig(),
        )

    def validate_config(self) -> List[str]:
        """Validate configuration and return list of issues."""
        issues: List[str] = []

        for name in ("host_key_algorithms", "kex_algorithms", "ciphers", "macs"):
            if not getattr(self.algorithms, name):
                issues.append(f"No {name.replace('_', ' ')} configured")

        if not self.ssh.password_authentication and not self.ssh.pubkey_authentication:
            issues.append("All authentication methods disabled")

        if self.logging.level.upper() not in LOG_LEVELS:
            issues.append(f"Unknown log level: {self.logging.level}")

        return issues
