"""
Configuration model for the web stack provisioner.

The whole run works off a single immutable StackConfig. Ambient state
(environment variables, current user, working directory) is read once in
StackConfig.from_env() and never again by later stages.
"""

import os
import re
from typing import Mapping, Optional
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from webstack.provisioner import constants as c
from webstack.provisioner.errors import ConfigurationError

_POSIX_USER_RE = re.compile(r"^[a-z_][a-z0-9_-]{0,31}$")


class StackConfig(BaseModel):
    """Project configuration for one provisioning run."""

    model_config = ConfigDict(frozen=True)

    project_dir: str = Field(description="Directory the artifacts are written into")
    image_name: str = Field(default=c.DEFAULT_IMAGE_NAME, description="Image tag built by compose")
    container_name: str = Field(default=c.DEFAULT_CONTAINER_NAME, description="Name of the single container")
    ssh_user: str = Field(default=c.DEFAULT_SSH_USER, description="Account created inside the container")
    ssh_password: Optional[str] = Field(
        default=None,
        description="Override password; generated when unset",
        repr=False,
    )
    ssh_port: int = Field(default=c.DEFAULT_SSH_PORT, ge=1, le=65535)
    http_port: int = Field(default=c.DEFAULT_HTTP_PORT, ge=1, le=65535)
    ftp_port: int = Field(default=c.DEFAULT_FTP_PORT, ge=1, le=65535)
    ftp_passive_start: int = Field(default=c.DEFAULT_FTP_PASSIVE_START, ge=1, le=65535)
    ftp_passive_end: int = Field(default=c.DEFAULT_FTP_PASSIVE_END, ge=1, le=65535)
    invoking_user: str = Field(default="unknown", description="Host user that started the run")
    log_dir: str = Field(description="Directory for the per-run transcript")

    @field_validator("project_dir", "log_dir")
    @classmethod
    def path_must_be_absolute(cls, v):
        if not v or not v.strip():
            raise ValueError("Path cannot be empty")
        return os.path.abspath(v)

    @field_validator("image_name", "container_name")
    @classmethod
    def name_must_not_be_empty(cls, v):
        if not v or not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip()

    @field_validator("ssh_user")
    @classmethod
    def ssh_user_must_be_valid(cls, v):
        if not _POSIX_USER_RE.match(v or ""):
            raise ValueError(f"'{v}' is not a valid user name")
        return v

    @field_validator("ssh_password")
    @classmethod
    def empty_password_means_unset(cls, v):
        if v is None or v == "":
            return None
        if "\n" in v:
            raise ValueError("Password cannot contain newlines")
        return v

    @model_validator(mode="after")
    def passive_range_must_match_container(self):
        if self.ftp_passive_start > self.ftp_passive_end:
            raise ValueError("FTP passive range start must not exceed its end")
        host_width = self.ftp_passive_end - self.ftp_passive_start
        container_width = c.CONTAINER_FTP_PASSIVE_END - c.CONTAINER_FTP_PASSIVE_START
        if host_width != container_width:
            raise ValueError(
                f"FTP passive range must span {container_width + 1} ports "
                f"to match {c.CONTAINER_FTP_PASSIVE_START}-{c.CONTAINER_FTP_PASSIVE_END}"
            )
        return self

    @property
    def webroot_dir(self) -> str:
        return os.path.join(self.project_dir, c.WEBROOT_DIR_NAME)

    @property
    def home_dir(self) -> str:
        return os.path.join(self.project_dir, c.HOME_DIR_NAME)

    @property
    def compose_path(self) -> str:
        return os.path.join(self.project_dir, c.COMPOSE_FILE_NAME)

    @property
    def has_password_override(self) -> bool:
        return self.ssh_password is not None

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        cwd: Optional[str] = None,
    ) -> "StackConfig":
        """
        Build the configuration from defaults and environment overrides.

        Args:
            environ: Environment mapping (default: os.environ)
            cwd: Base directory for default paths (default: current directory)

        Raises:
            ConfigurationError: If any override is invalid
        """
        env = os.environ if environ is None else environ
        base = cwd or os.getcwd()

        values = {
            "project_dir": env.get(c.ENV_PROJECT_DIR) or os.path.join(base, c.DEFAULT_PROJECT_DIR_NAME),
            "image_name": env.get(c.ENV_IMAGE_NAME, c.DEFAULT_IMAGE_NAME),
            "container_name": env.get(c.ENV_CONTAINER_NAME, c.DEFAULT_CONTAINER_NAME),
            "ssh_user": env.get(c.ENV_SSH_USER, c.DEFAULT_SSH_USER),
            "ssh_password": env.get(c.ENV_SSH_PASSWORD),
            "ssh_port": env.get(c.ENV_SSH_PORT, c.DEFAULT_SSH_PORT),
            "http_port": env.get(c.ENV_HTTP_PORT, c.DEFAULT_HTTP_PORT),
            "ftp_port": env.get(c.ENV_FTP_PORT, c.DEFAULT_FTP_PORT),
            "ftp_passive_start": env.get(c.ENV_FTP_PASSIVE_START, c.DEFAULT_FTP_PASSIVE_START),
            "ftp_passive_end": env.get(c.ENV_FTP_PASSIVE_END, c.DEFAULT_FTP_PASSIVE_END),
            # sudo keeps the real operator in SUDO_USER
            "invoking_user": env.get("SUDO_USER") or env.get("USER") or "unknown",
            "log_dir": env.get(c.ENV_LOG_DIR) or base,
        }

        try:
            return cls(**values)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
                for err in e.errors()
            )
            raise ConfigurationError(f"Invalid configuration: {problems}") from e
