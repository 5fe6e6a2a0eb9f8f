"""
Artifact generation for the web stack project directory.

Each render_* function is pure: the same StackConfig always yields the same
text. write_artifacts() puts them on disk and checks every file afterwards.
"""

import os
from typing import Dict

import yaml

from webstack.models.config import StackConfig
from webstack.provisioner import constants as c
from webstack.provisioner.errors import GenerationError
from webstack.utils.logging import get_logger

logger = get_logger()

PASSIVE_CONTAINER_RANGE = f"{c.CONTAINER_FTP_PASSIVE_START}-{c.CONTAINER_FTP_PASSIVE_END}"


def render_dockerfile(config: StackConfig) -> str:
    return f"""FROM ubuntu:24.04

ENV DEBIAN_FRONTEND=noninteractive

RUN apt update && apt upgrade -y && \\
  apt install -y --no-install-recommends  \\
  openssh-server \\
  apache2 \\
  vsftpd \\
  supervisor \\
  curl ca-certificates \\
  nano \\
  vim \\
  && rm -rf /var/lib/apt/lists/*

# Prep SSH
RUN mkdir -p /var/run/sshd /home/.sshseed && chmod 0755 /var/run/sshd
# Create a default user; password set at run time via chpasswd
ARG SSH_USER={config.ssh_user}
RUN useradd -m -s /bin/bash "${{SSH_USER}}" && \\
    mkdir -p /home/${{SSH_USER}} &&  \\
    chown -R ${{SSH_USER}}:${{SSH_USER}} /home/${{SSH_USER}}

# Minimal SSH hardening
RUN sed -i 's/^#\\?PasswordAuthentication.*/PasswordAuthentication no/' {c.SSHD_CONFIG_PATH} && \\
 sed -i 's/^#\\?PermitRootLogin.*/PermitRootLogin no/' {c.SSHD_CONFIG_PATH} && \\
 sed -i 's/^#\\?ChallengeResponseAuthentication.*/ChallengeResponseAuthentication no/' {c.SSHD_CONFIG_PATH} && \\
 sed -i 's/^#\\?UsePAM.*/UsePAM yes/' {c.SSHD_CONFIG_PATH} && \\
 echo 'ClientAliveInterval 300' >> {c.SSHD_CONFIG_PATH} && \\
 echo 'ClientAliveCountMax 2' >> {c.SSHD_CONFIG_PATH}

# Apache index.html
COPY {c.INDEX_HTML_NAME} {c.CONTAINER_WEBROOT}/index.html
RUN chown -R www-data:www-data {c.CONTAINER_WEBROOT}

# vsftpd Config
RUN mv /etc/vsftpd.conf /etc/vsftpd.conf.orig
COPY {c.VSFTPD_CONF_NAME} /etc/vsftpd.conf

# Supervisord Config
COPY {c.SUPERVISORD_CONF_NAME} {c.SUPERVISORD_CONF_PATH}

# Expose ports (SSH, HTTP, FTP control, FTP passive range)
EXPOSE {c.CONTAINER_SSH_PORT} {c.CONTAINER_HTTP_PORT} {c.CONTAINER_FTP_PORT} {PASSIVE_CONTAINER_RANGE}

# Volumes for persistence
VOLUME ["{c.CONTAINER_WEBROOT}", "{c.CONTAINER_HOME}"]

CMD ["/usr/bin/supervisord", "-n", "-c", "{c.SUPERVISORD_CONF_PATH}"]
"""


def render_vsftpd_conf(config: StackConfig) -> str:
    return f"""# Standalone mode, listening for incoming connections
listen=YES
# Disable anonymous login
anonymous_enable=NO
# Permit local users to log in
local_enable=YES
# Enable WRITE permissions (Upload, Edit, Delete)
write_enable=YES
dirmessage_enable=YES
use_localtime=YES
# Log uploads and downloads
xferlog_enable=YES
connect_from_port_20=YES
ftpd_banner=Welcome to VSFTPD.
# Jail local users in their home directory
chroot_local_user=YES
allow_writeable_chroot=YES

# Passive FTP ports, must match the compose port mapping
pasv_enable=YES
pasv_min_port={c.CONTAINER_FTP_PASSIVE_START}
pasv_max_port={c.CONTAINER_FTP_PASSIVE_END}

hide_ids=YES
"""


def render_supervisord_conf(config: StackConfig) -> str:
    return """[supervisord]
nodaemon=true
logfile=/var/log/supervisord.log
pidfile=/var/run/supervisord.pid

[program:sshd]
command=/usr/sbin/sshd -D
autorestart=true
priority=10

[program:apache2]
command=/usr/sbin/apachectl -D FOREGROUND
autorestart=true
priority=20

[program:vsftpd]
command=/usr/sbin/vsftpd /etc/vsftpd.conf
autorestart=true
priority=30
"""


def render_index_html(config: StackConfig) -> str:
    return (
        "<html><h1>It Works!</h1>"
        "<p>Docker Ubuntu Server Image/Container with SSH + Apache + vsftpd.</p></html>\n"
    )


def compose_port_entries(config: StackConfig) -> list:
    """The four host:container port mappings, in compose order."""
    return [
        f"{config.ssh_port}:{c.CONTAINER_SSH_PORT}",
        f"{config.http_port}:{c.CONTAINER_HTTP_PORT}",
        f"{config.ftp_port}:{c.CONTAINER_FTP_PORT}",
        f"{config.ftp_passive_start}-{config.ftp_passive_end}:{PASSIVE_CONTAINER_RANGE}",
    ]


def render_compose(config: StackConfig) -> str:
    ports = "\n".join(f'      - "{entry}"' for entry in compose_port_entries(config))
    return f"""services:
  {c.COMPOSE_SERVICE_NAME}:
    container_name: {config.container_name}
    build:
      context: .
      args:
        - SSH_USER={config.ssh_user}
    image: {config.image_name}
    ports:
{ports}
    restart: unless-stopped
    volumes:
      - ./{c.WEBROOT_DIR_NAME}:{c.CONTAINER_WEBROOT}
      - ./{c.HOME_DIR_NAME}:{c.CONTAINER_HOME}
    environment:
      - SSH_USER={config.ssh_user}
"""


def render_all(config: StackConfig) -> Dict[str, str]:
    """Map of file name -> rendered content for every artifact."""
    return {
        c.DOCKERFILE_NAME: render_dockerfile(config),
        c.VSFTPD_CONF_NAME: render_vsftpd_conf(config),
        c.INDEX_HTML_NAME: render_index_html(config),
        c.SUPERVISORD_CONF_NAME: render_supervisord_conf(config),
        c.COMPOSE_FILE_NAME: render_compose(config),
    }


def _check_written(path: str, expected: str) -> None:
    if not os.path.isfile(path):
        raise GenerationError(f"Error creating {os.path.basename(path)}: {path} does not exist")
    with open(path, "r", encoding="utf-8") as f:
        if f.read() != expected:
            raise GenerationError(
                f"Error creating {os.path.basename(path)}: content on disk does not match"
            )


def _check_compose(path: str, config: StackConfig) -> None:
    try:
        with open(path, "r", encoding="utf-8") as f:
            document = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise GenerationError(f"Error creating {c.COMPOSE_FILE_NAME}: invalid YAML: {e}") from e

    service = (document or {}).get("services", {}).get(c.COMPOSE_SERVICE_NAME)
    if not service:
        raise GenerationError(
            f"Error creating {c.COMPOSE_FILE_NAME}: service '{c.COMPOSE_SERVICE_NAME}' missing"
        )
    if service.get("ports") != compose_port_entries(config):
        raise GenerationError(f"Error creating {c.COMPOSE_FILE_NAME}: port mappings do not match")


def write_artifacts(config: StackConfig) -> Dict[str, str]:
    """
    Write all five artifacts and the bind directories into the project dir.

    Existing files are overwritten. Each file is read back and compared with
    the rendered content; compose.yml is also parsed.

    Returns:
        Map of file name -> absolute path written

    Raises:
        GenerationError: If the directory or any file cannot be created or
            fails its post-write check
    """
    project_dir = config.project_dir
    try:
        os.makedirs(project_dir, exist_ok=True)
    except OSError as e:
        raise GenerationError(f"Failed to create project directory {project_dir}: {e}") from e
    logger.info(f"[ARTIFACTS] Project directory: {project_dir}")

    written = {}
    for name, content in render_all(config).items():
        path = os.path.join(project_dir, name)
        try:
            with open(path, "w", encoding="utf-8", newline="\n") as f:
                f.write(content)
        except OSError as e:
            raise GenerationError(f"Error creating {name}: {e}") from e
        _check_written(path, content)
        written[name] = path
        logger.info(f"[ARTIFACTS] {name} created: ({path})")

    _check_compose(written[c.COMPOSE_FILE_NAME], config)

    for bind_dir in (config.webroot_dir, config.home_dir):
        try:
            os.makedirs(bind_dir, exist_ok=True)
        except OSError as e:
            raise GenerationError(f"Failed to create bind directory {bind_dir}: {e}") from e

    return written
