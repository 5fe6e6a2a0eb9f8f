"""
Constants for stack provisioning.
"""

# Defaults for the generated project
DEFAULT_PROJECT_DIR_NAME = "docker-ubuntu-server-web-stack"
DEFAULT_IMAGE_NAME = "ubuntu-server-web-stack"
DEFAULT_CONTAINER_NAME = "ubuntu-server-web-stack"
DEFAULT_SSH_USER = "webstackuser"

# Host side ports
DEFAULT_SSH_PORT = 2222
DEFAULT_HTTP_PORT = 8080
DEFAULT_FTP_PORT = 2121
DEFAULT_FTP_PASSIVE_START = 21100
DEFAULT_FTP_PASSIVE_END = 21110

# Container side ports
CONTAINER_SSH_PORT = 22
CONTAINER_HTTP_PORT = 80
CONTAINER_FTP_PORT = 21
CONTAINER_FTP_PASSIVE_START = 21100
CONTAINER_FTP_PASSIVE_END = 21110

# Generated files
DOCKERFILE_NAME = "Dockerfile"
VSFTPD_CONF_NAME = "vsftpd.conf"
SUPERVISORD_CONF_NAME = "supervisord.conf"
INDEX_HTML_NAME = "index.html"
COMPOSE_FILE_NAME = "compose.yml"
COMPOSE_SERVICE_NAME = "stack"

# Bind mounts (host dir relative to project dir -> container path)
WEBROOT_DIR_NAME = "webroot"
HOME_DIR_NAME = "home"
CONTAINER_WEBROOT = "/var/www/html"
CONTAINER_HOME = "/home"

# Container paths
SSHD_CONFIG_PATH = "/etc/ssh/sshd_config"
SUPERVISORD_CONF_PATH = "/etc/supervisor/conf.d/supervisord.conf"

# Environment variables
ENV_SSH_PASSWORD = "SSH_PASSWORD"
ENV_PROJECT_DIR = "WEBSTACK_PROJECT_DIR"
ENV_IMAGE_NAME = "WEBSTACK_IMAGE_NAME"
ENV_CONTAINER_NAME = "WEBSTACK_CONTAINER_NAME"
ENV_SSH_USER = "WEBSTACK_SSH_USER"
ENV_SSH_PORT = "WEBSTACK_SSH_PORT"
ENV_HTTP_PORT = "WEBSTACK_HTTP_PORT"
ENV_FTP_PORT = "WEBSTACK_FTP_PORT"
ENV_FTP_PASSIVE_START = "WEBSTACK_FTP_PASSIVE_START"
ENV_FTP_PASSIVE_END = "WEBSTACK_FTP_PASSIVE_END"
ENV_LOG_DIR = "WEBSTACK_LOG_DIR"

# Credentials
PASSWORD_LENGTH = 24

# Docker engine install (apt)
DOCKER_GPG_URL = "https://download.docker.com/linux/ubuntu/gpg"
DOCKER_APT_REPO_URL = "https://download.docker.com/linux/ubuntu"
DOCKER_KEYRING_DIR = "/etc/apt/keyrings"
DOCKER_KEYRING_PATH = f"{DOCKER_KEYRING_DIR}/docker.asc"
DOCKER_APT_SOURCE_PATH = "/etc/apt/sources.list.d/docker.list"
DOCKER_GPG_TIMEOUT = 30  # seconds
OS_RELEASE_PATH = "/etc/os-release"
DOCKER_PACKAGES = [
    "docker-ce",
    "docker-ce-cli",
    "containerd.io",
    "docker-buildx-plugin",
    "docker-compose-plugin",
]
DOCKER_SERVICE_NAME = "docker"
DOCKER_GROUP = "docker"

# Exit codes
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130

TOTAL_STEPS = 5
