"""
Preflight checks for the web stack provisioner.

This module:
1. Parses the operator's y/N confirmation
2. Installs Docker Engine with apt when the docker binary is missing
3. Makes sure the Docker service is running
4. Detects the compose front end (plugin or standalone)

Every failure here is fatal and raised as EngineError; nothing is retried.
"""

import os
import shutil
import subprocess
from typing import Dict, List, Optional

import requests
from requests.exceptions import RequestException

from webstack.models.config import StackConfig
from webstack.provisioner import constants as c
from webstack.provisioner.errors import ConsentError, EngineError
from webstack.utils.logging import get_logger

logger = get_logger()

PROCEED_ANSWERS = ("y", "Y")
DECLINE_ANSWERS = ("n", "N", "")


def confirm(response: Optional[str]) -> bool:
    """
    Interpret the answer to the confirmation prompt.

    Returns:
        True to proceed, False if the operator declined (empty means No)

    Raises:
        ConsentError: For any answer other than y/Y/n/N/empty
    """
    # `read -p` semantics: surrounding whitespace is ignored
    answer = "" if response is None else response.strip()
    if answer in PROCEED_ANSWERS:
        return True
    if answer in DECLINE_ANSWERS:
        return False
    raise ConsentError(f"'{answer}' is an incorrect option. Execution aborted!")


def need_cmd(name: str) -> bool:
    return shutil.which(name) is not None


def is_root() -> bool:
    return os.geteuid() == 0


def _privileged(cmd: List[str]) -> List[str]:
    if is_root():
        return cmd
    return ["sudo", *cmd]


def _run(cmd: List[str], *, input: Optional[str] = None) -> subprocess.CompletedProcess:
    logger.info(f"[PREFLIGHT] $ {' '.join(cmd)}")
    result = subprocess.run(cmd, input=input, capture_output=True, text=True)
    for line in (result.stdout or "").splitlines():
        if line.strip():
            logger.info(f"[PREFLIGHT] {line.rstrip()}")
    return result


def _run_or_fail(cmd: List[str], message: str, *, input: Optional[str] = None) -> str:
    result = _run(cmd, input=input)
    if result.returncode != 0:
        detail = (result.stderr or "").strip()
        raise EngineError(f"{message} (exit code {result.returncode}): {detail}")
    return result.stdout or ""


def read_os_release(path: str = c.OS_RELEASE_PATH) -> Dict[str, str]:
    """Parse KEY=VALUE pairs from an os-release file."""
    values = {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, value = line.split("=", 1)
                values[key] = value.strip().strip('"').strip("'")
    except OSError as e:
        raise EngineError(f"Unable to read {path}: {e}") from e
    return values


def _download_gpg_key() -> str:
    try:
        response = requests.get(c.DOCKER_GPG_URL, timeout=c.DOCKER_GPG_TIMEOUT)
        response.raise_for_status()
        return response.text
    except RequestException as e:
        raise EngineError(f"Failed to download Docker GPG key: {e}") from e


def install_docker(config: StackConfig) -> None:
    """
    Install Docker Engine and the compose plugin from Docker's apt repository.

    Requires root or sudo. The invoking user is added to the docker group so
    they can run docker without sudo after logging in again.
    """
    if not is_root() and not need_cmd("sudo"):
        raise EngineError(
            "Sudo is required to install Docker. Please execute as root or use 'sudo'."
        )

    _run_or_fail(_privileged(["apt-get", "update", "-y"]), "apt update failed")
    _run_or_fail(
        _privileged(["apt-get", "install", "-y", "ca-certificates", "curl"]),
        "Failed to install ca-certificates/curl",
    )
    _run_or_fail(
        _privileged(["install", "-m", "0755", "-d", c.DOCKER_KEYRING_DIR]),
        f"Failed to create {c.DOCKER_KEYRING_DIR}",
    )

    gpg_key = _download_gpg_key()
    _run_or_fail(
        _privileged(["tee", c.DOCKER_KEYRING_PATH]),
        f"Failed to write {c.DOCKER_KEYRING_PATH}",
        input=gpg_key,
    )
    _run_or_fail(_privileged(["chmod", "a+r", c.DOCKER_KEYRING_PATH]), "Failed to chmod Docker GPG key")

    arch = _run_or_fail(["dpkg", "--print-architecture"], "Unable to detect architecture").strip()
    os_release = read_os_release()
    codename = os_release.get("UBUNTU_CODENAME") or os_release.get("VERSION_CODENAME")
    if not codename:
        raise EngineError(f"Unable to determine distribution codename from {c.OS_RELEASE_PATH}")

    source = (
        f"deb [arch={arch} signed-by={c.DOCKER_KEYRING_PATH}] "
        f"{c.DOCKER_APT_REPO_URL} {codename} stable\n"
    )
    _run_or_fail(
        _privileged(["tee", c.DOCKER_APT_SOURCE_PATH]),
        f"Failed to write {c.DOCKER_APT_SOURCE_PATH}",
        input=source,
    )

    _run_or_fail(_privileged(["apt-get", "update", "-y"]), "apt update failed")
    _run_or_fail(
        _privileged(["apt-get", "install", "-y", *c.DOCKER_PACKAGES]),
        "Docker Engine installation failed",
    )

    user = config.invoking_user
    if user and user not in ("root", "unknown"):
        _run_or_fail(
            _privileged(["usermod", "-aG", c.DOCKER_GROUP, user]),
            f"Failed to add '{user}' to the {c.DOCKER_GROUP} group",
        )
        logger.info(f"[PREFLIGHT] Added '{user}' to the {c.DOCKER_GROUP} group")

    logger.info("[PREFLIGHT] Docker installed!")


def service_active() -> bool:
    result = subprocess.run(
        ["systemctl", "is-active", "--quiet", c.DOCKER_SERVICE_NAME],
        capture_output=True,
        text=True,
    )
    return result.returncode == 0


def ensure_service() -> None:
    """Start the Docker service if it is not active, then confirm it is."""
    if not service_active():
        logger.info("[PREFLIGHT] Starting Docker Engine...")
        result = _run(_privileged(["systemctl", "start", c.DOCKER_SERVICE_NAME]))
        if result.returncode != 0:
            raise EngineError(f"Failed to start Docker Engine: {(result.stderr or '').strip()}")

    if not service_active():
        raise EngineError("Unable to start Docker Engine service. Script execution aborted.")
    logger.info("[PREFLIGHT] Docker Engine service is running.")


def detect_compose() -> List[str]:
    """
    Find the compose front end.

    Returns:
        ["docker", "compose"] for the plugin, ["docker-compose"] for standalone

    Raises:
        EngineError: If neither is available
    """
    plugin = subprocess.run(["docker", "compose", "version"], capture_output=True, text=True)
    if plugin.returncode == 0:
        logger.info("[PREFLIGHT] Docker Compose (plugin) is installed.")
        return ["docker", "compose"]

    if need_cmd("docker-compose"):
        logger.info("[PREFLIGHT] Docker Compose (standalone) is installed.")
        return ["docker-compose"]

    raise EngineError("Docker Compose is not installed. Script execution aborted.")


def ensure_engine(config: StackConfig) -> List[str]:
    """
    Make sure Docker Engine is installed and running and compose is present.

    Returns:
        The compose command to use
    """
    if need_cmd("docker"):
        logger.info("[PREFLIGHT] Docker Engine already installed.")
    else:
        logger.info("[PREFLIGHT] Docker Engine not found. Installing Docker Engine...")
        install_docker(config)

    ensure_service()
    return detect_compose()
