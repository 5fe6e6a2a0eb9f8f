import subprocess
from typing import Dict, List, Optional

import docker
from docker import DockerClient
from docker.errors import DockerException
from docker.models.containers import Container
from requests.exceptions import RequestException

from webstack.models.summary import StepOutcome
from webstack.provisioner.constants import SSHD_CONFIG_PATH
from webstack.provisioner.errors import LaunchError, VerificationError
from webstack.utils.logging import get_logger

logger = get_logger()

ENABLE_PASSWORD_AUTH_CMD = (
    f"sed -i 's/^#\\?PasswordAuthentication.*/PasswordAuthentication yes/' {SSHD_CONFIG_PATH}"
)
RESTART_SSHD_CMD = "service ssh --full-restart || pkill -HUP sshd"
# Credentials come in through the exec environment, never the command line
SET_PASSWORD_CMD = 'printf "%s:%s\\n" "$WEBSTACK_USER" "$WEBSTACK_PASSWORD" | chpasswd'


class StackManager:
    docker: DockerClient = None

    def __init__(
        self,
        *,
        compose_command: List[str],
        project_dir: str,
        container_name: str,
        docker_client: Optional[DockerClient] = None,
    ):
        """Initialize StackManager for one compose project."""
        self.compose_command = list(compose_command)
        self.project_dir = project_dir
        self.container_name = container_name
        if docker_client is None:
            try:
                docker_client = docker.from_env()
            except (DockerException, RequestException) as e:
                raise LaunchError(f"Could not connect to the Docker daemon: {e}") from e
        self.docker = docker_client
        logger.info(
            f"[STACK] StackManager initialized for <{container_name}> "
            f"(compose: {' '.join(self.compose_command)}, project: {project_dir})"
        )

    def close(self):
        if self.docker:
            self.docker.close()

    def _compose(self, *args: str) -> None:
        """Run a compose subcommand in the project dir, streaming its output."""
        cmd = [*self.compose_command, *args]
        logger.info(f"[STACK] $ {' '.join(cmd)}")
        try:
            process = subprocess.Popen(
                cmd,
                cwd=self.project_dir,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
            )
        except OSError as e:
            raise LaunchError(f"Could not run '{' '.join(cmd)}': {e}") from e

        for line in process.stdout:
            line = line.rstrip()
            if line:
                logger.info(f"[STACK] {line}")
        exit_code = process.wait()

        if exit_code != 0:
            raise LaunchError(f"'{' '.join(cmd)}' failed with exit code {exit_code}")

    def build(self) -> None:
        """Build the image described by the generated Dockerfile."""
        logger.info("[STACK] Building image...")
        self._compose("build")

    def up(self) -> None:
        """Start the stack detached."""
        logger.info("[STACK] Starting the web stack...")
        self._compose("up", "-d")

    def _get_container(self) -> Container:
        return self.docker.containers.get(self.container_name)

    def _exec_best_effort(
        self,
        name: str,
        command: str,
        environment: Optional[Dict[str, str]] = None,
    ) -> StepOutcome:
        """
        Run a shell command as root inside the container.

        Failures are logged as warnings and returned, never raised.
        """
        try:
            container = self._get_container()
            exit_code, output = container.exec_run(
                ["bash", "-lc", command],
                user="0",
                environment=environment,
            )
            text = (output or b"").decode("utf-8", errors="replace").strip()
        except (DockerException, RequestException) as e:
            outcome = StepOutcome(name=name, ok=False, exit_code=-1, output=str(e))
            logger.warning(f"[STACK] <{self.container_name}> {name} could not run: {e}")
            return outcome

        outcome = StepOutcome(name=name, ok=exit_code == 0, exit_code=exit_code, output=text)
        if outcome.ok:
            logger.info(f"[STACK] <{self.container_name}> {name}: ok")
        else:
            logger.warning(
                f"[STACK] <{self.container_name}> {name} failed (exit code {exit_code}), "
                f"continuing: {text}"
            )
        return outcome

    def enable_password_auth(self) -> StepOutcome:
        return self._exec_best_effort("enable_password_auth", ENABLE_PASSWORD_AUTH_CMD)

    def restart_sshd(self) -> StepOutcome:
        return self._exec_best_effort("restart_sshd", RESTART_SSHD_CMD)

    def set_password(self, user: str, password: str) -> StepOutcome:
        return self._exec_best_effort(
            "set_password",
            SET_PASSWORD_CMD,
            environment={"WEBSTACK_USER": user, "WEBSTACK_PASSWORD": password},
        )

    def fix_home_ownership(self, user: str) -> StepOutcome:
        return self._exec_best_effort(
            "fix_home_ownership",
            f"chown -R {user}:{user} /home/{user}",
        )

    def post_start(self, user: str, password: str) -> List[StepOutcome]:
        """
        Apply the run-time adjustments the image cannot make at build time.

        Enables SSH password authentication, restarts sshd, sets the account
        password and fixes ownership of the bind-mounted home directory.
        """
        logger.info("[STACK] Enabling SSH password authentication and setting password...")
        return [
            self.enable_password_auth(),
            self.restart_sshd(),
            self.set_password(user, password),
            self.fix_home_ownership(user),
        ]

    def is_running(self, name: Optional[str] = None) -> bool:
        """
        Check whether a container with exactly this name is running.

        Raises:
            VerificationError: If the engine cannot list running containers
        """
        name = name or self.container_name
        try:
            containers = self.docker.containers.list(filters={"name": name, "status": "running"})
        except (DockerException, RequestException) as e:
            raise VerificationError(f"Could not list running containers: {e}") from e
        # the name filter matches substrings
        return any(container.name == name for container in containers)

