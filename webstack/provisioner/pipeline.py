"""
Provisioning pipeline for the Docker Ubuntu Server Web Stack.

Stages run strictly in order:
    INIT -> CONSENT -> ENGINE_READY -> ARTIFACTS_WRITTEN -> PROVISIONED
         -> LAUNCHED -> VERIFIED

Any ProvisionError aborts the run. Post-start adjustments inside the
container are best-effort and only logged.
"""

from typing import Callable, List, Optional

from webstack.models.config import StackConfig
from webstack.models.summary import ProvisionStage, StackSummary
from webstack.provisioner import artifacts, credentials, preflight, reporter
from webstack.provisioner.constants import TOTAL_STEPS
from webstack.provisioner.errors import ProvisionError
from webstack.provisioner.stack_manager import StackManager
from webstack.utils.logging import get_logger

logger = get_logger()


def _default_manager_factory(compose_command: List[str], config: StackConfig) -> StackManager:
    return StackManager(
        compose_command=compose_command,
        project_dir=config.project_dir,
        container_name=config.container_name,
    )


class StackProvisioner:
    """Runs one provisioning pass for a single StackConfig."""

    def __init__(
        self,
        config: StackConfig,
        *,
        engine_check: Optional[Callable[[StackConfig], List[str]]] = None,
        manager_factory: Optional[Callable[[List[str], StackConfig], StackManager]] = None,
        password_generator: Optional[Callable[[], str]] = None,
        console=None,
        on_consent: Optional[Callable[[], None]] = None,
    ):
        self.config = config
        self.engine_check = engine_check or preflight.ensure_engine
        self.manager_factory = manager_factory or _default_manager_factory
        self.password_generator = password_generator or credentials.generate_password
        self.console = console
        self.on_consent = on_consent
        self.stage = ProvisionStage.INIT

    def _step(self, number: int, message: str):
        logger.info(f"[{number}/{TOTAL_STEPS}] {message}")

    def _advance(self, stage: ProvisionStage):
        self.stage = stage
        logger.debug(f"Stage -> {stage.value}")

    def run(self, response: Optional[str]) -> Optional[StackSummary]:
        """
        Execute the pipeline.

        Args:
            response: The operator's answer to the confirmation prompt

        Returns:
            The connection summary, or None if the operator declined

        Raises:
            ProvisionError: On any fatal failure; `stage` is set to FAILED
        """
        try:
            return self._run(response)
        except ProvisionError as e:
            if e.stage is None:
                e.stage = self.stage.value
            self.stage = ProvisionStage.FAILED
            raise

    def _run(self, response: Optional[str]) -> Optional[StackSummary]:
        config = self.config

        if not preflight.confirm(response):
            logger.info(f"User '{config.invoking_user}' opted to terminate script execution.")
            self._advance(ProvisionStage.DECLINED)
            return None
        logger.info("Script will proceed with execution.")
        self._advance(ProvisionStage.CONSENT)
        if self.on_consent is not None:
            self.on_consent()

        self._step(1, "Confirming Docker Engine, Compose, Plugins & Dependencies Installed...")
        compose_command = self.engine_check(config)
        self._advance(ProvisionStage.ENGINE_READY)

        self._step(2, "Creating Dockerfile, vsftpd, supervisord, index.html and compose.yml...")
        artifacts.write_artifacts(config)
        self._advance(ProvisionStage.ARTIFACTS_WRITTEN)

        self._step(3, "Handling SSH Credentials...")
        password = credentials.resolve_password(config, generator=self.password_generator)
        self._advance(ProvisionStage.PROVISIONED)

        self._step(4, "Building image & starting the web stack...")
        manager = self.manager_factory(compose_command, config)
        try:
            manager.build()
            manager.up()
            post_start = manager.post_start(config.ssh_user, password)
            self._advance(ProvisionStage.LAUNCHED)

            self._step(5, "Verifying the web stack is running...")
            reporter.verify_running(manager, config)
        finally:
            manager.close()

        summary = reporter.build_summary(config, password, post_start)
        self._advance(ProvisionStage.VERIFIED)
        logger.info("Docker Ubuntu Server Web Stack Setup Completed!")
        reporter.report(summary, console=self.console)
        return summary
