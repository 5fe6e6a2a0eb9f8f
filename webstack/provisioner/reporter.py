"""
Verification and summary reporting for the web stack.
"""

from typing import List, Optional

from webstack.models.config import StackConfig
from webstack.models.summary import PortMapping, StackSummary, StepOutcome
from webstack.provisioner import constants as c
from webstack.provisioner.artifacts import PASSIVE_CONTAINER_RANGE
from webstack.provisioner.errors import VerificationError
from webstack.utils.logging import FILE_ONLY, get_logger

logger = get_logger()

DOCKER_GROUP_NOTE = (
    "For Docker group permissions to take effect, log out and then back in "
    "or execute 'newgrp docker' without sudo."
)


def verify_running(manager, config: StackConfig) -> None:
    """
    Ask the engine once whether the configured container is running.

    Raises:
        VerificationError: If it is not in the running-container list
    """
    if not manager.is_running(config.container_name):
        raise VerificationError(
            f"Docker Ubuntu Server Web Stack setup did not complete successfully. "
            f"Container '{config.container_name}' is not running"
        )
    logger.info(f"[REPORT] Container <{config.container_name}> is running")


def build_summary(
    config: StackConfig,
    password: str,
    post_start: Optional[List[StepOutcome]] = None,
) -> StackSummary:
    ports = [
        PortMapping(label="SSH", host=str(config.ssh_port), container=str(c.CONTAINER_SSH_PORT)),
        PortMapping(label="HTTP", host=str(config.http_port), container=str(c.CONTAINER_HTTP_PORT)),
        PortMapping(label="FTP", host=str(config.ftp_port), container=str(c.CONTAINER_FTP_PORT)),
        PortMapping(
            label="FTP passive",
            host=f"{config.ftp_passive_start}-{config.ftp_passive_end}",
            container=PASSIVE_CONTAINER_RANGE,
        ),
    ]
    return StackSummary(
        container_name=config.container_name,
        image_name=config.image_name,
        ssh_user=config.ssh_user,
        ssh_password=password,
        ports=ports,
        webroot_dir=config.webroot_dir,
        home_dir=f"{config.home_dir}/{config.ssh_user}",
        ssh_port=config.ssh_port,
        http_port=config.http_port,
        ftp_port=config.ftp_port,
        post_start=post_start or [],
    )


def report(summary: StackSummary, console=None) -> None:
    """Print the summary to the console and mirror it into the log."""
    text = summary.render()
    # the console copy is printed below; only the run log gets these lines
    extra = FILE_ONLY if console is not None else None
    for line in text.splitlines():
        logger.info(f"[REPORT] {line}", extra=extra)

    failed = [step.name for step in summary.post_start if not step.ok]
    if failed:
        logger.warning(f"[REPORT] Post-start steps that did not succeed: {', '.join(failed)}")

    if console is not None:
        console.print("[bold blue]**IMPORTANT**[/]: Note, copy and save the following details")
        console.print(text, markup=False, highlight=False, soft_wrap=True)
        console.print(f"**[bold blue]NOTE[/]**: {DOCKER_GROUP_NOTE}")
