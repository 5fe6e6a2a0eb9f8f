#!/usr/bin/env python3
"""
Provision the Docker Ubuntu Server Web Stack.

Installs Docker Engine if needed, writes a Dockerfile, vsftpd.conf,
supervisord.conf, index.html and compose.yml into a project folder, builds
and starts one container running OpenSSH, Apache and vsftpd, and prints the
connection details.

Usage:
    sudo webstack
    sudo SSH_PASSWORD=changeme WEBSTACK_SSH_PORT=2200 webstack
    sudo webstack --env-file ./webstack.env

Once finished, log in via SSH/FTP on the mapped ports, e.g.:
    ssh -p 2222 webstackuser@<container_ip>
"""

import traceback
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console

from webstack.models.config import StackConfig
from webstack.provisioner.constants import EXIT_FAILURE, EXIT_INTERRUPTED
from webstack.provisioner.errors import ProvisionError
from webstack.provisioner.pipeline import StackProvisioner
from webstack.utils import logging as webstack_logging
from webstack.utils.logging import get_logger

logger = get_logger()
console = Console(log_time_format="[%Y-%m-%d %H:%M:%S]")

app = typer.Typer(add_completion=False, help="Provision the Docker Ubuntu Server Web Stack.")

PROMPT = "Do you want to proceed - No or Yes? (n/N/y/Y): "


def _banner():
    console.print()
    console.print("*" * 58)
    console.print("              [bold blue]Docker Ubuntu Server Web Stack[/]")
    console.print("*" * 58)
    console.print()
    console.print(
        "**[bold red]IMPORTANT[/]:** Ensure host OS is up to date and critical data "
        "backed up before executing this script!"
    )
    console.print()


def _ask() -> str:
    try:
        return console.input(PROMPT)
    except EOFError:
        return ""


@app.command()
def main(
    env_file: Optional[Path] = typer.Option(
        None,
        "--env-file",
        help="Load configuration overrides (SSH_PASSWORD, WEBSTACK_*) from this dotenv file.",
        exists=True,
        dir_okay=False,
    ),
):
    """Build and start the SSH + Apache + vsftpd container."""
    if env_file is not None:
        load_dotenv(env_file)
    else:
        load_dotenv()

    try:
        config = StackConfig.from_env()
    except ProvisionError as e:
        logger.error(f"ERROR: {e}")
        raise typer.Exit(code=EXIT_FAILURE)

    provisioner = StackProvisioner(
        config,
        console=console,
        on_consent=lambda: webstack_logging.attach_log_file(config.log_dir),
    )

    _banner()
    try:
        provisioner.run(_ask())
    except ProvisionError as e:
        logger.error(f"ERROR: {e}")
        if webstack_logging.log_file_path:
            logger.error(f"See log: {webstack_logging.log_file_path}")
        raise typer.Exit(code=EXIT_FAILURE)
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        raise typer.Exit(code=EXIT_INTERRUPTED)
    except Exception as e:
        logger.error(
            f"[FATAL] An unexpected error occurred: {e}. "
            f"See log: {webstack_logging.log_file_path}\n{traceback.format_exc()}"
        )
        raise typer.Exit(code=EXIT_FAILURE)


if __name__ == "__main__":
    app()
