"""
Run state and result models for the web stack provisioner.
"""

from enum import Enum
from typing import List
from pydantic import BaseModel, Field


class ProvisionStage(str, Enum):
    """Stages of a provisioning run, in execution order."""
    INIT = "init"
    CONSENT = "consent"
    ENGINE_READY = "engine_ready"
    ARTIFACTS_WRITTEN = "artifacts_written"
    PROVISIONED = "provisioned"
    LAUNCHED = "launched"
    VERIFIED = "verified"
    DECLINED = "declined"
    FAILED = "failed"


class StepOutcome(BaseModel):
    """Result of a best-effort step run inside the container."""
    name: str = Field(description="Short name of the step")
    ok: bool = Field(description="Whether the step succeeded")
    exit_code: int = Field(default=0, description="Exit code of the exec, -1 if it never ran")
    output: str = Field(default="", description="Combined stdout/stderr or error text")


class PortMapping(BaseModel):
    """One host to container port (or port range) mapping."""
    label: str
    host: str
    container: str

    @property
    def compose_entry(self) -> str:
        return f"{self.host}:{self.container}"


class StackSummary(BaseModel):
    """Connection details printed at the end of a successful run."""
    container_name: str
    image_name: str
    ssh_user: str
    ssh_password: str = Field(repr=False)
    ports: List[PortMapping]
    webroot_dir: str
    home_dir: str
    ssh_port: int
    http_port: int
    ftp_port: int
    post_start: List[StepOutcome] = Field(default_factory=list)

    def render(self) -> str:
        """Render the fixed-format summary block."""
        lines = [
            "=" * 42,
            f"Container name: {self.container_name}",
            f"Image: {self.image_name}",
            f"SSH user: {self.ssh_user}",
            f"SSH password: {self.ssh_password}",
            "Host ports -> Container ports:",
        ]
        for port in self.ports:
            lines.append(f"  {port.label:<5} {port.host} -> {port.container}")
        lines.extend([
            f"Web root: {self.webroot_dir}",
            f"Home dir: {self.home_dir}",
            f"Try:  ssh -p {self.ssh_port} {self.ssh_user}@localhost",
            f"HTTP:  http://localhost:{self.http_port}/",
            f"FTP:   ftp -p localhost {self.ftp_port}",
            "=" * 42,
        ])
        return "\n".join(lines)
