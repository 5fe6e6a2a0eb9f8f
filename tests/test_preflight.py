import subprocess
from unittest.mock import Mock

import pytest

from webstack.provisioner import preflight
from webstack.provisioner.errors import ConsentError, EngineError


class FakeRun:
    """Replaces subprocess.run; answers by command prefix and records calls."""

    def __init__(self, answers=None, default=0):
        self.answers = answers or {}
        self.default = default
        self.calls = []

    def __call__(self, cmd, input=None, **kwargs):
        self.calls.append((list(cmd), input))
        for prefix, answer in self.answers.items():
            if tuple(cmd[: len(prefix)]) == prefix:
                if callable(answer):
                    answer = answer()
                returncode, stdout = answer
                return subprocess.CompletedProcess(cmd, returncode, stdout=stdout, stderr="boom")
        return subprocess.CompletedProcess(cmd, self.default, stdout="", stderr="")

    def commands(self):
        return [cmd for cmd, _ in self.calls]


@pytest.mark.parametrize("answer", ["y", "Y", " y", "Y \n"])
def test_confirm_proceeds(answer):
    assert preflight.confirm(answer) is True


@pytest.mark.parametrize("answer", ["n", "N", "", None, "  ", " n\n"])
def test_confirm_declines(answer):
    assert preflight.confirm(answer) is False


@pytest.mark.parametrize("answer", ["yes", "no", "y y", "q", "1"])
def test_confirm_rejects_unknown_options(answer):
    with pytest.raises(ConsentError) as exc_info:
        preflight.confirm(answer)
    assert "is an incorrect option" in str(exc_info.value)


def test_detect_compose_prefers_plugin(monkeypatch):
    fake = FakeRun()
    monkeypatch.setattr(preflight.subprocess, "run", fake)

    assert preflight.detect_compose() == ["docker", "compose"]
    assert fake.commands() == [["docker", "compose", "version"]]


def test_detect_compose_falls_back_to_standalone(monkeypatch):
    monkeypatch.setattr(preflight.subprocess, "run", FakeRun(default=1))
    monkeypatch.setattr(preflight, "need_cmd", lambda name: name == "docker-compose")

    assert preflight.detect_compose() == ["docker-compose"]


def test_detect_compose_missing_is_fatal(monkeypatch):
    monkeypatch.setattr(preflight.subprocess, "run", FakeRun(default=1))
    monkeypatch.setattr(preflight, "need_cmd", lambda name: False)

    with pytest.raises(EngineError) as exc_info:
        preflight.detect_compose()
    assert "Docker Compose is not installed" in str(exc_info.value)


def test_ensure_service_leaves_running_engine_alone(monkeypatch):
    fake = FakeRun()
    monkeypatch.setattr(preflight.subprocess, "run", fake)

    preflight.ensure_service()
    assert not any(cmd[:2] == ["systemctl", "start"] for cmd in fake.commands())


def test_ensure_service_starts_inactive_engine(monkeypatch):
    states = iter([(3, ""), (0, "")])
    fake = FakeRun(answers={("systemctl", "is-active"): lambda: next(states)})
    monkeypatch.setattr(preflight.subprocess, "run", fake)
    monkeypatch.setattr(preflight, "is_root", lambda: True)

    preflight.ensure_service()
    assert ["systemctl", "start", "docker"] in fake.commands()


def test_ensure_service_start_failure_is_fatal(monkeypatch):
    fake = FakeRun(answers={("systemctl", "is-active"): (3, ""), ("systemctl", "start"): (1, "")})
    monkeypatch.setattr(preflight.subprocess, "run", fake)
    monkeypatch.setattr(preflight, "is_root", lambda: True)

    with pytest.raises(EngineError) as exc_info:
        preflight.ensure_service()
    assert "Failed to start Docker Engine" in str(exc_info.value)


def test_ensure_service_still_inactive_is_fatal(monkeypatch):
    fake = FakeRun(answers={("systemctl", "is-active"): (3, "")})
    monkeypatch.setattr(preflight.subprocess, "run", fake)
    monkeypatch.setattr(preflight, "is_root", lambda: True)

    with pytest.raises(EngineError) as exc_info:
        preflight.ensure_service()
    assert "Unable to start Docker Engine service" in str(exc_info.value)


def test_install_requires_privilege(monkeypatch, config):
    fake = FakeRun()
    monkeypatch.setattr(preflight.subprocess, "run", fake)
    monkeypatch.setattr(preflight, "is_root", lambda: False)
    monkeypatch.setattr(preflight, "need_cmd", lambda name: False)

    with pytest.raises(EngineError) as exc_info:
        preflight.install_docker(config)
    assert "Sudo is required" in str(exc_info.value)
    assert fake.calls == []


def test_install_docker_as_root(monkeypatch, config):
    fake = FakeRun(answers={("dpkg", "--print-architecture"): (0, "amd64\n")})
    monkeypatch.setattr(preflight.subprocess, "run", fake)
    monkeypatch.setattr(preflight, "is_root", lambda: True)
    monkeypatch.setattr(preflight, "read_os_release", lambda: {"VERSION_CODENAME": "noble"})
    response = Mock(text="-----BEGIN PGP PUBLIC KEY BLOCK-----")
    get = Mock(return_value=response)
    monkeypatch.setattr(preflight.requests, "get", get)

    preflight.install_docker(config)

    commands = fake.commands()
    assert ["install", "-m", "0755", "-d", "/etc/apt/keyrings"] in commands
    assert ["apt-get", "install", "-y", "docker-ce", "docker-ce-cli", "containerd.io",
            "docker-buildx-plugin", "docker-compose-plugin"] in commands
    assert ["usermod", "-aG", "docker", "alice"] in commands
    get.assert_called_once_with("https://download.docker.com/linux/ubuntu/gpg", timeout=30)

    tee_inputs = {cmd[1]: data for cmd, data in fake.calls if cmd[0] == "tee"}
    assert tee_inputs["/etc/apt/keyrings/docker.asc"].startswith("-----BEGIN PGP")
    assert tee_inputs["/etc/apt/sources.list.d/docker.list"] == (
        "deb [arch=amd64 signed-by=/etc/apt/keyrings/docker.asc] "
        "https://download.docker.com/linux/ubuntu noble stable\n"
    )


def test_install_docker_uses_sudo_when_not_root(monkeypatch, config):
    fake = FakeRun(answers={("dpkg", "--print-architecture"): (0, "arm64\n")})
    monkeypatch.setattr(preflight.subprocess, "run", fake)
    monkeypatch.setattr(preflight, "is_root", lambda: False)
    monkeypatch.setattr(preflight, "need_cmd", lambda name: name == "sudo")
    monkeypatch.setattr(preflight, "read_os_release", lambda: {"UBUNTU_CODENAME": "jammy"})
    monkeypatch.setattr(preflight.requests, "get", Mock(return_value=Mock(text="key")))

    preflight.install_docker(config)

    commands = fake.commands()
    assert ["sudo", "apt-get", "update", "-y"] in commands
    assert ["dpkg", "--print-architecture"] in commands


def test_install_failure_is_fatal(monkeypatch, config):
    fake = FakeRun(answers={("apt-get", "update"): (100, "")})
    monkeypatch.setattr(preflight.subprocess, "run", fake)
    monkeypatch.setattr(preflight, "is_root", lambda: True)

    with pytest.raises(EngineError) as exc_info:
        preflight.install_docker(config)
    assert "apt update failed" in str(exc_info.value)
    assert len(fake.calls) == 1


def test_ensure_engine_skips_install_when_docker_present(monkeypatch, config):
    install = Mock()
    monkeypatch.setattr(preflight, "need_cmd", lambda name: name == "docker")
    monkeypatch.setattr(preflight, "install_docker", install)
    monkeypatch.setattr(preflight, "ensure_service", Mock())
    monkeypatch.setattr(preflight, "detect_compose", Mock(return_value=["docker", "compose"]))

    assert preflight.ensure_engine(config) == ["docker", "compose"]
    install.assert_not_called()


def test_ensure_engine_installs_when_docker_missing(monkeypatch, config):
    install = Mock()
    monkeypatch.setattr(preflight, "need_cmd", lambda name: False)
    monkeypatch.setattr(preflight, "install_docker", install)
    monkeypatch.setattr(preflight, "ensure_service", Mock())
    monkeypatch.setattr(preflight, "detect_compose", Mock(return_value=["docker-compose"]))

    assert preflight.ensure_engine(config) == ["docker-compose"]
    install.assert_called_once_with(config)


def test_read_os_release(tmp_path):
    os_release = tmp_path / "os-release"
    os_release.write_text('NAME="Ubuntu"\nVERSION_CODENAME=noble\n# comment\nUBUNTU_CODENAME=noble\n')

    values = preflight.read_os_release(str(os_release))
    assert values["NAME"] == "Ubuntu"
    assert values["UBUNTU_CODENAME"] == "noble"
