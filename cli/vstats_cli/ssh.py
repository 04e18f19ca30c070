from __future__ import annotations

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass

from vstats_client import DeploymentError, SshNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_SSH_USER = "root"


@dataclass
class SshTarget:
    host: str
    user: str = DEFAULT_SSH_USER
    port: int | None = None
    key_path: str | None = None

    @property
    def destination(self) -> str:
        if self.user:
            return f"{self.user}@{self.host}"
        return self.host


def parse_ssh_host(host_arg: str) -> tuple[str, str]:
    """Split ``user@host``; a bare host (or ~/.ssh/config alias) yields an empty user."""
    if "@" in host_arg:
        user, host = host_arg.split("@", 1)
        return user, host
    return "", host_arg


def resolve_target(
        host_arg: str,
        *,
        user: str | None = None,
        port: int | None = None,
        key_path: str | None = None,
) -> SshTarget:
    parsed_user, host = parse_ssh_host(host_arg)
    return SshTarget(
        host=host,
        user=user or parsed_user or DEFAULT_SSH_USER,
        port=port or None,
        key_path=os.path.expanduser(key_path) if key_path else None,
    )


def build_ssh_args(target: SshTarget) -> list[str]:
    args: list[str] = []
    if target.port:
        args += ["-p", str(target.port)]
    if target.key_path:
        args += ["-i", target.key_path]
    args.append(target.destination)
    return args


def run_ssh_command(ssh_args: list[str], command: str) -> None:
    """Run ``command`` on the remote side with the terminal attached to the ssh child."""
    ssh_path = shutil.which("ssh")
    if not ssh_path:
        raise SshNotFoundError()

    cmd = [ssh_path, *ssh_args, command]
    logger.debug("running %s", " ".join(cmd[:-1]))
    try:
        res = subprocess.run(cmd, check=False)
    except OSError as e:
        raise DeploymentError(f"deployment failed: {e}") from e
    if res.returncode != 0:
        cause = subprocess.CalledProcessError(res.returncode, cmd[:-1])
        raise DeploymentError(f"deployment failed: ssh exited with status {res.returncode}") from cause
