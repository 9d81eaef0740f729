"""Resolved settings of one local AEM instance."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

import requests

from ..exceptions import SupervisionFailure
from ..http import create_session
from ..process import is_windows

logger = logging.getLogger(__name__)

# Control surface calls of the lifecycle operations time out after ten seconds.
INSTANCE_TIMEOUTS = (10.0, 10.0)


def quickstart_jar(directory: Path) -> str:
    """Name of the single ``*.jar`` in ``directory``."""
    jars = sorted(p.name for p in directory.glob("*.jar")) if directory.is_dir() else []
    if not jars:
        raise SupervisionFailure(f"No jar file was found in the AEM directory {directory}.")
    if len(jars) > 1:
        raise SupervisionFailure(
            f"Unable to determine the jar file, more than one jar file was found in the AEM directory "
            f"{directory}: {', '.join(jars)}."
        )
    return jars[0]


@dataclass(frozen=True)
class InstanceSettings:
    type: str = "author"
    http_port: int = 4502
    debug_port: int = 30303
    debug_enabled: bool = True
    base_url: str = "http://localhost"
    context_path: str = ""
    admin_user: str = "admin"
    admin_password: str = "admin"
    java_home: Optional[Path] = None
    work_dir: Path = Path("target/aem")
    use_control_port: bool = True

    startup_wait_minutes: float = 2
    heap_size: str = "2048M"
    run_modes: Tuple[str, ...] = ()
    vm_options: Tuple[str, ...] = ()
    keep_following_output: bool = True
    silent: bool = False
    startup_grace_seconds: float = 5

    shutdown_wait_minutes: float = 2
    shutdown_grace_seconds: float = 5

    kill_grace_seconds: float = 5
    listing_timeout_seconds: float = 10
    listers: Tuple[str, ...] = ("jps", "psutil", "native")

    init_wait_minutes: float = 2
    init_grace_seconds: float = 5
    ignore_bundles: Tuple[str, ...] = ()
    stable_seconds: float = 16

    logfiles: Tuple[str, ...] = ("logs/error.log",)
    keep_following_logs: bool = True

    log: logging.Logger = field(default=logger, compare=False, repr=False)

    @classmethod
    def from_config(cls, repo_root: Optional[Path] = None) -> "InstanceSettings":
        from ..config import (
            FollowConfig,
            InitializationConfig,
            InstanceConfig,
            KillConfig,
            ShutdownConfig,
            StartupConfig,
        )

        instance = InstanceConfig(repo_root)
        startup = StartupConfig(repo_root)
        shutdown = ShutdownConfig(repo_root)
        kill = KillConfig(repo_root)
        init = InitializationConfig(repo_root)
        follow = FollowConfig(repo_root)
        return cls(
            type=instance.type,
            http_port=instance.http_port,
            debug_port=instance.debug_port,
            debug_enabled=instance.debug_enabled,
            base_url=instance.base_url,
            context_path=instance.context_path,
            admin_user=instance.admin_user,
            admin_password=instance.admin_password,
            java_home=instance.java_home,
            work_dir=instance.work_dir,
            use_control_port=instance.use_control_port,
            startup_wait_minutes=startup.wait_minutes,
            heap_size=startup.heap_size,
            run_modes=tuple(startup.run_modes),
            vm_options=tuple(startup.vm_options),
            keep_following_output=startup.keep_following_output,
            silent=startup.silent,
            startup_grace_seconds=startup.grace_period_seconds,
            shutdown_wait_minutes=shutdown.wait_minutes,
            shutdown_grace_seconds=shutdown.grace_period_seconds,
            kill_grace_seconds=kill.grace_period_seconds,
            listing_timeout_seconds=kill.listing_timeout_seconds,
            listers=tuple(kill.listers),
            init_wait_minutes=init.wait_minutes,
            init_grace_seconds=init.grace_period_seconds,
            ignore_bundles=tuple(init.ignore_bundles),
            stable_seconds=init.stable_seconds,
            logfiles=tuple(follow.logfiles),
            keep_following_logs=follow.keep_following,
        )

    @property
    def server_uri(self) -> str:
        return f"{self.base_url.rstrip('/')}:{self.http_port}{self.context_path}"

    @property
    def credentials(self) -> Tuple[str, str]:
        return (self.admin_user, self.admin_password)

    @property
    def instance_dir(self) -> Path:
        return Path(self.work_dir) / self.type

    @property
    def crx_quickstart_dir(self) -> Path:
        return self.instance_dir / "crx-quickstart"

    def require_instance_dir(self) -> Path:
        directory = self.instance_dir
        if not directory.exists():
            raise SupervisionFailure(
                f"The AEM working directory {directory} does not exist - an AEM quickstart jar must be "
                f"placed in this directory before the instance can be started."
            )
        return directory

    def is_installed(self) -> bool:
        return (self.crx_quickstart_dir / "bin").exists()

    @property
    def java_executable(self) -> str:
        # javaw starts a console-independent process that survives the console closing.
        name = "javaw" if is_windows() else "java"
        if self.java_home is None:
            return name
        return str(Path(self.java_home) / "bin" / name)

    def session(self) -> requests.Session:
        return create_session(self.credentials, INSTANCE_TIMEOUTS)

    def url(self, path: str) -> str:
        return self.server_uri + path


__all__ = ["InstanceSettings", "quickstart_jar", "INSTANCE_TIMEOUTS"]
