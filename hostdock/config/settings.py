"""Host-level settings: where apps, repositories and unit files live."""

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_APPS_ROOT = "~/prj/apps"
DEFAULT_GIT_ROOT = "~/prj/git"
USER_SYSTEMD_DIR = "~/.config/systemd/user"
SYSTEM_SYSTEMD_DIR = "/etc/systemd/system"


@dataclass
class Settings:
    """Filesystem layout and init-system mode for one host."""

    apps_root: Path
    git_root: Path
    systemd_dir: Path
    user_mode: bool = True

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        """Build settings from HOSTDOCK_* environment variables."""
        env = os.environ if environ is None else environ
        user_mode = env.get("HOSTDOCK_SYSTEM", "") not in ("1", "true", "yes")
        default_units = USER_SYSTEMD_DIR if user_mode else SYSTEM_SYSTEMD_DIR
        return cls(
            apps_root=Path(env.get("HOSTDOCK_APPS_ROOT", DEFAULT_APPS_ROOT)).expanduser(),
            git_root=Path(env.get("HOSTDOCK_GIT_ROOT", DEFAULT_GIT_ROOT)).expanduser(),
            systemd_dir=Path(env.get("HOSTDOCK_SYSTEMD_DIR", default_units)).expanduser(),
            user_mode=user_mode,
        )

    def app_dir(self, app: str) -> Path:
        return self.apps_root / app

    def repo_dir(self, app: str) -> Path:
        return self.git_root / f"{app}.git"

    def env_file(self, app: str) -> Path:
        return self.app_dir(app) / ".env"

    def config_file(self, app: str) -> Path:
        return self.app_dir(app) / "hostdock.yml"

    def lock_file(self, app: str) -> Path:
        return self.apps_root / ".locks" / f"{app}.lock"
