"""Shared pytest fixtures for all test modules."""

import os
import subprocess
import sys

import httpx
import pytest
import yaml

from hostdock.config import Settings
from hostdock.deploy.context import HostContext

PROJECT_ROOT = os.path.normpath(os.path.join(os.path.dirname(__file__), ".."))


@pytest.fixture(scope="session")
def project_root():
    """Absolute path to the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def run_cli(project_root, settings):
    """Return a callable that invokes the hostdock CLI as a subprocess."""

    def _run(*args):
        env = dict(os.environ)
        env.update(
            HOSTDOCK_APPS_ROOT=str(settings.apps_root),
            HOSTDOCK_GIT_ROOT=str(settings.git_root),
            HOSTDOCK_SYSTEMD_DIR=str(settings.systemd_dir),
        )
        result = subprocess.run(
            [sys.executable, "-m", "hostdock.hostdock", *args],
            capture_output=True,
            text=True,
            cwd=project_root,
            env=env,
        )
        return result.returncode, result.stdout, result.stderr

    return _run


# ── Unit-test fixtures ──────────────────────────────────────────────


class FakeRunner:
    """Recording stand-in for run_cmd.

    Every command succeeds with empty output unless a response was
    registered for a prefix of it; the most recently registered match wins.
    ``systemctl is-active`` reports inactive by default.
    """

    def __init__(self):
        self.calls = []
        self._responses = []
        self.respond(["systemctl", "--user", "is-active"], rc=3, stdout="inactive\n")

    def respond(self, prefix, rc=0, stdout="", stderr=""):
        self._responses.insert(0, (list(prefix), (rc, stdout, stderr)))

    async def __call__(self, command, cwd=None, timeout=None, log_output=False, env=None):
        command = list(command)
        self.calls.append(command)
        for prefix, result in self._responses:
            if command[: len(prefix)] == prefix:
                return result
        return 0, "", ""

    def find(self, *prefix):
        """Recorded commands starting with *prefix*."""
        return [c for c in self.calls if c[: len(prefix)] == list(prefix)]

    def index(self, *prefix):
        """Position of the first recorded command starting with *prefix*."""
        for i, c in enumerate(self.calls):
            if c[: len(prefix)] == list(prefix):
                return i
        raise AssertionError(f"no call starting with {prefix!r}")

    def systemctl(self, *args):
        return self.find("systemctl", "--user", *args)


async def no_sleep(_seconds):
    return None


def healthy_handler(request):
    return httpx.Response(200, text="ok")


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def settings(tmp_path):
    s = Settings(
        apps_root=tmp_path / "apps",
        git_root=tmp_path / "git",
        systemd_dir=tmp_path / "units",
    )
    s.apps_root.mkdir()
    s.git_root.mkdir()
    s.systemd_dir.mkdir()
    return s


@pytest.fixture
def ctx(settings, runner):
    return HostContext(
        settings=settings,
        run_cmd=runner,
        sleep=no_sleep,
        http_transport=httpx.MockTransport(healthy_handler),
    )


@pytest.fixture
def demo_app(settings):
    """App 'demo' as left behind by init: directory, hostdock.yml and git repo."""
    app_dir = settings.app_dir("demo")
    app_dir.mkdir()
    config = {
        "app": "demo",
        "image": "registry.example.com/demo",
        "domain": "demo.example.com",
        "service_port": 3000,
        "health": {"url": "http://localhost:3000/up", "interval": "1s", "timeout": "5s"},
        "migrations": {"command": ["bin/rails", "db:migrate"], "env": {"RAILS_ENV": "production"}},
    }
    with open(settings.config_file("demo"), "w") as f:
        yaml.safe_dump(config, f)
    settings.env_file("demo").write_text("RAILS_MASTER_KEY=0123456789abcdef\n")
    repo = settings.repo_dir("demo")
    repo.mkdir()
    (repo / "HEAD").write_text("ref: refs/heads/master\n")
    return app_dir


@pytest.fixture
def fake_export(monkeypatch, tmp_path):
    """Replace the git export with a tree holding a Dockerfile and an optional Procfile.

    Set ``fake_export.procfile`` to the Procfile text to ship, or None.
    """

    class _Export:
        procfile = None
        exported = []

    state = _Export()

    async def _export(repo_dir, sha, base=None, dry_run=False):
        tree = tmp_path / f"export-{len(state.exported)}"
        tree.mkdir()
        (tree / "Dockerfile").write_text("FROM ruby:3.3\n")
        if state.procfile is not None:
            (tree / "Procfile").write_text(state.procfile)
        state.exported.append(tree)
        return tree

    monkeypatch.setattr("hostdock.deploy.pipeline.export_commit", _export)
    return state
