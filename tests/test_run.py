"""
Tests for the run use case — full bootstrap against mock adapters.
"""

import json
import textwrap
from pathlib import Path

from devbootstrap.adapters.mock import MockAdapter
from devbootstrap.adapters.registry import AdapterRegistry, default_registry
from devbootstrap.adapters.shell.filesystem import FilesystemAdapter
from devbootstrap.core.use_cases.run import run_bootstrap

LISTING = textwrap.dedent("""\
                   |     | 21.0.4       | tem     | installed  | 21.0.4-tem
                   |     | 21.0.3       | tem     | installed  | 21.0.3-tem
                   |     | 17.0.12      | tem     | installed  | 17.0.12-tem
""")


def _call(mock: MockAdapter, action_id: str):
    return next(ctx for ctx in mock.call_log if ctx.action.id == action_id)


class TestLinuxRun:
    def test_success(self, mock_registry, mock, environ, home):
        lines: list[str] = []
        result = run_bootstrap(
            registry=mock_registry, environ=environ, kernel="Linux", announce=lines.append,
        )
        assert result.ok
        assert result.exit_code == 0
        assert lines[:2] == ["Detected OS: linux", f"Using zsh config: {home / '.zshrc'}"]
        assert (home / ".zshrc").is_file()

    def test_order(self, mock_registry, mock, environ):
        run_bootstrap(registry=mock_registry, environ=environ, kernel="Linux")
        ids = mock.action_ids
        assert ids[:2] == ["apt:update", "apt:packages"]
        assert ids.index("rbenv:sanity") < ids.index("sdkman:install")
        assert ids.index("sdkman:sanity") < ids.index("nvm:install-nvm")
        assert ids[-1] == "nvm:corepack"

    def test_apt_uses_sudo(self, mock_registry, mock, environ):
        run_bootstrap(registry=mock_registry, environ=environ, kernel="Linux")
        params = _call(mock, "apt:packages").params
        assert params["sudo"] is True
        assert params["argv"][:3] == ["apt", "install", "-y"]
        assert "libyaml-dev" in params["argv"]

    def test_exports_reach_later_steps(self, mock_registry, mock, environ, home):
        run_bootstrap(registry=mock_registry, environ=environ, kernel="Linux")
        env = _call(mock, "sdkman:install").env
        assert env.get("SDKMAN_DIR") == str(home / ".sdkman")
        assert env.get("SDKMAN_OFFLINE_MODE") == "false"
        assert _call(mock, "nvm:install").env.get("NVM_DIR") == str(home / ".nvm")

    def test_existing_env_var_not_overridden(self, mock_registry, mock, environ):
        environ["SDKMAN_OFFLINE_MODE"] = "true"
        run_bootstrap(registry=mock_registry, environ=environ, kernel="Linux")
        assert _call(mock, "sdkman:install").env.get("SDKMAN_OFFLINE_MODE") == "true"

    def test_activation_env_is_merged(self, mock_registry, mock, environ):
        dump = dict(environ, NVM_BIN="/nvm/bin", PATH=f"/nvm/bin:{environ['PATH']}")
        mock.set_output("nvm:activate", json.dumps(dump))
        result = run_bootstrap(registry=mock_registry, environ=environ, kernel="Linux")
        assert result.env.get("NVM_BIN") == "/nvm/bin"
        assert _call(mock, "nvm:install").env.get("PATH").startswith("/nvm/bin:")


class TestUnsupportedOs:
    def test_skips_platform_packages(self, mock_registry, mock, environ):
        result = run_bootstrap(registry=mock_registry, environ=environ, kernel="FreeBSD")
        assert result.ok
        assert result.env.os_tag == "unsupported"
        assert mock.action_ids[0] == "rbenv:clone"
        assert not any(i.startswith(("apt:", "brew:", "clt:")) for i in mock.action_ids)


class TestMacRun:
    def _config(self, tmp_path: Path) -> Path:
        config = tmp_path / "bootstrap.yml"
        config.write_text("toolchain_poll_attempts: 2\ntoolchain_poll_interval: 0\n")
        return config

    def test_toolchain_present(self, mock_registry, mock, environ):
        result = run_bootstrap(registry=mock_registry, environ=environ, kernel="Darwin")
        assert result.ok
        ids = mock.action_ids
        assert ids[0] == "clt:probe"
        assert "clt:install" not in ids
        assert "brew:install" in ids
        assert _call(mock, "brew:packages").params["argv"][:2] == ["brew", "install"]
        assert "rbenv:sdkroot" in ids

    def test_toolchain_wait_gives_up(self, mock_registry, mock, environ, tmp_path):
        mock.set_failure("clt:probe")
        lines: list[str] = []
        result = run_bootstrap(
            config_path=self._config(tmp_path),
            registry=mock_registry,
            environ=environ,
            kernel="Darwin",
            announce=lines.append,
        )
        assert result.ok
        assert mock.action_ids.count("clt:probe") == 3
        assert mock.action_ids.count("clt:install") == 1
        assert "Installing Xcode Command Line Tools..." in lines
        assert result.report.step_receipts["clt:ensure"].metadata["timed_out"] is True


class TestFailures:
    def test_sanity_check_aborts(self, mock_registry, mock, environ, home):
        mock.set_failure("sdkman:sanity")
        result = run_bootstrap(registry=mock_registry, environ=environ, kernel="Linux")
        assert not result.ok
        assert result.exit_code == 1
        assert result.failed_step == "sdkman:sanity"
        assert result.error == (
            f"ERROR: SDKMAN didn't load 'sdk'. Check {home}/.sdkman/bin/sdkman-init.sh"
        )
        assert result.hint.startswith("Tip:")
        assert not any(i.startswith("sdkman:install:") for i in mock.action_ids)
        assert not any(i.startswith("nvm:") for i in mock.action_ids)

    def test_package_failure_propagates_status(self, mock_registry, mock, environ):
        mock.set_failure("apt:update", return_code=100)
        result = run_bootstrap(registry=mock_registry, environ=environ, kernel="Linux")
        assert result.exit_code == 100
        assert result.failed_step == "apt:update"
        assert "apt:packages" not in mock.action_ids

    def test_ruby_version_failure_continues(self, mock_registry, mock, environ):
        mock.set_failure("rbenv:install:3.3.4")
        result = run_bootstrap(registry=mock_registry, environ=environ, kernel="Linux")
        assert result.ok
        assert result.report.failed_steps == ["rbenv:install:3.3.4"]
        assert _call(mock, "rbenv:global").params["argv"] == ["rbenv", "global", "3.2.5"]

    def test_java_chain_falls_back(self, mock_registry, mock, environ):
        mock.set_failure("sdkman:install:21.0.4-tem")
        result = run_bootstrap(registry=mock_registry, environ=environ, kernel="Linux")
        assert result.ok
        assert "sdkman:install:21.0.3-tem" in mock.action_ids
        assert "sdkman:install:17.0.11-tem" not in mock.action_ids

    def test_missing_config(self, mock_registry, environ, tmp_path):
        result = run_bootstrap(
            config_path=tmp_path / "nope.yml", registry=mock_registry, environ=environ,
        )
        assert result.exit_code == 1
        assert "not found" in result.error


class TestJavaDefault:
    def test_default_from_listing(self, mock_registry, mock, environ):
        mock.set_output("sdkman:list-java", LISTING)
        run_bootstrap(registry=mock_registry, environ=environ, kernel="Linux")
        script = _call(mock, "sdkman:default").params["argv"][2]
        assert "sdk default java 21.0.3-tem" in script

    def test_default_from_candidates_dir(self, mock_registry, mock, environ, home):
        java = home / ".sdkman" / "candidates" / "java"
        for ident in ["21.0.4-tem", "17.0.12-tem"]:
            (java / ident).mkdir(parents=True)
        run_bootstrap(registry=mock_registry, environ=environ, kernel="Linux")
        assert "sdkman:list-java" not in mock.action_ids
        assert "sdk default java 21.0.4-tem" in _call(mock, "sdkman:default").params["argv"][2]

    def test_no_java_installed_skips(self, mock_registry, mock, environ):
        result = run_bootstrap(registry=mock_registry, environ=environ, kernel="Linux")
        assert "sdkman:default" not in mock.action_ids
        assert result.report.step_receipts["sdkman:default"].skipped


class TestIdempotence:
    def _registry(self) -> tuple[AdapterRegistry, MockAdapter]:
        """Real filesystem writes; shell and git are scripted."""
        registry = AdapterRegistry()
        registry.register(FilesystemAdapter())
        registry.register(MockAdapter(adapter_name="shell"))
        git = MockAdapter(adapter_name="git")
        registry.register(git)
        return registry, git

    def test_rerun_does_not_duplicate_lines(self, environ, home):
        registry, _ = self._registry()
        run_bootstrap(registry=registry, environ=environ, kernel="Linux")
        zshrc = home / ".zshrc"
        first = zshrc.read_text()

        registry, _ = self._registry()
        run_bootstrap(registry=registry, environ=environ, kernel="Linux")
        assert zshrc.read_text() == first

        lines = first.splitlines()
        assert len(lines) == len(set(lines)) == 7
        assert 'eval "$(rbenv init - zsh)"' in lines
        assert (home / ".rbenv" / "default-gems").read_text() == "bundler\n"

    def test_existing_content_kept(self, environ, home):
        (home / ".zshrc").write_text("alias g=git")
        registry, _ = self._registry()
        run_bootstrap(registry=registry, environ=environ, kernel="Linux")
        assert (home / ".zshrc").read_text().splitlines()[0] == "alias g=git"

    def test_existing_checkouts_are_pulled_not_cloned(self, environ, home):
        plugins = home / ".rbenv" / "plugins"
        for plugin in ("ruby-build", "rbenv-default-gems"):
            (plugins / plugin / ".git").mkdir(parents=True)

        registry, git = self._registry()
        result = run_bootstrap(registry=registry, environ=environ, kernel="Linux")

        assert result.ok
        assert git.action_ids == [
            "rbenv:plugin:ruby-build:pull",
            "rbenv:plugin:rbenv-default-gems:pull",
        ]
        assert result.report.step_receipts["rbenv:clone"].skipped
        assert _call(git, "rbenv:plugin:ruby-build:pull").params["operation"] == "pull"

    def test_non_utf8_zshrc(self, environ, home):
        zshrc = home / ".zshrc"
        zshrc.write_bytes(b"# caf\xe9 config\nalias g=git\n")
        registry, _ = self._registry()
        result = run_bootstrap(registry=registry, environ=environ, kernel="Linux")
        assert result.ok, result.error
        content = zshrc.read_bytes()
        assert content.startswith(b"# caf\xe9 config\nalias g=git\n")
        assert b'eval "$(rbenv init - zsh)"\n' in content

    def test_zdotdir_is_honored(self, environ, home, tmp_path):
        environ["ZDOTDIR"] = str(tmp_path / "zdot")
        registry, _ = self._registry()
        result = run_bootstrap(registry=registry, environ=environ, kernel="Linux")
        assert result.env.zshrc == str(tmp_path / "zdot" / ".zshrc")
        assert (tmp_path / "zdot" / ".zshrc").read_text()
        assert not (home / ".zshrc").exists()


class TestDryRun:
    def test_writes_nothing(self, environ, home):
        result = run_bootstrap(
            dry_run=True, registry=default_registry(), environ=environ, kernel="Linux",
        )
        assert result.ok
        assert result.report.failed == 0
        assert list(home.iterdir()) == []
