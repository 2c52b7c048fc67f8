"""
Tests for idempotent profile appends and host detection.
"""

from pathlib import Path

import pytest

from devbootstrap.core.models.environment import BootstrapEnv
from devbootstrap.core.services.host import detect_os, ensure_zshrc, zshrc_path
from devbootstrap.core.services.shell_profile import append_once, has_line


class TestAppendOnce:
    def test_appends_to_missing_file(self, tmp_path: Path):
        target = tmp_path / "sub" / ".zshrc"
        assert append_once('export NVM_DIR="$HOME/.nvm"', target) is True
        assert target.read_text() == 'export NVM_DIR="$HOME/.nvm"\n'

    def test_second_append_is_noop(self, tmp_path: Path):
        target = tmp_path / ".zshrc"
        line = 'eval "$(rbenv init - zsh)"'
        append_once(line, target)
        assert append_once(line, target) is False
        assert target.read_text().count(line) == 1

    def test_preserves_order(self, tmp_path: Path):
        target = tmp_path / ".zshrc"
        for line in ["a", "b", "a", "c", "b"]:
            append_once(line, target)
        assert target.read_text().splitlines() == ["a", "b", "c"]

    def test_adds_newline_when_missing(self, tmp_path: Path):
        target = tmp_path / ".zshrc"
        target.write_text("alias ll='ls -l'")
        append_once("export FOO=1", target)
        assert target.read_text() == "alias ll='ls -l'\nexport FOO=1\n"

    def test_substring_is_not_a_match(self, tmp_path: Path):
        target = tmp_path / ".zshrc"
        target.write_text("# export FOO=1\n")
        assert append_once("export FOO=1", target) is True
        assert target.read_text().splitlines() == ["# export FOO=1", "export FOO=1"]

    def test_rejects_multiline(self, tmp_path: Path):
        with pytest.raises(ValueError):
            append_once("a\nb", tmp_path / ".zshrc")

    def test_non_utf8_profile(self, tmp_path: Path):
        target = tmp_path / ".zshrc"
        target.write_bytes(b"# caf\xe9 config\nalias g=git\n")
        assert has_line("alias g=git", target)
        assert append_once("alias g=git", target) is False
        assert append_once("export FOO=1", target) is True
        assert target.read_bytes() == b"# caf\xe9 config\nalias g=git\nexport FOO=1\n"

    def test_has_line(self, tmp_path: Path):
        target = tmp_path / ".zshrc"
        assert not has_line("x", target)
        target.write_text("x\ny\n")
        assert has_line("y", target)
        assert not has_line("z", target)


class TestDetectOs:
    @pytest.mark.parametrize("kernel,expected", [
        ("Darwin", "mac"),
        ("Linux", "linux"),
        ("Linux\n", "linux"),
        ("FreeBSD", "unsupported"),
        ("Windows", "unsupported"),
        ("", "unsupported"),
    ])
    def test_kernel_names(self, kernel, expected):
        assert detect_os(kernel) == expected


class TestZshrc:
    def test_defaults_to_home(self, tmp_path: Path):
        env = BootstrapEnv(env={"HOME": str(tmp_path)})
        assert zshrc_path(env) == tmp_path / ".zshrc"

    def test_zdotdir_wins(self, tmp_path: Path):
        env = BootstrapEnv(env={"HOME": str(tmp_path), "ZDOTDIR": str(tmp_path / "zsh")})
        assert zshrc_path(env) == tmp_path / "zsh" / ".zshrc"

    def test_empty_zdotdir_falls_back(self, tmp_path: Path):
        env = BootstrapEnv(env={"HOME": str(tmp_path), "ZDOTDIR": ""})
        assert zshrc_path(env) == tmp_path / ".zshrc"

    def test_ensure_creates_file(self, tmp_path: Path):
        env = BootstrapEnv(env={"HOME": str(tmp_path), "ZDOTDIR": str(tmp_path / "zsh")})
        path = ensure_zshrc(env)
        assert path.is_file()
        assert path.read_text() == ""

    def test_ensure_keeps_content(self, tmp_path: Path):
        (tmp_path / ".zshrc").write_text("keep me\n")
        env = BootstrapEnv(env={"HOME": str(tmp_path)})
        assert ensure_zshrc(env).read_text() == "keep me\n"
