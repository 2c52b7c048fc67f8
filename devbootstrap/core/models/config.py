"""
Bootstrap configuration — what gets installed, loaded from bootstrap.yml.

Every field defaults to the stock toolchain set, so an empty (or absent)
config file provisions the standard environment. A config file only
needs to name what it changes.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, ValidationInfo, field_validator

DEFAULT_BREW_PACKAGES = [
    "git", "libyaml", "openssl@3", "readline", "zlib",
    "gdbm", "gmp", "coreutils", "pkg-config",
]

DEFAULT_APT_PACKAGES = [
    "build-essential", "libssl-dev", "libreadline-dev", "zlib1g-dev",
    "libsqlite3-dev", "libffi-dev", "libyaml-dev", "libgdbm-dev",
    "libdb-dev", "uuid-dev", "git", "curl", "zip", "unzip",
    "ca-certificates", "gnupg", "pkg-config",
]


class InstallerUrls(BaseModel):
    """Where each external installer is fetched from."""

    homebrew: str = "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh"
    rbenv: str = "https://github.com/rbenv/rbenv.git"
    ruby_build: str = "https://github.com/rbenv/ruby-build.git"
    rbenv_default_gems: str = "https://github.com/rbenv/rbenv-default-gems"
    sdkman: str = "https://get.sdkman.io"
    nvm: str = "https://raw.githubusercontent.com/nvm-sh/nvm/v0.39.7/install.sh"


class RubySettings(BaseModel):
    """Ruby versions for rbenv. The first entry is the preferred global."""

    versions: list[str] = Field(default_factory=lambda: ["3.3.4", "3.2.5", "3.1.6"])
    default_gems: list[str] = Field(default_factory=lambda: ["bundler"])


class JavaCandidate(BaseModel):
    """One JDK major with its SDKMAN identifiers, newest first.

    Identifiers are tried in order; the first successful install wins.
    """

    major: int
    identifiers: list[str] = Field(min_length=1)

    @field_validator("identifiers")
    @classmethod
    def _identifiers_match_major(cls, value: list[str], info: ValidationInfo) -> list[str]:
        major = info.data.get("major")
        if major is None:
            return value
        for ident in value:
            if not ident.startswith(f"{major}."):
                raise ValueError(f"identifier '{ident}' does not belong to major {major}")
        return value


def _default_java_candidates() -> list[JavaCandidate]:
    return [
        JavaCandidate(major=21, identifiers=["21.0.4-tem", "21.0.3-tem"]),
        JavaCandidate(major=17, identifiers=["17.0.12-tem", "17.0.11-tem"]),
        JavaCandidate(major=11, identifiers=["11.0.25-tem", "11.0.24-tem"]),
    ]


class JavaSettings(BaseModel):
    """JDKs for SDKMAN and the rule for picking the default."""

    candidates: list[JavaCandidate] = Field(default_factory=_default_java_candidates)
    default_major: int = 21
    vendor: str = "tem"


class NodeSettings(BaseModel):
    """Node version for nvm."""

    install: str = "--lts"
    default_alias: str = "lts/*"
    enable_corepack: bool = True


class BootstrapConfig(BaseModel):
    """Root configuration — loaded from bootstrap.yml (optional)."""

    brew_packages: list[str] = Field(default_factory=lambda: list(DEFAULT_BREW_PACKAGES))
    apt_packages: list[str] = Field(default_factory=lambda: list(DEFAULT_APT_PACKAGES))

    ruby: RubySettings = Field(default_factory=RubySettings)
    java: JavaSettings = Field(default_factory=JavaSettings)
    node: NodeSettings = Field(default_factory=NodeSettings)
    urls: InstallerUrls = Field(default_factory=InstallerUrls)

    # Xcode CLT installs asynchronously through a GUI prompt
    toolchain_poll_attempts: int = Field(default=300, ge=0)
    toolchain_poll_interval: float = Field(default=2.0, ge=0)
