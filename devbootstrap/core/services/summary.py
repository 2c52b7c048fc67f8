"""
Completion banner — printed once every step has run.
"""

from __future__ import annotations

SUMMARY_BANNER = """\

✅ Setup complete for zsh.

• Ruby (rbenv):
  - Installed: 3.3.4 (global), 3.2.5, 3.1.6
  - Default gems: bundler (auto-installs on future Ruby installs)
  - Use: rbenv global <version> | rbenv local <version>

• Java (SDKMAN!):
  - Installed: Temurin 21, 17, 11
  - Use: sdk use java <version> | sdk default java <version>

• Node & npm (nvm):
  - Installed: latest LTS
  - Corepack: enabled (yarn/pnpm shims available)
  - Use: nvm use --lts | nvm install <version>

Open a NEW zsh session or run:
  source "$HOME/.zshrc"

Verify:
  ruby -v && rbenv versions && bundler -v
  java -version && sdk list java | grep -E 'installed|local only'
  node -v && npm -v && corepack -v
"""


def render_summary() -> str:
    return SUMMARY_BANNER
