"""devbootstrap — provision a zsh development environment.

Installs system build dependencies and the rbenv, SDKMAN and nvm
version managers, writing idempotent configuration into ``.zshrc``.
"""

__version__ = "0.1.0"
