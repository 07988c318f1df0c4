"""
Inputs and workflow commands for running as a GitHub Action.

https://docs.github.com/en/actions/using-workflows/workflow-commands-for-github-actions
"""
from __future__ import annotations

import os
from typing import Mapping, Optional

import click


def escape_data(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class ActionsCore:
    def __init__(self, environ: Optional[Mapping[str, str]] = None) -> None:
        self.environ = os.environ if environ is None else environ
        self.failure_message: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.failure_message is not None

    def get_input(self, name: str) -> str:
        """
        Inputs are passed as `INPUT_<NAME>` environment variables, with spaces
        replaced by underscores.
        """
        key = "INPUT_" + name.replace(" ", "_").upper()
        return self.environ.get(key, "").strip()

    def debug(self, message: str) -> None:
        click.echo(f"::debug::{escape_data(message)}")

    def info(self, message: str) -> None:
        click.echo(message)

    def set_failed(self, message: str) -> None:
        """
        Mark the step as failed. The process should exit non-zero afterwards.
        """
        self.failure_message = message
        click.echo(f"::error::{escape_data(message)}")
