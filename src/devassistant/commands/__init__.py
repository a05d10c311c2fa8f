"""User-facing commands built on the retrieval components."""

from devassistant.commands.help import HelpCommand

__all__ = ["HelpCommand"]
