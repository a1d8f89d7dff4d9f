"""Output reporters for smartshard."""

from smartshard.reporters.terminal import CLIReporter, reporter

__all__ = ["CLIReporter", "reporter"]
