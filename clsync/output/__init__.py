# clsync Output Module
# Rich console output

from clsync.output.console import Console, create_console

__all__ = [
    "Console",
    "create_console",
]
