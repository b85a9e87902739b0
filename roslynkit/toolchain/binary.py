"""Executable descriptor handed to whatever launches the language server."""

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional, Tuple


@dataclass(frozen=True)
class BinaryDescriptor:
    """
    How to launch a language server.

    Attributes:
        path: Absolute path to the executable
        arguments: Ordered invocation arguments
        env: Environment overrides, or None to inherit the parent environment
    """

    path: Path
    arguments: Tuple[str, ...] = field(default_factory=tuple)
    env: Optional[Mapping[str, str]] = None

    def __post_init__(self):
        object.__setattr__(self, "path", Path(self.path))
        object.__setattr__(self, "arguments", tuple(str(a) for a in self.arguments))
        if self.env is not None:
            object.__setattr__(self, "env", MappingProxyType(dict(self.env)))

    def command(self) -> list:
        """Full argv for launching the server."""
        return [str(self.path), *self.arguments]
