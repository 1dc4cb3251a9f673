"""
ArgumentContainer: per-invocation collection of arguments, unique by kind.

Storage order is irrelevant: the builder renders in the fixed protocol
order, never in insertion order.
"""

from typing import Dict, Iterator, List, Optional

from .atoms import Argument, ArgumentKind


class ArgumentNotFoundError(KeyError):
    """Raised by ArgumentContainer.get() when no argument of a kind exists."""

    def __init__(self, kind: ArgumentKind):
        self.kind = kind
        super().__init__(f"No argument of kind '{kind.value}' in container")


class ArgumentContainer:
    """
    Mapping from ArgumentKind to a single Argument.

    Adding a second argument of a kind replaces the first.

    Usage:
        container = ArgumentContainer(
            InputArgument("in.mp4"),
            VideoCodecArgument(VideoCodec.LIBX264, 2400),
            OutputArgument("out.mp4"),
        )
        container.add(SpeedArgument(Speed.FAST))
    """

    def __init__(self, *arguments: Argument):
        self._arguments: Dict[ArgumentKind, Argument] = {}
        self.add(*arguments)

    def add(self, *arguments: Argument) -> "ArgumentContainer":
        """Add arguments, replacing any existing argument of the same kind."""
        for argument in arguments:
            self._arguments[argument.kind] = argument
        return self

    def get(self, kind: ArgumentKind) -> Argument:
        """
        Get the argument of a kind.

        Raises:
            ArgumentNotFoundError: If no argument of that kind was added
        """
        try:
            return self._arguments[kind]
        except KeyError:
            raise ArgumentNotFoundError(kind) from None

    def find(self, kind: ArgumentKind) -> Optional[Argument]:
        """Get the argument of a kind, or None."""
        return self._arguments.get(kind)

    def remove(self, kind: ArgumentKind) -> Optional[Argument]:
        """Remove and return the argument of a kind, if present."""
        return self._arguments.pop(kind, None)

    def kinds(self) -> List[ArgumentKind]:
        return list(self._arguments)

    def has_output(self) -> bool:
        return ArgumentKind.OUTPUT in self._arguments

    def __contains__(self, kind: object) -> bool:
        return kind in self._arguments

    def __len__(self) -> int:
        return len(self._arguments)

    def __iter__(self) -> Iterator[Argument]:
        return iter(list(self._arguments.values()))

    def __repr__(self) -> str:
        kinds = ", ".join(kind.value for kind in self._arguments)
        return f"ArgumentContainer({kinds})"
