"""Transport: abstract source of CLI output for a query stream."""

from __future__ import annotations

from abc import ABC, abstractmethod


class Transport(ABC):
    """One query's connection to a CLI.

    A transport is used by exactly one query stream. It hands out raw stdout
    bytes on demand, reports the exit status once output has ended, and
    releases everything it owns in :meth:`disconnect`.
    """

    @abstractmethod
    async def connect(self) -> None:
        """Start the underlying process. Raises on launch failure."""
        ...

    @abstractmethod
    async def read_chunk(self) -> bytes:
        """Return the next chunk of stdout, or ``b""`` at end of stream."""
        ...

    @abstractmethod
    async def wait(self) -> int:
        """Wait for the process to exit and return its exit code."""
        ...

    @property
    @abstractmethod
    def stderr_text(self) -> str:
        """Everything captured from stderr so far."""
        ...

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Terminate the process if still running and release its pipes.

        Must be safe to call more than once and from any state.
        """
        ...

    @property
    def pid(self) -> int | None:
        """OS process id, when the transport runs a local process."""
        return None

    def kill_nowait(self) -> None:
        """Best-effort synchronous termination, for finalizers."""
