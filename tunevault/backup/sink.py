"""Byte-stream endpoints for snapshot artifacts.

The engine never resolves destinations itself: callers hand it a sink
they already picked, and the engine only asks it to open a stream.
"""

import io
import typing as t
from pathlib import Path

from ..util.logging import get_logger
from .errors import SinkUnavailable

logger = get_logger(__name__)


class StorageSink(t.Protocol):
    """Destination for an export or source for a restore."""

    def open_write(self) -> t.BinaryIO:
        """Open a fresh binary stream for writing."""
        ...

    def open_read(self) -> t.BinaryIO:
        """Open a binary stream positioned at the start of the artifact."""
        ...

    def describe(self) -> str:
        """Short human-readable name used in log lines and errors."""
        ...


class FileSink:
    """Snapshot stored in a local file."""

    def __init__(self, path: Path) -> None:
        """Initialize file sink.

        Args:
            path: File the snapshot is written to or read from
        """
        self.path = Path(path)

    def open_write(self) -> t.BinaryIO:
        return open(self.path, "wb")

    def open_read(self) -> t.BinaryIO:
        return open(self.path, "rb")

    def describe(self) -> str:
        return str(self.path)

    def __repr__(self) -> str:
        return f"FileSink(path='{self.path}')"


class _CapturingBuffer(io.BytesIO):
    """BytesIO that hands its contents to the owning sink on close."""

    def __init__(self, owner: "MemorySink") -> None:
        super().__init__()
        self._owner = owner

    def close(self) -> None:
        if not self.closed:
            self._owner.data = self.getvalue()
        super().close()


class MemorySink:
    """Snapshot held in memory, mostly useful for tests and previews."""

    def __init__(self, data: bytes = b"") -> None:
        self.data = data

    def open_write(self) -> t.BinaryIO:
        return _CapturingBuffer(self)

    def open_read(self) -> t.BinaryIO:
        return io.BytesIO(self.data)

    def describe(self) -> str:
        return f"<memory:{len(self.data)} bytes>"


def read_all(sink: StorageSink) -> bytes:
    """Read the complete artifact from a sink.

    Raises:
        SinkUnavailable: If the source cannot be opened or read
    """
    name = sink.describe()
    try:
        with sink.open_read() as stream:
            data = stream.read()
    except OSError as e:
        logger.error(f"Could not read backup source {name}: {e}")
        raise SinkUnavailable(name, f"cannot read: {e}") from e

    logger.debug(f"Read {len(data)} bytes from {name}")
    return data


def write_all(sink: StorageSink, data: bytes) -> None:
    """Write a complete artifact to a sink.

    Raises:
        SinkUnavailable: If the destination cannot be opened or written
    """
    name = sink.describe()
    try:
        with sink.open_write() as stream:
            stream.write(data)
            stream.flush()
    except OSError as e:
        logger.error(f"Could not write backup destination {name}: {e}")
        raise SinkUnavailable(name, f"cannot write: {e}") from e

    logger.debug(f"Wrote {len(data)} bytes to {name}")
