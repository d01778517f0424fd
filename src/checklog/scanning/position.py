"""Seek-position store — one plain-text file per logical check.

Each seek file holds a single integer byte offset.  Writes are atomic
(temp file + rename) and gated by a freshness interval so several pollers
reading the same log do not clobber each other's state.  The OS null device
as destination disables persistence entirely.
"""
from __future__ import annotations

import contextlib
import logging
import os
import re
import time
from dataclasses import dataclass

logger = logging.getLogger(__name__)

SEEK_SUFFIX = ".seek"


@dataclass(frozen=True)
class ScanState:
    """A persisted offset and the time it was written."""

    offset: int
    written_at: float

    def age(self, now: float | None = None) -> float:
        return (time.time() if now is None else now) - self.written_at


def derive_seek_name(logfile: str, seekfile_id: str = "") -> str:
    """Flatten a log path (+ optional disambiguator) into one filename.

    ``/var/log/app/error.log`` with id ``db`` becomes
    ``var-log-app-error.log-db.seek``.
    """
    directory, basename = os.path.split(os.path.abspath(logfile))
    prefix = re.sub(r"[\\/]+", "-", directory + os.sep).lstrip("-")
    suffix = ""
    if seekfile_id:
        safe_id = re.sub(r"[\\/]+", "-", seekfile_id)
        suffix = f"-{safe_id}"
    return f"{prefix}{basename}{suffix}{SEEK_SUFFIX}"


def resolve_seek_path(
    logfile: str,
    seekfile: str | None,
    state_dir: str,
    seekfile_id: str = "",
    dynamic: bool = False,
) -> str:
    """Where to keep the offset for ``logfile``.

    ``seekfile`` may be an explicit path, a directory (auto-generate the name
    there) or the null device.  For dynamic (globbed) log names an explicit
    path is ignored, since the concrete file changes between runs.
    """
    if seekfile == os.devnull:
        return os.devnull
    directory = state_dir
    if seekfile and os.path.isdir(seekfile):
        directory = seekfile
        logger.debug("using seek dir %r", directory)
    elif seekfile and not dynamic:
        logger.debug("using manual seek file %r", seekfile)
        return seekfile
    elif seekfile:
        logger.debug("generating seek file name for dynamic log filenames")
    path = os.path.join(directory, derive_seek_name(logfile, seekfile_id))
    logger.debug("using auto seek file %r", path)
    return path


class PositionStore:
    """Read and conditionally write the seek offset at ``path``."""

    def __init__(self, path: str) -> None:
        self.path = path

    @property
    def discard(self) -> bool:
        return self.path == os.devnull

    def load(self) -> ScanState | None:
        """The stored state, or None if absent or unparsable."""
        if self.discard:
            return None
        try:
            with open(self.path, encoding="ascii", errors="replace") as fh:
                first = fh.readline().strip()
                mtime = os.fstat(fh.fileno()).st_mtime
        except FileNotFoundError:
            logger.debug("no seek file %r, first time reading this file?", self.path)
            return None
        except OSError as exc:
            logger.warning("Cannot read seek file %r: %s", self.path, exc)
            return None
        try:
            offset = int(first)
        except ValueError:
            logger.debug("seek file %r holds no offset: %r", self.path, first)
            return None
        if offset < 0:
            return None
        return ScanState(offset=offset, written_at=mtime)

    def read(self) -> int | None:
        state = self.load()
        return state.offset if state else None

    def write(self, offset: int, freshness: int = 0, now: float | None = None) -> bool:
        """Persist ``offset`` unless the stored state is younger than ``freshness``.

        Returns True if the offset was written.  Failures are logged and
        reported as False; they never abort the run.
        """
        if self.discard:
            logger.debug("not writing seek position to null device")
            return False
        if freshness > 0:
            existing = self.load()
            if existing is not None and existing.age(now) < freshness:
                logger.debug(
                    "not overwriting seek file as not older than %d seconds", freshness
                )
                return False

        tmp_path = f"{self.path}.{os.getpid()}"
        try:
            with open(tmp_path, "w", encoding="ascii") as fh:
                fh.write(str(offset))
            os.replace(tmp_path, self.path)
        except OSError as exc:
            logger.warning("Seek position will not be saved to %r: %s", self.path, exc)
            with contextlib.suppress(OSError):
                os.unlink(tmp_path)
            return False
        logger.debug("update seek position to %d", offset)
        return True
