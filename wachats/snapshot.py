"""Private read-only snapshots of a live SQLite database.

WhatsApp keeps ChatStorage.sqlite open while it runs, so every query works on
a copy in a fresh temp directory, together with the -wal/-shm side files when
they exist.
"""

import errno
import os
import shutil
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

SIDE_FILE_SUFFIXES = ("-wal", "-shm")

PERMISSION_HINT = (
    "Grant Full Disk Access to your terminal in "
    "System Settings > Privacy & Security > Full Disk Access."
)


class SourceUnreadable(OSError):
    """The source database could not be opened or copied."""


@dataclass(frozen=True)
class Snapshot:
    directory: Path
    path: Path

    @property
    def side_files(self):
        return [Path(str(self.path) + ext) for ext in SIDE_FILE_SUFFIXES]


def _unreadable(src, e):
    if isinstance(e, PermissionError) or e.errno in (errno.EACCES, errno.EPERM):
        return SourceUnreadable(
            f"Permission denied reading {src}. {PERMISSION_HINT}"
        )
    if isinstance(e, FileNotFoundError) or e.errno == errno.ENOENT:
        return SourceUnreadable(
            f"Database not found at {src}. Open WhatsApp Desktop at least once, "
            "or set dbPath in config.json."
        )
    return SourceUnreadable(f"Unable to copy {src}: {e}")


def make_snapshot(src):
    """Copy src (plus -wal/-shm if present) into a new temp directory."""
    src = Path(src)
    tmp_dir = Path(tempfile.mkdtemp(prefix="wa-db-"))
    snap = Snapshot(directory=tmp_dir, path=tmp_dir / src.name)

    try:
        shutil.copy2(src, snap.path)
    except OSError as e:
        cleanup(snap)
        raise _unreadable(src, e) from e

    for ext, dest in zip(SIDE_FILE_SUFFIXES, snap.side_files):
        try:
            shutil.copy2(Path(str(src) + ext), dest)
        except OSError:
            pass  # not present

    return snap


def cleanup(snap):
    """Remove the snapshot files and directory. Never raises."""
    for path in [snap.path, *snap.side_files]:
        try:
            path.unlink()
        except OSError:
            pass
    try:
        os.rmdir(snap.directory)
    except OSError:
        pass


@contextmanager
def snapshot(src):
    """Yield a Snapshot of src and remove it afterwards, even on error."""
    snap = make_snapshot(src)
    try:
        yield snap
    finally:
        cleanup(snap)
