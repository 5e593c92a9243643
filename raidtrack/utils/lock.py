import fcntl
import os
from pathlib import Path
from typing import IO, Optional


class SingleInstanceLock:
    """
    Ensures only one bot process polls the SavedVariables file at a time.

    The holder's PID is written into the lock file so a second process can
    report who is running.
    """

    def __init__(self, lock_file_name: str = "data/raidtrack.lock"):
        self.lock_file_path = Path(lock_file_name).absolute()
        self.fp: Optional[IO[str]] = None

    def holder_pid(self) -> Optional[int]:
        """PID recorded by the current holder, if readable."""
        try:
            text = self.lock_file_path.read_text(encoding="utf-8").strip()
        except OSError:
            return None
        return int(text) if text.isdigit() else None

    def acquire(self) -> bool:
        """
        Attempt to acquire the lock.
        Returns True if successful, False if another instance already holds it.
        """
        self.lock_file_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self.fp = open(self.lock_file_path, "a+", encoding="utf-8")

            # LOCK_NB: fail immediately instead of waiting for the holder.
            fcntl.flock(self.fp.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)

            self.fp.seek(0)
            self.fp.truncate()
            self.fp.write(f"{os.getpid()}\n")
            self.fp.flush()
            return True
        except OSError:
            if self.fp:
                self.fp.close()
                self.fp = None
            return False

    def release(self) -> None:
        """Release the lock and remove the file."""
        if not self.fp:
            return
        try:
            fcntl.flock(self.fp.fileno(), fcntl.LOCK_UN)
            self.fp.close()
            self.fp = None
            self.lock_file_path.unlink(missing_ok=True)
        except OSError as e:
            print(f"Warning: Failed to release lock: {e}")
