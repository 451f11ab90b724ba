import os
import shutil
import logging
from pathlib import Path

from ..exceptions import FileOperationError, SourceRemovalError


class FileMover:
    """
    Relocates a handled screenshot into an outcome directory.

    Tries an atomic rename first. Rename fails across filesystems (e.g. a
    Windows drive mounted into WSL2), so it falls back to copy, verify the
    size, then delete the source.
    """

    def move(self, src: Path, dest_dir: Path) -> Path:
        """Returns the destination path. Raises FileOperationError on failure."""
        if not dest_dir:
            raise FileOperationError("Destination directory is empty")

        src = Path(os.path.normpath(src))
        dest_dir = Path(os.path.normpath(dest_dir))
        dest = dest_dir / src.name

        try:
            dest_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileOperationError(f"Failed to create destination directory {dest_dir}: {e}") from e

        try:
            src_size = src.stat().st_size
        except FileNotFoundError as e:
            raise FileOperationError(f"Source file does not exist: {src}") from e
        except OSError as e:
            raise FileOperationError(f"Failed to stat source file {src}: {e}") from e

        if dest.exists():
            logging.warning(f"Destination already exists, replacing: {dest}")
            try:
                dest.unlink()
            except OSError as e:
                raise FileOperationError(f"Failed to remove existing destination {dest}: {e}") from e

        try:
            os.rename(src, dest)
        except OSError as rename_err:
            logging.info(f"Rename failed (likely cross-filesystem), using copy+delete: {rename_err}")
            return self._copy_then_delete(src, dest, src_size)

        if not dest.exists():
            raise FileOperationError(f"Destination does not exist after rename: {dest}")
        logging.info(f"Moved {src.name} -> {dest}")
        return dest

    def _copy_then_delete(self, src: Path, dest: Path, src_size: int) -> Path:
        try:
            with src.open('rb') as fsrc, dest.open('wb') as fdst:
                shutil.copyfileobj(fsrc, fdst)
                fdst.flush()
                os.fsync(fdst.fileno())
            shutil.copystat(src, dest)
        except OSError as e:
            dest.unlink(missing_ok=True)
            raise FileOperationError(f"Failed to copy {src} -> {dest}: {e}") from e

        try:
            dest_size = dest.stat().st_size
        except OSError as e:
            raise FileOperationError(f"Cannot verify copied file {dest}: {e}") from e
        if dest_size != src_size:
            dest.unlink(missing_ok=True)
            raise FileOperationError(
                f"File size mismatch: source {src_size} bytes, destination {dest_size} bytes"
            )

        logging.debug(f"Copied {src_size} bytes to {dest}, removing source")
        try:
            src.unlink()
        except OSError as e:
            raise SourceRemovalError(
                f"File copied to {dest} but failed to remove source {src}: {e}", destination=dest
            ) from e

        logging.info(f"Moved {src.name} -> {dest} (copy+delete)")
        return dest
