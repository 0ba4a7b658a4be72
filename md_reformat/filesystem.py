"""Safe reading and atomic rewriting of Markdown files."""

from __future__ import annotations

import os
import stat
import tempfile
from collections.abc import Callable
from pathlib import Path

from .constants import DEFAULT_MAX_FILE_SIZE, MARKDOWN_EXTENSIONS

MAX_FILE_SIZE_ENV_VAR = "MD_REFORMAT_MAX_FILE_SIZE"


def get_max_file_size(default: int = DEFAULT_MAX_FILE_SIZE) -> int:
    """Resolve the size limit, letting the environment override `default`.

    Args:
        default: Limit in bytes used when ``MD_REFORMAT_MAX_FILE_SIZE`` is unset.

    Returns:
        int: Maximum file size in bytes.

    Raises:
        ValueError: If the environment value is not a positive integer.

    Examples:
        os.environ["MD_REFORMAT_MAX_FILE_SIZE"] = "65536"
        get_max_file_size()  # 65536
    """
    env_value = os.environ.get(MAX_FILE_SIZE_ENV_VAR)
    if env_value is None:
        return default

    try:
        max_size = int(env_value)
    except ValueError as error:
        raise ValueError(
            f"Invalid value for {MAX_FILE_SIZE_ENV_VAR}: {env_value} (expected positive integer)"
        ) from error

    if max_size <= 0:
        raise ValueError(f"{MAX_FILE_SIZE_ENV_VAR} must be a positive integer, got {max_size}.")
    return max_size


def _has_symlink(path: Path) -> bool:
    for candidate in (path, *path.parents):
        try:
            if candidate.is_symlink():
                return True
        except OSError:
            continue
    return False


def normalize_filepath(raw_path: str, base_dir: Path) -> Path:
    """Resolve a user supplied Markdown path inside `base_dir`.

    Args:
        raw_path: Absolute or relative path, ``~`` is expanded.
        base_dir: Directory the file must live under.

    Returns:
        Path: Resolved absolute path.

    Raises:
        ValueError: If the path is missing, not a regular file, outside
            `base_dir`, goes through a symlink, or lacks a Markdown extension.

    Examples:
        normalize_filepath("docs/guide.md", Path.cwd())
    """
    path = Path(raw_path).expanduser()
    if _has_symlink(path):
        raise ValueError(f"Symlinks are not supported for security reasons: {path}")

    try:
        resolved = path.resolve(strict=True)
    except FileNotFoundError as error:
        raise ValueError(f"{path} does not exist.") from error
    except OSError as error:
        raise ValueError(f"Error resolving {path}: {error}") from error

    if not resolved.is_file():
        raise ValueError(f"{resolved} is not a regular file.")

    try:
        resolved.relative_to(base_dir)
    except ValueError as error:
        raise ValueError(f"{resolved} is outside of the working directory {base_dir}.") from error

    if resolved.suffix.lower() not in MARKDOWN_EXTENSIONS:
        raise ValueError(
            f"{resolved} is not a Markdown file.\n"
            f"Supported extensions are: {', '.join(MARKDOWN_EXTENSIONS)}"
        )
    return resolved


def collect_file_stat(filepath: Path) -> os.stat_result:
    """Stat `filepath` without following symlinks.

    Raises:
        IOError: If the file is inaccessible, a symlink, or not a regular file.
    """
    try:
        stat_result = os.stat(filepath, follow_symlinks=False)
    except OSError as error:
        raise IOError(f"Error accessing {filepath}: {error}") from error

    if stat.S_ISLNK(stat_result.st_mode):
        raise IOError(f"Symlinks are not supported: {filepath}.")
    if not stat.S_ISREG(stat_result.st_mode):
        raise IOError(f"{filepath} is not a regular file.")
    return stat_result


def enforce_file_size(stat_result: os.stat_result, max_size: int, filepath: Path) -> None:
    if stat_result.st_size > max_size:
        raise IOError(f"{filepath} exceeds the maximum allowed size of {max_size} bytes.")


def _fingerprint(stat_result: os.stat_result) -> tuple[object, ...]:
    return (
        getattr(stat_result, "st_ino", None),
        getattr(stat_result, "st_dev", None),
        stat_result.st_size,
        stat_result.st_mtime_ns,
    )


def ensure_file_unchanged(
    expected_stat: os.stat_result, current_stat: os.stat_result, filepath: Path
) -> None:
    """Refuse to continue when the file changed since `expected_stat` was taken.

    Raises:
        IOError: If inode, device, size or modification time differ.
    """
    if _fingerprint(expected_stat) != _fingerprint(current_stat):
        raise IOError(f"{filepath} changed during processing; refusing to overwrite.")


def safe_read(filepath: Path) -> str:
    """Read a UTF-8 file, keeping its line terminators as they are.

    Raises:
        IOError: If the file is missing, inaccessible, or not valid UTF-8.
    """
    try:
        with open(filepath, "r", encoding="UTF-8", newline="") as stream:
            return stream.read()
    except (
        FileNotFoundError,
        PermissionError,
        IsADirectoryError,
        NotADirectoryError,
    ) as error:
        raise IOError(f"Error accessing {filepath}: {error}") from error
    except UnicodeDecodeError as error:
        raise IOError(f"{filepath} is not valid UTF-8: {error}") from error


def write_atomic(
    filepath: Path,
    content: str,
    expected_stat: os.stat_result,
    initial_stat: os.stat_result,
    warn: Callable[[str], None] | None = None,
) -> None:
    """Replace the file's content through a temporary file in the same directory.

    Permissions, ownership (when allowed) and the access time of
    `initial_stat` are carried over; the modification time is the time of
    the rewrite.

    Args:
        filepath: File to rewrite.
        content: New content, written without newline translation.
        expected_stat: Stat taken after reading; the file must still match it.
        initial_stat: Stat taken before reading, source of the access time.
        warn: Callback for non-fatal problems such as lost ownership.

    Raises:
        IOError: If the file changed since it was read or cannot be replaced.

    Examples:
        write_atomic(path, formatted, post_read_stat, pre_read_stat)
    """
    ensure_file_unchanged(expected_stat, collect_file_stat(filepath), filepath)

    permissions = stat.S_IMODE(expected_stat.st_mode)
    uid = getattr(expected_stat, "st_uid", None)
    gid = getattr(expected_stat, "st_gid", None)

    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w", encoding="UTF-8", newline="", delete=False, dir=filepath.parent
        ) as tmp_file:
            temp_path = Path(tmp_file.name)
            tmp_file.write(content)
            tmp_file.flush()
            os.fsync(tmp_file.fileno())
            os.chmod(tmp_file.name, permissions)

            if uid is not None and gid is not None and hasattr(os, "chown"):
                try:
                    os.chown(tmp_file.name, uid, gid)
                except PermissionError:
                    if warn is not None:
                        warn(
                            f"Warning: Could not preserve file ownership for {filepath.name} "
                            "(requires elevated privileges)"
                        )

        os.replace(temp_path, filepath)
        os.utime(filepath, ns=(initial_stat.st_atime_ns, filepath.stat().st_mtime_ns))
    except OSError as error:
        raise IOError(f"Error writing {filepath}: {error}") from error
    finally:
        if temp_path is not None:
            try:
                temp_path.unlink(missing_ok=True)
            except OSError:
                pass
