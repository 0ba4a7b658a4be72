"""Configuration loading and management."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
import tomllib

from .constants import (
    DEFAULT_MAX_FILE_SIZE,
    DEFAULT_TEXT_WIDTH,
    NEWLINE_ALIASES,
    WRAP_ALGORITHMS,
)


@dataclass
class ReformatConfig:
    """Configuration for reformatting Markdown.

    Attributes:
        text_width: Target width of emitted lines, prefixes included.
        table_columns_equal_width: Whether interior table columns share the
            width of the widest header cell.
        newline: Line terminator written between emitted lines (``"\\n"``,
            ``"\\r\\n"`` or the aliases ``"lf"``/``"crlf"``).
        wrap_algorithm: ``"optimal-fit"`` or ``"first-fit"``.
        max_file_size: Maximum file size in bytes that will be processed.

    Examples:
        ReformatConfig(text_width=72, table_columns_equal_width=True)
    """

    # Wrapping
    text_width: int = DEFAULT_TEXT_WIDTH
    table_columns_equal_width: bool = False
    newline: str = "\n"
    wrap_algorithm: str = "optimal-fit"

    # Limits
    max_file_size: int = DEFAULT_MAX_FILE_SIZE


class ConfigError(ValueError):
    """Exception raised when configuration values are invalid.

    Examples:
        raise ConfigError("`text_width` must be an integer")
    """


def load_config(search_path: Path) -> ReformatConfig:
    """Load configuration from the nearest config file.

    Walks parent directories from `search_path` to the filesystem root, reading
    the ``[tool.md-reformat]`` table from `pyproject.toml` and the
    ``[md-reformat]`` or ``[tool.md-reformat]`` table from `.md-reformat.toml`
    when present. TOML files that cannot be read or decoded are skipped.

    Args:
        search_path: Directory used as the starting point for configuration lookup.

    Returns:
        ReformatConfig: Loaded configuration, or defaults when nothing is found.

    Raises:
        ConfigError: If the table is present but not a mapping or contains
            unsupported keys.

    Examples:
        load_config(Path("docs"))
    """
    current = search_path.resolve()

    while True:
        pyproject_config = _load_from_file(
            current / "pyproject.toml", table_paths=[("tool", "md-reformat")]
        )
        if pyproject_config is not None:
            return normalize_config(pyproject_config)

        dotfile_config = _load_from_file(
            current / ".md-reformat.toml",
            table_paths=[("md-reformat",), ("tool", "md-reformat")],
        )
        if dotfile_config is not None:
            return normalize_config(dotfile_config)

        parent = current.parent
        if parent == current:
            break
        current = parent

    return ReformatConfig()


_MISSING = object()


def _load_from_file(
    config_file: Path, table_paths: list[tuple[str, ...]]
) -> ReformatConfig | None:
    if not config_file.exists():
        return None

    try:
        with open(config_file, "rb") as stream:
            data = tomllib.load(stream)
    except (OSError, tomllib.TOMLDecodeError):
        return None

    for table_path in table_paths:
        raw_config = _extract_table(data, table_path)
        if raw_config is _MISSING:
            continue
        return _build_config_from_raw(raw_config, config_file, table_path)

    return None


def _extract_table(data: object, table_path: tuple[str, ...]) -> object:
    current = data
    for key in table_path:
        if not isinstance(current, dict) or key not in current:
            return _MISSING
        current = current[key]
    return current


def _build_config_from_raw(
    raw_config: object, config_file: Path, table_path: tuple[str, ...]
) -> ReformatConfig:
    table_display = ".".join(table_path)

    if not isinstance(raw_config, dict):
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}")

    # TOML keys may use dashes
    known = {item.name for item in fields(ReformatConfig)}
    settings = {key.replace("-", "_"): value for key, value in raw_config.items()}
    unknown = sorted(set(settings) - known)
    if unknown:
        raise ConfigError(
            f"Invalid `[{table_display}]` settings in {config_file}: "
            f"unknown keys {', '.join(unknown)}"
        )

    return ReformatConfig(**settings)


def normalize_config(config: ReformatConfig) -> ReformatConfig:
    newline = config.newline
    if isinstance(newline, str):
        newline = NEWLINE_ALIASES.get(newline.lower(), newline)
    wrap_algorithm = config.wrap_algorithm
    if isinstance(wrap_algorithm, str):
        wrap_algorithm = wrap_algorithm.lower().replace("_", "-")
    return replace(config, newline=newline, wrap_algorithm=wrap_algorithm)


def validate_config(config: ReformatConfig) -> None:
    """Validate a `ReformatConfig` instance.

    Args:
        config: Configuration to validate.

    Returns:
        None.

    Raises:
        ConfigError: If the width or limits are not integers, the width is
            negative, the newline or wrap algorithm is unsupported, or the
            table flag is not a boolean.

    Examples:
        validate_config(ReformatConfig(text_width=80))
    """
    config = normalize_config(config)

    _ensure_integers({"text_width": config.text_width, "max_file_size": config.max_file_size})

    if config.text_width < 0:
        raise ConfigError("`text_width` must be >= 0")
    if not isinstance(config.table_columns_equal_width, bool):
        raise ConfigError("`table_columns_equal_width` must be a boolean")
    if config.newline not in ("\n", "\r\n"):
        raise ConfigError("`newline` must be one of: lf, crlf")
    if config.wrap_algorithm not in WRAP_ALGORITHMS:
        raise ConfigError(f"`wrap_algorithm` must be one of: {', '.join(WRAP_ALGORITHMS)}")

    _ensure_positive({"max_file_size": config.max_file_size})


def apply_overrides(config: ReformatConfig, **overrides: object) -> ReformatConfig:
    """Apply override values to a `ReformatConfig`.

    Args:
        config: Base configuration to update.
        overrides: Override values keyed by configuration field name; values set to
            None are ignored.

    Returns:
        ReformatConfig: New configuration with the provided overrides applied. The
        original configuration is returned when no changes are supplied.

    Raises:
        TypeError: If an override name is not defined on `ReformatConfig`.

    Examples:
        updated = apply_overrides(config, text_width=80)
    """
    changes = {key: value for key, value in overrides.items() if value is not None}
    if not changes:
        return config
    return replace(config, **changes)


def build_config(search_path: Path, **overrides: object) -> ReformatConfig:
    """Load, override, and validate configuration.

    Args:
        search_path: Directory where configuration files are resolved.
        overrides: Override values keyed by configuration attributes; None values
            are ignored.

    Returns:
        ReformatConfig: Validated configuration.

    Raises:
        ConfigError: If configuration loading or validation fails.

    Examples:
        config = build_config(Path.cwd(), text_width=72)
    """
    config = load_config(search_path)
    config = apply_overrides(config, **overrides)
    config = normalize_config(config)
    validate_config(config)
    return config


def _ensure_positive(values: dict[str, int]) -> None:
    for key, value in values.items():
        if value <= 0:
            raise ConfigError(f"`{key}` must be a positive integer")


def _ensure_integers(values: dict[str, object]) -> None:
    for key, value in values.items():
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"`{key}` must be an integer")
