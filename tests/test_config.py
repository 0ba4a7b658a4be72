from __future__ import annotations

import textwrap
import pytest
from pathlib import Path

from md_reformat.config import (
    ConfigError,
    ReformatConfig,
    apply_overrides,
    build_config,
    load_config,
    validate_config,
)


def _write_pyproject(base: Path, body: str) -> Path:
    path = base / "pyproject.toml"
    path.write_text(textwrap.dedent(body).lstrip(), encoding="utf-8")
    return path


def _write_md_reformat(base: Path, body: str) -> Path:
    path = base / ".md-reformat.toml"
    path.write_text(textwrap.dedent(body).lstrip(), encoding="utf-8")
    return path


def test_loads_config_from_pyproject(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.md-reformat]
        text_width = 72
        table_columns_equal_width = true
        newline = "crlf"
        wrap_algorithm = "first-fit"
        max_file_size = 1024
        """,
    )

    config = load_config(tmp_path)

    assert config == ReformatConfig(
        text_width=72,
        table_columns_equal_width=True,
        newline="\r\n",
        wrap_algorithm="first-fit",
        max_file_size=1024,
    )


def test_loads_config_from_dotfile(tmp_path: Path):
    _write_md_reformat(
        tmp_path,
        """
        [md-reformat]
        text_width = 40
        """,
    )
    nested = tmp_path / "child"
    nested.mkdir()

    config = load_config(nested)

    assert config.text_width == 40


def test_dotfile_accepts_tool_table(tmp_path: Path):
    _write_md_reformat(
        tmp_path,
        """
        [tool.md-reformat]
        wrap_algorithm = "first-fit"
        """,
    )

    assert load_config(tmp_path).wrap_algorithm == "first-fit"


def test_dashed_keys_are_accepted(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.md-reformat]
        text-width = 50
        table-columns-equal-width = true
        """,
    )

    config = load_config(tmp_path)

    assert config.text_width == 50
    assert config.table_columns_equal_width is True


def test_load_config_walks_up_directories(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.md-reformat]
        text_width = 99
        """,
    )
    nested = tmp_path / "a" / "b" / "c"
    nested.mkdir(parents=True)

    config = load_config(nested)

    assert config.text_width == 99


def test_empty_config_table_stops_inheritance(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.md-reformat]
        text_width = 99
        """,
    )
    child = tmp_path / "child"
    child.mkdir()
    _write_pyproject(
        child,
        """
        [tool.md-reformat]
        """,
    )

    config = load_config(child)

    assert config.text_width == ReformatConfig().text_width


def test_load_config_returns_defaults_when_missing(tmp_path: Path):
    config = load_config(tmp_path)

    assert config == ReformatConfig()


def test_load_config_skips_invalid_toml(tmp_path: Path):
    invalid_dir = tmp_path / "invalid"
    invalid_dir.mkdir()
    _write_pyproject(invalid_dir, "not = {valid")
    _write_pyproject(
        tmp_path,
        """
        [tool.md-reformat]
        text_width = 33
        """,
    )

    nested = invalid_dir / "child"
    nested.mkdir()
    config = load_config(nested)

    assert config.text_width == 33


def test_load_config_errors_on_unknown_keys(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.md-reformat]
        text_width = 72
        unexpected = true
        """,
    )

    with pytest.raises(ConfigError, match="unexpected"):
        load_config(tmp_path)


def test_load_config_errors_when_table_is_not_a_mapping(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool]
        md-reformat = 3
        """,
    )

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_partial_config_merges_with_defaults(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.md-reformat]
        table_columns_equal_width = true
        """,
    )

    config = load_config(tmp_path)

    assert config.table_columns_equal_width is True
    # Defaults preserved
    defaults = ReformatConfig()
    assert config.text_width == defaults.text_width
    assert config.newline == defaults.newline


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("lf", "\n"),
        ("CRLF", "\r\n"),
        ("\r\n", "\r\n"),
    ],
)
def test_newline_accepts_aliases(tmp_path: Path, raw: str, expected: str):
    config = build_config(tmp_path, newline=raw)

    assert config.newline == expected


def test_wrap_algorithm_is_normalized(tmp_path: Path):
    config = build_config(tmp_path, wrap_algorithm="FIRST_FIT")

    assert config.wrap_algorithm == "first-fit"


def test_apply_overrides_ignores_none():
    config = ReformatConfig(text_width=80)

    assert apply_overrides(config, text_width=None) is config
    assert apply_overrides(config, text_width=40).text_width == 40


def test_build_config_overrides_file_values(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.md-reformat]
        text_width = 72
        wrap_algorithm = "first-fit"
        """,
    )

    config = build_config(tmp_path, text_width=30, wrap_algorithm=None)

    assert config.text_width == 30
    assert config.wrap_algorithm == "first-fit"


def test_build_config_rejects_invalid_file_values(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.md-reformat]
        wrap_algorithm = "greedy"
        """,
    )

    with pytest.raises(ConfigError, match="wrap_algorithm"):
        build_config(tmp_path)


def test_zero_width_is_valid():
    validate_config(ReformatConfig(text_width=0))


@pytest.mark.parametrize(
    "config",
    [
        ReformatConfig(text_width=-1),
        ReformatConfig(newline="\r"),
        ReformatConfig(wrap_algorithm="balanced"),
        ReformatConfig(max_file_size=0),
        ReformatConfig(table_columns_equal_width="yes"),  # type: ignore[arg-type]
    ],
)
def test_validate_config_rejects_invalid_values(config: ReformatConfig):
    with pytest.raises(ConfigError):
        validate_config(config)


@pytest.mark.parametrize(
    "config",
    [
        ReformatConfig(text_width="wide"),  # type: ignore[arg-type]
        ReformatConfig(text_width=True),  # type: ignore[arg-type]
        ReformatConfig(max_file_size="big"),  # type: ignore[arg-type]
        ReformatConfig(max_file_size=1.5),  # type: ignore[arg-type]
    ],
)
def test_validate_config_rejects_non_numeric_limits(config: ReformatConfig):
    with pytest.raises(ConfigError):
        validate_config(config)
