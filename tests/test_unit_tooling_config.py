# FILE: test_unit_tooling_config.py

import pytest

from openai_mcp.core.tooling_config import (
    ToolingConfig,
    ToolingConfigError,
    load_tooling_config,
    tooling_snapshot,
)


def test_defaults_enable_everything_without_prefix():
    cfg = ToolingConfig()

    assert cfg.is_enabled("openai_list_models")
    assert cfg.full_name("openai_list_models") == "openai_list_models"


def test_loads_nested_yaml_with_env_expansion(tmp_path, monkeypatch):
    monkeypatch.setenv("TOOL_PREFIX", "acme__")
    path = tmp_path / "tooling.yml"
    path.write_text(
        "tooling:\n"
        "  tool_name_prefix: ${TOOL_PREFIX}\n"
        "  deny_tools:\n"
        "    - openai_create_image\n"
        "    - '  '\n",
        encoding="utf-8",
    )

    cfg = load_tooling_config(str(path))

    assert cfg.tool_name_prefix == "acme__"
    assert cfg.deny_tools == ["openai_create_image"]
    assert not cfg.is_enabled("openai_create_image")
    assert cfg.is_enabled("openai_get_model")
    assert tooling_snapshot(cfg)["tool_name_prefix"] == "acme__"


def test_relative_path_resolves_against_cwd(tmp_path, monkeypatch):
    (tmp_path / "tooling.yml").write_text("allow_tools: [openai_list_models]\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    cfg = load_tooling_config("tooling.yml")

    assert cfg.allow_tools == ["openai_list_models"]
    assert not cfg.is_enabled("openai_get_model")


def test_overlapping_allow_and_deny_is_rejected(tmp_path):
    path = tmp_path / "tooling.yml"
    path.write_text("allow_tools: [a]\ndeny_tools: [a]\n", encoding="utf-8")

    with pytest.raises(ToolingConfigError, match="overlap"):
        load_tooling_config(str(path))


def test_non_mapping_root_is_rejected(tmp_path):
    path = tmp_path / "tooling.yml"
    path.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ToolingConfigError):
        load_tooling_config(str(path))


def test_missing_file_is_reported(tmp_path):
    with pytest.raises(ToolingConfigError, match="not found"):
        load_tooling_config(str(tmp_path / "absent.yml"))


def test_directory_is_not_accepted_as_config_file(tmp_path):
    with pytest.raises(ToolingConfigError, match="not found"):
        load_tooling_config(str(tmp_path))


def test_prefix_with_inner_whitespace_is_rejected(tmp_path):
    path = tmp_path / "tooling.yml"
    path.write_text("tool_name_prefix: 'my tools__'\n", encoding="utf-8")

    with pytest.raises(ToolingConfigError, match="whitespace"):
        load_tooling_config(str(path))


def test_blank_tool_names_are_dropped():
    cfg = ToolingConfig(tool_name_prefix="  work__ ", allow_tools=["", "  "])

    assert cfg.tool_name_prefix == "work__"
    assert cfg.allow_tools is None
    assert cfg.is_enabled("openai_get_model")
