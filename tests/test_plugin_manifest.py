from __future__ import annotations

import pytest
import yaml

from pluginhost.plugins.errors import ConfigDecodeError
from pluginhost.plugins.manifest import PluginConfig, decode_config, encode_config


def test_decode_valid_metadata() -> None:
    config = decode_config(
        b"name: greeter\n"
        b"description: Says hello.\n"
        b"import: greeter_plugin\n"
        b"type: greeter\n"
    )
    assert config.name == "greeter"
    assert config.import_path == "greeter_plugin"
    assert config.plugin_type == "greeter"
    assert config.local is False
    assert config.hash == ""
    assert not config.stamped


def test_decode_rejects_malformed_yaml() -> None:
    with pytest.raises(ConfigDecodeError):
        decode_config(b"name: [unterminated\n")


def test_decode_rejects_non_mapping() -> None:
    with pytest.raises(ConfigDecodeError):
        decode_config(b"- just\n- a list\n")


def test_decode_rejects_missing_fields() -> None:
    with pytest.raises(ConfigDecodeError):
        decode_config(b"name: greeter\ntype: greeter\n")
    with pytest.raises(ConfigDecodeError):
        decode_config(b"name: '  '\nimport: x\ntype: greeter\n")


def test_internal_flag_is_never_read_from_disk() -> None:
    config = decode_config(b"name: g\nimport: g\ntype: t\ninternal: true\n")
    assert config.internal is False


def test_encode_omits_defaults_and_runtime_fields() -> None:
    config = PluginConfig(import_path="greeter_plugin", plugin_type="greeter", name="greeter")
    config = config.model_copy(update={"internal": True})

    payload = yaml.safe_load(encode_config(config))

    assert payload == {
        "import": "greeter_plugin",
        "type": "greeter",
        "name": "greeter",
        "description": "",
    }


def test_encode_keeps_stamp_and_local_flag() -> None:
    config = PluginConfig(
        import_path="greeter_plugin",
        plugin_type="greeter",
        name="greeter",
        local=True,
        hash="abc123",
    )

    decoded = decode_config(encode_config(config))

    assert decoded.local is True
    assert decoded.hash == "abc123"
    assert decoded.stamped
