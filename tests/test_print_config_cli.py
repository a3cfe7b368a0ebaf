import json

from pluginhost import main as main_module


def test_print_config_json(tmp_path, monkeypatch, capsys):
    config_path = tmp_path / "pluginhost.yml"
    config_path.write_text(
        f"archive_dir: {tmp_path}\nmetadata_filename: meta.yml\n", encoding="utf-8"
    )
    monkeypatch.delenv("PLUGINHOST_CONFIG", raising=False)

    assert main_module.main(["--config", str(config_path), "print-config"]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["archive_dir"] == str(tmp_path)
    assert payload["metadata_filename"] == "meta.yml"
    assert payload["archive_suffixes"] == [".zip"]


def test_plan_then_sync(plugin_dirs, make_archive, monkeypatch, capsys):
    archives, cache = plugin_dirs
    _, digest = make_archive(archives / "greeter.zip", "greeter")
    monkeypatch.delenv("PLUGINHOST_CONFIG", raising=False)
    argv = ["--archive-dir", str(archives), "--cache-dir", str(cache)]

    assert main_module.main([*argv, "plan"]) == 0
    planned = json.loads(capsys.readouterr().out)
    assert list(planned["extract"]) == [digest]
    assert list(cache.iterdir()) == []

    assert main_module.main([*argv, "sync"]) == 0
    capsys.readouterr()
    assert [path.name for path in cache.iterdir()] == [f"greeter-{digest[:12]}"]

    assert main_module.main([*argv, "plan"]) == 0
    assert json.loads(capsys.readouterr().out) == {"extract": {}, "evict": []}


def test_sync_without_directories_fails(monkeypatch, capsys):
    monkeypatch.delenv("PLUGINHOST_CONFIG", raising=False)

    assert main_module.main(["sync"]) == 2
