from __future__ import annotations

import json
from pathlib import Path

from fodder.cli import main


def test_sync_creates_then_merges_document(tmp_path: Path, host_file: Path, capsys):
    config_path = tmp_path / "savegame" / "animal_food.json"

    assert main(["sync", "--host", str(host_file), "--config", str(config_path)]) == 0
    assert config_path.exists()
    assert "[ok] sync action=created" in capsys.readouterr().out

    document = json.loads(config_path.read_text(encoding="utf-8"))
    document["animals"][0]["foodGroups"][1]["disabled"] = True
    config_path.write_text(json.dumps(document), encoding="utf-8")
    patched = tmp_path / "patched_host.json"

    assert main(["sync", "--host", str(host_file), "--config", str(config_path), "--write-host", str(patched)]) == 0

    out = capsys.readouterr().out
    assert "action=merged" in out
    summary = json.loads(out.split("[summary] ", 1)[1].splitlines()[0])
    assert summary["removed"] == 1
    host = json.loads(patched.read_text(encoding="utf-8"))
    assert [g["title"] for g in host["animals"][0]["foodGroups"]] == ["A"]


def test_persist_writes_steady_state_document(tmp_path: Path, host_file: Path):
    config_path = tmp_path / "animal_food.json"
    assert main(["persist", "--host", str(host_file), "--config", str(config_path)]) == 0
    document = json.loads(config_path.read_text(encoding="utf-8"))
    assert document["productionMultiplier"] == {"multiplier": 1.0, "disabled": True}


def test_snapshot_prints_live_config(host_file: Path, capsys):
    assert main(["snapshot", "--host", str(host_file)]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["recipes"][0]["ingredients"][1]["minPercentage"] == 30


def test_invalid_host_exits_with_error(tmp_path: Path, capsys):
    bad = tmp_path / "host.json"
    bad.write_text("{", encoding="utf-8")
    assert main(["snapshot", "--host", str(bad)]) == 1
    assert "[error]" in capsys.readouterr().out
