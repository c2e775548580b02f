import json
from pathlib import Path

import pytest

from cli.main import main


def test_cli_list_presets(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["--list-presets"])
    assert exc.value.code == 0
    assert "mnist-sigmoid" in capsys.readouterr().out.split()


def test_cli_runs_preset(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    main(["--preset", "blobs-relu", "--epochs", "1", "--progress", "--dump-config", "cfg.json"])
    out = capsys.readouterr().out
    payload = json.loads(out.strip().splitlines()[-1])
    assert payload["epochs"] == 1
    run_dir = Path("runs/blobs-relu")
    assert (run_dir / "metrics.jsonl").exists()
    assert (run_dir / "manifest.json").exists()
    assert "Training...\tEpoch 1/1" in out
    assert json.loads(Path("cfg.json").read_text())["train"]["epochs"] == 1


def test_cli_config_override(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    Path("override.json").write_text(json.dumps({"train": {"batch_size": 2, "save_snapshot": True}}))
    main(["--preset", "blobs-relu", "--config", "override.json", "--epochs", "1", "--lr", "0.01"])
    payload = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert payload["snapshot"].endswith("network.npz")
    manifest = json.loads(Path(payload["manifest"]).read_text())
    assert manifest["config"]["train"]["batch_size"] == 2
    assert manifest["config"]["train"]["lr"] == 0.01
