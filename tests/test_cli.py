"""CLI tests."""

import yaml

from hydrosweep.cli import run_main
from hydrosweep.core.config import default_config, merge_config, save_config
from hydrosweep.core.result_store import read_table


def _small_config(path):
    cfg = merge_config(
        default_config(),
        {
            "hull": {
                "sinks": [24.5],
                "pitches": [0.8],
                "yaws": [0.0, 45.0],
                "speeds_forward": [1.0, 2.0],
                "speeds_angle": [1.0],
                "run": {"iterations": 3},
            },
            "tank": {"rpms": [2286.0]},
        },
    )
    save_config(cfg, path)
    return path


def test_hull_dry_run(tmp_path, log_records):
    cfg = _small_config(tmp_path / "cfg.yaml")
    out = tmp_path / "out"

    rc = run_main(["hull", "--config", str(cfg), "--outdir", str(out), "--dry-run"])

    assert rc == 0
    table = read_table(out / "310slx_hydro_results.csv")
    assert len(table) == 3
    assert any(r["message"] == "sweep finished" and r["completed"] == 3 for r in log_records())


def test_tank_dry_run_with_policy_override(tmp_path):
    cfg = _small_config(tmp_path / "cfg.yaml")
    out = tmp_path / "out"

    rc = run_main(
        ["tank", "--config", str(cfg), "--outdir", str(out), "--policy", "continue", "--dry-run"]
    )

    assert rc == 0
    assert (out / "test_tank_2286.0rpm.sim").exists()


def test_missing_engine_binding_is_a_configuration_error(tmp_path, log_records):
    cfg = _small_config(tmp_path / "cfg.yaml")

    rc = run_main(["hull", "--config", str(cfg), "--outdir", str(tmp_path / "out")])

    assert rc == 1
    errors = [r for r in log_records() if r["level"] == "ERROR"]
    assert errors and errors[-1]["kind"] == "ConfigurationError"
    assert not (tmp_path / "out").exists()


def test_invalid_config_exits_with_error(tmp_path, log_records):
    path = tmp_path / "bad.yaml"
    path.write_text(yaml.safe_dump({"prop": {"version": 9}}))

    assert run_main(["prop", "--config", str(path), "--dry-run"]) == 1
    assert log_records()[-1]["message"] == "sweep failed"


def test_malformed_yaml_exits_with_error(tmp_path, log_records):
    path = tmp_path / "broken.yaml"
    path.write_text("hull: {sinks: [24.5\n")

    assert run_main(["hull", "--config", str(path), "--dry-run"]) == 1
    assert log_records()[-1]["kind"] == "ConfigurationError"
