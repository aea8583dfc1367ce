import json

import numpy as np
import pytest

from knn_service.config import Settings
from knn_service.data import dataset as dataset_module
from knn_service.data.dataset import write_points
from knn_service.main import build_parser, main


def _write_dataset(tmp_path, n=30, m=4, d=3, seed=0):
    rng = np.random.default_rng(seed)
    train, test = tmp_path / "train.bin", tmp_path / "test.bin"
    write_points(str(train), rng.uniform(0, 100, size=(n, d)))
    write_points(str(test), rng.uniform(0, 100, size=(m, d)))
    return str(train), str(test)


def test_cli_end_to_end(tmp_path, capsys):
    train, test = _write_dataset(tmp_path)
    output = tmp_path / "results.txt"
    stats = tmp_path / "stats.json"

    code = main([train, test, "3", "4", str(output), "--stats-output", str(stats), "--verify"])

    assert code == 0
    text = output.read_text()
    assert text.count("Test point") == 4
    assert text.count("ID:") == 12
    assert json.loads(stats.read_text())["num_threads"] == 4
    captured = capsys.readouterr().out
    assert "First results:" in captured
    assert "EXECUTION STATISTICS" in captured


def test_cli_rejects_k_larger_than_training_set(tmp_path):
    train, test = _write_dataset(tmp_path, n=5)
    output = tmp_path / "results.txt"
    assert main([train, test, "6", "2", str(output)]) == 1
    assert not output.exists()


def test_cli_rejects_non_positive_threads(tmp_path):
    train, test = _write_dataset(tmp_path)
    output = tmp_path / "results.txt"
    assert main([train, test, "3", "0", str(output)]) == 1
    assert not output.exists()


def test_cli_missing_file(tmp_path):
    assert main([str(tmp_path / "missing.bin"), str(tmp_path / "missing.bin"), "1", "1",
                 str(tmp_path / "out.txt")]) == 1


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("NUM_THREADS", "9")
    monkeypatch.setenv("OUTPUT_FILE", "neighbors.json")
    settings = Settings()
    assert settings.num_threads == 9
    assert settings.output_file == "neighbors.json"
    assert settings.k == 3


def test_cli_unreadable_point_file(tmp_path, monkeypatch):
    train, test = _write_dataset(tmp_path)

    def deny(*args, **kwargs):
        raise PermissionError(13, "Permission denied", train)

    monkeypatch.setattr(dataset_module, "open", deny, raising=False)
    output = tmp_path / "results.txt"
    assert main([train, test, "3", "2", str(output)]) == 1
    assert not output.exists()


def test_boolean_flags_can_be_turned_off_from_the_command_line(monkeypatch):
    monkeypatch.setenv("VERIFY", "true")
    monkeypatch.setenv("DEBUG", "true")
    parser = build_parser(Settings())

    args = parser.parse_args([])
    assert args.verify is True
    assert args.debug is True

    args = parser.parse_args(["--no-verify", "--no-debug"])
    assert args.verify is False
    assert args.debug is False


def test_log_level_is_case_insensitive():
    args = build_parser(Settings()).parse_args(["--log-level", "warning"])
    assert args.log_level == "WARNING"


def test_invalid_log_level_is_a_usage_error(tmp_path):
    train, test = _write_dataset(tmp_path)
    with pytest.raises(SystemExit) as excinfo:
        main([train, test, "3", "2", str(tmp_path / "out.txt"), "--log-level", "chatty"])
    assert excinfo.value.code == 2


def test_invalid_log_level_from_environment_is_a_usage_error(tmp_path, monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "chatty")
    train, test = _write_dataset(tmp_path)
    with pytest.raises(SystemExit) as excinfo:
        main([train, test, "3", "2", str(tmp_path / "out.txt")])
    assert excinfo.value.code == 2
