"""
設定管理・統計計算・入力検証・エラーハンドリングのテスト
"""

import json
import logging

import pytest

from calculation_engine import CalculationEngine
from config_manager import ConfigManager
from error_handler import ErrorCode, ErrorHandler, InspectionSequenceError, SamplingError, error_handler
from models import PackageConfig
from sqc_statistics import SQCStatistics, calculate_percentage
from switching_store import SwitchingStore
from validation import InputValidator


# ----------------------------------------------------------------------
# ConfigManager
# ----------------------------------------------------------------------
def test_config_defaults_in_memory():
    config = ConfigManager(config_path=None)
    assert config.get_default_aql() == "2.5"
    assert config.get_default_inspection_level() == "II"
    assert config.get_cluster_sampling_settings() == {
        "max_package_ratio": 0.25,
        "min_packages": 3,
        "minutes_per_package": 2,
    }


def test_config_loads_and_normalizes_file(tmp_path):
    path = tmp_path / "app_config.json"
    path.write_text(json.dumps({
        "default_aql": 1,
        "default_inspection_level": "iii",
        "cluster_sampling": {"max_package_ratio": "0.5", "min_packages": "x"},
    }), encoding="utf-8")

    config = ConfigManager(str(path))
    assert config.get_default_aql() == "1.0"
    assert config.get_default_inspection_level() == "III"
    settings = config.get_cluster_sampling_settings()
    assert settings["max_package_ratio"] == 0.5
    assert settings["min_packages"] == 3


def test_config_invalid_values_fall_back(tmp_path):
    path = tmp_path / "app_config.json"
    path.write_text(json.dumps({"default_aql": "9.9", "default_inspection_level": "S-1"}), encoding="utf-8")
    config = ConfigManager(str(path))
    assert config.get_default_aql() == "2.5"
    assert config.get_default_inspection_level() == "II"


def test_config_broken_file_uses_defaults(tmp_path):
    path = tmp_path / "app_config.json"
    path.write_text("{not json", encoding="utf-8")
    error_handler.reset_error_counts()
    assert ConfigManager(str(path)).get_default_aql() == "2.5"
    assert error_handler.get_error_count(ErrorCode.CONFIG_INVALID) == 1


def test_config_save_failure_is_reported(tmp_path):
    error_handler.reset_error_counts()
    # ディレクトリは読み書きできない
    config = ConfigManager(str(tmp_path))
    assert config.get_default_aql() == "2.5"
    assert error_handler.get_error_count(ErrorCode.CONFIG_INVALID) == 1
    assert config.save_config() is False
    assert error_handler.get_error_count(ErrorCode.CONFIG_SAVE_FAILED) == 1


def test_config_error_log_path(tmp_path):
    assert ConfigManager(config_path=None).get_error_log_path() is None

    path = tmp_path / "app_config.json"
    path.write_text(json.dumps({"error_log_path": 42}), encoding="utf-8")
    assert ConfigManager(str(path)).get_error_log_path() is None

    path.write_text(json.dumps({"error_log_path": "logs.txt"}), encoding="utf-8")
    assert ConfigManager(str(path)).get_error_log_path() == "logs.txt"


def test_config_set_saves_and_reset(tmp_path):
    path = tmp_path / "app_config.json"
    config = ConfigManager(str(path))
    config.set("default_aql", "4.0")
    assert json.loads(path.read_text(encoding="utf-8"))["default_aql"] == "4.0"
    config.reset_to_defaults()
    assert ConfigManager(str(path)).get_default_aql() == "2.5"


# ----------------------------------------------------------------------
# SQCStatistics
# ----------------------------------------------------------------------
def test_acceptance_probability():
    assert SQCStatistics.acceptance_probability(10, 0, 0) == 1.0
    assert SQCStatistics.acceptance_probability(10, 0, 100) == 0.0
    assert SQCStatistics.acceptance_probability(10, 0, 10) == pytest.approx(0.9 ** 10)


def test_oc_curve_points():
    curve = SQCStatistics.oc_curve(20, 1, defect_rates=(0.0, 5.0, 10.0))
    assert [p["defect_rate"] for p in curve] == [0.0, 5.0, 10.0]
    assert curve[0]["acceptance_probability"] == pytest.approx(100.0)
    expected = (0.95 ** 20 + 20 * 0.05 * 0.95 ** 19) * 100
    assert curve[1]["acceptance_probability"] == pytest.approx(expected)


def test_acceptance_rate_and_percentage():
    assert SQCStatistics.acceptance_rate(["accepted", "rejected", "accepted", "continue"]) == pytest.approx(200 / 3)
    assert SQCStatistics.acceptance_rate([]) == 0.0
    assert calculate_percentage(1, 4) == 25.0
    assert calculate_percentage(1, 0) == 0.0


def test_supplier_performance():
    lots = [
        {"supplier_id": "sup-001", "decision": "accepted", "defect_count": 1},
        {"supplier_id": "sup-001", "decision": "rejected", "defect_count": 5},
        {"supplier_id": "sup-002", "decision": "accepted", "defect_count": 0},
        {"supplier_id": "sup-002", "decision": None, "defect_count": 0},
    ]
    summary = SQCStatistics.supplier_performance(lots)
    assert summary["sup-001"] == {
        "total_lots": 2,
        "accepted_lots": 1,
        "rejected_lots": 1,
        "total_defects": 6,
        "acceptance_rate": 50.0,
        "avg_defects_per_lot": 3.0,
    }
    assert summary["sup-002"]["total_lots"] == 1


# ----------------------------------------------------------------------
# InputValidator
# ----------------------------------------------------------------------
def test_validate_all_inputs_ok():
    ok, errors, data = InputValidator.validate_all_inputs("1,200", "1", "iii", "4", "10", "50")
    assert ok and errors == []
    assert data == {
        "lot_size": 1200,
        "aql": "1.0",
        "inspection_level": "III",
        "package_config": PackageConfig(4, 10, 50),
    }


def test_validate_all_inputs_defaults_and_no_packages():
    ok, _, data = InputValidator.validate_all_inputs("500")
    assert ok
    assert data["aql"] == "2.5"
    assert data["inspection_level"] == "II"
    assert data["package_config"] is None


@pytest.mark.parametrize("lot_size", ["", "abc", "1", "10000000"])
def test_validate_lot_size_errors(lot_size):
    error, value = InputValidator.validate_lot_size(lot_size)
    assert error and value is None


def test_validate_collects_every_error():
    ok, errors, _ = InputValidator.validate_all_inputs("x", "3.0", "IV", "-1", "2", "3")
    assert not ok
    assert len(errors) == 4


# ----------------------------------------------------------------------
# ErrorHandler
# ----------------------------------------------------------------------
def test_error_handler_counts():
    handler = ErrorHandler()
    error = SamplingError(ErrorCode.INVALID_INPUT, "bad")
    assert handler.handle_error(ErrorCode.INVALID_INPUT, error)
    assert handler.get_error_count(ErrorCode.INVALID_INPUT) == 1
    assert not handler.is_error_frequent(ErrorCode.INVALID_INPUT)
    handler.reset_error_counts()
    assert handler.get_error_count(ErrorCode.INVALID_INPUT) == 0


def test_error_string_carries_code():
    assert str(SamplingError(ErrorCode.INVALID_PACKAGE_CONFIG, "x")) == "[CLUS001] x"
    assert InspectionSequenceError("y").code is ErrorCode.INSPECTION_SEQUENCE


@pytest.fixture
def restore_error_log():
    logger = logging.getLogger('error_handler')
    original = list(logger.handlers)
    original_file = error_handler.log_file
    yield logger
    error_handler.log_file = original_file
    for handler in list(logger.handlers):
        if handler not in original:
            logger.removeHandler(handler)
            handler.close()
    for handler in original:
        if handler not in logger.handlers:
            logger.addHandler(handler)


def test_set_log_file_redirects_error_log(tmp_path, restore_error_log):
    log_path = tmp_path / "sampling_errors.log"
    handler = ErrorHandler()
    handler.set_log_file(str(log_path))
    assert len(restore_error_log.handlers) == 1

    handler.handle_error(ErrorCode.STORE_SAVE_FAILED, OSError("disk full"), {"path": "x.json"})
    for log_handler in restore_error_log.handlers:
        log_handler.flush()
    assert "STORE002" in log_path.read_text(encoding="utf-8")


def test_engine_applies_configured_error_log(tmp_path, restore_error_log):
    log_path = tmp_path / "engine_errors.log"
    config_path = tmp_path / "app_config.json"
    config_path.write_text(json.dumps({"error_log_path": str(log_path)}), encoding="utf-8")

    engine = CalculationEngine(ConfigManager(str(config_path)), SwitchingStore())
    assert error_handler.log_file == str(log_path)
    with pytest.raises(SamplingError):
        engine.create_lot_plan("sup-001", "mat-label", 100, "3.0", "II")
    for log_handler in restore_error_log.handlers:
        log_handler.flush()
    assert "CALC003" in log_path.read_text(encoding="utf-8")
