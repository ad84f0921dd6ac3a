"""
抜取計算エンジン・切替状態保存のテスト
"""

import json
import random
import re
from dataclasses import replace

import pytest

from calculation_engine import CalculationEngine, generate_lot_number
from config_manager import ConfigManager
from error_handler import SamplingError
from models import PackageConfig, SamplingPlan
from switching_store import SwitchingStore

SUPPLIER, MATERIAL = "sup-001", "mat-label"


@pytest.fixture
def store():
    return SwitchingStore()


@pytest.fixture
def engine(store):
    return CalculationEngine(ConfigManager(config_path=None), store, rng=random.Random(7))


def set_level(store, level):
    state = store.get_state(SUPPLIER, MATERIAL)
    store.save_state(replace(state, current_level=level))


def test_normal_plan(engine):
    plan = engine.create_lot_plan(SUPPLIER, MATERIAL, 1000, "2.5", "II")
    assert plan.base_plan == SamplingPlan("J", 80, 5, 6)
    assert plan.switching_level == "normal"
    assert (plan.sample_size, plan.acceptance_number, plan.rejection_number) == (80, 5, 6)
    assert plan.sample_positions == ()
    assert re.match(r"^LOT-\d{4}-\d{3}$", plan.lot_number)


def test_defaults_from_config(engine):
    plan = engine.create_lot_plan(SUPPLIER, MATERIAL, 1000)
    assert plan.aql == "2.5"
    assert plan.inspection_level == "II"


def test_tightened_lowers_acceptance(engine, store):
    set_level(store, "tightened")
    plan = engine.create_lot_plan(SUPPLIER, MATERIAL, 1000, "2.5", "II")
    assert (plan.sample_size, plan.acceptance_number, plan.rejection_number) == (80, 4, 5)


def test_reduced_shrinks_sample(engine, store):
    set_level(store, "reduced")
    plan = engine.create_lot_plan(SUPPLIER, MATERIAL, 1000, "2.5", "II")
    assert (plan.sample_size, plan.acceptance_number, plan.rejection_number) == (32, 5, 6)


def test_cluster_positions_match_adjusted_size(engine, store):
    set_level(store, "reduced")
    config = PackageConfig(4, 10, 100)
    plan = engine.create_lot_plan(SUPPLIER, MATERIAL, 1000, "2.5", "II", config, lot_number="LOT-2026-001")
    assert plan.lot_number == "LOT-2026-001"
    assert len(plan.sample_positions) == 32
    stats = engine.sampling_stats(plan)
    assert stats.packages_to_open == 10


def test_unconfigured_package_config_skips_clustering(engine):
    plan = engine.create_lot_plan(SUPPLIER, MATERIAL, 1000, "2.5", "II", PackageConfig(0, 10, 10))
    assert plan.sample_positions == ()
    assert engine.sampling_stats(plan) is None


def test_no_plan_is_not_an_error(engine):
    assert engine.create_lot_plan(SUPPLIER, MATERIAL, 5, "0.65", "II") is None
    assert engine.create_lot_plan(SUPPLIER, MATERIAL, 1, "2.5", "II") is None


def test_invalid_input_raises(engine):
    with pytest.raises(SamplingError):
        engine.create_lot_plan(SUPPLIER, MATERIAL, 100, "3.0", "II")


def test_inspection_feeds_switching(engine):
    for index in range(10):
        plan = engine.create_lot_plan(SUPPLIER, MATERIAL, 100, "2.5", "II")
        session = engine.start_inspection(plan)
        decision = "continue"
        while decision == "continue":
            decision = session.record_sample(False)
        state, record = engine.complete_lot(plan, session, f"lot-{index}")

    assert state.current_level == "reduced"
    assert record.reason == "10 ardışık kabul"
    next_plan = engine.create_lot_plan(SUPPLIER, MATERIAL, 100, "2.5", "II")
    assert next_plan.switching_level == "reduced"
    assert next_plan.sample_size == 8


def test_complete_lot_with_unfinished_session_raises(engine):
    plan = engine.create_lot_plan(SUPPLIER, MATERIAL, 100, "2.5", "II")
    session = engine.start_inspection(plan)
    session.record_sample(False)
    with pytest.raises(SamplingError):
        engine.complete_lot(plan, session, "lot-1")
    with pytest.raises(SamplingError):
        engine.complete_lot(plan, "continue", "lot-1")


def test_stop_production_after_five_rejects_in_tightened(engine, store):
    set_level(store, "tightened")
    plan = engine.create_lot_plan(SUPPLIER, MATERIAL, 100, "2.5", "II")
    for index in range(5):
        state, record = engine.complete_lot(plan, "rejected", f"lot-{index}")
    assert state.should_stop_production is True
    assert record is None
    cleared = store.clear_stop_flag(SUPPLIER, MATERIAL)
    assert cleared.should_stop_production is False
    assert cleared.current_level == "tightened"


def test_oc_curve_for_plan(engine):
    plan = engine.create_lot_plan(SUPPLIER, MATERIAL, 1000, "2.5", "II")
    curve = engine.oc_curve(plan)
    probabilities = [point["acceptance_probability"] for point in curve]
    assert probabilities[0] == pytest.approx(100.0)
    assert probabilities == sorted(probabilities, reverse=True)


def test_generate_lot_number():
    from datetime import datetime
    number = generate_lot_number(datetime(2026, 3, 1), random.Random(1))
    assert re.match(r"^LOT-2026-\d{3}$", number)


def test_store_round_trip(tmp_path):
    path = tmp_path / "switching.json"
    engine = CalculationEngine(ConfigManager(config_path=None), SwitchingStore(str(path)), rng=random.Random(1))
    plan = engine.create_lot_plan(SUPPLIER, MATERIAL, 100, "2.5", "II")
    for index in range(10):
        engine.complete_lot(plan, "accepted", f"lot-{index}")

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw[SUPPLIER][MATERIAL]["current_level"] == "reduced"

    reloaded = SwitchingStore(str(path))
    state = reloaded.get_state(SUPPLIER, MATERIAL)
    assert state.current_level == "reduced"
    assert len(state.history) == 1
    assert reloaded.get_history(SUPPLIER, MATERIAL)[0].reason == "10 ardışık kabul"


def test_store_queries(store):
    store.get_state("sup-001", "mat-label")
    store.get_state("sup-001", "mat-yarn")
    store.get_state("sup-002", "mat-yarn")
    assert {s.material_type_id for s in store.states_for_supplier("sup-001")} == {"mat-label", "mat-yarn"}
    assert store.get_history("sup-009", "mat-label") == []
    assert store.clear_stop_flag("sup-009", "mat-label") is None
    reset = store.reset_state("sup-001", "mat-label")
    assert reset.current_level == "normal"


def test_store_ids_with_hyphens_do_not_collide(tmp_path):
    path = tmp_path / "switching.json"
    store = SwitchingStore(str(path))
    first = store.get_state("sup-001", "mat-label")
    store.save_state(replace(first, current_level="tightened"))

    other = store.get_state("sup", "001-mat-label")
    assert (other.supplier_id, other.material_type_id) == ("sup", "001-mat-label")
    assert other.current_level == "normal"

    reloaded = SwitchingStore(str(path))
    assert reloaded.get_state("sup-001", "mat-label").current_level == "tightened"
    assert reloaded.get_state("sup", "001-mat-label").current_level == "normal"


def test_store_rejects_mismatched_ids(tmp_path):
    path = tmp_path / "switching.json"
    store = SwitchingStore(str(path))
    state = store.get_state(SUPPLIER, MATERIAL)
    path.write_text(json.dumps({"sup-999": {MATERIAL: state.to_dict()}}), encoding="utf-8")
    with pytest.raises(ValueError):
        SwitchingStore(str(path))
