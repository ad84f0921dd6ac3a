"""
抜取計算エンジンモジュール
ロット登録時の抜取計画（表参照・切替調整・クラスター抜取）と
検査完了時の切替状態更新を管理
"""

import logging
import random
from datetime import datetime

from cluster_sampling import ClusterSamplingPlanner
from config_manager import ConfigManager
from constants import DECISION_ACCEPTED, DECISION_REJECTED
from error_handler import error_handler, ErrorCode, SamplingError
from inspection_level_manager import (
    InspectionLevelManager,
    adjusted_sample_size,
    adjusted_acceptance,
)
from inspection_session import InspectionSession
from models import LotPlan
from sampling_table import SamplingTableResolver
from sqc_statistics import SQCStatistics
from switching_store import SwitchingStore

logger = logging.getLogger(__name__)


def generate_lot_number(now=None, rng=None):
    """ロット番号 LOT-{年}-{3桁} の生成"""
    year = (now or datetime.now()).year
    number = (rng or random).randrange(1000)
    return f"LOT-{year}-{number:03d}"


class CalculationEngine:
    """抜取計算エンジンクラス"""

    def __init__(self, config_manager=None, store=None, rng=None):
        self.config_manager = config_manager or ConfigManager(config_path=None)
        log_path = self.config_manager.get_error_log_path()
        if log_path:
            error_handler.set_log_file(log_path)
        self.store = store or SwitchingStore(self.config_manager.get("switching_store_path"))
        self.rng = rng or random.Random()

        cluster = self.config_manager.get_cluster_sampling_settings()
        self.resolver = SamplingTableResolver(
            self.config_manager.get_default_aql(),
            self.config_manager.get_default_inspection_level(),
        )
        self.planner = ClusterSamplingPlanner(
            self.rng,
            max_ratio=cluster["max_package_ratio"],
            min_packages=cluster["min_packages"],
            minutes_per_package=cluster["minutes_per_package"],
        )
        self.level_manager = InspectionLevelManager(self.store)

    def create_lot_plan(self, supplier_id, material_type_id, lot_size, aql=None,
                        inspection_level=None, package_config=None, lot_number=None):
        """
        ロット登録時の抜取計画作成

        Returns:
            LotPlan または None（抜取計画が表にない場合）
        """
        try:
            base_plan = self.resolver.resolve(lot_size, aql, inspection_level)
        except SamplingError as exc:
            error_handler.handle_error(exc.code, exc, {"lot_size": lot_size, "aql": aql})
            raise

        if base_plan is None:
            return None

        state = self.store.get_state(supplier_id, material_type_id)
        level = state.current_level
        sample_size = adjusted_sample_size(base_plan.sample_size, level)
        acceptance, rejection = adjusted_acceptance(
            base_plan.acceptance_number, base_plan.rejection_number, level
        )

        positions = ()
        if package_config is not None and package_config.is_configured:
            positions = tuple(self.planner.plan(sample_size, package_config))

        plan = LotPlan(
            lot_number=lot_number or generate_lot_number(rng=self.rng),
            supplier_id=supplier_id,
            material_type_id=material_type_id,
            lot_size=lot_size,
            aql=self.resolver.resolve_aql(aql),
            inspection_level=self.resolver.resolve_level(inspection_level),
            switching_level=level,
            base_plan=base_plan,
            sample_size=sample_size,
            acceptance_number=acceptance,
            rejection_number=rejection,
            package_config=package_config,
            sample_positions=positions,
        )
        logger.info(
            "抜取計画: %s 文字=%s n=%d Ac=%d Re=%d 水準=%s",
            plan.lot_number, base_plan.sample_code, sample_size, acceptance, rejection, level,
        )
        return plan

    def sampling_stats(self, lot_plan):
        """クラスター抜取の統計（袋構成がない場合は None）"""
        config = lot_plan.package_config
        if config is None or not config.is_configured:
            return None
        return self.planner.stats(lot_plan.sample_size, config)

    def oc_curve(self, lot_plan):
        """調整後の抜取計画のOCカーブ"""
        return SQCStatistics.oc_curve(lot_plan.sample_size, lot_plan.acceptance_number)

    @staticmethod
    def start_inspection(lot_plan):
        """検査セッションの開始"""
        return InspectionSession.from_lot_plan(lot_plan)

    def complete_lot(self, lot_plan, decision, lot_id):
        """
        ロット判定を切替状態に反映

        Returns:
            (新しい SwitchingState, SwitchingTransition または None)
        """
        if isinstance(decision, InspectionSession):
            if not decision.is_complete:
                raise SamplingError(ErrorCode.INSPECTION_SEQUENCE, "検査が完了していません")
            decision = decision.final_decision
        if decision not in (DECISION_ACCEPTED, DECISION_REJECTED):
            raise SamplingError(ErrorCode.INVALID_INPUT, f"ロット判定が不正です: {decision!r}")

        state, record = self.level_manager.record_lot_result(
            lot_plan.supplier_id, lot_plan.material_type_id, decision, lot_id, lot_plan.lot_number
        )
        if state.should_stop_production:
            logger.warning("生産停止が必要です: %s/%s", state.supplier_id, state.material_type_id)
        return state, record
