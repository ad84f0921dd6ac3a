"""
検査水準管理モジュール
ISO 2859-1標準に基づく通常/強化/緩和の切替ルール
"""

import logging
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional, Tuple

from constants import (
    InspectionConstants,
    SWITCHING_LEVEL_LABELS,
    REASON_NORMAL_TO_REDUCED,
    REASON_NORMAL_TO_TIGHTENED,
    REASON_TIGHTENED_TO_NORMAL,
    REASON_REDUCED_TO_NORMAL,
    DECISION_ACCEPTED,
    DECISION_REJECTED,
)
from error_handler import ErrorCode, SamplingError
from models import SwitchingState, SwitchingTransition
from sampling_table import round_half_up

logger = logging.getLogger(__name__)


class InspectionLevel(Enum):
    """切替水準の定義"""
    NORMAL = "normal"
    TIGHTENED = "tightened"
    REDUCED = "reduced"


@dataclass(frozen=True)
class SwitchingRule:
    """切替ルール1件（to_level が None の場合は生産停止フラグのみ）"""
    level: InspectionLevel
    condition: Callable[[SwitchingState, str], bool]
    to_level: Optional[InspectionLevel]
    reason: str
    clears: Tuple[str, ...] = ()


def count_rejects(results):
    return sum(1 for result in results if result == DECISION_REJECTED)


# ISO 2859-1標準の切替ルール（水準ごとに上から順に評価）
SWITCHING_RULES = (
    SwitchingRule(
        level=InspectionLevel.NORMAL,
        condition=lambda s, r: s.consecutive_accepts >= InspectionConstants.NORMAL_TO_REDUCED_ACCEPTS,
        to_level=InspectionLevel.REDUCED,
        reason=REASON_NORMAL_TO_REDUCED,
        clears=("consecutive_accepts",),
    ),
    SwitchingRule(
        level=InspectionLevel.NORMAL,
        condition=lambda s, r: count_rejects(s.recent_results) >= InspectionConstants.NORMAL_TO_TIGHTENED_REJECTS,
        to_level=InspectionLevel.TIGHTENED,
        reason=REASON_NORMAL_TO_TIGHTENED,
    ),
    SwitchingRule(
        level=InspectionLevel.TIGHTENED,
        condition=lambda s, r: s.consecutive_rejects >= InspectionConstants.STOP_PRODUCTION_REJECTS,
        to_level=None,
        reason="",
    ),
    SwitchingRule(
        level=InspectionLevel.TIGHTENED,
        condition=lambda s, r: s.consecutive_accepts >= InspectionConstants.TIGHTENED_TO_NORMAL_ACCEPTS,
        to_level=InspectionLevel.NORMAL,
        reason=REASON_TIGHTENED_TO_NORMAL,
        clears=("consecutive_accepts",),
    ),
    SwitchingRule(
        level=InspectionLevel.REDUCED,
        condition=lambda s, r: r == DECISION_REJECTED,
        to_level=InspectionLevel.NORMAL,
        reason=REASON_REDUCED_TO_NORMAL,
    ),
)


def _timestamp(now=None):
    return (now or datetime.now(timezone.utc)).isoformat()


def create_default_state(supplier_id, material_type_id, now=None):
    """初回参照時の既定状態（通常検査・カウンタ0）"""
    return SwitchingState(
        supplier_id=supplier_id,
        material_type_id=material_type_id,
        current_level=InspectionLevel.NORMAL.value,
        last_updated=_timestamp(now),
    )


def create_transition(from_level, to_level, reason, lot_id, lot_number, now=None):
    """切替記録の作成"""
    return SwitchingTransition(
        id=f"trans-{uuid.uuid4().hex}",
        from_level=from_level,
        to_level=to_level,
        reason=reason,
        lot_id=lot_id,
        lot_number=lot_number,
        timestamp=_timestamp(now),
    )


def transition(state, result, lot_id, lot_number, now=None):
    """
    ロット判定結果による切替状態の遷移（純粋関数）

    Args:
        state: 現在の SwitchingState（変更しない）
        result: "accepted" または "rejected"
        lot_id, lot_number: 切替記録に残すロット情報
        now: 時刻（テスト用）

    Returns:
        (新しい SwitchingState, SwitchingTransition または None)
    """
    if result not in (DECISION_ACCEPTED, DECISION_REJECTED):
        raise SamplingError(ErrorCode.INVALID_INPUT, f"ロット判定が不正です: {result!r}")

    window = InspectionConstants.RECENT_RESULTS_WINDOW
    recent = (tuple(state.recent_results) + (result,))[-window:]

    if result == DECISION_ACCEPTED:
        accepts, rejects = state.consecutive_accepts + 1, 0
    else:
        accepts, rejects = 0, state.consecutive_rejects + 1

    updated = replace(
        state,
        recent_results=recent,
        consecutive_accepts=accepts,
        consecutive_rejects=rejects,
        last_updated=_timestamp(now),
    )

    level = InspectionLevel(state.current_level)
    for rule in SWITCHING_RULES:
        if rule.level is not level or not rule.condition(updated, result):
            continue

        if rule.to_level is None:
            # 水準・カウンタは変えず、停止フラグのみ
            if not updated.should_stop_production:
                logger.warning(
                    "生産停止: %s/%s 強化検査で%d回連続不合格",
                    updated.supplier_id, updated.material_type_id, updated.consecutive_rejects,
                )
            return replace(updated, should_stop_production=True), None

        record = create_transition(
            level.value, rule.to_level.value, rule.reason, lot_id, lot_number, now
        )
        changes = {name: 0 for name in rule.clears}
        if level is InspectionLevel.TIGHTENED:
            changes["should_stop_production"] = False
        updated = replace(
            updated,
            current_level=rule.to_level.value,
            recent_results=(),
            history=tuple(state.history) + (record,),
            **changes,
        )
        logger.info(
            "切替: %s/%s %s -> %s (%s)",
            updated.supplier_id, updated.material_type_id, record.from_level, record.to_level, rule.reason,
        )
        return updated, record

    return updated, None


def replay(supplier_id, material_type_id, results, now=None):
    """判定結果の列から切替状態を再構成"""
    state = create_default_state(supplier_id, material_type_id, now)
    for lot_id, lot_number, result in results:
        state, _ = transition(state, result, lot_id, lot_number, now)
    return state


def reset_state(state, now=None):
    """手動リセット（既定状態に戻す）"""
    return create_default_state(state.supplier_id, state.material_type_id, now)


def clear_stop_flag(state, now=None):
    """生産停止の確認（連続不合格数を0に、水準は変えない）"""
    return replace(
        state,
        should_stop_production=False,
        consecutive_rejects=0,
        last_updated=_timestamp(now),
    )


def adjusted_sample_size(base_size, level):
    """切替水準に応じたサンプルサイズ（最低2）"""
    key = InspectionLevel(level).value
    multiplier = InspectionConstants.SWITCHING_SAMPLE_MULTIPLIERS[key]
    return max(round_half_up(base_size * multiplier), InspectionConstants.MIN_ADJUSTED_SAMPLE_SIZE)


def adjusted_acceptance(base_acceptance, base_rejection, level):
    """切替水準に応じた (Ac, Re)。強化検査は Ac を1下げる"""
    if InspectionLevel(level) is InspectionLevel.TIGHTENED:
        acceptance = max(0, base_acceptance - 1)
        return acceptance, acceptance + 1
    return base_acceptance, base_rejection


def transition_text(record):
    """切替記録の表示テキスト"""
    from_label = SWITCHING_LEVEL_LABELS[record.from_level]
    to_label = SWITCHING_LEVEL_LABELS[record.to_level]
    return f"{from_label} → {to_label}: {record.reason}"


def status_text(state):
    """切替状態の要約テキスト"""
    label = SWITCHING_LEVEL_LABELS[state.current_level]

    if state.should_stop_production:
        return f"{label} - ⚠️ Üretim durdurulmalı"

    if state.current_level == InspectionLevel.NORMAL.value:
        if state.consecutive_accepts > 0:
            return f"{label} - {state.consecutive_accepts}/{InspectionConstants.NORMAL_TO_REDUCED_ACCEPTS} ardışık kabul"
        rejects = count_rejects(state.recent_results)
        if rejects > 0:
            return f"{label} - {rejects}/{InspectionConstants.NORMAL_TO_TIGHTENED_REJECTS} red (son 5 lot)"

    if state.current_level == InspectionLevel.TIGHTENED.value:
        if state.consecutive_accepts > 0:
            return f"{label} - {state.consecutive_accepts}/{InspectionConstants.TIGHTENED_TO_NORMAL_ACCEPTS} ardışık kabul"
        if state.consecutive_rejects > 0:
            return f"{label} - {state.consecutive_rejects}/{InspectionConstants.STOP_PRODUCTION_REJECTS} ardışık red"

    return label


class InspectionLevelManager:
    """検査水準管理クラス（切替状態の読み込み・遷移・保存）"""

    def __init__(self, store):
        self.store = store

    def get_current_inspection_level(self, supplier_id, material_type_id):
        """現在の切替水準を取得"""
        state = self.store.get_state(supplier_id, material_type_id)
        return InspectionLevel(state.current_level)

    def record_lot_result(self, supplier_id, material_type_id, result, lot_id, lot_number, now=None):
        """ロット判定を反映し、新しい状態を保存"""
        state = self.store.get_state(supplier_id, material_type_id)
        new_state, record = transition(state, result, lot_id, lot_number, now)
        self.store.save_state(new_state)
        return new_state, record

    def acknowledge_stop(self, supplier_id, material_type_id, now=None):
        """生産停止の確認"""
        state = clear_stop_flag(self.store.get_state(supplier_id, material_type_id), now)
        self.store.save_state(state)
        return state

    def reset(self, supplier_id, material_type_id, now=None):
        state = reset_state(self.store.get_state(supplier_id, material_type_id), now)
        self.store.save_state(state)
        return state

    def get_history(self, supplier_id, material_type_id):
        return list(self.store.get_state(supplier_id, material_type_id).history)

    def get_status_text(self, supplier_id, material_type_id):
        return status_text(self.store.get_state(supplier_id, material_type_id))
