"""
検査判定モジュール
1サンプルごとの良否を受け取り、合格/不合格/継続を判定（打ち切り検査）
"""

import logging

from constants import DECISION_ACCEPTED, DECISION_REJECTED, DECISION_CONTINUE
from error_handler import ErrorCode, SamplingError, InspectionSequenceError
from models import InspectionRecord

logger = logging.getLogger(__name__)


def make_decision(defect_count, acceptance_number, rejection_number):
    """不良数と Ac/Re による判定"""
    if defect_count <= acceptance_number:
        return DECISION_ACCEPTED
    if defect_count >= rejection_number:
        return DECISION_REJECTED
    return DECISION_CONTINUE


class InspectionSession:
    """
    1ロットの検査進行状態

    Re に達した時点で不合格として検査を打ち切る。計画サンプル数に達した場合は
    不良数が Ac 以下なら合格、それ以外は不合格。判定確定後の記録は
    InspectionSequenceError とする。
    """

    def __init__(self, sample_size, acceptance_number, rejection_number, positions=None):
        if sample_size <= 0:
            raise SamplingError(ErrorCode.INVALID_INPUT, f"サンプルサイズが不正です: {sample_size}")
        if rejection_number <= acceptance_number:
            raise SamplingError(
                ErrorCode.INVALID_INPUT,
                f"Re は Ac より大きい必要があります: Ac={acceptance_number}, Re={rejection_number}",
            )
        self.sample_size = sample_size
        self.acceptance_number = acceptance_number
        self.rejection_number = rejection_number
        self.positions = tuple(positions or ())
        self.defect_count = 0
        self.current_sample_number = 1
        self.records = []
        self.final_decision = None

    @classmethod
    def from_lot_plan(cls, lot_plan):
        return cls(
            lot_plan.sample_size,
            lot_plan.acceptance_number,
            lot_plan.rejection_number,
            lot_plan.sample_positions,
        )

    @property
    def is_complete(self):
        return self.final_decision is not None

    @property
    def inspected_count(self):
        return len(self.records)

    @property
    def remaining_allowance(self):
        """あと何個まで不良を許容できるか（Ac - 不良数）"""
        return self.acceptance_number - self.defect_count

    @property
    def progress(self):
        """進捗率（%）"""
        return self.inspected_count / self.sample_size * 100

    @property
    def current_position(self):
        """次に採取する位置（クラスター抜取時のみ）"""
        index = self.current_sample_number - 1
        if self.is_complete or index >= len(self.positions):
            return None
        return self.positions[index]

    @property
    def provisional_decision(self):
        """現時点の不良数での暫定判定（表示用、確定判定ではない）"""
        return make_decision(self.defect_count, self.acceptance_number, self.rejection_number)

    def record_sample(self, defective):
        """
        1サンプルの結果を記録

        Returns:
            str: "accepted" / "rejected"（確定時）または "continue"
        """
        if self.is_complete:
            raise InspectionSequenceError(
                f"判定確定後にサンプルが記録されました（判定: {self.final_decision}）"
            )

        position = self.current_position
        if defective:
            self.defect_count += 1
        self.records.append(InspectionRecord(
            sample_number=self.current_sample_number,
            is_defective=bool(defective),
            position_code=position.code if position else None,
        ))

        if self.defect_count >= self.rejection_number:
            return self._finish(DECISION_REJECTED)

        if self.current_sample_number >= self.sample_size:
            decision = DECISION_ACCEPTED if self.defect_count <= self.acceptance_number else DECISION_REJECTED
            return self._finish(decision)

        self.current_sample_number += 1
        return DECISION_CONTINUE

    def _finish(self, decision):
        self.final_decision = decision
        logger.info(
            "検査完了: %s (不良 %d / 検査 %d, Ac=%d, Re=%d)",
            decision, self.defect_count, self.inspected_count,
            self.acceptance_number, self.rejection_number,
        )
        return decision
