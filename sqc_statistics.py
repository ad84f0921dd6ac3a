"""
統計計算モジュール
抜取計画のOCカーブ（合格確率）とロット判定実績の集計
"""

from functools import lru_cache

from constants import DECISION_ACCEPTED, DECISION_REJECTED

_BINOM = None

# OCカーブを計算する不良率（%）の既定点
DEFAULT_OC_DEFECT_RATES = (0.0, 0.5, 1.0, 1.5, 2.0, 2.5, 3.0, 4.0, 5.0, 6.5, 8.0, 10.0, 15.0, 20.0)


def _ensure_scipy_binom():
    global _BINOM
    if _BINOM is None:
        from scipy.stats import binom as sp_binom
        _BINOM = sp_binom
    return _BINOM


@lru_cache(maxsize=512)
def _cached_binom_cdf(c_value, sample_size, defect_rate):
    binom = _ensure_scipy_binom()
    return float(binom.cdf(c_value, sample_size, defect_rate))


def calculate_percentage(value, total):
    """割合（%）。total が0なら0.0"""
    if total == 0:
        return 0.0
    return value / total * 100


class SQCStatistics:
    """統計的品質管理の統計計算クラス"""

    @staticmethod
    def acceptance_probability(sample_size, acceptance_number, defect_rate_percent):
        """二項分布による合格確率 Pa = P(X <= Ac)"""
        p = float(defect_rate_percent) / 100.0
        if p <= 0:
            return 1.0
        if p >= 1:
            return 0.0
        return _cached_binom_cdf(int(acceptance_number), int(sample_size), p)

    @staticmethod
    def oc_curve(sample_size, acceptance_number, defect_rates=DEFAULT_OC_DEFECT_RATES):
        """OCカーブの計算"""
        return [
            {
                'defect_rate': rate,
                'acceptance_probability': SQCStatistics.acceptance_probability(
                    sample_size, acceptance_number, rate
                ) * 100,
            }
            for rate in defect_rates
        ]

    @staticmethod
    def acceptance_rate(decisions):
        """判定結果の合格率（%）"""
        completed = [d for d in decisions if d in (DECISION_ACCEPTED, DECISION_REJECTED)]
        accepted = sum(1 for d in completed if d == DECISION_ACCEPTED)
        return calculate_percentage(accepted, len(completed))

    @staticmethod
    def supplier_performance(lots):
        """
        仕入先別の実績集計

        Args:
            lots: 'supplier_id', 'decision', 'defect_count' を持つ完了ロットのリスト

        Returns:
            dict: 仕入先ID -> 集計値
        """
        summary = {}
        for lot in lots:
            decision = lot.get('decision')
            if decision not in (DECISION_ACCEPTED, DECISION_REJECTED):
                continue
            entry = summary.setdefault(lot['supplier_id'], {
                'total_lots': 0,
                'accepted_lots': 0,
                'rejected_lots': 0,
                'total_defects': 0,
            })
            entry['total_lots'] += 1
            entry['accepted_lots' if decision == DECISION_ACCEPTED else 'rejected_lots'] += 1
            entry['total_defects'] += int(lot.get('defect_count') or 0)

        for entry in summary.values():
            entry['acceptance_rate'] = calculate_percentage(entry['accepted_lots'], entry['total_lots'])
            entry['avg_defects_per_lot'] = entry['total_defects'] / entry['total_lots']
        return summary
