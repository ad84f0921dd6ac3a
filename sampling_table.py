"""
抜取表参照モジュール
ISO 2859-1 表I/表II-A によるサンプル文字・サンプルサイズ・Ac/Re の決定

既知の制限: 表II-A の空欄（矢印欄）は隣接文字へ移らず「抜取計画なし」として None を返す
"""

import logging
import math
from functools import lru_cache

from constants import InspectionConstants, SAMPLE_SIZE_TABLE, ACCEPTANCE_TABLE
from error_handler import ErrorCode, SamplingError
from models import SamplingPlan

logger = logging.getLogger(__name__)


def round_half_up(value):
    """0.5 を切り上げる四捨五入（銀行丸めではない）"""
    return int(math.floor(value + 0.5))


def normalize_aql(aql):
    """AQL入力を表II-Aの列キーに正規化"""
    if isinstance(aql, str):
        text = aql.strip()
        if text in InspectionConstants.AQL_VALUES:
            return text
        try:
            numeric = float(text)
        except ValueError:
            raise SamplingError(ErrorCode.INVALID_INPUT, f"AQL値が不正です: {aql}")
    elif isinstance(aql, (int, float)) and not isinstance(aql, bool):
        numeric = float(aql)
    else:
        raise SamplingError(ErrorCode.INVALID_INPUT, f"AQL値が不正です: {aql!r}")

    for key in InspectionConstants.AQL_VALUES:
        if abs(float(key) - numeric) < 1e-9:
            return key
    raise SamplingError(ErrorCode.INVALID_INPUT, f"AQL値が不正です: {aql}")


def normalize_inspection_level(level):
    """検査水準を I/II/III に正規化"""
    key = str(level).strip().upper() if level is not None else ""
    if key not in InspectionConstants.INSPECTION_LEVEL_MULTIPLIERS:
        raise SamplingError(ErrorCode.INVALID_INPUT, f"検査水準が不正です: {level}")
    return key


def sample_code_for(lot_size):
    """ロットサイズからサンプル文字と基本サンプルサイズを取得（範囲外は None）"""
    for minimum, maximum, code, size in SAMPLE_SIZE_TABLE:
        if minimum <= lot_size <= maximum:
            return code, size
    return None


@lru_cache(maxsize=512)
def _resolve_cached(lot_size, aql_key, level_key):
    bracket = sample_code_for(lot_size)
    if bracket is None:
        return None
    sample_code, base_size = bracket

    multiplier = InspectionConstants.INSPECTION_LEVEL_MULTIPLIERS[level_key]
    sample_size = round_half_up(base_size * multiplier)

    acceptance = ACCEPTANCE_TABLE[sample_code][aql_key]
    if acceptance is None:
        return None

    return SamplingPlan(
        sample_code=sample_code,
        sample_size=sample_size,
        acceptance_number=acceptance[0],
        rejection_number=acceptance[1],
    )


def resolve(lot_size, aql, inspection_level=InspectionConstants.DEFAULT_INSPECTION_LEVEL):
    """
    抜取計画の決定

    Args:
        lot_size: ロットサイズ（正の整数）
        aql: AQL（"0.65"〜"6.5"、数値も可）
        inspection_level: 検査水準 I/II/III

    Returns:
        SamplingPlan または None（該当する計画が表にない場合）
    """
    if isinstance(lot_size, bool) or not isinstance(lot_size, int) or lot_size <= 0:
        raise SamplingError(ErrorCode.INVALID_INPUT, f"ロットサイズは1以上の整数で指定してください: {lot_size!r}")

    aql_key = normalize_aql(aql)
    level_key = normalize_inspection_level(inspection_level)

    plan = _resolve_cached(lot_size, aql_key, level_key)
    if plan is None:
        logger.info("抜取計画なし: lot_size=%s, aql=%s, level=%s", lot_size, aql_key, level_key)
    return plan


class SamplingTableResolver:
    """抜取表参照クラス"""

    def __init__(self, default_aql=InspectionConstants.DEFAULT_AQL,
                 default_level=InspectionConstants.DEFAULT_INSPECTION_LEVEL):
        self.default_aql = normalize_aql(default_aql)
        self.default_level = normalize_inspection_level(default_level)

    def resolve(self, lot_size, aql=None, inspection_level=None):
        """既定値を補って抜取計画を決定"""
        return resolve(
            lot_size,
            aql if aql is not None else self.default_aql,
            inspection_level if inspection_level is not None else self.default_level,
        )

    def resolve_aql(self, aql=None):
        """既定値を補ったAQL列キー"""
        return normalize_aql(aql) if aql is not None else self.default_aql

    def resolve_level(self, inspection_level=None):
        return normalize_inspection_level(inspection_level) if inspection_level is not None else self.default_level

    @staticmethod
    def sample_code_for(lot_size):
        return sample_code_for(lot_size)
