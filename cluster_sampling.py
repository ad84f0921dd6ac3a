"""
二段クラスター抜取モジュール
開封する袋の無作為選択（第1段）と袋内の上・中・下位置の層別採取（第2段）
"""

import logging
import math
import random

from constants import InspectionConstants, POSITION_CODES, POSITION_LABELS
from error_handler import ErrorCode, SamplingError
from models import PackageConfig, PackageGroup, SamplePosition, SamplingStats

logger = logging.getLogger(__name__)


def get_position_label(position):
    """位置コードの表示ラベルを取得"""
    return POSITION_LABELS[position]


def packages_to_open(total_packages,
                     max_ratio=InspectionConstants.MAX_PACKAGE_RATIO,
                     min_packages=InspectionConstants.MIN_PACKAGES):
    """開封する袋数 S = max(最低袋数, floor(T × 比率))、ただし T を超えない"""
    by_ratio = math.floor(total_packages * max_ratio)
    return min(max(min_packages, by_ratio), total_packages)


def samples_per_package(sample_size, opened=None):
    """袋あたりの採取数 m = ceil(n / S)"""
    if opened:
        return math.ceil(sample_size / opened)

    # 開封袋数が未定の場合の旧固定表
    if sample_size <= 30:
        return 3
    if sample_size <= 60:
        return 4
    if sample_size <= 120:
        return 5
    if sample_size <= 200:
        return 8
    return 10


def package_coordinate(number, packages_per_pallet):
    """通し袋番号 y -> (パレット, 袋)"""
    pallet = math.ceil(number / packages_per_pallet)
    package = number - (pallet - 1) * packages_per_pallet
    return pallet, package


def format_package_code(pallet, package):
    return f"{pallet:02d}-{package:02d}"


def format_position_code(pallet, package, position):
    return f"{format_package_code(pallet, package)}-{position}"


def cyclic_position(index):
    """01 -> 02 -> 03 -> 01 ... の循環位置"""
    return POSITION_CODES[index % len(POSITION_CODES)]


def shuffle(items, rng):
    """Fisher-Yates シャッフル（元のリストは変更しない）"""
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randrange(i + 1)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def _check_inputs(sample_size, config):
    if isinstance(sample_size, bool) or not isinstance(sample_size, int) or sample_size <= 0:
        raise SamplingError(ErrorCode.INVALID_INPUT, f"サンプルサイズは1以上の整数で指定してください: {sample_size!r}")
    if not config.is_configured:
        raise SamplingError(
            ErrorCode.INVALID_PACKAGE_CONFIG,
            "袋構成が設定されていません（総袋数0）。クラスター抜取は使用できません",
        )


def plan(sample_size, config, rng=None,
         max_ratio=InspectionConstants.MAX_PACKAGE_RATIO,
         min_packages=InspectionConstants.MIN_PACKAGES):
    """
    全採取位置の生成（二段クラスター抜取）

    Args:
        sample_size: 必要サンプル数（切替調整後）
        config: PackageConfig
        rng: random.Random 互換の乱数生成器（テストではシード固定）

    Returns:
        list[SamplePosition]: 生成順の採取位置
    """
    _check_inputs(sample_size, config)
    rng = rng or random.Random()

    total = config.total_packages
    opened_count = packages_to_open(total, max_ratio, min_packages)

    # シャッフル順を保持（端数の追加採取はこの順で割り当てる）
    numbers = shuffle(range(1, total + 1), rng)[:opened_count]
    selected = [package_coordinate(y, config.packages_per_pallet) for y in numbers]

    quotient, remainder = divmod(sample_size, opened_count)

    positions = []
    for i, (pallet, package) in enumerate(selected):
        count = quotient + 1 if i < remainder else quotient
        for _ in range(count):
            # 位置の循環は袋ごとにリセットしない
            position = cyclic_position(len(positions))
            positions.append(SamplePosition(
                code=format_position_code(pallet, package, position),
                pallet=pallet,
                package=package,
                position=position,
                position_label=get_position_label(position),
            ))

    logger.debug("クラスター抜取: n=%s, T=%s, S=%s", sample_size, total, opened_count)
    return positions


def stats(sample_size, config,
          max_ratio=InspectionConstants.MAX_PACKAGE_RATIO,
          min_packages=InspectionConstants.MIN_PACKAGES,
          minutes_per_package=InspectionConstants.MINUTES_PER_PACKAGE):
    """抜取統計（総袋数・総個数・袋あたり採取数・開封袋数・概算時間）"""
    total = config.total_packages
    opened_count = packages_to_open(total, max_ratio, min_packages)
    return SamplingStats(
        total_packages=total,
        total_items=config.total_items,
        samples_per_package=samples_per_package(sample_size, opened_count),
        packages_to_open=opened_count,
        estimated_minutes=opened_count * minutes_per_package,
    )


def group_by_package(positions):
    """採取位置を袋ごとにまとめる（パレット→袋の順）"""
    groups = {}
    for position in positions:
        key = (position.pallet, position.package)
        group = groups.get(key)
        if group is None:
            group = PackageGroup(
                pallet=position.pallet,
                package=position.package,
                package_code=format_package_code(position.pallet, position.package),
            )
            groups[key] = group
        group.samples.append(position)
        group.sample_count += 1
    return [groups[key] for key in sorted(groups)]


class ClusterSamplingPlanner:
    """二段クラスター抜取計画クラス"""

    def __init__(self, rng=None,
                 max_ratio=InspectionConstants.MAX_PACKAGE_RATIO,
                 min_packages=InspectionConstants.MIN_PACKAGES,
                 minutes_per_package=InspectionConstants.MINUTES_PER_PACKAGE):
        self.rng = rng or random.Random()
        self.max_ratio = max_ratio
        self.min_packages = min_packages
        self.minutes_per_package = minutes_per_package

    def plan(self, sample_size, config: PackageConfig):
        return plan(sample_size, config, self.rng, self.max_ratio, self.min_packages)

    def stats(self, sample_size, config: PackageConfig):
        return stats(sample_size, config, self.max_ratio, self.min_packages, self.minutes_per_package)

    @staticmethod
    def group_by_package(positions):
        return group_by_package(positions)
