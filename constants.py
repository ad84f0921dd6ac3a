"""
定数定義モジュール
ISO 2859-1 抜取表・検査水準・切替ルール関連の定数を定義
"""


class InspectionConstants:
    """抜取検査と切替ルール関連の定数定義"""

    # ロットサイズの範囲（ISO 2859-1 表I: 最小ブラケット 2-8 から最大 500001-9999999）
    MIN_LOT_SIZE = 2
    MAX_LOT_SIZE = 9999999

    # 検査水準（I/II/III）ごとのサンプルサイズ倍率
    INSPECTION_LEVEL_MULTIPLIERS = {
        "I": 0.4,    # 低減: 少ないサンプル
        "II": 1.0,   # 通常
        "III": 1.6,  # 強化: 多いサンプル
    }
    DEFAULT_INSPECTION_LEVEL = "II"

    # AQL列（表II-A の6列）
    AQL_VALUES = ("0.65", "1.0", "1.5", "2.5", "4.0", "6.5")
    DEFAULT_AQL = "2.5"

    # 切替水準（normal/tightened/reduced）ごとのサンプルサイズ倍率
    SWITCHING_SAMPLE_MULTIPLIERS = {
        "normal": 1.0,
        "tightened": 1.0,  # 同じサンプル数、Acを下げる
        "reduced": 0.4,    # 40%
    }
    MIN_ADJUSTED_SAMPLE_SIZE = 2

    # 切替ルールの閾値
    NORMAL_TO_REDUCED_ACCEPTS = 10
    NORMAL_TO_TIGHTENED_REJECTS = 2
    TIGHTENED_TO_NORMAL_ACCEPTS = 5
    STOP_PRODUCTION_REJECTS = 5
    RECENT_RESULTS_WINDOW = 5

    # 二段クラスター抜取
    MAX_PACKAGE_RATIO = 0.25      # 開封する袋は最大25%
    MIN_PACKAGES = 3              # 最低3袋は開封
    MINUTES_PER_PACKAGE = 2       # 1袋あたりの概算作業時間（分）


# ISO 2859-1 表I: ロットサイズ範囲 -> (サンプル文字, 基本サンプルサイズ)
# (最小, 最大, 文字, サイズ)
SAMPLE_SIZE_TABLE = (
    (2, 8, "A", 2),
    (9, 15, "B", 3),
    (16, 25, "C", 5),
    (26, 50, "D", 8),
    (51, 90, "E", 13),
    (91, 150, "F", 20),
    (151, 280, "G", 32),
    (281, 500, "H", 50),
    (501, 1200, "J", 80),
    (1201, 3200, "K", 125),
    (3201, 10000, "L", 200),
    (10001, 35000, "M", 315),
    (35001, 150000, "N", 500),
    (150001, 500000, "P", 800),
    (500001, 9999999, "Q", 1250),
)

# ISO 2859-1 表II-A（通常検査・1回抜取）: 文字 -> AQL -> (Ac, Re)
# None は「矢印に従う」欄。本エンジンでは抜取計画なしとして扱う
ACCEPTANCE_TABLE = {
    "A": {"0.65": None, "1.0": None, "1.5": None, "2.5": (0, 1), "4.0": (0, 1), "6.5": (0, 1)},
    "B": {"0.65": None, "1.0": None, "1.5": (0, 1), "2.5": (0, 1), "4.0": (0, 1), "6.5": (1, 2)},
    "C": {"0.65": None, "1.0": (0, 1), "1.5": (0, 1), "2.5": (0, 1), "4.0": (0, 1), "6.5": (1, 2)},
    "D": {"0.65": None, "1.0": (0, 1), "1.5": (0, 1), "2.5": (0, 1), "4.0": (1, 2), "6.5": (2, 3)},
    "E": {"0.65": (0, 1), "1.0": (0, 1), "1.5": (0, 1), "2.5": (1, 2), "4.0": (1, 2), "6.5": (3, 4)},
    "F": {"0.65": (0, 1), "1.0": (0, 1), "1.5": (1, 2), "2.5": (1, 2), "4.0": (2, 3), "6.5": (5, 6)},
    "G": {"0.65": (0, 1), "1.0": (1, 2), "1.5": (1, 2), "2.5": (2, 3), "4.0": (3, 4), "6.5": (7, 8)},
    "H": {"0.65": (0, 1), "1.0": (1, 2), "1.5": (2, 3), "2.5": (3, 4), "4.0": (5, 6), "6.5": (10, 11)},
    "J": {"0.65": (1, 2), "1.0": (2, 3), "1.5": (3, 4), "2.5": (5, 6), "4.0": (7, 8), "6.5": (14, 15)},
    "K": {"0.65": (1, 2), "1.0": (3, 4), "1.5": (5, 6), "2.5": (7, 8), "4.0": (10, 11), "6.5": (21, 22)},
    "L": {"0.65": (2, 3), "1.0": (5, 6), "1.5": (7, 8), "2.5": (10, 11), "4.0": (14, 15), "6.5": (21, 22)},
    "M": {"0.65": (3, 4), "1.0": (7, 8), "1.5": (10, 11), "2.5": (14, 15), "4.0": (21, 22), "6.5": (21, 22)},
    "N": {"0.65": (5, 6), "1.0": (10, 11), "1.5": (14, 15), "2.5": (21, 22), "4.0": (21, 22), "6.5": (21, 22)},
    "P": {"0.65": (7, 8), "1.0": (14, 15), "1.5": (21, 22), "2.5": (21, 22), "4.0": (21, 22), "6.5": (21, 22)},
    "Q": {"0.65": (10, 11), "1.0": (21, 22), "1.5": (21, 22), "2.5": (21, 22), "4.0": (21, 22), "6.5": (21, 22)},
}

# 袋内の採取位置コード -> 表示ラベル
POSITION_CODES = ("01", "02", "03")
POSITION_LABELS = {
    "01": "ÜSTTEN",
    "02": "ORTADAN",
    "03": "ALTTAN",
}

# 切替水準の表示名
SWITCHING_LEVEL_LABELS = {
    "normal": "Normal",
    "tightened": "Sıkılaştırılmış",
    "reduced": "Gevşetilmiş",
}

# 切替理由テキスト
REASON_NORMAL_TO_REDUCED = "10 ardışık kabul"
REASON_NORMAL_TO_TIGHTENED = "Son 5 lottan 2+ red"
REASON_TIGHTENED_TO_NORMAL = "5 ardışık kabul"
REASON_REDUCED_TO_NORMAL = "Red alındı"

# 判定値
DECISION_ACCEPTED = "accepted"
DECISION_REJECTED = "rejected"
DECISION_CONTINUE = "continue"
