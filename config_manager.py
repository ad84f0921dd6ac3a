"""
設定管理モジュール
抜取エンジン全体で使用する設定値の読み書きを担当する
"""

import os
import json
import logging
from copy import deepcopy

from constants import InspectionConstants
from error_handler import error_handler, ErrorCode

logger = logging.getLogger(__name__)


# クラスター抜取の既定値
DEFAULT_CLUSTER_SAMPLING = {
    "max_package_ratio": InspectionConstants.MAX_PACKAGE_RATIO,
    "min_packages": InspectionConstants.MIN_PACKAGES,
    "minutes_per_package": InspectionConstants.MINUTES_PER_PACKAGE,
}


class ConfigManager:
    """設定管理クラス"""

    CONFIG_FILE = "app_config.json"

    DEFAULT_CONFIG = {
        "default_aql": InspectionConstants.DEFAULT_AQL,
        "default_inspection_level": InspectionConstants.DEFAULT_INSPECTION_LEVEL,
        "switching_store_path": "switching_states.json",
        # None は ErrorHandler の既定 (error.log) のまま
        "error_log_path": None,
        "cluster_sampling": deepcopy(DEFAULT_CLUSTER_SAMPLING),
    }

    def __init__(self, config_path=CONFIG_FILE):
        # config_path=None はファイルを使わない（メモリ上のみ）
        self.config_path = config_path
        self.config = self._load_config()

    # ------------------------------------------------------------------
    # 設定ファイルの読み書き
    # ------------------------------------------------------------------
    def _load_config(self):
        """設定ファイルの読み込み"""
        merged = deepcopy(self.DEFAULT_CONFIG)
        if not self.config_path or not os.path.exists(self.config_path):
            return merged

        try:
            with open(self.config_path, "r", encoding="utf-8") as handle:
                loaded = json.load(handle)
        except (OSError, ValueError) as exc:
            error_handler.handle_error(ErrorCode.CONFIG_INVALID, exc, {"path": self.config_path})
            logger.warning("設定ファイルの読み込みエラーのため既定値を使用します: %s", exc)
            return merged

        if not isinstance(loaded, dict):
            error_handler.handle_error(
                ErrorCode.CONFIG_INVALID,
                ValueError(f"設定ファイルの形式が不正です: {type(loaded).__name__}"),
                {"path": self.config_path},
            )
            return merged

        for key, value in loaded.items():
            if key == "cluster_sampling":
                continue
            merged[key] = value

        user_cluster = loaded.get("cluster_sampling", {})
        if isinstance(user_cluster, dict):
            for param, default in DEFAULT_CLUSTER_SAMPLING.items():
                if param not in user_cluster:
                    continue
                try:
                    value = float(user_cluster[param]) if param == "max_package_ratio" else int(user_cluster[param])
                except (TypeError, ValueError):
                    continue
                merged["cluster_sampling"][param] = value

        self._normalize(merged)
        return merged

    def save_config(self):
        """設定ファイルの保存"""
        if not self.config_path:
            return True
        try:
            with open(self.config_path, "w", encoding="utf-8") as handle:
                json.dump(self.config, handle, ensure_ascii=False, indent=2)
            return True
        except OSError as exc:
            error_handler.handle_error(ErrorCode.CONFIG_SAVE_FAILED, exc, {"path": self.config_path})
            return False

    # ------------------------------------------------------------------
    # 一般設定値の取得・保存
    # ------------------------------------------------------------------
    def get(self, key, default=None):
        """設定値の取得"""
        return self.config.get(key, default)

    def set(self, key, value):
        """設定値の設定"""
        self.config[key] = value
        self._normalize(self.config)
        self.save_config()

    def reset_to_defaults(self):
        """設定をデフォルトにリセット"""
        self.config = deepcopy(self.DEFAULT_CONFIG)
        self.save_config()

    def get_default_aql(self):
        return self.config["default_aql"]

    def get_default_inspection_level(self):
        return self.config["default_inspection_level"]

    def get_error_log_path(self):
        return self.config["error_log_path"]

    def get_cluster_sampling_settings(self):
        """クラスター抜取設定の取得"""
        return deepcopy(self.config["cluster_sampling"])

    # ------------------------------------------------------------------
    # 内部ユーティリティ
    # ------------------------------------------------------------------
    def _normalize(self, config):
        """不正な設定値を既定値に戻す"""
        aql = config.get("default_aql")
        if isinstance(aql, (int, float)) and not isinstance(aql, bool):
            aql = next((key for key in InspectionConstants.AQL_VALUES if abs(float(key) - aql) < 1e-9), None)
        if aql not in InspectionConstants.AQL_VALUES:
            logger.warning("既定AQLが不正なため初期値に戻します: %r", config.get("default_aql"))
            aql = self.DEFAULT_CONFIG["default_aql"]
        config["default_aql"] = aql

        level = str(config.get("default_inspection_level", "")).strip().upper()
        if level not in InspectionConstants.INSPECTION_LEVEL_MULTIPLIERS:
            logger.warning("既定検査水準が不正なため初期値に戻します: %r", config.get("default_inspection_level"))
            level = self.DEFAULT_CONFIG["default_inspection_level"]
        config["default_inspection_level"] = level

        log_path = config.get("error_log_path")
        if log_path is not None and (not isinstance(log_path, str) or not log_path.strip()):
            logger.warning("エラーログの出力先が不正なため初期値に戻します: %r", log_path)
            config["error_log_path"] = None

        cluster = config.get("cluster_sampling")
        if not isinstance(cluster, dict):
            cluster = deepcopy(DEFAULT_CLUSTER_SAMPLING)
        ratio = cluster.get("max_package_ratio")
        if not isinstance(ratio, (int, float)) or not 0 < ratio <= 1:
            cluster["max_package_ratio"] = DEFAULT_CLUSTER_SAMPLING["max_package_ratio"]
        for param in ("min_packages", "minutes_per_package"):
            value = cluster.get(param)
            if not isinstance(value, int) or value < 1:
                cluster[param] = DEFAULT_CLUSTER_SAMPLING[param]
        config["cluster_sampling"] = cluster
