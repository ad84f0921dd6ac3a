"""
統一エラーハンドリングモジュール
抜取エンジン全体のエラー処理とエラーログを統一管理
"""

import logging
import traceback
from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(Enum):
    """エラーコード定義"""
    # 入力関連
    INVALID_INPUT = "CALC003"

    # クラスター抜取関連
    INVALID_PACKAGE_CONFIG = "CLUS001"

    # 検査進行関連
    INSPECTION_SEQUENCE = "INSP001"

    # 保存関連
    STORE_LOAD_FAILED = "STORE001"
    STORE_SAVE_FAILED = "STORE002"

    # 設定関連
    CONFIG_INVALID = "CONF001"
    CONFIG_SAVE_FAILED = "CONF002"


class SamplingError(Exception):
    """抜取エンジンの呼び出し側エラー"""

    def __init__(self, code: ErrorCode, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def __str__(self):
        return f"[{self.code.value}] {self.message}"


class InspectionSequenceError(SamplingError):
    """判定確定後にサンプルが記録された場合のエラー"""

    def __init__(self, message: str):
        super().__init__(ErrorCode.INSPECTION_SEQUENCE, message)


class ErrorHandler:
    """統一エラーハンドリングクラス"""

    LOG_FILE = "error.log"

    def __init__(self, log_file: Optional[str] = None):
        self.log_file = log_file or self.LOG_FILE
        self.logger = self._setup_logger()
        self._error_counts = {}

    def _setup_logger(self):
        """エラーログの設定"""
        logger = logging.getLogger('error_handler')
        logger.setLevel(logging.ERROR)

        if not logger.handlers:
            logger.addHandler(self._create_file_handler(self.log_file))

        return logger

    @staticmethod
    def _create_file_handler(log_file):
        # 最初のエラー記録までファイルは作成しない
        handler = logging.FileHandler(log_file, encoding='utf-8', delay=True)
        formatter = logging.Formatter(
            '%(asctime)s - %(levelname)s - %(message)s'
        )
        handler.setFormatter(formatter)
        return handler

    def set_log_file(self, log_file: str):
        """エラーログの出力先を変更（設定の error_log_path 用）"""
        for handler in list(self.logger.handlers):
            if isinstance(handler, logging.FileHandler):
                self.logger.removeHandler(handler)
                handler.close()
        self.log_file = log_file
        self.logger.addHandler(self._create_file_handler(log_file))

    def handle_error(self,
                     error_code: ErrorCode,
                     error: Exception,
                     context: Optional[Dict[str, Any]] = None) -> bool:
        """
        エラーの統一処理

        Args:
            error_code: エラーコード
            error: 例外オブジェクト
            context: エラー発生時のコンテキスト情報

        Returns:
            bool: エラーが処理されたかどうか
        """
        try:
            self._error_counts[error_code] = self._error_counts.get(error_code, 0) + 1
            self._log_error(error_code, error, context)
            return True
        except Exception as e:
            self.logger.critical(f"Error handler failed: {str(e)}")
            return False

    def _log_error(self, error_code: ErrorCode, error: Exception, context: Optional[Dict[str, Any]]):
        """エラーログの記録"""
        error_info = {
            'code': error_code.value,
            'type': type(error).__name__,
            'message': str(error),
            'context': context or {},
            'traceback': traceback.format_exc()
        }

        self.logger.error(f"Error {error_code.value}: {error_info}")

    def get_error_count(self, error_code: ErrorCode) -> int:
        """エラー発生回数の取得"""
        return self._error_counts.get(error_code, 0)

    def reset_error_counts(self):
        """エラーカウントのリセット"""
        self._error_counts.clear()

    def is_error_frequent(self, error_code: ErrorCode, threshold: int = 5) -> bool:
        """エラーが頻繁に発生しているかチェック"""
        return self._error_counts.get(error_code, 0) >= threshold


# グローバルエラーハンドラーインスタンス
error_handler = ErrorHandler()
