"""
切替状態保存モジュール
仕入先×材料ごとの SwitchingState を JSON ファイルに保存・読み込みする
"""

import os
import json
import logging
import threading

from error_handler import error_handler, ErrorCode
from inspection_level_manager import create_default_state, reset_state as _reset_state, clear_stop_flag as _clear_stop_flag
from models import SwitchingState, make_state_key

logger = logging.getLogger(__name__)


class SwitchingStore:
    """切替状態の保存クラス（path=None はメモリ上のみ）"""

    def __init__(self, path=None):
        self.path = path
        self._lock = threading.Lock()
        self._states = self._load()

    # ------------------------------------------------------------------
    # ファイルの読み書き
    # ------------------------------------------------------------------
    def _load(self):
        if not self.path or not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as handle:
                raw = json.load(handle)
            states = {}
            # {仕入先ID: {材料ID: 状態}}
            for supplier_id, materials in raw.items():
                for material_type_id, value in materials.items():
                    state = SwitchingState.from_dict(value)
                    if state.key != (supplier_id, material_type_id):
                        raise ValueError(
                            f"切替状態のIDが保存キーと一致しません: {supplier_id}/{material_type_id}"
                        )
                    states[state.key] = state
            return states
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as exc:
            error_handler.handle_error(ErrorCode.STORE_LOAD_FAILED, exc, {"path": self.path})
            raise

    def _save(self):
        if not self.path:
            return
        data = {}
        for (supplier_id, material_type_id), state in self._states.items():
            data.setdefault(supplier_id, {})[material_type_id] = state.to_dict()
        try:
            with open(self.path, "w", encoding="utf-8") as handle:
                json.dump(data, handle, ensure_ascii=False, indent=2)
        except OSError as exc:
            error_handler.handle_error(ErrorCode.STORE_SAVE_FAILED, exc, {"path": self.path})
            raise

    # ------------------------------------------------------------------
    # 状態の取得・保存
    # ------------------------------------------------------------------
    def get_state(self, supplier_id, material_type_id):
        """切替状態の取得（未登録の組み合わせは既定状態を作成）"""
        key = make_state_key(supplier_id, material_type_id)
        with self._lock:
            state = self._states.get(key)
            if state is None:
                state = create_default_state(supplier_id, material_type_id)
                self._states[key] = state
                self._save()
                logger.info("切替状態を新規作成: %s/%s", supplier_id, material_type_id)
            return state

    def save_state(self, state):
        with self._lock:
            self._states[state.key] = state
            self._save()

    def get_history(self, supplier_id, material_type_id):
        state = self._states.get(make_state_key(supplier_id, material_type_id))
        return list(state.history) if state else []

    def reset_state(self, supplier_id, material_type_id):
        """手動リセット"""
        state = _reset_state(self.get_state(supplier_id, material_type_id))
        self.save_state(state)
        return state

    def clear_stop_flag(self, supplier_id, material_type_id):
        """生産停止フラグの解除（未登録の組み合わせは何もしない）"""
        state = self._states.get(make_state_key(supplier_id, material_type_id))
        if state is None:
            return None
        state = _clear_stop_flag(state)
        self.save_state(state)
        return state

    def states_for_supplier(self, supplier_id):
        """仕入先の全材料の切替状態"""
        return [state for state in self._states.values() if state.supplier_id == supplier_id]
