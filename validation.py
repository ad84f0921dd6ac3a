"""
入力検証モジュール
ロット登録時の入力値の検証を管理
"""

from constants import InspectionConstants
from models import PackageConfig


class InputValidator:
    """入力値検証クラス"""

    @staticmethod
    def validate_all_inputs(lot_size_str, aql_str=None, level_str=None,
                            pallet_str=None, packages_str=None, items_str=None):
        """全入力値の検証"""
        errors = []
        validated_data = {}

        lot_size_error, lot_size = InputValidator.validate_lot_size(lot_size_str)
        if lot_size_error:
            errors.append(lot_size_error)
        else:
            validated_data['lot_size'] = lot_size

        aql_error, aql = InputValidator.validate_aql(aql_str)
        if aql_error:
            errors.append(aql_error)
        else:
            validated_data['aql'] = aql

        level_error, level = InputValidator.validate_inspection_level(level_str)
        if level_error:
            errors.append(level_error)
        else:
            validated_data['inspection_level'] = level

        config_error, config = InputValidator.validate_package_config(pallet_str, packages_str, items_str)
        if config_error:
            errors.append(config_error)
        else:
            validated_data['package_config'] = config

        return len(errors) == 0, errors, validated_data

    @staticmethod
    def validate_lot_size(lot_size_str):
        """ロットサイズの検証"""
        if lot_size_str is None or not str(lot_size_str).strip():
            return "Parti miktarı zorunludur", None

        try:
            lot_size = int(str(lot_size_str).strip().replace(',', ''))
        except ValueError:
            return "Parti miktarı tam sayı olmalıdır", None

        if lot_size < InspectionConstants.MIN_LOT_SIZE:
            return f"Parti miktarı en az {InspectionConstants.MIN_LOT_SIZE} olmalıdır", None

        if lot_size > InspectionConstants.MAX_LOT_SIZE:
            return f"Parti miktarı en fazla {InspectionConstants.MAX_LOT_SIZE:,} olabilir", None

        return None, lot_size

    @staticmethod
    def validate_aql(aql_str):
        """AQLの検証（未入力は既定値）"""
        if aql_str is None or not str(aql_str).strip():
            return None, InspectionConstants.DEFAULT_AQL

        text = str(aql_str).strip().replace(',', '.')
        try:
            numeric = float(text)
        except ValueError:
            return "AQL sayısal bir değer olmalıdır", None

        for key in InspectionConstants.AQL_VALUES:
            if abs(float(key) - numeric) < 1e-9:
                return None, key

        choices = ", ".join(InspectionConstants.AQL_VALUES)
        return f"AQL şu değerlerden biri olmalıdır: {choices}", None

    @staticmethod
    def validate_inspection_level(level_str):
        """検査水準の検証（未入力は既定値）"""
        if level_str is None or not str(level_str).strip():
            return None, InspectionConstants.DEFAULT_INSPECTION_LEVEL

        level = str(level_str).strip().upper()
        if level not in InspectionConstants.INSPECTION_LEVEL_MULTIPLIERS:
            return "Muayene seviyesi I, II veya III olmalıdır", None
        return None, level

    @staticmethod
    def validate_package_config(pallet_str, packages_str, items_str):
        """袋構成の検証（全て未入力なら構成なし）"""
        raw_values = (pallet_str, packages_str, items_str)
        if all(value is None or not str(value).strip() for value in raw_values):
            return None, None

        values = []
        for value in raw_values:
            text = "" if value is None else str(value).strip()
            if not text:
                values.append(0)
                continue
            try:
                number = int(text)
            except ValueError:
                return "Paket yapısı değerleri tam sayı olmalıdır", None
            if number < 0:
                return "Paket yapısı değerleri negatif olamaz", None
            values.append(number)

        return None, PackageConfig(*values)
