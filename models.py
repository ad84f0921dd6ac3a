"""
データモデル定義モジュール
抜取計画・採取位置・切替状態のデータ構造を定義
"""

from dataclasses import dataclass, field, asdict
from typing import List, Dict, Optional, Any, Tuple


@dataclass(frozen=True)
class SamplingPlan:
    """抜取計画（サンプル文字、サンプルサイズ、Ac/Re）"""
    sample_code: str
    sample_size: int
    acceptance_number: int
    rejection_number: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SamplingPlan":
        return cls(
            sample_code=data["sample_code"],
            sample_size=int(data["sample_size"]),
            acceptance_number=int(data["acceptance_number"]),
            rejection_number=int(data["rejection_number"]),
        )


@dataclass(frozen=True)
class PackageConfig:
    """ロットの物理構成（パレット数 × パレットあたり袋数 × 袋内個数）"""
    pallet_count: int = 0
    packages_per_pallet: int = 0
    items_per_package: int = 0

    @property
    def total_packages(self) -> int:
        return self.pallet_count * self.packages_per_pallet

    @property
    def total_items(self) -> int:
        return self.total_packages * self.items_per_package

    @property
    def is_configured(self) -> bool:
        """クラスター抜取が可能な構成か"""
        return self.total_packages > 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PackageConfig":
        return cls(
            pallet_count=int(data.get("pallet_count", 0)),
            packages_per_pallet=int(data.get("packages_per_pallet", 0)),
            items_per_package=int(data.get("items_per_package", 0)),
        )


@dataclass(frozen=True)
class SamplePosition:
    """1つの採取位置（"PP-BB-NN"）"""
    code: str
    pallet: int
    package: int
    position: str
    position_label: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SamplePosition":
        return cls(
            code=data["code"],
            pallet=int(data["pallet"]),
            package=int(data["package"]),
            position=data["position"],
            position_label=data["position_label"],
        )


@dataclass
class PackageGroup:
    """同じ袋から採取する位置のまとまり"""
    pallet: int
    package: int
    package_code: str
    sample_count: int = 0
    samples: List[SamplePosition] = field(default_factory=list)


@dataclass(frozen=True)
class SamplingStats:
    total_packages: int
    total_items: int
    samples_per_package: int
    packages_to_open: int
    estimated_minutes: int


@dataclass(frozen=True)
class SwitchingTransition:
    """切替水準の変更記録（追記のみ）"""
    id: str
    from_level: str
    to_level: str
    reason: str
    lot_id: str
    lot_number: str
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SwitchingTransition":
        return cls(**{key: data[key] for key in (
            "id", "from_level", "to_level", "reason", "lot_id", "lot_number", "timestamp"
        )})


@dataclass(frozen=True)
class SwitchingState:
    """仕入先×材料ごとの切替状態"""
    supplier_id: str
    material_type_id: str
    current_level: str = "normal"
    consecutive_accepts: int = 0
    consecutive_rejects: int = 0
    recent_results: Tuple[str, ...] = ()
    history: Tuple[SwitchingTransition, ...] = ()
    should_stop_production: bool = False
    last_updated: str = ""

    @property
    def key(self) -> Tuple[str, str]:
        return make_state_key(self.supplier_id, self.material_type_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "supplier_id": self.supplier_id,
            "material_type_id": self.material_type_id,
            "current_level": self.current_level,
            "consecutive_accepts": self.consecutive_accepts,
            "consecutive_rejects": self.consecutive_rejects,
            "recent_results": list(self.recent_results),
            "history": [t.to_dict() for t in self.history],
            "should_stop_production": self.should_stop_production,
            "last_updated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SwitchingState":
        return cls(
            supplier_id=data["supplier_id"],
            material_type_id=data["material_type_id"],
            current_level=data.get("current_level", "normal"),
            consecutive_accepts=int(data.get("consecutive_accepts", 0)),
            consecutive_rejects=int(data.get("consecutive_rejects", 0)),
            recent_results=tuple(data.get("recent_results", ())),
            history=tuple(SwitchingTransition.from_dict(t) for t in data.get("history", ())),
            should_stop_production=bool(data.get("should_stop_production", False)),
            last_updated=data.get("last_updated", ""),
        )


@dataclass(frozen=True)
class InspectionRecord:
    """1サンプルの検査結果"""
    sample_number: int
    is_defective: bool
    position_code: Optional[str] = None


@dataclass(frozen=True)
class LotPlan:
    """ロット登録時に確定する抜取計画一式（以後変更しない）"""
    lot_number: str
    supplier_id: str
    material_type_id: str
    lot_size: int
    aql: str
    inspection_level: str
    switching_level: str
    base_plan: SamplingPlan
    sample_size: int
    acceptance_number: int
    rejection_number: int
    package_config: Optional[PackageConfig] = None
    sample_positions: Tuple[SamplePosition, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lot_number": self.lot_number,
            "supplier_id": self.supplier_id,
            "material_type_id": self.material_type_id,
            "lot_size": self.lot_size,
            "aql": self.aql,
            "inspection_level": self.inspection_level,
            "switching_level": self.switching_level,
            "base_plan": self.base_plan.to_dict(),
            "sample_size": self.sample_size,
            "acceptance_number": self.acceptance_number,
            "rejection_number": self.rejection_number,
            "package_config": self.package_config.to_dict() if self.package_config else None,
            "sample_positions": [p.to_dict() for p in self.sample_positions],
        }


def make_state_key(supplier_id: str, material_type_id: str) -> Tuple[str, str]:
    """切替状態の保存キー (仕入先ID, 材料ID)"""
    return (supplier_id, material_type_id)
