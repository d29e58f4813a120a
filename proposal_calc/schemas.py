from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Tuple, Union, Literal, Annotated
import enum

from .models import ProposalType, VentSide


# --- Catalog snapshots (immutable, safe to share through the resolver cache) ---

class CompositionItem(BaseModel):
    id: int
    code: str
    description: str
    unit: str
    consumption_rate: float
    unit_price: float
    waste_percent: Optional[float] = None
    unit_weight_kg: Optional[float] = None
    calc_order: int = 0
    mandatory: bool = True

    class Config:
        frozen = True


class Composition(BaseModel):
    id: int
    code: str
    name: str
    category: str
    calc_order: int = 0
    mandatory: bool = False
    reference_value: float = 0.0
    default_waste_percent: Optional[float] = None
    application_factor: float = 1.0
    scope: Optional[str] = None

    class Config:
        frozen = True


class ResolvedComposition(BaseModel):
    composition: Composition
    items: Tuple[CompositionItem, ...] = ()

    class Config:
        frozen = True


class PartitionComponent(BaseModel):
    id: int
    wall_type: str
    category: str
    name: str
    basis: str
    consumption_rate: float
    waste_percent: float = 0.0
    assembly_order: int = 0
    product_code: str
    product_description: str
    unit: str
    unit_price: float
    unit_weight_kg: Optional[float] = None
    thickness_mm: Optional[float] = None

    class Config:
        frozen = True


class VentilationProduct(BaseModel):
    id: str
    code: str
    name: str
    nfva_m2: Optional[float] = None
    unit: str
    side: VentSide
    linear: bool = False
    unit_price: float = 0.0
    notes: Optional[str] = None

    class Config:
        frozen = True


# --- Calculation output ---

class LineItem(BaseModel):
    composition_id: Optional[int] = None    # set by composition mappings only
    composition_code: Optional[str] = None
    item_id: Optional[int] = None           # composition item, or partition consumption row
    item_code: str
    description: str
    category: str
    net_quantity: float
    waste_percent: float = 0.0
    waste_adjusted_quantity: float
    commercial_quantity: int
    unit: str
    unit_price: float
    extended_price: float
    weight_kg: Optional[float] = None
    order: int = 0
    notes: str = ""

    class Config:
        frozen = True


class Rollup(BaseModel):
    total_price: float
    value_per_unit_area: float
    total_weight_kg: float = 0.0
    gross_measure: float
    net_measure: float
    price_by_category: Dict[str, float] = {}
    item_count: int = 0

    class Config:
        frozen = True


class AlertSeverity(str, enum.Enum):
    INFO = "info"
    WARNING = "warning"
    BLOCKING = "blocking"


class Alert(BaseModel):
    severity: AlertSeverity
    code: str
    title: str
    message: str

    class Config:
        frozen = True


# --- Generic mapping parameters: one extras variant per proposal type ---

class _ExtrasBase(BaseModel):
    # Codes of optional compositions to leave out of the calculation
    exclude_compositions: List[str] = []

    def sub_measures(self) -> Dict[str, float]:
        """Named measures a composition mapping can scope itself to."""
        return {}


class WaterproofingExtras(_ExtrasBase):
    proposal_type: Literal["impermeabilizacao"] = "impermeabilizacao"
    perimeter_m: Optional[float] = Field(default=None, ge=0)
    upturn_height_m: float = Field(default=0.30, ge=0)

    def sub_measures(self) -> Dict[str, float]:
        if self.perimeter_m is None:
            return {}
        return {
            "perimeter": self.perimeter_m,
            "upturn": self.perimeter_m * self.upturn_height_m,
        }


class RoofingExtras(_ExtrasBase):
    proposal_type: Literal["telhas", "telhas-shingle"] = "telhas-shingle"
    ridge_length_m: Optional[float] = Field(default=None, ge=0)
    eaves_length_m: Optional[float] = Field(default=None, ge=0)
    valley_length_m: Optional[float] = Field(default=None, ge=0)

    def sub_measures(self) -> Dict[str, float]:
        measures = {
            "ridge": self.ridge_length_m,
            "eaves": self.eaves_length_m,
            "valley": self.valley_length_m,
        }
        return {k: v for k, v in measures.items() if v is not None}


class CeilingExtras(_ExtrasBase):
    proposal_type: Literal["forros"] = "forros"
    perimeter_m: Optional[float] = Field(default=None, ge=0)

    def sub_measures(self) -> Dict[str, float]:
        if self.perimeter_m is None:
            return {}
        return {"perimeter": self.perimeter_m}


class GenericExtras(_ExtrasBase):
    proposal_type: Literal[
        "energia-solar", "divisorias", "pisos", "materiais-construcao",
        "tintas-texturas", "verga-fibra", "argamassa-silentfloor", "light-steel-frame",
    ]


MappingExtras = Annotated[
    Union[WaterproofingExtras, RoofingExtras, CeilingExtras, GenericExtras],
    Field(discriminator="proposal_type"),
]


class MappingParameters(BaseModel):
    proposal_type: ProposalType
    base_area: float
    extras: Optional[MappingExtras] = None


class MappingResult(BaseModel):
    proposal_type: ProposalType
    items: List[LineItem]
    rollup: Rollup


# --- Partition (drywall) takeoff ---

class PartitionParameters(BaseModel):
    width: float
    height: float
    wall_type: Optional[str] = None  # None = settings.DEFAULT_WALL_TYPE
    door_count: int = 0
    door_width: float = 0.80
    door_height: float = 2.10
    window_count: int = 0
    window_width: float = 1.20
    window_height: float = 1.20
    stud_spacing: float = 0.60
    insulation_thickness_mm: float = 50
    include_insulation: bool = True
    waste_override_percent: Optional[float] = None


class PartitionGeometry(BaseModel):
    gross_area: float
    opening_area: float
    net_area: float
    track_length_m: float
    stud_count: int
    stud_length_m: float


class PartitionResult(BaseModel):
    wall_type: str
    geometry: PartitionGeometry
    items: List[LineItem]
    rollup: Rollup


class ReferenceCheck(BaseModel):
    passed: bool
    missing: List[str] = []
    value_per_m2: Optional[float] = None
    within_band: bool = True
    messages: List[str] = []


# --- Attic ventilation sizing ---

class VentilationParameters(BaseModel):
    attic_length: float
    attic_width: float
    ventilation_ratio: Optional[float] = None  # None = settings.VENT_RATIO_DEFAULT
    regional_adjustment: bool = False
    intake_percent: float = 50.0
    intake_product_id: Optional[str] = None
    exhaust_product_id: Optional[str] = None
    available_linear_run: Optional[float] = None  # metres available for a linear product


class VentilationResult(BaseModel):
    attic_area: float
    effective_ratio: float
    nfva_total: float
    nfva_intake: float
    nfva_exhaust: float
    quantity_intake: int
    quantity_exhaust: int
    required_length_intake: Optional[float] = None
    required_length_exhaust: Optional[float] = None
    intake_product: Optional[VentilationProduct] = None
    exhaust_product: Optional[VentilationProduct] = None
    alerts: List[Alert] = []


# --- Mapping availability ---

class MappingState(str, enum.Enum):
    COMPLETE = "complete"
    PARTIAL = "partial"
    EMPTY = "empty"


class MappingStatus(BaseModel):
    proposal_type: str
    state: MappingState
    total_compositions: int = 0
    configured_compositions: int = 0
    estimated_value_per_m2: float = 0.0

    @property
    def can_calculate(self) -> bool:
        return self.state in (MappingState.COMPLETE, MappingState.PARTIAL)

    def message(self) -> str:
        if self.state == MappingState.EMPTY:
            return "Products not configured"
        if self.state == MappingState.PARTIAL:
            return "%d/%d products configured" % (
                self.configured_compositions, self.total_compositions)
        return "Products configured"
