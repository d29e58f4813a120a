from sqlalchemy import Column, Integer, String, Float, Text, ForeignKey, Boolean
from sqlalchemy.orm import relationship
import enum

from .database import Base


# --- Enums ---

class ProposalType(str, enum.Enum):
    ENERGIA_SOLAR = "energia-solar"
    TELHAS = "telhas"
    TELHAS_SHINGLE = "telhas-shingle"
    DIVISORIAS = "divisorias"
    PISOS = "pisos"
    FORROS = "forros"
    MATERIAIS_CONSTRUCAO = "materiais-construcao"
    TINTAS_TEXTURAS = "tintas-texturas"
    VERGA_FIBRA = "verga-fibra"
    ARGAMASSA_SILENTFLOOR = "argamassa-silentfloor"
    LIGHT_STEEL_FRAME = "light-steel-frame"
    IMPERMEABILIZACAO = "impermeabilizacao"


class PartitionCategory(str, enum.Enum):
    """Drywall takeoff categories, declared in output order."""
    ESTRUTURA = "ESTRUTURA"      # tracks (guias) and studs (montantes)
    VEDACAO = "VEDAÇÃO"          # boards
    FIXACAO = "FIXAÇÃO"          # screws, anchors
    ISOLAMENTO = "ISOLAMENTO"    # mineral wool
    ACABAMENTO = "ACABAMENTO"    # tape, joint compound


class ConsumptionBasis(str, enum.Enum):
    """What a partition consumption rate is multiplied by."""
    AREA = "area"        # net wall area, m²
    TRACK = "track"      # top + bottom guide length, m
    STUD = "stud"        # total stud length, m


class VentSide(str, enum.Enum):
    INTAKE = "intake"
    EXHAUST = "exhaust"


# Proposal types the mapping status overview reports on
SUPPORTED_MAPPING_TYPES = [
    ProposalType.ENERGIA_SOLAR,
    ProposalType.TELHAS_SHINGLE,
    ProposalType.IMPERMEABILIZACAO,
    ProposalType.DIVISORIAS,
    ProposalType.FORROS,
]


# --- Catalog tables (read-only for the calculation engine) ---

class Product(Base):
    """Master product list: every purchasable unit the engine can price."""
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String, unique=True, nullable=False)
    description = Column(String, nullable=False)
    unit = Column(String, nullable=False)  # purchasable unit: 'placa', 'barra', 'cx', 'rolo', 'kg'
    unit_price = Column(Float, nullable=True)
    unit_weight_kg = Column(Float, nullable=True)
    thickness_mm = Column(Float, nullable=True)  # boards and insulation only
    active = Column(Boolean, default=True)


class Composition(Base):
    """A priced scope of work, e.g. 'Shingle roof covering, m²'."""
    __tablename__ = "compositions"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    category = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    reference_value = Column(Float, default=0.0)  # catalog value per m², used by availability checks
    default_waste_percent = Column(Float, nullable=True)
    active = Column(Boolean, default=True)

    items = relationship("CompositionItem", back_populates="composition", cascade="all, delete-orphan")
    mappings = relationship("ProposalTypeComposition", back_populates="composition",
                            cascade="all, delete-orphan")


class CompositionItem(Base):
    """One material consumed by a composition, per unit of its base measure."""
    __tablename__ = "composition_items"

    id = Column(Integer, primary_key=True, index=True)
    composition_id = Column(Integer, ForeignKey("compositions.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    consumption_rate = Column(Float, nullable=True)  # product units per m² (or per m)
    unit_price = Column(Float, nullable=True)  # overrides products.unit_price when set
    waste_percent = Column(Float, nullable=True)  # overrides compositions.default_waste_percent
    calc_order = Column(Integer, default=0)
    mandatory = Column(Boolean, default=True)
    active = Column(Boolean, default=True)

    composition = relationship("Composition", back_populates="items")
    product = relationship("Product")


class ProposalTypeComposition(Base):
    """Maps a proposal type onto the compositions it is priced with."""
    __tablename__ = "proposal_type_compositions"

    id = Column(Integer, primary_key=True, index=True)
    proposal_type = Column(String, nullable=False, index=True)
    composition_id = Column(Integer, ForeignKey("compositions.id"), nullable=False)
    application_factor = Column(Float, default=1.0)
    scope = Column(String, nullable=True)  # sub-measure name ('upturn', 'ridge'); NULL = base area
    calc_order = Column(Integer, default=0)
    mandatory = Column(Boolean, default=False)
    active = Column(Boolean, default=True)

    composition = relationship("Composition", back_populates="mappings")


class PartitionComponent(Base):
    """Drywall consumption rates per wall type."""
    __tablename__ = "partition_components"

    id = Column(Integer, primary_key=True, index=True)
    wall_type = Column(String, nullable=False, index=True)
    category = Column(String, nullable=False)  # PartitionCategory value
    name = Column(String, nullable=False)
    basis = Column(String, default=ConsumptionBasis.AREA.value)
    consumption_rate = Column(Float, nullable=True)  # product units per basis unit
    waste_percent = Column(Float, default=0.0)
    assembly_order = Column(Integer, default=0)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)

    product = relationship("Product")


class VentilationProduct(Base):
    """Attic intake / exhaust products with their net free ventilation area."""
    __tablename__ = "ventilation_products"

    id = Column(String, primary_key=True)  # slug, e.g. 'inflow', 'aerador'
    code = Column(String, nullable=False)
    name = Column(String, nullable=False)
    nfva_m2 = Column(Float, nullable=True)  # per piece, or per linear metre when linear
    unit = Column(String, nullable=False)
    side = Column(String, nullable=False)  # VentSide value
    linear = Column(Boolean, default=False)
    unit_price = Column(Float, default=0.0)
    notes = Column(Text, nullable=True)
    active = Column(Boolean, default=True)
