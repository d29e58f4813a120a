#!/usr/bin/env python3
"""
Seed the catalog store with the reference product catalog.

Usage:
    python -m proposal_calc.seed_catalog

Loads:
  - PRODUCTS              : master product list (drywall, waterproofing, roofing)
  - COMPOSITIONS          : priced compositions mapped onto proposal types
  - PARTITION_COMPONENTS  : drywall consumption rates per wall type
  - VENTILATION_PRODUCTS  : attic intake / exhaust products with NFVA

Prices are market references (BRL): update from supplier price lists.
"""

import logging

from . import models
from .database import Base, SessionLocal, engine

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Products: code → (description, unit, unit_price, unit_weight_kg, thickness_mm)
# ---------------------------------------------------------------------------

PRODUCTS = {
    # Drywall
    "GUIA-48": ("Guia 48 mm x 3,00 m", "barra", 18.90, 1.50, None),
    "MONT-48": ("Montante 48 mm x 3,00 m", "barra", 22.50, 1.80, None),
    "PLACA-ST-12.5": ("Placa ST 12,5 mm 1,20 x 2,40 m", "placa", 45.00, 24.00, 12.5),
    "PAR-TA-25": ("Parafuso TA 25 mm (cx 1000)", "cx", 65.00, 1.20, None),
    "PAR-MM-13": ("Parafuso metal-metal 13 mm (cx 1000)", "cx", 70.00, 1.00, None),
    "BUCHA-6": ("Bucha 6 mm com parafuso (cx 100)", "cx", 25.00, 0.50, None),
    "LA-VIDRO-50": ("Lã de vidro 50 mm (rolo 15 m²)", "rolo", 180.00, 9.00, 50.0),
    "LA-VIDRO-100": ("Lã de vidro 100 mm (rolo 7,5 m²)", "rolo", 210.00, 9.00, 100.0),
    "FITA-PAPEL-50": ("Fita de papel microperfurada 50 mm (rolo 150 m)", "rolo", 28.00, 0.60, None),
    "MASSA-JUNTAS": ("Massa para juntas (balde 28 kg)", "balde", 120.00, 28.00, None),
    # Waterproofing
    "MANTA-3MM": ("Manta asfáltica 3 mm (rolo 10 m²)", "rolo", 320.00, 40.00, 3.0),
    "PRIMER-18L": ("Primer asfáltico (balde 18 L)", "balde", 190.00, 16.00, None),
    "ARG-PROTECAO": ("Argamassa de proteção mecânica (saco 50 kg)", "saco", 38.00, 50.00, None),
    # Shingle roofing
    "SHINGLE-OC": ("Telha shingle Owens Corning (pacote 3,1 m²)", "pacote", 189.00, 28.00, None),
    "OSB-11": ("Placa OSB 11,1 mm 1,22 x 2,44 m", "placa", 95.00, 19.00, 11.1),
    "SUBCOBERTURA": ("Subcobertura sintética (rolo 86 m²)", "rolo", 420.00, 12.00, None),
    "CUMEEIRA-SHG": ("Cumeeira shingle (pacote 10 m)", "pacote", 210.00, 14.00, None),
    # Ceilings
    "TABICA-3M": ("Tabica lisa 3,00 m", "barra", 16.50, 0.90, None),
}


# ---------------------------------------------------------------------------
# Compositions mapped onto proposal types
# Items: (product code, consumption per unit of measure, waste %, order)
# ---------------------------------------------------------------------------

COMPOSITIONS = [
    {
        "code": "IMP-MANTA", "name": "Impermeabilização com manta asfáltica, m²",
        "category": "IMPERMEABILIZAÇÃO", "reference_value": 85.00, "default_waste_percent": 10.0,
        "mapping": {"proposal_type": "impermeabilizacao", "calc_order": 1, "mandatory": True},
        "items": [("PRIMER-18L", 0.016667, 5.0, 1), ("MANTA-3MM", 0.10, None, 2)],
    },
    {
        "code": "IMP-RODAPE", "name": "Rodapé de manta (subida em parede), m²",
        "category": "IMPERMEABILIZAÇÃO", "reference_value": 85.00, "default_waste_percent": 15.0,
        "mapping": {"proposal_type": "impermeabilizacao", "calc_order": 2, "mandatory": True,
                    "scope": "upturn"},
        "items": [("MANTA-3MM", 0.10, None, 1)],
    },
    {
        "code": "IMP-PROTECAO", "name": "Proteção mecânica, m²",
        "category": "PROTEÇÃO", "reference_value": 45.00, "default_waste_percent": 5.0,
        "mapping": {"proposal_type": "impermeabilizacao", "calc_order": 3, "mandatory": False},
        "items": [("ARG-PROTECAO", 0.50, None, 1)],
    },
    {
        "code": "SHG-COBERTURA", "name": "Cobertura em telha shingle, m²",
        "category": "COBERTURA", "reference_value": 120.00, "default_waste_percent": 5.0,
        "mapping": {"proposal_type": "telhas-shingle", "calc_order": 1, "mandatory": True},
        "items": [
            ("OSB-11", 0.335570, None, 1),
            ("SUBCOBERTURA", 0.011628, None, 2),
            ("SHINGLE-OC", 0.322581, 10.0, 3),
        ],
    },
    {
        "code": "SHG-CUMEEIRA", "name": "Cumeeira shingle, m",
        "category": "ACABAMENTO", "reference_value": 35.00, "default_waste_percent": 5.0,
        "mapping": {"proposal_type": "telhas-shingle", "calc_order": 2, "mandatory": False,
                    "scope": "ridge"},
        "items": [("CUMEEIRA-SHG", 0.10, None, 1)],
    },
    {
        "code": "FOR-DRYWALL", "name": "Forro de drywall, m²",
        "category": "FORRO", "reference_value": 0.0, "default_waste_percent": 10.0,
        "mapping": {"proposal_type": "forros", "calc_order": 1, "mandatory": True},
        "items": [("PLACA-ST-12.5", 0.347222, None, 1)],
    },
    {
        "code": "FOR-TABICA", "name": "Tabica perimetral, m",
        "category": "ACABAMENTO", "reference_value": 12.00, "default_waste_percent": 5.0,
        "mapping": {"proposal_type": "forros", "calc_order": 2, "mandatory": False,
                    "scope": "perimeter"},
        "items": [("TABICA-3M", 0.333333, None, 1)],
    },
]


# ---------------------------------------------------------------------------
# Drywall consumption: (category, name, basis, product code, rate, waste %, order)
# Simple wall: 48 mm studs, one 12.5 mm board each side.
# ---------------------------------------------------------------------------

DEFAULT_WALL_TYPE = "Parede Simples ST 73mm"

PARTITION_COMPONENTS = {
    DEFAULT_WALL_TYPE: [
        ("ESTRUTURA", "Guias superior e inferior", "track", "GUIA-48", 0.333333, 5.0, 1),
        ("ESTRUTURA", "Montantes", "stud", "MONT-48", 0.333333, 5.0, 2),
        ("VEDAÇÃO", "Placas (2 faces)", "area", "PLACA-ST-12.5", 0.694444, 10.0, 1),
        ("FIXAÇÃO", "Parafusos placa-perfil", "area", "PAR-TA-25", 0.030, 10.0, 1),
        ("FIXAÇÃO", "Parafusos perfil-perfil", "area", "PAR-MM-13", 0.005, 10.0, 2),
        ("FIXAÇÃO", "Fixação das guias", "track", "BUCHA-6", 0.016667, 10.0, 3),
        ("ISOLAMENTO", "Lã de vidro 50 mm", "area", "LA-VIDRO-50", 0.066667, 5.0, 1),
        ("ISOLAMENTO", "Lã de vidro 100 mm", "area", "LA-VIDRO-100", 0.133333, 5.0, 2),
        ("ACABAMENTO", "Fita de juntas", "area", "FITA-PAPEL-50", 0.020, 10.0, 1),
        ("ACABAMENTO", "Massa para juntas", "area", "MASSA-JUNTAS", 0.035714, 10.0, 2),
    ],
}


# ---------------------------------------------------------------------------
# Ventilation products: id → (code, name, nfva m², unit, side, linear, price, notes)
# ---------------------------------------------------------------------------

VENTILATION_PRODUCTS = {
    "inflow": ("VENT-INFLOW", "Inflow Owens Corning (1,22 m)", 0.0265, "peça", "intake", False, 89.90, None),
    "grelha_beiral": ("VENT-BEIRAL-GRELHA", "Beiral Ventilado - Grelha", 0.0312, "peça", "intake",
                      False, 45.00, None),
    "beiral_lp": ("VENT-BEIRAL-LP", "Beiral Ventilado - LP", None, "peça", "intake", False, 60.00,
                  "NFVA not published - consult the manufacturer"),
    "aerador": ("VENT-AERADOR", "Aerador Fabricação DryStore", 0.0072, "peça", "exhaust", False, 35.00, None),
    "cumeeira_ventilada": ("VENT-CUMEEIRA", "Cumeeira Ventilada Fabricação DryStore", 0.0142,
                           "metro linear", "exhaust", True, 78.00, None),
}


def seed_catalog(db) -> dict:
    """Insert the reference catalog into an empty store. Returns row counts."""
    products = {}
    for code, (description, unit, price, weight, thickness) in PRODUCTS.items():
        product = models.Product(code=code, description=description, unit=unit,
                                 unit_price=price, unit_weight_kg=weight, thickness_mm=thickness)
        db.add(product)
        products[code] = product
    db.flush()

    for entry in COMPOSITIONS:
        composition = models.Composition(
            code=entry["code"],
            name=entry["name"],
            category=entry["category"],
            reference_value=entry["reference_value"],
            default_waste_percent=entry["default_waste_percent"],
        )
        for product_code, rate, waste, order in entry["items"]:
            composition.items.append(models.CompositionItem(
                product=products[product_code],
                consumption_rate=rate,
                waste_percent=waste,
                calc_order=order,
            ))
        composition.mappings.append(models.ProposalTypeComposition(**entry["mapping"]))
        db.add(composition)

    partition_count = 0
    for wall_type, rows in PARTITION_COMPONENTS.items():
        for category, name, basis, product_code, rate, waste, order in rows:
            db.add(models.PartitionComponent(
                wall_type=wall_type, category=category, name=name, basis=basis,
                consumption_rate=rate, waste_percent=waste, assembly_order=order,
                product=products[product_code],
            ))
            partition_count += 1

    for product_id, (code, name, nfva, unit, side, linear, price, notes) in VENTILATION_PRODUCTS.items():
        db.add(models.VentilationProduct(
            id=product_id, code=code, name=name, nfva_m2=nfva, unit=unit,
            side=side, linear=linear, unit_price=price, notes=notes,
        ))

    db.commit()
    counts = {
        "products": len(PRODUCTS),
        "compositions": len(COMPOSITIONS),
        "partition_components": partition_count,
        "ventilation_products": len(VENTILATION_PRODUCTS),
    }
    logger.info("Seeded catalog: %s", counts)
    return counts


def main():
    logging.basicConfig(level=logging.INFO)
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        if db.query(models.Product).count():
            print("Catalog already seeded: nothing to do.")
            return
        counts = seed_catalog(db)
    finally:
        db.close()
    for table, count in counts.items():
        print("  %-22s %d" % (table, count))


if __name__ == "__main__":
    main()
