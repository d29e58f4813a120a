"""
Drywall partition takeoff tests.

Tests:
1-4.   Geometry (gross / openings / net, studs and tracks)
5-10.  Reference 6 m × 3 m wall takeoff
11-14. Insulation selection and waste override
15-22. Errors (including non-finite dimensions and waste)
23-26. Reference-scenario self-check (categories, price band)
"""

import math

import pytest

from proposal_calc import models
from proposal_calc.calculators.partition import PartitionCalculator, validate_reference_scenario
from proposal_calc.config import Settings
from proposal_calc.exceptions import InvalidInput, NoMapping
from proposal_calc.schemas import PartitionParameters


def _reference_wall(**overrides):
    """6 m × 3 m, one 0.80 × 2.10 door, one 1.20 × 1.20 window, insulation on."""
    fields = {
        "width": 6.0,
        "height": 3.0,
        "door_count": 1,
        "window_count": 1,
        "include_insulation": True,
    }
    fields.update(overrides)
    return PartitionParameters(**fields)


def _codes(result, category):
    return [i.item_code for i in result.items if i.category == category]


# ============================================================
# Geometry
# ============================================================

def test_reference_geometry(partition_calc):
    geometry = partition_calc.geometry(_reference_wall())
    assert geometry.gross_area == pytest.approx(18.0)
    assert geometry.opening_area == pytest.approx(3.12)   # 1.68 + 1.44
    assert geometry.net_area == pytest.approx(16.44)      # 18 − 0.5 × 3.12


def test_no_openings_net_equals_gross(partition_calc):
    geometry = partition_calc.geometry(_reference_wall(door_count=0, window_count=0))
    assert geometry.net_area == geometry.gross_area == pytest.approx(18.0)


def test_studs_and_tracks_from_width_and_spacing(partition_calc):
    geometry = partition_calc.geometry(_reference_wall())
    assert geometry.stud_count == 11          # ceil(6 / 0.60) + 1
    assert geometry.stud_length_m == pytest.approx(33.0)
    assert geometry.track_length_m == pytest.approx(12.0)

    wider = partition_calc.geometry(_reference_wall(stud_spacing=0.40))
    assert wider.stud_count == 16


def test_deduction_factor_is_configurable(resolver):
    calc = PartitionCalculator(resolver=resolver, settings=Settings(OPENING_DEDUCTION_FACTOR=1.0))
    geometry = calc.geometry(_reference_wall())
    assert geometry.net_area == pytest.approx(18.0 - 3.12)


# ============================================================
# Reference takeoff
# ============================================================

def test_reference_wall_has_every_category(partition_calc):
    result = partition_calc.calculate(_reference_wall())
    categories = {i.category for i in result.items}
    for category in models.PartitionCategory:
        assert category.value in categories

    structure = _codes(result, "ESTRUTURA")
    assert any("GUIA" in code for code in structure)
    assert any("MONT" in code for code in structure)


def test_items_follow_category_order(partition_calc):
    result = partition_calc.calculate(_reference_wall())
    rank = {c.value: n for n, c in enumerate(models.PartitionCategory)}
    ranks = [rank[i.category] for i in result.items]
    assert ranks == sorted(ranks)
    assert list(result.rollup.price_by_category) == [c.value for c in models.PartitionCategory]


def test_items_reference_consumption_rows_not_compositions(partition_calc, resolver):
    result = partition_calc.calculate(_reference_wall())
    row_ids = {c.id for c in resolver.partition_components(partition_calc.settings.DEFAULT_WALL_TYPE)}
    for item in result.items:
        assert item.composition_id is None
        assert item.composition_code is None
        assert item.item_id in row_ids


def test_boards_priced_on_whole_boards(partition_calc):
    result = partition_calc.calculate(_reference_wall())
    boards = [i for i in result.items if i.item_code == "PLACA-ST-12.5"][0]
    # 16.44 m² × 0.694444 boards/m² = 11.42 → +10% = 12.56 → 13 boards
    assert boards.net_quantity == pytest.approx(11.416659)
    assert boards.commercial_quantity == 13
    assert boards.extended_price == pytest.approx(13 * 45.00)
    assert boards.weight_kg == pytest.approx(13 * 24.00)


def test_studs_use_linear_metres(partition_calc):
    result = partition_calc.calculate(_reference_wall())
    studs = [i for i in result.items if i.item_code == "MONT-48"][0]
    guides = [i for i in result.items if i.item_code == "GUIA-48"][0]
    assert studs.commercial_quantity == 12     # 33 m / 3 m bars + 5%
    assert guides.commercial_quantity == 5     # 12 m / 3 m bars + 5%
    assert "11 studs" in studs.notes


def test_reference_rollup(partition_calc):
    result = partition_calc.calculate(_reference_wall())
    rollup = result.rollup
    assert rollup.total_price == sum(i.extended_price for i in result.items)
    assert rollup.total_price == pytest.approx(1617.50)
    assert rollup.value_per_unit_area == pytest.approx(1617.50 / 16.44)
    assert rollup.net_measure == pytest.approx(16.44)
    assert rollup.gross_measure == pytest.approx(18.0)
    assert rollup.total_weight_kg > 0
    assert sum(rollup.price_by_category.values()) == pytest.approx(rollup.total_price)
    for item in result.items:
        assert item.commercial_quantity == math.ceil(item.waste_adjusted_quantity)
        assert item.waste_adjusted_quantity >= item.net_quantity


def test_identical_inputs_give_identical_output(partition_calc):
    first = partition_calc.calculate(_reference_wall())
    second = partition_calc.calculate(_reference_wall())
    assert first.model_dump_json() == second.model_dump_json()


# ============================================================
# Insulation and waste
# ============================================================

def test_insulation_excluded_when_not_requested(partition_calc):
    result = partition_calc.calculate(_reference_wall(include_insulation=False))
    assert _codes(result, "ISOLAMENTO") == []


def test_insulation_matches_thickness(partition_calc):
    result = partition_calc.calculate(_reference_wall(insulation_thickness_mm=100))
    assert _codes(result, "ISOLAMENTO") == ["LA-VIDRO-100"]


def test_insulation_falls_back_to_closest_thickness(partition_calc):
    result = partition_calc.calculate(_reference_wall(insulation_thickness_mm=75))
    insulation = [i for i in result.items if i.category == "ISOLAMENTO"]
    assert [i.item_code for i in insulation] == ["LA-VIDRO-50"]
    assert "75 mm requested" in insulation[0].notes


def test_waste_override_applies_to_every_item(partition_calc):
    result = partition_calc.calculate(_reference_wall(waste_override_percent=0))
    for item in result.items:
        assert item.waste_percent == 0
        assert item.waste_adjusted_quantity == item.net_quantity


# ============================================================
# Errors
# ============================================================

@pytest.mark.parametrize("width,height", [(0, 3.0), (6.0, 0), (-1.0, 3.0)])
def test_non_positive_dimensions_raise(partition_calc, width, height):
    with pytest.raises(InvalidInput):
        partition_calc.calculate(_reference_wall(width=width, height=height))


@pytest.mark.parametrize("width,height", [
    (float("nan"), 3.0), (6.0, float("inf")), (float("-inf"), 3.0), (1e200, 1e200),
])
def test_non_finite_dimensions_raise(partition_calc, width, height):
    with pytest.raises(InvalidInput):
        partition_calc.calculate(_reference_wall(width=width, height=height))


def test_non_finite_waste_override_raises(partition_calc):
    with pytest.raises(InvalidInput, match="finite"):
        partition_calc.calculate(_reference_wall(waste_override_percent=float("nan")))


def test_openings_larger_than_wall_raise(partition_calc):
    with pytest.raises(InvalidInput, match="Openings"):
        partition_calc.calculate(_reference_wall(width=1.0, height=2.0, door_count=2))


def test_negative_waste_override_raises(partition_calc):
    with pytest.raises(InvalidInput):
        partition_calc.calculate(_reference_wall(waste_override_percent=-5))


def test_unknown_wall_type_raises_no_mapping(partition_calc):
    with pytest.raises(NoMapping):
        partition_calc.calculate(_reference_wall(wall_type="Parede Dupla ST 98mm"))


def test_negative_door_count_raises(partition_calc):
    with pytest.raises(InvalidInput):
        partition_calc.calculate(_reference_wall(door_count=-1))


# ============================================================
# Reference-scenario self-check
# ============================================================

def test_reference_check_passes_within_default_band(partition_calc):
    check = validate_reference_scenario(partition_calc)
    assert check.passed is True
    assert check.missing == []
    assert check.within_band is True
    assert check.value_per_m2 == pytest.approx(1617.50 / 16.44)
    assert check.messages == []


def test_reference_check_flags_price_outside_band(partition_calc):
    # Installed-price band: materials alone fall short, flagged but not failed
    check = validate_reference_scenario(partition_calc, min_value_per_m2=800, max_value_per_m2=2000)
    assert check.passed is True
    assert check.within_band is False
    assert "outside the expected range" in check.messages[0]


def test_reference_check_flags_price_regression(resolver, db):
    board = db.query(models.Product).filter(models.Product.code == "PLACA-ST-12.5").one()
    board.unit_price = board.unit_price * 20
    db.commit()

    check = validate_reference_scenario(PartitionCalculator(resolver=resolver))
    assert check.passed is True
    assert check.within_band is False


def test_reference_check_reports_missing_categories(resolver, db):
    board = db.query(models.Product).filter(models.Product.code == "PLACA-ST-12.5").one()
    db.add(models.PartitionComponent(
        wall_type="Parede Só Placa", category="VEDAÇÃO", name="Placas",
        basis="area", consumption_rate=0.694444, waste_percent=10.0, product=board,
    ))
    db.commit()

    calc = PartitionCalculator(resolver=resolver, settings=Settings(DEFAULT_WALL_TYPE="Parede Só Placa"))
    check = validate_reference_scenario(calc)
    assert check.passed is False
    assert "ESTRUTURA" in check.missing
    assert "ESTRUTURA/GUIA" in check.missing
    assert "VEDAÇÃO" not in check.missing
