"""
Drywall partition takeoff calculator.

Wall geometry:
    gross area   = width × height
    opening area = doors + windows
    net area     = gross − OPENING_DEDUCTION_FACTOR × openings

Openings are only partly deducted: framing around a door or window still
consumes board and studs.

Each consumption row of the wall type is scaled by one basis:
    area:  net area (boards, screws, insulation, tape, compound)
    track: 2 × width (top and bottom guides)
    stud:  (ceil(width / spacing) + 1) × height

Priced on commercial quantity: boards, bars and boxes are bought whole.
"""

import logging
import math

from ..exceptions import CalculationError, InvalidInput, NoMapping
from ..models import ConsumptionBasis, PartitionCategory
from ..schemas import PartitionGeometry, PartitionParameters, PartitionResult, ReferenceCheck
from .base import BaseCalculator

logger = logging.getLogger(__name__)


class PartitionCalculator(BaseCalculator):

    def calculate(self, params: PartitionParameters) -> PartitionResult:
        wall_type = params.wall_type or self.settings.DEFAULT_WALL_TYPE
        geometry = self.geometry(params)

        if params.waste_override_percent is not None:
            self.check_waste_percent(params.waste_override_percent, "waste override")

        components = self.resolver.partition_components(wall_type)
        if not components:
            raise NoMapping("No consumption data for wall type %s" % wall_type)

        components = self._select_insulation(components, params)

        measures = {
            ConsumptionBasis.AREA.value: geometry.net_area,
            ConsumptionBasis.TRACK.value: geometry.track_length_m,
            ConsumptionBasis.STUD.value: geometry.stud_length_m,
        }

        items = []
        for component, note in components:
            waste_percent = component.waste_percent
            if params.waste_override_percent is not None:
                waste_percent = params.waste_override_percent
            self.check_waste_percent(waste_percent, component.product_code)

            measure = measures[component.basis]
            notes = self._basis_note(component.basis, geometry, params)
            if note:
                notes = "%s; %s" % (notes, note)

            items.append(self.make_line_item(
                item_id=component.id,
                item_code=component.product_code,
                description=component.product_description,
                category=component.category,
                net_quantity=self.net_quantity(component.consumption_rate, measure),
                waste_percent=waste_percent,
                unit=component.unit,
                unit_price=component.unit_price,
                price_on_commercial=True,
                unit_weight_kg=component.unit_weight_kg,
                order=len(items) + 1,
                notes=notes,
            ))

        rollup = self.make_rollup(items, gross_measure=geometry.gross_area, net_measure=geometry.net_area)
        logger.info("Partition takeoff %s %.2f x %.2f m: net %.2f m², %d items, total %.2f",
                    wall_type, params.width, params.height, geometry.net_area,
                    rollup.item_count, rollup.total_price)
        return PartitionResult(wall_type=wall_type, geometry=geometry, items=items, rollup=rollup)

    def geometry(self, params: PartitionParameters) -> PartitionGeometry:
        width = self.require_positive("Wall width", params.width)
        height = self.require_positive("Wall height", params.height)
        spacing = self.require_positive("Stud spacing", params.stud_spacing)

        opening_area = 0.0
        for label, count, w, h in (
            ("door", params.door_count, params.door_width, params.door_height),
            ("window", params.window_count, params.window_width, params.window_height),
        ):
            if count < 0:
                raise InvalidInput("%s count cannot be negative (got %s)" % (label.capitalize(), count))
            if count:
                self.require_positive("%s width" % label.capitalize(), w)
                self.require_positive("%s height" % label.capitalize(), h)
                opening_area += count * w * h

        gross_area = self.require_positive("Wall area", round(width * height, 6))
        opening_area = round(opening_area, 6)
        if opening_area >= gross_area:
            raise InvalidInput(
                "Openings (%.2f m²) do not fit in the wall (%.2f m²)" % (opening_area, gross_area))

        net_area = round(gross_area - self.settings.OPENING_DEDUCTION_FACTOR * opening_area, 6)
        if net_area <= 0:
            raise InvalidInput("Net wall area must be greater than zero (got %.2f)" % net_area)

        stud_count = math.ceil(round(width / spacing, 6)) + 1
        return PartitionGeometry(
            gross_area=gross_area,
            opening_area=opening_area,
            net_area=net_area,
            track_length_m=round(2 * width, 6),
            stud_count=stud_count,
            stud_length_m=round(stud_count * height, 6),
        )

    def _select_insulation(self, components, params):
        """
        Returns [(component, note)] with insulation rows resolved.

        Insulation is dropped when not requested, otherwise matched to the
        requested thickness, or the closest one available, noted on the item.
        """
        insulation = [c for c in components if c.category == PartitionCategory.ISOLAMENTO.value]
        sized = [c for c in insulation if c.thickness_mm is not None]

        chosen_thickness = None
        if params.include_insulation and sized:
            wanted = params.insulation_thickness_mm
            thicknesses = sorted({c.thickness_mm for c in sized})
            chosen_thickness = min(thicknesses, key=lambda t: (abs(t - wanted), t))

        selected = []
        for component in components:
            if component.category != PartitionCategory.ISOLAMENTO.value:
                selected.append((component, ""))
                continue
            if not params.include_insulation:
                continue
            if component.thickness_mm is None:
                selected.append((component, ""))
            elif component.thickness_mm == chosen_thickness:
                note = ""
                if chosen_thickness != params.insulation_thickness_mm:
                    note = "%.0f mm requested, %.0f mm supplied" % (
                        params.insulation_thickness_mm, chosen_thickness)
                selected.append((component, note))
        return selected

    def _basis_note(self, basis: str, geometry: PartitionGeometry, params: PartitionParameters) -> str:
        if basis == ConsumptionBasis.TRACK.value:
            return "Top and bottom guides: %.2f m" % geometry.track_length_m
        if basis == ConsumptionBasis.STUD.value:
            return "%d studs × %.2f m at %.2f m spacing" % (
                geometry.stud_count, params.height, params.stud_spacing)
        return "Net area %.2f m²" % geometry.net_area


def reference_parameters(settings=None) -> PartitionParameters:
    """The 6 m × 3 m reference wall: one door, one window, insulation included."""
    return PartitionParameters(
        width=6,
        height=3,
        wall_type=settings.DEFAULT_WALL_TYPE if settings else None,
        door_count=1,
        window_count=1,
        include_insulation=True,
    )


def validate_reference_scenario(calculator: PartitionCalculator,
                                min_value_per_m2: float = None,
                                max_value_per_m2: float = None) -> ReferenceCheck:
    """
    Regression self-check for the drywall consumption data.

    Runs the reference wall and checks that every category is present
    (with both guides and studs in ESTRUTURA) and that the price per m²
    falls inside the plausibility band. An out-of-band price is flagged and
    logged, it does not fail the check.
    """
    settings = calculator.settings
    if min_value_per_m2 is None:
        min_value_per_m2 = settings.PARTITION_PRICE_PER_M2_MIN
    if max_value_per_m2 is None:
        max_value_per_m2 = settings.PARTITION_PRICE_PER_M2_MAX

    try:
        result = calculator.calculate(reference_parameters(settings))
    except CalculationError as e:
        logger.error("Reference partition scenario could not be calculated: %s", e)
        return ReferenceCheck(passed=False, missing=[], messages=[str(e)])

    categories = {item.category for item in result.items}
    missing = [c.value for c in PartitionCategory if c.value not in categories]

    structure_codes = [item.item_code.upper() for item in result.items
                       if item.category == PartitionCategory.ESTRUTURA.value]
    if not any("GUIA" in code for code in structure_codes):
        missing.append("ESTRUTURA/GUIA")
    if not any("MONT" in code for code in structure_codes):
        missing.append("ESTRUTURA/MONT")

    messages = []
    if missing:
        messages.append("Missing essential items: %s" % ", ".join(missing))
        logger.error("Reference partition scenario is missing items: %s", missing)

    value_per_m2 = result.rollup.value_per_unit_area
    within_band = min_value_per_m2 <= value_per_m2 <= max_value_per_m2
    if not within_band:
        msg = "Value per m² (%.2f) outside the expected range (%.2f-%.2f)" % (
            value_per_m2, min_value_per_m2, max_value_per_m2)
        messages.append(msg)
        logger.warning(msg)

    return ReferenceCheck(
        passed=not missing,
        missing=missing,
        value_per_m2=value_per_m2,
        within_band=within_band,
        messages=messages,
    )
