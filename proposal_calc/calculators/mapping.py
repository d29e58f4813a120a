"""
Generic mapping calculator.

Prices any proposal type whose compositions are mapped in the catalog:
for every item of every eligible composition,

    net            = consumption_rate × measure × application_factor
    waste_adjusted = net × (1 + waste% / 100)
    extended_price = waste_adjusted × unit_price

where measure is the base area, or the named sub-measure from the extras when
the mapping is scoped to one (e.g. waterproofing upturn = perimeter × height).
"""

import logging
import math

from ..exceptions import InvalidInput, NoMapping
from ..schemas import MappingParameters, MappingResult
from .base import BaseCalculator

logger = logging.getLogger(__name__)


class MappingCalculator(BaseCalculator):

    def calculate(self, params: MappingParameters) -> MappingResult:
        base_area = self.require_positive("Base area", params.base_area)
        type_value = params.proposal_type.value

        extras = params.extras
        if extras is not None and extras.proposal_type != type_value:
            raise InvalidInput(
                "Extra parameters are for %s, not %s" % (extras.proposal_type, type_value))
        sub_measures = extras.sub_measures() if extras is not None else {}
        excluded = set(extras.exclude_compositions) if extras is not None else set()

        resolved = self.resolver.resolve(params.proposal_type)
        eligible = [entry for entry in resolved if entry.items]
        if not eligible:
            raise NoMapping("No compositions with active items mapped for proposal type %s" % type_value)

        known_codes = {r.composition.code for r in resolved}
        unknown = sorted(excluded - known_codes)
        if unknown:
            raise InvalidInput("Cannot exclude unmapped compositions: %s" % ", ".join(unknown))

        items = []
        for entry in eligible:
            comp = entry.composition
            if comp.code in excluded:
                if comp.mandatory:
                    raise InvalidInput("Composition %s is mandatory for %s" % (comp.code, type_value))
                continue

            measure = base_area
            if comp.scope:
                if comp.scope not in sub_measures:
                    raise InvalidInput(
                        "Composition %s needs the '%s' measure for %s" % (comp.code, comp.scope, type_value))
                measure = sub_measures[comp.scope]
                if not math.isfinite(measure):
                    raise InvalidInput("The '%s' measure must be a finite number (got %s)" % (comp.scope, measure))

            default_waste = comp.default_waste_percent
            if default_waste is None:
                default_waste = self.settings.DEFAULT_WASTE_PERCENT

            for item in entry.items:
                waste_percent = item.waste_percent if item.waste_percent is not None else default_waste
                self.check_waste_percent(waste_percent, item.code)

                notes = ""
                if comp.scope:
                    notes = "Applied to %s = %.2f" % (comp.scope, measure)

                items.append(self.make_line_item(
                    composition_id=comp.id,
                    composition_code=comp.code,
                    item_id=item.id,
                    item_code=item.code,
                    description=item.description,
                    category=comp.category,
                    net_quantity=self.net_quantity(item.consumption_rate, measure, comp.application_factor),
                    waste_percent=waste_percent,
                    unit=item.unit,
                    unit_price=item.unit_price,
                    unit_weight_kg=item.unit_weight_kg,
                    order=len(items) + 1,
                    notes=notes,
                ))

        rollup = self.make_rollup(items, gross_measure=base_area, net_measure=base_area)
        logger.info("Mapping calculation for %s: %.2f m², %d items, total %.2f",
                    type_value, base_area, rollup.item_count, rollup.total_price)
        return MappingResult(proposal_type=params.proposal_type, items=items, rollup=rollup)

    def summarize(self, params: MappingParameters):
        """Rollup only: the proposal-summary view of calculate()."""
        return self.calculate(params).rollup
