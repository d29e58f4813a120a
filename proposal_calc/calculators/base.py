"""
Abstract base class for the quantity-and-pricing calculators.

Every calculator runs the same pipeline per line item:
    net quantity → waste-adjusted quantity → commercial (whole-unit) quantity → price
and rolls the items up into a Rollup whose total is the plain sum of the
items' extended prices.
"""

import math
from abc import ABC, abstractmethod

from ..config import settings as default_settings
from ..exceptions import InvalidInput
from ..schemas import LineItem, Rollup
from .catalog import CatalogResolver

# Quantities are stored at this precision; the rounding invariants hold on stored values.
QUANTITY_DECIMALS = 6


class BaseCalculator(ABC):
    """All catalog-backed calculators inherit from this."""

    def __init__(self, resolver: CatalogResolver = None, settings=None):
        self.settings = settings or default_settings
        self.resolver = resolver or CatalogResolver()

    @abstractmethod
    def calculate(self, params):
        """Takes a parameters model, returns a result model with items and rollup."""
        pass

    # --- Quantity pipeline ---

    def net_quantity(self, rate: float, measure: float, factor: float = 1.0) -> float:
        return round(rate * measure * factor, QUANTITY_DECIMALS)

    def apply_waste(self, net_quantity: float, waste_percent: float) -> float:
        """Net quantity plus waste. Never below the net quantity."""
        adjusted = round(net_quantity * (1 + waste_percent / 100.0), QUANTITY_DECIMALS)
        return max(adjusted, net_quantity)

    def commercial_quantity(self, waste_adjusted: float) -> int:
        """Whole purchasable units: you can't buy half a board."""
        return math.ceil(waste_adjusted)

    def require_positive(self, name: str, value) -> float:
        if value is None:
            raise InvalidInput("%s is required" % name)
        if not math.isfinite(value):
            raise InvalidInput("%s must be a finite number (got %s)" % (name, value))
        if value <= 0:
            raise InvalidInput("%s must be greater than zero (got %s)" % (name, value))
        return value

    def check_waste_percent(self, waste_percent: float, source: str) -> float:
        if not math.isfinite(waste_percent):
            raise InvalidInput("Waste percent for %s must be a finite number (got %s)" % (source, waste_percent))
        if waste_percent < 0:
            raise InvalidInput("Waste percent for %s cannot be negative (got %s)" % (source, waste_percent))
        return waste_percent

    # --- Output builders ---

    def make_line_item(self, *, item_code: str, description: str, category: str,
                       net_quantity: float, waste_percent: float, unit: str,
                       unit_price: float, price_on_commercial: bool = False,
                       unit_weight_kg: float = None, order: int = 0, notes: str = "",
                       composition_id: int = None, composition_code: str = None,
                       item_id: int = None) -> LineItem:
        """
        Build a LineItem from a net quantity.

        price_on_commercial: price the rounded-up purchasable quantity instead
        of the waste-adjusted quantity.
        """
        waste_adjusted = self.apply_waste(net_quantity, waste_percent)
        commercial = self.commercial_quantity(waste_adjusted)
        priced_quantity = commercial if price_on_commercial else waste_adjusted
        weight = None
        if unit_weight_kg is not None:
            weight = round(commercial * unit_weight_kg, 3)
        return LineItem(
            composition_id=composition_id,
            composition_code=composition_code,
            item_id=item_id,
            item_code=item_code,
            description=description,
            category=category,
            net_quantity=net_quantity,
            waste_percent=waste_percent,
            waste_adjusted_quantity=waste_adjusted,
            commercial_quantity=commercial,
            unit=unit,
            unit_price=round(unit_price, 2),
            extended_price=round(priced_quantity * unit_price, 2),
            weight_kg=weight,
            order=order,
            notes=notes,
        )

    def make_rollup(self, items: list, gross_measure: float, net_measure: float) -> Rollup:
        """Aggregate line items. total_price is the sum of extended prices, nothing else."""
        total_price = sum(item.extended_price for item in items)
        total_weight = sum(item.weight_kg for item in items if item.weight_kg is not None)

        by_category = {}
        for item in items:
            by_category[item.category] = by_category.get(item.category, 0.0) + item.extended_price

        return Rollup(
            total_price=total_price,
            value_per_unit_area=total_price / net_measure if net_measure > 0 else 0.0,
            total_weight_kg=round(total_weight, 3),
            gross_measure=gross_measure,
            net_measure=net_measure,
            price_by_category=by_category,
            item_count=len(items),
        )
