"""
Attic ventilation sizing.

    effective ratio = VENT_RATIO_REGIONAL if regional adjustment else requested ratio
    NFVA total      = attic area / effective ratio
    NFVA intake     = total × intake% / 100
    NFVA exhaust    = total − intake

Discrete products: ceil(NFVA / NFVA per piece).
Linear products:   required length = NFVA / NFVA per metre, bought in whole metres.

Capacity and density problems never abort the calculation: they come back
as alerts next to the (possibly insufficient) quantities. Pricing is left to
the caller: selected product unit price × quantity.
"""

import logging
import math

from ..exceptions import InvalidInput
from ..models import VentSide
from ..schemas import Alert, AlertSeverity, VentilationParameters, VentilationResult
from .base import BaseCalculator

logger = logging.getLogger(__name__)


class VentilationCalculator(BaseCalculator):

    def calculate(self, params: VentilationParameters) -> VentilationResult:
        length = self.require_positive("Attic length", params.attic_length)
        width = self.require_positive("Attic width", params.attic_width)
        attic_area = length * width
        self.require_positive("Attic area", attic_area)

        if not 0 <= params.intake_percent <= 100:
            raise InvalidInput("Intake percent must be between 0 and 100 (got %s)" % params.intake_percent)
        run = params.available_linear_run
        if run is not None and (not math.isfinite(run) or run < 0):
            raise InvalidInput("Available linear run must be a finite, non-negative length (got %s)" % run)

        ratio = self.effective_ratio(params)
        nfva_total, nfva_intake, nfva_exhaust = self.size(attic_area, ratio, params.intake_percent)

        intake_product = self._product(params.intake_product_id, VentSide.INTAKE)
        exhaust_product = self._product(params.exhaust_product_id, VentSide.EXHAUST)

        alerts = []
        quantity_intake, length_intake = self._quantity(
            "Intake", intake_product, nfva_intake, params.available_linear_run, alerts)
        quantity_exhaust, length_exhaust = self._quantity(
            "Exhaust", exhaust_product, nfva_exhaust, params.available_linear_run, alerts)

        self._check_density("Intake", intake_product, quantity_intake, attic_area, alerts)
        self._check_density("Exhaust", exhaust_product, quantity_exhaust, attic_area, alerts)

        for alert in alerts:
            logger.warning("Ventilation alert [%s] %s: %s", alert.severity.value, alert.title, alert.message)

        return VentilationResult(
            attic_area=attic_area,
            effective_ratio=ratio,
            nfva_total=nfva_total,
            nfva_intake=nfva_intake,
            nfva_exhaust=nfva_exhaust,
            quantity_intake=quantity_intake,
            quantity_exhaust=quantity_exhaust,
            required_length_intake=length_intake,
            required_length_exhaust=length_exhaust,
            intake_product=intake_product,
            exhaust_product=exhaust_product,
            alerts=alerts,
        )

    def effective_ratio(self, params: VentilationParameters) -> float:
        """Regional adjustment overrides whatever ratio the caller asked for."""
        if params.regional_adjustment:
            return self.settings.VENT_RATIO_REGIONAL
        ratio = params.ventilation_ratio
        if ratio is None:
            ratio = self.settings.VENT_RATIO_DEFAULT
        return self.require_positive("Ventilation ratio", ratio)

    def size(self, attic_area: float, ratio: float, intake_percent: float) -> tuple:
        """Returns (nfva_total, nfva_intake, nfva_exhaust) in m²."""
        nfva_total = attic_area / ratio
        nfva_intake = nfva_total * (intake_percent / 100.0)
        nfva_exhaust = nfva_total - nfva_intake
        return nfva_total, nfva_intake, nfva_exhaust

    # --- Helpers ---

    def _product(self, product_id, side: VentSide):
        if not product_id:
            return None
        product = self.resolver.ventilation_product(product_id)
        if product is None:
            raise InvalidInput("Unknown ventilation product: %s" % product_id)
        if product.side != side:
            raise InvalidInput("Product %s is an %s product, not %s" % (
                product_id, product.side.value, side.value))
        return product

    def _quantity(self, label: str, product, required_nfva: float, available_run, alerts: list) -> tuple:
        """Returns (quantity, required_length or None) for one side."""
        if product is None:
            return 0, None

        if not product.nfva_m2:
            alerts.append(Alert(
                severity=AlertSeverity.INFO,
                code="nfva_unavailable",
                title="NFVA Not Available - %s" % label,
                message="%s has no declared NFVA: consult the manufacturer." % product.name,
            ))
            return 0, None

        if not product.linear:
            return math.ceil(round(required_nfva / product.nfva_m2, 9)), None

        required_length = required_nfva / product.nfva_m2
        if available_run is not None and required_length > available_run:
            alerts.append(Alert(
                severity=AlertSeverity.BLOCKING,
                code="linear_capacity_exceeded",
                title="Insufficient Length - %s" % label,
                message="Required length (%.2f m) exceeds the available %.2f m. "
                        "Consider more layers or additional products." % (required_length, available_run),
            ))
        return math.ceil(round(required_length, 9)), required_length

    def _check_density(self, label: str, product, quantity: int, attic_area: float, alerts: list):
        if product is None or quantity == 0:
            return

        discrete_cap = attic_area * self.settings.VENT_DISCRETE_DENSITY_MAX
        if not product.linear and quantity > discrete_cap:
            alerts.append(Alert(
                severity=AlertSeverity.WARNING,
                code="discrete_density_exceeded",
                title="Excessive Quantity - %s" % product.name,
                message="%d pieces for %.2f m² is excessive. Recommended maximum: %d units." % (
                    quantity, attic_area, math.ceil(discrete_cap)),
            ))

        density = quantity / attic_area
        if density > self.settings.VENT_DENSITY_MAX:
            alerts.append(Alert(
                severity=AlertSeverity.INFO,
                code="high_density",
                title="High Density - %s" % label,
                message="Density of %.2f pieces/m² is high. Consider a higher-capacity product." % density,
            ))
