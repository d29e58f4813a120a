"""
Mapping availability: pre-flight gate before a mapping calculation.

A composition counts as configured when its catalog reference value
(price per m²) is positive. This never takes part in quantity math.
"""

import logging

from ..models import SUPPORTED_MAPPING_TYPES
from ..schemas import MappingState, MappingStatus
from .catalog import CatalogResolver

logger = logging.getLogger(__name__)


class MappingAvailabilityChecker:

    def __init__(self, resolver: CatalogResolver = None):
        self.resolver = resolver or CatalogResolver()

    def is_available(self, proposal_type) -> bool:
        """True iff at least one eligible composition has a positive reference value."""
        return any(
            entry.composition.reference_value > 0
            for entry in self.resolver.resolve(proposal_type)
        )

    def status(self, proposal_type) -> MappingStatus:
        resolved = self.resolver.resolve(proposal_type)
        configured = [e.composition for e in resolved if e.composition.reference_value > 0]

        if not configured:
            state = MappingState.EMPTY
        elif len(configured) == len(resolved):
            state = MappingState.COMPLETE
        else:
            state = MappingState.PARTIAL

        return MappingStatus(
            proposal_type=getattr(proposal_type, "value", proposal_type),
            state=state,
            total_compositions=len(resolved),
            configured_compositions=len(configured),
            estimated_value_per_m2=round(sum(c.reference_value for c in configured), 2),
        )

    def overview(self, proposal_types=None) -> dict:
        """Status for each supported proposal type, keyed by type value."""
        result = {}
        for proposal_type in proposal_types or SUPPORTED_MAPPING_TYPES:
            status = self.status(proposal_type)
            logger.debug("Mapping status %s: %s", status.proposal_type, status.message())
            result[status.proposal_type] = status
        return result
