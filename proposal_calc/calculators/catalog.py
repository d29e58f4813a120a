"""
Composition catalog resolver: the engine's only read path into the catalog store.

Resolves a proposal type into its ordered, eligible compositions and items,
and loads the drywall consumption table and the ventilation products.

Every result is an immutable snapshot held in a time-boxed cache
(CATALOG_CACHE_TTL_SECONDS). Callers never re-fetch on their own: they call
invalidate() when the catalog changes under them.

Store errors surface as DataSourceFailure. Nothing is retried here.
"""

import logging
import threading
import time

from sqlalchemy.exc import SQLAlchemyError

from .. import models, schemas
from ..config import settings
from ..database import SessionLocal
from ..exceptions import DataSourceFailure

logger = logging.getLogger(__name__)

_CATEGORY_RANK = {c.value: rank for rank, c in enumerate(models.PartitionCategory)}
_BASES = {b.value for b in models.ConsumptionBasis}


def _type_value(proposal_type) -> str:
    if isinstance(proposal_type, models.ProposalType):
        return proposal_type.value
    return str(proposal_type)


class CatalogResolver:
    """
    Read-only lookups against the catalog store, cached per key.

    session_factory: callable returning a SQLAlchemy session (default SessionLocal).
    ttl_seconds: freshness of a cached snapshot; 0 disables caching.
    """

    def __init__(self, session_factory=None, ttl_seconds: float = None, clock=time.monotonic):
        self.session_factory = session_factory or SessionLocal
        if ttl_seconds is None:
            ttl_seconds = settings.CATALOG_CACHE_TTL_SECONDS
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._cache = {}
        self._lock = threading.Lock()

    # --- Public lookups ---

    def resolve(self, proposal_type) -> list:
        """
        Ordered list of ResolvedComposition for a proposal type.

        Only active mappings of active compositions, each with its active items.
        Ordered by mapping calc_order then composition id; items by calc_order
        then id. An empty list means "cannot calculate", not a fault.
        """
        type_value = _type_value(proposal_type)
        resolved = self._cached(
            ("compositions", type_value),
            lambda db: self._load_compositions(db, type_value),
        )
        return list(resolved)

    def partition_components(self, wall_type: str) -> list:
        """Drywall consumption rows for a wall type, in category then assembly order."""
        components = self._cached(
            ("partition", wall_type),
            lambda db: self._load_partition_components(db, wall_type),
        )
        return list(components)

    def ventilation_products(self) -> list:
        """Active ventilation products ordered by code."""
        return list(self._cached(("ventilation",), self._load_ventilation_products))

    def ventilation_product(self, product_id: str):
        """Single ventilation product by id, or None."""
        for product in self.ventilation_products():
            if product.id == product_id:
                return product
        return None

    def invalidate(self, proposal_type=None, wall_type: str = None, ventilation: bool = False):
        """
        Drop cached snapshots.

        Called bare, clears everything. Otherwise drops only the named ones:
        a proposal type's compositions, a wall type's partition rows, and/or
        the ventilation product list.
        """
        keys = []
        if proposal_type is not None:
            keys.append(("compositions", _type_value(proposal_type)))
        if wall_type is not None:
            keys.append(("partition", wall_type))
        if ventilation:
            keys.append(("ventilation",))

        with self._lock:
            if not keys:
                self._cache.clear()
            for key in keys:
                self._cache.pop(key, None)

    # --- Cache ---

    def _cached(self, key: tuple, loader):
        if self.ttl_seconds > 0:
            with self._lock:
                entry = self._cache.get(key)
                if entry is not None and self._clock() - entry[0] < self.ttl_seconds:
                    logger.debug("Catalog cache hit for %s", key)
                    return entry[1]

        value = self._query(loader, key)

        if self.ttl_seconds > 0:
            with self._lock:
                self._cache[key] = (self._clock(), value)
        return value

    def _query(self, loader, key: tuple):
        db = self.session_factory()
        try:
            return loader(db)
        except SQLAlchemyError as e:
            logger.error("Catalog store query failed for %s: %s", key, e)
            raise DataSourceFailure("Catalog store unavailable: %s" % e) from e
        finally:
            db.close()

    # --- Loaders ---

    def _load_compositions(self, db, type_value: str) -> tuple:
        PTC = models.ProposalTypeComposition
        mappings = (
            db.query(PTC)
            .join(models.Composition, PTC.composition_id == models.Composition.id)
            .filter(
                PTC.proposal_type == type_value,
                PTC.active.is_(True),
                models.Composition.active.is_(True),
            )
            .order_by(PTC.calc_order, PTC.composition_id, PTC.id)
            .all()
        )

        resolved = []
        for mapping in mappings:
            comp = mapping.composition
            items = sorted(
                (i for i in comp.items if i.active and i.product is not None and i.product.active),
                key=lambda i: (i.calc_order or 0, i.id),
            )
            resolved.append(schemas.ResolvedComposition(
                composition=self._composition_snapshot(comp, mapping),
                items=tuple(self._item_snapshot(comp, i) for i in items),
            ))

        logger.info("Resolved %d compositions for proposal type %s", len(resolved), type_value)
        return tuple(resolved)

    def _composition_snapshot(self, comp, mapping) -> schemas.Composition:
        factor = mapping.application_factor
        if factor is None:
            factor = 1.0
        if factor < 0:
            raise DataSourceFailure(
                "Mapping %d for composition %s has a negative application factor" % (
                    mapping.id, comp.code))
        return schemas.Composition(
            id=comp.id,
            code=comp.code,
            name=comp.name,
            category=comp.category,
            calc_order=mapping.calc_order or 0,
            mandatory=bool(mapping.mandatory),
            reference_value=comp.reference_value or 0.0,
            default_waste_percent=comp.default_waste_percent,
            application_factor=factor,
            scope=mapping.scope,
        )

    def _item_snapshot(self, comp, item) -> schemas.CompositionItem:
        product = item.product
        unit_price = item.unit_price if item.unit_price is not None else product.unit_price
        if item.consumption_rate is None or item.consumption_rate < 0:
            raise DataSourceFailure(
                "Item %s of composition %s has no valid consumption rate" % (product.code, comp.code))
        if unit_price is None or unit_price < 0:
            raise DataSourceFailure(
                "Item %s of composition %s has no valid unit price" % (product.code, comp.code))
        return schemas.CompositionItem(
            id=item.id,
            code=product.code,
            description=product.description,
            unit=product.unit,
            consumption_rate=item.consumption_rate,
            unit_price=unit_price,
            waste_percent=item.waste_percent,
            unit_weight_kg=product.unit_weight_kg,
            calc_order=item.calc_order or 0,
            mandatory=bool(item.mandatory),
        )

    def _load_partition_components(self, db, wall_type: str) -> tuple:
        rows = (
            db.query(models.PartitionComponent)
            .filter(models.PartitionComponent.wall_type == wall_type)
            .all()
        )

        components = []
        for row in rows:
            product = row.product
            if product is None or not product.active:
                continue
            if row.category not in _CATEGORY_RANK:
                raise DataSourceFailure(
                    "Partition component %s has unknown category %r" % (row.name, row.category))
            if row.basis not in _BASES:
                raise DataSourceFailure(
                    "Partition component %s has unknown basis %r" % (row.name, row.basis))
            if row.consumption_rate is None or row.consumption_rate < 0:
                raise DataSourceFailure(
                    "Partition component %s has no valid consumption rate" % row.name)
            if product.unit_price is None or product.unit_price < 0:
                raise DataSourceFailure("Product %s has no valid unit price" % product.code)
            components.append(schemas.PartitionComponent(
                id=row.id,
                wall_type=row.wall_type,
                category=row.category,
                name=row.name,
                basis=row.basis,
                consumption_rate=row.consumption_rate,
                waste_percent=row.waste_percent or 0.0,
                assembly_order=row.assembly_order or 0,
                product_code=product.code,
                product_description=product.description,
                unit=product.unit,
                unit_price=product.unit_price,
                unit_weight_kg=product.unit_weight_kg,
                thickness_mm=product.thickness_mm,
            ))

        components.sort(key=lambda c: (_CATEGORY_RANK[c.category], c.assembly_order, c.id))
        logger.info("Loaded %d partition components for wall type %s", len(components), wall_type)
        return tuple(components)

    def _load_ventilation_products(self, db) -> tuple:
        rows = (
            db.query(models.VentilationProduct)
            .filter(models.VentilationProduct.active.is_(True))
            .order_by(models.VentilationProduct.code, models.VentilationProduct.id)
            .all()
        )
        products = []
        for row in rows:
            if row.side not in (models.VentSide.INTAKE.value, models.VentSide.EXHAUST.value):
                raise DataSourceFailure(
                    "Ventilation product %s has unknown side %r" % (row.id, row.side))
            if row.nfva_m2 is not None and row.nfva_m2 < 0:
                raise DataSourceFailure("Ventilation product %s has a negative NFVA" % row.id)
            products.append(schemas.VentilationProduct(
                id=row.id,
                code=row.code,
                name=row.name,
                nfva_m2=row.nfva_m2,
                unit=row.unit,
                side=row.side,
                linear=bool(row.linear),
                unit_price=row.unit_price or 0.0,
                notes=row.notes,
            ))
        logger.info("Loaded %d ventilation products", len(products))
        return tuple(products)
