"""
Shared test fixtures: in-memory SQLite catalog store, seeded resolver, calculators.
"""

import os
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Point the default engine away from any real catalog before importing app modules
os.environ["DATABASE_URL"] = "sqlite://"

from proposal_calc import models  # noqa: F401  (registers tables on Base.metadata)
from proposal_calc.database import Base
from proposal_calc.seed_catalog import seed_catalog
from proposal_calc.calculators.catalog import CatalogResolver
from proposal_calc.calculators.mapping import MappingCalculator
from proposal_calc.calculators.partition import PartitionCalculator
from proposal_calc.calculators.ventilation import VentilationCalculator
from proposal_calc.calculators.availability import MappingAvailabilityChecker


@pytest.fixture
def engine():
    """Fresh in-memory database per test, shared across sessions through StaticPool."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    """Direct database session for test setup/assertions, with the reference catalog loaded."""
    session = session_factory()
    seed_catalog(session)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def resolver(db, session_factory):
    """Resolver over the seeded catalog. Caching off so tests see their own edits."""
    return CatalogResolver(session_factory=session_factory, ttl_seconds=0)


@pytest.fixture
def mapping_calc(resolver):
    return MappingCalculator(resolver=resolver)


@pytest.fixture
def partition_calc(resolver):
    return PartitionCalculator(resolver=resolver)


@pytest.fixture
def ventilation_calc(resolver):
    return VentilationCalculator(resolver=resolver)


@pytest.fixture
def checker(resolver):
    return MappingAvailabilityChecker(resolver=resolver)
