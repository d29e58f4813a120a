from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./catalog.db"

    # Catalog cache: seconds a resolved catalog snapshot stays fresh (0 disables)
    CATALOG_CACHE_TTL_SECONDS: float = 300.0

    # Generic mapping
    DEFAULT_WASTE_PERCENT: float = 0.0

    # Partition takeoff: policy values pending product-owner confirmation
    DEFAULT_WALL_TYPE: str = "Parede Simples ST 73mm"
    OPENING_DEDUCTION_FACTOR: float = 0.5
    # Plausibility band for the reference wall, in materials-only R$/m² of net
    # area (the takeoff prices no labour). Installed-price quotes run 800-2000.
    PARTITION_PRICE_PER_M2_MIN: float = 60.0
    PARTITION_PRICE_PER_M2_MAX: float = 250.0

    # Attic ventilation: policy values pending building-code review
    VENT_RATIO_REGIONAL: float = 150.0
    VENT_RATIO_DEFAULT: float = 300.0
    VENT_DISCRETE_DENSITY_MAX: float = 0.2   # discrete vents per m² of attic
    VENT_DENSITY_MAX: float = 0.25           # any product, pieces per m² of attic

    class Config:
        env_file = ".env"


settings = Settings()
