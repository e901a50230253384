from pydantic_settings import BaseSettings
from decimal import Decimal


class Settings(BaseSettings):
    ENV: str = "development"
    DATABASE_URL: str = "sqlite:///./storefront.db"
    DATABASE_ECHO: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Money formatting (output only, resolution never rounds)
    CURRENCY_SYMBOL: str = "R$"
    PRICE_DECIMAL_PLACES: int = 2

    @property
    def price_quantum(self) -> Decimal:
        return Decimal(1).scaleb(-self.PRICE_DECIMAL_PLACES)

    class Config:
        env_file = ".env"


settings = Settings()
