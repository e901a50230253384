import logging
from typing import Optional
from storefront.core.config import settings


def setup_logging(level: Optional[str] = None) -> None:
    """Настройка логирования для сервисов каталога и вариантов"""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format=settings.LOG_FORMAT,
    )
