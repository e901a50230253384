from datetime import datetime
from storefront.models.promotion import Promotion, PromotionStatus


def classify_promotion(
    now: datetime,
    start_date: datetime,
    end_date: datetime,
    is_active: bool,
) -> PromotionStatus:
    """
    Статус акции как чистая функция от (now, start, end, is_active).
    Обе границы окна включительно. Внутри окна с is_active=False -> inactive.
    """
    if now < start_date:
        return PromotionStatus.SCHEDULED
    if now > end_date:
        return PromotionStatus.EXPIRED
    if is_active:
        return PromotionStatus.ACTIVE
    return PromotionStatus.INACTIVE


def promotion_status(promotion: Promotion, now: datetime) -> PromotionStatus:
    return classify_promotion(now, promotion.start_date, promotion.end_date, promotion.is_active)


def is_promotion_active(promotion: Promotion, now: datetime) -> bool:
    return promotion_status(promotion, now) == PromotionStatus.ACTIVE
