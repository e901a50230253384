import logging
from datetime import datetime
from typing import Optional, List
from sqlmodel import Session, select
from storefront.core.exceptions import NotFoundError
from storefront.models.promotion import Promotion, PromotionStatus
from storefront.schemas.promotion import PromotionCreate
from storefront.services.promotion_status import classify_promotion, promotion_status

logger = logging.getLogger(__name__)


def create_promotion(db: Session, data: PromotionCreate, now: Optional[datetime] = None) -> Promotion:
    """Создать акцию; статус по датам, если не задан явно"""
    now = now or datetime.utcnow()

    values = data.model_dump()
    if values["status"] is None:
        values["status"] = classify_promotion(now, data.start_date, data.end_date, data.is_active)

    promo = Promotion(**values)
    db.add(promo)
    db.commit()
    db.refresh(promo)
    return promo


def get_promotion(db: Session, promotion_id: int) -> Promotion:
    promo = db.get(Promotion, promotion_id)
    if not promo:
        raise NotFoundError("Promotion", promotion_id)
    return promo


def sync_promotion_statuses(
    db: Session,
    store_id: int,
    now: Optional[datetime] = None,
) -> List[Promotion]:
    """
    Привести сохранённый status к расчётному.
    Черновики не трогаем: draft выставляет только админ.
    """
    now = now or datetime.utcnow()

    stmt = select(Promotion).where(
        Promotion.store_id == store_id,
        Promotion.status != PromotionStatus.DRAFT,
    )

    changed = []
    for promo in db.exec(stmt).all():
        status = promotion_status(promo, now)
        if promo.status == status:
            continue
        logger.info("Promotion %s: %s -> %s", promo.id, promo.status.value, status.value)
        promo.status = status
        promo.updated_at = now
        db.add(promo)
        changed.append(promo)

    if changed:
        db.commit()
    return changed
