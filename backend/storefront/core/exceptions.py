from typing import List, Optional


class StorefrontError(Exception):
    """Базовая ошибка слоя расчёта цен"""

    def __init__(self, message: str, code: Optional[str] = None):
        self.message = message
        self.code = code or "storefront_error"
        super().__init__(message)


class NotFoundError(StorefrontError):
    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found", code="not_found")


class CombinatoricsInputError(StorefrontError):
    """Вариант без значений: комбинации не генерируются вообще"""

    def __init__(self, variant_names: List[str]):
        self.variant_names = variant_names
        super().__init__(
            f"Variants without values: {', '.join(variant_names)}",
            code="combinatorics_input",
        )


class CascadeFailure(StorefrontError):
    """Часть комбинаций не получила новую групповую цену"""

    def __init__(self, variant_value_id: int, failed_ids: List[int]):
        self.variant_value_id = variant_value_id
        self.failed_ids = failed_ids
        super().__init__(
            f"Group price cascade for value {variant_value_id} failed "
            f"for combinations {failed_ids}",
            code="cascade_failure",
        )
