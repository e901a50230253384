from itertools import product as cartesian
from typing import Iterable, List, FrozenSet, Sequence, Tuple, Mapping
from storefront.core.exceptions import CombinatoricsInputError

ValueKey = Tuple[int, ...]


def combination_key(value_ids: Iterable[int]) -> ValueKey:
    """Идентичность комбинации: отсортированный набор id, порядок не важен"""
    return tuple(sorted(set(value_ids)))


def format_value_key(value_ids: Iterable[int]) -> str:
    return "-".join(str(value_id) for value_id in combination_key(value_ids))


def parse_value_key(value_key: str) -> ValueKey:
    if not value_key:
        return ()
    return combination_key(int(part) for part in value_key.split("-"))


def validate_value_lists(value_lists: Mapping[str, Sequence[int]]) -> None:
    """Вариант без значений отклоняется до генерации"""
    empty = [name for name, values in value_lists.items() if not values]
    if empty:
        raise CombinatoricsInputError(empty)


def generate_combinations(value_lists: Sequence[Sequence[int]]) -> List[FrozenSet[int]]:
    """
    Декартово произведение значений вариантов.
    Порядок обхода следует порядку вариантов; без вариантов -> [].
    """
    if not value_lists:
        return []
    return [frozenset(combo) for combo in cartesian(*value_lists)]


def missing_combinations(
    value_lists: Sequence[Sequence[int]],
    existing: Iterable[Iterable[int]],
) -> List[FrozenSet[int]]:
    """Сгенерированные наборы, которых ещё нет среди существующих"""
    known = {combination_key(value_ids) for value_ids in existing}
    missing = []
    for combo in generate_combinations(value_lists):
        key = combination_key(combo)
        if key in known:
            continue
        known.add(key)
        missing.append(combo)
    return missing
