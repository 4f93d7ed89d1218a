"""
Label dictionaries: internal enumeration codes -> Russian display strings.

The codes are stored verbatim in the ``products`` and ``requests`` collections,
so the mappings below must not change for existing data to render correctly.
Unknown codes are shown as-is.
"""
from __future__ import annotations
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Mapping, Optional, Union


class LabelDictionary(str, Enum):
    WINDOW_TYPE = "window_type"
    MATERIAL = "material"
    GLAZING = "glazing"
    FEATURE = "feature"
    STATUS = "status"


WINDOW_TYPES: Mapping[str, str] = {
    "standard": "Стандартное",
    "casement": "Створчатое",
    "sliding": "Раздвижное",
    "awning": "Откидное",
    "bay-window": "Эркерное",
    "picture-window": "Панорамное",
}

MATERIALS: Mapping[str, str] = {
    "vinyl": "ПВХ (Винил)",
    "aluminum": "Алюминий",
    "wooden": "Дерево",
    "fiberglass": "Стекловолокно",
    "composite": "Композитный материал",
}

GLAZING_TYPES: Mapping[str, str] = {
    "single": "Одинарное",
    "double": "Двойное",
    "triple": "Тройное",
    "low-e": "Энергосберегающее",
}

FEATURES: Mapping[str, str] = {
    "uv-protection": "UV-защита",
    "soundproof": "Шумоизоляция",
    "security-glass": "Ударопрочное стекло",
    "tinted": "Тонировка",
}

STATUSES: Mapping[str, str] = {
    "new": "Новая",
    "processing": "В обработке",
    "completed": "Завершена",
    "rejected": "Отклонена",
}

_DICTIONARIES: dict[LabelDictionary, Mapping[str, str]] = {
    LabelDictionary.WINDOW_TYPE: WINDOW_TYPES,
    LabelDictionary.MATERIAL: MATERIALS,
    LabelDictionary.GLAZING: GLAZING_TYPES,
    LabelDictionary.FEATURE: FEATURES,
    LabelDictionary.STATUS: STATUSES,
}

EMPTY = "-"


def label_for(dictionary: Union[LabelDictionary, str], code: str) -> str:
    """Display string for ``code``, or ``code`` itself when it has no mapping.

    Raises ValueError only for an unknown dictionary name.
    """
    mapping = _DICTIONARIES[LabelDictionary(dictionary)]
    return mapping.get(code, code)


def label_or_empty(dictionary: Union[LabelDictionary, str], code: Optional[str]) -> str:
    return label_for(dictionary, code) if code else EMPTY


def feature_list(codes: Optional[Iterable[str]]) -> str:
    names = [label_for(LabelDictionary.FEATURE, c) for c in (codes or [])]
    return ", ".join(names) if names else EMPTY


def size_text(width, height) -> str:
    if not width or not height:
        return EMPTY
    return f"{_num(width)} × {_num(height)} см"


def area_text(area: Optional[str]) -> str:
    return f"{area} м²" if area else EMPTY


def quantity_text(quantity: Optional[int]) -> str:
    return f"{quantity} шт." if quantity else EMPTY


def format_date(value: Optional[str], with_seconds: bool = False) -> str:
    """Render a stored ISO timestamp as ``dd.mm.yyyy, HH:MM[:SS]`` (UTC)."""
    if not value:
        return EMPTY
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    fmt = "%d.%m.%Y, %H:%M:%S" if with_seconds else "%d.%m.%Y, %H:%M"
    return dt.strftime(fmt)


def _num(value) -> str:
    # 150.0 -> "150"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
