"""
Quote configuration - the calculator's state and its derivation rules.

A configuration is immutable; every operation returns a new value. Dimensions
are in centimetres, the derived area in square metres.
"""
from __future__ import annotations
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Mapping, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from labels import FEATURES, LabelDictionary, feature_list, label_for

DEFAULT_WIDTH = 100
DEFAULT_HEIGHT = 100
DEFAULT_WINDOW_TYPE = "standard"
DEFAULT_GLAZING = "double"
DEFAULT_MATERIAL = "vinyl"

CM2_PER_M2 = Decimal(10000)
HUNDREDTHS = Decimal("0.01")


class SelectedProduct(BaseModel):
    """Weak reference to a catalog item carried by the calculator."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    name: str = ""
    category: str = ""


class QuoteConfiguration(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    width: float = Field(DEFAULT_WIDTH, gt=0)
    height: float = Field(DEFAULT_HEIGHT, gt=0)
    window_type: str = DEFAULT_WINDOW_TYPE
    material: str = DEFAULT_MATERIAL
    glazing_type: str = DEFAULT_GLAZING
    additional_features: tuple[str, ...] = ()
    quantity: int = Field(1, ge=1)
    selected_product: Optional[SelectedProduct] = None

    @field_validator("additional_features", mode="before")
    @classmethod
    def _normalize_features(cls, value):
        return normalize_features(value or ())

    @property
    def area(self) -> str:
        return derive_area(self.width, self.height)


class CalculatorSnapshot(BaseModel):
    """Calculator data embedded in a stored request.

    Every field is optional: documents written by older clients may lack any of them.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        coerce_numbers_to_str=True,
    )

    width: Optional[float] = None
    height: Optional[float] = None
    area: Optional[str] = None
    window_type: Optional[str] = None
    material: Optional[str] = None
    glazing_type: Optional[str] = None
    additional_features: list[str] = Field(default_factory=list)
    quantity: Optional[int] = None
    selected_product: Optional[SelectedProduct] = None


# SelectedProduct, a mapping, or an object with id/name/category such as schemas.Product
ProductLike = Any


def normalize_features(codes: Iterable[str]) -> tuple[str, ...]:
    """Deduplicate feature codes into canonical order.

    Known codes follow the label dictionary order, unknown codes come after
    them sorted, so the result depends only on membership.
    """
    present = set(codes)
    known = [c for c in FEATURES if c in present]
    unknown = sorted(present.difference(FEATURES))
    return tuple(known + unknown)


def derive_area(width: float, height: float) -> str:
    """Area in m² of a ``width`` x ``height`` cm opening, rounded half-up to two decimals.

    >>> derive_area(150, 180)
    '2.70'
    >>> derive_area(250, 45)
    '1.13'
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"dimensions must be positive, got {width} x {height}")
    area = Decimal(str(width)) * Decimal(str(height)) / CM2_PER_M2
    return str(area.quantize(HUNDREDTHS, rounding=ROUND_HALF_UP))


def as_selected_product(product: ProductLike) -> SelectedProduct:
    if isinstance(product, SelectedProduct):
        return product
    if isinstance(product, Mapping):
        return SelectedProduct.model_validate(product)
    return SelectedProduct(id=product.id, name=product.name, category=product.category)


def create_default(linked_product: Optional[ProductLike] = None) -> QuoteConfiguration:
    selected = as_selected_product(linked_product) if linked_product is not None else None
    return QuoteConfiguration(
        width=DEFAULT_WIDTH,
        height=DEFAULT_HEIGHT,
        window_type=DEFAULT_WINDOW_TYPE,
        material=(selected.category if selected and selected.category else DEFAULT_MATERIAL),
        glazing_type=DEFAULT_GLAZING,
        additional_features=(),
        quantity=1,
        selected_product=selected,
    )


def toggle_feature(config: QuoteConfiguration, code: str) -> QuoteConfiguration:
    present = set(config.additional_features)
    if code in present:
        present.discard(code)
    else:
        present.add(code)
    return config.model_copy(update={"additional_features": normalize_features(present)})


def set_quantity(config: QuoteConfiguration, n: int) -> QuoteConfiguration:
    return config.model_copy(update={"quantity": max(1, int(n))})


def increment_quantity(config: QuoteConfiguration) -> QuoteConfiguration:
    return set_quantity(config, config.quantity + 1)


def decrement_quantity(config: QuoteConfiguration) -> QuoteConfiguration:
    return set_quantity(config, config.quantity - 1)


def with_dimensions(config: QuoteConfiguration, width: float, height: float) -> QuoteConfiguration:
    # Validates through the constructor so non-positive sizes are rejected
    return QuoteConfiguration.model_validate({**config.model_dump(), "width": width, "height": height})


def select_product(config: QuoteConfiguration, product: Optional[ProductLike]) -> QuoteConfiguration:
    """Link (or unlink with None) a catalog item; its category becomes the material."""
    if product is None:
        return config.model_copy(update={"selected_product": None})
    selected = as_selected_product(product)
    update: dict[str, Any] = {"selected_product": selected}
    if selected.category:
        update["material"] = selected.category
    return config.model_copy(update=update)


def to_snapshot(config: QuoteConfiguration) -> dict[str, Any]:
    """Wire form embedded in a request document, including the derived area."""
    data = config.model_dump(by_alias=True, mode="json", exclude_none=True)
    data["area"] = config.area
    return data


def describe(config: QuoteConfiguration) -> dict[str, Any]:
    return {
        "calculatorData": to_snapshot(config),
        "labels": {
            "windowType": label_for(LabelDictionary.WINDOW_TYPE, config.window_type),
            "material": label_for(LabelDictionary.MATERIAL, config.material),
            "glazingType": label_for(LabelDictionary.GLAZING, config.glazing_type),
            "additionalFeatures": feature_list(config.additional_features),
        },
    }
