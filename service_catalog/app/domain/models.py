"""
Catalog and order records decoded from CS-Cart API responses.

Backend payloads are loosely shaped (PHP arrays arrive either as JSON lists or
as objects keyed by id, numbers sometimes arrive as strings), so every record
is built through ``from_dict`` and normalized here rather than in the services.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


def as_list(value: Any) -> List[Any]:
    """Normalize a backend collection (list or id-keyed object) into a list."""
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        return list(value.values())
    return []


def as_number(value: Any) -> Optional[float]:
    """Coerce ints, floats and numeric strings; anything else is None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError:
        return None


def format_number(value: Any) -> str:
    """Render a number without a trailing ``.0`` when it is integral."""
    number = as_number(value)
    if number is None:
        return "" if value is None else str(value)
    if number.is_integer():
        return str(int(number))
    return str(number)


def _optional_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def is_enabled_flag(value: Any) -> bool:
    """CS-Cart flags are "Y"/"N" strings; booleans and 0/1 also appear."""
    if isinstance(value, str):
        return value.strip().upper() not in ("", "N", "0", "FALSE")
    return bool(value)


class FeatureKind(str, Enum):
    """Feature type tags."""
    TEXT = "T"
    NUMBER = "N"
    MULTI_SELECT = "M"
    SINGLE_VARIANT = "S"
    OTHER = "other"

    @classmethod
    def from_tag(cls, tag: Any) -> "FeatureKind":
        for kind in cls:
            if kind.value == tag:
                return kind
        return cls.OTHER


class VariantStatus(str, Enum):
    """Outcome of resolving a feature's variant set."""
    RESOLVED = "resolved"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass(frozen=True)
class Variant:
    """One permitted value of a feature."""

    variant_id: str
    variant: str

    def to_dict(self) -> Dict[str, Any]:
        return {"variant_id": self.variant_id, "variant": self.variant}

    @classmethod
    def from_dict(cls, payload: Any) -> Optional["Variant"]:
        if not isinstance(payload, dict):
            return None
        variant_id = _optional_str(payload.get("variant_id"))
        if variant_id is None:
            return None
        label = payload.get("variant")
        return cls(variant_id=variant_id, variant="" if label is None else str(label))


def parse_variants(value: Any) -> List[Variant]:
    """Decode a backend variant collection, dropping malformed entries."""
    variants = []
    for item in as_list(value):
        variant = Variant.from_dict(item)
        if variant is not None:
            variants.append(variant)
    return variants


@dataclass
class VariantSet:
    """Resolved variants of one feature plus how the resolution went."""

    status: VariantStatus
    variants: List[Variant] = field(default_factory=list)
    error: Optional[str] = None

    @classmethod
    def resolved(cls, variants: List[Variant]) -> "VariantSet":
        return cls(status=VariantStatus.RESOLVED, variants=list(variants))

    @classmethod
    def empty(cls) -> "VariantSet":
        return cls(status=VariantStatus.EMPTY)

    @classmethod
    def failed(cls, error: str) -> "VariantSet":
        return cls(status=VariantStatus.FAILED, error=error)

    def by_id(self) -> Dict[str, Variant]:
        return {variant.variant_id: variant for variant in self.variants}


@dataclass
class Feature:
    """A product attribute definition enriched with its variants."""

    feature_id: Optional[str]
    description: str
    feature_type: str
    variant_set: VariantSet = field(default_factory=VariantSet.empty)
    raw: Dict[str, Any] = field(default_factory=dict)

    def with_variants(self, variant_set: VariantSet) -> "Feature":
        return Feature(
            feature_id=self.feature_id,
            description=self.description,
            feature_type=self.feature_type,
            variant_set=variant_set,
            raw=self.raw,
        )

    def to_dict(self) -> Dict[str, Any]:
        payload = dict(self.raw)
        payload["feature_id"] = self.feature_id
        payload["description"] = self.description
        payload["feature_type"] = self.feature_type
        payload["variants"] = {
            variant.variant_id: variant.to_dict() for variant in self.variant_set.variants
        }
        payload["variants_status"] = self.variant_set.status.value
        if self.variant_set.error:
            payload["variants_error"] = self.variant_set.error
        return payload

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Feature":
        """Decode a feature from the backend or from the cached catalog blob."""
        raw = {
            key: value
            for key, value in payload.items()
            if key not in ("variants", "variants_status", "variants_error")
        }
        try:
            status = VariantStatus(payload.get("variants_status"))
        except ValueError:
            status = None
        if status is not None:
            variant_set = VariantSet(
                status=status,
                variants=parse_variants(payload.get("variants")),
                error=payload.get("variants_error"),
            )
        else:
            variant_set = VariantSet.empty()
        return cls(
            feature_id=_optional_str(payload.get("feature_id")),
            description=str(payload.get("description") or ""),
            feature_type=str(payload.get("feature_type") or ""),
            variant_set=variant_set,
            raw=raw,
        )


@dataclass(frozen=True)
class ProductSummary:
    """Trimmed product projection used for listing and search."""

    product_id: Any = None
    product: Optional[str] = None
    product_code: Optional[str] = None
    timestamp: Any = None
    updated_timestamp: Any = None
    price: Any = None
    seo_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        for key in (
            "product_id",
            "product",
            "product_code",
            "timestamp",
            "updated_timestamp",
            "price",
            "seo_name",
        ):
            value = getattr(self, key)
            if value is not None:
                payload[key] = value
        return payload

    @classmethod
    def from_product(cls, product: Dict[str, Any]) -> "ProductSummary":
        return cls(
            product_id=product.get("product_id"),
            product=product.get("product"),
            product_code=product.get("product_code"),
            timestamp=product.get("timestamp"),
            updated_timestamp=product.get("updated_timestamp"),
            price=product.get("price"),
            seo_name=product.get("seo_name"),
        )

    def matches(self, name: Optional[str] = None, code: Optional[str] = None) -> bool:
        """Case-insensitive substring match; both filters must hold when given."""
        if name and name.strip():
            if not isinstance(self.product, str) or name.lower() not in self.product.lower():
                return False
        if code and code.strip():
            if not isinstance(self.product_code, str) or code.lower() not in self.product_code.lower():
                return False
        return True


@dataclass(frozen=True)
class TextValue:
    """Feature value shown as-is: a variant label or the untouched raw value."""

    value: Any
    kind: str = "text"

    def to_json(self) -> Any:
        return self.value


@dataclass(frozen=True)
class NumberValue:
    """Numeric feature value; None when the backend sent something non-numeric."""

    value: Optional[float]
    kind: str = "number"

    def to_json(self) -> Any:
        if self.value is None:
            return None
        if self.value.is_integer():
            return int(self.value)
        return self.value


@dataclass(frozen=True)
class ListValue:
    """Multi-select feature value."""

    value: List[str]
    kind: str = "list"

    def to_json(self) -> Any:
        return list(self.value)


FeatureValue = Union[TextValue, NumberValue, ListValue]


@dataclass
class FeatureAssignment:
    """A feature (and its value or variant) assigned to one product."""

    feature_id: Optional[str]
    description: str
    feature_type: str
    value: Any = None
    value_int: Any = None
    variant_id: Optional[str] = None
    use_variant_picker: bool = False
    variants: Optional[List[Variant]] = None

    @property
    def kind(self) -> FeatureKind:
        return FeatureKind.from_tag(self.feature_type)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "FeatureAssignment":
        variant_id = _optional_str(payload.get("variant_id"))
        if variant_id == "0":
            variant_id = None
        return cls(
            feature_id=_optional_str(payload.get("feature_id")),
            description=str(payload.get("description") or ""),
            feature_type=str(payload.get("feature_type") or ""),
            value=payload.get("value"),
            value_int=payload.get("value_int"),
            variant_id=variant_id,
            use_variant_picker=is_enabled_flag(payload.get("use_variant_picker")),
            variants=None if payload.get("variants") is None else parse_variants(payload["variants"]),
        )


@dataclass(frozen=True)
class OrderLine:
    """One ordered product."""

    product_id: Any
    product_code: str
    product: str
    subtotal: Any
    amount: int
    base_price: Any

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "OrderLine":
        amount = as_number(payload.get("amount"))
        return cls(
            product_id=payload.get("product_id"),
            product_code=str(payload.get("product_code") or ""),
            product=str(payload.get("product") or ""),
            subtotal=payload.get("subtotal"),
            amount=int(amount) if amount is not None and math.isfinite(amount) else 1,
            base_price=payload.get("base_price"),
        )


@dataclass
class OrderInfo:
    """Customer and item view of an order used to render the order message."""

    order_id: Any
    total: Any
    name: str
    phone: str
    email: str
    contact: str
    company: str
    notes: str
    order_url: str
    payment_method: str
    products: str
