"""Field-type registry for the storefront page editor.

Each block type declares its settings as a mapping of field name to
:class:`FieldDefinition`. Validation dispatches on ``FieldDefinition.type``
through the ``_VALIDATORS`` registry, fills defaults for missing values, drops unknown
keys and collects every error as ``"path: message"`` instead of stopping at
the first one.
"""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Set, Tuple
from uuid import UUID

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
_MISSING = object()


@dataclass(frozen=True)
class FieldDefinition:
    type: str
    label: str = ""
    required: bool = False
    default: Any = None
    min: Optional[float] = None
    max: Optional[float] = None
    step: Optional[float] = None
    options: Tuple[str, ...] = ()
    max_length: Optional[int] = None
    max_items: Optional[int] = None
    item_label: Optional[str] = None
    item_fields: Mapping[str, "FieldDefinition"] = field(default_factory=dict)
    fields: Mapping[str, "FieldDefinition"] = field(default_factory=dict)
    allow_internal: bool = False
    presets: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type, "label": self.label, "required": self.required}
        if self.default is not None:
            data["default"] = self.default
        for name in ("min", "max", "step", "max_length", "max_items", "item_label"):
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        if self.options:
            data["options"] = list(self.options)
        if self.presets:
            data["presets"] = list(self.presets)
        if self.allow_internal:
            data["allow_internal"] = True
        if self.item_fields:
            data["item_fields"] = {name: definition.to_dict() for name, definition in self.item_fields.items()}
        if self.fields:
            data["fields"] = {name: definition.to_dict() for name, definition in self.fields.items()}
        return data


Validator = Callable[[FieldDefinition, Any, str, List[str]], Any]
_VALIDATORS: Dict[str, Validator] = {}


def field_type(*names: str) -> Callable[[Validator], Validator]:
    def register(func: Validator) -> Validator:
        for name in names:
            _VALIDATORS[name] = func
        return func

    return register


def registered_field_types() -> List[str]:
    return sorted(_VALIDATORS)


@field_type("text", "textarea", "richtext")
def _validate_text(definition: FieldDefinition, value: Any, path: str, errors: List[str]) -> Any:
    if not isinstance(value, str):
        errors.append(f"{path}: must be a string")
        return None
    if definition.max_length is not None and len(value) > definition.max_length:
        errors.append(f"{path}: must be at most {definition.max_length} characters")
    return value


@field_type("number")
def _validate_number(definition: FieldDefinition, value: Any, path: str, errors: List[str]) -> Any:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        errors.append(f"{path}: must be a number")
        return None
    if definition.min is not None and value < definition.min:
        errors.append(f"{path}: must be >= {definition.min:g}")
    if definition.max is not None and value > definition.max:
        errors.append(f"{path}: must be <= {definition.max:g}")
    return value


@field_type("boolean")
def _validate_boolean(definition: FieldDefinition, value: Any, path: str, errors: List[str]) -> Any:
    if not isinstance(value, bool):
        errors.append(f"{path}: must be true or false")
        return None
    return value


@field_type("select")
def _validate_select(definition: FieldDefinition, value: Any, path: str, errors: List[str]) -> Any:
    if value not in definition.options:
        errors.append(f"{path}: must be one of {', '.join(definition.options)}")
        return None
    return value


def _is_http_url(value: str) -> bool:
    return value.startswith(("http://", "https://")) and len(value) > len("https://")


@field_type("image")
def _validate_image(definition: FieldDefinition, value: Any, path: str, errors: List[str]) -> Any:
    if not isinstance(value, str) or not (_is_http_url(value) or value.startswith("/")):
        errors.append(f"{path}: must be an image URL")
        return None
    return value


@field_type("url")
def _validate_url(definition: FieldDefinition, value: Any, path: str, errors: List[str]) -> Any:
    if isinstance(value, str):
        if _is_http_url(value):
            return value
        if definition.allow_internal and value.startswith(("/", "#")):
            return value
    expected = "an http(s) URL or internal path" if definition.allow_internal else "an http(s) URL"
    errors.append(f"{path}: must be {expected}")
    return None


@field_type("color")
def _validate_color(definition: FieldDefinition, value: Any, path: str, errors: List[str]) -> Any:
    if not isinstance(value, str) or not _HEX_COLOR.match(value):
        errors.append(f"{path}: must be a hex color like #RRGGBB")
        return None
    return value


def _as_uuid(value: Any) -> Optional[str]:
    try:
        return str(UUID(str(value)))
    except (TypeError, ValueError):
        return None


@field_type("product")
def _validate_product(definition: FieldDefinition, value: Any, path: str, errors: List[str]) -> Any:
    product_id = _as_uuid(value)
    if product_id is None:
        errors.append(f"{path}: must be a product id")
    return product_id


@field_type("products")
def _validate_products(definition: FieldDefinition, value: Any, path: str, errors: List[str]) -> Any:
    if not isinstance(value, list):
        errors.append(f"{path}: must be a list of product ids")
        return None
    if definition.max_items is not None and len(value) > definition.max_items:
        errors.append(f"{path}: must have at most {definition.max_items} items")
    normalized = []
    for index, raw in enumerate(value):
        product_id = _as_uuid(raw)
        if product_id is None:
            errors.append(f"{path}[{index}]: must be a product id")
        else:
            normalized.append(product_id)
    return normalized


@field_type("collection")
def _validate_collection(definition: FieldDefinition, value: Any, path: str, errors: List[str]) -> Any:
    collection_id = _as_uuid(value)
    if collection_id is None:
        errors.append(f"{path}: must be a collection id")
    return collection_id


@field_type("array")
def _validate_array(definition: FieldDefinition, value: Any, path: str, errors: List[str]) -> Any:
    if not isinstance(value, list):
        errors.append(f"{path}: must be a list")
        return None
    if definition.max_items is not None and len(value) > definition.max_items:
        errors.append(f"{path}: must have at most {definition.max_items} items")
    items = []
    for index, raw in enumerate(value):
        item_path = f"{path}[{index}]"
        if not isinstance(raw, dict):
            errors.append(f"{item_path}: must be an object")
            continue
        items.append(normalize_settings(definition.item_fields, raw, errors, prefix=item_path))
    return items


@field_type("object")
def _validate_object(definition: FieldDefinition, value: Any, path: str, errors: List[str]) -> Any:
    if not isinstance(value, dict):
        errors.append(f"{path}: must be an object")
        return None
    return normalize_settings(definition.fields, value, errors, prefix=path)


def _is_blank(value: Any) -> bool:
    return value is _MISSING or value is None or value == ""


def validate_field(definition: FieldDefinition, value: Any, path: str, errors: List[str]) -> Any:
    if _is_blank(value):
        if definition.required:
            errors.append(f"{path}: required")
            return None
        return copy.deepcopy(definition.default)

    validator = _VALIDATORS.get(definition.type)
    if validator is None:
        errors.append(f"{path}: unknown field type {definition.type}")
        return None
    return validator(definition, value, path, errors)


def normalize_settings(
    schema: Mapping[str, FieldDefinition],
    settings: Mapping[str, Any],
    errors: Optional[List[str]] = None,
    prefix: str = "",
) -> Dict[str, Any]:
    """Valida e normaliza ``settings`` segundo ``schema``; erros vão para ``errors``."""
    if errors is None:
        errors = []
    normalized: Dict[str, Any] = {}
    for name, definition in schema.items():
        path = f"{prefix}.{name}" if prefix else name
        normalized[name] = validate_field(definition, settings.get(name, _MISSING), path, errors)
    return normalized


def _text(label: str, **kwargs) -> FieldDefinition:
    return FieldDefinition(type="text", label=label, **kwargs)


_LINK_FIELDS = {
    "label": _text("Label", required=True, max_length=60),
    "href": FieldDefinition(type="url", label="Link", required=True, allow_internal=True),
}
_ALIGNMENTS = ("left", "center", "right")

BLOCK_SCHEMAS: Dict[str, Dict[str, Any]] = {
    "header": {
        "label": "Header",
        "fields": {
            "logo": FieldDefinition(type="image", label="Logo"),
            "storeName": _text("Store name", max_length=80),
            "navLinks": FieldDefinition(type="array", label="Navigation", max_items=8, item_label="Link", item_fields=_LINK_FIELDS),
            "sticky": FieldDefinition(type="boolean", label="Sticky header", default=True),
            "backgroundColor": FieldDefinition(type="color", label="Background", default="#FFFFFF"),
        },
    },
    "hero": {
        "label": "Hero banner",
        "fields": {
            "title": _text("Title", required=True, max_length=120),
            "subtitle": FieldDefinition(type="textarea", label="Subtitle", max_length=300),
            "backgroundImage": FieldDefinition(type="image", label="Background image"),
            "ctaText": _text("Button text", default="Shop now", max_length=40),
            "ctaLink": FieldDefinition(type="url", label="Button link", default="/products", allow_internal=True),
            "alignment": FieldDefinition(type="select", label="Alignment", options=_ALIGNMENTS, default="center"),
            "overlayOpacity": FieldDefinition(type="number", label="Overlay opacity", min=0, max=100, step=5, default=40),
            "textColor": FieldDefinition(type="color", label="Text color", default="#FFFFFF", presets=("#FFFFFF", "#000000")),
        },
    },
    "featured-product": {
        "label": "Featured product",
        "fields": {
            "product": FieldDefinition(type="product", label="Product", required=True),
            "showDescription": FieldDefinition(type="boolean", label="Show description", default=True),
            "buttonText": _text("Button text", default="Add to cart", max_length=40),
        },
    },
    "product-grid": {
        "label": "Product grid",
        "fields": {
            "title": _text("Title", default="Featured products", max_length=120),
            "source": FieldDefinition(type="select", label="Source", options=("manual", "collection", "newest", "best-selling"), default="newest"),
            "products": FieldDefinition(type="products", label="Products", max_items=24),
            "collection": FieldDefinition(type="collection", label="Collection"),
            "columns": FieldDefinition(type="number", label="Columns", min=2, max=6, step=1, default=4),
            "limit": FieldDefinition(type="number", label="Products to show", min=1, max=24, step=1, default=8),
        },
    },
    "promotional-banner": {
        "label": "Promotional banner",
        "fields": {
            "text": _text("Text", required=True, max_length=160),
            "link": FieldDefinition(type="url", label="Link", allow_internal=True),
            "backgroundColor": FieldDefinition(type="color", label="Background", default="#111827"),
            "textColor": FieldDefinition(type="color", label="Text color", default="#FFFFFF"),
            "dismissible": FieldDefinition(type="boolean", label="Dismissible", default=False),
        },
    },
    "testimonials": {
        "label": "Testimonials",
        "fields": {
            "title": _text("Title", default="What our customers say", max_length=120),
            "items": FieldDefinition(
                type="array",
                label="Testimonials",
                max_items=12,
                item_label="Testimonial",
                item_fields={
                    "quote": FieldDefinition(type="textarea", label="Quote", required=True, max_length=500),
                    "author": _text("Author", required=True, max_length=80),
                    "rating": FieldDefinition(type="number", label="Rating", min=1, max=5, step=1, default=5),
                    "avatar": FieldDefinition(type="image", label="Avatar"),
                },
            ),
        },
    },
    "newsletter": {
        "label": "Newsletter",
        "fields": {
            "title": _text("Title", default="Join our newsletter", max_length=120),
            "description": FieldDefinition(type="textarea", label="Description", max_length=300),
            "buttonText": _text("Button text", default="Subscribe", max_length=40),
            "placeholder": _text("Placeholder", default="you@example.com", max_length=60),
        },
    },
    "footer": {
        "label": "Footer",
        "fields": {
            "copyright": _text("Copyright", max_length=120),
            "columns": FieldDefinition(
                type="array",
                label="Link columns",
                max_items=4,
                item_label="Column",
                item_fields={
                    "title": _text("Title", required=True, max_length=60),
                    "links": FieldDefinition(type="array", label="Links", max_items=10, item_label="Link", item_fields=_LINK_FIELDS),
                },
            ),
            "social": FieldDefinition(
                type="object",
                label="Social links",
                fields={
                    "instagram": FieldDefinition(type="url", label="Instagram"),
                    "facebook": FieldDefinition(type="url", label="Facebook"),
                    "tiktok": FieldDefinition(type="url", label="TikTok"),
                },
            ),
        },
    },
    "rich-text": {
        "label": "Rich text",
        "fields": {
            "content": FieldDefinition(type="richtext", label="Content", required=True),
            "alignment": FieldDefinition(type="select", label="Alignment", options=_ALIGNMENTS, default="left"),
        },
    },
    "image": {
        "label": "Image",
        "fields": {
            "src": FieldDefinition(type="image", label="Image", required=True),
            "alt": _text("Alt text", max_length=160),
            "link": FieldDefinition(type="url", label="Link", allow_internal=True),
        },
    },
    "button": {
        "label": "Button",
        "fields": {
            "text": _text("Text", required=True, max_length=40),
            "link": FieldDefinition(type="url", label="Link", required=True, allow_internal=True),
            "style": FieldDefinition(type="select", label="Style", options=("primary", "secondary", "outline"), default="primary"),
        },
    },
    "faq": {
        "label": "FAQ",
        "fields": {
            "title": _text("Title", default="Frequently asked questions", max_length=120),
            "items": FieldDefinition(
                type="array",
                label="Questions",
                max_items=20,
                item_label="Question",
                item_fields={
                    "question": _text("Question", required=True, max_length=200),
                    "answer": FieldDefinition(type="textarea", label="Answer", required=True, max_length=2000),
                },
            ),
        },
    },
    "gallery": {
        "label": "Gallery",
        "fields": {
            "images": FieldDefinition(
                type="array",
                label="Images",
                max_items=24,
                item_label="Image",
                item_fields={
                    "src": FieldDefinition(type="image", label="Image", required=True),
                    "alt": _text("Alt text", max_length=160),
                },
            ),
            "columns": FieldDefinition(type="number", label="Columns", min=1, max=6, step=1, default=3),
        },
    },
}


def block_schema(block_type: str) -> Optional[Mapping[str, FieldDefinition]]:
    block = BLOCK_SCHEMAS.get(block_type)
    return block["fields"] if block else None


def describe_blocks() -> List[Dict[str, Any]]:
    return [
        {
            "type": block_type,
            "label": block["label"],
            "fields": {name: definition.to_dict() for name, definition in block["fields"].items()},
        }
        for block_type, block in BLOCK_SCHEMAS.items()
    ]


def validate_section(block_type: str, settings: Mapping[str, Any], prefix: str = "") -> Tuple[Dict[str, Any], List[str]]:
    schema = block_schema(block_type)
    if schema is None:
        label = prefix or block_type
        return {}, [f"{label}: unknown block type {block_type}"]
    errors: List[str] = []
    normalized = normalize_settings(schema, settings, errors, prefix=prefix)
    return normalized, errors


def _collect_references(block_type: str, settings: Mapping[str, Any], single: str, many: Optional[str] = None) -> Set[str]:
    schema = block_schema(block_type) or {}
    found: Set[str] = set()

    def walk(fields: Mapping[str, FieldDefinition], values: Mapping[str, Any]) -> None:
        for name, definition in fields.items():
            value = values.get(name)
            if value is None:
                continue
            if definition.type == single:
                found.add(value)
            elif many is not None and definition.type == many:
                found.update(value)
            elif definition.type == "array":
                for item in value:
                    walk(definition.item_fields, item)
            elif definition.type == "object":
                walk(definition.fields, value)

    walk(schema, settings)
    return found


def collect_product_ids(block_type: str, settings: Mapping[str, Any]) -> Set[str]:
    """Ids de produtos referenciados por configurações já normalizadas."""
    return _collect_references(block_type, settings, "product", "products")


def collect_collection_ids(block_type: str, settings: Mapping[str, Any]) -> Set[str]:
    return _collect_references(block_type, settings, "collection")
