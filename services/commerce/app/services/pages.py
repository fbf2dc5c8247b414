from __future__ import annotations

from typing import Any, Dict, List, Sequence, Set
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from app.models.catalog import Product
from app.models.collection import Collection
from app.schemas.page_schema import SectionIn
from app.services.editor_fields import collect_collection_ids, collect_product_ids, validate_section
from app.services.errors import SectionValidationError


def _missing_products(db: Session, tenant_id: UUID, product_ids: Set[str]) -> Set[str]:
    if not product_ids:
        return set()
    found = {
        str(row[0])
        for row in db.query(Product.id)
        .filter(Product.tenant_id == tenant_id, Product.id.in_([UUID(pid) for pid in product_ids]))
        .all()
    }
    return product_ids - found


def _missing_collections(db: Session, tenant_id: UUID, collection_ids: Set[str]) -> Set[str]:
    if not collection_ids:
        return set()
    found = {
        str(row[0])
        for row in db.query(Collection.id)
        .filter(Collection.tenant_id == tenant_id, Collection.id.in_([UUID(cid) for cid in collection_ids]))
        .all()
    }
    return collection_ids - found


def prepare_sections(db: Session, tenant_id: UUID, sections: Sequence[SectionIn]) -> List[Dict[str, Any]]:
    """Normaliza as seções da página; levanta SectionValidationError com todos os erros."""
    errors: List[str] = []
    prepared: List[Dict[str, Any]] = []
    referenced: Set[str] = set()
    collections: Set[str] = set()

    for index, section in enumerate(sections):
        settings, section_errors = validate_section(section.type, section.settings, prefix=f"sections[{index}]")
        errors.extend(section_errors)
        if not section_errors:
            referenced |= collect_product_ids(section.type, settings)
            collections |= collect_collection_ids(section.type, settings)
        prepared.append(
            {
                "id": section.id or f"{section.type}-{uuid4().hex[:8]}",
                "type": section.type,
                "settings": settings,
                "visible": section.visible,
            }
        )

    for product_id in sorted(_missing_products(db, tenant_id, referenced)):
        errors.append(f"product {product_id} not found")
    for collection_id in sorted(_missing_collections(db, tenant_id, collections)):
        errors.append(f"collection {collection_id} not found")

    if errors:
        raise SectionValidationError(errors)
    return prepared
