import re
import unicodedata
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def kebab(value: str) -> str:
    """Converte "Loja da Ana" em "loja-da-ana"; vazio se não sobrar letra nem número."""
    normalized = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    return _NON_ALNUM.sub("-", normalized.lower()).strip("-")


def slugify(value: str) -> str:
    return kebab(value) or "item"


def unique_slug(
    db: Session,
    model,
    tenant_id: UUID,
    base: str,
    exclude_id: Optional[UUID] = None,
) -> str:
    """Retorna ``base`` ou ``base-2``, ``base-3``... livre dentro do tenant."""
    base = slugify(base)
    query = db.query(model.slug).filter(
        model.tenant_id == tenant_id,
        model.slug.like(f"{base}%"),
    )
    if exclude_id is not None:
        query = query.filter(model.id != exclude_id)
    taken = {row[0] for row in query.all()}

    if base not in taken:
        return base
    suffix = 2
    while f"{base}-{suffix}" in taken:
        suffix += 1
    return f"{base}-{suffix}"
