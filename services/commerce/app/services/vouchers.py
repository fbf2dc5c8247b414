"""Geração de códigos de voucher."""

import secrets
import string
from typing import Iterable, List, Optional, Set

CODE_LENGTH = 8
_ALPHABET = string.digits + string.ascii_uppercase
_MAX_ATTEMPTS_PER_CODE = 100


def generate_code(prefix: Optional[str] = None, length: int = CODE_LENGTH) -> str:
    body = "".join(secrets.choice(_ALPHABET) for _ in range(length))
    if prefix:
        return f"{prefix.strip().upper()}-{body}"
    return body


def generate_unique_codes(
    quantity: int,
    prefix: Optional[str] = None,
    existing: Iterable[str] = (),
) -> List[str]:
    """Gera ``quantity`` códigos distintos entre si e dos já existentes no tenant."""
    taken: Set[str] = {code.upper() for code in existing}
    codes: List[str] = []
    attempts = 0
    while len(codes) < quantity:
        attempts += 1
        if attempts > quantity * _MAX_ATTEMPTS_PER_CODE:
            raise RuntimeError("Could not generate enough unique voucher codes")
        code = generate_code(prefix)
        if code in taken:
            continue
        taken.add(code)
        codes.append(code)
    return codes


def effective_code_status(status: str, used_count: int, usage_limit: Optional[int]) -> str:
    if status != "active":
        return status
    if usage_limit is not None and used_count >= usage_limit:
        return "used"
    return "active"
