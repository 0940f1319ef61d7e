"""Ledger validation utilities."""
import re
from typing import Iterable, List

from khata.core.config import settings
from khata.core.errors import ValidationError

_STORAGE_KEY = re.compile(r"^[a-zA-Z0-9_\-/.]+$")


def validate_amount(amount: int, label: str = "Amount") -> None:
    """
    Validate a money amount in paise.

    Rules:
    - must be an integer (bool is rejected)
    - must be positive
    - must not exceed settings.MAX_AMOUNT
    """
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValidationError(f"{label} must be a whole number of paise: {amount!r}")
    if amount <= 0:
        raise ValidationError(f"{label} must be positive: {amount}")
    if amount > settings.MAX_AMOUNT:
        raise ValidationError(f"{label} exceeds the maximum of {settings.MAX_AMOUNT}: {amount}")


def validate_fits_remaining(amount: int, remaining: int) -> None:
    """Payment must satisfy 0 < amount <= remaining."""
    validate_amount(amount, "Payment amount")
    if amount > remaining:
        raise ValidationError(
            f"Payment amount {amount} exceeds remaining balance {remaining}"
        )


def validate_total_covers_paid(total: int, paid: int) -> None:
    if total < paid:
        raise ValidationError(
            f"Cannot reduce total below amount already paid ({total} < {paid})"
        )


def validate_attachment_refs(refs: Iterable[str]) -> List[str]:
    """
    Validate opaque attachment references.

    Accepted: storage keys, http(s) URLs and data URLs. Contents are never
    inspected.
    """
    refs = list(refs or [])
    if len(refs) > settings.MAX_ATTACHMENTS:
        raise ValidationError(f"Too many attachments: {len(refs)} > {settings.MAX_ATTACHMENTS}")

    for ref in refs:
        if not isinstance(ref, str) or not ref:
            raise ValidationError(f"Invalid attachment reference: {ref!r}")
        if len(ref) > settings.MAX_ATTACHMENT_REF_LENGTH:
            raise ValidationError("Attachment reference too long")

        is_url = ref.startswith("http://") or ref.startswith("https://")
        is_data_url = ref.startswith("data:")
        is_storage_key = bool(_STORAGE_KEY.match(ref)) and not ref.startswith("http")
        if not (is_url or is_data_url or is_storage_key):
            raise ValidationError(f"Invalid attachment reference: {ref!r}")
    return refs
