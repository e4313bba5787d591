"""ENS record -> IdentityProfile"""

from typing import Any, Dict, Optional

from onchain_budget.models import IdentityProfile
from onchain_budget.utils.errors import NormalizationError


def normalize_identity(record: Optional[Dict[str, Any]]) -> Optional[IdentityProfile]:
    """
    Map an ENS data record to an IdentityProfile.

    None in, None out: an address without a name is a valid state.

    Raises:
        NormalizationError: If a record is present but has no name or address
    """
    if record is None:
        return None

    name = record.get("ens_primary") or record.get("ens") or record.get("name")
    address = record.get("address")
    missing = [field for field, value in (("name", name), ("address", address)) if not value]
    if missing:
        raise NormalizationError("identity", missing)

    return IdentityProfile(
        name=name,
        address=address,
        avatar=record.get("avatar") or None,
        description=record.get("description") or None,
        twitter=record.get("twitter") or None,
        github=record.get("github") or None,
        website=record.get("url") or record.get("website") or None,
    )
