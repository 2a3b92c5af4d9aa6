from members_api.utils.hashing import chain_hash
from members_api.utils.phone import mask_phone, normalize_phone
from members_api.utils.dates import add_months

__all__ = ["chain_hash", "mask_phone", "normalize_phone", "add_months"]
