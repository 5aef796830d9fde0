# vendors.py
# Vendor rows from the sheet: name extraction, tier buckets, product lookup.

from typing import Any, Dict, Iterable, List, Optional

from .models import Vendor

TIERS = ("GOLD", "SILVER", "BRONZE")
OTHER_TIER = "OTHER"

NAME_KEYS = ("vendor_name", "vendorName", "name", "Vendor Name", "vendor name")
TIER_KEYS = ("tier", "Tier", "TIER")
ITEM_KEYS = ("itemName", "item_name", "Item Name", "itemname")


def _first(row: Dict[str, Any], keys: Iterable[str]) -> str:
    for key in keys:
        value = row.get(key)
        if value is not None and str(value).strip():
            return str(value).strip()
    return ""


def normalize_vendor(raw: Any) -> Optional[Vendor]:
    """Vendor from a bare name or a row dict; None when no name is present."""
    if isinstance(raw, str):
        name = raw.strip()
        return Vendor(name=name) if name else None
    if not isinstance(raw, dict):
        return None
    name = _first(raw, NAME_KEYS)
    if not name:
        return None
    tier = _first(raw, TIER_KEYS).upper()
    return Vendor(name=name, itemName=_first(raw, ITEM_KEYS), tier=tier or None)


def normalize_vendors(rows: Optional[List[Any]]) -> List[Vendor]:
    vendors = []
    for row in rows or []:
        vendor = normalize_vendor(row)
        if vendor is not None:
            vendors.append(vendor)
    return vendors


def unique_vendors(vendors: Iterable[Vendor]) -> List[Vendor]:
    """First entry per vendor name, in input order."""
    seen: Dict[str, Vendor] = {}
    for vendor in vendors:
        seen.setdefault(vendor.name, vendor)
    return list(seen.values())


def unique_vendor_names(rows: Optional[List[Any]]) -> List[str]:
    return [v.name for v in unique_vendors(normalize_vendors(rows))]


def tier_of(vendor: Vendor) -> str:
    tier = (vendor.tier or "").upper()
    return tier if tier in TIERS else OTHER_TIER


def group_by_tier(vendors: Iterable[Vendor]) -> Dict[str, List[Vendor]]:
    """GOLD, SILVER, BRONZE, OTHER buckets, in that order, each keeping input order."""
    groups: Dict[str, List[Vendor]] = {tier: [] for tier in TIERS + (OTHER_TIER,)}
    for vendor in vendors:
        groups[tier_of(vendor)].append(vendor)
    return groups


def filter_products(products: Iterable[str], text: str) -> List[str]:
    """Products starting with ``text`` (case-insensitive); all of them for empty text."""
    needle = (text or "").strip().lower()
    items = [p for p in products if p]
    if not needle:
        return items
    return [p for p in items if p.lower().startswith(needle)]
