"""Service catalog with display labels and per-service notes."""

import logging
from typing import Optional

logger = logging.getLogger(__name__)

SERVICE_CATALOG: dict[str, dict] = {
    "6_finger_creative": {
        "label": "6指自由創作",
        "note": "Freestyle art on six nails. Complex references may need extra time.",
        "creative": True,
    },
    "10_finger_creative": {
        "label": "10指自由創作",
        "note": "Freestyle art on all ten nails. Complex references may need extra time.",
        "creative": True,
    },
    "monthly_special": {
        "label": "本月精選",
        "note": "This month's featured designs, shown on the studio page.",
        "creative": False,
    },
    "classic_special": {
        "label": "典藏精選",
        "note": "Designs from the classic collection.",
        "creative": False,
    },
    "magnetic": {
        "label": "貓眼",
        "note": "Magnetic cat-eye gel.",
        "creative": False,
    },
}

SERVICE_ALIASES: dict[str, str] = {
    "6 finger": "6_finger_creative", "six finger": "6_finger_creative",
    "10 finger": "10_finger_creative", "ten finger": "10_finger_creative",
    "monthly": "monthly_special", "special of the month": "monthly_special",
    "classic": "classic_special",
    "cat eye": "magnetic", "cat-eye": "magnetic",
}


def get_all_services() -> list[dict]:
    """Return all services with id and label, in catalog order."""
    return [{"id": sid, "label": info["label"]} for sid, info in SERVICE_CATALOG.items()]


def get_service_label(service_id: str) -> str:
    """Human-readable label for a service id. Unknown ids are returned as-is."""
    info = SERVICE_CATALOG.get(service_id)
    return info["label"] if info else service_id


def get_service_details(service_id: str) -> Optional[dict]:
    """Get full details for a specific service."""
    info = SERVICE_CATALOG.get(service_id)
    if info is None:
        return None
    return {"id": service_id, **info}


def match_service(query: str) -> Optional[str]:
    """Match a user entry (id, label, alias, or list number) to a service id."""
    normalized = query.lower().strip()
    if not normalized:
        return None
    if normalized.isdigit():
        index = int(normalized) - 1
        ids = list(SERVICE_CATALOG)
        return ids[index] if 0 <= index < len(ids) else None
    for sid, info in SERVICE_CATALOG.items():
        if normalized == sid or normalized == info["label"].lower():
            return sid
    for alias, service_id in SERVICE_ALIASES.items():
        if alias in normalized:
            return service_id
    logger.debug("No service matched for '%s'", query)
    return None
