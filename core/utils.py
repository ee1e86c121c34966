# core/utils.py

from datetime import date, datetime, time
from enum import Enum


def sanitize(data: dict) -> dict:
    """
    Prepare a validated payload for PostgREST:
    - Empty strings → None
    - Strip string whitespace
    - Enums → their value
    - date / datetime / time → ISO strings
    - Preserve booleans, numbers, None and JSON containers
    """
    clean = {}

    for k, v in data.items():
        if isinstance(v, Enum):
            clean[k] = v.value
            continue

        if isinstance(v, str):
            stripped = v.strip()
            clean[k] = stripped or None
            continue

        if isinstance(v, (datetime, date, time)):
            clean[k] = v.isoformat()
            continue

        clean[k] = v

    return clean
