# models/client.py
import json
from enum import Enum


class ClientType(str, Enum):
    INDIVIDUAL = "individual"
    CORPORATE = "corporate"


def parse_tags(raw: str | None) -> list[str]:
    """
    Form input "web, e-commerce ,  " -> ["web", "e-commerce"].
    Empty pieces and duplicates are dropped, order is kept.
    """
    if not raw:
        return []
    tags = []
    for piece in raw.split(","):
        tag = piece.strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def dump_tags(tags: list[str]) -> str:
    return json.dumps(tags, ensure_ascii=False)


def load_tags(stored: str | None) -> list[str]:
    # rows written before the tags column existed hold NULL
    if not stored:
        return []
    try:
        value = json.loads(stored)
    except ValueError:
        return []
    return [str(t) for t in value] if isinstance(value, list) else []


def client_from_row(row: dict) -> dict:
    """Decode the JSON tags column so templates get a real list."""
    client = dict(row)
    client["tags"] = load_tags(row.get("tags"))
    return client
