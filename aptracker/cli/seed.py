"""
Seed file loading
Reads listing payloads from YAML or JSON files
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Tuple

import yaml
from pydantic import ValidationError

from aptracker.core.db import Database
from aptracker.core.models import ListingCreate


class SeedError(Exception):
    """Seed file could not be loaded"""
    pass


def load_seed_file(file_path: Path) -> List[Dict[str, Any]]:
    """
    Load raw listing entries from a seed file

    The file holds either a list of listings or a mapping with a
    ``listings`` key.

    Raises:
        SeedError: If the file is missing, malformed or of unknown type
    """
    if not file_path.exists():
        raise SeedError(f"Seed file not found: {file_path}")

    suffix = file_path.suffix.lower()
    try:
        content = file_path.read_text(encoding="utf-8")
        if suffix in [".yaml", ".yml"]:
            data = yaml.safe_load(content)
        elif suffix == ".json":
            data = json.loads(content)
        else:
            raise SeedError(f"Unsupported file format: {suffix}")
    except yaml.YAMLError as e:
        raise SeedError(f"Invalid YAML syntax: {e}")
    except json.JSONDecodeError as e:
        raise SeedError(f"Invalid JSON syntax: {e}")

    if data is None:
        return []
    if isinstance(data, dict):
        data = data.get("listings", [])
    if not isinstance(data, list):
        raise SeedError("Seed file must contain a list of listings")
    return data


def parse_seed_entries(
    entries: List[Dict[str, Any]],
) -> Tuple[List[ListingCreate], List[Tuple[int, str]]]:
    """Validate raw entries, returning valid payloads and (index, error) pairs"""
    payloads = []
    errors = []
    for index, entry in enumerate(entries, 1):
        try:
            payloads.append(ListingCreate.model_validate(entry))
        except ValidationError as e:
            messages = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            errors.append((index, messages))
    return payloads, errors


async def seed_database(db: Database, payloads: List[ListingCreate]) -> int:
    """Insert validated payloads, returning how many were created"""
    created = 0
    for payload in payloads:
        await db.create_listing(payload)
        created += 1
    return created
