"""Load users and help requests from a YAML seed file.

Seed file format::

    users:
      - id: u1
        name: Ada
        tags: [coding, backend]
    requests:
      - id: r1
        requesterId: u1
        title: Need help with my API
        urgency: high
        format: call
        tags: [backend]

Keys may be camelCase or snake_case. Missing timestamps default to the load
time.
"""

from datetime import datetime
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from helpmatch.config.exceptions import format_validation_errors
from helpmatch.domain.models import HelpRequest, User
from helpmatch.logging import get_logger
from helpmatch.matching.store import MatchStore
from helpmatch.utils.timestamps import ensure_utc, utc_now

from .exceptions import SeedFileError

logger = get_logger(__name__, component="seed")


class SeedData(BaseModel):
    """Validated contents of a seed file."""

    users: List[User] = Field(default_factory=list)
    requests: List[HelpRequest] = Field(default_factory=list)


def load_seed_file(path: Path) -> SeedData:
    """Read and validate a seed file.

    Raises:
        SeedFileError: If the file is missing, is not valid YAML, or fails validation
    """
    path = Path(path)
    if not path.is_file():
        raise SeedFileError(f"Seed file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise SeedFileError(f"Invalid YAML in seed file {path}: {e}") from e

    if not isinstance(raw, dict):
        raise SeedFileError(f"Seed file {path} must contain a mapping with 'users' and 'requests'")

    try:
        seed = SeedData.model_validate(raw)
    except ValidationError as e:
        details = "; ".join(format_validation_errors(e))
        raise SeedFileError(f"Seed file {path} failed validation: {details}") from e

    requester_ids = {user.id for user in seed.users}
    missing = sorted({r.requester_id for r in seed.requests} - requester_ids)
    if missing:
        raise SeedFileError(f"Seed requests reference unknown users: {', '.join(missing)}")

    return seed


def apply_seed(store: MatchStore, seed: SeedData, now: Optional[datetime] = None) -> SeedData:
    """Write seed users, then requests, into ``store``.

    Returns:
        The records as stored, with timestamps filled in
    """
    timestamp = ensure_utc(now) if now is not None else utc_now()

    users = [
        store.add_user(
            user.model_copy(
                update={
                    "created_at": user.created_at or timestamp,
                    "updated_at": user.updated_at or timestamp,
                }
            )
        )
        for user in seed.users
    ]
    requests = [
        store.add_request(
            request.model_copy(
                update={
                    "created_at": request.created_at or timestamp,
                    "updated_at": request.updated_at or timestamp,
                }
            )
        )
        for request in seed.requests
    ]

    logger.info(
        f"Seeded {len(users)} users and {len(requests)} requests",
        extra={"event": "seed.applied", "users": len(users), "requests": len(requests)},
    )
    return SeedData(users=users, requests=requests)
