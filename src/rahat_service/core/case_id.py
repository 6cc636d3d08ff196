"""Case identifier generation.

Identifiers look like ``RAHAT-2025-0503-0042``: year, then day and month
(DDMM, not MMDD), then a zero-padded random number. Uniqueness is not
guaranteed by construction, so allocation checks the store and retries.
"""

import logging
import random
import re
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from rahat_service.core.errors import CaseIdGenerationFailed

if TYPE_CHECKING:
    from rahat_service.infrastructure.persistence import CaseRepository

logger = logging.getLogger(__name__)

CASE_ID_PREFIX = "RAHAT"
CASE_ID_PATTERN = re.compile(r"^RAHAT-\d{4}-\d{4}-\d{4}$")
DEFAULT_MAX_ATTEMPTS = 10


def generate_case_id(
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> str:
    """Build a candidate case ID for the given moment."""
    now = now or datetime.now()
    rng = rng or random
    serial = rng.randint(0, 9999)
    return f"{CASE_ID_PREFIX}-{now.year:04d}-{now.day:02d}{now.month:02d}-{serial:04d}"


def is_valid_case_id(case_id: str) -> bool:
    return bool(CASE_ID_PATTERN.match(case_id))


async def allocate_case_id(
    repository: "CaseRepository",
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> str:
    """Generate a case ID not yet present in the repository.

    Args:
        repository: Case store used for the collision check
        max_attempts: Number of candidates tried before giving up

    Returns:
        An unused case ID

    Raises:
        CaseIdGenerationFailed: If every candidate collided
    """
    for attempt in range(1, max_attempts + 1):
        candidate = generate_case_id(now=now, rng=rng)
        if not await repository.exists(candidate):
            return candidate
        logger.warning(f"Case ID collision on {candidate} (attempt {attempt}/{max_attempts})")

    logger.error(f"Unable to allocate a case ID after {max_attempts} attempts")
    raise CaseIdGenerationFailed()
