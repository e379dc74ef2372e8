"""Match a waste code plus identifier candidates against ledger sheet names."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from waste_ledger.identifiers import IdentifierCandidate

logger = logging.getLogger(__name__)

EXACT = "exact"
NORMALIZED = "normalized"
PREFIX = "prefix"


@dataclass(frozen=True)
class PartitionMatch:
    partition_name: str
    target_name: str
    candidate: IdentifierCandidate
    strategy: str


def normalize_partition_name(name: str) -> str:
    return " ".join(name.split())


def target_partition_name(waste_code: str, identifier: str) -> str:
    return f"{waste_code} {identifier}".strip()


def attempted_partition_names(waste_code: str, candidates: Iterable[IdentifierCandidate]) -> list[str]:
    if not waste_code:
        return []
    return [target_partition_name(waste_code, item.identifier) for item in candidates]


def match_partition_name(target: str, partition_names: Sequence[str]) -> tuple[str, str] | None:
    """Return (partition_name, strategy) for the best match of one target name."""
    if target in partition_names:
        return target, EXACT
    normalized_target = normalize_partition_name(target)
    normalized = [(name, normalize_partition_name(name)) for name in partition_names]
    for name, candidate in normalized:
        if candidate == normalized_target:
            return name, NORMALIZED
    for name, candidate in normalized:
        if candidate.startswith(normalized_target):
            return name, PREFIX
    return None


def find_partition(
    waste_code: str,
    candidates: Sequence[IdentifierCandidate],
    partition_names: Sequence[str],
) -> PartitionMatch | None:
    if not waste_code:
        logger.warning("Record has no waste code; partition lookup skipped")
        return None
    for candidate in candidates:
        target = target_partition_name(waste_code, candidate.identifier)
        logger.debug("Trying %s identifier %s -> '%s'", candidate.source, candidate.identifier, target)
        found = match_partition_name(target, partition_names)
        if found is None:
            continue
        name, strategy = found
        logger.info("Matched partition '%s' by %s match using %s identifier %s", name, strategy, candidate.source, candidate.identifier)
        return PartitionMatch(partition_name=name, target_name=target, candidate=candidate, strategy=strategy)
    return None
