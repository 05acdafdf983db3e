"""
Identity Resolver

Turns whatever a desk scanner or a typed field produced into exactly one
Student or Item id. Read-only: never creates or re-links catalog records.

Resolution order (first match wins):
  1. internal 24-hex id
  2. structured QR payload, e.g. {"type": "student", "studentId": "..."}
  3. external scanner identifier (physical_id) exact match
  4. human-readable number (student number / accession number)
  5. fuzzy recovery: strip scanner noise from the ends, then split on noise runs
"""
from __future__ import annotations

import json
import re
import unicodedata
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from src.library.domain.entities.student import STUDENT_NUMBER_RE
from src.library.domain.exceptions import IdentityNotFoundError, InvalidIdentityTokenError
from src.library.domain.protocols.repositories import ItemRepository, StudentRepository
from src.library.domain.value_objects import EntityKind, ResolveStrategy
from src.shared.logging import get_logger
from src.shared.utils.ids import is_object_id

logger = get_logger(__name__)

# Characters some USB/Bluetooth scanners inject around or inside a read
NOISE_CHARS = "@*^?"
_NOISE_RUN = re.compile(r"[@*^?\s]+")
_ZERO_WIDTH = {"\u200b", "\u200c", "\u200d", "\u2060", "\ufeff"}
PHYSICAL_ID_RE = re.compile(r"^\d{15,}$")

_PAYLOAD_KINDS = {
    "student": EntityKind.STUDENT,
    "inventory": EntityKind.ITEM,
    "book": EntityKind.ITEM,
    "item": EntityKind.ITEM,
}
_STUDENT_ID_FIELDS = ("studentId", "id")
_ITEM_ID_FIELDS = ("inventoryItemId", "itemId", "id")


@dataclass(frozen=True)
class ResolvedIdentity:
    kind: EntityKind
    entity_id: str
    strategy: ResolveStrategy
    # Which direct strategy matched inside a fuzzy pass; equals `strategy` otherwise
    matched_by: ResolveStrategy
    token: str


def _is_invisible(ch: str) -> bool:
    if ch in _ZERO_WIDTH:
        return True
    return unicodedata.category(ch) in ("Cc", "Cf") and not ch.isspace()


def _is_noise(ch: str) -> bool:
    return ch in NOISE_CHARS or ch.isspace()


def remove_invisible(token: str) -> str:
    return "".join(ch for ch in token if not _is_invisible(ch))


def strip_noise(token: str) -> str:
    """Drop invisible characters anywhere and scanner noise from both ends."""
    cleaned = remove_invisible(token)
    start, end = 0, len(cleaned)
    while start < end and _is_noise(cleaned[start]):
        start += 1
    while end > start and _is_noise(cleaned[end - 1]):
        end -= 1
    return cleaned[start:end]


def split_on_noise(token: str) -> List[str]:
    """Non-empty segments between noise runs, first occurrence order, no repeats."""
    seen: List[str] = []
    for seg in _NOISE_RUN.split(remove_invisible(token)):
        if seg and seg not in seen:
            seen.append(seg)
    return seen


def is_physical_id_candidate(token: str) -> bool:
    return bool(PHYSICAL_ID_RE.match(token))


class IdentityResolver:
    """Resolves scanned or typed tokens against the student directory and item catalog."""

    def __init__(self, students: StudentRepository, items: ItemRepository):
        self.students = students
        self.items = items

    async def resolve(self, token: Optional[str], expected_kind: Optional[EntityKind] = None) -> ResolvedIdentity:
        if token is None or not strip_noise(token):
            raise InvalidIdentityTokenError(details={"expected_kind": expected_kind.value} if expected_kind else None)

        kinds = self._kinds(expected_kind)
        attempted: List[str] = []

        raw = token.strip()
        hit = await self._try_direct(raw, kinds, attempted)
        if hit:
            return self._resolved(hit, raw, None)

        trimmed = strip_noise(token)
        if trimmed != raw:
            self._note(attempted, ResolveStrategy.FUZZY_TRIM)
            hit = await self._try_direct(trimmed, kinds, attempted)
            if hit:
                return self._resolved(hit, trimmed, ResolveStrategy.FUZZY_TRIM)

        segments = [s for s in split_on_noise(token) if s not in (raw, trimmed)]
        if segments:
            self._note(attempted, ResolveStrategy.FUZZY_SEGMENT)
        for segment in segments:
            hit = await self._try_direct(segment, kinds, attempted)
            if hit:
                return self._resolved(hit, segment, ResolveStrategy.FUZZY_SEGMENT)

        logger.info(
            "Identity not resolved",
            expected_kind=expected_kind.value if expected_kind else None,
            attempted=attempted,
            token_length=len(token),
        )
        raise IdentityNotFoundError(attempted, expected_kind.value if expected_kind else None)

    async def resolve_student(self, token: Optional[str]) -> ResolvedIdentity:
        return await self.resolve(token, EntityKind.STUDENT)

    async def resolve_item(self, token: Optional[str]) -> ResolvedIdentity:
        return await self.resolve(token, EntityKind.ITEM)

    # ------------------------------------------------------------------ #
    # Direct strategies (steps 1-4)
    # ------------------------------------------------------------------ #

    async def _try_direct(
        self,
        candidate: str,
        kinds: Tuple[EntityKind, ...],
        attempted: List[str],
    ) -> Optional[Tuple[EntityKind, str, ResolveStrategy]]:
        if not candidate:
            return None

        if is_object_id(candidate):
            self._note(attempted, ResolveStrategy.INTERNAL_ID)
            for kind in kinds:
                entity_id = await self._by_internal_id(kind, candidate.lower())
                if entity_id:
                    return kind, entity_id, ResolveStrategy.INTERNAL_ID

        payload = self._parse_payload(candidate)
        if payload is not None:
            self._note(attempted, ResolveStrategy.STRUCTURED_PAYLOAD)
            hit = await self._by_payload(payload, kinds)
            if hit:
                return hit[0], hit[1], ResolveStrategy.STRUCTURED_PAYLOAD
            # A well-formed payload that names nothing is not retried as plain text
            return None

        self._note(attempted, ResolveStrategy.PHYSICAL_ID)
        for kind in kinds:
            entity_id = await self._by_physical_id(kind, candidate)
            if entity_id:
                return kind, entity_id, ResolveStrategy.PHYSICAL_ID
        if is_physical_id_candidate(candidate):
            return None

        self._note(attempted, ResolveStrategy.HUMAN_NUMBER)
        for kind in kinds:
            entity_id = await self._by_human_number(kind, candidate)
            if entity_id:
                return kind, entity_id, ResolveStrategy.HUMAN_NUMBER
        return None

    async def _by_internal_id(self, kind: EntityKind, entity_id: str) -> Optional[str]:
        repo = self.students if kind is EntityKind.STUDENT else self.items
        found = await repo.get_by_id(entity_id)
        return found.id if found else None

    async def _by_physical_id(self, kind: EntityKind, physical_id: str) -> Optional[str]:
        repo = self.students if kind is EntityKind.STUDENT else self.items
        found = await repo.get_by_physical_id(physical_id)
        return found.id if found else None

    async def _by_human_number(self, kind: EntityKind, value: str) -> Optional[str]:
        if kind is EntityKind.STUDENT:
            if not STUDENT_NUMBER_RE.match(value):
                return None
            student = await self.students.get_by_student_number(value)
            return student.id if student else None
        item = await self.items.get_by_accession_number(value)
        return item.id if item else None

    @staticmethod
    def _parse_payload(candidate: str) -> Optional[Dict[str, Any]]:
        if not candidate.startswith("{"):
            return None
        try:
            data = json.loads(candidate)
        except ValueError:
            return None
        if not isinstance(data, dict) or str(data.get("type", "")).lower() not in _PAYLOAD_KINDS:
            return None
        return data

    async def _by_payload(
        self, payload: Dict[str, Any], kinds: Tuple[EntityKind, ...]
    ) -> Optional[Tuple[EntityKind, str]]:
        kind = _PAYLOAD_KINDS[str(payload["type"]).lower()]
        if kind not in kinds:
            return None

        fields = _STUDENT_ID_FIELDS if kind is EntityKind.STUDENT else _ITEM_ID_FIELDS
        for field in fields:
            value = payload.get(field)
            if isinstance(value, str) and is_object_id(value.strip()):
                entity_id = await self._by_internal_id(kind, value.strip().lower())
                if entity_id:
                    return kind, entity_id

        if kind is EntityKind.STUDENT:
            number = payload.get("studentNumber")
            if isinstance(number, str) and number.strip():
                entity_id = await self._by_human_number(kind, number.strip())
                if entity_id:
                    return kind, entity_id
        else:
            accession = payload.get("accessionNumber")
            if isinstance(accession, str) and accession.strip():
                entity_id = await self._by_human_number(kind, accession.strip())
                if entity_id:
                    return kind, entity_id
        return None

    # ------------------------------------------------------------------ #

    @staticmethod
    def _kinds(expected_kind: Optional[EntityKind]) -> Tuple[EntityKind, ...]:
        if expected_kind is None:
            return (EntityKind.STUDENT, EntityKind.ITEM)
        return (expected_kind,)

    @staticmethod
    def _note(attempted: List[str], strategy: ResolveStrategy) -> None:
        if strategy.value not in attempted:
            attempted.append(strategy.value)

    @staticmethod
    def _resolved(
        hit: Tuple[EntityKind, str, ResolveStrategy],
        token: str,
        fuzzy: Optional[ResolveStrategy],
    ) -> ResolvedIdentity:
        kind, entity_id, matched_by = hit
        return ResolvedIdentity(
            kind=kind,
            entity_id=entity_id,
            strategy=fuzzy or matched_by,
            matched_by=matched_by,
            token=token,
        )
