"""Sequential case-number allocation.

Case numbers look like ``{firmCode}-{departmentCode}-{year}-{sequence:04d}``;
cases escalated from credit collection use ``{firmCode}-ESC-{year}-{sequence:04d}``.
Each (year, prefix, firm, department, escalated) partition draws from its own
counter. The counter is seeded lazily from the highest number already stored
for the partition, incremented with a single atomic fetch-and-add, and every
candidate is checked against all stored case numbers before it is handed out.

When the firm or department cannot be resolved, or when every retry collides
with an existing number, the allocator returns a timestamp-based number
(``CC-{epochMillis}-{random5}``) instead of failing the case creation.
"""

import logging
import re
from dataclasses import dataclass

from django.utils import timezone
from django.utils.crypto import get_random_string

logger = logging.getLogger(__name__)

MAX_ALLOCATION_RETRIES = 5
FALLBACK_PREFIX = "CC"
FALLBACK_SUFFIX_LENGTH = 5
FALLBACK_SUFFIX_CHARS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
ESCALATED_SUFFIX = "ESC"
SEQUENCE_WIDTH = 4


@dataclass(frozen=True)
class PartitionKey:
    year: int
    prefix: str
    law_firm_id: int
    department_id: int | None
    escalated: bool

    def as_key(self) -> str:
        department = self.department_id if self.department_id is not None else "-"
        return f"{self.year}:{self.prefix}:{self.law_firm_id}:{department}:{int(self.escalated)}"


def build_prefix(*, firm_code: str, department_code: str | None, escalated: bool) -> str:
    # Escalations share one firm-wide sequence whatever department handles them.
    if escalated:
        return f"{firm_code}-{ESCALATED_SUFFIX}"
    if department_code:
        return f"{firm_code}-{department_code}"
    return firm_code


def format_case_number(*, prefix: str, year: int, sequence: int) -> str:
    # Sequences past 9999 widen the string.
    return f"{prefix}-{year}-{sequence:0{SEQUENCE_WIDTH}d}"


def parse_sequence(case_number: str, *, prefix: str, year: int) -> int | None:
    match = re.fullmatch(rf"{re.escape(prefix)}-{year}-(\d+)", case_number)
    if not match:
        return None
    return int(match.group(1))


def fallback_case_number() -> str:
    millis = int(timezone.now().timestamp() * 1000)
    suffix = get_random_string(FALLBACK_SUFFIX_LENGTH, FALLBACK_SUFFIX_CHARS)
    return f"{FALLBACK_PREFIX}-{millis}-{suffix}"


class CaseNumberAllocator:
    """Hands out unique case numbers for one partition at a time.

    Collaborators:

    * ``counters`` -- ``exists(key)``, ``insert_if_absent(key, initial)`` and
      ``increment_and_get(key)``; the increment must be atomic in the store.
    * ``cases`` -- ``highest_sequence(prefix, year)`` and
      ``number_exists(case_number, exclude=None)`` over every case table.
    * ``directory`` -- ``resolve(law_firm_id, department_id, escalated)``
      returning ``(firm_code, department_code)`` or ``None``.
    * ``today`` -- callable returning the current ``date``; the partition
      year comes from it.
    """

    def __init__(
        self,
        *,
        counters,
        cases,
        directory,
        today=timezone.localdate,
        max_attempts: int = MAX_ALLOCATION_RETRIES,
    ):
        self.counters = counters
        self.cases = cases
        self.directory = directory
        self.today = today
        self.max_attempts = max_attempts

    def partition_key(self, *, law_firm_id, department_id=None, escalated: bool = False) -> PartitionKey | None:
        resolved = self.directory.resolve(
            law_firm_id=law_firm_id,
            department_id=department_id,
            escalated=escalated,
        )
        if resolved is None:
            return None
        firm_code, department_code = resolved
        return PartitionKey(
            year=self.today().year,
            prefix=build_prefix(firm_code=firm_code, department_code=department_code, escalated=escalated),
            law_firm_id=law_firm_id,
            department_id=department_id if department_code and not escalated else None,
            escalated=escalated,
        )

    def allocate(self, *, law_firm_id, department_id=None, escalated: bool = False, exclude=None) -> str:
        key = self.partition_key(
            law_firm_id=law_firm_id,
            department_id=department_id,
            escalated=escalated,
        )
        if key is None:
            logger.info(
                "No firm/department metadata for firm=%s department=%s, using fallback case number",
                law_firm_id,
                department_id,
            )
            return fallback_case_number()

        self._ensure_counter(key)
        for attempt in range(1, self.max_attempts + 1):
            sequence = self.counters.increment_and_get(key)
            candidate = format_case_number(prefix=key.prefix, year=key.year, sequence=sequence)
            if not self.cases.number_exists(candidate, exclude=exclude):
                return candidate
            logger.warning(
                "Case number %s is already taken (attempt %d of %d)",
                candidate,
                attempt,
                self.max_attempts,
            )

        logger.warning(
            "Counter %s collided %d times with stored case numbers; "
            "falling back to a timestamp number, counter needs reconciliation",
            key.as_key(),
            self.max_attempts,
        )
        return fallback_case_number()

    def _ensure_counter(self, key: PartitionKey) -> None:
        if self.counters.exists(key):
            return
        highest = self.cases.highest_sequence(key.prefix, key.year)
        self.counters.insert_if_absent(key, highest)
        logger.info("Seeded case number counter %s at %d", key.as_key(), highest)
