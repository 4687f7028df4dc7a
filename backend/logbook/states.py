# backend/logbook/states.py
"""
Status dan aturan transisi logbook.

Semua aturan "boleh pindah dari status X ke Y" dikumpulkan di sini supaya
tidak ada perbandingan string status yang tersebar di view.
"""
from django.db import models

from .exceptions import InvalidTransition

MAX_WEEKS = 52


class Day(models.TextChoices):
    MONDAY = "Monday", "Senin"
    TUESDAY = "Tuesday", "Selasa"
    WEDNESDAY = "Wednesday", "Rabu"
    THURSDAY = "Thursday", "Kamis"
    FRIDAY = "Friday", "Jumat"

    @property
    def number(self) -> int:
        return DAYS.index(self) + 1

    @classmethod
    def from_number(cls, number):
        try:
            number = int(number)
        except (TypeError, ValueError):
            return None
        if 1 <= number <= len(DAYS):
            return DAYS[number - 1]
        return None

    @classmethod
    def parse(cls, value):
        """Terima nama hari (tanpa peduli huruf besar/kecil) atau angka 1..5."""
        if isinstance(value, cls):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            return cls.from_number(value)
        text = str(value or "").strip()
        if text.isdigit():
            return cls.from_number(text)
        for day in DAYS:
            if day.value.lower() == text.lower():
                return day
        return None


DAYS = [Day.MONDAY, Day.TUESDAY, Day.WEDNESDAY, Day.THURSDAY, Day.FRIDAY]


class EntryStatus(models.TextChoices):
    DRAFT = "draft", "Draft"
    SUBMITTED = "submitted", "Diajukan"
    APPROVED = "approved", "Disetujui"
    REJECTED = "rejected", "Ditolak"


class EntryEvent(models.TextChoices):
    SAVE = "save", "Simpan"
    APPROVE = "approve", "Setujui"
    REJECT = "reject", "Tolak"


class SupervisionStatus(models.TextChoices):
    NONE = "none", "Belum ada pembimbing"
    PENDING = "pending", "Menunggu persetujuan"
    REJECTED = "rejected", "Ditolak"
    APPROVED = "approved", "Disetujui"


class SupervisionEvent(models.TextChoices):
    REQUEST = "request", "Ajukan"
    APPROVE = "approve", "Terima"
    REJECT = "reject", "Tolak"


class AssessmentResult(models.TextChoices):
    PASS = "pass", "Lulus"
    FAIL = "fail", "Tidak lulus"


class LogbookStatus(models.TextChoices):
    IN_PROGRESS = "in_progress", "Sedang berjalan"
    ASSESSABLE = "assessable", "Siap dinilai"
    GRADED = "graded", "Sudah dinilai"
    PASSED = "passed", "Lulus"
    ASSESSED = "assessed", "Sudah diases"
    COMPLETED = "completed", "Selesai"


GRADED_STATUSES = frozenset(
    {
        LogbookStatus.GRADED.value,
        LogbookStatus.PASSED.value,
        LogbookStatus.ASSESSED.value,
        LogbookStatus.COMPLETED.value,
    }
)

# (status_sekarang, event) -> status_berikutnya. ``None`` = slot hari masih kosong.
ENTRY_TRANSITIONS = {
    (None, EntryEvent.SAVE): EntryStatus.SUBMITTED,
    (EntryStatus.DRAFT, EntryEvent.SAVE): EntryStatus.SUBMITTED,
    (EntryStatus.SUBMITTED, EntryEvent.SAVE): EntryStatus.SUBMITTED,
    (EntryStatus.REJECTED, EntryEvent.SAVE): EntryStatus.SUBMITTED,
    (EntryStatus.APPROVED, EntryEvent.SAVE): EntryStatus.SUBMITTED,
    (EntryStatus.SUBMITTED, EntryEvent.APPROVE): EntryStatus.APPROVED,
    (EntryStatus.SUBMITTED, EntryEvent.REJECT): EntryStatus.REJECTED,
}

SUPERVISION_TRANSITIONS = {
    (SupervisionStatus.NONE, SupervisionEvent.REQUEST): SupervisionStatus.PENDING,
    (SupervisionStatus.PENDING, SupervisionEvent.REQUEST): SupervisionStatus.PENDING,
    (SupervisionStatus.REJECTED, SupervisionEvent.REQUEST): SupervisionStatus.PENDING,
    (SupervisionStatus.PENDING, SupervisionEvent.APPROVE): SupervisionStatus.APPROVED,
    (SupervisionStatus.PENDING, SupervisionEvent.REJECT): SupervisionStatus.REJECTED,
}


def _coerce(enum_cls, value):
    if value is None or value == "":
        return None
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        return None


def next_entry_status(current, event) -> EntryStatus:
    state = _coerce(EntryStatus, current)
    key = (state, EntryEvent(event))
    if key not in ENTRY_TRANSITIONS:
        raise InvalidTransition(
            f"Entri berstatus '{current or 'kosong'}' tidak dapat di-{EntryEvent(event).label.lower()}.",
            current=current,
            event=event,
        )
    return ENTRY_TRANSITIONS[key]


def next_supervision_status(current, event) -> SupervisionStatus:
    state = _coerce(SupervisionStatus, current) or SupervisionStatus.NONE
    key = (state, SupervisionEvent(event))
    if key not in SUPERVISION_TRANSITIONS:
        raise InvalidTransition(
            f"Permintaan pembimbing berstatus '{state.value}' tidak dapat "
            f"di-{SupervisionEvent(event).label.lower()}.",
            current=state,
            event=event,
        )
    return SUPERVISION_TRANSITIONS[key]


def resolve_total_weeks(value, default=MAX_WEEKS) -> int:
    """Jumlah minggu dari konfigurasi, dipaksa ke rentang 1..52."""
    try:
        weeks = int(value)
    except (TypeError, ValueError):
        return default
    if 1 <= weeks <= MAX_WEEKS:
        return weeks
    return default


def is_graded(status) -> bool:
    return str(status or "").strip().lower() in GRADED_STATUSES


def parse_logbook_status(value):
    """Status logbook yang dikenal, atau ``None`` untuk nilai lain dari backend."""
    return _coerce(LogbookStatus, value)
