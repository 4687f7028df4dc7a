# backend/logbook/entries.py
import logging
from dataclasses import asdict, dataclass
from typing import Dict, Optional

from django.conf import settings
from django.core.exceptions import ValidationError

from .exceptions import InvalidTransition
from .states import (
    DAYS,
    Day,
    EntryEvent,
    EntryStatus,
    SupervisionStatus,
    next_entry_status,
    resolve_total_weeks,
)
from .store import active_tab_key, entries_key, selected_week_key

logger = logging.getLogger(__name__)

TABS = ("entries", "progress", "supervisor")


@dataclass
class Entry:
    student_email: str
    week: int
    day: Day
    text: str
    status: EntryStatus
    revision: int = 1
    entry_date: Optional[str] = None
    hours: Optional[float] = None
    remote_id: str = ""
    comment: str = ""

    @classmethod
    def from_record(cls, student_email, week, record) -> Optional["Entry"]:
        if not isinstance(record, dict):
            return None
        day = Day.parse(record.get("day"))
        if day is None:
            return None
        try:
            status = EntryStatus(str(record.get("status") or "").lower())
        except ValueError:
            status = EntryStatus.SUBMITTED
        try:
            revision = int(record.get("revision") or 1)
        except (TypeError, ValueError):
            revision = 1
        return cls(
            student_email=student_email,
            week=int(week),
            day=day,
            text=str(record.get("text") or ""),
            status=status,
            revision=revision,
            entry_date=record.get("entry_date") or None,
            hours=record.get("hours"),
            remote_id=str(record.get("remote_id") or ""),
            comment=str(record.get("comment") or ""),
        )

    def to_record(self) -> dict:
        record = asdict(self)
        record.pop("student_email")
        record.pop("week")
        record["day"] = self.day.value
        record["status"] = self.status.value
        return record


def _norm(email) -> str:
    return str(email or "").strip().lower()


class EntryStore:
    """
    Entri harian per (mahasiswa, minggu, hari).

    Satu key store menyimpan daftar entri satu minggu. Slot hari yang belum
    pernah disimpan tidak punya record sama sekali ("belum ada entri").
    """

    def __init__(self, store, registry, total_weeks=None):
        self.store = store
        self.registry = registry
        if total_weeks is None:
            total_weeks = getattr(settings, "LOGBOOK_TOTAL_WEEKS", None)
        self.total_weeks = resolve_total_weeks(total_weeks)

    # =========================
    # Validasi input
    # =========================

    def clean_week(self, week) -> int:
        try:
            week = int(week)
        except (TypeError, ValueError):
            raise ValidationError({"week": "Minggu harus berupa angka."})
        if not 1 <= week <= self.total_weeks:
            raise ValidationError({"week": f"Minggu harus di antara 1 dan {self.total_weeks}."})
        return week

    @staticmethod
    def clean_day(day) -> Day:
        parsed = Day.parse(day)
        if parsed is None:
            raise ValidationError({"day": "Hari harus Senin sampai Jumat."})
        return parsed

    # =========================
    # Baca
    # =========================

    def _records(self, student_email, week) -> list:
        raw = self.store.get(entries_key(student_email, week), [])
        return raw if isinstance(raw, list) else []

    def entry(self, student_email, week, day) -> Optional[Entry]:
        student_email = _norm(student_email)
        day = self.clean_day(day)
        for record in self._records(student_email, week):
            entry = Entry.from_record(student_email, week, record)
            if entry is not None and entry.day == day:
                return entry
        return None

    def read_week(self, student_email, week) -> Dict[Day, Optional[Entry]]:
        student_email = _norm(student_email)
        week = self.clean_week(week)
        result = {day: None for day in DAYS}
        for record in self._records(student_email, week):
            entry = Entry.from_record(student_email, week, record)
            if entry is not None:
                result[entry.day] = entry
        return result

    def list_weeks_with_any_entry(self, student_email) -> set:
        student_email = _norm(student_email)
        return {
            week
            for week in range(1, self.total_weeks + 1)
            if any(Entry.from_record(student_email, week, r) for r in self._records(student_email, week))
        }

    # =========================
    # Tulis
    # =========================

    def save_day(self, student_email, week, day, text, entry_date=None, hours=None) -> Entry:
        student_email = _norm(student_email)
        if not student_email:
            raise ValidationError({"student": "Identitas mahasiswa belum tersedia."})

        if self.registry.status(student_email) != SupervisionStatus.APPROVED:
            raise InvalidTransition(
                "Logbook belum bisa diisi sebelum permintaan pembimbing disetujui."
            )

        week = self.clean_week(week)
        day = self.clean_day(day)
        text = str(text or "").strip()
        if not text:
            raise ValidationError({"text": "Aktivitas wajib diisi."})
        if hours is not None and hours != "":
            try:
                hours = float(hours)
            except (TypeError, ValueError):
                raise ValidationError({"hours": "Jumlah jam harus berupa angka."})
            if hours <= 0:
                raise ValidationError({"hours": "Jumlah jam harus lebih dari 0."})
        else:
            hours = None

        current = self.entry(student_email, week, day)
        status = next_entry_status(current.status if current else None, EntryEvent.SAVE)

        entry = Entry(
            student_email=student_email,
            week=week,
            day=day,
            text=text,
            status=status,
            revision=(current.revision + 1) if current else 1,
            entry_date=str(entry_date) if entry_date else None,
            hours=hours,
            remote_id=current.remote_id if current else "",
        )
        self.put(entry)
        logger.info(f"Entri {student_email} minggu {week} {day.value} disimpan (rev {entry.revision})")
        return entry

    def put(self, entry: Entry):
        """Upsert satu entri ke daftar mingguannya, tanpa duplikasi hari."""
        records = [
            r for r in self._records(entry.student_email, entry.week)
            if Entry.from_record(entry.student_email, entry.week, r) is not None
        ]
        record = entry.to_record()
        for i, existing in enumerate(records):
            if Day.parse(existing.get("day")) == entry.day:
                records[i] = record
                break
        else:
            records.append(record)
        self.store.set(entries_key(entry.student_email, entry.week), records)

    def restore(self, entry: Entry, previous: Optional[Entry]):
        """Kembalikan slot hari ke isi sebelumnya (atau kosongkan)."""
        if previous is not None:
            self.put(previous)
            return
        records = [
            r for r in self._records(entry.student_email, entry.week)
            if isinstance(r, dict) and Day.parse(r.get("day")) != entry.day
        ]
        self.store.set(entries_key(entry.student_email, entry.week), records)

    def import_remote_week(self, student_email, week, remote_entries) -> Dict[Day, Optional[Entry]]:
        """Gabungkan entri dari backend ke store lokal."""
        student_email = _norm(student_email)
        week = self.clean_week(week)
        for remote in remote_entries:
            current = self.entry(student_email, week, remote.day)
            status = EntryStatus(remote.status)
            if (
                current is not None
                and current.text == remote.activity
                and current.status == status
                and current.remote_id == remote.id
            ):
                continue
            self.put(
                Entry(
                    student_email=student_email,
                    week=week,
                    day=remote.day,
                    text=remote.activity,
                    status=status,
                    revision=(current.revision + 1) if current else 1,
                    entry_date=remote.entry_date,
                    hours=remote.hours,
                    remote_id=remote.id,
                    comment=current.comment if current else "",
                )
            )
        return self.read_week(student_email, week)

    # =========================
    # State tampilan per mahasiswa
    # =========================

    def selected_week(self, student_email) -> int:
        raw = self.store.get(selected_week_key(student_email), 1)
        try:
            week = int(raw)
        except (TypeError, ValueError):
            return 1
        return week if 1 <= week <= self.total_weeks else 1

    def set_selected_week(self, student_email, week) -> int:
        week = self.clean_week(week)
        self.store.set(selected_week_key(student_email), week)
        return week

    def active_tab(self, student_email) -> str:
        tab = self.store.get(active_tab_key(student_email), TABS[0])
        return tab if tab in TABS else TABS[0]

    def set_active_tab(self, student_email, tab) -> str:
        if tab not in TABS:
            raise ValidationError({"tab": "Tab tidak dikenal."})
        self.store.set(active_tab_key(student_email), tab)
        return tab
