# backend/logbook/workflow.py
"""
Mesin status logbook.

Keputusan pembimbing (setujui/tolak) selalu dicek ulang terhadap isi
store saat disimpan, bukan saat halaman review dibuka. Jika mahasiswa
sudah menyimpan ulang entri di antaranya, keputusan ditolak dengan
``StaleTransition``.
"""
import logging
from dataclasses import dataclass, replace
from typing import List, Optional

from django.core.exceptions import PermissionDenied

from .entries import Entry, EntryStore
from .envelopes import (
    decode_logbook,
    decode_supervisor_requests,
    decode_week_entries,
    unwrap_object,
)
from .exceptions import InvalidTransition, StaleTransition, TransportError
from .states import (
    DAYS,
    EntryEvent,
    EntryStatus,
    SupervisionStatus,
    is_graded,
    next_entry_status,
    parse_logbook_status,
)
from .supervision import SupervisionRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LogbookProgress:
    total_entries: int
    weeks_completed: int
    weeks_with_entries: tuple
    total_weeks: int

    @property
    def completion(self) -> float:
        """Persentase minggu yang sudah lengkap (0 - 100)."""
        if not self.total_weeks:
            return 0.0
        return round(self.weeks_completed * 100 / self.total_weeks, 1)


def is_week_complete(week_entries) -> bool:
    """Lengkap = lima hari kerja terisi dan semuanya disetujui."""
    entries = [week_entries.get(day) for day in DAYS]
    return all(e is not None and e.status == EntryStatus.APPROVED for e in entries)


class LogbookWorkflow:
    def __init__(self, store, total_weeks=None, client=None):
        self.store = store
        self.client = client
        self.registry = SupervisionRegistry(store)
        self.entries = EntryStore(store, self.registry, total_weeks=total_weeks)

    @property
    def total_weeks(self) -> int:
        return self.entries.total_weeks

    def save_day(self, student_email, week, day, text, entry_date=None, hours=None) -> Entry:
        previous = self.entries.entry(student_email, week, day) if self.client is not None else None
        entry = self.entries.save_day(student_email, week, day, text, entry_date=entry_date, hours=hours)
        if self.client is None:
            return entry

        try:
            response = self.client.save_entry(
                entry.week,
                entry.day.number,
                entry.text,
                entry_date=entry.entry_date,
                hours=entry.hours,
            )
        except TransportError:
            # gagal di backend -> kembalikan slot ke kondisi sebelum disimpan
            self.entries.restore(entry, previous)
            raise

        remote_id = str(unwrap_object(response).get("id") or "")
        if remote_id and remote_id != entry.remote_id:
            entry = replace(entry, remote_id=remote_id)
            self.entries.put(entry)
        return entry

    # =========================
    # Permintaan pembimbing
    # =========================

    def request_supervision(self, student_email, supervisor, message=""):
        """
        Ajukan pembimbing. Prasyarat dicek lebih dulu, lalu permintaan
        dikirim ke backend (jika ada), baru disimpan lokal.
        """
        self.registry.check_request(student_email, supervisor)

        request_id = ""
        if self.client is not None:
            response = self.client.send_supervisor_request(
                getattr(supervisor, "membership_no", "") or getattr(supervisor, "email", ""),
                message,
            )
            request_id = str(unwrap_object(response).get("id") or "")

        return self.registry.request_supervision(student_email, supervisor, request_id=request_id)

    def decide_supervision(self, student_email, outcome, supervisor_email):
        outcome, _ = self.registry.check_decision(student_email, outcome, supervisor_email)

        if self.client is not None:
            request_id = self._remote_request_id(student_email)
            if request_id:
                remote_status = "accepted" if outcome == SupervisionStatus.APPROVED else "rejected"
                self.client.update_supervisor_request(request_id, remote_status)
            else:
                logger.warning(f"Permintaan pembimbing {student_email} tidak ditemukan di backend")

        return self.registry.decide(student_email, outcome, supervisor_email)

    def _remote_request_id(self, student_email) -> str:
        request_id = self.registry.request_id(student_email)
        if request_id:
            return request_id
        email = str(student_email or "").strip().lower()
        pending = decode_supervisor_requests(self.client.fetch_supervisor_requests("pending"))
        for remote in pending:
            if remote.student_email == email:
                return remote.id
        return ""

    # =========================
    # Keputusan pembimbing
    # =========================

    def approve_entry(self, student_email, week, day, supervisor_email, expected_revision=None) -> Entry:
        return self._decide(student_email, week, day, supervisor_email, EntryEvent.APPROVE, expected_revision)

    def reject_entry(self, student_email, week, day, supervisor_email, expected_revision=None, comment="") -> Entry:
        return self._decide(
            student_email, week, day, supervisor_email, EntryEvent.REJECT, expected_revision, comment
        )

    def _snapshot(self, student_email, week, day, expected_revision) -> Entry:
        current = self.entries.entry(student_email, week, day)
        if current is None:
            raise InvalidTransition("Belum ada entri untuk hari tersebut.")
        if expected_revision is not None:
            try:
                expected_revision = int(expected_revision)
            except (TypeError, ValueError):
                expected_revision = None
            if (
                expected_revision is None
                or current.revision != expected_revision
                or current.status != EntryStatus.SUBMITTED
            ):
                logger.warning(
                    f"Keputusan basi untuk {current.student_email} minggu {current.week} "
                    f"{current.day.value}: rev {expected_revision} vs {current.revision} ({current.status.value})"
                )
                raise StaleTransition()
        return current

    def _decide(self, student_email, week, day, supervisor_email, event, expected_revision, comment=""):
        if not self.registry.is_supervisor_of(student_email, supervisor_email):
            raise PermissionDenied("Anda bukan pembimbing mahasiswa ini.")

        week = self.entries.clean_week(week)
        day = self.entries.clean_day(day)

        current = self._snapshot(student_email, week, day, expected_revision)
        new_status = next_entry_status(current.status, event)

        if self.client is not None and current.remote_id and event == EntryEvent.APPROVE:
            self.client.approve_entry(current.remote_id)
            # cek lagi setelah panggilan jaringan
            latest = self.entries.entry(student_email, week, day)
            if latest is None or latest.revision != current.revision:
                raise StaleTransition()

        updated = replace(current, status=new_status, comment=str(comment or "").strip())
        self.entries.put(updated)
        logger.info(
            f"{supervisor_email} {event.label.lower()} entri {updated.student_email} "
            f"minggu {week} {day.value} -> {new_status.value}"
        )
        return updated

    # =========================
    # Ringkasan & antrean review
    # =========================

    def progress(self, student_email) -> LogbookProgress:
        total_entries = 0
        weeks_completed = 0
        weeks_with_entries = []
        for week in range(1, self.total_weeks + 1):
            week_entries = self.entries.read_week(student_email, week)
            count = sum(1 for e in week_entries.values() if e is not None)
            total_entries += count
            if count:
                weeks_with_entries.append(week)
            if is_week_complete(week_entries):
                weeks_completed += 1
        return LogbookProgress(
            total_entries=total_entries,
            weeks_completed=weeks_completed,
            weeks_with_entries=tuple(weeks_with_entries),
            total_weeks=self.total_weeks,
        )

    def review_queue(self, student_email) -> List[Entry]:
        queue = []
        for week in range(1, self.total_weeks + 1):
            for entry in self.entries.read_week(student_email, week).values():
                if entry is not None and entry.status == EntryStatus.SUBMITTED:
                    queue.append(entry)
        return queue

    # =========================
    # Sinkronisasi backend
    # =========================

    def refresh_from_backend(self, student_email, logbook=None, week: Optional[int] = None):
        """
        Ambil metadata logbook (ukuran, status, pembimbing) dan, jika ``week``
        diberikan, entri minggu tersebut. Mengembalikan ``RemoteLogbook`` atau
        ``None`` jika backend tidak dikonfigurasi.
        """
        if self.client is None:
            return None

        if logbook is not None and logbook.remote_id:
            payload = self.client.fetch_logbook(logbook.remote_id)
        else:
            payload = self.client.fetch_my_logbook()
        remote = decode_logbook(payload)
        if remote is None:
            return None

        self.registry.apply_remote(
            student_email,
            remote.supervision_status,
            supervisor_email=remote.supervisor_email,
            supervisor_name=remote.supervisor_name,
        )

        if remote.size:
            self.entries.total_weeks = remote.size
        if logbook is not None:
            update_fields = []
            if remote.size and logbook.size != remote.size:
                logbook.size = remote.size
                update_fields.append("size")
            if remote.id and logbook.remote_id != remote.id:
                logbook.remote_id = remote.id
                update_fields.append("remote_id")
            status = parse_logbook_status(remote.status)
            # status "sudah dinilai" hanya datang dari penilaian lewat portal
            if status is not None and is_graded(status) and not hasattr(logbook, "assessment"):
                status = None
            if status is not None and not logbook.is_graded and status != logbook.status:
                logbook.status = status.value
                update_fields.append("status")
            if update_fields:
                logbook.save(update_fields=update_fields + ["updated_at"])

        if week is not None:
            week_payload = self.client.fetch_week_entries(week, logbook_id=remote.id or None)
            decoded = decode_week_entries(week_payload, week=week)
            self.entries.import_remote_week(student_email, week, decoded.entries)

        return remote
