# backend/logbook/supervision.py
import logging
from dataclasses import dataclass

from django.core.exceptions import PermissionDenied, ValidationError

from .states import SupervisionEvent, SupervisionStatus, next_supervision_status
from .store import (
    supervision_request_id_key,
    supervision_status_key,
    supervisor_email_key,
    supervisor_name_key,
    supervisor_students_key,
)

logger = logging.getLogger(__name__)

OUTCOME_EVENTS = {
    SupervisionStatus.APPROVED: SupervisionEvent.APPROVE,
    SupervisionStatus.REJECTED: SupervisionEvent.REJECT,
}


@dataclass
class Supervision:
    student_email: str
    status: SupervisionStatus
    supervisor_email: str = ""
    supervisor_name: str = ""

    @property
    def is_approved(self) -> bool:
        return self.status == SupervisionStatus.APPROVED


def _norm(email) -> str:
    return str(email or "").strip().lower()


class SupervisionRegistry:
    """
    Hubungan mahasiswa - pembimbing.

    Mahasiswa mengajukan (``pending``), pembimbing memutuskan
    (``approved`` / ``rejected``). Entri logbook hanya bisa ditulis
    jika statusnya ``approved``.
    """

    def __init__(self, store):
        self.store = store

    def status(self, student_email) -> SupervisionStatus:
        raw = self.store.get(supervision_status_key(student_email), SupervisionStatus.NONE)
        try:
            return SupervisionStatus(str(raw).strip().lower())
        except ValueError:
            return SupervisionStatus.NONE

    def get(self, student_email) -> Supervision:
        return Supervision(
            student_email=_norm(student_email),
            status=self.status(student_email),
            supervisor_email=_norm(self.store.get(supervisor_email_key(student_email), "")),
            supervisor_name=str(self.store.get(supervisor_name_key(student_email), "") or ""),
        )

    def is_supervisor_of(self, student_email, supervisor_email) -> bool:
        current = self.get(student_email)
        return current.is_approved and bool(current.supervisor_email) and (
            current.supervisor_email == _norm(supervisor_email)
        )

    def request_id(self, student_email) -> str:
        """ID permintaan pembimbing di backend, jika pernah dikirim lewat portal."""
        return str(self.store.get(supervision_request_id_key(student_email), "") or "")

    def check_request(self, student_email, supervisor):
        """
        Validasi permintaan tanpa menyimpan apa pun. Mengembalikan
        ``(supervisor_email, supervisor_name, next_status)``.
        """
        student_email = _norm(student_email)
        supervisor_email = _norm(getattr(supervisor, "email", ""))
        supervisor_name = str(getattr(supervisor, "name", "") or supervisor_email)

        if not student_email:
            raise ValidationError({"student": "Identitas mahasiswa belum tersedia."})
        if not supervisor_email:
            raise ValidationError({"supervisor": "Pembimbing wajib dipilih."})
        if supervisor_email == student_email:
            raise ValidationError({"supervisor": "Tidak dapat memilih diri sendiri sebagai pembimbing."})

        next_status = next_supervision_status(self.status(student_email), SupervisionEvent.REQUEST)
        return supervisor_email, supervisor_name, next_status

    def request_supervision(self, student_email, supervisor, request_id="") -> Supervision:
        """``supervisor`` boleh objek ``Supervisor`` atau apa pun yang punya ``email`` & ``name``."""
        supervisor_email, supervisor_name, next_status = self.check_request(student_email, supervisor)
        student_email = _norm(student_email)

        current = self.get(student_email)
        if current.supervisor_email and current.supervisor_email != supervisor_email:
            self._unindex(current.supervisor_email, student_email)

        self.store.set(supervision_status_key(student_email), next_status.value)
        self.store.set(supervisor_email_key(student_email), supervisor_email)
        self.store.set(supervisor_name_key(student_email), supervisor_name)
        if request_id:
            self.store.set(supervision_request_id_key(student_email), str(request_id))
        else:
            self.store.remove(supervision_request_id_key(student_email))
        self._index(supervisor_email, student_email)

        logger.info(f"Permintaan pembimbing {student_email} -> {supervisor_email} ({next_status.value})")
        return self.get(student_email)

    def check_decision(self, student_email, outcome, supervisor_email):
        """Validasi keputusan pembimbing. Mengembalikan ``(outcome, next_status)``."""
        try:
            outcome = SupervisionStatus(str(outcome).strip().lower())
        except ValueError:
            outcome = SupervisionStatus.APPROVED if str(outcome).lower() == "accepted" else None
        if outcome not in OUTCOME_EVENTS:
            raise ValidationError({"outcome": "Keputusan harus 'approved' atau 'rejected'."})

        current = self.get(student_email)
        if not current.supervisor_email or current.supervisor_email != _norm(supervisor_email):
            raise PermissionDenied("Anda bukan pembimbing yang diajukan mahasiswa ini.")

        return outcome, next_supervision_status(current.status, OUTCOME_EVENTS[outcome])

    def decide(self, student_email, outcome, supervisor_email) -> Supervision:
        _, next_status = self.check_decision(student_email, outcome, supervisor_email)
        self.store.set(supervision_status_key(student_email), next_status.value)

        logger.info(f"Pembimbing {_norm(supervisor_email)} memutuskan {_norm(student_email)}: {next_status.value}")
        return self.get(student_email)

    def students_for(self, supervisor_email, status=None) -> list:
        result = []
        for student_email in self.store.get(supervisor_students_key(supervisor_email), []) or []:
            supervision = self.get(student_email)
            # indeks bisa tertinggal jika mahasiswa pindah pembimbing
            if supervision.supervisor_email != _norm(supervisor_email):
                continue
            if status is not None and supervision.status != status:
                continue
            result.append(supervision)
        return result

    def apply_remote(self, student_email, status, supervisor_email="", supervisor_name=""):
        """
        Sinkronkan dengan status dari backend.

        Backend menjadi acuan jika ia mengenal hubungan pembimbing. Status
        ``none`` dari backend tidak menghapus hubungan yang tercatat lokal.
        """
        student_email = _norm(student_email)
        status = SupervisionStatus(status)
        local = self.status(student_email)
        if status == SupervisionStatus.NONE and local != SupervisionStatus.NONE:
            logger.info(f"Backend belum mengenal pembimbing {student_email}; status lokal {local.value} dipertahankan")
            return self.get(student_email)

        self.store.set(supervision_status_key(student_email), status.value)
        if supervisor_email:
            previous = _norm(self.store.get(supervisor_email_key(student_email), ""))
            if previous and previous != _norm(supervisor_email):
                self._unindex(previous, student_email)
            self.store.set(supervisor_email_key(student_email), _norm(supervisor_email))
            self._index(supervisor_email, student_email)
        if supervisor_name:
            self.store.set(supervisor_name_key(student_email), supervisor_name)
        return self.get(student_email)

    def _index(self, supervisor_email, student_email):
        key = supervisor_students_key(supervisor_email)
        students = list(self.store.get(key, []) or [])
        if student_email not in students:
            students.append(student_email)
            self.store.set(key, students)

    def _unindex(self, supervisor_email, student_email):
        key = supervisor_students_key(supervisor_email)
        students = [s for s in (self.store.get(key, []) or []) if s != student_email]
        self.store.set(key, students)
