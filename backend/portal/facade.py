# backend/portal/facade.py
"""
Titik masuk portal ke inti logbook: membangun workflow dengan store
database + klien backend dari settings, dan helper role untuk view.
"""
import logging
from contextlib import contextmanager

from django.conf import settings
from django.core.exceptions import ValidationError
from django.http import HttpResponseForbidden

from logbook.client import get_backend_client
from logbook.envelopes import unwrap_list
from logbook.exceptions import TransportError
from logbook.models import Logbook
from logbook.states import is_graded, parse_logbook_status, resolve_total_weeks
from logbook.store import DatabaseStore
from logbook.workflow import LogbookWorkflow
from masterdata.identity import actor_for_user

logger = logging.getLogger(__name__)


@contextmanager
def backend_session():
    """Klien backend untuk satu request, ditutup setelah selesai. ``None`` jika tidak dikonfigurasi."""
    client = get_backend_client()
    try:
        yield client
    finally:
        if client is not None:
            client.close()


def build_workflow(logbook=None, client=None) -> LogbookWorkflow:
    total_weeks = logbook.total_weeks if logbook is not None else None
    return LogbookWorkflow(DatabaseStore(), total_weeks=total_weeks, client=client)


def current_logbook(student) -> Logbook:
    logbook = student.logbooks.order_by("-stage").first()
    if logbook is None:
        logbook = Logbook.objects.create(
            student=student,
            size=resolve_total_weeks(getattr(settings, "LOGBOOK_TOTAL_WEEKS", None)),
        )
    return logbook


def error_text(exc: ValidationError) -> str:
    if hasattr(exc, "message_dict"):
        return " ".join(msg for msgs in exc.message_dict.values() for msg in msgs)
    return " ".join(exc.messages)


def sync_assessor_logbooks(client, assessor, logbooks):
    """Perbarui status logbook lokal dari daftar logbook asesor di backend."""
    if client is None:
        return
    try:
        remote = unwrap_list(client.fetch_assessor_logbooks(assessor.membership_no))
    except TransportError as e:
        logger.warning(f"Gagal memuat daftar logbook asesor {assessor.email}: {e.message}")
        return

    by_remote_id = {lb.remote_id: lb for lb in logbooks if lb.remote_id}
    for item in remote:
        if not isinstance(item, dict):
            continue
        local = by_remote_id.get(str(item.get("id") or ""))
        status = parse_logbook_status(item.get("status"))
        if local is None or status is None or local.is_graded or status == local.status:
            continue
        # status "sudah dinilai" hanya datang dari penilaian lewat portal
        if is_graded(status) and not hasattr(local, "assessment"):
            continue
        local.status = status.value
        local.save(update_fields=["status", "updated_at"])


# =========================
# Helper role
# =========================

def require_student(request):
    actor = actor_for_user(request.user)
    if actor is None or not actor.is_student:
        return None, HttpResponseForbidden(
            "Akun ini tidak terhubung dengan data Mahasiswa."
        )
    return request.user.student_profile, None


def require_supervisor(request):
    actor = actor_for_user(request.user)
    if actor is None or not actor.is_supervisor:
        return None, HttpResponseForbidden(
            "Akun ini tidak terhubung dengan data Pembimbing."
        )
    return request.user.supervisor_profile, None


def require_assessor(request):
    supervisor, error = require_supervisor(request)
    if error:
        return None, error
    if not supervisor.is_assessor:
        return None, HttpResponseForbidden("Anda bukan asesor logbook.")
    return supervisor, None
