import logging

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.core.exceptions import PermissionDenied, ValidationError
from django.http import HttpResponseForbidden
from django.shortcuts import get_object_or_404, redirect, render
from django.urls import reverse
from django.views.decorators.http import require_POST

from logbook.exceptions import InvalidTransition, StaleTransition, TransportError
from logbook.states import DAYS, EntryEvent, SupervisionStatus
from masterdata.models import Student
from .facade import (
    backend_session,
    build_workflow,
    current_logbook,
    error_text,
    require_supervisor,
)
from .forms import EntryDecisionForm, SupervisionDecisionForm

logger = logging.getLogger(__name__)


# =========================
# Permintaan pembimbing
# =========================

@login_required
def supervisor_requests(request):
    supervisor, error = require_supervisor(request)
    if error:
        return error

    registry = build_workflow().registry

    status_filter = request.GET.get("status") or ""
    if status_filter not in SupervisionStatus.values:
        status_filter = ""

    supervisions = registry.students_for(supervisor.email, status=status_filter or None)
    students = {
        s.email.lower(): s
        for s in Student.objects.filter(email__in=[sv.student_email for sv in supervisions])
    }

    rows = [
        {"supervision": sv, "student": students.get(sv.student_email)}
        for sv in supervisions
    ]
    context = {
        "supervisor": supervisor,
        "pending": [r for r in rows if r["supervision"].status == SupervisionStatus.PENDING],
        "approved": [r for r in rows if r["supervision"].status == SupervisionStatus.APPROVED],
        "rejected": [r for r in rows if r["supervision"].status == SupervisionStatus.REJECTED],
        "status_filter": status_filter,
        "status_choices": [
            (SupervisionStatus.PENDING.value, SupervisionStatus.PENDING.label),
            (SupervisionStatus.APPROVED.value, SupervisionStatus.APPROVED.label),
            (SupervisionStatus.REJECTED.value, SupervisionStatus.REJECTED.label),
        ],
    }
    return render(request, "portal/supervisor_requests.html", context)


@login_required
@require_POST
def supervisor_decide_request(request, student_id: int):
    supervisor, error = require_supervisor(request)
    if error:
        return error

    student = get_object_or_404(Student, pk=student_id)
    form = SupervisionDecisionForm(request.POST)
    if not form.is_valid():
        messages.error(request, "Keputusan tidak dikenali.")
        return redirect("portal:supervisor_requests")

    try:
        with backend_session() as client:
            supervision = build_workflow(client=client).decide_supervision(
                student.email, form.cleaned_data["outcome"], supervisor.email
            )
    except PermissionDenied:
        logger.warning(f"{supervisor.email} mencoba memutuskan permintaan {student.email}")
        return HttpResponseForbidden("Anda bukan pembimbing yang diajukan mahasiswa ini.")
    except ValidationError as e:
        messages.error(request, error_text(e))
    except InvalidTransition as e:
        messages.error(request, e.message)
    except TransportError as e:
        messages.error(request, f"Gagal mengirim keputusan: {e.message}")
    else:
        if supervision.is_approved:
            messages.success(request, f"Permintaan {student.name} diterima.")
        else:
            messages.info(request, f"Permintaan {student.name} ditolak.")
    return redirect("portal:supervisor_requests")


# =========================
# Review logbook mahasiswa
# =========================

def _student_url(student, week):
    url = reverse("portal:supervisor_student_logbook", kwargs={"student_id": student.pk})
    return f"{url}?week={week}"


@login_required
def supervisor_student_logbook(request, student_id: int):
    supervisor, error = require_supervisor(request)
    if error:
        return error

    student = get_object_or_404(Student, pk=student_id)
    logbook = current_logbook(student)
    workflow = build_workflow(logbook)

    if not workflow.registry.is_supervisor_of(student.email, supervisor.email):
        return HttpResponseForbidden("Anda bukan pembimbing mahasiswa ini.")

    try:
        week = workflow.entries.clean_week(request.GET.get("week") or 1)
    except ValidationError as e:
        messages.error(request, error_text(e))
        week = 1

    with backend_session() as client:
        if client is not None:
            try:
                build_workflow(logbook, client=client).refresh_from_backend(
                    student.email, logbook=logbook, week=week
                )
            except TransportError as e:
                messages.warning(request, f"Data dari server belum dapat dimuat: {e.message}")
            workflow = build_workflow(logbook)
            if week > workflow.total_weeks:
                week = 1

    week_entries = workflow.entries.read_week(student.email, week)
    context = {
        "supervisor": supervisor,
        "student": student,
        "logbook": logbook,
        "week": week,
        "weeks": range(1, workflow.total_weeks + 1),
        "days": [
            {
                "day": day,
                "entry": week_entries[day],
                "form": EntryDecisionForm(
                    initial={"revision": week_entries[day].revision}
                ) if week_entries[day] else None,
            }
            for day in DAYS
        ],
        "review_queue": workflow.review_queue(student.email),
        "progress": workflow.progress(student.email),
    }
    return render(request, "portal/supervisor_student_logbook.html", context)


@login_required
@require_POST
def supervisor_decide_entry(request, student_id: int, week: int, day: str):
    supervisor, error = require_supervisor(request)
    if error:
        return error

    student = get_object_or_404(Student, pk=student_id)
    form = EntryDecisionForm(request.POST)
    if not form.is_valid():
        messages.error(request, "Keputusan tidak lengkap. Silakan muat ulang halaman.")
        return redirect(_student_url(student, week))

    action = form.cleaned_data["action"]
    revision = form.cleaned_data["revision"]
    try:
        with backend_session() as client:
            workflow = build_workflow(current_logbook(student), client=client)
            if action == EntryEvent.APPROVE:
                entry = workflow.approve_entry(
                    student.email, week, day, supervisor.email, expected_revision=revision
                )
            else:
                entry = workflow.reject_entry(
                    student.email,
                    week,
                    day,
                    supervisor.email,
                    expected_revision=revision,
                    comment=form.cleaned_data.get("comment"),
                )
    except PermissionDenied:
        logger.warning(f"{supervisor.email} mencoba memutuskan entri {student.email}")
        return HttpResponseForbidden("Anda bukan pembimbing mahasiswa ini.")
    except ValidationError as e:
        messages.error(request, error_text(e))
    except (InvalidTransition, StaleTransition) as e:
        messages.error(request, e.message)
    except TransportError as e:
        messages.error(request, f"Gagal menyimpan keputusan: {e.message}")
    else:
        messages.success(
            request,
            f"Entri {entry.day.label} minggu {entry.week} {entry.status.label.lower()}.",
        )
    return redirect(_student_url(student, week))
