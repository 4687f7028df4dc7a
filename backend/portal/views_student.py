import csv
import logging

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.core.exceptions import ValidationError
from django.http import HttpResponse
from django.shortcuts import redirect, render
from django.urls import reverse
from django.views.decorators.http import require_POST

from logbook.exceptions import InvalidTransition, TransportError
from logbook.states import DAYS, SupervisionStatus
from .facade import backend_session, build_workflow, current_logbook, error_text, require_student
from .forms import SaveDayForm, SupervisionRequestForm

logger = logging.getLogger(__name__)


def _logbook_url(week=None):
    url = reverse("portal:student_logbook")
    return f"{url}?week={week}" if week else url


# =========================
# Halaman logbook mahasiswa
# =========================

@login_required
def student_logbook(request):
    student, error = require_student(request)
    if error:
        return error

    logbook = current_logbook(student)
    workflow = build_workflow(logbook)
    entries = workflow.entries

    week = request.GET.get("week")
    if week:
        try:
            entries.set_selected_week(student.email, week)
        except ValidationError as e:
            messages.error(request, error_text(e))
    selected_week = entries.selected_week(student.email)

    tab = request.GET.get("tab")
    if tab:
        try:
            entries.set_active_tab(student.email, tab)
        except ValidationError as e:
            messages.error(request, error_text(e))

    with backend_session() as client:
        if client is not None:
            try:
                build_workflow(logbook, client=client).refresh_from_backend(
                    student.email, logbook=logbook, week=selected_week
                )
            except TransportError as e:
                messages.warning(request, f"Data dari server belum dapat dimuat: {e.message}")
            # ukuran logbook bisa berubah setelah sinkronisasi
            workflow = build_workflow(logbook)
            entries = workflow.entries
            selected_week = entries.selected_week(student.email)

    supervision = workflow.registry.get(student.email)
    week_entries = entries.read_week(student.email, selected_week)
    weeks_with_entries = entries.list_weeks_with_any_entry(student.email)

    context = {
        "student": student,
        "logbook": logbook,
        "supervision": supervision,
        "can_write": supervision.status == SupervisionStatus.APPROVED,
        "can_request": supervision.status in (SupervisionStatus.NONE, SupervisionStatus.REJECTED),
        "selected_week": selected_week,
        "active_tab": entries.active_tab(student.email),
        "weeks": [
            {"number": w, "has_entries": w in weeks_with_entries}
            for w in range(1, workflow.total_weeks + 1)
        ],
        "days": [
            {"day": day, "entry": week_entries[day], "form": SaveDayForm(
                initial={
                    "text": week_entries[day].text if week_entries[day] else "",
                    "entry_date": week_entries[day].entry_date if week_entries[day] else None,
                    "hours": week_entries[day].hours if week_entries[day] else None,
                },
                prefix=day.value.lower(),
            )}
            for day in DAYS
        ],
        "progress": workflow.progress(student.email),
        "request_form": SupervisionRequestForm(student=student),
    }
    return render(request, "portal/student_logbook.html", context)


@login_required
@require_POST
def student_save_day(request, week: int, day: str):
    student, error = require_student(request)
    if error:
        return error

    form = SaveDayForm(request.POST, prefix=day.lower())
    if not form.is_valid():
        messages.error(request, "Silakan isi aktivitas untuk hari tersebut.")
        return redirect(_logbook_url(week))

    try:
        with backend_session() as client:
            workflow = build_workflow(current_logbook(student), client=client)
            entry = workflow.save_day(
                student.email,
                week,
                day,
                form.cleaned_data["text"],
                entry_date=form.cleaned_data.get("entry_date"),
                hours=form.cleaned_data.get("hours"),
            )
    except ValidationError as e:
        messages.error(request, error_text(e))
    except InvalidTransition as e:
        logger.warning(f"Simpan entri ditolak untuk {student.email}: {e.message}")
        messages.error(request, e.message)
    except TransportError as e:
        messages.error(request, f"Gagal menyimpan entri: {e.message}")
    else:
        messages.success(
            request,
            f"{entry.day.label} minggu {entry.week} tersimpan dan diajukan ke pembimbing.",
        )
    return redirect(_logbook_url(week))


@login_required
@require_POST
def student_request_supervision(request):
    student, error = require_student(request)
    if error:
        return error

    form = SupervisionRequestForm(request.POST, student=student)
    if not form.is_valid():
        messages.error(request, "Silakan pilih pembimbing dan tulis pesan.")
        return redirect("portal:student_logbook")

    supervisor = form.cleaned_data["supervisor"]
    try:
        with backend_session() as client:
            workflow = build_workflow(current_logbook(student), client=client)
            workflow.request_supervision(student.email, supervisor, form.cleaned_data["message"])
    except ValidationError as e:
        messages.error(request, error_text(e))
    except InvalidTransition as e:
        messages.error(request, e.message)
    except TransportError as e:
        messages.error(request, f"Gagal mengirim permintaan: {e.message}")
    else:
        messages.success(request, f"Permintaan pembimbing dikirim ke {supervisor.name}.")
    return redirect("portal:student_logbook")


@login_required
def student_logbook_export(request):
    student, error = require_student(request)
    if error:
        return error

    workflow = build_workflow(current_logbook(student))

    response = HttpResponse(content_type="text/csv")
    filename = f"logbook_{student.membership_no}.csv"
    response["Content-Disposition"] = f'attachment; filename="{filename}"'

    writer = csv.writer(response)
    writer.writerow(["Minggu", "Hari", "Tanggal", "Jam", "Aktivitas", "Status", "Catatan Pembimbing"])

    for week in range(1, workflow.total_weeks + 1):
        for day, e in workflow.entries.read_week(student.email, week).items():
            if e is None:
                continue
            writer.writerow(
                [
                    week,
                    day.label,
                    e.entry_date or "",
                    e.hours if e.hours is not None else "",
                    e.text.replace("\n", " "),
                    e.status.label,
                    e.comment.replace("\n", " "),
                ]
            )

    return response
