import logging

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.core.exceptions import ValidationError
from django.http import HttpResponseForbidden
from django.shortcuts import get_object_or_404, redirect, render

from logbook.assessment import submit_assessment
from logbook.exceptions import InvalidTransition, TransportError
from logbook.models import Assessment, Logbook
from .facade import backend_session, build_workflow, require_assessor, sync_assessor_logbooks
from .forms import AssessmentForm
from .pdf_utils import render_to_pdf

logger = logging.getLogger(__name__)


def _assigned_logbook(assessor, pk):
    logbook = get_object_or_404(
        Logbook.objects.select_related("student", "assessor"),
        pk=pk,
    )
    if logbook.assessor_id != assessor.pk:
        logger.warning(f"{assessor.email} membuka logbook {logbook.pk} milik asesor lain")
        return None, HttpResponseForbidden("Logbook ini tidak ditugaskan kepada Anda.")
    return logbook, None


@login_required
def assessor_logbook_list(request):
    assessor, error = require_assessor(request)
    if error:
        return error

    logbooks = list(
        Logbook.objects.filter(assessor=assessor).select_related("student", "assessment")
    )
    with backend_session() as client:
        sync_assessor_logbooks(client, assessor, logbooks)

    context = {
        "assessor": assessor,
        "logbooks": logbooks,
        "graded_count": sum(1 for lb in logbooks if lb.is_graded),
    }
    return render(request, "portal/assessor_logbook_list.html", context)


@login_required
def assessor_logbook_detail(request, pk: int):
    assessor, error = require_assessor(request)
    if error:
        return error

    logbook, error = _assigned_logbook(assessor, pk)
    if error:
        return error

    assessment = Assessment.objects.filter(logbook=logbook).first()

    if request.method == "POST":
        form = AssessmentForm(request.POST)
        if form.is_valid():
            try:
                with backend_session() as client:
                    outcome = submit_assessment(
                        logbook,
                        form.scores(),
                        form.cleaned_data["result"],
                        comment=form.cleaned_data.get("comment"),
                        assessor=assessor,
                        client=client,
                    )
            except ValidationError as e:
                for field, errors in e.message_dict.items():
                    form.add_error(field if field in form.fields else None, errors)
                messages.error(request, "Silakan periksa kembali nilai yang diinput.")
            except InvalidTransition as e:
                messages.error(request, e.message)
                return redirect("portal:assessor_logbook_detail", pk=logbook.pk)
            except TransportError as e:
                messages.error(request, f"Gagal mengirim penilaian: {e.message}")
            else:
                messages.success(request, outcome.message)
                return redirect("portal:assessor_logbook_detail", pk=logbook.pk)
        else:
            messages.error(request, "Silakan periksa kembali nilai yang diinput.")
    else:
        form = AssessmentForm()

    workflow = build_workflow(logbook)
    student_email = logbook.student.email
    weeks = [
        {"number": week, "days": list(workflow.entries.read_week(student_email, week).items())}
        for week in sorted(workflow.entries.list_weeks_with_any_entry(student_email))
    ]
    context = {
        "assessor": assessor,
        "logbook": logbook,
        "assessment": assessment,
        "form": form if assessment is None and not logbook.is_graded else None,
        "weeks": weeks,
        "progress": workflow.progress(student_email),
    }
    return render(request, "portal/assessor_logbook_detail.html", context)


@login_required
def assessment_pdf(request, pk: int):
    assessor, error = require_assessor(request)
    if error:
        return error

    logbook, error = _assigned_logbook(assessor, pk)
    if error:
        return error

    assessment = get_object_or_404(Assessment.objects.select_related("assessor"), logbook=logbook)
    context = {"logbook": logbook, "assessment": assessment}
    return render_to_pdf(
        "portal/assessment_pdf.html",
        context,
        filename=f"penilaian_{logbook.student.membership_no}_level{logbook.stage}.pdf",
    )
