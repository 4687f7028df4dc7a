# backend/logbook/assessment.py
"""
Penilaian akhir logbook oleh asesor.

Berbeda dengan persetujuan per entri, penilaian berlaku untuk satu logbook
utuh dan hanya bisa dilakukan sekali: setelah status logbook masuk ke
kelompok "sudah dinilai" (graded/passed/assessed/completed), pengajuan
berikutnya selalu ditolak.
"""
import logging
import math
from dataclasses import dataclass

from django.core.exceptions import ValidationError
from django.db import transaction

from .envelopes import extract_message, extract_status
from .exceptions import InvalidTransition
from .models import Assessment, Logbook
from .signals import logbook_assessed
from .states import AssessmentResult, LogbookStatus, is_graded

logger = logging.getLogger(__name__)

SCORE_FIELDS = Assessment.SCORE_FIELDS
DEFAULT_MESSAGE = "Logbook berhasil dinilai."


@dataclass
class AssessmentOutcome:
    assessment: Assessment
    logbook: Logbook
    message: str


def _parse_score(value):
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def clean_assessment(scores, result) -> dict:
    """
    Validasi nilai penilaian. Mengembalikan dict siap simpan, atau
    ``ValidationError`` dengan nama field yang salah/kosong.
    """
    scores = scores or {}
    errors = {}
    cleaned = {}

    for name in SCORE_FIELDS:
        number = _parse_score(scores.get(name))
        if number is None:
            errors[name] = "Nilai wajib diisi dengan angka."
        elif number < 0:
            errors[name] = "Nilai tidak boleh negatif."
        elif not number.is_integer():
            errors[name] = "Nilai harus bilangan bulat."
        else:
            cleaned[name] = int(number)

    if result not in (AssessmentResult.PASS, AssessmentResult.FAIL):
        errors["result"] = "Pilih hasil 'pass' atau 'fail'."
    else:
        cleaned["result"] = AssessmentResult(result).value

    if errors:
        raise ValidationError(errors)
    return cleaned


def submit_assessment(logbook, scores, result, comment=None, assessor=None, client=None) -> AssessmentOutcome:
    """
    Simpan penilaian dan pindahkan logbook ke status "sudah dinilai".

    Jika ``client`` diberikan dan logbook punya ``remote_id``, penilaian
    dikirim ke backend lebih dulu; state lokal hanya diubah setelah
    backend menerima. ``TransportError`` dari backend diteruskan ke pemanggil.
    """
    logbook_id = logbook.pk if isinstance(logbook, Logbook) else logbook

    with transaction.atomic():
        locked = Logbook.objects.select_for_update().select_related("student").get(pk=logbook_id)

        if is_graded(locked.status) or Assessment.objects.filter(logbook=locked).exists():
            logger.warning(f"Penilaian ulang ditolak untuk logbook {locked.pk} (status {locked.status})")
            raise InvalidTransition(
                "Logbook ini sudah dinilai dan penilaiannya tidak dapat diubah.",
                current=locked.status,
            )

        cleaned = clean_assessment(scores, result)
        comment = str(comment or "").strip()

        message = DEFAULT_MESSAGE
        next_status = LogbookStatus.GRADED.value
        if client is not None and locked.remote_id:
            payload = dict(cleaned)
            if comment:
                payload["comment"] = comment
            response = client.submit_assessment(locked.remote_id, payload)
            message = extract_message(response, DEFAULT_MESSAGE)
            remote_status = extract_status(response)
            if is_graded(remote_status):
                next_status = remote_status.strip().lower()

        assessment = Assessment.objects.create(
            logbook=locked,
            assessor=assessor,
            comment=comment,
            **cleaned,
        )
        locked.status = next_status
        locked.save(update_fields=["status", "updated_at"])

    logger.info(f"Logbook {locked.pk} dinilai oleh {assessor or '-'}: {assessment.result}")
    logbook_assessed.send(sender=Logbook, logbook=locked, assessment=assessment, message=message)
    return AssessmentOutcome(assessment=assessment, logbook=locked, message=message)
