# backend/portal/forms.py
"""
Facade untuk form di aplikasi portal.

Form dikelompokkan per domain:
- forms_logbook: isi entri harian & keputusan pembimbing per entri
- forms_supervision: permintaan & keputusan pembimbing
- forms_assessment: penilaian akhir oleh asesor
"""

from .forms_assessment import AssessmentForm
from .forms_logbook import DateInput, EntryDecisionForm, SaveDayForm
from .forms_supervision import SupervisionDecisionForm, SupervisionRequestForm

__all__ = [
    # base widgets
    "DateInput",
    # logbook
    "SaveDayForm",
    "EntryDecisionForm",
    # pembimbing
    "SupervisionRequestForm",
    "SupervisionDecisionForm",
    # penilaian
    "AssessmentForm",
]
