from .views_auth import portal_logout, after_login
from .views_student import (
    student_logbook,
    student_save_day,
    student_request_supervision,
    student_logbook_export,
)
from .views_supervisor import (
    supervisor_requests,
    supervisor_decide_request,
    supervisor_student_logbook,
    supervisor_decide_entry,
)
from .views_assessor import (
    assessor_logbook_list,
    assessor_logbook_detail,
    assessment_pdf,
)

__all__ = [
    # Auth
    "portal_logout",
    "after_login",
    # Mahasiswa
    "student_logbook",
    "student_save_day",
    "student_request_supervision",
    "student_logbook_export",
    # Pembimbing
    "supervisor_requests",
    "supervisor_decide_request",
    "supervisor_student_logbook",
    "supervisor_decide_entry",
    # Asesor
    "assessor_logbook_list",
    "assessor_logbook_detail",
    "assessment_pdf",
]
