# backend/portal/urls.py
from django.contrib.auth import views as auth_views
from django.urls import path

from . import views

app_name = "portal"

urlpatterns = [
    # Auth
    path(
        "login/",
        auth_views.LoginView.as_view(template_name="portal/login.html"),
        name="login",
    ),
    path("logout/", views.portal_logout, name="logout"),
    path("after-login/", views.after_login, name="after_login"),

    # Mahasiswa
    path("mhs/logbook/", views.student_logbook, name="student_logbook"),
    path(
        "mhs/logbook/<int:week>/<str:day>/",
        views.student_save_day,
        name="student_save_day",
    ),
    path(
        "mhs/pembimbing/request/",
        views.student_request_supervision,
        name="student_request_supervision",
    ),
    path(
        "mhs/logbook/export/",
        views.student_logbook_export,
        name="student_logbook_export",
    ),

    # Pembimbing
    path("pembimbing/requests/", views.supervisor_requests, name="supervisor_requests"),
    path(
        "pembimbing/requests/<int:student_id>/",
        views.supervisor_decide_request,
        name="supervisor_decide_request",
    ),
    path(
        "pembimbing/mahasiswa/<int:student_id>/",
        views.supervisor_student_logbook,
        name="supervisor_student_logbook",
    ),
    path(
        "pembimbing/mahasiswa/<int:student_id>/<int:week>/<str:day>/",
        views.supervisor_decide_entry,
        name="supervisor_decide_entry",
    ),

    # Asesor
    path("asesor/logbook/", views.assessor_logbook_list, name="assessor_logbook_list"),
    path(
        "asesor/logbook/<int:pk>/",
        views.assessor_logbook_detail,
        name="assessor_logbook_detail",
    ),
    path(
        "asesor/logbook/<int:pk>/pdf/",
        views.assessment_pdf,
        name="assessment_pdf",
    ),
]
