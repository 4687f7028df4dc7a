from django.shortcuts import redirect
from django.contrib.auth import logout
from django.contrib.auth.decorators import login_required
from django.http import HttpResponseForbidden

from masterdata.identity import Role, actor_for_user


def portal_logout(request):
    logout(request)
    return redirect("portal:login")


@login_required
def after_login(request):
    actor = actor_for_user(request.user)

    # Jika bukan mahasiswa, pembimbing, asesor, maupun admin
    if actor is None:
        return HttpResponseForbidden(
            "Akun ini belum dihubungkan ke data Mahasiswa atau Pembimbing."
        )

    if actor.role == Role.ACCESSOR:
        return redirect("portal:assessor_logbook_list")
    if actor.role == Role.SUPERVISOR:
        return redirect("portal:supervisor_requests")
    if actor.role == Role.STUDENT:
        return redirect("portal:student_logbook")
    return redirect("admin:index")
