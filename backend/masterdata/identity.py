# backend/masterdata/identity.py
"""
Identitas aktor yang sedang login.

Aktor hanya membawa ``email`` dan ``role``; semua operasi logbook memakai
dua nilai ini untuk menentukan apa yang boleh dibaca/ditulis.
"""
from dataclasses import dataclass
from typing import Optional

from django.db import models


class Role(models.TextChoices):
    STUDENT = "student", "Mahasiswa"
    SUPERVISOR = "supervisor", "Pembimbing"
    ACCESSOR = "accessor", "Asesor"
    ADMIN = "admin", "Admin"


@dataclass(frozen=True)
class Actor:
    email: str
    role: str

    @property
    def is_student(self) -> bool:
        return self.role == Role.STUDENT

    @property
    def is_supervisor(self) -> bool:
        # asesor juga anggota pembimbing
        return self.role in (Role.SUPERVISOR, Role.ACCESSOR)

    @property
    def is_assessor(self) -> bool:
        return self.role == Role.ACCESSOR


def actor_for_user(user) -> Optional[Actor]:
    """Tentukan aktor dari user Django; ``None`` jika akun belum terhubung."""
    if user is None or not user.is_authenticated:
        return None

    if hasattr(user, "supervisor_profile"):
        profile = user.supervisor_profile
        role = Role.ACCESSOR if profile.is_assessor else Role.SUPERVISOR
        return Actor(email=(profile.email or "").lower(), role=role)

    if hasattr(user, "student_profile"):
        return Actor(email=(user.student_profile.email or "").lower(), role=Role.STUDENT)

    if user.is_staff or user.is_superuser:
        return Actor(email=(user.email or "").lower(), role=Role.ADMIN)

    return None
