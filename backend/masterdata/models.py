# backend/masterdata/models.py
from django.contrib.auth.models import User
from django.db import models


class Supervisor(models.Model):
    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="supervisor_profile",
        help_text="User akun untuk login sebagai pembimbing/asesor.",
    )
    membership_no = models.CharField("No. Anggota", max_length=30, unique=True)
    name = models.CharField("Nama", max_length=150)
    email = models.EmailField(unique=True)
    phone = models.CharField("No. HP/WA", max_length=20, blank=True)

    is_assessor = models.BooleanField(
        default=False,
        help_text="Centang jika akun ini bertindak sebagai asesor logbook.",
    )

    class Meta:
        verbose_name = "Pembimbing"
        verbose_name_plural = "Pembimbing"
        ordering = ["name"]

    def __str__(self) -> str:
        return f"{self.name} ({self.membership_no})"


class Student(models.Model):
    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="student_profile",
        help_text="User akun untuk login mahasiswa",
    )

    membership_no = models.CharField("No. Anggota", max_length=30, unique=True)
    name = models.CharField("Nama", max_length=150)
    email = models.EmailField(unique=True)
    phone = models.CharField("No. HP/WA", max_length=20, blank=True)
    onboarded = models.BooleanField(
        default=False,
        help_text="Sudah menyelesaikan pengisian profil awal.",
    )

    class Meta:
        verbose_name = "Mahasiswa"
        verbose_name_plural = "Mahasiswa"
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.membership_no})"
