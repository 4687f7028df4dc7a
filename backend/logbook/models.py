# backend/logbook/models.py
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from masterdata.models import Student, Supervisor

from .exceptions import InvalidTransition
from .states import MAX_WEEKS, AssessmentResult, LogbookStatus, is_graded, resolve_total_weeks


class StoredValue(models.Model):
    """Satu baris key-value (JSON) milik ``DatabaseStore``."""

    key = models.CharField(max_length=255, unique=True)
    value = models.JSONField(null=True, blank=True)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Data tersimpan"
        verbose_name_plural = "Data tersimpan"
        ordering = ["key"]

    def __str__(self) -> str:
        return self.key


class Logbook(models.Model):
    student = models.ForeignKey(
        Student,
        on_delete=models.CASCADE,
        related_name="logbooks",
    )
    assessor = models.ForeignKey(
        Supervisor,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assessed_logbooks",
        help_text="Asesor yang ditugaskan menilai logbook ini.",
    )

    stage = models.PositiveSmallIntegerField(
        default=1,
        help_text="Level logbook, misal 1, 2, 3.",
    )
    size = models.PositiveSmallIntegerField(
        default=MAX_WEEKS,
        validators=[MinValueValidator(1), MaxValueValidator(MAX_WEEKS)],
        help_text="Jumlah minggu logbook (1 - 52).",
    )
    status = models.CharField(
        max_length=20,
        choices=LogbookStatus.choices,
        default=LogbookStatus.IN_PROGRESS,
    )
    remote_id = models.CharField(
        max_length=64,
        blank=True,
        help_text="ID logbook di server backend (jika ada).",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Logbook"
        verbose_name_plural = "Logbook"
        unique_together = ("student", "stage")
        ordering = ["student__name", "stage"]

    def __str__(self) -> str:
        return f"{self.student.membership_no} - Level {self.stage} ({self.get_status_display()})"

    @property
    def total_weeks(self) -> int:
        return resolve_total_weeks(self.size)

    @property
    def is_graded(self) -> bool:
        return is_graded(self.status)


class Assessment(models.Model):
    SCORE_FIELDS = ("details", "practicality", "correctness", "creativity", "presentation")

    logbook = models.OneToOneField(
        Logbook,
        on_delete=models.CASCADE,
        related_name="assessment",
    )
    assessor = models.ForeignKey(
        Supervisor,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assessments",
    )

    details = models.PositiveSmallIntegerField("Kelengkapan detail")
    practicality = models.PositiveSmallIntegerField("Kepraktisan")
    correctness = models.PositiveSmallIntegerField("Ketepatan")
    creativity = models.PositiveSmallIntegerField("Kreativitas")
    presentation = models.PositiveSmallIntegerField("Penyajian")
    comment = models.TextField(blank=True)
    result = models.CharField(max_length=4, choices=AssessmentResult.choices)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Penilaian Logbook"
        verbose_name_plural = "Penilaian Logbook"

    def __str__(self):
        return f"Penilaian {self.logbook} - {self.get_result_display()}"

    @property
    def total_score(self) -> int:
        return sum(getattr(self, name) for name in self.SCORE_FIELDS)

    def save(self, *args, **kwargs):
        # penilaian bersifat final, hanya boleh dibuat sekali
        if not self._state.adding:
            raise InvalidTransition("Penilaian logbook sudah final dan tidak dapat diubah.")
        super().save(*args, **kwargs)
