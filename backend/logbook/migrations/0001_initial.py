import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("masterdata", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="StoredValue",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("key", models.CharField(max_length=255, unique=True)),
                ("value", models.JSONField(blank=True, null=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Data tersimpan",
                "verbose_name_plural": "Data tersimpan",
                "ordering": ["key"],
            },
        ),
        migrations.CreateModel(
            name="Logbook",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("stage", models.PositiveSmallIntegerField(default=1, help_text="Level logbook, misal 1, 2, 3.")),
                (
                    "size",
                    models.PositiveSmallIntegerField(
                        default=52,
                        help_text="Jumlah minggu logbook (1 - 52).",
                        validators=[
                            django.core.validators.MinValueValidator(1),
                            django.core.validators.MaxValueValidator(52),
                        ],
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("in_progress", "Sedang berjalan"),
                            ("assessable", "Siap dinilai"),
                            ("graded", "Sudah dinilai"),
                            ("passed", "Lulus"),
                            ("assessed", "Sudah diases"),
                            ("completed", "Selesai"),
                        ],
                        default="in_progress",
                        max_length=20,
                    ),
                ),
                (
                    "remote_id",
                    models.CharField(blank=True, help_text="ID logbook di server backend (jika ada).", max_length=64),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "assessor",
                    models.ForeignKey(
                        blank=True,
                        help_text="Asesor yang ditugaskan menilai logbook ini.",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="assessed_logbooks",
                        to="masterdata.supervisor",
                    ),
                ),
                (
                    "student",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="logbooks",
                        to="masterdata.student",
                    ),
                ),
            ],
            options={
                "verbose_name": "Logbook",
                "verbose_name_plural": "Logbook",
                "ordering": ["student__name", "stage"],
                "unique_together": {("student", "stage")},
            },
        ),
        migrations.CreateModel(
            name="Assessment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("details", models.PositiveSmallIntegerField(verbose_name="Kelengkapan detail")),
                ("practicality", models.PositiveSmallIntegerField(verbose_name="Kepraktisan")),
                ("correctness", models.PositiveSmallIntegerField(verbose_name="Ketepatan")),
                ("creativity", models.PositiveSmallIntegerField(verbose_name="Kreativitas")),
                ("presentation", models.PositiveSmallIntegerField(verbose_name="Penyajian")),
                ("comment", models.TextField(blank=True)),
                (
                    "result",
                    models.CharField(choices=[("pass", "Lulus"), ("fail", "Tidak lulus")], max_length=4),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "assessor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="assessments",
                        to="masterdata.supervisor",
                    ),
                ),
                (
                    "logbook",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="assessment",
                        to="logbook.logbook",
                    ),
                ),
            ],
            options={
                "verbose_name": "Penilaian Logbook",
                "verbose_name_plural": "Penilaian Logbook",
            },
        ),
    ]
