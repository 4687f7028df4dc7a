import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Supervisor",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("membership_no", models.CharField(max_length=30, unique=True, verbose_name="No. Anggota")),
                ("name", models.CharField(max_length=150, verbose_name="Nama")),
                ("email", models.EmailField(max_length=254, unique=True)),
                ("phone", models.CharField(blank=True, max_length=20, verbose_name="No. HP/WA")),
                (
                    "is_assessor",
                    models.BooleanField(
                        default=False,
                        help_text="Centang jika akun ini bertindak sebagai asesor logbook.",
                    ),
                ),
                (
                    "user",
                    models.OneToOneField(
                        blank=True,
                        help_text="User akun untuk login sebagai pembimbing/asesor.",
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="supervisor_profile",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Pembimbing",
                "verbose_name_plural": "Pembimbing",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Student",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("membership_no", models.CharField(max_length=30, unique=True, verbose_name="No. Anggota")),
                ("name", models.CharField(max_length=150, verbose_name="Nama")),
                ("email", models.EmailField(max_length=254, unique=True)),
                ("phone", models.CharField(blank=True, max_length=20, verbose_name="No. HP/WA")),
                (
                    "onboarded",
                    models.BooleanField(
                        default=False,
                        help_text="Sudah menyelesaikan pengisian profil awal.",
                    ),
                ),
                (
                    "user",
                    models.OneToOneField(
                        blank=True,
                        help_text="User akun untuk login mahasiswa",
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="student_profile",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Mahasiswa",
                "verbose_name_plural": "Mahasiswa",
                "ordering": ["name"],
            },
        ),
    ]
