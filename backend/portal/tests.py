# backend/portal/tests.py
import json
from unittest import mock

import httpx
from django.contrib.auth.models import User
from django.test import TestCase, override_settings
from django.urls import reverse

from logbook.client import BackendClient
from logbook.models import Assessment, Logbook
from logbook.states import EntryStatus, LogbookStatus, SupervisionStatus
from logbook.store import DatabaseStore
from logbook.workflow import LogbookWorkflow
from masterdata.models import Student, Supervisor
from portal.forms import AssessmentForm, SaveDayForm, SupervisionRequestForm


def _workflow():
    return LogbookWorkflow(DatabaseStore())


# =========================
# Form
# =========================

class SupervisionRequestFormTests(TestCase):
    def setUp(self):
        self.student = Student.objects.create(
            membership_no="M-001",
            name="Budi",
            email="budi@kampus.ac.id",
        )
        self.sari = Supervisor.objects.create(
            membership_no="P-001",
            name="Bu Sari",
            email="sari@kampus.ac.id",
        )
        # akun ganda: mahasiswa yang juga terdaftar sebagai pembimbing
        self.budi_as_supervisor = Supervisor.objects.create(
            membership_no="P-002",
            name="Budi",
            email="BUDI@kampus.ac.id",
        )

    def test_mahasiswa_tidak_bisa_memilih_dirinya_sendiri(self):
        form = SupervisionRequestForm(student=self.student)
        choices = list(form.fields["supervisor"].queryset)
        self.assertIn(self.sari, choices)
        self.assertNotIn(self.budi_as_supervisor, choices)

    def test_pesan_wajib_diisi(self):
        form = SupervisionRequestForm(
            data={"supervisor": self.sari.pk, "message": "   "},
            student=self.student,
        )
        self.assertFalse(form.is_valid())
        self.assertIn("message", form.errors)


class SaveDayFormTests(TestCase):
    def test_aktivitas_kosong_tidak_valid(self):
        form = SaveDayForm(data={"text": "  "})
        self.assertFalse(form.is_valid())

    def test_tanggal_dan_jam_opsional(self):
        form = SaveDayForm(data={"text": "Rapat", "entry_date": "", "hours": ""})
        self.assertTrue(form.is_valid(), form.errors)
        self.assertIsNone(form.cleaned_data["hours"])


class AssessmentFormTests(TestCase):
    def _data(self, **overrides):
        data = {
            "details": 8,
            "practicality": 7,
            "correctness": 9,
            "creativity": 6,
            "presentation": 8,
            "comment": "",
            "result": "pass",
        }
        data.update(overrides)
        return data

    def test_form_valid(self):
        form = AssessmentForm(data=self._data())
        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.scores()["correctness"], 9)
        self.assertEqual(set(form.scores()), set(Assessment.SCORE_FIELDS))

    def test_nilai_negatif_dan_hasil_kosong(self):
        form = AssessmentForm(data=self._data(details=-1, result=""))
        self.assertFalse(form.is_valid())
        self.assertIn("details", form.errors)
        self.assertIn("result", form.errors)


# =========================
# Alur portal
# =========================

@override_settings(LOGBOOK_BACKEND_URL="", LOGBOOK_TOTAL_WEEKS=4)
class PortalFlowTests(TestCase):
    def setUp(self):
        self.user_mhs = User.objects.create_user(username="mhs", password="test")
        self.user_pbb = User.objects.create_user(username="pbb", password="test")
        self.user_lain = User.objects.create_user(username="pbb2", password="test")

        self.student = Student.objects.create(
            user=self.user_mhs,
            membership_no="M-001",
            name="Budi",
            email="budi@kampus.ac.id",
        )
        self.supervisor = Supervisor.objects.create(
            user=self.user_pbb,
            membership_no="P-001",
            name="Bu Sari",
            email="sari@kampus.ac.id",
        )
        self.other = Supervisor.objects.create(
            user=self.user_lain,
            membership_no="P-002",
            name="Pak Andi",
            email="andi@kampus.ac.id",
        )

    def _login(self, username):
        self.client.login(username=username, password="test")

    def _request_and_approve(self):
        self._login("mhs")
        self.client.post(
            reverse("portal:student_request_supervision"),
            {"supervisor": self.supervisor.pk, "message": "Mohon bimbingannya, Bu."},
        )
        self._login("pbb")
        self.client.post(
            reverse("portal:supervisor_decide_request", args=[self.student.pk]),
            {"outcome": "approved"},
        )

    def _save_monday(self, text):
        self._login("mhs")
        return self.client.post(
            reverse("portal:student_save_day", args=[1, "Monday"]),
            {"monday-text": text, "monday-entry_date": "2025-01-06", "monday-hours": "4"},
        )

    def test_halaman_login(self):
        response = self.client.get(reverse("portal:login"))
        self.assertEqual(response.status_code, 200)

    def test_redirect_setelah_login_sesuai_role(self):
        self._login("mhs")
        response = self.client.get(reverse("portal:after_login"))
        self.assertRedirects(response, reverse("portal:student_logbook"))

        self._login("pbb")
        response = self.client.get(reverse("portal:after_login"))
        self.assertRedirects(response, reverse("portal:supervisor_requests"))

    def test_akun_tanpa_profil_ditolak(self):
        User.objects.create_user(username="tamu", password="test")
        self._login("tamu")
        response = self.client.get(reverse("portal:after_login"))
        self.assertEqual(response.status_code, 403)

    def test_halaman_logbook_sebelum_ada_pembimbing(self):
        self._login("mhs")
        response = self.client.get(reverse("portal:student_logbook"))
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.context["can_write"])
        self.assertTrue(response.context["can_request"])
        self.assertEqual(len(response.context["days"]), 5)
        self.assertEqual(len(response.context["weeks"]), 4)
        self.assertTrue(Logbook.objects.filter(student=self.student).exists())

    def test_minggu_terpilih_disimpan(self):
        self._login("mhs")
        self.client.get(reverse("portal:student_logbook") + "?week=3")
        response = self.client.get(reverse("portal:student_logbook"))
        self.assertEqual(response.context["selected_week"], 3)

    def test_simpan_sebelum_disetujui_tidak_menulis_entri(self):
        self._save_monday("Instalasi")
        self.assertIsNone(_workflow().entries.entry(self.student.email, 1, "Monday"))

    def test_request_lalu_disetujui_pembimbing(self):
        self._login("mhs")
        self.client.post(
            reverse("portal:student_request_supervision"),
            {"supervisor": self.supervisor.pk, "message": "Mohon bimbingannya, Bu."},
        )
        self.assertEqual(_workflow().registry.status(self.student.email), SupervisionStatus.PENDING)

        self._login("pbb")
        response = self.client.get(reverse("portal:supervisor_requests"))
        self.assertEqual(len(response.context["pending"]), 1)

        self.client.post(
            reverse("portal:supervisor_decide_request", args=[self.student.pk]),
            {"outcome": "approved"},
        )
        self.assertEqual(_workflow().registry.status(self.student.email), SupervisionStatus.APPROVED)

    def test_pembimbing_lain_tidak_bisa_memutuskan_request(self):
        self._login("mhs")
        self.client.post(
            reverse("portal:student_request_supervision"),
            {"supervisor": self.supervisor.pk, "message": "Mohon bimbingannya."},
        )
        self._login("pbb2")
        response = self.client.post(
            reverse("portal:supervisor_decide_request", args=[self.student.pk]),
            {"outcome": "approved"},
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(_workflow().registry.status(self.student.email), SupervisionStatus.PENDING)

    def test_simpan_lalu_disetujui_pembimbing(self):
        self._request_and_approve()
        self._save_monday("Instalasi server")

        entry = _workflow().entries.entry(self.student.email, 1, "Monday")
        self.assertEqual(entry.status, EntryStatus.SUBMITTED)
        self.assertEqual(entry.entry_date, "2025-01-06")
        self.assertEqual(entry.hours, 4.0)

        self._login("pbb")
        response = self.client.get(
            reverse("portal:supervisor_student_logbook", args=[self.student.pk]) + "?week=1"
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.context["review_queue"]), 1)

        self.client.post(
            reverse("portal:supervisor_decide_entry", args=[self.student.pk, 1, "Monday"]),
            {"action": "approve", "revision": entry.revision},
        )
        self.assertEqual(
            _workflow().entries.entry(self.student.email, 1, "Monday").status,
            EntryStatus.APPROVED,
        )

    def test_keputusan_basi_tidak_mengubah_entri(self):
        self._request_and_approve()
        self._save_monday("Versi pertama")
        self._save_monday("Versi kedua")

        self._login("pbb")
        response = self.client.post(
            reverse("portal:supervisor_decide_entry", args=[self.student.pk, 1, "Monday"]),
            {"action": "approve", "revision": 1},
            follow=True,
        )
        self.assertContains(response, "Entri sudah berubah")

        entry = _workflow().entries.entry(self.student.email, 1, "Monday")
        self.assertEqual(entry.status, EntryStatus.SUBMITTED)
        self.assertEqual(entry.revision, 2)

    def test_pembimbing_lain_tidak_bisa_melihat_logbook(self):
        self._request_and_approve()
        self._login("pbb2")
        response = self.client.get(
            reverse("portal:supervisor_student_logbook", args=[self.student.pk])
        )
        self.assertEqual(response.status_code, 403)

    def test_mahasiswa_tidak_bisa_membuka_halaman_pembimbing(self):
        self._login("mhs")
        response = self.client.get(reverse("portal:supervisor_requests"))
        self.assertEqual(response.status_code, 403)

    def test_export_csv(self):
        self._request_and_approve()
        self._save_monday("Instalasi server")
        self._login("mhs")
        response = self.client.get(reverse("portal:student_logbook_export"))
        self.assertEqual(response["Content-Type"], "text/csv")
        self.assertIn("Instalasi server", response.content.decode())


@override_settings(LOGBOOK_TOTAL_WEEKS=4)
class BackendPortalFlowTests(TestCase):
    def setUp(self):
        self.user_mhs = User.objects.create_user(username="mhs", password="test")
        self.user_pbb = User.objects.create_user(username="pbb", password="test")
        self.student = Student.objects.create(
            user=self.user_mhs,
            membership_no="M-001",
            name="Budi",
            email="budi@kampus.ac.id",
        )
        self.supervisor = Supervisor.objects.create(
            user=self.user_pbb,
            membership_no="P-001",
            name="Bu Sari",
            email="sari@kampus.ac.id",
        )
        self.calls = []
        self.clients = []

    def handler(self, request):
        body = json.loads(request.content) if request.content else None
        self.calls.append((request.method, request.url.path, body))
        if request.method == "POST" and request.url.path == "/api/logbook/supervisor-request":
            return httpx.Response(201, json={"data": {"id": 31}})
        if request.method == "PUT" and request.url.path == "/api/logbook/supervisor-request/31":
            return httpx.Response(200, json={"message": "ok"})
        if request.url.path == "/api/logbook/me":
            return httpx.Response(200, json={"data": [{"id": 7, "status": "in_progress", "size": 4}]})
        if request.url.path == "/api/logbook/7/entries/week/1":
            return httpx.Response(200, json={"data": []})
        return httpx.Response(404, json={"message": "Tidak ditemukan"})

    def _backend_client(self):
        client = BackendClient(
            "http://backend.test",
            transport=httpx.MockTransport(self.handler),
        )
        self.clients.append(client)
        return client

    def _with_backend(self):
        return mock.patch("portal.facade.get_backend_client", side_effect=self._backend_client)

    def _login(self, username):
        self.client.login(username=username, password="test")

    def _post_request(self):
        return self.client.post(
            reverse("portal:student_request_supervision"),
            {"supervisor": self.supervisor.pk, "message": "Mohon bimbingannya, Bu."},
        )

    def test_request_ulang_setelah_disetujui_tidak_dikirim_ke_backend(self):
        registry = _workflow().registry
        registry.request_supervision(self.student.email, self.supervisor)
        registry.decide(self.student.email, "approved", self.supervisor.email)

        self._login("mhs")
        with self._with_backend():
            response = self._post_request()

        self.assertRedirects(response, reverse("portal:student_logbook"), fetch_redirect_response=False)
        self.assertEqual(self.calls, [])
        self.assertEqual(_workflow().registry.status(self.student.email), SupervisionStatus.APPROVED)

    def test_keputusan_pembimbing_bertahan_setelah_sinkronisasi(self):
        with self._with_backend():
            self._login("mhs")
            self._post_request()
            self.assertEqual(_workflow().registry.request_id(self.student.email), "31")

            self._login("pbb")
            self.client.post(
                reverse("portal:supervisor_decide_request", args=[self.student.pk]),
                {"outcome": "approved"},
            )
            self.assertIn(
                ("PUT", "/api/logbook/supervisor-request/31", {"status": "accepted"}),
                self.calls,
            )

            self._login("mhs")
            response = self.client.get(reverse("portal:student_logbook"))

        self.assertEqual(response.status_code, 200)
        self.assertIn(("GET", "/api/logbook/me", None), self.calls)
        self.assertTrue(response.context["can_write"])
        self.assertEqual(_workflow().registry.status(self.student.email), SupervisionStatus.APPROVED)

    def test_keputusan_gagal_di_backend_tidak_disimpan(self):
        registry = _workflow().registry
        registry.request_supervision(self.student.email, self.supervisor, request_id="99")

        self._login("pbb")
        with self._with_backend():
            self.client.post(
                reverse("portal:supervisor_decide_request", args=[self.student.pk]),
                {"outcome": "approved"},
            )

        self.assertEqual(self.calls, [("PUT", "/api/logbook/supervisor-request/99", {"status": "accepted"})])
        self.assertEqual(_workflow().registry.status(self.student.email), SupervisionStatus.PENDING)

    def test_klien_backend_ditutup_setelah_request(self):
        self._login("mhs")
        with self._with_backend():
            self.client.get(reverse("portal:student_logbook"))
            self._post_request()

        self.assertEqual(len(self.clients), 2)
        self.assertTrue(all(client._client.is_closed for client in self.clients))


@override_settings(LOGBOOK_BACKEND_URL="")
class AssessorFlowTests(TestCase):
    def setUp(self):
        self.user_asr = User.objects.create_user(username="asr", password="test")
        self.user_pbb = User.objects.create_user(username="pbb", password="test")
        self.assessor = Supervisor.objects.create(
            user=self.user_asr,
            membership_no="P-010",
            name="Pak Asesor",
            email="asesor@kampus.ac.id",
            is_assessor=True,
        )
        Supervisor.objects.create(
            user=self.user_pbb,
            membership_no="P-011",
            name="Bu Sari",
            email="sari@kampus.ac.id",
        )
        self.student = Student.objects.create(
            membership_no="M-002",
            name="Budi",
            email="budi@kampus.ac.id",
        )
        self.logbook = Logbook.objects.create(student=self.student, assessor=self.assessor)
        self.data = {
            "details": 8,
            "practicality": 7,
            "correctness": 9,
            "creativity": 6,
            "presentation": 8,
            "comment": "Rapi",
            "result": "pass",
        }

    def test_redirect_asesor_setelah_login(self):
        self.client.login(username="asr", password="test")
        response = self.client.get(reverse("portal:after_login"))
        self.assertRedirects(response, reverse("portal:assessor_logbook_list"))

    def test_daftar_logbook(self):
        self.client.login(username="asr", password="test")
        response = self.client.get(reverse("portal:assessor_logbook_list"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.context["graded_count"], 0)
        self.assertEqual(list(response.context["logbooks"]), [self.logbook])

    def test_pembimbing_biasa_bukan_asesor(self):
        self.client.login(username="pbb", password="test")
        response = self.client.get(reverse("portal:assessor_logbook_list"))
        self.assertEqual(response.status_code, 403)

    def test_penilaian_sekali_saja(self):
        self.client.login(username="asr", password="test")
        url = reverse("portal:assessor_logbook_detail", args=[self.logbook.pk])

        response = self.client.post(url, self.data)
        self.assertRedirects(response, url)
        self.logbook.refresh_from_db()
        self.assertEqual(self.logbook.status, LogbookStatus.GRADED)

        response = self.client.post(url, dict(self.data, result="fail"), follow=True)
        self.assertContains(response, "sudah dinilai")
        self.assertEqual(Assessment.objects.filter(logbook=self.logbook).count(), 1)
        self.assertEqual(Assessment.objects.get(logbook=self.logbook).result, "pass")

    def test_nilai_tidak_valid(self):
        self.client.login(username="asr", password="test")
        url = reverse("portal:assessor_logbook_detail", args=[self.logbook.pk])
        response = self.client.post(url, dict(self.data, details=""))
        self.assertEqual(response.status_code, 200)
        self.assertIn("details", response.context["form"].errors)
        self.assertFalse(Assessment.objects.exists())

    def test_pdf_penilaian(self):
        self.client.login(username="asr", password="test")
        self.client.post(
            reverse("portal:assessor_logbook_detail", args=[self.logbook.pk]), self.data
        )
        response = self.client.get(reverse("portal:assessment_pdf", args=[self.logbook.pk]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response["Content-Type"], "application/pdf")

    def test_logbook_asesor_lain_ditolak(self):
        other = Supervisor.objects.create(
            membership_no="P-012",
            name="Asesor Lain",
            email="lain@kampus.ac.id",
            is_assessor=True,
        )
        self.logbook.assessor = other
        self.logbook.save()

        self.client.login(username="asr", password="test")
        response = self.client.get(
            reverse("portal:assessor_logbook_detail", args=[self.logbook.pk])
        )
        self.assertEqual(response.status_code, 403)
