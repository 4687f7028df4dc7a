# backend/logbook/tests.py
import json
from types import SimpleNamespace

import httpx
from django.contrib.auth.models import User
from django.core.exceptions import PermissionDenied, ValidationError
from django.test import SimpleTestCase, TestCase

from masterdata.models import Student, Supervisor
from logbook.assessment import clean_assessment, submit_assessment
from logbook.client import BackendClient
from logbook.envelopes import (
    decode_logbook,
    decode_supervisor_requests,
    decode_week_entries,
    extract_message,
    unwrap_list,
    unwrap_object,
)
from logbook.exceptions import InvalidTransition, StaleTransition, TransportError
from logbook.models import Assessment, Logbook, StoredValue
from logbook.signals import logbook_assessed
from logbook.states import (
    Day,
    EntryEvent,
    EntryStatus,
    LogbookStatus,
    SupervisionStatus,
    is_graded,
    next_entry_status,
    resolve_total_weeks,
)
from logbook.store import NOOP_KEY, DatabaseStore, MemoryStore, entries_key
from logbook.workflow import LogbookWorkflow, is_week_complete

STUDENT = "budi@kampus.ac.id"
SUPERVISOR = "sari@kampus.ac.id"


def make_workflow(total_weeks=4, client=None, approved=True):
    workflow = LogbookWorkflow(MemoryStore(), total_weeks=total_weeks, client=client)
    if approved:
        workflow.registry.request_supervision(
            STUDENT, SimpleNamespace(email=SUPERVISOR, name="Bu Sari")
        )
        workflow.registry.decide(STUDENT, "approved", SUPERVISOR)
    return workflow


def mock_client(handler):
    return BackendClient(
        "http://backend.test",
        token="rahasia",
        transport=httpx.MockTransport(handler),
    )


# =========================
# Status & transisi
# =========================

class StateRulesTests(SimpleTestCase):
    def test_simpan_slot_kosong_menjadi_submitted(self):
        self.assertEqual(next_entry_status(None, EntryEvent.SAVE), EntryStatus.SUBMITTED)
        self.assertEqual(next_entry_status("approved", EntryEvent.SAVE), EntryStatus.SUBMITTED)

    def test_entri_yang_sudah_disetujui_tidak_bisa_disetujui_lagi(self):
        with self.assertRaises(InvalidTransition):
            next_entry_status(EntryStatus.APPROVED, EntryEvent.APPROVE)

    def test_parse_hari(self):
        self.assertEqual(Day.parse("monday"), Day.MONDAY)
        self.assertEqual(Day.parse(3), Day.WEDNESDAY)
        self.assertEqual(Day.parse("5"), Day.FRIDAY)
        self.assertIsNone(Day.parse("Saturday"))
        self.assertIsNone(Day.parse(6))
        self.assertEqual(Day.FRIDAY.number, 5)

    def test_jumlah_minggu_di_luar_rentang_kembali_ke_default(self):
        self.assertEqual(resolve_total_weeks("12"), 12)
        self.assertEqual(resolve_total_weeks(0), 52)
        self.assertEqual(resolve_total_weeks(60), 52)
        self.assertEqual(resolve_total_weeks("abc"), 52)

    def test_status_sudah_dinilai(self):
        for status in ("graded", "Passed", "assessed", "COMPLETED"):
            self.assertTrue(is_graded(status))
        self.assertFalse(is_graded("in_progress"))
        self.assertFalse(is_graded(None))


# =========================
# Store
# =========================

class MemoryStoreTests(SimpleTestCase):
    def test_key_noop_tidak_pernah_disimpan(self):
        store = MemoryStore()
        self.assertEqual(entries_key("", 1), NOOP_KEY)
        store.set(entries_key("", 1), [{"day": "Monday"}])
        store.set(NOOP_KEY, "x")
        self.assertEqual(store.keys(), [])
        self.assertEqual(store.get(NOOP_KEY, "default"), "default")

    def test_nilai_disimpan_sebagai_json(self):
        store = MemoryStore({"a": {"x": 1}})
        self.assertEqual(store.get("a"), {"x": 1})
        store.remove("a")
        self.assertIsNone(store.get("a"))

    def test_nilai_lama_non_json_dikembalikan_apa_adanya(self):
        store = MemoryStore()
        store.set_raw("student_supervision_status_x@y.id", "approved")
        self.assertEqual(store.get("student_supervision_status_x@y.id"), "approved")

    def test_key_entri_memakai_email_huruf_kecil(self):
        self.assertEqual(
            entries_key(" Budi@Kampus.ac.id ", 3),
            "student_entries_budi@kampus.ac.id_week_3",
        )


class DatabaseStoreTests(TestCase):
    def test_set_get_remove(self):
        store = DatabaseStore()
        store.set("k", [{"day": "Monday", "text": "A"}])
        self.assertEqual(store.get("k"), [{"day": "Monday", "text": "A"}])

        store.set("k", [])
        self.assertEqual(StoredValue.objects.filter(key="k").count(), 1)
        self.assertEqual(store.get("k"), [])

        store.remove("k")
        self.assertEqual(store.get("k", "kosong"), "kosong")

    def test_key_noop_tidak_menulis_ke_database(self):
        store = DatabaseStore()
        store.set(NOOP_KEY, {"a": 1})
        self.assertFalse(StoredValue.objects.exists())


# =========================
# Hubungan pembimbing
# =========================

class SupervisionRegistryTests(SimpleTestCase):
    def setUp(self):
        self.workflow = make_workflow(approved=False)
        self.registry = self.workflow.registry
        self.sari = SimpleNamespace(email=SUPERVISOR, name="Bu Sari")

    def test_status_awal_none(self):
        self.assertEqual(self.registry.status(STUDENT), SupervisionStatus.NONE)

    def test_request_menjadi_pending_dan_belum_dianggap_pembimbing(self):
        supervision = self.registry.request_supervision(STUDENT, self.sari)
        self.assertEqual(supervision.status, SupervisionStatus.PENDING)
        self.assertEqual(supervision.supervisor_name, "Bu Sari")
        self.assertFalse(self.registry.is_supervisor_of(STUDENT, SUPERVISOR))

    def test_tidak_bisa_memilih_diri_sendiri(self):
        with self.assertRaises(ValidationError):
            self.registry.request_supervision(STUDENT, SimpleNamespace(email=STUDENT, name="Budi"))

    def test_keputusan_oleh_pembimbing_lain_ditolak(self):
        self.registry.request_supervision(STUDENT, self.sari)
        with self.assertRaises(PermissionDenied):
            self.registry.decide(STUDENT, "approved", "lain@kampus.ac.id")
        self.assertEqual(self.registry.status(STUDENT), SupervisionStatus.PENDING)

    def test_keputusan_tidak_dikenal(self):
        self.registry.request_supervision(STUDENT, self.sari)
        with self.assertRaises(ValidationError):
            self.registry.decide(STUDENT, "maybe", SUPERVISOR)

    def test_accepted_sama_dengan_approved(self):
        self.registry.request_supervision(STUDENT, self.sari)
        supervision = self.registry.decide(STUDENT, "accepted", SUPERVISOR)
        self.assertTrue(supervision.is_approved)
        self.assertTrue(self.registry.is_supervisor_of(STUDENT, SUPERVISOR.upper()))

    def test_tidak_bisa_request_ulang_setelah_disetujui(self):
        self.registry.request_supervision(STUDENT, self.sari)
        self.registry.decide(STUDENT, "approved", SUPERVISOR)
        with self.assertRaises(InvalidTransition):
            self.registry.request_supervision(STUDENT, self.sari)

    def test_setelah_ditolak_boleh_mengajukan_ke_pembimbing_lain(self):
        self.registry.request_supervision(STUDENT, self.sari)
        self.registry.decide(STUDENT, "rejected", SUPERVISOR)
        self.assertEqual(self.registry.status(STUDENT), SupervisionStatus.REJECTED)

        other = SimpleNamespace(email="andi@kampus.ac.id", name="Pak Andi")
        self.registry.request_supervision(STUDENT, other)

        self.assertEqual(self.registry.students_for(SUPERVISOR), [])
        pending = self.registry.students_for("andi@kampus.ac.id", status=SupervisionStatus.PENDING)
        self.assertEqual([s.student_email for s in pending], [STUDENT])

    def test_keputusan_atas_request_yang_sudah_diputuskan(self):
        self.registry.request_supervision(STUDENT, self.sari)
        self.registry.decide(STUDENT, "rejected", SUPERVISOR)
        with self.assertRaises(InvalidTransition):
            self.registry.decide(STUDENT, "approved", SUPERVISOR)


# =========================
# Entri harian
# =========================

class EntryStoreTests(SimpleTestCase):
    def setUp(self):
        self.workflow = make_workflow()
        self.entries = self.workflow.entries

    def test_belum_bisa_menulis_sebelum_pembimbing_disetujui(self):
        workflow = make_workflow(approved=False)
        with self.assertRaises(InvalidTransition):
            workflow.save_day(STUDENT, 1, "Monday", "Instalasi")
        self.assertIsNone(workflow.entries.entry(STUDENT, 1, "Monday"))

    def test_simpan_hari_menjadi_submitted(self):
        entry = self.workflow.save_day(STUDENT, 1, "Monday", "  Instalasi server  ", hours=4)
        self.assertEqual(entry.status, EntryStatus.SUBMITTED)
        self.assertEqual(entry.text, "Instalasi server")
        self.assertEqual(entry.revision, 1)

        week = self.entries.read_week(STUDENT, 1)
        self.assertEqual(list(week), [Day.MONDAY, Day.TUESDAY, Day.WEDNESDAY, Day.THURSDAY, Day.FRIDAY])
        self.assertEqual(week[Day.MONDAY].text, "Instalasi server")
        self.assertIsNone(week[Day.TUESDAY])

    def test_simpan_ulang_tidak_menggandakan_hari(self):
        self.workflow.save_day(STUDENT, 2, "Tuesday", "A")
        self.workflow.save_day(STUDENT, 2, "tuesday", "B")
        records = self.workflow.store.get(entries_key(STUDENT, 2))
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0]["text"], "B")
        self.assertEqual(records[0]["revision"], 2)

    def test_simpan_ulang_entri_disetujui_kembali_ke_submitted(self):
        self.workflow.save_day(STUDENT, 1, "Monday", "A")
        self.workflow.approve_entry(STUDENT, 1, "Monday", SUPERVISOR, expected_revision=1)

        entry = self.workflow.save_day(STUDENT, 1, "Monday", "A revisi")
        self.assertEqual(entry.status, EntryStatus.SUBMITTED)
        self.assertEqual(entry.revision, 2)

    def test_validasi_input(self):
        with self.assertRaises(ValidationError) as ctx:
            self.workflow.save_day(STUDENT, 1, "Monday", "   ")
        self.assertIn("text", ctx.exception.message_dict)

        with self.assertRaises(ValidationError) as ctx:
            self.workflow.save_day(STUDENT, 5, "Monday", "A")
        self.assertIn("week", ctx.exception.message_dict)

        with self.assertRaises(ValidationError) as ctx:
            self.workflow.save_day(STUDENT, 0, "Monday", "A")
        self.assertIn("week", ctx.exception.message_dict)

        with self.assertRaises(ValidationError) as ctx:
            self.workflow.save_day(STUDENT, 1, "Saturday", "A")
        self.assertIn("day", ctx.exception.message_dict)

        with self.assertRaises(ValidationError) as ctx:
            self.workflow.save_day(STUDENT, 1, "Monday", "A", hours=0)
        self.assertIn("hours", ctx.exception.message_dict)

    def test_daftar_minggu_yang_punya_entri(self):
        self.workflow.save_day(STUDENT, 1, "Monday", "A")
        self.workflow.save_day(STUDENT, 3, "Friday", "B")
        self.assertEqual(self.entries.list_weeks_with_any_entry(STUDENT), {1, 3})

    def test_minggu_dan_tab_terpilih(self):
        self.assertEqual(self.entries.selected_week(STUDENT), 1)
        self.entries.set_selected_week(STUDENT, "3")
        self.assertEqual(self.entries.selected_week(STUDENT), 3)
        with self.assertRaises(ValidationError):
            self.entries.set_selected_week(STUDENT, 9)

        self.assertEqual(self.entries.active_tab(STUDENT), "entries")
        self.entries.set_active_tab(STUDENT, "progress")
        self.assertEqual(self.entries.active_tab(STUDENT), "progress")
        with self.assertRaises(ValidationError):
            self.entries.set_active_tab(STUDENT, "lainnya")


# =========================
# Workflow keputusan & ringkasan
# =========================

class WorkflowDecisionTests(SimpleTestCase):
    def setUp(self):
        self.workflow = make_workflow()

    def test_setujui_entri(self):
        self.workflow.save_day(STUDENT, 1, "Monday", "A")
        entry = self.workflow.approve_entry(STUDENT, 1, "Monday", SUPERVISOR, expected_revision=1)
        self.assertEqual(entry.status, EntryStatus.APPROVED)
        self.assertEqual(self.workflow.entries.entry(STUDENT, 1, "Monday").status, EntryStatus.APPROVED)

    def test_keputusan_basi_setelah_mahasiswa_menyimpan_ulang(self):
        self.workflow.save_day(STUDENT, 1, "Monday", "Versi pertama")
        # pembimbing membuka halaman saat revisi 1
        seen_revision = self.workflow.entries.entry(STUDENT, 1, "Monday").revision
        self.workflow.save_day(STUDENT, 1, "Monday", "Versi kedua")

        with self.assertLogs("logbook.workflow", level="WARNING"):
            with self.assertRaises(StaleTransition):
                self.workflow.approve_entry(
                    STUDENT, 1, "Monday", SUPERVISOR, expected_revision=seen_revision
                )

        current = self.workflow.entries.entry(STUDENT, 1, "Monday")
        self.assertEqual(current.status, EntryStatus.SUBMITTED)
        self.assertEqual(current.text, "Versi kedua")

    def test_keputusan_basi_jika_sudah_diputuskan(self):
        self.workflow.save_day(STUDENT, 1, "Monday", "A")
        self.workflow.approve_entry(STUDENT, 1, "Monday", SUPERVISOR, expected_revision=1)
        with self.assertRaises(StaleTransition):
            self.workflow.reject_entry(STUDENT, 1, "Monday", SUPERVISOR, expected_revision=1)

    def test_setujui_dua_kali_tanpa_revisi(self):
        self.workflow.save_day(STUDENT, 1, "Monday", "A")
        self.workflow.approve_entry(STUDENT, 1, "Monday", SUPERVISOR)
        with self.assertRaises(InvalidTransition):
            self.workflow.approve_entry(STUDENT, 1, "Monday", SUPERVISOR)

    def test_entri_kosong_tidak_bisa_diputuskan(self):
        with self.assertRaises(InvalidTransition):
            self.workflow.approve_entry(STUDENT, 1, "Wednesday", SUPERVISOR)

    def test_bukan_pembimbing(self):
        self.workflow.save_day(STUDENT, 1, "Monday", "A")
        with self.assertRaises(PermissionDenied):
            self.workflow.approve_entry(STUDENT, 1, "Monday", "lain@kampus.ac.id")

    def test_tolak_dengan_catatan_lalu_simpan_ulang(self):
        self.workflow.save_day(STUDENT, 1, "Monday", "A")
        entry = self.workflow.reject_entry(
            STUDENT, 1, "Monday", SUPERVISOR, expected_revision=1, comment="Kurang detail"
        )
        self.assertEqual(entry.status, EntryStatus.REJECTED)
        self.assertEqual(entry.comment, "Kurang detail")

        entry = self.workflow.save_day(STUDENT, 1, "Monday", "A lebih detail")
        self.assertEqual(entry.status, EntryStatus.SUBMITTED)
        self.assertEqual(entry.comment, "")

    def test_antrean_review_hanya_entri_submitted(self):
        self.workflow.save_day(STUDENT, 1, "Monday", "A")
        self.workflow.save_day(STUDENT, 1, "Tuesday", "B")
        self.workflow.save_day(STUDENT, 2, "Friday", "C")
        self.workflow.approve_entry(STUDENT, 1, "Tuesday", SUPERVISOR)

        queue = self.workflow.review_queue(STUDENT)
        self.assertEqual([(e.week, e.day) for e in queue], [(1, Day.MONDAY), (2, Day.FRIDAY)])


class WorkflowProgressTests(SimpleTestCase):
    def setUp(self):
        self.workflow = make_workflow()

    def _fill(self, week, days, approve=True):
        for day in days:
            self.workflow.save_day(STUDENT, week, day, f"Aktivitas {day}")
            if approve:
                self.workflow.approve_entry(STUDENT, week, day, SUPERVISOR)

    def test_ringkasan_progres(self):
        self._fill(1, ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"])
        self._fill(2, ["Monday", "Tuesday"])

        first = self.workflow.progress(STUDENT)
        second = self.workflow.progress(STUDENT)

        self.assertEqual(first, second)
        self.assertEqual(first.total_entries, 7)
        self.assertEqual(first.weeks_completed, 1)
        self.assertEqual(first.weeks_with_entries, (1, 2))
        self.assertEqual(first.completion, 25.0)

    def test_minggu_dengan_empat_hari_belum_lengkap(self):
        self._fill(1, ["Monday", "Tuesday", "Wednesday", "Thursday"])
        self.assertFalse(is_week_complete(self.workflow.entries.read_week(STUDENT, 1)))
        self.assertEqual(self.workflow.progress(STUDENT).weeks_completed, 0)

    def test_minggu_dengan_entri_belum_disetujui_belum_lengkap(self):
        self._fill(1, ["Monday", "Tuesday", "Wednesday", "Thursday"])
        self._fill(1, ["Friday"], approve=False)
        self.assertEqual(self.workflow.progress(STUDENT).total_entries, 5)
        self.assertEqual(self.workflow.progress(STUDENT).weeks_completed, 0)

    def test_skenario_lengkap_dari_request_sampai_minggu_selesai(self):
        workflow = make_workflow(approved=False)
        sari = SimpleNamespace(email=SUPERVISOR, name="Bu Sari")

        workflow.registry.request_supervision(STUDENT, sari)
        with self.assertRaises(InvalidTransition):
            workflow.save_day(STUDENT, 1, "Monday", "A")

        workflow.registry.decide(STUDENT, "approved", SUPERVISOR)
        for day in ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday"):
            entry = workflow.save_day(STUDENT, 1, day, f"Aktivitas {day}")
            workflow.approve_entry(STUDENT, 1, day, SUPERVISOR, expected_revision=entry.revision)

        progress = workflow.progress(STUDENT)
        self.assertEqual(progress.weeks_completed, 1)
        self.assertEqual(progress.total_entries, 5)


# =========================
# Envelope respons backend
# =========================

class EnvelopeTests(SimpleTestCase):
    def test_unwrap_list_berbagai_bentuk(self):
        self.assertEqual(unwrap_list([1, 2]), [1, 2])
        self.assertEqual(unwrap_list({"data": [1]}), [1])
        self.assertEqual(unwrap_list({"data": {"data": [2]}}), [2])
        self.assertEqual(unwrap_list({"data": "x"}), [])
        self.assertEqual(unwrap_list(None), [])

    def test_unwrap_object(self):
        self.assertEqual(unwrap_object({"data": {"data": {"id": 1}}}), {"id": 1})
        self.assertEqual(unwrap_object({"id": 2}), {"id": 2})
        self.assertEqual(unwrap_object([1]), {})

    def test_decode_entri_mingguan(self):
        payload = {
            "data": {
                "entries": [
                    {
                        "id": 7,
                        "day": 1,
                        "activity": "Rapat",
                        "status": "pending",
                        "entry_date": "2025-01-06T00:00:00.000Z",
                        "hours": "4",
                    },
                    {"id": 8, "day": 6, "activity": "Sabtu"},
                ],
                "size": 12,
                "logbook": {"status": "in_progress"},
                "total_entries": 1,
                "is_complete": False,
            }
        }
        week = decode_week_entries(payload, week=2)

        self.assertEqual(week.week, 2)
        self.assertEqual(week.size, 12)
        self.assertEqual(week.logbook_status, "in_progress")
        self.assertEqual(week.total_entries, 1)
        self.assertFalse(week.is_complete)
        self.assertEqual(len(week.entries), 1)

        entry = week.entries[0]
        self.assertEqual(entry.id, "7")
        self.assertEqual(entry.day, Day.MONDAY)
        self.assertEqual(entry.status, EntryStatus.SUBMITTED)
        self.assertEqual(entry.entry_date, "2025-01-06")
        self.assertEqual(entry.hours, 4.0)

    def test_decode_entri_dari_array_langsung(self):
        week = decode_week_entries([{"id": 1, "day": "Friday", "activity": "X", "status": "approved"}])
        self.assertIsNone(week.week)
        self.assertEqual(week.entries[0].day, Day.FRIDAY)
        self.assertEqual(week.entries[0].status, EntryStatus.APPROVED)

    def test_decode_logbook_dengan_pembimbing(self):
        payload = {
            "data": [
                {
                    "id": 3,
                    "status": "in_progress",
                    "size": "10",
                    "supervisor": {
                        "email": "Sari@Kampus.ac.id",
                        "title": "Dr.",
                        "surname": "Sari",
                        "firstname": "Dewi",
                    },
                }
            ]
        }
        logbook = decode_logbook(payload)
        self.assertEqual(logbook.id, "3")
        self.assertEqual(logbook.size, 10)
        self.assertEqual(logbook.supervisor_email, "sari@kampus.ac.id")
        self.assertEqual(logbook.supervisor_name, "Dr. Sari Dewi")
        self.assertEqual(logbook.supervision_status, SupervisionStatus.APPROVED)

    def test_decode_logbook_tanpa_pembimbing(self):
        logbook = decode_logbook({"data": {"id": 4, "status": "pending", "size": 99}})
        self.assertEqual(logbook.supervision_status, SupervisionStatus.PENDING)
        self.assertIsNone(logbook.size)
        self.assertIsNone(decode_logbook({}))

    def test_extract_message(self):
        self.assertEqual(extract_message({"message": "OK"}, "default"), "OK")
        self.assertEqual(extract_message({"data": {"message": "Dalam"}}, "default"), "Dalam")
        self.assertEqual(extract_message({"message": ""}, "default"), "default")

    def test_decode_request_pembimbing(self):
        payload = {
            "data": {
                "data": [
                    {"id": 1, "student_email": "A@Kampus.ac.id", "status": "accepted"},
                    {"uuid": "u-2", "member": {"email": "b@kampus.ac.id"}},
                    {"student_email": "tanpa-id@kampus.ac.id"},
                ]
            }
        }
        requests = decode_supervisor_requests(payload)
        self.assertEqual([r.id for r in requests], ["1", "u-2"])
        self.assertEqual(requests[0].student_email, "a@kampus.ac.id")
        self.assertEqual(requests[0].status, SupervisionStatus.APPROVED)
        self.assertEqual(requests[1].status, SupervisionStatus.PENDING)


# =========================
# Klien backend
# =========================

class BackendClientTests(SimpleTestCase):
    def test_header_dan_body_simpan_entri(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["auth"] = request.headers.get("Authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"data": {"id": 11}})

        payload = mock_client(handler).save_entry(2, 3, "Rapat", entry_date="2025-01-08", hours=2)

        self.assertEqual(payload, {"data": {"id": 11}})
        self.assertEqual(seen["path"], "/api/logbook/entries")
        self.assertEqual(seen["auth"], "Bearer rahasia")
        self.assertEqual(
            seen["body"],
            {"activity": "Rapat", "week": 2, "day": 3, "entry_date": "2025-01-08", "hours": 2},
        )

    def test_error_status_memakai_pesan_backend(self):
        def handler(request):
            return httpx.Response(422, json={"message": "Minggu tidak valid"})

        with self.assertLogs("logbook.client", level="ERROR"):
            with self.assertRaises(TransportError) as ctx:
                mock_client(handler).fetch_week_entries(1)
        self.assertEqual(ctx.exception.message, "Minggu tidak valid")
        self.assertEqual(ctx.exception.status_code, 422)

    def test_koneksi_gagal(self):
        def handler(request):
            raise httpx.ConnectError("tidak bisa terhubung", request=request)

        with self.assertLogs("logbook.client", level="ERROR"):
            with self.assertRaises(TransportError) as ctx:
                mock_client(handler).fetch_my_logbook()
        self.assertIsNone(ctx.exception.status_code)

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("lambat", request=request)

        with self.assertLogs("logbook.client", level="ERROR"):
            with self.assertRaises(TransportError) as ctx:
                mock_client(handler).approve_entry(5)
        self.assertIn("tidak merespons", ctx.exception.message)

    def test_respons_kosong(self):
        def handler(request):
            return httpx.Response(204)

        self.assertIsNone(mock_client(handler).update_supervisor_request(3, "accepted"))

    def test_update_dan_daftar_request_pembimbing(self):
        seen = []

        def handler(request):
            body = json.loads(request.content) if request.content else None
            seen.append((request.method, request.url.path, body))
            return httpx.Response(200, json={"data": []})

        client = mock_client(handler)
        client.update_supervisor_request(31, "accepted")
        client.fetch_supervisor_requests("pending")
        client.fetch_supervisor_requests()

        self.assertEqual(
            seen,
            [
                ("PUT", "/api/logbook/supervisor-request/31", {"status": "accepted"}),
                ("GET", "/api/logbook/supervisor-request/pending", None),
                ("GET", "/api/logbook/supervisor-request", None),
            ],
        )

    def test_client_ditutup_setelah_dipakai(self):
        with mock_client(lambda request: httpx.Response(204)) as client:
            client.fetch_my_logbook()
        self.assertTrue(client._client.is_closed)


class WorkflowBackendTests(SimpleTestCase):
    def test_simpan_mengambil_id_dari_backend(self):
        def handler(request):
            return httpx.Response(201, json={"data": {"id": 99}})

        workflow = make_workflow(client=mock_client(handler))
        entry = workflow.save_day(STUDENT, 1, "Monday", "A")
        self.assertEqual(entry.remote_id, "99")
        self.assertEqual(workflow.entries.entry(STUDENT, 1, "Monday").remote_id, "99")

    def test_simpan_gagal_mengembalikan_slot(self):
        def handler(request):
            return httpx.Response(500, json={"message": "Server error"})

        workflow = make_workflow(client=mock_client(handler))
        with self.assertLogs("logbook.client", level="ERROR"):
            with self.assertRaises(TransportError):
                workflow.save_day(STUDENT, 1, "Monday", "A")
        self.assertIsNone(workflow.entries.entry(STUDENT, 1, "Monday"))

    def test_simpan_ulang_gagal_mempertahankan_entri_lama(self):
        responses = [httpx.Response(201, json={"id": 5}), httpx.Response(503)]

        def handler(request):
            return responses.pop(0)

        workflow = make_workflow(client=mock_client(handler))
        workflow.save_day(STUDENT, 1, "Monday", "Lama")
        with self.assertLogs("logbook.client", level="ERROR"):
            with self.assertRaises(TransportError):
                workflow.save_day(STUDENT, 1, "Monday", "Baru")

        entry = workflow.entries.entry(STUDENT, 1, "Monday")
        self.assertEqual(entry.text, "Lama")
        self.assertEqual(entry.revision, 1)

    def test_setujui_memanggil_backend_jika_ada_remote_id(self):
        paths = []

        def handler(request):
            paths.append((request.method, request.url.path))
            return httpx.Response(200, json={"data": {"id": 42}})

        workflow = make_workflow(client=mock_client(handler))
        workflow.save_day(STUDENT, 1, "Monday", "A")
        workflow.approve_entry(STUDENT, 1, "Monday", SUPERVISOR, expected_revision=1)

        self.assertEqual(paths[-1], ("POST", "/api/logbook/entries/approve/42"))

    def test_setujui_gagal_di_backend_tidak_mengubah_status(self):
        responses = [httpx.Response(201, json={"id": 42}), httpx.Response(500)]

        def handler(request):
            return responses.pop(0)

        workflow = make_workflow(client=mock_client(handler))
        workflow.save_day(STUDENT, 1, "Monday", "A")
        with self.assertLogs("logbook.client", level="ERROR"):
            with self.assertRaises(TransportError):
                workflow.approve_entry(STUDENT, 1, "Monday", SUPERVISOR, expected_revision=1)
        self.assertEqual(workflow.entries.entry(STUDENT, 1, "Monday").status, EntryStatus.SUBMITTED)


class RefreshFromBackendTests(TestCase):
    def setUp(self):
        self.student = Student.objects.create(
            membership_no="M-001",
            name="Budi",
            email=STUDENT,
        )
        self.logbook = Logbook.objects.create(student=self.student)

    def test_metadata_dan_entri_minggu_disinkronkan(self):
        def handler(request):
            if request.url.path == "/api/logbook/me":
                return httpx.Response(
                    200,
                    json={
                        "data": [
                            {
                                "id": 5,
                                "status": "in_progress",
                                "size": 8,
                                "supervisor": {"email": SUPERVISOR, "name": "Bu Sari"},
                            }
                        ]
                    },
                )
            if request.url.path == "/api/logbook/5/entries/week/1":
                return httpx.Response(
                    200,
                    json={"entries": [{"id": 70, "day": 2, "activity": "Dari server", "status": "approved"}]},
                )
            return httpx.Response(404, json={"message": "Tidak ditemukan"})

        workflow = LogbookWorkflow(MemoryStore(), client=mock_client(handler))
        remote = workflow.refresh_from_backend(STUDENT, logbook=self.logbook, week=1)

        self.assertEqual(remote.id, "5")
        self.logbook.refresh_from_db()
        self.assertEqual(self.logbook.size, 8)
        self.assertEqual(self.logbook.remote_id, "5")
        self.assertEqual(workflow.total_weeks, 8)
        self.assertTrue(workflow.registry.is_supervisor_of(STUDENT, SUPERVISOR))

        entry = workflow.entries.entry(STUDENT, 1, "Tuesday")
        self.assertEqual(entry.text, "Dari server")
        self.assertEqual(entry.status, EntryStatus.APPROVED)
        self.assertEqual(entry.remote_id, "70")

    def test_keputusan_lokal_tidak_hilang_setelah_sinkronisasi(self):
        def handler(request):
            if request.url.path == "/api/logbook/me":
                return httpx.Response(200, json={"data": [{"id": 7, "status": "in_progress", "size": 4}]})
            return httpx.Response(404, json={"message": "Tidak ditemukan"})

        workflow = LogbookWorkflow(MemoryStore(), client=mock_client(handler))
        workflow.registry.request_supervision(STUDENT, SimpleNamespace(email=SUPERVISOR, name="Bu Sari"))
        workflow.registry.decide(STUDENT, "approved", SUPERVISOR)

        workflow.refresh_from_backend(STUDENT, logbook=self.logbook)

        self.assertEqual(workflow.registry.status(STUDENT), SupervisionStatus.APPROVED)
        self.assertTrue(workflow.registry.is_supervisor_of(STUDENT, SUPERVISOR))

    def test_status_ditolak_dari_backend_tetap_berlaku(self):
        def handler(request):
            return httpx.Response(200, json={"data": {"id": 7, "status": "rejected"}})

        workflow = LogbookWorkflow(MemoryStore(), client=mock_client(handler))
        workflow.registry.request_supervision(STUDENT, SimpleNamespace(email=SUPERVISOR, name="Bu Sari"))

        workflow.refresh_from_backend(STUDENT, logbook=self.logbook)
        self.assertEqual(workflow.registry.status(STUDENT), SupervisionStatus.REJECTED)

    def _refresh_with_status(self, status):
        def handler(request):
            return httpx.Response(200, json={"data": {"id": 7, "status": status}})

        workflow = LogbookWorkflow(MemoryStore(), client=mock_client(handler))
        workflow.refresh_from_backend(STUDENT, logbook=self.logbook)
        self.logbook.refresh_from_db()
        return self.logbook.status

    def test_status_logbook_tidak_dikenal_diabaikan(self):
        self.assertEqual(self._refresh_with_status("menunggu_verifikasi_admin"), LogbookStatus.IN_PROGRESS)
        self.assertEqual(self.logbook.get_status_display(), "Sedang berjalan")

    def test_status_logbook_dikenal_disimpan(self):
        self.assertEqual(self._refresh_with_status("Assessable"), LogbookStatus.ASSESSABLE)

    def test_status_dinilai_tanpa_penilaian_lokal_diabaikan(self):
        self.assertEqual(self._refresh_with_status("passed"), LogbookStatus.IN_PROGRESS)

    def test_tanpa_klien_tidak_melakukan_apa_apa(self):
        workflow = LogbookWorkflow(MemoryStore())
        self.assertIsNone(workflow.refresh_from_backend(STUDENT, logbook=self.logbook))


class SupervisionBackendTests(SimpleTestCase):
    def setUp(self):
        self.calls = []
        self.responses = {}
        self.sari = SimpleNamespace(email=SUPERVISOR, name="Bu Sari", membership_no="P-001")

    def handler(self, request):
        body = json.loads(request.content) if request.content else None
        self.calls.append((request.method, request.url.path, body))
        response = self.responses.get((request.method, request.url.path))
        if response is None:
            return httpx.Response(404, json={"message": "Tidak ditemukan"})
        return response

    def workflow(self, approved=False):
        return make_workflow(client=mock_client(self.handler), approved=approved)

    def test_request_dikirim_ke_backend_dan_id_disimpan(self):
        self.responses[("POST", "/api/logbook/supervisor-request")] = httpx.Response(
            201, json={"data": {"id": 31}}
        )
        workflow = self.workflow()

        supervision = workflow.request_supervision(STUDENT, self.sari, "Mohon bimbingannya")

        self.assertEqual(supervision.status, SupervisionStatus.PENDING)
        self.assertEqual(
            self.calls,
            [("POST", "/api/logbook/supervisor-request", {"supervisor_id": "P-001", "message": "Mohon bimbingannya"})],
        )
        self.assertEqual(workflow.registry.request_id(STUDENT), "31")

    def test_request_yang_tidak_diizinkan_tidak_dikirim(self):
        workflow = self.workflow(approved=True)

        with self.assertRaises(InvalidTransition):
            workflow.request_supervision(STUDENT, self.sari, "Lagi")
        with self.assertRaises(ValidationError):
            workflow.request_supervision(STUDENT, SimpleNamespace(email=STUDENT, name="Budi"), "Saya")

        self.assertEqual(self.calls, [])
        self.assertEqual(workflow.registry.status(STUDENT), SupervisionStatus.APPROVED)

    def test_request_gagal_di_backend_tidak_disimpan(self):
        self.responses[("POST", "/api/logbook/supervisor-request")] = httpx.Response(500)
        workflow = self.workflow()

        with self.assertLogs("logbook.client", level="ERROR"):
            with self.assertRaises(TransportError):
                workflow.request_supervision(STUDENT, self.sari, "Mohon")
        self.assertEqual(workflow.registry.status(STUDENT), SupervisionStatus.NONE)

    def test_keputusan_dikirim_ke_backend_sebelum_disimpan(self):
        self.responses[("POST", "/api/logbook/supervisor-request")] = httpx.Response(201, json={"id": 31})
        self.responses[("PUT", "/api/logbook/supervisor-request/31")] = httpx.Response(200, json={})
        workflow = self.workflow()
        workflow.request_supervision(STUDENT, self.sari, "Mohon")

        supervision = workflow.decide_supervision(STUDENT, "approved", SUPERVISOR)

        self.assertTrue(supervision.is_approved)
        self.assertEqual(self.calls[-1], ("PUT", "/api/logbook/supervisor-request/31", {"status": "accepted"}))

    def test_id_request_dicari_di_backend_jika_belum_ada(self):
        self.responses[("GET", "/api/logbook/supervisor-request/pending")] = httpx.Response(
            200,
            json={
                "data": [
                    {"id": 45, "student_email": "lain@kampus.ac.id"},
                    {"id": 44, "student": {"email": STUDENT.upper()}},
                ]
            },
        )
        self.responses[("PUT", "/api/logbook/supervisor-request/44")] = httpx.Response(200, json={})
        workflow = self.workflow()
        workflow.registry.request_supervision(STUDENT, self.sari)

        workflow.decide_supervision(STUDENT, "rejected", SUPERVISOR)

        self.assertEqual(self.calls[-1], ("PUT", "/api/logbook/supervisor-request/44", {"status": "rejected"}))
        self.assertEqual(workflow.registry.status(STUDENT), SupervisionStatus.REJECTED)

    def test_keputusan_gagal_di_backend_tidak_mengubah_status(self):
        self.responses[("POST", "/api/logbook/supervisor-request")] = httpx.Response(201, json={"id": 31})
        self.responses[("PUT", "/api/logbook/supervisor-request/31")] = httpx.Response(
            500, json={"message": "Server error"}
        )
        workflow = self.workflow()
        workflow.request_supervision(STUDENT, self.sari, "Mohon")

        with self.assertLogs("logbook.client", level="ERROR"):
            with self.assertRaises(TransportError):
                workflow.decide_supervision(STUDENT, "approved", SUPERVISOR)
        self.assertEqual(workflow.registry.status(STUDENT), SupervisionStatus.PENDING)

    def test_keputusan_pembimbing_lain_tidak_dikirim(self):
        workflow = self.workflow()
        workflow.registry.request_supervision(STUDENT, self.sari, request_id="31")

        with self.assertRaises(PermissionDenied):
            workflow.decide_supervision(STUDENT, "approved", "lain@kampus.ac.id")
        self.assertEqual(self.calls, [])


# =========================
# Penilaian
# =========================

VALID_SCORES = {
    "details": 8,
    "practicality": "7",
    "correctness": 9,
    "creativity": 6.0,
    "presentation": 8,
}


class CleanAssessmentTests(SimpleTestCase):
    def test_nilai_valid(self):
        cleaned = clean_assessment(VALID_SCORES, "pass")
        self.assertEqual(cleaned["practicality"], 7)
        self.assertEqual(cleaned["creativity"], 6)
        self.assertEqual(cleaned["result"], "pass")

    def test_nilai_tidak_valid_dilaporkan_per_field(self):
        scores = {
            "details": None,
            "practicality": "-1",
            "correctness": "3.5",
            "creativity": float("nan"),
            "presentation": "abc",
        }
        with self.assertRaises(ValidationError) as ctx:
            clean_assessment(scores, "PASS")
        self.assertEqual(
            set(ctx.exception.message_dict),
            {"details", "practicality", "correctness", "creativity", "presentation", "result"},
        )


class SubmitAssessmentTests(TestCase):
    def setUp(self):
        self.user_asesor = User.objects.create_user(username="asesor", password="test")
        self.assessor = Supervisor.objects.create(
            user=self.user_asesor,
            membership_no="P-010",
            name="Pak Asesor",
            email="asesor@kampus.ac.id",
            is_assessor=True,
        )
        self.student = Student.objects.create(
            membership_no="M-002",
            name="Budi",
            email=STUDENT,
        )
        self.logbook = Logbook.objects.create(student=self.student, assessor=self.assessor)

    def test_penilaian_mengubah_status_menjadi_graded(self):
        received = []

        def on_assessed(sender, **kwargs):
            received.append(kwargs["logbook"].pk)

        logbook_assessed.connect(on_assessed)
        self.addCleanup(logbook_assessed.disconnect, on_assessed)

        outcome = submit_assessment(
            self.logbook, VALID_SCORES, "pass", comment=" Bagus ", assessor=self.assessor
        )

        self.logbook.refresh_from_db()
        self.assertEqual(self.logbook.status, LogbookStatus.GRADED)
        self.assertTrue(self.logbook.is_graded)
        self.assertEqual(outcome.assessment.total_score, 38)
        self.assertEqual(outcome.assessment.comment, "Bagus")
        self.assertEqual(outcome.message, "Logbook berhasil dinilai.")
        self.assertEqual(received, [self.logbook.pk])

    def test_penilaian_kedua_ditolak(self):
        submit_assessment(self.logbook, VALID_SCORES, "pass", assessor=self.assessor)
        with self.assertRaises(InvalidTransition):
            submit_assessment(self.logbook, VALID_SCORES, "fail", assessor=self.assessor)
        self.assertEqual(Assessment.objects.filter(logbook=self.logbook).count(), 1)
        self.assertEqual(self.logbook.assessment.result, "pass")

    def test_logbook_berstatus_passed_tidak_bisa_dinilai(self):
        self.logbook.status = LogbookStatus.PASSED
        self.logbook.save()
        with self.assertRaises(InvalidTransition):
            submit_assessment(self.logbook, VALID_SCORES, "pass")

    def test_nilai_tidak_valid_tidak_mengubah_status(self):
        with self.assertRaises(ValidationError):
            submit_assessment(self.logbook, dict(VALID_SCORES, details=-3), "pass")
        self.logbook.refresh_from_db()
        self.assertEqual(self.logbook.status, LogbookStatus.IN_PROGRESS)
        self.assertFalse(Assessment.objects.exists())

    def test_penilaian_tidak_bisa_diubah(self):
        outcome = submit_assessment(self.logbook, VALID_SCORES, "pass")
        assessment = outcome.assessment
        assessment.details = 1
        with self.assertRaises(InvalidTransition):
            assessment.save()

    def test_penilaian_dikirim_ke_backend(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"message": "Nilai tersimpan", "data": {"status": "passed"}})

        self.logbook.remote_id = "77"
        self.logbook.save()

        outcome = submit_assessment(
            self.logbook, VALID_SCORES, "pass", comment="Oke", client=mock_client(handler)
        )

        self.assertEqual(seen["path"], "/api/logbook/77/assess")
        self.assertEqual(seen["body"]["comment"], "Oke")
        self.assertEqual(seen["body"]["practicality"], 7)
        self.assertEqual(outcome.message, "Nilai tersimpan")
        self.assertEqual(outcome.logbook.status, LogbookStatus.PASSED)

    def test_backend_gagal_tidak_menyimpan_penilaian(self):
        def handler(request):
            return httpx.Response(500, json={"error": "Gagal"})

        self.logbook.remote_id = "77"
        self.logbook.save()

        with self.assertLogs("logbook.client", level="ERROR"):
            with self.assertRaises(TransportError):
                submit_assessment(self.logbook, VALID_SCORES, "pass", client=mock_client(handler))

        self.logbook.refresh_from_db()
        self.assertEqual(self.logbook.status, LogbookStatus.IN_PROGRESS)
        self.assertFalse(Assessment.objects.exists())
