# backend/masterdata/tests.py

from django.contrib.auth.models import AnonymousUser, User
from django.test import TestCase

from masterdata.identity import Role, actor_for_user
from masterdata.models import Student, Supervisor


class ActorForUserTests(TestCase):
    def setUp(self):
        self.user_mhs = User.objects.create_user(username="mhs1", password="test")
        self.user_pbb = User.objects.create_user(username="pbb1", password="test")
        self.user_asr = User.objects.create_user(username="asr1", password="test")

        self.student = Student.objects.create(
            user=self.user_mhs,
            membership_no="M-001",
            name="Mahasiswa 1",
            email="Mhs1@Kampus.ac.id",
        )
        Supervisor.objects.create(
            user=self.user_pbb,
            membership_no="P-001",
            name="Pembimbing 1",
            email="pbb1@kampus.ac.id",
        )
        Supervisor.objects.create(
            user=self.user_asr,
            membership_no="P-002",
            name="Asesor 1",
            email="asr1@kampus.ac.id",
            is_assessor=True,
        )

    def test_mahasiswa(self):
        actor = actor_for_user(self.user_mhs)
        self.assertEqual(actor.role, Role.STUDENT)
        self.assertEqual(actor.email, "mhs1@kampus.ac.id")
        self.assertTrue(actor.is_student)
        self.assertFalse(actor.is_supervisor)

    def test_pembimbing(self):
        actor = actor_for_user(self.user_pbb)
        self.assertEqual(actor.role, Role.SUPERVISOR)
        self.assertTrue(actor.is_supervisor)
        self.assertFalse(actor.is_assessor)

    def test_asesor_juga_dianggap_pembimbing(self):
        actor = actor_for_user(self.user_asr)
        self.assertEqual(actor.role, Role.ACCESSOR)
        self.assertTrue(actor.is_supervisor)
        self.assertTrue(actor.is_assessor)

    def test_staff_tanpa_profil_menjadi_admin(self):
        staff = User.objects.create_user(
            username="admin", password="test", email="admin@kampus.ac.id", is_staff=True
        )
        actor = actor_for_user(staff)
        self.assertEqual(actor.role, Role.ADMIN)

    def test_akun_belum_terhubung(self):
        lain = User.objects.create_user(username="lain", password="test")
        self.assertIsNone(actor_for_user(lain))
        self.assertIsNone(actor_for_user(AnonymousUser()))


class ModelStrTests(TestCase):
    def test_str_menampilkan_nama_dan_nomor_anggota(self):
        student = Student.objects.create(
            membership_no="M-009",
            name="Budi",
            email="budi@kampus.ac.id",
        )
        self.assertEqual(str(student), "Budi (M-009)")
