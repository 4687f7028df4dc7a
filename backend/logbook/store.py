# backend/logbook/store.py
"""
Penyimpanan key-value untuk data logbook.

Nilai disimpan dalam bentuk JSON. Komponen workflow menerima ``Store``
lewat konstruktor, sehingga test bisa memakai ``MemoryStore``.
"""
import json

from .models import StoredValue

NOOP_KEY = "__noop__"


def _usable(key) -> bool:
    return bool(key) and key != NOOP_KEY


def _email(email) -> str:
    return str(email or "").strip().lower()


def entries_key(email, week) -> str:
    email = _email(email)
    return f"student_entries_{email}_week_{week}" if email else NOOP_KEY


def supervision_status_key(email) -> str:
    email = _email(email)
    return f"student_supervision_status_{email}" if email else NOOP_KEY


def supervisor_email_key(student_email) -> str:
    email = _email(student_email)
    return f"student_supervisor_email_{email}" if email else NOOP_KEY


def supervision_request_id_key(student_email) -> str:
    email = _email(student_email)
    return f"student_supervision_request_id_{email}" if email else NOOP_KEY


def supervisor_name_key(student_email) -> str:
    email = _email(student_email)
    return f"student_supervisor_name_{email}" if email else NOOP_KEY


def supervisor_students_key(supervisor_email) -> str:
    email = _email(supervisor_email)
    return f"supervisor_students_{email}" if email else NOOP_KEY


def selected_week_key(email) -> str:
    email = _email(email)
    return f"student_selected_week_{email}" if email else NOOP_KEY


def active_tab_key(email) -> str:
    email = _email(email)
    return f"student_active_tab_{email}" if email else NOOP_KEY


class Store:
    """Interface penyimpanan: ``get`` / ``set`` / ``remove`` per key."""

    def get(self, key, default=None):
        raise NotImplementedError

    def set(self, key, value):
        raise NotImplementedError

    def remove(self, key):
        raise NotImplementedError


class MemoryStore(Store):
    def __init__(self, initial=None):
        self._data = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key, default=None):
        if not _usable(key) or key not in self._data:
            return default
        raw = self._data[key]
        try:
            return json.loads(raw)
        except ValueError:
            # nilai lama yang tersimpan sebagai string biasa
            return raw

    def set(self, key, value):
        if not _usable(key):
            return
        self._data[key] = json.dumps(value)

    def set_raw(self, key, raw: str):
        if _usable(key):
            self._data[key] = raw

    def remove(self, key):
        if _usable(key):
            self._data.pop(key, None)

    def keys(self):
        return sorted(self._data)


class DatabaseStore(Store):
    """Store yang disimpan di tabel ``StoredValue``."""

    def get(self, key, default=None):
        if not _usable(key):
            return default
        row = StoredValue.objects.filter(key=key).only("value").first()
        if row is None:
            return default
        return row.value

    def set(self, key, value):
        if not _usable(key):
            return
        StoredValue.objects.update_or_create(key=key, defaults={"value": value})

    def remove(self, key):
        if not _usable(key):
            return
        StoredValue.objects.filter(key=key).delete()
