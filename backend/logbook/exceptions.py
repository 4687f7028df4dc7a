# backend/logbook/exceptions.py
"""
Error workflow logbook.

Validasi input memakai ``django.core.exceptions.ValidationError`` dan akses
oleh pembimbing yang bukan pembimbing mahasiswa tersebut memakai
``django.core.exceptions.PermissionDenied``. Kelas di bawah ini khusus
untuk kondisi status dan kegagalan backend.
"""


class LogbookError(Exception):
    """Basis semua error workflow logbook."""

    default_message = "Operasi logbook gagal."

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidTransition(LogbookError):
    """Aksi dijalankan terhadap entitas yang statusnya tidak sesuai."""

    default_message = "Perubahan status tidak diizinkan."

    def __init__(self, message=None, current=None, event=None):
        self.current = current
        self.event = event
        super().__init__(message)


class StaleTransition(LogbookError):
    """Status berubah di antara saat aksi dibuka dan saat aksi disimpan."""

    default_message = (
        "Entri sudah berubah sejak halaman dibuka. "
        "Silakan muat ulang dan periksa kembali isinya."
    )


class TransportError(LogbookError):
    """Kegagalan jaringan/backend saat memanggil layanan logbook."""

    default_message = "Gagal menghubungi server logbook. Silakan coba lagi."

    def __init__(self, message=None, status_code=None):
        self.status_code = status_code
        super().__init__(message)
