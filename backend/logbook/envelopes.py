# backend/logbook/envelopes.py
"""
Normalisasi bentuk respons dari backend logbook.

Backend tidak konsisten: daftar bisa dikirim sebagai array langsung,
``{"data": [...]}``, atau ``{"data": {"data": [...]}}``. Semua pembacaan
respons lewat fungsi di modul ini, bukan di tiap pemanggil.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from .states import MAX_WEEKS, Day, EntryStatus, SupervisionStatus


@dataclass
class RemoteEntry:
    id: str
    day: Day
    activity: str = ""
    status: str = EntryStatus.SUBMITTED
    entry_date: Optional[str] = None
    hours: Optional[float] = None


@dataclass
class RemoteWeek:
    week: Optional[int]
    entries: List[RemoteEntry] = field(default_factory=list)
    size: Optional[int] = None
    logbook_status: Optional[str] = None
    total_entries: Optional[int] = None
    is_complete: bool = False


@dataclass
class RemoteLogbook:
    id: str
    status: str = ""
    size: Optional[int] = None
    stage: Optional[int] = None
    supervisor_email: str = ""
    supervisor_name: str = ""
    supervision_status: str = SupervisionStatus.NONE


def unwrap_list(payload) -> list:
    """``Array | {data: Array} | {data: {data: Array}}`` -> list."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        data = payload.get("data")
        if isinstance(data, list):
            return data
        if isinstance(data, dict) and isinstance(data.get("data"), list):
            return data["data"]
    return []


def unwrap_object(payload) -> dict:
    """Ambil objek terdalam dari ``{data: {data: {...}}}`` / ``{data: {...}}`` / ``{...}``."""
    node = payload
    for _ in range(2):
        if isinstance(node, dict) and isinstance(node.get("data"), dict):
            node = node["data"]
    return node if isinstance(node, dict) else {}


def extract_message(payload, default: str) -> str:
    if isinstance(payload, dict):
        if isinstance(payload.get("message"), str) and payload["message"]:
            return payload["message"]
        data = payload.get("data")
        if isinstance(data, dict) and isinstance(data.get("message"), str) and data["message"]:
            return data["message"]
    return default


def extract_status(payload) -> Optional[str]:
    if isinstance(payload, dict):
        if isinstance(payload.get("status"), str):
            return payload["status"]
        data = payload.get("data")
        if isinstance(data, dict) and isinstance(data.get("status"), str):
            return data["status"]
    return None


def error_message(payload) -> Optional[str]:
    if isinstance(payload, dict):
        for key in ("message", "error"):
            if isinstance(payload.get(key), str) and payload[key]:
                return payload[key]
    return None


def _valid_size(value) -> Optional[int]:
    try:
        size = int(value or 0)
    except (TypeError, ValueError):
        return None
    return size if 0 < size <= MAX_WEEKS else None


def _hours(value) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def normalize_entry_status(raw) -> str:
    status = str(raw or "").strip().lower()
    if status in (EntryStatus.APPROVED, EntryStatus.REJECTED, EntryStatus.DRAFT):
        return status
    # "pending" dari backend sama dengan menunggu review
    return EntryStatus.SUBMITTED


def decode_entry(item) -> Optional[RemoteEntry]:
    if not isinstance(item, dict):
        return None
    day = Day.from_number(item.get("day"))
    if day is None:
        day = Day.parse(item.get("day"))
    if day is None:
        return None
    entry_date = item.get("entry_date")
    if entry_date:
        # ISO datetime -> tanggal saja (YYYY-MM-DD)
        entry_date = str(entry_date)[:10]
    return RemoteEntry(
        id=str(item.get("id") or ""),
        day=day,
        activity=str(item.get("activity") or item.get("text") or ""),
        status=normalize_entry_status(item.get("status")),
        entry_date=entry_date or None,
        hours=_hours(item.get("hours")),
    )


def _week_node(payload) -> dict:
    if isinstance(payload, dict):
        if isinstance(payload.get("entries"), list):
            return payload
        data = payload.get("data")
        if isinstance(data, dict):
            if isinstance(data.get("entries"), list):
                return data
            if isinstance(data.get("data"), dict) and isinstance(data["data"].get("entries"), list):
                return data["data"]
    return {}


def decode_week_entries(payload, week=None) -> RemoteWeek:
    node = _week_node(payload)
    items = node["entries"] if node else unwrap_list(payload)

    entries = []
    for item in items:
        entry = decode_entry(item)
        if entry is not None:
            entries.append(entry)

    logbook = node.get("logbook") if isinstance(node.get("logbook"), dict) else {}
    size = _valid_size(node.get("size")) or _valid_size(logbook.get("size"))
    status = logbook.get("status") or node.get("logbook_status")
    total = node.get("total_entries")

    raw_week = node.get("week") or week
    try:
        week_no = int(raw_week) if raw_week else None
    except (TypeError, ValueError):
        week_no = None

    return RemoteWeek(
        week=week_no,
        entries=entries,
        size=size,
        logbook_status=str(status) if status else None,
        total_entries=total if isinstance(total, int) and not isinstance(total, bool) else None,
        is_complete=node.get("is_complete") is True,
    )


def normalize_supervision_status(raw_status, has_supervisor=False) -> str:
    if has_supervisor:
        return SupervisionStatus.APPROVED
    status = str(raw_status or "").strip().lower()
    if status in ("accepted", "approved"):
        return SupervisionStatus.APPROVED
    if status == "pending":
        return SupervisionStatus.PENDING
    if status == "rejected":
        return SupervisionStatus.REJECTED
    return SupervisionStatus.NONE


def _person_name(person: dict) -> str:
    if person.get("name"):
        return str(person["name"])
    parts = [person.get("title"), person.get("surname"), person.get("firstname")]
    full = " ".join(str(p) for p in parts if p).strip()
    return full or str(person.get("email") or "")


def decode_logbook(payload) -> Optional[RemoteLogbook]:
    """Logbook dari ``/api/logbook/<id>`` (objek) atau ``/api/logbook/me`` (daftar)."""
    items = unwrap_list(payload)
    obj = items[0] if items else unwrap_object(payload)
    if not isinstance(obj, dict) or not obj:
        return None
    if isinstance(obj.get("logbook"), dict) and "id" not in obj:
        obj = obj["logbook"]

    supervisor = obj.get("supervisor") if isinstance(obj.get("supervisor"), dict) else None
    raw_status = obj.get("status") or obj.get("logbook_status") or ""
    try:
        stage = int(obj["stage"]) if obj.get("stage") not in (None, "") else None
    except (TypeError, ValueError):
        stage = None

    return RemoteLogbook(
        id=str(obj.get("id") or ""),
        status=str(raw_status),
        size=_valid_size(obj.get("size")),
        stage=stage,
        supervisor_email=str((supervisor or {}).get("email") or "").lower(),
        supervisor_name=_person_name(supervisor) if supervisor else "",
        supervision_status=normalize_supervision_status(raw_status, has_supervisor=supervisor is not None),
    )


@dataclass
class RemoteSupervisorRequest:
    id: str
    student_email: str = ""
    status: str = SupervisionStatus.PENDING


def decode_supervisor_requests(payload) -> List[RemoteSupervisorRequest]:
    """Daftar permintaan pembimbing; item tanpa id dibuang."""
    result = []
    for item in unwrap_list(payload):
        if not isinstance(item, dict):
            continue
        request_id = item.get("id") or item.get("uuid") or item.get("request_id")
        if not request_id:
            continue
        email = item.get("student_email")
        if not email:
            for key in ("member", "student", "user"):
                if isinstance(item.get(key), dict) and item[key].get("email"):
                    email = item[key]["email"]
                    break
        result.append(
            RemoteSupervisorRequest(
                id=str(request_id),
                student_email=str(email or "").strip().lower(),
                status=normalize_supervision_status(item.get("status") or "pending"),
            )
        )
    return result
