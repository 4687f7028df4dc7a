from django.contrib import admin

from .models import Student, Supervisor

# import dari app lain untuk ringkasan logbook
from logbook.models import Logbook


class LogbookInline(admin.TabularInline):
    model = Logbook
    fk_name = "student"
    extra = 0
    fields = ("stage", "size", "status", "assessor")
    readonly_fields = ("stage", "size", "status", "assessor")
    can_delete = False
    show_change_link = True


@admin.register(Supervisor)
class SupervisorAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "membership_no",
        "email",
        "is_assessor",
        "jumlah_logbook_dinilai",
    )
    search_fields = ("name", "membership_no", "email")
    list_filter = ("is_assessor",)

    def jumlah_logbook_dinilai(self, obj):
        return obj.assessed_logbooks.count()
    jumlah_logbook_dinilai.short_description = "Logbook diases"


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    inlines = [LogbookInline]

    list_display = (
        "name",
        "membership_no",
        "email",
        "onboarded",
        "total_logbook",
    )
    search_fields = ("name", "membership_no", "email")
    list_filter = ("onboarded",)

    def total_logbook(self, obj):
        return obj.logbooks.count()
    total_logbook.short_description = "Logbook"
