from django.contrib import admin

from .models import Assessment, Logbook, StoredValue
from .states import GRADED_STATUSES


class GradedFilter(admin.SimpleListFilter):
    title = "Sudah dinilai"
    parameter_name = "sudah_dinilai"

    def lookups(self, request, model_admin):
        return (
            ("YA", "Sudah dinilai"),
            ("TIDAK", "Belum dinilai"),
        )

    def queryset(self, request, queryset):
        if self.value() == "YA":
            return queryset.filter(status__in=GRADED_STATUSES)
        if self.value() == "TIDAK":
            return queryset.exclude(status__in=GRADED_STATUSES)
        return queryset


class AssessmentInline(admin.StackedInline):
    model = Assessment
    extra = 0
    can_delete = False
    readonly_fields = (
        "assessor",
        "details",
        "practicality",
        "correctness",
        "creativity",
        "presentation",
        "comment",
        "result",
        "created_at",
    )

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Logbook)
class LogbookAdmin(admin.ModelAdmin):
    inlines = [AssessmentInline]

    list_display = (
        "student",
        "stage",
        "size",
        "status",
        "assessor",
        "ada_penilaian",
        "updated_at",
    )
    list_filter = ("status", "stage", "assessor", GradedFilter)
    search_fields = ("student__name", "student__email", "student__membership_no", "remote_id")
    autocomplete_fields = ("student", "assessor")

    def ada_penilaian(self, obj):
        return hasattr(obj, "assessment")
    ada_penilaian.boolean = True
    ada_penilaian.short_description = "Dinilai?"


@admin.register(Assessment)
class AssessmentAdmin(admin.ModelAdmin):
    list_display = ("logbook", "assessor", "result", "total_score", "created_at")
    list_filter = ("result", "assessor")
    search_fields = ("logbook__student__name", "logbook__student__email")

    def total_score(self, obj):
        return obj.total_score
    total_score.short_description = "Total nilai"

    # penilaian final: hanya dibuat lewat portal asesor
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(StoredValue)
class StoredValueAdmin(admin.ModelAdmin):
    list_display = ("key", "updated_at")
    search_fields = ("key",)
    readonly_fields = ("updated_at",)
