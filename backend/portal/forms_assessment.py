# backend/portal/forms_assessment.py

from django import forms

from logbook.models import Assessment
from logbook.states import AssessmentResult


def _score_field(label):
    return forms.IntegerField(
        label=label,
        min_value=0,
        widget=forms.NumberInput(attrs={"class": "form-control", "min": 0}),
    )


class AssessmentForm(forms.Form):
    """
    Diisi oleh asesor. Lima nilai wajib diisi dan hasil akhir
    harus dipilih (lulus / tidak lulus).
    """

    details = _score_field("Kelengkapan detail")
    practicality = _score_field("Kepraktisan")
    correctness = _score_field("Ketepatan")
    creativity = _score_field("Kreativitas")
    presentation = _score_field("Penyajian")
    comment = forms.CharField(
        label="Komentar",
        required=False,
        widget=forms.Textarea(
            attrs={
                "class": "form-control",
                "rows": 3,
                "placeholder": "Komentar asesor (opsional)",
            }
        ),
    )
    result = forms.ChoiceField(
        label="Hasil",
        choices=AssessmentResult.choices,
        widget=forms.RadioSelect,
    )

    def scores(self) -> dict:
        return {name: self.cleaned_data[name] for name in Assessment.SCORE_FIELDS}
