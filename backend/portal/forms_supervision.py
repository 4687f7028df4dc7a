# backend/portal/forms_supervision.py

from django import forms

from logbook.states import SupervisionStatus
from masterdata.models import Supervisor


class SupervisionRequestForm(forms.Form):
    supervisor = forms.ModelChoiceField(
        label="Pembimbing",
        queryset=Supervisor.objects.all(),
        widget=forms.Select(attrs={"class": "form-select"}),
    )
    message = forms.CharField(
        label="Pesan untuk pembimbing",
        max_length=500,
        widget=forms.Textarea(attrs={"class": "form-control", "rows": 3}),
    )

    def __init__(self, *args, student=None, **kwargs):
        super().__init__(*args, **kwargs)
        # mahasiswa tidak bisa memilih akunnya sendiri
        if student is not None and student.email:
            self.fields["supervisor"].queryset = Supervisor.objects.exclude(email__iexact=student.email)

    def clean_message(self):
        message = self.cleaned_data["message"].strip()
        if not message:
            raise forms.ValidationError("Silakan tulis pesan untuk pembimbing.")
        return message


class SupervisionDecisionForm(forms.Form):
    outcome = forms.ChoiceField(
        choices=[
            (SupervisionStatus.APPROVED.value, "Terima"),
            (SupervisionStatus.REJECTED.value, "Tolak"),
        ],
        widget=forms.HiddenInput,
    )
