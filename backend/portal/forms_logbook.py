# backend/portal/forms_logbook.py

from django import forms

from logbook.states import EntryEvent


class DateInput(forms.DateInput):
    input_type = "date"


class SaveDayForm(forms.Form):
    text = forms.CharField(
        label="Aktivitas",
        widget=forms.Textarea(attrs={"class": "form-control", "rows": 3}),
    )
    entry_date = forms.DateField(
        label="Tanggal",
        required=False,
        widget=DateInput(attrs={"class": "form-control"}),
    )
    hours = forms.FloatField(
        label="Jumlah jam",
        required=False,
        widget=forms.NumberInput(attrs={"class": "form-control", "step": "0.25"}),
    )

    def clean_text(self):
        text = self.cleaned_data["text"].strip()
        if not text:
            raise forms.ValidationError("Aktivitas wajib diisi.")
        return text


class EntryDecisionForm(forms.Form):
    """Dipakai pembimbing untuk menyetujui/menolak satu entri."""

    action = forms.ChoiceField(
        choices=[
            (EntryEvent.APPROVE.value, "Setujui"),
            (EntryEvent.REJECT.value, "Tolak"),
        ],
        widget=forms.HiddenInput,
    )
    revision = forms.IntegerField(min_value=1, widget=forms.HiddenInput)
    comment = forms.CharField(
        label="Catatan pembimbing",
        required=False,
        widget=forms.Textarea(attrs={"class": "form-control", "rows": 2}),
    )
