import re

from django import forms

from .models import Task

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class TaskForm(forms.ModelForm):
    class Meta:
        model = Task
        fields = ["title", "description", "due_date", "due_time", "priority", "category"]
        widgets = {
            "due_date": forms.DateInput(attrs={"type": "date"}),
            "description": forms.Textarea(attrs={"rows": 3, "placeholder": "Optional description..."}),
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # Priority falls back to the model default when omitted.
        self.fields["priority"].required = False

    def clean_due_time(self):
        value = (self.cleaned_data.get("due_time") or "").strip()
        if value and not _TIME_RE.match(value):
            raise forms.ValidationError("Enter a time as HH:MM.")
        return value

    def clean_priority(self):
        return self.cleaned_data.get("priority") or Task.Priority.MEDIUM

    def clean_category(self):
        return (self.cleaned_data.get("category") or "").strip()
