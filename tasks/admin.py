from django.contrib import admin

from .models import Task


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ["title", "user", "due_date", "priority", "category", "completed"]
    list_filter = ["priority", "completed", "due_date"]
    search_fields = ["title", "category"]
    date_hierarchy = "due_date"
    readonly_fields = ["completed", "completed_at", "created_at", "updated_at"]
