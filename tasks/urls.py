from django.urls import path

from . import views

app_name = "tasks"

urlpatterns = [
    path("", views.task_collection, name="task_collection"),
    path("<int:task_id>/", views.task_detail, name="task_detail"),
    path("<int:task_id>/toggle-complete/", views.toggle_complete, name="toggle_complete"),
]
