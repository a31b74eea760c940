from django.urls import path

from . import views

app_name = "reports"

urlpatterns = [
    path("api/analytics/tasks", views.analytics_api, name="analytics_api"),
    path("reports/", views.report, name="report"),
    path("reports/export/", views.report_export, name="report_export"),
]
