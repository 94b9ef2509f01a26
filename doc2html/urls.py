from django.urls import path
from . import views

app_name = "doc2html"

urlpatterns = [
    # UI
    path("", views.home, name="home"),

    # Status & download by job id
    path("api/status/<uuid:job_id>/", views.status, name="status"),
    path("api/download/<uuid:job_id>/", views.download, name="download"),

    # API endpoints
    path("api/upload/", views.api_upload, name="api_upload"),
    path("api/merge-batch/", views.merge_batch, name="merge_batch"),
    path("api/files/", views.list_files, name="list_files"),
]
