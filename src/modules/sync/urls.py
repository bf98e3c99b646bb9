from django.urls import path

from modules.sync.views import SyncTimestampView

urlpatterns = [
    path("sync-timestamps/", SyncTimestampView.as_view(), name="sync-timestamps"),
]
