"""URL patterns for calendar item review."""
from django.urls import path
from . import views

app_name = "events"

urlpatterns = [
    path("", views.ReviewItemView.as_view(), name="review"),
    path("bulk/", views.BulkReviewView.as_view(), name="bulk_review"),
]
