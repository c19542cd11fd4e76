"""URL patterns for the accounts app."""
from django.urls import path
from . import views

app_name = "accounts"


urlpatterns = [
    path("login/", views.LoginView.as_view(), name="login"),
    path("logout/", views.LogoutView.as_view(), name="logout"),
    path("me/", views.ProfileView.as_view(), name="profile"),
    path("me/permissions/", views.MyPermissionsView.as_view(), name="my_permissions"),
    path("me/emulate/", views.EmulationView.as_view(), name="emulate"),
    path("<int:pk>/tags/", views.UserTagsView.as_view(), name="user_tags"),
    path("<int:pk>/promote/", views.PromoteView.as_view(), name="promote"),
]
