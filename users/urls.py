"""Authentication routes under /api/v1/auth/."""

from django.urls import path

from .views import RefreshView, SignInView, SignOutView, current_user, register

urlpatterns = [
    path("register/", register, name="register"),
    path("token/", SignInView.as_view(), name="token_obtain"),
    path("token/refresh/", RefreshView.as_view(), name="token_refresh"),
    path("signout/", SignOutView.as_view(), name="signout"),
    path("me/", current_user, name="current_user"),
]
