from django.urls import path

from . import views

urlpatterns = [
    path("register", views.register_view, name="auth-register"),
    path("login", views.login_view, name="auth-login"),
    path("logout", views.logout_view, name="auth-logout"),
    path("session", views.session_view, name="auth-session"),
    path("otp/request", views.otp_request_view, name="auth-otp-request"),
    path("otp/verify", views.otp_verify_view, name="auth-otp-verify"),
]
