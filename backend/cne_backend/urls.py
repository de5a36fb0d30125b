"""
URL configuration for cne_backend project.

Todas las rutas de la API viven bajo /api/ y requieren sesión, salvo el
flujo de autenticación.
"""
from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static
from rest_framework_simplejwt.views import (
    TokenObtainPairView,
    TokenRefreshView,
)
from .auth_views import CookieLoginAPIView, CookieLogoutAPIView, CookieRefreshAPIView, CsrfCookieAPIView

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("api/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("api/auth/csrf/", CsrfCookieAPIView.as_view(), name="auth_csrf"),
    path("api/auth/login/", CookieLoginAPIView.as_view(), name="auth_cookie_login"),
    path("api/auth/refresh/", CookieRefreshAPIView.as_view(), name="auth_cookie_refresh"),
    path("api/auth/logout/", CookieLogoutAPIView.as_view(), name="auth_cookie_logout"),
    path("api/", include("users.urls")),
    path("api/", include("audit.urls")),
    path("api/", include("core.urls")),
    path("api/", include("members.urls")),
    path("api/", include("precincts.urls")),
    path("api/", include("elections.urls")),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
