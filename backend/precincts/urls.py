from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import CDAPrecinctViewSet

router = DefaultRouter()
router.register(r"cda-precincts", CDAPrecinctViewSet, basename="cda-precinct")

urlpatterns = [
    path("", include(router.urls)),
]
