from rest_framework import filters, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from audit.services import log_event

from .models import User
from .permissions import IsAdmin, IsOwnerOrAdmin
from .serializers import UserAdminSerializer, UserChangePasswordSerializer, UserCreateSerializer, UserSerializer

ADMIN_ACTIONS = {"list", "create", "destroy"}
SELF_SERVICE_ACTIONS = {"me", "change_password"}


class UserViewSet(viewsets.ModelViewSet):
    """Accounts of the people who operate the roster."""

    queryset = User.objects.all().order_by("username", "id")
    filter_backends = [filters.SearchFilter]
    search_fields = ["username", "first_name", "last_name", "email"]

    def get_serializer_class(self):
        if self.action == "create":
            return UserCreateSerializer
        if self.action in {"update", "partial_update"} and self.request.user.role in {User.ROLE_SUPERADMIN, User.ROLE_ADMIN}:
            return UserAdminSerializer
        return UserSerializer

    def get_permissions(self):
        if self.action in ADMIN_ACTIONS:
            return [permissions.IsAuthenticated(), IsAdmin()]
        if self.action in SELF_SERVICE_ACTIONS:
            return [permissions.IsAuthenticated()]
        return [permissions.IsAuthenticated(), IsOwnerOrAdmin()]

    def perform_create(self, serializer):
        user = serializer.save()
        log_event(
            self.request,
            event_type="USER_CREATED",
            object_type="User",
            object_id=user.pk,
            status_code=status.HTTP_201_CREATED,
            metadata={"role": user.role},
        )

    def perform_update(self, serializer):
        user = serializer.save()
        log_event(
            self.request,
            event_type="USER_UPDATED",
            object_type="User",
            object_id=user.pk,
            status_code=status.HTTP_200_OK,
            metadata={"fields": sorted(serializer.validated_data)},
        )

    @action(detail=False, methods=["get"])
    def me(self, request):
        return Response(UserSerializer(request.user).data)

    @action(detail=False, methods=["post"])
    def change_password(self, request):
        serializer = UserChangePasswordSerializer(data=request.data, context={"user": request.user})
        serializer.is_valid(raise_exception=True)

        if not request.user.check_password(serializer.validated_data["current_password"]):
            return Response({"detail": "La contraseña actual no es correcta."}, status=status.HTTP_400_BAD_REQUEST)

        request.user.set_password(serializer.validated_data["new_password"])
        request.user.save(update_fields=["password"])
        log_event(
            request,
            event_type="USER_PASSWORD_CHANGED",
            object_type="User",
            object_id=request.user.pk,
            status_code=status.HTTP_200_OK,
        )
        return Response({"detail": "Contraseña actualizada."}, status=status.HTTP_200_OK)
