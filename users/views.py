"""Users app API views: registration, JWT sign-in/refresh/sign-out, current user."""

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.exceptions import AuthenticationFailed, ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import InvalidToken
from rest_framework_simplejwt.tokens import RefreshToken, TokenError
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from .logging import log_auth_event
from .serializers import RegistrationSerializer, UserMeSerializer, UsernameOrEmailTokenObtainPairSerializer


@extend_schema(
    summary="Get current user",
    tags=["User Endpoints"],
    responses={
        200: OpenApiResponse(description="User profile", response=UserMeSerializer),
        401: OpenApiResponse(description="Unauthorized"),
    },
)
@api_view(["GET"])
@permission_classes([IsAuthenticated])
@throttle_classes([ScopedRateThrottle])
def current_user(request):
    serializer = UserMeSerializer(request.user)
    return Response(serializer.data)


current_user.throttle_scope = "profile"


@extend_schema(tags=["User Endpoints"], request=RegistrationSerializer, responses={201: UserMeSerializer})
@api_view(["POST"])
@permission_classes([AllowAny])
@throttle_classes([ScopedRateThrottle])
def register(request):
    """Register a new user account."""
    serializer = RegistrationSerializer(data=request.data)
    if serializer.is_valid():
        user = serializer.save()
        log_auth_event("register", request, user=user, status="success")
        return Response(UserMeSerializer(user).data, status=status.HTTP_201_CREATED)
    log_auth_event("register", request, status="invalid")
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


register.throttle_scope = "register"


class _LoggedTokenView:
    """Log the outcome of a simplejwt token endpoint as ``auth_<auth_action>``."""

    throttle_classes = [ScopedRateThrottle]
    auth_action = ""

    def post(self, request, *args, **kwargs):
        try:
            resp = super().post(request, *args, **kwargs)
        except (ValidationError, AuthenticationFailed, InvalidToken):
            log_auth_event(self.auth_action, request, status="failed")
            raise
        log_auth_event(self.auth_action, request, status="success" if resp.status_code == 200 else "failed")
        return resp


@extend_schema(tags=["User Endpoints"], summary="Sign in with username or email")
class SignInView(_LoggedTokenView, TokenObtainPairView):
    throttle_scope = "signin"
    auth_action = "signin"
    serializer_class = UsernameOrEmailTokenObtainPairSerializer


@extend_schema(tags=["User Endpoints"], summary="Refresh access token")
class RefreshView(_LoggedTokenView, TokenRefreshView):
    throttle_scope = "token_refresh"
    auth_action = "token_refresh"


class SignOutView(APIView):
    """Blacklist a refresh token."""

    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "signout"
    permission_classes = [AllowAny]

    @extend_schema(tags=["User Endpoints"])
    def post(self, request):
        refresh = request.data.get("refresh")
        if not refresh:
            return Response({"detail": "Refresh token is required."}, status=status.HTTP_400_BAD_REQUEST)
        try:
            token = RefreshToken(refresh)
            token.blacklist()
        except TokenError:
            log_auth_event("signout", request, status="invalid_token")
            return Response({"detail": "Invalid token."}, status=status.HTTP_400_BAD_REQUEST)
        log_auth_event("signout", request, status="success")
        return Response({"detail": "Signed out."}, status=status.HTTP_205_RESET_CONTENT)
