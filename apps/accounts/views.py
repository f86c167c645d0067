import logging

from rest_framework import status, serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken
from drf_spectacular.utils import extend_schema, OpenApiParameter

from .models import Role
from .permissions import IsSiteAdmin
from .serializers import LoginSerializer, TeamMemberSerializer, TeamMemberUpdateSerializer
from .services import (
    authenticate_user,
    list_team,
    change_role,
    set_active,
    InvalidCredentialsError,
    InactiveAccountError,
    AccountNotFoundError,
    LastAdminError,
)

logger = logging.getLogger(__name__)


class LoginResponseSerializer(serializers.Serializer):
    access = serializers.CharField()
    refresh = serializers.CharField()
    user = TeamMemberSerializer()


class ErrorResponseSerializer(serializers.Serializer):
    error = serializers.CharField()


@extend_schema(
    request=LoginSerializer,
    responses={200: LoginResponseSerializer, 401: ErrorResponseSerializer, 403: ErrorResponseSerializer},
    description="Sign in with email and password. Returns a JWT pair and the account.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def login(request):
    serializer = LoginSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        user = authenticate_user(**serializer.validated_data)
    except InvalidCredentialsError as e:
        return Response({'error': str(e)}, status=status.HTTP_401_UNAUTHORIZED)
    except InactiveAccountError as e:
        return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

    refresh = RefreshToken.for_user(user)
    return Response({
        'access': str(refresh.access_token),
        'refresh': str(refresh),
        'user': TeamMemberSerializer(user).data,
    })


@extend_schema(
    request=None,
    responses={204: None, 400: ErrorResponseSerializer},
    description="End the session. A refresh token, when sent, must be valid.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout(request):
    refresh_token = request.data.get('refresh')
    if refresh_token:
        try:
            RefreshToken(refresh_token)
        except TokenError:
            return Response({'error': 'Invalid refresh token'}, status=status.HTTP_400_BAD_REQUEST)
    return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema(responses={200: TeamMemberSerializer}, tags=['auth'])
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me(request):
    """The signed-in account, including its role."""
    return Response(TeamMemberSerializer(request.user).data)


@extend_schema(
    parameters=[OpenApiParameter('role', str, enum=Role.values, required=False)],
    responses={200: TeamMemberSerializer(many=True)},
    tags=['auth'],
)
@api_view(['GET'])
@permission_classes([IsSiteAdmin])
def team_list(request):
    role = request.query_params.get('role')
    if role and role not in Role.values:
        return Response(
            {'error': f"Invalid role. Must be one of: {', '.join(Role.values)}"},
            status=status.HTTP_400_BAD_REQUEST,
        )
    return Response(TeamMemberSerializer(list_team(role=role), many=True).data)


@extend_schema(
    request=TeamMemberUpdateSerializer,
    responses={200: TeamMemberSerializer, 404: ErrorResponseSerializer, 409: ErrorResponseSerializer},
    description="Grant or withdraw the admin role, or switch an account on or off.",
    tags=['auth'],
)
@api_view(['PATCH'])
@permission_classes([IsSiteAdmin])
def team_member_update(request, user_id):
    serializer = TeamMemberUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    try:
        account = None
        if 'role' in data:
            account = change_role(user_id=user_id, role=data['role'], changed_by=request.user)
        if 'is_active' in data:
            account = set_active(user_id=user_id, is_active=data['is_active'], changed_by=request.user)
    except AccountNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except LastAdminError as e:
        return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)

    return Response(TeamMemberSerializer(account).data)
