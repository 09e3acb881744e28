from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError, AuthenticationFailed
from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.shortcuts import get_object_or_404
from .models import Setting, EventLog
from .permissions import IsOwner, is_owner_user
from .serializers import (
    UserSerializer, UserCreateSerializer,
    SettingSerializer, EventLogSerializer
)

User = get_user_model()

EVENT_LOG_DEFAULT_LIMIT = 200


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        data['user'] = UserSerializer(self.user).data
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        token['role'] = user.role
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Token refresh that reports deleted users as an invalid token"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except (ObjectDoesNotExist, User.DoesNotExist):
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    serializer_class = CustomTokenRefreshSerializer


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Get current user with role flags"""
    user = request.user
    user_data = UserSerializer(user).data
    user_data['is_owner'] = is_owner_user(user)
    # Seamstresses and custom tailors work tasks; clerks and owners run intake
    user_data['can_work_tasks'] = user.role in ('seamstress', 'custom', 'owner') or user.is_superuser
    user_data['can_manage_catalog'] = user_data['is_owner']
    return Response(user_data)


# User views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsOwner])
def user_list_create(request):
    """List all staff or create a staff account"""
    if request.method == 'GET':
        users = User.objects.all().order_by('username')
        role = request.query_params.get('role')
        if role:
            users = users.filter(role=role)
        serializer = UserSerializer(users, many=True)
        return Response(serializer.data)
    else:
        serializer = UserCreateSerializer(data=request.data)
        if serializer.is_valid():
            user = serializer.save()
            return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsOwner])
def user_detail(request, pk):
    """Retrieve, update or delete a staff account"""
    user = get_object_or_404(User, pk=pk)

    if request.method == 'GET':
        serializer = UserSerializer(user)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = UserSerializer(user, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if user.pk == request.user.pk:
            return Response({'error': 'You cannot delete your own account'}, status=status.HTTP_400_BAD_REQUEST)
        user.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Setting views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def setting_list_create(request):
    """List all settings or create a new setting (owner only)"""
    if request.method == 'GET':
        settings = Setting.objects.all().order_by('key')
        serializer = SettingSerializer(settings, many=True)
        return Response(serializer.data)

    if not is_owner_user(request.user):
        return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)
    serializer = SettingSerializer(data=request.data)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def setting_detail(request, pk):
    """Retrieve, update or delete a setting"""
    setting = get_object_or_404(Setting, pk=pk)

    if request.method == 'GET':
        serializer = SettingSerializer(setting)
        return Response(serializer.data)

    if not is_owner_user(request.user):
        return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)
    if request.method in ('PUT', 'PATCH'):
        serializer = SettingSerializer(setting, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    setting.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


# EventLog views (read-only)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def event_log_list(request):
    """List business events with filtering"""
    queryset = EventLog.objects.select_related('actor')

    entity = request.query_params.get('entity')
    if entity:
        queryset = queryset.filter(entity=entity)

    entity_id = request.query_params.get('entity_id')
    if entity_id:
        queryset = queryset.filter(entity_id=entity_id)

    action = request.query_params.get('action')
    if action:
        queryset = queryset.filter(action=action)

    correlation_id = request.query_params.get('correlation_id')
    if correlation_id:
        queryset = queryset.filter(correlation_id=correlation_id)

    date_from = request.query_params.get('date_from')
    date_to = request.query_params.get('date_to')
    if date_from:
        queryset = queryset.filter(created_at__date__gte=date_from)
    if date_to:
        queryset = queryset.filter(created_at__date__lte=date_to)

    try:
        limit = int(request.query_params.get('limit', EVENT_LOG_DEFAULT_LIMIT))
    except (TypeError, ValueError):
        limit = EVENT_LOG_DEFAULT_LIMIT

    queryset = queryset.order_by('-created_at')[:max(limit, 1)]
    serializer = EventLogSerializer(queryset, many=True)
    return Response(serializer.data)
