"""
Authz views: login.
"""
import logging

from asgiref.sync import async_to_sync
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework_simplejwt.views import TokenObtainPairView

from apps.authz.serializers import LoginSerializer
from apps.core.exceptions import AuthError
from apps.core.observability.metrics import metrics
from apps.core.redaction import mask_email
from apps.ops.audit import AuditService
from apps.ops.models import AuditActionChoices

logger = logging.getLogger(__name__)


class LoginView(TokenObtainPairView):
    """
    POST /api/auth/login/

    Body: {"email": "...", "password": "..."}
    Every successful login is audited; failures are logged with a masked email.
    """
    serializer_class = LoginSerializer
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'login'

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        try:
            serializer.is_valid(raise_exception=True)
        except AuthenticationFailed as exc:
            metrics.login_attempts_total.labels(result='failure').inc()
            logger.warning(
                'Login failed',
                extra={
                    'event': 'login_failed',
                    'login': mask_email(request.data.get('email')),
                },
            )
            raise AuthError() from exc

        user = serializer.user
        metrics.login_attempts_total.labels(result='success').inc()
        async_to_sync(AuditService().log)(
            action=AuditActionChoices.LOGIN,
            resource='user',
            resource_id=str(user.id),
            user=user,
            request=request,
        )

        return Response(serializer.validated_data, status=status.HTTP_200_OK)
