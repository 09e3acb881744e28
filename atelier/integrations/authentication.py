import hmac

from django.conf import settings
from django.contrib.auth.models import AnonymousUser
from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import AuthenticationFailed


class WebhookSecretAuthentication(BaseAuthentication):
    """
    Inbound webhooks authenticate with "Authorization: Bearer <WEBHOOK_SECRET>".
    No user is attached to the request.
    """
    keyword = 'Bearer'

    def authenticate(self, request):
        header = request.META.get('HTTP_AUTHORIZATION', '')
        if not header.startswith(f"{self.keyword} "):
            raise AuthenticationFailed('Missing or invalid webhook authorization')

        secret = getattr(settings, 'WEBHOOK_SECRET', '')
        provided = header[len(self.keyword) + 1:].strip()
        if not secret or not hmac.compare_digest(provided.encode(), secret.encode()):
            raise AuthenticationFailed('Invalid webhook secret')
        return AnonymousUser(), 'webhook'

    def authenticate_header(self, request):
        return f'{self.keyword} realm="webhooks"'
