"""
Tenant middleware for multi-tenancy support.

Resolves the tenant of the authenticated user and attaches it, together with
an immutable ``TenantContext``, to the request. Nothing is stored in
thread-locals; views pass ``request.tenant_context`` into the services.
"""

import logging

from django.core.exceptions import PermissionDenied
from django.http import JsonResponse
from django.utils.deprecation import MiddlewareMixin

from .context import TenantContext

logger = logging.getLogger(__name__)


class TenantMiddleware(MiddlewareMixin):
    """
    Middleware to attach the tenant context based on the authenticated user.

    **How it works:**
    1. Anonymous users and Super Admins get no tenant context
    2. Tenant users get ``request.tenant`` and ``request.tenant_context``
    3. Users without a tenant, or of an inactive tenant, are refused with 403
    """

    def process_request(self, request):
        request.tenant = None
        request.tenant_context = None

        # Allow Django admin and authentication endpoints to pass through
        path = request.path or ''
        if path.startswith('/admin/') or path.startswith('/api/auth/'):
            return None

        user = getattr(request, 'user', None)
        if user is None or not user.is_authenticated:
            return None

        if getattr(user, 'is_super_admin', False):
            return None

        try:
            context = TenantContext.for_user(user)
        except PermissionDenied as exc:
            logger.warning("Tenant access refused for user %s: %s", user.pk, exc)
            return JsonResponse(
                {'error': str(exc), 'code': 'permission_denied', 'status_code': 403},
                status=403,
            )

        request.tenant = user.tenant
        request.tenant_context = context
        return None
