import logging

from django.contrib.auth import get_user_model
from django.core.exceptions import PermissionDenied, ValidationError
from django.db import transaction
from django.utils.crypto import get_random_string

logger = logging.getLogger(__name__)


@transaction.atomic
def create_tenant_user(*, created_by, username, role, email="", first_name="", last_name="",
                       phone_number="", is_active=True):
    """Create a trainer, student or staff member for the creator's driving school.

    Only tenant admins may create users. The new user will:
    - Belong to the same tenant as the creator
    - Never be a super admin
    - Have a generated random password (to be delivered out-of-band)
    """
    User = get_user_model()

    if not getattr(created_by, "tenant_id", None) or getattr(created_by, "is_super_admin", False):
        raise PermissionDenied("Creator must belong to a tenant.")
    if getattr(created_by, "role", None) != User.ROLE_ADMIN:
        raise PermissionDenied("Only tenant admins can create users.")

    username = (username or "").strip()
    if not username:
        raise ValidationError({"username": "Username is required."})

    valid_roles = {User.ROLE_STAFF, User.ROLE_TRAINER, User.ROLE_STUDENT}
    if role not in valid_roles:
        raise ValidationError({"role": "Invalid role for a tenant user."})

    temp_password = get_random_string(16)

    user = User.objects.create_user(
        username=username,
        email=(email or "").strip(),
        password=temp_password,
        first_name=(first_name or "").strip(),
        last_name=(last_name or "").strip(),
        phone_number=(phone_number or "").strip(),
        tenant=created_by.tenant,
        role=role,
        is_super_admin=False,
        is_active=bool(is_active),
    )
    logger.info("Created %s %s in tenant %s", role, user.pk, created_by.tenant_id)
    # Attach the raw password in-memory so the caller can show it once to the admin.
    user._raw_password = temp_password
    return user


@transaction.atomic
def set_user_active(*, changed_by, user_id, is_active):
    """Activate or deactivate a tenant user. Inactive trainers and students cannot be booked."""
    User = get_user_model()
    if getattr(changed_by, "role", None) != User.ROLE_ADMIN or not changed_by.tenant_id:
        raise PermissionDenied("Only tenant admins can change user status.")
    user = User.objects.for_tenant(changed_by.tenant_id).get(pk=user_id)
    if user.pk == changed_by.pk and not is_active:
        raise ValidationError({"is_active": "You cannot deactivate your own account."})
    user.is_active = bool(is_active)
    user.save(update_fields=["is_active", "updated_at"])
    return user
