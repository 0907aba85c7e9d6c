from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils.text import slugify
from typing import Optional, Dict

from .models import Tenant, DEFAULT_MODULES


@transaction.atomic
def create_tenant(*, name: str, slug: Optional[str] = None, contact_email: str = "",
                  contact_phone: str = "", settings: Optional[Dict] = None,
                  is_active: bool = True) -> Tenant:
    settings = dict(settings or {})
    settings.setdefault("modules", dict(DEFAULT_MODULES))
    t = Tenant(
        name=name.strip(),
        slug=(slug.strip() if slug else slugify(name)),
        contact_email=(contact_email or "").strip(),
        contact_phone=(contact_phone or "").strip(),
        settings=settings,
        is_active=is_active,
    )
    t.full_clean()
    t.save()
    return t


@transaction.atomic
def set_module(*, tenant: Tenant, module: str, enabled: bool) -> Tenant:
    """Switch one optional module on or off, preserving other settings."""
    if module not in DEFAULT_MODULES:
        raise ValidationError({"module": f"Unknown module '{module}'."})
    settings = dict(tenant.settings or {})
    modules = {**DEFAULT_MODULES, **(settings.get("modules") or {})}
    modules[module] = bool(enabled)
    settings["modules"] = modules
    tenant.settings = settings
    tenant.save(update_fields=["settings", "updated_at"])
    return tenant


def activate_tenant(tenant: Tenant) -> Tenant:
    tenant.activate()
    return tenant


def deactivate_tenant(tenant: Tenant) -> Tenant:
    tenant.deactivate()
    return tenant


def soft_delete_tenant(tenant: Tenant) -> Tenant:
    tenant.soft_delete()
    return tenant
