"""
Ledger configuration.

The ledger reads a single ``ENERGY_MARKET`` dict from Django settings:

    ENERGY_MARKET = {
        "OWNER": "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM",
    }

OWNER is the only principal allowed to run admin operations. It is fixed
when a ledger is constructed and never changes for that ledger's lifetime.
"""

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

DEFAULTS = {
    "OWNER": None,
}


def get_setting(name):
    user_settings = getattr(settings, "ENERGY_MARKET", {})
    return user_settings.get(name, DEFAULTS[name])


def get_owner():
    owner = get_setting("OWNER")
    if not owner or not str(owner).strip():
        raise ImproperlyConfigured(
            "ENERGY_MARKET['OWNER'] must name the principal allowed to run admin operations."
        )
    return str(owner).strip()
