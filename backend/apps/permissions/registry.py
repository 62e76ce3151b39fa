# Populated by each app's permissions.py at import time.
# Each entry is a dict with 'code', 'description' and 'category' keys.

ALL_PERMISSIONS = []


def register_permissions(permissions_list):
    """Registers a list of permissions from an app."""
    known = {perm["code"] for perm in ALL_PERMISSIONS}
    for perm in permissions_list:
        if not isinstance(perm, dict) or 'code' not in perm:
            raise ValueError("Each permission must be a dictionary with a 'code' key.")
        if perm["code"] in known:
            continue
        ALL_PERMISSIONS.append(perm)
        known.add(perm["code"])


def registered_codes():
    return [perm["code"] for perm in ALL_PERMISSIONS]
