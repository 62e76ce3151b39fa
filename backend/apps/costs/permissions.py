from apps.permissions.registry import register_permissions

COSTS_PERMISSIONS = [
    {"code": "view_cost_rates", "description": "Can see material unit prices and material costs", "category": "costs"},
    {"code": "view_hourly_rates", "description": "Can see hourly rates and labor costs of all users", "category": "costs"},
    {"code": "view_own_hourly_rate", "description": "Can see own hourly rate and own labor costs", "category": "costs"},
    {"code": "view_cost_entries", "description": "Can view booked cost entries", "category": "costs"},
    {"code": "view_own_cost_entries", "description": "Can view own booked cost entries", "category": "costs"},
    {"code": "view_time_entries", "description": "Can view booked time entries", "category": "costs"},
    {"code": "view_own_time_entries", "description": "Can view own booked time entries", "category": "costs"},
]

register_permissions(COSTS_PERMISSIONS)
