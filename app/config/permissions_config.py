"""
Permissions and Roles Configuration
Defines the permission matrix for every marketplace module and the roles built from it.
Used by the seed script to populate the permissions, roles and role_permissions tables.
"""

# Modules and the actions they expose
MODULES = {
    "businesses": {
        "resource": "businesses",
        "actions": ["create", "read", "update", "delete", "verify", "suspend"],
        "description": "Business directory profiles"
    },
    "qr_codes": {
        "resource": "qr_codes",
        "actions": ["create", "read", "update", "delete"],
        "description": "Business QR codes for check-ins, loyalty and discounts"
    },
    "loyalty": {
        "resource": "loyalty",
        "actions": ["read", "manage", "decay"],
        "description": "Loyalty points, rewards catalog and economic karma"
    },
    "commissions": {
        "resource": "commissions",
        "actions": ["read", "approve"],
        "description": "Sales agent referral commissions"
    },
    "sponsors": {
        "resource": "sponsors",
        "actions": ["read", "update"],
        "description": "Corporate sponsorship subscriptions"
    },
    "feature_flags": {
        "resource": "feature_flags",
        "actions": ["read", "manage"],
        "description": "Feature flag rollout"
    },
    "fraud": {
        "resource": "fraud",
        "actions": ["read", "analyze"],
        "description": "Fraud detection alerts"
    },
    "susu": {
        "resource": "susu",
        "actions": ["read", "release", "advance"],
        "description": "Susu savings circle escrow"
    },
    "developers": {
        "resource": "developers",
        "actions": ["read", "create"],
        "description": "Developer API keys"
    }
}

# Role definitions per module
ROLE_TYPES = {
    "ADMIN": {
        "permissions": ["create", "read", "update", "delete"],
        "description": "Full administrative access to"
    },
    "VIEWER": {
        "permissions": ["read"],
        "description": "Read-only access to"
    }
}

# Descriptions for actions that are not plain CRUD
MODULE_SPECIFIC_PERMISSIONS = {
    "businesses": {
        "verify": "Mark businesses as verified",
        "suspend": "Suspend or reinstate businesses"
    },
    "loyalty": {
        "manage": "Manage the rewards catalog",
        "decay": "Run the karma decay pass"
    },
    "commissions": {
        "approve": "Move commissions through approval and payout"
    },
    "feature_flags": {
        "manage": "Create and update feature flags"
    },
    "fraud": {
        "analyze": "Run fraud analysis"
    },
    "susu": {
        "release": "Release escrowed susu payouts",
        "advance": "Advance susu circle rounds"
    }
}


def get_permission_matrix():
    """
    Returns every permission and the roles derived from it.
    Format: {
        "permissions": [{"name": "qr_codes:create", "resource": "qr_codes", "action": "create", "description": "..."}],
        "roles": [{"name": "qr_codes_admin", "description": "...", "permissions": ["qr_codes:create", ...]}]
    }
    """
    permissions = []
    roles = []

    for module_name, module_config in MODULES.items():
        resource = module_config["resource"]
        specific = MODULE_SPECIFIC_PERMISSIONS.get(module_name, {})
        for action in module_config["actions"]:
            permissions.append({
                "name": f"{resource}:{action}",
                "resource": resource,
                "action": action,
                "description": specific.get(action, f"{action.capitalize()} {resource}")
            })

    for module_name, module_config in MODULES.items():
        resource = module_config["resource"]
        actions = module_config["actions"]

        for role_type, role_config in ROLE_TYPES.items():
            if role_type == "ADMIN":
                # Admin roles carry every action the module exposes, specific ones included
                role_permissions = [f"{resource}:{action}" for action in actions]
            else:
                role_permissions = [
                    f"{resource}:{action}" for action in role_config["permissions"] if action in actions
                ]
            if not role_permissions:
                continue

            roles.append({
                "name": f"{resource}_{role_type.lower()}",
                "description": f"{role_config['description']} {module_config['description'].lower()}",
                "permissions": sorted(role_permissions)
            })

    return {
        "permissions": permissions,
        "roles": roles
    }


PERMISSION_MATRIX = get_permission_matrix()
