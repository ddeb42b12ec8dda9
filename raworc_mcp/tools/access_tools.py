"""Service accounts, roles and role bindings."""
from raworc_mcp.core.raworc_client import segment
from raworc_mcp.tools.params import DESCRIPTION, resource_id, string
from raworc_mcp.tools.registry import Param, ParamType, compact, json_result, registry

SERVICE_ACCOUNT_ID = resource_id("Service account ID")
ROLE_ID = resource_id("Role ID")
ROLE_BINDING_ID = resource_id("Role binding ID")


@registry.register(
    name="list_service_accounts",
    description="List all service accounts.",
)
async def list_service_accounts(client):
    accounts = await client.get("service-accounts")
    return json_result(accounts)


@registry.register(
    name="create_service_account",
    description="Create a new service account, optionally bound to a space.",
    params=[
        string("user", "Username for the service account", required=True),
        string("pass", "Password for the service account", required=True),
        string("space", "Space name (optional)"),
        DESCRIPTION,
    ],
)
async def create_service_account(client, user: str, space: str = None, description: str = None, **kwargs):
    # "pass" is a keyword, so it only arrives through **kwargs
    body = compact(user=user, space=space, description=description)
    body["pass"] = kwargs["pass"]
    account = await client.post("service-accounts", json=body)
    return json_result(account, f"Service account {user} created successfully")


@registry.register(
    name="get_service_account",
    description="Get a specific service account.",
    params=[SERVICE_ACCOUNT_ID],
)
async def get_service_account(client, id: str):
    account = await client.get(f"service-accounts/{segment(id)}")
    return json_result(account)


@registry.register(
    name="update_service_account",
    description="Update the space, description or active flag of a service account.",
    params=[
        SERVICE_ACCOUNT_ID,
        string("space", "Space name"),
        DESCRIPTION,
        Param(name="active", type=ParamType.BOOLEAN, description="Whether the account is active"),
    ],
)
async def update_service_account(client, id: str, space: str = None, description: str = None, active: bool = None):
    account = await client.put(
        f"service-accounts/{segment(id)}",
        json=compact(space=space, description=description, active=active),
    )
    return json_result(account, "Service account updated successfully")


@registry.register(
    name="delete_service_account",
    description="Delete a service account.",
    params=[SERVICE_ACCOUNT_ID],
)
async def delete_service_account(client, id: str):
    await client.delete(f"service-accounts/{segment(id)}")
    return json_result(None, "Service account deleted successfully")


@registry.register(
    name="update_service_account_password",
    description="Change the password of a service account.",
    params=[
        SERVICE_ACCOUNT_ID,
        string("current_password", "Current password", required=True),
        string("new_password", "New password", required=True),
    ],
)
async def update_service_account_password(client, id: str, current_password: str, new_password: str):
    await client.put(
        f"service-accounts/{segment(id)}/password",
        json={"current_password": current_password, "new_password": new_password},
    )
    return json_result(None, "Password updated successfully")


@registry.register(
    name="list_roles",
    description="List all roles.",
)
async def list_roles(client):
    roles = await client.get("roles")
    return json_result(roles)


@registry.register(
    name="create_role",
    description=(
        "Create a new role. Each rule is an object with 'resources' and 'verbs' "
        "(arrays of strings) and an optional 'scope' string."
    ),
    params=[
        ROLE_ID,
        DESCRIPTION,
        Param(name="rules", type=ParamType.ARRAY, items=ParamType.OBJECT, description="Role rules", required=True),
    ],
)
async def create_role(client, id: str, rules: list, description: str = None):
    role = await client.post("roles", json=compact(id=id, description=description, rules=rules))
    return json_result(role, f"Role {id} created successfully")


@registry.register(
    name="get_role",
    description="Get a specific role.",
    params=[ROLE_ID],
)
async def get_role(client, id: str):
    role = await client.get(f"roles/{segment(id)}")
    return json_result(role)


@registry.register(
    name="delete_role",
    description="Delete a role.",
    params=[ROLE_ID],
)
async def delete_role(client, id: str):
    await client.delete(f"roles/{segment(id)}")
    return json_result(None, "Role deleted successfully")


@registry.register(
    name="list_role_bindings",
    description="List all role bindings.",
)
async def list_role_bindings(client):
    bindings = await client.get("role-bindings")
    return json_result(bindings)


@registry.register(
    name="create_role_binding",
    description="Bind a role to a subject (user or service account), optionally limited to one space.",
    params=[
        string("subject", "Subject (user/service account)", required=True),
        string("role_ref", "Role reference", required=True),
        string("space", "Space name (optional)"),
    ],
)
async def create_role_binding(client, subject: str, role_ref: str, space: str = None):
    binding = await client.post("role-bindings", json=compact(subject=subject, role_ref=role_ref, space=space))
    return json_result(binding, "Role binding created successfully")


@registry.register(
    name="get_role_binding",
    description="Get a specific role binding.",
    params=[ROLE_BINDING_ID],
)
async def get_role_binding(client, id: str):
    binding = await client.get(f"role-bindings/{segment(id)}")
    return json_result(binding)


@registry.register(
    name="delete_role_binding",
    description="Delete a role binding.",
    params=[ROLE_BINDING_ID],
)
async def delete_role_binding(client, id: str):
    await client.delete(f"role-bindings/{segment(id)}")
    return json_result(None, "Role binding deleted successfully")
