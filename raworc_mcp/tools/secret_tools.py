from raworc_mcp.core.raworc_client import segment
from raworc_mcp.tools.params import DESCRIPTION, SPACE_OPTIONAL, SPACE_REQUIRED, path_segment, string
from raworc_mcp.tools.registry import compact, json_result, registry

SECRET_KEY = path_segment("key", "Secret key")


def _secret_path(space, key):
    return f"spaces/{segment(space)}/secrets/{segment(key)}"


@registry.register(
    name="list_secrets",
    description="List secrets in a space. Values are not included.",
    params=[SPACE_OPTIONAL],
)
async def list_secrets(client, space: str = None):
    secrets = await client.get(f"spaces/{segment(client.space(space))}/secrets")
    return json_result(secrets)


@registry.register(
    name="create_secret",
    description="Create a new secret in a space.",
    params=[
        SPACE_REQUIRED,
        string("key_name", "Secret key name", required=True),
        string("value", "Secret value", required=True),
        DESCRIPTION,
    ],
)
async def create_secret(client, space: str, key_name: str, value: str, description: str = None):
    secret = await client.post(
        f"spaces/{segment(space)}/secrets",
        json=compact(key_name=key_name, value=value, description=description),
    )
    return json_result(secret, f"Secret {key_name} created successfully")


@registry.register(
    name="get_secret",
    description="Get a secret, including its value.",
    params=[SPACE_REQUIRED, SECRET_KEY],
)
async def get_secret(client, space: str, key: str):
    secret = await client.get(_secret_path(space, key))
    return json_result(secret)


@registry.register(
    name="update_secret",
    description="Update the value or description of a secret.",
    params=[SPACE_REQUIRED, SECRET_KEY, string("value", "New secret value"), DESCRIPTION],
)
async def update_secret(client, space: str, key: str, value: str = None, description: str = None):
    secret = await client.put(_secret_path(space, key), json=compact(value=value, description=description))
    return json_result(secret, f"Secret {key} updated successfully")


@registry.register(
    name="delete_secret",
    description="Delete a secret.",
    params=[SPACE_REQUIRED, SECRET_KEY],
)
async def delete_secret(client, space: str, key: str):
    await client.delete(_secret_path(space, key))
    return json_result(None, "Secret deleted successfully")
