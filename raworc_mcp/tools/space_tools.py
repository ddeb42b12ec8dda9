from raworc_mcp.core.raworc_client import segment
from raworc_mcp.tools.params import DESCRIPTION, path_segment
from raworc_mcp.tools.registry import Param, ParamType, compact, json_result, registry

SPACE_NAME = path_segment("name", "Space name")
SETTINGS = Param(name="settings", type=ParamType.OBJECT, description="Space settings")


@registry.register(
    name="list_spaces",
    description="List all spaces visible to the authenticated principal.",
)
async def list_spaces(client):
    spaces = await client.get("spaces")
    return json_result(spaces)


@registry.register(
    name="create_space",
    description="Create a new space. Spaces scope sessions, agents, secrets and builds.",
    params=[SPACE_NAME, DESCRIPTION, SETTINGS],
)
async def create_space(client, name: str, description: str = None, settings: dict = None):
    space = await client.post("spaces", json=compact(name=name, description=description, settings=settings))
    return json_result(space, f"Space {name} created successfully")


@registry.register(
    name="get_space",
    description="Get a specific space.",
    params=[SPACE_NAME],
)
async def get_space(client, name: str):
    space = await client.get(f"spaces/{segment(name)}")
    return json_result(space)


@registry.register(
    name="update_space",
    description="Update the description or settings of a space.",
    params=[SPACE_NAME, DESCRIPTION, SETTINGS],
)
async def update_space(client, name: str, description: str = None, settings: dict = None):
    space = await client.put(f"spaces/{segment(name)}", json=compact(description=description, settings=settings))
    return json_result(space, f"Space {name} updated successfully")


@registry.register(
    name="delete_space",
    description="Delete a space and everything scoped to it.",
    params=[SPACE_NAME],
)
async def delete_space(client, name: str):
    await client.delete(f"spaces/{segment(name)}")
    return json_result(None, f"Space {name} deleted successfully")
