import logging

from raworc_mcp.core.raworc_client import segment
from raworc_mcp.tools.params import AGENT_NAME, DESCRIPTION, SPACE_OPTIONAL, SPACE_REQUIRED, string
from raworc_mcp.tools.registry import Param, ParamType, compact, json_result, registry, text_result

logger = logging.getLogger(__name__)

AGENT_STATUSES = ("active", "inactive", "running", "stopped", "error")

PURPOSE = string("purpose", "Agent purpose")


def _agent_path(space, agent_name, *rest):
    return "/".join(["spaces", segment(space), "agents", segment(agent_name), *rest])


@registry.register(
    name="list_agents",
    description="List agents in a space.",
    params=[SPACE_OPTIONAL],
)
async def list_agents(client, space: str = None):
    agents = await client.get(f"spaces/{segment(client.space(space))}/agents")
    return json_result(agents)


@registry.register(
    name="create_agent",
    description="Create a new agent in a space, optionally built from a source repository and branch.",
    params=[
        SPACE_REQUIRED,
        string("name", "Agent name", required=True),
        DESCRIPTION,
        PURPOSE,
        string("source_repo", "Source repository"),
        string("source_branch", "Source branch"),
    ],
)
async def create_agent(
    client,
    space: str,
    name: str,
    description: str = None,
    purpose: str = None,
    source_repo: str = None,
    source_branch: str = None,
):
    logger.info(f"Creating agent {name} in space {space}")
    body = compact(
        name=name,
        description=description,
        purpose=purpose,
        source_repo=source_repo,
        source_branch=source_branch,
    )
    agent = await client.post(f"spaces/{segment(space)}/agents", json=body)
    return json_result(agent, f"Agent {name} created successfully")


@registry.register(
    name="get_agent",
    description="Get a specific agent.",
    params=[SPACE_REQUIRED, AGENT_NAME],
)
async def get_agent(client, space: str, agent_name: str):
    agent = await client.get(_agent_path(space, agent_name))
    return json_result(agent)


@registry.register(
    name="update_agent",
    description="Update the description or purpose of an agent.",
    params=[SPACE_REQUIRED, AGENT_NAME, DESCRIPTION, PURPOSE],
)
async def update_agent(client, space: str, agent_name: str, description: str = None, purpose: str = None):
    agent = await client.put(_agent_path(space, agent_name), json=compact(description=description, purpose=purpose))
    return json_result(agent, f"Agent {agent_name} updated successfully")


@registry.register(
    name="delete_agent",
    description="Delete an agent.",
    params=[SPACE_REQUIRED, AGENT_NAME],
)
async def delete_agent(client, space: str, agent_name: str):
    await client.delete(_agent_path(space, agent_name))
    return json_result(None, f"Agent {agent_name} deleted successfully")


@registry.register(
    name="update_agent_status",
    description="Set the status of an agent.",
    params=[
        SPACE_REQUIRED,
        AGENT_NAME,
        Param(name="status", type=ParamType.STRING, description="New agent status", required=True, enum=AGENT_STATUSES),
    ],
)
async def update_agent_status(client, space: str, agent_name: str, status: str):
    result = await client.put(_agent_path(space, agent_name, "status"), json={"status": status})
    return json_result(result, f"Agent {agent_name} status set to {status}")


@registry.register(
    name="deploy_agent",
    description="Deploy an agent so it can serve sessions.",
    params=[SPACE_REQUIRED, AGENT_NAME],
)
async def deploy_agent(client, space: str, agent_name: str):
    logger.info(f"Deploying agent {agent_name} in space {space}")
    result = await client.post(_agent_path(space, agent_name, "deploy"))
    return json_result(result, f"Agent {agent_name} deployed successfully")


@registry.register(
    name="stop_agent",
    description="Stop a deployed agent.",
    params=[SPACE_REQUIRED, AGENT_NAME],
)
async def stop_agent(client, space: str, agent_name: str):
    result = await client.post(_agent_path(space, agent_name, "stop"))
    return json_result(result, f"Agent {agent_name} stopped successfully")


@registry.register(
    name="list_running_agents",
    description="List the agents currently running in a space.",
    params=[SPACE_REQUIRED],
)
async def list_running_agents(client, space: str):
    agents = await client.get(f"spaces/{segment(space)}/agents/running")
    return json_result(agents)


@registry.register(
    name="get_agent_logs",
    description="Get the raw logs of an agent as plain text.",
    params=[SPACE_REQUIRED, AGENT_NAME],
)
async def get_agent_logs(client, space: str, agent_name: str):
    logs = await client.get(_agent_path(space, agent_name, "logs"), text=True)
    return text_result(logs or "No logs available")
