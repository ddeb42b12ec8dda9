import logging

from raworc_mcp.tools.registry import registry, json_result, text_result

logger = logging.getLogger(__name__)


@registry.register(
    name="health_check",
    description="Check whether the Raworc API is reachable and healthy. Returns the raw health status reported by the server.",
)
async def health_check(client):
    logger.info("Checking Raworc API health")
    status = await client.get("health", text=True)
    return text_result(status or "OK")


@registry.register(
    name="get_version",
    description="Get the Raworc API version and API revision.",
)
async def get_version(client):
    version = await client.get("version")
    return json_result(version)
