import logging

from raworc_mcp.core.raworc_client import segment
from raworc_mcp.tools.params import SPACE_REQUIRED, path_segment, string
from raworc_mcp.tools.registry import compact, json_result, registry

logger = logging.getLogger(__name__)


@registry.register(
    name="create_build",
    description="Trigger a build of the space image. Poll get_build or get_latest_build for progress.",
    params=[SPACE_REQUIRED, string("dockerfile", "Dockerfile content"), string("context", "Build context")],
)
async def create_build(client, space: str, dockerfile: str = None, context: str = None):
    logger.info(f"Triggering build for space {space}")
    build = await client.post(f"spaces/{segment(space)}/build", json=compact(dockerfile=dockerfile, context=context))
    return json_result(build, "Build triggered successfully")


@registry.register(
    name="get_latest_build",
    description="Get the status of the most recent build of a space.",
    params=[SPACE_REQUIRED],
)
async def get_latest_build(client, space: str):
    build = await client.get(f"spaces/{segment(space)}/build/latest")
    return json_result(build)


@registry.register(
    name="get_build",
    description="Get the status of a specific build.",
    params=[SPACE_REQUIRED, path_segment("build_id", "Build ID")],
)
async def get_build(client, space: str, build_id: str):
    build = await client.get(f"spaces/{segment(space)}/build/{segment(build_id)}")
    return json_result(build)
