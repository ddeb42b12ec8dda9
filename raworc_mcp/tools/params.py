from raworc_mcp.tools.registry import Param, ParamType

SPACE_OPTIONAL = Param(
    name="space",
    type=ParamType.STRING,
    description="Space name (optional, uses the configured default space if not provided)",
)
SPACE_REQUIRED = Param(name="space", type=ParamType.STRING, description="Space name", required=True, min_length=1)
SESSION_ID = Param(name="session_id", type=ParamType.STRING, description="Session ID", required=True, min_length=1)
AGENT_NAME = Param(name="agent_name", type=ParamType.STRING, description="Agent name", required=True, min_length=1)
DESCRIPTION = Param(name="description", type=ParamType.STRING, description="Human readable description")


def string(name: str, description: str, required: bool = False) -> Param:
    return Param(name=name, type=ParamType.STRING, description=description, required=required)


def path_segment(name: str, description: str) -> Param:
    """Required string that becomes one URL path segment, so it may not be empty."""
    return Param(name=name, type=ParamType.STRING, description=description, required=True, min_length=1)


def resource_id(description: str) -> Param:
    return path_segment("id", description)
