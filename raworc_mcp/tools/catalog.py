from raworc_mcp.tools.registry import registry

# Import tools to register them
import raworc_mcp.tools.system_tools  # noqa: F401
import raworc_mcp.tools.access_tools  # noqa: F401
import raworc_mcp.tools.space_tools  # noqa: F401
import raworc_mcp.tools.session_tools  # noqa: F401
import raworc_mcp.tools.agent_tools  # noqa: F401
import raworc_mcp.tools.secret_tools  # noqa: F401
import raworc_mcp.tools.build_tools  # noqa: F401

registry.freeze()

__all__ = ["registry"]
