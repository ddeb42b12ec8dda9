import logging

from raworc_mcp.core.raworc_client import segment
from raworc_mcp.tools.params import SESSION_ID, SPACE_OPTIONAL
from raworc_mcp.tools.registry import Param, ParamType, compact, json_result, registry

logger = logging.getLogger(__name__)

SESSION_STATES = ("INIT", "RUNNING", "PAUSED", "SUSPENDED", "TERMINATED", "IDLE", "CLOSED")

METADATA = Param(name="metadata", type=ParamType.OBJECT, description="Additional metadata for the session")


def _session_path(client, space, session_id, *rest):
    parts = ["spaces", segment(client.space(space)), "sessions", segment(session_id)]
    parts.extend(rest)
    return "/".join(parts)


@registry.register(
    name="list_sessions",
    description="List all sessions in a space.",
    params=[SPACE_OPTIONAL],
)
async def list_sessions(client, space: str = None):
    sessions = await client.get(f"spaces/{segment(client.space(space))}/sessions")
    return json_result(sessions)


@registry.register(
    name="create_session",
    description="Create a new agent session in a space. Metadata is stored verbatim on the session.",
    params=[SPACE_OPTIONAL, METADATA],
)
async def create_session(client, space: str = None, metadata: dict = None):
    sp = client.space(space)
    logger.info(f"Creating session in space {sp}")
    session = await client.post(f"spaces/{segment(sp)}/sessions", json=compact(metadata=metadata))
    return json_result(session)


@registry.register(
    name="get_session",
    description="Get details of a session: state, timestamps, parent session and metadata.",
    params=[SESSION_ID, SPACE_OPTIONAL],
)
async def get_session(client, session_id: str, space: str = None):
    session = await client.get(_session_path(client, space, session_id))
    return json_result(session)


@registry.register(
    name="update_session",
    description="Update session details such as its metadata.",
    params=[SESSION_ID, SPACE_OPTIONAL, METADATA],
)
async def update_session(client, session_id: str, space: str = None, metadata: dict = None):
    session = await client.put(_session_path(client, space, session_id), json=compact(metadata=metadata))
    return json_result(session, "Session updated successfully")


@registry.register(
    name="update_session_state",
    description="Force a session into a new lifecycle state.",
    params=[
        SESSION_ID,
        SPACE_OPTIONAL,
        Param(name="state", type=ParamType.STRING, description="New session state", required=True, enum=SESSION_STATES),
    ],
)
async def update_session_state(client, session_id: str, state: str, space: str = None):
    await client.put(_session_path(client, space, session_id, "state"), json={"state": state})
    return json_result(None, f"Session state updated to {state}")


@registry.register(
    name="close_session",
    description="Close a session. A closed session keeps its history and can be restored later.",
    params=[SESSION_ID],
)
async def close_session(client, session_id: str):
    result = await client.post(f"sessions/{segment(session_id)}/close")
    return json_result(result, "Session closed successfully")


@registry.register(
    name="restore_session",
    description="Restore a previously closed session.",
    params=[SESSION_ID],
)
async def restore_session(client, session_id: str):
    result = await client.post(f"sessions/{segment(session_id)}/restore")
    return json_result(result, "Session restored successfully")


@registry.register(
    name="remix_session",
    description="Fork a session into a new one that starts from the same history. Optionally place the fork in another space.",
    params=[
        Param(name="session_id", type=ParamType.STRING, description="Session ID to fork", required=True, min_length=1),
        Param(name="space", type=ParamType.STRING, description="Target space for the new session"),
    ],
)
async def remix_session(client, session_id: str, space: str = None):
    logger.info(f"Forking session {session_id}")
    session = await client.post(f"sessions/{segment(session_id)}/remix", json=compact(space=space))
    return json_result(session)


@registry.register(
    name="pause_session",
    description="Pause a running session.",
    params=[SESSION_ID, SPACE_OPTIONAL],
)
async def pause_session(client, session_id: str, space: str = None):
    result = await client.post(_session_path(client, space, session_id, "pause"))
    return json_result(result, "Session paused successfully")


@registry.register(
    name="resume_session",
    description="Resume a paused session.",
    params=[SESSION_ID, SPACE_OPTIONAL],
)
async def resume_session(client, session_id: str, space: str = None):
    result = await client.post(_session_path(client, space, session_id, "resume"))
    return json_result(result, "Session resumed successfully")


@registry.register(
    name="terminate_session",
    description="Terminate a session permanently.",
    params=[SESSION_ID, SPACE_OPTIONAL],
)
async def terminate_session(client, session_id: str, space: str = None):
    await client.delete(_session_path(client, space, session_id))
    return json_result(None, "Session terminated successfully")


@registry.register(
    name="send_message",
    description="Send a user message to a session. The agent processes it asynchronously; poll get_messages for the reply.",
    params=[
        SESSION_ID,
        Param(name="content", type=ParamType.STRING, description="Message content", required=True),
        SPACE_OPTIONAL,
    ],
)
async def send_message(client, session_id: str, content: str, space: str = None):
    message = await client.post(_session_path(client, space, session_id, "messages"), json={"content": content})
    return json_result(message, "Message sent successfully")


@registry.register(
    name="get_messages",
    description="Get messages from a session, oldest first.",
    params=[
        SESSION_ID,
        Param(name="limit", type=ParamType.INTEGER, description="Maximum number of messages to retrieve", minimum=1),
        SPACE_OPTIONAL,
    ],
)
async def get_messages(client, session_id: str, limit: int = None, space: str = None):
    params = {"limit": limit} if limit is not None else None
    messages = await client.get(_session_path(client, space, session_id, "messages"), params=params)
    return json_result(messages)


@registry.register(
    name="get_message_count",
    description="Get the number of messages in a session.",
    params=[SESSION_ID, SPACE_OPTIONAL],
)
async def get_message_count(client, session_id: str, space: str = None):
    count = await client.get(_session_path(client, space, session_id, "messages", "count"))
    return json_result(count)


@registry.register(
    name="clear_messages",
    description="Delete all messages from a session.",
    params=[SESSION_ID, SPACE_OPTIONAL],
)
async def clear_messages(client, session_id: str, space: str = None):
    await client.delete(_session_path(client, space, session_id, "messages"))
    return json_result(None, "Messages cleared successfully")
