import asyncio
import json
import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from raworc_mcp.config import Config
from raworc_mcp.core.dispatcher import Dispatcher
from raworc_mcp.core.errors import ConfigError, ParseError, error_response
from raworc_mcp.core.mcp_types import SERVER_NAME, SERVER_VERSION
from raworc_mcp.core.raworc_client import RaworcClient
from raworc_mcp.core.stdio import run_stdio
from raworc_mcp.tools.catalog import registry

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level: str = "INFO") -> None:
    # stdout carries the protocol, so logs always go to stderr
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT, stream=sys.stderr, force=True)


def create_app(config: Config, client: Optional[RaworcClient] = None) -> FastAPI:
    """HTTP transport: one JSON-RPC message per POST /mcp."""
    owns_client = client is None
    client = client or RaworcClient(config.raworc)
    dispatcher = Dispatcher(registry, client)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(json.dumps({"event": "config_loaded", "config": config.mask_secrets()}, ensure_ascii=False))
        yield
        if owns_client:
            await client.aclose()

    app = FastAPI(title="Raworc MCP Server", lifespan=lifespan)
    app.state.dispatcher = dispatcher

    # CORS Middleware
    origins = config.allowed_origins or ["*"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def _origin_allowed(origin):
        if not config.allowed_origins:
            return True
        if not origin:
            return True
        return origin in config.allowed_origins

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        client_host = request.client.host if request.client else "-"
        logger.info(f"Access: {request.method} {request.url.path} from {client_host}")
        return await call_next(request)

    @app.post("/mcp")
    async def mcp_post(request: Request):
        """HTTP POST endpoint for MCP protocol"""
        if not _origin_allowed(request.headers.get("origin")):
            return Response(status_code=403)

        body = await request.body()
        try:
            rpc_message = json.loads(body)
        except ValueError:
            return JSONResponse(status_code=400, content=error_response(None, ParseError("Parse error")))

        response = await dispatcher.dispatch(rpc_message)
        # Notifications get 202 Accepted and no content
        if response is None:
            return Response(status_code=202)
        return JSONResponse(content=response)

    @app.get("/mcp")
    async def mcp_get(request: Request):
        if not _origin_allowed(request.headers.get("origin")):
            return Response(status_code=403)
        return Response(status_code=200, content="MCP Server Running")

    @app.get("/")
    async def root():
        return {"status": "online", "service": SERVER_NAME, "version": SERVER_VERSION, "tools": len(registry)}

    return app


async def serve_stdio(config: Config) -> int:
    client = RaworcClient(config.raworc)
    try:
        return await run_stdio(Dispatcher(registry, client))
    finally:
        await client.aclose()


def main() -> int:
    configure_logging()
    try:
        config = Config.load()
    except ConfigError as e:
        logger.error(str(e))
        return 1

    configure_logging(config.server.log_level)
    if not config.raworc.auth_token and not config.raworc.has_credentials:
        logger.warning("No RAWORC_AUTH_TOKEN or RAWORC_USERNAME/RAWORC_PASSWORD set; only public endpoints will work")

    if config.server.transport == "http":
        import uvicorn

        logger.info(f"Starting {SERVER_NAME} {SERVER_VERSION} on http://{config.server.host}:{config.server.port}/mcp")
        uvicorn.run(create_app(config), host=config.server.host, port=config.server.port)
        return 0

    logger.info(json.dumps({"event": "config_loaded", "config": config.mask_secrets()}, ensure_ascii=False))
    logger.info(f"Starting {SERVER_NAME} {SERVER_VERSION} on stdio with {len(registry)} tools")
    return asyncio.run(serve_stdio(config))


if __name__ == "__main__":
    sys.exit(main())
