from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from backend import build_team_store
from chat_service import ChatRelay
from registry import TeamRegistry
from routers.teams import teams_router
from logging_config import get_logger

logger = get_logger(__name__)


def create_app(relay: ChatRelay = None) -> FastAPI:
    """Build the app around an explicit ChatRelay.

    Without one, the lifespan builds the configured team store and loads the
    registry from it at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "relay", None) is None:
            registry = TeamRegistry(build_team_store())
            registry.load()
            app.state.relay = ChatRelay(registry)
        logger.info("TeamChat relay ready")
        yield

    app = FastAPI(title="TeamChat", lifespan=lifespan)
    app.state.relay = relay

    # Configure CORS to allow all origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(teams_router)

    @app.get("/health")
    def health():
        return {"status": "healthy"}

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """Real-time channel: one RoomSession per connection."""
        relay: ChatRelay = websocket.app.state.relay
        await websocket.accept()
        session = relay.open_session(websocket)
        logger.info(f"WebSocket connection accepted: {session.connection_id}")

        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(code=message.get("code", 1000))
                # Binary frames carry "bytes" instead of "text"; handle_frame rejects them
                ack = await relay.handle_frame(session, message.get("text"))
                await relay.reply(session, ack)
        except WebSocketDisconnect:
            logger.info(f"WebSocket disconnected normally for connection {session.connection_id}")
        except Exception as e:
            logger.error(f"WebSocket error for connection {session.connection_id}: {e}", exc_info=True)
        finally:
            await relay.close_session(session)

    logger.info("FastAPI application initialized")
    return app


app = create_app()
