from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

import constants
from backend import create_backend
from gateway import Connection, SessionGateway
from logging_config import get_logger, setup_logging
from room_store import RoomStore
from routers.rooms import rooms_router
from schemas.rooms import HealthResponse
from signer import create_signer

setup_logging(log_level=constants.LOG_LEVEL, log_file=constants.LOG_FILE)
logger = get_logger(__name__)


def create_app(
    store: Optional[RoomStore] = None,
    signer=None,
    admin_token: Optional[str] = constants.ADMIN_TOKEN,
    announce_result_on_join: bool = constants.ANNOUNCE_RESULT_ON_JOIN,
    delete_empty_rooms: bool = constants.DELETE_EMPTY_ROOMS,
) -> FastAPI:
    """Build the app. Without an explicit store the snapshot is loaded at startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        room_store = store
        room_signer = signer
        if room_store is None:
            # a corrupt snapshot aborts startup here
            room_store = RoomStore.load(create_backend())
            room_signer = create_signer()
        app.state.gateway = SessionGateway(
            room_store,
            signer=room_signer,
            announce_result_on_join=announce_result_on_join,
            delete_empty_rooms=delete_empty_rooms,
        )
        app.state.admin_token = admin_token
        logger.info(f"Chess room server ready with {len(room_store)} rooms")
        yield
        logger.info("Chess room server shutting down")

    app = FastAPI(title="Chess Rooms", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=constants.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(rooms_router)

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(status="ok", rooms=len(app.state.gateway.store))

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """One socket per client. Frames are {"event": ..., "data": ...} JSON objects."""
        gateway: SessionGateway = websocket.app.state.gateway
        await websocket.accept()
        connection = Connection(websocket)
        gateway.register(connection)
        logger.info(f"WebSocket connection {connection.connection_id} accepted")

        try:
            message_count = 0
            while True:
                data = await websocket.receive_text()
                message_count += 1
                logger.debug(f"Received message #{message_count} from connection {connection.connection_id}")
                await gateway.dispatch(connection, data)
        except WebSocketDisconnect:
            logger.info(f"WebSocket disconnected normally for connection {connection.connection_id}")
        except Exception as e:
            logger.error(f"WebSocket error for connection {connection.connection_id}: {e}", exc_info=True)
        finally:
            await gateway.on_disconnect(connection)

    logger.info("FastAPI application initialized")
    return app


app = create_app()
