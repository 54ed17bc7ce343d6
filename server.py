import argparse
import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import List, Optional

import uvicorn
from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, StreamingResponse
from fastapi.staticfiles import StaticFiles

# IMPORTANT: settings loads .env, import it before anything that reads env
from settings import (
    CORS_ORIGINS,
    EVENT_QUEUE_SIZE,
    HOST,
    KEEPALIVE_SECONDS,
    LOG_DIR,
    LOG_LEVEL,
    LOG_TO_FILE,
    PORT,
    STATIC_DIR,
)
from errors import TelemetryError
from handlers import handle_attendance, handle_location
from logs import setup_logging
from netinfo import outbound_ip
from sse import EventBroker
from store import StateStore

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Content-Type": "text/event-stream",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    broker: EventBroker = app.state.broker
    await broker.start()
    try:
        yield
    finally:
        await broker.stop()


def create_app(store: Optional[StateStore] = None,
               broker: Optional[EventBroker] = None,
               keepalive_seconds: float = KEEPALIVE_SECONDS,
               cors_origins: Optional[List[str]] = None,
               static_dir: Optional[Path] = STATIC_DIR) -> FastAPI:
    app = FastAPI(title="Device Telemetry", lifespan=lifespan)
    app.state.store = store if store is not None else StateStore()
    app.state.broker = broker if broker is not None else EventBroker(EVENT_QUEUE_SIZE)

    origins = CORS_ORIGINS if cors_origins is None else cors_origins
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    if static_dir is not None and static_dir.is_dir():
        app.mount("/app", StaticFiles(directory=static_dir, html=True), name="app")

    @app.exception_handler(TelemetryError)
    async def telemetry_error(request: Request, exc: TelemetryError):
        return PlainTextResponse(f"{exc.message}\n", status_code=exc.status_code)

    # ---- updates (run on the worker thread pool) ----

    @app.get("/update", response_class=PlainTextResponse)
    def update(request: Request,
               device_id: str = Query("", alias="id"),
               value: str = Query("")):
        message = handle_attendance(request.app.state.store, request.app.state.broker,
                                    device_id, value)
        return f"{message}\n"

    @app.get("/gps", response_class=PlainTextResponse)
    def gps(request: Request,
            device_id: str = Query("", alias="id"),
            lat: str = Query(""),
            lon: str = Query("")):
        message = handle_location(request.app.state.store, request.app.state.broker,
                                  device_id, lat, lon)
        return f"{message}\n"

    # ---- reads ----

    @app.get("/api/devices")
    def api_devices(request: Request):
        rows = request.app.state.store.attendance()
        return {"count": len(rows), "devices": [r.model_dump(mode="json") for r in rows]}

    @app.get("/api/locations")
    def api_locations(request: Request):
        rows = request.app.state.store.locations()
        return {"count": len(rows), "locations": [r.model_dump(mode="json") for r in rows]}

    # ---- live stream ----

    @app.get("/events")
    async def events(request: Request):
        broker: EventBroker = request.app.state.broker

        async def event_gen():
            q = broker.subscribe()
            try:
                while True:
                    if await request.is_disconnected():
                        break
                    try:
                        event = await asyncio.wait_for(q.get(), timeout=keepalive_seconds)
                        yield f"data: {event.model_dump_json()}\n\n"
                    except asyncio.TimeoutError:
                        yield ":\n\n"   # keep-alive
            finally:
                broker.unsubscribe(q)

        return StreamingResponse(event_gen(), headers=SSE_HEADERS)

    return app


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Device attendance and GPS telemetry server")
    parser.add_argument("--host", default=HOST, help=f"Bind address (default: {HOST})")
    parser.add_argument("--port", type=int, default=PORT, help=f"Listening port (default: {PORT})")
    parser.add_argument("--log-dir", type=Path, default=LOG_DIR,
                        help="Directory for the server_<timestamp>.log file")
    parser.add_argument("--no-log-file", dest="log_to_file", action="store_false",
                        default=LOG_TO_FILE, help="Log to the console only")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    try:
        setup_logging(LOG_LEVEL, args.log_dir if args.log_to_file else None)
    except OSError as exc:
        print(f"error opening log file: {exc}", file=sys.stderr)
        sys.exit(1)

    app = create_app()
    logger.info("Server running on %s:%d", outbound_ip(), args.port)
    # uvicorn logs bind failures and exits non-zero
    uvicorn.run(app, host=args.host, port=args.port, log_config=None)


if __name__ == "__main__":
    main()
