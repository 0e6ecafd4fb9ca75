from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

import properties
import users
from bookings import BookingManager
from config import Settings, get_settings
from database import Store
from errors import HouseHuntError
from logger import get_logger, setup_logger
from schemas import BookingRequest, LoginRequest, PropertyCreate, RegisterRequest, StatusUpdate

logger = get_logger(__name__)


def get_store(request: Request) -> Store:
    return request.app.state.store


def get_booking_manager(store: Store = Depends(get_store)) -> BookingManager:
    return BookingManager(store)


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else err.get("msg", "Invalid request"))
    return "; ".join(parts) or "Invalid request"


def create_app(store: Optional[Store] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the API. Pass a store to reuse an existing database handle;
    otherwise one is opened from settings at startup and closed at shutdown.
    """
    settings = settings or get_settings()
    setup_logger(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_store = app.state.store is None
        if owns_store:
            app.state.store = Store.from_settings(settings)
        try:
            app.state.store.ensure_indexes()
            logger.info("app_started", database=settings.database_name)
            yield
        finally:
            if owns_store:
                app.state.store.close()
                app.state.store = None
            logger.info("app_stopped")

    app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)
    app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(HouseHuntError)
    async def househunt_error_handler(request: Request, exc: HouseHuntError):
        log = logger.error if exc.status_code >= 500 else logger.warning
        log("request_failed", path=request.url.path, error_type=type(exc).__name__, error=exc.message)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": _validation_message(exc)})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error("unhandled_exception", path=request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    @app.get("/")
    def root():
        return {"message": "HouseHunt API running"}

    @app.get("/api/health")
    def health(store: Store = Depends(get_store)):
        store.ping()
        return {"status": "ok"}

    # Users
    @app.post("/api/users/register", status_code=201)
    def register(payload: RegisterRequest, store: Store = Depends(get_store)):
        return jsonable_encoder(users.register(store, payload))

    @app.post("/api/users/login")
    def login(payload: LoginRequest, store: Store = Depends(get_store)):
        return jsonable_encoder(users.authenticate(store, payload))

    # Properties
    @app.post("/api/properties/add", status_code=201)
    def add_property(payload: PropertyCreate, store: Store = Depends(get_store)):
        return jsonable_encoder(properties.add_property(store, payload))

    @app.get("/api/properties")
    def list_properties(store: Store = Depends(get_store)):
        return jsonable_encoder(properties.list_properties(store))

    @app.get("/api/properties/{property_id}")
    def get_property(property_id: str, store: Store = Depends(get_store)):
        return jsonable_encoder(properties.get_property(store, property_id))

    # Bookings
    @app.post("/api/bookings/request", status_code=201)
    def request_booking(payload: BookingRequest, manager: BookingManager = Depends(get_booking_manager)):
        return jsonable_encoder(manager.create(payload.renter_id, payload.property_id, payload.message))

    @app.get("/api/bookings")
    def list_bookings(manager: BookingManager = Depends(get_booking_manager)):
        return jsonable_encoder(list(manager.list()))

    @app.get("/api/bookings/{booking_id}")
    def get_booking(booking_id: str, manager: BookingManager = Depends(get_booking_manager)):
        return jsonable_encoder(manager.get(booking_id))

    @app.patch("/api/bookings/{booking_id}/status")
    def update_booking_status(
        booking_id: str, payload: StatusUpdate, manager: BookingManager = Depends(get_booking_manager)
    ):
        return jsonable_encoder(manager.transition(booking_id, payload.status.value))

    return app


app = create_app()


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port)
