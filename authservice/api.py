"""FastAPI application exposing registration and login endpoints."""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, ConfigDict
from starlette.exceptions import HTTPException as StarletteHTTPException

from .accounts import UserExistsError, authenticate_user, register_user
from .config import ServiceConfig
from .storage import StorageError, UserStore, resolve_database_path

logger = logging.getLogger("authservice.api")

WELCOME_MESSAGE = "Welcome to express app"
INVALID_BODY_MESSAGE = "Invalid request body"
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
INTERNAL_ERROR_MESSAGE = "Internal server error"


class RegisterRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    email: Optional[str] = None
    password: Optional[str] = None
    username: Optional[str] = None

    def is_complete(self) -> bool:
        return bool(self.email and self.password and self.username)


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UserEnvelope(BaseModel):
    success: bool = True
    data: Dict[str, Any]


class ErrorEnvelope(BaseModel):
    success: bool = False
    message: List[str]


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorEnvelope(message=[message]).model_dump(),
    )


def register_api_routes(app: FastAPI, store: UserStore) -> None:
    """Expose the authentication endpoints on the provided FastAPI application."""

    @app.get("/", response_class=PlainTextResponse)
    async def welcome() -> str:
        return WELCOME_MESSAGE

    @app.get("/healthz")
    async def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post(
        "/register",
        status_code=status.HTTP_201_CREATED,
        response_model=UserEnvelope,
    )
    async def register(request: RegisterRequest) -> UserEnvelope:
        if not request.is_complete():
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_BODY_MESSAGE)

        try:
            user = await register_user(store, request.model_dump())
        except UserExistsError as exc:
            logger.info("Registration rejected for %s: email already registered", request.email)
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

        return UserEnvelope(data=user)

    @app.post("/login", response_model=UserEnvelope)
    async def login(request: LoginRequest) -> UserEnvelope:
        email, password = request.email, request.password
        if not email or not password:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_BODY_MESSAGE)

        user = await authenticate_user(store, email, password)
        if user is None:
            logger.info("Failed login attempt for %s", email)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=INVALID_CREDENTIALS_MESSAGE,
            )

        return UserEnvelope(data=user)


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(_: Request, exc: StarletteHTTPException) -> JSONResponse:
        response = _error_response(exc.status_code, str(exc.detail))
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
        return _error_response(status.HTTP_400_BAD_REQUEST, INVALID_BODY_MESSAGE)

    @app.exception_handler(StorageError)
    async def handle_storage_error(request: Request, exc: StorageError) -> JSONResponse:
        logger.error("Storage failure while handling %s %s", request.method, request.url.path, exc_info=exc)
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)


def create_app(
    *,
    store: UserStore | None = None,
    config: ServiceConfig | None = None,
) -> FastAPI:
    """Instantiate the FastAPI application for the authentication service."""

    if store is None:
        if config is not None:
            db_path = config.database_path
        else:
            db_path = resolve_database_path(os.getenv("AUTH_DB_PATH"))
        store = UserStore(db_path)
    store.initialize()

    origins = list(config.cors_origins) if config is not None else ["*"]

    app = FastAPI(
        title="Flat-file Authentication Service",
        version="0.1.0",
        description="User registration and login backed by a JSON file.",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.store = store

    register_api_routes(app, store)
    register_error_handlers(app)

    return app


__all__ = ["create_app", "register_api_routes", "register_error_handlers"]
