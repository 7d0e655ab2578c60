from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from printvault.application.services.admin_service import AdminResourceService
from printvault.application.services.auth_service import AuthService
from printvault.application.services.catalog_service import CatalogService
from printvault.application.services.download_counter import DownloadCountRecorder
from printvault.application.services.project_service import ProjectService
from printvault.core.config import AppPaths, Settings, load_settings
from printvault.core.errors import (
    AuthError,
    NotFoundError,
    PrintvaultError,
    ValidationError,
)
from printvault.core.time import now_utc_iso
from printvault.domain.models.resource import Resource, ResourcePage
from printvault.infrastructure.db.repos.resource_repo import ResourceRepo

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"
ADMIN_TOKEN_COOKIE = "adminToken"


class LoginRequest(BaseModel):
    password: str | None = None


class ResourceWriteRequest(BaseModel):
    """Create/update body. Every field is optional so that partial updates
    can be told apart from explicit clears via ``exclude_unset``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str | None = None
    category: str | None = None
    description: str | None = None
    tags: list[str] | str | None = None
    preview_url: str | None = Field(default=None, alias="previewUrl")
    drive_pdf_id: str | None = Field(default=None, alias="drivePdfId")
    drive_cdr_id: str | None = Field(default=None, alias="driveCdrId")
    drive_ai_id: str | None = Field(default=None, alias="driveAiId")
    drive_svg_id: str | None = Field(default=None, alias="driveSvgId")
    drive_eps_id: str | None = Field(default=None, alias="driveEpsId")
    featured: bool | None = None


class BulkDeleteRequest(BaseModel):
    ids: Any = None


def _envelope(
    data: Any = None,
    *,
    message: str | None = None,
    meta: dict[str, Any] | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {"success": True}
    if data is not None:
        payload["data"] = data
    if message is not None:
        payload["message"] = message
    if meta is not None:
        payload["meta"] = meta
    return payload


def _error(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


def _resources(items: list[Resource]) -> list[dict[str, Any]]:
    return [r.to_payload() for r in items]


def _page(page: ResourcePage) -> dict[str, Any]:
    return _envelope(_resources(page.items), meta=page.meta())


def create_app(paths: AppPaths, settings: Settings | None = None) -> FastAPI:
    settings = settings or load_settings()
    app = FastAPI(title="Printvault API", version=API_VERSION)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_origin],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    ProjectService(paths).init_project()
    resource_repo = ResourceRepo(paths.db_path)
    download_recorder = DownloadCountRecorder(resource_repo)
    download_recorder.start()
    auth_service = AuthService(
        admin_password=settings.admin_password,
        jwt_secret=settings.jwt_secret,
        token_ttl_days=settings.token_ttl_days,
    )
    app.state.settings = settings
    app.state.download_recorder = download_recorder

    def get_catalog_service() -> CatalogService:
        return CatalogService(
            resource_repo,
            download_recorder,
            default_page_limit=settings.default_page_limit,
            max_page_limit=settings.max_page_limit,
        )

    def get_admin_service() -> AdminResourceService:
        return AdminResourceService(resource_repo, max_page_limit=settings.max_page_limit)

    def require_admin(request: Request) -> dict:
        header = request.headers.get("authorization") or ""
        token = header[7:].strip() if header.startswith("Bearer ") else None
        if not token:
            token = request.cookies.get(ADMIN_TOKEN_COOKIE)
        return auth_service.verify(token)

    @app.on_event("shutdown")
    def _shutdown_download_recorder() -> None:
        download_recorder.shutdown()

    # -- error mapping ------------------------------------------------------

    @app.exception_handler(ValidationError)
    def _on_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        return _error(400, str(exc))

    @app.exception_handler(AuthError)
    def _on_auth_error(request: Request, exc: AuthError) -> JSONResponse:
        return _error(exc.status_code, str(exc))

    @app.exception_handler(NotFoundError)
    def _on_not_found(request: Request, exc: NotFoundError) -> JSONResponse:
        return _error(404, str(exc))

    @app.exception_handler(PrintvaultError)
    def _on_internal_error(request: Request, exc: PrintvaultError) -> JSONResponse:
        logger.exception("Request failed: %s %s", request.method, request.url.path, exc_info=exc)
        detail = str(exc) if settings.is_development else "Internal server error"
        return _error(500, detail)

    @app.exception_handler(RequestValidationError)
    def _on_bad_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(400, "Invalid request body")

    @app.exception_handler(StarletteHTTPException)
    def _on_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            return _error(404, "Endpoint not found")
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    def _on_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error: %s %s", request.method, request.url.path, exc_info=exc)
        detail = str(exc) if settings.is_development else "Internal server error"
        return _error(500, detail)

    # -- service info -------------------------------------------------------

    @app.get("/health")
    def health() -> dict[str, Any]:
        return {
            "success": True,
            "message": "Printvault API is running",
            "timestamp": now_utc_iso(),
        }

    @app.get("/api")
    def api_info() -> dict[str, Any]:
        return {
            "success": True,
            "name": "Printvault API",
            "version": API_VERSION,
            "description": "Free print resources library API",
            "endpoints": {
                "resources": "/api/resources",
                "categories": "/api/resources/categories",
                "tags": "/api/resources/tags",
                "featured": "/api/resources/featured",
                "admin": "/api/admin",
            },
        }

    # -- public catalog -----------------------------------------------------

    @app.get("/api/resources")
    def api_resources(request: Request) -> dict[str, Any]:
        return _page(get_catalog_service().list_resources(request.query_params))

    @app.get("/api/resources/categories")
    def api_categories() -> dict[str, Any]:
        return _envelope([asdict(c) for c in get_catalog_service().categories()])

    @app.get("/api/resources/tags")
    def api_tags() -> dict[str, Any]:
        return _envelope([asdict(t) for t in get_catalog_service().tags()])

    @app.get("/api/resources/featured")
    def api_featured(request: Request) -> dict[str, Any]:
        items = get_catalog_service().featured(request.query_params.get("limit"))
        return _envelope(_resources(items))

    @app.get("/api/resources/{slug}")
    def api_resource_detail(slug: str) -> dict[str, Any]:
        return _envelope(get_catalog_service().get_by_slug(slug).to_payload())

    @app.get("/api/resources/{slug}/download")
    def api_resource_download(slug: str, request: Request) -> RedirectResponse:
        target = get_catalog_service().resolve_download(slug, request.query_params.get("format"))
        return RedirectResponse(url=target.url, status_code=302)

    @app.get("/api/resources/{slug}/related")
    def api_resource_related(slug: str, request: Request) -> dict[str, Any]:
        items = get_catalog_service().related(slug, request.query_params.get("limit"))
        return _envelope(_resources(items))

    # -- admin --------------------------------------------------------------

    @app.post("/api/admin/login")
    def api_admin_login(req: LoginRequest) -> JSONResponse:
        token = auth_service.login(req.password)
        response = JSONResponse(_envelope({"token": token}, message="Login successful"))
        response.set_cookie(
            ADMIN_TOKEN_COOKIE,
            token,
            httponly=True,
            secure=not settings.is_development,
            samesite="lax",
            max_age=settings.token_ttl_days * 24 * 60 * 60,
        )
        return response

    @app.post("/api/admin/logout")
    def api_admin_logout(_: dict = Depends(require_admin)) -> JSONResponse:
        response = JSONResponse(_envelope(message="Logout successful"))
        response.delete_cookie(ADMIN_TOKEN_COOKIE)
        return response

    @app.get("/api/admin/verify")
    def api_admin_verify(_: dict = Depends(require_admin)) -> dict[str, Any]:
        return _envelope({"authenticated": True})

    @app.get("/api/admin/stats")
    def api_admin_stats(_: dict = Depends(require_admin)) -> dict[str, Any]:
        return _envelope(get_admin_service().stats().to_payload())

    @app.get("/api/admin/resources")
    def api_admin_resources(request: Request, _: dict = Depends(require_admin)) -> dict[str, Any]:
        return _page(get_admin_service().list_resources(request.query_params))

    @app.post("/api/admin/resources/bulk-delete")
    def api_admin_bulk_delete(
        req: BulkDeleteRequest, _: dict = Depends(require_admin)
    ) -> dict[str, Any]:
        deleted = get_admin_service().bulk_delete(req.ids)
        return _envelope({"deletedCount": deleted}, message=f"{deleted} resources deleted")

    @app.get("/api/admin/resources/{resource_id}")
    def api_admin_resource_detail(
        resource_id: str, _: dict = Depends(require_admin)
    ) -> dict[str, Any]:
        return _envelope(get_admin_service().get(resource_id).to_payload())

    @app.post("/api/admin/resources", status_code=201)
    def api_admin_create(req: ResourceWriteRequest, _: dict = Depends(require_admin)) -> dict[str, Any]:
        resource = get_admin_service().create(req.model_dump(exclude_unset=True))
        return _envelope(resource.to_payload(), message="Resource created successfully")

    @app.put("/api/admin/resources/{resource_id}")
    def api_admin_update(
        resource_id: str, req: ResourceWriteRequest, _: dict = Depends(require_admin)
    ) -> dict[str, Any]:
        resource = get_admin_service().update(resource_id, req.model_dump(exclude_unset=True))
        return _envelope(resource.to_payload(), message="Resource updated successfully")

    @app.delete("/api/admin/resources/{resource_id}")
    def api_admin_delete(resource_id: str, _: dict = Depends(require_admin)) -> dict[str, Any]:
        get_admin_service().delete(resource_id)
        return _envelope(message="Resource deleted successfully")

    @app.patch("/api/admin/resources/{resource_id}/featured")
    def api_admin_toggle_featured(
        resource_id: str, _: dict = Depends(require_admin)
    ) -> dict[str, Any]:
        resource = get_admin_service().toggle_featured(resource_id)
        verb = "marked as" if resource.featured else "removed from"
        return _envelope({"featured": resource.featured}, message=f"Resource {verb} featured")

    return app
