# dirgate_server/http_app.py
from __future__ import annotations

import logging
from typing import Optional, Type
from urllib.parse import quote, urlsplit

from fastapi import FastAPI, Form, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse, PlainTextResponse, RedirectResponse, Response
from pydantic import BaseModel, ValidationError

from dirgate.config import Settings
from dirgate.di import Container, build_container
from dirgate.errors import ErrorKind
from dirgate.logging import configure_logging, log_auth_event
from dirgate.services.access import Deny, Listing, PermissionFlag, RedirectToLogin, Serve
from dirgate_server.models import ReadPermissionIn, WritePermissionIn
from dirgate_server.pages import FAVICON_SVG, render_listing, render_login

logger = logging.getLogger(__name__)


def _safe_redirect(target: Optional[str]) -> str:
    # Only local absolute paths; "//host" and "http://host" would leave the site
    if not target or not target.startswith("/") or target.startswith("//") or "\\" in target:
        return "/"
    return target


def _error(kind: ErrorKind, reason: str) -> PlainTextResponse:
    return PlainTextResponse(reason, status_code=kind.status_code)


def create_app(container: Optional[Container] = None) -> FastAPI:
    """
    Build the FastAPI app around one DI container.
    Routes are thin: read the cookie, call the access layer, render the outcome.
    """
    c = container or build_container()
    settings = c.settings
    cookie_name = settings.SESSION_COOKIE_NAME

    app = FastAPI(title="dirgate", version="0.1.0")
    app.state.container = c

    # ---------- Security: Origin validation for state-changing requests ----------

    allowed_origins = {o.strip().lower() for o in settings.ALLOWED_ORIGINS.split(",") if o.strip()}

    def _origin_allowed(req: Request) -> bool:
        origin = req.headers.get("origin")
        if not origin:
            return settings.ALLOW_NO_ORIGIN
        if origin.lower() in allowed_origins:
            return True
        # Same-origin: the page was served by this host, whatever PORT or proxy name it uses
        netloc = urlsplit(origin).netloc.lower()
        hosts = {req.headers.get("host", ""), req.headers.get("x-forwarded-host", "")}
        return bool(netloc) and netloc in {h.strip().lower() for h in hosts if h}

    @app.middleware("http")
    async def origin_validation_mw(request: Request, call_next):
        # Cookie auth makes cross-site POSTs dangerous; refuse foreign origins
        if request.method == "POST" and not _origin_allowed(request):
            return PlainTextResponse("Forbidden origin", status_code=403)
        return await call_next(request)

    def _token(req: Request) -> Optional[str]:
        return req.cookies.get(cookie_name)

    # ---------- Authentication ----------

    @app.get("/login")
    async def login_form(request: Request, redirect: str = "/"):
        target = _safe_redirect(redirect)
        if c.sessions.validate_session(_token(request)):
            return RedirectResponse(target, status_code=302)
        return HTMLResponse(render_login(target))

    @app.post("/login")
    async def login_submit(
        request: Request,
        username: str = Form(""),
        password: str = Form(""),
        redirect: Optional[str] = Form(None),
    ):
        target = _safe_redirect(redirect or request.query_params.get("redirect"))
        identity = c.credentials.verify(username, password)
        if identity is None:
            log_auth_event(logger, "login_failed", {"username": username, "password": password})
            return HTMLResponse(
                render_login(target, "Invalid username or password"), status_code=401
            )

        purged = c.sessions.purge_expired()
        if purged:
            logger.debug("purged %d expired sessions", purged)
        token = c.sessions.create_session(identity)
        log_auth_event(logger, "login", {"username": identity})
        resp = RedirectResponse(target, status_code=303)
        resp.set_cookie(
            cookie_name,
            token,
            max_age=int(settings.SESSION_TTL_SEC),
            path="/",
            httponly=True,
            samesite="lax",
            secure=settings.SESSION_COOKIE_SECURE,
        )
        return resp

    @app.get("/logout")
    async def logout(request: Request):
        c.sessions.delete_session(_token(request))
        resp = RedirectResponse("/login", status_code=302)
        resp.delete_cookie(cookie_name, path="/")
        return resp

    # ---------- Permission API ----------

    async def _toggle(request: Request, flag: PermissionFlag, model: Type[BaseModel], field: str):
        token = _token(request)
        if c.sessions.validate_session(token) is None:
            return _error(ErrorKind.UNAUTHORIZED, "Unauthorized")

        try:
            payload = await request.json()
            body = model.model_validate(payload)
        except ValidationError as e:
            return _error(ErrorKind.INVALID_REQUEST, f"Invalid request: {e.error_count()} invalid field(s)")
        except ValueError:
            return _error(ErrorKind.INVALID_REQUEST, "Invalid request: body must be JSON")

        result = await run_in_threadpool(
            c.access.set_permission, flag, body.path, getattr(body, field), token
        )
        if not result.ok:
            return _error(result.kind, result.reason)
        return JSONResponse({"success": True})

    @app.post("/api/permissions/read")
    async def set_read_permission(request: Request):
        return await _toggle(request, PermissionFlag.READ, ReadPermissionIn, "isPublic")

    @app.post("/api/permissions/write")
    async def set_write_permission(request: Request):
        return await _toggle(request, PermissionFlag.WRITE, WritePermissionIn, "isWritable")

    # ---------- Static ----------

    @app.get("/favicon.ico")
    async def favicon():
        return Response(FAVICON_SVG, media_type="image/svg+xml", headers={"Cache-Control": "max-age=86400"})

    # ---------- Browsing ----------

    @app.api_route("/{path:path}", methods=["GET", "HEAD"])
    async def browse(request: Request, path: str):
        request_path = "/" + path
        decision = await run_in_threadpool(
            c.access.decide, request_path, _token(request), request.method
        )

        if isinstance(decision, Serve):
            return FileResponse(decision.target.path, media_type=decision.media_type)
        if isinstance(decision, Listing):
            name = c.credentials.display_name(decision.identity) if decision.identity else None
            return HTMLResponse(render_listing(decision, name))
        if isinstance(decision, RedirectToLogin):
            return RedirectResponse(
                f"/login?redirect={quote(decision.original_path, safe='')}", status_code=302
            )
        if isinstance(decision, Deny):
            return _error(decision.kind, decision.reason)
        raise TypeError(f"unexpected decision: {decision!r}")

    return app


def main():
    settings = Settings()
    configure_logging(settings.LOG_LEVEL)
    logger.info("Serving files from %s", settings.ROOT_DIR.resolve())

    import uvicorn
    uvicorn.run(
        "dirgate_server.http_app:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        reload=False,
    )


if __name__ == "__main__":
    main()
