"""HTTP API — FastAPI app exposing the coach service.

Routes:
    POST    /ai-coach         {userId, type} -> {content, type}
    POST    /weekly-summary   {userId}       -> weekly stats + commentary
    OPTIONS on both                          -> CORS preflight, always "ok"
    GET     /health

Every response carries the same permissive CORS headers.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from habitcoach.coach import CoachService, ValidationError

log = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


def _json(payload: dict, status_code: int = 200) -> JSONResponse:
    return JSONResponse(payload, status_code=status_code, headers=CORS_HEADERS)


def _preflight() -> PlainTextResponse:
    return PlainTextResponse("ok", headers=CORS_HEADERS)


async def _run(request: Request, handler) -> JSONResponse:
    """Parse the JSON body, call handler(body), map errors to status codes."""
    try:
        body = await request.json()
        if not isinstance(body, dict):
            body = {}
        return _json(await handler(body))
    except ValidationError as e:
        return _json({"error": str(e)}, status_code=400)
    except Exception as e:
        log.error("%s %s failed: %s", request.method, request.url.path, e, exc_info=True)
        return _json({"error": str(e)}, status_code=500)


def create_app(service: CoachService) -> FastAPI:
    app = FastAPI(title="habitcoach")

    @app.options("/ai-coach")
    async def ai_coach_preflight():
        return _preflight()

    @app.post("/ai-coach")
    async def ai_coach(request: Request):
        return await _run(
            request, lambda body: service.coach(body.get("userId"), body.get("type")),
        )

    @app.options("/weekly-summary")
    async def weekly_summary_preflight():
        return _preflight()

    @app.post("/weekly-summary")
    async def weekly_summary(request: Request):
        return await _run(
            request, lambda body: service.weekly_summary(body.get("userId")),
        )

    @app.get("/health")
    async def health():
        return _json({"status": "ok"})

    return app
