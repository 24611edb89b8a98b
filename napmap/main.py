from __future__ import annotations

from typing import Any, Dict

import uvicorn
from fastapi import Body, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from napmap import config
from napmap.errors import ConfigurationError, RouteOracleError
from napmap.logging_setup import get_logger
from napmap.orchestrator import orchestrate_plan
from napmap.schemas import NoRouteResponse, PlanRequest

logger = get_logger(__name__)

app = FastAPI(title="Nap Map Planner API")

# Browser clients call this API directly; NAPMAP_ALLOWED_ORIGINS narrows the
# default wildcard.
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Content-Security-Policy": "default-src 'self'; frame-ancestors 'self'",
}

@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response

@app.get("/healthz")
async def healthz() -> Dict[str, bool]:
    return {"ok": True}

@app.post("/api/plan")
async def api_plan(payload: Dict[str, Any] = Body(...)) -> Any:
    """Find the most relaxing departure that still arrives by ``arriveAt``."""
    try:
        req = PlanRequest.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors(include_url=False)) from exc

    try:
        result = await orchestrate_plan(req)
    except ConfigurationError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except RouteOracleError as exc:
        logger.warning("Planning aborted by directions failure: %s", exc)
        raise HTTPException(
            status_code=502,
            detail={"status": exc.status, "message": exc.message},
        ) from exc

    if isinstance(result, NoRouteResponse):
        return JSONResponse(status_code=404, content=result.model_dump(by_alias=True))
    return result.model_dump(by_alias=True)

def run() -> None:
    uvicorn.run("napmap.main:app", host="0.0.0.0", port=config.server_port())

if __name__ == "__main__":
    run()
