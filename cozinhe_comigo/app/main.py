from __future__ import annotations
import logging
import sys

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cozinhe_comigo.app.config import settings
from cozinhe_comigo.app.domain.models import InternStatusCode
from cozinhe_comigo.app.routers.recipes import router as recipes_router

# Logging simples no stdout (bom para dev e containers)
logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
log = logging.getLogger("app")

app = FastAPI(title="Cozinhe Comigo API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(recipes_router)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query"))
    detail = first.get("msg", "invalid request")
    message = f"{location}: {detail}" if location else detail
    log.info("request.invalid path=%s message=%s", request.url.path, message)
    return JSONResponse(
        status_code=400,
        content={"statusCode": InternStatusCode.BAD_REQUEST.value, "message": message},
    )


@app.get("/health")
def health():
    return {"ok": True, "backend": settings.RECIPES_BACKEND}


def run() -> None:
    """Serve the API with uvicorn on HOST:PORT (entry point `cozinhe-comigo-api`)."""
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())


if __name__ == "__main__":
    run()
