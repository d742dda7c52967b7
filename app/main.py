# app/main.py — FastAPI app entry point

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.routers import health, profile_search
from app.services.search_history import SearchHistory

settings = get_settings()
logging.basicConfig(level=settings.log_level.upper())

app = FastAPI(
    title="cto-finder-api",
    description="LinkedIn executive profile search over Google Custom Search and SerpAPI",
    version="0.1.0",
)

app.state.search_history = SearchHistory(max_records=settings.search_history_limit)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    allow_credentials=settings.cors_origin_list != ["*"],
)


@app.exception_handler(HTTPException)
async def http_exception_handler(_: Request, exc: HTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(
    profile_search.router,
    prefix="/api/search",
    tags=["profile-search"],
)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.port)
