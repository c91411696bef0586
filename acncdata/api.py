"""
JSON API over the imported ACNC data.

Run with: uvicorn acncdata.api:create_app --factory --port 3000

Every data route answers {"success": true, "data": ...}. When no store
could be opened at startup the routes answer 503 instead of failing, and
the process keeps serving.
"""

import logging
import time
from typing import Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from acncdata import __version__
from acncdata.database import Store
from acncdata.queries import CharityQueries

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Error rendered as {"success": false, "error", "message"}."""

    def __init__(self, status_code: int, error: str, message: Optional[str] = None):
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.message = message


class LoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and duration of every request."""

    async def dispatch(self, request: Request, call_next):
        start = time.time()
        response = await call_next(request)
        duration_ms = round((time.time() - start) * 1000, 1)

        msg = (
            f"{request.method} {request.url.path} "
            f"status={response.status_code} "
            f"duration={duration_ms}ms"
        )
        if response.status_code >= 500:
            logger.error(msg)
        elif response.status_code >= 400:
            logger.warning(msg)
        else:
            logger.info(msg)
        return response


def open_queries(db_path, fallback: str = "none") -> Optional[CharityQueries]:
    """
    Pick the store strategy once at startup.

    Returns:
        Queries over the read-only database; over the built-in sample
        dataset if the database cannot be opened and fallback is "sample";
        otherwise None, which makes every data route answer 503.
    """
    try:
        store = Store.from_path(db_path, read_only=True)
        if not store.has_schema():
            raise RuntimeError(f"{db_path} has no ACNC tables; run 'acncdata init'")
        logger.info("Database connected: %s", db_path)
        return CharityQueries(store)
    except Exception as e:
        logger.error("Failed to initialize database: %s", e)

    if fallback == "sample":
        from acncdata.sample import sample_store

        logger.warning("Serving the built-in sample dataset")
        return CharityQueries(sample_store())
    return None


def _ok(data, with_count: bool = False) -> dict:
    body = {"success": True, "data": data}
    if with_count:
        body["count"] = len(data)
    return body


def create_app(queries: Optional[CharityQueries] = None, debug: bool = False) -> FastAPI:
    """
    Build the API.

    Args:
        queries: Query layer to serve. When omitted it is opened from the
            configured database path and fallback strategy.
        debug: Include exception messages in 500 responses
    """
    if queries is None:
        from acncdata.config import config

        queries = open_queries(config.database_path, config.serve_fallback)

    app = FastAPI(
        title="ACNC Charity Data API",
        version=__version__,
        description="Historical ACNC Annual Information Statement data",
    )
    app.state.queries = queries
    app.add_middleware(LoggingMiddleware)

    @app.exception_handler(APIError)
    async def _api_error(request: Request, exc: APIError):
        body = {"success": False, "error": exc.error}
        if exc.message:
            body["message"] = exc.message
        return JSONResponse(status_code=exc.status_code, content=body)

    @app.exception_handler(Exception)
    async def _unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s", request.url.path)
        message = str(exc) if debug else "The request could not be completed."
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Internal Server Error", "message": message},
        )

    def get_queries(request: Request) -> CharityQueries:
        current = request.app.state.queries
        if current is None:
            raise APIError(
                503,
                "Database Service Unavailable",
                "The database connection is not available.",
            )
        return current

    @app.get("/api/db/search")
    def search(
        search: str = "",
        size: str = "",
        year: Optional[int] = None,
        min_revenue: float = Query(0, alias="minRevenue"),
        max_revenue: Optional[float] = Query(None, alias="maxRevenue"),
        limit: int = Query(50, ge=1, le=500),
        offset: int = Query(0, ge=0),
        q: CharityQueries = Depends(get_queries),
    ):
        results = q.search_charities(
            search=search,
            size=size,
            year=year,
            min_revenue=min_revenue,
            max_revenue=max_revenue,
            limit=limit,
            offset=offset,
        )
        return _ok(results, with_count=True)

    @app.get("/api/db/charity/{abn}")
    def charity_details(abn: str, q: CharityQueries = Depends(get_queries)):
        details = q.get_charity_details(abn)
        if details is None:
            raise APIError(404, "Charity not found")
        return _ok(details)

    @app.get("/api/db/charity/{abn}/history")
    def charity_history(abn: str, q: CharityQueries = Depends(get_queries)):
        return _ok(q.get_financial_trends(abn))

    @app.get("/api/db/trends/{abn}")
    def financial_trends(abn: str, q: CharityQueries = Depends(get_queries)):
        return _ok(q.get_financial_trends(abn))

    @app.get("/api/db/stats/{year}")
    def yearly_stats(year: int, q: CharityQueries = Depends(get_queries)):
        return _ok(q.get_yearly_stats(year))

    @app.get("/api/db/top/{year}")
    def top_charities(
        year: int,
        limit: int = Query(10, ge=1, le=500),
        q: CharityQueries = Depends(get_queries),
    ):
        return _ok(q.get_top_charities(year, limit))

    @app.get("/api/db/sectors/{year}")
    def sector_analysis(year: int, q: CharityQueries = Depends(get_queries)):
        return _ok(q.get_sector_analysis(year))

    @app.get("/api/db/autocomplete")
    def autocomplete(
        search: str = "",
        limit: int = Query(10, ge=1, le=100),
        q: CharityQueries = Depends(get_queries),
    ):
        return _ok(q.get_autocomplete_suggestions(search, limit))

    @app.get("/api/db/similar")
    def similar_names(
        name: str,
        limit: int = Query(10, ge=1, le=100),
        min_score: int = Query(80, alias="minScore", ge=0, le=100),
        q: CharityQueries = Depends(get_queries),
    ):
        return _ok(q.search_similar_names(name, limit, min_score), with_count=True)

    @app.get("/api/db/years")
    def available_years(q: CharityQueries = Depends(get_queries)):
        return _ok(q.get_available_years())

    @app.get("/api/db/health")
    def health(request: Request):
        current = request.app.state.queries
        if current is None:
            raise APIError(
                503,
                "Database Service Unavailable",
                "The database connection is not available, but the API server is running.",
            )
        years = current.get_available_years()
        return {
            "success": True,
            "database": "connected",
            "available_years": years,
            "latest_year_stats": current.get_yearly_stats(years[0]) if years else {},
        }

    return app
