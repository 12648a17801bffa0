"""
API Server - aiohttp application exposing scan and discovery over HTTP.

Routes:
    POST /api/scan      run a scan (and passive recon for domain targets)
    POST /api/discover  passive recon only
    GET  /health        liveness probe
"""

import json
from typing import Any, Optional

import structlog
from aiohttp import web
from pydantic import BaseModel, ValidationError

from ..config import Settings
from ..core.admission import AdmissionTimeout
from ..integrated_scanner import IntegratedScanner
from .schemas import DiscoverRequest, ScanRequest


SCANNER_KEY = web.AppKey("scanner", IntegratedScanner)

logger = structlog.get_logger(__name__)


def _bad_request(error: str, details: Any = None) -> web.Response:
    body = {"error": error}
    if details is not None:
        body["details"] = details
    return web.json_response(body, status=400)


async def _parse(request: web.Request, model: type[BaseModel]):
    """Validate the JSON body; returns (model, None) or (None, error response)"""
    try:
        body = await request.json()
    except json.JSONDecodeError:
        return None, _bad_request("Invalid request", "Body must be valid JSON")

    try:
        return model.model_validate(body), None
    except ValidationError as e:
        return None, _bad_request("Invalid request", json.loads(e.json(include_url=False)))


async def handle_scan(request: web.Request) -> web.Response:
    scan_request, error = await _parse(request, ScanRequest)
    if error is not None:
        return error

    scanner = request.app[SCANNER_KEY]
    target = scan_request.to_target()
    logger.info("api_scan_requested", target=target.describe())

    try:
        report = await scanner.scan(target, scan_request.to_scan_options())
    except AdmissionTimeout as e:
        logger.warning("api_scan_rejected", target=target.describe(), error=str(e))
        return web.json_response({"error": "Scanner busy", "message": str(e)}, status=503)
    except Exception as e:
        logger.error("api_scan_failed", target=target.describe(), error=str(e), exc_info=True)
        return web.json_response({"error": "Scan failed", "message": str(e)}, status=500)

    return web.json_response(IntegratedScanner.to_dict(report))


async def handle_discover(request: web.Request) -> web.Response:
    discover_request, error = await _parse(request, DiscoverRequest)
    if error is not None:
        return error

    scanner = request.app[SCANNER_KEY]
    logger.info("api_discovery_requested", domain=discover_request.domain)

    try:
        result = await scanner.discover(discover_request.domain)
    except Exception as e:
        logger.error("api_discovery_failed", domain=discover_request.domain, error=str(e), exc_info=True)
        return web.json_response({"error": "Asset discovery failed", "message": str(e)}, status=500)

    return web.json_response(result.to_dict())


async def handle_health(request: web.Request) -> web.Response:
    return web.Response(text="OK")


def create_app(scanner: Optional[IntegratedScanner] = None) -> web.Application:
    """Build the aiohttp application around a scanner"""
    app = web.Application()
    app[SCANNER_KEY] = scanner or IntegratedScanner()
    app.router.add_post("/api/scan", handle_scan)
    app.router.add_post("/api/discover", handle_discover)
    app.router.add_get("/health", handle_health)
    return app


def run_server(settings: Settings) -> None:
    """Serve the API until interrupted"""
    app = create_app(IntegratedScanner(settings))
    logger.info("api_server_starting", host=settings.host, port=settings.port)
    web.run_app(app, host=settings.host, port=settings.port, print=None)
