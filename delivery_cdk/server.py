"""
HTTP API for delivery-cdk.

Endpoints:
1. GET /                                  - Service info and configured carriers
2. GET /carriers                          - Configured carrier codes
3. GET /track/{carrier}/{tracking_number} - Normalized tracking result
"""

import time
from typing import Optional
from aiohttp import web
from loguru import logger

from delivery_cdk.config import DeliveryConfig, get_config
from delivery_cdk.exceptions import InvalidInputError, NotFoundError, TrackingError
from delivery_cdk.tracking.registry import CarrierRegistry, build_registry

SERVICE_NAME = "delivery-cdk"

REGISTRY_KEY = web.AppKey("registry", CarrierRegistry)


# ===== Middleware =====

@web.middleware
async def access_log_middleware(request: web.Request, handler):
    """Log every request with its status and duration."""
    started = time.perf_counter()
    status = 500

    try:
        response = await handler(request)
        status = response.status
        return response
    except web.HTTPException as e:
        status = e.status
        raise
    finally:
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(f"{request.method} {request.path} {status} {elapsed_ms:.0f}ms")


# ===== Handlers =====

def _carrier_codes(registry: CarrierRegistry) -> list[str]:
    return [code.value for code in registry.list()]


async def index(request: web.Request) -> web.Response:
    registry = request.app[REGISTRY_KEY]
    return web.json_response({
        "service": SERVICE_NAME,
        "carriers": _carrier_codes(registry),
    })


async def list_carriers(request: web.Request) -> web.Response:
    registry = request.app[REGISTRY_KEY]
    return web.json_response({"carriers": _carrier_codes(registry)})


async def track(request: web.Request) -> web.Response:
    """Resolve the carrier and return its normalized tracking result."""
    registry = request.app[REGISTRY_KEY]
    carrier_code = request.match_info["carrier"]
    tracking_number = request.match_info["tracking_number"]

    carrier = registry.get(carrier_code)
    if carrier is None:
        return web.json_response(
            {"error": f'Carrier "{carrier_code}" not registered'},
            status=404,
        )

    try:
        result = await carrier.track(tracking_number)
    except InvalidInputError as e:
        return web.json_response({"error": str(e)}, status=400)
    except NotFoundError as e:
        return web.json_response({"error": str(e)}, status=404)
    except TrackingError as e:
        logger.warning(f"{carrier.name} lookup failed for {tracking_number}: {e}")
        return web.json_response({"error": str(e)}, status=502)

    logger.info(f"Tracking {carrier_code}/{tracking_number}: {result.status}")
    return web.json_response(result.to_response())


# ===== Application =====

async def _close_registry(app: web.Application):
    await app[REGISTRY_KEY].close()


def create_app(registry: CarrierRegistry) -> web.Application:
    """Build the aiohttp application around a populated registry."""
    app = web.Application(middlewares=[access_log_middleware])
    app[REGISTRY_KEY] = registry

    app.router.add_get("/", index)
    app.router.add_get("/carriers", list_carriers)
    app.router.add_get("/track/{carrier}/{tracking_number}", track)

    app.on_cleanup.append(_close_registry)
    return app


def run_server(config: Optional[DeliveryConfig] = None):
    """Build the registry from config and serve until interrupted."""
    config = config or get_config()

    for warning in config.validate():
        logger.warning(warning)

    registry = build_registry(config)
    app = create_app(registry)

    logger.info(f"{SERVICE_NAME} running on http://{config.host}:{config.port}")
    web.run_app(app, host=config.host, port=config.port, print=None, access_log=None)
