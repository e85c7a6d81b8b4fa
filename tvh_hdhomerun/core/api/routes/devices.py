"""Device Routes - tuner listing, fe_override, removal and scanning endpoints."""

from aiohttp import web

from ..controller import APIController
from ..middleware import parse_json_body, result_to_response


def setup_device_routes(app: web.Application, controller: APIController) -> None:
    """Register device routes."""
    app.router.add_get("/api/v1/devices", list_devices_handler)
    app.router.add_get("/api/v1/devices/{uuid}", get_device_handler)
    app.router.add_put("/api/v1/devices/{uuid}", update_device_handler)
    app.router.add_delete("/api/v1/devices/{uuid}", remove_device_handler)
    app.router.add_get("/api/v1/devices/{uuid}/frontends", frontends_handler)
    app.router.add_get("/api/v1/devices/{uuid}/options/{property}", property_options_handler)
    app.router.add_post("/api/v1/scan", scan_handler)


def _not_found(request: web.Request) -> tuple[str, str]:
    return "DEVICE_NOT_FOUND", f"Device '{request.match_info['uuid']}' not found"


async def list_devices_handler(request: web.Request) -> web.Response:
    """GET /api/v1/devices - List all HDHomeRun devices."""
    controller: APIController = request.app["controller"]
    return web.json_response({"devices": await controller.list_devices()})


async def get_device_handler(request: web.Request) -> web.Response:
    """GET /api/v1/devices/{uuid} - Device properties and frontends."""
    controller: APIController = request.app["controller"]
    device = await controller.get_device(request.match_info["uuid"])
    return result_to_response(device, *_not_found(request))


async def frontends_handler(request: web.Request) -> web.Response:
    """GET /api/v1/devices/{uuid}/frontends - Frontends in collection order."""
    controller: APIController = request.app["controller"]
    frontends = await controller.get_frontends(request.match_info["uuid"])
    if frontends is None:
        return result_to_response(None, *_not_found(request))
    return web.json_response({"frontends": frontends})


async def property_options_handler(request: web.Request) -> web.Response:
    """GET /api/v1/devices/{uuid}/options/{property} - Enumerated property choices."""
    controller: APIController = request.app["controller"]
    result = await controller.get_property_options(
        request.match_info["uuid"], request.match_info["property"]
    )
    return result_to_response(result, *_not_found(request))


async def update_device_handler(request: web.Request) -> web.Response:
    """PUT /api/v1/devices/{uuid} - Write device properties (``fe_override``)."""
    body, error = await parse_json_body(request)
    if error:
        return error

    controller: APIController = request.app["controller"]
    result = await controller.update_device(request.match_info["uuid"], body)
    return result_to_response(result, *_not_found(request))


async def remove_device_handler(request: web.Request) -> web.Response:
    """DELETE /api/v1/devices/{uuid} - Tear down a device until it is rediscovered."""
    controller: APIController = request.app["controller"]
    result = await controller.remove_device(request.match_info["uuid"])
    if not result["success"]:
        return result_to_response(None, *_not_found(request))
    return web.json_response(result)


async def scan_handler(request: web.Request) -> web.Response:
    """POST /api/v1/scan - Run a discovery pass now."""
    controller: APIController = request.app["controller"]
    return web.json_response(await controller.scan())
