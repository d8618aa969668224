"""HTTP endpoint receiving task progress callbacks from the MJ proxy.

POST /notify with the proxy's task JSON:
- 200 {"code": 1}      message relayed
- 404 "room not found" state does not map to a friend or group
- 500 {"code": -9}     invalid payload or relay failure
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pydantic import ValidationError

from mjbot.models import INTERNAL_ERROR_CODE, SUCCESS_CODE, NotificationEvent
from mjbot.relay import NotificationRelay, RelayOutcome

logger = logging.getLogger("mjbot.webhook")


def create_app(relay: NotificationRelay) -> FastAPI:
    """Build the FastAPI app serving /notify for the given relay."""
    app = FastAPI(title="mjbot notify", docs_url=None, redoc_url=None)

    @app.post("/notify")
    async def notify(request: Request) -> Response:
        try:
            body = await request.json()
            event = NotificationEvent.model_validate(body)
        except (ValueError, ValidationError) as e:
            logger.error("Invalid notification payload: %s", e)
            return JSONResponse({"code": INTERNAL_ERROR_CODE}, status_code=500)

        outcome = await relay.relay(event)
        if outcome is RelayOutcome.NOT_FOUND:
            return PlainTextResponse("room not found", status_code=404)
        if outcome is RelayOutcome.INTERNAL_ERROR:
            return JSONResponse({"code": INTERNAL_ERROR_CODE}, status_code=500)
        return JSONResponse({"code": SUCCESS_CODE})

    return app
