"""Facebook webhook endpoints.

POST handling, in order:
1. Signature verification on the raw body - a failure answers 403 and
   nothing is parsed or dispatched
2. Envelope parsing - an unparseable body answers 400
3. Ingestion - every event is classified and routed by the policy
4. Delivery - each event's replies are scheduled in the background
5. Acknowledgment - 200 for every parsed batch, without waiting for
   delivery, so the platform does not redeliver it
"""

import logging

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError

from selfcare_bot.config import get_settings
from selfcare_bot.constants import SIGNATURE_HEADER
from selfcare_bot.models.messenger import MessengerWebhookPayload
from selfcare_bot.services.delivery import schedule_delivery
from selfcare_bot.services.send_gateway import get_send_gateway
from selfcare_bot.services.signature import AuthenticationFailure, verify_signature
from selfcare_bot.services.webhook_ingestor import get_webhook_ingestor

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("")
async def verify_webhook(request: Request):
    """Facebook webhook verification endpoint."""
    settings = get_settings()

    mode = request.query_params.get("hub.mode")
    token = request.query_params.get("hub.verify_token")
    challenge = request.query_params.get("hub.challenge")

    if mode == "subscribe" and token == settings.messenger_validation_token:
        logger.info("Webhook verified successfully")
        return PlainTextResponse(challenge)

    logger.warning("Webhook verification failed. Make sure the validation tokens match.")
    return Response(status_code=403)


@router.post("")
async def handle_webhook(request: Request):
    """Handle incoming Facebook Messenger webhook batches."""
    settings = get_settings()
    raw_body = await request.body()

    check = verify_signature(
        raw_body,
        request.headers.get(SIGNATURE_HEADER),
        settings.messenger_app_secret,
    )
    if not check.is_valid:
        if (
            check.failure is AuthenticationFailure.MISSING_SIGNATURE
            and settings.allow_unsigned_webhooks
        ):
            logger.warning("Accepting unsigned webhook (allow_unsigned_webhooks is set)")
        else:
            logger.warning("Rejected webhook: %s", check.failure.value)
            return Response(status_code=403)

    try:
        payload = MessengerWebhookPayload.model_validate_json(raw_body)
    except ValidationError as e:
        logger.warning("Invalid webhook payload: %s", e.error_count())
        return JSONResponse(status_code=400, content={"status": "invalid"})

    result = get_webhook_ingestor().ingest(payload)
    if not result.recognized:
        return {"status": "ignored"}

    gateway = get_send_gateway()
    for dispatch in result.dispatches:
        schedule_delivery(gateway, dispatch.actions)

    # Must answer within the platform's delivery window, else the batch is redelivered
    return {"status": "ok"}
