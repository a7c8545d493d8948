"""Webhook API routes for payment provider callbacks."""

import json
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status

from kickshaus.api.deps import Settlement
from kickshaus.api.middleware.error_handler import NotFoundError
from kickshaus.core.paystack import PaystackClient, get_paystack_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])

HANDLED_EVENT = "charge.success"


@router.post(
    "/paystack",
    status_code=status.HTTP_200_OK,
    summary="Handle Paystack webhooks",
    description="Receives Paystack events. Requires a valid x-paystack-signature.",
)
async def paystack_webhook(
    request: Request,
    service: Settlement,
    paystack: Annotated[PaystackClient, Depends(get_paystack_client)],
) -> dict[str, str]:
    """Handle Paystack webhook events.

    The event payload is only used to find the reference; the order is
    settled through the same verification as a client poll, so the
    gateway is asked for the transaction state directly. Duplicate
    deliveries are harmless.

    Handles:
    - charge.success: verifies and settles the order

    Other events are acknowledged without action.

    Raises:
        HTTPException: 401 if the signature is missing or invalid.
    """
    payload = await request.body()

    signature = request.headers.get("x-paystack-signature")
    if not signature:
        logger.warning("Paystack webhook received without signature")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing x-paystack-signature header",
        )

    if not paystack.verify_webhook_signature(payload, signature):
        logger.error("Paystack webhook signature mismatch")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid signature",
        )

    try:
        event = json.loads(payload)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid JSON payload",
        ) from e

    event_type = event.get("event", "")
    logger.info("Processing Paystack webhook event: %s", event_type)

    if event_type != HANDLED_EVENT:
        logger.debug("Unhandled Paystack event type: %s", event_type)
        return {"status": "received"}

    reference = (event.get("data") or {}).get("reference")
    if not reference:
        logger.warning("charge.success event without reference")
        return {"status": "received"}

    try:
        result = await service.verify_payment(reference)
        logger.info("Webhook settled reference %s: %s", reference, result["status"])
    except NotFoundError:
        logger.warning("Webhook for unknown reference %s", reference)

    return {"status": "received"}
