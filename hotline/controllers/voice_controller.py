# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Twilio voice webhooks.
Thin HTTP layer, delegates ALL logic to CallFlowService.
"""

from fastapi import APIRouter, Depends, Form, Request
from starlette.responses import Response

from hotline.core.dependencies import get_call_flow
from hotline.core.logging import get_logger
from hotline.services.call_flow import CallFlowService

logger = get_logger(__name__)

router = APIRouter(tags=["Voice"])

TWIML_MEDIA_TYPE = "text/xml"


def _log_webhook(request: Request, state: str, call_sid: str) -> None:
    logger.info(
        "Voice webhook: %s",
        state,
        extra={
            "request_id": getattr(request.state, "request_id", None),
            "call_sid": call_sid or None,
            "state": state,
        },
    )


@router.post("/")
def initial(
    request: Request,
    caller: str = Form(default="", alias="From"),
    call_sid: str = Form(default="", alias="CallSid"),
    flow: CallFlowService = Depends(get_call_flow),
):
    """Call entry point: transfer, or the admin menu for admin callers."""
    _log_webhook(request, "initial", call_sid)
    return Response(content=flow.initial(caller), media_type=TWIML_MEDIA_TYPE)


@router.post("/menu")
def menu(
    request: Request,
    caller: str = Form(default="", alias="From"),
    digits: str = Form(default="", alias="Digits"),
    call_sid: str = Form(default="", alias="CallSid"),
    flow: CallFlowService = Depends(get_call_flow),
):
    """Dispatch on the admin menu digit."""
    _log_webhook(request, "menu", call_sid)
    return Response(content=flow.menu(caller, digits), media_type=TWIML_MEDIA_TYPE)


@router.post("/admin-set-number")
def admin_set_number(
    request: Request,
    caller: str = Form(default="", alias="From"),
    digits: str = Form(default="", alias="Digits"),
    call_sid: str = Form(default="", alias="CallSid"),
    flow: CallFlowService = Depends(get_call_flow),
):
    """Store the keypad-entered number as the forward number."""
    _log_webhook(request, "set_number", call_sid)
    return Response(content=flow.set_number(caller, digits), media_type=TWIML_MEDIA_TYPE)
