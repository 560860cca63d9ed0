# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Inbound call flow.

Three webhook states:
    Initial   public callers are transferred at once; admins get a menu
    Menu      1 / timeout -> transfer, 2 -> who is on call, 9 -> new number
    SetNumber validate keypad digits and store them as an override

Nothing is kept between requests. Admin status is re-checked on every
webhook from the caller's number alone.
"""

from datetime import datetime

from twilio.twiml.voice_response import VoiceResponse

from hotline.core.config import HotlineConfig
from hotline.core.logging import get_logger
from hotline.metrics.prometheus import CALLS_TOTAL
from hotline.repositories.forward_state_repository import ForwardStoreError
from hotline.services.admin_auth import CallerAuthorizer
from hotline.services.forward_service import ForwardService
from hotline.services import twiml

logger = get_logger(__name__)

ADMIN_MENU_TEXT = (
    "You have reached the hotline administrator options. "
    "Press 1 to forward this call to the currently scheduled volunteer. "
    "Press 2 to hear who is on call now and who is on call next. "
    "Press 9 to temporarily change the number that hotline calls are forwarded to."
)
MENU_NO_INPUT_TEXT = (
    "We did not receive any input. Forwarding your call using the current hotline number."
)
SET_NUMBER_PROMPT_TEXT = (
    "Please enter the ten digit phone number, including area code, "
    "that you would like hotline calls forwarded to. "
    "When finished, press the pound key."
)
SET_NUMBER_NO_INPUT_TEXT = (
    "We did not receive any input. Returning to the normal hotline flow."
)
INVALID_NUMBER_TEXT = (
    "The number you entered was not recognized as a valid ten digit "
    "North American phone number."
)
STORE_FAILURE_TEXT = (
    "We are sorry, the forwarding number could not be saved. "
    "Connecting your call to the hotline now."
)


class CallFlowService:
    """Builds the voice response for each webhook state."""

    def __init__(
        self,
        forward_service: ForwardService,
        authorizer: CallerAuthorizer,
        config: HotlineConfig,
    ) -> None:
        self._forward = forward_service
        self._auth = authorizer
        self._config = config

    # ── States ──

    def initial(self, caller: str) -> str:
        number = self._forward.current_number()
        if not self._is_admin(caller, "initial"):
            return twiml.render(twiml.public_hotline(number, self._config))

        response = VoiceResponse()
        gather = response.gather(
            num_digits=1,
            action=twiml.MENU_PATH,
            method="POST",
            timeout=self._config.menu_gather_timeout,
        )
        twiml.say(gather, ADMIN_MENU_TEXT, self._config)
        twiml.say(response, MENU_NO_INPUT_TEXT, self._config)
        twiml.forward_call(response, number, self._config)
        return twiml.render(response)

    def menu(self, caller: str, digits: str, now: datetime | None = None) -> str:
        number = self._forward.current_number()
        if not self._is_admin(caller, "menu"):
            return twiml.render(twiml.public_hotline(number, self._config))

        if digits == "9":
            return self._prompt_for_number(number)
        if digits == "2":
            return self._announce_on_call(number, now)
        return twiml.render(twiml.public_hotline(number, self._config))

    def set_number(self, caller: str, digits: str) -> str:
        previous = self._forward.current_number()
        if not self._is_admin(caller, "set_number"):
            return twiml.render(twiml.public_hotline(previous, self._config))

        try:
            new_number = self._forward.override(digits)
        except ForwardStoreError:
            logger.exception("Override could not be stored")
            response = VoiceResponse()
            twiml.say(response, STORE_FAILURE_TEXT, self._config)
            twiml.forward_call(response, self._config.default_forward_number, self._config)
            return twiml.render(response)

        response = VoiceResponse()
        if new_number is None:
            message = INVALID_NUMBER_TEXT
            if previous:
                message += (
                    f" Keeping the existing forwarding number, "
                    f"{self._forward.describe(previous)}."
                )
            twiml.say(response, message, self._config)
            twiml.forward_call(response, previous, self._config)
            return twiml.render(response)

        twiml.say(
            response,
            f"Thank you. The hotline will now be forwarded to "
            f"{self._forward.describe(new_number)}. Forwarding this call now.",
            self._config,
        )
        response.pause(length=1)
        twiml.dial(response, new_number, self._config)
        return twiml.render(response)

    # ── Internal ──

    def _is_admin(self, caller: str, state: str) -> bool:
        admin = self._auth.is_admin(caller)
        role = "admin" if admin else "public"
        CALLS_TOTAL.labels(state=state, role=role).inc()
        if not admin and state != "initial":
            logger.info("Public caller on admin webhook, forwarding", extra={"state": state, "role": role})
        return admin

    def _prompt_for_number(self, number: str) -> str:
        response = VoiceResponse()
        gather = response.gather(
            input="dtmf",
            finish_on_key="#",
            action=twiml.SET_NUMBER_PATH,
            method="POST",
            timeout=self._config.number_gather_timeout,
        )
        twiml.say(gather, SET_NUMBER_PROMPT_TEXT, self._config)
        twiml.say(response, SET_NUMBER_NO_INPUT_TEXT, self._config)
        twiml.forward_call(response, number, self._config)
        return twiml.render(response)

    def _announce_on_call(self, number: str, now: datetime | None) -> str:
        assignment = self._forward.assignment(now)
        lines = []
        if assignment.current is not None:
            lines.append(f"The volunteer currently on call is {assignment.current.name}.")
        else:
            lines.append("No volunteer is scheduled for the current shift.")
        if assignment.next is not None:
            lines.append(f"The next scheduled volunteer is {assignment.next.name}.")
        else:
            lines.append("No volunteer is scheduled for the next shift.")
        if number:
            lines.append(
                f"Hotline calls are currently forwarded to {self._forward.describe(number)}."
            )

        response = VoiceResponse()
        twiml.say(response, " ".join(lines), self._config)
        response.pause(length=1)
        response.redirect(twiml.INITIAL_PATH, method="POST")
        return twiml.render(response)
