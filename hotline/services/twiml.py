# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Voice document builders on top of Twilio's TwiML helpers.
"""

from twilio.twiml.voice_response import VoiceResponse

from hotline.core.config import HotlineConfig

MENU_PATH = "/menu"
SET_NUMBER_PATH = "/admin-set-number"
INITIAL_PATH = "/"


def say(parent, message: str, config: HotlineConfig) -> None:
    """Append a <Say> to a response or a <Gather>."""
    parent.say(message, voice=config.voice)


def dial(response: VoiceResponse, number: str, config: HotlineConfig) -> None:
    response.dial(
        number,
        caller_id=config.caller_id or None,
        answer_on_bridge=True,
        timeout=config.dial_timeout,
    )


def forward_call(response: VoiceResponse, number: str, config: HotlineConfig) -> None:
    """Public hotline path: greeting, short pause, transfer."""
    if not number:
        say(
            response,
            "We are sorry, no volunteer is available to take your call right now. "
            "Please try again later.",
            config,
        )
        response.hangup()
        return
    if config.greeting_audio_url:
        response.play(config.greeting_audio_url)
    response.pause(length=1)
    dial(response, number, config)


def public_hotline(number: str, config: HotlineConfig) -> VoiceResponse:
    response = VoiceResponse()
    forward_call(response, number, config)
    return response


def render(response: VoiceResponse) -> str:
    return str(response)
