"""
TwiML (call-control XML) documents.
"""

CONNECT_GREETING = "Connecting you to your Second Brain AI assistant."


def _twiml(body: str) -> str:
    return '<?xml version="1.0" encoding="UTF-8"?>\n<Response>\n' + body + "\n</Response>"


def _xml_escape(text: str) -> str:
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )


def stream_url(base_url: str, stream_name: str) -> str:
    """Media stream websocket URL for one user (or ``anonymous``)."""
    return f"{base_url.rstrip('/')}/{stream_name}"


def connect_stream(
    media_stream_url: str,
    voice: str,
    greeting: str = CONNECT_GREETING,
) -> str:
    """Greet the caller, then bridge the call audio to a media stream."""
    body = (
        f'  <Say voice="{_xml_escape(voice)}">{_xml_escape(greeting)}</Say>\n'
        "  <Connect>\n"
        f'    <Stream url="{_xml_escape(media_stream_url)}" />\n'
        "  </Connect>"
    )
    return _twiml(body)
