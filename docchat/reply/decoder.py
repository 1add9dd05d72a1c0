"""Recovers the ``{"response": ...}`` object from free-form model output.

Strategies are tried in order and each runs only when the previous one
failed:

1. parse the body of a fenced ``json`` block;
2. sanitize that body and parse again;
3. pull the quoted ``response`` value out of the body by pattern;
4. parse the whole raw text (only when no fenced block exists);
5. match a ``response``-like field anywhere in the raw text;
6. strip structural punctuation and keep what is left, or apologise.

``decode`` never raises.
"""

import json
import re
from typing import Any

from docchat.logging.logger import Log
from docchat.reply.models import DecodedReply, DecodeStrategy

SALVAGE_MAX_CHARS = 800
APOLOGY_MESSAGE = (
    "I apologize, but I'm having trouble formatting my response properly. "
    "Could you please try asking your question again?"
)

_FENCED_JSON = re.compile(r"```json\s*([\s\S]*?)\s*```", re.I)
_FIELD_VALUE = re.compile(r'"response"\s*:\s*"((?:[^"\\]|\\.)*)"', re.S)
_LOOSE_FIELD_VALUE = re.compile(r'response["\s]*:\s*"([\s\S]*?)(?:"\s*}|$)', re.I)
_ENVELOPE = re.compile(r'^\s*\{\s*"response"\s*:\s*"([\s\S]*)"\s*\}\s*$')
_STRING_TOKEN = re.compile(r'"(?:[^"\\]|\\.)*"')
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_ESCAPE = re.compile(r'\\(u[0-9a-fA-F]{4}|["\\/bfnrt])')
_FENCE_MARKERS = re.compile(r"```(?:json)?", re.I)
_STRUCTURAL = re.compile(r'[{}"\[\]]')
_RESPONSE_LABEL = re.compile(r"response\s*:?\s*", re.I)

_JSON_ESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}
_LITERAL_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t"}


def decode(raw_text: str) -> DecodedReply:
    """Decode raw completion text into a structured reply."""
    if not raw_text or not raw_text.strip():
        Log.warning("Decoder received empty completion text")
        return DecodedReply(response=APOLOGY_MESSAGE, strategy=DecodeStrategy.APOLOGY)

    Log.debug(f"Decoding completion text: {Log.preview(raw_text)}")

    match = _FENCED_JSON.search(raw_text)
    if match:
        body = match.group(1).strip()
        Log.debug(f"Found fenced JSON block ({len(body)} chars)")
        reply = _from_fenced_body(body)
        if reply is not None:
            return reply
    else:
        Log.debug("No fenced JSON block found, parsing raw text")
        response = _parse_response(raw_text)
        if response is not None:
            return _decoded(response, DecodeStrategy.RAW_JSON)

    response = _loose_field(raw_text)
    if response:
        return _decoded(response, DecodeStrategy.LOOSE_FIELD_PATTERN)

    return _salvage(raw_text)


def sanitize_json_text(text: str) -> str:
    """Repair common escaping mistakes in model-written JSON.

    Control characters other than newline, carriage return and tab are
    dropped. When the text is a ``{"response": "..."}`` envelope, the
    string body is re-escaped as a whole so stray quotes and backslashes
    inside it survive. Otherwise literal newlines, tabs and carriage
    returns inside string tokens are escaped.
    """
    text = _CONTROL_CHARS.sub("", text)
    envelope = _ENVELOPE.match(text)
    if envelope:
        return '{"response": "' + _escape_string_body(envelope.group(1)) + '"}'
    return _STRING_TOKEN.sub(
        lambda token: _escape_literals(token.group(0)), text
    )


def unescape_json_string(value: str) -> str:
    """Undo JSON string escapes without a full parse."""
    def _replace(match: re.Match[str]) -> str:
        code = match.group(1)
        if code.startswith("u"):
            return chr(int(code[1:], 16))
        return _JSON_ESCAPES[code]

    return _ESCAPE.sub(_replace, value)


def _from_fenced_body(body: str) -> DecodedReply | None:
    response = _parse_response(body)
    if response is not None:
        return _decoded(response, DecodeStrategy.FENCED_BLOCK)
    Log.warning("Direct parse of fenced JSON failed, trying sanitized parse")

    response = _parse_response(sanitize_json_text(body))
    if response is not None:
        return _decoded(response, DecodeStrategy.SANITIZED_BLOCK)
    Log.warning("Sanitized parse failed, trying field extraction")

    match = _FIELD_VALUE.search(body)
    if match:
        response = unescape_json_string(match.group(1))
        if response.strip():
            return _decoded(response, DecodeStrategy.FENCED_FIELD_PATTERN)
    Log.warning("Field extraction found no response in fenced block")
    return None


def _parse_response(text: str) -> str | None:
    try:
        parsed: Any = json.loads(text)
    except (json.JSONDecodeError, RecursionError):
        return None
    if not isinstance(parsed, dict):
        return None
    response = parsed.get("response")
    if not isinstance(response, str) or not response.strip():
        return None
    return response


def _loose_field(raw_text: str) -> str | None:
    match = _LOOSE_FIELD_VALUE.search(raw_text)
    if not match:
        Log.debug("Loose field extraction found no match")
        return None
    return unescape_json_string(match.group(1)).strip() or None


def _salvage(raw_text: str) -> DecodedReply:
    Log.warning(f"All parsing strategies failed, salvaging text: {Log.preview(raw_text)}")
    cleaned = _FENCE_MARKERS.sub("", _CONTROL_CHARS.sub("", raw_text))
    cleaned = _STRUCTURAL.sub("", cleaned)
    cleaned = _RESPONSE_LABEL.sub("", cleaned, count=1)
    cleaned = cleaned.strip()[:SALVAGE_MAX_CHARS].strip()
    if cleaned:
        return DecodedReply(response=cleaned, strategy=DecodeStrategy.SALVAGE)
    return DecodedReply(response=APOLOGY_MESSAGE, strategy=DecodeStrategy.APOLOGY)


def _decoded(response: str, strategy: DecodeStrategy) -> DecodedReply:
    Log.debug(f"Decoded reply using {strategy.value}")
    return DecodedReply(response=response, strategy=strategy)


def _escape_literals(token: str) -> str:
    return "".join(_LITERAL_ESCAPES.get(ch, ch) for ch in token)


def _escape_string_body(body: str) -> str:
    out: list[str] = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == "\\":
            nxt = body[i + 1] if i + 1 < len(body) else ""
            if nxt and nxt in _JSON_ESCAPES:
                out.append(ch + nxt)
                i += 2
                continue
            if nxt == "u" and re.fullmatch(r"[0-9a-fA-F]{4}", body[i + 2:i + 6]):
                out.append(body[i:i + 6])
                i += 6
                continue
            out.append("\\\\")
        elif ch == '"':
            out.append('\\"')
        else:
            out.append(_LITERAL_ESCAPES.get(ch, ch))
        i += 1
    return "".join(out)
