"""Subscription verification handshake."""

import hmac
import re
from typing import Union
from urllib.parse import parse_qsl

from workplace_webhook.exceptions import QueryParseError
from workplace_webhook.models import DispatchResult, Outcome

MODE_PARAM = "hub.mode"
VERIFY_TOKEN_PARAM = "hub.verify_token"
CHALLENGE_PARAM = "hub.challenge"
SUBSCRIBE_MODE = "subscribe"

# A '%' not followed by two hex digits
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def parse_query(query_string: Union[str, bytes]) -> dict[str, str]:
    """Parse a form-encoded query string, keeping the first value per key.

    Args:
        query_string: Raw query string, without the leading ``?``

    Returns:
        Mapping of parameter name to its first value

    Raises:
        QueryParseError: On invalid percent escapes, invalid UTF-8 or
            ``;`` separators
    """
    if isinstance(query_string, bytes):
        try:
            query_string = query_string.decode("utf-8")
        except UnicodeDecodeError as e:
            raise QueryParseError(repr(query_string)) from e

    if ";" in query_string or _BAD_ESCAPE.search(query_string):
        raise QueryParseError(query_string)

    try:
        pairs = parse_qsl(query_string, keep_blank_values=True, errors="strict")
    except (UnicodeDecodeError, ValueError) as e:
        raise QueryParseError(query_string) from e

    params: dict[str, str] = {}
    for key, value in pairs:
        params.setdefault(key, value)
    return params


def respond_to_handshake(query_string: Union[str, bytes], verification_token: str) -> DispatchResult:
    """Answer the platform's GET subscription verification request.

    Args:
        query_string: Raw query string of the GET request
        verification_token: Configured verification token

    Returns:
        200 echoing ``hub.challenge`` verbatim when the mode is ``subscribe``
        and the token matches, 403 otherwise, 400 if the query is unparsable
    """
    try:
        params = parse_query(query_string)
    except QueryParseError as e:
        return DispatchResult(e.outcome, error=e)

    mode = params.get(MODE_PARAM, "")
    token = params.get(VERIFY_TOKEN_PARAM, "")
    if mode == SUBSCRIBE_MODE and hmac.compare_digest(token.encode(), verification_token.encode()):
        return DispatchResult(Outcome.ACCEPTED, body=params.get(CHALLENGE_PARAM, "").encode())

    return DispatchResult(Outcome.FORBIDDEN)
