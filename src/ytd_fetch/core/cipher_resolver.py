"""Recover the signature cipher from the platform's player script.

The player script is minified and its identifiers are randomised on
every deployment, but the *shape* of the decode function's statements
is stable.  Resolution therefore never interprets a name; it only
matches statement shapes against an ordered rule list:

===========================  =====================================
statement shape              result
===========================  =====================================
``a=a.x("")``                split marker, no operation
``a=a.x()``                  :class:`Reverse`
``a=a.x(3)``                 :class:`Splice` (3)
``a=f(a,3)`` / ``o.f(a,3)``  classified from helper ``f``'s body
``return a.x("")``           join marker, no operation
===========================  =====================================

Helper bodies are classified the same way: a ``var c=a[0]`` swap idiom,
a ``.reverse(`` call, or a ``.slice``/``.splice`` call.  Anything else
means the platform changed its code shape and resolution fails.
"""

from __future__ import annotations

import logging
import random
import re
from collections.abc import Callable
from dataclasses import dataclass

from ytd_fetch.config import DEFAULT_PLAYER_URL_TEMPLATE, HOME_PAGE_URL
from ytd_fetch.core.models import CipherOp, CipherProgram, Reverse, Splice, Swap
from ytd_fetch.core.protocols import Transport
from ytd_fetch.exceptions import (
    CipherFunctionBodyNotFoundError,
    CipherFunctionNameNotFoundError,
    HelperFunctionNotFoundError,
    PlayerNotFoundError,
    UnparsableInstructionError,
)

logger = logging.getLogger(__name__)

_ID = r"[$A-Za-z_][$\w]*"
_EMPTY_STR = r"(?:\"\"|'')"


# ---------------------------------------------------------------------------
# Player location
# ---------------------------------------------------------------------------

_PLAYER_ID_PATTERNS: tuple[re.Pattern[str], ...] = (
    # "js":"\/yts\/jsbin\/player-en_US-vflXXXX\/base.js"
    re.compile(r"jsbin\\/((?:html5)?player-[^\"'\s]+?)\.js"),
    # <script src="/yts/jsbin/player-en_US-vflXXXX/base.js">
    re.compile(r"jsbin/((?:html5)?player-[^\"'\s]+?)\.js"),
)


def find_player_id(watch_page: str) -> str:
    """Return the player-ID token referenced by *watch_page*.

    Raises
    ------
    PlayerNotFoundError
        When neither embedding idiom is present.
    """
    for pattern in _PLAYER_ID_PATTERNS:
        match = pattern.search(watch_page)
        if match:
            return match.group(1).replace("\\/", "/")
    raise PlayerNotFoundError("Unparsable JS player ID in the watch page.")


# ---------------------------------------------------------------------------
# Decode function location
# ---------------------------------------------------------------------------

_FUNCTION_NAME_PATTERNS: tuple[re.Pattern[str], ...] = (
    # c=a.sig||Kr(a.s)
    re.compile(rf"{_ID}=({_ID})\.sig\|\|({_ID})\(\1\.s\)"),
    # d.set("signature",Kr(c))
    re.compile(rf"{_ID}\.set\s*\(\s*\"signature\"\s*,\s*({_ID})\s*\(\s*{_ID}\s*\)"),
)

_FUNCTION_BODY_TEMPLATES: tuple[str, ...] = (
    r"(?<![$\w]){name}\s*=\s*function\s*\({id}\)\s*\{{(.*?)\}}",
    r"\bfunction\s+{name}\s*\({id}\)\s*\{{(.*?)\}}",
    r"(?:\bvar\s+|,\s*){name}\s*=\s*function\s*\({id}\)\s*\{{(.*?)\}}",
)


def find_function_name(script: str) -> str:
    """Return the name of the decode function called on ``s``."""
    for pattern in _FUNCTION_NAME_PATTERNS:
        match = pattern.search(script)
        if match:
            return match.group(match.lastindex or 1)
    raise CipherFunctionNameNotFoundError("Unparsable JS function name.")


def find_function_body(script: str, name: str) -> str:
    """Return the body (without braces) of the decode function *name*."""
    escaped = re.escape(name)
    for template in _FUNCTION_BODY_TEMPLATES:
        pattern = template.format(name=escaped, id=_ID)
        match = re.search(pattern, script, re.S)
        if match:
            return match.group(1)
    raise CipherFunctionBodyNotFoundError(f"Unparsable JS function body for {name!r}.")


def find_helper_body(script: str, name: str) -> str:
    """Return the braced body of the object-literal method *name*."""
    pattern = rf"(?<![$\w]){re.escape(name)}:\s*function\s*\([^)]*\)\s*(\{{[^{{}}]+\}})"
    match = re.search(pattern, script, re.S)
    if match is None:
        raise HelperFunctionNotFoundError(f"Cipher helper {name!r} is not found.")
    return match.group(1)


# ---------------------------------------------------------------------------
# Statement rules
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class StatementRule:
    """One statement shape and the operation it stands for.

    ``build`` receives the match and the whole script, and returns the
    operation or ``None`` for statements that carry no operation.
    """

    name: str
    pattern: re.Pattern[str]
    build: Callable[[re.Match[str], str], CipherOp | None]


_HELPER_SWAP = re.compile(rf"var\s+{_ID}\s*=\s*{_ID}\[0\];")
_HELPER_REVERSE = re.compile(r"\.reverse\(")
_HELPER_SPLICE = (
    re.compile(rf"return\s*{_ID}\.slice"),
    re.compile(rf"\b{_ID}\.splice"),
)


def _helper_op(helper: str, argument: int, statement: str, script: str) -> CipherOp:
    body = find_helper_body(script, helper)
    if _HELPER_SWAP.search(body):
        return Swap(argument)
    if _HELPER_REVERSE.search(body):
        return Reverse()
    if any(pattern.search(body) for pattern in _HELPER_SPLICE):
        return Splice(argument)
    raise UnparsableInstructionError(statement)


def _from_helper(match: re.Match[str], script: str) -> CipherOp:
    return _helper_op(
        match.group("helper"),
        int(match.group("arg")),
        match.group(0),
        script,
    )


RULES: tuple[StatementRule, ...] = (
    StatementRule(
        "split",
        re.compile(rf"^({_ID})\s*=\s*\1\.{_ID}\({_EMPTY_STR}\)$"),
        lambda match, script: None,
    ),
    StatementRule(
        "reverse",
        re.compile(rf"^({_ID})\s*=\s*\1\.{_ID}\(\)$"),
        lambda match, script: Reverse(),
    ),
    StatementRule(
        "splice",
        re.compile(rf"^({_ID})\s*=\s*\1\.{_ID}\((\d+)\)$"),
        lambda match, script: Splice(int(match.group(2))),
    ),
    StatementRule(
        "helper-assign",
        re.compile(rf"^({_ID})\s*=\s*(?:{_ID}\.)?(?P<helper>{_ID})\(\1,\s*(?P<arg>\d+)\)$"),
        _from_helper,
    ),
    StatementRule(
        "helper-call",
        re.compile(rf"^(?:{_ID}\.)?(?P<helper>{_ID})\({_ID},\s*(?P<arg>\d+)\)$"),
        _from_helper,
    ),
    StatementRule(
        "join",
        re.compile(rf"^return\s+{_ID}\.{_ID}\({_EMPTY_STR}\)$"),
        lambda match, script: None,
    ),
)


def classify_statement(statement: str, script: str) -> CipherOp | None:
    """Map one decode-function statement to an operation (or ``None``).

    Raises
    ------
    UnparsableInstructionError
        When no rule matches, or a helper body has no known shape.
    HelperFunctionNotFoundError
        When a called helper is missing from the script.
    """
    for rule in RULES:
        match = rule.pattern.match(statement)
        if match:
            return rule.build(match, script)
    raise UnparsableInstructionError(statement)


def compile_program(script: str) -> CipherProgram:
    """Derive the cipher program from a full player script."""
    name = find_function_name(script)
    body = find_function_body(script, name)
    logger.debug("Decode function %s: %s", name, body)

    ops: list[CipherOp] = []
    for raw in body.split(";"):
        statement = raw.strip()
        if not statement:
            continue
        op = classify_statement(statement, script)
        if op is not None:
            ops.append(op)
    return CipherProgram(ops=tuple(ops))


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

_WATCH_LINK = re.compile(r"href=\"/?watch\?v=(.+?)\"")


class CipherResolver:
    """Fetches the player script for a watch page and compiles its cipher.

    Parameters
    ----------
    transport:
        Any object satisfying the :class:`Transport` protocol.
    player_url_template:
        ``str.format`` template with a ``{player_id}`` field.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        player_url_template: str = DEFAULT_PLAYER_URL_TEMPLATE,
    ) -> None:
        self._transport: Transport = transport
        self._player_url_template: str = player_url_template

    def player_url(self, watch_page: str) -> str:
        return self._player_url_template.format(player_id=find_player_id(watch_page))

    def resolve(self, watch_page: str) -> CipherProgram:
        """Fetch the player referenced by *watch_page* and compile its cipher."""
        url = self.player_url(watch_page)
        logger.debug("Fetching player script %s", url)
        program = self.resolve_from_script(self._transport.get_text(url))
        logger.debug("Resolved cipher: %s", program)
        return program

    @staticmethod
    def resolve_from_script(script: str) -> CipherProgram:
        return compile_program(script)

    def random_watch_url(
        self,
        home_url: str = HOME_PAGE_URL,
        *,
        rng: random.Random | None = None,
    ) -> str:
        """Pick a watch URL linked from the platform home page."""
        page = self._transport.get_text(home_url)
        video_ids = _WATCH_LINK.findall(page)
        if not video_ids:
            raise PlayerNotFoundError("No videos are linked from the home page.")
        chosen = (rng or random).choice(video_ids)
        return f"https://www.youtube.com/watch?v={chosen}"
