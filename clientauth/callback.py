from __future__ import annotations

import urllib.parse
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from clientauth.client import Client

CallbackPolicy = Callable[[bool, str, "Client"], bool]

COMPARED_PARTS = ("scheme", "host", "port", "user", "pass", "path")
FORBIDDEN_HOST_CHARS = frozenset(":#?[]")


def _split_host_port(hostport: str) -> tuple[str, str | None]:
    if hostport.startswith("["):
        end = hostport.find("]")
        if end != -1:
            rest = hostport[end + 1 :]
            if rest.startswith(":"):
                return hostport[: end + 1], rest[1:]
            return hostport[: end + 1], None
        return hostport, None

    host, sep, port = hostport.rpartition(":")
    if not sep:
        return hostport, None
    return host, port


def _raw_scheme(url: str, scheme: str) -> str:
    # urlsplit lowercases the scheme; recover it as written.
    start = url.lower().find(scheme + ":")
    if start == -1:
        return scheme
    return url[start : start + len(scheme)]


def parse_url(url: str) -> dict[str, str | int] | None:
    """Split a URL into the components it actually carries.

    Missing components are left out of the result rather than set to an
    empty value, so callers can compare presence as well as content. The
    host is kept verbatim (IPv6 brackets included) instead of the
    normalised ``hostname`` urllib exposes.
    """
    try:
        parts = urllib.parse.urlsplit(url)
    except ValueError:
        return None

    parsed: dict[str, str | int] = {}
    if parts.scheme:
        parsed["scheme"] = _raw_scheme(url, parts.scheme)

    if parts.netloc:
        userinfo, at, hostport = parts.netloc.rpartition("@")
        if at:
            user, colon, password = userinfo.partition(":")
            parsed["user"] = user
            if colon:
                parsed["pass"] = password

        host, port = _split_host_port(hostport)
        if host:
            parsed["host"] = host
        if port:
            if not (port.isascii() and port.isdigit()) or int(port) > 65535:
                return None
            parsed["port"] = int(port)

    if parts.path:
        parsed["path"] = parts.path
    if parts.query:
        parsed["query"] = parts.query
    if parts.fragment:
        parsed["fragment"] = parts.fragment
    return parsed


def validate_callback(url: str) -> bool:
    """Check a callback URL for structural well-formedness.

    Looser than a plain HTTP(S) check: any scheme, host or port is accepted.
    Userinfo is refused, and so are hosts carrying URL delimiters.
    """
    if not isinstance(url, str) or ":" not in url:
        return False

    parsed = parse_url(url)
    if not parsed or not parsed.get("host"):
        return False

    if "user" in parsed or "pass" in parsed:
        return False

    return not FORBIDDEN_HOST_CHARS.intersection(str(parsed["host"]))


def matches_registered(candidate: str, registered: str) -> bool:
    supplied = parse_url(candidate)
    expected = parse_url(registered)
    if supplied is None or expected is None:
        return False

    # Query and fragment may differ.
    for part in COMPARED_PARTS:
        if (part in expected) != (part in supplied):
            return False
        if part in expected and expected[part] != supplied[part]:
            return False
    return True


def _pass_through(valid: bool, uri: str, client: "Client") -> bool:
    del uri, client
    return valid


class CallbackValidator:
    def __init__(self, policy: CallbackPolicy | None = None) -> None:
        self._policy = policy or _pass_through

    def check(self, client: "Client", uri: str) -> bool:
        if not validate_callback(uri):
            return False

        valid = any(matches_registered(uri, registered) for registered in client.redirect_uris)
        return bool(self._policy(valid, uri, client))
