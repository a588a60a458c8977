"""
Visit fingerprinting from inbound request headers.

Pure functions of the headers: no I/O, and missing values fall back to
"Unknown" instead of raising.
"""
from dataclasses import asdict, dataclass
from typing import Mapping, Optional
from urllib.parse import unquote, urlparse

from user_agents import parse

UNKNOWN = "Unknown"

DEVICE_TYPES_BY_OS = {
    "iOS": "Mobile",
    "Android": "Mobile",
    "Mac OS X": "Desktop",
    "Windows": "Desktop",
}

REFERRER_ALIASES = {
    "t.co": "twitter",
    "l.facebook.com": "facebook",
    "lm.facebook.com": "facebook",
    "m.facebook.com": "facebook",
    "linkedin.com": "linkedin",
    "lnkd.in": "linkedin",
    "out.reddit.com": "reddit",
    "away.vk.com": "vkontakte",
    "com.google.android.gm": "gmail",
}

COUNTRY_HEADERS = ("x-vercel-ip-country", "cf-ipcountry", "x-country")
CITY_HEADERS = ("x-vercel-ip-city", "x-city")
CONTINENT_HEADERS = ("x-vercel-ip-continent", "cf-ipcontinent", "x-continent")


@dataclass
class VisitFingerprint:
    device: str
    browser: str
    os: str
    model: str
    country: str
    city: str
    continent: str
    referer: str

    def as_dict(self) -> dict:
        return asdict(self)


def normalize_headers(headers) -> dict:
    """Lower-cased plain dict; safe to hand to a background worker."""
    if not headers:
        return {}
    items = headers.items() if hasattr(headers, "items") else headers
    return {str(k).lower(): v for k, v in items}


def _first_header(headers: Mapping[str, str], names) -> Optional[str]:
    for name in names:
        value = headers.get(name)
        if value and value.strip():
            return value.strip()
    return None


def _known(value: Optional[str]) -> str:
    if not value or value == "Other":
        return UNKNOWN
    return value


def identify_requesting_device(user_agent: str) -> dict:
    ua = parse(user_agent or "")

    os_name = _known(ua.os.family)
    if ua.is_tablet:
        device_type = "Tablet"
    elif ua.is_mobile:
        device_type = "Mobile"
    elif ua.is_pc:
        device_type = "Desktop"
    else:
        device_type = DEVICE_TYPES_BY_OS.get(os_name, UNKNOWN)

    return {
        "browser": _known(ua.browser.family),
        "os": os_name,
        "device": device_type,
        "model": _known(ua.device.model),
    }


def parse_referrer(referrer: Optional[str]) -> str:
    """Collapse a Referer header into a short source label."""
    if not referrer:
        return "direct"

    parsed = urlparse(referrer)
    if not parsed.scheme or not parsed.hostname:
        return referrer[:50]

    hostname = parsed.hostname
    if hostname.startswith("www."):
        hostname = hostname[len("www."):]

    if hostname in REFERRER_ALIASES:
        return REFERRER_ALIASES[hostname]

    return ".".join(hostname.split(".")[-2:])


def retrieve_device_and_geolocation_data(headers) -> VisitFingerprint:
    headers = normalize_headers(headers)
    device = identify_requesting_device(headers.get("user-agent", ""))

    city = _first_header(headers, CITY_HEADERS)

    return VisitFingerprint(
        device=device["device"],
        browser=device["browser"],
        os=device["os"],
        model=device["model"],
        country=_first_header(headers, COUNTRY_HEADERS) or UNKNOWN,
        city=unquote(city) if city else UNKNOWN,
        continent=_first_header(headers, CONTINENT_HEADERS) or UNKNOWN,
        referer=parse_referrer(headers.get("referer")),
    )
