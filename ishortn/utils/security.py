from urllib.parse import urlparse

from flask import current_app

# Keywords that mark a destination as unsafe to shorten.
# Extend through the UNSAFE_URL_KEYWORDS config list.
BAD_KEYWORDS = [
    "phishing",
    "malware",
    "crypto-giveaway",
]

# Domains refused as destinations; subdomains are refused too.
# Extend through the UNSAFE_URL_DOMAINS config list.
BAD_DOMAINS = [
    "malicious-site.com",
    "example-phishing.com",
]


def _configured(key: str, defaults: list) -> list:
    try:
        extra = current_app.config.get(key) or []
    except RuntimeError:
        extra = []
    return list(defaults) + [item.lower() for item in extra]


def normalize_destination_url(url: str) -> str:
    url = (url or "").strip()
    if url and not urlparse(url).scheme:
        url = "https://" + url
    return url


def is_unsafe_url(url: str) -> tuple[bool, str | None]:
    """
    Checks a destination against the local keyword and domain blocklists.

    Returns (is_unsafe, reason); reason is None when the URL is allowed.
    """
    if not url:
        return False, None

    url_lower = url.lower()

    for keyword in _configured("UNSAFE_URL_KEYWORDS", BAD_KEYWORDS):
        if keyword in url_lower:
            return True, f"URL contains possibly inappropriate content: '{keyword}'"

    domain = (urlparse(url_lower).hostname or "").strip(".")
    if not domain:
        return True, "URL has no host."

    for bad_domain in _configured("UNSAFE_URL_DOMAINS", BAD_DOMAINS):
        if domain == bad_domain or domain.endswith("." + bad_domain):
            return True, f"Domain '{domain}' is blocked."

    return False, None
