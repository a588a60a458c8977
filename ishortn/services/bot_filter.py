import re

from user_agents import parse

BOT_SIGNATURES = [
    # generic crawlers
    "bot", "crawler", "spider", "slurp", "scan", "archiver",
    # search engines
    "googlebot", "bingbot", "bingpreview", "msnbot", "yandex", "duckduckgo", "baiduspider", "teoma",
    # link-preview fetchers
    "facebookexternalhit", "facebot", "twitterbot", "linkedinbot", "slackbot", "slack-imgproxy",
    "discordbot", "telegrambot", "whatsapp", "skypeuripreview", "embedly", "quora link preview",
    "showyoubot", "outbrain", "pinterest", "vkshare", "redditbot", "applebot", "snapchat",
    "linkexpander", "safelinks", "google-read-aloud", "w3c_validator", "preview",
    # scripted and headless clients
    "headlesschrome", "phantomjs", "python-requests", "python-urllib", "aiohttp", "httpx",
    "curl/", "wget/", "okhttp", "go-http-client", "java/", "libwww-perl", "node-fetch", "axios/",
]

_BOT_PATTERN = re.compile("|".join(re.escape(s) for s in BOT_SIGNATURES), re.IGNORECASE)


def is_bot(user_agent: str) -> bool:
    """Heuristic crawler check. An empty user agent is not classified as a bot."""
    if not user_agent or not user_agent.strip():
        return False

    if _BOT_PATTERN.search(user_agent):
        return True

    return parse(user_agent).is_bot
