import logging
from typing import Optional

import requests

logger = logging.getLogger(__name__)


class UsageAlertNotifier:
    """Hands event-usage alerts to the mail service over a JSON webhook."""

    def __init__(self, webhook_url: Optional[str] = None, timeout: int = 5, session=None):
        self.webhook_url = webhook_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def send_event_usage_alert(self, usage) -> bool:
        if not usage.alert_level_triggered or not usage.user_email:
            return False

        payload = {
            "type": "event_usage_alert",
            "email": usage.user_email,
            "name": usage.user_name,
            "threshold": usage.alert_level_triggered,
            "limit": usage.limit,
            "current_count": usage.current_count,
            "plan": usage.plan,
            "subject": f"You're {usage.alert_level_triggered}% through your monthly analytics cap",
        }

        if not self.webhook_url:
            logger.info(
                f"Usage alert {usage.alert_level_triggered}% for {usage.user_email} "
                f"({usage.current_count}/{usage.limit}); no webhook configured"
            )
            return False

        try:
            resp = self.session.post(self.webhook_url, json=payload, timeout=self.timeout)
            resp.raise_for_status()
            return True
        except requests.RequestException as e:
            logger.error(f"Failed to send event usage alert to {usage.user_email}: {e}")
            return False
