# ishortn/__init__.py

import logging

import click
from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix

from . import extensions
from .config import Config
from .extensions import cors, db, init_redis
from .routes.auth_routes import auth_bp
from .routes.core_routes import core_bp
from .routes.link_routes import links_bp
from .routes.redirect_routes import redirect_bp
from .routes.subscription_routes import subscription_bp
from .services.analytics import AnalyticsDispatcher, ClickRecorder
from .services.cache import LinkCache
from .services.notifications import UsageAlertNotifier
from .services.resolver import LinkResolver
from .utils.error_handler import register_error_handlers


def create_app(config_object=Config, redis_client=None) -> Flask:
    app = Flask(__name__)

    # Load configuration
    app.config.from_object(config_object)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    # Initialize extensions
    cors.init_app(app)
    db.init_app(app)
    init_redis(app, client=redis_client)

    # Fix proxy headers
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)

    # Resolution pipeline
    cache = LinkCache(extensions.redis_client, ttl=app.config.get("REDIS_TTL", 300))
    notifier = UsageAlertNotifier(
        webhook_url=app.config.get("USAGE_ALERT_WEBHOOK_URL"),
        timeout=app.config.get("USAGE_ALERT_TIMEOUT", 5),
    )
    recorder = ClickRecorder(notifier=notifier)
    dispatcher = AnalyticsDispatcher(
        app,
        async_mode=app.config.get("ANALYTICS_ASYNC", True),
        max_workers=app.config.get("ANALYTICS_WORKERS", 4),
    )
    app.extensions["link_cache"] = cache
    app.extensions["click_recorder"] = recorder
    app.extensions["analytics_dispatcher"] = dispatcher
    app.extensions["link_resolver"] = LinkResolver(cache, recorder, dispatcher)

    # Register blueprints; the catch-all /<alias> goes last
    app.register_blueprint(core_bp)
    app.register_blueprint(auth_bp, url_prefix="/")
    app.register_blueprint(links_bp, url_prefix="/links")
    app.register_blueprint(subscription_bp, url_prefix="/subscription")
    app.register_blueprint(redirect_bp)

    register_error_handlers(app)

    # Create tables if not exists
    with app.app_context():
        from .models import folder, link, link_visit, subscription, team, user  # noqa: F401
        db.create_all()

    @app.cli.command("cleanup-analytics")
    def cleanup_analytics_command():
        """Delete analytics older than each owner's plan retention."""
        from .services.links import cleanup_analytics_data

        result = cleanup_analytics_data()
        click.echo(
            f"Deleted {result['link_visits_deleted']} visits and "
            f"{result['unique_link_visits_deleted']} unique visits "
            f"for {result['users_processed']} users."
        )

    return app
