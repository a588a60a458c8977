from ..errors import LinkServiceError
from .response import api_response


def register_error_handlers(app):
    @app.errorhandler(LinkServiceError)
    def link_service_error(e):
        return api_response(False, str(e), None)

    @app.errorhandler(400)
    def bad_request(e):
        return api_response(False, "Bad Request", None)

    @app.errorhandler(401)
    def unauthorized(e):
        return api_response(False, "Unauthorized", None)

    @app.errorhandler(404)
    def not_found(e):
        return api_response(False, "Not Found", None)

    @app.errorhandler(405)
    def method_not_allowed(e):
        return api_response(False, "Method Not Allowed", None)

    @app.errorhandler(500)
    def server_error(e):
        app.logger.error(f"Unhandled server error: {e}")
        return api_response(False, "Server Error", None)
