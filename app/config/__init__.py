# =============================================================================
# Django Project Configuration Package
# =============================================================================
# This package contains all Django configuration including settings, URLs,
# and the ASGI/WSGI applications. The ASGI application serves both the REST
# API and the live chat WebSocket channel.
# =============================================================================
