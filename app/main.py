from collections.abc import Callable
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from fastapi.templating import Jinja2Templates

from app.config import settings
from app.logging_config import configure_logging
from app.routers import auth, onboarding, screens
from app.security.csrf import install_csrf_cookie_middleware
from app.security.headers import install_security_headers
from app.security.sessions import ViewSessionRegistry, install_view_session_middleware
from app.services.backend_client import BackendClient
from app.services.local_backend import init_local_schema
from app.services.provider_factory import create_backend_client

TEMPLATE_DIR = Path(__file__).resolve().parent / 'templates'


def _csrf_token(request: Request) -> str:
    return getattr(request.state, 'csrf_token', '')


def create_app(client_factory: Callable[[], BackendClient] = create_backend_client) -> FastAPI:
    registry = ViewSessionRegistry(client_factory)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level)
        if settings.backend_provider.strip().lower() == 'local':
            init_local_schema()
        yield
        registry.close_all()

    app = FastAPI(title='Shop Organization Portal', lifespan=lifespan)
    app.state.templates = Jinja2Templates(directory=str(TEMPLATE_DIR))
    app.state.templates.env.globals['csrf_token'] = _csrf_token

    install_security_headers(app)
    install_csrf_cookie_middleware(app)
    install_view_session_middleware(app, registry)

    app.include_router(screens.router)
    app.include_router(onboarding.router)
    app.include_router(auth.router)

    @app.get('/robots.txt', response_class=PlainTextResponse)
    def robots_txt() -> str:
        return 'User-agent: *\nDisallow: /\n'

    return app


app = create_app()
