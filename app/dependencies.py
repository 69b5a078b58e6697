from fastapi import HTTPException, Request, status
from fastapi.templating import Jinja2Templates

from app.services.view_router import ViewRouter


def get_templates(request: Request) -> Jinja2Templates:
    return request.app.state.templates


def get_view_router(request: Request) -> ViewRouter:
    handle = getattr(request.state, 'view_session', None)
    if handle is None:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail='View session missing')
    return handle.router


def get_client_ip(request: Request) -> str | None:
    forwarded_for = request.headers.get('x-forwarded-for')
    if forwarded_for:
        return forwarded_for.split(',')[0].strip()
    if request.client:
        return request.client.host
    return None
