from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from starlette.datastructures import FormData

from app.dependencies import get_client_ip, get_view_router
from app.routers.screens import render_screen
from app.security.csrf import verified_form
from app.services.audit_service import log_audit, log_auth_event
from app.services.errors import AccessDeniedError
from app.services.view_router import View, ViewRouter

router = APIRouter(tags=['auth'])


def _login(request: Request, view_router: ViewRouter, form: FormData, *, team: bool):
    expected = View.TEAM_LOGIN if team else View.LOGIN
    flow = 'team-login' if team else 'owner-login'
    ip = get_client_ip(request)

    with view_router.lock:
        if view_router.screen != expected:
            return RedirectResponse('/', status_code=303)
        login_form = view_router.ensure_team_login_form() if team else view_router.ensure_login_form()
        login_form.update(form)
        email = login_form.email
        try:
            result = view_router.submit_team_login() if team else view_router.submit_login()
        except AccessDeniedError as exc:
            log_auth_event(attempted_email=email, success=False, ip=ip, flow=flow, failure_reason=f'ROLE_REJECTED: {exc}')
            return render_screen(request, view_router, status_code=403)
        except ValueError as exc:
            log_auth_event(attempted_email=email, success=False, ip=ip, flow=flow, failure_reason=str(exc))
            return render_screen(request, view_router, status_code=401)

        log_auth_event(attempted_email=email, success=True, ip=ip, flow=flow, user_id=result.user.id)
        log_audit(actor_user_id=result.user.id, action='AUTH_LOGIN', ip=ip, metadata={'role': result.role})
    return RedirectResponse('/', status_code=303)


@router.post('/login')
def login_submit(
    request: Request,
    view_router: ViewRouter = Depends(get_view_router),
    form: FormData = Depends(verified_form),
):
    return _login(request, view_router, form, team=False)


@router.post('/team-login')
def team_login_submit(
    request: Request,
    view_router: ViewRouter = Depends(get_view_router),
    form: FormData = Depends(verified_form),
):
    return _login(request, view_router, form, team=True)


@router.post('/logout')
def logout(
    request: Request,
    view_router: ViewRouter = Depends(get_view_router),
    _: FormData = Depends(verified_form),
):
    with view_router.lock:
        user_id = view_router.user.id if view_router.user else None
        view_router.logout()
    log_audit(actor_user_id=user_id, action='AUTH_LOGOUT', ip=get_client_ip(request), metadata={})
    return RedirectResponse('/', status_code=303)
