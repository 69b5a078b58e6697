from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from starlette.datastructures import FormData

from app.dependencies import get_client_ip, get_view_router
from app.routers.screens import render_screen
from app.security.csrf import verified_form
from app.services.audit_service import log_audit, log_auth_event
from app.services.view_router import View, ViewRouter

router = APIRouter(tags=['onboarding'])


def _on_screen(view_router: ViewRouter, view: View) -> bool:
    return view_router.screen == view


@router.post('/signup/next')
def signup_next(
    request: Request,
    view_router: ViewRouter = Depends(get_view_router),
    form: FormData = Depends(verified_form),
):
    with view_router.lock:
        if not _on_screen(view_router, View.SIGNUP):
            return RedirectResponse('/', status_code=303)
        signup_form = view_router.ensure_signup_form()
        signup_form.update(form)
        try:
            signup_form.next_step()
        except ValueError:
            return render_screen(request, view_router, status_code=400)
    return RedirectResponse('/', status_code=303)


@router.post('/signup/previous')
def signup_previous(
    view_router: ViewRouter = Depends(get_view_router),
    form: FormData = Depends(verified_form),
):
    with view_router.lock:
        if _on_screen(view_router, View.SIGNUP):
            signup_form = view_router.ensure_signup_form()
            signup_form.update(form)
            signup_form.previous_step()
    return RedirectResponse('/', status_code=303)


@router.post('/signup/submit')
def signup_submit(
    request: Request,
    view_router: ViewRouter = Depends(get_view_router),
    form: FormData = Depends(verified_form),
):
    ip = get_client_ip(request)
    with view_router.lock:
        if not _on_screen(view_router, View.SIGNUP):
            return RedirectResponse('/', status_code=303)
        signup_form = view_router.ensure_signup_form()
        signup_form.update(form)
        email = signup_form.data.email
        try:
            credentials = view_router.submit_signup()
        except ValueError as exc:
            log_auth_event(attempted_email=email, success=False, ip=ip, flow='organization-signup', failure_reason=str(exc))
            return render_screen(request, view_router, status_code=400)

        user_id = view_router.user.id if view_router.user else None
        log_auth_event(attempted_email=email, success=True, ip=ip, flow='organization-signup', user_id=user_id)
        log_audit(
            actor_user_id=user_id,
            action='ORGANIZATION_CREATED',
            ip=ip,
            metadata={'organization_name': credentials.org_name},
        )
    return RedirectResponse('/', status_code=303)


@router.post('/employee-signup/submit')
def employee_signup_submit(
    request: Request,
    view_router: ViewRouter = Depends(get_view_router),
    form: FormData = Depends(verified_form),
):
    ip = get_client_ip(request)
    with view_router.lock:
        if not _on_screen(view_router, View.EMPLOYEE_SIGNUP):
            return RedirectResponse('/', status_code=303)
        signup_form = view_router.ensure_employee_signup_form()
        signup_form.update(form)
        email = signup_form.data.email
        role = signup_form.data.role
        try:
            user = view_router.submit_employee_signup()
        except ValueError as exc:
            log_auth_event(attempted_email=email, success=False, ip=ip, flow='team-signup', failure_reason=str(exc))
            return render_screen(request, view_router, status_code=400)

        log_auth_event(attempted_email=email, success=True, ip=ip, flow='team-signup', user_id=user.id)
        log_audit(actor_user_id=user.id, action='TEAM_MEMBER_JOINED', ip=ip, metadata={'role': role})
    return RedirectResponse('/', status_code=303)


@router.post('/confirmation/continue')
def confirmation_continue(
    view_router: ViewRouter = Depends(get_view_router),
    _: FormData = Depends(verified_form),
):
    with view_router.lock:
        view_router.continue_to_dashboard()
    return RedirectResponse('/', status_code=303)


@router.post('/success/continue')
def success_continue(
    view_router: ViewRouter = Depends(get_view_router),
    _: FormData = Depends(verified_form),
):
    with view_router.lock:
        view_router.continue_to_login()
    return RedirectResponse('/', status_code=303)
