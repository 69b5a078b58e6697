from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse
from starlette.datastructures import FormData

from app.auth import TEAM_ROLES
from app.dependencies import get_view_router
from app.security.csrf import verified_form
from app.services.dashboard_service import load_organization_dashboard
from app.services.organization_signup_service import LAST_STEP, STEP_TITLES
from app.services.view_router import View, ViewRouter

router = APIRouter(tags=['screens'])

SCREEN_TEMPLATES = {
    View.LOADING: 'loading.html',
    View.LANDING: 'landing.html',
    View.SIGNUP: 'signup.html',
    View.CONFIRMATION: 'confirmation.html',
    View.LOGIN: 'login.html',
    View.EMPLOYEE_SIGNUP: 'employee_signup.html',
    View.SUCCESS: 'success.html',
    View.TEAM_LOGIN: 'team_login.html',
    View.DASHBOARD: 'dashboard.html',
}


def render_screen(request: Request, view_router: ViewRouter, *, status_code: int = 200):
    screen = view_router.screen
    template = SCREEN_TEMPLATES[screen]
    context = {'request': request, 'view': view_router, 'screen': screen.value}

    if screen == View.SIGNUP:
        context['form'] = view_router.ensure_signup_form()
        context['step_titles'] = STEP_TITLES
        context['last_step'] = LAST_STEP
    elif screen == View.EMPLOYEE_SIGNUP:
        context['form'] = view_router.ensure_employee_signup_form()
        context['team_roles'] = sorted(role.value for role in TEAM_ROLES)
    elif screen == View.LOGIN:
        context['form'] = view_router.ensure_login_form()
    elif screen == View.TEAM_LOGIN:
        context['form'] = view_router.ensure_team_login_form()
    elif screen == View.CONFIRMATION:
        context['org_data'] = view_router.org_data
    elif screen == View.DASHBOARD:
        if view_router.is_owner:
            context['dashboard'] = load_organization_dashboard(view_router.client, view_router.user)
        else:
            template = 'dashboard_placeholder.html'
            context['role'] = view_router.role

    return request.app.state.templates.TemplateResponse(request, template, context, status_code=status_code)


@router.get('/')
def current_screen(request: Request, view_router: ViewRouter = Depends(get_view_router)):
    with view_router.lock:
        return render_screen(request, view_router)


NAVIGATION = {
    'signup': ViewRouter.show_signup,
    'login': ViewRouter.show_login,
    'employee-signup': ViewRouter.show_employee_signup,
    'team-login': ViewRouter.show_team_login,
    'landing': ViewRouter.back_to_landing,
}


@router.post('/navigate/{target}')
def navigate(
    target: str,
    view_router: ViewRouter = Depends(get_view_router),
    _: FormData = Depends(verified_form),
):
    action = NAVIGATION.get(target)
    if action is None:
        raise HTTPException(status_code=404, detail='Unknown screen')
    with view_router.lock:
        action(view_router)
    return RedirectResponse('/', status_code=303)
