import logging
from datetime import date, datetime
from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Form, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from pulse.auth import (
    COOKIE_NAME,
    get_current_user_optional,
    get_password_hash,
    authenticate_user,
    create_access_token,
    get_user_by_email,
    resolve_scope,
    set_auth_cookie,
)
from pulse.config import get_settings
from pulse.constants import (
    EXERCISE_OPTIONS,
    MOOD_LABELS,
    SCREEN_TIME_OPTIONS,
    get_suggestion,
    next_suggestion_id,
)
from pulse.database import get_db
from pulse.dependencies import Store
from pulse.insights import compute_trend, detect_patterns, greeting, week_strip, weekly_chart
from pulse.models import User
from pulse.schemas import CheckIn, NOTE_MAX_LENGTH

logger = logging.getLogger(__name__)

router = APIRouter(tags=["pages"])
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))
templates.env.globals.update(
    mood_labels=MOOD_LABELS,
    screen_time_options=SCREEN_TIME_OPTIONS,
    exercise_options=EXERCISE_OPTIONS,
    note_max_length=NOTE_MAX_LENGTH,
)
settings = get_settings()

CurrentUser = Annotated[User | None, Depends(get_current_user_optional)]


def redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=status.HTTP_302_FOUND)


def signed_in_redirect(user: User) -> RedirectResponse:
    response = redirect("/dashboard")
    set_auth_cookie(response, create_access_token(user.id))
    return response


@router.get("/", response_class=HTMLResponse)
async def home():
    return redirect("/dashboard")


@router.get("/login", response_class=HTMLResponse)
async def login_page(request: Request, user: CurrentUser):
    if user:
        return redirect("/dashboard")
    return templates.TemplateResponse(request, "login.html", {"error": None})


@router.post("/login", response_class=HTMLResponse)
async def login_submit(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    email: str = Form(...),
    password: str = Form(...),
):
    user = await authenticate_user(db, email, password)
    if not user:
        return templates.TemplateResponse(
            request,
            "login.html",
            {"error": "Invalid email or password"},
            status_code=status.HTTP_401_UNAUTHORIZED,
        )
    return signed_in_redirect(user)


@router.get("/register", response_class=HTMLResponse)
async def register_page(request: Request, user: CurrentUser):
    if user:
        return redirect("/dashboard")
    return templates.TemplateResponse(request, "register.html", {"error": None})


@router.post("/register", response_class=HTMLResponse)
async def register_submit(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    email: str = Form(...),
    password: str = Form(...),
    password_confirm: str = Form(...),
):
    error = None
    if password != password_confirm:
        error = "Passwords do not match"
    elif len(password) < 6:
        error = "Password must be at least 6 characters"
    elif await get_user_by_email(db, email):
        error = "Email already registered"

    if error:
        return templates.TemplateResponse(
            request,
            "register.html",
            {"error": error},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    user = User(email=email, hashed_password=get_password_hash(password))
    db.add(user)
    await db.flush()
    return signed_in_redirect(user)


@router.get("/logout")
async def logout():
    response = redirect("/login" if settings.require_sign_in else "/dashboard")
    response.delete_cookie(key=COOKIE_NAME)
    return response


@router.get("/welcome", response_class=HTMLResponse)
async def welcome_page(request: Request, user: CurrentUser):
    """Onboarding screen shown until the scope has been onboarded."""
    if resolve_scope(user) is None:
        return redirect("/login")
    return templates.TemplateResponse(request, "welcome.html", {"user": user})


@router.post("/welcome")
async def welcome_submit(user: CurrentUser, store: Store):
    scope = resolve_scope(user)
    if scope is None:
        return redirect("/login")
    await store.complete_onboarding(scope)
    return redirect("/dashboard")


async def _render_dashboard(
    request: Request,
    user: User | None,
    scope: str,
    store: Store,
    edit: bool = False,
    suggestion_id: str | None = None,
    status_code: int = status.HTTP_200_OK,
    error: str | None = None,
):
    if settings.seed_demo_data:
        entries = await store.seed_if_empty(scope)
    else:
        entries = await store.list_entries(scope)

    today = date.today()
    today_entry = next((e for e in entries if e.date == today), None)
    suggestion = get_suggestion(suggestion_id)

    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "user": user,
            "today": today,
            "greeting": greeting(datetime.now().hour),
            "entry": today_entry,
            "editing": edit or today_entry is None,
            "week": week_strip(entries, today),
            "suggestion": suggestion,
            "next_suggestion": next_suggestion_id(suggestion["id"]),
            "error": error,
        },
        status_code=status_code,
    )


@router.get("/dashboard", response_class=HTMLResponse)
async def dashboard_page(
    request: Request,
    user: CurrentUser,
    store: Store,
    edit: bool = False,
    suggestion: str | None = None,
):
    """Today's check-in form, or the summary once today is logged."""
    scope = resolve_scope(user)
    if scope is None:
        return redirect("/login")
    if not await store.is_onboarded(scope):
        return redirect("/welcome")
    return await _render_dashboard(request, user, scope, store, edit=edit, suggestion_id=suggestion)


@router.post("/dashboard", response_class=HTMLResponse)
async def save_check_in(
    request: Request,
    user: CurrentUser,
    store: Store,
    mood: str | None = Form(None),
    screen_time: str | None = Form(None),
    sleep_hours: str | None = Form(None),
    exercise_minutes: str | None = Form(None),
    note: str | None = Form(None),
):
    scope = resolve_scope(user)
    if scope is None:
        return redirect("/login")

    # The form cannot be submitted without both; just show it again
    if not mood or not screen_time:
        return await _render_dashboard(request, user, scope, store, edit=True)

    # Blank numeric fields fall back to the CheckIn defaults
    habits = {
        name: value
        for name, value in (("sleep_hours", sleep_hours), ("exercise_minutes", exercise_minutes))
        if value not in (None, "")
    }
    try:
        check_in = CheckIn(mood=mood, screen_time=screen_time, note=note, **habits)
    except ValidationError as e:
        logger.info("Rejected check-in for scope %s: %d invalid fields", scope, e.error_count())
        return await _render_dashboard(
            request, user, scope, store,
            edit=True,
            status_code=status.HTTP_400_BAD_REQUEST,
            error="Some of those values are not valid.",
        )

    existing = await store.get_entry(scope, check_in.date)
    await store.upsert(check_in.to_entry(existing), scope)
    return redirect("/dashboard")


@router.get("/insights", response_class=HTMLResponse)
async def insights_page(request: Request, user: CurrentUser, store: Store):
    scope = resolve_scope(user)
    if scope is None:
        return redirect("/login")
    if not await store.is_onboarded(scope):
        return redirect("/welcome")

    entries = await store.list_entries(scope)
    return templates.TemplateResponse(
        request,
        "insights.html",
        {
            "user": user,
            "has_entries": bool(entries),
            "summary": compute_trend(entries),
            "chart": weekly_chart(entries),
            "patterns": detect_patterns(entries),
        },
    )
