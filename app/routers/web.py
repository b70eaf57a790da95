"""Web routes: home, profile creation, dashboard, level play. Jinja2 templates."""
from typing import Annotated

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import APP_DIR, get_settings
from app.core.errors import InvalidActionError, MissingParametersError, NotFoundError, ProblemNotFound
from app.db.session import get_db
from app.models.level import Level
from app.models.user import User
from app.schemas.level import LevelFormSchema
from app.schemas.user import AVATAR_OPTIONS, ProfileCreateSchema
from app.services import progress as progress_service
from app.services.grading import GradeResult, get_grade_name, uses_keyboard_input
from app.services.profiles import build_dashboard, create_user, list_users
from app.services.session_state import LevelSession, ProblemState, visual_hint

router = APIRouter()
settings = get_settings()
templates = Jinja2Templates(directory=str(APP_DIR / "templates"))
templates.env.globals["grade_name"] = get_grade_name

LEVEL_ACTIONS = ("submit-answer", "try-again", "next-problem", "restart", "complete-level")


# ---------- helpers ----------

def _redirect(url, **params) -> RedirectResponse:
    """303 redirect with query params."""
    return RedirectResponse(url.include_query_params(**params), status_code=303)


def _session_from(
    index: int | None,
    state: str | None,
    second_chance: int | None,
    score: int | None,
    answered: int | None,
    answer: int | None = None,
    correct: int | None = None,
) -> LevelSession | None:
    """Rebuild the play state carried in the request; None when play has not started."""
    if state is None:
        return None
    try:
        return LevelSession(
            index=index or 0,
            state=ProblemState(state),
            showing_second_chance=bool(second_chance),
            score=score or 0,
            answered=answered or 0,
            last_answer=answer,
            last_correct=None if correct is None else bool(correct),
        )
    except (ValueError, ValidationError):
        raise HTTPException(status_code=400, detail="Invalid session state")


def _level_url(request: Request, level: Level, user: User, session: LevelSession, **extra):
    params = {"user_id": user.id, **session.to_params(), **extra}
    return request.url_for("level_get", level_id=level.id).include_query_params(**params)


# ---------- routes ----------

@router.get("/", response_class=HTMLResponse)
async def home(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    users = await list_users(db)
    return templates.TemplateResponse(
        request,
        "home.html",
        {
            "users": users,
            "avatars": AVATAR_OPTIONS,
        },
    )


@router.get("/create-profile", response_class=HTMLResponse)
async def create_profile_get(request: Request, avatar: str | None = None):
    if not avatar:
        return RedirectResponse(request.url_for("home"), status_code=303)
    return templates.TemplateResponse(
        request,
        "create_profile.html",
        {"avatar": avatar, "errors": {}, "name": ""},
    )


@router.post("/create-profile")
async def create_profile_post(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    name: Annotated[str, Form()] = "",
    grade: Annotated[str, Form()] = "",
    avatar: Annotated[str, Form()] = "",
):
    """Validate the profile form, create the user and go to their dashboard."""
    try:
        data = ProfileCreateSchema(name=name, grade=grade, avatar=avatar)
    except ValidationError as e:
        errors = {}
        for err in e.errors():
            field = str(err["loc"][0]) if err["loc"] else "general"
            errors.setdefault(field, err["msg"])
        return templates.TemplateResponse(
            request,
            "create_profile.html",
            {"avatar": avatar, "errors": errors, "name": name},
            status_code=400,
        )

    user = await create_user(db, data)
    return RedirectResponse(request.url_for("dashboard", user_id=user.id), status_code=303)


@router.get("/dashboard/{user_id}", response_class=HTMLResponse)
async def dashboard(
    request: Request,
    user_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    completed: int | None = None,
):
    try:
        data = await build_dashboard(db, user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "user": data.user,
            "dashboard": data,
            "just_completed": completed,
        },
    )


@router.get("/level/{level_id}", response_class=HTMLResponse)
async def level_get(
    request: Request,
    level_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    user_id: int | None = None,
    index: int | None = None,
    state: str | None = None,
    second_chance: int | None = None,
    score: int | None = None,
    answered: int | None = None,
    answer: int | None = None,
    correct: int | None = None,
    practice: int = 0,
):
    """Show the current problem with hints, input and feedback for the play state."""
    if user_id is None:
        raise HTTPException(status_code=400, detail="Missing required parameters")
    try:
        level, user, progress = await progress_service.load_level_context(db, level_id, user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    session = _session_from(index, state, second_chance, score, answered, answer, correct)
    if session is None:
        session = LevelSession.start(progress)

    problems = level.problems
    if not problems:
        return templates.TemplateResponse(
            request,
            "error.html",
            {"message": "This level has no problems yet."},
            status_code=404,
        )
    if session.index >= len(problems):
        raise HTTPException(status_code=404, detail="Problem not found")

    problem = problems[session.index]
    return templates.TemplateResponse(
        request,
        "level.html",
        {
            "level": level,
            "user": user,
            "problem": problem,
            "problem_total": len(problems),
            "session": session,
            "hint": visual_hint(problem.question) if session.shows_visual_hints(user.grade) else None,
            "use_keyboard": uses_keyboard_input(user.grade),
            "can_select": session.can_make_selection(user.grade),
            "can_complete": session.can_complete(level.problem_count, settings.completion_threshold),
            "required_accuracy": round(settings.completion_threshold * 100),
            "is_last": session.is_last_problem(len(problems)),
            "progress_percentage": session.progress_percentage(len(problems)),
            "need_more_practice": bool(practice),
        },
    )


@router.post("/level/{level_id}", response_class=RedirectResponse)
async def level_post(
    request: Request,
    level_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    action: Annotated[str | None, Form()] = None,
    user_id: Annotated[str | None, Form()] = None,
    problem_id: Annotated[str | None, Form()] = None,
    user_answer: Annotated[str | None, Form()] = None,
    is_second_attempt: Annotated[str, Form()] = "false",
    index: Annotated[int, Form()] = 0,
    state: Annotated[str, Form()] = ProblemState.UNANSWERED.value,
    second_chance: Annotated[int, Form()] = 0,
    score: Annotated[int, Form()] = 0,
    answered: Annotated[int, Form()] = 0,
):
    """Handle one level action and redirect back to the level page (or dashboard)."""
    try:
        form = LevelFormSchema(
            action=action,
            user_id=user_id,
            problem_id=problem_id,
            user_answer=user_answer,
            is_second_attempt=is_second_attempt == "true",
        )
    except ValidationError:
        raise HTTPException(status_code=400, detail="Invalid parameters")

    if form.action not in LEVEL_ACTIONS:
        raise HTTPException(status_code=400, detail="Invalid action")

    session = _session_from(index, state, second_chance, score, answered)
    try:
        return await _dispatch(request, db, level_id, form, session)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (InvalidActionError, MissingParametersError) as e:
        raise HTTPException(status_code=400, detail=str(e))


async def _dispatch(
    request: Request,
    db: AsyncSession,
    level_id: int,
    form: LevelFormSchema,
    session: LevelSession,
) -> RedirectResponse:
    if form.user_id is None:
        raise MissingParametersError("user_id")

    if form.action == "complete-level":
        result = await progress_service.complete_level(
            db, form.user_id, level_id, threshold=settings.completion_threshold
        )
        if result.completed:
            return _redirect(request.url_for("dashboard", user_id=form.user_id), completed=level_id)
        level = await progress_service.get_level(db, level_id)
        user = await progress_service.get_user(db, form.user_id)
        return RedirectResponse(_level_url(request, level, user, session, practice=1), status_code=303)

    level = await progress_service.get_level(db, level_id, with_problems=True)
    user = await progress_service.get_user(db, form.user_id)

    if form.action == "submit-answer":
        if form.problem_id is None or form.user_answer is None:
            raise MissingParametersError("problem_id", "user_answer")
        if not session.can_make_selection(user.grade):
            raise InvalidActionError(form.action)
        problem_ids = [p.id for p in level.problems]
        if form.problem_id not in problem_ids:
            raise ProblemNotFound(form.problem_id)
        # only the problem at the current index can be answered
        if problem_ids.index(form.problem_id) != session.index:
            raise InvalidActionError(form.action)
        answer = await progress_service.submit_answer(
            db,
            user_id=user.id,
            level_id=level.id,
            problem_id=form.problem_id,
            user_answer=form.user_answer,
            is_second_attempt=form.is_second_attempt,
        )
        session = session.apply_result(
            GradeResult(answer.is_correct, answer.is_first_wrong_for_1st_2nd),
            form.user_answer,
            user.grade,
        )
    elif form.action == "try-again":
        session = session.retry()
    elif form.action == "next-problem":
        session = session.next_problem(len(level.problems))
    else:
        session = session.restart()

    return RedirectResponse(_level_url(request, level, user, session), status_code=303)
