import logging
import os
from datetime import date

from fastapi import FastAPI, Depends, HTTPException, Header, Request
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session

from .config import settings
from .db import Base, SessionLocal, engine, get_db
from . import schemas, services
from .charts import StreakCard, render_history_heatmap_png, render_streak_card_png
from .streaks import InvalidDateFormat, InvalidTargetDay, parse_day

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="HabitForge API", version="1.0.0")


@app.on_event("startup")
def on_startup():
    Base.metadata.create_all(bind=engine)
    if settings.seed_default_badges:
        db = SessionLocal()
        try:
            services.ensure_badge_definitions(db)
        finally:
            db.close()
    logger.info("HabitForge started (env=%s)", settings.app_env)


def _error(status_code: int, detail: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail})


@app.exception_handler(InvalidDateFormat)
@app.exception_handler(InvalidTargetDay)
@app.exception_handler(services.InvalidStatus)
def bad_request_handler(request: Request, exc: ValueError):
    return _error(400, str(exc))


@app.exception_handler(services.HabitAccessDenied)
def forbidden_handler(request: Request, exc: services.HabitAccessDenied):
    return _error(403, "Cannot access habits of other users")


@app.exception_handler(services.HabitNotFound)
def habit_not_found_handler(request: Request, exc: services.HabitNotFound):
    return _error(404, "Habit not found")


@app.exception_handler(services.BadgeNotFound)
def badge_not_found_handler(request: Request, exc: services.BadgeNotFound):
    return _error(404, "Badge not found")


@app.exception_handler(services.BadgeConflict)
def badge_conflict_handler(request: Request, exc: services.BadgeConflict):
    return _error(409, f"Badge {exc} already exists")


def require_api_key(x_api_key: str | None = Header(default=None)) -> None:
    if not x_api_key or x_api_key != settings.api_key:
        raise HTTPException(status_code=401, detail="Unauthorized")


def current_owner(x_owner_id: str | None = Header(default=None)) -> str:
    # identity is verified upstream; this service only trusts the one header
    if not x_owner_id:
        raise HTTPException(status_code=401, detail="Missing owner identity")
    return x_owner_id


@app.get("/health")
def health():
    return {"status": "ok"}


# Habits

@app.post("/habits", response_model=schemas.HabitOut, status_code=201, dependencies=[Depends(require_api_key)])
def create_habit(payload: schemas.HabitCreate, owner_id: str = Depends(current_owner), db: Session = Depends(get_db)):
    return services.create_habit(db, owner_id, payload)


@app.get("/habits", response_model=list[schemas.HabitOut], dependencies=[Depends(require_api_key)])
def list_habits(owner_id: str = Depends(current_owner), db: Session = Depends(get_db)):
    return services.list_habits(db, owner_id)


@app.get("/habits/today", response_model=list[schemas.HabitOut], dependencies=[Depends(require_api_key)])
def list_today_habits(day: str | None = None, owner_id: str = Depends(current_owner), db: Session = Depends(get_db)):
    return services.list_habits_for_day(db, owner_id, day)


@app.get("/habits/{habit_id}", response_model=schemas.HabitOut, dependencies=[Depends(require_api_key)])
def get_habit(habit_id: int, owner_id: str = Depends(current_owner), db: Session = Depends(get_db)):
    return services.get_habit(db, owner_id, habit_id)


@app.put("/habits/{habit_id}", response_model=schemas.HabitOut, dependencies=[Depends(require_api_key)])
def update_habit(
    habit_id: int,
    payload: schemas.HabitUpdate,
    owner_id: str = Depends(current_owner),
    db: Session = Depends(get_db),
):
    return services.update_habit(db, owner_id, habit_id, payload)


@app.delete("/habits/{habit_id}", dependencies=[Depends(require_api_key)])
def delete_habit(habit_id: int, owner_id: str = Depends(current_owner), db: Session = Depends(get_db)):
    services.delete_habit(db, owner_id, habit_id)
    return {"deleted": True}


@app.patch("/habits/{habit_id}/status", response_model=schemas.StatusUpdateOut, dependencies=[Depends(require_api_key)])
def update_habit_status(
    habit_id: int,
    payload: schemas.StatusUpdate,
    owner_id: str = Depends(current_owner),
    db: Session = Depends(get_db),
):
    habit, new_badges = services.update_habit_status(
        db, owner_id, habit_id, payload.date, payload.status, today=payload.today
    )
    return {"habit": habit, "new_badges": new_badges}


@app.post("/habits/{habit_id}/refresh", response_model=schemas.StatusUpdateOut, dependencies=[Depends(require_api_key)])
def refresh_habit(
    habit_id: int,
    today: str | None = None,
    owner_id: str = Depends(current_owner),
    db: Session = Depends(get_db),
):
    habit, new_badges = services.refresh_streaks(db, owner_id, habit_id, today=today)
    return {"habit": habit, "new_badges": new_badges}


@app.get("/habits/{habit_id}/stats", response_model=schemas.HabitStatsOut, dependencies=[Depends(require_api_key)])
def get_habit_stats(habit_id: int, owner_id: str = Depends(current_owner), db: Session = Depends(get_db)):
    return services.compute_habit_stats(services.get_habit(db, owner_id, habit_id))


@app.get("/habits/{habit_id}/heatmap.png", dependencies=[Depends(require_api_key)])
def get_heatmap_png(
    habit_id: int,
    weeks: int = 12,
    today: str | None = None,
    owner_id: str = Depends(current_owner),
    db: Session = Depends(get_db),
):
    habit = services.get_habit(db, owner_id, habit_id)
    weeks = max(1, min(int(weeks), 53))
    day = parse_day(today) if today else date.today()
    png = render_history_heatmap_png(habit.history or {}, day, weeks=weeks, title=habit.name)
    return Response(content=png, media_type="image/png")


@app.get("/habits/{habit_id}/card.png", dependencies=[Depends(require_api_key)])
def get_card_png(habit_id: int, owner_id: str = Depends(current_owner), db: Session = Depends(get_db)):
    habit = services.get_habit(db, owner_id, habit_id)
    s = services.compute_habit_stats(habit)
    card = StreakCard(
        habit_name=habit.name,
        current_streak=s["current_streak"],
        longest_streak=s["longest_streak"],
        completion_rate=s["completion_rate"],
        completed_days=s["completed_days"],
        missed_days=s["missed_days"],
        badges=list(habit.badges or []),
    )
    png = render_streak_card_png(card)
    return Response(content=png, media_type="image/png")


# Badge catalog

@app.get("/badges", response_model=list[schemas.BadgeOut], dependencies=[Depends(require_api_key)])
def list_badges(db: Session = Depends(get_db)):
    return services.list_badge_definitions(db)


@app.post("/badges", response_model=schemas.BadgeOut, status_code=201, dependencies=[Depends(require_api_key)])
def create_badge(payload: schemas.BadgeCreate, db: Session = Depends(get_db)):
    return services.create_badge_definition(db, payload)


@app.get("/badges/streak/{count}", response_model=list[schemas.BadgeOut], dependencies=[Depends(require_api_key)])
def badges_for_streak(count: int, db: Session = Depends(get_db)):
    return services.badges_for_streak(db, count)


@app.get("/badges/{key}", response_model=schemas.BadgeOut, dependencies=[Depends(require_api_key)])
def get_badge(key: str, db: Session = Depends(get_db)):
    return services.get_badge_definition(db, key)


@app.put("/badges/{key}", response_model=schemas.BadgeOut, dependencies=[Depends(require_api_key)])
def update_badge(key: str, payload: schemas.BadgeUpdate, db: Session = Depends(get_db)):
    return services.update_badge_definition(db, key, payload)


@app.delete("/badges/{key}", dependencies=[Depends(require_api_key)])
def delete_badge(key: str, db: Session = Depends(get_db)):
    services.delete_badge_definition(db, key)
    return {"deleted": True}


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
