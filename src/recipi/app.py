# flake8: noqa

import logging
from contextlib import asynccontextmanager
from typing import List

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy.orm import Session

from . import crud, models, schemas, storage
from .auth import current_user, issue_token
from .config import CONFIG
from .db import get_db, init_db
from .forms import Payload, recipe_payload, user_payload, validate

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Initialize DB and media directory once at startup
    init_db()
    CONFIG.media_dir.mkdir(parents=True, exist_ok=True)
    yield


app = FastAPI(title="Recipi", lifespan=lifespan)

# Uploaded recipe and profile images; directory is created at startup
app.mount(
    CONFIG.media_url,
    StaticFiles(directory=str(CONFIG.media_dir), check_dir=False),
    name="media",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CONFIG.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _store_image(payload: Payload):
    try:
        return storage.save_upload(payload.file)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


def _owned_recipe(db: Session, slug: str, user: models.User) -> models.Recipe:
    r = crud.get_recipe_by_slug(db, slug)
    if not r:
        raise HTTPException(status_code=404, detail="Recipe not found")
    if r.author_id != user.id:
        raise HTTPException(
            status_code=403, detail="Only the author can change this recipe"
        )
    return r


def _envelope(user: models.User) -> dict:
    return {"user": {**schemas.User.model_validate(user).model_dump(),
                     "token": issue_token(user)}}


# recipes

@app.get("/recipes", response_model=List[schemas.Recipe])
def list_recipes(db: Session = Depends(get_db)):
    return crud.get_recipes(db)


@app.get("/recipes/{slug}", response_model=schemas.Recipe)
def get_recipe(slug: str, db: Session = Depends(get_db)):
    r = crud.get_recipe_by_slug(db, slug)
    if not r:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return r


@app.post("/recipes", response_model=schemas.Recipe, status_code=201)
def create_recipe(
    payload: Payload = Depends(recipe_payload),
    user: models.User = Depends(current_user),
    db: Session = Depends(get_db),
):
    recipe = validate(schemas.RecipeCreate, payload.data)
    image = _store_image(payload)
    try:
        return crud.create_recipe(db, user, recipe, image=image)
    except (crud.DuplicateError, ValueError) as exc:
        storage.remove_upload(image)
        raise HTTPException(status_code=400, detail=str(exc))


@app.put("/recipes/{slug}", response_model=schemas.Recipe)
def update_recipe(
    slug: str,
    payload: Payload = Depends(recipe_payload),
    user: models.User = Depends(current_user),
    db: Session = Depends(get_db),
):
    r = _owned_recipe(db, slug, user)
    changes = validate(schemas.RecipeUpdate, payload.data)
    image = _store_image(payload)
    return crud.update_recipe(db, r, changes, image=image)


@app.delete("/recipes/{slug}")
def delete_recipe(
    slug: str,
    user: models.User = Depends(current_user),
    db: Session = Depends(get_db),
):
    r = _owned_recipe(db, slug, user)
    crud.delete_recipe(db, r)
    return {"deleted": True}


# users

@app.post("/users", response_model=schemas.UserEnvelope, status_code=201)
def register(
    payload: Payload = Depends(user_payload), db: Session = Depends(get_db)
):
    user = validate(schemas.UserCreate, payload.data)
    try:
        db_user = crud.create_user(db, user)
    except crud.DuplicateError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return _envelope(db_user)


@app.post("/users/login", response_model=schemas.UserEnvelope)
def login(
    payload: Payload = Depends(user_payload), db: Session = Depends(get_db)
):
    creds = validate(schemas.UserLogin, payload.data)
    db_user = crud.authenticate(db, creds.email, creds.password)
    if not db_user:
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return _envelope(db_user)


@app.get("/users/user", response_model=schemas.User)
def read_current_user(user: models.User = Depends(current_user)):
    return user


@app.patch("/users/user", response_model=schemas.UserEnvelope)
def update_current_user(
    payload: Payload = Depends(user_payload),
    user: models.User = Depends(current_user),
    db: Session = Depends(get_db),
):
    patch = validate(schemas.UserUpdate, payload.data)
    image = _store_image(payload)
    try:
        db_user = crud.update_user(db, user, patch, image=image)
    except crud.DuplicateError as exc:
        storage.remove_upload(image)
        raise HTTPException(status_code=400, detail=str(exc))
    # the old token still carries the previous username
    return _envelope(db_user)


@app.delete("/users/user")
def delete_current_user(
    user: models.User = Depends(current_user), db: Session = Depends(get_db)
):
    crud.delete_user(db, user)
    return {"deleted": True}


@app.get("/users/{username}", response_model=schemas.Profile)
def read_profile(username: str, db: Session = Depends(get_db)):
    db_user = crud.get_user_by_username(db, username)
    if not db_user:
        raise HTTPException(status_code=404, detail="User not found")
    return db_user
