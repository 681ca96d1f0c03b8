import json
import logging

from sqlalchemy.orm import Session

from . import models, schemas, storage
from .auth import hash_password, verify_password
from .normalize import slugify

logger = logging.getLogger(__name__)


class DuplicateError(Exception):
    """A unique column (slug, username or email) is already taken."""


# recipes

def get_recipe_by_slug(db: Session, slug: str):
    return db.query(models.Recipe).filter(models.Recipe.slug == slug).first()


def get_recipes(db: Session):
    return db.query(models.Recipe).order_by(models.Recipe.id).all()


def create_recipe(
    db: Session,
    author: models.User,
    recipe: schemas.RecipeCreate,
    image: str | None = None,
):
    slug = slugify(recipe.name)
    if not slug:
        raise ValueError("Recipe name must contain letters or digits")
    if get_recipe_by_slug(db, slug):
        raise DuplicateError(f"Recipe with name {recipe.name!r} already exists")
    db_recipe = models.Recipe(
        slug=slug,
        name=recipe.name,
        description=recipe.description,
        prep_time=recipe.prep_time,
        cook_time=recipe.cook_time,
        difficulty=recipe.difficulty.value,
        servings=recipe.servings,
        notes=recipe.notes,
        ingredients=json.dumps(recipe.ingredients),
        steps=json.dumps(recipe.steps),
        tags=json.dumps(recipe.tags),
        image=image,
        author=author,
    )
    db.add(db_recipe)
    db.commit()
    db.refresh(db_recipe)
    logger.info("Created recipe %s for %s", slug, author.username)
    return db_recipe


def update_recipe(
    db: Session,
    db_recipe: models.Recipe,
    recipe: schemas.RecipeUpdate,
    image: str | None = None,
):
    """Copy the fields present in `recipe` onto the row; the slug never moves."""
    changes = recipe.model_dump(exclude_none=True)
    for key in ("ingredients", "steps", "tags"):
        if key in changes:
            changes[key] = json.dumps(changes[key])
    if "difficulty" in changes:
        changes["difficulty"] = recipe.difficulty.value
    for key, value in changes.items():
        setattr(db_recipe, key, value)
    previous = db_recipe.image
    if image:
        db_recipe.image = image
    db.add(db_recipe)
    db.commit()
    db.refresh(db_recipe)
    if image and previous != image:
        storage.remove_upload(previous)
    logger.info("Updated recipe %s (%s)", db_recipe.slug, ", ".join(changes))
    return db_recipe


def delete_recipe(db: Session, db_recipe: models.Recipe):
    db.delete(db_recipe)
    db.commit()
    logger.info("Deleted recipe %s", db_recipe.slug)
    return True


# users

def get_user_by_username(db: Session, username: str):
    return (
        db.query(models.User).filter(models.User.username == username).first()
    )


def get_user_by_email(db: Session, email: str):
    return db.query(models.User).filter(models.User.email == email).first()


def create_user(db: Session, user: schemas.UserCreate):
    if get_user_by_username(db, user.username):
        raise DuplicateError("Username is already taken")
    if get_user_by_email(db, user.email):
        raise DuplicateError("Email is already registered")
    db_user = models.User(
        username=user.username,
        email=user.email,
        password_hash=hash_password(user.password),
        bio="",
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    logger.info("Registered user %s", db_user.username)
    return db_user


def authenticate(db: Session, email: str, password: str):
    db_user = get_user_by_email(db, email)
    if not db_user or not verify_password(password, db_user.password_hash):
        return None
    return db_user


def update_user(
    db: Session,
    db_user: models.User,
    patch: schemas.UserUpdate,
    image: str | None = None,
):
    changes = patch.model_dump(exclude_unset=True, exclude_none=True)
    username = changes.get("username")
    if username and username != db_user.username:
        if get_user_by_username(db, username):
            raise DuplicateError("Username is already taken")
    email = changes.get("email")
    if email and email != db_user.email:
        if get_user_by_email(db, email):
            raise DuplicateError("Email is already registered")
    for key, value in changes.items():
        setattr(db_user, key, value)
    previous = db_user.image
    if image:
        db_user.image = image
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    if image and previous != image:
        storage.remove_upload(previous)
    logger.info("Updated user %s (%s)", db_user.username, ", ".join(changes))
    return db_user


def delete_user(db: Session, db_user: models.User):
    db.delete(db_user)
    db.commit()
    logger.info("Deleted user %s", db_user.username)
    return True
