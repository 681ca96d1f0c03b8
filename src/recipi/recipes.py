import json
import logging
from pathlib import Path

from pydantic import ValidationError
from sqlalchemy.orm import Session

from . import crud, models, schemas
from .normalize import slugify

logger = logging.getLogger(__name__)


def load_recipes(path):
    """Load recipes from a JSON file and return a list of dicts.

    Args:
        path (str or Path): Path to the JSON file.

    Returns:
        list: list of recipe dictionaries.
    """
    p = Path(path)
    if not p.exists():
        return []
    with p.open("r", encoding="utf-8") as f:
        return json.load(f)


def import_recipes(db: Session, owner: models.User, records) -> int:
    """Create the given recipe dicts for `owner`, skipping known slugs.

    Records that fail validation are logged and skipped. Returns the number
    of recipes created.
    """
    added = 0
    for r in records:
        slug = slugify(r.get("name") or "")
        if not slug or crud.get_recipe_by_slug(db, slug):
            continue
        try:
            recipe = schemas.RecipeCreate.model_validate(r)
        except ValidationError as exc:
            logger.warning("Skipping %r: %s", r.get("name"), exc)
            continue
        crud.create_recipe(db, owner, recipe)
        added += 1
    return added
