"""Client-side state for creating and editing a recipe."""

import json
import logging
import mimetypes
from enum import Enum
from pathlib import Path
from typing import List, Optional

import httpx

from ..normalize import clean_tag, tag_problem
from .session import ClientContext, Result

logger = logging.getLogger(__name__)

REQUIRED_MESSAGE = "Please fill in all fields"
SAVE_ERROR = "There has been an error saving your recipe"
LOAD_ERROR = "Could not load the recipe"
HOME = "/"


class Mode(str, Enum):
    create = "create"
    edit = "edit"


class FormState(str, Enum):
    idle = "idle"
    editing = "editing"
    submitting = "submitting"
    navigated = "navigated"


def decode_list(value) -> List[str]:
    """Ingredients and tags come back as a list or as a JSON-encoded list."""
    if value is None:
        return []
    if isinstance(value, str):
        value = json.loads(value or "[]")
    if not isinstance(value, list):
        raise ValueError(f"expected a list, got {type(value).__name__}")
    return [str(v) for v in value]


def decode_steps(value) -> List[str]:
    if isinstance(value, str):
        value = json.loads(value or "[]")
    steps = []
    for step in value or []:
        if isinstance(step, dict):
            step = step["instruction"]
        steps.append(str(step))
    return steps


class RecipeForm:
    def __init__(
        self,
        http: httpx.Client,
        context: ClientContext,
        mode: str = "create",
        slug: Optional[str] = None,
    ):
        self.http = http
        self.context = context
        self.mode = Mode(mode)
        self.slug = slug
        self.state = FormState.idle
        self.loading = False

        self.fetched_slug = ""
        self.name = ""
        self.description = ""
        self.prep_time = 0
        self.cook_time = 0
        # an edit leaves the stored difficulty alone until loaded or chosen
        self.difficulty = "easy" if self.mode == Mode.create else ""
        self.servings: Optional[int] = None
        self.notes = ""
        self.ingredients: List[str] = []
        self.instructions: List[str] = []
        self.tags: List[str] = []
        self.file = None

        # text input buffers
        self.ingredient = ""
        self.instruction = ""
        self.tag = ""

    def _warn(self, title: str) -> None:
        self.context.toaster.toast(title, variant="fail")

    def _touch(self) -> None:
        if self.state == FormState.idle:
            self.state = FormState.editing

    def load_for_edit(self, slug: Optional[str] = None) -> Result:
        """Fetch a recipe and seed the form with it.

        On any failure the current field values are kept.
        """
        slug = slug or self.slug
        try:
            response = self.http.get(
                f"/recipes/{slug}", headers=self.context.session.auth_headers()
            )
            response.raise_for_status()
            data = response.json()
            fields = {
                "fetched_slug": data["slug"],
                "name": data["name"],
                "description": data.get("description") or "",
                "prep_time": int(data.get("prepTime") or 0),
                "cook_time": int(data.get("cookTime") or 0),
                "difficulty": data.get("difficulty") or "easy",
                "ingredients": decode_list(data.get("ingredients")),
                "instructions": decode_steps(data.get("steps")),
                "tags": decode_list(data.get("tags")),
                "servings": data.get("servings"),
                "notes": data.get("notes") or "",
            }
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            logger.error("Error fetching recipe data for %s: %s", slug, exc)
            result = Result.failure(exc, LOAD_ERROR)
            self._warn(result.error)
            return result

        for key, value in fields.items():
            setattr(self, key, value)
        self.slug = slug
        self._touch()
        return Result(ok=True, data=data, status=response.status_code)

    # ingredients

    def add_ingredient(self, text: Optional[str] = None) -> bool:
        text = self.ingredient if text is None else text
        if not text or not text.strip():
            self._warn("No ingredient")
            return False
        self.ingredients.append(text.strip())
        self.ingredient = ""
        self._touch()
        return True

    def remove_ingredient(self, index: int) -> bool:
        if not 0 <= index < len(self.ingredients):
            return False
        del self.ingredients[index]
        self._touch()
        return True

    # instructions

    def add_instruction(self, text: Optional[str] = None) -> bool:
        text = self.instruction if text is None else text
        if not text or not text.strip():
            self._warn("No instruction")
            return False
        self.instructions.append(text.strip())
        self.instruction = ""
        self._touch()
        return True

    def remove_last_instruction(self) -> Optional[str]:
        """Undo the most recent instruction; nothing happens on an empty list."""
        if not self.instructions:
            return None
        self._touch()
        return self.instructions.pop()

    # tags

    def add_tag(self, text: Optional[str] = None) -> bool:
        text = self.tag if text is None else text
        problem = tag_problem(text, self.tags)
        if problem:
            self._warn(problem)
            return False
        self.tags.append(clean_tag(text))
        self.tag = ""
        self._touch()
        return True

    def delete_tag(self, index: int) -> bool:
        if len(self.tags) == 1:
            self._warn("Recipe must have at least one tag")
            return False
        if not 0 <= index < len(self.tags):
            return False
        del self.tags[index]
        self._touch()
        return True

    def attach_image(self, path, content_type: Optional[str] = None) -> None:
        p = Path(path)
        content_type = (
            content_type or mimetypes.guess_type(p.name)[0]
            or "application/octet-stream"
        )
        self.file = (p.name, p.read_bytes(), content_type)
        self._touch()

    # submission

    def missing_fields(self) -> List[str]:
        checks = {
            "name": bool(self.name.strip()),
            "description": bool(self.description.strip()),
            "prepTime": bool(self.prep_time) and self.prep_time > 0,
            "difficulty": bool((self.difficulty or "").strip()),
            "ingredients": bool(self.ingredients),
            "steps": bool(self.instructions),
            "tags": bool(self.tags),
        }
        return [name for name, ok in checks.items() if not ok]

    def validate(self) -> bool:
        return not self.missing_fields()

    def build_payload(self) -> dict:
        """Form fields in submission order; the image travels separately.

        Blank values are sent empty and the API treats them as absent.
        """
        payload = {
            "name": self.name,
            "description": self.description,
            "prepTime": str(self.prep_time) if self.prep_time else "",
            "cookTime": str(self.cook_time) if self.cook_time else "",
            "difficulty": self.difficulty,
            "servings": "" if self.servings is None else str(self.servings),
            "notes": self.notes or "",
            "ingredients": json.dumps(self.ingredients),
        }
        for i, step in enumerate(self.instructions):
            payload[f"steps[{i}]"] = step
        for i, t in enumerate(self.tags):
            payload[f"tags[{i}]"] = t
        return payload

    def multipart(self) -> list:
        # (None, value) parts are plain form fields inside multipart/form-data
        parts = [(k, (None, v)) for k, v in self.build_payload().items()]
        if self.file:
            parts.append(("file", self.file))
        return parts

    def submit(self) -> Result:
        if self.loading:
            return Result(ok=False, error="A submission is already in progress")
        if self.mode == Mode.create and not self.validate():
            logger.info("Refusing to submit, missing %s", self.missing_fields())
            self._warn(REQUIRED_MESSAGE)
            return Result(ok=False, error=REQUIRED_MESSAGE)

        self.loading = True
        self.state = FormState.submitting
        headers = self.context.session.auth_headers()
        try:
            if self.mode == Mode.create:
                response = self.http.post(
                    "/recipes", files=self.multipart(), headers=headers
                )
            else:
                response = self.http.put(
                    f"/recipes/{self.slug or self.fetched_slug}",
                    files=self.multipart(),
                    headers=headers,
                )
            response.raise_for_status()
            result = Result(
                ok=True, data=response.json(), status=response.status_code
            )
            logger.info("Recipe submitted: %s", result.data.get("slug"))
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Error submitting recipe: %s", exc)
            result = Result.failure(exc, SAVE_ERROR)
            self._warn(result.error)
        finally:
            self.loading = False
            self.context.navigator.navigate(HOME)
            self.state = FormState.navigated
        return result
