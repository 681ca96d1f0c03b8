from .recipe_form import FormState, Mode, RecipeForm
from .session import (
    ClientContext,
    Navigator,
    Result,
    Session,
    Toast,
    Toaster,
)
from .user_profile import ProfilePatch, UserProfileController

__all__ = [
    "ClientContext",
    "FormState",
    "Mode",
    "Navigator",
    "ProfilePatch",
    "RecipeForm",
    "Result",
    "Session",
    "Toast",
    "Toaster",
    "UserProfileController",
]
