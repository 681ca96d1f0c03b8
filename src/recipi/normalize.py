import re
import unicodedata

# Tag limits shared by the API schemas and the recipe form
MAX_TAGS = 3
MAX_TAG_LENGTH = 15

RESERVED_USERNAMES = {"user", "login"}

_NON_SLUG = re.compile(r"[^a-z0-9]+")
_USERNAME = re.compile(r"^[A-Za-z0-9_.-]+$")


def slugify(name: str) -> str:
    """Return the URL-safe slug for a recipe name.

    "Chili Verde!" -> "chili-verde", "Crème brûlée" -> "creme-brulee".
    """
    if not name:
        return ""
    ascii_name = (
        unicodedata.normalize("NFKD", name)
        .encode("ascii", "ignore")
        .decode("ascii")
    )
    return _NON_SLUG.sub("-", ascii_name.lower()).strip("-")


def clean_tag(tag: str) -> str:
    return (tag or "").strip()


def tag_problem(tag: str, tags: list):
    """Return the message explaining why `tag` can't join `tags`, or None.

    Checks run in the order the form reports them: duplicate, empty, full,
    too long. Comparison is case-sensitive on the trimmed text.
    """
    t = clean_tag(tag)
    if t in tags:
        return "Tag already exists"
    if t == "":
        return "Tag cannot be empty"
    if len(tags) >= MAX_TAGS:
        return f"Maximum of {MAX_TAGS} tags"
    if len(t) > MAX_TAG_LENGTH:
        return f"Tag must be at most {MAX_TAG_LENGTH} characters"
    return None


def is_valid_username(username: str) -> bool:
    if not username or username.lower() in RESERVED_USERNAMES:
        return False
    return bool(_USERNAME.match(username))
