from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

LOGIN_PATH_MARKER = "/login"
LOGIN_TITLE_MARKERS = ("sign in", "login")


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    AMBIGUOUS = "ambiguous"
    FAILURE = "failure"


class SuccessOutcome(BaseModel):
    kind: Literal["success"] = OutcomeKind.SUCCESS.value
    url: str
    title: str


class AmbiguousOutcome(BaseModel):
    kind: Literal["ambiguous"] = OutcomeKind.AMBIGUOUS.value
    url: str
    title: str
    error_text: Optional[str] = None
    screenshot: Optional[str] = None


class FailureOutcome(BaseModel):
    kind: Literal["failure"] = OutcomeKind.FAILURE.value
    error_kind: str
    message: str
    screenshot: Optional[str] = None


Outcome = Annotated[
    Union[SuccessOutcome, AmbiguousOutcome, FailureOutcome],
    Field(discriminator="kind"),
]


def is_valid_token(value, min_length: int) -> bool:
    """A token counts only if it is a string strictly longer than min_length."""
    return isinstance(value, str) and len(value) > min_length


def is_login_page(url: str, title: str) -> bool:
    """True when the URL or the title still looks like the login screen."""
    lowered = (title or "").lower()
    return LOGIN_PATH_MARKER in (url or "") or any(marker in lowered for marker in LOGIN_TITLE_MARKERS)


def classify_outcome(url: str, title: str, error_text: Optional[str] = None) -> Union[SuccessOutcome, AmbiguousOutcome]:
    """Classify the page reached after submitting the form.

    Still being on a login page is never asserted as a failure: a slow
    post-login redirect looks the same as a rejected password from URL and
    title alone, so that case is returned as ambiguous for a human to check.
    ``error_text`` is carried along for the report but does not change the
    verdict.
    """
    if is_login_page(url, title):
        return AmbiguousOutcome(url=url, title=title, error_text=error_text or None)
    return SuccessOutcome(url=url, title=title)
