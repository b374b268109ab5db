"""
Client-side fetch lifecycle, modelled in Python

The card script runs in the browser, but its behaviour is fixed at build
time: every literal it writes into the page lives here, and the script
generator embeds these constants. view_resolve() and view_reject() apply
the same transitions to a CardView so the resulting DOM state can be
checked without a browser.

States:
    LOADING --(2xx + JSON object body)--> LOADED
    LOADING --(network error | non-2xx | bad JSON)--> ERRORED

Both terminal states are final; a second transition raises LifecycleError.
"""

from typing import Any, Mapping, Optional

from ..models.card import CardView, LoadState, ROOT_SUFFIX, STATE_WAITING, STATE_ERROR
from .log import LOG

AVATAR_SIZES = ('large', 'medium', 'small')

NO_SIGNATURE = "No signature available"
NOT_AVAILABLE = "N/A"
USERGROUP_LABEL = "Groups attended: "
USERID_LABEL = "ID: "
ERROR_NICKNAME = "Error loading user"


class LifecycleError(RuntimeError):
    """Raised on a transition out of a terminal state"""
    pass


def avatar_pick(record: Mapping[str, Any]) -> Optional[str]:
    """
    Choose the avatar URL from a profile record

    Sizes are tried large, medium, small; the first non-empty one wins.

    Example:
        >>> avatar_pick({'avatar': {'large': '', 'medium': 'm.png'}})
        'm.png'
    """
    avatar = record.get('avatar')
    if not isinstance(avatar, Mapping):
        return None
    for size in AVATAR_SIZES:
        url = avatar.get(size)
        if url:
            return str(url)
    return None


def text_coerce(value: Any) -> str:
    """Render a JSON scalar the way string concatenation does in the browser"""
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def pending_check(view: CardView) -> None:
    if view.state is not LoadState.LOADING:
        raise LifecycleError(f"Card already settled in state '{view.state.value}'")


def text_set(view: CardView, slot: str, text: str) -> None:
    if view.slot_present(slot):
        view.texts[slot] = text


def view_resolve(view: CardView, record: Any, username: str) -> CardView:
    """
    Apply a successful fetch to a card view

    Args:
        view: Card in LOADING state; updated in place
        record: Decoded JSON body. Anything other than an object counts as
                a malformed response and settles the card as errored.
        username: The directive's `user` value, used for fallbacks

    Returns:
        The same view, now LOADED (or ERRORED for a non-object body)
    """
    pending_check(view)
    if not isinstance(record, Mapping):
        LOG(f"Profile body for {username} is not an object", level=2)
        return view_reject(view)

    avatar_url = avatar_pick(record)
    if avatar_url and view.slot_present('avatar'):
        view.avatar_image = avatar_url
        view.avatar_background = 'transparent'

    text_set(view, 'nickname', text_coerce(record.get('nickname') or username))
    text_set(view, 'username', '@' + text_coerce(record.get('username') or username))
    text_set(view, 'sign', text_coerce(record.get('sign') or NO_SIGNATURE))
    text_set(view, 'usergroup', USERGROUP_LABEL + text_coerce(record.get('user_group') or NOT_AVAILABLE))
    text_set(view, 'userid', USERID_LABEL + text_coerce(record.get('id') or NOT_AVAILABLE))

    if view.slot_present(ROOT_SUFFIX):
        view.root_classes.discard(STATE_WAITING)
    view.state = LoadState.LOADED
    return view


def view_reject(view: CardView) -> CardView:
    """
    Apply a failed fetch to a card view

    `fetch-error` is added alongside `fetch-waiting`; the avatar keeps its
    placeholder look.
    """
    pending_check(view)
    if view.slot_present(ROOT_SUFFIX):
        view.root_classes.add(STATE_ERROR)
    text_set(view, 'nickname', ERROR_NICKNAME)
    for slot in ('sign', 'usergroup', 'userid'):
        text_set(view, slot, "")
    view.state = LoadState.ERRORED
    return view
