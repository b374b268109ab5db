"""
Card instance and view-state models

CardInstance is the build-time output of one successful transform.
CardView is the client-side DOM state of that card, modelled in Python so
the fetch lifecycle can be reasoned about (and tested) without a browser.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Dict, Optional, Set


# Slot name -> DOM id suffix and CSS class. Suffixes are reserved per instance.
SLOTS: Dict[str, str] = {
    'avatar': 'bc-avatar',
    'nickname': 'bc-nickname',
    'username': 'bc-username',
    'sign': 'bc-sign',
    'usergroup': 'bc-usergroup',
    'userid': 'bc-userid',
}

# Slots whose text the client script rewrites
TEXT_SLOTS = ('nickname', 'username', 'sign', 'usergroup', 'userid')

ROOT_SUFFIX = 'card'
SCRIPT_SUFFIX = 'script'
NICKNAME_LINE_SUFFIX = 'nickname-line'

STATE_WAITING = 'fetch-waiting'
STATE_ERROR = 'fetch-error'
ROOT_CLASSES = ('card-bangumi', STATE_WAITING, 'no-styling')


class LoadState(Enum):
    """Client-side fetch lifecycle"""
    LOADING = "loading"
    LOADED = "loaded"
    ERRORED = "errored"


@dataclass(frozen=True)
class CardInstance:
    """
    One rendered occurrence of the card

    Attributes:
        instance_id: Opaque alphanumeric id namespacing every DOM id
        username: Raw `user` attribute value (untrusted)
        profile_url: Encoded link target for the card root
        api_url: Encoded profile endpoint fetched by the client script
    """
    instance_id: str
    username: str
    profile_url: str
    api_url: str

    def slotId_get(self, slot: str) -> str:
        """DOM id for a slot, e.g. 'BC000001-avatar'"""
        return f"{self.instance_id}-{slot}"

    @property
    def root_id(self) -> str:
        return self.slotId_get(ROOT_SUFFIX)

    @property
    def script_id(self) -> str:
        return self.slotId_get(SCRIPT_SUFFIX)

    def slotIds_get(self) -> Dict[str, str]:
        return {slot: self.slotId_get(slot) for slot in SLOTS}


@dataclass
class CardView:
    """
    DOM state of one card as seen from the browser

    Attributes:
        texts: Slot name -> visible text
        root_classes: Class set on the root link
        avatar_image: Background image URL, None while unset
        avatar_background: Background colour override, None while unset
        state: Current lifecycle state
        missing: Slot names (or "card" for the root) removed from the
                 document before the script ran; updates to them are skipped
    """
    texts: Dict[str, str]
    root_classes: Set[str]
    avatar_image: Optional[str] = None
    avatar_background: Optional[str] = None
    state: LoadState = LoadState.LOADING
    missing: Set[str] = field(default_factory=set)

    def slot_present(self, slot: str) -> bool:
        return slot not in self.missing

    @classmethod
    def initial(cls, instance: CardInstance, loading_text: str = "Loading…") -> "CardView":
        """State of a freshly built card, before its script runs"""
        texts = {slot: loading_text for slot in TEXT_SLOTS}
        texts['username'] = f"@{instance.username}"
        return cls(texts=texts, root_classes=set(ROOT_CLASSES))
