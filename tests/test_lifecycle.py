"""
Fetch lifecycle tests

Simulated responses are applied to a CardView to check the DOM state the
client script produces: loading -> loaded on success, loading -> errored on
failure.
"""

import pytest

from bangumicard.lib.context import RenderContext
from bangumicard.lib.bangumi import instance_create
from bangumicard.lib.lifecycle import (
    avatar_pick,
    view_resolve,
    view_reject,
    LifecycleError,
)
from bangumicard.models.card import CardView, LoadState


@pytest.fixture
def view():
    instance = instance_create("sai", RenderContext())
    return CardView.initial(instance)


class TestInitialState:
    """A freshly built card"""

    def test_loading(self, view):
        assert view.state is LoadState.LOADING
        assert view.texts["nickname"] == "Loading…"
        assert view.texts["username"] == "@sai"
        assert view.root_classes == {"card-bangumi", "fetch-waiting", "no-styling"}
        assert view.avatar_image is None


class TestLoaded:
    """Successful fetch"""

    def test_full_record(self, view):
        """All fields present"""
        record = {
            "nickname": "Alice",
            "username": "alice01",
            "sign": "hi",
            "user_group": "5",
            "id": 42,
            "avatar": {"medium": "http://x/a.png"},
        }
        view_resolve(view, record, "sai")

        assert view.state is LoadState.LOADED
        assert view.texts["nickname"] == "Alice"
        assert view.texts["username"] == "@alice01"
        assert view.texts["sign"] == "hi"
        assert view.texts["usergroup"] == "Groups attended: 5"
        assert view.texts["userid"] == "ID: 42"
        assert view.avatar_image == "http://x/a.png"
        assert view.avatar_background == "transparent"
        assert "fetch-waiting" not in view.root_classes
        assert "fetch-error" not in view.root_classes

    def test_fallbacks(self, view):
        """Only username present: every other field falls back"""
        view_resolve(view, {"username": "alice01"}, "sai")

        assert view.texts["nickname"] == "sai"
        assert view.texts["username"] == "@alice01"
        assert view.texts["sign"] == "No signature available"
        assert view.texts["usergroup"] == "Groups attended: N/A"
        assert view.texts["userid"] == "ID: N/A"
        assert view.avatar_image is None
        assert view.avatar_background is None

    def test_username_label_falls_back(self, view):
        """Without a username field the label keeps the directive's user"""
        view_resolve(view, {}, "sai")
        assert view.texts["username"] == "@sai"

    def test_falsy_values_fall_back(self, view):
        """Empty strings and zero count as absent"""
        view_resolve(view, {"nickname": "", "sign": "", "id": 0, "user_group": None}, "sai")

        assert view.texts["nickname"] == "sai"
        assert view.texts["sign"] == "No signature available"
        assert view.texts["userid"] == "ID: N/A"
        assert view.texts["usergroup"] == "Groups attended: N/A"

    def test_numeric_group(self, view):
        """Numbers render without a decimal point"""
        view_resolve(view, {"user_group": 10.0, "id": 7}, "sai")
        assert view.texts["usergroup"] == "Groups attended: 10"

    def test_missing_slots_skipped(self, view):
        """Elements removed from the page are silently skipped"""
        view.missing = {"sign", "avatar", "card"}
        view_resolve(view, {"sign": "hi", "avatar": {"large": "l.png"}}, "sai")

        assert view.texts["sign"] == "Loading…"
        assert view.avatar_image is None
        assert "fetch-waiting" in view.root_classes
        assert view.state is LoadState.LOADED

    def test_non_object_body_errors(self, view):
        """A JSON body that is not an object is a malformed response"""
        view_resolve(view, ["not", "a", "profile"], "sai")
        assert view.state is LoadState.ERRORED
        assert "fetch-error" in view.root_classes


class TestAvatarPick:
    """Avatar size precedence"""

    @pytest.mark.parametrize("avatar,expected", [
        ({"large": "l", "medium": "m", "small": "s"}, "l"),
        ({"medium": "m", "small": "s"}, "m"),
        ({"large": "", "small": "s"}, "s"),
        ({}, None),
        ("not-a-mapping", None),
    ])
    def test_first_non_empty(self, avatar, expected):
        assert avatar_pick({"avatar": avatar}) == expected

    def test_no_avatar_key(self):
        assert avatar_pick({}) is None


class TestErrored:
    """Failed fetch (network error, non-2xx, bad JSON)"""

    def test_error_state(self, view):
        """fetch-error joins fetch-waiting; texts cleared"""
        view_reject(view)

        assert view.state is LoadState.ERRORED
        assert {"fetch-error", "fetch-waiting"} <= view.root_classes
        assert view.texts["nickname"] == "Error loading user"
        assert view.texts["sign"] == ""
        assert view.texts["usergroup"] == ""
        assert view.texts["userid"] == ""

    def test_avatar_untouched(self, view):
        """Avatar keeps its placeholder appearance"""
        view_reject(view)
        assert view.avatar_image is None
        assert view.avatar_background is None

    def test_username_label_untouched(self, view):
        """The statically known username stays visible"""
        view_reject(view)
        assert view.texts["username"] == "@sai"


class TestTerminalStates:
    """Settled cards do not transition again"""

    def test_resolve_after_reject(self, view):
        view_reject(view)
        with pytest.raises(LifecycleError):
            view_resolve(view, {}, "sai")

    def test_reject_after_resolve(self, view):
        view_resolve(view, {}, "sai")
        with pytest.raises(LifecycleError):
            view_reject(view)
