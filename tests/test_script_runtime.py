"""
Client script execution tests

The generated script is run under node against a stubbed `document` and
`fetch`, and the resulting DOM state is checked: loading -> loaded on
success, loading -> errored on any failure. The same responses are fed to
the CardView model so the two stay in agreement.
"""

import json
import shutil
import subprocess

import pytest

from bangumicard.lib.bangumi import bangumi_card
from bangumicard.lib.context import RenderContext
from bangumicard.lib.lifecycle import view_resolve, view_reject
from bangumicard.models.card import CardInstance, CardView, SLOTS, TEXT_SLOTS

NODE = shutil.which("node")

pytestmark = pytest.mark.skipif(NODE is None, reason="node is required to execute card scripts")

HARNESS = r"""
const chunks = [];
process.stdin.on("data", (chunk) => chunks.push(chunk));
process.stdin.on("end", () => {
  const cfg = JSON.parse(Buffer.concat(chunks).toString("utf8"));
  const elements = {};
  const fetched = [];
  const logs = [];

  function element(id, text, classes) {
    const classSet = new Set(classes);
    return {
      id: id,
      textContent: text,
      style: {},
      classList: {
        add: (name) => { classSet.add(name); },
        remove: (name) => { classSet.delete(name); },
        contains: (name) => classSet.has(name),
      },
      querySelector: (selector) => {
        const match = /^\[id="([^"]*)"\]$/.exec(selector);
        return match && elements[match[1]] ? elements[match[1]] : null;
      },
      classNames: () => Array.from(classSet).sort(),
    };
  }

  for (const [id, text] of Object.entries(cfg.texts)) {
    if (cfg.removed.indexOf(id) === -1) elements[id] = element(id, text, []);
  }
  const root = element(cfg.rootId, "", cfg.rootClasses);
  const response = cfg.response;

  globalThis.fetch = (url) => {
    fetched.push(url);
    if (response.networkError) return Promise.reject(new TypeError("Failed to fetch"));
    return Promise.resolve({
      ok: response.status >= 200 && response.status < 300,
      status: response.status,
      statusText: response.statusText || "",
      json: () => response.invalidJson
        ? Promise.reject(new SyntaxError("Unexpected token < in JSON"))
        : Promise.resolve(response.body),
    });
  };
  globalThis.document = {
    currentScript: { parentNode: cfg.detached ? null : root },
    getElementById: (id) => (id === cfg.rootId && !cfg.detached ? root : null),
  };
  globalThis.console = {
    log: (message) => logs.push(String(message)),
    error: (message) => logs.push(String(message)),
  };

  new Function(cfg.script)();

  setTimeout(() => {
    const texts = {};
    const styles = {};
    for (const [id, el] of Object.entries(elements)) {
      texts[id] = el.textContent;
      styles[id] = el.style;
    }
    process.stdout.write(JSON.stringify({
      classes: root.classNames(),
      texts: texts,
      styles: styles,
      fetched: fetched,
      logs: logs,
    }));
  }, 0);
});
"""


class CardRun:
    """DOM state left behind by one execution of a card's script"""

    def __init__(self, card, result):
        self.card = card
        self.instance_id = card.properties["data-card-uuid"]
        self.classes = set(result["classes"])
        self.fetched = result["fetched"]
        self.logs = result["logs"]
        self.texts = {}
        self.styles = {}
        for slot in SLOTS:
            identifier = f"{self.instance_id}-{slot}"
            if identifier in result["texts"]:
                self.texts[slot] = result["texts"][identifier]
                self.styles[slot] = result["styles"][identifier]


def script_run(response, user="sai", removed=(), detached=False):
    """
    Render a card and execute its script against a canned response

    Args:
        response: {"status": int, "body": ...}, {"networkError": True} or
                  {"status": 200, "invalidJson": True}
        user: Directive `user` value
        removed: Slot names whose elements are absent from the page
        detached: Run with the card root missing from the document
    """
    card = bangumi_card({"user": user}, [], RenderContext())
    instance_id = card.properties["data-card-uuid"]
    texts = {
        element.properties["id"]: element.text_get()
        for element in card.iter()
        if element is not card and element.tag != "script" and "id" in element.properties
    }
    config = {
        "script": card.children[-1].text_get(),
        "rootId": card.properties["id"],
        "rootClasses": card.properties["class"].split(),
        "texts": texts,
        "removed": [f"{instance_id}-{slot}" for slot in removed],
        "detached": detached,
        "response": response,
    }
    completed = subprocess.run(
        [NODE, "-e", HARNESS],
        input=json.dumps(config),
        capture_output=True,
        text=True,
        encoding="utf-8",
        timeout=30,
        check=True,
    )
    return CardRun(card, json.loads(completed.stdout))


def ok(body):
    return {"status": 200, "statusText": "OK", "body": body}


FULL_RECORD = {
    "nickname": "Alice",
    "username": "alice01",
    "sign": "hi",
    "user_group": 5,
    "id": 42,
    "avatar": {"large": "http://x/l.png", "medium": "http://x/m.png", "small": "http://x/s.png"},
}

ERROR_CLASSES = {"card-bangumi", "no-styling", "fetch-waiting", "fetch-error"}


class TestLoadedState:
    """Successful fetch settles the card as loaded"""

    def test_full_record(self):
        """Every slot shows the profile data and fetch-waiting is dropped"""
        run = script_run(ok(FULL_RECORD))

        assert run.classes == {"card-bangumi", "no-styling"}
        assert run.texts["nickname"] == "Alice"
        assert run.texts["username"] == "@alice01"
        assert run.texts["sign"] == "hi"
        assert run.texts["usergroup"] == "Groups attended: 5"
        assert run.texts["userid"] == "ID: 42"
        assert run.styles["avatar"] == {
            "backgroundImage": 'url("http://x/l.png")',
            "backgroundColor": "transparent",
        }

    def test_fetches_encoded_endpoint_once(self):
        """One request to the path-encoded profile endpoint"""
        run = script_run(ok(FULL_RECORD), user="a/b c")
        assert run.fetched == ["https://api.bgm.tv/v0/users/a%2Fb%20c"]

    def test_fallbacks(self):
        """Absent fields take the fixed fallbacks; avatar stays a placeholder"""
        run = script_run(ok({"username": "alice01"}))

        assert run.classes == {"card-bangumi", "no-styling"}
        assert run.texts["nickname"] == "sai"
        assert run.texts["username"] == "@alice01"
        assert run.texts["sign"] == "No signature available"
        assert run.texts["usergroup"] == "Groups attended: N/A"
        assert run.texts["userid"] == "ID: N/A"
        assert run.styles["avatar"] == {}

    def test_avatar_falls_through_sizes(self):
        """An empty large avatar yields to the next size"""
        run = script_run(ok({"avatar": {"large": "", "small": "http://x/s.png"}}))
        assert run.styles["avatar"]["backgroundImage"] == 'url("http://x/s.png")'

    def test_hostile_username_stays_literal(self):
        """Markup in the user value is shown as text, never executed"""
        user = '</script><img src=x onerror="alert(1)">'
        run = script_run(ok({}), user=user)

        assert run.texts["nickname"] == user
        assert run.texts["username"] == f"@{user}"

    def test_missing_slot_skipped(self):
        """A removed element is skipped and the rest still update"""
        run = script_run(ok(FULL_RECORD), removed=("sign", "avatar"))

        assert "sign" not in run.texts
        assert run.texts["nickname"] == "Alice"
        assert run.classes == {"card-bangumi", "no-styling"}

    def test_detached_root_changes_nothing(self):
        """Without its root the script leaves every slot as built"""
        run = script_run(ok(FULL_RECORD), detached=True)

        assert run.texts["nickname"] == "Loading…"
        assert run.texts["username"] == "@sai"
        assert run.styles["avatar"] == {}


class TestErroredState:
    """Any failure settles the card as errored"""

    @pytest.mark.parametrize("response", [
        {"status": 404, "statusText": "Not Found", "body": {"title": "Not Found"}},
        {"status": 500, "statusText": "Internal Server Error", "body": {}},
        {"networkError": True},
        {"status": 200, "invalidJson": True},
        ok(["not", "a", "profile"]),
        ok(None),
        ok("profile"),
    ], ids=["404", "500", "network", "bad-json", "array", "null", "string"])
    def test_error_state(self, response):
        """fetch-error joins fetch-waiting and the detail slots are cleared"""
        run = script_run(response)

        assert run.classes == ERROR_CLASSES
        assert run.texts["nickname"] == "Error loading user"
        assert run.texts["sign"] == ""
        assert run.texts["usergroup"] == ""
        assert run.texts["userid"] == ""
        assert run.texts["username"] == "@sai"
        assert run.styles["avatar"] == {}

    def test_error_is_logged(self):
        """The catch handler reports the failure with tag and user"""
        run = script_run({"status": 404, "statusText": "Not Found", "body": {}})
        assert any(line.startswith("[BANGUMI-CARD] (Error) Loading card for sai") for line in run.logs)


class TestModelAgreement:
    """The script and the CardView model reach the same state"""

    @pytest.mark.parametrize("body", [
        FULL_RECORD,
        {"username": "alice01"},
        {"nickname": "", "sign": "", "id": 0, "user_group": None},
        {},
        ["not", "a", "profile"],
        None,
    ], ids=["full", "sparse", "falsy", "empty", "array", "null"])
    def test_resolved_body(self, body):
        run = script_run(ok(body))
        view = CardView.initial(CardInstance(run.instance_id, "sai", "", ""))
        view_resolve(view, body, "sai")

        assert run.classes == view.root_classes
        assert {slot: run.texts[slot] for slot in TEXT_SLOTS} == view.texts

    def test_rejected_fetch(self):
        run = script_run({"networkError": True})
        view = CardView.initial(CardInstance(run.instance_id, "sai", "", ""))
        view_reject(view)

        assert run.classes == view.root_classes
        assert {slot: run.texts[slot] for slot in TEXT_SLOTS} == view.texts
