"""
Client script generator for Bangumi cards

Produces the inline script attached to each card. The script runs once in
the browser, fetches the profile record and drives the card through the
lifecycle defined in lifecycle.py, whose constants it embeds.

Every interpolated value is emitted as a JSON string literal with `</`
neutralised, so a hostile username cannot terminate the literal or the
surrounding <script> element. The card root is captured once and slots are
resolved beneath it; ids are still written out in full so the markup and
script can be checked against each other.
"""

import json
from string import Template
from typing import Any, Optional

from ..config import appsettings, AppSettings
from ..models.card import CardInstance, ROOT_SUFFIX, STATE_WAITING, STATE_ERROR
from . import lifecycle


SCRIPT_TEMPLATE = Template("""
(function () {
  var TAG = $tag;
  var USER = $user;
  var CARD_ID = $card_id;
  var IDS = $ids;
  var script = document.currentScript;
  var root = script && script.parentNode && script.parentNode.id === CARD_ID
    ? script.parentNode
    : document.getElementById(CARD_ID);

  function slot(name) {
    if (!root) return null;
    return root.querySelector('[id="' + IDS[name] + '"]');
  }

  function setText(name, text) {
    var el = slot(name);
    if (el) el.textContent = text;
  }

  console.log(TAG + " Script executing for user: " + USER + " | " + CARD_ID);

  fetch($api_url)
    .then(function (response) {
      if (!response.ok) throw new Error(response.status + " " + response.statusText);
      return response.json();
    })
    .then(function (data) {
      if (!data || typeof data !== "object" || Array.isArray(data)) throw new Error("Malformed profile response");
      console.log(TAG + " Data fetched for " + USER + " | " + CARD_ID, data);

      var avatar = data.avatar;
      var avatarUrl = avatar && ($avatar_chain);
      if (avatarUrl) {
        var avatarEl = slot("avatar");
        if (avatarEl) {
          avatarEl.style.backgroundImage = "url(" + JSON.stringify(String(avatarUrl)) + ")";
          avatarEl.style.backgroundColor = "transparent";
        }
      }

      setText("nickname", data.nickname || USER);
      setText("username", "@" + (data.username || USER));
      setText("sign", data.sign || $no_signature);
      setText("usergroup", $usergroup_label + (data.user_group || $not_available));
      setText("userid", $userid_label + (data.id || $not_available));

      if (root) root.classList.remove($state_waiting);
      console.log(TAG + " Loaded card for " + USER + " | " + CARD_ID + ".");
    })
    .catch(function (err) {
      console.error(TAG + " (Error) Loading card for " + USER + " | " + CARD_ID + ":", err);
      if (root) root.classList.add($state_error);
      setText("nickname", $error_nickname);
      setText("sign", "");
      setText("usergroup", "");
      setText("userid", "");
    });
})();
""")


def js_literal(value: Any) -> str:
    """
    Encode a value as a JavaScript literal safe inside a <script> element

    Example:
        >>> js_literal('a"</script>')
        '"a\\\\"<\\\\/script>"'
    """
    encoded = json.dumps(value, ensure_ascii=True)
    return encoded.replace('</', '<\\/').replace('<!--', '<\\!--')


def script_generate(instance: CardInstance, settings: Optional[AppSettings] = None) -> str:
    """
    Render the client script for one card

    Args:
        instance: Card whose ids and endpoint the script targets
        settings: Source of the console tag; defaults to appsettings

    Returns:
        Script source text (without the surrounding <script> element)
    """
    settings = settings or appsettings
    ids = instance.slotIds_get()
    ids[ROOT_SUFFIX] = instance.root_id
    avatar_chain = ' || '.join(f'avatar.{size}' for size in lifecycle.AVATAR_SIZES)

    return SCRIPT_TEMPLATE.substitute(
        tag=js_literal(settings.log_tag),
        user=js_literal(instance.username),
        card_id=js_literal(instance.root_id),
        ids=js_literal(ids),
        api_url=js_literal(instance.api_url),
        avatar_chain=avatar_chain,
        no_signature=js_literal(lifecycle.NO_SIGNATURE),
        not_available=js_literal(lifecycle.NOT_AVAILABLE),
        usergroup_label=js_literal(lifecycle.USERGROUP_LABEL),
        userid_label=js_literal(lifecycle.USERID_LABEL),
        error_nickname=js_literal(lifecycle.ERROR_NICKNAME),
        state_waiting=js_literal(STATE_WAITING),
        state_error=js_literal(STATE_ERROR),
    )
