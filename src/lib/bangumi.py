"""
Bangumi user card directive

    ::bangumi{user="sai"}

renders a link card whose slots start as placeholders and are filled in
by an inline script that fetches the profile in the browser. Nothing is
fetched at build time.

The transform runs in three steps: the invocation is validated, the
placeholder markup is built around a fresh instance id, and the client
script for that same id is appended as the last child of the card.
"""

from typing import Any, Mapping, Optional, Sequence
from urllib.parse import quote

from ..config import AppSettings
from ..models.card import CardInstance, NICKNAME_LINE_SUFFIX, ROOT_CLASSES, SLOTS
from ..models.node import Element, h
from .context import RenderContext, context_default
from .log import LOG
from .script import script_generate

INVALID_DIRECTIVE = 'Invalid directive. ("bangumi" must be a leaf type "::bangumi{user="username"}")'
INVALID_USER = 'Invalid user. ("user" attribute must be provided for a Bangumi card")'

LAYOUTS = ('grouped', 'stacked')

ROOT_STYLE = 'text-decoration: none; color: inherit;'


def hidden_node(message: str) -> Element:
    """Inert element carrying a diagnostic message"""
    return h('div', {'class': 'hidden'}, [message])


def directive_validate(
    properties: Optional[Mapping[str, Any]], children: Optional[Sequence[Any]]
) -> Optional[Element]:
    """
    Check the shape of a bangumi invocation

    Args:
        properties: Directive attributes; must hold a non-blank `user`
        children: Directive content; must be empty (leaf directive)

    Returns:
        A hidden error node if the invocation is malformed, else None.
        The children check runs first, so a container invocation is
        reported as such whatever its attributes.
    """
    if children:
        return hidden_node(INVALID_DIRECTIVE)

    user = (properties or {}).get('user')
    if user is None or not str(user).strip():
        return hidden_node(INVALID_USER)

    return None


def instance_create(username: str, context: RenderContext) -> CardInstance:
    """Allocate an id and resolve the encoded URLs for one card"""
    settings: AppSettings = context.settings
    encoded = quote(username, safe='')
    return CardInstance(
        instance_id=context.allocator.id_next(username),
        username=username,
        profile_url=settings.profile_url_template.format(user=encoded),
        api_url=settings.api_url_template.format(user=encoded),
    )


def card_build(instance: CardInstance, layout: str = 'grouped', loading_text: str = 'Loading…') -> Element:
    """
    Build the placeholder markup of a card (without its script)

    Both layouts emit the same six slots under the same root; they differ
    only in where the additional-info block sits:

        grouped: root > [user-card > [avatar, details], additional-info]
        stacked: root > [user-card > [avatar, details > [..., additional-info]]]
    """
    if layout not in LAYOUTS:
        raise ValueError(f"Unknown card layout '{layout}' (expected one of {', '.join(LAYOUTS)})")

    def slot(tag: str, name: str, text: Optional[str] = None) -> Element:
        return h(f'{tag}#{instance.slotId_get(name)}', {'class': SLOTS[name]}, text)

    avatar = slot('div', 'avatar')
    nickname_line = h(
        f'div#{instance.slotId_get(NICKNAME_LINE_SUFFIX)}',
        {'class': 'bc-nickname-line'},
        [
            slot('div', 'nickname', loading_text),
            slot('span', 'username', f'@{instance.username}'),
        ],
    )
    sign = slot('div', 'sign', loading_text)
    additional = h('div', {'class': 'bc-additional-info'}, [
        slot('div', 'usergroup', loading_text),
        slot('div', 'userid', loading_text),
    ])

    details = h('div', {'class': 'bc-user-details'}, [nickname_line, sign])
    user_card = h('div', {'class': 'bc-user-card'}, [avatar, details])
    if layout == 'stacked':
        details.children.append(additional)
        sections = [user_card]
    else:
        sections = [user_card, additional]

    return h(
        f'a#{instance.root_id}',
        {
            'class': ' '.join(ROOT_CLASSES),
            'href': instance.profile_url,
            'target': '_blank',
            'data-user': instance.username,
            'data-card-uuid': instance.instance_id,
            'style': ROOT_STYLE,
        },
        sections,
    )


def bangumi_card(
    properties: Optional[Mapping[str, Any]],
    children: Optional[Sequence[Any]],
    context: Optional[RenderContext] = None,
) -> Element:
    """
    Transform one bangumi directive into a card (or a hidden error node)

    Args:
        properties: Directive attributes, e.g. {"user": "sai"}
        children: Directive content nodes; must be empty
        context: Render pass state. When omitted the process-wide context
                 is used, so ids stay unique across calls.

    Returns:
        The card root element with its script as last child, or a hidden
        div carrying a fixed diagnostic message.
    """
    if context is None:
        context = context_default()

    error = directive_validate(properties, children)
    if error is not None:
        context.error_count += 1
        LOG(f"Rejected bangumi directive: {error.text_get()}", level=1)
        return error

    username = str(properties['user'])
    instance = instance_create(username, context)
    card = card_build(instance, layout=context.layout, loading_text=context.settings.loading_text)

    script = h(
        f'script#{instance.script_id}',
        {'type': 'text/javascript', 'defer': True},
        script_generate(instance, context.settings),
    )
    card.children.append(script)

    context.card_count += 1
    LOG(f"Rendered bangumi card for {username} as {instance.instance_id}", level=2)
    return card
