"""
Directive registry for bangumicard

Maps directive names to DirectiveSpec objects. The parser consults the
registry to decide which names to parse; the compiler and the markdown
extension look up handlers in it.
"""

from typing import Callable, Dict, List, Optional

from ..models.directives import DirectiveSpec, DirectiveKind
from .bangumi import bangumi_card


class DirectiveRegistry:
    """
    Registry of directive specifications and handlers

    Handlers share one signature, mirroring the host directive framework:
    handler(properties, children, context) -> Element
    """

    def __init__(self) -> None:
        """Initialize the registry and register the built-in directives"""
        self.specs: Dict[str, DirectiveSpec] = {}
        self.cardDirectives_register()

    def register(self, spec: DirectiveSpec) -> None:
        """Register a directive specification under its name and aliases"""
        self.specs[spec.name] = spec
        for alias in spec.aliases:
            self.specs[alias] = spec

    def get(self, name: str) -> Optional[Callable]:
        """
        Get directive handler by name

        Returns:
            Handler function or None if not found
        """
        spec = self.spec_get(name)
        return spec.handler if spec else None

    def spec_get(self, name: str) -> Optional[DirectiveSpec]:
        """Get full directive specification by name or alias"""
        return self.specs.get(name)

    def names_list(self) -> List[str]:
        """Canonical names of registered directives, sorted"""
        return sorted({spec.name for spec in self.specs.values()})

    def cardDirectives_register(self) -> None:
        """Register profile card directives"""
        self.register(DirectiveSpec(
            name='bangumi',
            description='Bangumi user card populated in the browser from the Bangumi API',
            handler=bangumi_card,
            # All forms parse so misuse is reported on the page, not dropped
            kinds=[DirectiveKind.LEAF, DirectiveKind.CONTAINER, DirectiveKind.TEXT],
            examples=['::bangumi{user="sai"}'],
            aliases=['bangumi-card'],
        ))
