"""Editor navigation built from a role and its permission list.

Each role has an ordered template of menu entries. An entry shows up when its
permission is in the caller's list; the ``manage:*`` entries always show up
for a non-empty list. Permissions the template does not know about are kept
and appended in their original order. ``build_menu`` is pure: same input,
same output.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from .permissions import UserRole

READ_ARTICLES = "read:articles"
MANAGE_ARTICLES = "manage:articles"
MANAGE_USER = "manage:user"


@dataclass(frozen=True)
class MenuItem:
    permission: str

    @property
    def verb(self) -> str:
        return self.permission.split(":", 1)[0]

    @property
    def resource(self) -> str:
        parts = self.permission.split(":", 1)
        return parts[1] if len(parts) > 1 else ""

    @property
    def label(self) -> str:
        return f"{self.verb} {self.resource}".strip()

    @property
    def path(self) -> str:
        return f"/editor/{self.verb}{self.resource}"


@dataclass(frozen=True)
class _Template:
    entries: tuple[str, ...]
    always: frozenset[str]
    # consumed by the template but never rendered on their own
    hidden: frozenset[str]


TEMPLATES: dict[UserRole, _Template] = {
    UserRole.admin: _Template(
        entries=(
            "create:articles",
            "update:articles",
            MANAGE_ARTICLES,
            "create:user",
            MANAGE_USER,
            "enable:maintenance",
        ),
        always=frozenset({MANAGE_ARTICLES, MANAGE_USER}),
        hidden=frozenset({
            READ_ARTICLES,
            "update:user",
            "delete:user",
            "delete:articles",
            "validate:articles",
            "ship:articles",
        }),
    ),
    UserRole.contributor: _Template(
        entries=("create:articles", MANAGE_ARTICLES),
        always=frozenset({MANAGE_ARTICLES}),
        hidden=frozenset({READ_ARTICLES, "update:articles", "validate:articles"}),
    ),
}


def _template_for(role) -> _Template:
    try:
        return TEMPLATES[UserRole(role)]
    except ValueError:
        return TEMPLATES[UserRole.contributor]


def _dedupe(items: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    out = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out


def build_menu(role, permissions: Sequence[str] | None) -> list[MenuItem]:
    granted = _dedupe(p for p in (permissions or []) if isinstance(p, str) and p)
    if not granted:
        return []

    template = _template_for(role)
    held = set(granted)
    ordered = [e for e in template.entries if e in template.always or e in held]
    known = set(template.entries) | template.hidden
    ordered += [p for p in granted if p not in known]
    return [MenuItem(p) for p in ordered if p != READ_ARTICLES]


__all__ = ["MenuItem", "build_menu", "TEMPLATES", "MANAGE_ARTICLES", "MANAGE_USER", "READ_ARTICLES"]
