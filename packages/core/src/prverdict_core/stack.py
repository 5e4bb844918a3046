"""Technology-stack inference used to pick the reviewer persona.

Best-effort only: a wrong guess costs a slightly mistuned prompt, never a wrong
finding, so the rules are simple ordered checks rather than a build analysis.
"""

from __future__ import annotations

import re
from typing import Iterable

from prverdict_core.models import ChangedFile, Stack

_FLASK_IMPORT_RE = re.compile(r"(from|import)\s+flask")

_ROLES: dict[Stack, str] = {
    Stack.LARAVEL: (
        "senior PHP/Laravel code-reviewer familiar with Eloquent, service-container, PSR-12 and OWASP practices"
    ),
    Stack.WORDPRESS: (
        "senior PHP developer specialized in WordPress plugin & theme security, CSRF and XSS prevention"
    ),
    Stack.DJANGO: (
        "senior Python/Django reviewer with deep knowledge of PEP-8, type-hints, Django ORM, and secure coding"
    ),
    Stack.FLASK: "senior Python developer specialized in Flask/FastAPI, PEP-8 and secure REST patterns",
    Stack.REACT: (
        "senior React / Next.js reviewer with modern React patterns, hooks, server components and TypeScript"
    ),
    Stack.NEXT: "senior Next.js developer focused on App Router, server actions and React best practices",
    Stack.VUE: "experienced Vue/Nuxt developer with Vue 3 composition API and security best practices",
    Stack.NUXT: "experienced Nuxt developer versed in Nuxt 3, Nitro server and Vue 3 best practices",
    Stack.GENERIC: "experienced full-stack engineer with an eye for clean code, security and maintainability",
}


def _basename(filename: str) -> str:
    return filename.rsplit("/", 1)[-1]


def _manifest_declares(files: list[ChangedFile], manifest: str, needle: str) -> bool:
    return any(_basename(f.filename.lower()) == manifest and needle in (f.patch or "") for f in files)


def detect_stack(files: Iterable[ChangedFile]) -> Stack:
    """Infer the stack from changed filenames and patch text.

    Rules are checked in a fixed priority order and the first hit wins:
    PHP frameworks, Python frameworks, then JS meta-frameworks before the UI
    library they build on.
    """
    files = list(files)
    names = [f.filename.lower() for f in files]

    # PHP
    if _manifest_declares(files, "composer.json", "laravel/framework"):
        return Stack.LARAVEL
    if any(n.startswith("wp-content/") for n in names):
        return Stack.WORDPRESS

    # Python
    if any(n.endswith("manage.py") or n.endswith("settings.py") for n in names):
        return Stack.DJANGO
    if any(n.endswith(".py") and _FLASK_IMPORT_RE.search(f.patch or "") for n, f in zip(names, files)):
        return Stack.FLASK

    # JS / TS
    if _manifest_declares(files, "package.json", '"nuxt"'):
        return Stack.NUXT
    if _manifest_declares(files, "package.json", '"next"'):
        return Stack.NEXT
    # A .vue component outranks a "react" manifest entry; only the
    # meta-framework manifests come first.
    if any(n.endswith(".vue") for n in names):
        return Stack.VUE
    if _manifest_declares(files, "package.json", '"react"'):
        return Stack.REACT
    if any(n.endswith((".jsx", ".tsx")) for n in names):
        return Stack.REACT

    return Stack.GENERIC


def stack_role(stack: Stack) -> str:
    return _ROLES[stack]
