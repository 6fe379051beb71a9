"""Template rendering over the KV store, with Jinja2 substitution.

render_template gathers every KV entry of one version/implementation as
template variables, overlays the caller's variables, and renders the requested
key. Rendering repeats until the output stops changing, so KV entries whose
values themselves contain template tags are expanded too.

Caller variables carry user text, so they are never evaluated as templates:
their strings enter rendering as opaque tokens and are swapped back in once the
output is stable. Templates render in a Jinja2 sandbox.
"""

import re

import jinja2
from jinja2.sandbox import SandboxedEnvironment

from afo.services import kv_store

MAX_RENDER_DEPTH = 10

_env = SandboxedEnvironment(autoescape=False, keep_trailing_newline=True)

_TOKEN_RE = re.compile("\x1a(\\d+)\x1a")


class TemplateNotFoundError(LookupError):
    """No template text exists for the requested key/version/implementation."""


class TemplateRenderError(ValueError):
    """A template failed to render or never stabilized."""


def _shield(value, literals: list):
    """Replace non-empty strings with tokens indexing into ``literals``."""
    if isinstance(value, str):
        if not value:
            return value
        literals.append(value)
        return f"\x1a{len(literals) - 1}\x1a"
    if isinstance(value, dict):
        return {k: _shield(v, literals) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_shield(v, literals) for v in value]
    return value


def render_template(
    key: str,
    version: str,
    implementation: str = "default",
    variables: dict | None = None,
) -> dict:
    """Render ``versions.<version>.<key>.<implementation>``.

    Returns {"output": str, "variables": dict} where ``variables`` is the merged
    set used for rendering. Caller variables take precedence over KV entries.
    """
    prefix = f"versions.{version}."
    suffix = f".{implementation}"

    kv_variables: dict = {}
    template_text = None
    for full_key in kv_store.iter_keys(prefix):
        if not full_key.endswith(suffix):
            continue
        name = full_key[len(prefix):-len(suffix)]
        value = kv_store.get_kv_value(full_key)
        if value is None:
            continue
        if "text" in value:
            kv_variables[name] = value["text"]
            if name == key:
                template_text = value["text"]
        else:
            kv_variables[name] = value

    if not template_text:
        raise TemplateNotFoundError(f"Template not found: {prefix}{key}{suffix}")

    literals: list = []
    shielded = {**kv_variables, **_shield(variables or {}, literals)}

    output = template_text
    previous = None
    depth = 0
    while output != previous:
        if depth >= MAX_RENDER_DEPTH:
            raise TemplateRenderError(
                f"Template render exceeded max depth of {MAX_RENDER_DEPTH}. "
                f"Possible infinite loop in template: {prefix}{key}{suffix}"
            )
        previous = output
        try:
            output = _env.from_string(output).render(**shielded)
        except jinja2.TemplateError as exc:
            raise TemplateRenderError(f"Failed to render {prefix}{key}{suffix}: {exc}") from exc
        depth += 1

    output = _TOKEN_RE.sub(lambda m: literals[int(m.group(1))], output)
    return {"output": output, "variables": {**kv_variables, **(variables or {})}}


def get_template_text(key: str, version: str, implementation: str = "default") -> str | None:
    """Raw text of a template, without rendering."""
    return kv_store.get_kv_text(f"versions.{version}.{key}.{implementation}")
