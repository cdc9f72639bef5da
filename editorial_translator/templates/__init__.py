"""Template loading and rendering for the browser page."""
from html import escape
from pathlib import Path
from typing import Iterable, Optional

_TEMPLATE_DIR = Path(__file__).parent


def load_template(name: str) -> str:
    """Load a template file by name."""
    return (_TEMPLATE_DIR / name).read_text(encoding='utf-8')


def render_template(name: str, **kwargs) -> str:
    """Load and render a template with variable substitutions.

    Variables are substituted using {{VARIABLE_NAME}} syntax. Values are
    inserted verbatim; escape user-facing text before passing it in.
    """
    template = load_template(name)
    for key, value in kwargs.items():
        template = template.replace(f'{{{{{key}}}}}', str(value))
    return template


def render_options(values: Iterable[str], selected: Optional[str] = None) -> str:
    """Render ``<option>`` tags for a select box."""
    tags = []
    for value in values:
        marker = ' selected' if value == selected else ''
        label = value.replace('_', ' ').title()
        tags.append(f'<option value="{escape(value)}"{marker}>{escape(label)}</option>')
    return ''.join(tags)
