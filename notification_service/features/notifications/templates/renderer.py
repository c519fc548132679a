"""Jinja2 rendering of notification email bodies.

Email is the only channel that needs markup. Titles and messages come from
user-controlled data (usernames, placeholders), so the HTML body is rendered
in a sandbox with autoescaping.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from jinja2 import TemplateSyntaxError, UndefinedError, select_autoescape
from jinja2.sandbox import SandboxedEnvironment

from notification_service.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from notification_service.features.notifications.models import Notification

DEFAULT_EMAIL_HTML_TEMPLATE = """\
<html>
  <body>
    <h2>{{ title }}</h2>
    <p>{{ message }}</p>
{% if image_url %}
    <p><img src="{{ image_url }}" alt="{{ image_alt or '' }}"></p>
{% endif %}
{% if action_url %}
    <p><a href="{{ action_url }}">Open</a></p>
{% endif %}
  </body>
</html>
"""


class TemplateRenderError(Exception):
    """Raised when template rendering fails."""

    def __init__(self, message: str, template_name: str | None = None) -> None:
        super().__init__(message)
        self.template_name = template_name


@dataclass(slots=True, frozen=True)
class RenderedEmail:
    subject: str
    text: str
    html: str


class TemplateRenderer:
    """Sandboxed Jinja2 renderer for notification emails."""

    def __init__(self, html_template: str = DEFAULT_EMAIL_HTML_TEMPLATE) -> None:
        self._logger = logging.getLogger(__name__)
        self._lazy = get_lazy_logger(__name__)
        self._env = SandboxedEnvironment(
            autoescape=select_autoescape(
                enabled_extensions=("html", "xml"),
                default_for_string=True,
            ),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        try:
            self._html_template = self._env.from_string(html_template)
        except TemplateSyntaxError as exc:
            msg = f"Syntax error in email template: {exc}"
            raise TemplateRenderError(msg, template_name="email_html") from exc

    def render_html(self, context: dict[str, Any]) -> str:
        try:
            return self._html_template.render(**context)
        except UndefinedError as exc:
            msg = f"Missing variable in email template: {exc}"
            raise TemplateRenderError(msg, template_name="email_html") from exc

    def render_email(self, notification: Notification) -> RenderedEmail:
        """Subject is the title, text is the message, HTML wraps both."""
        image = notification.image or {}
        html = self.render_html(
            {
                "title": notification.title,
                "message": notification.message,
                "image_url": image.get("url"),
                "image_alt": image.get("alt"),
                "action_url": notification.action_url,
            }
        )
        self._lazy.debug(lambda: f"Rendered email for notification {notification.id} ({len(html)} bytes)")
        return RenderedEmail(subject=notification.title, text=notification.message, html=html)


_renderer: TemplateRenderer | None = None


def get_template_renderer() -> TemplateRenderer:
    """Get or create the shared TemplateRenderer."""
    global _renderer
    if _renderer is None:
        _renderer = TemplateRenderer()
    return _renderer
