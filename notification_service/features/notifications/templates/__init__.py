"""Email body rendering."""

from notification_service.features.notifications.templates.renderer import (
    RenderedEmail,
    TemplateRenderer,
    TemplateRenderError,
    get_template_renderer,
)

__all__ = ["RenderedEmail", "TemplateRenderError", "TemplateRenderer", "get_template_renderer"]
