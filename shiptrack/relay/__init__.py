from .app import create_app, RelaySettings, RelayConfigError, send_admin_notification

__all__ = ["create_app", "RelaySettings", "RelayConfigError", "send_admin_notification"]
