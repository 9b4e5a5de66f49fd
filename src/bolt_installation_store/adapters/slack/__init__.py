from bolt_installation_store.adapters.slack.events import UninstallListeners, register_uninstall_handlers
from bolt_installation_store.adapters.slack.installation_store import SlackInstallationStore

__all__ = ["SlackInstallationStore", "UninstallListeners", "register_uninstall_handlers"]
