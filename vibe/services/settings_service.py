"""Settings operations: logs, folders, app info and application reset."""

import logging
import platform
from typing import Dict

from .. import __version__
from ..bridge import InvocationBridge
from ..models.preference import Preference
from ..storage.store import KeyValueStore, StoreWriteError
from .preference_store import PreferenceStore

logger = logging.getLogger(__name__)


class SettingsService:
    """Backs the settings screen of the application."""

    def __init__(self, bridge: InvocationBridge, store: KeyValueStore, preferences: PreferenceStore):
        self.bridge = bridge
        self.store = store
        self.preferences = preferences

    async def open_models_folder(self) -> str:
        folder = await self.bridge.invoke("get_models_folder")
        await self.bridge.invoke("open_path", path=folder)
        return folder

    async def open_models_url(self) -> str:
        """Open the page where models can be downloaded."""
        url = self.bridge.config.get('models.download_url')
        await self.bridge.invoke("open_path", path=url)
        return url

    async def open_logs_folder(self) -> str:
        folder = await self.bridge.invoke("get_logs_folder")
        await self.bridge.invoke("open_path", path=folder)
        return folder

    async def read_logs(self) -> str:
        """Return the current log file contents, e.g. for copying into a report."""
        return await self.bridge.invoke("get_logs")

    async def get_app_info(self) -> Dict[str, str]:
        """Collect version and environment details for bug reports.

        Returns:
            Ordered mapping of label to value
        """
        try:
            models_folder = await self.bridge.invoke("get_models_folder")
        except OSError as e:
            models_folder = f"unavailable ({e})"
        return {
            "Version": __version__,
            "Platform": f"{platform.system()} {platform.release()} ({platform.machine()})",
            "Python": platform.python_version(),
            "Engine": self.bridge.engine.get_display_info(),
            "Models folder": models_folder,
            "Model": self.preferences.model_path or "none",
            "Display language": self.preferences.display_language,
            "Log to file": "on" if self.preferences.log_to_file else "off",
        }

    @property
    def log_to_file(self) -> bool:
        return self.preferences.log_to_file

    async def set_log_to_file(self, enabled: bool) -> None:
        """Persist the log-to-file flag. Takes effect on the next start."""
        await self.preferences.set_log_to_file(enabled)

    async def reset_app(self) -> Preference:
        """Forget every persisted setting and reload defaults."""
        self.store.clear()
        try:
            await self.store.save()
        except StoreWriteError as e:
            logger.warning(f"Reset not persisted: {e}")
        logger.info("Application settings reset")
        return self.preferences.load()
