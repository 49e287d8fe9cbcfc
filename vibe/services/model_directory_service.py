"""Model directory synchronisation."""

import asyncio
import logging
from typing import List, Optional, Set

from ..bridge import InvocationBridge, MODELS_FOLDER_KEY
from ..events.subscriptions import EventSubscriptionManager, SubscriptionScope
from ..events.topics import FOCUS
from ..models.preference import NamedPath
from ..storage.model_directory import scan_models
from ..storage.store import KeyValueStore, StoreWriteError
from .preference_store import PreferenceStore

logger = logging.getLogger(__name__)


class ModelDirectoryService:
    """Keeps the list of available models and the default model in sync
    with the models folder."""

    def __init__(self,
                 bridge: InvocationBridge,
                 store: KeyValueStore,
                 preferences: PreferenceStore,
                 events: EventSubscriptionManager):
        """Initialize model directory service.

        Args:
            bridge: Invocation bridge, resolves the models folder
            store: Persisted store holding the models folder preference
            preferences: Preference store, owns the selected model
            events: Subscription manager delivering focus events
        """
        self.bridge = bridge
        self.store = store
        self.preferences = preferences
        self.events = events
        self.models: List[NamedPath] = []
        self._change_lock = asyncio.Lock()
        self._scope: Optional[SubscriptionScope] = None
        self._pending: Set[asyncio.Task] = set()

    def start(self) -> None:
        """Rescan the models folder whenever the host window regains focus."""
        if self._scope is not None:
            return
        self._scope = SubscriptionScope(self.events)
        self._scope.subscribe(FOCUS, self._on_focus)
        logger.info("ModelDirectoryService started - subscribed to focus events")

    async def close(self) -> None:
        """Release subscriptions and stop pending rescans."""
        if self._scope is not None:
            self._scope.close()
            self._scope = None
        pending = list(self._pending)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._pending.clear()
        logger.info("ModelDirectoryService closed")

    async def load_models(self) -> List[NamedPath]:
        """Refresh the list of recognized model files."""
        try:
            folder = await self.bridge.get_models_folder()
        except OSError as e:
            logger.warning(f"Models folder unavailable: {e}")
            self.models = []
            return []
        self.models = scan_models(folder, self.preferences.model_extension)
        logger.debug(f"Loaded {len(self.models)} models from {folder}")
        return list(self.models)

    async def change_directory(self, new_dir: str) -> List[NamedPath]:
        """Switch the models folder and refresh derived state.

        Concurrent calls run one after another.
        """
        async with self._change_lock:
            self.store.set(MODELS_FOLDER_KEY, new_dir)
            try:
                await self.store.save()
            except StoreWriteError as e:
                logger.warning(f"Models folder change not persisted: {e}")
            logger.info(f"Models folder changed to: {new_dir}")
            models = await self.load_models()
            await self.preferences.get_default_model()
            return models

    def _on_focus(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("Focus event outside of an event loop, rescan skipped")
            return
        task = loop.create_task(self.load_models())
        self._pending.add(task)
        task.add_done_callback(self._rescan_done)

    def _rescan_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning(f"Models rescan failed: {error}")
