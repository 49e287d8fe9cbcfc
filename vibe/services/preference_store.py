"""Preference store: persisted user preferences and their in-memory view."""

import asyncio
import copy
import logging
from typing import Any, Dict, Optional

from ..bridge import InvocationBridge
from ..languages import engine_language_code, text_direction
from ..models.preference import DerivedSettings, LTR, RTL, NamedPath, Preference
from ..storage.model_directory import MODEL_EXTENSION, scan_models
from ..storage.store import KeyValueStore, StoreWriteError

logger = logging.getLogger(__name__)

MODEL_PATH_KEY = "prefs_model_path"
MODEL_OPTIONS_KEY = "prefs_model_options"
DISPLAY_LANGUAGE_KEY = "prefs_display_language"
TEXT_AREA_DIRECTION_KEY = "prefs_text_area_direction"
LOG_TO_FILE_KEY = "prefs_log_to_file"


def derive_settings(preference: Preference) -> DerivedSettings:
    """Compute the fields that follow from the display language."""
    return DerivedSettings(
        lang=engine_language_code(preference.display_language),
        text_area_direction=text_direction(preference.display_language),
    )


def apply_derived(preference: Preference, derived: DerivedSettings) -> Preference:
    """Return a copy of preference with derived fields applied.

    An unknown engine language leaves ``model_options['lang']`` unchanged.
    """
    updated = copy.deepcopy(preference)
    if derived.lang is not None:
        updated.model_options["lang"] = derived.lang
    updated.text_area_direction = derived.text_area_direction
    return updated


class PreferenceStore:
    """Owns the single Preference instance of the application.

    Every mutation goes through a setter which persists the affected keys
    before returning. Mutations are serialized; the last writer wins.
    """

    def __init__(self, store: KeyValueStore, bridge: InvocationBridge,
                 default_display_language: str = "en-US",
                 model_extension: str = MODEL_EXTENSION):
        """Initialize preference store.

        Args:
            store: Persisted key/value store
            bridge: Invocation bridge, used to resolve the models folder
            default_display_language: Display language when none was saved
            model_extension: File extension of recognized model files
        """
        self.store = store
        self.bridge = bridge
        self.default_display_language = default_display_language
        self.model_extension = model_extension
        self._preference = Preference(display_language=default_display_language)
        self._lock = asyncio.Lock()

    @property
    def preference(self) -> Preference:
        """Snapshot of the current preference."""
        return copy.deepcopy(self._preference)

    @property
    def model_path(self) -> Optional[str]:
        return self._preference.model_path

    @property
    def model_options(self) -> Dict[str, Any]:
        return copy.deepcopy(self._preference.model_options)

    @property
    def display_language(self) -> str:
        return self._preference.display_language

    @property
    def text_area_direction(self) -> str:
        return self._preference.text_area_direction

    @property
    def log_to_file(self) -> bool:
        return self._preference.log_to_file

    def load(self) -> Preference:
        """Rebuild the in-memory view from the store.

        Missing or wrong-typed keys fall back to defaults.
        """
        defaults = Preference(display_language=self.default_display_language)

        model_path = self.store.get(MODEL_PATH_KEY)
        if not isinstance(model_path, str) or not model_path:
            model_path = None

        model_options = self.store.get(MODEL_OPTIONS_KEY)
        if not isinstance(model_options, dict):
            model_options = defaults.model_options
        model_options.setdefault("lang", defaults.model_options["lang"])

        display_language = self.store.get(DISPLAY_LANGUAGE_KEY)
        if not isinstance(display_language, str) or not display_language:
            display_language = defaults.display_language

        direction = self.store.get(TEXT_AREA_DIRECTION_KEY)
        if direction not in (LTR, RTL):
            direction = defaults.text_area_direction

        log_to_file = self.store.get(LOG_TO_FILE_KEY)
        if not isinstance(log_to_file, bool):
            log_to_file = defaults.log_to_file

        preference = Preference(
            model_path=model_path,
            model_options=model_options,
            display_language=display_language,
            text_area_direction=direction,
            log_to_file=log_to_file,
        )
        self._preference = apply_derived(preference, derive_settings(preference))
        logger.info(f"Preferences loaded: language={display_language}, model={model_path}")
        return self.preference

    async def set_model_path(self, model_path: Optional[str]) -> None:
        async with self._lock:
            self._preference.model_path = model_path
            await self._persist({MODEL_PATH_KEY: model_path})
        logger.info(f"Model path set to: {model_path}")

    async def set_model_options(self, model_options: Dict[str, Any]) -> None:
        async with self._lock:
            self._preference.model_options = copy.deepcopy(model_options)
            await self._persist({MODEL_OPTIONS_KEY: self._preference.model_options})

    async def set_log_to_file(self, enabled: bool) -> None:
        async with self._lock:
            self._preference.log_to_file = bool(enabled)
            await self._persist({LOG_TO_FILE_KEY: self._preference.log_to_file})
        logger.info(f"Log to file set to: {enabled}")

    async def change_language(self, display_language: str) -> Preference:
        """Switch the display language and recompute the derived settings.

        A language without an engine code keeps the current model language.
        """
        async with self._lock:
            preference = copy.deepcopy(self._preference)
            preference.display_language = display_language
            derived = derive_settings(preference)
            if derived.lang is None:
                logger.info(f"No engine language for '{display_language}', keeping "
                            f"'{preference.model_options.get('lang')}'")
            self._preference = apply_derived(preference, derived)
            await self._persist({
                DISPLAY_LANGUAGE_KEY: self._preference.display_language,
                MODEL_OPTIONS_KEY: self._preference.model_options,
                TEXT_AREA_DIRECTION_KEY: self._preference.text_area_direction,
            })
        logger.info(f"Display language changed to: {display_language}")
        return self.preference

    async def get_default_model(self) -> Optional[str]:
        """Select and persist a model when none is selected yet.

        The first recognized model in name order is chosen. Returns the model
        path in effect afterwards.
        """
        if self._preference.model_path:
            return self._preference.model_path

        try:
            folder = await self.bridge.get_models_folder()
        except OSError as e:
            logger.warning(f"Models folder unavailable, no default model: {e}")
            return None
        models = scan_models(folder, self.model_extension)
        if not models:
            logger.info(f"No models found in {folder}")
            return None

        default_model: NamedPath = models[0]
        async with self._lock:
            # A selection made while scanning wins over the default
            if self._preference.model_path:
                return self._preference.model_path
            self._preference.model_path = default_model.path
            await self._persist({MODEL_PATH_KEY: default_model.path})
        logger.info(f"Default model selected: {default_model.name}")
        return default_model.path

    async def _persist(self, values: Dict[str, Any]) -> None:
        for key, value in values.items():
            if value is None:
                self.store.delete(key)
            else:
                self.store.set(key, value)
        try:
            await self.store.save()
        except StoreWriteError as e:
            logger.warning(f"Preference change not persisted: {e}")
