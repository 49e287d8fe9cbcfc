"""Main application entry point for Vibe."""

import sys
import asyncio
import argparse
import logging
from pathlib import Path
from typing import Optional

from . import __version__
from .bridge import InvocationBridge
from .config import VibeConfig
from .engine import create_engine
from .events import EventSubscriptionManager, ProgressPublisher
from .models.job import JobStatus
from .services import (
    ModelDirectoryService,
    PreferenceStore,
    SettingsService,
    TranscriptionJobController,
)
from .services.preference_store import LOG_TO_FILE_KEY
from .storage import FileManager, KeyValueStore
from .ui import ConsoleHost

logger = logging.getLogger(__name__)


class App:
    """Wires the application components together and owns their lifecycle."""

    def __init__(self, config_path: Optional[str] = None, log_level: Optional[str] = None):
        self.config = VibeConfig(config_path)
        self.file_manager = FileManager(self.config.get_data_directory())
        self.store = KeyValueStore(self.config.get_store_path())
        self.store.load()

        level = log_level or self.config.get('logging.level', 'INFO')
        setup_logging(self.config, level, log_to_file=self.store.get(LOG_TO_FILE_KEY) is True)

    def init(self) -> None:
        """Create services. Must run inside the event loop."""
        logger.info("Initializing services...")
        self.events = EventSubscriptionManager()
        self.progress_publisher = ProgressPublisher(self.events)
        self.engine = create_engine(self.config, self.progress_publisher.get_callback())
        self.bridge = InvocationBridge(self.config, self.store, self.engine)

        self.preferences = PreferenceStore(
            self.store,
            self.bridge,
            default_display_language=self.config.get('preferences.display_language', 'en-US'),
            model_extension=self.config.get_model_extension(),
        )
        self.preferences.load()

        self.model_directory = ModelDirectoryService(self.bridge, self.store, self.preferences, self.events)
        self.settings = SettingsService(self.bridge, self.store, self.preferences)

        self.host = ConsoleHost()
        self.controller = TranscriptionJobController(self.bridge, self.preferences, self.events, self.host)

        self.model_directory.start()
        self.controller.start()
        self.host.attach(self.events)
        logger.info(f"Services ready, engine: {self.engine.get_display_info()}")

    async def cleanup(self) -> None:
        await self.controller.close()
        await self.model_directory.close()
        self.host.detach()
        logger.info("Services shut down")

    async def run(self, args: argparse.Namespace) -> int:
        self.init()
        try:
            return await self.dispatch(args)
        finally:
            await self.cleanup()

    async def dispatch(self, args: argparse.Namespace) -> int:
        console = self.host.console
        command = args.command

        if command == "transcribe":
            await self.model_directory.load_models()
            await self.preferences.get_default_model()
            task = self.controller.submit(str(Path(args.file).absolute()), args.lang)
            await task
            state = self.controller.state
            if state.status != JobStatus.COMPLETED:
                return 1
            self.host.print_transcript(state.transcript, self.preferences.text_area_direction)
            if args.output:
                written = self.file_manager.export_transcript(state.transcript, args.output, args.format)
                console.print(f"Saved: {written}", style="green")
            self.controller.dismiss()
            return 0

        if command == "models":
            models = await self.model_directory.load_models()
            await self.preferences.get_default_model()
            try:
                folder = await self.bridge.get_models_folder()
            except OSError as e:
                console.print(f"Models folder unavailable: {e}", style="yellow")
            else:
                console.print(f"Models folder: {folder}")
            self.host.print_models(models, self.preferences.model_path)
            return 0

        if command == "set-models-folder":
            folder = str(Path(args.directory).expanduser().absolute())
            models = await self.model_directory.change_directory(folder)
            self.host.print_models(models, self.preferences.model_path)
            return 0

        if command == "set-model":
            model_path = str(Path(args.path).expanduser().absolute())
            if not Path(model_path).is_file():
                console.print(f"Model file not found: {model_path}", style="bold red")
                return 1
            await self.preferences.set_model_path(model_path)
            console.print(f"Model: {model_path}", style="green")
            return 0

        if command == "set-language":
            preference = await self.preferences.change_language(args.language)
            console.print(f"Display language: {preference.display_language}, "
                          f"model language: {preference.model_options.get('lang')}, "
                          f"direction: {preference.text_area_direction}")
            return 0

        if command == "logs":
            if args.folder or args.open:
                folder = (await self.settings.open_logs_folder() if args.open
                          else await self.bridge.get_logs_folder())
                console.print(folder)
            else:
                console.print(await self.settings.read_logs(), markup=False, highlight=False)
            return 0

        if command == "log-to-file":
            await self.settings.set_log_to_file(args.state == "on")
            console.print(f"Log to file: {args.state} (applies on next start)")
            return 0

        if command == "open-models-folder":
            console.print(await self.settings.open_models_folder())
            return 0

        if command == "open-models-url":
            console.print(await self.settings.open_models_url())
            return 0

        if command == "info":
            self.host.print_app_info(await self.settings.get_app_info())
            return 0

        if command == "reset":
            await self.settings.reset_app()
            console.print("Settings reset", style="green")
            return 0

        raise ValueError(f"Unknown command: {command}")


def setup_logging(config: VibeConfig, level: str = "INFO", log_to_file: bool = False) -> None:
    """Set up logging from the YAML config and the persisted log-to-file flag."""
    console_output = config.get('logging.console_output', True)

    handlers = []

    # File handler - only when the user enabled it
    log_file_path = None
    if log_to_file:
        log_file_path = config.get_log_file_path()
        Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file_path, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
        )
        file_handler.setFormatter(file_formatter)
        handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("Vibe starting up")
    logger.info(f"Log file: {log_file_path or 'disabled'}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vibe",
        description="Vibe - transcribe audio files with a local whisper engine",
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: vibe.yaml in the current directory)"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: from config, INFO)"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"Vibe v{__version__}"
    )

    sub = parser.add_subparsers(dest="command", required=True)

    transcribe = sub.add_parser("transcribe", help="Transcribe an audio file")
    transcribe.add_argument("file", help="Audio file to transcribe")
    transcribe.add_argument("--lang", help="Engine language code (default: from preferences)")
    transcribe.add_argument("--output", "-o", help="Save the transcript to this file")
    transcribe.add_argument("--format", choices=["txt", "json"], default="txt",
                            help="Export format for --output (default: txt)")

    sub.add_parser("models", help="List models in the models folder")

    models_folder = sub.add_parser("set-models-folder", help="Change the models folder")
    models_folder.add_argument("directory")

    model = sub.add_parser("set-model", help="Select the model file to use")
    model.add_argument("path")

    language = sub.add_parser("set-language", help="Change the display language (e.g. he-IL)")
    language.add_argument("language")

    logs = sub.add_parser("logs", help="Print the log file")
    logs.add_argument("--folder", action="store_true", help="Print the logs folder instead")
    logs.add_argument("--open", action="store_true", help="Open the logs folder")

    log_to_file = sub.add_parser("log-to-file", help="Enable or disable logging to a file")
    log_to_file.add_argument("state", choices=["on", "off"])

    sub.add_parser("open-models-folder", help="Open the models folder")
    sub.add_parser("open-models-url", help="Open the model download page")
    sub.add_parser("info", help="Show version and environment details for bug reports")
    sub.add_parser("reset", help="Reset all settings")
    return parser


def main() -> None:
    """Main entry point for Vibe."""
    args = build_parser().parse_args()

    try:
        app = App(args.config, args.log_level)
        exit_code = asyncio.run(app.run(args))
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
        exit_code = 130
    except Exception as e:
        print(f"❌ Error: {e}")
        logging.error(f"Application error: {e}")
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
