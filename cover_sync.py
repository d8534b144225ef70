"""
CoverSync command line entry point.

    cover-sync ~/Music/Album                 # first result wins, embed it
    cover-sync --manual ~/Music              # pick covers interactively
    cover-sync --overwrite --any-resolution song.mp3
    cover-sync --manual --timeout 5 --save-settings   # remember as defaults
"""
import sys
from typing import Optional, Sequence

import click

from config import DEBUG, VERSION, get_search_config
from cover_search import (
    BatchOrchestrator,
    CandidateImage,
    ImagePicker,
    RunStatus,
    SearchMode,
    SearchObserver,
    Track,
)
from logging_config import get_logger, setup_logging
from providers import build_providers
from settings import settings
from system_utils import MutagenTagStore, scan_tracks

logger = get_logger(__name__)

# How often the main thread wakes up while waiting, so Ctrl+C is handled promptly
JOIN_INTERVAL = 0.2

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CANCELLED = 130

# Command line options that --save-settings writes back to settings.json
SETTING_KEYS = {
    "manual": "general.manual_image_selection",
    "overwrite": "general.overwrite_cover",
    "only_higher": "general.overwrite_only_higher",
    "reuse": "general.auto_last_audio",
    "timeout": "search.timeout",
    "max_size": "cover.max_size",
}


class ConsoleObserver(SearchObserver):
    """Prints per-track results and a running counter."""

    def __init__(self):
        self.total = 0
        self.saved = 0

    def on_batch_started(self, total: int) -> None:
        self.total = total
        click.echo(f"Searching covers for {total} track(s)...")

    def on_track_state_changed(self, track: Track, state_text: str) -> None:
        if state_text:
            click.echo(f"  {track.name}: {state_text}")

    def on_cover_saved(self, track: Track, image: CandidateImage) -> None:
        self.saved += 1

    def on_progress(self, current: int, total: int) -> None:
        if current:
            logger.debug(f"Progress {current}/{total}")

    def on_batch_cancelled(self) -> None:
        click.echo("Search cancelled.", err=True)

    def on_batch_finished(self) -> None:
        click.echo(f"Done. {self.saved} cover(s) saved.")


class ClickImagePicker(ImagePicker):
    """Numbered list on the terminal, 0 keeps the track as it is."""

    def choose(self, candidates: Sequence[CandidateImage], context_label: str) -> Optional[CandidateImage]:
        click.echo(f"\nCovers for {context_label}:")
        for index, candidate in enumerate(candidates, start=1):
            source = candidate.source or "unknown"
            click.echo(f"  {index}) {candidate.width}x{candidate.height} from {source}  {candidate.url}")
        click.echo("  0) none")

        choice = click.prompt(
            "Choose a cover",
            type=click.IntRange(0, len(candidates)),
            default=1
        )
        if choice == 0:
            return None
        return candidates[choice - 1]


def store_options(options: dict) -> None:
    """Write the options given on the command line to settings.json."""
    for option, key in SETTING_KEYS.items():
        value = options.get(option)
        if value is not None:
            settings.set(key, value)
    settings.save_to_config()
    logger.info(f"Settings saved to {settings.settings_file}")
    click.echo(f"Settings saved to {settings.settings_file}")


def print_settings() -> None:
    for category, entries in settings.get_all().items():
        click.echo(f"[{category}]")
        for key, info in entries.items():
            click.echo(f"  {key} = {info['value']}  # {info['description']}")


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("paths", nargs=-1, type=click.Path(exists=True))
@click.option("--manual/--auto", "manual", default=None,
              help="Choose covers interactively instead of taking the first result.")
@click.option("--overwrite/--no-overwrite", "overwrite", default=None,
              help="Also search for tracks that already have a cover.")
@click.option("--only-higher/--any-resolution", "only_higher", default=None,
              help="Only replace an existing cover with a larger one.")
@click.option("--reuse/--no-reuse", "reuse", default=None,
              help="Reuse the previous track's cover for the same album.")
@click.option("--timeout", type=click.FloatRange(min=0.1), default=None,
              help="Per-provider timeout in seconds.")
@click.option("--max-size", type=click.IntRange(min=0), default=None,
              help="Downscale covers larger than this (0 disables).")
@click.option("--log-level", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
              default=None, help="Console log level.")
@click.option("--save-settings", is_flag=True,
              help="Store the options above in settings.json as the new defaults.")
@click.option("--show-settings", is_flag=True, help="Print the current settings.")
@click.option("--reset-settings", is_flag=True, help="Delete settings.json and go back to the defaults.")
@click.version_option(VERSION, prog_name="CoverSync")
def main(paths, manual, overwrite, only_higher, reuse, timeout, max_size, log_level,
         save_settings, show_settings, reset_settings):
    """Find album covers online and embed them into audio files."""
    setup_logging(
        console_level=log_level or DEBUG.get("log_level", "INFO"),
        file_level="DEBUG",
        console=DEBUG.get("log_to_console", True),
        log_file=DEBUG.get("log_file", "coversync.log"),
        log_providers=DEBUG.get("log_providers", True),
        max_bytes=DEBUG["log_rotation"]["max_bytes"],
        backup_count=DEBUG["log_rotation"]["backup_count"]
    )

    if reset_settings:
        settings.reset_to_defaults()
        click.echo("Settings reset to defaults.")
    if save_settings:
        store_options({
            "manual": manual, "overwrite": overwrite, "only_higher": only_higher,
            "reuse": reuse, "timeout": timeout, "max_size": max_size,
        })
    if show_settings:
        print_settings()

    if not paths:
        if reset_settings or save_settings or show_settings:
            sys.exit(EXIT_OK)
        raise click.UsageError("Missing argument 'PATHS...'.")

    config = get_search_config(
        manual_image_selection=manual,
        overwrite_cover=overwrite,
        overwrite_only_higher=only_higher,
        auto_reuse_last_cover=reuse,
        search_timeout=timeout,
        max_cover_size=max_size,
    )

    providers = build_providers(config.enabled_providers)
    if not providers:
        raise click.ClickException("No cover providers enabled, check settings.json")

    tag_store = MutagenTagStore()
    tracks = scan_tracks(paths, tag_store)
    if not tracks:
        click.echo("No supported audio files found.")
        sys.exit(EXIT_OK)

    picker = ClickImagePicker() if config.mode is SearchMode.MANUAL_SELECTION else None
    orchestrator = BatchOrchestrator(providers, tag_store, config, ConsoleObserver(), picker)

    def on_error(error: BaseException) -> None:
        logger.error(f"Cover search aborted: {error}", exc_info=error)
        click.echo(f"Error: {error}", err=True)

    pipeline = orchestrator.run(tracks, on_error=on_error)
    try:
        while pipeline.is_running:
            pipeline.join(JOIN_INTERVAL)
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt...")
        orchestrator.cancel()
        # The current track finishes first; provider calls are not interrupted
        pipeline.join()

    status = pipeline.status
    if status is RunStatus.FAILED:
        sys.exit(EXIT_FAILED)
    if status is RunStatus.CANCELLED:
        sys.exit(EXIT_CANCELLED)
    sys.exit(EXIT_OK)


if __name__ == "__main__":
    main()
