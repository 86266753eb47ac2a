"""Command line entry point: ``auto-stamp``."""

import logging
import os
import sys

import click
from dotenv import load_dotenv

from config.parameters import (
    ANTHROPIC_KEY_ENV,
    DEFAULT_INTERVAL_S,
    MAPBOX_TOKEN_ENVS,
    OUTPUT_DIR,
    VISION_MODEL,
)
from skills.geocoding import build_geocoder
from stamper.exceptions import PreconditionFailure
from stamper.run_all import print_summary, read_url_file, run_batch
from stamper.video_pipeline import PipelineContext
from stamper.vision_locate import AnthropicVisionProvider


def check_credentials(geocoder: str) -> dict:
    """Return the credentials a run needs, or raise before any video starts."""
    api_key = os.environ.get(ANTHROPIC_KEY_ENV)
    if not api_key:
        raise PreconditionFailure(f"{ANTHROPIC_KEY_ENV} not set in environment")

    mapbox_token = next((os.environ[k] for k in MAPBOX_TOKEN_ENVS if os.environ.get(k)), None)
    if geocoder == "mapbox" and not mapbox_token:
        raise PreconditionFailure(f"{' (or '.join(MAPBOX_TOKEN_ENVS)}) not set")
    return {"anthropic_api_key": api_key, "mapbox_token": mapbox_token}


@click.command(help="Map walking tour videos to geocoded waypoints.")
@click.argument("urls", nargs=-1)
@click.option(
    "--batch",
    "batch_file",
    type=click.Path(exists=True, dir_okay=False),
    help="File with one URL per line ('#' lines are comments).",
)
@click.option(
    "--interval",
    default=DEFAULT_INTERVAL_S,
    show_default=True,
    type=click.IntRange(min=1),
    help="Seconds between frame captures.",
)
@click.option("--keep-video", is_flag=True, help="Don't delete downloaded videos after processing.")
@click.option(
    "--output-dir",
    default=OUTPUT_DIR,
    show_default=True,
    type=click.Path(file_okay=False),
    help="Where route JSONs are written.",
)
@click.option(
    "--geocoder",
    default="mapbox",
    show_default=True,
    type=click.Choice(["mapbox", "nominatim"]),
)
@click.option("-v", "--verbose", is_flag=True, help="Log retries and provider errors.")
def main(urls, batch_file, interval, keep_video, output_dir, geocoder, verbose):
    load_dotenv()
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    urls = list(urls)
    if batch_file:
        urls.extend(read_url_file(batch_file))
    if not urls:
        raise click.UsageError("Pass at least one video URL or --batch <file>.")

    try:
        creds = check_credentials(geocoder)
    except PreconditionFailure as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    from anthropic import Anthropic

    ctx = PipelineContext(
        vision=AnthropicVisionProvider(Anthropic(api_key=creds["anthropic_api_key"]), model=VISION_MODEL),
        geocoder=build_geocoder(geocoder, creds["mapbox_token"]),
        interval=interval,
        keep_video=keep_video,
        output_dir=output_dir,
    )

    print("=== RoamNY Auto-Stamper ===")
    print(f"Vision: {ctx.vision.name} | Geocoder: {ctx.geocoder.name}")
    print(f"\nVideos to process: {len(urls)}")
    print(f"Frame interval: {interval}s")

    summary = run_batch(urls, ctx)
    print_summary(summary)


if __name__ == "__main__":
    main()
