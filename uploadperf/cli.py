"""
Command line entry point.

    uploadperf [OPTIONS] UPLOADS_SIZE

UPLOADS_SIZE is the size of every uploaded object, e.g. 100, 1MB or 10KiB.
Credentials are read from the ACCESS_KEY and SECRET_KEY environment
variables.
"""

import logging
import sys
from typing import Any, Dict, Optional

import click
from click.core import ParameterSource

from uploadperf import __version__
from uploadperf.config import (
    DEFAULT_MIN_DURATION,
    DEFAULT_MIN_UPLOAD_COUNT,
    DEFAULT_RANDOM_SEED,
    build_config,
    load_config_file,
)
from uploadperf.coordinator import run_test
from uploadperf.exceptions import ConfigError, InvalidSize, WriteError
from uploadperf.reporter import write_csv
from uploadperf.sizes import parse_size

# Options that map directly onto HarnessConfig fields
CONFIG_OPTIONS = {
    "endpoint": "endpoint",
    "secure": "secure",
    "bucket": "bucket",
    "region": "region",
    "verify_ssl": "verify_ssl",
    "concurrency": "concurrency",
    "seed": "seed",
    "output": "output_file",
    "duration": "min_duration",
    "min_uploads": "min_upload_count",
}


def explicit_options(ctx: click.Context, params: Dict[str, Any]) -> Dict[str, Any]:
    """Return only the options the user actually passed on the command line"""
    options = {}
    for param_name, field_name in CONFIG_OPTIONS.items():
        source = ctx.get_parameter_source(param_name)
        if source is not None and source is not ParameterSource.DEFAULT:
            options[field_name] = params[param_name]
    return options


def usage_error(message: str) -> None:
    click.echo(message)
    click.echo("Usage: uploadperf [OPTIONS] UPLOADS_SIZE")
    click.echo("\nUPLOADS_SIZE examples: 100, 1MB, 10KiB, etc")
    sys.exit(1)


@click.command()
@click.option("--endpoint", "-h", default="localhost:9000", show_default=True,
              help="Service endpoint host")
@click.option("--secure", "-s", is_flag=True, default=False,
              help="Set if endpoint requires https")
@click.option("--bucket", default="bucket", show_default=True,
              help="Bucket to use for uploads test")
@click.option("--region", default="us-east-1", show_default=True,
              help="Region used to sign requests")
@click.option("--verify-ssl/--no-verify-ssl", default=True, show_default=True,
              help="Verify the endpoint's TLS certificate")
@click.option("--concurrency", "-c", type=click.IntRange(min=1), default=1,
              show_default=True, help="Concurrency - number of parallel uploads")
@click.option("--seed", type=int, default=DEFAULT_RANDOM_SEED, show_default=True,
              help="Random seed")
@click.option("--output", "-o", type=click.Path(dir_okay=False), default="output.csv",
              show_default=True, help="CSV formatted output filename")
@click.option("--duration", type=click.FloatRange(min=0), default=DEFAULT_MIN_DURATION,
              show_default=True, help="Minimum worker running time in seconds")
@click.option("--min-uploads", type=click.IntRange(min=0), default=DEFAULT_MIN_UPLOAD_COUNT,
              show_default=True, help="Minimum per worker upload count")
@click.option("--config", "config_file", type=click.Path(exists=True, dir_okay=False),
              default=None, help="YAML file with default settings")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.version_option(__version__)
@click.argument("uploads_size")
@click.pass_context
def main(ctx: click.Context, uploads_size: str, config_file: Optional[str],
         verbose: bool, **params):
    """Measure upload latency and throughput of an S3 compatible service"""

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        object_size = parse_size(uploads_size)
    except InvalidSize as e:
        usage_error(f"Error: {e}")

    options = explicit_options(ctx, params)
    options["object_size"] = object_size
    try:
        config = build_config(options, load_config_file(config_file))
    except ConfigError as e:
        click.echo(f"Error: {e}")
        sys.exit(1)

    click.echo("=" * 60)
    click.echo("Upload Performance Test")
    click.echo("=" * 60)
    click.echo(f"Endpoint: {config.endpoint_url}")
    click.echo(f"Bucket: {config.bucket}")
    click.echo(f"Object size: {config.object_size} bytes")
    click.echo(f"Concurrency: {config.concurrency}")
    click.echo(
        f"Policy: at least {config.policy.min_upload_count} uploads and "
        f"{config.policy.min_duration:g}s per worker"
    )
    click.echo("")

    result = run_test(config)
    if result.error is not None:
        click.echo("Quit due to errors.")
        sys.exit(1)

    try:
        write_csv(result, config.output_file)
    except WriteError as e:
        click.echo(f"Error writing output file: {e}")
        sys.exit(1)

    click.echo("\n" + "=" * 60)
    click.echo("Summary")
    click.echo("=" * 60)
    for line in result.summary(config.object_size).lines():
        click.echo(line)
    click.echo(f"\nResults saved to: {config.output_file}")


if __name__ == "__main__":
    main()
