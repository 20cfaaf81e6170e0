from __future__ import annotations

import json
import logging
import time

import click
from flask import current_app
from flask.cli import with_appcontext

from .engine import run_trip_link_cycle

logger = logging.getLogger(__name__)


@click.command("reconcile-trips")
@click.option("--loop", is_flag=True, help="Keep running on TRIP_LINK_INTERVAL_MINUTES instead of a single tick.")
@with_appcontext
def reconcile_trips_command(loop: bool):
    """Match pending transactions to the owners' trips."""
    while True:
        summary = run_trip_link_cycle()
        click.echo(json.dumps(summary.to_dict()))
        if not loop:
            return
        interval = max(1, int(current_app.config["TRIP_LINK_INTERVAL_MINUTES"]))
        logger.debug("Next trip linking tick in %d minutes", interval)
        time.sleep(interval * 60)
