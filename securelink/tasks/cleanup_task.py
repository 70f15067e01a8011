"""
Cleanup Task

Celery beat task for periodic removal of expired and used-up secure links.
Thin wrapper that delegates to the secure link registry.
"""

import logging

from celery_app import celery_app

logger = logging.getLogger(__name__)


def run_sweep(container) -> dict:
    """
    Sweep the registry resolved from a dependency container.

    Args:
        container: DependencyContainer holding the SecureUrlRegistry

    Returns:
        dict: Sweep statistics with the removed count and errors
    """
    from securelink.domain.secure_links import SecureUrlRegistry

    sweep_stats = {"mappings_removed": 0, "errors": []}

    try:
        registry = container.resolve(SecureUrlRegistry)
        sweep_stats["mappings_removed"] = registry.sweep()
        logger.info(f"Sweep completed - removed {sweep_stats['mappings_removed']} secure links")
    except Exception as e:
        error_msg = f"Error sweeping secure links: {e}"
        sweep_stats["errors"].append(error_msg)
        logger.error(error_msg, exc_info=True)

    return sweep_stats


@celery_app.task(bind=True, name="tasks.sweep_secure_links")
def sweep_secure_links(self):
    """
    Periodic task that removes secure links which are no longer live.

    Runs hourly from the Celery beat schedule. Only useful with the shared
    (Redis) link store: the in-memory store lives inside each web process
    and is swept by the registry's own background thread.

    Returns:
        dict: Sweep statistics with the removed count and errors
    """
    logger.info("Starting secure link sweep task")

    # Services only come from the DependencyContainer, never instantiated here
    from celery_app import flask_app

    return run_sweep(flask_app.container)
