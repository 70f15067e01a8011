"""
Unit tests for the secure link sweep task.
"""

from unittest.mock import Mock

from securelink.domain.secure_links import SecureUrlRegistry
from securelink.tasks.cleanup_task import run_sweep, sweep_secure_links


def _container(registry):
    container = Mock()
    container.resolve.return_value = registry
    return container


def test_run_sweep_reports_removed_count():
    registry = Mock(spec=SecureUrlRegistry)
    registry.sweep.return_value = 3
    container = _container(registry)

    stats = run_sweep(container)

    assert stats == {"mappings_removed": 3, "errors": []}
    container.resolve.assert_called_once_with(SecureUrlRegistry)


def test_run_sweep_captures_errors():
    registry = Mock(spec=SecureUrlRegistry)
    registry.sweep.side_effect = RuntimeError("redis gone")

    stats = run_sweep(_container(registry))

    assert stats["mappings_removed"] == 0
    assert stats["errors"] == ["Error sweeping secure links: redis gone"]


def test_task_is_registered_under_beat_name():
    assert sweep_secure_links.name == "tasks.sweep_secure_links"
