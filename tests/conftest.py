from __future__ import annotations

import pytest

from perfanalytics.core.config.paths import ConfigFsPaths

from .helpers.fakes import FakePerformance, FakePsutil


@pytest.fixture
def fake_ps():
    return FakePsutil()


@pytest.fixture
def fake_perf():
    return FakePerformance()


@pytest.fixture
def tmp_fs(tmp_path):
    """Isolated root with its own config/ directory."""
    return ConfigFsPaths(root=str(tmp_path))


@pytest.fixture
def service(fake_ps, tmp_path):
    from perfanalytics.core.config.models import SamplerConfig
    from perfanalytics.core.metrics.sampler import SystemPerformanceService

    cfg = SamplerConfig(storage_path=str(tmp_path), low_power_override=False)
    return SystemPerformanceService(cfg=cfg, app_version="2.3.4", ps=fake_ps, clock=lambda: 1_700_000_000.0)


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """setup_logging() binds handlers to per-test dirs/streams; drop them between tests."""
    import logging

    yield
    logger = logging.getLogger("perfanalytics")
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
