from __future__ import annotations

from .helpers.fakes import MB, sbattery, shwtemp


def test_all_metrics_has_flat_record_keys(service):
    rec = service.get_all_metrics()
    assert set(rec) == {
        "thermal_state",
        "cpu_usage_percent",
        "memory_usage_mb",
        "memory_total_mb",
        "battery_level",
        "battery_state",
        "is_low_power_mode",
        "timestamp",
        "app_version",
    }
    assert rec["cpu_usage_percent"] == 12.35
    assert rec["memory_usage_mb"] == 256.0
    assert rec["memory_total_mb"] == 8192
    assert rec["timestamp"] == "2023-11-14T22:13:20Z"
    assert rec["app_version"] == "2.3.4"
    assert rec["is_low_power_mode"] is False


def test_no_battery_reports_unknown(service):
    info = service.get_battery_info()
    assert info.level == -1.0
    assert info.state.value == "unknown"
    rec = service.get_all_metrics()
    assert rec["battery_level"] == -1.0
    assert rec["battery_state"] == "unknown"


def test_battery_states(service, fake_ps):
    fake_ps.battery = sbattery(percent=42.0, secsleft=3600, power_plugged=False)
    assert service.get_battery_info().state.value == "unplugged"
    assert service.get_battery_info().level == 0.42

    fake_ps.battery = sbattery(percent=80.0, secsleft=-2, power_plugged=True)
    assert service.get_battery_info().state.value == "charging"

    fake_ps.battery = sbattery(percent=100.0, secsleft=-2, power_plugged=True)
    assert service.get_battery_info().state.value == "full"
    assert service.get_battery_info().level == 1.0


def test_thermal_state_worst_reading_wins(service, fake_ps):
    assert int(service.get_thermal_state()) == 0
    fake_ps.temps = {"coretemp": [shwtemp("Core 0", 45.0, 80.0, 100.0), shwtemp("Core 1", 72.0, 80.0, 100.0)]}
    assert int(service.get_thermal_state()) == 1
    fake_ps.temps["acpitz"] = [shwtemp("", 85.0, 80.0, 100.0)]
    assert int(service.get_thermal_state()) == 2
    fake_ps.temps["nvme"] = [shwtemp("Composite", 101.0, 80.0, 100.0)]
    assert int(service.get_thermal_state()) == 3


def test_thermal_reading_without_thresholds_is_nominal(service, fake_ps):
    fake_ps.temps = {"acpitz": [shwtemp("", 95.0, None, None)]}
    assert int(service.get_thermal_state()) == 0


def test_failures_default_to_zero(service, fake_ps):
    fake_ps.fail_cpu = True
    fake_ps.fail_memory = True
    fake_ps.fail_sensors = True
    rec = service.get_all_metrics()
    assert rec["cpu_usage_percent"] == 0.0
    assert rec["memory_usage_mb"] == 0.0
    assert rec["memory_total_mb"] == 0
    assert rec["thermal_state"] == 0
    assert rec["battery_state"] == "unknown"


def test_process_unavailable_at_startup(fake_ps, tmp_path):
    from perfanalytics.core.config.models import SamplerConfig
    from perfanalytics.core.metrics.sampler import SystemPerformanceService

    fake_ps.fail_process = True
    svc = SystemPerformanceService(cfg=SamplerConfig(storage_path=str(tmp_path)), ps=fake_ps)
    assert svc.get_cpu_usage() == 0.0
    assert svc.get_memory_usage().used == 0


def test_storage_missing_path_is_zero(fake_ps, tmp_path):
    from perfanalytics.core.config.models import SamplerConfig
    from perfanalytics.core.metrics.sampler import SystemPerformanceService

    svc = SystemPerformanceService(cfg=SamplerConfig(storage_path=str(tmp_path / "nope")), ps=fake_ps)
    assert svc.get_storage_info().total == 0
    assert svc.get_storage_user_properties() == {"storage_free_gb": 0.0, "storage_total_gb": 0.0}


def test_storage_user_properties_rounded(service):
    props = service.get_storage_user_properties()
    assert set(props) == {"storage_free_gb", "storage_total_gb"}
    assert props["storage_total_gb"] > 0
    assert round(props["storage_total_gb"], 2) == props["storage_total_gb"]


def test_low_power_from_platform_profile(fake_ps, tmp_path):
    from perfanalytics.core.config.models import SamplerConfig
    from perfanalytics.core.metrics.sampler import SystemPerformanceService

    profile = tmp_path / "platform_profile"
    profile.write_text("low-power\n", encoding="utf-8")
    svc = SystemPerformanceService(cfg=SamplerConfig(storage_path=str(tmp_path)), ps=fake_ps, platform_profile_path=str(profile))
    assert svc.is_low_power_mode() is True
    profile.write_text("balanced\n", encoding="utf-8")
    assert svc.is_low_power_mode() is False

    missing = SystemPerformanceService(cfg=SamplerConfig(storage_path=str(tmp_path)), ps=fake_ps, platform_profile_path=str(tmp_path / "missing"))
    assert missing.is_low_power_mode() is False


def test_low_power_undecodable_profile_is_false(fake_ps, tmp_path):
    from perfanalytics.core.config.models import SamplerConfig
    from perfanalytics.core.metrics.sampler import SystemPerformanceService

    profile = tmp_path / "platform_profile"
    profile.write_bytes(b"\xff\xfe\n")
    svc = SystemPerformanceService(cfg=SamplerConfig(storage_path=str(tmp_path)), ps=fake_ps, platform_profile_path=str(profile))
    assert svc.is_low_power_mode() is False
    assert svc.get_all_metrics()["is_low_power_mode"] is False


def test_storage_invalid_path_is_zero(fake_ps, tmp_path):
    from perfanalytics.core.config.models import SamplerConfig
    from perfanalytics.core.metrics.sampler import SystemPerformanceService

    svc = SystemPerformanceService(cfg=SamplerConfig(storage_path=str(tmp_path) + "\x00dir"), ps=fake_ps)
    assert svc.get_storage_info().total == 0
    assert svc.get_storage_user_properties() == {"storage_free_gb": 0.0, "storage_total_gb": 0.0}


def test_low_power_override_wins(fake_ps, tmp_path):
    from perfanalytics.core.config.models import SamplerConfig
    from perfanalytics.core.metrics.sampler import SystemPerformanceService

    svc = SystemPerformanceService(cfg=SamplerConfig(storage_path=str(tmp_path), low_power_override=True), ps=fake_ps, platform_profile_path=str(tmp_path / "missing"))
    assert svc.get_all_metrics()["is_low_power_mode"] is True


def test_sensors_disabled(fake_ps, tmp_path):
    from perfanalytics.core.config.models import SamplerConfig
    from perfanalytics.core.metrics.sampler import SystemPerformanceService

    fake_ps.temps = {"coretemp": [shwtemp("Core 0", 101.0, 80.0, 100.0)]}
    fake_ps.battery = sbattery(percent=50.0, secsleft=100, power_plugged=False)
    svc = SystemPerformanceService(cfg=SamplerConfig(storage_path=str(tmp_path), enable_sensors=False), ps=fake_ps)
    assert int(svc.get_thermal_state()) == 0
    assert svc.get_battery_info().level == -1.0


def test_memory_used_mb(service, fake_ps):
    fake_ps.rss = 3 * MB + MB // 2
    mem = service.get_memory_usage()
    assert mem.used == fake_ps.rss
    assert mem.used_mb == 3.5


def test_shared_service_is_singleton(fake_ps):
    from perfanalytics.core.metrics.sampler import get_performance_service, reset_performance_service

    reset_performance_service()
    try:
        a = get_performance_service(ps=fake_ps)
        b = get_performance_service()
        assert a is b
    finally:
        reset_performance_service()
