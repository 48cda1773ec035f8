"""Unit tests for the job registry and single-flight supervisor."""

import asyncio

import pytest

from foosrank.tasks.progress import JobProgress
from foosrank.tasks.registry import JobDefinition, JobRegistry
from foosrank.tasks.runtime import AlreadyRunningError, JobStatus
from foosrank.tasks.supervisor import JobSupervisor


def _noop_runner(_progress, _params):
    raise NotImplementedError


def _blocking_registry(release: asyncio.Event, calls: list) -> JobRegistry:
    async def runner(progress: JobProgress, params):
        calls.append(params)
        progress.set_progress(0, 10)
        progress.log(f"started with {params}")
        await release.wait()
        progress.advance(3)

    registry = JobRegistry()
    registry.register(JobDefinition(kind="itsf_rankings", title="ITSF Rankings Download", runner=runner))
    registry.register(JobDefinition(kind="dtfb_rankings", title="DTFB Rankings Download", runner=runner))
    return registry


def test_job_registry_register_and_get():
    registry = JobRegistry()
    registry.register(JobDefinition(kind="alpha", title="Alpha", runner=_noop_runner))

    loaded = registry.get("alpha")
    assert loaded.title == "Alpha"
    assert loaded.runner is _noop_runner
    assert "alpha" in registry
    assert registry.kinds() == ["alpha"]


def test_job_registry_duplicate_registration_raises():
    registry = JobRegistry()
    job = JobDefinition(kind="dup", title="Dup", runner=_noop_runner)
    registry.register(job)
    with pytest.raises(ValueError):
        registry.register(job)


def test_job_registry_unknown_kind_raises_key_error():
    with pytest.raises(KeyError):
        JobRegistry().get("missing")


def test_job_status_payload():
    progress = JobProgress("ITSF Rankings Download", 4)
    progress.advance(2)
    progress.log("hello")

    payload = JobStatus.from_progress("itsf_rankings", progress).to_dict()
    assert payload == {
        "kind": "itsf_rankings",
        "running": True,
        "title": "ITSF Rankings Download",
        "progress": [2, 4],
        "log": ["hello"],
    }
    assert JobStatus.idle("itsf_rankings").to_dict()["running"] is False


@pytest.mark.asyncio
async def test_second_start_is_rejected_while_first_is_running():
    release = asyncio.Event()
    calls = []
    supervisor = JobSupervisor(_blocking_registry(release, calls))

    handle = supervisor.start_job("itsf_rankings", "first")
    await asyncio.sleep(0)

    with pytest.raises(AlreadyRunningError):
        supervisor.start_job("itsf_rankings", "second")

    assert supervisor.is_running("itsf_rankings")
    status = supervisor.status("itsf_rankings")
    assert status.running
    assert status.title == "ITSF Rankings Download"
    assert status.log == ["started with first"]

    release.set()
    await handle.wait()

    assert calls == ["first"]
    assert not supervisor.is_running("itsf_rankings")
    assert handle.progress.get_progress() == (10, 10)


@pytest.mark.asyncio
async def test_slot_is_released_after_completion():
    release = asyncio.Event()
    release.set()
    calls = []
    supervisor = JobSupervisor(_blocking_registry(release, calls))

    await supervisor.start_job("itsf_rankings", 1).wait()
    await supervisor.start_job("itsf_rankings", 2).wait()

    assert calls == [1, 2]
    assert supervisor.status("itsf_rankings") == JobStatus.idle("itsf_rankings")


@pytest.mark.asyncio
async def test_different_kinds_run_independently():
    release = asyncio.Event()
    calls = []
    supervisor = JobSupervisor(_blocking_registry(release, calls))

    itsf = supervisor.start_job("itsf_rankings", "itsf")
    dtfb = supervisor.start_job("dtfb_rankings", "dtfb")
    await asyncio.sleep(0)

    assert supervisor.is_running("itsf_rankings")
    assert supervisor.is_running("dtfb_rankings")

    release.set()
    await itsf.wait()
    await dtfb.wait()
    assert sorted(calls) == ["dtfb", "itsf"]


@pytest.mark.asyncio
async def test_failing_job_frees_slot_and_logs_error():
    async def explode(progress, params):
        raise RuntimeError("boom")

    registry = JobRegistry()
    registry.register(JobDefinition(kind="itsf_rankings", title="ITSF", runner=explode))
    supervisor = JobSupervisor(registry)

    handle = supervisor.start_job("itsf_rankings")
    await handle.wait()

    assert not supervisor.is_running("itsf_rankings")
    assert handle.progress.has_finished()
    assert handle.progress.get_log() == ["Job failed: boom"]

    # The kind can be started again right away
    again = supervisor.start_job("itsf_rankings")
    await again.wait()


@pytest.mark.asyncio
async def test_start_unknown_kind_raises_key_error():
    supervisor = JobSupervisor(JobRegistry())
    with pytest.raises(KeyError):
        supervisor.start_job("nope")
    with pytest.raises(KeyError):
        supervisor.status("nope")


def test_start_job_outside_event_loop_raises():
    release = asyncio.Event()
    supervisor = JobSupervisor(_blocking_registry(release, []))
    with pytest.raises(RuntimeError):
        supervisor.start_job("itsf_rankings")
    assert not supervisor.is_running("itsf_rankings")
