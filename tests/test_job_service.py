import asyncio
import os

import pytest

from conftest import VIDEO_ID, FakeMuxer, FakeSource, wait_terminal
from util.enums import FailureMessage
from util.errors import AppError, MuxFailure, UpstreamFetchError


def test_get_right_after_create_is_pending(build_service):
    service, jobs = build_service()

    async def scenario():
        job = await service.create(VIDEO_ID)
        assert jobs.get(job.id).status == "pending"
        assert service.get(job.id).status == "pending"
        done = await wait_terminal(jobs, job.id)
        assert done.status == "ready"
        assert done.percentage == 100.0
        assert done.error is None
        assert os.path.getsize(done.filePath) > 0

    asyncio.run(scenario())


@pytest.mark.parametrize("bad", ["", "short", "dQw4w9WgXcQ!", "dQw4w9WgXcQx", "dQw4 9WgXcQ", "dQw4w9WgXcQ\n"])
def test_invalid_video_id_rejected_before_job_exists(build_service, bad):
    service, jobs = build_service()

    async def scenario():
        with pytest.raises(AppError) as exc:
            await service.create(bad)
        assert exc.value.status_code == 400
        assert exc.value.detail == "Invalid Video ID"

    asyncio.run(scenario())
    assert len(jobs) == 0


def test_unknown_job_raises_not_found(build_service):
    service, _jobs = build_service()
    with pytest.raises(AppError) as exc:
        service.get("nope")
    assert exc.value.status_code == 404


def test_quality_defaults_when_absent(build_service):
    source = FakeSource()
    service, jobs = build_service(source)

    async def scenario():
        job = await service.create(VIDEO_ID, "  ")
        return await wait_terminal(jobs, job.id)

    done = asyncio.run(scenario())
    assert done.filename.endswith("_1080p.mp4")


def test_non_ascii_digit_quality_picks_highest(build_service):
    service, jobs = build_service()

    async def scenario():
        job = await service.create(VIDEO_ID, "²p")
        return await wait_terminal(jobs, job.id)

    done = asyncio.run(scenario())
    assert done.status == "ready"
    assert done.filename.endswith("_1080p.mp4")


def test_percentage_is_monotonic_until_ready(build_service):
    service, jobs = build_service()

    async def scenario():
        job = await service.create(VIDEO_ID, "720p")
        seen = []
        while True:
            snap = jobs.get(job.id)
            if snap.status == "processing":
                seen.append(snap.percentage)
            if snap.is_terminal:
                return snap, seen
            await asyncio.sleep(0)

    snap, seen = asyncio.run(scenario())
    assert snap.status == "ready"
    assert snap.percentage == 100.0
    assert seen == sorted(seen)
    assert all(p <= 99.9 for p in seen)


def test_single_slot_rejects_second_job_as_busy(build_service):
    async def scenario():
        gate = asyncio.Event()
        source = FakeSource(gate=gate)
        service, jobs = build_service(source, max_concurrent=1, admission_timeout=0.05)

        first = await service.create(VIDEO_ID)
        while jobs.get(first.id).status != "processing":
            await asyncio.sleep(0.001)
        second = await service.create(VIDEO_ID)

        busy = await wait_terminal(jobs, second.id)
        gate.set()
        done = await wait_terminal(jobs, first.id)
        return source, busy, done

    source, busy, done = asyncio.run(scenario())
    assert busy.status == "failed"
    assert busy.error == "Server busy"
    assert busy.percentage == 0.0
    assert done.status == "ready"
    assert source.metadata_calls == 1
    assert source.max_active == 1


def test_single_slot_runs_second_job_after_first(build_service):
    async def scenario():
        gate = asyncio.Event()
        source = FakeSource(gate=gate)
        service, jobs = build_service(source, max_concurrent=1, admission_timeout=5.0)

        first = await service.create(VIDEO_ID)
        second = await service.create(VIDEO_ID)
        await asyncio.sleep(0.02)
        assert jobs.get(second.id).status == "pending"
        gate.set()
        a = await wait_terminal(jobs, first.id)
        b = await wait_terminal(jobs, second.id)
        return source, a, b

    source, a, b = asyncio.run(scenario())
    assert (a.status, b.status) == ("ready", "ready")
    assert source.max_active == 1
    assert source.metadata_calls == 2


def test_slot_released_after_failure(build_service):
    async def scenario():
        source = FakeSource(metadata_error=UpstreamFetchError("Access forbidden."))
        service, jobs = build_service(source, max_concurrent=1, admission_timeout=0.5)
        first = await service.create(VIDEO_ID)
        await wait_terminal(jobs, first.id)
        source.metadata_error = None
        second = await service.create(VIDEO_ID)
        return await wait_terminal(jobs, second.id)

    assert asyncio.run(scenario()).status == "ready"


@pytest.mark.parametrize(
    "source_kwargs,muxer_kwargs,expected",
    [
        ({"metadata_error": RuntimeError("HTTP Error 403: Forbidden for /srv/app/temp")},
         {}, FailureMessage.ACCESS_FORBIDDEN),
        ({"metadata_error": RuntimeError("Signature extraction failed at /opt/x.py")},
         {}, FailureMessage.ACCESS_RESTRICTED),
        ({"stream_errors": {"137": OSError(28, "No space left on device", "/srv/temp/v.mp4")}},
         {}, FailureMessage.DISK_FULL),
        ({"stream_errors": {"140": PermissionError(13, "Permission denied", "/srv/temp/a.m4a")}},
         {}, FailureMessage.STORAGE_PERMISSION),
        ({}, {"error": MuxFailure(detail="/srv/temp/v.mp4: Invalid data found")},
         FailureMessage.MEDIA_PROCESSING),
        ({}, {"empty": True}, FailureMessage.EMPTY_OUTPUT),
        ({"formats": []}, {}, FailureMessage.FORMAT_NOT_FOUND),
        ({"metadata_error": ValueError("boom in /root/secret/file")},
         {}, FailureMessage.UNEXPECTED),
    ],
)
def test_failures_record_sanitized_messages(build_service, dirs, source_kwargs, muxer_kwargs, expected):
    downloads, temp = dirs
    service, jobs = build_service(FakeSource(**source_kwargs), FakeMuxer(**muxer_kwargs))

    async def scenario():
        job = await service.create(VIDEO_ID)
        return await wait_terminal(jobs, job.id)

    done = asyncio.run(scenario())
    assert done.status == "failed"
    assert done.error == expected.value
    assert str(downloads) not in done.error
    assert "/srv/" not in done.error and "/root/" not in done.error
    assert "Invalid data found" not in done.error
    assert os.listdir(temp) == []


def test_shutdown_cancels_running_jobs(build_service):
    async def scenario():
        gate = asyncio.Event()
        service, jobs = build_service(FakeSource(gate=gate))
        job = await service.create(VIDEO_ID)
        await asyncio.sleep(0.01)
        assert service.running == 1
        await service.shutdown()
        return service, jobs.get(job.id)

    service, snap = asyncio.run(scenario())
    assert service.running == 0
    assert snap.status == "processing"
