"""Unit tests for TranscriptionJobController."""

import asyncio

import pytest

from vibe.bridge import InvocationBridge
from vibe.events.topics import JOB_STATE, PROGRESS
from vibe.models.job import JobStatus
from vibe.models.transcript import to_text
from vibe.services.job_controller import JobRejectedError, TranscriptionJobController


@pytest.fixture
def make_controller(config, store, preferences, events, host):
    """Build a controller around a given engine."""
    def factory(engine):
        bridge = InvocationBridge(config, store, engine)
        return TranscriptionJobController(bridge, preferences, events, host)

    return factory


@pytest.fixture
def state_log(events):
    """Collect every published job state."""
    states = []
    events.subscribe(JOB_STATE, lambda state: states.append(state))
    return states


@pytest.mark.unit
class TestSubmit:
    """Test cases for job submission."""

    def test_submit_is_synchronously_submitted(self, make_controller, fake_engine, audio_file):
        controller = make_controller(fake_engine)

        async def scenario():
            controller.start()
            task = controller.submit(audio_file, "en")
            status = controller.state.status
            await task
            await controller.close()
            return status

        assert asyncio.run(scenario()) == JobStatus.SUBMITTED

    def test_second_submit_rejected_while_running(self, make_controller, fake_engine, audio_file):
        controller = make_controller(fake_engine)
        fake_engine.release.clear()

        async def scenario():
            controller.start()
            task = controller.submit(audio_file, "en")
            with pytest.raises(JobRejectedError):
                controller.submit(audio_file, "en")
            await fake_engine.started.wait()
            assert controller.state.status == JobStatus.IN_PROGRESS
            with pytest.raises(JobRejectedError):
                controller.submit(audio_file, "en")
            fake_engine.release.set()
            await task
            await controller.close()

        asyncio.run(scenario())
        assert len(fake_engine.requests) == 1

    def test_empty_path_rejected(self, make_controller, fake_engine):
        controller = make_controller(fake_engine)

        async def scenario():
            with pytest.raises(ValueError):
                controller.submit("", "en")

        asyncio.run(scenario())
        assert controller.state.status == JobStatus.IDLE

    def test_request_uses_preferences_at_submit_time(self, make_controller, fake_engine, preferences, audio_file):
        controller = make_controller(fake_engine)

        async def scenario():
            await preferences.set_model_path("/models/ggml-base.bin")
            await preferences.set_model_options({"lang": "he", "translate": True})
            await controller.submit(audio_file)

        asyncio.run(scenario())

        request = fake_engine.requests[0]
        assert request.path == audio_file
        assert request.model_path == "/models/ggml-base.bin"
        assert request.lang == "he"
        assert request.options == {"lang": "he", "translate": True}

    def test_explicit_language_overrides_options(self, make_controller, fake_engine, audio_file):
        controller = make_controller(fake_engine)

        async def scenario():
            await controller.submit(audio_file, "fr")

        asyncio.run(scenario())
        assert fake_engine.requests[0].lang == "fr"


@pytest.mark.unit
class TestProgress:
    """Test cases for progress handling."""

    def test_progress_follows_engine_values(self, make_controller, engine_factory, audio_file, state_log):
        engine = engine_factory(progress_values=[5, 40, 20, 90])
        controller = make_controller(engine)

        async def scenario():
            controller.start()
            await controller.submit(audio_file, "en")
            await controller.close()

        asyncio.run(scenario())

        progress = [s.progress for s in state_log if s.status == JobStatus.IN_PROGRESS]
        assert progress == [None, 5, 40, 20, 90]

    def test_displayed_progress_is_latest_value(self, make_controller, fake_engine, events, audio_file):
        controller = make_controller(fake_engine)
        fake_engine.release.clear()

        async def scenario():
            controller.start()
            task = controller.submit(audio_file, "en")
            await fake_engine.started.wait()
            assert controller.progress is None
            seen = []
            for value in (33, 12, 100):
                events.publish(PROGRESS, value=value)
                seen.append(controller.progress)
            fake_engine.release.set()
            await task
            await controller.close()
            return seen

        assert asyncio.run(scenario()) == [33, 12, 100]

    def test_invalid_progress_ignored(self, make_controller, fake_engine, events, audio_file):
        controller = make_controller(fake_engine)
        fake_engine.release.clear()

        async def scenario():
            controller.start()
            task = controller.submit(audio_file, "en")
            await fake_engine.started.wait()
            events.publish(PROGRESS, value=50)
            for bad in (-1, 101, "60", True, 7.5):
                events.publish(PROGRESS, value=bad)
            progress = controller.progress
            fake_engine.release.set()
            await task
            await controller.close()
            return progress

        assert asyncio.run(scenario()) == 50

    def test_progress_without_active_job_ignored(self, make_controller, fake_engine, events, audio_file):
        controller = make_controller(fake_engine)

        async def scenario():
            controller.start()
            events.publish(PROGRESS, value=10)
            idle_state = controller.state
            await controller.submit(audio_file, "en")
            events.publish(PROGRESS, value=60)
            await controller.close()
            return idle_state

        idle_state = asyncio.run(scenario())
        assert idle_state.status == JobStatus.IDLE
        assert controller.state.status == JobStatus.COMPLETED
        assert controller.progress is None

    def test_progress_after_close_has_no_effect(self, make_controller, fake_engine, events):
        controller = make_controller(fake_engine)

        async def scenario():
            controller.start()
            assert events.subscriber_count(PROGRESS) == 1
            await controller.close()

        asyncio.run(scenario())
        events.publish(PROGRESS, value=80)

        assert events.subscriber_count(PROGRESS) == 0
        assert controller.state.status == JobStatus.IDLE


@pytest.mark.unit
class TestCompletion:
    """Test cases for terminal transitions."""

    def test_success(self, make_controller, fake_engine, host, audio_file, state_log):
        controller = make_controller(fake_engine)

        async def scenario():
            async with controller:
                await controller.submit(audio_file, "en")

        asyncio.run(scenario())

        assert controller.state.status == JobStatus.COMPLETED
        assert to_text(controller.transcript) == "hello\nworld"
        assert host.successes == 1
        assert host.focus_requests == 1
        assert host.errors == []
        assert [s.status for s in state_log] == [
            JobStatus.SUBMITTED, JobStatus.IN_PROGRESS, JobStatus.COMPLETED,
        ]

    def test_engine_failure_surfaces_raw_message(self, make_controller, engine_factory, host, audio_file, state_log):
        controller = make_controller(engine_factory(error="disk full"))

        async def scenario():
            async with controller:
                await controller.submit(audio_file, "en")

        asyncio.run(scenario())

        assert host.errors == ["disk full"]
        assert controller.state.status == JobStatus.IDLE
        assert controller.path is None
        assert controller.last_error == "disk full"
        assert host.successes == 0
        assert host.focus_requests == 1
        failed = [s for s in state_log if s.status == JobStatus.FAILED]
        assert len(failed) == 1 and failed[0].message == "disk full"
        assert state_log[-1].status == JobStatus.IDLE

    def test_retry_after_failure(self, make_controller, engine_factory, audio_file):
        engine = engine_factory(error="disk full")
        controller = make_controller(engine)

        async def scenario():
            await controller.submit(audio_file, "en")
            engine.error = None
            await controller.submit(audio_file, "en")

        asyncio.run(scenario())
        assert controller.state.status == JobStatus.COMPLETED

    def test_submit_after_completion_replaces_result(self, make_controller, fake_engine, audio_file):
        controller = make_controller(fake_engine)

        async def scenario():
            await controller.submit(audio_file, "en")
            task = controller.submit(audio_file, "de")
            assert controller.state.status == JobStatus.SUBMITTED
            assert controller.transcript is None
            await task

        asyncio.run(scenario())
        assert len(fake_engine.requests) == 2

    def test_dismiss(self, make_controller, fake_engine, audio_file):
        controller = make_controller(fake_engine)

        async def scenario():
            await controller.submit(audio_file, "en")

        asyncio.run(scenario())
        controller.dismiss()

        assert controller.state.status == JobStatus.IDLE
        assert controller.transcript is None

    def test_host_failure_does_not_break_job(self, make_controller, fake_engine, host, audio_file):
        def broken():
            raise RuntimeError("no window")

        host.restore_focus = broken
        controller = make_controller(fake_engine)

        async def scenario():
            await controller.submit(audio_file, "en")

        asyncio.run(scenario())
        assert controller.state.status == JobStatus.COMPLETED


@pytest.mark.unit
class TestCancellation:
    """Test cases for cancelling an in-flight job."""

    def test_cancel_returns_to_idle_without_dialog(self, make_controller, fake_engine, host, audio_file):
        controller = make_controller(fake_engine)
        fake_engine.release.clear()

        async def scenario():
            controller.start()
            task = controller.submit(audio_file, "en")
            await fake_engine.started.wait()
            cancelled = controller.cancel()
            await asyncio.gather(task, return_exceptions=True)
            await controller.close()
            return cancelled, task.cancelled()

        cancelled, task_cancelled = asyncio.run(scenario())

        assert cancelled is True
        assert task_cancelled is True
        assert controller.state.status == JobStatus.IDLE
        assert host.errors == []

    def test_cancel_without_job(self, make_controller, fake_engine):
        controller = make_controller(fake_engine)

        assert controller.cancel() is False

    def test_dismiss_running_job_rejected(self, make_controller, fake_engine, audio_file):
        controller = make_controller(fake_engine)
        fake_engine.release.clear()

        async def scenario():
            task = controller.submit(audio_file, "en")
            with pytest.raises(JobRejectedError):
                controller.dismiss()
            fake_engine.release.set()
            await task

        asyncio.run(scenario())

    def test_close_cancels_running_job(self, make_controller, fake_engine, events, audio_file):
        controller = make_controller(fake_engine)
        fake_engine.release.clear()

        async def scenario():
            controller.start()
            task = controller.submit(audio_file, "en")
            await fake_engine.started.wait()
            await controller.close()
            return task

        task = asyncio.run(scenario())

        assert task.cancelled()
        assert controller.state.status == JobStatus.IDLE
        assert events.subscriber_count(PROGRESS) == 0

    def test_cancel_before_job_starts(self, make_controller, fake_engine, host, audio_file):
        controller = make_controller(fake_engine)

        async def scenario():
            task = controller.submit(audio_file, "en")
            assert controller.cancel() is True
            await asyncio.gather(task, return_exceptions=True)
            state = controller.state
            await controller.submit(audio_file, "en")
            return state

        state = asyncio.run(scenario())

        assert state.status == JobStatus.IDLE
        assert host.errors == []
        assert host.focus_requests == 2
        assert len(fake_engine.requests) == 1
        assert controller.state.status == JobStatus.COMPLETED

    def test_close_right_after_submit(self, make_controller, fake_engine, audio_file):
        controller = make_controller(fake_engine)

        async def scenario():
            controller.start()
            controller.submit(audio_file, "en")
            await controller.close()

        asyncio.run(scenario())

        assert controller.state.status == JobStatus.IDLE
        assert fake_engine.requests == []
