from __future__ import annotations

import asyncio

from modal_engine.api.actions import ModalAction
from modal_engine.runtime.action_dispatch import RuntimeActionDispatcher


def _failures(caplog) -> list:
    return [record for record in caplog.records if record.getMessage() == "modal callback failed"]


def test_sync_action_failure_is_logged_and_registry_untouched(
    registry, display_factory, engine_caplog
) -> None:
    def explode() -> None:
        raise RuntimeError("click failed")

    registry.open(display_factory("a"))
    dispatcher = RuntimeActionDispatcher()
    dispatcher.dispatch(ModalAction(id="save", label="Save", on_click=explode), modal_id="a")

    assert [config.id for config in registry.modals()] == ["a"]
    failures = _failures(engine_caplog)
    assert len(failures) == 1
    assert failures[0].fields["action_id"] == "save"
    assert failures[0].fields["modal_id"] == "a"
    assert failures[0].fields["error"] == "click failed"
    assert failures[0].exc_info is not None


def test_sync_callback_completes_and_runs_success_hook() -> None:
    dispatcher = RuntimeActionDispatcher()
    calls: list[str] = []

    status = dispatcher.invoke(
        lambda value: calls.append(value),
        "x",
        modal_id="a",
        callback_id="cb",
        on_success=lambda: calls.append("done"),
    )

    assert status == "completed"
    assert calls == ["x", "done"]


def test_failed_callback_skips_success_hook(engine_caplog) -> None:
    dispatcher = RuntimeActionDispatcher()
    calls: list[str] = []

    def explode() -> None:
        raise ValueError("bad")

    status = dispatcher.invoke(
        explode, modal_id="a", callback_id="cb", on_success=lambda: calls.append("done")
    )

    assert status == "failed"
    assert calls == []
    assert len(_failures(engine_caplog)) == 1


def test_async_callback_without_loop_runs_to_completion() -> None:
    dispatcher = RuntimeActionDispatcher()
    calls: list[str] = []

    async def work() -> None:
        await asyncio.sleep(0)
        calls.append("work")

    status = dispatcher.invoke(
        work, modal_id="a", callback_id="cb", on_success=lambda: calls.append("done")
    )

    assert status == "completed"
    assert calls == ["work", "done"]


def test_async_rejection_without_loop_is_logged(engine_caplog) -> None:
    dispatcher = RuntimeActionDispatcher()

    async def work() -> None:
        raise RuntimeError("rejected")

    status = dispatcher.invoke(work, modal_id="a", callback_id="cb")

    assert status == "failed"
    assert _failures(engine_caplog)[0].fields["error"] == "rejected"


def test_async_callback_inside_loop_is_fire_and_dispatch() -> None:
    dispatcher = RuntimeActionDispatcher()
    calls: list[str] = []

    async def work() -> None:
        await asyncio.sleep(0)
        calls.append("work")

    async def scenario() -> str:
        status = dispatcher.invoke(
            work, modal_id="a", callback_id="cb", on_success=lambda: calls.append("done")
        )
        assert calls == []
        assert dispatcher.pending_count == 1
        await dispatcher.drain()
        return status

    assert asyncio.run(scenario()) == "pending"
    assert calls == ["work", "done"]
    assert dispatcher.pending_count == 0


def test_async_rejection_inside_loop_is_logged_after_settling(engine_caplog) -> None:
    dispatcher = RuntimeActionDispatcher()

    async def work() -> None:
        await asyncio.sleep(0)
        raise RuntimeError("late failure")

    async def scenario() -> None:
        assert dispatcher.invoke(work, modal_id="a", callback_id="cb") == "pending"
        await dispatcher.drain()

    asyncio.run(scenario())

    failures = _failures(engine_caplog)
    assert len(failures) == 1
    assert failures[0].fields["error"] == "late failure"


def test_dispatch_async_reports_status() -> None:
    dispatcher = RuntimeActionDispatcher()

    async def ok() -> None:
        return None

    async def bad() -> None:
        raise RuntimeError("x")

    async def scenario() -> tuple[str, str]:
        first = await dispatcher.dispatch_async(ModalAction(id="ok", label="Ok", on_click=ok))
        second = await dispatcher.dispatch_async(ModalAction(id="bad", label="Bad", on_click=bad))
        return first, second

    assert asyncio.run(scenario()) == ("completed", "failed")


def test_success_hook_failure_is_isolated(engine_caplog) -> None:
    dispatcher = RuntimeActionDispatcher()

    def hook() -> None:
        raise RuntimeError("hook failed")

    status = dispatcher.invoke(lambda: None, modal_id="a", callback_id="cb", on_success=hook)

    assert status == "completed"
    assert _failures(engine_caplog)[0].fields["action_id"] == "cb:on_success"
