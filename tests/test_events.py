import asyncio

from carpool.events import DocumentEvent, EventRouter, default_registry


def test_registry_covers_every_trigger():
    assert set(default_registry()) == {
        ("ratings", "create"),
        ("bookings", "create"),
        ("bookings", "update"),
        ("rides", "update"),
    }


def test_dispatch_calls_the_one_matching_handler(ctx):
    calls = []

    async def on_create(ctx, event):
        calls.append(("create", event.document_id))
        return "created"

    async def on_update(ctx, event):
        calls.append(("update", event.document_id))

    router = EventRouter({("rides", "create"): on_create, ("rides", "update"): on_update})
    result = asyncio.run(router.dispatch(ctx, DocumentEvent(resource="rides", kind="create", document_id="r1")))

    assert result == "created"
    assert calls == [("create", "r1")]


def test_unknown_event_is_ignored(ctx):
    router = EventRouter({})
    assert asyncio.run(router.dispatch(ctx, DocumentEvent(resource="users", kind="delete"))) is None


def test_handler_failure_is_logged_not_raised(ctx, caplog):
    async def broken(ctx, event):
        raise RuntimeError("store unavailable")

    router = EventRouter({("ratings", "create"): broken})
    event = DocumentEvent(resource="ratings", kind="create", document_id="rt1")

    assert asyncio.run(router.dispatch(ctx, event)) is None
    assert "store unavailable" in caplog.text


def test_queue_delivers_events_in_order(ctx):
    first = DocumentEvent(resource="rides", kind="update", document_id="r1",
                          before={"status": "active"}, after={"status": "full"})
    second = DocumentEvent(resource="bookings", kind="create", document_id="b1")

    ctx.events.emit(first)
    ctx.events.emit(second)

    assert ctx.events.pop(timeout=0) == first
    assert ctx.events.pop(timeout=0) == second
    assert ctx.events.pop(timeout=0) is None
