from app.rdq.application.notifications import BackgroundNotificationSink, dispatch_notification
from app.rdq.domain.models import Rdq, RdqPriority, RdqStatus, RdqType

from fakes import FakeUserRepository, RecordingNotificationSink, TickingClock, run, summary_of


def created_request():
    owner = FakeUserRepository().seed("alice@example.com")
    now = TickingClock()()
    return Rdq(
        id=7,
        title="New laptop",
        description="My current laptop is five years old and slow.",
        type=RdqType.MATERIEL,
        priority=RdqPriority.MEDIUM,
        status=RdqStatus.DRAFT,
        owner=summary_of(owner),
        created_at=now,
        updated_at=now,
    )


def test_dispatch_retries_then_gives_up():
    sink = RecordingNotificationSink(failing={"approved"})
    request = created_request()

    assert run(dispatch_notification(sink.rdq_approved, request)) is False
    assert sink.events == [("approved", request.id)] * 3
    assert run(dispatch_notification(sink.rdq_created, request)) is True


def test_background_sink_defers_delivery():
    sink = RecordingNotificationSink()
    queued = []
    background = BackgroundNotificationSink(sink, lambda *task: queued.append(task))
    request = created_request()

    run(background.rdq_submitted(request))

    assert sink.events == []
    send, target, queued_request = queued[0]
    assert send is dispatch_notification
    assert queued_request is request

    assert run(send(target, queued_request)) is True
    assert sink.events == [("submitted", request.id)]
