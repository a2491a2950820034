"""
Tests for the registration lifecycle manager
"""
import asyncio

import pytest

from app.core.exceptions import (
    AttachmentNotFoundError,
    DuplicateRegistrationError,
    InvalidStatusError,
    RegistrationNotFoundError,
    StorageError,
)
from app.models import InlineAttachment, ValidatedSubmission
from app.services.registration_manager import (
    RegistrationManager,
    compute_entry_fee,
    format_sequential_id,
    public_view,
)
from app.services.storage import InMemoryRegistrationStore


def run(coro):
    return asyncio.run(coro)


class FixedClock:
    """Returns predictable, increasing timestamps"""

    def __init__(self):
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return f"2025-01-01T00:00:{self.calls:02d}.000Z"


def make_submission(team_size=2, team_name="Alpha"):
    participants = [
        {"name": f"P{i}", "email": f"p{i}@x.com", "phone": "1", "college": "C", "departmentYear": "CS-3"}
        for i in range(team_size)
    ]
    return ValidatedSubmission(
        team_name=team_name,
        team_size=team_size,
        participants=participants,
        portfolio_url="http://p",
    )


@pytest.fixture
def store():
    return InMemoryRegistrationStore()


@pytest.fixture
def manager(store):
    return RegistrationManager(store, clock=FixedClock())


def test_entry_fee():
    assert [compute_entry_fee(n) for n in (1, 2, 3)] == [50, 100, 150]


def test_sequential_id_format():
    assert format_sequential_id(1) == "REG-0001"
    assert format_sequential_id(42) == "REG-0042"
    assert format_sequential_id(12345) == "REG-12345"


@pytest.mark.parametrize("size", [1, 2, 3])
def test_create_record(manager, size):
    """New record gets id, fee, pending status and timestamp"""
    record = run(manager.create(make_submission(size), "paymentScreenshot-1-2.jpg"))
    assert record["id"] == "REG-0001"
    assert record["teamSize"] == size
    assert record["entryFee"] == size * 50
    assert record["status"] == "pending"
    assert record["emailSent"] is False
    assert record["registrationDate"] == "2025-01-01T00:00:01.000Z"
    assert record["paymentScreenshot"] == "paymentScreenshot-1-2.jpg"
    assert "updatedAt" not in record


def test_sequential_ids_are_unique(manager):
    ids = [run(manager.create(make_submission(1), "f.png"))["id"] for _ in range(5)]
    assert ids == ["REG-0001", "REG-0002", "REG-0003", "REG-0004", "REG-0005"]


def test_random_ids_are_unique(store):
    manager = RegistrationManager(store, id_policy="random")
    ids = {run(manager.create(make_submission(1), "f.png"))["id"] for _ in range(20)}
    assert len(ids) == 20
    assert all(len(i) == 32 for i in ids)


def test_unknown_id_policy(store):
    with pytest.raises(ValueError):
        RegistrationManager(store, id_policy="counter")


def test_create_then_get_round_trip(manager):
    """Fetched record matches what was submitted"""
    submission = make_submission(3, team_name="Gamma")
    created = run(manager.create(submission, "f.pdf"))
    fetched = run(manager.get_by_id(created["id"]))
    assert fetched["teamName"] == "Gamma"
    assert fetched["teamSize"] == 3
    assert fetched["portfolioUrl"] == "http://p"
    assert fetched["entryFee"] == 150
    assert fetched["participants"] == submission.participants


def test_create_reslices_participants(manager):
    """Only team_size participants are stored"""
    submission = make_submission(2)
    submission.participants.append({"name": "Extra"})
    record = run(manager.create(submission, "f.png"))
    assert [p["name"] for p in record["participants"]] == ["P0", "P1"]


def test_create_duplicate_id_is_storage_error(store):
    """A rejected write surfaces as a storage error"""
    manager = RegistrationManager(store)
    run(manager.create(make_submission(1), "f.png"))
    store._counters["registration_id"] = 0
    with pytest.raises(StorageError) as exc:
        run(manager.create(make_submission(1), "f.png"))
    assert exc.value.status_code == 500
    assert not isinstance(exc.value, DuplicateRegistrationError)
    assert len(run(manager.get_all())) == 1


def test_get_all_in_store_order(manager):
    for name in ("A", "B", "C"):
        run(manager.create(make_submission(1, team_name=name), "f.png"))
    assert [r["teamName"] for r in run(manager.get_all())] == ["A", "B", "C"]


def test_get_all_empty(manager):
    assert run(manager.get_all()) == []


def test_get_by_id_not_found(manager):
    with pytest.raises(RegistrationNotFoundError) as exc:
        run(manager.get_by_id("REG-9999"))
    assert exc.value.status_code == 404


def test_update_status(manager):
    created = run(manager.create(make_submission(1), "f.png"))
    updated = run(manager.update_status(created["id"], "approved"))
    assert updated["status"] == "approved"
    assert updated["updatedAt"] == "2025-01-01T00:00:02.000Z"
    assert run(manager.get_by_id(created["id"]))["status"] == "approved"


def test_update_status_idempotent(manager):
    """Repeating the same update gives the same end state"""
    created = run(manager.create(make_submission(1), "f.png"))
    first = run(manager.update_status(created["id"], "approved"))
    second = run(manager.update_status(created["id"], "approved"))
    first.pop("updatedAt")
    second.pop("updatedAt")
    assert first == second


def test_update_status_not_found_does_not_write(manager, store):
    run(manager.create(make_submission(1), "f.png"))
    before = run(store.find_all())
    with pytest.raises(RegistrationNotFoundError):
        run(manager.update_status("REG-0404", "approved"))
    assert run(store.find_all()) == before


@pytest.mark.parametrize("status", ["", None, "archived", 3])
def test_update_status_rejects_unknown_values(manager, status):
    created = run(manager.create(make_submission(1), "f.png"))
    with pytest.raises(InvalidStatusError) as exc:
        run(manager.update_status(created["id"], status))
    assert exc.value.status_code == 400
    assert run(manager.get_by_id(created["id"]))["status"] == "pending"


def test_update_status_normalizes_case(manager):
    created = run(manager.create(make_submission(1), "f.png"))
    assert run(manager.update_status(created["id"], " Rejected "))["status"] == "rejected"


def test_inline_attachment_hidden_from_listing(manager):
    """Inline bytes are replaced by a descriptor in read responses"""
    attachment = InlineAttachment(data=b"\x89PNG....", content_type="image/png", filename="pay.png", size=8)
    created = run(manager.create(make_submission(1), attachment))
    expected = {"filename": "pay.png", "contentType": "image/png", "size": 8, "inline": True}
    assert created["paymentScreenshot"] == expected
    assert run(manager.get_all())[0]["paymentScreenshot"] == expected
    assert run(manager.get_by_id(created["id"]))["paymentScreenshot"] == expected


def test_fetch_payment_attachment(manager):
    attachment = InlineAttachment(data=b"%PDF-1.4", content_type="application/pdf", filename="pay.pdf", size=8)
    created = run(manager.create(make_submission(1), attachment))
    data, media_type = run(manager.fetch_payment_attachment(created["id"]))
    assert data == b"%PDF-1.4"
    assert media_type == "application/pdf"


def test_fetch_payment_attachment_disk_mode(manager):
    """Files stored on disk are not served through this operation"""
    created = run(manager.create(make_submission(1), "paymentScreenshot-1-2.png"))
    with pytest.raises(AttachmentNotFoundError):
        run(manager.fetch_payment_attachment(created["id"]))


def test_fetch_payment_attachment_missing_record(manager):
    with pytest.raises(AttachmentNotFoundError) as exc:
        run(manager.fetch_payment_attachment("REG-0404"))
    assert exc.value.status_code == 404


def test_public_view_strips_mongo_id():
    assert public_view({"_id": "abc", "id": "REG-0001"}) == {"id": "REG-0001"}


def test_round_trip_keeps_participants_as_sent(manager):
    """Extra keys and non-string values on members come back unchanged"""
    submission = make_submission(2)
    submission.participants[0]["github"] = "gh-lead"
    submission.participants[1] = {"name": "B", "phone": True, "github": "gh-b"}
    created = run(manager.create(submission, "f.png"))
    fetched = run(manager.get_by_id(created["id"]))
    assert fetched["participants"][0]["github"] == "gh-lead"
    assert fetched["participants"][1] == {"name": "B", "phone": True, "github": "gh-b"}


@pytest.mark.parametrize("status", ["approved", "archived", None])
def test_update_status_unknown_id_is_not_found_for_any_status(manager, status):
    """An unknown id is reported as not found whatever the status value"""
    with pytest.raises(RegistrationNotFoundError):
        run(manager.update_status("REG-0404", status))
