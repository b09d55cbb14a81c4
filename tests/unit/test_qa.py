import pytest

from garage.db import crud
from garage.errors import InvalidPhotoCount, NotReadyForQA, PermissionDenied, ValidationError
from garage.models import WorkOrder
from garage.services import lifecycle, qa
from tests.factories import finish_stages, make_ctx, make_technician, make_variation, make_work_order, upload_photos

PHOTOS = ["qa_photo/front.jpg", "qa_photo/rear.jpg", "qa_photo/engine.jpg"]


async def _submitted(db, admin):
    variation = await make_variation(db, admin)
    wo = await make_work_order(db, admin, [variation])
    tech = await make_technician(db)
    await finish_stages(db, admin, wo.id, tech.id)
    await lifecycle.submit_for_qa(db, admin, wo.id)
    return wo


def test_validate_photos_counts():
    assert qa.validate_photos(PHOTOS) == PHOTOS
    assert len(qa.validate_photos(PHOTOS + ["a.jpg", "b.jpg"])) == 5
    for photos in (PHOTOS[:2], PHOTOS + ["a.jpg", "b.jpg", "c.jpg"], [], None):
        with pytest.raises(InvalidPhotoCount):
            qa.validate_photos(photos)


def test_validate_photos_rejects_blank_and_duplicate_locations():
    with pytest.raises(ValidationError):
        qa.validate_photos(["a.jpg", " ", "c.jpg"])
    with pytest.raises(ValidationError):
        qa.validate_photos(["a.jpg", "a.jpg", "c.jpg"])


def test_validate_photos_requires_a_list_of_strings():
    for photos in (tuple(PHOTOS), "qa_photo/front.jpg", {"front": PHOTOS[0]}):
        with pytest.raises(ValidationError) as exc:
            qa.validate_photos(photos)
        assert not isinstance(exc.value, InvalidPhotoCount)
    with pytest.raises(ValidationError):
        qa.validate_photos(["qa_photo/front.jpg", 7, "qa_photo/rear.jpg"])


@pytest.mark.parametrize("count", [2, 6])
async def test_wrong_photo_count_leaves_work_order_pending_qa(db, admin, count):
    wo = await _submitted(db, admin)
    wo_id = wo.id
    photos = [f"qa_photo/{i}.jpg" for i in range(count)]

    with pytest.raises(InvalidPhotoCount):
        await qa.approve(db, admin, wo_id, photos)

    wo = await db.get(WorkOrder, wo_id)
    assert wo.status == "pending_qa"
    assert (await crud.get_pending_qa(db, wo_id)).decision == "pending"


async def test_approve_with_three_photos_completes(db, admin):
    wo = await _submitted(db, admin)
    photos = await upload_photos()
    verification = await qa.approve(db, admin, wo.id, photos, comments="Clean job")
    assert verification.decision == "approved"
    assert verification.photos == photos
    assert verification.reviewer_id == admin.user_id
    assert wo.status == "completed"


async def test_approve_rejects_photos_that_were_never_uploaded(db, admin):
    wo = await _submitted(db, admin)
    wo_id = wo.id
    photos = (await upload_photos(2)) + ["qa_photo/never-stored.jpg"]

    with pytest.raises(ValidationError, match="never-stored"):
        await qa.approve(db, admin, wo_id, photos)

    wo = await db.get(WorkOrder, wo_id)
    assert wo.status == "pending_qa"
    assert (await crud.get_pending_qa(db, wo_id)).decision == "pending"


async def test_approve_rejects_files_outside_the_photo_area(db, admin):
    wo = await _submitted(db, admin)
    wo_id = wo.id
    photos = await upload_photos(2)
    receipt = (await upload_photos(1, category="receipt"))[0]

    for stray in (receipt, f"qa_photo/../{receipt}", "../../etc/passwd"):
        with pytest.raises(ValidationError):
            await qa.approve(db, admin, wo_id, photos + [stray])

    wo = await db.get(WorkOrder, wo_id)
    assert wo.status == "pending_qa"


async def test_approve_requires_pending_qa(db, admin):
    variation = await make_variation(db, admin)
    wo = await make_work_order(db, admin, [variation])
    with pytest.raises(NotReadyForQA):
        await qa.approve(db, admin, wo.id, await upload_photos())


async def test_technician_cannot_review(db, admin):
    wo = await _submitted(db, admin)
    with pytest.raises(PermissionDenied):
        await qa.approve(db, make_ctx("technician"), wo.id, await upload_photos())


async def test_reject_sends_work_back(db, admin):
    wo = await _submitted(db, admin)
    verification = await qa.reject(db, admin, wo.id, "Oil level low")
    assert verification.decision == "rejected"
    assert wo.status == "in_progress"
    stages = await crud.list_stages(db, wo.id)
    assert not any(s.ready_for_qa for s in stages)

    # Resubmission opens a fresh verification
    await lifecycle.submit_for_qa(db, admin, wo.id)
    assert wo.status == "pending_qa"
    history = await crud.list_qa_verifications(db, wo.id)
    assert [v.decision for v in history] == ["rejected", "pending"]


async def test_reject_requires_reason(db, admin):
    wo = await _submitted(db, admin)
    with pytest.raises(ValidationError):
        await qa.reject(db, admin, wo.id, "  ")
