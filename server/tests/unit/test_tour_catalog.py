"""Unit tests for the tour catalog service."""

from datetime import timedelta
from decimal import Decimal

import pytest

from tourdesk.core.clock import today, utcnow
from tourdesk.core.exceptions import GatewayError, NotFoundError, PartialFailureError, ValidationError
from tourdesk.gateway import Table, eq
from tourdesk.models.booking import BookingStatus
from tourdesk.models.tour import TourType
from tourdesk.schemas.tour import Feature, TourDraft, UpdateTourRequest
from tourdesk.services.tour_catalog import TourCatalogService, add_feature, toggle_feature, validate_draft

from conftest import CUSTOMER_ID, FaultyGateway


def _draft(**overrides):
    values = {
        "title": "Oslob Whale Shark Encounter",
        "price": Decimal("1000"),
        "duration": "10 hours",
        "image": "https://images.example.com/oslob.jpg",
        "location": "Oslob",
    }
    values.update(overrides)
    return TourDraft(**values)


@pytest.fixture
def catalog(gateway):
    return TourCatalogService(gateway)


def test_validate_draft_trims_text_fields():
    values = validate_draft(_draft(title="  Oslob  ", duration=" 10 hours ", location=" Oslob "))

    assert values["title"] == "Oslob"
    assert values["duration"] == "10 hours"
    assert values["location"] == "Oslob"


@pytest.mark.parametrize(
    "overrides,field",
    [
        ({"title": "   "}, "title"),
        ({"price": None}, "price"),
        ({"price": Decimal("0")}, "price"),
        ({"price": Decimal("-5")}, "price"),
        ({"duration": ""}, "duration"),
        ({"location": " "}, "location"),
        ({"image": None}, "image"),
        ({"sub_images": [f"https://images.example.com/{i}.jpg" for i in range(6)]}, "sub_images"),
        ({"features": [Feature(text="Lunch"), Feature(text=" lunch ")]}, "features"),
        ({"features": [Feature(text="  ")]}, "features"),
    ],
)
def test_validate_draft_rejects(overrides, field):
    with pytest.raises(ValidationError) as exc_info:
        validate_draft(_draft(**overrides))

    assert field in exc_info.value.problem_details["errors"]


def test_validate_draft_reports_every_failed_field():
    with pytest.raises(ValidationError) as exc_info:
        validate_draft(TourDraft())

    assert set(exc_info.value.problem_details["errors"]) == {"title", "price", "duration", "location", "image"}


def test_add_feature_appends_available_entry():
    features = add_feature([Feature(text="Hotel pickup")], "  Snorkeling gear ")

    assert features[-1] == Feature(text="Snorkeling gear", available=True)
    assert len(features) == 2


@pytest.mark.parametrize("text", ["", "   ", "hotel PICKUP", " Hotel pickup "])
def test_add_feature_rejects_blank_and_duplicates(text):
    with pytest.raises(ValidationError):
        add_feature([Feature(text="Hotel pickup")], text)


def test_toggle_feature():
    original = [Feature(text="Lunch", available=True), Feature(text="Guide", available=True)]

    toggled = toggle_feature(original, 0)

    assert toggled[0].available is False
    assert toggled[1].available is True
    assert original[0].available is True

    with pytest.raises(ValidationError):
        toggle_feature(original, 2)


@pytest.mark.asyncio
async def test_invalid_draft_makes_no_gateway_call(make_faulty_gateway):
    faulty = make_faulty_gateway()
    catalog = TourCatalogService(faulty)

    with pytest.raises(ValidationError):
        await catalog.create_tour(_draft(title=""))

    assert faulty.calls == []


@pytest.mark.asyncio
async def test_create_update_and_get(catalog):
    tour = await catalog.create_tour(_draft(features=[Feature(text="Lunch")], type=TourType.COMBO))

    assert tour.price == Decimal("1000")
    assert tour.features == [Feature(text="Lunch", available=True)]
    assert tour.type == TourType.COMBO

    updated = await catalog.update_tour(
        UpdateTourRequest(tour_id=tour.id, **_draft(title="Oslob Sunrise", available=False).model_dump())
    )
    assert updated.title == "Oslob Sunrise"
    assert updated.available is False

    fetched = await catalog.get_tour(tour.id)
    assert fetched == updated


@pytest.mark.asyncio
async def test_search_matches_title_or_location(catalog, make_tour):
    await make_tour(title="Oslob Whale Shark Encounter", location="Oslob")
    await make_tour(title="Heritage Walk", location="Cebu City")
    await make_tour(title="Cebu Food Crawl", location="Mandaue")

    titles = {tour.title for tour in await catalog.search_tours("cebu")}
    assert titles == {"Heritage Walk", "Cebu Food Crawl"}
    assert len(await catalog.search_tours("")) == 3


@pytest.mark.asyncio
async def test_featured_tours(catalog, make_tour):
    now = utcnow()
    for days in range(4):
        await make_tour(title=f"Combo {days}", type=TourType.COMBO, created_at=now - timedelta(days=days))
    await make_tour(title="Closed combo", type=TourType.COMBO, available=False, created_at=now)
    await make_tour(title="Regular", type=TourType.REGULAR, created_at=now)

    featured = await catalog.featured_tours(TourType.COMBO)

    assert [tour.title for tour in featured] == ["Combo 0", "Combo 1", "Combo 2"]


@pytest.mark.asyncio
async def test_delete_tour_archives_bookings(catalog, gateway, tour, make_booking):
    bookings = [
        await make_booking(tour),
        await make_booking(tour, status=BookingStatus.CONFIRMED),
        await make_booking(tour, status=BookingStatus.COMPLETED),
    ]

    result = await catalog.delete_tour(tour.id)

    assert result.archived_bookings == 3
    assert await gateway.list(Table.BOOKINGS, [eq("tour_id", tour.id)]) == []
    backups = await gateway.list(Table.BOOKINGS_BACKUP, [eq("tour_id", tour.id)])
    assert {backup.id for backup in backups} == {booking.id for booking in bookings}
    assert {backup.status for backup in backups} == {booking.status for booking in bookings}
    with pytest.raises(NotFoundError):
        await gateway.get(Table.TOURS, tour.id)


@pytest.mark.asyncio
async def test_delete_tour_without_bookings(catalog, gateway, tour):
    result = await catalog.delete_tour(tour.id)

    assert result.archived_bookings == 0
    assert await gateway.list(Table.BOOKINGS_BACKUP) == []


@pytest.mark.asyncio
async def test_delete_unknown_tour(catalog):
    from uuid import uuid4

    with pytest.raises(NotFoundError):
        await catalog.delete_tour(uuid4())


async def _assert_untouched(gateway, tour, bookings):
    assert await gateway.get(Table.TOURS, tour.id) == tour
    remaining = await gateway.list(Table.BOOKINGS, [eq("tour_id", tour.id)])
    assert {booking.id for booking in remaining} == {booking.id for booking in bookings}
    assert await gateway.list(Table.BOOKINGS_BACKUP) == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "fault,failed_step",
    [
        (("insert_many", Table.BOOKINGS_BACKUP), "archive_bookings"),
        (("delete_where", Table.BOOKINGS), "delete_bookings"),
        (("delete", Table.TOURS), "delete_tour"),
    ],
)
async def test_delete_tour_is_all_or_nothing(gateway, make_faulty_gateway, tour, make_booking, fault, failed_step):
    bookings = [await make_booking(tour), await make_booking(tour, status=BookingStatus.CONFIRMED)]
    catalog = TourCatalogService(make_faulty_gateway(fault))

    with pytest.raises(PartialFailureError) as exc_info:
        await catalog.delete_tour(tour.id)

    assert exc_info.value.failed_step == failed_step
    assert exc_info.value.status_code == 500
    await _assert_untouched(gateway, tour, bookings)


@pytest.mark.asyncio
async def test_delete_tour_failure_before_bookings_deleted_never_deletes_tour(
    make_faulty_gateway, tour, make_booking
):
    await make_booking(tour)
    faulty = make_faulty_gateway(("delete_where", Table.BOOKINGS))

    with pytest.raises(PartialFailureError):
        await TourCatalogService(faulty).delete_tour(tour.id)

    assert ("delete", Table.TOURS) not in faulty.calls


@pytest.mark.asyncio
async def test_delete_tour_read_failure_surfaces_gateway_error(gateway, make_faulty_gateway, tour, make_booking):
    booking = await make_booking(tour)
    catalog = TourCatalogService(make_faulty_gateway(("list", Table.BOOKINGS)))

    with pytest.raises(GatewayError):
        await catalog.delete_tour(tour.id)

    await _assert_untouched(gateway, tour, [booking])


class LateBookingGateway(FaultyGateway):
    """Adds one more booking to the tour as soon as the existing ones are archived."""

    def __init__(self, inner, late_booking):
        super().__init__(inner, set())
        self.late_booking = late_booking
        self.late = None

    async def insert_many(self, table, rows):
        stored = await super().insert_many(table, rows)
        if table is Table.BOOKINGS_BACKUP and self.late is None:
            self.late = await self.inner.insert(Table.BOOKINGS, self.late_booking)
        return stored


@pytest.mark.asyncio
async def test_delete_tour_never_drops_booking_added_after_read(gateway, tour, make_booking):
    archived = await make_booking(tour)
    racing = LateBookingGateway(gateway, {
        "user_id": CUSTOMER_ID,
        "tour_id": tour.id,
        "booking_date": today() + timedelta(days=20),
        "number_of_people": 2,
        "total_price": Decimal("2000"),
        "status": BookingStatus.PENDING,
    })

    with pytest.raises(PartialFailureError) as exc_info:
        await TourCatalogService(racing).delete_tour(tour.id)

    assert exc_info.value.failed_step == "delete_tour"
    assert exc_info.value.problem_details["compensated"] is True
    await _assert_untouched(gateway, tour, [archived, racing.late])
