"""Seed the database with sample listings, visiting hours, stays and visits.

Stays and visits are created through the booking and reservation services,
so the materialized unavailable days and slot checks are exactly what the
API would produce.

Run from the backend directory:
    python -m scripts.seed_data
"""

import asyncio
import sys
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from pathlib import Path

# Add backend to path so imports work when run as a script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy import delete, select

from app.auth.passwords import hash_password
from app.database import async_session_factory, engine
from app.errors import BookingError
from app.models.availability import WeeklyAvailability
from app.models.booking import Booking
from app.models.property import Property
from app.models.reservation import Reservation
from app.models.unavailable_date import UnavailableDate
from app.models.user import User
from app.schemas.booking import BookingCreate
from app.schemas.reservation import ReservationCreate
from app.services import booking_service, reservation_service
from app.services.availability import CONFIRMED, PENDING, Weekday

# ---------------------------------------------------------------------------
# Seed data definitions
# ---------------------------------------------------------------------------

DEMO_ADMIN = {
    "email": "admin@immobooking.dev",
    "password": "admin1234",
    "name": "Demo Administrator",
}

PROPERTIES = [
    {
        "title": "Chalet du Lac",
        "listing_type": "short_term_rental",
        "price": Decimal("185.00"),
        "location": "Talloires, Haute-Savoie",
        "bedrooms": 3,
        "area": 110,
        "description": "Wooden chalet above the lake, private jetty and mountain views.",
        "features": ["lake_view", "fireplace", "parking", "wifi"],
    },
    {
        "title": "Studio Vieux Port",
        "listing_type": "short_term_rental",
        "price": Decimal("95.00"),
        "location": "Marseille",
        "bedrooms": 1,
        "area": 32,
        "description": "Bright studio two minutes from the harbour.",
        "features": ["balcony", "ac", "wifi"],
    },
    {
        "title": "Appartement Haussmannien",
        "listing_type": "sale",
        "price": Decimal("1150000.00"),
        "location": "Paris 8e",
        "bedrooms": 4,
        "area": 142,
        "description": "Third floor with balcony, mouldings and parquet floors.",
        "features": ["lift", "cellar", "balcony"],
    },
    {
        "title": "Maison de Village",
        "listing_type": "sale",
        "price": Decimal("348000.00"),
        "location": "Uzès",
        "bedrooms": 3,
        "area": 120,
        "description": "Stone house with a walled courtyard in the historic centre.",
        "features": ["courtyard", "terrace"],
    },
    {
        "title": "T3 Confluence",
        "listing_type": "long_term_rental",
        "price": Decimal("1290.00"),
        "location": "Lyon",
        "bedrooms": 2,
        "area": 68,
        "description": "Unfurnished flat in a recent building, available from next month.",
        "features": ["lift", "parking", "balcony"],
    },
]

# Mornings and afternoons on weekdays, Saturday mornings.
WEEKLY_HOURS = [
    *[(day, time(9), time(12)) for day in (Weekday.MONDAY, Weekday.TUESDAY, Weekday.WEDNESDAY, Weekday.THURSDAY)],
    *[(day, time(14), time(18)) for day in (Weekday.MONDAY, Weekday.TUESDAY, Weekday.WEDNESDAY, Weekday.THURSDAY)],
    (Weekday.FRIDAY, time(9), time(12)),
    (Weekday.SATURDAY, time(10), time(12)),
]

CLIENTS = [
    ("Léa Moreau", "lea.moreau@example.com", "+33612345678"),
    ("Thomas Girard", "thomas.girard@example.com", "+33687654321"),
    ("Sofia Rossi", "sofia.rossi@example.com", "+393331234567"),
    ("Noah Weber", "noah.weber@example.com", "+4915112345678"),
]


def _next_weekday(today: date, weekday: int, weeks_ahead: int = 1) -> date:
    return today + timedelta(days=(weekday - today.weekday()) % 7 + 7 * weeks_ahead)


# ---------------------------------------------------------------------------
# Main seed function
# ---------------------------------------------------------------------------


async def _reset(session) -> None:
    """Remove previously seeded data so the script can be re-run."""
    await session.execute(delete(Reservation))
    await session.execute(delete(UnavailableDate))
    await session.execute(delete(Booking))
    await session.execute(delete(WeeklyAvailability))
    await session.execute(delete(Property))
    await session.execute(delete(User).where(User.email == DEMO_ADMIN["email"]))
    await session.flush()


async def seed() -> None:
    """Populate the database with sample listings, visiting hours, stays and visits.

    Idempotent: existing listings, commitments and the demo administrator are
    deleted and re-created.
    """
    async with async_session_factory() as session:
        existing = (await session.execute(select(User).where(User.email == DEMO_ADMIN["email"]))).scalar_one_or_none()
        if existing is not None:
            print(f"⚠️  Demo administrator '{DEMO_ADMIN['email']}' already exists. Deleting and re-seeding...")
        await _reset(session)

        # ------------------------------------------------------------------
        # 1. Administrator
        # ------------------------------------------------------------------
        admin = User(
            email=DEMO_ADMIN["email"],
            hashed_password=hash_password(DEMO_ADMIN["password"]),
            name=DEMO_ADMIN["name"],
            is_active=True,
            role="admin",
        )
        session.add(admin)
        await session.flush()
        print(f"✅ Created administrator: {admin.email} (id={admin.id})")

        # ------------------------------------------------------------------
        # 2. Properties
        # ------------------------------------------------------------------
        created: list[Property] = []
        for data in PROPERTIES:
            prop = Property(**data, images=[])
            session.add(prop)
            await session.flush()
            created.append(prop)
            print(f"   🏠 {prop.title} — {prop.location} ({prop.listing_type})")

        # ------------------------------------------------------------------
        # 3. Weekly visiting hours
        # ------------------------------------------------------------------
        for day, start, end in WEEKLY_HOURS:
            session.add(WeeklyAvailability(day_of_week=day, start_time=start, end_time=end, is_active=True))

        await session.commit()
        admin_id = admin.id

    print(f"✅ Created {len(created)} properties and {len(WEEKLY_HOURS)} visiting-hour windows")

    by_title = {p.title: p for p in created}
    today = date.today()

    # ------------------------------------------------------------------
    # 4. Stays (through the booking service)
    # ------------------------------------------------------------------
    stays = [
        ("Chalet du Lac", 10, 4, CONFIRMED),
        ("Chalet du Lac", 20, 6, None),
        ("Studio Vieux Port", 5, 2, CONFIRMED),
        ("Studio Vieux Port", 12, 3, None),
    ]
    booking_count = 0
    for i, (title, offset, nights, status) in enumerate(stays):
        name, email, phone = CLIENTS[i % len(CLIENTS)]
        prop = by_title[title]
        start = today + timedelta(days=offset)
        request = BookingCreate(
            property_id=prop.id,
            client_name=name,
            client_email=email,
            client_phone=phone,
            start_date=start,
            end_date=start + timedelta(days=nights - 1),
            guests=2,
            total_price=prop.price * nights,
        )
        try:
            booking = await booking_service.book_property(async_session_factory, request)
            if status is not None:
                await booking_service.update_booking_status(async_session_factory, booking.id, status)
            booking_count += 1
        except BookingError as exc:
            print(f"   ⚠️  Skipped stay at {title}: {exc.detail}")

    await booking_service.block_date(
        async_session_factory, by_title["Chalet du Lac"].id, today + timedelta(days=40), reason="Maintenance"
    )
    print(f"✅ Created {booking_count} stays")

    # ------------------------------------------------------------------
    # 5. Visits (through the reservation service)
    # ------------------------------------------------------------------
    monday = _next_weekday(today, 0)
    visits = [
        ("Appartement Haussmannien", datetime.combine(monday, time(9)), CONFIRMED),
        ("Appartement Haussmannien", datetime.combine(monday, time(10)), None),
        ("Maison de Village", datetime.combine(monday + timedelta(days=1), time(14)), None),
        ("T3 Confluence", datetime.combine(monday + timedelta(days=5), time(10)), CONFIRMED),
    ]
    reservation_count = 0
    for i, (title, meeting, status) in enumerate(visits):
        name, email, phone = CLIENTS[(i + 1) % len(CLIENTS)]
        request = ReservationCreate(
            property_id=by_title[title].id,
            client_name=name,
            client_email=email,
            client_phone=phone,
            meeting_date=meeting,
        )
        try:
            await reservation_service.reserve_slot(
                async_session_factory,
                request,
                status=status or PENDING,
                created_by_id=admin_id if status else None,
            )
            reservation_count += 1
        except BookingError as exc:
            print(f"   ⚠️  Skipped visit at {title}: {exc.detail}")

    await booking_service.block_date(async_session_factory, None, monday + timedelta(days=3), reason="Agency closed")
    print(f"✅ Created {reservation_count} visits")

    await engine.dispose()

    print()
    print("=" * 60)
    print("📊 Seed Summary")
    print("=" * 60)
    print(f"   Administrator: 1 ({DEMO_ADMIN['email']} / {DEMO_ADMIN['password']})")
    print(f"   Properties:    {len(created)}")
    print(f"   Stays:         {booking_count}")
    print(f"   Visits:        {reservation_count}")
    print("=" * 60)
    print("🎉 Done! You can now log in at /api/v1/auth/login")


if __name__ == "__main__":
    asyncio.run(seed())
