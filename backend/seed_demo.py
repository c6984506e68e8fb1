"""Seed script to populate the database with demo data."""
import asyncio
import random

from sqlalchemy import select

from lifeline.database import AsyncSessionLocal, close_db, init_db
from lifeline.models.account import Account, AccountRole
from lifeline.models.helper import Helper
from lifeline.models.location import LocationProvider, PlaceType
from lifeline.models.user import User
from lifeline.services.auth import create_access_token
from lifeline.services.identity import OwnerRef
from lifeline.services.locations import LocationStore

# Demo helpers around New Delhi (lat, lng)
DEMO_HELPERS = [
    {"name": "Dr. Asha Mehta", "email": "asha@lifeline.org", "phone": "+919810000001", "profession": "Cardiologist", "degree": "MD", "lat": 28.6139, "lng": 77.2090, "verified": True, "available": True},
    {"name": "Ravi Kumar", "email": "ravi@lifeline.org", "phone": "+919810000002", "profession": "Paramedic", "degree": "EMT-B", "lat": 28.6280, "lng": 77.2197, "verified": True, "available": True},
    {"name": "Nisha Verma", "email": "nisha@lifeline.org", "phone": "+919810000003", "profession": "Nurse", "degree": "BSc Nursing", "lat": 28.5921, "lng": 77.2290, "verified": True, "available": False},
    {"name": "Arjun Singh", "email": "arjun@lifeline.org", "phone": "+919810000004", "profession": "First Responder", "degree": None, "lat": 28.6448, "lng": 77.1900, "verified": False, "available": True},
    {"name": "Dr. Kabir Rao", "email": "kabir@lifeline.org", "phone": "+919810000005", "profession": "General Physician", "degree": "MBBS", "lat": 28.5355, "lng": 77.3910, "verified": True, "available": True},
]

DEMO_USERS = [
    {"name": "Priya Sharma", "email": "priya@lifeline.org", "phone": "+919820000001", "blood_group": "B+", "lat": 28.6129, "lng": 77.2295},
    {"name": "Aman Gupta", "email": "aman@lifeline.org", "phone": "+919820000002", "blood_group": "O-", "lat": 28.6304, "lng": 77.2177},
]

# Relief centers and hospitals, owned by the first demo user's saved places
DEMO_PLACES = [
    {"address": "AIIMS, Ansari Nagar", "place_type": PlaceType.HOSPITAL, "lat": 28.5672, "lng": 77.2100, "city": "New Delhi"},
    {"address": "Goonj Relief Center, Sarita Vihar", "place_type": PlaceType.NGO, "lat": 28.5310, "lng": 77.2890, "city": "New Delhi"},
]


async def seed_database():
    """Seed the database with demo data."""
    print("Initializing database...")
    await init_db()

    async with AsyncSessionLocal() as session:
        # Check if already seeded
        existing = await session.execute(
            select(Account.id).where(Account.email == DEMO_HELPERS[0]["email"])
        )
        if existing.first():
            print("Database already seeded. Skipping...")
            return

        store = LocationStore(session)
        tokens = []

        print("Creating demo helpers...")
        for h in DEMO_HELPERS:
            helper = Helper(
                profession=h["profession"],
                degree=h["degree"],
                is_verified=h["verified"],
                is_available=h["available"],
                rating=round(random.uniform(3.5, 5.0), 1),
                response_rate=random.choice([92, 95, 98, 100]),
            )
            session.add(helper)
            await session.flush()

            account = Account(
                name=h["name"],
                email=h["email"],
                phone_number=h["phone"],
                role=AccountRole.HELPER,
                helper_id=helper.id,
                is_verified=True,
            )
            session.add(account)
            await session.flush()

            await store.create_location(
                OwnerRef.for_helper(helper.id),
                [h["lng"], h["lat"]],
                "Duty location",
                place_type=PlaceType.WORK,
                metadata={"city": "New Delhi", "provider": LocationProvider.GPS, "accuracy": 10.0},
            )
            tokens.append((h["email"], create_access_token(account.id, AccountRole.HELPER.value)))
        print(f"  Created {len(DEMO_HELPERS)} helpers")

        print("Creating demo users...")
        owners = []
        for u in DEMO_USERS:
            user = User(blood_group=u["blood_group"])
            session.add(user)
            await session.flush()

            account = Account(
                name=u["name"],
                email=u["email"],
                phone_number=u["phone"],
                role=AccountRole.USER,
                user_id=user.id,
            )
            session.add(account)
            await session.flush()

            await store.update_current_location(
                account.id,
                [u["lng"], u["lat"]],
                accuracy=random.uniform(5, 20),
                provider=LocationProvider.GPS,
            )
            owners.append(OwnerRef.for_user(user.id))
            tokens.append((u["email"], create_access_token(account.id, AccountRole.USER.value)))
        print(f"  Created {len(DEMO_USERS)} users")

        print("Creating relief centers...")
        for p in DEMO_PLACES:
            location = await store.create_location(
                owners[0],
                [p["lng"], p["lat"]],
                p["address"],
                place_type=p["place_type"],
                metadata={"city": p["city"]},
            )
            await store.verify(location)
        print(f"  Created {len(DEMO_PLACES)} places")

        await session.commit()

    print("\nDemo data seeded successfully!")
    print("\nAccess tokens (valid for the configured expiry):")
    for email, token in tokens:
        print(f"  {email}: {token}")


async def main():
    try:
        await seed_database()
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
