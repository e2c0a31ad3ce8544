"""
Seed Demo Data

Creates a demo campus so the portal can be tried end to end:
- admin / coordinator accounts (one each)
- two teachers, each with topics (approved and pending)
- six students, CS2024001 .. CS2024006

Every account uses the password demo1234.

Run with: python seed_demo_data.py
List with: python seed_demo_data.py list
"""
import asyncio
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from sqlalchemy import select

from app.core.database import AsyncSessionLocal, init_db
from app.models.topic import ProjectTopic
from app.models.user import User, UserRole
from app.schemas.auth import UserRegister
from app.schemas.topic import TopicCreate
from app.services.topic_registry import TopicRegistry
from app.services.user_directory import UserDirectory


DEMO_PASSWORD = "demo1234"

DEMO_USERS = [
    {"username": "admin", "first_name": "Portal", "last_name": "Admin", "role": UserRole.ADMIN},
    {"username": "coordinator", "first_name": "Meera", "last_name": "Iyer", "role": UserRole.COORDINATOR},
    {"username": "dr_rao", "first_name": "Suresh", "last_name": "Rao", "role": UserRole.TEACHER},
    {"username": "dr_khan", "first_name": "Farah", "last_name": "Khan", "role": UserRole.TEACHER},
] + [
    {
        "username": f"student{n}",
        "first_name": first,
        "last_name": last,
        "role": UserRole.STUDENT,
        "enrollment_number": f"CS202400{n}",
    }
    for n, (first, last) in enumerate(
        [("Aarav", "Shah"), ("Diya", "Nair"), ("Kabir", "Singh"),
         ("Ananya", "Gupta"), ("Rohan", "Das"), ("Isha", "Patel")],
        start=1,
    )
]

# (teacher username, approve?, topic)
DEMO_TOPICS = [
    ("dr_rao", True, {"title": "Smart Attendance System", "technology": "Python, OpenCV",
                      "project_type": "AI/ML", "estimated_complexity": "High",
                      "description": "Face recognition based classroom attendance"}),
    ("dr_rao", True, {"title": "Library Seat Booking", "technology": "React, FastAPI",
                      "project_type": "Web Application",
                      "description": "Reserve reading room seats by the hour"}),
    ("dr_khan", True, {"title": "Campus Bus Tracker", "technology": "Flutter, Firebase",
                       "project_type": "Mobile Application",
                       "description": "Live location of college buses"}),
    ("dr_khan", False, {"title": "Placement Analytics Dashboard", "technology": "Python, Pandas",
                        "project_type": "Data Science", "estimated_complexity": "Low",
                        "description": "Year-on-year placement statistics"}),
]


async def seed_demo_data():
    """Create demo accounts and topics; existing rows are left alone"""
    print("=" * 50)
    print("Seeding Demo Data...")
    print("=" * 50)

    # Initialize database
    await init_db()

    async with AsyncSessionLocal() as db:
        directory = UserDirectory(db)
        registry = TopicRegistry(db)
        accounts = {}
        created_users = 0

        for user_data in DEMO_USERS:
            username = user_data["username"]
            existing_user = await directory.get_by_username(username)
            if existing_user:
                accounts[username] = existing_user.id
                print(f"  Exists:  {username} ({user_data['role'].value})")
                continue

            user = await directory.register_user(UserRegister(
                email=f"{username}@campus.example.com",
                password=DEMO_PASSWORD,
                **user_data,
            ))
            accounts[username] = user.id
            created_users += 1
            print(f"  Created: {username} ({user_data['role'].value})")

        created_topics = 0
        for teacher_name, approve, topic_data in DEMO_TOPICS:
            result = await db.execute(
                select(ProjectTopic.id).where(ProjectTopic.title == topic_data["title"])
            )
            if result.first():
                print(f"  Exists:  topic '{topic_data['title']}'")
                continue

            topic = await registry.submit_topic(accounts[teacher_name], TopicCreate(**topic_data))
            if approve:
                await registry.approve_topic(topic.id, accounts["coordinator"], "Approved for this semester")
            created_topics += 1
            print(f"  Created: topic '{topic_data['title']}' ({'approved' if approve else 'pending'})")

        print("=" * 50)
        print("Demo Data Seeded Successfully!")
        print(f"  Users created:  {created_users}")
        print(f"  Topics created: {created_topics}")
        print("=" * 50)
        print(f"\nAll demo accounts use the password: {DEMO_PASSWORD}")


async def list_demo_users():
    """List all demo users in the database"""
    await init_db()

    async with AsyncSessionLocal() as db:
        usernames = [u["username"] for u in DEMO_USERS]

        result = await db.execute(
            select(User).where(User.username.in_(usernames)).order_by(User.id)
        )
        users = result.scalars().all()

        print("\nDemo Users in Database:")
        print("-" * 70)
        print(f"{'Username':<16} {'Role':<12} {'Enrollment':<12} {'Group':<8}")
        print("-" * 70)

        for user in users:
            print(
                f"{user.username:<16} {user.role.value:<12} "
                f"{user.enrollment_number or '-':<12} {str(user.group_id or '-'):<8}"
            )

        if not users:
            print("No demo users found. Run 'python seed_demo_data.py' to create them.")


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "list":
        asyncio.run(list_demo_users())
    else:
        asyncio.run(seed_demo_data())
