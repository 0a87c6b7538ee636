"""
JobBoard Database Seeder

Creates one account per role and a small set of listings:
- A company with a complete profile and three jobs (public, private, expired)
- A job seeker with a complete profile and one pending application
- A staff account
"""

from datetime import timedelta

from jobboard.db.session import SessionLocal, engine
from jobboard.db.base import Base, utcnow
from jobboard.models import Application, CompanyProfile, Job, Profile, Role, User
from jobboard.core.security import get_password_hash


def seed_database():
    """Seed the database with test data."""

    # Create all tables
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()

    try:
        # Check if already seeded
        existing_company = db.query(User).filter(User.email == "hr@acme.example").first()
        if existing_company:
            print("Database already seeded. Skipping...")
            return

        print("Seeding database...")
        now = utcnow()

        # 1. Company account with a complete profile
        company = User(
            email="hr@acme.example",
            hashed_password=get_password_hash("company123"),
            display_name="Acme HR",
            role=Role.COMPANY.value,
            company_name="Acme",
            profile_completed="yes",
        )
        db.add(company)
        db.flush()  # Get IDs

        db.add(
            CompanyProfile(
                user_id=company.id,
                company_name="Acme",
                company_type="startup",
                country="France",
                city="Paris",
                phone="+33 1 23 45 67 89",
                website="https://acme.example",
                hr_email="hr@acme.example",
                hr_phone="+33 1 23 45 67 00",
                founding_date="2015-03-01",
                description="Industrial tooling since 2015.",
                profile_completed="yes",
            )
        )

        # 2. Job seeker with a complete profile
        seeker = User(
            email="jane.smith@example.com",
            hashed_password=get_password_hash("seeker123"),
            display_name="Jane Smith",
            role=Role.JOB_SEEKER.value,
            profile_completed="yes",
        )
        db.add(seeker)
        db.flush()

        db.add(
            Profile(
                user_id=seeker.id,
                phone="+33 6 12 34 56 78",
                city="Lyon",
                country="France",
                cv_url="/files/cv/jane-smith.pdf",
                photo_url="/files/avatars/jane-smith.png",
                educations=[
                    {
                        "title": "MSc Computer Science",
                        "school": "INSA Lyon",
                        "city": "Lyon",
                        "country": "France",
                        "start": "2018",
                        "end": "2020",
                    }
                ],
                profile_completed="yes",
            )
        )

        # 3. Staff account
        db.add(
            User(
                email="staff@jobboard.example",
                hashed_password=get_password_hash("staff123"),
                display_name="Board Staff",
                role=Role.STAFF.value,
                profile_completed="yes",
            )
        )

        # 4. Jobs: one open public, one private, one expired
        backend_job = Job(
            company_id=company.id,
            title="Backend Developer",
            type="Full-time",
            location="Paris",
            salary="55k-65k EUR",
            description="Build and run our Python services.",
            contact_info="hr@acme.example",
            education_level="Master",
            questions=["Why Acme?", "Describe a service you have operated."],
            availability_slots=[{"date": (now + timedelta(days=7)).strftime("%Y-%m-%d"), "time": "10:00"}],
            company_name="Acme",
            deadline=now + timedelta(days=30),
            posted_at=now - timedelta(days=2),
        )
        db.add(backend_job)
        db.add(
            Job(
                company_id=company.id,
                title="Internal Tools Intern",
                type="Internship",
                location="Paris",
                description="Referral-only internship.",
                is_public=False,
                company_name="Acme",
                posted_at=now - timedelta(days=1),
            )
        )
        db.add(
            Job(
                company_id=company.id,
                title="Data Analyst",
                type="Contract",
                location="New York",
                description="Six month contract.",
                status="expired",
                company_name="Acme",
                deadline=now - timedelta(days=3),
                posted_at=now - timedelta(days=40),
            )
        )
        db.flush()

        # 5. Jane's application to the open job
        db.add(
            Application(
                job_id=backend_job.id,
                user_id=seeker.id,
                answers=["Your tooling runs half the plants I visited.", "A billing API on Kubernetes."],
                interview_type="remote",
                interview_slots=list(backend_job.availability_slots),
                cv_url="/files/cv/jane-smith.pdf",
                status="pending",
            )
        )

        # Commit all changes
        db.commit()

        print("✅ Database seeded successfully!")
        print("\n📋 Created Users:")
        print("   - hr@acme.example (password: company123) [company]")
        print("   - jane.smith@example.com (password: seeker123) [job-seeker]")
        print("   - staff@jobboard.example (password: staff123) [staff]")
        print("\n🎯 Acme has 3 jobs: 1 open, 1 private, 1 expired")

    except Exception as e:
        db.rollback()
        print(f"❌ Error seeding database: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_database()
