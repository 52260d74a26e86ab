"""
Create (or promote) an admin account.

    python -m scripts.create_admin <username> <password> <email> "<full name>" <phone>
"""
import asyncio
import logging
import sys
from sqlmodel import select

from chitledger.core.security import get_password_hash
from chitledger.db.session import AsyncSessionLocal
from chitledger.models.enums import UserRole, UserStatus
from chitledger.models.user import User

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

async def create_admin(username: str, password: str, email: str, full_name: str, phone: str):
    async with AsyncSessionLocal() as session:
        result = await session.execute(select(User).where(User.username == username))
        user = result.scalars().first()

        if user:
            user.role = UserRole.ADMIN
            user.status = UserStatus.ACTIVE
            user.hashed_password = get_password_hash(password)
            logger.info(f"Promoted existing user {username} to admin")
        else:
            user = User(
                username=username,
                email=email,
                full_name=full_name,
                phone=phone,
                role=UserRole.ADMIN,
                hashed_password=get_password_hash(password),
            )
            logger.info(f"Created admin {username}")

        session.add(user)
        await session.commit()

if __name__ == "__main__":
    if len(sys.argv) != 6:
        print(__doc__)
        sys.exit(1)
    asyncio.run(create_admin(*sys.argv[1:]))
