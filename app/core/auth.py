# app/core/auth.py

import uuid
import logging
import asyncio
from datetime import datetime
from typing import Optional

from fastapi import Depends, Request
from fastapi_users import FastAPIUsers, BaseUserManager, UUIDIDMixin
from fastapi_users.authentication import (
    AuthenticationBackend,
    BearerTransport,
    JWTStrategy,
)
from fastapi_users.db import SQLAlchemyUserDatabase
from fastapi_users import schemas

from sqlalchemy import Column, String, Boolean, DateTime, Float, JSON
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import relationship
from sqlalchemy.ext.asyncio import AsyncSession

import sendgrid
from sendgrid.helpers.mail import Mail

from .database import Base, get_async_session
from .config import settings

logger = logging.getLogger(__name__)

ONBOARDING_STEPS = ("welcome", "income", "allocation", "goals", "complete")


class User(Base):
    __tablename__ = "users"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    is_superuser = Column(Boolean, default=False, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)

    # Profile
    full_name = Column(String, nullable=True)
    business_name = Column(String, nullable=True)
    occupation = Column(String, nullable=True)
    monthly_income_target = Column(Float, nullable=True)
    onboarding_steps = Column(JSON, nullable=True)
    onboarding_completed = Column(Boolean, default=False, nullable=False)

    # Subscription billing
    subscription_tier = Column(String, default="free", nullable=False)
    subscription_active = Column(Boolean, default=False, nullable=False)
    subscription_start = Column(DateTime, nullable=True)
    subscription_end = Column(DateTime, nullable=True)
    stripe_customer_id = Column(String, unique=True, nullable=True)
    stripe_subscription_id = Column(String, unique=True, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    incomes = relationship("Income", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)
    expenses = relationship("Expense", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)
    goals = relationship("Goal", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)

    @property
    def is_pro(self) -> bool:
        if self.is_superuser:
            return True
        if self.subscription_tier != "pro" or not self.subscription_active:
            return False
        return self.subscription_end is None or self.subscription_end > datetime.utcnow()


class UserRead(schemas.BaseUser[uuid.UUID]):
    full_name: Optional[str] = None
    business_name: Optional[str] = None
    occupation: Optional[str] = None
    monthly_income_target: Optional[float] = None
    onboarding_completed: bool = False
    subscription_tier: str = "free"
    subscription_active: bool = False

    class Config:
        from_attributes = True


class UserCreate(schemas.BaseUserCreate):
    full_name: Optional[str] = None
    business_name: Optional[str] = None
    occupation: Optional[str] = None


async def send_email_via_sendgrid(to_email: str, subject: str, body: str) -> bool:
    """
    Send an HTML email through SendGrid. Returns False instead of raising so
    that email problems never break the request that triggered them.
    """
    if not settings.SENDGRID_API_KEY:
        logger.warning(f"SendGrid not configured, skipping email to {to_email}")
        return False

    if not to_email or "@" not in to_email:
        logger.error(f"Invalid email format: {to_email}")
        return False

    try:
        logger.info(f"Attempting to send email to {to_email}")
        message = Mail(
            from_email=(settings.EMAIL_FROM, settings.EMAIL_FROM_NAME),
            to_emails=to_email,
            subject=subject,
            html_content=body
        )
        message.reply_to = settings.EMAIL_FROM

        sg = sendgrid.SendGridAPIClient(api_key=settings.SENDGRID_API_KEY)

        # The SendGrid client is blocking
        loop = asyncio.get_running_loop()
        response = await loop.run_in_executor(None, sg.send, message)

        if response.status_code == 202:
            logger.info(f"✅ Email sent successfully to {to_email}")
            return True
        logger.error(f"❌ Failed to send email. Status code: {response.status_code}")
        return False

    except Exception as e:
        logger.error(f"❌ Exception while sending email to {to_email}: {str(e)}")
        return False


EMAIL_TEMPLATE = """
<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{title} - Stackr</title></head>
<body style="margin: 0; padding: 0; font-family: Arial, sans-serif; background-color: #f4f4f4;">
    <div style="max-width: 600px; margin: 0 auto; background-color: #ffffff; padding: 20px;">
        <div style="text-align: center; padding: 20px 0; border-bottom: 1px solid #eee;">
            <h1 style="color: #16a34a; margin: 0; font-size: 24px;">Stackr</h1>
        </div>
        <div style="padding: 30px 20px;">
            <h2 style="color: #333;">{title}</h2>
            <p style="color: #666; line-height: 1.6;">Hello <strong>{user_name}</strong>!</p>
            <p style="color: #666; line-height: 1.6;">{intro}</p>
            <div style="text-align: center; margin: 30px 0;">
                <a href="{link}" style="background-color: #16a34a; color: #ffffff; padding: 15px 30px; text-decoration: none; border-radius: 5px; font-weight: bold;">{button}</a>
            </div>
            <p style="color: #999; font-size: 13px; word-break: break-all;">{link}</p>
            <p style="color: #666; font-size: 14px;">{footer}</p>
        </div>
    </div>
</body>
</html>
"""


class UserManager(UUIDIDMixin, BaseUserManager[User, uuid.UUID]):
    reset_password_token_secret = settings.SECRET_KEY
    verification_token_secret = settings.SECRET_KEY

    async def on_after_register(self, user: User, request: Optional[Request] = None):
        logger.info(f"User {user.email} has registered. Requesting verification…")
        try:
            await self.request_verify(user, request)
        except Exception as e:
            logger.error(f"❌ Error during user registration verification for {user.email}: {str(e)}")

    async def on_after_request_verify(self, user: User, token: str, request: Optional[Request] = None):
        logger.info(f"Verification requested for user {user.email}")
        html_body = EMAIL_TEMPLATE.format(
            title="Verify your email",
            user_name=user.full_name or user.email.split('@')[0],
            intro="Thanks for signing up with Stackr. Please confirm your email address to start tracking your income.",
            link=f"{settings.FRONTEND_URL}/verify-email?token={token}",
            button="Verify Email Address",
            footer="This link expires in 1 hour. If you didn't create this account, ignore this email.",
        )
        success = await send_email_via_sendgrid(user.email, "🔐 Verify your Stackr account", html_body)
        if not success:
            logger.error(f"❌ Failed to send verification email to {user.email}")

    async def on_after_forgot_password(self, user: User, token: str, request: Optional[Request] = None):
        logger.info(f"Password reset requested for user {user.email}")
        html_body = EMAIL_TEMPLATE.format(
            title="Reset your password",
            user_name=user.full_name or user.email.split('@')[0],
            intro="We received a request to reset the password for your Stackr account.",
            link=f"{settings.FRONTEND_URL}/reset-password?token={token}",
            button="Reset Password",
            footer="If you didn't request this, ignore this email. Your password will remain unchanged.",
        )
        success = await send_email_via_sendgrid(user.email, "🔑 Reset your Stackr password", html_body)
        if not success:
            logger.error(f"❌ Failed to send password reset email to {user.email}")

    async def on_after_verify(self, user: User, request: Optional[Request] = None):
        logger.info(f"User {user.email} has been verified successfully! 🎉")

    async def on_after_reset_password(self, user: User, request: Optional[Request] = None):
        logger.info(f"Password reset completed for user {user.email}")


async def get_user_db(session: AsyncSession = Depends(get_async_session)):
    yield SQLAlchemyUserDatabase(session, User)


async def get_user_manager(user_db: SQLAlchemyUserDatabase = Depends(get_user_db)):
    yield UserManager(user_db)


bearer_transport = BearerTransport(tokenUrl="/api/v1/auth/jwt/login")


def get_jwt_strategy() -> JWTStrategy:
    return JWTStrategy(
        secret=settings.SECRET_KEY,
        lifetime_seconds=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        token_audience=["fastapi-users:auth"]
    )


auth_backend = AuthenticationBackend(
    name="jwt",
    transport=bearer_transport,
    get_strategy=get_jwt_strategy,
)

fastapi_users = FastAPIUsers[User, uuid.UUID](get_user_manager, [auth_backend])

__all__ = [
    "fastapi_users",
    "auth_backend",
    "get_user_db",
    "send_email_via_sendgrid",
    "User",
    "UserRead",
    "UserCreate",
]
