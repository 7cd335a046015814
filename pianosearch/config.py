from functools import lru_cache
import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field


load_dotenv()


class Settings(BaseModel):
    env: str = Field(default="dev", alias="ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    timezone: str = Field(default="Asia/Tokyo", alias="TIMEZONE")

    database_url: str = Field(default="", alias="DATABASE_URL")
    postgres_db: str = Field(default="pianosearch", alias="POSTGRES_DB")
    postgres_user: str = Field(default="pianosearch", alias="POSTGRES_USER")
    postgres_password: str = Field(default="pianosearch", alias="POSTGRES_PASSWORD")
    postgres_host: str = Field(default="localhost", alias="POSTGRES_HOST")
    postgres_port: int = Field(default=5432, alias="POSTGRES_PORT")

    jwt_secret: str = Field(default="secret", alias="JWT_SECRET")
    jwt_expire_min: int = Field(default=10080, alias="JWT_EXPIRE_MIN")

    site_url: str = Field(default="http://localhost:3000", alias="SITE_URL")

    payment_provider: str = Field(default="stub", alias="PAYMENT_PROVIDER")
    stripe_secret_key_prod: str = Field(default="", alias="STRIPE_SECRET_KEY_PROD")
    stripe_secret_key_test: str = Field(default="", alias="STRIPE_SECRET_KEY_TEST")
    stripe_secret_key: str = Field(default="", alias="STRIPE_SECRET_KEY")
    stripe_webhook_secret: str = Field(default="", alias="STRIPE_WEBHOOK_SECRET")

    plan_monthly_amount: int = Field(default=500, alias="PLAN_MONTHLY_AMOUNT")
    plan_currency: str = Field(default="jpy", alias="PLAN_CURRENCY")
    plan_product_name: str = Field(default="ピアノ教室掲載サービス", alias="PLAN_PRODUCT_NAME")

    resend_api_key: str = Field(default="", alias="RESEND_API_KEY")
    mail_from: str = Field(default="Piano Search <onboarding@resend.dev>", alias="MAIL_FROM")
    contact_mail_from: str = Field(
        default="Piano Search Contact <onboarding@resend.dev>", alias="CONTACT_MAIL_FROM"
    )
    admin_contact_email: str = Field(
        default="piano.rythmique.find@gmail.com", alias="ADMIN_CONTACT_EMAIL"
    )

    media_url_prefix: str = Field(default="/media", alias="MEDIA_URL_PREFIX")
    scheduler_enabled: bool = Field(default=False, alias="SCHEDULER_ENABLED")

    class Config:
        populate_by_name = True

    @property
    def sqlalchemy_url(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+psycopg2://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    def resolve_stripe_key(self) -> str:
        """Pick the live key, then the test key, then the plain fallback."""

        if self.stripe_secret_key_prod.startswith("sk_live_"):
            return self.stripe_secret_key_prod
        if self.stripe_secret_key_test.startswith("sk_test_"):
            return self.stripe_secret_key_test
        return self.stripe_secret_key


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(**os.environ)
