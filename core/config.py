from decouple import config, Csv

class Settings:
    # Database Configuration
    DATABASE_URL: str = config("DATABASE_URL", default="sqlite:///./qiogems.db")

    # Security Configuration
    SECRET_KEY: str = config("SECRET_KEY", default="your-secret-key-here-change-in-production")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = config("ACCESS_TOKEN_EXPIRE_MINUTES", default=60, cast=int)

    # Authorization policy: "enforce" or "permissive"
    AUTH_POLICY: str = config("AUTH_POLICY", default="enforce")
    DEV_SELLER_ID: str = config("DEV_SELLER_ID", default="dev-seller")
    DEV_SELLER_EMAIL: str = config("DEV_SELLER_EMAIL", default="seller@qiogems.local")

    # Order Configuration
    ENFORCE_STATUS_TRANSITIONS: bool = config("ENFORCE_STATUS_TRANSITIONS", default=True, cast=bool)
    CURRENCY: str = config("CURRENCY", default="RM")

    # Email Configuration
    FROM_EMAIL: str = config("FROM_EMAIL", default="QioGems <no-reply@qiogems.com>")
    SELLER_NOTIFICATION_EMAIL: str = config("SELLER_NOTIFICATION_EMAIL", default="")
    SMTP_HOST: str = config("SMTP_HOST", default="")
    SMTP_PORT: int = config("SMTP_PORT", default=587, cast=int)
    SMTP_USER: str = config("SMTP_USER", default="")
    SMTP_PASS: str = config("SMTP_PASS", default="")
    BREVO_API_KEY: str = config("BREVO_API_KEY", default="")
    BREVO_API_URL: str = config("BREVO_API_URL", default="https://api.brevo.com/v3/smtp/email")
    EMAIL_TIMEOUT_SECONDS: int = config("EMAIL_TIMEOUT_SECONDS", default=10, cast=int)

    # URL Configuration
    FRONTEND_BASE_URL: str = config("FRONTEND_BASE_URL", default="http://localhost:3000")
    CORS_ORIGINS: list = config(
        "CORS_ORIGINS",
        default="http://localhost:3000,http://127.0.0.1:3000",
        cast=Csv()
    )

    # Environment
    ENVIRONMENT: str = config("ENVIRONMENT", default="development")
    DEBUG: bool = config("DEBUG", default=True, cast=bool)

    # Logging
    LOG_LEVEL: str = config("LOG_LEVEL", default="INFO")

settings = Settings()
