import os

class BaseConfig:
    JSON_SORT_KEYS = False
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ALLOWED_ORIGINS = os.getenv("CORS_ALLOWED_ORIGINS", "*")
    RATELIMIT_STORAGE_URL = os.getenv("RATELIMIT_STORAGE_URL", "memory://")
    ORDER_LIMIT_PER_IP = os.getenv("ORDER_LIMIT_PER_IP", "20 per hour")
    JWT_SECRET = os.getenv("JWT_SECRET", "dev-insecure-jwt-key")
    ACCESS_TOKEN_LIFETIME_MIN = int(os.getenv("ACCESS_TOKEN_LIFETIME_MIN", 15))

    PAYMENT_GATEWAY = os.getenv("PAYMENT_GATEWAY", "razorpay")
    RAZORPAY_KEY_ID = os.getenv("RAZORPAY_KEY_ID")
    RAZORPAY_KEY_SECRET = os.getenv("RAZORPAY_KEY_SECRET")
    RAZORPAY_API_URL = os.getenv("RAZORPAY_API_URL", "https://api.razorpay.com/v1")
    PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "INR")
    GATEWAY_TIMEOUT_SECONDS = float(os.getenv("GATEWAY_TIMEOUT_SECONDS", 10))

    CART_CONFLICT_RETRIES = int(os.getenv("CART_CONFLICT_RETRIES", 3))
    PENDING_CREATION_STALE_MINUTES = int(os.getenv("PENDING_CREATION_STALE_MINUTES", 10))

class DevelopmentConfig(BaseConfig):
    DEBUG = True
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-insecure-key")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///dev.db")
    PAYMENT_GATEWAY = os.getenv("PAYMENT_GATEWAY", "fake")
    RAZORPAY_KEY_SECRET = os.getenv("RAZORPAY_KEY_SECRET", "dev-gateway-secret")

class TestingConfig(BaseConfig):
    TESTING = True
    SECRET_KEY = "test-key"
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    PAYMENT_GATEWAY = "fake"
    RAZORPAY_KEY_SECRET = "test-gateway-secret"
    CART_CONFLICT_RETRIES = 3
    RATELIMIT_ENABLED = False

class ProductionConfig(BaseConfig):
    DEBUG = False
    TESTING = False
    SECRET_KEY = os.getenv("SECRET_KEY")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL")

    REQUIRED_ENV = ("SECRET_KEY", "DATABASE_URL", "JWT_SECRET")
    GATEWAY_ENV = ("RAZORPAY_KEY_ID", "RAZORPAY_KEY_SECRET")

    @classmethod
    def validate(cls):
        required = list(cls.REQUIRED_ENV)
        if os.getenv("PAYMENT_GATEWAY", "razorpay") == "razorpay":
            required += cls.GATEWAY_ENV
        missing = [key for key in required if not os.getenv(key)]
        if missing:
            raise RuntimeError(f"Production config incomplete, set: {', '.join(missing)}")

def get_config_class():
    env = os.getenv("APP_ENV", "development").lower()
    if env == "production":
        ProductionConfig.validate()
        return ProductionConfig
    if env == "testing":
        return TestingConfig
    return DevelopmentConfig
