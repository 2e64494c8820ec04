import os


def _env_bool(name, default="0"):
    return (os.getenv(name, default) or "").lower() in ("1", "true", "yes")


class BaseConfig:
    JSON_SORT_KEYS = False
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ALLOWED_ORIGINS = os.getenv("CORS_ALLOWED_ORIGINS", "*")
    RATELIMIT_STORAGE_URL = os.getenv("RATELIMIT_STORAGE_URL", "memory://")
    CHECKOUT_LIMIT_PER_IP = os.getenv("CHECKOUT_LIMIT_PER_IP", "20 per hour")
    OTEL_SERVICE_NAME = os.getenv("OTEL_SERVICE_NAME", "storefront-backend")
    OTEL_EXPORTER_OTLP_ENDPOINT = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4318/v1/traces")

    # Cart persistence
    CART_SLOT_NAME = os.getenv("CART_SLOT_NAME", "shopping_cart")

    # Delivery pricing; origin is the store's pickup point
    DELIVERY_ORIGIN_LAT = float(os.getenv("DELIVERY_ORIGIN_LAT", "10.4961"))
    DELIVERY_ORIGIN_LNG = float(os.getenv("DELIVERY_ORIGIN_LNG", "-66.8530"))
    DISTANCE_MATRIX_API_KEY = os.getenv("DISTANCE_MATRIX_API_KEY")
    DISTANCE_MATRIX_URL = os.getenv(
        "DISTANCE_MATRIX_URL", "https://maps.googleapis.com/maps/api/distancematrix/json"
    )
    DISTANCE_TIMEOUT_SECONDS = float(os.getenv("DISTANCE_TIMEOUT_SECONDS", 3))
    DISTANCE_WORKERS = int(os.getenv("DISTANCE_WORKERS", 4))

    # Stock reconciliation: also move the product pool for lines with a stocked variant
    RECONCILE_PARENT_WITH_VARIANT = _env_bool("RECONCILE_PARENT_WITH_VARIANT")

    # Order hand-off
    WHATSAPP_PHONE = os.getenv("WHATSAPP_PHONE", "584147926934")
    WEBHOOK_URL = os.getenv("WEBHOOK_URL", "")
    WEBHOOK_TIMEOUT_SECONDS = float(os.getenv("WEBHOOK_TIMEOUT_SECONDS", 5))


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-insecure-key")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///dev.db")


class TestingConfig(BaseConfig):
    TESTING = True
    SECRET_KEY = "test-key"
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    DISTANCE_MATRIX_API_KEY = None
    WEBHOOK_URL = ""


class ProductionConfig(BaseConfig):
    DEBUG = False
    TESTING = False
    SECRET_KEY = os.getenv("SECRET_KEY")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL")

    @staticmethod
    def validate():
        missing = []
        if not os.getenv("SECRET_KEY"):
            missing.append("SECRET_KEY")
        if not os.getenv("DATABASE_URL"):
            missing.append("DATABASE_URL")
        if missing:
            raise RuntimeError(
                f"Missing required env vars in production: {', '.join(missing)}"
            )


def get_config_class():
    env = os.getenv("APP_ENV", "development").lower()
    if env == "production":
        ProductionConfig.validate()
        return ProductionConfig
    if env == "testing":
        return TestingConfig
    return DevelopmentConfig
