import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./referral_ledger.db")
SQLALCHEMY_DATABASE_URI = DATABASE_URL

# JWT Settings
SECRET_KEY: str = os.getenv("SECRET_KEY", "a_very_secret_key_that_should_be_in_env_file_and_much_stronger") # In a real app, use a strong, randomly generated key
ALGORITHM: str = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 30))
BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", 12))

# Stripe API Keys
STRIPE_SECRET_KEY: str = os.getenv("STRIPE_SECRET_KEY", "sk_test_YOUR_STRIPE_SECRET_KEY")

# When true, payment confirmation skips the gateway lookup. Injected into
# PaymentVerifier through app.core.dependencies, never read anywhere else.
PAYMENT_TEST_MODE: bool = os.getenv("PAYMENT_TEST_MODE", "false").lower() in ("1", "true", "yes")

WALLET_CURRENCY: str = os.getenv("WALLET_CURRENCY", "INR")

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
