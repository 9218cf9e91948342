"""
UMC Media Hub - Centralized Configuration
==========================================
All environment variables and constants are loaded here.
No other module should call os.getenv() directly.
"""

import os
import sys
from decimal import Decimal

from dotenv import load_dotenv

load_dotenv()


# ==========================================
# 🗄️ Database
# ==========================================
DATABASE_URL = os.getenv("DATABASE_URL")

if not DATABASE_URL:
    DB_USER = os.getenv("DB_USER")
    DB_PASSWORD = os.getenv("DB_PASSWORD")
    DB_HOST = os.getenv("DB_HOST", "localhost")
    DB_PORT = os.getenv("DB_PORT", "5432")
    DB_NAME = os.getenv("DB_NAME")

    if not all([DB_USER, DB_PASSWORD, DB_HOST, DB_NAME]):
        print("[ERROR] Critical: Database config missing in .env (DATABASE_URL or DB_USER, DB_PASSWORD, DB_HOST, DB_NAME)")
        sys.exit(1)

    DATABASE_URL = f"postgresql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"


# ==========================================
# 🔐 Security
# ==========================================
SECRET_KEY = os.getenv("SECRET_KEY")

if not SECRET_KEY:
    print("[ERROR] Critical: SECRET_KEY missing in .env")
    sys.exit(1)

ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24  # 1 day


# ==========================================
# 💳 Payment Gateway
# ==========================================
PAYMENT_GATEWAY = os.getenv("PAYMENT_GATEWAY", "midtrans")
MIDTRANS_SERVER_KEY = os.getenv("MIDTRANS_SERVER_KEY", "")
MIDTRANS_IS_PRODUCTION = os.getenv("MIDTRANS_IS_PRODUCTION", "false").lower() == "true"
GATEWAY_TIMEOUT = float(os.getenv("GATEWAY_TIMEOUT") or "15")

# Pay-action hint lifetime (UI hint only, never a system of record)
PAYMENT_HINT_TTL_SECONDS = int(os.getenv("PAYMENT_HINT_TTL_SECONDS") or "60")


# ==========================================
# 📦 Rental Rules
# ==========================================
# Starting fine schedule proposed on a non-GOOD return (IDR)
FINE_MINOR_DAMAGE = Decimal("100000")
FINE_MAJOR_DAMAGE = Decimal("500000")
FINE_LOST = Decimal("500000")

# Legacy convention: reject reason embedded in booking notes
REJECT_REASON_PREFIX = "Alasan ditolak:"

MAX_EXTENSION_DAYS = 30


# ==========================================
# 🔧 App
# ==========================================
DEBUG = os.getenv("DEBUG", "false").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Base URL for gateway finish redirects
BASE_URL = os.getenv("BASE_URL", "http://127.0.0.1:8000")
