import logging
import os
import sys
from dotenv import load_dotenv


# --- Loading the environment ---
# Under pytest the values come from .env.test, otherwise from .env
if "pytest" in sys.modules:
    load_dotenv(".env.test")
else:
    load_dotenv()


def _optional_int(name: str) -> int | None:
    value = os.getenv(name)
    if value is None or value.strip() == '':
        return None
    return int(value)


# --- Logging ---
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
)


# --- JWT settings ---
JWT_SECRET = os.getenv('JWT_SECRET', 'a_very_secret_key_for_local_development')
JWT_ALGORITHM = os.getenv('JWT_ALGORITHM', 'HS256')
# Unset means tokens are issued without an "exp" claim
JWT_EXPIRE_MINUTES = _optional_int('JWT_EXPIRE_MINUTES')

# bcrypt cost factor; 10 matches the hashes already stored in users
BCRYPT_ROUNDS = int(os.getenv('BCRYPT_ROUNDS', '10'))


# --- Database connection settings ---
PGHOST = os.getenv('PGHOST', 'localhost')
PGPORT = int(os.getenv('PGPORT', '5432'))
PGUSER = os.getenv('PGUSER', 'postgres')
PGPASSWORD = os.getenv('PGPASSWORD', '')
PGDATABASE = os.getenv('PGDATABASE', 'postgres')

DB_POOL_MIN_SIZE = int(os.getenv('DB_POOL_MIN_SIZE', '1'))
DB_POOL_MAX_SIZE = int(os.getenv('DB_POOL_MAX_SIZE', '10'))
DB_COMMAND_TIMEOUT = float(os.getenv('DB_COMMAND_TIMEOUT', '30'))
DB_CONNECT_RETRIES = int(os.getenv('DB_CONNECT_RETRIES', '5'))
DB_CONNECT_RETRY_WAIT = float(os.getenv('DB_CONNECT_RETRY_WAIT', '5'))

# Passed to asyncpg as separate options, so any character is allowed in the password
DB_CONNECT_KWARGS = {
    'host': PGHOST,
    'port': PGPORT,
    'user': PGUSER,
    'password': PGPASSWORD,
    'database': PGDATABASE,
}


# --- HTTP server ---
PORT = int(os.getenv('PORT', '3000'))
CORS_ORIGINS = [origin.strip() for origin in os.getenv('CORS_ORIGINS', '*').split(',') if origin.strip()]

TESTING = os.getenv('TESTING') == 'True'
