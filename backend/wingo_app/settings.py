from pathlib import Path
import os
BASE_DIR = Path(__file__).resolve().parent.parent
from dotenv import load_dotenv
load_dotenv()
SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "django-insecure-wingo-local-only")

DEBUG = os.getenv("DJANGO_DEBUG", "false").lower() == "true"

ALLOWED_HOSTS = [h for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1").split(",") if h]


# Application definition

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'rest_framework',
    'corsheaders',
    'accounts',
    'wallets',
    'wingo',
    'adminpanel',
]


MIDDLEWARE = [
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

AUTH_USER_MODEL = 'accounts.User'

ROOT_URLCONF = 'wingo_app.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'wingo_app.wsgi.application'

# Payment / payout gateway (Razorpay + RazorpayX)
RAZORPAY_KEY_ID = os.getenv("RAZORPAY_KEY_ID")
RAZORPAY_KEY_SECRET = os.getenv("RAZORPAY_KEY_SECRET")
RAZORPAY_WEBHOOK_SECRET = os.getenv("RAZORPAY_WEBHOOK_SECRET", "")
RAZORPAY_ACCOUNT_NUMBER = os.getenv("RAZORPAY_ACCOUNT_NUMBER")
RAZORPAY_BASE_URL = "https://api.razorpay.com/v1"
RAZORPAY_CONNECT_TIMEOUT = int(os.getenv("RAZORPAY_CONNECT_TIMEOUT", "15"))
RAZORPAY_READ_TIMEOUT = int(os.getenv("RAZORPAY_READ_TIMEOUT", "45"))
RAZORPAY_MAX_RETRIES = int(os.getenv("RAZORPAY_MAX_RETRIES", "2"))

# Dotted path of the class implementing both PaymentProvider and PayoutProvider
WINGO_PAYMENT_PROVIDER = os.getenv("WINGO_PAYMENT_PROVIDER", "wallets.razorpay.RazorpayService")

# Redis (scheduler single-instance lock)
REDIS_URL = os.getenv("REDIS_URL", "redis://127.0.0.1:6379/0")

# Game rules
WINGO_ROUND_DURATION = int(os.getenv("WINGO_ROUND_DURATION", "60"))  # seconds
WINGO_BET_CLOSE_BEFORE_END = int(os.getenv("WINGO_BET_CLOSE_BEFORE_END", "30"))  # seconds
WINGO_SCHEDULER_INTERVAL = float(os.getenv("WINGO_SCHEDULER_INTERVAL", "10"))  # seconds
WINGO_SCHEDULER_LOCK_TTL = int(os.getenv("WINGO_SCHEDULER_LOCK_TTL", "30"))  # seconds
WINGO_REFERRAL_BONUS = os.getenv("WINGO_REFERRAL_BONUS", "25")
WINGO_AUTO_PAYOUT = os.getenv("WINGO_AUTO_PAYOUT", "false").lower() == "true"

WINGO_MIN_DEPOSIT = os.getenv("WINGO_MIN_DEPOSIT", "70")
WINGO_MAX_DEPOSIT = os.getenv("WINGO_MAX_DEPOSIT", "50000")
WINGO_MIN_WITHDRAWAL = os.getenv("WINGO_MIN_WITHDRAWAL", "110")
WINGO_MAX_WITHDRAWAL = os.getenv("WINGO_MAX_WITHDRAWAL", "50000")

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': os.getenv("SQLITE_PATH", BASE_DIR / 'db.sqlite3'),
        # writers queue on the database lock instead of failing an upgrade mid-transaction
        'OPTIONS': {
            'transaction_mode': 'IMMEDIATE',
            'timeout': 20,
        },
        # on disk so worker threads in tests share one database
        'TEST': {
            'NAME': BASE_DIR / 'test_db.sqlite3',
        },
    }
}


CORS_ALLOW_CREDENTIALS = True

CORS_ALLOWED_ORIGINS = [
    o for o in os.getenv("CORS_ALLOWED_ORIGINS", "http://localhost:3000").split(",") if o
]

CSRF_TRUSTED_ORIGINS = CORS_ALLOWED_ORIGINS

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'rest_framework.authentication.SessionAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.AllowAny',
    ]
}


# CSRF settings
CSRF_COOKIE_HTTPONLY = False
CSRF_COOKIE_SAMESITE = 'Lax'
CSRF_COOKIE_SECURE = not DEBUG
CSRF_USE_SESSIONS = False

SESSION_ENGINE = "django.contrib.sessions.backends.db"
SESSION_COOKIE_HTTPONLY = True
SESSION_COOKIE_SAMESITE = "Lax"
SESSION_COOKIE_SECURE = not DEBUG

AUTH_PASSWORD_VALIDATORS = [
    {
        'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator',
        'OPTIONS': {'min_length': 6},
    },
]


LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": LOG_LEVEL,
    },
    "loggers": {
        "django": {"handlers": ["console"], "level": "WARNING", "propagate": False},
    },
}


# Internationalization

LANGUAGE_CODE = 'en-us'

TIME_ZONE = 'UTC'

USE_I18N = True

USE_TZ = True


# Static files (CSS, JavaScript, Images)

STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / "staticfiles"

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'
