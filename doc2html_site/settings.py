from datetime import timedelta
from pathlib import Path
from dotenv import load_dotenv
import os

BASE_DIR = Path(__file__).resolve().parent.parent

ENV_PATH = BASE_DIR / ".env"
if ENV_PATH.exists():
    load_dotenv(dotenv_path=ENV_PATH, override=False)


def env_flag(name, default):
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "y", "on"}


SECRET_KEY = os.environ.get("SECRET_KEY", "django-insecure-fallback-dev-key")
DEBUG = env_flag("DEBUG", "True")

ALLOWED_HOSTS = [
    host.strip()
    for host in os.environ.get("ALLOWED_HOSTS", "127.0.0.1,localhost,testserver").split(",")
    if host.strip()
]

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'doc2html.apps.Doc2HtmlConfig',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'doc2html.ratelimit.RateLimitMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'doc2html_site.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'doc2html_site.wsgi.application'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'db.sqlite3',
        # File-backed test database so worker threads see committed rows.
        'TEST': {'NAME': BASE_DIR / 'test_db.sqlite3'},
    }
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'doc2html',
    }
}

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]

LANGUAGE_CODE = 'en-us'

TIME_ZONE = os.environ.get("TIME_ZONE", "UTC")

USE_I18N = True

USE_TZ = True

STATIC_URL = 'static/'

MEDIA_URL = '/media/'
MEDIA_ROOT = Path(os.environ.get("MEDIA_ROOT", BASE_DIR / 'media'))

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

X_FRAME_OPTIONS = 'DENY'

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {'format': '%(asctime)s %(levelname)s %(name)s: %(message)s'},
    },
    'handlers': {
        'console': {'class': 'logging.StreamHandler', 'formatter': 'simple'},
    },
    'loggers': {
        'doc2html': {
            'handlers': ['console'],
            'level': os.environ.get("DOC2HTML_LOG_LEVEL", "INFO"),
            'propagate': False,
        },
    },
}

# Conversion pipeline
DOC2HTML_JOB_TTL = timedelta(seconds=int(os.environ.get("DOC2HTML_JOB_TTL_SECONDS", str(3 * 60 * 60))))
DOC2HTML_MAX_CONTENT_BYTES = int(os.environ.get("DOC2HTML_MAX_CONTENT_BYTES", str(50 * 1024 * 1024)))
DOC2HTML_MAX_UPLOAD_BYTES = int(os.environ.get("DOC2HTML_MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))
DOC2HTML_ANONYMOUS_MAX_UPLOAD_BYTES = int(os.environ.get("DOC2HTML_ANONYMOUS_MAX_UPLOAD_BYTES", str(3 * 1024 * 1024)))
DOC2HTML_BACKGROUND_CONVERSION = env_flag("DOC2HTML_BACKGROUND_CONVERSION", "True")

DOC2HTML_RATE_LIMIT_CACHE = 'default'
DOC2HTML_RATE_LIMITS = {
    'window_seconds': int(os.environ.get("DOC2HTML_RATE_WINDOW_SECONDS", str(15 * 60))),
    'max_requests': int(os.environ.get("DOC2HTML_RATE_MAX_REQUESTS", "100")),
    'max_uploads': int(os.environ.get("DOC2HTML_RATE_MAX_UPLOADS", "10")),
    'max_uploads_authenticated': int(os.environ.get("DOC2HTML_RATE_MAX_UPLOADS_AUTH", "50")),
}
