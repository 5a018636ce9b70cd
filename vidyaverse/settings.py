"""
Django settings for vidyaverse project.

Scope:
- school profile, classes and student records
- attendance registers for students and teachers
- fee collection with a reconciled payment ledger
- expenses, dead stock and depreciation-adjusted balance sheet
- printable reports (HTML, CSV, PDF)
"""
import os
from pathlib import Path


BASE_DIR = Path(__file__).resolve().parent.parent


DEBUG = os.getenv('DJANGO_DEBUG', 'False').lower() in {'1', 'true', 'yes'}
SECRET_KEY = os.getenv(
    'DJANGO_SECRET_KEY',
    'change-this-secret-key-in-production-4b1d0e7c2a9f4e6b8c3d5a7f9e1b2c4d',
)
ALLOWED_HOSTS = [
    host.strip()
    for host in os.getenv('DJANGO_ALLOWED_HOSTS', 'localhost,127.0.0.1,testserver').split(',')
    if host.strip()
]


INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'apps.core.apps.CoreConfig',
    'apps.core.schools.apps.SchoolsConfig',
    'apps.core.users.apps.UsersConfig',
    'apps.core.academics.apps.AcademicsConfig',
    'apps.core.students.apps.StudentsConfig',
    'apps.core.hr.apps.HrConfig',
    'apps.core.attendance.apps.AttendanceConfig',
    'apps.core.fees.apps.FeesConfig',
    'apps.core.expenses.apps.ExpensesConfig',
    'apps.core.inventory.apps.InventoryConfig',
    'apps.core.reports.apps.ReportsConfig',
]


MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]


ROOT_URLCONF = 'vidyaverse.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [BASE_DIR / 'templates'],
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

WSGI_APPLICATION = 'vidyaverse.wsgi.application'


DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': os.getenv('DJANGO_DB_PATH', str(BASE_DIR / 'db.sqlite3')),
    }
}


AUTH_PASSWORD_VALIDATORS = [
    {
        'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator',
    },
]


LANGUAGE_CODE = 'en-us'
TIME_ZONE = os.getenv('DJANGO_TIME_ZONE', 'Asia/Kolkata')
USE_I18N = True
USE_TZ = True

# Indian lakh/crore digit grouping for printed amounts.
NUMBER_GROUPING = (3, 2, 0)
THOUSAND_SEPARATOR = ','
DECIMAL_SEPARATOR = '.'


STATIC_URL = 'static/'
MEDIA_URL = '/media/'
MEDIA_ROOT = BASE_DIR / 'media'
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'
AUTH_USER_MODEL = 'users.User'


CSRF_COOKIE_SECURE = not DEBUG
SESSION_COOKIE_SECURE = not DEBUG
SECURE_SSL_REDIRECT = os.getenv('DJANGO_SECURE_SSL_REDIRECT', 'False').lower() in {'1', 'true', 'yes'}
SECURE_HSTS_SECONDS = int(os.getenv('DJANGO_SECURE_HSTS_SECONDS', '0'))
SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')


LOGIN_REDIRECT_URL = '/dashboard/'
LOGOUT_REDIRECT_URL = '/login/'
LOGIN_URL = '/login/'

TEST_RUNNER = 'apps.core.test_runner.InstalledAppsOnlyDiscoverRunner'

DEAD_STOCK_DEPRECIATION_RATE = os.getenv('DEAD_STOCK_DEPRECIATION_RATE', '0.10')
REPORT_CURRENCY_SYMBOL = os.getenv('REPORT_CURRENCY_SYMBOL', '₹')
REPORT_YEAR_CHOICES_SPAN = int(os.getenv('REPORT_YEAR_CHOICES_SPAN', '10'))
MARKSHEET_PASS_PERCENTAGE = os.getenv('MARKSHEET_PASS_PERCENTAGE', '33')
