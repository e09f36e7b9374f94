"""WSGI entry point for the InhaleStays API.

Used by production WSGI servers (gunicorn, uwsgi). Points to the
development settings unless DJANGO_SETTINGS_MODULE says otherwise.
"""

import os
from django.core.wsgi import get_wsgi_application  # type: ignore

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.dev')

application = get_wsgi_application()
