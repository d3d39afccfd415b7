"""
asgi.py -- Application assembly for siteadmin.

The only place the process-wide Settings are read for the web server.
api/main.py builds the app from whatever Settings it is given; this module
hands it the ones loaded from the environment / .env file.

Run with:  uvicorn asgi:app --reload
           python main.py serve
"""

from api.main import create_app
from core.config import get_settings

app = create_app(get_settings())
