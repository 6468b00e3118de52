# pulse/index.py
# Exposes a WSGI callable for gunicorn/Vercel from the Dash app.
from pulse.ui.dashboard import app as dash_app

# Dash's underlying Flask server:
app = dash_app.server

app.config.update(SERVER_NAME=None)
