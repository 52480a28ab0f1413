from feedback_app import create_app

# `flask --app wsgi.py run` locally; `gunicorn wsgi:app` behind the proxy
app = create_app()
